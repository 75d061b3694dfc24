# Generated manually
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


SPEC_STATUS_CHOICES = [
    ('DRAFT', 'Draft'), ('SELECTED', 'Selected'), ('RFQ_SENT', 'RFQ Sent'),
    ('QUOTE_RECEIVED', 'Quote Received'), ('QUOTE_APPROVED', 'Quote Approved'),
    ('BUDGET_SENT', 'Budget Sent'), ('BUDGET_APPROVED', 'Budget Approved'),
    ('INVOICED_TO_CLIENT', 'Invoiced to Client'), ('CLIENT_PAID', 'Client Paid'),
    ('ORDERED', 'Ordered'), ('SHIPPED', 'Shipped'), ('RECEIVED', 'Received'),
    ('DELIVERED', 'Delivered'), ('INSTALLED', 'Installed'), ('CLOSED', 'Closed'),
    ('HIDDEN', 'Hidden'), ('CLIENT_TO_ORDER', 'Client to Order'),
    ('CONTRACTOR_TO_ORDER', 'Contractor to Order'), ('NEED_SAMPLE', 'Need Sample'),
    ('ISSUE', 'Issue'), ('ARCHIVED', 'Archived'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('parties', '0001_initial'),
        ('projects', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='SpecItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('section_name', models.CharField(blank=True, help_text='Category / section, e.g. Lighting', max_length=100)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('brand', models.CharField(blank=True, max_length=200)),
                ('model_number', models.CharField(blank=True, max_length=100)),
                ('supplier_name', models.CharField(blank=True, max_length=200)),
                ('supplier_link', models.URLField(blank=True, max_length=500)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('unit_type', models.CharField(default='units', max_length=30)),
                ('trade_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('rrp', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('currency', models.CharField(choices=[('CAD', 'CAD'), ('USD', 'USD')], default='CAD', max_length=3)),
                ('markup_percent', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ('lead_time', models.CharField(blank=True, max_length=100)),
                ('images', models.JSONField(blank=True, default=list)),
                ('notes', models.TextField(blank=True)),
                ('client_approved', models.BooleanField(default=False)),
                ('client_approved_at', models.DateTimeField(blank=True, null=True)),
                ('client_approved_via', models.CharField(blank=True, max_length=50)),
                ('spec_status', models.CharField(choices=SPEC_STATUS_CHOICES, default='DRAFT', max_length=30)),
                ('payment_status', models.CharField(choices=[('NOT_INVOICED', 'Not Invoiced'), ('INVOICED', 'Invoiced'), ('DEPOSIT_PAID', 'Deposit Paid'), ('FULLY_PAID', 'Fully Paid')], default='NOT_INVOICED', max_length=20)),
                ('paid_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('order', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='spec_items', to=settings.AUTH_USER_MODEL)),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='spec_items', to='projects.project')),
                ('room', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='spec_items', to='projects.room')),
                ('supplier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='spec_items', to='parties.supplier')),
            ],
            options={
                'db_table': 'spec_items',
                'ordering': ['room__order', 'section_name', 'order', 'id'],
                'indexes': [
                    models.Index(fields=['project', 'spec_status'], name='idx_specitem_project_status'),
                    models.Index(fields=['project', 'section_name'], name='idx_specitem_project_section'),
                ],
            },
        ),
        migrations.CreateModel(
            name='SpecComponent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('model_number', models.CharField(blank=True, max_length=100)),
                ('price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('image_url', models.URLField(blank=True, max_length=500)),
                ('order', models.PositiveIntegerField(default=0)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='components', to='specs.specitem')),
            ],
            options={
                'db_table': 'spec_components',
                'ordering': ['order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='ItemActivity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('activity_type', models.CharField(choices=[('CREATED', 'Created'), ('UPDATED', 'Updated'), ('STATUS_CHANGED', 'Status Changed'), ('CLIENT_APPROVED', 'Client Approved'), ('RFQ_SENT', 'RFQ Sent'), ('QUOTE_RECEIVED', 'Quote Received'), ('QUOTE_ACCEPTED', 'Quote Accepted'), ('INVOICED', 'Invoiced'), ('PAYMENT_RECEIVED', 'Payment Received'), ('ORDERED', 'Ordered'), ('NOTE', 'Note')], max_length=30)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='item_activities', to=settings.AUTH_USER_MODEL)),
                ('item', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activities', to='specs.specitem')),
            ],
            options={
                'db_table': 'item_activities',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
