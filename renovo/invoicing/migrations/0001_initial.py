# Generated manually
import django.db.models.deletion
import django.utils.timezone
import renovo.invoicing.models
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('projects', '0001_initial'),
        ('specs', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ClientQuote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quote_number', models.CharField(max_length=50, unique=True)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('SENT_TO_CLIENT', 'Sent to Client'), ('CLIENT_REVIEWING', 'Client Reviewing'), ('APPROVED', 'Approved'), ('REJECTED', 'Rejected'), ('REVISION_REQUESTED', 'Revision Requested'), ('EXPIRED', 'Expired')], default='DRAFT', max_length=20)),
                ('subtotal', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('cad_subtotal', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('usd_subtotal', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('delivery_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('custom_fees', models.JSONField(blank=True, default=list)),
                ('gst_rate', models.DecimalField(decimal_places=3, default=Decimal('5.000'), max_digits=6)),
                ('gst_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('qst_rate', models.DecimalField(decimal_places=3, default=Decimal('9.975'), max_digits=6)),
                ('qst_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('deposit_percent', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('deposit_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('cc_surcharge_percent', models.DecimalField(decimal_places=2, default=Decimal('3.00'), max_digits=5)),
                ('valid_until', models.DateField(blank=True, null=True)),
                ('payment_terms', models.CharField(blank=True, max_length=255)),
                ('client_name', models.CharField(blank=True, max_length=200)),
                ('client_email', models.EmailField(blank=True, max_length=254)),
                ('client_phone', models.CharField(blank=True, max_length=20)),
                ('client_address', models.TextField(blank=True)),
                ('access_token', models.CharField(default=renovo.invoicing.models.generate_invoice_token, max_length=64, unique=True)),
                ('token_expires_at', models.DateTimeField(blank=True, null=True)),
                ('sent_to_client_at', models.DateTimeField(blank=True, null=True)),
                ('email_opened_at', models.DateTimeField(blank=True, null=True)),
                ('view_count', models.PositiveIntegerField(default=0)),
                ('client_decision', models.CharField(blank=True, max_length=20)),
                ('client_decided_at', models.DateTimeField(blank=True, null=True)),
                ('client_message', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='client_quotes_created', to=settings.AUTH_USER_MODEL)),
                ('project', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='client_quotes', to='projects.project')),
                ('sent_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='client_quotes_sent', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='client_quotes_updated', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'client_quotes',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['project', 'status'], name='idx_cquote_project_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ClientQuoteLineItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('display_name', models.CharField(max_length=255)),
                ('display_description', models.TextField(blank=True)),
                ('category_name', models.CharField(blank=True, max_length=100)),
                ('room_name', models.CharField(blank=True, max_length=200)),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('unit_type', models.CharField(default='units', max_length=30)),
                ('currency', models.CharField(default='CAD', max_length=3)),
                ('client_unit_price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('client_total_price', models.DecimalField(decimal_places=2, max_digits=12)),
                ('supplier_unit_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('markup_percent', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ('is_component', models.BooleanField(default=False)),
                ('order', models.PositiveIntegerField(default=0)),
                ('client_quote', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='line_items', to='invoicing.clientquote')),
                ('spec_item', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='client_quote_lines', to='specs.specitem')),
            ],
            options={
                'db_table': 'client_quote_line_items',
                'ordering': ['order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='ClientPayment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('method', models.CharField(choices=[('CREDIT_CARD', 'Credit Card'), ('E_TRANSFER', 'E-Transfer'), ('WIRE', 'Wire Transfer'), ('CHECK', 'Cheque'), ('CASH', 'Cash'), ('OTHER', 'Other')], default='E_TRANSFER', max_length=20)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('PAID', 'Paid'), ('PARTIAL', 'Partial'), ('FAILED', 'Failed'), ('REFUNDED', 'Refunded')], default='PAID', max_length=20)),
                ('paid_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('reference', models.CharField(blank=True, max_length=100)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('client_quote', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='invoicing.clientquote')),
                ('recorded_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='client_payments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'client_payments',
                'ordering': ['-paid_at', '-id'],
            },
        ),
        migrations.CreateModel(
            name='ClientQuoteActivity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('activity_type', models.CharField(max_length=50)),
                ('description', models.TextField()),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('client_quote', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activities', to='invoicing.clientquote')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='client_quote_activities', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'client_quote_activities',
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
