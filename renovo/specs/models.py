from django.db import models
from decimal import Decimal
from renovo.core.models import User
from renovo.parties.models import Supplier
from renovo.projects.models import Project, Room
from renovo.pricing import calculations


class SpecItem(models.Model):
    """FFE (furniture, fixtures & equipment) item specified for a project"""
    SPEC_STATUS_CHOICES = [
        # Procurement pipeline, in order
        ('DRAFT', 'Draft'),
        ('SELECTED', 'Selected'),
        ('RFQ_SENT', 'RFQ Sent'),
        ('QUOTE_RECEIVED', 'Quote Received'),
        ('QUOTE_APPROVED', 'Quote Approved'),
        ('BUDGET_SENT', 'Budget Sent'),
        ('BUDGET_APPROVED', 'Budget Approved'),
        ('INVOICED_TO_CLIENT', 'Invoiced to Client'),
        ('CLIENT_PAID', 'Client Paid'),
        ('ORDERED', 'Ordered'),
        ('SHIPPED', 'Shipped'),
        ('RECEIVED', 'Received'),
        ('DELIVERED', 'Delivered'),
        ('INSTALLED', 'Installed'),
        ('CLOSED', 'Closed'),
        # Set by hand, never changed by sync
        ('HIDDEN', 'Hidden'),
        ('CLIENT_TO_ORDER', 'Client to Order'),
        ('CONTRACTOR_TO_ORDER', 'Contractor to Order'),
        ('NEED_SAMPLE', 'Need Sample'),
        ('ISSUE', 'Issue'),
        ('ARCHIVED', 'Archived'),
    ]
    PAYMENT_STATUS_CHOICES = [
        ('NOT_INVOICED', 'Not Invoiced'),
        ('INVOICED', 'Invoiced'),
        ('DEPOSIT_PAID', 'Deposit Paid'),
        ('FULLY_PAID', 'Fully Paid'),
    ]
    CURRENCY_CHOICES = [
        ('CAD', 'CAD'),
        ('USD', 'USD'),
    ]

    # Items handled outside the studio's procurement
    NOT_INVOICEABLE_STATUSES = ('CLIENT_TO_ORDER', 'CONTRACTOR_TO_ORDER')
    ALREADY_INVOICED_STATUSES = ('INVOICED_TO_CLIENT', 'CLIENT_PAID')

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='spec_items')
    room = models.ForeignKey(Room, on_delete=models.SET_NULL, null=True, blank=True, related_name='spec_items')
    section_name = models.CharField(max_length=100, blank=True, help_text='Category / section, e.g. Lighting')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    brand = models.CharField(max_length=200, blank=True)
    model_number = models.CharField(max_length=100, blank=True)
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='spec_items')
    supplier_name = models.CharField(max_length=200, blank=True)
    supplier_link = models.URLField(max_length=500, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_type = models.CharField(max_length=30, default='units')
    trade_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rrp = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='CAD')
    markup_percent = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    lead_time = models.CharField(max_length=100, blank=True)
    images = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)
    client_approved = models.BooleanField(default=False)
    client_approved_at = models.DateTimeField(null=True, blank=True)
    client_approved_via = models.CharField(max_length=50, blank=True)
    spec_status = models.CharField(max_length=30, choices=SPEC_STATUS_CHOICES, default='DRAFT')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='NOT_INVOICED')
    paid_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    paid_at = models.DateTimeField(null=True, blank=True)
    order = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='spec_items')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def selling_price(self):
        return calculations.selling_price(self.rrp, self.trade_price, self.markup_percent)

    @property
    def image_url(self):
        return self.images[0] if self.images else None

    def get_components_total(self):
        """Per-unit client price of all components"""
        return sum(
            ((component.client_price or Decimal('0')) * component.quantity for component in self.components.all()),
            Decimal('0')
        )

    def get_rrp_total(self):
        if self.rrp is None:
            return None
        return calculations.item_rrp_total(self.rrp, self.quantity, self.get_components_total())

    def is_invoice_eligible(self):
        """Selectable for a client invoice: priced with an RRP and approved by the client"""
        return (
            calculations.has_price(self.rrp)
            and self.client_approved
            and self.spec_status not in self.NOT_INVOICEABLE_STATUSES
        )

    def ineligibility_reason(self):
        if self.spec_status in self.NOT_INVOICEABLE_STATUSES:
            return 'Ordered by client or contractor'
        if not calculations.has_price(self.rrp):
            return 'No RRP'
        if not self.client_approved:
            return 'Not approved by client'
        return None

    @property
    def is_already_invoiced(self):
        return self.spec_status in self.ALREADY_INVOICED_STATUSES

    class Meta:
        db_table = 'spec_items'
        ordering = ['room__order', 'section_name', 'order', 'id']
        indexes = [
            models.Index(fields=['project', 'spec_status'], name='idx_specitem_project_status'),
            models.Index(fields=['project', 'section_name'], name='idx_specitem_project_section'),
        ]


class SpecComponent(models.Model):
    """Component or add-on priced alongside its parent item (e.g. a lamp shade)"""
    item = models.ForeignKey(SpecItem, on_delete=models.CASCADE, related_name='components')
    name = models.CharField(max_length=255)
    model_number = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    image_url = models.URLField(max_length=500, blank=True)
    order = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.item.name} / {self.name}"

    @property
    def client_price(self):
        """Price with the parent's markup when the parent is priced from trade"""
        if self.price is None:
            return None
        if calculations.has_price(self.item.rrp):
            return self.price
        return calculations.component_price_with_markup(self.price, self.item.markup_percent)

    class Meta:
        db_table = 'spec_components'
        ordering = ['order', 'id']


class ItemActivity(models.Model):
    """Activity timeline entry for a spec item"""
    ACTIVITY_TYPE_CHOICES = [
        ('CREATED', 'Created'),
        ('UPDATED', 'Updated'),
        ('STATUS_CHANGED', 'Status Changed'),
        ('CLIENT_APPROVED', 'Client Approved'),
        ('RFQ_SENT', 'RFQ Sent'),
        ('QUOTE_RECEIVED', 'Quote Received'),
        ('QUOTE_ACCEPTED', 'Quote Accepted'),
        ('INVOICED', 'Invoiced'),
        ('PAYMENT_RECEIVED', 'Payment Received'),
        ('ORDERED', 'Ordered'),
        ('NOTE', 'Note'),
    ]

    item = models.ForeignKey(SpecItem, on_delete=models.CASCADE, related_name='activities')
    activity_type = models.CharField(max_length=30, choices=ACTIVITY_TYPE_CHOICES)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    actor = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='item_activities')
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.item.name}: {self.title}"

    class Meta:
        db_table = 'item_activities'
        ordering = ['-created_at', '-id']
