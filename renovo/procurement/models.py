import secrets

from django.db import models
from django.utils import timezone
from decimal import Decimal
from renovo.core.models import User
from renovo.parties.models import Supplier
from renovo.projects.models import Project
from renovo.specs.models import SpecItem


def generate_access_token():
    return secrets.token_urlsafe(32)


class RFQ(models.Model):
    """Request for quote sent to one or more suppliers"""
    STATUS_CHOICES = [
        ('DRAFT', 'Draft'),
        ('SENT', 'Sent'),
        ('PARTIALLY_QUOTED', 'Partially Quoted'),
        ('FULLY_QUOTED', 'Fully Quoted'),
        ('CLOSED', 'Closed'),
        ('CANCELLED', 'Cancelled'),
    ]

    rfq_number = models.CharField(max_length=50, unique=True)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='rfqs')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    message = models.TextField(blank=True, help_text='Note included in the email to suppliers')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='DRAFT')
    response_deadline = models.DateField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='rfqs')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.rfq_number} - {self.title}"

    class Meta:
        db_table = 'rfqs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['project', 'status'], name='idx_rfq_project_status'),
        ]


class RFQLineItem(models.Model):
    rfq = models.ForeignKey(RFQ, on_delete=models.CASCADE, related_name='line_items')
    spec_item = models.ForeignKey(SpecItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='rfq_line_items')
    item_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_type = models.CharField(max_length=30, default='units')
    notes = models.TextField(blank=True)
    order = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.rfq.rfq_number}: {self.item_name}"

    class Meta:
        db_table = 'rfq_line_items'
        ordering = ['order', 'id']


class SupplierRFQ(models.Model):
    """One supplier's copy of an RFQ, reachable through the supplier portal token"""
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('SENT', 'Sent'),
        ('VIEWED', 'Viewed'),
        ('QUOTED', 'Quoted'),
        ('DECLINED', 'Declined'),
    ]
    RESPONDED_STATUSES = ('QUOTED', 'DECLINED')

    rfq = models.ForeignKey(RFQ, on_delete=models.CASCADE, related_name='supplier_rfqs')
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='supplier_rfqs')
    vendor_name = models.CharField(max_length=200, blank=True)
    vendor_email = models.EmailField(blank=True)
    access_token = models.CharField(max_length=64, unique=True, default=generate_access_token)
    token_expires_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    sent_at = models.DateTimeField(null=True, blank=True)
    viewed_at = models.DateTimeField(null=True, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)
    decline_reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.rfq.rfq_number} -> {self.display_name}"

    @property
    def display_name(self):
        return self.supplier.name if self.supplier else self.vendor_name

    @property
    def email(self):
        if self.supplier and self.supplier.email:
            return self.supplier.email
        return self.vendor_email

    @property
    def is_expired(self):
        return bool(self.token_expires_at and self.token_expires_at < timezone.now())

    class Meta:
        db_table = 'supplier_rfqs'
        ordering = ['id']


class SupplierQuote(models.Model):
    """Pricing returned by a supplier, through the portal or entered by hand"""
    STATUS_CHOICES = [
        ('SUBMITTED', 'Submitted'),
        ('REVIEWING', 'Reviewing'),
        ('ACCEPTED', 'Accepted'),
        ('REJECTED', 'Rejected'),
        ('EXPIRED', 'Expired'),
    ]

    quote_number = models.CharField(max_length=100)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='supplier_quotes')
    supplier_rfq = models.ForeignKey(SupplierRFQ, on_delete=models.SET_NULL, null=True, blank=True, related_name='quotes')
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='quotes')
    vendor_name = models.CharField(max_length=200, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='SUBMITTED')
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    shipping_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default='CAD')
    valid_until = models.DateField(null=True, blank=True)
    estimated_lead_time = models.CharField(max_length=100, blank=True)
    deposit_percent = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    deposit_required = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    payment_terms = models.CharField(max_length=255, blank=True)
    shipping_terms = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    submitted_at = models.DateTimeField(default=timezone.now)
    reviewed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='reviewed_supplier_quotes')
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.quote_number} ({self.supplier_display_name})"

    @property
    def supplier_display_name(self):
        if self.supplier:
            return self.supplier.name
        if self.vendor_name:
            return self.vendor_name
        if self.supplier_rfq:
            return self.supplier_rfq.display_name
        return ''

    class Meta:
        db_table = 'supplier_quotes'
        ordering = ['-submitted_at']
        indexes = [
            models.Index(fields=['project', 'status'], name='idx_squote_project_status'),
        ]


class SupplierQuoteLineItem(models.Model):
    supplier_quote = models.ForeignKey(SupplierQuote, on_delete=models.CASCADE, related_name='line_items')
    rfq_line_item = models.ForeignKey(RFQLineItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='quote_lines')
    spec_item = models.ForeignKey(SpecItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='quote_lines')
    item_name = models.CharField(max_length=255)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    lead_time = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    is_accepted = models.BooleanField(default=False)
    accepted_at = models.DateTimeField(null=True, blank=True)
    accepted_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='accepted_quote_lines')
    approved_markup_percent = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)

    def __str__(self):
        return f"{self.item_name} @ {self.unit_price}"

    class Meta:
        db_table = 'supplier_quote_line_items'
        ordering = ['id']


class Order(models.Model):
    """Purchase order placed with a supplier"""
    STATUS_CHOICES = [
        ('PENDING_PAYMENT', 'Pending Payment'),
        ('PAYMENT_RECEIVED', 'Payment Received'),
        ('ORDERED', 'Ordered'),
        ('CONFIRMED', 'Confirmed'),
        ('SHIPPED', 'Shipped'),
        ('DELIVERED', 'Delivered'),
        ('INSTALLED', 'Installed'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
    ]
    PAYMENT_METHOD_CHOICES = [
        ('CREDIT_CARD', 'Credit Card'),
        ('WIRE', 'Wire Transfer'),
        ('E_TRANSFER', 'E-Transfer'),
        ('CHECK', 'Cheque'),
        ('CASH', 'Cash'),
        ('OTHER', 'Other'),
    ]

    order_number = models.CharField(max_length=50, unique=True)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='orders')
    supplier = models.ForeignKey(Supplier, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    vendor_name = models.CharField(max_length=200, blank=True)
    vendor_email = models.EmailField(blank=True)
    client_invoice = models.ForeignKey('invoicing.ClientQuote', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING_PAYMENT')

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    shipping_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    extra_charges = models.JSONField(default=list, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default='CAD')
    deposit_percent = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    deposit_required = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    balance_due = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    ordered_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    expected_delivery = models.DateField(null=True, blank=True)
    actual_ship_date = models.DateTimeField(null=True, blank=True)
    actual_delivery = models.DateTimeField(null=True, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)
    tracking_url = models.URLField(max_length=500, blank=True)
    shipping_carrier = models.CharField(max_length=100, blank=True)
    shipping_address = models.TextField(blank=True)

    supplier_paid_at = models.DateTimeField(null=True, blank=True)
    supplier_payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True)
    supplier_payment_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    supplier_payment_reference = models.CharField(max_length=100, blank=True)
    supplier_payment_notes = models.TextField(blank=True)

    notes = models.TextField(blank=True)
    internal_notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='orders_created')
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders_updated')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    @property
    def supplier_display_name(self):
        return self.supplier.name if self.supplier else self.vendor_name

    @property
    def supplier_email(self):
        if self.supplier and self.supplier.email:
            return self.supplier.email
        return self.vendor_email

    def get_items_total(self):
        return sum((item.total_price for item in self.items.all()), Decimal('0'))

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['project', 'status'], name='idx_order_project_status'),
            models.Index(fields=['supplier', 'status'], name='idx_order_supplier_status'),
        ]


class OrderItem(models.Model):
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('ORDERED', 'Ordered'),
        ('SHIPPED', 'Shipped'),
        ('DELIVERED', 'Delivered'),
        ('CANCELLED', 'Cancelled'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    spec_item = models.ForeignKey(SpecItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    supplier_quote_line = models.ForeignKey(SupplierQuoteLineItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PENDING')
    actual_delivery = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"{self.order.order_number}: {self.name}"

    class Meta:
        db_table = 'order_items'
        ordering = ['id']


class OrderActivity(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='activities')
    activity_type = models.CharField(max_length=50)
    message = models.TextField()
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_activities')
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.order.order_number}: {self.activity_type}"

    class Meta:
        db_table = 'order_activities'
        ordering = ['-created_at', '-id']
