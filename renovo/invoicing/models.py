import secrets

from django.db import models
from django.utils import timezone
from decimal import Decimal
from renovo.core.models import User
from renovo.projects.models import Project
from renovo.specs.models import SpecItem


def generate_invoice_token():
    return secrets.token_urlsafe(32)


class ClientQuote(models.Model):
    """Client invoice built from approved FFE spec items"""
    STATUS_CHOICES = [
        ('DRAFT', 'Draft'),
        ('SENT_TO_CLIENT', 'Sent to Client'),
        ('CLIENT_REVIEWING', 'Client Reviewing'),
        ('APPROVED', 'Approved'),
        ('REJECTED', 'Rejected'),
        ('REVISION_REQUESTED', 'Revision Requested'),
        ('EXPIRED', 'Expired'),
    ]
    # Billing status shown in invoice lists, derived from payments and dates
    BILLING_STATUSES = ('DRAFT', 'SENT', 'PARTIAL', 'PAID', 'OVERDUE')
    DECISION_STATUSES = {
        'approved': 'APPROVED',
        'rejected': 'REJECTED',
        'revision': 'REVISION_REQUESTED',
    }

    quote_number = models.CharField(max_length=50, unique=True)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='client_quotes')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='DRAFT')

    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    cad_subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    usd_subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    custom_fees = models.JSONField(default=list, blank=True)
    gst_rate = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal('5.000'))
    gst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    qst_rate = models.DecimalField(max_digits=6, decimal_places=3, default=Decimal('9.975'))
    qst_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    deposit_percent = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    deposit_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cc_surcharge_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('3.00'))
    valid_until = models.DateField(null=True, blank=True)
    payment_terms = models.CharField(max_length=255, blank=True)

    client_name = models.CharField(max_length=200, blank=True)
    client_email = models.EmailField(blank=True)
    client_phone = models.CharField(max_length=20, blank=True)
    client_address = models.TextField(blank=True)

    access_token = models.CharField(max_length=64, unique=True, default=generate_invoice_token)
    token_expires_at = models.DateTimeField(null=True, blank=True)
    sent_to_client_at = models.DateTimeField(null=True, blank=True)
    sent_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='client_quotes_sent')
    email_opened_at = models.DateTimeField(null=True, blank=True)
    view_count = models.PositiveIntegerField(default=0)
    client_decision = models.CharField(max_length=20, blank=True)
    client_decided_at = models.DateTimeField(null=True, blank=True)
    client_message = models.TextField(blank=True)

    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='client_quotes_created')
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='client_quotes_updated')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.quote_number} - {self.title}"

    @property
    def contact_name(self):
        if self.client_name:
            return self.client_name
        return self.project.client.name if self.project.client else ''

    @property
    def contact_email(self):
        if self.client_email:
            return self.client_email
        return self.project.client.email if self.project.client else ''

    def get_total_paid(self):
        """Sum of payments that count towards the balance (PAID and PARTIAL)"""
        return sum(
            (payment.amount for payment in self.payments.all() if payment.status in ClientPayment.COUNTED_STATUSES),
            Decimal('0')
        )

    def get_balance(self):
        return (self.total_amount or Decimal('0')) - self.get_total_paid()

    def get_billing_status(self, today=None):
        if self.status == 'DRAFT':
            return 'DRAFT'
        total = self.total_amount or Decimal('0')
        paid = self.get_total_paid()
        if total > 0 and paid >= total:
            return 'PAID'
        if paid > 0:
            return 'PARTIAL'
        if self.sent_to_client_at:
            today = today or timezone.localdate()
            if self.valid_until and self.valid_until < today:
                return 'OVERDUE'
            return 'SENT'
        return 'DRAFT'

    @property
    def is_token_expired(self):
        return bool(self.token_expires_at and self.token_expires_at < timezone.now())

    class Meta:
        db_table = 'client_quotes'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['project', 'status'], name='idx_cquote_project_status'),
        ]


class ClientQuoteLineItem(models.Model):
    client_quote = models.ForeignKey(ClientQuote, on_delete=models.CASCADE, related_name='line_items')
    spec_item = models.ForeignKey(SpecItem, on_delete=models.SET_NULL, null=True, blank=True, related_name='client_quote_lines')
    display_name = models.CharField(max_length=255)
    display_description = models.TextField(blank=True)
    category_name = models.CharField(max_length=100, blank=True)
    room_name = models.CharField(max_length=200, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    unit_type = models.CharField(max_length=30, default='units')
    currency = models.CharField(max_length=3, default='CAD')
    client_unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    client_total_price = models.DecimalField(max_digits=12, decimal_places=2)
    supplier_unit_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    markup_percent = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    is_component = models.BooleanField(default=False)
    order = models.PositiveIntegerField(default=0)

    def __str__(self):
        return f"{self.client_quote.quote_number}: {self.display_name}"

    class Meta:
        db_table = 'client_quote_line_items'
        ordering = ['order', 'id']


class ClientPayment(models.Model):
    METHOD_CHOICES = [
        ('CREDIT_CARD', 'Credit Card'),
        ('E_TRANSFER', 'E-Transfer'),
        ('WIRE', 'Wire Transfer'),
        ('CHECK', 'Cheque'),
        ('CASH', 'Cash'),
        ('OTHER', 'Other'),
    ]
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('PAID', 'Paid'),
        ('PARTIAL', 'Partial'),
        ('FAILED', 'Failed'),
        ('REFUNDED', 'Refunded'),
    ]
    COUNTED_STATUSES = ('PAID', 'PARTIAL')

    client_quote = models.ForeignKey(ClientQuote, on_delete=models.CASCADE, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES, default='E_TRANSFER')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='PAID')
    paid_at = models.DateTimeField(default=timezone.now)
    reference = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    recorded_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='client_payments')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.client_quote.quote_number}: {self.amount}"

    class Meta:
        db_table = 'client_payments'
        ordering = ['-paid_at', '-id']


class ClientQuoteActivity(models.Model):
    client_quote = models.ForeignKey(ClientQuote, on_delete=models.CASCADE, related_name='activities')
    activity_type = models.CharField(max_length=50)
    description = models.TextField()
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='client_quote_activities')
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.client_quote.quote_number}: {self.activity_type}"

    class Meta:
        db_table = 'client_quote_activities'
        ordering = ['-created_at', '-id']
