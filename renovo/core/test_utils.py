"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from renovo.parties.models import Client, Supplier
from renovo.projects.models import Project, Room
from renovo.specs.models import SpecItem, SpecComponent
from renovo.invoicing.models import ClientQuote, ClientQuoteLineItem, ClientPayment
from renovo.procurement.models import Order, OrderItem
from renovo.updates.models import Task
from decimal import Decimal
from django.utils import timezone
import random
import string
import uuid

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_client(name=None, email=None):
        """Create a test client"""
        if not name:
            name = f'Client_{TestDataFactory.random_string(6)}'
        if email is None:
            email = f'{name.lower()}@test.com'
        return Client.objects.create(name=name, email=email, phone='5145550100')

    @staticmethod
    def create_supplier(name=None, email=None, category=''):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        if email is None:
            email = f'{name.lower()}@test.com'
        return Supplier.objects.create(name=name, email=email, category=category)

    @staticmethod
    def create_project(user=None, client=None, name=None, status='IN_PROGRESS'):
        """Create a test project"""
        if not name:
            name = f'Project_{TestDataFactory.random_string(6)}'
        if client is None:
            client = TestDataFactory.create_client()
        return Project.objects.create(name=name, client=client, status=status, created_by=user)

    @staticmethod
    def create_room(project, name=None, order=0):
        """Create a test room"""
        return Room.objects.create(project=project, name=name or f'Room_{TestDataFactory.random_string(4)}', order=order)

    @staticmethod
    def create_spec_item(project, name=None, rrp=None, trade_price=None, markup_percent=None, quantity=1,
                         client_approved=False, spec_status='DRAFT', supplier=None, section_name='Lighting',
                         room=None, currency='CAD'):
        """Create a test spec item"""
        if not name:
            name = f'Item_{TestDataFactory.random_string(6)}'
        return SpecItem.objects.create(
            project=project,
            room=room,
            section_name=section_name,
            name=name,
            supplier=supplier,
            supplier_name=supplier.name if supplier else '',
            quantity=quantity,
            rrp=rrp,
            trade_price=trade_price,
            markup_percent=markup_percent,
            currency=currency,
            client_approved=client_approved,
            spec_status=spec_status,
        )

    @staticmethod
    def create_component(item, name=None, price=None, quantity=1):
        """Create a test spec component"""
        return SpecComponent.objects.create(
            item=item,
            name=name or f'Component_{TestDataFactory.random_string(4)}',
            price=price,
            quantity=quantity
        )

    @staticmethod
    def create_client_quote(project, user=None, status='DRAFT', total_amount=Decimal('100.00'), valid_until=None,
                            sent=False, items=None):
        """Create a test client invoice, with one line per spec item given"""
        quote_number = f"INV-{timezone.now().year}-{str(uuid.uuid4().int)[:4]}"
        while ClientQuote.objects.filter(quote_number=quote_number).exists():
            quote_number = f"INV-{timezone.now().year}-{str(uuid.uuid4().int)[:4]}"
        client_quote = ClientQuote.objects.create(
            quote_number=quote_number,
            project=project,
            title=f'Invoice {TestDataFactory.random_string(4)}',
            status=status,
            subtotal=total_amount,
            cad_subtotal=total_amount,
            total_amount=total_amount,
            valid_until=valid_until,
            sent_to_client_at=timezone.now() if sent else None,
            created_by=user,
        )
        for index, item in enumerate(items or []):
            price = item.selling_price or Decimal('0.00')
            ClientQuoteLineItem.objects.create(
                client_quote=client_quote,
                spec_item=item,
                display_name=item.name,
                quantity=item.quantity,
                client_unit_price=price,
                client_total_price=price * item.quantity,
                order=index,
            )
        return client_quote

    @staticmethod
    def create_payment(client_quote, amount, user=None, status='PAID', method='E_TRANSFER'):
        """Create a test client payment"""
        return ClientPayment.objects.create(
            client_quote=client_quote,
            amount=amount,
            method=method,
            status=status,
            recorded_by=user
        )

    @staticmethod
    def create_order(project, supplier=None, user=None, status='PAYMENT_RECEIVED', items=None,
                     total_amount=Decimal('100.00'), expected_delivery=None):
        """Create a test purchase order, with one order item per spec item given"""
        order_number = f"PO-{timezone.now().year}-{str(uuid.uuid4().int)[:4]}"
        while Order.objects.filter(order_number=order_number).exists():
            order_number = f"PO-{timezone.now().year}-{str(uuid.uuid4().int)[:4]}"
        order = Order.objects.create(
            order_number=order_number,
            project=project,
            supplier=supplier,
            status=status,
            subtotal=total_amount,
            total_amount=total_amount,
            expected_delivery=expected_delivery,
            created_by=user,
        )
        for item in items or []:
            unit_price = item.trade_price or Decimal('0.00')
            OrderItem.objects.create(
                order=order,
                spec_item=item,
                name=item.name,
                quantity=item.quantity,
                unit_price=unit_price,
                total_price=unit_price * item.quantity,
            )
        return order

    @staticmethod
    def create_task(project, title=None, status='TODO', position=0, due_date=None, user=None, **extra):
        """Create a test task"""
        return Task.objects.create(
            project=project,
            title=title or f'Task_{TestDataFactory.random_string(6)}',
            status=status,
            position=position,
            due_date=due_date,
            created_by=user,
            **extra
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
