from django.db import models
from decimal import Decimal
from renovo.core.models import User


class CategoryMarkup(models.Model):
    """Default markup applied to trade prices for a spec section / category"""
    category_name = models.CharField(max_length=100, unique=True)
    markup_percent = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='category_markups')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.category_name} (+{self.markup_percent}%)"

    class Meta:
        db_table = 'category_markups'
        ordering = ['category_name']
