from django.urls import path
from .views import (
    category_markup_list_create, category_markup_detail, category_markup_apply,
    pricing_preview,
)

urlpatterns = [
    # CategoryMarkup endpoints
    path('category-markups/', category_markup_list_create, name='category-markup-list-create'),
    path('category-markups/<int:pk>/', category_markup_detail, name='category-markup-detail'),
    path('category-markups/<int:pk>/apply/', category_markup_apply, name='category-markup-apply'),

    # Live totals
    path('pricing/preview/', pricing_preview, name='pricing-preview'),
]
