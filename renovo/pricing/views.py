import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from .models import CategoryMarkup
from .serializers import CategoryMarkupSerializer, PricingPreviewSerializer
from .calculations import calculate_totals, deposit_amount, selling_price
from .services import get_tax_rates
from renovo.core.utils import create_audit_log

logger = logging.getLogger(__name__)


# CategoryMarkup views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_markup_list_create(request):
    """List all category markups or create a new one"""
    if request.method == 'GET':
        markups = CategoryMarkup.objects.all()
        return Response(CategoryMarkupSerializer(markups, many=True).data)
    else:  # POST
        serializer = CategoryMarkupSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save(updated_by=request.user)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_markup_detail(request, pk):
    """Retrieve, update or delete a category markup"""
    markup = get_object_or_404(CategoryMarkup, pk=pk)

    if request.method == 'GET':
        return Response(CategoryMarkupSerializer(markup).data)
    elif request.method == 'PATCH':
        old_value = markup.markup_percent
        serializer = CategoryMarkupSerializer(markup, data=request.data, partial=True)
        if serializer.is_valid():
            markup = serializer.save(updated_by=request.user)
            if markup.markup_percent != old_value:
                create_audit_log(
                    request=request,
                    action='price_change',
                    model_name='CategoryMarkup',
                    object_id=markup.id,
                    object_name=markup.category_name,
                    changes={'markup_percent': {'old': str(old_value), 'new': str(markup.markup_percent)}}
                )
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        markup.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def category_markup_apply(request, pk):
    """
    Apply a category markup to spec items in that section.

    Items with an explicit markup are left alone unless ``overwrite`` is set;
    ``project`` limits the update to one project.
    """
    from renovo.specs.models import SpecItem

    markup = get_object_or_404(CategoryMarkup, pk=pk)
    items = SpecItem.objects.filter(section_name__iexact=markup.category_name)

    project_id = request.data.get('project')
    if project_id:
        items = items.filter(project_id=project_id)
    if not request.data.get('overwrite'):
        items = items.filter(markup_percent__isnull=True)

    affected = items.update(markup_percent=markup.markup_percent)
    logger.info(f"Applied {markup.markup_percent}% markup to {affected} items in {markup.category_name}")
    create_audit_log(
        request=request,
        action='price_change',
        model_name='CategoryMarkup',
        object_id=markup.id,
        object_name=markup.category_name,
        changes={'applied_to': affected, 'markup_percent': str(markup.markup_percent)}
    )
    return Response({'affected_count': affected, 'markup_percent': str(markup.markup_percent)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pricing_preview(request):
    """Recompute invoice totals for a set of draft line items"""
    serializer = PricingPreviewSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    gst_rate, qst_rate = get_tax_rates()

    priced_items = []
    for item in data['line_items']:
        unit_price = item.get('unit_price')
        if unit_price is None:
            unit_price = selling_price(item.get('rrp'), item.get('cost_price'), item.get('markup_percent'))
        if unit_price is None:
            return Response(
                {'error': f"No price available for {item.get('name') or 'line item'}"},
                status=status.HTTP_400_BAD_REQUEST
            )
        priced_items.append({
            'name': item.get('name', ''),
            'quantity': item['quantity'],
            'unit_price': unit_price,
            'currency': item['currency'],
        })

    totals = calculate_totals(
        priced_items,
        delivery_fee=data['delivery_fee'],
        custom_fees=data.get('custom_fees'),
        gst_rate=data.get('gst_rate', gst_rate),
        qst_rate=data.get('qst_rate', qst_rate),
    )
    result = totals.as_dict()
    result['line_items'] = [
        {**item, 'quantity': str(item['quantity']), 'unit_price': str(item['unit_price']), 'total_price': str(line)}
        for item, line in zip(priced_items, totals.line_totals)
    ]
    if data.get('deposit_percent') is not None:
        result['deposit_amount'] = str(deposit_amount(totals.total, data['deposit_percent']))
    return Response(result)
