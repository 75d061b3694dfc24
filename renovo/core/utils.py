"""Utility functions for audit logging and document numbering"""
import logging

from django.utils import timezone

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (create, update, delete, rfq_send, payment_add, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., item name, invoice title)
        object_reference: Reference identifier (e.g., INV-2024-0001, PO-2024-0003)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def next_document_number(model, field, prefix, year=None):
    """
    Next sequential document number for the current year, e.g. INV-2024-0007.

    Looks up the highest existing number carrying the ``{prefix}-{year}-``
    prefix and increments it, zero padded to four digits.
    """
    if year is None:
        year = timezone.now().year
    number_prefix = f"{prefix}-{year}-"

    last_number = (
        model.objects.filter(**{f'{field}__startswith': number_prefix})
        .order_by(f'-{field}')
        .values_list(field, flat=True)
        .first()
    )

    next_seq = 1
    if last_number:
        try:
            next_seq = int(last_number.rsplit('-', 1)[-1]) + 1
        except ValueError:
            logger.warning(f"Unparseable document number {last_number!r}, restarting sequence")

    return f"{number_prefix}{str(next_seq).zfill(4)}"


def parse_bool(value):
    """Interpret query-param style booleans ('true', '1', 'yes')"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def paginate_queryset(request, queryset, serializer_class, default_limit=20, context=None):
    """Page-number pagination in the shape every list endpoint returns"""
    from django.core.paginator import Paginator

    try:
        page = int(request.query_params.get('page', 1))
        limit = int(request.query_params.get('limit', default_limit))
    except (TypeError, ValueError):
        page, limit = 1, default_limit
    limit = max(1, min(limit, 200))

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return {
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    }
