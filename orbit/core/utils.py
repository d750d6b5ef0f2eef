"""Shared helpers: audit logging, document numbering, date ranges, pagination"""
import logging
from datetime import datetime, timedelta

from django.core.paginator import Paginator, EmptyPage
from django.utils import timezone
from rest_framework.response import Response

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
        action: Action type (create, update, delete, payment, approve, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object (e.g., student name)
        object_reference: Reference identifier (e.g., invoice number)
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
            object_name=(object_name or '')[:255] or None,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def get_max_number_for_prefix(model, field, prefix):
    """Get the highest sequence number already used for codes starting with prefix"""
    existing_codes = model.objects.filter(**{f'{field}__startswith': prefix}).values_list(field, flat=True)

    max_number = 0
    for code in existing_codes:
        try:
            number = int(code[len(prefix):])
        except (ValueError, TypeError):
            continue
        max_number = max(max_number, number)
    return max_number


def generate_document_number(model, field, prefix, year=None, width=3):
    """
    Generate the next document number for a model field.
    Format: PREFIX-YYYY-NNN (e.g., INV-2024-001, STU-2024-012)

    The number continues from the highest existing number for the same
    prefix and year, so deleted rows never cause a number to be reused
    while a higher one exists.
    """
    year = year or timezone.now().year
    base = f"{prefix}-{year}-"
    next_number = get_max_number_for_prefix(model, field, base) + 1
    code = f"{base}{next_number:0{width}d}"

    while model.objects.filter(**{field: code}).exists():
        next_number += 1
        code = f"{base}{next_number:0{width}d}"

    return code


def parse_date(value, param_name='date'):
    """Parse a YYYY-MM-DD query parameter, raising ValueError with a readable message"""
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {param_name}: expected YYYY-MM-DD")


def parse_month(value, param_name='month'):
    """Parse a YYYY-MM parameter into the first day of that month"""
    try:
        return datetime.strptime(value, '%Y-%m').date()
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {param_name}: expected YYYY-MM")


def get_date_range(params, default_days=30):
    """
    Read date_from/date_to from query params.
    Defaults to the last `default_days` days ending today.
    """
    date_from = params.get('date_from', None)
    date_to = params.get('date_to', None)

    if not date_from:
        date_from = (timezone.now() - timedelta(days=default_days)).date()
    else:
        date_from = parse_date(date_from, 'date_from')

    if not date_to:
        date_to = timezone.now().date()
    else:
        date_to = parse_date(date_to, 'date_to')

    if date_from > date_to:
        raise ValueError("date_from must be on or before date_to")

    return date_from, date_to


def add_months(day, months):
    """Shift a first-of-month date by a number of months"""
    month_index = day.year * 12 + (day.month - 1) + months
    return day.replace(year=month_index // 12, month=month_index % 12 + 1, day=1)


def paginated_response(request, queryset, serializer_class, context=None):
    """
    Serialize a queryset, paginating only when the client asks for a page.
    Paginated responses look like {'results', 'count', 'page', 'total_pages'}.
    """
    if 'page' not in request.query_params:
        serializer = serializer_class(queryset, many=True, context=context or {})
        return Response(serializer.data)

    try:
        page_number = int(request.query_params.get('page', 1))
        page_size = min(int(request.query_params.get('page_size', 25)), 200)
    except ValueError:
        return Response({'error': 'page and page_size must be integers'}, status=400)

    paginator = Paginator(queryset, max(page_size, 1))
    try:
        page = paginator.page(page_number)
    except EmptyPage:
        page = paginator.page(paginator.num_pages)

    serializer = serializer_class(page.object_list, many=True, context=context or {})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'page': page.number,
        'total_pages': paginator.num_pages,
    })
