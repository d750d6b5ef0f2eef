import logging

from django.http import Http404, HttpResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from orbit.core.models import Institute
from orbit.core.permissions import is_admin_user
from orbit.core.utils import create_audit_log
from .analytics import get_overview, get_crm_analytics, get_hrm_analytics
from .builders import REPORT_TYPES, ReportParameterError, build_report
from .dashboard import get_dashboard_stats, get_recent_activities, get_upcoming_schedules, get_due_payments
from .exports import export_csv, export_xlsx
from .pdf import render_report_pdf

logger = logging.getLogger(__name__)

REPORT_FORMATS = ('pdf', 'csv', 'xlsx', 'json')


def _admin_required():
    return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)


def _months_param(request, default=6):
    try:
        months = int(request.query_params.get('months', default))
    except (TypeError, ValueError):
        raise ValueError("months must be an integer")
    if not 1 <= months <= 24:
        raise ValueError("months must be between 1 and 24")
    return months


# Report endpoints
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def report_list(request):
    """Available report types and the parameters each accepts"""
    admin = is_admin_user(request.user)
    return Response([
        {
            'type': slug,
            'title': definition.title,
            'params': definition.params + ['date_from', 'date_to'],
            'required': definition.required,
            'admin_only': definition.admin_only,
            'formats': list(REPORT_FORMATS),
        }
        for slug, definition in REPORT_TYPES.items()
        if admin or not definition.admin_only
    ])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def report_generate(request, report_type):
    """
    Build a report and render it as ?format=pdf|csv|xlsx|json (default pdf)
    """
    definition = REPORT_TYPES.get(report_type)
    if definition is None:
        raise Http404(f"Unknown report type '{report_type}'")
    if definition.admin_only and not is_admin_user(request.user):
        return _admin_required()

    export_format = request.query_params.get('format', 'pdf').lower()
    if export_format not in REPORT_FORMATS:
        return Response({'error': f"format must be one of: {', '.join(REPORT_FORMATS)}"},
                        status=status.HTTP_400_BAD_REQUEST)

    try:
        report = build_report(report_type, request.query_params, Institute.load())
    except ReportParameterError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='export', model_name='Report', object_id=report_type,
                     object_name=definition.title, object_reference=report.filename(export_format),
                     changes={'format': export_format, 'period': report.metadata.date_range})
    logger.info(f"{definition.title} report exported as {export_format} by {request.user.username}")

    if export_format == 'json':
        return Response(report.to_dict())
    if export_format == 'csv':
        return export_csv(report)
    if export_format == 'xlsx':
        return export_xlsx(report)

    response = HttpResponse(render_report_pdf(report), content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{report.filename("pdf")}"'
    return response


# Dashboard endpoints
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_stats(request):
    return Response(get_dashboard_stats(timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_activities(request):
    return Response(get_recent_activities())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_schedules(request):
    return Response(get_upcoming_schedules())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_due_payments(request):
    """Students whose balance is due today or earlier"""
    return Response(get_due_payments(timezone.localdate()))


# Analytics endpoints
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def analytics_overview(request):
    try:
        months = _months_param(request)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(get_overview(timezone.localdate(), months=months))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def analytics_crm(request):
    return Response(get_crm_analytics(timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def analytics_hrm(request):
    if not is_admin_user(request.user):
        return _admin_required()
    try:
        months = _months_param(request)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(get_hrm_analytics(timezone.localdate(), months=months))
