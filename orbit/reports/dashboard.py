"""
Dashboard figures

Stats are cached (Redis when configured) and invalidated by
orbit.core.cache_signals whenever a dashboard-relevant row changes.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db.models import Sum, Q
from django.db.models.functions import Coalesce
from django.utils import timezone

from orbit.academics.models import Course, Student, Invoice, Schedule, Certificate
from orbit.core.cache_utils import cached_query, DASHBOARD_CACHE_PREFIX
from .formatting import format_currency

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def due_students(today):
    """Students with an outstanding balance due today or earlier"""
    return Student.objects.select_related('course').annotate(
        effective_due=Coalesce('due_date', 'registration_date'),
    ).filter(balance_due__gt=0, effective_due__lte=today).order_by('effective_due', 'full_name')


@cached_query(cache_ttl=settings.DASHBOARD_CACHE_TTL, key_prefix=DASHBOARD_CACHE_PREFIX)
def get_dashboard_stats(today):
    paid = Invoice.objects.filter(status='paid')
    month_start = today.replace(day=1)
    scheduled_students = Student.objects.filter(schedules__isnull=False).values('id')

    totals = paid.aggregate(
        revenue=Sum('amount'),
        today=Sum('amount', filter=Q(payment_date__date=today)),
        trainer=Sum('amount', filter=Q(payment_date__date__gte=month_start,
                                       student_id__in=scheduled_students)),
    )
    pending = due_students(today).aggregate(total=Sum('balance_due'))['total']

    logger.info(f"Dashboard stats computed for {today}")
    return {
        'totalStudents': Student.objects.count(),
        'activeCourses': Course.objects.filter(active=True).count(),
        'revenue': float(totals['revenue'] or ZERO),
        'certificates': Certificate.objects.count(),
        'todayCollection': float(totals['today'] or ZERO),
        'pendingFees': float(pending or ZERO),
        'trainerRevenue': float(totals['trainer'] or ZERO),
    }


def get_recent_activities(limit=10):
    """Latest registrations, invoices, schedules and certificates, newest first"""
    activities = []
    for student in Student.objects.select_related('course').order_by('-created_at')[:limit]:
        activities.append({
            'id': f"student-{student.id}",
            'type': 'registration',
            'message': 'New student registered',
            'detail': f"{student.full_name} - {student.course.name if student.course else 'No course'}",
            'timestamp': student.created_at,
        })
    for invoice in Invoice.objects.order_by('-created_at')[:limit]:
        activities.append({
            'id': f"invoice-{invoice.id}",
            'type': 'invoice',
            'message': 'Invoice generated',
            'detail': f"{invoice.invoice_number} - Amount: {format_currency(invoice.amount)}",
            'timestamp': invoice.created_at,
        })
    for schedule in Schedule.objects.order_by('-created_at')[:limit]:
        activities.append({
            'id': f"schedule-{schedule.id}",
            'type': 'schedule',
            'message': 'Schedule updated',
            'detail': schedule.title,
            'timestamp': schedule.created_at,
        })
    for certificate in Certificate.objects.select_related('student').order_by('-created_at')[:limit]:
        activities.append({
            'id': f"certificate-{certificate.id}",
            'type': 'certificate',
            'message': 'Certificate issued',
            'detail': f"{certificate.certificate_number} - {certificate.student.full_name}",
            'timestamp': certificate.created_at,
        })
    activities.sort(key=lambda activity: activity['timestamp'], reverse=True)
    return activities[:limit]


def get_upcoming_schedules(limit=5):
    schedules = Schedule.objects.select_related('course', 'trainer').filter(
        start_time__gt=timezone.now(),
    ).exclude(status='cancelled').order_by('start_time')[:limit]
    return [
        {
            'id': schedule.id,
            'title': schedule.title,
            'courseName': schedule.course.name,
            'trainerName': schedule.trainer.full_name,
            'startTime': schedule.start_time,
            'endTime': schedule.end_time,
            'status': schedule.status,
        }
        for schedule in schedules
    ]


def get_due_payments(today):
    return [
        {
            'id': student.id,
            'studentId': student.student_id,
            'fullName': student.full_name,
            'phone': student.phone,
            'courseName': student.course.name if student.course else None,
            'balanceDue': str(student.balance_due),
            'dueDate': student.effective_due,
        }
        for student in due_students(today)
    ]
