"""
Payroll generation and HR summaries
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum, Count, Avg, Q

from orbit.core.utils import generate_document_number, add_months
from .models import Employee, Attendance, PayrollRecord

logger = logging.getLogger(__name__)

# Upper bound for visa expiry look-ahead windows (about ten years)
MAX_VISA_WINDOW_DAYS = 3650


def generate_employee_id():
    return generate_document_number(Employee, 'employee_id', 'EMP')


@transaction.atomic
def generate_monthly_payroll(month, user=None):
    """
    Create pending payroll records for every active employee who has none for the month.
    Returns the list of created records.
    """
    month = month.replace(day=1)
    existing = set(PayrollRecord.objects.filter(month=month).values_list('employee_id', flat=True))
    created = []
    for employee in Employee.objects.filter(status='active').exclude(id__in=existing):
        created.append(PayrollRecord.objects.create(
            employee=employee,
            month=month,
            base_salary=employee.base_salary,
            created_by=user if user and user.is_authenticated else None,
        ))
    logger.info(f"Generated {len(created)} payroll record(s) for {month:%Y-%m}")
    return created


def payroll_summary(month, trend_months=6):
    """Totals for a payroll month plus the paid trend over the preceding months"""
    month = month.replace(day=1)
    records = PayrollRecord.objects.filter(month=month)
    totals = records.aggregate(
        total_paid=Sum('net_salary', filter=Q(status='paid')),
        pending_amount=Sum('net_salary', filter=Q(status__in=['pending', 'processing'])),
        employee_count=Count('employee', distinct=True),
        average_salary=Avg('net_salary'),
    )

    department_distribution = [
        {
            'department': row['employee__department'],
            'count': row['count'],
            'total': str(row['total'] or Decimal('0.00')),
        }
        for row in records.values('employee__department').annotate(
            count=Count('id'), total=Sum('net_salary')
        ).order_by('employee__department')
    ]

    monthly_trend = []
    for offset in range(trend_months - 1, -1, -1):
        trend_month = add_months(month, -offset)
        trend = PayrollRecord.objects.filter(month=trend_month).aggregate(
            paid=Sum('net_salary', filter=Q(status='paid')),
            count=Count('id'),
        )
        monthly_trend.append({
            'month': trend_month.strftime('%Y-%m'),
            'total': str(trend['paid'] or Decimal('0.00')),
            'count': trend['count'],
        })

    average = totals['average_salary']
    return {
        'month': month.strftime('%Y-%m'),
        'totalPaid': str(totals['total_paid'] or Decimal('0.00')),
        'pendingAmount': str(totals['pending_amount'] or Decimal('0.00')),
        'employeeCount': totals['employee_count'],
        'averageSalary': str(Decimal(average).quantize(Decimal('0.01')) if average is not None else Decimal('0.00')),
        'departmentDistribution': department_distribution,
        'monthlyTrend': monthly_trend,
    }


def attendance_summary(day):
    """Attendance counts for a day, including active employees with no record"""
    records = Attendance.objects.filter(date=day)
    counts = {choice: 0 for choice, _ in Attendance.STATUS_CHOICES}
    for row in records.values('status').annotate(count=Count('id')):
        counts[row['status']] = row['count']

    active_employees = Employee.objects.filter(status='active').count()
    recorded = records.values('employee').distinct().count()
    return {
        'date': day.isoformat(),
        'total_employees': active_employees,
        'recorded': recorded,
        'not_recorded': max(active_employees - recorded, 0),
        'by_status': counts,
        'attendance_rate': round((counts['present'] + counts['late'] + counts['half_day']) /
                                 active_employees * 100, 1) if active_employees else 0,
    }
