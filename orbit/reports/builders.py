"""
Report builders

Each builder takes the validated parameters and returns a ReportData.
REPORT_TYPES maps the URL slug to the builder and its parameter rules.
"""
from collections import namedtuple
from datetime import timedelta
from decimal import Decimal

from django.db.models import Sum, Count, Avg, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone

from orbit.academics.models import Course, Trainer, Student, Invoice, Assessment, PAYMENT_MODE_CHOICES
from orbit.core.utils import get_date_range
from orbit.crm.models import Lead, Campaign
from orbit.expenses.models import Expense
from orbit.hrm.models import Employee, PayrollRecord
from orbit.hrm.utils import MAX_VISA_WINDOW_DAYS
from .data import ReportData, ReportMetadata
from .formatting import format_currency, format_percent, format_date, format_date_range, percentage

ZERO = Decimal('0.00')

ReportType = namedtuple('ReportType', ['title', 'builder', 'params', 'required', 'admin_only'])


class ReportParameterError(ValueError):
    pass


def _int_param(params, name, required=True):
    value = params.get(name)
    if value in (None, ''):
        if required:
            raise ReportParameterError(f"'{name}' is required")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ReportParameterError(f"'{name}' must be an integer")


def _new_report(title, subtitle, institute, date_from, date_to, prepared_for='', notes=''):
    return ReportData(
        metadata=ReportMetadata(
            title=title,
            subtitle=subtitle,
            prepared_by=institute.name,
            prepared_for=prepared_for,
            date_range=format_date_range(date_from, date_to),
            notes=notes,
        ),
        date_from=date_from,
        date_to=date_to,
    )


def _paid_invoices(date_from, date_to):
    return Invoice.objects.filter(status='paid', payment_date__date__gte=date_from,
                                  payment_date__date__lte=date_to)


def revenue_between(date_from, date_to):
    return _paid_invoices(date_from, date_to).aggregate(total=Sum('amount'))['total'] or ZERO


def expenses_between(date_from, date_to):
    """Approved expenses plus paid payroll in the period"""
    approved = Expense.objects.filter(
        approval_status='approved', date__gte=date_from, date__lte=date_to,
    ).aggregate(total=Sum('amount'))['total'] or ZERO
    payroll = PayrollRecord.objects.filter(
        status='paid', payment_date__gte=date_from, payment_date__lte=date_to,
    ).aggregate(total=Sum('net_salary'))['total'] or ZERO
    return approved + payroll


# Academic reports
def student_performance(params, institute, date_from, date_to):
    student = get_object_or_404(Student, pk=_int_param(params, 'student'))
    currency = institute.currency
    report = _new_report('Student Performance Report', f"Performance analysis for {student.full_name}",
                         institute, date_from, date_to, prepared_for=student.full_name)

    assessments = student.assessments.select_related('course').filter(date__gte=date_from, date__lte=date_to)
    attendance = student.attendance.select_related('schedule').filter(date__gte=date_from, date__lte=date_to)
    payments = student.invoices.filter(created_at__date__gte=date_from, created_at__date__lte=date_to)

    attended = attendance.filter(status__in=['present', 'late']).count()
    total_sessions = attendance.count()
    average_score = assessments.aggregate(avg=Avg('score'))['avg']

    report.summary_stats = {
        'Student ID': student.student_id,
        'Attendance Rate': format_percent(percentage(attended, total_sessions)),
        'Average Score': format_percent(average_score or 0),
        'Courses': student.registration_courses.count(),
        'Certificates': student.certificates.count(),
        'Balance Due': format_currency(student.balance_due, currency),
    }
    report.add_table('Assessments', ['Assessment', 'Course', 'Date', 'Score', 'Grade'], [
        [a.title, a.course.name, format_date(a.date), format_percent(a.score), a.grade]
        for a in assessments
    ])
    report.add_table('Attendance', ['Date', 'Session', 'Status', 'Hours'], [
        [format_date(r.date), r.schedule.title if r.schedule else '-', r.get_status_display(), r.duration_hours]
        for r in attendance
    ])
    report.add_table('Payments', ['Date', 'Invoice #', 'Amount', 'Mode', 'Status'], [
        [format_date(i.payment_date or i.created_at), i.invoice_number, format_currency(i.amount, currency),
         i.get_payment_mode_display(), i.get_status_display()]
        for i in payments
    ])
    return report


def trainer_performance(params, institute, date_from, date_to):
    trainer = get_object_or_404(Trainer, pk=_int_param(params, 'trainer'))
    currency = institute.currency
    report = _new_report('Trainer Performance Report', f"Performance analysis for {trainer.full_name}",
                         institute, date_from, date_to, prepared_for=trainer.full_name)

    sessions = trainer.schedules.select_related('course').exclude(status='cancelled').filter(
        start_time__date__gte=date_from, start_time__date__lte=date_to,
    ).annotate(student_count=Count('students', distinct=True))
    feedback = trainer.feedback.select_related('course').filter(date__gte=date_from, date__lte=date_to)

    hours = sum((s.duration_hours for s in sessions), Decimal('0.00'))
    session_ids = [s.id for s in sessions]
    student_ids = set(Student.objects.filter(schedules__id__in=session_ids).values_list('id', flat=True))
    revenue = _paid_invoices(date_from, date_to).filter(student_id__in=student_ids).aggregate(
        total=Sum('amount'))['total'] or ZERO
    average_rating = feedback.aggregate(avg=Avg('rating'))['avg']

    report.summary_stats = {
        'Specialization': trainer.specialization or '-',
        'Total Sessions': len(sessions),
        'Total Hours': hours,
        'Total Students': len(student_ids),
        'Average Rating': f"{Decimal(average_rating or 0).quantize(Decimal('0.1'))}/5",
        'Revenue': format_currency(revenue, currency),
    }
    report.add_table('Sessions', ['Date', 'Course', 'Title', 'Duration', 'Students'], [
        [format_date(s.start_time), s.course.name, s.title, f"{s.duration_hours} hours", s.student_count]
        for s in sessions
    ])
    report.add_table('Feedback', ['Date', 'Course', 'Rating', 'Comment'], [
        [format_date(f.date), f.course.name, f"{f.rating}/5", f.comment]
        for f in feedback
    ])
    return report


def course_performance(params, institute, date_from, date_to):
    course = get_object_or_404(Course, pk=_int_param(params, 'course'))
    currency = institute.currency
    report = _new_report('Course Performance Report', f"Performance analysis for {course.name}",
                         institute, date_from, date_to)

    enrollments = course.registration_courses.select_related('student').filter(
        student__registration_date__gte=date_from, student__registration_date__lte=date_to,
    )
    certificates = course.certificates.select_related('student').filter(
        issue_date__gte=date_from, issue_date__lte=date_to,
    )
    enrolled_ids = [line.student_id for line in enrollments]
    revenue = _paid_invoices(date_from, date_to).filter(student__course=course).aggregate(
        total=Sum('amount'))['total'] or ZERO
    average_score = Assessment.objects.filter(
        course=course, date__gte=date_from, date__lte=date_to,
    ).aggregate(avg=Avg('score'))['avg']
    enrollment_count = len(enrolled_ids)
    completions = certificates.count()

    report.summary_stats = {
        'Duration': course.duration or '-',
        'New Enrollments': enrollment_count,
        'Completions': completions,
        'Completion Rate': format_percent(percentage(completions, enrollment_count)),
        'Revenue': format_currency(revenue, currency),
        'Average Score': format_percent(average_score or 0),
    }
    report.add_table('Enrollments', ['Date', 'Student ID', 'Student Name', 'Batch', 'Fee'], [
        [format_date(line.student.registration_date), line.student.student_id, line.student.full_name,
         line.student.get_batch_display() or '-', format_currency(line.final_price, currency)]
        for line in enrollments
    ])
    report.add_table('Certificates', ['Date', 'Student ID', 'Student Name', 'Certificate'], [
        [format_date(c.issue_date), c.student.student_id, c.student.full_name, c.certificate_number]
        for c in certificates
    ])
    return report


# Financial reports
def financial_summary(params, institute, date_from, date_to):
    currency = institute.currency
    report = _new_report('Financial Summary Report', 'Financial performance analysis', institute,
                         date_from, date_to)

    revenue = revenue_between(date_from, date_to)
    expenses = expenses_between(date_from, date_to)
    net_profit = revenue - expenses
    period = (date_to - date_from).days + 1
    if date_from.toordinal() > period:
        previous_to = date_from - timedelta(days=1)
        previous_revenue = revenue_between(previous_to - timedelta(days=period - 1), previous_to)
    else:
        previous_revenue = ZERO
    growth = percentage(revenue - previous_revenue, previous_revenue)
    pending = Student.objects.filter(balance_due__gt=0).aggregate(total=Sum('balance_due'))['total'] or ZERO

    report.summary_stats = {
        'Total Revenue': format_currency(revenue, currency),
        'Total Expenses': format_currency(expenses, currency),
        'Net Profit': format_currency(net_profit, currency),
        'Profit Margin': format_percent(percentage(net_profit, revenue)),
        'Pending Payments': format_currency(pending, currency),
        'Revenue Growth': format_percent(growth),
    }

    invoices = _paid_invoices(date_from, date_to)
    by_course = invoices.values('student__course__name').annotate(
        students=Count('student', distinct=True), total=Sum('amount'),
    ).order_by('-total')
    report.add_table('Revenue by Course', ['Course', 'Students', 'Revenue', '% of Total'], [
        [row['student__course__name'] or 'Unassigned', row['students'], format_currency(row['total'], currency),
         format_percent(percentage(row['total'], revenue))]
        for row in by_course
    ])

    mode_labels = dict(PAYMENT_MODE_CHOICES)
    by_mode = invoices.values('payment_mode').annotate(count=Count('id'), total=Sum('amount')).order_by('-total')
    report.add_table('Revenue by Payment Mode', ['Payment Mode', 'Transactions', 'Amount', '% of Total'], [
        [mode_labels.get(row['payment_mode'], row['payment_mode']), row['count'],
         format_currency(row['total'], currency), format_percent(percentage(row['total'], revenue))]
        for row in by_mode
    ])

    by_category = Expense.objects.filter(
        approval_status='approved', date__gte=date_from, date__lte=date_to,
    ).values('category__name').annotate(count=Count('id'), total=Sum('amount')).order_by('-total')
    report.add_table('Expenses by Category', ['Category', 'Count', 'Amount', '% of Total'], [
        [row['category__name'], row['count'], format_currency(row['total'], currency),
         format_percent(percentage(row['total'], expenses))]
        for row in by_category
    ])

    recent = Invoice.objects.select_related('student').filter(
        created_at__date__gte=date_from, created_at__date__lte=date_to,
    ).order_by('-created_at')[:20]
    report.add_table('Recent Transactions', ['Date', 'Invoice #', 'Student', 'Amount', 'Status'], [
        [format_date(i.payment_date or i.created_at), i.invoice_number, i.student.full_name,
         format_currency(i.amount, currency), i.get_status_display()]
        for i in recent
    ])
    return report


# CRM reports
def lead_conversion(params, institute, date_from, date_to):
    report = _new_report('Lead Conversion Report', 'Lead generation and conversion analysis', institute,
                         date_from, date_to)
    leads = Lead.objects.filter(created_at__date__gte=date_from, created_at__date__lte=date_to)
    total = leads.count()
    converted = leads.filter(status='converted').count()

    stats = {
        'Total Leads': total,
        'Converted Leads': converted,
        'Conversion Rate': format_percent(percentage(converted, total)),
    }
    status_counts = dict(leads.order_by().values_list('status').annotate(count=Count('id')))
    for value, label in Lead.STATUS_CHOICES:
        stats[f"{label} Leads"] = status_counts.get(value, 0)
    report.summary_stats = stats

    source_labels = dict(Lead.SOURCE_CHOICES)
    by_source = leads.values('source').annotate(
        count=Count('id'), conversions=Count('id', filter=Q(status='converted')),
    ).order_by('-count')
    report.add_table('Leads by Source', ['Source', 'Leads', 'Conversions', 'Conversion Rate'], [
        [source_labels.get(row['source'], row['source']), row['count'], row['conversions'],
         format_percent(percentage(row['conversions'], row['count']))]
        for row in by_source
    ])
    report.add_table('Leads by Status', ['Status', 'Leads', '% of Total'], [
        [label, status_counts.get(value, 0), format_percent(percentage(status_counts.get(value, 0), total))]
        for value, label in Lead.STATUS_CHOICES
    ])
    by_campaign = leads.exclude(campaign=None).values('campaign__name').annotate(
        count=Count('id'), conversions=Count('id', filter=Q(status='converted')),
    ).order_by('-count')
    report.add_table('Campaign Leads', ['Campaign', 'Leads', 'Conversions', 'Conversion Rate'], [
        [row['campaign__name'], row['count'], row['conversions'],
         format_percent(percentage(row['conversions'], row['count']))]
        for row in by_campaign
    ])
    return report


def campaign_performance(params, institute, date_from, date_to):
    currency = institute.currency
    campaign_id = _int_param(params, 'campaign', required=False)
    campaigns = Campaign.objects.all()
    subtitle = 'Marketing campaign analysis'
    if campaign_id is not None:
        campaign = get_object_or_404(Campaign, pk=campaign_id)
        campaigns = campaigns.filter(pk=campaign.pk)
        subtitle = f"Campaign analysis for {campaign.name}"
    else:
        campaigns = campaigns.filter(
            Q(start_date__isnull=True) | Q(start_date__lte=date_to),
            Q(end_date__isnull=True) | Q(end_date__gte=date_from),
        )
    report = _new_report('Campaign Performance Report', subtitle, institute, date_from, date_to)

    campaigns = list(campaigns)
    impressions = sum(c.impressions for c in campaigns)
    clicks = sum(c.clicks for c in campaigns)
    spent = sum((c.spent for c in campaigns), ZERO)
    leads = Lead.objects.select_related('campaign').filter(campaign__in=campaigns)
    lead_count = leads.count()
    conversions = leads.filter(status='converted').count()

    report.summary_stats = {
        'Impressions': impressions,
        'Clicks': clicks,
        'CTR': format_percent(percentage(clicks, impressions)),
        'Conversion Rate': format_percent(percentage(conversions, lead_count)),
        'Cost per Click': format_currency(spent / clicks if clicks else 0, currency),
        'Cost per Lead': format_currency(spent / lead_count if lead_count else 0, currency),
        'Total Cost': format_currency(spent, currency),
    }

    rows = []
    for c in campaigns:
        stats = c.stats()
        rows.append([c.name, c.get_platform_display(), c.get_status_display(), c.impressions, c.clicks,
                     format_percent(stats['ctr']), stats['leads'], stats['conversions'],
                     format_currency(c.spent, currency)])
    report.add_table('Campaigns', ['Campaign', 'Platform', 'Status', 'Impressions', 'Clicks', 'CTR', 'Leads',
                                   'Conversions', 'Spent'], rows)
    report.add_table('Leads', ['Date', 'Name', 'Campaign', 'Status'], [
        [format_date(lead.created_at), lead.full_name, lead.campaign.name, lead.get_status_display()]
        for lead in leads.filter(created_at__date__gte=date_from, created_at__date__lte=date_to)
    ])
    return report


# HR and expense reports
def payroll_report(params, institute, date_from, date_to):
    currency = institute.currency
    report = _new_report('Payroll Summary Report', 'Salary disbursement analysis', institute, date_from, date_to)
    records = PayrollRecord.objects.select_related('employee').filter(
        month__gte=date_from.replace(day=1), month__lte=date_to,
    )
    totals = records.aggregate(
        paid=Sum('net_salary', filter=Q(status='paid')),
        pending=Sum('net_salary', filter=Q(status__in=['pending', 'processing'])),
        employees=Count('employee', distinct=True),
        average=Avg('net_salary'),
    )
    report.summary_stats = {
        'Total Paid': format_currency(totals['paid'], currency),
        'Pending': format_currency(totals['pending'], currency),
        'Employees': totals['employees'],
        'Average Salary': format_currency(totals['average'], currency),
    }
    by_department = records.values('employee__department').annotate(
        count=Count('employee', distinct=True), total=Sum('net_salary'),
    ).order_by('employee__department')
    report.add_table('By Department', ['Department', 'Employees', 'Total'], [
        [row['employee__department'], row['count'], format_currency(row['total'], currency)]
        for row in by_department
    ])
    report.add_table('Records', ['Month', 'Employee', 'Department', 'Base', 'Allowances', 'Deductions', 'Net',
                                 'Status'], [
        [f"{r.month:%b %Y}", r.employee.full_name, r.employee.department,
         format_currency(r.base_salary, currency), format_currency(r.allowances, currency),
         format_currency(r.deductions, currency), format_currency(r.net_salary, currency),
         r.get_status_display()]
        for r in records
    ])
    return report


def expense_report(params, institute, date_from, date_to):
    currency = institute.currency
    report = _new_report('Expense Summary Report', 'Operating expense analysis', institute, date_from, date_to)
    expenses = Expense.objects.select_related('category').filter(date__gte=date_from, date__lte=date_to)

    def total(**filters):
        return expenses.filter(**filters).aggregate(total=Sum('amount'))['total'] or ZERO

    grand_total = total()
    report.summary_stats = {
        'Total': format_currency(grand_total, currency),
        'Approved': format_currency(total(approval_status='approved'), currency),
        'Pending': format_currency(total(approval_status='pending'), currency),
        'Rejected': format_currency(total(approval_status='rejected'), currency),
    }
    by_category = expenses.values('category__name', 'category__monthly_budget').annotate(
        count=Count('id'), total=Sum('amount'),
    ).order_by('-total')
    report.add_table('By Category', ['Category', 'Count', 'Amount', 'Monthly Budget', '% of Total'], [
        [row['category__name'], row['count'], format_currency(row['total'], currency),
         format_currency(row['category__monthly_budget'], currency),
         format_percent(percentage(row['total'], grand_total))]
        for row in by_category
    ])
    report.add_table('Expenses', ['Date', 'Reference', 'Category', 'Vendor', 'Amount', 'Status'], [
        [format_date(e.date), e.reference, e.category.name, e.vendor or '-', format_currency(e.amount, currency),
         e.get_approval_status_display()]
        for e in expenses
    ])
    return report


def visa_expiry(params, institute, date_from, date_to):
    days = _int_param(params, 'days', required=False)
    days = 30 if days is None else days
    if not 0 <= days <= MAX_VISA_WINDOW_DAYS:
        raise ReportParameterError(f"'days' must be between 0 and {MAX_VISA_WINDOW_DAYS}")
    today = timezone.localdate()
    report = _new_report('Visa Expiry Report', f"Employee visas expiring within {days} days", institute,
                         today, today + timedelta(days=days))
    employees = Employee.objects.exclude(status='terminated').filter(
        visa_expiry__isnull=False, visa_expiry__lte=today + timedelta(days=days),
    ).order_by('visa_expiry')
    expired = [e for e in employees if e.visa_expiry < today]
    report.summary_stats = {
        'Expiring': len(employees) - len(expired),
        'Expired': len(expired),
    }
    report.add_table('Employees', ['Employee ID', 'Name', 'Department', 'Visa Status', 'Expiry', 'Days Left'], [
        [e.employee_id, e.full_name, e.department, e.get_visa_status_display() or '-', format_date(e.visa_expiry),
         e.visa_days_remaining]
        for e in employees
    ])
    return report


REPORT_TYPES = {
    'student-performance': ReportType('Student Performance', student_performance, ['student'], ['student'], False),
    'trainer-performance': ReportType('Trainer Performance', trainer_performance, ['trainer'], ['trainer'], False),
    'course-performance': ReportType('Course Performance', course_performance, ['course'], ['course'], False),
    'financial-summary': ReportType('Financial Summary', financial_summary, [], [], True),
    'lead-conversion': ReportType('Lead Conversion', lead_conversion, [], [], False),
    'campaign-performance': ReportType('Campaign Performance', campaign_performance, ['campaign'], [], False),
    'payroll-summary': ReportType('Payroll Summary', payroll_report, [], [], True),
    'expense-summary': ReportType('Expense Summary', expense_report, [], [], True),
    'visa-expiry': ReportType('Visa Expiry', visa_expiry, ['days'], [], True),
}


def build_report(report_type, params, institute):
    """Validate the shared date range and run the builder for report_type"""
    definition = REPORT_TYPES[report_type]
    for name in definition.required:
        if not params.get(name):
            raise ReportParameterError(f"'{name}' is required for the {definition.title} report")
    try:
        date_from, date_to = get_date_range(params)
    except ValueError as e:
        raise ReportParameterError(str(e))
    return definition.builder(params, institute, date_from, date_to)
