"""
Analytics aggregates for the overview, CRM and HR dashboards
"""
from decimal import Decimal

from django.conf import settings
from django.db.models import Sum, Count, Q

from orbit.academics.models import Course, Trainer, Student, Invoice, Certificate
from orbit.core.cache_utils import cached_query, ANALYTICS_CACHE_PREFIX
from orbit.core.utils import add_months
from orbit.crm.models import Lead, Campaign, FollowUp
from orbit.hrm.models import Employee, PayrollRecord

ZERO = Decimal('0.00')


@cached_query(cache_ttl=settings.DASHBOARD_CACHE_TTL, key_prefix=ANALYTICS_CACHE_PREFIX)
def get_overview(today, months=6):
    current = today.replace(day=1)
    monthly = []
    for offset in range(months - 1, -1, -1):
        start = add_months(current, -offset)
        end = add_months(start, 1)
        revenue = Invoice.objects.filter(
            status='paid', payment_date__date__gte=start, payment_date__date__lt=end,
        ).aggregate(total=Sum('amount'))['total'] or ZERO
        monthly.append({
            'month': start.strftime('%Y-%m'),
            'registrations': Student.objects.filter(registration_date__gte=start, registration_date__lt=end).count(),
            'revenue': str(revenue),
        })

    payment_status = {value: 0 for value, _ in Student.PAYMENT_STATUS_CHOICES}
    for row in Student.objects.order_by().values('payment_status').annotate(count=Count('id')):
        payment_status[row['payment_status']] = row['count']

    top_courses = Course.objects.annotate(
        enrollments=Count('registration_courses', distinct=True),
    ).order_by('-enrollments', 'name')[:5]

    return {
        'counts': {
            'students': Student.objects.count(),
            'courses': Course.objects.filter(active=True).count(),
            'trainers': Trainer.objects.filter(active=True).count(),
            'certificates': Certificate.objects.count(),
        },
        'monthly': monthly,
        'paymentStatus': payment_status,
        'topCourses': [{'id': c.id, 'name': c.name, 'enrollments': c.enrollments} for c in top_courses],
    }


@cached_query(cache_ttl=settings.DASHBOARD_CACHE_TTL, key_prefix=ANALYTICS_CACHE_PREFIX)
def get_crm_analytics(today):
    leads = Lead.objects.order_by()
    total = leads.count()
    by_status = {value: 0 for value, _ in Lead.STATUS_CHOICES}
    for row in leads.values('status').annotate(count=Count('id')):
        by_status[row['status']] = row['count']

    # Funnel stages are cumulative: a converted lead was also contacted and qualified
    funnel = [
        {'stage': 'new', 'count': total - by_status['lost']},
        {'stage': 'contacted', 'count': by_status['contacted'] + by_status['qualified'] + by_status['converted']},
        {'stage': 'qualified', 'count': by_status['qualified'] + by_status['converted']},
        {'stage': 'converted', 'count': by_status['converted']},
    ]

    sources = [
        {
            'source': row['source'],
            'count': row['count'],
            'converted': row['converted'],
            'conversionRate': round(row['converted'] / row['count'] * 100, 1) if row['count'] else 0,
        }
        for row in leads.values('source').annotate(
            count=Count('id'), converted=Count('id', filter=Q(status='converted')),
        ).order_by('-count')
    ]

    campaigns = []
    for campaign in Campaign.objects.exclude(status='draft'):
        stats = campaign.stats()
        campaigns.append({
            'id': campaign.id,
            'name': campaign.name,
            'platform': campaign.platform,
            'status': campaign.status,
            'spent': str(campaign.spent),
            'leads': stats['leads'],
            'conversions': stats['conversions'],
            'ctr': stats['ctr'],
            'conversionRate': stats['conversion_rate'],
            'costPerLead': str(stats['cost_per_lead']),
        })

    return {
        'totalLeads': total,
        'byStatus': by_status,
        'funnel': funnel,
        'sources': sources,
        'campaigns': campaigns,
        'pendingFollowUps': FollowUp.objects.filter(status='pending').count(),
        'overdueFollowUps': FollowUp.objects.filter(status='pending', due_date__date__lt=today).count(),
    }


@cached_query(cache_ttl=settings.DASHBOARD_CACHE_TTL, key_prefix=ANALYTICS_CACHE_PREFIX)
def get_hrm_analytics(today, months=6):
    employees = Employee.objects.order_by()
    by_department = [
        {'department': row['department'], 'count': row['count']}
        for row in employees.exclude(status='terminated').values('department').annotate(
            count=Count('id'),
        ).order_by('department')
    ]
    by_status = {value: 0 for value, _ in Employee.STATUS_CHOICES}
    for row in employees.values('status').annotate(count=Count('id')):
        by_status[row['status']] = row['count']

    current = today.replace(day=1)
    payroll_trend = []
    for offset in range(months - 1, -1, -1):
        month = add_months(current, -offset)
        totals = PayrollRecord.objects.filter(month=month).aggregate(
            paid=Sum('net_salary', filter=Q(status='paid')),
            total=Sum('net_salary'),
        )
        payroll_trend.append({
            'month': month.strftime('%Y-%m'),
            'paid': str(totals['paid'] or ZERO),
            'total': str(totals['total'] or ZERO),
        })

    return {
        'headcount': employees.exclude(status='terminated').count(),
        'byDepartment': by_department,
        'byStatus': by_status,
        'payrollTrend': payroll_trend,
    }
