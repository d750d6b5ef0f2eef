import django_filters
from django.db.models import Q
from django.utils import timezone

from orbit.core.utils import parse_month
from .models import Employee, Attendance, PayrollRecord, Interview


class EmployeeFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    department = django_filters.CharFilter(field_name='department', lookup_expr='iexact')
    status = django_filters.ChoiceFilter(choices=Employee.STATUS_CHOICES)

    class Meta:
        model = Employee
        fields = ['search', 'department', 'status']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(full_name__icontains=value) |
            Q(employee_id__icontains=value) |
            Q(email__icontains=value) |
            Q(position__icontains=value)
        )


class AttendanceFilter(django_filters.FilterSet):
    employee = django_filters.NumberFilter(field_name='employee_id')
    date = django_filters.DateFilter(field_name='date')
    date_from = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='lte')
    status = django_filters.ChoiceFilter(choices=Attendance.STATUS_CHOICES)

    class Meta:
        model = Attendance
        fields = ['employee', 'date', 'date_from', 'date_to', 'status']


class PayrollFilter(django_filters.FilterSet):
    month = django_filters.CharFilter(method='filter_month')
    status = django_filters.ChoiceFilter(choices=PayrollRecord.STATUS_CHOICES)
    department = django_filters.CharFilter(field_name='employee__department', lookup_expr='iexact')
    employee = django_filters.NumberFilter(field_name='employee_id')

    class Meta:
        model = PayrollRecord
        fields = ['month', 'status', 'department', 'employee']

    def filter_month(self, queryset, name, value):
        try:
            return queryset.filter(month=parse_month(value))
        except ValueError:
            return queryset.none()


class InterviewFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Interview.STATUS_CHOICES)
    position = django_filters.CharFilter(field_name='position', lookup_expr='icontains')
    upcoming = django_filters.BooleanFilter(method='filter_upcoming')

    class Meta:
        model = Interview
        fields = ['status', 'position', 'upcoming']

    def filter_upcoming(self, queryset, name, value):
        now = timezone.now()
        if value:
            return queryset.filter(scheduled_at__gte=now, status='scheduled')
        return queryset.filter(scheduled_at__lt=now)
