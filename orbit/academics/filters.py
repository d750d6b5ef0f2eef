import django_filters
from django.db.models import Q

from .models import Student, Invoice, Schedule, CLASS_TYPE_CHOICES


class StudentFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    course = django_filters.NumberFilter(method='filter_course')
    payment_status = django_filters.ChoiceFilter(choices=Student.PAYMENT_STATUS_CHOICES)
    batch = django_filters.ChoiceFilter(choices=Student.BATCH_CHOICES)
    class_type = django_filters.ChoiceFilter(choices=CLASS_TYPE_CHOICES)
    date_from = django_filters.DateFilter(field_name='registration_date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='registration_date', lookup_expr='lte')
    has_balance = django_filters.BooleanFilter(method='filter_has_balance')

    class Meta:
        model = Student
        fields = ['search', 'course', 'payment_status', 'batch', 'class_type', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(full_name__icontains=value) |
            Q(student_id__icontains=value) |
            Q(registration_number__icontains=value) |
            Q(email__icontains=value) |
            Q(phone__icontains=value) |
            Q(emirates_id_no__icontains=value) |
            Q(passport_no__icontains=value)
        )

    def filter_course(self, queryset, name, value):
        # Primary course or any course taken through registration
        return queryset.filter(
            Q(course_id=value) | Q(registration_courses__course_id=value)
        ).distinct()

    def filter_has_balance(self, queryset, name, value):
        if value:
            return queryset.filter(balance_due__gt=0)
        return queryset.filter(balance_due=0)


class InvoiceFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Invoice.STATUS_CHOICES)
    student = django_filters.NumberFilter(field_name='student_id')
    payment_mode = django_filters.CharFilter(field_name='payment_mode')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Invoice
        fields = ['status', 'student', 'payment_mode', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(invoice_number__icontains=value) |
            Q(transaction_id__icontains=value) |
            Q(student__full_name__icontains=value)
        )


class ScheduleFilter(django_filters.FilterSet):
    trainer = django_filters.NumberFilter(field_name='trainer_id')
    course = django_filters.NumberFilter(field_name='course_id')
    student = django_filters.NumberFilter(field_name='students')
    status = django_filters.ChoiceFilter(choices=Schedule.STATUS_CHOICES)
    date_from = django_filters.DateFilter(field_name='start_time', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='start_time', lookup_expr='date__lte')

    class Meta:
        model = Schedule
        fields = ['trainer', 'course', 'student', 'status', 'date_from', 'date_to']
