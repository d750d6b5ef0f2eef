import django_filters
from django.db.models import Q

from .models import Expense


class ExpenseFilter(django_filters.FilterSet):
    category = django_filters.NumberFilter(field_name='category_id')
    approval_status = django_filters.ChoiceFilter(choices=Expense.APPROVAL_STATUS_CHOICES)
    payment_method = django_filters.ChoiceFilter(choices=Expense.PAYMENT_METHOD_CHOICES)
    date_from = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')

    class Meta:
        model = Expense
        fields = ['category', 'approval_status', 'payment_method', 'date_from', 'date_to', 'search']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(reference__icontains=value) |
            Q(description__icontains=value) |
            Q(vendor__icontains=value)
        )
