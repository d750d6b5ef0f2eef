import django_filters
from django.db.models import Q
from django.utils import timezone

from .models import Lead, FollowUp, CorporateLead, Meeting, EmailLog


class LeadFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=Lead.STATUS_CHOICES)
    source = django_filters.ChoiceFilter(choices=Lead.SOURCE_CHOICES)
    priority = django_filters.ChoiceFilter(choices=Lead.PRIORITY_CHOICES)
    campaign = django_filters.NumberFilter(field_name='campaign_id')
    assigned_to = django_filters.NumberFilter(field_name='assigned_to_id')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = Lead
        fields = ['search', 'status', 'source', 'priority', 'campaign', 'assigned_to', 'date_from', 'date_to']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(full_name__icontains=value) |
            Q(email__icontains=value) |
            Q(phone__icontains=value) |
            Q(notes__icontains=value)
        )


class FollowUpFilter(django_filters.FilterSet):
    DUE_CHOICES = [
        ('today', 'Today'),
        ('overdue', 'Overdue'),
        ('upcoming', 'Upcoming'),
    ]

    lead = django_filters.NumberFilter(field_name='lead_id')
    status = django_filters.ChoiceFilter(choices=FollowUp.STATUS_CHOICES)
    type = django_filters.ChoiceFilter(choices=FollowUp.TYPE_CHOICES)
    due = django_filters.ChoiceFilter(choices=DUE_CHOICES, method='filter_due')

    class Meta:
        model = FollowUp
        fields = ['lead', 'status', 'type', 'due']

    def filter_due(self, queryset, name, value):
        now = timezone.now()
        today = timezone.localdate()
        if value == 'today':
            return queryset.filter(due_date__date=today)
        if value == 'overdue':
            return queryset.filter(due_date__lt=now, status='pending')
        return queryset.filter(due_date__gt=now, status='pending')


class CorporateLeadFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    status = django_filters.ChoiceFilter(choices=CorporateLead.STATUS_CHOICES)
    priority = django_filters.ChoiceFilter(choices=Lead.PRIORITY_CHOICES)
    consultant = django_filters.NumberFilter(field_name='consultant_id')

    class Meta:
        model = CorporateLead
        fields = ['search', 'status', 'priority', 'consultant']

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(company_name__icontains=value) |
            Q(contact_person__icontains=value) |
            Q(email__icontains=value) |
            Q(phone__icontains=value)
        )


class MeetingFilter(django_filters.FilterSet):
    lead = django_filters.NumberFilter(field_name='lead_id')
    corporate_lead = django_filters.NumberFilter(field_name='corporate_lead_id')
    assigned_to = django_filters.NumberFilter(field_name='assigned_to_id')
    status = django_filters.ChoiceFilter(choices=Meeting.STATUS_CHOICES)
    date = django_filters.DateFilter(field_name='meeting_date', lookup_expr='date')
    upcoming = django_filters.BooleanFilter(method='filter_upcoming')

    class Meta:
        model = Meeting
        fields = ['lead', 'corporate_lead', 'assigned_to', 'status', 'date', 'upcoming']

    def filter_upcoming(self, queryset, name, value):
        now = timezone.now()
        if value:
            return queryset.filter(meeting_date__gte=now, status='scheduled')
        return queryset.filter(Q(meeting_date__lt=now) | Q(status='completed'))


class EmailLogFilter(django_filters.FilterSet):
    lead = django_filters.NumberFilter(field_name='lead_id')
    student = django_filters.NumberFilter(field_name='student_id')
    status = django_filters.ChoiceFilter(choices=EmailLog.STATUS_CHOICES)
    date_from = django_filters.DateFilter(field_name='sent_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='sent_at', lookup_expr='date__lte')

    class Meta:
        model = EmailLog
        fields = ['lead', 'student', 'status', 'date_from', 'date_to']
