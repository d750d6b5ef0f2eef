from django.contrib import admin
from .models import Campaign, Lead, FollowUp, Post, CorporateLead, Meeting, EmailTemplate, EmailLog


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display = ['name', 'platform', 'status', 'budget', 'spent', 'start_date', 'end_date']
    list_filter = ['platform', 'status']
    search_fields = ['name']


class FollowUpInline(admin.TabularInline):
    model = FollowUp
    extra = 0
    fields = ['due_date', 'type', 'status', 'notes']


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'phone', 'source', 'status', 'priority', 'assigned_to', 'created_at']
    list_filter = ['status', 'source', 'priority', 'created_at']
    search_fields = ['full_name', 'email', 'phone']
    readonly_fields = ['converted_at', 'converted_student', 'created_at', 'updated_at']
    inlines = [FollowUpInline]


@admin.register(FollowUp)
class FollowUpAdmin(admin.ModelAdmin):
    list_display = ['lead', 'due_date', 'type', 'status']
    list_filter = ['status', 'type', 'due_date']


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ['title', 'category', 'status', 'share_count', 'download_count', 'created_by', 'created_at']
    list_filter = ['status', 'category']
    search_fields = ['title', 'description']


@admin.register(CorporateLead)
class CorporateLeadAdmin(admin.ModelAdmin):
    list_display = ['company_name', 'contact_person', 'phone', 'status', 'priority', 'consultant', 'created_at']
    list_filter = ['status', 'priority', 'industry']
    search_fields = ['company_name', 'contact_person', 'email', 'phone']


@admin.register(Meeting)
class MeetingAdmin(admin.ModelAdmin):
    list_display = ['title', 'meeting_date', 'status', 'lead', 'corporate_lead', 'assigned_to']
    list_filter = ['status', 'meeting_date']
    search_fields = ['title', 'location']


@admin.register(EmailTemplate)
class EmailTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'subject', 'active']
    list_filter = ['category', 'active']


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ['subject', 'recipient', 'status', 'sent_by', 'sent_at']
    list_filter = ['status', 'sent_at']
    search_fields = ['subject', 'recipient']
    readonly_fields = ['sent_at']
