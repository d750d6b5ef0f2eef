from django.urls import path
from .views import (
    lead_list_create, lead_detail, lead_convert,
    campaign_list_create, campaign_detail,
    follow_up_list_create, follow_up_detail, follow_up_complete,
    post_list_create, post_tags, post_detail, post_download, post_share, post_approve,
    corporate_lead_list_create, corporate_lead_detail, meeting_list_create, meeting_detail,
    email_template_list_create, email_template_detail, email_history, email_send,
)

urlpatterns = [
    # Lead endpoints
    path('crm/leads/', lead_list_create, name='lead-list-create'),
    path('crm/leads/<int:pk>/', lead_detail, name='lead-detail'),
    path('crm/leads/<int:pk>/convert/', lead_convert, name='lead-convert'),

    # Campaign endpoints
    path('crm/campaigns/', campaign_list_create, name='campaign-list-create'),
    path('crm/campaigns/<int:pk>/', campaign_detail, name='campaign-detail'),

    # Follow-up endpoints
    path('crm/follow-ups/', follow_up_list_create, name='follow-up-list-create'),
    path('crm/follow-ups/<int:pk>/', follow_up_detail, name='follow-up-detail'),
    path('crm/follow-ups/<int:pk>/complete/', follow_up_complete, name='follow-up-complete'),

    # Post endpoints
    path('crm/posts/', post_list_create, name='post-list-create'),
    path('crm/posts/tags/', post_tags, name='post-tags'),
    path('crm/posts/<int:pk>/', post_detail, name='post-detail'),
    path('crm/posts/<int:pk>/download/', post_download, name='post-download'),
    path('crm/posts/<int:pk>/share/', post_share, name='post-share'),
    path('crm/posts/<int:pk>/approve/', post_approve, name='post-approve'),

    # Corporate lead endpoints
    path('crm/corporate-leads/', corporate_lead_list_create, name='corporate-lead-list-create'),
    path('crm/corporate-leads/<int:pk>/', corporate_lead_detail, name='corporate-lead-detail'),

    # Meeting endpoints
    path('crm/meetings/', meeting_list_create, name='meeting-list-create'),
    path('crm/meetings/<int:pk>/', meeting_detail, name='meeting-detail'),

    # Email endpoints
    path('email/templates/', email_template_list_create, name='email-template-list-create'),
    path('email/templates/<int:pk>/', email_template_detail, name='email-template-detail'),
    path('email/history/', email_history, name='email-history'),
    path('email/send/', email_send, name='email-send'),
]
