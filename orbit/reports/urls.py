from django.urls import path
from . import views

urlpatterns = [
    # Report endpoints
    path('reports/', views.report_list, name='report-list'),
    path('reports/<slug:report_type>/', views.report_generate, name='report-generate'),

    # Dashboard endpoints
    path('dashboard/stats/', views.dashboard_stats, name='dashboard-stats'),
    path('dashboard/activities/', views.dashboard_activities, name='dashboard-activities'),
    path('dashboard/schedules/', views.dashboard_schedules, name='dashboard-schedules'),
    path('dashboard/due-payments/', views.dashboard_due_payments, name='dashboard-due-payments'),

    # Analytics endpoints
    path('analytics/overview/', views.analytics_overview, name='analytics-overview'),
    path('analytics/crm/', views.analytics_crm, name='analytics-crm'),
    path('analytics/hrm/', views.analytics_hrm, name='analytics-hrm'),
]
