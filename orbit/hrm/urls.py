from django.urls import path
from .views import (
    employee_list_create, employee_detail, employee_visa_expiring,
    attendance_list_create, attendance_detail, attendance_summary_view,
    payroll_list_create, payroll_detail, payroll_generate, payroll_mark_paid, payroll_summary_view,
    interview_list_create, interview_detail, interview_feedback,
)

urlpatterns = [
    # Employee endpoints
    path('hrm/employees/', employee_list_create, name='employee-list-create'),
    path('hrm/employees/visa-expiring/', employee_visa_expiring, name='employee-visa-expiring'),
    path('hrm/employees/<int:pk>/', employee_detail, name='employee-detail'),

    # Attendance endpoints
    path('hrm/attendance/', attendance_list_create, name='attendance-list-create'),
    path('hrm/attendance/summary/', attendance_summary_view, name='attendance-summary'),
    path('hrm/attendance/<int:pk>/', attendance_detail, name='attendance-detail'),

    # Payroll endpoints
    path('hrm/payroll/', payroll_list_create, name='payroll-list-create'),
    path('hrm/payroll/generate/', payroll_generate, name='payroll-generate'),
    path('hrm/payroll/summary/', payroll_summary_view, name='payroll-summary'),
    path('hrm/payroll/<int:pk>/', payroll_detail, name='payroll-detail'),
    path('hrm/payroll/<int:pk>/mark-paid/', payroll_mark_paid, name='payroll-mark-paid'),

    # Interview endpoints
    path('hrm/interviews/', interview_list_create, name='interview-list-create'),
    path('hrm/interviews/<int:pk>/', interview_detail, name='interview-detail'),
    path('hrm/interviews/<int:pk>/feedback/', interview_feedback, name='interview-feedback'),
]
