from django.contrib import admin
from .models import Employee, Attendance, PayrollRecord, Interview


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['employee_id', 'full_name', 'department', 'position', 'status', 'visa_expiry']
    list_filter = ['department', 'status', 'visa_status']
    search_fields = ['employee_id', 'full_name', 'email']
    readonly_fields = ['employee_id', 'created_at', 'updated_at']


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ['employee', 'date', 'check_in', 'check_out', 'status']
    list_filter = ['status', 'date']
    search_fields = ['employee__full_name']


@admin.register(PayrollRecord)
class PayrollRecordAdmin(admin.ModelAdmin):
    list_display = ['employee', 'month', 'base_salary', 'allowances', 'deductions', 'net_salary', 'status']
    list_filter = ['status', 'month']
    search_fields = ['employee__full_name', 'employee__employee_id']
    readonly_fields = ['net_salary', 'created_at', 'updated_at']


@admin.register(Interview)
class InterviewAdmin(admin.ModelAdmin):
    list_display = ['candidate_name', 'position', 'scheduled_at', 'interview_type', 'status', 'decision']
    list_filter = ['status', 'decision', 'interview_type']
    search_fields = ['candidate_name', 'position']
