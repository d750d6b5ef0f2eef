from django.contrib import admin
from .models import (
    Course, Trainer, Student, RegistrationCourse, Invoice, Schedule,
    Certificate, Assessment, StudentAttendance, TrainerFeedback,
)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ['name', 'duration', 'fee', 'active', 'created_at']
    list_filter = ['active', 'created_at']
    search_fields = ['name', 'description']
    ordering = ['name']


@admin.register(Trainer)
class TrainerAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'email', 'phone', 'specialization', 'active']
    list_filter = ['active']
    search_fields = ['full_name', 'email', 'specialization']
    filter_horizontal = ['courses']


class RegistrationCourseInline(admin.TabularInline):
    model = RegistrationCourse
    extra = 0


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['student_id', 'full_name', 'phone', 'course', 'total_fee', 'balance_due',
                    'payment_status', 'registration_date']
    list_filter = ['payment_status', 'class_type', 'batch', 'registration_date']
    search_fields = ['student_id', 'registration_number', 'full_name', 'email', 'phone', 'emirates_id_no']
    readonly_fields = ['student_id', 'registration_number', 'total_fee', 'balance_due', 'payment_status',
                       'created_at', 'updated_at']
    inlines = [RegistrationCourseInline]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'student', 'amount', 'payment_mode', 'status', 'payment_date']
    list_filter = ['status', 'payment_mode', 'created_at']
    search_fields = ['invoice_number', 'transaction_id', 'student__full_name']
    readonly_fields = ['invoice_number', 'created_at', 'updated_at']


@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ['title', 'course', 'trainer', 'start_time', 'end_time', 'status']
    list_filter = ['status', 'session_type', 'start_time']
    search_fields = ['title', 'course__name', 'trainer__full_name']
    filter_horizontal = ['students']


@admin.register(Certificate)
class CertificateAdmin(admin.ModelAdmin):
    list_display = ['certificate_number', 'student', 'course', 'issue_date', 'issued_by']
    list_filter = ['issue_date']
    search_fields = ['certificate_number', 'student__full_name']
    readonly_fields = ['certificate_number', 'created_at']


@admin.register(Assessment)
class AssessmentAdmin(admin.ModelAdmin):
    list_display = ['title', 'student', 'course', 'score', 'grade', 'date']
    list_filter = ['grade', 'date']


@admin.register(StudentAttendance)
class StudentAttendanceAdmin(admin.ModelAdmin):
    list_display = ['student', 'date', 'status', 'duration_hours', 'schedule']
    list_filter = ['status', 'date']


@admin.register(TrainerFeedback)
class TrainerFeedbackAdmin(admin.ModelAdmin):
    list_display = ['trainer', 'course', 'rating', 'date']
    list_filter = ['rating', 'date']
