from django.urls import path
from .views import (
    course_list_create, course_detail,
    trainer_list_create, trainer_detail, trainer_schedules, trainer_feedback,
    student_list_create, student_detail, students_by_course,
    student_invoices, student_certificates, student_attendance, student_assessments,
    student_registration_link,
    registration_create, registration_courses, registration_course_delete, registration_pdf,
    registration_link_detail, registration_link_submit,
    invoice_list_create, invoice_detail, invoice_mark_paid, invoice_pdf,
    schedule_list_create, schedule_detail,
    certificate_list_create, certificate_detail, certificate_pdf, certificate_verify,
)

urlpatterns = [
    # Course endpoints
    path('courses/', course_list_create, name='course-list-create'),
    path('courses/<int:pk>/', course_detail, name='course-detail'),

    # Trainer endpoints
    path('trainers/', trainer_list_create, name='trainer-list-create'),
    path('trainers/<int:pk>/', trainer_detail, name='trainer-detail'),
    path('trainers/<int:pk>/schedules/', trainer_schedules, name='trainer-schedules'),
    path('trainers/<int:pk>/feedback/', trainer_feedback, name='trainer-feedback'),

    # Student endpoints
    path('students/', student_list_create, name='student-list-create'),
    path('students/by-course/<int:course_id>/', students_by_course, name='students-by-course'),
    path('students/<int:pk>/', student_detail, name='student-detail'),
    path('students/<int:pk>/invoices/', student_invoices, name='student-invoices'),
    path('students/<int:pk>/certificates/', student_certificates, name='student-certificates'),
    path('students/<int:pk>/attendance/', student_attendance, name='student-attendance'),
    path('students/<int:pk>/assessments/', student_assessments, name='student-assessments'),
    path('students/<int:pk>/registration-link/', student_registration_link, name='student-registration-link'),

    # Registration endpoints
    path('registrations/', registration_create, name='registration-create'),
    path('registrations/courses/<int:pk>/', registration_course_delete, name='registration-course-delete'),
    path('registrations/<int:student_pk>/courses/', registration_courses, name='registration-courses'),
    path('registrations/<int:student_pk>/pdf/', registration_pdf, name='registration-pdf'),

    # Public registration link endpoints
    path('register/<str:token>/', registration_link_detail, name='registration-link-detail'),
    path('register/<str:token>/submit/', registration_link_submit, name='registration-link-submit'),

    # Invoice endpoints
    path('invoices/', invoice_list_create, name='invoice-list-create'),
    path('invoices/<int:pk>/', invoice_detail, name='invoice-detail'),
    path('invoices/<int:pk>/mark-paid/', invoice_mark_paid, name='invoice-mark-paid'),
    path('invoices/<int:pk>/pdf/', invoice_pdf, name='invoice-pdf'),

    # Schedule endpoints
    path('schedules/', schedule_list_create, name='schedule-list-create'),
    path('schedules/<int:pk>/', schedule_detail, name='schedule-detail'),

    # Certificate endpoints
    path('certificates/', certificate_list_create, name='certificate-list-create'),
    path('certificates/verify/<str:number>/', certificate_verify, name='certificate-verify'),
    path('certificates/<int:pk>/', certificate_detail, name='certificate-detail'),
    path('certificates/<int:pk>/pdf/', certificate_pdf, name='certificate-pdf'),
]
