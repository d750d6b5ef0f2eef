import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Q, ProtectedError
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response

from orbit.core.models import Institute
from orbit.core.permissions import is_admin_user, is_superadmin_user
from orbit.core.utils import create_audit_log, paginated_response
from orbit.reports.documents import render_invoice_pdf, render_certificate_pdf, render_registration_pdf
from . import notifications
from .filters import StudentFilter, InvoiceFilter, ScheduleFilter
from .models import (
    Course, Trainer, Student, RegistrationCourse, Invoice, Schedule,
    Certificate, Assessment, StudentAttendance, TrainerFeedback,
)
from .serializers import (
    CourseSerializer, TrainerSerializer, StudentSerializer, StudentListSerializer,
    RegistrationSerializer, RegistrationCourseSerializer, RegistrationLinkSerializer,
    SelfRegistrationSerializer, InvoiceSerializer, ScheduleSerializer, CertificateSerializer,
    AssessmentSerializer, StudentAttendanceSerializer, TrainerFeedbackSerializer,
)
from .utils import (
    generate_student_id, generate_registration_number, generate_invoice_number,
    generate_certificate_number, register_student, record_payment, recalculate_student_fees,
    create_registration_link, registration_url, is_link_expired, split_full_name,
)

logger = logging.getLogger(__name__)


def _admin_required():
    return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)


def _pdf_response(pdf_bytes, filename, inline=False):
    response = HttpResponse(pdf_bytes, content_type='application/pdf')
    disposition = 'inline' if inline else 'attachment'
    response['Content-Disposition'] = f'{disposition}; filename="{filename}"'
    return response


# Course views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def course_list_create(request):
    """List all courses or create a new course"""
    if request.method == 'GET':
        courses = Course.objects.all()
        active = request.query_params.get('active')
        if active is not None:
            courses = courses.filter(active=active.lower() in ('1', 'true', 'yes'))
        search = request.query_params.get('search')
        if search:
            courses = courses.filter(Q(name__icontains=search) | Q(description__icontains=search))
        serializer = CourseSerializer(courses, many=True)
        return Response(serializer.data)

    if not is_admin_user(request.user):
        return _admin_required()
    serializer = CourseSerializer(data=request.data)
    if serializer.is_valid():
        course = serializer.save()
        create_audit_log(request=request, action='create', model_name='Course',
                         object_id=course.id, object_name=course.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def course_detail(request, pk):
    """Retrieve, update or delete a course"""
    course = get_object_or_404(Course, pk=pk)

    if request.method == 'GET':
        serializer = CourseSerializer(course)
        return Response(serializer.data)

    if not is_admin_user(request.user):
        return _admin_required()

    if request.method in ('PUT', 'PATCH'):
        serializer = CourseSerializer(course, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Course',
                             object_id=course.id, object_name=course.name,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    try:
        course.delete()
    except ProtectedError:
        return Response({'error': 'Course has enrolled students or issued certificates and cannot be deleted. '
                                  'Mark it inactive instead.'},
                        status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request=request, action='delete', model_name='Course', object_id=pk, object_name=course.name)
    return Response(status=status.HTTP_204_NO_CONTENT)


# Trainer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def trainer_list_create(request):
    """List all trainers or create a new trainer"""
    if request.method == 'GET':
        trainers = Trainer.objects.prefetch_related('courses')
        course_id = request.query_params.get('course')
        if course_id:
            trainers = trainers.filter(courses__id=course_id)
        search = request.query_params.get('search')
        if search:
            trainers = trainers.filter(Q(full_name__icontains=search) | Q(specialization__icontains=search))
        serializer = TrainerSerializer(trainers.distinct(), many=True)
        return Response(serializer.data)

    if not is_admin_user(request.user):
        return _admin_required()
    serializer = TrainerSerializer(data=request.data)
    if serializer.is_valid():
        trainer = serializer.save()
        create_audit_log(request=request, action='create', model_name='Trainer',
                         object_id=trainer.id, object_name=trainer.full_name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def trainer_detail(request, pk):
    """Retrieve, update or delete a trainer"""
    trainer = get_object_or_404(Trainer, pk=pk)

    if request.method == 'GET':
        return Response(TrainerSerializer(trainer).data)

    if not is_admin_user(request.user):
        return _admin_required()

    if request.method in ('PUT', 'PATCH'):
        serializer = TrainerSerializer(trainer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='delete', model_name='Trainer', object_id=pk,
                     object_name=trainer.full_name)
    trainer.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def trainer_schedules(request, pk):
    """Sessions assigned to a trainer"""
    trainer = get_object_or_404(Trainer, pk=pk)
    schedules = ScheduleFilter(request.query_params,
                               queryset=trainer.schedules.select_related('course', 'trainer')).qs
    return Response(ScheduleSerializer(schedules, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def trainer_feedback(request, pk):
    """List or record feedback for a trainer"""
    trainer = get_object_or_404(Trainer, pk=pk)

    if request.method == 'GET':
        feedback = trainer.feedback.select_related('course', 'student')
        return Response(TrainerFeedbackSerializer(feedback, many=True).data)

    serializer = TrainerFeedbackSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(trainer=trainer)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Student views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def student_list_create(request):
    """List students (filterable) or create a single-course student record"""
    if request.method == 'GET':
        queryset = Student.objects.select_related('course').order_by('-created_at')
        student_filter = StudentFilter(request.query_params, queryset=queryset)
        if not student_filter.is_valid():
            return Response(student_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, student_filter.qs, StudentListSerializer)

    serializer = StudentSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            first_name = serializer.validated_data.get('first_name')
            last_name = serializer.validated_data.get('last_name')
            if not first_name and not last_name:
                first_name, last_name = split_full_name(serializer.validated_data['full_name'])
            student = serializer.save(
                student_id=generate_student_id(),
                registration_number=generate_registration_number(),
                first_name=first_name or '',
                last_name=last_name or '',
                created_by=request.user,
            )
            course = student.course
            if course:
                RegistrationCourse.objects.create(
                    student=student,
                    course=course,
                    price=student.course_fee,
                    discount=(student.discount * Decimal('100') / student.course_fee).quantize(Decimal('0.01'))
                    if student.course_fee else Decimal('0.00'),
                )
            if student.initial_payment > 0:
                record_payment(student, student.initial_payment, student.payment_mode, user=request.user,
                               notes='Initial payment at registration')
            else:
                student.refresh_balance()

        create_audit_log(request=request, action='registration', model_name='Student',
                         object_id=student.id, object_name=student.full_name,
                         object_reference=student.student_id)
        return Response(StudentSerializer(student).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def student_detail(request, pk):
    """Retrieve, update or delete a student"""
    student = get_object_or_404(Student.objects.select_related('course', 'created_by'), pk=pk)

    if request.method == 'GET':
        return Response(StudentSerializer(student).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = StudentSerializer(student, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            student = serializer.save()
            student.refresh_balance()
            create_audit_log(request=request, action='update', model_name='Student',
                             object_id=student.id, object_name=student.full_name,
                             object_reference=student.student_id,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(StudentSerializer(student).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not is_admin_user(request.user):
        return _admin_required()
    create_audit_log(request=request, action='delete', model_name='Student', object_id=pk,
                     object_name=student.full_name, object_reference=student.student_id)
    student.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def students_by_course(request, course_id):
    """Students enrolled in a course (primary or through registration)"""
    course = get_object_or_404(Course, pk=course_id)
    students = StudentFilter({'course': course.id}, queryset=Student.objects.select_related('course')).qs
    return Response(StudentListSerializer(students, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def student_invoices(request, pk):
    student = get_object_or_404(Student, pk=pk)
    invoices = student.invoices.select_related('student__course').order_by('-created_at')
    return Response(InvoiceSerializer(invoices, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def student_certificates(request, pk):
    student = get_object_or_404(Student, pk=pk)
    certificates = student.certificates.select_related('course', 'issued_by')
    return Response(CertificateSerializer(certificates, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def student_attendance(request, pk):
    """List or record class attendance for a student"""
    student = get_object_or_404(Student, pk=pk)

    if request.method == 'GET':
        records = student.attendance.select_related('schedule')
        return Response(StudentAttendanceSerializer(records, many=True).data)

    serializer = StudentAttendanceSerializer(data=request.data)
    if serializer.is_valid():
        schedule = serializer.validated_data.get('schedule')
        duration = serializer.validated_data.get('duration_hours')
        if schedule and not duration:
            serializer.save(student=student, duration_hours=schedule.duration_hours)
        else:
            serializer.save(student=student)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def student_assessments(request, pk):
    """List or record assessment scores for a student"""
    student = get_object_or_404(Student, pk=pk)

    if request.method == 'GET':
        assessments = student.assessments.select_related('course')
        return Response(AssessmentSerializer(assessments, many=True).data)

    serializer = AssessmentSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(student=student)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Registration views
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def registration_create(request):
    """Register a student for one or more courses in a single step"""
    serializer = RegistrationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        student = register_student(
            data['student'],
            data['courses'],
            user=request.user,
            initial_payment=data['initial_payment'],
            payment_mode=data['payment_mode'],
            transaction_id=data.get('transaction_id', ''),
        )
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='registration', model_name='Student',
                     object_id=student.id, object_name=student.full_name,
                     object_reference=student.student_id,
                     changes={'courses': [line['course'].name for line in data['courses']],
                              'total_fee': str(student.total_fee)})

    return Response({
        'message': 'Student registered successfully',
        'student': StudentSerializer(student).data,
        'registration_courses': RegistrationCourseSerializer(
            student.registration_courses.select_related('course'), many=True
        ).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def registration_courses(request, student_pk):
    """Courses a student registered for, with per-course pricing"""
    student = get_object_or_404(Student, pk=student_pk)
    lines = student.registration_courses.select_related('course')
    return Response({
        'student': StudentSerializer(student).data,
        'courses': RegistrationCourseSerializer(lines, many=True).data,
    })


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def registration_course_delete(request, pk):
    """Remove a course from a registration and recompute the student's fees"""
    if not is_admin_user(request.user):
        return _admin_required()

    line = get_object_or_404(RegistrationCourse.objects.select_related('student', 'course'), pk=pk)
    student = line.student
    if student.registration_courses.count() <= 1:
        return Response({'error': 'A registration must keep at least one course'},
                        status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        course_name = line.course.name
        line.delete()
        if student.course_id == line.course_id:
            student.course = student.registration_courses.select_related('course').first().course
            student.save(update_fields=['course', 'updated_at'])
        recalculate_student_fees(student)

    create_audit_log(request=request, action='update', model_name='Student', object_id=student.id,
                     object_name=student.full_name, object_reference=student.student_id,
                     changes={'removed_course': course_name})
    return Response(StudentSerializer(student).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def registration_pdf(request, student_pk):
    """Printable registration form"""
    student = get_object_or_404(Student.objects.select_related('course'), pk=student_pk)
    pdf = render_registration_pdf(student, Institute.load())
    return _pdf_response(pdf, f"Registration_{student.student_id}.pdf",
                         inline=request.query_params.get('inline') == '1')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def student_registration_link(request, pk):
    """Generate a self-registration link (token) for a student record"""
    student = get_object_or_404(Student, pk=pk)
    serializer = RegistrationLinkSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    create_registration_link(
        student,
        expiry_days=data.get('expiry_days'),
        discount_percentage=data['discount_percentage'],
        course=data.get('course'),
    )
    logger.info(f"Registration link generated for student {student.student_id}")
    return Response({
        'token': student.register_link,
        'registration_url': registration_url(student.register_link),
        'expiry_date': student.register_link_expiry,
        'discount_percentage': str(student.register_link_discount),
        'course': student.register_link_course_id,
        'course_name': student.register_link_course.name if student.register_link_course else None,
    }, status=status.HTTP_201_CREATED)


def _link_student_or_error(token):
    student = Student.objects.select_related('register_link_course').filter(register_link=token).first()
    if student is None:
        return None, Response({'error': 'Invalid registration link'}, status=status.HTTP_404_NOT_FOUND)
    if is_link_expired(student):
        return None, Response({'error': 'Registration link has expired', 'expired': True},
                              status=status.HTTP_400_BAD_REQUEST)
    return student, None


@api_view(['GET'])
@permission_classes([AllowAny])
def registration_link_detail(request, token):
    """Public: validate a registration link and describe the offer"""
    student, error = _link_student_or_error(token)
    if error:
        return error

    course = student.register_link_course or student.course
    return Response({
        'valid': True,
        'expiry_date': student.register_link_expiry,
        'discount_percentage': str(student.register_link_discount),
        'course': {
            'id': course.id,
            'name': course.name,
            'duration': course.duration,
            'fee': str(course.fee),
            'rates': {
                class_type: str(course.price_for(class_type))
                for class_type in ('online', 'offline', 'private', 'batch')
            },
        } if course else None,
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def registration_link_submit(request, token):
    """Public: complete registration through a link"""
    link_student, error = _link_student_or_error(token)
    if error:
        return error

    serializer = SelfRegistrationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = dict(serializer.validated_data)
    payment_method = data.pop('payment_method')
    data['signature_date'] = timezone.now()

    course = link_student.register_link_course or link_student.course
    course_lines = []
    if course:
        course_lines.append({'course': course, 'discount': link_student.register_link_discount})

    with transaction.atomic():
        student = register_student(data, course_lines, payment_mode=payment_method)

        invoice = None
        if payment_method != 'cash' and student.total_fee > 0:
            invoice = record_payment(student, student.total_fee, payment_method, status='pending',
                                     notes='Online registration')

        link_student.clear_registration_link()
        link_student.save(update_fields=['register_link', 'register_link_expiry', 'register_link_discount',
                                         'register_link_course', 'updated_at'])

    create_audit_log(request=request, action='registration', model_name='Student',
                     object_id=student.id, object_name=student.full_name,
                     object_reference=student.student_id, changes={'source': 'registration_link'})
    if invoice:
        notifications.send_invoice_notice(invoice)

    return Response({
        'message': 'Registration completed successfully',
        'student': StudentSerializer(student).data,
        'invoice': InvoiceSerializer(invoice).data if invoice else None,
        'payment_url': f"/payment/{invoice.id}" if invoice else None,
    }, status=status.HTTP_201_CREATED)


# Invoice views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def invoice_list_create(request):
    """List invoices or record a new invoice/payment"""
    if request.method == 'GET':
        queryset = Invoice.objects.select_related('student', 'student__course').order_by('-created_at')
        invoice_filter = InvoiceFilter(request.query_params, queryset=queryset)
        if not invoice_filter.is_valid():
            return Response(invoice_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, invoice_filter.qs, InvoiceSerializer)

    serializer = InvoiceSerializer(data=request.data)
    if serializer.is_valid():
        with transaction.atomic():
            invoice = serializer.save(invoice_number=generate_invoice_number(), created_by=request.user)
            invoice.student.refresh_balance()

        create_audit_log(request=request, action='payment' if invoice.status == 'paid' else 'create',
                         model_name='Invoice', object_id=invoice.id, object_name=invoice.student.full_name,
                         object_reference=invoice.invoice_number, changes={'amount': str(invoice.amount)})
        notifications.send_invoice_notice(invoice)
        if invoice.status == 'paid':
            logger.info(f"Payment received: {invoice.invoice_number} {invoice.amount}")
            notifications.send_payment_receipt(invoice)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def invoice_detail(request, pk):
    """Retrieve, update or delete an invoice"""
    invoice = get_object_or_404(Invoice.objects.select_related('student', 'student__course'), pk=pk)

    if request.method == 'GET':
        return Response(InvoiceSerializer(invoice).data)

    if request.method in ('PUT', 'PATCH'):
        previous_status = invoice.status
        serializer = InvoiceSerializer(invoice, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            with transaction.atomic():
                previous_student = invoice.student
                invoice = serializer.save()
                invoice.student.refresh_balance()
                if previous_student.pk != invoice.student_id:
                    previous_student.refresh_balance()
            if previous_status != 'paid' and invoice.status == 'paid':
                create_audit_log(request=request, action='payment', model_name='Invoice', object_id=invoice.id,
                                 object_name=invoice.student.full_name, object_reference=invoice.invoice_number,
                                 changes={'amount': str(invoice.amount)})
                logger.info(f"Payment received: {invoice.invoice_number} {invoice.amount}")
                notifications.send_payment_receipt(invoice)
            return Response(InvoiceSerializer(invoice).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not is_admin_user(request.user):
        return _admin_required()
    student = invoice.student
    create_audit_log(request=request, action='delete', model_name='Invoice', object_id=pk,
                     object_name=student.full_name, object_reference=invoice.invoice_number)
    invoice.delete()
    student.refresh_balance()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def invoice_mark_paid(request, pk):
    """Mark a pending invoice as paid"""
    invoice = get_object_or_404(Invoice.objects.select_related('student'), pk=pk)
    if invoice.status == 'paid':
        return Response({'error': 'Invoice is already paid'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = InvoiceSerializer(invoice, data={
        'status': 'paid',
        'payment_mode': request.data.get('payment_mode', invoice.payment_mode),
        'transaction_id': request.data.get('transaction_id', invoice.transaction_id),
    }, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        invoice = serializer.save(payment_date=timezone.now())
        invoice.student.refresh_balance()

    create_audit_log(request=request, action='payment', model_name='Invoice', object_id=invoice.id,
                     object_name=invoice.student.full_name, object_reference=invoice.invoice_number,
                     changes={'amount': str(invoice.amount)})
    logger.info(f"Payment received: {invoice.invoice_number} {invoice.amount}")
    notifications.send_payment_receipt(invoice)
    return Response(InvoiceSerializer(invoice).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def invoice_pdf(request, pk):
    invoice = get_object_or_404(Invoice.objects.select_related('student', 'student__course'), pk=pk)
    pdf = render_invoice_pdf(invoice, Institute.load())
    return _pdf_response(pdf, f"{invoice.invoice_number}.pdf", inline=request.query_params.get('inline') == '1')


# Schedule views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def schedule_list_create(request):
    """List schedules or create a new class session"""
    if request.method == 'GET':
        queryset = Schedule.objects.select_related('course', 'trainer').prefetch_related('students')
        schedule_filter = ScheduleFilter(request.query_params, queryset=queryset)
        if not schedule_filter.is_valid():
            return Response(schedule_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(ScheduleSerializer(schedule_filter.qs.distinct(), many=True).data)

    serializer = ScheduleSerializer(data=request.data)
    if serializer.is_valid():
        schedule = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='Schedule',
                         object_id=schedule.id, object_name=schedule.title)
        notifications.send_schedule_created(schedule)
        return Response(ScheduleSerializer(schedule).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def schedule_detail(request, pk):
    """Retrieve, update or delete a schedule"""
    schedule = get_object_or_404(Schedule.objects.select_related('course', 'trainer'), pk=pk)

    if request.method == 'GET':
        return Response(ScheduleSerializer(schedule).data)

    if request.method in ('PUT', 'PATCH'):
        previous_status = schedule.status
        serializer = ScheduleSerializer(schedule, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            schedule = serializer.save()
            if previous_status != 'cancelled' and schedule.status == 'cancelled':
                notifications.send_schedule_cancelled(schedule)
            return Response(ScheduleSerializer(schedule).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='delete', model_name='Schedule', object_id=pk,
                     object_name=schedule.title)
    schedule.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Certificate views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def certificate_list_create(request):
    """List certificates or issue a new certificate (super admin only)"""
    if request.method == 'GET':
        certificates = Certificate.objects.select_related('student', 'course', 'issued_by')
        student_id = request.query_params.get('student')
        if student_id:
            certificates = certificates.filter(student_id=student_id)
        course_id = request.query_params.get('course')
        if course_id:
            certificates = certificates.filter(course_id=course_id)
        return Response(CertificateSerializer(certificates, many=True).data)

    if not is_superadmin_user(request.user):
        return Response({'error': 'Only a super admin can issue certificates'}, status=status.HTTP_403_FORBIDDEN)

    serializer = CertificateSerializer(data=request.data)
    if serializer.is_valid():
        certificate = serializer.save(certificate_number=generate_certificate_number(), issued_by=request.user)
        create_audit_log(request=request, action='certificate_issue', model_name='Certificate',
                         object_id=certificate.id, object_name=certificate.student.full_name,
                         object_reference=certificate.certificate_number)
        logger.info(f"Certificate {certificate.certificate_number} issued to {certificate.student.student_id}")
        return Response(CertificateSerializer(certificate).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def certificate_detail(request, pk):
    """Retrieve, amend or revoke a certificate"""
    certificate = get_object_or_404(Certificate.objects.select_related('student', 'course', 'issued_by'), pk=pk)

    if request.method == 'GET':
        return Response(CertificateSerializer(certificate).data)

    if not is_superadmin_user(request.user):
        return Response({'error': 'Only a super admin can modify certificates'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'PATCH':
        serializer = CertificateSerializer(certificate, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='delete', model_name='Certificate', object_id=pk,
                     object_name=certificate.student.full_name, object_reference=certificate.certificate_number)
    certificate.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def certificate_pdf(request, pk):
    certificate = get_object_or_404(Certificate.objects.select_related('student', 'course'), pk=pk)
    pdf = render_certificate_pdf(certificate, Institute.load())
    return _pdf_response(pdf, f"Certificate_{certificate.certificate_number}.pdf",
                         inline=request.query_params.get('inline') == '1')


@api_view(['GET'])
@permission_classes([AllowAny])
def certificate_verify(request, number):
    """Public: confirm a certificate number is genuine"""
    certificate = Certificate.objects.select_related('student', 'course').filter(
        certificate_number__iexact=number
    ).first()
    if certificate is None:
        return Response({'valid': False, 'error': 'Certificate not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response({
        'valid': True,
        'certificate_number': certificate.certificate_number,
        'student_name': certificate.student.full_name,
        'course_name': certificate.course.name,
        'issue_date': certificate.issue_date,
    })
