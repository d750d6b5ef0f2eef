import logging
from datetime import timedelta

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from orbit.core.permissions import IsAdminRole
from orbit.core.utils import create_audit_log, parse_date, parse_month, paginated_response
from .filters import EmployeeFilter, AttendanceFilter, PayrollFilter, InterviewFilter
from .models import Employee, Attendance, PayrollRecord, Interview
from .serializers import (
    EmployeeSerializer, AttendanceSerializer, PayrollRecordSerializer,
    InterviewSerializer, InterviewFeedbackSerializer,
)
from .utils import (
    MAX_VISA_WINDOW_DAYS, generate_employee_id, generate_monthly_payroll, payroll_summary, attendance_summary,
)

logger = logging.getLogger(__name__)


# Employee views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def employee_list_create(request):
    """List employees or add a new employee"""
    if request.method == 'GET':
        employee_filter = EmployeeFilter(request.query_params, queryset=Employee.objects.select_related('user'))
        if not employee_filter.is_valid():
            return Response(employee_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, employee_filter.qs, EmployeeSerializer)

    serializer = EmployeeSerializer(data=request.data)
    if serializer.is_valid():
        employee = serializer.save(employee_id=generate_employee_id())
        create_audit_log(request=request, action='create', model_name='Employee', object_id=employee.id,
                         object_name=employee.full_name, object_reference=employee.employee_id)
        return Response(EmployeeSerializer(employee).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def employee_detail(request, pk):
    """Retrieve, update or delete an employee"""
    employee = get_object_or_404(Employee, pk=pk)

    if request.method == 'GET':
        return Response(EmployeeSerializer(employee).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = EmployeeSerializer(employee, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Employee', object_id=employee.id,
                             object_name=employee.full_name, object_reference=employee.employee_id,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='delete', model_name='Employee', object_id=pk,
                     object_name=employee.full_name, object_reference=employee.employee_id)
    employee.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def employee_visa_expiring(request):
    """Employees whose visa expires within ?days= (default 30), including already expired ones"""
    try:
        days = int(request.query_params.get('days', 30))
    except ValueError:
        return Response({'error': 'days must be a number'}, status=status.HTTP_400_BAD_REQUEST)
    if not 0 <= days <= MAX_VISA_WINDOW_DAYS:
        return Response({'error': f'days must be between 0 and {MAX_VISA_WINDOW_DAYS}'},
                        status=status.HTTP_400_BAD_REQUEST)

    cutoff = timezone.localdate() + timedelta(days=days)
    employees = Employee.objects.filter(
        visa_expiry__isnull=False,
        visa_expiry__lte=cutoff,
    ).exclude(status='terminated').order_by('visa_expiry')
    return Response(EmployeeSerializer(employees, many=True).data)


# Attendance views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def attendance_list_create(request):
    """List attendance records or record attendance"""
    if request.method == 'GET':
        attendance_filter = AttendanceFilter(request.query_params,
                                             queryset=Attendance.objects.select_related('employee'))
        if not attendance_filter.is_valid():
            return Response(attendance_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, attendance_filter.qs, AttendanceSerializer)

    serializer = AttendanceSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def attendance_detail(request, pk):
    """Retrieve, update or delete an attendance record"""
    record = get_object_or_404(Attendance.objects.select_related('employee'), pk=pk)

    if request.method == 'GET':
        return Response(AttendanceSerializer(record).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = AttendanceSerializer(record, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    record.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def attendance_summary_view(request):
    """Attendance counts for ?date= (default today)"""
    day_param = request.query_params.get('date')
    try:
        day = parse_date(day_param) if day_param else timezone.localdate()
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(attendance_summary(day))


# Payroll views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payroll_list_create(request):
    """List payroll records or create one"""
    if request.method == 'GET':
        payroll_filter = PayrollFilter(request.query_params,
                                       queryset=PayrollRecord.objects.select_related('employee'))
        if not payroll_filter.is_valid():
            return Response(payroll_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, payroll_filter.qs, PayrollRecordSerializer)

    serializer = PayrollRecordSerializer(data=request.data)
    if serializer.is_valid():
        record = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='PayrollRecord', object_id=record.id,
                         object_name=record.employee.full_name, object_reference=f"{record.month:%Y-%m}")
        return Response(PayrollRecordSerializer(record).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payroll_detail(request, pk):
    """Retrieve, update or delete a payroll record"""
    record = get_object_or_404(PayrollRecord.objects.select_related('employee'), pk=pk)

    if request.method == 'GET':
        return Response(PayrollRecordSerializer(record).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = PayrollRecordSerializer(record, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            record = serializer.save()
            return Response(PayrollRecordSerializer(record).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if record.status == 'paid':
        return Response({'error': 'Paid payroll records cannot be deleted'}, status=status.HTTP_400_BAD_REQUEST)
    record.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payroll_generate(request):
    """Create pending payroll records for all active employees for a month"""
    month_param = request.data.get('month')
    try:
        month = parse_month(month_param) if month_param else timezone.localdate().replace(day=1)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    records = generate_monthly_payroll(month, user=request.user)
    return Response({
        'month': month.strftime('%Y-%m'),
        'created': len(records),
        'records': PayrollRecordSerializer(records, many=True).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payroll_mark_paid(request, pk):
    record = get_object_or_404(PayrollRecord.objects.select_related('employee'), pk=pk)
    if record.status == 'paid':
        return Response({'error': 'Payroll record is already paid'}, status=status.HTTP_400_BAD_REQUEST)

    payment_date = request.data.get('payment_date')
    try:
        record.payment_date = parse_date(payment_date, 'payment_date') if payment_date else timezone.localdate()
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    payment_method = request.data.get('payment_method')
    if payment_method:
        if payment_method not in dict(PayrollRecord.PAYMENT_METHOD_CHOICES):
            return Response({'error': 'Invalid payment method'}, status=status.HTTP_400_BAD_REQUEST)
        record.payment_method = payment_method
    record.status = 'paid'
    record.save()

    create_audit_log(request=request, action='payroll_paid', model_name='PayrollRecord', object_id=record.id,
                     object_name=record.employee.full_name, object_reference=f"{record.month:%Y-%m}",
                     changes={'net_salary': str(record.net_salary)})
    logger.info(f"Payroll {record.month:%Y-%m} paid for {record.employee.employee_id}: {record.net_salary}")
    return Response(PayrollRecordSerializer(record).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def payroll_summary_view(request):
    """Payroll totals for ?month=YYYY-MM (default current month)"""
    month_param = request.query_params.get('month')
    try:
        month = parse_month(month_param) if month_param else timezone.localdate().replace(day=1)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(payroll_summary(month))


# Interview views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def interview_list_create(request):
    """List interviews or schedule a new one"""
    if request.method == 'GET':
        interview_filter = InterviewFilter(request.query_params, queryset=Interview.objects.all())
        if not interview_filter.is_valid():
            return Response(interview_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(InterviewSerializer(interview_filter.qs, many=True).data)

    serializer = InterviewSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(created_by=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def interview_detail(request, pk):
    """Retrieve, update or delete an interview"""
    interview = get_object_or_404(Interview, pk=pk)

    if request.method == 'GET':
        return Response(InterviewSerializer(interview).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = InterviewSerializer(interview, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    interview.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def interview_feedback(request, pk):
    """Record interview feedback and decision, marking the interview completed"""
    interview = get_object_or_404(Interview, pk=pk)
    if interview.status == 'cancelled':
        return Response({'error': 'Cannot record feedback for a cancelled interview'},
                        status=status.HTTP_400_BAD_REQUEST)

    serializer = InterviewFeedbackSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    interview.feedback = serializer.validated_data['feedback']
    interview.decision = serializer.validated_data['decision']
    interview.score = serializer.validated_data.get('score', interview.score)
    interview.status = 'completed'
    interview.save(update_fields=['feedback', 'decision', 'score', 'status', 'updated_at'])
    return Response(InterviewSerializer(interview).data)
