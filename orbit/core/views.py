import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from django.db.models import Q
from .models import Institute, AuditLog
from .permissions import is_admin_user, is_superadmin_user, IsAdminRole
from .serializers import (
    UserSerializer, UserSelfSerializer, UserCreateSerializer, ChangePasswordSerializer,
    InstituteSerializer, AuditLogSerializer
)
from .utils import create_audit_log, paginated_response, parse_date

User = get_user_model()

logger = logging.getLogger(__name__)

PRIVILEGED_ROLES = ('admin', 'superadmin')


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        create_audit_log(
            request=self.context.get('request'),
            user=self.user,
            action='login',
            model_name='User',
            object_id=self.user.id,
            object_name=self.user.username,
        )
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        token['full_name'] = user.full_name
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


def _can_assign_role(actor, role):
    """Only superadmins may hand out admin or superadmin roles"""
    if role in PRIVILEGED_ROLES:
        return is_superadmin_user(actor)
    return True


def _create_user(request):
    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        role = serializer.validated_data.get('role', 'counselor')
        if not _can_assign_role(request.user, role):
            return Response({'error': 'Only a super admin can create admin accounts'},
                            status=status.HTTP_403_FORBIDDEN)
        user = serializer.save()
        create_audit_log(request=request, action='create', model_name='User',
                         object_id=user.id, object_name=user.username,
                         changes={'role': user.role})
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def register(request):
    """Create a staff account (admin only)"""
    return _create_user(request)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Current user with role-based capability flags"""
    user = request.user
    user_data = UserSerializer(user).data

    is_admin = is_admin_user(user)
    is_superadmin = is_superadmin_user(user)
    user_data['is_admin'] = is_admin
    user_data['is_superadmin'] = is_superadmin
    user_data['can_manage_users'] = is_admin
    user_data['can_issue_certificates'] = is_superadmin
    user_data['can_approve_expenses'] = is_admin
    user_data['can_access_hrm'] = is_admin
    user_data['can_access_reports'] = is_admin

    return Response(user_data)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all().order_by('username')
        role = request.query_params.get('role')
        if role:
            users = users.filter(role=role)
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        return _create_user(request)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)
    is_self = user.pk == request.user.pk

    if not is_self and not is_admin_user(request.user):
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        partial = request.method == 'PATCH'
        serializer_class = UserSerializer if is_admin_user(request.user) else UserSelfSerializer
        if user.role in PRIVILEGED_ROLES and not is_self and not is_superadmin_user(request.user):
            return Response({'error': 'Only a super admin can modify admin accounts'},
                            status=status.HTTP_403_FORBIDDEN)
        serializer = serializer_class(user, data=request.data, partial=partial)
        if serializer.is_valid():
            new_role = serializer.validated_data.get('role', user.role)
            if new_role != user.role and not _can_assign_role(request.user, new_role):
                return Response({'error': 'Only a super admin can grant admin roles'},
                                status=status.HTTP_403_FORBIDDEN)
            serializer.save()
            create_audit_log(request=request, action='update', model_name='User',
                             object_id=user.id, object_name=user.username,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if not is_superadmin_user(request.user):
            return Response({'error': 'Only a super admin can delete users'},
                            status=status.HTTP_403_FORBIDDEN)
        if is_self:
            return Response({'error': 'You cannot delete your own account'},
                            status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='User',
                         object_id=user.id, object_name=user.username)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request, pk):
    """Change own password, or reset another user's password as super admin"""
    user = get_object_or_404(User, pk=pk)
    is_self = user.pk == request.user.pk

    if not is_self and not is_superadmin_user(request.user):
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    serializer = ChangePasswordSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if is_self and not user.check_password(serializer.validated_data.get('current_password', '')):
        return Response({'error': 'Current password is incorrect'}, status=status.HTTP_400_BAD_REQUEST)

    user.set_password(serializer.validated_data['new_password'])
    user.save(update_fields=['password', 'updated_at'])
    create_audit_log(request=request, action='password_change', model_name='User',
                     object_id=user.id, object_name=user.username)
    logger.info(f"Password changed for user {user.username} by {request.user.username}")
    return Response({'message': 'Password updated successfully'})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def institute_profile(request):
    """Institute profile shown on documents; admins may update it"""
    institute = Institute.load()

    if request.method == 'GET':
        return Response(InstituteSerializer(institute).data)

    if not is_admin_user(request.user):
        return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)

    serializer = InstituteSerializer(institute, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request=request, action='update', model_name='Institute',
                         object_id=institute.id, object_name=institute.name)
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# AuditLog views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    if not is_admin_user(request.user):
        queryset = queryset.filter(user=request.user)

    action_filter = request.query_params.get('action', None)
    if action_filter:
        queryset = queryset.filter(action=action_filter)

    model_filter = request.query_params.get('model', None)
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)

    try:
        if request.query_params.get('date_from'):
            date_from = parse_date(request.query_params['date_from'], 'date_from')
            queryset = queryset.filter(created_at__date__gte=date_from)
        if request.query_params.get('date_to'):
            date_to = parse_date(request.query_params['date_to'], 'date_to')
            queryset = queryset.filter(created_at__date__lte=date_to)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    queryset = queryset.order_by('-created_at')
    return paginated_response(request, queryset, AuditLogSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)

    if not is_admin_user(request.user) and audit_log.user != request.user:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)

    serializer = AuditLogSerializer(audit_log)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """Global search across students, courses, trainers, invoices, leads, employees and certificates"""
    query = request.query_params.get('q', '').strip()

    if not query:
        return Response({
            'students': [],
            'courses': [],
            'trainers': [],
            'invoices': [],
            'certificates': [],
            'leads': [],
            'employees': [],
        })

    from orbit.academics.models import Student, Course, Trainer, Invoice, Certificate
    from orbit.academics.serializers import (
        StudentListSerializer, CourseSerializer, TrainerSerializer,
        InvoiceSerializer, CertificateSerializer
    )
    from orbit.academics.filters import StudentFilter
    from orbit.crm.models import Lead
    from orbit.crm.serializers import LeadSerializer

    results = {}

    students = StudentFilter({'search': query}, queryset=Student.objects.select_related('course')).qs[:20]
    results['students'] = StudentListSerializer(students, many=True).data

    courses = Course.objects.filter(Q(name__icontains=query) | Q(description__icontains=query))[:20]
    results['courses'] = CourseSerializer(courses, many=True).data

    trainers = Trainer.objects.filter(
        Q(full_name__icontains=query) |
        Q(email__icontains=query) |
        Q(specialization__icontains=query)
    ).prefetch_related('courses')[:20]
    results['trainers'] = TrainerSerializer(trainers, many=True).data

    invoices = Invoice.objects.filter(
        Q(invoice_number__icontains=query) | Q(transaction_id__icontains=query)
    ).select_related('student')[:20]
    results['invoices'] = InvoiceSerializer(invoices, many=True).data

    certificates = Certificate.objects.filter(
        certificate_number__icontains=query
    ).select_related('student', 'course')[:20]
    results['certificates'] = CertificateSerializer(certificates, many=True).data

    leads = Lead.objects.filter(
        Q(full_name__icontains=query) |
        Q(phone__icontains=query) |
        Q(email__icontains=query)
    ).select_related('interested_course', 'campaign')[:20]
    results['leads'] = LeadSerializer(leads, many=True).data

    # Employee records are HR data
    if is_admin_user(request.user):
        from orbit.hrm.models import Employee
        from orbit.hrm.serializers import EmployeeSerializer
        employees = Employee.objects.filter(
            Q(full_name__icontains=query) |
            Q(employee_id__icontains=query) |
            Q(email__icontains=query)
        )[:20]
        results['employees'] = EmployeeSerializer(employees, many=True).data
    else:
        results['employees'] = []

    return Response(results)
