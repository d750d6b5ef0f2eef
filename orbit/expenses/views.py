import logging

from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from orbit.core.permissions import is_admin_user
from orbit.core.utils import create_audit_log, parse_month, paginated_response
from .filters import ExpenseFilter
from .models import ExpenseCategory, Expense
from .serializers import ExpenseCategorySerializer, ExpenseSerializer, ExpenseRejectSerializer
from .utils import generate_expense_reference, expense_summary

logger = logging.getLogger(__name__)


def _admin_required():
    return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List expense categories or create a new one"""
    if request.method == 'GET':
        categories = ExpenseCategory.objects.all()
        active = request.query_params.get('active')
        if active is not None:
            categories = categories.filter(active=active.lower() in ('1', 'true', 'yes'))
        return Response(ExpenseCategorySerializer(categories, many=True).data)

    if not is_admin_user(request.user):
        return _admin_required()
    serializer = ExpenseCategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    """Retrieve, update or delete an expense category"""
    category = get_object_or_404(ExpenseCategory, pk=pk)

    if request.method == 'GET':
        return Response(ExpenseCategorySerializer(category).data)

    if not is_admin_user(request.user):
        return _admin_required()

    if request.method in ('PUT', 'PATCH'):
        serializer = ExpenseCategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        category.delete()
    except ProtectedError:
        return Response({'error': 'Category has expenses and cannot be deleted. Mark it inactive instead.'},
                        status=status.HTTP_400_BAD_REQUEST)
    return Response(status=status.HTTP_204_NO_CONTENT)


# Expense views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def expense_list_create(request):
    """List expenses (filterable) or record a new expense"""
    if request.method == 'GET':
        queryset = Expense.objects.select_related('category', 'added_by', 'approved_by')
        expense_filter = ExpenseFilter(request.query_params, queryset=queryset)
        if not expense_filter.is_valid():
            return Response(expense_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, expense_filter.qs, ExpenseSerializer)

    serializer = ExpenseSerializer(data=request.data)
    if serializer.is_valid():
        expense = serializer.save(reference=generate_expense_reference(), added_by=request.user)
        create_audit_log(request=request, action='create', model_name='Expense', object_id=expense.id,
                         object_name=expense.category.name, object_reference=expense.reference,
                         changes={'amount': str(expense.amount)})
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def expense_detail(request, pk):
    """Retrieve, update or delete an expense; non-admins may only change pending expenses"""
    expense = get_object_or_404(Expense.objects.select_related('category'), pk=pk)

    if request.method == 'GET':
        return Response(ExpenseSerializer(expense).data)

    if not is_admin_user(request.user) and expense.approval_status != 'pending':
        return Response({'error': f'Only pending expenses can be changed; this one is {expense.approval_status}'},
                        status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = ExpenseSerializer(expense, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Expense', object_id=expense.id,
                             object_name=expense.category.name, object_reference=expense.reference,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='delete', model_name='Expense', object_id=pk,
                     object_name=expense.category.name, object_reference=expense.reference)
    if expense.receipt:
        expense.receipt.delete(save=False)
    expense.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def expense_approve(request, pk):
    if not is_admin_user(request.user):
        return _admin_required()
    expense = get_object_or_404(Expense.objects.select_related('category'), pk=pk)
    if expense.approval_status != 'pending':
        return Response({'error': f'Expense is already {expense.approval_status}'},
                        status=status.HTTP_400_BAD_REQUEST)

    expense.approval_status = 'approved'
    expense.approved_by = request.user
    expense.approved_at = timezone.now()
    expense.save(update_fields=['approval_status', 'approved_by', 'approved_at', 'updated_at'])
    create_audit_log(request=request, action='approve', model_name='Expense', object_id=expense.id,
                     object_name=expense.category.name, object_reference=expense.reference,
                     changes={'amount': str(expense.amount)})
    logger.info(f"Expense {expense.reference} approved by {request.user.username}")
    return Response(ExpenseSerializer(expense).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def expense_reject(request, pk):
    if not is_admin_user(request.user):
        return _admin_required()
    expense = get_object_or_404(Expense.objects.select_related('category'), pk=pk)
    if expense.approval_status != 'pending':
        return Response({'error': f'Expense is already {expense.approval_status}'},
                        status=status.HTTP_400_BAD_REQUEST)

    serializer = ExpenseRejectSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    expense.approval_status = 'rejected'
    expense.approved_by = request.user
    expense.approved_at = timezone.now()
    expense.rejection_reason = serializer.validated_data['reason']
    expense.save(update_fields=['approval_status', 'approved_by', 'approved_at', 'rejection_reason', 'updated_at'])
    create_audit_log(request=request, action='reject', model_name='Expense', object_id=expense.id,
                     object_name=expense.category.name, object_reference=expense.reference,
                     changes={'reason': expense.rejection_reason})
    return Response(ExpenseSerializer(expense).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def expense_summary_view(request):
    """Spending for ?month=YYYY-MM (default current month)"""
    month_param = request.query_params.get('month')
    try:
        month = parse_month(month_param) if month_param else timezone.localdate().replace(day=1)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(expense_summary(month))
