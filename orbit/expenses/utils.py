"""
Expense numbering and monthly summaries
"""
from decimal import Decimal

from django.db.models import Sum, Count, Q

from orbit.core.utils import generate_document_number, add_months
from .models import Expense, ExpenseCategory


def generate_expense_reference():
    return generate_document_number(Expense, 'reference', 'EXP')


def expense_summary(month):
    """Spending for a month: per category against budget, and per approval status"""
    month = month.replace(day=1)
    next_month = add_months(month, 1)
    expenses = Expense.objects.filter(date__gte=month, date__lt=next_month)

    spent_by_category = {
        row['category_id']: row
        for row in expenses.values('category_id').annotate(
            total=Sum('amount', filter=Q(approval_status='approved')),
            pending=Sum('amount', filter=Q(approval_status='pending')),
            count=Count('id'),
        )
    }

    by_category = []
    for category in ExpenseCategory.objects.all():
        row = spent_by_category.get(category.id)
        if row is None and not category.active:
            continue
        spent = (row['total'] if row else None) or Decimal('0.00')
        pending = (row['pending'] if row else None) or Decimal('0.00')
        budget = category.monthly_budget
        by_category.append({
            'category_id': category.id,
            'category': category.name,
            'budget': str(budget),
            'spent': str(spent),
            'pending': str(pending),
            'remaining': str(budget - spent),
            'over_budget': bool(budget) and spent > budget,
            'count': row['count'] if row else 0,
        })

    by_status = {choice: {'count': 0, 'total': '0.00'} for choice, _ in Expense.APPROVAL_STATUS_CHOICES}
    for row in expenses.values('approval_status').annotate(count=Count('id'), total=Sum('amount')):
        by_status[row['approval_status']] = {'count': row['count'], 'total': str(row['total'] or Decimal('0.00'))}

    total = expenses.aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    approved = expenses.filter(approval_status='approved').aggregate(total=Sum('amount'))['total'] or Decimal('0.00')
    return {
        'month': month.strftime('%Y-%m'),
        'total': str(total),
        'approved_total': str(approved),
        'by_category': by_category,
        'by_status': by_status,
    }
