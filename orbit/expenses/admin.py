from django.contrib import admin
from .models import ExpenseCategory, Expense


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'monthly_budget', 'active']
    list_filter = ['active']
    search_fields = ['name']


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ['reference', 'date', 'category', 'amount', 'payment_method', 'approval_status', 'added_by']
    list_filter = ['approval_status', 'payment_method', 'category', 'date']
    search_fields = ['reference', 'description', 'vendor']
    readonly_fields = ['reference', 'approved_by', 'approved_at', 'created_at', 'updated_at']
