from rest_framework import serializers

from .models import ExpenseCategory, Expense


class ExpenseCategorySerializer(serializers.ModelSerializer):
    expense_count = serializers.SerializerMethodField()

    class Meta:
        model = ExpenseCategory
        fields = ['id', 'name', 'description', 'monthly_budget', 'active', 'expense_count',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_expense_count(self, obj):
        return obj.expenses.count()


class ExpenseSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    added_by_name = serializers.CharField(source='added_by.display_name', read_only=True, default=None)
    approved_by_name = serializers.CharField(source='approved_by.display_name', read_only=True, default=None)

    class Meta:
        model = Expense
        fields = ['id', 'reference', 'date', 'category', 'category_name', 'amount', 'description', 'vendor',
                  'payment_method', 'receipt', 'approval_status', 'approved_by', 'approved_by_name',
                  'approved_at', 'rejection_reason', 'added_by', 'added_by_name', 'created_at', 'updated_at']
        read_only_fields = ['reference', 'approval_status', 'approved_by', 'approved_at', 'rejection_reason',
                            'added_by', 'created_at', 'updated_at']

    def validate_category(self, value):
        if not value.active:
            raise serializers.ValidationError("This expense category is inactive")
        return value


class ExpenseRejectSerializer(serializers.Serializer):
    reason = serializers.CharField()
