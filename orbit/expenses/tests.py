"""
Test suite for the expenses module
Tests: Categories, Expenses, Approval workflow, Monthly summary
"""
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from orbit.core.models import AuditLog
from orbit.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ExpenseCategoryTests(TestCase):
    """Test expense category endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_category(self):
        response = self.client.post('/api/v1/expenses/categories/', {
            'name': 'Utilities', 'monthly_budget': '2000.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['expense_count'], 0)

    def test_counselor_cannot_create_category(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/expenses/categories/', {'name': 'Utilities'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_category_in_use_cannot_be_deleted(self):
        category = TestDataFactory.create_expense_category()
        TestDataFactory.create_expense(category=category)
        response = self.client.delete(f'/api/v1/expenses/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ExpenseTests(TestCase):
    """Test expense endpoints and the approval workflow"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.category = TestDataFactory.create_expense_category(name='Marketing')

    def test_record_expense(self):
        """New expenses are numbered and start pending"""
        response = self.client.post('/api/v1/expenses/', {
            'category': self.category.id, 'amount': '320.00', 'description': 'Flyer printing',
            'vendor': 'PrintHub', 'payment_method': 'card',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['reference'].startswith('EXP-'))
        self.assertEqual(response.data['approval_status'], 'pending')
        self.assertEqual(response.data['added_by'], self.user.id)

    def test_inactive_category_rejected(self):
        category = TestDataFactory.create_expense_category(active=False)
        response = self.client.post('/api/v1/expenses/', {
            'category': category.id, 'amount': '10.00', 'description': 'Coffee',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_zero_amount_rejected(self):
        response = self.client.post('/api/v1/expenses/', {
            'category': self.category.id, 'amount': '0.00', 'description': 'Nothing',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approve(self):
        """Admins approve pending expenses"""
        expense = TestDataFactory.create_expense(category=self.category)
        response = self.client.post(f'/api/v1/expenses/{expense.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.post(f'/api/v1/expenses/{expense.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['approval_status'], 'approved')
        self.assertEqual(response.data['approved_by'], self.admin.id)
        self.assertTrue(AuditLog.objects.filter(action='approve', model_name='Expense').exists())

        response = self.client.post(f'/api/v1/expenses/{expense.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reject_requires_reason(self):
        expense = TestDataFactory.create_expense(category=self.category)
        self.client.authenticate_user(self.admin)
        response = self.client.post(f'/api/v1/expenses/{expense.id}/reject/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/api/v1/expenses/{expense.id}/reject/', {'reason': 'No receipt'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['approval_status'], 'rejected')
        self.assertEqual(response.data['rejection_reason'], 'No receipt')

    def test_counselor_cannot_edit_approved_expense(self):
        expense = TestDataFactory.create_expense(category=self.category, approval_status='approved')
        response = self.client.patch(f'/api/v1/expenses/{expense.id}/', {'amount': '1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_filter_by_status(self):
        TestDataFactory.create_expense(category=self.category, approval_status='approved')
        TestDataFactory.create_expense(category=self.category)
        response = self.client.get('/api/v1/expenses/?approval_status=approved')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)


class ExpenseSummaryTests(TestCase):
    """Test the monthly spending summary"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_summary_against_budget(self):
        """Only approved spending counts against a category budget"""
        today = timezone.localdate()
        rent = TestDataFactory.create_expense_category(name='Rent', monthly_budget=Decimal('500.00'))
        TestDataFactory.create_expense(category=rent, amount=Decimal('400.00'), approval_status='approved',
                                       date=today)
        TestDataFactory.create_expense(category=rent, amount=Decimal('300.00'), approval_status='approved',
                                       date=today)
        TestDataFactory.create_expense(category=rent, amount=Decimal('50.00'), date=today)
        TestDataFactory.create_expense_category(name='Retired', active=False)

        response = self.client.get(f'/api/v1/expenses/summary/?month={today:%Y-%m}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '750.00')
        self.assertEqual(response.data['approved_total'], '700.00')
        self.assertEqual(len(response.data['by_category']), 1)

        row = response.data['by_category'][0]
        self.assertEqual(row['spent'], '700.00')
        self.assertEqual(row['pending'], '50.00')
        self.assertEqual(row['remaining'], '-200.00')
        self.assertTrue(row['over_budget'])
        self.assertEqual(response.data['by_status']['pending']['count'], 1)

    def test_bad_month(self):
        response = self.client.get('/api/v1/expenses/summary/?month=2026-13')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
