"""
Test suite for the HRM module
Tests: Employees, Attendance, Payroll, Interviews
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from orbit.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import PayrollRecord
from .utils import generate_monthly_payroll


class HRMAccessTests(TestCase):
    """HR endpoints are restricted to admins"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_counselor_denied(self):
        for url in ('/api/v1/hrm/employees/', '/api/v1/hrm/payroll/', '/api/v1/hrm/interviews/'):
            response = self.client.get(url)
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, url)


class EmployeeTests(TestCase):
    """Test employee endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_employee(self):
        """Employees get a generated EMP number"""
        response = self.client.post('/api/v1/hrm/employees/', {
            'full_name': 'Rashid Karim',
            'email': 'rashid@orbit.test',
            'department': 'Sales',
            'position': 'Counselor',
            'base_salary': '6500.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['employee_id'].startswith('EMP-'))

    def test_filter_by_department(self):
        TestDataFactory.create_employee(department='Sales')
        TestDataFactory.create_employee(department='Training')
        response = self.client.get('/api/v1/hrm/employees/?department=Sales')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_visa_expiring_window(self):
        """Visas expiring inside the window (or already expired) are listed soonest first"""
        today = timezone.localdate()
        soon = TestDataFactory.create_employee(visa_expiry=today + timedelta(days=10))
        expired = TestDataFactory.create_employee(visa_expiry=today - timedelta(days=3))
        TestDataFactory.create_employee(visa_expiry=today + timedelta(days=90))
        TestDataFactory.create_employee(visa_expiry=today + timedelta(days=5), status='terminated')

        response = self.client.get('/api/v1/hrm/employees/visa-expiring/?days=30')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [expired.id, soon.id])
        self.assertEqual(response.data[1]['visa_days_remaining'], 10)

    def test_visa_expiring_bad_days(self):
        response = self.client.get('/api/v1/hrm/employees/visa-expiring/?days=soon')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_visa_expiring_days_out_of_range(self):
        """Windows past the date range or below zero are rejected"""
        for days in ('99999999', '-1', '3651'):
            response = self.client.get(f'/api/v1/hrm/employees/visa-expiring/?days={days}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, days)
        response = self.client.get('/api/v1/hrm/employees/visa-expiring/?days=3650')
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class AttendanceTests(TestCase):
    """Test staff attendance endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.employee = TestDataFactory.create_employee()

    def test_record_attendance(self):
        response = self.client.post('/api/v1/hrm/attendance/', {
            'employee': self.employee.id, 'date': '2026-03-02', 'check_in': '09:00', 'check_out': '17:30',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['hours_worked'], '8.50')

    def test_one_record_per_day(self):
        """A second record for the same employee and day is rejected"""
        payload = {'employee': self.employee.id, 'date': '2026-03-02', 'status': 'present'}
        self.client.post('/api/v1/hrm/attendance/', payload, format='json')
        response = self.client.post('/api/v1/hrm/attendance/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('date', response.data)

    def test_summary(self):
        """Summary counts statuses and unrecorded employees"""
        TestDataFactory.create_employee()
        self.client.post('/api/v1/hrm/attendance/', {
            'employee': self.employee.id, 'date': '2026-03-02', 'status': 'late',
        }, format='json')
        response = self.client.get('/api/v1/hrm/attendance/summary/?date=2026-03-02')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_employees'], 2)
        self.assertEqual(response.data['recorded'], 1)
        self.assertEqual(response.data['not_recorded'], 1)
        self.assertEqual(response.data['by_status']['late'], 1)
        self.assertEqual(response.data['attendance_rate'], 50.0)


class PayrollTests(TestCase):
    """Test payroll endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.employee = TestDataFactory.create_employee(base_salary=Decimal('5000.00'))

    def test_net_salary_computed(self):
        """Net salary is base plus allowances minus deductions"""
        response = self.client.post('/api/v1/hrm/payroll/', {
            'employee': self.employee.id, 'month': '2026-03', 'allowances': '750.00', 'deductions': '250.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['base_salary'], '5000.00')
        self.assertEqual(response.data['net_salary'], '5500.00')
        self.assertEqual(response.data['month'], '2026-03')

    def test_duplicate_month_rejected(self):
        TestDataFactory.create_payroll(self.employee, month=timezone.localdate().replace(day=1))
        response = self.client.post('/api/v1/hrm/payroll/', {
            'employee': self.employee.id, 'month': timezone.localdate().strftime('%Y-%m'),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_deductions_cannot_exceed_gross(self):
        response = self.client.post('/api/v1/hrm/payroll/', {
            'employee': self.employee.id, 'month': '2026-03', 'deductions': '9000.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_generate_skips_existing_and_inactive(self):
        """Generation creates one pending record per active employee without one"""
        month = timezone.localdate().replace(day=1)
        TestDataFactory.create_employee(status='terminated')
        TestDataFactory.create_employee()
        TestDataFactory.create_payroll(self.employee, month=month)

        response = self.client.post('/api/v1/hrm/payroll/generate/', {'month': month.strftime('%Y-%m')},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created'], 1)
        self.assertEqual(generate_monthly_payroll(month), [])

    def test_generate_bad_month(self):
        response = self.client.post('/api/v1/hrm/payroll/generate/', {'month': 'March'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_paid(self):
        record = TestDataFactory.create_payroll(self.employee)
        response = self.client.post(f'/api/v1/hrm/payroll/{record.id}/mark-paid/',
                                    {'payment_method': 'wps'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'paid')
        self.assertEqual(response.data['payment_method'], 'wps')
        self.assertIsNotNone(response.data['payment_date'])

        response = self.client.post(f'/api/v1/hrm/payroll/{record.id}/mark-paid/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_paid_record_cannot_be_deleted(self):
        record = TestDataFactory.create_payroll(self.employee, status='paid')
        response = self.client.delete(f'/api/v1/hrm/payroll/{record.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(PayrollRecord.objects.filter(pk=record.pk).exists())

    def test_summary(self):
        """Monthly summary splits paid and pending totals"""
        month = timezone.localdate().replace(day=1)
        TestDataFactory.create_payroll(self.employee, month=month, status='paid')
        TestDataFactory.create_payroll(TestDataFactory.create_employee(base_salary=Decimal('3000.00')),
                                       month=month)
        response = self.client.get(f'/api/v1/hrm/payroll/summary/?month={month:%Y-%m}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalPaid'], '5000.00')
        self.assertEqual(response.data['pendingAmount'], '3000.00')
        self.assertEqual(response.data['employeeCount'], 2)
        self.assertEqual(response.data['averageSalary'], '4000.00')
        self.assertEqual(len(response.data['monthlyTrend']), 6)


class InterviewTests(TestCase):
    """Test interview endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def _schedule(self):
        response = self.client.post('/api/v1/hrm/interviews/', {
            'candidate_name': 'Noura Faisal',
            'position': 'Trainer',
            'scheduled_at': (timezone.now() + timedelta(days=3)).isoformat(),
            'interviewers': ['Head of Training', ' '],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.data

    def test_schedule_interview(self):
        interview = self._schedule()
        self.assertEqual(interview['interviewers'], ['Head of Training'])
        self.assertEqual(interview['status'], 'scheduled')

    def test_feedback_completes_interview(self):
        interview = self._schedule()
        response = self.client.post(f"/api/v1/hrm/interviews/{interview['id']}/feedback/", {
            'feedback': 'Strong practical skills', 'decision': 'hired', 'score': 88,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')
        self.assertEqual(response.data['decision'], 'hired')

    def test_no_feedback_on_cancelled_interview(self):
        interview = self._schedule()
        self.client.patch(f"/api/v1/hrm/interviews/{interview['id']}/", {'status': 'cancelled'}, format='json')
        response = self.client.post(f"/api/v1/hrm/interviews/{interview['id']}/feedback/", {
            'feedback': 'n/a', 'decision': 'rejected',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
