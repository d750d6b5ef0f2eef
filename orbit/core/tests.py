"""
Test suite for the core module
Tests: Authentication, Users, Institute profile, Audit logs, Search, Numbering, Management commands
"""
import json
import os
import tempfile
from datetime import timedelta
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from orbit.academics.models import Course, Student
from .models import AuditLog
from .test_utils import TestDataFactory, AuthenticatedAPIClient
from .utils import generate_document_number

User = get_user_model()


class AuthTests(TestCase):
    """Test login, refresh and the current-user endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='counselor1')
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens_and_user(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'counselor1', 'password': 'testpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], 'counselor')
        self.assertTrue(AuditLog.objects.filter(action='login', user=self.user).exists())

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'counselor1', 'password': 'nope',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh(self):
        login = self.client.post('/api/v1/auth/login/', {
            'username': 'counselor1', 'password': 'testpass123',
        }, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_with_garbage_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_flags(self):
        """Capability flags follow the role"""
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_admin'])
        self.assertFalse(response.data['can_access_hrm'])

        admin = TestDataFactory.create_admin()
        self.client.authenticate_user(admin)
        response = self.client.get('/api/v1/auth/me/')
        self.assertTrue(response.data['is_admin'])
        self.assertTrue(response.data['can_approve_expenses'])
        self.assertFalse(response.data['can_issue_certificates'])

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserManagementTests(TestCase):
    """Test staff account management and role rules"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.superadmin = TestDataFactory.create_superadmin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def _payload(self, username, role='counselor', confirm='Orbit#2026pass'):
        return {
            'username': username,
            'email': f'{username}@orbit.test',
            'password': 'Orbit#2026pass',
            'password_confirm': confirm,
            'full_name': username.title(),
            'role': role,
        }

    def test_admin_creates_counselor(self):
        response = self.client.post('/api/v1/users/', self._payload('newcounselor'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'counselor')
        self.assertNotIn('password', response.data)

    def test_admin_cannot_create_admin(self):
        response = self.client.post('/api/v1/auth/register/', self._payload('newadmin', role='admin'),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.superadmin)
        response = self.client.post('/api/v1/auth/register/', self._payload('newadmin', role='admin'),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_password_mismatch(self):
        response = self.client.post('/api/v1/users/', self._payload('mismatch', confirm='Different#2026'),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_counselor_cannot_list_users(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_filter_by_role(self):
        response = self.client.get('/api/v1/users/?role=superadmin')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [self.superadmin.id])

    def test_admin_cannot_modify_other_admin(self):
        other_admin = TestDataFactory.create_admin()
        response = self.client.patch(f'/api/v1/users/{other_admin.id}/', {'full_name': 'Renamed'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_cannot_promote_counselor(self):
        response = self.client.patch(f'/api/v1/users/{self.user.id}/', {'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_counselor_cannot_change_own_role(self):
        """Role is read-only on the self-service profile"""
        self.client.authenticate_user(self.user)
        response = self.client.patch(f'/api/v1/users/{self.user.id}/', {'role': 'superadmin', 'phone': '0501'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, 'counselor')
        self.assertEqual(self.user.phone, '0501')

    def test_delete_rules(self):
        response = self.client.delete(f'/api/v1/users/{self.user.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.superadmin)
        response = self.client.delete(f'/api/v1/users/{self.superadmin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/users/{self.user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())


class ChangePasswordTests(TestCase):
    """Test password changes"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='pwuser')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_wrong_current_password(self):
        response = self.client.post(f'/api/v1/users/{self.user.id}/change-password/', {
            'current_password': 'wrong', 'new_password': 'Fresh#Pass2026', 'new_password_confirm': 'Fresh#Pass2026',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Current password is incorrect')

    def test_change_own_password(self):
        response = self.client.post(f'/api/v1/users/{self.user.id}/change-password/', {
            'current_password': 'testpass123',
            'new_password': 'Fresh#Pass2026',
            'new_password_confirm': 'Fresh#Pass2026',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        login = AuthenticatedAPIClient().post('/api/v1/auth/login/', {
            'username': 'pwuser', 'password': 'Fresh#Pass2026',
        }, format='json')
        self.assertEqual(login.status_code, status.HTTP_200_OK)

    def test_only_superadmin_resets_others(self):
        other = TestDataFactory.create_user()
        payload = {'new_password': 'Fresh#Pass2026', 'new_password_confirm': 'Fresh#Pass2026'}
        response = self.client.post(f'/api/v1/users/{other.id}/change-password/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_superadmin())
        response = self.client.post(f'/api/v1/users/{other.id}/change-password/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        other.refresh_from_db()
        self.assertTrue(other.check_password('Fresh#Pass2026'))


class InstituteTests(TestCase):
    """Test the institute profile"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_defaults(self):
        response = self.client.get('/api/v1/institute/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Orbit Institute')
        self.assertEqual(response.data['currency'], 'AED')

    def test_update_requires_admin(self):
        response = self.client.patch('/api/v1/institute/', {'phone': '+971 4 000 0000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.patch('/api/v1/institute/', {'phone': '+971 4 000 0000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['phone'], '+971 4 000 0000')


class AuditLogTests(TestCase):
    """Test audit log visibility"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.own = AuditLog.objects.create(user=self.user, action='create', model_name='Lead', object_id='1')
        self.other = AuditLog.objects.create(user=self.admin, action='approve', model_name='Expense',
                                             object_id='2')

    def test_counselor_sees_own_logs(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [self.own.id])

        response = self.client.get(f'/api/v1/audit-logs/{self.other.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_filters_and_pages(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/?model=Expense')
        self.assertEqual([row['id'] for row in response.data], [self.other.id])

        response = self.client.get('/api/v1/audit-logs/?page=1&page_size=1')
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(len(response.data['results']), 1)

    def test_date_range_filter(self):
        """Malformed dates are a 400, valid ones narrow the range"""
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/?date_from=yesterday')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('date_from', response.data['error'])
        response = self.client.get('/api/v1/audit-logs/?date_to=2026-13-40')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        AuditLog.objects.filter(pk=self.other.pk).update(created_at=timezone.now() - timedelta(days=30))
        today = timezone.localdate().isoformat()
        response = self.client.get(f'/api/v1/audit-logs/?date_from={today}&date_to={today}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [self.own.id])


class GlobalSearchTests(TestCase):
    """Test the global search endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_empty_query(self):
        response = self.client.get('/api/v1/search/?q=')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['students'], [])
        self.assertEqual(response.data['employees'], [])

    def test_finds_students_and_hides_employees(self):
        TestDataFactory.create_student(full_name='Zainab Searchable')
        TestDataFactory.create_employee(full_name='Zainab Payroll')

        response = self.client.get('/api/v1/search/?q=zainab')
        self.assertEqual(len(response.data['students']), 1)
        self.assertEqual(response.data['employees'], [])

        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/search/?q=zainab')
        self.assertEqual(len(response.data['employees']), 1)


class DocumentNumberTests(TestCase):
    """Test PREFIX-YYYY-NNN numbering"""

    def test_continues_from_highest(self):
        self.assertEqual(generate_document_number(Student, 'student_id', 'TST', year=2031), 'TST-2031-001')

        student = TestDataFactory.create_student()
        Student.objects.filter(pk=student.pk).update(student_id='TST-2031-007')
        self.assertEqual(generate_document_number(Student, 'student_id', 'TST', year=2031), 'TST-2031-008')
        self.assertEqual(generate_document_number(Student, 'student_id', 'TST', year=2032), 'TST-2032-001')


class ManagementCommandTests(TestCase):
    """Test the core management commands"""

    def setUp(self):
        handle, self.path = tempfile.mkstemp(suffix='.json')
        os.close(handle)

    def tearDown(self):
        os.remove(self.path)

    def test_create_default_users(self):
        call_command('create_default_users', '--password', 'Orbit#2026', stdout=StringIO())
        admin = User.objects.get(username='admin')
        self.assertEqual(admin.role, 'admin')
        self.assertTrue(admin.check_password('Orbit#2026'))
        self.assertEqual(User.objects.get(username='superadmin').role, 'superadmin')

        call_command('create_default_users', stdout=StringIO())
        self.assertEqual(User.objects.filter(username__in=['admin', 'superadmin']).count(), 2)

    def test_export_data(self):
        student = TestDataFactory.create_student()
        call_command('export_data', self.path, stdout=StringIO())
        with open(self.path, encoding='utf-8') as handle:
            payload = json.load(handle)
        self.assertEqual(set(payload), {'students', 'users', 'courses'})
        self.assertEqual(payload['students'][0]['student_id'], student.student_id)
        self.assertEqual(payload['students'][0]['course_id'], student.course_id)

    def test_import_skips_existing_rows(self):
        existing = TestDataFactory.create_course(name='Existing Course')
        payload = {
            'courses': [
                {'id': existing.id, 'name': 'Existing Course', 'fee': '1.00'},
                {'id': 9001, 'name': 'Imported Course', 'fee': '1500.00', 'content': ['Intro'],
                 'created_at': '2023-01-10T09:00:00Z'},
            ],
            'users': [
                {'id': 9002, 'username': 'imported', 'role': 'counselor', 'password': '!'},
            ],
            'students': [],
        }
        with open(self.path, 'w', encoding='utf-8') as handle:
            json.dump(payload, handle)

        out = StringIO()
        call_command('import_data', self.path, stdout=out)
        self.assertIn('2 imported, 1 skipped', out.getvalue())

        imported = Course.objects.get(pk=9001)
        self.assertEqual(str(imported.fee), '1500.00')
        self.assertEqual(Course.objects.get(pk=existing.pk).fee, existing.fee)
        self.assertTrue(User.objects.filter(username='imported').exists())

        out = StringIO()
        call_command('import_data', self.path, stdout=out)
        self.assertIn('0 imported, 3 skipped', out.getvalue())

    def test_seed_demo_data(self):
        call_command('seed_demo_data', '--students', '3', stdout=StringIO())
        self.assertEqual(Student.objects.count(), 3)
        self.assertEqual(Course.objects.count(), 5)
        self.assertTrue(User.objects.filter(username='admin').exists())
