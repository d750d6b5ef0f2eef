"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from orbit.academics.models import Course, Trainer, Schedule, Certificate, Assessment
from orbit.academics.utils import (
    register_student, record_payment, generate_certificate_number,
)
from orbit.crm.models import Lead, Campaign, FollowUp, Post, CorporateLead, Meeting, EmailTemplate
from orbit.expenses.models import ExpenseCategory, Expense
from orbit.expenses.utils import generate_expense_reference
from orbit.hrm.models import Employee, PayrollRecord
from orbit.hrm.utils import generate_employee_id
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_phone():
        return f'05{random.randint(10000000, 99999999)}'

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='counselor', is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_admin(**kwargs):
        return TestDataFactory.create_user(role='admin', **kwargs)

    @staticmethod
    def create_superadmin(**kwargs):
        return TestDataFactory.create_user(role='superadmin', **kwargs)

    # Academics
    @staticmethod
    def create_course(name=None, fee=None, **rates):
        """Create a test course"""
        if not name:
            name = f'Course_{TestDataFactory.random_string(6)}'
        return Course.objects.create(
            name=name,
            fee=Decimal('1000.00') if fee is None else fee,
            duration='8 weeks',
            **rates
        )

    @staticmethod
    def create_trainer(full_name=None, courses=None):
        """Create a test trainer"""
        if not full_name:
            full_name = f'Trainer {TestDataFactory.random_string(6)}'
        trainer = Trainer.objects.create(
            full_name=full_name,
            email=f'{TestDataFactory.random_string(8).lower()}@trainers.test',
            phone=TestDataFactory.random_phone(),
            specialization='Testing',
        )
        if courses:
            trainer.courses.set(courses)
        return trainer

    @staticmethod
    def create_student(course=None, full_name=None, user=None, price=None, discount=None,
                       initial_payment=Decimal('0.00'), payment_mode='cash', **fields):
        """Register a test student for one course"""
        if not course:
            course = TestDataFactory.create_course()
        if not full_name:
            full_name = f'Student {TestDataFactory.random_string(6)}'
        student_data = {
            'full_name': full_name,
            'email': f'{TestDataFactory.random_string(8).lower()}@students.test',
            'phone': TestDataFactory.random_phone(),
            'class_type': 'offline',
        }
        student_data.update(fields)
        line = {'course': course}
        if price is not None:
            line['price'] = price
        if discount is not None:
            line['discount'] = discount
        return register_student(student_data, [line], user=user, initial_payment=initial_payment,
                                payment_mode=payment_mode)

    @staticmethod
    def create_invoice(student, amount=None, status='paid', payment_mode='cash', user=None):
        """Create a test invoice and refresh the student's balance"""
        if amount is None:
            amount = Decimal('100.00')
        return record_payment(student, amount, payment_mode, user=user, status=status)

    @staticmethod
    def create_schedule(course=None, trainer=None, start_time=None, hours=2, students=None, status='confirmed'):
        """Create a test schedule"""
        if not course:
            course = TestDataFactory.create_course()
        if not trainer:
            trainer = TestDataFactory.create_trainer(courses=[course])
        if not start_time:
            start_time = timezone.now() + timedelta(days=1)
        schedule = Schedule.objects.create(
            title=f'Session {TestDataFactory.random_string(4)}',
            course=course,
            trainer=trainer,
            start_time=start_time,
            end_time=start_time + timedelta(hours=hours),
            status=status,
        )
        if students:
            schedule.students.set(students)
        return schedule

    @staticmethod
    def create_certificate(student, course=None, issued_by=None):
        """Create a test certificate"""
        return Certificate.objects.create(
            certificate_number=generate_certificate_number(),
            student=student,
            course=course or student.course,
            issued_by=issued_by,
        )

    @staticmethod
    def create_assessment(student, score=Decimal('85.00'), course=None):
        return Assessment.objects.create(
            student=student,
            course=course or student.course,
            title=f'Quiz {TestDataFactory.random_string(4)}',
            score=score,
        )

    # CRM
    @staticmethod
    def create_campaign(name=None, **fields):
        """Create a test campaign"""
        if not name:
            name = f'Campaign_{TestDataFactory.random_string(6)}'
        return Campaign.objects.create(name=name, **fields)

    @staticmethod
    def create_lead(full_name=None, status='new', source='website', campaign=None, course=None, user=None):
        """Create a test lead"""
        if not full_name:
            full_name = f'Lead {TestDataFactory.random_string(6)}'
        return Lead.objects.create(
            full_name=full_name,
            phone=TestDataFactory.random_phone(),
            status=status,
            source=source,
            campaign=campaign,
            interested_course=course,
            assigned_to=user,
            created_by=user,
        )

    @staticmethod
    def create_follow_up(lead=None, due_date=None, status='pending', user=None):
        """Create a test follow-up"""
        if not lead:
            lead = TestDataFactory.create_lead()
        return FollowUp.objects.create(
            lead=lead,
            due_date=due_date or timezone.now() + timedelta(days=1),
            status=status,
            created_by=user,
        )

    @staticmethod
    def create_post(user=None, title=None, tags=None, status='pending', filename='flyer.png'):
        """Create a test marketing post with a small uploaded file"""
        return Post.objects.create(
            title=title or f'Post {TestDataFactory.random_string(6)}',
            category='flyers',
            file=SimpleUploadedFile(filename, b'test-file-content', content_type='image/png'),
            tags=tags or [],
            status=status,
            created_by=user,
        )

    @staticmethod
    def create_corporate_lead(company_name=None, status='new', priority='medium', consultant=None):
        """Create a test corporate lead"""
        return CorporateLead.objects.create(
            company_name=company_name or f'Company {TestDataFactory.random_string(6)}',
            contact_person='Test Contact',
            phone=TestDataFactory.random_phone(),
            status=status,
            priority=priority,
            consultant=consultant,
            created_by=consultant,
        )

    @staticmethod
    def create_meeting(lead=None, corporate_lead=None, meeting_date=None, status='scheduled', user=None,
                       assigned_to=None):
        """Create a test meeting"""
        return Meeting.objects.create(
            title=f'Meeting {TestDataFactory.random_string(6)}',
            lead=lead,
            corporate_lead=corporate_lead,
            meeting_date=meeting_date or timezone.now() + timedelta(days=1),
            status=status,
            assigned_to=assigned_to or user,
            created_by=user,
        )

    @staticmethod
    def create_email_template(name=None, category='general', subject='Hello {{ name }}',
                              body='Dear {{ name }},\n\nWelcome to {{ institute.name }}.'):
        """Create a test email template"""
        return EmailTemplate.objects.create(
            name=name or f'Template {TestDataFactory.random_string(6)}',
            category=category,
            subject=subject,
            body=body,
        )

    # HRM
    @staticmethod
    def create_employee(full_name=None, department='Training', base_salary=None, **fields):
        """Create a test employee"""
        if not full_name:
            full_name = f'Employee {TestDataFactory.random_string(6)}'
        return Employee.objects.create(
            employee_id=generate_employee_id(),
            full_name=full_name,
            email=f'{TestDataFactory.random_string(8).lower()}@staff.test',
            department=department,
            position='Coordinator',
            base_salary=Decimal('5000.00') if base_salary is None else base_salary,
            **fields
        )

    @staticmethod
    def create_payroll(employee=None, month=None, status='pending', allowances=Decimal('0.00'),
                       deductions=Decimal('0.00')):
        """Create a test payroll record"""
        if not employee:
            employee = TestDataFactory.create_employee()
        return PayrollRecord.objects.create(
            employee=employee,
            month=month or timezone.localdate().replace(day=1),
            base_salary=employee.base_salary,
            allowances=allowances,
            deductions=deductions,
            status=status,
        )

    # Expenses
    @staticmethod
    def create_expense_category(name=None, monthly_budget=Decimal('1000.00'), active=True):
        """Create a test expense category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return ExpenseCategory.objects.create(name=name, monthly_budget=monthly_budget, active=active)

    @staticmethod
    def create_expense(category=None, amount=None, approval_status='pending', user=None, date=None):
        """Create a test expense"""
        if not category:
            category = TestDataFactory.create_expense_category()
        return Expense.objects.create(
            reference=generate_expense_reference(),
            category=category,
            amount=Decimal('250.00') if amount is None else amount,
            description='Test expense',
            approval_status=approval_status,
            added_by=user,
            date=date or timezone.localdate(),
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
