"""
Test suite for the reports module
Tests: Formatting, Report generation and export formats, Dashboard, Analytics
"""
import io
from datetime import date, timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from openpyxl import load_workbook
from rest_framework import status

from orbit.core.models import AuditLog
from orbit.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .data import ReportData, ReportMetadata
from .exports import build_workbook, write_report_csv
from .formatting import format_currency, format_percent, format_date, format_date_range, percentage
from .pdf import render_report_pdf


class FormattingTests(TestCase):
    """Display helpers"""

    def test_currency(self):
        self.assertEqual(format_currency(Decimal('1234.5'), 'AED'), 'AED 1,234.50')
        self.assertEqual(format_currency(None, 'USD'), 'USD 0.00')

    def test_percent(self):
        self.assertEqual(format_percent(Decimal('12.345')), '12.3%')
        self.assertEqual(format_percent(0), '0.0%')

    def test_dates(self):
        self.assertEqual(format_date(date(2024, 3, 5)), 'Mar 5, 2024')
        self.assertEqual(format_date(None), '')
        self.assertEqual(format_date_range(date(2024, 1, 1), date(2024, 1, 31)), 'Jan 1, 2024 - Jan 31, 2024')

    def test_percentage_of_zero_is_zero(self):
        self.assertEqual(percentage(5, 0), Decimal('0'))
        self.assertEqual(percentage(1, 4), Decimal('25'))


class ReportRenderingTests(TestCase):
    """Rendering a ReportData in each format"""

    def setUp(self):
        self.report = ReportData(
            metadata=ReportMetadata(title='Sample Report', subtitle='For tests', prepared_by='Orbit Institute',
                                    date_range='Jan 1, 2024 - Jan 31, 2024'),
            summary_stats={'Total Leads': 3, 'Conversion Rate': '33.3%'},
            date_from=date(2024, 1, 1),
            date_to=date(2024, 1, 31),
        )
        self.report.add_table('Leads', ['Name', 'Note'], [['Ali', 'said "hi"'], ['Sara', None]])
        self.report.add_table('Empty', ['Col'], [])

    def test_filename(self):
        self.assertEqual(self.report.filename('pdf'), 'Sample_Report_20240101_20240131.pdf')

    def test_csv_layout(self):
        """Each table is its name, a header line, quoted rows and a blank line"""
        stream = io.StringIO()
        write_report_csv(self.report, stream)
        self.assertEqual(stream.getvalue(), (
            'Leads\n'
            'Name,Note\n'
            '"Ali","said ""hi"""\n'
            '"Sara",""\n'
            '\n'
            'Empty\n'
            'Col\n'
            '\n'
        ))

    def test_csv_headers_with_commas_are_quoted(self):
        """Table names and headers containing commas stay a single cell"""
        report = ReportData(metadata=self.report.metadata, date_from=date(2024, 1, 1), date_to=date(2024, 1, 31))
        report.add_table('Fees, AED', ['Student', 'Amount, AED'], [['Ali', '1,000.00']])
        stream = io.StringIO()
        write_report_csv(report, stream)
        self.assertEqual(stream.getvalue(), (
            '"Fees, AED"\n'
            'Student,"Amount, AED"\n'
            '"Ali","1,000.00"\n'
            '\n'
        ))

    def test_workbook_sheets(self):
        workbook = build_workbook(self.report)
        self.assertEqual(workbook.sheetnames, ['Summary', 'Leads', 'Empty'])
        sheet = workbook['Leads']
        self.assertEqual(sheet['A1'].value, 'Name')
        self.assertTrue(sheet['A1'].font.bold)
        self.assertEqual(sheet['B2'].value, 'said "hi"')

    def test_pdf_spans_pages_for_long_tables(self):
        self.report.add_table('Long', ['Row'], [[f'Row {i}'] for i in range(200)])
        pdf = render_report_pdf(self.report)
        self.assertTrue(pdf.startswith(b'%PDF'))
        pages = pdf.count(b"/Type /Page") - pdf.count(b"/Type /Pages")
        self.assertGreater(pages, 1)


class ReportEndpointTests(TestCase):
    """Test report listing and generation"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_admin_only_reports_hidden_from_counselors(self):
        response = self.client.get('/api/v1/reports/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 9)

        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/reports/')
        types = {row['type'] for row in response.data}
        self.assertIn('student-performance', types)
        self.assertNotIn('financial-summary', types)

        response = self.client.get('/api/v1/reports/financial-summary/?format=json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_financial_summary_json(self):
        """Profit counts approved expenses and paid payroll"""
        course = TestDataFactory.create_course(fee=Decimal('1000.00'))
        TestDataFactory.create_student(course=course, initial_payment=Decimal('600.00'), payment_mode='card')
        TestDataFactory.create_expense(amount=Decimal('100.00'), approval_status='approved')
        TestDataFactory.create_expense(amount=Decimal('999.00'))
        TestDataFactory.create_payroll(TestDataFactory.create_employee(base_salary=Decimal('200.00')),
                                       status='paid')

        response = self.client.get('/api/v1/reports/financial-summary/?format=json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data['summary_stats']
        self.assertEqual(stats['Total Revenue'], 'AED 600.00')
        self.assertEqual(stats['Total Expenses'], 'AED 300.00')
        self.assertEqual(stats['Net Profit'], 'AED 300.00')
        self.assertEqual(stats['Profit Margin'], '50.0%')
        self.assertEqual(stats['Pending Payments'], 'AED 400.00')
        self.assertEqual(response.data['tables']['Revenue by Payment Mode']['rows'][0][0], 'Card')

    def test_export_is_audited(self):
        response = self.client.get('/api/v1/reports/lead-conversion/?format=csv')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(AuditLog.objects.filter(action='export', object_id='lead-conversion').exists())

    def test_csv_export(self):
        TestDataFactory.create_lead(status='converted', source='referral')
        response = self.client.get('/api/v1/reports/lead-conversion/?format=csv')
        self.assertEqual(response['Content-Type'], 'text/csv; charset=utf-8')
        self.assertIn('attachment; filename="Lead_Conversion_Report_', response['Content-Disposition'])
        body = response.content.decode('utf-8-sig')
        self.assertTrue(body.startswith('Leads by Source\nSource,Leads,Conversions,Conversion Rate\n'))
        self.assertIn('"Referral","1","1","100.0%"', body)

    def test_xlsx_export(self):
        response = self.client.get('/api/v1/reports/expense-summary/?format=xlsx')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        workbook = load_workbook(io.BytesIO(response.content))
        self.assertIn('Summary', workbook.sheetnames)
        self.assertIn('By Category', workbook.sheetnames)

    def test_pdf_is_default(self):
        response = self.client.get('/api/v1/reports/payroll-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_student_performance_requires_student(self):
        response = self.client.get('/api/v1/reports/student-performance/?format=json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/v1/reports/student-performance/?format=json&student=99999')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_student_performance(self):
        student = TestDataFactory.create_student(full_name='Yara Nabil')
        TestDataFactory.create_assessment(student, score=Decimal('90.00'))
        TestDataFactory.create_assessment(student, score=Decimal('70.00'))
        response = self.client.get(f'/api/v1/reports/student-performance/?format=json&student={student.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['metadata']['prepared_for'], 'Yara Nabil')
        self.assertEqual(response.data['summary_stats']['Average Score'], '80.0%')
        self.assertEqual(len(response.data['tables']['Assessments']['rows']), 2)

    def test_trainer_performance(self):
        course = TestDataFactory.create_course()
        trainer = TestDataFactory.create_trainer(courses=[course])
        student = TestDataFactory.create_student(course=course)
        TestDataFactory.create_schedule(course=course, trainer=trainer, students=[student],
                                        start_time=timezone.now() - timedelta(days=2), hours=3)
        response = self.client.get(f'/api/v1/reports/trainer-performance/?format=json&trainer={trainer.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary_stats']['Total Sessions'], '1')
        self.assertEqual(response.data['summary_stats']['Total Hours'], '3.00')
        self.assertEqual(response.data['summary_stats']['Total Students'], '1')

    def test_visa_expiry(self):
        today = timezone.localdate()
        TestDataFactory.create_employee(visa_expiry=today + timedelta(days=5))
        TestDataFactory.create_employee(visa_expiry=today - timedelta(days=5))
        response = self.client.get('/api/v1/reports/visa-expiry/?format=json&days=10')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary_stats'], {'Expiring': '1', 'Expired': '1'})

    def test_visa_expiry_days_out_of_range(self):
        for days in ('99999999', '-1'):
            response = self.client.get(f'/api/v1/reports/visa-expiry/?format=json&days={days}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, days)

    def test_course_performance(self):
        """Enrollments, completions and paid revenue for one course"""
        course = TestDataFactory.create_course(fee=Decimal('1000.00'))
        finished = TestDataFactory.create_student(course=course, initial_payment=Decimal('600.00'))
        TestDataFactory.create_student(course=course)
        TestDataFactory.create_student()
        TestDataFactory.create_certificate(finished, course=course)

        response = self.client.get('/api/v1/reports/course-performance/?format=json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get(f'/api/v1/reports/course-performance/?format=json&course={course.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data['summary_stats']
        self.assertEqual(stats['New Enrollments'], '2')
        self.assertEqual(stats['Completions'], '1')
        self.assertEqual(stats['Completion Rate'], '50.0%')
        self.assertEqual(stats['Revenue'], 'AED 600.00')
        self.assertEqual(len(response.data['tables']['Enrollments']['rows']), 2)
        self.assertEqual(response.data['tables']['Certificates']['rows'][0][1], finished.student_id)

    def test_campaign_performance(self):
        """Click and cost ratios across campaigns, narrowed by ?campaign="""
        summer = TestDataFactory.create_campaign(impressions=1000, clicks=50, spent=Decimal('100.00'))
        TestDataFactory.create_campaign(impressions=500, clicks=10, spent=Decimal('20.00'))
        TestDataFactory.create_lead(source='campaign', campaign=summer, status='converted')
        for _ in range(3):
            TestDataFactory.create_lead(source='campaign', campaign=summer)

        response = self.client.get('/api/v1/reports/campaign-performance/?format=json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data['summary_stats']
        self.assertEqual(stats['Impressions'], '1500')
        self.assertEqual(stats['Clicks'], '60')
        self.assertEqual(stats['Total Cost'], 'AED 120.00')
        self.assertEqual(stats['Cost per Click'], 'AED 2.00')
        self.assertEqual(len(response.data['tables']['Campaigns']['rows']), 2)

        response = self.client.get(f'/api/v1/reports/campaign-performance/?format=json&campaign={summer.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data['summary_stats']
        self.assertEqual(stats['Impressions'], '1000')
        self.assertEqual(stats['CTR'], '5.0%')
        self.assertEqual(stats['Conversion Rate'], '25.0%')
        self.assertEqual(stats['Cost per Click'], 'AED 2.00')
        self.assertEqual(stats['Cost per Lead'], 'AED 25.00')
        self.assertEqual(stats['Total Cost'], 'AED 100.00')
        self.assertEqual(len(response.data['tables']['Campaigns']['rows']), 1)
        self.assertEqual(len(response.data['tables']['Leads']['rows']), 4)

        response = self.client.get('/api/v1/reports/campaign-performance/?format=json&campaign=99999')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_invalid_requests(self):
        response = self.client.get('/api/v1/reports/does-not-exist/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.get('/api/v1/reports/lead-conversion/?format=docx')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/v1/reports/lead-conversion/?format=json&date_from=2024-02-01'
                                   '&date_to=2024-01-01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/v1/reports/lead-conversion/?format=json&date_from=01/02/2024')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DashboardTests(TestCase):
    """Test dashboard endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_stats(self):
        course = TestDataFactory.create_course(fee=Decimal('1000.00'))
        TestDataFactory.create_student(course=course, initial_payment=Decimal('250.00'))
        TestDataFactory.create_course(fee=Decimal('500.00'))
        response = self.client.get('/api/v1/dashboard/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalStudents'], 1)
        self.assertEqual(response.data['activeCourses'], 2)
        self.assertEqual(response.data['revenue'], 250.0)
        self.assertEqual(response.data['todayCollection'], 250.0)
        self.assertEqual(response.data['pendingFees'], 750.0)

    def test_stats_refresh_after_payment(self):
        """A new payment invalidates the cached stats"""
        student = TestDataFactory.create_student(course=TestDataFactory.create_course(fee=Decimal('1000.00')))
        self.assertEqual(self.client.get('/api/v1/dashboard/stats/').data['revenue'], 0.0)
        TestDataFactory.create_invoice(student, amount=Decimal('100.00'))
        self.assertEqual(self.client.get('/api/v1/dashboard/stats/').data['revenue'], 100.0)

    def test_due_payments_use_due_date(self):
        """Students are due from their due date, or their registration date when none is set"""
        today = timezone.localdate()
        course = TestDataFactory.create_course(fee=Decimal('800.00'))
        overdue = TestDataFactory.create_student(course=course, due_date=today - timedelta(days=1))
        TestDataFactory.create_student(course=course, due_date=today + timedelta(days=10))
        no_due_date = TestDataFactory.create_student(course=course)
        TestDataFactory.create_student(course=course, initial_payment=Decimal('800.00'))

        response = self.client.get('/api/v1/dashboard/due-payments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({row['id'] for row in response.data}, {overdue.id, no_due_date.id})
        self.assertEqual(response.data[0]['balanceDue'], '800.00')

    def test_activities_and_schedules(self):
        student = TestDataFactory.create_student()
        TestDataFactory.create_schedule(course=student.course)
        TestDataFactory.create_schedule(course=student.course, status='cancelled',
                                        start_time=timezone.now() + timedelta(days=3))

        response = self.client.get('/api/v1/dashboard/activities/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({row['type'] for row in response.data}, {'registration', 'schedule'})

        response = self.client.get('/api/v1/dashboard/schedules/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['courseName'], student.course.name)


class AnalyticsTests(TestCase):
    """Test analytics endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_overview(self):
        TestDataFactory.create_student(initial_payment=Decimal('100.00'))
        response = self.client.get('/api/v1/analytics/overview/?months=3')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['monthly']), 3)
        self.assertEqual(response.data['monthly'][-1]['registrations'], 1)
        self.assertEqual(response.data['monthly'][-1]['revenue'], '100.00')
        self.assertEqual(response.data['paymentStatus']['partial'], 1)

    def test_overview_months_bounds(self):
        response = self.client.get('/api/v1/analytics/overview/?months=48')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_crm_funnel(self):
        """Funnel stages include every lead that progressed past them"""
        for lead_status in ('new', 'contacted', 'qualified', 'converted', 'lost'):
            TestDataFactory.create_lead(status=lead_status)
        TestDataFactory.create_follow_up(due_date=timezone.now() - timedelta(days=2))

        response = self.client.get('/api/v1/analytics/crm/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        funnel = {row['stage']: row['count'] for row in response.data['funnel']}
        self.assertEqual(funnel, {'new': 5, 'contacted': 3, 'qualified': 2, 'converted': 1})
        self.assertEqual(response.data['totalLeads'], 6)
        self.assertEqual(response.data['overdueFollowUps'], 1)

    def test_crm_analytics_refresh_after_follow_up_completed(self):
        follow_up = TestDataFactory.create_follow_up()
        response = self.client.get('/api/v1/analytics/crm/')
        self.assertEqual(response.data['pendingFollowUps'], 1)

        self.client.post(f'/api/v1/crm/follow-ups/{follow_up.id}/complete/', {}, format='json')
        response = self.client.get('/api/v1/analytics/crm/')
        self.assertEqual(response.data['pendingFollowUps'], 0)

    def test_hrm_is_admin_only(self):
        response = self.client.get('/api/v1/analytics/hrm/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_admin())
        TestDataFactory.create_employee(department='Sales')
        response = self.client.get('/api/v1/analytics/hrm/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['headcount'], 1)
