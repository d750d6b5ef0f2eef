"""
Test suite for the CRM module
Tests: Leads, Lead conversion, Campaigns, Follow-ups, Marketing posts,
Corporate leads, Meetings, Email templates and history
"""
import shutil
import tempfile
from datetime import timedelta
from decimal import Decimal
from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from orbit.academics.models import Student
from orbit.core.models import AuditLog
from orbit.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import Post, CorporateLead, Meeting, EmailLog

MEDIA_ROOT = tempfile.mkdtemp()


class LeadTests(TestCase):
    """Test lead endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_lead_assigns_creator(self):
        """New leads default to the creating counselor"""
        response = self.client.post('/api/v1/crm/leads/', {
            'full_name': 'Hamza Yusuf', 'phone': '0501112222', 'source': 'walk_in',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['assigned_to'], self.user.id)
        self.assertEqual(response.data['status'], 'new')

    def test_campaign_source_requires_campaign(self):
        response = self.client.post('/api/v1/crm/leads/', {
            'full_name': 'Hamza Yusuf', 'phone': '0501112222', 'source': 'campaign',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('campaign', response.data)

    def test_status_cannot_be_set_to_converted_directly(self):
        """Conversion only happens through the convert endpoint"""
        lead = TestDataFactory.create_lead()
        response = self.client.patch(f'/api/v1/crm/leads/{lead.id}/', {'status': 'converted'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_leads_by_status(self):
        """Leads can be filtered by status"""
        TestDataFactory.create_lead(status='qualified')
        TestDataFactory.create_lead(status='new')
        response = self.client.get('/api/v1/crm/leads/?status=qualified')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_invalid_filter_value(self):
        response = self.client.get('/api/v1/crm/leads/?status=bogus')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_counselor_cannot_delete_lead(self):
        lead = TestDataFactory.create_lead()
        response = self.client.delete(f'/api/v1/crm/leads/{lead.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class LeadConversionTests(TestCase):
    """Test converting leads into students"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.course = TestDataFactory.create_course(fee=Decimal('1500.00'))

    def test_convert_lead(self):
        """Conversion registers a student and links it to the lead"""
        lead = TestDataFactory.create_lead(full_name='Mariam Saeed', status='qualified', course=self.course)
        response = self.client.post(f'/api/v1/crm/leads/{lead.id}/convert/', {
            'discount': '20', 'initial_payment': '200.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['student']['full_name'], 'Mariam Saeed')
        self.assertEqual(response.data['student']['total_fee'], '1200.00')
        self.assertEqual(response.data['student']['balance_due'], '1000.00')

        lead.refresh_from_db()
        self.assertEqual(lead.status, 'converted')
        self.assertIsNotNone(lead.converted_at)
        self.assertEqual(lead.converted_student.full_name, 'Mariam Saeed')
        self.assertTrue(AuditLog.objects.filter(action='convert', object_id=str(lead.id)).exists())

    def test_convert_twice_rejected(self):
        lead = TestDataFactory.create_lead(course=self.course)
        self.client.post(f'/api/v1/crm/leads/{lead.id}/convert/', {}, format='json')
        response = self.client.post(f'/api/v1/crm/leads/{lead.id}/convert/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Student.objects.count(), 1)

    def test_convert_requires_course(self):
        """A lead without an interested course needs one in the request"""
        lead = TestDataFactory.create_lead()
        response = self.client.post(f'/api/v1/crm/leads/{lead.id}/convert/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/api/v1/crm/leads/{lead.id}/convert/', {'course': self.course.id},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_overpayment_leaves_lead_unconverted(self):
        lead = TestDataFactory.create_lead(course=self.course)
        response = self.client.post(f'/api/v1/crm/leads/{lead.id}/convert/', {
            'initial_payment': '9999.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        lead.refresh_from_db()
        self.assertEqual(lead.status, 'new')


class CampaignTests(TestCase):
    """Test campaign endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_campaign_stats(self):
        """Campaign stats derive from clicks, spend and attributed leads"""
        campaign = TestDataFactory.create_campaign(
            status='active', impressions=1000, clicks=50, spent=Decimal('300.00'),
        )
        TestDataFactory.create_lead(campaign=campaign, source='campaign', status='converted')
        TestDataFactory.create_lead(campaign=campaign, source='campaign')
        response = self.client.get(f'/api/v1/crm/campaigns/{campaign.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data['stats']
        self.assertEqual(stats['leads'], 2)
        self.assertEqual(stats['conversions'], 1)
        self.assertEqual(stats['ctr'], 5.0)
        self.assertEqual(stats['conversion_rate'], 50.0)
        self.assertEqual(stats['cost_per_lead'], '150.00')
        self.assertEqual(stats['cost_per_click'], '6.00')

    def test_clicks_cannot_exceed_impressions(self):
        response = self.client.post('/api/v1/crm/campaigns/', {
            'name': 'Spring intake', 'impressions': 10, 'clicks': 20,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_counselor_cannot_create_campaign(self):
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/crm/campaigns/', {'name': 'Spring intake'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class FollowUpTests(TestCase):
    """Test follow-up endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_first_follow_up_marks_lead_contacted(self):
        lead = TestDataFactory.create_lead()
        response = self.client.post('/api/v1/crm/follow-ups/', {
            'lead': lead.id, 'due_date': (timezone.now() + timedelta(days=1)).isoformat(), 'type': 'call',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        lead.refresh_from_db()
        self.assertEqual(lead.status, 'contacted')

    def test_overdue_filter(self):
        """?due=overdue returns pending follow-ups in the past"""
        TestDataFactory.create_follow_up(due_date=timezone.now() - timedelta(days=2))
        TestDataFactory.create_follow_up(due_date=timezone.now() + timedelta(days=2))
        response = self.client.get('/api/v1/crm/follow-ups/?due=overdue')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_complete_follow_up(self):
        follow_up = TestDataFactory.create_follow_up()
        response = self.client.post(f'/api/v1/crm/follow-ups/{follow_up.id}/complete/',
                                    {'outcome': 'Will visit on Monday'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')
        self.assertIsNotNone(response.data['completed_at'])

        response = self.client.post(f'/api/v1/crm/follow-ups/{follow_up.id}/complete/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class PostTests(TestCase):
    """Test marketing post endpoints"""

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_upload_post(self):
        """Uploads are pending with parsed tags"""
        upload = SimpleUploadedFile('banner.png', b'fake-image-bytes', content_type='image/png')
        response = self.client.post('/api/v1/crm/posts/', {
            'title': 'Summer banner', 'category': 'Banners', 'file': upload, 'tags': 'summer, Offers ,summer',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['tags'], ['summer', 'Offers'])
        self.assertEqual(response.data['file_type'], 'image')

    def test_non_media_upload_rejected(self):
        upload = SimpleUploadedFile('notes.txt', b'plain text', content_type='text/plain')
        response = self.client.post('/api/v1/crm/posts/', {'title': 'Notes', 'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pending_posts_hidden_from_other_counselors(self):
        """Counselors see approved posts and their own uploads"""
        TestDataFactory.create_post(user=self.other, status='pending')
        TestDataFactory.create_post(user=self.other, status='approved')
        TestDataFactory.create_post(user=self.user, status='pending')
        response = self.client.get('/api/v1/crm/posts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/crm/posts/')
        self.assertEqual(len(response.data), 3)

    def test_tag_search_is_case_insensitive(self):
        TestDataFactory.create_post(user=self.user, tags=['Summer', 'offers'])
        TestDataFactory.create_post(user=self.user, tags=['winter'])
        response = self.client.get('/api/v1/crm/posts/tags/?tags=summer')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = self.client.get('/api/v1/crm/posts/tags/')
        self.assertEqual(response.data, ['offers', 'Summer', 'winter'])

    def test_approve_post(self):
        """Only admins approve posts"""
        post = TestDataFactory.create_post(user=self.user)
        response = self.client.post(f'/api/v1/crm/posts/{post.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.post(f'/api/v1/crm/posts/{post.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'approved')
        self.assertEqual(response.data['approved_by'], self.admin.id)

    def test_download_counts(self):
        post = TestDataFactory.create_post(user=self.user, status='approved')
        response = self.client.get(f'/api/v1/crm/posts/{post.id}/download/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('attachment', response['Content-Disposition'])
        response.close()
        post.refresh_from_db()
        self.assertEqual(post.download_count, 1)

    def test_share_increments_count(self):
        post = TestDataFactory.create_post(user=self.user, status='approved')
        response = self.client.post(f'/api/v1/crm/posts/{post.id}/share/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['share_count'], 1)

    def test_counters_accumulate_across_requests(self):
        """Each download and share adds one even when the post was loaded earlier"""
        post = TestDataFactory.create_post(user=self.user, status='approved')
        for _ in range(2):
            response = self.client.get(f'/api/v1/crm/posts/{post.id}/download/')
            response.close()
            self.client.post(f'/api/v1/crm/posts/{post.id}/share/')
        response = self.client.post(f'/api/v1/crm/posts/{post.id}/share/')
        self.assertEqual(response.data['share_count'], 3)
        self.assertEqual(response.data['download_count'], 2)
        post.refresh_from_db()
        self.assertEqual(post.download_count, 2)
        self.assertEqual(post.share_count, 3)

    def test_other_counselor_cannot_edit(self):
        post = TestDataFactory.create_post(user=self.other, status='approved')
        response = self.client.patch(f'/api/v1/crm/posts/{post.id}/', {'title': 'Changed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Post.objects.get(pk=post.pk).title, post.title)


class CorporateLeadTests(TestCase):
    """Test corporate lead endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_defaults_consultant_to_creator(self):
        response = self.client.post('/api/v1/crm/corporate-leads/', {
            'company_name': 'Gulf Logistics LLC', 'contact_person': 'Rania Aziz', 'phone': '0504445555',
            'employee_count': 40, 'estimated_value': '18000.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['consultant'], self.user.id)
        self.assertEqual(response.data['created_by'], self.user.id)
        self.assertEqual(response.data['status'], 'new')
        self.assertTrue(AuditLog.objects.filter(model_name='CorporateLead', action='create').exists())

    def test_update_records_editor(self):
        lead = TestDataFactory.create_corporate_lead(consultant=self.admin)
        response = self.client.patch(f'/api/v1/crm/corporate-leads/{lead.id}/',
                                     {'status': 'proposal_sent'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        lead.refresh_from_db()
        self.assertEqual(lead.status, 'proposal_sent')
        self.assertEqual(lead.updated_by, self.user)

    def test_filter_by_status_priority_and_consultant(self):
        TestDataFactory.create_corporate_lead(status='won', priority='high', consultant=self.user)
        TestDataFactory.create_corporate_lead(status='won', priority='low', consultant=self.admin)
        TestDataFactory.create_corporate_lead(status='new', priority='high', consultant=self.user)

        response = self.client.get('/api/v1/crm/corporate-leads/?status=won')
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/crm/corporate-leads/?priority=high')
        self.assertEqual(len(response.data), 2)
        response = self.client.get(f'/api/v1/crm/corporate-leads/?consultant={self.admin.id}')
        self.assertEqual(len(response.data), 1)

    def test_invalid_status_filter_rejected(self):
        response = self.client.get('/api/v1/crm/corporate-leads/?status=archived')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_requires_admin(self):
        lead = TestDataFactory.create_corporate_lead()
        response = self.client.delete(f'/api/v1/crm/corporate-leads/{lead.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/crm/corporate-leads/{lead.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CorporateLead.objects.filter(pk=lead.id).exists())


class MeetingTests(TestCase):
    """Test meeting endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_schedule_meeting_with_lead(self):
        """Scheduling a meeting with a new lead marks the lead contacted"""
        lead = TestDataFactory.create_lead()
        response = self.client.post('/api/v1/crm/meetings/', {
            'title': 'Campus tour', 'lead': lead.id,
            'meeting_date': (timezone.now() + timedelta(days=2)).isoformat(), 'duration': 45,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['assigned_to'], self.user.id)
        self.assertEqual(response.data['lead_name'], lead.full_name)
        lead.refresh_from_db()
        self.assertEqual(lead.status, 'contacted')

    def test_meeting_cannot_target_both_lead_kinds(self):
        response = self.client.post('/api/v1/crm/meetings/', {
            'title': 'Mixed', 'lead': TestDataFactory.create_lead().id,
            'corporate_lead': TestDataFactory.create_corporate_lead().id,
            'meeting_date': timezone.now().isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_meetings(self):
        lead = TestDataFactory.create_lead()
        company = TestDataFactory.create_corporate_lead()
        tomorrow = timezone.now() + timedelta(days=1)
        TestDataFactory.create_meeting(lead=lead, user=self.user, meeting_date=tomorrow)
        TestDataFactory.create_meeting(corporate_lead=company, user=self.other, meeting_date=tomorrow,
                                       status='completed')
        TestDataFactory.create_meeting(user=self.user, meeting_date=tomorrow + timedelta(days=3))

        response = self.client.get(f'/api/v1/crm/meetings/?lead={lead.id}')
        self.assertEqual(len(response.data), 1)
        response = self.client.get(f'/api/v1/crm/meetings/?corporate_lead={company.id}')
        self.assertEqual(len(response.data), 1)
        response = self.client.get(f'/api/v1/crm/meetings/?assigned_to={self.user.id}')
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/crm/meetings/?status=completed')
        self.assertEqual(len(response.data), 1)
        response = self.client.get(f'/api/v1/crm/meetings/?date={timezone.localtime(tomorrow).date()}')
        self.assertEqual(len(response.data), 2)

    def test_invalid_date_filter_rejected(self):
        response = self.client.get('/api/v1/crm/meetings/?date=tomorrow')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_records_editor(self):
        meeting = TestDataFactory.create_meeting(user=self.other)
        response = self.client.patch(f'/api/v1/crm/meetings/{meeting.id}/',
                                     {'status': 'completed', 'outcome': 'Enrolling next week'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated_by'], self.user.id)

    def test_delete_limited_to_admin_creator_or_assignee(self):
        meeting = TestDataFactory.create_meeting(user=self.other)
        response = self.client.delete(f'/api/v1/crm/meetings/{meeting.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        assigned = TestDataFactory.create_meeting(user=self.other, assigned_to=self.user)
        response = self.client.delete(f'/api/v1/crm/meetings/{assigned.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/crm/meetings/{meeting.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(Meeting.objects.count(), 0)


class EmailTests(TestCase):
    """Test email templates, sending and history"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_template_with_bad_syntax_rejected(self):
        response = self.client.post('/api/v1/email/templates/', {
            'name': 'Broken', 'subject': 'Hi {% if %}', 'body': 'Body',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('subject', response.data)

    def test_filter_templates_by_category(self):
        TestDataFactory.create_email_template(category='lead')
        TestDataFactory.create_email_template(category='invoice')
        response = self.client.get('/api/v1/email/templates/?category=lead')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_delete_template_requires_admin(self):
        template = TestDataFactory.create_email_template()
        response = self.client.delete(f'/api/v1/email/templates/{template.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/email/templates/{template.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_send_template_to_lead(self):
        """Templates render with the lead's name and the send is recorded"""
        lead = TestDataFactory.create_lead(full_name='Omar Haddad')
        lead.email = 'omar@example.com'
        lead.save()
        template = TestDataFactory.create_email_template()
        response = self.client.post('/api/v1/email/send/', {'template': template.id, 'lead': lead.id},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['subject'], 'Hello Omar Haddad')
        self.assertEqual(response.data['recipient'], 'omar@example.com')
        self.assertEqual(response.data['status'], 'sent')
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn('Dear Omar Haddad', mail.outbox[0].body)
        lead.refresh_from_db()
        self.assertEqual(lead.status, 'contacted')

    def test_send_requires_content_and_address(self):
        response = self.client.post('/api/v1/email/send/', {'recipient': 'a@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        lead = TestDataFactory.create_lead()
        response = self.client.post('/api/v1/email/send/', {
            'lead': lead.id, 'subject': 'Hi', 'body': 'Hello',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('recipient', response.data)

    @patch('orbit.academics.notifications.send_mail', side_effect=SMTPException('Relay denied'))
    def test_failed_send_is_recorded(self, send_mail_mock):
        response = self.client.post('/api/v1/email/send/', {
            'recipient': 'a@example.com', 'subject': 'Hi', 'body': 'Hello',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        log = EmailLog.objects.get()
        self.assertEqual(log.status, 'failed')
        self.assertIn('Relay denied', log.error)

    def test_history_filters_by_student(self):
        """History can be narrowed to one student"""
        student = TestDataFactory.create_student()
        self.client.post('/api/v1/email/send/', {
            'student': student.id, 'subject': 'Timetable', 'body': 'See attached',
        }, format='json')
        self.client.post('/api/v1/email/send/', {
            'recipient': 'other@example.com', 'subject': 'Hi', 'body': 'Hello',
        }, format='json')

        response = self.client.get(f'/api/v1/email/history/?student={student.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['student_name'], student.full_name)
        self.assertEqual(response.data[0]['sent_by'], self.user.id)
