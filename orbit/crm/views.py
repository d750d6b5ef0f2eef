import logging
import os

from django.db import transaction
from django.db.models import F, Q
from django.http import FileResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from orbit.academics.notifications import deliver, render_template
from orbit.academics.serializers import StudentSerializer
from orbit.academics.utils import register_student
from orbit.core.models import Institute
from orbit.core.permissions import is_admin_user
from orbit.core.utils import create_audit_log, paginated_response
from .filters import LeadFilter, FollowUpFilter, CorporateLeadFilter, MeetingFilter, EmailLogFilter
from .models import Campaign, Lead, FollowUp, Post, CorporateLead, Meeting, EmailTemplate, EmailLog
from .serializers import (
    CampaignSerializer, LeadSerializer, LeadConvertSerializer, FollowUpSerializer, PostSerializer,
    CorporateLeadSerializer, MeetingSerializer, EmailTemplateSerializer, EmailLogSerializer, EmailSendSerializer,
)

logger = logging.getLogger(__name__)


def _admin_required():
    return Response({'error': 'Admin access required'}, status=status.HTTP_403_FORBIDDEN)


# Lead views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def lead_list_create(request):
    """List leads (filterable) or create a new lead"""
    if request.method == 'GET':
        queryset = Lead.objects.select_related('interested_course', 'campaign', 'assigned_to', 'converted_student')
        lead_filter = LeadFilter(request.query_params, queryset=queryset)
        if not lead_filter.is_valid():
            return Response(lead_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, lead_filter.qs, LeadSerializer)

    serializer = LeadSerializer(data=request.data)
    if serializer.is_valid():
        assigned_to = serializer.validated_data.get('assigned_to') or request.user
        lead = serializer.save(created_by=request.user, assigned_to=assigned_to)
        create_audit_log(request=request, action='create', model_name='Lead',
                         object_id=lead.id, object_name=lead.full_name)
        return Response(LeadSerializer(lead).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def lead_detail(request, pk):
    """Retrieve, update or delete a lead"""
    lead = get_object_or_404(Lead, pk=pk)

    if request.method == 'GET':
        return Response(LeadSerializer(lead).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = LeadSerializer(lead, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Lead', object_id=lead.id,
                             object_name=lead.full_name,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not is_admin_user(request.user):
        return _admin_required()
    create_audit_log(request=request, action='delete', model_name='Lead', object_id=pk, object_name=lead.full_name)
    lead.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def lead_convert(request, pk):
    """Register a lead as a student and mark the lead converted"""
    lead = get_object_or_404(Lead.objects.select_related('interested_course'), pk=pk)
    if lead.status == 'converted':
        return Response({'error': 'Lead has already been converted'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = LeadConvertSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    course = data.get('course') or lead.interested_course
    if course is None:
        return Response({'course': ['A course is required to convert this lead']},
                        status=status.HTTP_400_BAD_REQUEST)

    student_data = {
        'full_name': lead.full_name,
        'email': lead.email,
        'phone': lead.phone,
        'class_type': data['class_type'],
    }
    try:
        with transaction.atomic():
            student = register_student(
                student_data,
                [{'course': course, 'price': data.get('price'), 'discount': data['discount']}],
                user=request.user,
                initial_payment=data['initial_payment'],
                payment_mode=data['payment_mode'],
            )
            lead.status = 'converted'
            lead.converted_student = student
            lead.converted_at = timezone.now()
            lead.interested_course = course
            lead.save()
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='convert', model_name='Lead', object_id=lead.id,
                     object_name=lead.full_name, object_reference=student.student_id,
                     changes={'course': course.name})
    logger.info(f"Lead {lead.id} converted to student {student.student_id}")
    return Response({
        'message': 'Lead converted successfully',
        'lead': LeadSerializer(lead).data,
        'student': StudentSerializer(student).data,
    }, status=status.HTTP_201_CREATED)


# Campaign views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def campaign_list_create(request):
    """List campaigns with their statistics or create a new campaign"""
    if request.method == 'GET':
        campaigns = Campaign.objects.select_related('created_by')
        status_param = request.query_params.get('status')
        if status_param:
            campaigns = campaigns.filter(status=status_param)
        platform = request.query_params.get('platform')
        if platform:
            campaigns = campaigns.filter(platform=platform)
        return Response(CampaignSerializer(campaigns, many=True).data)

    if not is_admin_user(request.user):
        return _admin_required()
    serializer = CampaignSerializer(data=request.data)
    if serializer.is_valid():
        campaign = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='Campaign',
                         object_id=campaign.id, object_name=campaign.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def campaign_detail(request, pk):
    """Retrieve, update or delete a campaign"""
    campaign = get_object_or_404(Campaign, pk=pk)

    if request.method == 'GET':
        return Response(CampaignSerializer(campaign).data)

    if not is_admin_user(request.user):
        return _admin_required()

    if request.method in ('PUT', 'PATCH'):
        serializer = CampaignSerializer(campaign, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request=request, action='delete', model_name='Campaign', object_id=pk,
                     object_name=campaign.name)
    campaign.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Follow-up views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def follow_up_list_create(request):
    """List follow-ups or schedule a new one"""
    if request.method == 'GET':
        queryset = FollowUp.objects.select_related('lead', 'created_by')
        follow_up_filter = FollowUpFilter(request.query_params, queryset=queryset)
        if not follow_up_filter.is_valid():
            return Response(follow_up_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(FollowUpSerializer(follow_up_filter.qs, many=True).data)

    serializer = FollowUpSerializer(data=request.data)
    if serializer.is_valid():
        follow_up = serializer.save(created_by=request.user)
        lead = follow_up.lead
        if lead.status == 'new':
            lead.status = 'contacted'
            lead.save(update_fields=['status', 'updated_at'])
        return Response(FollowUpSerializer(follow_up).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def follow_up_detail(request, pk):
    """Retrieve, update or delete a follow-up"""
    follow_up = get_object_or_404(FollowUp.objects.select_related('lead'), pk=pk)

    if request.method == 'GET':
        return Response(FollowUpSerializer(follow_up).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = FollowUpSerializer(follow_up, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            follow_up = serializer.save()
            if follow_up.status == 'completed' and not follow_up.completed_at:
                follow_up.completed_at = timezone.now()
                follow_up.save(update_fields=['completed_at', 'updated_at'])
            return Response(FollowUpSerializer(follow_up).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    follow_up.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def follow_up_complete(request, pk):
    """Mark a follow-up completed and record its outcome"""
    follow_up = get_object_or_404(FollowUp.objects.select_related('lead'), pk=pk)
    if follow_up.status != 'pending':
        return Response({'error': f'Follow-up is already {follow_up.status}'}, status=status.HTTP_400_BAD_REQUEST)

    follow_up.status = 'completed'
    follow_up.completed_at = timezone.now()
    follow_up.outcome = request.data.get('outcome', follow_up.outcome) or ''
    follow_up.save(update_fields=['status', 'completed_at', 'outcome', 'updated_at'])
    return Response(FollowUpSerializer(follow_up).data)


# Post views
def _can_change_post(user, post):
    return is_admin_user(user) or post.created_by_id == user.id


def _visible_posts(user):
    posts = Post.objects.select_related('created_by', 'approved_by')
    if is_admin_user(user):
        return posts
    return posts.filter(Q(status='approved') | Q(created_by=user))


def _filter_by_tags(posts, tags):
    wanted = {tag.lower() for tag in tags}
    ids = [post.id for post in posts if wanted & {t.lower() for t in post.tags or []}]
    return posts.filter(id__in=ids)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def post_list_create(request):
    """List marketing posts or upload a new one"""
    if request.method == 'GET':
        posts = _visible_posts(request.user)
        category = request.query_params.get('category')
        if category:
            posts = posts.filter(category__iexact=category)
        status_param = request.query_params.get('status')
        if status_param:
            posts = posts.filter(status=status_param)
        if request.query_params.get('mine') in ('1', 'true'):
            posts = posts.filter(created_by=request.user)
        tag = request.query_params.get('tag')
        if tag:
            posts = _filter_by_tags(posts, [tag])
        return Response(PostSerializer(posts, many=True, context={'request': request}).data)

    serializer = PostSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        post = serializer.save(created_by=request.user)
        logger.info(f"Post '{post.title}' uploaded by {request.user.username}")
        return Response(PostSerializer(post, context={'request': request}).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def post_tags(request):
    """Posts matching any of ?tags=a,b, or every tag in use when no tags are given"""
    posts = _visible_posts(request.user)
    tags_param = request.query_params.get('tags')
    if tags_param:
        tags = [tag.strip() for tag in tags_param.split(',') if tag.strip()]
        posts = _filter_by_tags(posts, tags)
        return Response(PostSerializer(posts, many=True, context={'request': request}).data)

    tags = set()
    for post_tags_list in posts.values_list('tags', flat=True):
        tags.update(post_tags_list or [])
    return Response(sorted(tags, key=str.lower))


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def post_detail(request, pk):
    """Retrieve, update or delete a post"""
    post = get_object_or_404(_visible_posts(request.user), pk=pk)

    if request.method == 'GET':
        return Response(PostSerializer(post, context={'request': request}).data)

    if not _can_change_post(request.user, post):
        return Response({'error': "You don't have permission to change this post"},
                        status=status.HTTP_403_FORBIDDEN)

    if request.method == 'PATCH':
        old_file = post.file.name if post.file else None
        serializer = PostSerializer(post, data=request.data, partial=True, context={'request': request})
        if serializer.is_valid():
            post = serializer.save()
            if old_file and post.file.name != old_file:
                post.file.storage.delete(old_file)
            return Response(PostSerializer(post, context={'request': request}).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if post.file:
        post.file.delete(save=False)
    post.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def post_download(request, pk):
    """Stream a post's file as an attachment and count the download"""
    post = get_object_or_404(_visible_posts(request.user), pk=pk)
    if not post.file or not post.file.storage.exists(post.file.name):
        return Response({'error': 'Post file not found'}, status=status.HTTP_404_NOT_FOUND)

    Post.objects.filter(pk=post.pk).update(download_count=F('download_count') + 1)
    return FileResponse(post.file.open('rb'), as_attachment=True, filename=os.path.basename(post.file.name))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def post_share(request, pk):
    post = get_object_or_404(_visible_posts(request.user), pk=pk)
    Post.objects.filter(pk=post.pk).update(share_count=F('share_count') + 1, updated_at=timezone.now())
    post.refresh_from_db()
    return Response(PostSerializer(post, context={'request': request}).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def post_approve(request, pk):
    if not is_admin_user(request.user):
        return _admin_required()
    post = get_object_or_404(Post, pk=pk)
    if post.status == 'approved':
        return Response({'error': 'Post is already approved'}, status=status.HTTP_400_BAD_REQUEST)

    post.status = 'approved'
    post.approved_by = request.user
    post.approved_at = timezone.now()
    post.save(update_fields=['status', 'approved_by', 'approved_at', 'updated_at'])
    create_audit_log(request=request, action='approve', model_name='Post', object_id=post.id,
                     object_name=post.title)
    return Response(PostSerializer(post, context={'request': request}).data)


# Corporate lead views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def corporate_lead_list_create(request):
    """List corporate leads (filterable) or create one"""
    if request.method == 'GET':
        queryset = CorporateLead.objects.select_related('consultant')
        lead_filter = CorporateLeadFilter(request.query_params, queryset=queryset)
        if not lead_filter.is_valid():
            return Response(lead_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return paginated_response(request, lead_filter.qs, CorporateLeadSerializer)

    serializer = CorporateLeadSerializer(data=request.data)
    if serializer.is_valid():
        consultant = serializer.validated_data.get('consultant') or request.user
        lead = serializer.save(created_by=request.user, consultant=consultant)
        create_audit_log(request=request, action='create', model_name='CorporateLead',
                         object_id=lead.id, object_name=lead.company_name)
        return Response(CorporateLeadSerializer(lead).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def corporate_lead_detail(request, pk):
    """Retrieve, update or delete a corporate lead"""
    lead = get_object_or_404(CorporateLead, pk=pk)

    if request.method == 'GET':
        return Response(CorporateLeadSerializer(lead).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = CorporateLeadSerializer(lead, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save(updated_by=request.user)
            create_audit_log(request=request, action='update', model_name='CorporateLead', object_id=lead.id,
                             object_name=lead.company_name,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not is_admin_user(request.user):
        return _admin_required()
    create_audit_log(request=request, action='delete', model_name='CorporateLead', object_id=pk,
                     object_name=lead.company_name)
    lead.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Meeting views
def _can_delete_meeting(user, meeting):
    return is_admin_user(user) or user.id in (meeting.created_by_id, meeting.assigned_to_id)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def meeting_list_create(request):
    """List meetings or schedule a new one"""
    if request.method == 'GET':
        queryset = Meeting.objects.select_related('lead', 'corporate_lead', 'assigned_to')
        meeting_filter = MeetingFilter(request.query_params, queryset=queryset)
        if not meeting_filter.is_valid():
            return Response(meeting_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(MeetingSerializer(meeting_filter.qs, many=True).data)

    serializer = MeetingSerializer(data=request.data)
    if serializer.is_valid():
        assigned_to = serializer.validated_data.get('assigned_to') or request.user
        meeting = serializer.save(created_by=request.user, assigned_to=assigned_to)
        lead = meeting.lead
        if lead is not None and lead.status == 'new':
            lead.status = 'contacted'
            lead.save(update_fields=['status', 'updated_at'])
        logger.info(f"Meeting '{meeting.title}' scheduled for {meeting.meeting_date:%Y-%m-%d %H:%M}")
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def meeting_detail(request, pk):
    """Retrieve, update or delete a meeting; delete is limited to admins, the creator and the assignee"""
    meeting = get_object_or_404(Meeting.objects.select_related('lead', 'corporate_lead', 'assigned_to'), pk=pk)

    if request.method == 'GET':
        return Response(MeetingSerializer(meeting).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = MeetingSerializer(meeting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            meeting = serializer.save(updated_by=request.user)
            return Response(MeetingSerializer(meeting).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not _can_delete_meeting(request.user, meeting):
        return Response({'error': "You don't have permission to delete this meeting"},
                        status=status.HTTP_403_FORBIDDEN)
    meeting.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Email views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def email_template_list_create(request):
    if request.method == 'GET':
        templates = EmailTemplate.objects.all()
        category = request.query_params.get('category')
        if category:
            templates = templates.filter(category=category)
        if request.query_params.get('active') in ('1', 'true'):
            templates = templates.filter(active=True)
        return Response(EmailTemplateSerializer(templates, many=True).data)

    serializer = EmailTemplateSerializer(data=request.data)
    if serializer.is_valid():
        template = serializer.save(created_by=request.user)
        return Response(EmailTemplateSerializer(template).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def email_template_detail(request, pk):
    template = get_object_or_404(EmailTemplate, pk=pk)

    if request.method == 'GET':
        return Response(EmailTemplateSerializer(template).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = EmailTemplateSerializer(template, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not is_admin_user(request.user):
        return _admin_required()
    create_audit_log(request=request, action='delete', model_name='EmailTemplate', object_id=pk,
                     object_name=template.name)
    template.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def email_history(request):
    """Sent and failed emails, filterable by lead, student, status and date"""
    queryset = EmailLog.objects.select_related('template', 'lead', 'student', 'sent_by')
    history_filter = EmailLogFilter(request.query_params, queryset=queryset)
    if not history_filter.is_valid():
        return Response(history_filter.errors, status=status.HTTP_400_BAD_REQUEST)
    return paginated_response(request, history_filter.qs, EmailLogSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def email_send(request):
    """
    Send an email to a lead, a student or a plain address.

    With a template, the subject and body are rendered with `name`,
    `lead`, `student`, `institute` and `sender` in the context; explicit
    subject or body values take precedence. Responds 201 when delivered
    and 502 when the mail server rejected the message. Both are recorded
    in the email history.
    """
    serializer = EmailSendSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    lead = data.get('lead')
    student = data.get('student')
    template = data.get('template')
    subject, body = data.get('subject', ''), data.get('body', '')
    if template is not None:
        context = {
            'name': lead.full_name if lead else (student.full_name if student else ''),
            'lead': lead,
            'student': student,
            'institute': Institute.load(),
            'sender': request.user.display_name,
        }
        rendered_subject, rendered_body = render_template(template, context)
        subject = subject or rendered_subject
        body = body or rendered_body

    log = deliver(subject, body, [data['recipient']], student=student, lead=lead, template=template,
                  user=request.user)
    if log.status == 'failed':
        return Response({'error': 'Email could not be delivered', 'email': EmailLogSerializer(log).data},
                        status=status.HTTP_502_BAD_GATEWAY)

    if lead is not None and lead.status == 'new':
        lead.status = 'contacted'
        lead.save(update_fields=['status', 'updated_at'])
    return Response(EmailLogSerializer(log).data, status=status.HTTP_201_CREATED)
