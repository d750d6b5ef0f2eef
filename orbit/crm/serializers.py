import os
from decimal import Decimal

from django.conf import settings
from django.template import Template, TemplateSyntaxError
from rest_framework import serializers

from orbit.academics.models import Course, Student, CLASS_TYPE_CHOICES, PAYMENT_MODE_CHOICES
from .models import (
    Campaign, Lead, FollowUp, Post, CorporateLead, Meeting, EmailTemplate, EmailLog,
    IMAGE_EXTENSIONS, VIDEO_EXTENSIONS,
)


class CampaignSerializer(serializers.ModelSerializer):
    stats = serializers.SerializerMethodField()
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = Campaign
        fields = ['id', 'name', 'platform', 'status', 'budget', 'spent', 'impressions', 'clicks',
                  'start_date', 'end_date', 'description', 'stats', 'created_by', 'created_by_name',
                  'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_stats(self, obj):
        stats = obj.stats()
        stats['cost_per_click'] = str(stats['cost_per_click'])
        stats['cost_per_lead'] = str(stats['cost_per_lead'])
        return stats

    def validate(self, attrs):
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({'end_date': 'End date cannot be before start date'})
        clicks = attrs.get('clicks', getattr(self.instance, 'clicks', 0))
        impressions = attrs.get('impressions', getattr(self.instance, 'impressions', 0))
        if clicks and clicks > impressions:
            raise serializers.ValidationError({'clicks': 'Clicks cannot exceed impressions'})
        return attrs


class LeadSerializer(serializers.ModelSerializer):
    interested_course_name = serializers.CharField(source='interested_course.name', read_only=True, default=None)
    campaign_name = serializers.CharField(source='campaign.name', read_only=True, default=None)
    assigned_to_name = serializers.CharField(source='assigned_to.display_name', read_only=True, default=None)
    converted_student_code = serializers.CharField(source='converted_student.student_id', read_only=True,
                                                   default=None)

    class Meta:
        model = Lead
        fields = ['id', 'full_name', 'email', 'phone', 'source', 'status', 'priority',
                  'interested_course', 'interested_course_name', 'campaign', 'campaign_name',
                  'assigned_to', 'assigned_to_name', 'notes', 'converted_at', 'converted_student',
                  'converted_student_code', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['converted_at', 'converted_student', 'created_by', 'created_at', 'updated_at']

    def validate_status(self, value):
        if value == 'converted' and (self.instance is None or self.instance.status != 'converted'):
            raise serializers.ValidationError("Use the convert endpoint to convert a lead")
        return value

    def validate(self, attrs):
        if attrs.get('source') == 'campaign' and not attrs.get('campaign', getattr(self.instance, 'campaign', None)):
            raise serializers.ValidationError({'campaign': 'A campaign is required for campaign leads'})
        return attrs


class LeadConvertSerializer(serializers.Serializer):
    course = serializers.PrimaryKeyRelatedField(queryset=Course.objects.filter(active=True), required=False)
    class_type = serializers.ChoiceField(choices=CLASS_TYPE_CHOICES, default='offline')
    price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True,
                                     min_value=Decimal('0.00'))
    discount = serializers.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'),
                                        min_value=Decimal('0.00'), max_value=Decimal('100.00'))
    initial_payment = serializers.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                               min_value=Decimal('0.00'))
    payment_mode = serializers.ChoiceField(choices=PAYMENT_MODE_CHOICES, default='cash')


class FollowUpSerializer(serializers.ModelSerializer):
    lead_name = serializers.CharField(source='lead.full_name', read_only=True)
    lead_phone = serializers.CharField(source='lead.phone', read_only=True)
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = FollowUp
        fields = ['id', 'lead', 'lead_name', 'lead_phone', 'due_date', 'type', 'status', 'notes',
                  'outcome', 'completed_at', 'created_by', 'created_by_name', 'created_at', 'updated_at']
        read_only_fields = ['completed_at', 'created_by', 'created_at', 'updated_at']


class TagListField(serializers.Field):
    """Accepts a comma-separated string or a list and stores a list of tags"""

    def to_internal_value(self, data):
        if isinstance(data, str):
            items = data.split(',')
        elif isinstance(data, (list, tuple)):
            items = data
        else:
            raise serializers.ValidationError("Tags must be a comma-separated string or a list")
        tags = []
        for item in items:
            tag = str(item).strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags

    def to_representation(self, value):
        return list(value or [])


class PostSerializer(serializers.ModelSerializer):
    tags = TagListField(required=False)
    file_type = serializers.CharField(read_only=True)
    file_url = serializers.SerializerMethodField()
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)
    approved_by_name = serializers.CharField(source='approved_by.display_name', read_only=True, default=None)

    class Meta:
        model = Post
        fields = ['id', 'title', 'description', 'category', 'file', 'file_url', 'file_type', 'tags',
                  'status', 'approved_by', 'approved_by_name', 'approved_at', 'share_count',
                  'download_count', 'created_by', 'created_by_name', 'created_at', 'updated_at']
        read_only_fields = ['status', 'approved_by', 'approved_at', 'share_count', 'download_count',
                            'created_by', 'created_at', 'updated_at']

    def get_file_url(self, obj):
        if not obj.file:
            return None
        request = self.context.get('request')
        if request is not None:
            return request.build_absolute_uri(obj.file.url)
        return obj.file.url

    def validate_file(self, value):
        ext = os.path.splitext(value.name)[1].lower()
        if ext not in IMAGE_EXTENSIONS + VIDEO_EXTENSIONS:
            raise serializers.ValidationError("Only images and videos are allowed for posts")
        max_bytes = settings.POST_UPLOAD_MAX_BYTES
        if value.size > max_bytes:
            raise serializers.ValidationError(f"File exceeds the {max_bytes // (1024 * 1024)}MB limit")
        return value


class CorporateLeadSerializer(serializers.ModelSerializer):
    consultant_name = serializers.CharField(source='consultant.display_name', read_only=True, default=None)
    meeting_count = serializers.IntegerField(source='meetings.count', read_only=True)

    class Meta:
        model = CorporateLead
        fields = ['id', 'company_name', 'contact_person', 'designation', 'email', 'phone', 'industry',
                  'employee_count', 'requirements', 'source', 'status', 'priority', 'estimated_value',
                  'consultant', 'consultant_name', 'notes', 'meeting_count', 'created_by', 'updated_by',
                  'created_at', 'updated_at']
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']


class MeetingSerializer(serializers.ModelSerializer):
    lead_name = serializers.CharField(source='lead.full_name', read_only=True, default=None)
    corporate_lead_name = serializers.CharField(source='corporate_lead.company_name', read_only=True, default=None)
    assigned_to_name = serializers.CharField(source='assigned_to.display_name', read_only=True, default=None)

    class Meta:
        model = Meeting
        fields = ['id', 'title', 'lead', 'lead_name', 'corporate_lead', 'corporate_lead_name', 'assigned_to',
                  'assigned_to_name', 'meeting_date', 'duration', 'location', 'status', 'notes', 'outcome',
                  'created_by', 'updated_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_duration(self, value):
        if value < 1:
            raise serializers.ValidationError("Duration must be at least one minute")
        return value

    def validate(self, attrs):
        lead = attrs.get('lead', getattr(self.instance, 'lead', None))
        corporate_lead = attrs.get('corporate_lead', getattr(self.instance, 'corporate_lead', None))
        if lead and corporate_lead:
            raise serializers.ValidationError("A meeting is either with a lead or a corporate lead, not both")
        return attrs


class EmailTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = EmailTemplate
        fields = ['id', 'name', 'category', 'subject', 'body', 'active', 'created_by', 'created_at', 'updated_at']
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def _check_syntax(self, value):
        try:
            Template(value)
        except TemplateSyntaxError as e:
            raise serializers.ValidationError(f"Invalid template: {e}")
        return value

    def validate_subject(self, value):
        return self._check_syntax(value)

    def validate_body(self, value):
        return self._check_syntax(value)


class EmailLogSerializer(serializers.ModelSerializer):
    template_name = serializers.CharField(source='template.name', read_only=True, default=None)
    lead_name = serializers.CharField(source='lead.full_name', read_only=True, default=None)
    student_name = serializers.CharField(source='student.full_name', read_only=True, default=None)
    sent_by_name = serializers.CharField(source='sent_by.display_name', read_only=True, default=None)

    class Meta:
        model = EmailLog
        fields = ['id', 'recipient', 'subject', 'body', 'status', 'error', 'template', 'template_name',
                  'lead', 'lead_name', 'student', 'student_name', 'sent_by', 'sent_by_name', 'sent_at']
        read_only_fields = fields


class EmailSendSerializer(serializers.Serializer):
    """Either a template or an explicit subject and body; recipient defaults to the lead or student email"""
    template = serializers.PrimaryKeyRelatedField(queryset=EmailTemplate.objects.filter(active=True),
                                                  required=False, allow_null=True)
    lead = serializers.PrimaryKeyRelatedField(queryset=Lead.objects.all(), required=False, allow_null=True)
    student = serializers.PrimaryKeyRelatedField(queryset=Student.objects.all(), required=False, allow_null=True)
    recipient = serializers.EmailField(required=False, allow_blank=True)
    subject = serializers.CharField(max_length=255, required=False, allow_blank=True)
    body = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        template = attrs.get('template')
        if template is None and not (attrs.get('subject') and attrs.get('body')):
            raise serializers.ValidationError("Provide a template or both subject and body")
        lead = attrs.get('lead')
        student = attrs.get('student')
        if lead and student:
            raise serializers.ValidationError("Send to either a lead or a student, not both")
        recipient = attrs.get('recipient') or (lead.email if lead else '') or (student.email if student else '')
        if not recipient:
            raise serializers.ValidationError({'recipient': 'No email address available for this recipient'})
        attrs['recipient'] = recipient
        return attrs
