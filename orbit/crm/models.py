import os
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


IMAGE_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.gif', '.webp']
VIDEO_EXTENSIONS = ['.mp4', '.mov', '.webm']


class Campaign(models.Model):
    """Marketing campaign that leads can be attributed to"""
    PLATFORM_CHOICES = [
        ('facebook', 'Facebook'),
        ('instagram', 'Instagram'),
        ('google', 'Google'),
        ('linkedin', 'LinkedIn'),
        ('email', 'Email'),
        ('whatsapp', 'WhatsApp'),
        ('other', 'Other'),
    ]

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('active', 'Active'),
        ('paused', 'Paused'),
        ('completed', 'Completed'),
    ]

    name = models.CharField(max_length=255)
    platform = models.CharField(max_length=20, choices=PLATFORM_CHOICES, default='facebook')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    budget = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                 validators=[MinValueValidator(0)])
    spent = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                validators=[MinValueValidator(0)])
    impressions = models.PositiveIntegerField(default=0)
    clicks = models.PositiveIntegerField(default=0)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    description = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_campaigns')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'campaigns'
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def stats(self):
        """Click-through, conversion and cost figures for the campaign"""
        leads = self.leads.count()
        conversions = self.leads.filter(status='converted').count()
        spent = self.spent or Decimal('0.00')
        return {
            'leads': leads,
            'conversions': conversions,
            'ctr': round(self.clicks / self.impressions * 100, 2) if self.impressions else 0,
            'conversion_rate': round(conversions / leads * 100, 2) if leads else 0,
            'cost_per_click': (spent / self.clicks).quantize(Decimal('0.01')) if self.clicks else Decimal('0.00'),
            'cost_per_lead': (spent / leads).quantize(Decimal('0.01')) if leads else Decimal('0.00'),
        }


class Lead(models.Model):
    SOURCE_CHOICES = [
        ('website', 'Website'),
        ('social_media', 'Social Media'),
        ('referral', 'Referral'),
        ('walk_in', 'Walk In'),
        ('campaign', 'Campaign'),
        ('other', 'Other'),
    ]

    STATUS_CHOICES = [
        ('new', 'New'),
        ('contacted', 'Contacted'),
        ('qualified', 'Qualified'),
        ('converted', 'Converted'),
        ('lost', 'Lost'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
    ]

    full_name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20)
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default='website')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='new')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    interested_course = models.ForeignKey('academics.Course', on_delete=models.SET_NULL, null=True, blank=True,
                                          related_name='leads')
    campaign = models.ForeignKey(Campaign, on_delete=models.SET_NULL, null=True, blank=True, related_name='leads')
    assigned_to = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='assigned_leads')
    notes = models.TextField(blank=True)
    converted_at = models.DateTimeField(null=True, blank=True)
    converted_student = models.ForeignKey('academics.Student', on_delete=models.SET_NULL, null=True, blank=True,
                                          related_name='source_leads')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_leads')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'leads'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='lead_status_idx'),
            models.Index(fields=['source'], name='lead_source_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        if self.status == 'converted' and not self.converted_at:
            self.converted_at = timezone.now()
        super().save(*args, **kwargs)


class FollowUp(models.Model):
    TYPE_CHOICES = [
        ('call', 'Call'),
        ('email', 'Email'),
        ('whatsapp', 'WhatsApp'),
        ('meeting', 'Meeting'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    lead = models.ForeignKey(Lead, on_delete=models.CASCADE, related_name='follow_ups')
    due_date = models.DateTimeField()
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='call')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    notes = models.TextField(blank=True)
    outcome = models.TextField(blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_follow_ups')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'follow_ups'
        ordering = ['due_date']

    def __str__(self):
        return f"{self.get_type_display()} with {self.lead.full_name} on {self.due_date:%Y-%m-%d}"


def post_upload_path(instance, filename):
    return f"crm/posts/{timezone.now():%Y/%m}/{filename}"


class Post(models.Model):
    """Marketing material (image or video) shared with the counseling team"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
    ]

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=100, blank=True)
    file = models.FileField(upload_to=post_upload_path)
    tags = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='approved_posts')
    approved_at = models.DateTimeField(null=True, blank=True)
    share_count = models.PositiveIntegerField(default=0)
    download_count = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_posts')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'crm_posts'
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    @property
    def file_type(self):
        ext = os.path.splitext(self.file.name or '')[1].lower()
        if ext in IMAGE_EXTENSIONS:
            return 'image'
        if ext in VIDEO_EXTENSIONS:
            return 'video'
        return 'other'


class CorporateLead(models.Model):
    """Company enquiring about group or in-house training"""
    STATUS_CHOICES = [
        ('new', 'New'),
        ('contacted', 'Contacted'),
        ('proposal_sent', 'Proposal Sent'),
        ('negotiation', 'Negotiation'),
        ('won', 'Won'),
        ('lost', 'Lost'),
    ]

    company_name = models.CharField(max_length=255)
    contact_person = models.CharField(max_length=255)
    designation = models.CharField(max_length=100, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20)
    industry = models.CharField(max_length=100, blank=True)
    employee_count = models.PositiveIntegerField(null=True, blank=True)
    requirements = models.TextField(blank=True)
    source = models.CharField(max_length=20, choices=Lead.SOURCE_CHOICES, default='website')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='new')
    priority = models.CharField(max_length=10, choices=Lead.PRIORITY_CHOICES, default='medium')
    estimated_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                          validators=[MinValueValidator(0)])
    consultant = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='corporate_leads')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_corporate_leads')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='updated_corporate_leads')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'corporate_leads'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.company_name} ({self.contact_person})"


class Meeting(models.Model):
    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('rescheduled', 'Rescheduled'),
    ]

    title = models.CharField(max_length=255)
    lead = models.ForeignKey(Lead, on_delete=models.CASCADE, null=True, blank=True, related_name='meetings')
    corporate_lead = models.ForeignKey(CorporateLead, on_delete=models.CASCADE, null=True, blank=True,
                                       related_name='meetings')
    assigned_to = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='assigned_meetings')
    meeting_date = models.DateTimeField()
    duration = models.PositiveIntegerField(default=30, help_text="Minutes")
    location = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='scheduled')
    notes = models.TextField(blank=True)
    outcome = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_meetings')
    updated_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='updated_meetings')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'crm_meetings'
        ordering = ['meeting_date']

    def __str__(self):
        return f"{self.title} on {self.meeting_date:%Y-%m-%d %H:%M}"


class EmailTemplate(models.Model):
    """Reusable email body; subject and body are Django template strings"""
    CATEGORY_CHOICES = [
        ('general', 'General'),
        ('lead', 'Lead'),
        ('student', 'Student'),
        ('invoice', 'Invoice'),
        ('schedule', 'Schedule'),
    ]

    name = models.CharField(max_length=255, unique=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='general')
    subject = models.CharField(max_length=255)
    body = models.TextField()
    active = models.BooleanField(default=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_email_templates')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'email_templates'
        ordering = ['name']

    def __str__(self):
        return self.name


class EmailLog(models.Model):
    """One outgoing email, sent from the API or by an automatic notification"""
    STATUS_CHOICES = [
        ('sent', 'Sent'),
        ('failed', 'Failed'),
    ]

    recipient = models.TextField(help_text="Comma-separated addresses")
    subject = models.CharField(max_length=255)
    body = models.TextField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='sent')
    error = models.TextField(blank=True)
    template = models.ForeignKey(EmailTemplate, on_delete=models.SET_NULL, null=True, blank=True,
                                 related_name='emails')
    lead = models.ForeignKey(Lead, on_delete=models.SET_NULL, null=True, blank=True, related_name='emails')
    student = models.ForeignKey('academics.Student', on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='emails')
    sent_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='sent_emails')
    sent_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'email_history'
        ordering = ['-sent_at']
        indexes = [
            models.Index(fields=['status'], name='email_status_idx'),
        ]

    def __str__(self):
        return f"{self.subject} -> {self.recipient}"
