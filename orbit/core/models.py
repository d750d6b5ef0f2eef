from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Staff account with an application role"""
    ROLE_CHOICES = [
        ('counselor', 'Counselor'),
        ('admin', 'Admin'),
        ('superadmin', 'Super Admin'),
    ]

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='counselor')
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'

    def __str__(self):
        return self.full_name or self.username

    @property
    def is_admin_role(self):
        return self.is_superuser or self.role in ('admin', 'superadmin')

    @property
    def is_superadmin_role(self):
        return self.is_superuser or self.role == 'superadmin'

    @property
    def display_name(self):
        return self.full_name or self.get_full_name() or self.username


class Institute(models.Model):
    """Institute profile used on printed documents and reports (single row)"""
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=50, blank=True)
    email = models.EmailField(blank=True)
    website = models.CharField(max_length=255, blank=True)
    logo = models.ImageField(upload_to='institute/', blank=True, null=True)
    currency = models.CharField(max_length=10, default='AED')
    footer_text = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'institute_profile'

    def __str__(self):
        return self.name

    @classmethod
    def load(cls):
        institute, _ = cls.objects.get_or_create(
            pk=1,
            defaults={
                'name': settings.INSTITUTE_NAME,
                'currency': settings.CURRENCY,
            },
        )
        return institute


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('login', 'Login'),
        ('payment', 'Payment Received'),
        ('registration', 'Student Registered'),
        ('certificate_issue', 'Certificate Issued'),
        ('approve', 'Approved'),
        ('reject', 'Rejected'),
        ('convert', 'Lead Converted'),
        ('payroll_paid', 'Payroll Paid'),
        ('export', 'Report Exported'),
        ('password_change', 'Password Changed'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., student name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., invoice or certificate number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_created_idx'),
            models.Index(fields=['action'], name='audit_action_idx'),
            models.Index(fields=['model_name'], name='audit_model_idx'),
            models.Index(fields=['object_reference'], name='audit_reference_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.model_name}#{self.object_id}"
