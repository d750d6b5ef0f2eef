from datetime import datetime, date
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone


class Employee(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('on_leave', 'On Leave'),
        ('terminated', 'Terminated'),
        ('inactive', 'Inactive'),
    ]

    VISA_STATUS_CHOICES = [
        ('valid', 'Valid'),
        ('processing', 'Processing'),
        ('expired', 'Expired'),
        ('cancelled', 'Cancelled'),
        ('not_required', 'Not Required'),
    ]

    employee_id = models.CharField(max_length=50, unique=True, help_text="Format: EMP-YYYY-NNN")
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='employee_profile')
    full_name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True)
    department = models.CharField(max_length=100)
    position = models.CharField(max_length=100)
    joining_date = models.DateField(default=timezone.localdate)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    base_salary = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                      validators=[MinValueValidator(0)])
    visa_status = models.CharField(max_length=20, choices=VISA_STATUS_CHOICES, blank=True)
    visa_expiry = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'employees'
        ordering = ['full_name']
        indexes = [
            models.Index(fields=['department'], name='employee_department_idx'),
            models.Index(fields=['visa_expiry'], name='employee_visa_expiry_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.employee_id})"

    @property
    def visa_days_remaining(self):
        if not self.visa_expiry:
            return None
        return (self.visa_expiry - timezone.localdate()).days


class Attendance(models.Model):
    STATUS_CHOICES = [
        ('present', 'Present'),
        ('absent', 'Absent'),
        ('late', 'Late'),
        ('half_day', 'Half Day'),
        ('leave', 'Leave'),
    ]

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='attendance_records')
    date = models.DateField(default=timezone.localdate)
    check_in = models.TimeField(null=True, blank=True)
    check_out = models.TimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='present')
    notes = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'employee_attendance'
        ordering = ['-date', 'employee__full_name']
        constraints = [
            models.UniqueConstraint(fields=['employee', 'date'], name='unique_attendance_per_day'),
        ]

    def __str__(self):
        return f"{self.employee.full_name} {self.date} {self.status}"

    @property
    def hours_worked(self):
        if not self.check_in or not self.check_out:
            return Decimal('0.00')
        delta = datetime.combine(date.min, self.check_out) - datetime.combine(date.min, self.check_in)
        hours = max(delta.total_seconds(), 0) / 3600
        return Decimal(hours).quantize(Decimal('0.01'))


class PayrollRecord(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('paid', 'Paid'),
        ('failed', 'Failed'),
    ]

    PAYMENT_METHOD_CHOICES = [
        ('bank_transfer', 'Bank Transfer'),
        ('cash', 'Cash'),
        ('cheque', 'Cheque'),
        ('wps', 'WPS'),
    ]

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='payroll_records')
    month = models.DateField(help_text="First day of the payroll month")
    base_salary = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    allowances = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                     validators=[MinValueValidator(0)])
    deductions = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                     validators=[MinValueValidator(0)])
    net_salary = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    payment_date = models.DateField(null=True, blank=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default='bank_transfer')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_payroll_records')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payroll_records'
        ordering = ['-month', 'employee__full_name']
        constraints = [
            models.UniqueConstraint(fields=['employee', 'month'], name='unique_payroll_per_month'),
        ]
        indexes = [
            models.Index(fields=['month', 'status'], name='payroll_month_status_idx'),
        ]

    def __str__(self):
        return f"{self.employee.full_name} {self.month:%Y-%m}"

    def calculate_net_salary(self):
        return (self.base_salary or Decimal('0.00')) + (self.allowances or Decimal('0.00')) - \
            (self.deductions or Decimal('0.00'))

    def save(self, *args, **kwargs):
        self.month = self.month.replace(day=1)
        self.net_salary = self.calculate_net_salary()
        if self.status == 'paid' and not self.payment_date:
            self.payment_date = timezone.localdate()
        super().save(*args, **kwargs)


class Interview(models.Model):
    TYPE_CHOICES = [
        ('in_person', 'In Person'),
        ('phone', 'Phone'),
        ('video', 'Video'),
    ]

    STATUS_CHOICES = [
        ('scheduled', 'Scheduled'),
        ('completed', 'Completed'),
        ('no_show', 'No Show'),
        ('cancelled', 'Cancelled'),
    ]

    DECISION_CHOICES = [
        ('hired', 'Hired'),
        ('rejected', 'Rejected'),
        ('on_hold', 'On Hold'),
        ('next_round', 'Next Round'),
    ]

    candidate_name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    position = models.CharField(max_length=100)
    scheduled_at = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField(default=60)
    interviewers = models.JSONField(default=list, blank=True)
    interview_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='in_person')
    location = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='scheduled')
    feedback = models.TextField(blank=True)
    decision = models.CharField(max_length=20, choices=DECISION_CHOICES, blank=True)
    score = models.PositiveSmallIntegerField(null=True, blank=True,
                                             validators=[MinValueValidator(0), MaxValueValidator(100)])
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_interviews')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'interviews'
        ordering = ['scheduled_at']

    def __str__(self):
        return f"{self.candidate_name} - {self.position}"
