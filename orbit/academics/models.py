from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Sum
from django.utils import timezone


CLASS_TYPE_CHOICES = [
    ('online', 'Online'),
    ('offline', 'Offline'),
    ('private', 'Private'),
    ('batch', 'Batch'),
]

PAYMENT_MODE_CHOICES = [
    ('cash', 'Cash'),
    ('card', 'Card'),
    ('upi', 'UPI'),
    ('bank_transfer', 'Bank Transfer'),
    ('cheque', 'Cheque'),
    ('tabby', 'Tabby'),
    ('tamara', 'Tamara'),
]


class Course(models.Model):
    """Course offered by the institute, with optional per-class-type rates"""
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    duration = models.CharField(max_length=100, blank=True, help_text="e.g. 8 weeks, 40 hours")
    fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    online_rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    offline_rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    private_rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    batch_rate = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    content = models.JSONField(default=list, blank=True, help_text="Course modules/outline")
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'courses'
        ordering = ['name']

    def __str__(self):
        return self.name

    def price_for(self, class_type):
        """Rate for a class type, falling back to the standard fee"""
        rate = getattr(self, f'{class_type}_rate', None) if class_type else None
        return rate if rate is not None else self.fee


class Trainer(models.Model):
    full_name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=20, blank=True)
    specialization = models.CharField(max_length=255, blank=True)
    courses = models.ManyToManyField(Course, blank=True, related_name='trainers')
    availability = models.JSONField(default=dict, blank=True, help_text="Weekday -> list of time slots")
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'trainers'
        ordering = ['full_name']

    def __str__(self):
        return self.full_name


class Student(models.Model):
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
    ]

    BATCH_CHOICES = [
        ('morning', 'Morning'),
        ('afternoon', 'Afternoon'),
        ('evening', 'Evening'),
        ('weekend', 'Weekend'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('paid', 'Paid'),
        ('partial', 'Partial'),
        ('pending', 'Pending'),
    ]

    student_id = models.CharField(max_length=50, unique=True, help_text="Format: STU-YYYY-NNN")
    registration_number = models.CharField(max_length=50, unique=True, null=True, blank=True,
                                           help_text="Format: ORB-YYYY-NNN")
    full_name = models.CharField(max_length=255)
    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    father_name = models.CharField(max_length=255, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20)
    alternative_phone = models.CharField(max_length=20, blank=True)
    dob = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    address = models.TextField(blank=True)
    nationality = models.CharField(max_length=100, blank=True)
    passport_no = models.CharField(max_length=50, blank=True)
    emirates_id_no = models.CharField(max_length=50, blank=True)
    education = models.CharField(max_length=255, blank=True)
    company_or_university = models.CharField(max_length=255, blank=True)
    class_type = models.CharField(max_length=20, choices=CLASS_TYPE_CHOICES, default='offline')
    course = models.ForeignKey(Course, on_delete=models.PROTECT, null=True, blank=True, related_name='students')
    batch = models.CharField(max_length=20, choices=BATCH_CHOICES, blank=True)
    registration_date = models.DateField(default=timezone.localdate)
    due_date = models.DateField(null=True, blank=True, help_text="Date the outstanding balance is due")
    course_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    initial_payment = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    balance_due = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    payment_mode = models.CharField(max_length=20, choices=PAYMENT_MODE_CHOICES, default='cash')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='registered_students')
    emirates = models.CharField(max_length=50, blank=True)
    signature_data = models.TextField(blank=True, help_text="Base64 signature image captured at registration")
    terms_accepted = models.BooleanField(default=False)
    signature_date = models.DateTimeField(null=True, blank=True)
    register_link = models.CharField(max_length=64, null=True, blank=True, unique=True)
    register_link_expiry = models.DateTimeField(null=True, blank=True)
    register_link_discount = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    register_link_course = models.ForeignKey(Course, on_delete=models.SET_NULL, null=True, blank=True,
                                             related_name='+')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['payment_status'], name='student_pay_status_idx'),
            models.Index(fields=['registration_date'], name='student_reg_date_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.student_id})"

    def amount_paid(self):
        return self.invoices.filter(status='paid').aggregate(
            total=Sum('amount')
        )['total'] or Decimal('0.00')

    def apply_fee_totals(self):
        """total_fee = course_fee - discount, never below zero"""
        self.total_fee = max(self.course_fee - self.discount, Decimal('0.00'))

    def refresh_balance(self, save=True):
        """Recompute balance_due and payment_status from paid invoices"""
        self.apply_fee_totals()
        paid = self.amount_paid()
        self.balance_due = max(self.total_fee - paid, Decimal('0.00'))
        if self.balance_due == 0:
            self.payment_status = 'paid'
        elif paid > 0:
            self.payment_status = 'partial'
        else:
            self.payment_status = 'pending'
        if save:
            self.save(update_fields=['total_fee', 'balance_due', 'payment_status', 'updated_at'])

    def clear_registration_link(self):
        self.register_link = None
        self.register_link_expiry = None
        self.register_link_discount = Decimal('0.00')
        self.register_link_course = None


class RegistrationCourse(models.Model):
    """Course taken as part of a student's registration, priced individually"""
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='registration_courses')
    course = models.ForeignKey(Course, on_delete=models.PROTECT, related_name='registration_courses')
    price = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'),
                                   validators=[MinValueValidator(0), MaxValueValidator(100)],
                                   help_text="Discount percentage")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'registration_courses'
        ordering = ['id']

    def __str__(self):
        return f"{self.student.full_name} - {self.course.name}"

    @property
    def discount_amount(self):
        return (self.price * self.discount / Decimal('100')).quantize(Decimal('0.01'))

    @property
    def final_price(self):
        return self.price - self.discount_amount


class Invoice(models.Model):
    STATUS_CHOICES = [
        ('paid', 'Paid'),
        ('pending', 'Pending'),
    ]

    invoice_number = models.CharField(max_length=50, unique=True, help_text="Format: INV-YYYY-NNN")
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='invoices')
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    payment_mode = models.CharField(max_length=20, choices=PAYMENT_MODE_CHOICES, default='cash')
    transaction_id = models.CharField(max_length=100, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_invoices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'invoices'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='invoice_status_idx'),
            models.Index(fields=['payment_date'], name='invoice_payment_date_idx'),
        ]

    def __str__(self):
        return self.invoice_number

    def save(self, *args, **kwargs):
        if self.status == 'paid' and not self.payment_date:
            self.payment_date = timezone.now()
        super().save(*args, **kwargs)


class Schedule(models.Model):
    STATUS_CHOICES = [
        ('confirmed', 'Confirmed'),
        ('pending', 'Pending'),
        ('cancelled', 'Cancelled'),
    ]

    SESSION_TYPE_CHOICES = [
        ('batch', 'Batch'),
        ('private', 'Private'),
        ('online', 'Online'),
    ]

    title = models.CharField(max_length=255)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='schedules')
    trainer = models.ForeignKey(Trainer, on_delete=models.CASCADE, related_name='schedules')
    students = models.ManyToManyField(Student, blank=True, related_name='schedules')
    session_type = models.CharField(max_length=20, choices=SESSION_TYPE_CHOICES, default='batch')
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    occurrence_days = models.CharField(max_length=100, blank=True, help_text="Comma-separated weekdays, e.g. mon,wed")
    location = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='confirmed')
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_schedules')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'schedules'
        ordering = ['start_time']

    def __str__(self):
        return f"{self.title} ({self.start_time:%Y-%m-%d %H:%M})"

    @property
    def duration_hours(self):
        return Decimal((self.end_time - self.start_time).total_seconds() / 3600).quantize(Decimal('0.01'))


class Certificate(models.Model):
    certificate_number = models.CharField(max_length=50, unique=True, help_text="Format: CERT-YYYY-NNN")
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='certificates')
    course = models.ForeignKey(Course, on_delete=models.PROTECT, related_name='certificates')
    issue_date = models.DateField(default=timezone.localdate)
    issued_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                  related_name='issued_certificates')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'certificates'
        ordering = ['-issue_date', '-id']
        constraints = [
            models.UniqueConstraint(fields=['student', 'course'], name='unique_certificate_per_course'),
        ]

    def __str__(self):
        return self.certificate_number


class Assessment(models.Model):
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='assessments')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='assessments')
    title = models.CharField(max_length=255)
    date = models.DateField(default=timezone.localdate)
    score = models.DecimalField(max_digits=5, decimal_places=2,
                                validators=[MinValueValidator(0), MaxValueValidator(100)])
    grade = models.CharField(max_length=2, blank=True)
    feedback = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'assessments'
        ordering = ['-date', '-id']

    def __str__(self):
        return f"{self.title} - {self.student.full_name}"

    @staticmethod
    def grade_for(score):
        if score >= 90:
            return 'A'
        if score >= 80:
            return 'B'
        if score >= 70:
            return 'C'
        if score >= 60:
            return 'D'
        return 'F'

    def save(self, *args, **kwargs):
        if not self.grade:
            self.grade = self.grade_for(self.score)
        super().save(*args, **kwargs)


class StudentAttendance(models.Model):
    STATUS_CHOICES = [
        ('present', 'Present'),
        ('absent', 'Absent'),
        ('late', 'Late'),
        ('excused', 'Excused'),
    ]

    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='attendance')
    schedule = models.ForeignKey(Schedule, on_delete=models.SET_NULL, null=True, blank=True, related_name='attendance')
    date = models.DateField(default=timezone.localdate)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='present')
    duration_hours = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    notes = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'student_attendance'
        ordering = ['-date', '-id']

    def __str__(self):
        return f"{self.student.full_name} {self.date} {self.status}"


class TrainerFeedback(models.Model):
    trainer = models.ForeignKey(Trainer, on_delete=models.CASCADE, related_name='feedback')
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name='trainer_feedback')
    student = models.ForeignKey(Student, on_delete=models.SET_NULL, null=True, blank=True, related_name='trainer_feedback')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True)
    date = models.DateField(default=timezone.localdate)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trainer_feedback'
        ordering = ['-date', '-id']

    def __str__(self):
        return f"{self.trainer.full_name}: {self.rating}/5"
