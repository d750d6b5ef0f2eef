"""
Utility functions for student registration, fees and document numbers
"""
import logging
import uuid
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from orbit.core.utils import generate_document_number
from .models import Student, RegistrationCourse, Invoice, Certificate

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


def generate_student_id():
    return generate_document_number(Student, 'student_id', 'STU')


def generate_registration_number():
    return generate_document_number(Student, 'registration_number', 'ORB')


def generate_invoice_number():
    return generate_document_number(Invoice, 'invoice_number', 'INV')


def generate_certificate_number():
    return generate_document_number(Certificate, 'certificate_number', 'CERT')


def split_full_name(full_name):
    """Split 'First Middle Last' into ('First', 'Middle Last')"""
    parts = (full_name or '').strip().split(None, 1)
    if not parts:
        return '', ''
    if len(parts) == 1:
        return parts[0], ''
    return parts[0], parts[1]


def calculate_registration_totals(lines):
    """
    Totals for a list of (price, discount_percentage) pairs.

    Returns (course_fee, discount_amount, total_fee) where
    course_fee = sum(price), discount_amount = sum(price * pct / 100)
    and total_fee = course_fee - discount_amount.
    """
    course_fee = Decimal('0.00')
    discount_amount = Decimal('0.00')
    for price, discount in lines:
        price = Decimal(price)
        discount = Decimal(discount or 0)
        course_fee += price
        discount_amount += (price * discount / Decimal('100')).quantize(TWO_PLACES)
    total_fee = max(course_fee - discount_amount, Decimal('0.00'))
    return course_fee.quantize(TWO_PLACES), discount_amount.quantize(TWO_PLACES), total_fee.quantize(TWO_PLACES)


def recalculate_student_fees(student):
    """Recompute a student's fee fields from their registration courses"""
    lines = [(rc.price, rc.discount) for rc in student.registration_courses.all()]
    if lines:
        student.course_fee, student.discount, _ = calculate_registration_totals(lines)
        student.save(update_fields=['course_fee', 'discount', 'updated_at'])
    student.refresh_balance()
    return student


def record_payment(student, amount, payment_mode, user=None, transaction_id='', notes='', status='paid'):
    """Create an invoice for a student and refresh their balance"""
    invoice = Invoice.objects.create(
        invoice_number=generate_invoice_number(),
        student=student,
        amount=amount,
        payment_mode=payment_mode,
        transaction_id=transaction_id or '',
        status=status,
        notes=notes,
        created_by=user if user and user.is_authenticated else None,
    )
    student.refresh_balance()
    return invoice


@transaction.atomic
def register_student(student_data, course_lines, user=None, initial_payment=Decimal('0.00'),
                     payment_mode='cash', transaction_id=''):
    """
    Register a student for one or more courses.

    Args:
        student_data: validated Student field values (without fee fields)
        course_lines: list of dicts with 'course', optional 'price' and 'discount' (percentage)
        user: staff member performing the registration
        initial_payment: amount paid at registration, recorded as a paid invoice

    Returns the created Student.
    """
    class_type = student_data.get('class_type') or 'offline'
    priced_lines = []
    for line in course_lines:
        course = line['course']
        price = line.get('price')
        if price is None:
            price = course.price_for(class_type)
        priced_lines.append((course, Decimal(price), Decimal(line.get('discount') or 0)))

    course_fee, discount_amount, total_fee = calculate_registration_totals(
        [(price, discount) for _, price, discount in priced_lines]
    )

    if initial_payment > total_fee:
        raise ValueError("Initial payment cannot exceed the total fee")

    student_data = dict(student_data)
    if not student_data.get('full_name'):
        student_data['full_name'] = f"{student_data.get('first_name', '')} {student_data.get('last_name', '')}".strip()
    if not student_data.get('first_name') and not student_data.get('last_name'):
        student_data['first_name'], student_data['last_name'] = split_full_name(student_data['full_name'])

    student = Student.objects.create(
        student_id=generate_student_id(),
        registration_number=generate_registration_number(),
        course=priced_lines[0][0] if priced_lines else student_data.pop('course', None),
        course_fee=course_fee,
        discount=discount_amount,
        total_fee=total_fee,
        initial_payment=initial_payment,
        balance_due=total_fee,
        payment_mode=payment_mode,
        created_by=user if user and user.is_authenticated else None,
        **{k: v for k, v in student_data.items() if k != 'course'},
    )

    RegistrationCourse.objects.bulk_create([
        RegistrationCourse(student=student, course=course, price=price, discount=discount)
        for course, price, discount in priced_lines
    ])

    if initial_payment > 0:
        record_payment(student, initial_payment, payment_mode, user=user,
                       transaction_id=transaction_id, notes='Initial payment at registration')
    else:
        student.refresh_balance()

    logger.info(f"Registered student {student.student_id} for {len(priced_lines)} course(s), total {total_fee}")
    return student


def create_registration_link(student, expiry_days=None, discount_percentage=Decimal('0.00'), course=None):
    """Attach a one-time self-registration token to a student record"""
    if expiry_days is None:
        expiry_days = settings.REGISTRATION_LINK_EXPIRY_DAYS
    student.register_link = uuid.uuid4().hex
    student.register_link_expiry = timezone.now() + timedelta(days=expiry_days)
    student.register_link_discount = discount_percentage
    student.register_link_course = course
    student.save(update_fields=['register_link', 'register_link_expiry', 'register_link_discount',
                                'register_link_course', 'updated_at'])
    return student


def registration_url(token):
    return f"{settings.FRONTEND_URL.rstrip('/')}/register/{token}"


def is_link_expired(student):
    return not student.register_link_expiry or student.register_link_expiry < timezone.now()
