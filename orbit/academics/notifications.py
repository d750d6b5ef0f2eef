"""
Email notifications for invoices and schedules.

Every delivery attempt is recorded as an EmailLog. Failures are logged
and never interrupt the request that triggered them.
"""
import logging
from typing import Iterable, Optional

from django.conf import settings
from django.core.mail import send_mail
from django.template import Context, Template

from orbit.core.models import Institute
from orbit.crm.models import EmailLog

logger = logging.getLogger(__name__)


def deliver(subject: str, message: str, recipients: Iterable[str], *, student=None, lead=None,
            template=None, user=None) -> Optional[EmailLog]:
    """Send one email and record it in the email history.

    Returns the EmailLog entry, or None when no recipient has an address.
    """
    recipient_list = [email for email in recipients if email]
    if not recipient_list:
        return None
    log = EmailLog(recipient=', '.join(recipient_list), subject=subject, body=message,
                   student=student, lead=lead, template=template, sent_by=user)
    try:
        send_mail(
            subject=subject,
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=recipient_list,
            fail_silently=False,
        )
        log.status = 'sent'
    except Exception as e:
        logger.warning(f"Failed to send '{subject}' to {len(recipient_list)} recipient(s): {e}")
        log.status = 'failed'
        log.error = str(e)
    log.save()
    return log


def render_template(template, context: dict) -> tuple:
    """Render an EmailTemplate's subject and body as plain text"""
    ctx = Context(context, autoescape=False)
    subject = Template(template.subject).render(ctx).strip()
    body = Template(template.body).render(ctx)
    return subject, body


def _send(subject: str, message: str, recipients: Iterable[str], student=None) -> bool:
    log = deliver(subject, message, recipients, student=student)
    return log is not None and log.status == 'sent'


def _course_name(student) -> str:
    return student.course.name if student.course_id else 'your course'


def send_invoice_notice(invoice) -> bool:
    """Tell the student an invoice was raised"""
    institute = Institute.load()
    student = invoice.student
    subject = f"Invoice {invoice.invoice_number} - {institute.name}"
    message = f"""
Dear {student.full_name},

An invoice has been issued for {_course_name(student)}.

Invoice Number: {invoice.invoice_number}
Amount: {institute.currency} {invoice.amount:,.2f}
Status: {invoice.get_status_display()}

Thank you,
{institute.name}
"""
    return _send(subject, message, [student.email], student=student)


def send_payment_receipt(invoice) -> bool:
    """Confirm a payment once an invoice is paid"""
    institute = Institute.load()
    student = invoice.student
    paid_on = invoice.payment_date.strftime('%B %d, %Y') if invoice.payment_date else ''
    subject = f"Payment Receipt - {invoice.invoice_number}"
    message = f"""
Dear {student.full_name},

We have received your payment for {_course_name(student)}.

Invoice Number: {invoice.invoice_number}
Amount Paid: {institute.currency} {invoice.amount:,.2f}
Payment Mode: {invoice.get_payment_mode_display()}
Payment Date: {paid_on}
Remaining Balance: {institute.currency} {student.balance_due:,.2f}

Thank you for choosing {institute.name}!
"""
    return _send(subject, message, [student.email], student=student)


def send_payment_reminder(invoice, days_overdue: int) -> bool:
    institute = Institute.load()
    student = invoice.student
    subject = f"Payment Reminder - {invoice.invoice_number}"
    message = f"""
Dear {student.full_name},

This is a reminder that invoice {invoice.invoice_number} for {institute.currency} {invoice.amount:,.2f}
has been pending for {days_overdue} days.

Please contact the front desk to settle the balance.

Thank you,
{institute.name}
"""
    return _send(subject, message, [student.email], student=student)


def _schedule_message(schedule, headline: str) -> str:
    return f"""
{headline}

Session: {schedule.title}
Course: {schedule.course.name}
Trainer: {schedule.trainer.full_name}
Starts: {schedule.start_time:%A, %B %d, %Y %H:%M}
Ends: {schedule.end_time:%H:%M}
Location: {schedule.location or 'To be announced'}
"""


def send_schedule_created(schedule) -> bool:
    institute = Institute.load()
    students = schedule.students.all()
    subject = f"New class scheduled: {schedule.title}"
    message = _schedule_message(schedule, "A new class has been scheduled for you.") + f"\n{institute.name}\n"
    return _send(subject, message, [s.email for s in students])


def send_schedule_cancelled(schedule) -> bool:
    institute = Institute.load()
    students = schedule.students.all()
    subject = f"Class cancelled: {schedule.title}"
    message = _schedule_message(schedule, "The following class has been cancelled.") + f"\n{institute.name}\n"
    return _send(subject, message, [s.email for s in students])
