"""
Management command to email students about pending invoices
"""
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from orbit.academics.models import Invoice
from orbit.academics.notifications import send_payment_reminder


class Command(BaseCommand):
    help = "Emails students whose pending invoices are older than the given number of days"

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=7,
            help='Minimum age in days of a pending invoice before a reminder is sent (default: 7)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the reminders without sending any email',
        )

    def handle(self, *args, **options):
        days = options['days']
        dry_run = options['dry_run']
        now = timezone.now()
        cutoff = now - timedelta(days=days)

        invoices = Invoice.objects.filter(
            status='pending',
            created_at__lte=cutoff,
        ).select_related('student', 'student__course').order_by('created_at')

        self.stdout.write(f"Found {invoices.count()} pending invoice(s) older than {days} days")
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No emails will be sent."))

        sent = 0
        skipped = 0
        for invoice in invoices:
            days_overdue = (now - invoice.created_at).days
            if not invoice.student.email:
                skipped += 1
                self.stdout.write(self.style.NOTICE(f"  - {invoice.invoice_number}: student has no email"))
                continue
            if dry_run:
                self.stdout.write(f"  - {invoice.invoice_number}: {invoice.student.email} ({days_overdue} days)")
                continue
            if send_payment_reminder(invoice, days_overdue):
                sent += 1
            else:
                skipped += 1

        if dry_run:
            self.stdout.write(self.style.WARNING("Dry run complete."))
        else:
            self.stdout.write(self.style.SUCCESS(f"Sent {sent} reminder(s), skipped {skipped}"))
