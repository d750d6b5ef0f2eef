"""
Display formatting shared by reports and printable documents
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.utils import timezone


def get_currency():
    from orbit.core.models import Institute
    return Institute.load().currency or settings.CURRENCY


def format_currency(value, currency=None):
    """1234.5 -> 'AED 1,234.50'"""
    currency = currency or get_currency()
    amount = Decimal(value or 0).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    return f"{currency} {amount:,.2f}"


def format_percent(value):
    """12.345 -> '12.3%'"""
    return f"{Decimal(value or 0).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}%"


def format_date(value):
    """date(2024, 3, 5) -> 'Mar 5, 2024'"""
    if value is None or value == '':
        return ''
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            value = timezone.localtime(value)
        value = value.date()
    if not isinstance(value, date):
        return str(value)
    return f"{value:%b} {value.day}, {value.year}"


def format_datetime(value):
    if value is None:
        return ''
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return f"{format_date(value)} {value:%H:%M}"


def format_date_range(date_from, date_to):
    return f"{format_date(date_from)} - {format_date(date_to)}"


def percentage(part, whole):
    """part / whole * 100, or 0 when whole is 0"""
    if not whole:
        return Decimal('0')
    return Decimal(part) * Decimal('100') / Decimal(whole)
