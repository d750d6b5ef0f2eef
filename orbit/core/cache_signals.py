"""
Cache invalidation signals
Automatically invalidate dashboard/analytics cache when data changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Models whose changes affect dashboard numbers
DASHBOARD_MODELS = {
    'Student', 'Invoice', 'Certificate', 'Schedule', 'Course', 'Trainer',
    'Expense', 'PayrollRecord', 'Lead', 'Campaign', 'FollowUp', 'Employee',
}

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Context manager to temporarily suspend cache invalidation signals.
    Useful for bulk imports to prevent excessive cache clearing.
    Remember to manually invalidate cache after the block!
    """
    try:
        _thread_locals.suspended = True
        yield
    finally:
        _thread_locals.suspended = False


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete])
def invalidate_dashboard_on_change(sender, instance, **kwargs):
    """Invalidate dashboard cache when dashboard-relevant rows change"""
    if is_suspended():
        return

    if sender.__name__ not in DASHBOARD_MODELS:
        return

    if sender._meta.app_label not in ('academics', 'crm', 'hrm', 'expenses'):
        return

    try:
        invalidate_dashboard_cache()
    except Exception as e:
        logger.warning(f"Error in invalidate_dashboard_on_change signal: {e}")
