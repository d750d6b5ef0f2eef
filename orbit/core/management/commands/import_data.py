"""
Management command to import students, users and courses from an export file
Rows whose primary key or natural key already exists are skipped.
Usage: python manage.py import_data backup.json
"""
import json
import logging

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from orbit.academics.models import Course, Student
from orbit.core.cache_signals import suspend_cache_signals
from orbit.core.cache_utils import invalidate_dashboard_cache

logger = logging.getLogger(__name__)

User = get_user_model()

# (payload key, model, natural key field); courses and users first so student references resolve
IMPORT_MODELS = [
    ('courses', Course, 'name'),
    ('users', User, 'username'),
    ('students', Student, 'student_id'),
]


def build_instance(model, row):
    """Model instance from an exported row, converting JSON strings back to field types"""
    values = {}
    for field in model._meta.concrete_fields:
        if field.attname not in row:
            continue
        value = row[field.attname]
        values[field.attname] = None if value is None else field.to_python(value)
    return model(**values)


class Command(BaseCommand):
    help = 'Import students, users and courses from a JSON export (existing rows are skipped)'

    def add_arguments(self, parser):
        parser.add_argument('file', help='Path of the JSON file produced by export_data')

    def handle(self, *args, **options):
        try:
            with open(options['file'], encoding='utf-8') as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as e:
            raise CommandError(f"Could not read {options['file']}: {e}")

        totals = {'imported': 0, 'skipped': 0}
        with suspend_cache_signals(), transaction.atomic():
            for key, model, natural_key in IMPORT_MODELS:
                imported, skipped = self.import_rows(model, natural_key, payload.get(key, []))
                totals['imported'] += imported
                totals['skipped'] += skipped
                self.stdout.write(f'  - {key}: imported {imported}, skipped {skipped}')

        invalidate_dashboard_cache()
        logger.info(f"Imported {totals['imported']} rows from {options['file']}")
        self.stdout.write(self.style.SUCCESS(
            f"Import complete: {totals['imported']} imported, {totals['skipped']} skipped"
        ))

    def import_rows(self, model, natural_key, rows):
        existing_pks = set(model.objects.values_list('pk', flat=True))
        existing_keys = set(model.objects.values_list(natural_key, flat=True))
        imported = 0
        skipped = 0
        for row in rows:
            if row.get('id') in existing_pks or row.get(natural_key) in existing_keys:
                skipped += 1
                continue
            instance = build_instance(model, row)
            instance.save(force_insert=True)
            existing_pks.add(instance.pk)
            existing_keys.add(getattr(instance, natural_key))
            imported += 1
        return imported, skipped
