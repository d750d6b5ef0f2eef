"""
Management command to export students, users and courses as JSON
Usage: python manage.py export_data backup.json
"""
import json

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.core.serializers.json import DjangoJSONEncoder

from orbit.academics.models import Course, Student

User = get_user_model()

# Export order matters for import: courses and users are referenced by students
EXPORT_MODELS = [
    ('courses', Course),
    ('users', User),
    ('students', Student),
]


def export_rows(model):
    """Concrete column values of every row, keyed by attribute name"""
    return list(model.objects.order_by('pk').values(*[f.attname for f in model._meta.concrete_fields]))


class Command(BaseCommand):
    help = 'Export students, users and courses to a JSON file'

    def add_arguments(self, parser):
        parser.add_argument('file', help='Path of the JSON file to write')

    def handle(self, *args, **options):
        payload = {}
        for key, model in EXPORT_MODELS:
            payload[key] = export_rows(model)
            self.stdout.write(f'  - {key}: {len(payload[key])}')

        with open(options['file'], 'w', encoding='utf-8') as handle:
            json.dump(payload, handle, cls=DjangoJSONEncoder, indent=2)

        self.stdout.write(self.style.SUCCESS(f"Exported data to {options['file']}"))
