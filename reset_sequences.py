#!/usr/bin/env python
"""
Reset PostgreSQL id sequences after import_data loaded rows with explicit primary keys.
Only sequence counters move; existing rows and their references are untouched.

Usage: python reset_sequences.py
"""
import os
import sys
from pathlib import Path

import django

BASE_DIR = Path(__file__).resolve().parent
sys.path.insert(0, str(BASE_DIR))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'orbit.config.settings')
django.setup()

from django.apps import apps
from django.core.management.color import no_style
from django.db import connection

ORBIT_APPS = ('core', 'academics', 'crm', 'hrm', 'expenses')


def main():
    if connection.vendor != 'postgresql':
        print(f"Nothing to do: sequences only need resetting on PostgreSQL (using {connection.vendor})")
        return 0

    models = []
    for label in ORBIT_APPS:
        models.extend(apps.get_app_config(label).get_models())

    statements = connection.ops.sequence_reset_sql(no_style(), models)
    print(f"🔄 Resetting sequences for {len(models)} tables...")
    with connection.cursor() as cursor:
        for sql in statements:
            cursor.execute(sql)

    for model in models:
        print(f"  ✅ {model._meta.db_table}")
    print("\n✅ All sequences reset successfully!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
