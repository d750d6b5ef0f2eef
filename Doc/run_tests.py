#!/usr/bin/env python
"""
Test runner script for the Orbit apps
Usage: python Doc/run_tests.py [app ...]
"""
import os
import sys
from pathlib import Path

import django
from django.conf import settings
from django.test.utils import get_runner

ORBIT_APPS = [
    'orbit.core',
    'orbit.academics',
    'orbit.crm',
    'orbit.hrm',
    'orbit.expenses',
    'orbit.reports',
]

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'orbit.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests(sys.argv[1:] or ORBIT_APPS)
    sys.exit(bool(failures))
