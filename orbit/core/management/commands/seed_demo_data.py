"""
Management command to seed demo data for development
Usage: python manage.py seed_demo_data [--students 10]
"""
import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import BaseCommand
from django.db import transaction

from orbit.academics.models import Course, Trainer
from orbit.academics.utils import register_student
from orbit.core.cache_signals import suspend_cache_signals
from orbit.core.cache_utils import invalidate_dashboard_cache

User = get_user_model()

DEMO_COURSES = [
    {'name': 'AutoCAD Fundamentals', 'fee': Decimal('2500.00'), 'duration': '6 weeks',
     'online_rate': Decimal('2000.00'), 'private_rate': Decimal('4000.00')},
    {'name': 'Revit Architecture', 'fee': Decimal('3200.00'), 'duration': '8 weeks',
     'online_rate': Decimal('2800.00')},
    {'name': 'Project Management (PMP)', 'fee': Decimal('4500.00'), 'duration': '35 hours',
     'batch_rate': Decimal('3900.00')},
    {'name': 'Digital Marketing', 'fee': Decimal('1800.00'), 'duration': '4 weeks'},
    {'name': 'Spoken English', 'fee': Decimal('1200.00'), 'duration': '10 weeks',
     'online_rate': Decimal('900.00')},
]

DEMO_TRAINERS = [
    ('Hassan Qureshi', 'hassan.qureshi@orbitinstitute.com', 'Design software', [0, 1]),
    ('Maria Fernandes', 'maria.fernandes@orbitinstitute.com', 'Management', [2]),
    ('Layla Haddad', 'layla.haddad@orbitinstitute.com', 'Marketing and languages', [3, 4]),
]

FIRST_NAMES = ['Ahmed', 'Sara', 'Omar', 'Fatima', 'Rahul', 'Aisha', 'John', 'Mariam', 'Yusuf', 'Priya']
LAST_NAMES = ['Al-Mansoori', 'Khan', 'Haddad', 'Nair', 'Smith', 'Rahman', 'Fernandes', 'Saleh']
NATIONALITIES = ['Emirati', 'Pakistani', 'Indian', 'Egyptian', 'Filipino', 'British']


class Command(BaseCommand):
    help = 'Create demo courses, trainers, students and users for development'

    def add_arguments(self, parser):
        parser.add_argument(
            '--students',
            type=int,
            default=10,
            help='Number of demo students to register (default: 10)',
        )

    def handle(self, *args, **options):
        call_command('create_default_users', stdout=self.stdout)
        admin = User.objects.filter(role='admin').order_by('pk').first()

        with suspend_cache_signals(), transaction.atomic():
            courses = []
            for config in DEMO_COURSES:
                course, created = Course.objects.get_or_create(name=config['name'], defaults=config)
                courses.append(course)
                if created:
                    self.stdout.write(self.style.SUCCESS(f'✓ Created course: {course.name}'))

            for full_name, email, specialization, course_indexes in DEMO_TRAINERS:
                trainer, created = Trainer.objects.get_or_create(
                    email=email,
                    defaults={'full_name': full_name, 'specialization': specialization, 'phone': '+971 500000000'},
                )
                trainer.courses.add(*[courses[i] for i in course_indexes])
                if created:
                    self.stdout.write(self.style.SUCCESS(f'✓ Created trainer: {full_name}'))

            for index in range(options['students']):
                first_name = random.choice(FIRST_NAMES)
                last_name = random.choice(LAST_NAMES)
                course = random.choice(courses)
                class_type = random.choice(['online', 'offline', 'private', 'batch'])
                total = course.price_for(class_type)
                initial_payment = random.choice([Decimal('0.00'), (total / 2).quantize(Decimal('0.01')), total])
                student = register_student(
                    {
                        'full_name': f'{first_name} {last_name}',
                        'email': f'{first_name}.{last_name}.{index}@example.com'.lower(),
                        'phone': f'+9715{random.randint(10000000, 99999999)}',
                        'nationality': random.choice(NATIONALITIES),
                        'class_type': class_type,
                    },
                    [{'course': course}],
                    user=admin,
                    initial_payment=initial_payment,
                    payment_mode=random.choice(['cash', 'card', 'bank_transfer']),
                )
                self.stdout.write(f'  - {student.student_id}: {student.full_name} ({student.payment_status})')

        invalidate_dashboard_cache()
        self.stdout.write(self.style.SUCCESS('\nDemo data ready.'))
