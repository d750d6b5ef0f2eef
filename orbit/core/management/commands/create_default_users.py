"""
Management command to create the default admin and superadmin accounts
Usage: python manage.py create_default_users [--password secret]
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

User = get_user_model()

DEFAULT_USERS = [
    {
        'username': 'admin',
        'role': 'admin',
        'full_name': 'Admin User',
        'email': 'admin@orbitinstitute.com',
        'phone': '+971 123456789',
    },
    {
        'username': 'superadmin',
        'role': 'superadmin',
        'full_name': 'Super Admin',
        'email': 'superadmin@orbitinstitute.com',
        'phone': '+971 987654321',
    },
]


class Command(BaseCommand):
    help = 'Create the default admin and superadmin accounts (existing usernames are skipped)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            default='password',
            help='Password for the created accounts (default: password)',
        )

    def handle(self, *args, **options):
        created_count = 0
        for config in DEFAULT_USERS:
            if User.objects.filter(username=config['username']).exists():
                self.stdout.write(f"  User already exists: {config['username']}")
                continue

            User.objects.create_user(password=options['password'], **config)
            created_count += 1
            self.stdout.write(self.style.SUCCESS(f"✓ Created {config['role']} user: {config['username']}"))

        self.stdout.write(self.style.SUCCESS(f'\nDone. Created {created_count} user(s).'))
