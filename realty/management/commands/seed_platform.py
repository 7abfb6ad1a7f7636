# Seed Platform Management Command
from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.crypto import get_random_string

from realty.models import User
from realty.services.commissions import default_commission_rates, upsert_commission_config

ADMIN_NAME = 'System Administrator'


class Command(BaseCommand):
    help = 'Creates the default admin account and the commission tiers.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--skip-admin',
            action='store_true',
            help='Only seed commission configuration.',
        )

    def handle(self, *args, **options):
        with transaction.atomic():
            if not options['skip_admin']:
                self.seed_admin()
            self.seed_commission_levels()

        self.stdout.write(self.style.SUCCESS('Seeding completed successfully.'))

    def seed_admin(self):
        email = settings.ADMIN_EMAIL.lower()
        if User.objects.filter(email__iexact=email).exists():
            self.stdout.write(f'Admin {email} already exists, skipping.')
            return

        password = settings.ADMIN_PASSWORD
        generated = not password
        if generated:
            # Satisfies the complexity validator: upper, lower, digit and special
            password = f"Adm@{get_random_string(4, '0123456789')}{get_random_string(8)}"

        User.objects.create_superuser(
            email=email,
            password=password,
            name=ADMIN_NAME,
        )
        self.stdout.write(self.style.SUCCESS(f'Created admin {email}'))
        if generated:
            self.stdout.write(self.style.WARNING(f'Generated admin password: {password}'))

    def seed_commission_levels(self):
        for level, percentage in sorted(default_commission_rates().items()):
            config = upsert_commission_config(level, percentage)
            self.stdout.write(f'Commission level {config.level}: {config.percentage}%')
