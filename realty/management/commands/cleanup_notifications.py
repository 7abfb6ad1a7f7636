# Cleanup Notifications Management Command
from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from realty.models import Notification
from realty.services.notifications import READ_RETENTION_DAYS, cleanup_read_notifications


class Command(BaseCommand):
    help = 'Deletes read notifications older than the retention period.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=READ_RETENTION_DAYS,
            help=f'Age in days after which read notifications are deleted (default {READ_RETENTION_DAYS}).',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Count matching notifications without deleting them.',
        )

    def handle(self, *args, **options):
        days = options['days']
        if days < 0:
            raise CommandError('--days cannot be negative.')

        if options['dry_run']:
            cutoff = timezone.now() - timedelta(days=days)
            count = Notification.objects.filter(read=True, created_at__lt=cutoff).count()
            self.stdout.write(f'  [DRY-RUN] {count} notifications would be deleted.')
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
            return

        deleted = cleanup_read_notifications(days=days)
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} read notifications older than {days} days.'))
