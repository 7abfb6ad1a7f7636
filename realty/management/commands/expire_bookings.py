# Expire Bookings Management Command
import time

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from realty.models import Booking
from realty.services.bookings import find_expired_booking_ids, update_expired_bookings


class Command(BaseCommand):
    help = 'Expires confirmed bookings whose end date has passed and frees their properties.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the bookings that would expire without changing anything.',
        )
        parser.add_argument(
            '--interval',
            type=int,
            default=0,
            help='Repeat the sweep every N seconds until interrupted (0 runs once).',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        interval = options['interval']

        if interval < 0:
            raise CommandError('--interval cannot be negative.')

        if dry_run:
            self.list_candidates()
            self.stdout.write(self.style.SUCCESS('Dry run completed. No changes saved.'))
            return

        if not interval:
            self.sweep()
            return

        self.stdout.write(f'Sweeping every {interval} seconds. Press Ctrl+C to stop.')
        try:
            while True:
                self.sweep()
                time.sleep(interval)
        except KeyboardInterrupt:
            self.stdout.write('Stopped.')

    def list_candidates(self):
        candidates = find_expired_booking_ids(timezone.now())
        bookings = Booking.objects.filter(pk__in=candidates).select_related('property').order_by('end_date', 'id')
        for booking in bookings:
            self.stdout.write(
                f'  [DRY-RUN] Booking {booking.id} on property {booking.property_id} '
                f'({booking.property.title}) ended {booking.end_date:%Y-%m-%d %H:%M}'
            )
        self.stdout.write(f'{len(candidates)} bookings would expire.')

    def sweep(self):
        result = update_expired_bookings()
        self.stdout.write(self.style.SUCCESS(f'Expired {len(result.expired)} bookings.'))
        if result.failed:
            self.stderr.write(self.style.ERROR(f'Failed to expire bookings: {result.failed}'))
        return result
