"""Management command to cleanup old processed events."""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from coupin.conf import coupin_settings
from coupin.models import ProcessedEvent


class Command(BaseCommand):
    help = "Remove processed QR scan events older than EVENT_CLEANUP_DAYS"

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Override EVENT_CLEANUP_DAYS setting",
        )
        parser.add_argument(
            "--execute",
            action="store_true",
            help="Delete the events (default: only count them)",
        )

    def handle(self, *args, **options):
        days = options["days"] if options["days"] is not None else coupin_settings.EVENT_CLEANUP_DAYS

        if not options["execute"]:
            cutoff = timezone.now() - timedelta(days=days)
            count = ProcessedEvent.objects.filter(processed_at__lt=cutoff).count()
            self.stdout.write(f"Dry run: {count} processed events older than {days} days.")
            return

        deleted_count, _ = ProcessedEvent.cleanup_old_events(days=days)
        self.stdout.write(
            self.style.SUCCESS(f"Deleted {deleted_count} old processed events.")
        )
