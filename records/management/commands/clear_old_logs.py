from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from records.services.logs import clear_old


class Command(BaseCommand):
    help = "Delete activity log entries older than --days (default SYSTEM_LOG_RETENTION_DAYS)."

    def add_arguments(self, parser):
        parser.add_argument("--days", type=int, default=settings.SYSTEM_LOG_RETENTION_DAYS)

    def handle(self, *args, **opts):
        days = opts["days"]
        if days < 1:
            raise CommandError("--days must be at least 1")
        deleted = clear_old(days)
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} old log entries"))
