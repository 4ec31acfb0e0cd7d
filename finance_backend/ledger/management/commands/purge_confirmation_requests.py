# ledger/management/commands/purge_confirmation_requests.py

from __future__ import annotations

from datetime import datetime

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ledger.models import ConfirmationRequest
from ledger.services.confirmation_service import purge_expired_requests, retention_cutoff


def _parse_date(s: str | None):
    """
    Parse YYYY-MM-DD into a date, or None.
    """
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


class Command(BaseCommand):
    help = (
        "Delete confirmation requests older than CONFIRMATION_REQUEST_RETENTION_DAYS, "
        "whatever their state. Intended to run from a daily scheduler."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--as-of",
            dest="as_of",
            help="Evaluate the retention window as of this date YYYY-MM-DD (default: now)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report how many requests would be deleted without deleting them.",
        )

    def handle(self, *args, **options):
        now = timezone.now()
        if options.get("as_of"):
            as_of = _parse_date(options["as_of"])
            if as_of is None:
                raise CommandError("Invalid --as-of date. Use YYYY-MM-DD")
            now = timezone.make_aware(
                datetime.combine(as_of, datetime.min.time()),
                timezone.get_current_timezone(),
            )

        cutoff = retention_cutoff(now)

        if options.get("dry_run"):
            count = ConfirmationRequest.objects.filter(created_at__lt=cutoff).count()
            self.stdout.write(f"{count} confirmation request(s) older than {cutoff:%Y-%m-%d %H:%M} would be deleted.")
            return

        deleted = purge_expired_requests(now=now)
        self.stdout.write(
            self.style.SUCCESS(
                f"Deleted {deleted} confirmation request(s) older than {cutoff:%Y-%m-%d %H:%M}."
            )
        )
