"""Cancel PENDING tickets whose payment hold has expired.

Run periodically (Celery beat does this every five minutes) so unpaid holds
stop counting against event capacity.

Usage:
    python manage.py cancel_expired_tickets
    python manage.py cancel_expired_tickets --dry-run
"""

from django.core.management.base import BaseCommand

from tickets.handlers.dependencies import get_lifecycle_service


class Command(BaseCommand):
    help = "Cancel PENDING tickets whose payment hold has expired"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the tickets that would be cancelled without changing them",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        ticket_ids = get_lifecycle_service().cancel_expired(dry_run=dry_run)

        if not ticket_ids:
            self.stdout.write(self.style.SUCCESS("No expired holds found."))
            return

        if dry_run:
            self.stdout.write(
                self.style.WARNING(f"DRY RUN: {len(ticket_ids)} tickets would be cancelled:")
            )
            for ticket_id in ticket_ids[:10]:
                self.stdout.write(f"  - {ticket_id}")
            if len(ticket_ids) > 10:
                self.stdout.write(f"  ... and {len(ticket_ids) - 10} more")
            return

        self.stdout.write(self.style.SUCCESS(f"Cancelled {len(ticket_ids)} expired tickets."))
