import typing as t

import structlog
from django.core.management.base import BaseCommand, CommandError, CommandParser

from registrations.domain.errors import DomainError
from registrations.wiring import build_registration_service

logger = structlog.get_logger(__name__)


class Command(BaseCommand):
    """Recompute approved counts from registration records and repair drift."""

    help = "Recompute approved counts from registration records and repair drift."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument("--event", dest="event_id", help="Reconcile a single event by ID.")

    def handle(self, *args: t.Any, **options: t.Any) -> None:
        service = build_registration_service()
        event_id = options.get("event_id")

        if event_id:
            try:
                count = service.reconcile_event(event_id)
            except DomainError as e:
                raise CommandError(str(e)) from e
            self.stdout.write(f"{event_id}: approved_count={count}")
            return

        results = service.reconcile_all()
        drifted = [result for result in results if result.drifted]
        for result in drifted:
            self.stdout.write(
                f"{result.event_id}: approved_count {result.previous_count} -> {result.approved_count}"
            )
        logger.info("reconcile_command_finished", events=len(results), drifted=len(drifted))
        self.stdout.write(self.style.SUCCESS(f"Reconciled {len(results)} events, repaired {len(drifted)}."))
