"""Management command to recompute denormalized counters."""

import logging
from typing import Any

from django.core.management.base import BaseCommand

from server.apps.library.logic.counter_operations import refresh_all_counters

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Recompute department, folder and user counters from resources."""

    help = 'Recompute denormalized department, folder and user counters'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drifted counters without fixing them',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the refresh.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        report = refresh_all_counters(dry_run=dry_run)

        summary = (
            f'{report.departments} departments, {report.folders} folders, '
            f'{report.users} users'
        )
        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would refresh {summary}'),
            )
        else:
            logger.info(
                'Refreshed counters: %d departments, %d folders, %d users',
                report.departments,
                report.folders,
                report.users,
            )
            self.stdout.write(
                self.style.SUCCESS(f'Refreshed {summary}'),
            )
