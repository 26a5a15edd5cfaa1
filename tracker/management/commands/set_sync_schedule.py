from django.core.management.base import BaseCommand, CommandError

from tracker.exceptions import ScheduleValidationError
from tracker.services.scheduling import update_schedule


class Command(BaseCommand):
    help = "Stores a new cron expression for the daily sync job."

    def add_arguments(self, parser):
        parser.add_argument("expression", help='Cron expression, e.g. "0 2 * * *".')
        parser.add_argument(
            "--timezone",
            help="IANA timezone for the expression (defaults to DAILY_SYNC_TIMEZONE).",
        )

    def handle(self, *args, **options):
        try:
            expression = update_schedule(options["expression"], options.get("timezone"))
        except ScheduleValidationError as exc:
            raise CommandError(str(exc))
        self.stdout.write(
            self.style.SUCCESS(
                f"Daily sync schedule updated to {expression!r}. "
                "A running scheduler applies it on its next config poll."
            )
        )
