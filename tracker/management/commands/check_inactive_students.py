from django.core.management.base import BaseCommand

from tracker.services.inactivity import detect_and_notify


class Command(BaseCommand):
    help = "Sends reminders to students without submissions in the trailing window."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            help="Inactivity window in days (defaults to INACTIVITY_THRESHOLD_DAYS).",
        )

    def handle(self, *args, **options):
        stats = detect_and_notify(threshold_days=options.get("days"))
        self.stdout.write(
            self.style.SUCCESS(
                f"Inactive: {stats.total_inactive}, reminders sent: {stats.sent}, failed: {stats.failed}."
            )
        )
