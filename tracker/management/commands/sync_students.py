from django.core.management.base import BaseCommand, CommandError

from tracker.exceptions import TrackerError
from tracker.services.batch import synchronize_all
from tracker.services.sync import synchronize_student


class Command(BaseCommand):
    help = "Synchronizes Codeforces data for one student or for every student."

    def add_arguments(self, parser):
        parser.add_argument(
            "--student-id",
            type=int,
            help="Synchronizes only the given student.",
        )

    def handle(self, *args, **options):
        student_id = options.get("student_id")
        if student_id:
            try:
                student = synchronize_student(student_id)
            except TrackerError as exc:
                raise CommandError(str(exc))
            self.stdout.write(
                self.style.SUCCESS(
                    f"Synced {student.handle}: rating {student.current_rating}, "
                    f"last submission {student.last_submission_time or 'never'}."
                )
            )
            return

        stats = synchronize_all()
        for error in stats.errors:
            self.stdout.write(
                self.style.WARNING(f"{error['handle']} (id={error['student_id']}): {error['error']}")
            )
        self.stdout.write(
            self.style.SUCCESS(
                f"Batch sync finished: {stats.success_count} ok, {stats.error_count} failed."
            )
        )
