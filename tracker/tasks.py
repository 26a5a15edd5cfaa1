import logging

from celery import shared_task

from .exceptions import TrackerError
from .services.batch import synchronize_all
from .services.inactivity import detect_and_notify
from .services.scheduling import run_daily_sync
from .services.sync import synchronize_student

logger = logging.getLogger(__name__)


@shared_task
def sync_student(student_id):
    try:
        student = synchronize_student(student_id)
    except TrackerError as e:
        logger.warning("Manual sync failed for student %s: %s", student_id, e)
        return f"Error updating student {student_id}: {e}"

    return (
        f"Updated {student.handle}: rating {student.current_rating} "
        f"(max {student.max_rating}), last submission {student.last_submission_time or 'never'}."
    )


@shared_task
def sync_all_students() -> dict:
    return synchronize_all().as_dict()


@shared_task
def check_inactive_students(threshold_days: int | None = None) -> dict:
    return detect_and_notify(threshold_days=threshold_days).as_dict()


@shared_task
def daily_sync() -> dict:
    return run_daily_sync()
