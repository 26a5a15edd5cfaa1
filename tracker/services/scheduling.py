import functools
import logging
import threading

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from django.conf import settings
from django.db import DatabaseError, close_old_connections

from tracker.exceptions import ScheduleValidationError
from tracker.models import ScheduleConfig
from tracker.services.batch import BatchStats, synchronize_all
from tracker.services.inactivity import InactivityStats, detect_and_notify
from tracker.services.notifications import send_sync_report

logger = logging.getLogger(__name__)

DAILY_SYNC_JOB_ID = "daily-sync"
SCHEDULE_DESCRIPTION = "Cron schedule for daily data synchronization and inactivity reminders."


def default_expression() -> str:
    return getattr(settings, "DAILY_SYNC_DEFAULT_CRON", "0 2 * * *")


def default_timezone() -> str:
    return getattr(settings, "DAILY_SYNC_TIMEZONE", "Asia/Kolkata")


def build_trigger(expression: str, tz: str | None = None) -> CronTrigger:
    tz = tz or default_timezone()
    if not isinstance(expression, str) or not expression.strip():
        raise ScheduleValidationError("Schedule expression is required.")
    try:
        return CronTrigger.from_crontab(expression.strip(), timezone=tz)
    except (ValueError, KeyError, TypeError) as exc:
        raise ScheduleValidationError(f"Invalid schedule {expression!r} ({tz}): {exc}") from exc


def validate_schedule_expression(expression: str, tz: str | None = None) -> str:
    build_trigger(expression, tz)
    return expression.strip()


def run_daily_sync(notifier=None, report_hook=send_sync_report) -> dict:
    """
    Body of every scheduled firing: batch sync, inactivity reminders, then the
    report with the merged statistics. Never raises.
    """
    logger.info("Starting scheduled daily sync job")
    sync_stats = BatchStats()
    inactivity_stats = InactivityStats()
    try:
        sync_stats = synchronize_all()
        inactivity_stats = detect_and_notify(notifier=notifier)
        logger.info("Scheduled daily sync job completed")
    except Exception:
        logger.exception("Scheduled daily sync job failed")

    merged = {**sync_stats.as_dict(), **inactivity_stats.as_dict()}
    try:
        report_hook(merged, notifier=notifier)
    except Exception:
        logger.exception("Failed to send daily sync report")
    return merged


def with_fresh_db_connections(func):
    """
    Wraps a job run from a scheduler thread so it drops stale or broken
    connections before and after each run.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        close_old_connections()
        try:
            return func(*args, **kwargs)
        finally:
            close_old_connections()

    return wrapper


class ScheduleController:
    """
    Owns the single recurring "daily sync" trigger. Replacing the schedule
    always removes the registered job before adding the new one; a firing
    already in progress is not interrupted.
    """

    def __init__(self, scheduler=None, job_func=run_daily_sync):
        self.scheduler = scheduler if scheduler is not None else BackgroundScheduler()
        self.job_func = job_func
        self.active_expression: str | None = None
        self.active_timezone: str | None = None
        # Last (expression, timezone) asked for, before any fallback.
        self.requested: tuple[str, str] | None = None
        self._job = None
        self._lock = threading.Lock()

    @property
    def is_registered(self) -> bool:
        return self._job is not None

    def stop(self) -> None:
        if self._job is None:
            return
        try:
            self._job.remove()
        except JobLookupError:
            logger.warning("Daily sync job was already removed from the scheduler.")
        self._job = None
        logger.info("Previous daily sync job stopped.")

    def start(self, trigger: CronTrigger) -> None:
        if self._job is not None:
            raise RuntimeError("A daily sync job is already registered; stop it first.")
        self._job = self.scheduler.add_job(
            self.job_func,
            trigger=trigger,
            id=DAILY_SYNC_JOB_ID,
            max_instances=1,
            coalesce=True,
        )

    def apply_schedule(self, expression: str, tz: str | None = None) -> str:
        tz = tz or default_timezone()
        requested = (expression, tz)
        try:
            trigger = build_trigger(expression, tz)
        except ScheduleValidationError as exc:
            logger.warning("%s. Falling back to default %r (%s).", exc, default_expression(), default_timezone())
            expression, tz = default_expression(), default_timezone()
            trigger = build_trigger(expression, tz)

        expression = expression.strip()
        with self._lock:
            self.stop()
            self.start(trigger)
            self.active_expression = expression
            self.active_timezone = tz
            self.requested = requested
        logger.info("Daily sync job scheduled for %r (timezone: %s)", expression, tz)
        return expression

    def apply_schedule_from_config(self) -> str:
        expression, tz = stored_schedule()
        return self.apply_schedule(expression, tz)

    def refresh_from_config(self) -> bool:
        """
        Re-applies the stored schedule if it differs from the last requested
        one. A failed read keeps the current job.
        """
        try:
            expression, tz = read_stored_schedule()
        except DatabaseError as exc:
            logger.warning("Could not read the daily sync schedule, keeping the current one: %s", exc)
            return False
        if (expression, tz) == self.requested:
            return False
        logger.info("Schedule configuration changed; rescheduling daily sync.")
        self.apply_schedule(expression, tz)
        return True

    def shutdown(self) -> None:
        with self._lock:
            self.stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)


def read_stored_schedule() -> tuple[str, str]:
    """Returns the stored (expression, timezone), or the defaults when no row exists."""
    config = ScheduleConfig.objects.filter(key=ScheduleConfig.DAILY_SYNC_KEY).first()
    if config is None:
        return default_expression(), default_timezone()
    return config.value, config.timezone or default_timezone()


def stored_schedule() -> tuple[str, str]:
    try:
        return read_stored_schedule()
    except DatabaseError:
        logger.exception("Failed to read the daily sync schedule; using the default.")
        return default_expression(), default_timezone()


def update_schedule(expression: str, tz: str | None = None, controller: ScheduleController | None = None) -> str:
    """
    Configuration update: validates the request, persists it and, when a
    controller is given, reschedules it. Without one, the scheduler process
    picks the change up on its next config poll.
    """
    expression = validate_schedule_expression(expression, tz)
    ScheduleConfig.objects.update_or_create(
        key=ScheduleConfig.DAILY_SYNC_KEY,
        defaults={
            "value": expression,
            "timezone": tz or "",
            "description": SCHEDULE_DESCRIPTION,
        },
    )
    if controller is None:
        return expression
    return controller.apply_schedule(expression, tz)
