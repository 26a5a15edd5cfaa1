import logging
import time
from dataclasses import asdict, dataclass
from datetime import timedelta

from django.conf import settings
from django.db.models import F, Q
from django.utils import timezone

from tracker.models import StudentProfile
from tracker.services.notifications import EmailNotifier, inactivity_reminder

logger = logging.getLogger(__name__)

UNKNOWN_DAYS = "many"


@dataclass
class InactivityStats:
    sent: int = 0
    failed: int = 0
    total_inactive: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def inactive_students(threshold_days: int, now=None):
    cutoff = (now or timezone.now()) - timedelta(days=threshold_days)
    return StudentProfile.objects.filter(notifications_enabled=True).filter(
        Q(last_submission_time__isnull=True) | Q(last_submission_time__lte=cutoff)
    ).order_by("id")


def detect_and_notify(threshold_days: int | None = None, notifier=None) -> InactivityStats:
    if threshold_days is None:
        threshold_days = int(getattr(settings, "INACTIVITY_THRESHOLD_DAYS", 7))
    notifier = notifier or EmailNotifier()
    delay = float(getattr(settings, "NOTIFICATION_DELAY_SECONDS", 1.0))
    now = timezone.now()

    candidates = list(inactive_students(threshold_days, now=now))
    stats = InactivityStats(total_inactive=len(candidates))
    logger.info("Found %s inactive students (threshold=%s days)", len(candidates), threshold_days)

    for student in candidates:
        if student.last_submission_time:
            days = (now - student.last_submission_time).days
        else:
            days = UNKNOWN_DAYS

        try:
            StudentProfile.objects.filter(id=student.id).update(
                reminder_count=F("reminder_count") + 1,
                updated_at=timezone.now(),
            )
            subject, body = inactivity_reminder(student.name, student.handle, days, student.reminder_count + 1)
            if notifier.send(student.email, subject, body):
                stats.sent += 1
            else:
                stats.failed += 1
        except Exception:
            logger.exception("Error processing inactive student %s (%s)", student.id, student.handle)
            stats.failed += 1

        if delay > 0:
            time.sleep(delay)

    logger.info(
        "inactivity_check sent=%s failed=%s total_inactive=%s",
        stats.sent,
        stats.failed,
        stats.total_inactive,
    )
    return stats
