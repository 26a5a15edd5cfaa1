import logging
import time
from dataclasses import asdict, dataclass, field

from django.conf import settings

from tracker.models import StudentProfile
from tracker.services.api_client import CodeforcesClient
from tracker.services.sync import synchronize_student

logger = logging.getLogger(__name__)


@dataclass
class BatchStats:
    success_count: int = 0
    error_count: int = 0
    errors: list[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


def _student_delay_seconds() -> float:
    floor = float(getattr(settings, "CODEFORCES_MIN_INTERVAL_SECONDS", 0.2))
    multiplier = int(getattr(settings, "SYNC_STUDENT_DELAY_MULTIPLIER", 2))
    return floor * multiplier


def synchronize_all(client=CodeforcesClient) -> BatchStats:
    """
    Synchronizes every student one after the other. Individual failures are
    collected into the stats; only the initial profile listing can raise.
    """
    students = list(StudentProfile.objects.order_by("id").values_list("id", "handle"))
    logger.info("Starting batch sync for %s students", len(students))

    stats = BatchStats()
    delay = _student_delay_seconds()
    started = time.monotonic()
    for student_id, handle in students:
        try:
            synchronize_student(student_id, client=client)
            stats.success_count += 1
        except Exception as exc:
            logger.warning("Failed to sync student %s (%s): %s", student_id, handle, exc)
            stats.error_count += 1
            stats.errors.append({
                "student_id": student_id,
                "handle": handle,
                "error": str(exc),
            })
        if delay > 0:
            time.sleep(delay)

    logger.info(
        "sync_all students=%s success=%s errors=%s duration_ms=%s",
        len(students),
        stats.success_count,
        stats.error_count,
        int((time.monotonic() - started) * 1000),
    )
    return stats
