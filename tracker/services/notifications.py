import logging

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

logger = logging.getLogger(__name__)


class EmailNotifier:
    """Outbound notification channel backed by Django's email framework."""

    def __init__(self, from_email: str | None = None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL

    def send(self, recipient: str, subject: str, body: str) -> bool:
        if not recipient:
            logger.warning("Skipping email '%s': no recipient.", subject)
            return False
        try:
            sent = send_mail(subject, body, self.from_email, [recipient], fail_silently=False)
        except Exception:
            logger.exception("Failed to send email to %s", recipient)
            return False
        if sent:
            logger.info("Email sent to %s: %s", recipient, subject)
        return bool(sent)


def inactivity_reminder(name: str, handle: str, days, reminder_count: int) -> tuple[str, str]:
    subject = f"Coding practice reminder - {days} days without a submission"
    body = (
        f"Hi {name},\n\n"
        f"We noticed you haven't submitted any solutions on Codeforces "
        f"(handle: {handle}) in the last {days} days.\n"
        f"This is reminder #{reminder_count} to get back into your practice.\n\n"
        "Pick a problem slightly below your comfort zone and keep the streak going:\n"
        "https://codeforces.com/problemset\n\n"
        "If you want to stop receiving these emails, please contact your administrator.\n"
    )
    return subject, body


def sync_report(stats: dict) -> tuple[str, str]:
    today = timezone.localdate().isoformat()
    subject = f"Daily sync report - {today}"
    lines = [
        f"Daily synchronization report for {today}",
        "",
        f"Successful syncs: {stats.get('success_count', 0)}",
        f"Failed syncs: {stats.get('error_count', 0)}",
        "",
        f"Inactive students identified: {stats.get('total_inactive', 0)}",
        f"Reminders sent: {stats.get('sent', 0)}",
        f"Reminder failures: {stats.get('failed', 0)}",
    ]
    errors = stats.get("errors") or []
    if errors:
        lines += ["", "Sync failures:"]
        lines += [f"- {err.get('handle') or err.get('student_id')}: {err.get('error')}" for err in errors]
    return subject, "\n".join(lines) + "\n"


def send_sync_report(stats: dict, notifier=None) -> bool:
    admin_email = getattr(settings, "ADMIN_EMAIL", "")
    if not admin_email:
        logger.warning("ADMIN_EMAIL not configured. Sync report not sent.")
        return False
    subject, body = sync_report(stats)
    return (notifier or EmailNotifier()).send(admin_email, subject, body)
