from datetime import datetime, timedelta, timezone as dt_timezone
from unittest.mock import call, patch

from django.core import mail
from django.test import TestCase, override_settings

from tracker.models import StudentProfile
from tracker.services.inactivity import detect_and_notify
from tracker.services.notifications import EmailNotifier, send_sync_report
from tracker.tests.fakes import RecordingNotifier

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=dt_timezone.utc)


@override_settings(NOTIFICATION_DELAY_SECONDS=1.0)
class DetectAndNotifyTests(TestCase):
    def setUp(self):
        patcher = patch("tracker.services.inactivity.timezone.now", return_value=NOW)
        patcher.start()
        self.addCleanup(patcher.stop)
        sleeper = patch("tracker.services.inactivity.time.sleep")
        self.sleep_mock = sleeper.start()
        self.addCleanup(sleeper.stop)

    def _student(self, handle, days_ago=None, **extra):
        last = NOW - timedelta(days=days_ago) if days_ago is not None else None
        return StudentProfile.objects.create(
            name=handle.title(),
            email=f"{handle}@example.com",
            handle=handle,
            last_submission_time=last,
            **extra,
        )

    def test_only_inactive_students_are_reminded(self):
        quiet = self._student("quiet", days_ago=10)
        self._student("busy", days_ago=2)

        notifier = RecordingNotifier()
        stats = detect_and_notify(threshold_days=7, notifier=notifier)

        self.assertEqual(stats.as_dict(), {"sent": 1, "failed": 0, "total_inactive": 1})
        self.assertEqual(len(notifier.sent), 1)
        recipient, subject, body = notifier.sent[0]
        self.assertEqual(recipient, "quiet@example.com")
        self.assertIn("10 days", subject)
        self.assertIn("reminder #1", body)
        quiet.refresh_from_db()
        self.assertEqual(quiet.reminder_count, 1)

    def test_threshold_boundary_is_inclusive(self):
        self._student("exactly_seven", days_ago=7)
        self._student("six_days", days_ago=6)

        notifier = RecordingNotifier()
        stats = detect_and_notify(threshold_days=7, notifier=notifier)

        self.assertEqual(stats.total_inactive, 1)
        self.assertEqual(notifier.sent[0][0], "exactly_seven@example.com")

    def test_student_without_submissions_gets_unknown_day_count(self):
        self._student("never_submitted")

        notifier = RecordingNotifier()
        detect_and_notify(threshold_days=7, notifier=notifier)

        self.assertIn("many days", notifier.sent[0][1])

    def test_disabled_students_are_skipped(self):
        self._student("muted", days_ago=30, notifications_enabled=False)

        notifier = RecordingNotifier()
        stats = detect_and_notify(threshold_days=7, notifier=notifier)

        self.assertEqual(stats.total_inactive, 0)
        self.assertEqual(notifier.sent, [])

    def test_delivery_failures_are_counted_and_processing_continues(self):
        for handle in ("first", "second", "third"):
            self._student(handle, days_ago=20)

        notifier = RecordingNotifier(results=[False, RuntimeError("smtp down"), True])
        stats = detect_and_notify(threshold_days=7, notifier=notifier)

        self.assertEqual(stats.as_dict(), {"sent": 1, "failed": 2, "total_inactive": 3})
        self.assertEqual(len(notifier.sent), 3)
        self.assertEqual(self.sleep_mock.call_args_list, [call(1.0)] * 3)

    def test_reminder_count_keeps_increasing(self):
        student = self._student("repeat", days_ago=9)

        notifier = RecordingNotifier()
        detect_and_notify(threshold_days=7, notifier=notifier)
        detect_and_notify(threshold_days=7, notifier=notifier)

        student.refresh_from_db()
        self.assertEqual(student.reminder_count, 2)
        self.assertIn("reminder #2", notifier.sent[1][2])

    @override_settings(INACTIVITY_THRESHOLD_DAYS=30)
    def test_threshold_defaults_to_setting(self):
        self._student("twenty", days_ago=20)

        stats = detect_and_notify(notifier=RecordingNotifier())

        self.assertEqual(stats.total_inactive, 0)

    def test_email_notifier_uses_django_mail(self):
        self._student("mailme", days_ago=8)

        stats = detect_and_notify(threshold_days=7)

        self.assertEqual(stats.sent, 1)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["mailme@example.com"])


class NotificationTests(TestCase):
    def test_notifier_rejects_empty_recipient(self):
        self.assertFalse(EmailNotifier().send("", "subject", "body"))
        self.assertEqual(mail.outbox, [])

    def test_notifier_reports_transport_failure(self):
        with patch("tracker.services.notifications.send_mail", side_effect=OSError("connection refused")):
            self.assertFalse(EmailNotifier().send("a@example.com", "subject", "body"))

    @override_settings(ADMIN_EMAIL="admin@example.com")
    def test_sync_report_lists_failures(self):
        stats = {
            "success_count": 4,
            "error_count": 1,
            "errors": [{"student_id": 3, "handle": "cf_user3", "error": "Codeforces user cf_user3 not found."}],
            "sent": 2,
            "failed": 0,
            "total_inactive": 2,
        }

        self.assertTrue(send_sync_report(stats))

        self.assertEqual(mail.outbox[0].to, ["admin@example.com"])
        self.assertIn("Successful syncs: 4", mail.outbox[0].body)
        self.assertIn("cf_user3: Codeforces user cf_user3 not found.", mail.outbox[0].body)

    @override_settings(ADMIN_EMAIL="")
    def test_sync_report_skipped_without_admin_address(self):
        self.assertFalse(send_sync_report({}))
        self.assertEqual(mail.outbox, [])
