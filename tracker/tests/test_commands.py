import importlib
import os
from io import StringIO
from unittest.mock import patch

from apscheduler.schedulers.background import BackgroundScheduler
from django.core.management import CommandError, call_command
from django.test import SimpleTestCase, TestCase, override_settings

from tracker.exceptions import RemoteNotFound
from tracker.management.commands.run_sync_scheduler import CONFIG_POLL_JOB_ID, Command as RunSyncSchedulerCommand
from tracker.models import ScheduleConfig, StudentProfile
from tracker.services.batch import BatchStats
from tracker.services.scheduling import DAILY_SYNC_JOB_ID, run_daily_sync
from tracker.tasks import sync_student
from tracker.tests.fakes import FakeRedisMixin


class SyncStudentTaskTests(FakeRedisMixin, TestCase):
    def test_unknown_student_returns_error_message(self):
        result = sync_student(999)

        self.assertEqual(result, "Error updating student 999: Student profile with ID 999 not found.")

    def test_success_returns_summary(self):
        student = StudentProfile.objects.create(name="Alice", email="alice@example.com", handle="alice_cf", current_rating=1500)
        with patch("tracker.tasks.synchronize_student", return_value=student):
            result = sync_student(student.id)

        self.assertIn("Updated alice_cf: rating 1500", result)


class SetSyncScheduleCommandTests(TestCase):
    def test_valid_expression_is_stored(self):
        out = StringIO()
        call_command("set_sync_schedule", "0 3 * * *", "--timezone", "UTC", stdout=out)

        config = ScheduleConfig.objects.get(key=ScheduleConfig.DAILY_SYNC_KEY)
        self.assertEqual((config.value, config.timezone), ("0 3 * * *", "UTC"))
        self.assertIn("'0 3 * * *'", out.getvalue())

    def test_invalid_expression_raises_command_error(self):
        with self.assertRaises(CommandError):
            call_command("set_sync_schedule", "whenever", stdout=StringIO())

        self.assertFalse(ScheduleConfig.objects.exists())


class SyncStudentsCommandTests(TestCase):
    def test_single_student_failure_becomes_command_error(self):
        with patch(
            "tracker.management.commands.sync_students.synchronize_student",
            side_effect=RemoteNotFound("Codeforces user ghost not found."),
        ):
            with self.assertRaises(CommandError):
                call_command("sync_students", "--student-id", "7", stdout=StringIO())

    def test_batch_prints_failures(self):
        stats = BatchStats(
            success_count=2,
            error_count=1,
            errors=[{"student_id": 3, "handle": "ghost", "error": "Codeforces user ghost not found."}],
        )
        out = StringIO()
        with patch("tracker.management.commands.sync_students.synchronize_all", return_value=stats):
            call_command("sync_students", stdout=out)

        output = out.getvalue()
        self.assertIn("ghost (id=3)", output)
        self.assertIn("2 ok, 1 failed", output)


class RecentContestsCommandTests(TestCase):
    def test_lists_contests(self):
        contests = [{"id": 1900, "phase": "BEFORE", "startTimeSeconds": 1_700_000_000, "name": "Codeforces Round 900"}]
        out = StringIO()
        with patch("tracker.management.commands.recent_contests.CodeforcesClient.list_contests", return_value=contests):
            call_command("recent_contests", stdout=out)

        self.assertIn("Codeforces Round 900", out.getvalue())
        self.assertIn("2023-11-14", out.getvalue())

    def test_missing_standings_raise_command_error(self):
        with patch(
            "tracker.management.commands.recent_contests.CodeforcesClient.fetch_contest_standings",
            return_value=None,
        ):
            with self.assertRaises(CommandError):
                call_command("recent_contests", "--standings", "42", stdout=StringIO())


class RunSyncSchedulerCommandTests(TestCase):
    @override_settings(SCHEDULE_CONFIG_POLL_SECONDS=30)
    def test_jobs_run_with_fresh_db_connections(self):
        ScheduleConfig.objects.create(key=ScheduleConfig.DAILY_SYNC_KEY, value="0 4 * * *", timezone="UTC")
        scheduler = BackgroundScheduler()

        controller = RunSyncSchedulerCommand().configure(scheduler)

        jobs = {job.id: job for job in scheduler.get_jobs()}
        self.assertEqual(set(jobs), {DAILY_SYNC_JOB_ID, CONFIG_POLL_JOB_ID})
        self.assertIs(jobs[DAILY_SYNC_JOB_ID].func.__wrapped__, run_daily_sync)
        self.assertEqual(jobs[CONFIG_POLL_JOB_ID].func.__wrapped__, controller.refresh_from_config)
        self.assertEqual(jobs[CONFIG_POLL_JOB_ID].trigger.interval.total_seconds(), 30)
        self.assertEqual(controller.active_expression, "0 4 * * *")


class SettingsTests(SimpleTestCase):
    def test_settings_load_without_allowed_hosts_in_env(self):
        import tracker_project.settings as project_settings

        env = {key: value for key, value in os.environ.items() if key != "ALLOWED_HOSTS"}
        with patch.dict(os.environ, env, clear=True):
            reloaded = importlib.reload(project_settings)

        self.assertEqual(reloaded.ALLOWED_HOSTS, [])
