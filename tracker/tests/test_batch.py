from unittest.mock import call, patch

from django.test import TestCase, override_settings

from tracker.models import StudentProfile
from tracker.services.batch import synchronize_all
from tracker.tests.fakes import FakeCodeforcesClient, FakeRedisMixin, make_submission


@override_settings(CODEFORCES_MIN_INTERVAL_SECONDS=0.2, SYNC_STUDENT_DELAY_MULTIPLIER=2)
class SynchronizeAllTests(FakeRedisMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.students = [
            StudentProfile.objects.create(name=f"Student {i}", email=f"s{i}@example.com", handle=f"cf_user{i}")
            for i in range(1, 6)
        ]
        self.client_fake = FakeCodeforcesClient(
            profiles={
                student.handle: {"handle": student.handle, "rating": 1000 + i}
                for i, student in enumerate(self.students)
                if i != 2
            },
            submissions={"cf_user1": [make_submission(1, "Watermelon")]},
        )

    def test_one_failing_student_does_not_stop_the_batch(self):
        with patch("tracker.services.batch.time.sleep"):
            stats = synchronize_all(client=self.client_fake)

        self.assertEqual(stats.success_count, 4)
        self.assertEqual(stats.error_count, 1)
        self.assertEqual(len(stats.errors), 1)
        self.assertEqual(stats.errors[0]["student_id"], self.students[2].id)
        self.assertEqual(stats.errors[0]["handle"], "cf_user3")
        self.assertIn("not found", stats.errors[0]["error"])

        refreshed = StudentProfile.objects.get(id=self.students[4].id)
        self.assertEqual(refreshed.current_rating, 1004)
        self.assertIsNotNone(refreshed.last_synced_at)

    def test_students_are_processed_in_order_with_a_pause_after_each(self):
        with patch("tracker.services.batch.time.sleep") as sleep_mock:
            synchronize_all(client=self.client_fake)

        profile_calls = [handle for method, handle in self.client_fake.calls if method == "fetch_profile"]
        self.assertEqual(profile_calls, [f"cf_user{i}" for i in range(1, 6)])
        self.assertEqual(sleep_mock.call_args_list, [call(0.4)] * 5)

    def test_unexpected_exceptions_are_isolated(self):
        self.client_fake.errors[("fetch_rating_history", "cf_user2")] = RuntimeError("unexpected payload")

        with patch("tracker.services.batch.time.sleep"):
            stats = synchronize_all(client=self.client_fake)

        self.assertEqual(stats.error_count, 2)
        self.assertEqual(
            [error["handle"] for error in stats.errors],
            ["cf_user2", "cf_user3"],
        )
        self.assertEqual(stats.as_dict()["success_count"], 3)

    def test_listing_failure_propagates(self):
        with patch.object(StudentProfile.objects, "order_by", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                synchronize_all(client=self.client_fake)

    def test_empty_store(self):
        StudentProfile.objects.all().delete()

        with patch("tracker.services.batch.time.sleep") as sleep_mock:
            stats = synchronize_all(client=self.client_fake)

        self.assertEqual(stats.as_dict(), {"success_count": 0, "error_count": 0, "errors": []})
        sleep_mock.assert_not_called()
