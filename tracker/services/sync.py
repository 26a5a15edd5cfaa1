import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import Any

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from tracker.exceptions import LocalNotFound, RemoteNotFound, SyncAlreadyRunning
from tracker.models import ContestResult, SolvedProblem, StudentProfile, SubmissionRecord
from tracker.services.api_client import CodeforcesClient
from tracker.services.locks import student_sync_lock

logger = logging.getLogger(__name__)

ACCEPTED_VERDICT = "OK"


@dataclass
class InsertOutcome:
    inserted: list[dict[str, Any]] = field(default_factory=list)
    already_present: list[dict[str, Any]] = field(default_factory=list)


def _from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=dt_timezone.utc)


def _join_tags(tags) -> str:
    return ",".join(tags or [])[:500]


def apply_profile_update(student_id: int, **fields) -> StudentProfile:
    """
    Writes only the given fields and returns a freshly loaded profile.
    Loaded instances are never saved back, so concurrent writers touching
    other columns (reminder counts, flags) are not overwritten.
    """
    fields.setdefault("updated_at", timezone.now())
    StudentProfile.objects.filter(id=student_id).update(**fields)
    return StudentProfile.objects.get(id=student_id)


def profile_fields_from_remote(info: dict[str, Any]) -> dict[str, Any]:
    current = int(info.get("rating") or 0)
    return {
        "current_rating": current,
        "max_rating": max(int(info.get("maxRating") or 0), current),
        "rank": info.get("rank") or "Unrated",
        "avatar": info.get("titlePhoto") or info.get("avatar") or "",
    }


def merge_contest_results(student: StudentProfile, rating_changes: list[dict[str, Any]]) -> int:
    known = set(
        ContestResult.objects.filter(student=student).values_list("contest_id", flat=True)
    )
    rows = []
    for change in rating_changes:
        contest_id = change.get("contestId")
        if contest_id is None or contest_id in known:
            continue
        known.add(contest_id)
        old_rating = int(change.get("oldRating") or 0)
        new_rating = int(change.get("newRating") or 0)
        rows.append(
            ContestResult(
                student=student,
                contest_id=contest_id,
                contest_name=change.get("contestName") or "",
                rank=int(change.get("rank") or 0),
                old_rating=old_rating,
                new_rating=new_rating,
                rating_change=new_rating - old_rating,
                rating_update_time_seconds=int(change.get("ratingUpdateTimeSeconds") or 0),
            )
        )

    if rows:
        ContestResult.objects.bulk_create(rows, ignore_conflicts=True)
        logger.info("Added %s new contests for student %s", len(rows), student.id)
    return len(rows)


def _submission_record(student: StudentProfile, sub: dict[str, Any]) -> SubmissionRecord:
    problem = sub.get("problem") or {}
    author = sub.get("author") or {}
    members = author.get("members") or []
    author_name = (members[0].get("handle") if members else None) or author.get("teamName") or "Unknown"
    return SubmissionRecord(
        student=student,
        submission_id=sub["id"],
        contest_id=sub.get("contestId") or 0,
        problem_contest_id=problem.get("contestId"),
        problem_index=problem.get("index") or "",
        problem_name=problem.get("name") or "",
        problem_type=problem.get("type") or "",
        problem_points=problem.get("points"),
        problem_rating=problem.get("rating"),
        tags=_join_tags(problem.get("tags")),
        author=author_name,
        programming_language=sub.get("programmingLanguage") or "",
        verdict=sub.get("verdict") or "UNKNOWN",
        testset=sub.get("testset") or "TESTS",
        passed_test_count=sub.get("passedTestCount") or 0,
        time_consumed_millis=sub.get("timeConsumedMillis") or 0,
        memory_consumed_bytes=sub.get("memoryConsumedBytes") or 0,
        creation_time_seconds=sub.get("creationTimeSeconds") or 0,
    )


def _insert_submission_batch(student: StudentProfile, batch: list[dict[str, Any]], outcome: InsertOutcome) -> None:
    try:
        with transaction.atomic():
            SubmissionRecord.objects.bulk_create([_submission_record(student, sub) for sub in batch])
        outcome.inserted.extend(batch)
        return
    except IntegrityError:
        batch_ids = [sub["id"] for sub in batch]
        present = set(
            SubmissionRecord.objects.filter(submission_id__in=batch_ids).values_list(
                "submission_id", flat=True
            )
        )
        if not present:
            raise

    # Another writer stored some of these ids between the pre-check and the insert.
    logger.warning(
        "Duplicate submission ids while syncing student %s: %s already stored, inserting %s",
        student.id,
        len(present),
        len(batch) - len(present),
    )
    remaining = [sub for sub in batch if sub["id"] not in present]
    with transaction.atomic():
        SubmissionRecord.objects.bulk_create(
            [_submission_record(student, sub) for sub in remaining],
            ignore_conflicts=True,
        )
    outcome.inserted.extend(remaining)
    outcome.already_present.extend(sub for sub in batch if sub["id"] in present)


def merge_submissions(student: StudentProfile, submissions: list[dict[str, Any]]) -> InsertOutcome:
    known = set(
        SubmissionRecord.objects.filter(student=student).values_list("submission_id", flat=True)
    )
    outcome = InsertOutcome()
    fresh = []
    for sub in submissions:
        submission_id = sub.get("id")
        if submission_id is None:
            continue
        if submission_id in known:
            outcome.already_present.append(sub)
            continue
        known.add(submission_id)
        fresh.append(sub)

    batch_size = max(1, int(getattr(settings, "SYNC_INSERT_BATCH_SIZE", 1000)))
    for start in range(0, len(fresh), batch_size):
        _insert_submission_batch(student, fresh[start:start + batch_size], outcome)

    if outcome.inserted:
        logger.info("Added %s new submissions for student %s", len(outcome.inserted), student.id)
    return outcome


def derive_solved_problems(student: StudentProfile, new_submissions: list[dict[str, Any]]) -> int:
    """Records the earliest accepted submission of every problem not solved before."""
    solved_names = set(
        SolvedProblem.objects.filter(student=student).values_list("problem_name", flat=True)
    )
    earliest: dict[str, dict[str, Any]] = {}
    for sub in new_submissions:
        if sub.get("verdict") != ACCEPTED_VERDICT:
            continue
        name = (sub.get("problem") or {}).get("name")
        if not name or name in solved_names:
            continue
        current = earliest.get(name)
        if current is None or sub.get("creationTimeSeconds", 0) < current.get("creationTimeSeconds", 0):
            earliest[name] = sub

    rows = []
    for name, sub in earliest.items():
        problem = sub.get("problem") or {}
        rows.append(
            SolvedProblem(
                student=student,
                problem_name=name,
                problem_rating=problem.get("rating") or 0,
                tags=_join_tags(problem.get("tags")),
                solved_at=_from_epoch(sub.get("creationTimeSeconds") or 0),
                language=sub.get("programmingLanguage") or "",
                verdict=sub.get("verdict") or ACCEPTED_VERDICT,
            )
        )

    if rows:
        SolvedProblem.objects.bulk_create(rows, ignore_conflicts=True)
        logger.info("Added %s new solved problems for student %s", len(rows), student.id)
    return len(rows)


def latest_submission_time(submissions: list[dict[str, Any]]) -> datetime | None:
    times = [sub["creationTimeSeconds"] for sub in submissions if sub.get("creationTimeSeconds")]
    if not times:
        return None
    return _from_epoch(max(times))


def _synchronize(student_id: int, client) -> StudentProfile:
    try:
        student = StudentProfile.objects.get(id=student_id)
    except StudentProfile.DoesNotExist:
        raise LocalNotFound(f"Student profile with ID {student_id} not found.")

    handle = student.handle
    logger.info("Syncing data for student %s (%s)", student.id, handle)

    info = client.fetch_profile(handle)
    if info is None:
        apply_profile_update(student.id, notifications_enabled=False, last_synced_at=timezone.now())
        logger.warning("Codeforces user %s not found. Notifications disabled.", handle)
        raise RemoteNotFound(f"Codeforces user {handle} not found.")

    # Persisted right away: a later failure keeps the fresh rating fields.
    student = apply_profile_update(student.id, **profile_fields_from_remote(info))

    contests_added = merge_contest_results(student, client.fetch_rating_history(handle))

    submissions = client.fetch_submissions(handle)
    outcome = merge_submissions(student, submissions)
    solved_added = derive_solved_problems(student, outcome.inserted)

    student = apply_profile_update(
        student.id,
        last_submission_time=latest_submission_time(submissions),
        last_synced_at=timezone.now(),
    )
    logger.info(
        "sync_student student_id=%s handle=%s contests_added=%s fetched=%s submissions_added=%s solved_added=%s",
        student.id,
        handle,
        contests_added,
        len(submissions),
        len(outcome.inserted),
        solved_added,
    )
    return student


def synchronize_student(student_id: int, client=CodeforcesClient) -> StudentProfile:
    """
    Pulls profile, rating history and submissions for one student and merges
    them into the store. Raises LocalNotFound, RemoteNotFound,
    TransientRemoteError / RemoteError, or SyncAlreadyRunning.
    """
    with student_sync_lock(student_id) as acquired:
        if not acquired:
            raise SyncAlreadyRunning(f"Student {student_id} is already being synchronized.")
        return _synchronize(student_id, client)
