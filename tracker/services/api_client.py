import logging
import threading
import time
from typing import Any

import requests
from django.conf import settings

from tracker.exceptions import RemoteError, TransientRemoteError

logger = logging.getLogger(__name__)


class CodeforcesClient:
    """
    Thin wrapper over the public Codeforces API.

    Every call waits for the process-wide minimum interval before it starts,
    so interleaved calls for different students still respect the judge's
    rate limit. Transport failures, 429 and 5xx answers raise
    TransientRemoteError; other judge-side failures raise RemoteError.
    """

    BASE_URL = "https://codeforces.com/api"
    CONTEST_PHASES = {"FINISHED", "BEFORE"}

    _throttle_lock = threading.Lock()
    _last_call_started: float | None = None

    @classmethod
    def _base_url(cls) -> str:
        return getattr(settings, "CODEFORCES_API_URL", cls.BASE_URL).rstrip("/")

    @classmethod
    def _timeout(cls) -> int:
        return getattr(settings, "CODEFORCES_TIMEOUT_SECONDS", 10)

    @classmethod
    def _throttle(cls) -> None:
        interval = float(getattr(settings, "CODEFORCES_MIN_INTERVAL_SECONDS", 0.2))
        # Holding the lock while sleeping keeps call starts strictly spaced.
        with cls._throttle_lock:
            last = CodeforcesClient._last_call_started
            if last is not None:
                wait = interval - (time.monotonic() - last)
                if wait > 0:
                    time.sleep(wait)
            CodeforcesClient._last_call_started = time.monotonic()

    @classmethod
    def _request(
        cls,
        method: str,
        params: dict[str, Any],
        timeout: int | None = None,
    ) -> tuple[int, dict[str, Any]]:
        cls._throttle()
        url = f"{cls._base_url()}/{method}"
        try:
            response = requests.get(url, params=params, timeout=timeout or cls._timeout())
        except requests.Timeout as exc:
            raise TransientRemoteError(f"{method} timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise TransientRemoteError(f"{method} connection error: {exc}") from exc

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientRemoteError(f"{method} returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise RemoteError(
                f"{method} returned a non-JSON body (HTTP {response.status_code})"
            ) from exc

        return response.status_code, payload

    @staticmethod
    def _is_ok(status_code: int, payload: dict[str, Any]) -> bool:
        return status_code == 200 and payload.get("status") == "OK"

    @staticmethod
    def _comment(payload: dict[str, Any]) -> str:
        return str(payload.get("comment") or "")

    @classmethod
    def fetch_profile(cls, handle: str) -> dict[str, Any] | None:
        """Returns the user.info object, or None when the handle does not exist."""
        status_code, payload = cls._request("user.info", {"handles": handle})
        if cls._is_ok(status_code, payload):
            result = payload.get("result") or []
            return result[0] if result else None

        comment = cls._comment(payload)
        if status_code == 400 and "not found" in comment.lower():
            logger.warning("Codeforces handle %s not found: %s", handle, comment)
            return None
        raise RemoteError(f"user.info failed for {handle}: {comment or status_code}")

    @classmethod
    def fetch_rating_history(cls, handle: str) -> list[dict[str, Any]]:
        status_code, payload = cls._request("user.rating", {"handle": handle})
        if cls._is_ok(status_code, payload):
            return payload.get("result") or []

        if status_code == 400:
            # The judge answers 400 for users without any rated participation.
            logger.warning(
                "No rating changes for %s (Codeforces returned 400: %s)",
                handle,
                cls._comment(payload),
            )
            return []
        raise RemoteError(f"user.rating failed for {handle}: {cls._comment(payload) or status_code}")

    @classmethod
    def fetch_submissions(
        cls,
        handle: str,
        from_: int = 1,
        count: int | None = None,
    ) -> list[dict[str, Any]]:
        if count is None:
            count = getattr(settings, "CODEFORCES_SUBMISSIONS_PAGE_SIZE", 100000)
        status_code, payload = cls._request(
            "user.status",
            {"handle": handle, "from": from_, "count": count},
            timeout=getattr(settings, "CODEFORCES_SUBMISSIONS_TIMEOUT_SECONDS", 15),
        )
        if cls._is_ok(status_code, payload):
            return payload.get("result") or []
        raise RemoteError(f"user.status failed for {handle}: {cls._comment(payload) or status_code}")

    @classmethod
    def fetch_contest_standings(
        cls,
        contest_id: int,
        from_: int = 1,
        count: int = 50,
    ) -> dict[str, Any] | None:
        status_code, payload = cls._request(
            "contest.standings",
            {
                "contestId": contest_id,
                "from": from_,
                "count": count,
                "showUnofficial": "true",
            },
        )
        if cls._is_ok(status_code, payload):
            return payload.get("result")

        logger.warning(
            "Standings unavailable for contest %s: %s",
            contest_id,
            cls._comment(payload) or status_code,
        )
        return None

    @classmethod
    def list_contests(cls) -> list[dict[str, Any]]:
        """Finished and upcoming contests, newest start time first."""
        status_code, payload = cls._request("contest.list", {"gym": "false"})
        if not cls._is_ok(status_code, payload):
            raise RemoteError(f"contest.list failed: {cls._comment(payload) or status_code}")

        limit = getattr(settings, "CODEFORCES_RECENT_CONTESTS_LIMIT", 20)
        contests = [
            contest
            for contest in payload.get("result") or []
            if contest.get("phase") in cls.CONTEST_PHASES
        ]
        contests.sort(key=lambda contest: contest.get("startTimeSeconds") or 0, reverse=True)
        return contests[:limit]

    @classmethod
    def validate_handle(cls, handle: str) -> bool:
        if not handle:
            return False
        try:
            return cls.fetch_profile(handle) is not None
        except RemoteError as exc:
            logger.warning("Could not validate handle %s: %s", handle, exc)
            return False
