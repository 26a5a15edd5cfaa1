from datetime import datetime, timezone

from django.core.management.base import BaseCommand, CommandError

from tracker.exceptions import RemoteError
from tracker.services.api_client import CodeforcesClient


class Command(BaseCommand):
    help = "Lists recent and upcoming Codeforces contests, or one contest's standings."

    def add_arguments(self, parser):
        parser.add_argument(
            "--standings",
            type=int,
            metavar="CONTEST_ID",
            help="Shows the standings of the given contest instead.",
        )
        parser.add_argument("--from", dest="from_", type=int, default=1)
        parser.add_argument("--count", type=int, default=50)

    def handle(self, *args, **options):
        try:
            if options.get("standings"):
                self._show_standings(options["standings"], options["from_"], options["count"])
            else:
                self._show_contests()
        except RemoteError as exc:
            raise CommandError(str(exc))

    def _show_contests(self):
        for contest in CodeforcesClient.list_contests():
            start = contest.get("startTimeSeconds")
            start_label = (
                datetime.fromtimestamp(start, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
                if start else "TBA"
            )
            self.stdout.write(f"{contest['id']:>6}  {contest.get('phase', ''):<8}  {start_label}  {contest.get('name', '')}")

    def _show_standings(self, contest_id, from_, count):
        standings = CodeforcesClient.fetch_contest_standings(contest_id, from_=from_, count=count)
        if standings is None:
            raise CommandError(f"Standings not found for contest {contest_id}.")
        contest = standings.get("contest") or {}
        self.stdout.write(contest.get("name", str(contest_id)))
        for row in standings.get("rows") or []:
            members = (row.get("party") or {}).get("members") or []
            handles = ", ".join(member.get("handle", "") for member in members)
            self.stdout.write(f"{row.get('rank', ''):>5}  {row.get('points', 0):>8}  {handles}")
