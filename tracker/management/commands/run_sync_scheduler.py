import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger
from django.conf import settings
from django.core.management.base import BaseCommand

from tracker.services.scheduling import ScheduleController, run_daily_sync, with_fresh_db_connections

logger = logging.getLogger(__name__)

CONFIG_POLL_JOB_ID = "schedule-config-poll"


class Command(BaseCommand):
    help = "Runs the daily sync scheduler in the foreground."

    def configure(self, scheduler) -> ScheduleController:
        """Registers the daily sync job and the config poll on the scheduler."""
        controller = ScheduleController(
            scheduler=scheduler,
            job_func=with_fresh_db_connections(run_daily_sync),
        )
        controller.apply_schedule_from_config()

        scheduler.add_job(
            with_fresh_db_connections(controller.refresh_from_config),
            IntervalTrigger(seconds=self.poll_seconds()),
            id=CONFIG_POLL_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        return controller

    @staticmethod
    def poll_seconds() -> int:
        return int(getattr(settings, "SCHEDULE_CONFIG_POLL_SECONDS", 60))

    def handle(self, *args, **options):
        scheduler = BlockingScheduler()
        controller = self.configure(scheduler)

        self.stdout.write(
            f"Scheduler started: daily sync at {controller.active_expression!r} ({controller.active_timezone}), "
            f"config poll every {self.poll_seconds()}s"
        )
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler stopped.")
