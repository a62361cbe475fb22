import logging

from apscheduler.schedulers.background import BackgroundScheduler
from flask import Flask

from recompletion.utils.task import CheckRecompletionTask

logger = logging.getLogger(__name__)


def start_scheduler(app: Flask):
    """
    Start background scheduler for:
    - Recompletion checks (hourly, at RECOMPLETION_CHECK_MINUTE past the hour)
    """
    scheduler = BackgroundScheduler()
    task = CheckRecompletionTask(app)

    def check_recompletion():
        summary = task.execute()
        logger.info("[Scheduler] Sent %d reminder(s), reset %d completion(s)",
                    summary.reminders, summary.resets)

    scheduler.add_job(
        func=check_recompletion,
        trigger="cron",
        minute=app.config.get('RECOMPLETION_CHECK_MINUTE', 0),
        id='check_recompletion',
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info("[Scheduler] Background tasks started")

    return scheduler
