import threading
import time
from typing import TYPE_CHECKING

import schedule

from infrastructure.logging import get_module_logger
from infrastructure.notifications import NotificationDispatcher

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()

SCHEDULE_TAG = "notification-queue"


def safe_run(job):
    def wrapper(*args, **kwargs):
        try:
            job(*args, **kwargs)
        except Exception as e:
            logger.error("scheduled_job_failed", job=job.__name__, error=str(e))

    return wrapper


def init(dispatcher: NotificationDispatcher, settings: "Settings"):
    logger.info(
        "scheduled_tasks_initialized",
        process_interval_seconds=settings.notifications.process_interval_seconds,
        flush_interval_ms=settings.job_store.flush_interval_ms,
    )

    schedule.every(settings.notifications.process_interval_seconds).seconds.do(
        safe_run(process_due_notifications),
        dispatcher=dispatcher,
        limit=settings.notifications.process_batch_size,
    ).tag(SCHEDULE_TAG)
    schedule.every(max(1, settings.job_store.flush_interval_ms // 1000)).seconds.do(
        safe_run(flush_job_store), dispatcher=dispatcher
    ).tag(SCHEDULE_TAG)
    schedule.every(5).minutes.do(safe_run(scheduler_heartbeat)).tag(SCHEDULE_TAG)


def clear():
    schedule.clear(SCHEDULE_TAG)


def scheduler_heartbeat():
    logger.info("scheduler_heartbeat", at=time.ctime())


def process_due_notifications(dispatcher: NotificationDispatcher, limit: int):
    result = dispatcher.process_due_jobs(limit=limit)
    if result.processed or result.skipped:
        logger.info(
            "scheduled_queue_run_completed",
            processed=result.processed,
            sent=result.sent,
            retried=result.retried,
            failed=result.failed,
            skipped=result.skipped,
        )


def flush_job_store(dispatcher: NotificationDispatcher):
    if dispatcher.store.flush():
        logger.debug("job_store_flushed")


def run_continuously(interval=1):
    """Continuously run, while executing pending jobs at each
    elapsed time interval.
    @return cease_continuous_run: threading. Event which can
    be set to cease continuous run. Please note that it is
    *intended behavior that run_continuously() does not run
    missed jobs*. For example, if you've registered a job that
    should run every minute and you set a continuous run
    interval of one hour then your job won't be run 60 times
    at each interval but only once.
    """
    cease_continuous_run = threading.Event()

    class ScheduleThread(threading.Thread):
        @classmethod
        def run(cls):
            while not cease_continuous_run.is_set():
                schedule.run_pending()
                time.sleep(interval)

    continuous_thread = ScheduleThread(daemon=True, name="notification-scheduler")
    continuous_thread.start()
    return cease_continuous_run
