from contextlib import asynccontextmanager
import threading
from typing import AsyncIterator, Optional, TYPE_CHECKING

from fastapi import FastAPI
from structlog.stdlib import BoundLogger

from infrastructure.logging.setup import configure_logging
from infrastructure.notifications import NotificationDispatcher
from infrastructure.services import (
    get_notification_dispatcher,
    get_settings,
)
from jobs import scheduled_tasks

if TYPE_CHECKING:
    from infrastructure.configuration import Settings


def _get_logger(settings: "Settings") -> BoundLogger:
    return configure_logging(
        log_level=settings.LOG_LEVEL, is_production=settings.is_production
    )


def _list_configs(settings: "Settings", logger: BoundLogger) -> None:
    config_settings: dict[str, list[object]] = {"settings": []}

    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            config_settings[key] = list(value.keys())
        else:
            config_settings["settings"].append({key: value})

    logger.info("configuration_initialized", base_settings=config_settings["settings"])
    for key, value in config_settings.items():
        if key != "settings":
            logger.info("configuration_loaded", config_setting=key, keys=value)


def _start_scheduled_tasks(
    dispatcher: NotificationDispatcher,
    settings: "Settings",
    logger: BoundLogger,
) -> Optional[threading.Event]:
    if settings.notifications.process_interval_seconds == 0:
        logger.info("scheduled_tasks_skipped", reason="process_interval_disabled")
        return None

    scheduled_tasks.init(dispatcher, settings)
    stop_event = scheduled_tasks.run_continuously()
    logger.info("scheduled_tasks_started")
    return stop_event


def _stop_scheduled_tasks(stop_event: Optional[threading.Event]) -> None:
    if stop_event is None:
        return
    stop_event.set()
    scheduled_tasks.clear()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger = _get_logger(settings)

    app.state.settings = settings
    app.state.logger = logger

    logger.info("application_startup")
    _list_configs(settings, logger)

    dispatcher = get_notification_dispatcher()
    app.state.dispatcher = dispatcher
    app.state.scheduled_stop_event = _start_scheduled_tasks(dispatcher, settings, logger)

    yield

    logger.info("application_shutdown")

    _stop_scheduled_tasks(app.state.scheduled_stop_event)

    try:
        if dispatcher.store.flush():
            logger.info("job_store_flushed_on_shutdown")
    except OSError as exc:
        logger.error("job_store_flush_failed", error=str(exc))

    dispatcher.shutdown()
