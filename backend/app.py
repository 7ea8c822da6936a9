"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fastapi import FastAPI

from api.v1 import api_router
from core.config import settings
from services.notifications import NotificationProducer, NotificationRegistry

API_PREFIX = "/api/v1"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or settings.log_level, format=LOG_FORMAT)


def create_app(
    *,
    registry: NotificationRegistry | None = None,
    producers: Iterable[NotificationProducer] = (),
) -> FastAPI:
    """Build the API with its own notification registry.

    ``producers`` register their notifications into the registry before the
    app starts serving.
    """
    configure_logging()
    notification_registry = registry if registry is not None else NotificationRegistry()
    notification_registry.init(producers)

    application = FastAPI(title=settings.app_name)
    application.state.notification_registry = notification_registry
    application.include_router(api_router, prefix=API_PREFIX)

    @application.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return application
