"""Starlette application serving personnel calendar feeds."""

from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .config import FeedConfig
from .feed_service import CalendarFeedService
from .ics_feed import CalendarFeedHandler


def create_app(
    config: FeedConfig | None = None,
    service: CalendarFeedService | None = None,
) -> Starlette:
    """Create the feed server application.

    Args:
        config: Feed configuration (read from the environment if None)
        service: Pre-built feed service (created from config if None)

    Returns:
        Starlette application with the health and calendar routes
    """
    config = config or FeedConfig.from_env()
    service = service or CalendarFeedService(config)
    handler = CalendarFeedHandler(service, debug=config.debug)

    async def health(request: Request) -> JSONResponse:
        return JSONResponse(
            {
                "status": "Calendar Feed Server Running",
                "endpoints": {
                    "calendar": "/calendar/{personId}",
                    "ics": "/calendar/{personId}?format=ics",
                    "json": "/calendar/{personId}?format=json",
                },
            }
        )

    async def calendar(request: Request):  # type: ignore
        return await handler.handle_calendar_request(request)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        yield
        await service.close()

    return Starlette(
        routes=[
            Route("/", health, methods=["GET"]),
            Route("/calendar/{person_id}", calendar, methods=["GET"]),
        ],
        lifespan=lifespan,
    )
