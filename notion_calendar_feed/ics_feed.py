"""Calendar feed endpoint for calendar subscriptions.

Provides read-only HTTP access to a person's schedule:
    GET /calendar/{person_id}?format=ics|json

Where person_id is the Notion page id of the person, either hyphenated or as
a bare 32-character hex token. Calendar clients that send
``Accept: text/calendar`` receive the iCalendar feed without needing the
format parameter; everything else gets the JSON summary.
"""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .debug import log_request, log_response
from .errors import FeedError
from .feed_assembler import FeedFormat
from .feed_service import CalendarFeedService

logger = logging.getLogger(__name__)

CALENDAR_MEDIA_TYPES = ("text/calendar", "application/calendar")


def requested_format(request: Request) -> FeedFormat:
    """Pick the feed format from the query string or Accept header.

    An explicit ``format`` parameter wins; otherwise a calendar media type in
    Accept selects iCalendar. The default is the JSON summary.
    """
    fmt = (request.query_params.get("format") or "").lower()
    if fmt == FeedFormat.CALENDAR.value:
        return FeedFormat.CALENDAR
    if fmt == FeedFormat.SUMMARY.value:
        return FeedFormat.SUMMARY

    accept = request.headers.get("accept", "").lower()
    if any(media_type in accept for media_type in CALENDAR_MEDIA_TYPES):
        return FeedFormat.CALENDAR
    return FeedFormat.SUMMARY


class CalendarFeedHandler:
    """Handler for the calendar feed endpoint.

    Fetches the person's schedule through CalendarFeedService and maps its
    outcome to an HTTP response. Record-level failures become JSON error
    bodies with a reason code; an empty schedule is a successful response.
    """

    def __init__(self, service: CalendarFeedService, debug: bool = False) -> None:
        """Initialize calendar feed handler.

        Args:
            service: Feed generation service
            debug: Log request/response summaries
        """
        self.service = service
        self.debug = debug

    async def handle_calendar_request(self, request: Request) -> Response:
        """Handle GET /calendar/{person_id}.

        Returns:
            text/calendar or application/json response; 404 for unknown
            people, 502 for broken upstream data, 500 for unexpected errors
        """
        if self.debug:
            log_request(request.method, str(request.url), dict(request.headers))

        person_id = request.path_params["person_id"]
        fmt = requested_format(request)

        try:
            result = await self.service.generate_feed(person_id, fmt)
        except FeedError as e:
            logger.warning(f"Feed for {person_id} failed [{e.reason}]: {e}")
            response: Response = JSONResponse(e.to_dict(), status_code=e.status_code)
        except Exception as e:
            logger.exception(f"Error generating calendar feed for {person_id}")
            response = JSONResponse(
                {"error": "internal_error", "message": f"Error generating calendar: {e}"},
                status_code=500,
            )
        else:
            document = result.document
            if document.format is FeedFormat.CALENDAR:
                response = Response(
                    content=document.content,
                    media_type=document.media_type,
                    headers={
                        "Content-Disposition": 'attachment; filename="calendar.ics"',
                        "Cache-Control": "private, max-age=300",  # Cache for 5 minutes
                    },
                )
            else:
                body = dict(document.content)  # type: ignore[arg-type]
                body["status"] = "no_events" if result.no_events else "ok"
                response = JSONResponse(body)

        if self.debug:
            log_response(response.status_code, response.media_type, len(response.body))

        return response
