"""Record-level errors raised while generating a feed.

Entry-level problems (one unparseable date) never raise; they are logged and
the entry is skipped. Only failures that make the whole feed impossible are
modeled here.
"""

from __future__ import annotations


class FeedError(Exception):
    """Feed generation error with a machine-readable reason code."""

    reason = "feed_error"
    status_code = 500

    def __init__(self, message: str, err: Exception | None = None):
        self.message = message
        self.err = err
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.err:
            return f"{self.message}: {self.err}"
        return self.message

    def to_dict(self) -> dict[str, str]:
        """Serialize as the JSON error body returned to HTTP clients."""
        return {"error": self.reason, "message": self.message}


class PersonNotFoundError(FeedError):
    """No person record exists for the identifier."""

    reason = "not_found"
    status_code = 404


class MalformedUpstreamDataError(FeedError):
    """The schedule blob exists but is not valid structured data."""

    reason = "malformed_upstream_data"
    status_code = 502


class UpstreamRequestError(FeedError):
    """The workspace database request failed for a reason other than not-found."""

    reason = "upstream_error"
    status_code = 502
