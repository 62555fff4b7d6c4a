"""Error taxonomy shared by the upstream client, service, and HTTP boundary."""

from __future__ import annotations

from typing import Any, ClassVar


class PostsError(Exception):
    """Base for taxonomy-coded failures.

    ``kind`` is the stable error code exposed to callers and ``status_code``
    the HTTP status the boundary answers with.
    """

    kind: ClassVar[str] = "internal_error"
    status_code: ClassVar[int] = 500

    def __init__(self, message: str, *, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.upstream_status = upstream_status

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.upstream_status is not None:
            body["upstreamStatus"] = self.upstream_status
        return body


class InvalidInputError(PostsError):
    """Malformed input: a missing or oversized field."""

    kind = "validation_error"
    status_code = 400


class UpstreamPayloadError(InvalidInputError):
    """Upstream answered with a body that does not decode as a post."""

    status_code = 502


class PostNotFoundError(PostsError):
    kind = "not_found"
    status_code = 404


class UpstreamUnavailableError(PostsError):
    """Upstream request failed for network reasons or with an error status."""

    kind = "upstream_unavailable"
    status_code = 502


class UpstreamTimeoutError(UpstreamUnavailableError):
    kind = "timeout"
    status_code = 504


class InternalError(PostsError):
    kind = "internal_error"
    status_code = 500
