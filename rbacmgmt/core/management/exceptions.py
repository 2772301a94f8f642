"""Management API exceptions for error handling."""
from __future__ import annotations
from typing import Optional, Mapping


class ManagementError(Exception):
    """Base exception for all management operations."""
    pass


class HttpError(ManagementError):
    """Non-success HTTP response from the management API.

    Attributes:
        status_code: HTTP status code
        body: Raw response body
        endpoint: API endpoint that failed
        headers: Response headers
    """

    def __init__(self, status_code: int, body: str, endpoint: str, headers: Optional[Mapping[str, str]] = None):
        self.status_code = status_code
        self.body = body
        self.endpoint = endpoint
        self.headers = dict(headers or {})
        super().__init__(f"[{status_code}] {endpoint}: {_snippet(body)}")


class TransportError(ManagementError):
    """The request never produced an HTTP response (connection failure, timeout)."""
    pass


class NotFoundError(ManagementError):
    """The addressed entity does not exist.

    Attributes:
        cause: HttpError describing the 404 response
    """

    entity = "entity"

    def __init__(self, cause: HttpError):
        self.cause = cause
        super().__init__(f"{self.entity} not found: {cause}")

    @property
    def status_code(self) -> int:
        return self.cause.status_code


class UserNotFoundError(NotFoundError):
    """User lookup failed - username does not exist in the domain."""

    entity = "user"


class GroupNotFoundError(NotFoundError):
    """Group lookup failed - group name does not exist."""

    entity = "group"


class OperationFailedError(ManagementError):
    """Generic failure of a management operation.

    Attributes:
        action: Human-readable description of what failed (e.g. "failed to get users")
        cause: HttpError describing the response
    """

    def __init__(self, action: str, cause: HttpError):
        self.action = action
        self.cause = cause
        super().__init__(f"{action}: {cause}")

    @property
    def status_code(self) -> int:
        return self.cause.status_code


def make_http_error(response) -> HttpError:
    """Build an HttpError from a transport response."""
    return HttpError(
        response.status_code,
        response.body,
        response.url,
        response.headers,
    )


def _snippet(body: Optional[str], limit: int = 200) -> str:
    if not body:
        return ""
    body = body.strip()
    if len(body) > limit:
        return body[:limit] + "..."
    return body
