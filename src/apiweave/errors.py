"""Exception hierarchy for apiweave.

Construction-time problems (bad catalogs, pipelines, work units) raise
ValidationError before anything usable is produced. Run-time failures
(TransportError, PayloadError) abort a single pipeline run and leave the
cache and other pipelines untouched.
"""


class ApiWeaveError(Exception):
    """Base exception for all apiweave errors."""


class InvalidKeyError(ApiWeaveError, TypeError):
    """Cache key was not a string."""


class CacheReadError(ApiWeaveError):
    """A persisted cache snapshot exists but could not be loaded."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class UnknownEndpointError(ApiWeaveError, LookupError):
    """Endpoint slug or reference does not belong to the catalog."""


class UnsupportedMethodError(ApiWeaveError):
    """Only idempotent GET requests are dispatched."""


class TransportError(ApiWeaveError):
    """Network or remote failure for a single request.

    Args:
        uri: Request URI that failed
        message: Human readable reason
        status_code: HTTP status when the remote answered with an error
        response_body: Excerpt of the error body, if any
    """

    def __init__(
        self,
        uri: str,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(f"{message} ({uri})")
        self.uri = uri
        self.status_code = status_code
        self.response_body = response_body


class PayloadError(ApiWeaveError):
    """Response body could not be parsed as JSON."""

    def __init__(self, uri: str, message: str) -> None:
        super().__init__(f"{message} ({uri})")
        self.uri = uri


class ValidationError(ApiWeaveError, ValueError):
    """Malformed catalog, endpoint, work unit or pipeline definition."""
