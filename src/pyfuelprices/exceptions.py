"""Custom exception hierarchy for pyfuelprices."""

from __future__ import annotations


class FuelError(Exception):
    """Base exception for all pyfuelprices errors."""


class FuelConfigError(FuelError):
    """Invalid or missing configuration (credential, endpoint)."""


class FuelFetchError(FuelError):
    """An upstream fetch failed for one unit of work."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
        source: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        self.source = source
        super().__init__(message)


class FuelTransientFetchError(FuelFetchError):
    """Rate-limited (429), server-side (5xx) or transport-level failure.

    Retried by the fetch executor with exponential backoff.
    """


class FuelPermanentFetchError(FuelFetchError):
    """Client-side rejection from an upstream (400, 401, 403, 404, ...).

    Never retried.
    """


class FuelDeadlineExceededError(FuelFetchError):
    """The unit of work was still pending when the refresh deadline expired."""


class FuelParseError(FuelError):
    """Malformed HTML/JSON or an unparseable numeric field.

    Localized to the affected row or field; adapters record it in
    ``PartialRecord.issues`` instead of propagating it.
    """


class FuelCacheTransportError(FuelError):
    """Key-value store unreachable, unconfigured or returned a malformed reply."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class FuelRefreshError(FuelError):
    """A refresh cycle produced nothing worth storing, or storing failed.

    The previously stored snapshot is left untouched.
    """

    def __init__(self, message: str, *, sources: list | None = None) -> None:
        self.sources = sources or []
        super().__init__(message)


class FuelSnapshotWriteError(FuelRefreshError):
    """Sources produced data but the key-value store rejected the write."""
