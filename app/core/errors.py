# app/core/errors.py
from typing import Optional


class CatalogError(Exception):
    """
    Base error surfaced to API callers as {"error": message, "details": detail}.
    """
    status_code: int = 500

    def __init__(self, message: str, *, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ClientInputError(CatalogError):
    """A required parameter is missing. Never retried."""
    status_code = 400


class ItemNotFound(CatalogError):
    status_code = 404


class UpstreamHTTPError(CatalogError):
    """Upstream answered with an HTTP error status; the status is mirrored."""
    status_code = 502


class UpstreamUnavailable(CatalogError):
    """No response received from upstream (network failure or timeout)."""
    status_code = 503
