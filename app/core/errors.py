from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base error rendered as a failed response envelope.

    ``data`` is the empty payload the envelope carries (``None`` for single
    entities, ``[]`` for lists) and ``extra`` holds additional envelope keys.
    """

    status_code = 500

    def __init__(self, message: str, *, data: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data
        self.extra = dict(extra or {})


class ValidationError(CatalogError):
    """Malformed or missing input. Reported immediately, never retried."""

    status_code = 400


class NotFoundError(CatalogError):
    """The requested entity does not exist upstream."""

    status_code = 404


class UpstreamTransientError(CatalogError):
    """Timeout, network failure or malformed upstream payload."""

    status_code = 503


class SynthesisFailure(CatalogError):
    status_code = 500
