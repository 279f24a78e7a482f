"""
Error taxonomy for payment execution.

Every error carries a machine-readable ``error_code`` and a ``details``
dict. Remote failures additionally carry the HTTP status and the
response body verbatim, so the caller sees exactly what the ledger or
notary said.

Codes are stable for automation:
    - CONFIGURATION: entry parameters are missing or inconsistent.
    - MALFORMED_QUOTE: a quoted hop lacks the fields needed to link it.
    - HTTP_ERROR: a ledger call returned status >= 400.
    - NOTARY_ERROR: a notary case call returned status >= 400.
    - TIMEOUT / CONNECTION_FAILED: the request never got a response.
    - INVALID_RESPONSE: a 2xx response that can't be used.

Nothing here retries. The first error aborts the run.
"""

from __future__ import annotations

from typing import Any


class ChainSenderError(Exception):
    """Base class for all payment-execution errors."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.details: dict[str, Any] = details or {}


class ConfigurationError(ChainSenderError):
    """A required entry parameter is missing or invalid."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, error_code="CONFIGURATION", details=details)


class MalformedQuoteError(ChainSenderError):
    """A quoted hop is missing the fields required to link the chain."""

    def __init__(
        self,
        message: str,
        *,
        hop: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(details or {})
        if hop is not None:
            merged["hop"] = hop
        super().__init__(message, error_code="MALFORMED_QUOTE", details=merged)
        self.hop = hop


class RemoteError(ChainSenderError):
    """A remote call failed.

    Attributes:
        status: HTTP status code, or None when no response was received.
        body: Parsed response body (or raw text), verbatim.
        url: The URL that was called.
    """

    def __init__(
        self,
        status: int | None,
        body: Any,
        *,
        url: str | None = None,
        error_code: str = "HTTP_ERROR",
        message: str | None = None,
    ) -> None:
        if message is None:
            message = f"Remote error: {status} {body!r}"
        super().__init__(
            message,
            error_code=error_code,
            details={"url": url, "status_code": status, "body": body},
        )
        self.status = status
        self.body = body
        self.url = url


class NotaryError(RemoteError):
    """The notary rejected a case operation."""

    def __init__(self, status: int | None, body: Any, *, url: str | None = None) -> None:
        super().__init__(
            status,
            body,
            url=url,
            error_code="NOTARY_ERROR",
            message=f"Notary error: {status} {body!r}",
        )
