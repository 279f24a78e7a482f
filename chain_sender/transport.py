"""
Transport protocol for ledger and notary calls.

The components that talk to ledgers depend on this protocol, not on
httpx directly, so tests can plug in a recording fake and callers can
plug in their own client.

Status handling:
    The transport returns every HTTP response, whatever its status.
    Deciding that a 402 from a ledger is a RemoteError and a 409 from
    a notary is a NotaryError is the caller's job.

    Failures that produce no response at all (timeout, refused
    connection, TLS error) raise RemoteError with ``status=None``.

Concrete implementations:
    - HttpxTransport (default, uses httpx.AsyncClient)
    - FakeLedger (tests, records calls and returns canned responses)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import httpx

from chain_sender.errors import RemoteError
from chain_sender.serialization import canonical_json_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Basic-auth credentials for a ledger account. The password is never shown in repr."""

    username: str
    password: str = field(repr=False)

    def as_auth(self) -> tuple[str, str]:
        return (self.username, self.password)


@dataclass(frozen=True)
class HttpResponse:
    """Status and parsed body of a completed HTTP exchange.

    Attributes:
        status: HTTP status code.
        body: Parsed JSON, or the raw text when the body isn't JSON,
            or None when the body is empty.
    """

    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return self.status < 400


@runtime_checkable
class LedgerTransport(Protocol):
    """Async transport for ledger and notary HTTP calls."""

    async def put_json(
        self,
        url: str,
        body: dict[str, Any],
        *,
        auth: Credentials | None = None,
    ) -> HttpResponse:
        """PUT a JSON body to ``url`` and return the response.

        Raises:
            RemoteError: Only when no response was received.
        """
        ...

    async def get_json(self, url: str) -> HttpResponse:
        """GET ``url`` and return the response.

        Raises:
            RemoteError: Only when no response was received.
        """
        ...


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpxTransport:
    """Default transport using httpx.AsyncClient.

    Args:
        timeout_s: Per-request timeout in seconds. This bounds a single
            call only; ledger-side expiry is what bounds the payment.
        headers: Additional headers sent on every request.
    """

    def __init__(
        self,
        *,
        timeout_s: float = 30.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._headers = headers or {}

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    async def put_json(
        self,
        url: str,
        body: dict[str, Any],
        *,
        auth: Credentials | None = None,
    ) -> HttpResponse:
        return await self._send(
            "PUT",
            url,
            content=canonical_json_bytes(body),
            auth=auth,
        )

    async def get_json(self, url: str) -> HttpResponse:
        return await self._send("GET", url)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        content: bytes | None = None,
        auth: Credentials | None = None,
    ) -> HttpResponse:
        headers = {"Accept": "application/json", **self._headers}
        if content is not None:
            headers["Content-Type"] = "application/json"

        logger.debug("%s %s", method, url)
        try:
            async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                response = await client.request(
                    method,
                    url,
                    content=content,
                    headers=headers,
                    auth=auth.as_auth() if auth is not None else None,
                )
        except httpx.TimeoutException as e:
            raise RemoteError(
                None,
                None,
                url=url,
                error_code="TIMEOUT",
                message=f"{method} {url} timed out after {self._timeout_s}s",
            ) from e
        except httpx.ConnectError as e:
            raise RemoteError(
                None,
                None,
                url=url,
                error_code="CONNECTION_FAILED",
                message=f"Failed to connect to {url}",
            ) from e
        except httpx.HTTPError as e:
            raise RemoteError(
                None,
                str(e),
                url=url,
                message=f"HTTP error: {e}",
            ) from e

        return HttpResponse(status=response.status_code, body=_parse_body(response))


def raise_for_remote(response: HttpResponse, *, url: str) -> None:
    """Raise RemoteError carrying status and body if ``response`` failed."""
    if not response.ok:
        raise RemoteError(response.status, response.body, url=url)
