"""
Shared fakes for chain-sender tests: no network.

FakeLedger plays every ledger and the notary at once. It records each
call and answers like a well-behaved five-bells ledger unless a failure
was injected with ``fail_on()``.

Quote builders produce N-hop paths over ledgers
``http://ledger-0.example`` ... ``http://ledger-N.example``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest

from chain_sender.models import Transfer
from chain_sender.transport import Credentials, HttpResponse

NOTARY = "http://notary.example"
NOTARY_PUBLIC_KEY = "Lvf3YtnHLMER+VHT0aaeEJF+7WQcvp4iKZAdvMVto7c="
NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
SOURCE_ACCOUNT = "http://ledger-0.example/accounts/alice"

RECEIPT_CONDITION = {"type": "sha256", "condition": "cc:0:3:receipt"}
EXECUTION_CONDITION = {"type": "and", "condition": "cc:2:2b:execution"}
CANCELLATION_CONDITION = {"type": "and", "condition": "cc:2:2b:cancellation"}
FINAL_STATE = {"type": "ed25519-sha512", "signature": "c2lnbmF0dXJl", "state": "prepared"}


def ledger(i: int) -> str:
    return f"http://ledger-{i}.example"


def make_quote(i: int, hops: int) -> dict[str, Any]:
    """Quoted hop i of a ``hops``-hop path, in wire form."""
    src, dst = ledger(i), ledger(i + 1)
    recipient = "bob" if i == hops - 1 else f"connector-{i + 1}"
    return {
        "id": f"http://connector-{i}.example/payments/p{i}",
        "source_transfers": [
            {
                "ledger": src,
                "debits": [{"account": f"{src}/accounts/placeholder", "amount": "10.00"}],
                "credits": [{"account": f"{src}/accounts/connector-{i}", "amount": "10.00"}],
                "expiry_duration": 2 * (hops - i) + 2,
            }
        ],
        "destination_transfers": [
            {
                "ledger": dst,
                "debits": [{"account": f"{dst}/accounts/connector-{i}-hold", "amount": "9.90"}],
                "credits": [{"account": f"{dst}/accounts/{recipient}", "amount": "9.90"}],
                "expiry_duration": 2 * (hops - i),
            }
        ],
    }


def make_path(hops: int) -> list[dict[str, Any]]:
    return [make_quote(i, hops) for i in range(hops)]


# ---------------------------------------------------------------------------
# Fake ledger + notary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Call:
    method: str
    url: str
    body: dict[str, Any] | None
    auth: Credentials | None

    @property
    def kind(self) -> str:
        if "/cases/" in self.url:
            return "fulfillment" if self.url.endswith("/fulfillment") else "case"
        if self.method == "GET":
            return "state"
        if "/transfers/" in self.url:
            return "transfer"
        return "payment"


class FakeLedger:
    """Records calls and returns canned ledger/notary responses."""

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._failures: dict[tuple[str, int], HttpResponse] = {}

    def fail_on(self, kind: str, index: int, status: int, body: Any) -> None:
        """Answer the ``index``-th call of ``kind`` (0-based) with ``status``."""
        self._failures[(kind, index)] = HttpResponse(status=status, body=body)

    def of_kind(self, kind: str) -> list[Call]:
        return [c for c in self.calls if c.kind == kind]

    def _record(self, call: Call) -> HttpResponse | None:
        index = len(self.of_kind(call.kind))
        self.calls.append(call)
        return self._failures.get((call.kind, index))

    async def put_json(
        self,
        url: str,
        body: dict[str, Any],
        *,
        auth: Credentials | None = None,
    ) -> HttpResponse:
        call = Call("PUT", url, body, auth)
        failure = self._record(call)
        if failure is not None:
            return failure
        if call.kind == "transfer":
            return HttpResponse(200, {**body, "state": "proposed"})
        if call.kind == "payment":
            settled = dict(body["destination_transfers"][0])
            settled["state"] = "executed"
            return HttpResponse(200, {**body, "destination_transfers": [settled]})
        if call.kind == "fulfillment":
            return HttpResponse(200, {"state": "executed"})
        return HttpResponse(201, body)

    async def get_json(self, url: str) -> HttpResponse:
        failure = self._record(Call("GET", url, None, None))
        if failure is not None:
            return failure
        return HttpResponse(200, dict(FINAL_STATE))


class FakeConditions:
    """Condition provider returning fixed conditions and recording calls."""

    def __init__(self) -> None:
        self.receipt_calls: list[tuple[Transfer, str]] = []
        self.execution_calls: list[Any] = []
        self.cancellation_calls: list[Any] = []

    async def get_receipt_condition(self, final_transfer: Transfer, state: str) -> dict[str, Any]:
        self.receipt_calls.append((final_transfer, state))
        return dict(RECEIPT_CONDITION)

    def get_execution_condition(self, params: Any) -> dict[str, Any]:
        self.execution_calls.append(params)
        return dict(EXECUTION_CONDITION)

    def get_cancellation_condition(self, params: Any) -> dict[str, Any]:
        self.cancellation_calls.append(params)
        return dict(CANCELLATION_CONDITION)


class FakePathFinder:
    def __init__(self, path: list[dict[str, Any]]) -> None:
        self._path = path
        self.queries: list[Any] = []

    async def find_path(self, query: Any) -> list[dict[str, Any]]:
        self.queries.append(query)
        return self._path


@pytest.fixture
def fake_ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def fake_conditions() -> FakeConditions:
    return FakeConditions()
