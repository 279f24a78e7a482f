"""
Ledger-facing records: funds entries, transfers, payments, cases.

All records are frozen. A phase that needs a different transfer builds
one with ``dataclasses.replace`` (or the ``with_*`` helpers below), so a
transfer observed by one phase is never changed under it by another.

Wire format:
    ``to_dict()`` produces the JSON body the ledger/notary expects.
    None-valued optional fields are omitted, never sent as null.
    Keys a record doesn't model are kept in ``extra`` and written back
    unchanged, so quotes from newer ledgers survive the round trip.

Amounts are decimal strings. They are never converted to float.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

# A crypto-condition as produced by the condition provider. Opaque: the
# sender copies it onto transfers and cases without inspecting it.
Condition = Mapping[str, Any]

CASE_STATE_PROPOSED = "proposed"

_FUNDS_KEYS = frozenset({"account", "amount", "memo", "authorized"})
_TRANSFER_KEYS = frozenset(
    {
        "id",
        "ledger",
        "debits",
        "credits",
        "execution_condition",
        "cancellation_condition",
        "expires_at",
        "expiry_duration",
        "additional_info",
        "state",
    }
)
_PAYMENT_KEYS = frozenset({"id", "source_transfers", "destination_transfers"})


def _extra(data: Mapping[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in known}


def _duration(value: Any) -> float | None:
    # connectors send durations as numbers or numeric strings
    return None if value is None else float(value)


# =========================================================================
# Funds
# =========================================================================


@dataclass(frozen=True)
class Funds:
    """One debit or credit entry of a transfer."""

    account: str
    amount: str | None = None
    memo: Any = None
    authorized: bool | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def with_account(self, account: str) -> Funds:
        return replace(self, account=account)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"account": self.account}
        if self.amount is not None:
            result["amount"] = self.amount
        if self.memo is not None:
            result["memo"] = self.memo
        if self.authorized is not None:
            result["authorized"] = self.authorized
        result.update(self.extra)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Funds:
        amount = data.get("amount")
        return cls(
            account=data["account"],
            amount=None if amount is None else str(amount),
            memo=data.get("memo"),
            authorized=data.get("authorized"),
            extra=_extra(data, _FUNDS_KEYS),
        )


# =========================================================================
# Transfer
# =========================================================================


@dataclass(frozen=True)
class Transfer:
    """A single escrowed movement of value on one ledger.

    Attributes:
        ledger: Base URI of the ledger holding the transfer.
        debits: Accounts paying in, in ledger order.
        credits: Accounts receiving, in ledger order.
        id: ``<ledger>/transfers/<token>``. Assigned once by the chain
            builder, then never changed.
        execution_condition: Releases the transfer to its credits.
        cancellation_condition: Rolls the transfer back (atomic mode).
        expires_at: RFC3339 UTC deadline (universal mode only).
        expiry_duration: Seconds, from the quote. A template consumed by
            escrow configuration and dropped afterwards.
        additional_info: ``part_of_payment`` and, in atomic mode, ``cases``.
        state: Ledger-reported state, filled in after proposal/settlement.
    """

    ledger: str
    debits: tuple[Funds, ...]
    credits: tuple[Funds, ...]
    id: str | None = None
    execution_condition: Condition | None = None
    cancellation_condition: Condition | None = None
    expires_at: str | None = None
    expiry_duration: float | None = None
    additional_info: dict[str, Any] = field(default_factory=dict)
    state: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def cases(self) -> list[str]:
        return list(self.additional_info.get("cases", []))

    def with_info(self, **info: Any) -> Transfer:
        """Return a copy with keys merged into ``additional_info``."""
        return replace(self, additional_info={**self.additional_info, **info})

    def with_first_debit(self, funds: Funds) -> Transfer:
        return replace(self, debits=(funds, *self.debits[1:]))

    def with_first_credit(self, funds: Funds) -> Transfer:
        return replace(self, credits=(funds, *self.credits[1:]))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.id is not None:
            result["id"] = self.id
        result["ledger"] = self.ledger
        result["debits"] = [d.to_dict() for d in self.debits]
        result["credits"] = [c.to_dict() for c in self.credits]
        if self.execution_condition is not None:
            result["execution_condition"] = dict(self.execution_condition)
        if self.cancellation_condition is not None:
            result["cancellation_condition"] = dict(self.cancellation_condition)
        if self.expires_at is not None:
            result["expires_at"] = self.expires_at
        if self.expiry_duration is not None:
            result["expiry_duration"] = self.expiry_duration
        if self.additional_info:
            result["additional_info"] = dict(self.additional_info)
        if self.state is not None:
            result["state"] = self.state
        result.update(self.extra)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Transfer:
        return cls(
            id=data.get("id"),
            ledger=data["ledger"],
            debits=tuple(Funds.from_dict(d) for d in data["debits"]),
            credits=tuple(Funds.from_dict(c) for c in data["credits"]),
            execution_condition=data.get("execution_condition"),
            cancellation_condition=data.get("cancellation_condition"),
            expires_at=data.get("expires_at"),
            expiry_duration=_duration(data.get("expiry_duration")),
            additional_info=dict(data.get("additional_info") or {}),
            state=data.get("state"),
            extra=_extra(data, _TRANSFER_KEYS),
        )


# =========================================================================
# Payment
# =========================================================================


@dataclass(frozen=True)
class Payment:
    """One hop of the payment chain, as quoted by the path finder."""

    id: str
    source_transfers: tuple[Transfer, ...]
    destination_transfers: tuple[Transfer, ...]
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def source_transfer(self) -> Transfer:
        return self.source_transfers[0]

    @property
    def destination_transfer(self) -> Transfer:
        return self.destination_transfers[0]

    def with_transfers(self, source: Transfer, destination: Transfer) -> Payment:
        return replace(
            self,
            source_transfers=(source,),
            destination_transfers=(destination,),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "source_transfers": [t.to_dict() for t in self.source_transfers],
            "destination_transfers": [t.to_dict() for t in self.destination_transfers],
        }
        result.update(self.extra)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Payment:
        return cls(
            id=data["id"],
            source_transfers=tuple(Transfer.from_dict(t) for t in data["source_transfers"]),
            destination_transfers=tuple(
                Transfer.from_dict(t) for t in data["destination_transfers"]
            ),
            extra=_extra(data, _PAYMENT_KEYS),
        )


# =========================================================================
# Case
# =========================================================================


@dataclass(frozen=True)
class Case:
    """A notary-held record binding every transfer to one outcome."""

    id: str
    execution_condition: Condition
    expires_at: str
    notaries: tuple[str, ...]
    transfers: tuple[str, ...]
    state: str = CASE_STATE_PROPOSED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "state": self.state,
            "execution_condition": dict(self.execution_condition),
            "expires_at": self.expires_at,
            "notaries": [{"url": url} for url in self.notaries],
            "transfers": list(self.transfers),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Case:
        return cls(
            id=data["id"],
            state=data.get("state", CASE_STATE_PROPOSED),
            execution_condition=data["execution_condition"],
            expires_at=data["expires_at"],
            notaries=tuple(n["url"] for n in data.get("notaries", [])),
            transfers=tuple(data.get("transfers", [])),
        )
