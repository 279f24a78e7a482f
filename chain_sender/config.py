"""
Entry parameters for a payment run.

Presence of ``notary`` selects atomic mode. Everything is validated up
front so a misconfigured run fails before any network call is made.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field, fields
from typing import Any, Mapping

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from chain_sender.chain import ledger_to_account
from chain_sender.errors import ConfigurationError
from chain_sender.models import Condition, Payment
from chain_sender.transport import Credentials

# camelCase parameter names, accepted by from_dict alongside snake_case.
_CAMEL_CASE_KEYS = {
    "sourceLedger": "source_ledger",
    "sourceAccount": "source_account",
    "sourceUsername": "source_username",
    "sourcePassword": "source_password",
    "destinationLedger": "destination_ledger",
    "destinationAccount": "destination_account",
    "destinationUsername": "destination_username",
    "destinationAmount": "destination_amount",
    "destinationMemo": "destination_memo",
    "notaryPublicKey": "notary_public_key",
    "receiptCondition": "receipt_condition",
}


def _load_public_key(encoded: str) -> Ed25519PublicKey:
    try:
        return Ed25519PublicKey.from_public_bytes(base64.b64decode(encoded, validate=True))
    except ValueError as e:
        raise ConfigurationError(
            "notary_public_key must be a base64-encoded Ed25519 public key",
            details={"notary_public_key": encoded},
        ) from e


@dataclass(frozen=True)
class SenderParams:
    """
    Caller-facing parameters of one payment run.

    Attributes:
        source_ledger: Ledger URI the payment starts on.
        source_account: Account URI. Defaults to the account named by
            source_username on source_ledger.
        source_username: Ledger username of the payer.
        source_password: Password for source_username (basic auth on
            the first transfer's proposal).
        destination_ledger: Ledger URI the payment ends on.
        destination_account: Account URI. Defaults to the account named
            by destination_username on destination_ledger.
        destination_username: Ledger username of the payee.
        destination_amount: Amount delivered, as a decimal string.
            Required unless subpayments are given.
        destination_memo: Attached to the final credit.
        notary: Notary URI. If set, the run is atomic.
        notary_public_key: Base64 Ed25519 key. Required with notary.
        receipt_condition: Caller-supplied receipt condition. When set,
            the payee is responsible for fulfilling the case.
        subpayments: Pre-quoted path. Skips the path finder.
    """

    source_ledger: str
    destination_ledger: str
    source_account: str | None = None
    source_username: str | None = None
    source_password: str | None = field(default=None, repr=False)
    destination_account: str | None = None
    destination_username: str | None = None
    destination_amount: str | None = None
    destination_memo: Any = None
    notary: str | None = None
    notary_public_key: str | None = None
    receipt_condition: Condition | None = None
    subpayments: tuple[Payment | Mapping[str, Any], ...] | None = None

    def __post_init__(self) -> None:
        if not self.source_ledger:
            raise ConfigurationError("Missing required parameter: source_ledger")
        if not self.destination_ledger:
            raise ConfigurationError("Missing required parameter: destination_ledger")
        if not (self.source_account or self.source_username):
            raise ConfigurationError(
                "Missing required parameter: source_account or source_username"
            )
        if not (self.destination_account or self.destination_username):
            raise ConfigurationError(
                "Missing required parameter: destination_account or destination_username"
            )
        if self.subpayments is None and not self.destination_amount:
            raise ConfigurationError("Missing required parameter: destination_amount")
        if self.notary and not self.notary_public_key:
            raise ConfigurationError("Missing required parameter: notary_public_key")
        if self.notary_public_key:
            _load_public_key(self.notary_public_key)

    # --- Derived ---

    @property
    def is_atomic(self) -> bool:
        return bool(self.notary)

    @property
    def resolved_source_account(self) -> str:
        if self.source_account:
            return self.source_account
        assert self.source_username is not None
        return ledger_to_account(self.source_ledger, self.source_username)

    @property
    def resolved_destination_account(self) -> str:
        if self.destination_account:
            return self.destination_account
        assert self.destination_username is not None
        return ledger_to_account(self.destination_ledger, self.destination_username)

    @property
    def credentials(self) -> Credentials | None:
        if self.source_username is None:
            return None
        return Credentials(self.source_username, self.source_password or "")

    # --- Construction ---

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SenderParams:
        """Build from a parameter dict using snake_case or camelCase keys.

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        unknown: list[str] = []
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                unknown.append(key)
                continue
            kwargs[name] = value
        if unknown:
            raise ConfigurationError(
                f"Unknown parameter(s): {', '.join(sorted(unknown))}",
                details={"unknown": sorted(unknown)},
            )

        for required in ("source_ledger", "destination_ledger"):
            kwargs.setdefault(required, "")
        if kwargs.get("subpayments") is not None:
            kwargs["subpayments"] = tuple(kwargs["subpayments"])
        if kwargs.get("destination_amount") is not None:
            kwargs["destination_amount"] = str(kwargs["destination_amount"])
        return cls(**kwargs)
