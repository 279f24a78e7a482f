"""
Condition provider protocol: the crypto-condition boundary.

The sender never builds or inspects conditions. It asks a provider for
them and copies the results onto transfers and cases.

Three conditions per run:
    - receipt condition: proves the final transfer reached ``state``
      ("executed" in universal mode, "prepared" in atomic mode).
    - execution condition: releases every escrowed transfer. In atomic
      mode it is derived from the case and the notary's public key.
    - cancellation condition: rolls every transfer back (atomic only).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

from chain_sender.models import Condition, Transfer

ReceiptState = Literal["executed", "prepared"]

RECEIPT_STATE_UNIVERSAL: ReceiptState = "executed"
RECEIPT_STATE_ATOMIC: ReceiptState = "prepared"


@dataclass(frozen=True)
class ConditionParams:
    """Inputs for deriving execution and cancellation conditions.

    ``case_id``, ``notary`` and ``notary_public_key`` are None in
    universal mode.
    """

    receipt_condition: Condition
    case_id: str | None = None
    notary: str | None = None
    notary_public_key: str | None = None


@runtime_checkable
class ConditionProvider(Protocol):
    async def get_receipt_condition(
        self, final_transfer: Transfer, state: ReceiptState
    ) -> Condition:
        """Condition fulfilled by the final transfer's ledger signing ``state``."""
        ...

    def get_execution_condition(self, params: ConditionParams) -> Condition:
        ...

    def get_cancellation_condition(self, params: ConditionParams) -> Condition:
        ...
