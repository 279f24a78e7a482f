"""
Escrow configuration: conditions, expiries and cases for every transfer.

Mode is chosen once per run by picking a policy:

    AtomicEscrowPolicy (notary present)
        Every transfer gets the same execution and cancellation
        conditions and ``additional_info.cases == [case_id]``.
        No ``expires_at``: the case's expiry governs all transfers.

    TimedEscrowPolicy (universal mode)
        Every transfer gets ``expires_at = now + expiry_duration``, all
        from the same ``now``. Every transfer except the final one gets
        the execution condition; the final transfer executing is itself
        the receipt, so it keeps whatever condition its quote carried.

Both policies drop ``expiry_duration``, which is a quote-time template
and means nothing to the ledger once an expiry has been decided.

Authorization:
    The first debit of the first transfer is marked ``authorized``. The
    caller must hand in an InitiatorAuthorization for that account; the
    configurator never marks any other debit.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Protocol, runtime_checkable

from chain_sender.errors import ConfigurationError, MalformedQuoteError
from chain_sender.models import Condition, Transfer
from chain_sender.phases import ChainPhase, TransferChain


def format_timestamp(moment: datetime) -> str:
    """RFC3339 UTC with millisecond precision and a Z suffix."""
    utc = moment.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def transfer_expires_at(now: datetime, transfer: Transfer) -> str:
    """Absolute expiry for ``transfer``: ``now`` plus its expiry duration.

    Raises:
        MalformedQuoteError: If the transfer carries no expiry duration.
    """
    if transfer.expiry_duration is None:
        raise MalformedQuoteError(
            f"transfer {transfer.id} has no expiry_duration",
            details={"transfer_id": transfer.id},
        )
    return format_timestamp(now + timedelta(seconds=transfer.expiry_duration))


# =========================================================================
# Policies
# =========================================================================


@runtime_checkable
class EscrowPolicy(Protocol):
    def configure(self, transfer: Transfer, *, is_final: bool) -> Transfer:
        """Return ``transfer`` with this policy's escrow fields applied."""
        ...


@dataclass(frozen=True)
class AtomicEscrowPolicy:
    """All transfers bound to one notary case."""

    case_id: str
    execution_condition: Condition
    cancellation_condition: Condition

    def configure(self, transfer: Transfer, *, is_final: bool) -> Transfer:
        return replace(
            transfer.with_info(cases=[self.case_id]),
            execution_condition=self.execution_condition,
            cancellation_condition=self.cancellation_condition,
            expires_at=None,
            expiry_duration=None,
        )


@dataclass(frozen=True)
class TimedEscrowPolicy:
    """Each transfer settles on its own, under its own deadline."""

    now: datetime
    execution_condition: Condition

    def __post_init__(self) -> None:
        if self.now.tzinfo is None:
            raise ValueError("now must be timezone-aware")

    def configure(self, transfer: Transfer, *, is_final: bool) -> Transfer:
        return replace(
            transfer,
            expires_at=transfer_expires_at(self.now, transfer),
            execution_condition=(
                transfer.execution_condition if is_final else self.execution_condition
            ),
            expiry_duration=None,
        )


# =========================================================================
# Authorization
# =========================================================================


@dataclass(frozen=True)
class InitiatorAuthorization:
    """Capability to debit ``account`` for the first hop.

    Opaque to the configurator beyond the account it names.
    """

    account: str


# =========================================================================
# configure_escrow
# =========================================================================


def configure_escrow(
    chain: TransferChain,
    policy: EscrowPolicy,
    authorization: InitiatorAuthorization,
) -> TransferChain:
    """Apply ``policy`` to every transfer and authorize the first debit.

    Args:
        chain: A BUILT chain.
        policy: AtomicEscrowPolicy or TimedEscrowPolicy.
        authorization: Grant for the first transfer's first debit.

    Returns:
        A new chain in phase CONFIGURED.

    Raises:
        ConfigurationError: If the authorization names a different
            account than the first debit.
    """
    chain.require(ChainPhase.BUILT)

    last = len(chain) - 1
    transfers = [
        policy.configure(transfer, is_final=(i == last))
        for i, transfer in enumerate(chain)
    ]

    first = transfers[0]
    debit = first.debits[0]
    if debit.account != authorization.account:
        raise ConfigurationError(
            "authorization does not cover the first debit",
            details={"authorized": authorization.account, "debit": debit.account},
        )
    transfers[0] = first.with_first_debit(replace(debit, authorized=True))

    return chain.advance(ChainPhase.CONFIGURED, transfers)
