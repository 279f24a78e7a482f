"""
Phase-tagged transfer chain.

A payment run hands one ``TransferChain`` from phase to phase. Each
phase checks the tag it was given and returns a new chain carrying the
next tag, which makes the field-population order explicit:

    BUILT       ids, linkage, part_of_payment
    CONFIGURED  + conditions, expiries/cases, first debit authorized
    PROPOSED    + ledger-reported state
    SETTLED     + post-settlement transfers from each hop's ledger

Consuming a chain in the wrong phase raises ValueError instead of
silently reading fields that haven't been populated yet.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Iterator, Mapping, Sequence

from chain_sender.models import Transfer


class ChainPhase(StrEnum):
    """Which fields of a chain's transfers are populated."""

    BUILT = "built"
    CONFIGURED = "configured"
    PROPOSED = "proposed"
    SETTLED = "settled"


@dataclass(frozen=True)
class TransferChain:
    """An ordered, phase-tagged sequence of transfers (hops + 1 long)."""

    phase: ChainPhase
    transfers: tuple[Transfer, ...]

    def __post_init__(self) -> None:
        if len(self.transfers) < 2:
            raise ValueError(
                f"a transfer chain needs at least 2 transfers, got {len(self.transfers)}"
            )

    def __len__(self) -> int:
        return len(self.transfers)

    def __iter__(self) -> Iterator[Transfer]:
        return iter(self.transfers)

    def __getitem__(self, index: int) -> Transfer:
        return self.transfers[index]

    @property
    def first(self) -> Transfer:
        return self.transfers[0]

    @property
    def final(self) -> Transfer:
        return self.transfers[-1]

    def transfer_ids(self) -> list[str]:
        ids = [t.id for t in self.transfers]
        if any(i is None for i in ids):
            raise ValueError("transfer chain contains transfers without ids")
        return [i for i in ids if i is not None]

    def require(self, *phases: ChainPhase) -> None:
        """Raise ValueError unless the chain is in one of ``phases``."""
        if self.phase not in phases:
            expected = ", ".join(p.value for p in phases)
            raise ValueError(
                f"transfer chain is in phase {self.phase.value!r}, expected {expected}"
            )

    def advance(self, phase: ChainPhase, transfers: Sequence[Transfer]) -> TransferChain:
        """Return a new chain in ``phase`` holding ``transfers``."""
        if len(transfers) != len(self.transfers):
            raise ValueError(
                f"chain length changed from {len(self.transfers)} to {len(transfers)}"
            )
        return TransferChain(phase=phase, transfers=tuple(transfers))

    # --- Serialization ---

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "transfers": [t.to_dict() for t in self.transfers],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TransferChain:
        return cls(
            phase=ChainPhase(data["phase"]),
            transfers=tuple(Transfer.from_dict(t) for t in data["transfers"]),
        )
