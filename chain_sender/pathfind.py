"""
Path finder protocol: quoting is external.

A path finder crawls the ledgers and returns an ordered list of quoted
hops. Each hop is a payment record (or its wire dict) whose source and
destination transfers carry ledgers, debits, credits and expiry
durations. The sender passes the quotes through the chain builder
unchanged otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from chain_sender.models import Payment


@dataclass(frozen=True)
class PathQuery:
    source_ledger: str
    destination_ledger: str
    destination_account: str
    destination_amount: str

    def to_dict(self) -> dict[str, str]:
        return {
            "source_ledger": self.source_ledger,
            "destination_ledger": self.destination_ledger,
            "destination_account": self.destination_account,
            "destination_amount": self.destination_amount,
        }


@runtime_checkable
class PathFinder(Protocol):
    async def find_path(
        self, query: PathQuery
    ) -> Sequence[Payment | Mapping[str, Any]]:
        """Return the quoted hops from source to destination, in order."""
        ...
