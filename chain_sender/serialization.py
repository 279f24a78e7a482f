"""
Canonical JSON for request bodies and stored chains.

Sorted keys, no whitespace, UTF-8, no NaN. Two serializations of the
same record are byte-identical, so a chain written out and parsed back
compares equal field by field.
"""

from __future__ import annotations

import json
from typing import Any

from chain_sender.phases import TransferChain


def canonical_json(obj: Any) -> str:
    """Serialize ``obj`` to a canonical JSON string."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def canonical_json_bytes(obj: Any) -> bytes:
    return canonical_json(obj).encode("utf-8")


def dump_chain(chain: TransferChain) -> str:
    """Serialize a transfer chain, phase tag included."""
    return canonical_json(chain.to_dict())


def load_chain(text: str | bytes) -> TransferChain:
    return TransferChain.from_dict(json.loads(text))
