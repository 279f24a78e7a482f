from __future__ import annotations

import json
from importlib import resources
from typing import Any, Dict, Mapping, cast

import jsonschema  # type: ignore[import-untyped]

from chain_sender.errors import MalformedQuoteError

QUOTED_PAYMENT_SCHEMA = "quoted_payment.v1.json"

_SCHEMAS: Dict[str, Dict[str, Any]] = {}


def load_schema(name: str) -> Dict[str, Any]:
    if name not in _SCHEMAS:
        with resources.files("chain_sender").joinpath(f"schemas/{name}").open(
            "r", encoding="utf-8"
        ) as f:
            _SCHEMAS[name] = cast(Dict[str, Any], json.load(f))
    return _SCHEMAS[name]


def validate_quoted_payment(payment: Mapping[str, Any], *, hop: int) -> None:
    """
    Check one quoted hop has the fields the chain builder links on.

    Raises:
        MalformedQuoteError: With the hop index and the failing schema path.
    """
    schema = load_schema(QUOTED_PAYMENT_SCHEMA)
    try:
        jsonschema.validate(instance=payment, schema=schema)
    except jsonschema.ValidationError as e:
        path = "/".join(str(p) for p in e.absolute_path)
        raise MalformedQuoteError(
            f"quoted hop {hop} is malformed at '{path}': {e.message}",
            hop=hop,
            details={"path": path},
        ) from e
