"""
Chain builder: quoted hops to a linked transfer chain.

For N quoted hops the chain holds N + 1 transfers: the source transfer
of every hop, then the destination transfer of the last hop.

Linkage:
    - Hop 0's first debit is the caller's source account.
    - Hop i > 0 is debited from the accounts hop i - 1's destination
      transfer credited. Adjacent hops share an account; they are linked
      by account identity, never by matching amounts.

Every transfer gets a fresh ``<ledger>/transfers/<uuid4>`` id and an
``additional_info.part_of_payment`` pointing at its hop's payment id.

Pure: no I/O, no clock.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any, Mapping, Sequence
from urllib.parse import quote

from chain_sender.errors import MalformedQuoteError
from chain_sender.models import Payment, Transfer
from chain_sender.phases import ChainPhase, TransferChain
from chain_sender.schema import validate_quoted_payment


def ledger_to_account(ledger: str, username: str) -> str:
    """Account URI for ``username`` on ``ledger``."""
    return f"{ledger.rstrip('/')}/accounts/{quote(username, safe='')}"


def new_transfer_id(ledger: str) -> str:
    return f"{ledger.rstrip('/')}/transfers/{quote(str(uuid.uuid4()), safe='')}"


def parse_quotes(quotes: Sequence[Payment | Mapping[str, Any]]) -> list[Payment]:
    """Validate quoted hops and parse them into Payment records.

    Raises:
        MalformedQuoteError: If the path is empty or any hop is missing
            its transfers, ledger, debits or credits.
    """
    if not quotes:
        raise MalformedQuoteError("quoted path contains no hops")

    payments: list[Payment] = []
    for hop, quote_ in enumerate(quotes):
        data = quote_.to_dict() if isinstance(quote_, Payment) else quote_
        validate_quoted_payment(data, hop=hop)
        payments.append(quote_ if isinstance(quote_, Payment) else Payment.from_dict(data))
    return payments


def _tag(transfer: Transfer, payment: Payment) -> Transfer:
    return replace(
        transfer.with_info(part_of_payment=payment.id),
        id=new_transfer_id(transfer.ledger),
    )


def build_chain(
    quotes: Sequence[Payment | Mapping[str, Any]],
    source_account: str,
) -> TransferChain:
    """Turn quoted hops into a BUILT transfer chain.

    Args:
        quotes: Quoted hops, in order from source to destination.
        source_account: Account URI the first hop is debited from.

    Returns:
        TransferChain of length ``len(quotes) + 1`` in phase BUILT.

    Raises:
        MalformedQuoteError: If a hop can't be linked.
    """
    payments = parse_quotes(quotes)

    transfers: list[Transfer] = []
    for i, payment in enumerate(payments):
        transfer = payment.source_transfer
        if i == 0:
            transfer = transfer.with_first_debit(
                transfer.debits[0].with_account(source_account)
            )
        else:
            previous = payments[i - 1].destination_transfer
            transfer = replace(transfer, debits=previous.credits)
        transfers.append(_tag(transfer, payment))

    final_payment = payments[-1]
    transfers.append(_tag(final_payment.destination_transfer, final_payment))

    return TransferChain(phase=ChainPhase.BUILT, transfers=tuple(transfers))


def with_destination_memo(chain: TransferChain, memo: Any) -> TransferChain:
    """Attach ``memo`` to the first credit of the chain's final transfer."""
    chain.require(ChainPhase.BUILT)
    final = chain.final
    credit = replace(final.credits[0], memo=memo)
    return chain.advance(
        ChainPhase.BUILT,
        [*chain.transfers[:-1], final.with_first_credit(credit)],
    )
