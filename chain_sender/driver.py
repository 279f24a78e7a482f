"""
Payment driver: settle the chain hop by hop.

For hop i the driver sends the quoted payment with
``source_transfers = [chain[i]]`` and ``destination_transfers =
[chain[i + 1]]`` to ``PUT <payment id>``. The ledger's acceptance is
what moves the funds. The destination transfer in the response is the
ledger's own record of it, so it replaces ``chain[i + 1]`` and becomes
the source of hop i + 1.

No rollback: a failed hop leaves earlier hops settled and later hops
untouched. Ledger-side expiry is the backstop.
"""

from __future__ import annotations

import logging
from typing import Sequence

from chain_sender.errors import RemoteError
from chain_sender.models import Payment, Transfer
from chain_sender.phases import ChainPhase, TransferChain
from chain_sender.transport import LedgerTransport, raise_for_remote

logger = logging.getLogger(__name__)


async def execute_payment(transport: LedgerTransport, payment: Payment) -> Transfer:
    """Submit one hop and return its post-settlement destination transfer.

    Raises:
        RemoteError: On status >= 400, or if the response carries no
            destination transfer.
    """
    response = await transport.put_json(payment.id, payment.to_dict())
    raise_for_remote(response, url=payment.id)

    body = response.body
    destinations = body.get("destination_transfers") if isinstance(body, dict) else None
    if not destinations or not isinstance(destinations[0], dict):
        raise RemoteError(
            response.status,
            body,
            url=payment.id,
            error_code="INVALID_RESPONSE",
            message=f"payment {payment.id} response has no destination transfer",
        )
    return Transfer.from_dict(destinations[0])


async def execute_payments(
    transport: LedgerTransport,
    payments: Sequence[Payment],
    chain: TransferChain,
) -> tuple[list[Payment], TransferChain]:
    """Settle every hop of a PROPOSED chain, in order.

    Args:
        transport: Ledger transport.
        payments: The quoted hops the chain was built from.
        chain: PROPOSED chain, ``len(payments) + 1`` transfers long.

    Returns:
        (executed payments, SETTLED chain). Each executed payment holds
        the source transfer it was sent with and the destination
        transfer its ledger returned.

    Raises:
        RemoteError: On the first failed hop.
    """
    chain.require(ChainPhase.PROPOSED)
    if len(payments) != len(chain) - 1:
        raise ValueError(
            f"{len(payments)} payments cannot settle a chain of {len(chain)} transfers"
        )

    transfers = list(chain.transfers)
    executed: list[Payment] = []
    for i, quoted in enumerate(payments):
        payment = quoted.with_transfers(transfers[i], transfers[i + 1])
        try:
            settled = await execute_payment(transport, payment)
        except RemoteError:
            if executed:
                logger.warning(
                    "hop %d/%d failed after %d settled hop(s); chain left partially executed",
                    i + 1,
                    len(payments),
                    len(executed),
                )
            raise
        transfers[i + 1] = settled
        executed.append(payment.with_transfers(transfers[i], settled))
        logger.info("settled hop %d/%d via %s", i + 1, len(payments), payment.id)

    return executed, chain.advance(ChainPhase.SETTLED, transfers)
