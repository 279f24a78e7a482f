"""
Transfer proposer: register every transfer with its ledger.

The first transfer is PUT with the source account's basic-auth
credentials: it is the only transfer whose debit the caller vouches
for at this stage. Every other transfer is PUT unauthenticated.

PUT to the transfer's own id is an idempotent upsert, so re-proposing
after a crash is safe. Proposals go strictly in chain order.

No rollback: if proposal i fails, transfers 0..i-1 stay proposed at
their ledgers and expire there.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from chain_sender.models import Transfer
from chain_sender.phases import ChainPhase, TransferChain
from chain_sender.transport import Credentials, LedgerTransport, raise_for_remote

logger = logging.getLogger(__name__)


async def propose_transfer(
    transport: LedgerTransport,
    transfer: Transfer,
    *,
    auth: Credentials | None = None,
) -> str | None:
    """PUT one transfer and return the ledger-reported state.

    Raises:
        RemoteError: On status >= 400.
    """
    if transfer.id is None:
        raise ValueError("cannot propose a transfer without an id")

    response = await transport.put_json(transfer.id, transfer.to_dict(), auth=auth)
    raise_for_remote(response, url=transfer.id)

    body = response.body if isinstance(response.body, dict) else {}
    state = body.get("state")
    logger.info("proposed transfer %s (state=%s)", transfer.id, state)
    return state


async def propose_transfers(
    transport: LedgerTransport,
    chain: TransferChain,
    credentials: Credentials | None = None,
) -> TransferChain:
    """Propose every transfer of a CONFIGURED chain, in order.

    Args:
        transport: Ledger transport.
        chain: CONFIGURED chain.
        credentials: Source account credentials for the first transfer.

    Returns:
        A new chain in phase PROPOSED, each transfer carrying its state.

    Raises:
        RemoteError: On the first rejected proposal. Earlier proposals
            are not withdrawn.
    """
    chain.require(ChainPhase.CONFIGURED)

    proposed: list[Transfer] = []
    for i, transfer in enumerate(chain):
        try:
            state = await propose_transfer(
                transport,
                transfer,
                auth=credentials if i == 0 else None,
            )
        except Exception:
            if proposed:
                logger.warning(
                    "proposal of transfer %d/%d failed; %d transfer(s) left proposed",
                    i + 1,
                    len(chain),
                    len(proposed),
                )
            raise
        proposed.append(replace(transfer, state=state))

    return chain.advance(ChainPhase.PROPOSED, proposed)
