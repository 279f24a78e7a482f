"""
Notary case manager (atomic mode only).

Two calls bracket an atomic payment:

    create_case()          before any transfer is proposed. Registers a
                           case covering every transfer id, under the
                           receipt condition, and returns the case id.
    submit_fulfillment()   after the last hop settles. Reads the final
                           transfer's signed state from its ledger and
                           hands it to the notary, which releases every
                           transfer bound to the case.

The run holds only the case id. The notary owns the case itself.
"""

from __future__ import annotations

import logging
import uuid
from urllib.parse import quote

from chain_sender.errors import NotaryError, RemoteError
from chain_sender.models import Case, Condition, Transfer
from chain_sender.phases import ChainPhase, TransferChain
from chain_sender.transport import LedgerTransport, raise_for_remote

logger = logging.getLogger(__name__)


def new_case_id(notary: str) -> str:
    return f"{notary.rstrip('/')}/cases/{quote(str(uuid.uuid4()), safe='')}"


class NotaryCaseManager:
    """Creates and fulfills notary cases over a ledger transport."""

    def __init__(self, transport: LedgerTransport) -> None:
        self._transport = transport

    async def create_case(
        self,
        notary: str,
        receipt_condition: Condition,
        chain: TransferChain,
        expires_at: str,
    ) -> str:
        """Register a proposed case covering every transfer in ``chain``.

        Args:
            notary: Notary base URI.
            receipt_condition: The case's execution condition.
            chain: BUILT chain; only transfer ids are read.
            expires_at: RFC3339 deadline shared by every transfer.

        Returns:
            The case id (``<notary>/cases/<uuid4>``).

        Raises:
            NotaryError: If the notary answers with status >= 400.
        """
        chain.require(ChainPhase.BUILT)

        case = Case(
            id=new_case_id(notary),
            execution_condition=receipt_condition,
            expires_at=expires_at,
            notaries=(notary,),
            transfers=tuple(chain.transfer_ids()),
        )
        response = await self._transport.put_json(case.id, case.to_dict())
        if not response.ok:
            raise NotaryError(response.status, response.body, url=case.id)

        logger.info("created case %s covering %d transfers", case.id, len(case.transfers))
        return case.id

    async def submit_fulfillment(self, final_transfer: Transfer, case_id: str) -> None:
        """Forward the final transfer's signed state to the notary.

        Raises:
            RemoteError: If reading the state or submitting it fails.
        """
        if final_transfer.id is None:
            raise ValueError("final transfer has no id")

        state_url = f"{final_transfer.id}/state"
        state_response = await self._transport.get_json(state_url)
        raise_for_remote(state_response, url=state_url)

        state = state_response.body
        if not isinstance(state, dict):
            raise RemoteError(
                state_response.status,
                state,
                url=state_url,
                error_code="INVALID_RESPONSE",
                message="transfer state response was not an object",
            )

        fulfillment_url = f"{case_id}/fulfillment"
        response = await self._transport.put_json(
            fulfillment_url,
            {"type": state.get("type"), "signature": state.get("signature")},
        )
        raise_for_remote(response, url=fulfillment_url)

        logger.info("submitted fulfillment for case %s", case_id)
