"""
send_payment: run one cross-ledger payment end to end.

Phase order is fixed; each phase reads fields only earlier phases fill:

    1. validate parameters (no I/O)
    2. quote the path (skipped when subpayments are given)
    3. build the transfer chain, attach the destination memo
    4. receipt condition ("prepared" if atomic, "executed" otherwise)
    5. one shared ``now`` for every expiry
    6. atomic: create the notary case
    7. derive execution (and cancellation) conditions
    8. configure escrow
    9. propose every transfer
   10. settle every hop
   11. atomic, own receipt condition: submit the fulfillment to the notary

The first error aborts the run and propagates unchanged. Nothing is
retried or compensated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from chain_sender.chain import build_chain, parse_quotes, with_destination_memo
from chain_sender.conditions import (
    RECEIPT_STATE_ATOMIC,
    RECEIPT_STATE_UNIVERSAL,
    ConditionParams,
    ConditionProvider,
)
from chain_sender.config import SenderParams
from chain_sender.driver import execute_payments
from chain_sender.errors import ConfigurationError
from chain_sender.escrow import (
    AtomicEscrowPolicy,
    EscrowPolicy,
    InitiatorAuthorization,
    TimedEscrowPolicy,
    configure_escrow,
    transfer_expires_at,
)
from chain_sender.models import Payment
from chain_sender.notary import NotaryCaseManager
from chain_sender.pathfind import PathFinder, PathQuery
from chain_sender.phases import TransferChain
from chain_sender.proposer import propose_transfers
from chain_sender.transport import HttpxTransport, LedgerTransport

logger = logging.getLogger(__name__)


def _default_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SendResult:
    """Outcome of a successful run.

    Attributes:
        subpayments: Executed hops, in order.
        chain: The SETTLED transfer chain.
        case_id: Notary case id in atomic mode, else None.
    """

    subpayments: list[Payment]
    chain: TransferChain
    case_id: str | None = None


async def send_payment(
    params: SenderParams | Mapping[str, Any],
    *,
    conditions: ConditionProvider,
    transport: LedgerTransport | None = None,
    path_finder: PathFinder | None = None,
    now_fn: Callable[[], datetime] | None = None,
    authorization: InitiatorAuthorization | None = None,
) -> SendResult:
    """Create and execute a cross-ledger payment.

    Args:
        params: SenderParams, or a parameter dict for SenderParams.from_dict.
        conditions: Source of receipt/execution/cancellation conditions.
        transport: Ledger and notary transport. Defaults to HttpxTransport.
        path_finder: Quotes the path when params carry no subpayments.
        now_fn: Clock returning a timezone-aware datetime. Inject for tests.
        authorization: Grant to debit the source account. Defaults to one
            for the configured source account.

    Returns:
        SendResult with the executed subpayments and the settled chain.

    Raises:
        ConfigurationError: Bad parameters, or no path finder and no path.
        MalformedQuoteError: A quoted hop can't be linked.
        NotaryError: The notary rejected the case.
        RemoteError: A ledger call failed.
    """
    if not isinstance(params, SenderParams):
        params = SenderParams.from_dict(params)
    if params.subpayments is None and path_finder is None:
        raise ConfigurationError("Missing required parameter: subpayments or a path finder")

    transport = transport or HttpxTransport()
    now_fn = now_fn or _default_now
    source_account = params.resolved_source_account

    # Quoting
    if params.subpayments is not None:
        quotes = list(params.subpayments)
    else:
        assert path_finder is not None
        assert params.destination_amount is not None
        quotes = list(
            await path_finder.find_path(
                PathQuery(
                    source_ledger=params.source_ledger,
                    destination_ledger=params.destination_ledger,
                    destination_account=params.resolved_destination_account,
                    destination_amount=params.destination_amount,
                )
            )
        )

    payments = parse_quotes(quotes)
    chain = build_chain(payments, source_account)
    if params.destination_memo is not None:
        chain = with_destination_memo(chain, params.destination_memo)

    logger.info(
        "sending %s payment over %d hop(s) from %s",
        "atomic" if params.is_atomic else "universal",
        len(payments),
        source_account,
    )

    receipt_condition = params.receipt_condition
    if receipt_condition is None:
        receipt_condition = await conditions.get_receipt_condition(
            chain.final,
            RECEIPT_STATE_ATOMIC if params.is_atomic else RECEIPT_STATE_UNIVERSAL,
        )

    # One clock read for every expiry, so no window drifts between hops.
    now = now_fn()

    manager = NotaryCaseManager(transport)
    case_id: str | None = None
    if params.is_atomic:
        assert params.notary is not None
        case_id = await manager.create_case(
            params.notary,
            receipt_condition,
            chain,
            transfer_expires_at(now, chain.first),
        )

    condition_params = ConditionParams(
        receipt_condition=receipt_condition,
        case_id=case_id,
        notary=params.notary,
        notary_public_key=params.notary_public_key,
    )
    execution_condition = conditions.get_execution_condition(condition_params)

    policy: EscrowPolicy
    if case_id is not None:
        policy = AtomicEscrowPolicy(
            case_id=case_id,
            execution_condition=execution_condition,
            cancellation_condition=conditions.get_cancellation_condition(condition_params),
        )
    else:
        policy = TimedEscrowPolicy(now=now, execution_condition=execution_condition)

    if authorization is None:
        authorization = InitiatorAuthorization(account=source_account)
    chain = configure_escrow(chain, policy, authorization)

    chain = await propose_transfers(transport, chain, params.credentials)
    executed, chain = await execute_payments(transport, payments, chain)

    # With a caller-supplied receipt condition the payee fulfills the case.
    if case_id is not None and params.receipt_condition is None:
        await manager.submit_fulfillment(chain.final, case_id)

    logger.info("payment complete: %d hop(s) settled", len(executed))
    return SendResult(subpayments=executed, chain=chain, case_id=case_id)
