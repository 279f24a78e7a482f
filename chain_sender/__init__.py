"""
chain-sender: execute cross-ledger payments as chains of escrowed transfers.

A quoted path becomes a linked chain of transfers, one per ledger. Every
transfer is escrowed, either under its own expiry (universal mode) or
under a shared notary case (atomic mode), proposed to its ledger, and
then settled hop by hop.

Quoting, condition generation and the ledgers themselves are external;
the package drives the protocol that ties them together.
"""

__version__ = "0.1.0"

from chain_sender.chain import (
    build_chain,
    ledger_to_account,
    parse_quotes,
    with_destination_memo,
)
from chain_sender.conditions import ConditionParams, ConditionProvider
from chain_sender.config import SenderParams
from chain_sender.driver import execute_payment, execute_payments
from chain_sender.errors import (
    ChainSenderError,
    ConfigurationError,
    MalformedQuoteError,
    NotaryError,
    RemoteError,
)
from chain_sender.escrow import (
    AtomicEscrowPolicy,
    EscrowPolicy,
    InitiatorAuthorization,
    TimedEscrowPolicy,
    configure_escrow,
    transfer_expires_at,
)
from chain_sender.models import Case, Condition, Funds, Payment, Transfer
from chain_sender.notary import NotaryCaseManager
from chain_sender.pathfind import PathFinder, PathQuery
from chain_sender.phases import ChainPhase, TransferChain
from chain_sender.proposer import propose_transfer, propose_transfers
from chain_sender.sender import SendResult, send_payment
from chain_sender.serialization import dump_chain, load_chain
from chain_sender.transport import (
    Credentials,
    HttpResponse,
    HttpxTransport,
    LedgerTransport,
)

__all__ = [
    "AtomicEscrowPolicy",
    "Case",
    "ChainPhase",
    "ChainSenderError",
    "Condition",
    "ConditionParams",
    "ConditionProvider",
    "ConfigurationError",
    "Credentials",
    "EscrowPolicy",
    "Funds",
    "HttpResponse",
    "HttpxTransport",
    "InitiatorAuthorization",
    "LedgerTransport",
    "MalformedQuoteError",
    "NotaryCaseManager",
    "NotaryError",
    "PathFinder",
    "PathQuery",
    "Payment",
    "RemoteError",
    "SendResult",
    "SenderParams",
    "TimedEscrowPolicy",
    "Transfer",
    "TransferChain",
    "build_chain",
    "configure_escrow",
    "dump_chain",
    "execute_payment",
    "execute_payments",
    "ledger_to_account",
    "load_chain",
    "parse_quotes",
    "propose_transfer",
    "propose_transfers",
    "send_payment",
    "transfer_expires_at",
    "with_destination_memo",
]
