"""
rvnswap - automatic asset exchange for a Ravencoin node

Watches incoming wallet transactions and answers qualifying RVN or asset
payments with an asset transfer back to the sender.
"""

__version__ = "0.1.0"

from rvnswap.chain import ChainReader
from rvnswap.classifier import TransactionClassifier, classify_transaction
from rvnswap.engine import ExchangeEngine, asset_matches, compute_quantity
from rvnswap.errors import (
    DispatchError,
    EligibilityNotMetError,
    ExchangeError,
    NotFoundError,
    ResolutionError,
    RvnSwapError,
    TransportError,
)
from rvnswap.ledger import DispatchLedger
from rvnswap.models import (
    Direction,
    ExchangeDecision,
    ExchangeResult,
    ServerConnection,
    TransactionClassification,
    TransactionKind,
)
from rvnswap.rpc import RavencoinRpcGateway, RpcResult
from rvnswap.sender import FirstInputSenderResolver, SenderResolver

__all__ = [
    "ChainReader",
    "Direction",
    "DispatchError",
    "DispatchLedger",
    "EligibilityNotMetError",
    "ExchangeDecision",
    "ExchangeEngine",
    "ExchangeError",
    "ExchangeResult",
    "FirstInputSenderResolver",
    "NotFoundError",
    "RavencoinRpcGateway",
    "ResolutionError",
    "RpcResult",
    "RvnSwapError",
    "SenderResolver",
    "ServerConnection",
    "TransactionClassification",
    "TransactionClassifier",
    "TransactionKind",
    "TransportError",
    "asset_matches",
    "classify_transaction",
    "compute_quantity",
]
