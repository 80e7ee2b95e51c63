"""
Exception hierarchy for node access, sender resolution and exchange outcomes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from decimal import Decimal

    from rvnswap.models import ExchangeDecision


class RvnSwapError(Exception):
    """Base class for all rvnswap errors."""


class NodeError(RvnSwapError):
    """Talking to the node failed or produced something unusable."""


class TransportError(NodeError):
    """Node unreachable, timed out, or answered with a non-JSON error."""

    def __init__(self, message: str, http_status: int | None = None):
        super().__init__(message)
        self.http_status = http_status


class RpcError(NodeError):
    """The node rejected the call."""

    def __init__(self, method: str, code: int | None, message: str):
        super().__init__(f"RPC error {code} in {method}: {message}")
        self.method = method
        self.code = code
        self.message = message


class NotFoundError(RpcError):
    """Referenced transaction, output or address is unknown to the node."""


class MalformedResponseError(NodeError):
    """A node response did not have the expected shape."""


class ResolutionError(RvnSwapError):
    """The sender address of a transaction could not be traced."""

    def __init__(self, txid: str, reason: str):
        super().__init__(f"Could not resolve sender of {txid}: {reason}")
        self.txid = txid
        self.reason = reason


class ExchangeError(RvnSwapError):
    """
    An exchange attempt ended without a successful dispatch.

    ``dispatch_attempted`` is False for every failure that happens before the
    transfer call, so callers can tell "nothing was sent" apart from "the
    send itself failed".
    """

    dispatch_attempted = False

    def __init__(self, txid: str, message: str):
        super().__init__(message)
        self.txid = txid


class NoDetailsError(ExchangeError):
    """The wallet transaction has no details of the kind the policy needs."""


class InsufficientAssetBalanceError(ExchangeError):
    def __init__(self, txid: str, asset: str, balance: Decimal, required: int):
        super().__init__(
            txid,
            f"Not enough {asset} left in wallet: balance {balance}, required {required}",
        )
        self.asset = asset
        self.balance = balance
        self.required = required


class EligibilityNotMetError(ExchangeError):
    def __init__(self, txid: str, decision: ExchangeDecision):
        super().__init__(
            txid, f"Transaction {txid} did not meet the requirements: {decision.reason}"
        )
        self.decision = decision


class AlreadyDispatchedError(ExchangeError):
    def __init__(self, txid: str, dispatched_txids: list[str]):
        super().__init__(
            txid,
            f"Transaction {txid} was already answered by {', '.join(dispatched_txids) or '?'}",
        )
        self.dispatched_txids = dispatched_txids


class SenderUnresolvedError(ExchangeError):
    pass


class InvalidSenderAddressError(ExchangeError):
    def __init__(self, txid: str, address: str):
        super().__init__(txid, f"Invalid sender address {address} for transaction {txid}")
        self.address = address


class DispatchError(ExchangeError):
    """The transfer call itself failed; the wallet state may have changed."""

    dispatch_attempted = True
