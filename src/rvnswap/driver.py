"""
Routing of an incoming wallet transaction to the matching exchange policy.
"""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from rvnswap.classifier import TransactionClassifier
from rvnswap.constants import ASSET_WILDCARD
from rvnswap.engine import ExchangeEngine
from rvnswap.errors import ExchangeError
from rvnswap.models import Direction, ExchangeResult, TransactionKind


class ExchangePolicy(BaseModel):
    """What to send back for which incoming payment."""

    rvn_listen_address: str = ""
    asset_listen_address: str = ""
    asset_to_send: str = ""
    multiplier: int | None = None
    expected_incoming_asset: str = ASSET_WILDCARD
    asset_multiplier: int | None = None
    min_confirmations: int = Field(default=1, ge=0)


def _skipped(txid: str, reason: str) -> ExchangeResult:
    logger.info(f"TransactionID {txid}: {reason}")
    return ExchangeResult(success=False, txid=txid, failure_reason=reason, skipped=True)


async def process_incoming_transaction(
    txid: str,
    classifier: TransactionClassifier,
    engine: ExchangeEngine,
    policy: ExchangePolicy,
) -> ExchangeResult:
    """
    Classify ``txid`` and run the exchange policy that applies to it.

    Exchange failures are folded into the returned ExchangeResult; node and
    transport errors raised while classifying propagate.
    """
    logger.info(f"Incoming transaction detected: {txid}")
    classification = await classifier.classify(txid)

    if classification.direction != Direction.RECEIVE:
        return _skipped(
            txid, f"ignored {classification.kind.value} transaction (not incoming)"
        )

    if not policy.asset_to_send:
        return _skipped(txid, "ignored: no asset to send configured")

    try:
        if classification.kind == TransactionKind.RVN:
            if not policy.rvn_listen_address:
                return _skipped(txid, "ignored RVN payment: no RVN listen address configured")
            result = await engine.exchange_rvn_for_asset(
                txid,
                policy.rvn_listen_address,
                policy.asset_to_send,
                policy.multiplier,
                policy.min_confirmations,
            )
        elif classification.kind == TransactionKind.ASSET:
            if not policy.asset_listen_address:
                return _skipped(
                    txid, "ignored asset transfer: no asset listen address configured"
                )
            result = await engine.exchange_asset_for_asset(
                txid,
                policy.asset_listen_address,
                policy.expected_incoming_asset,
                policy.asset_to_send,
                policy.asset_multiplier,
                policy.min_confirmations,
            )
        else:
            return _skipped(txid, f"ignored {classification.kind.value} transaction")
    except ExchangeError as e:
        logger.error(f"TransactionID {txid}: {e}")
        return ExchangeResult(
            success=False,
            txid=txid,
            failure_reason=str(e),
            dispatch_attempted=e.dispatch_attempted,
        )

    logger.info(
        f"Asset delivered successfully. Resulting transaction id = {result.dispatched_txid}"
    )
    return result
