"""
Wallet transaction classification.
"""

from __future__ import annotations

from loguru import logger

from rvnswap.chain import ChainReader
from rvnswap.models import (
    TransactionClassification,
    TransactionKind,
    WalletTransaction,
    parse_direction,
)


def classify_transaction(tx: WalletTransaction) -> TransactionClassification:
    """
    Classify a wallet transaction by which of its sections is populated.

    - asset_details present and no fee: asset transfer
    - otherwise details present: RVN payment
    - neither: fee/internal transaction
    """
    if tx.asset_details and tx.fee is None:
        return TransactionClassification(
            kind=TransactionKind.ASSET,
            direction=parse_direction(tx.asset_details[0].category),
        )
    if tx.details:
        return TransactionClassification(
            kind=TransactionKind.RVN,
            direction=parse_direction(tx.details[0].category),
        )
    if tx.fee is None:
        # No details and no fee marker: self transfer, treated as a fee
        logger.debug(f"Transaction {tx.txid} has no details and no fee, classifying as fee")
    return TransactionClassification(kind=TransactionKind.FEE)


class TransactionClassifier:
    def __init__(self, reader: ChainReader):
        self.reader = reader

    async def classify(self, txid: str) -> TransactionClassification:
        """Fetch ``txid`` from the wallet and classify it. NotFoundError propagates."""
        tx = await self.reader.get_wallet_transaction(txid)
        classification = classify_transaction(tx)
        direction = classification.direction.value if classification.direction else "-"
        logger.info(
            f"TransactionID {txid}: type {classification.kind.value}, category {direction}"
        )
        return classification
