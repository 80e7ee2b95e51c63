"""
Incoming-transaction exchange engine.

Given an incoming wallet transaction, decide whether it pays for an asset and,
if so, send that asset back to whoever paid. Two policies:

- RVN for asset: N whole RVN received -> N * multiplier of ``asset_to_send``
- Asset for asset: N whole units of an expected asset (or any, with "*")
  received -> N * multiplier of ``asset_to_send``

Every run is a single sequential pass:

    fetch -> quantity -> balance -> eligibility -> sender -> validate -> transfer

Each step can end the run with an ExchangeError. Nothing is retried. Only the
final transfer has side effects; a failure there is a DispatchError.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from rvnswap.chain import ChainReader
from rvnswap.constants import ASSET_WILDCARD, CATEGORY_RECEIVE
from rvnswap.errors import (
    AlreadyDispatchedError,
    DispatchError,
    EligibilityNotMetError,
    InsufficientAssetBalanceError,
    InvalidSenderAddressError,
    NodeError,
    NoDetailsError,
    ResolutionError,
    SenderUnresolvedError,
)
from rvnswap.ledger import DispatchLedger, DispatchRecord
from rvnswap.models import ExchangeDecision, ExchangeResult
from rvnswap.sender import FirstInputSenderResolver, SenderResolver


@dataclass
class IncomingPayment:
    """The fields of a wallet transaction the eligibility rules look at."""

    category: str
    receive_address: str
    amount: Decimal
    confirmations: int
    asset_name: str | None = None


def compute_quantity(amount: Decimal, multiplier: int | None) -> tuple[int, int]:
    """
    Convert a received amount into the quantity to send.

    The amount is floored (2.9999 -> 2) so fractional payments never round up.
    A multiplier only applies when it is set and greater than 1.

    Returns:
        (final_amount, quantity); quantity is never negative
    """
    final_amount = math.floor(amount)
    if multiplier is not None and multiplier > 1:
        quantity = final_amount * multiplier
    else:
        quantity = final_amount
    return final_amount, max(quantity, 0)


def asset_matches(expected: str, received: str | None) -> bool:
    if not received:
        return False
    return expected == ASSET_WILDCARD or expected == received


def evaluate_eligibility(
    payment: IncomingPayment,
    final_amount: int,
    quantity: int,
    expected_receive_address: str,
    min_confirmations: int,
    expected_incoming_asset: str | None = None,
) -> ExchangeDecision:
    """Check every requirement and list all that are not met."""
    unmet: list[str] = []
    if payment.category != CATEGORY_RECEIVE:
        unmet.append(f"category is {payment.category!r}, expected {CATEGORY_RECEIVE!r}")
    if payment.receive_address != expected_receive_address:
        unmet.append(
            f"receive address {payment.receive_address!r} "
            f"does not match {expected_receive_address!r}"
        )
    if final_amount < 1:
        unmet.append(f"amount {final_amount} is below 1")
    if payment.confirmations < min_confirmations:
        unmet.append(f"confirmations {payment.confirmations} below minimum {min_confirmations}")
    if expected_incoming_asset is not None and not asset_matches(
        expected_incoming_asset, payment.asset_name
    ):
        unmet.append(
            f"asset {payment.asset_name!r} does not match {expected_incoming_asset!r}"
        )

    return ExchangeDecision(
        eligible=not unmet,
        reason="; ".join(unmet) if unmet else "all requirements met",
        quantity_to_send=quantity,
    )


class ExchangeEngine:
    """
    Stateless exchange engine.

    The chain reader and sender resolver are injected; the optional ledger
    turns repeated runs for the same txid into AlreadyDispatchedError.
    """

    def __init__(
        self,
        reader: ChainReader,
        resolver: SenderResolver | None = None,
        ledger: DispatchLedger | None = None,
    ):
        self.reader = reader
        self.resolver = resolver or FirstInputSenderResolver(reader)
        self.ledger = ledger

    async def exchange_rvn_for_asset(
        self,
        txid: str,
        expected_receive_address: str,
        asset_to_send: str,
        multiplier: int | None,
        min_confirmations: int,
    ) -> ExchangeResult:
        """Answer an incoming RVN payment with ``asset_to_send``."""
        logger.info(
            f"TransactionID {txid}: exchanging RVN for {asset_to_send}. "
            f"Receive address: {expected_receive_address}, multiplier: {multiplier}, "
            f"minimum confirmations: {min_confirmations}"
        )
        tx = await self.reader.get_wallet_transaction(txid)
        if not tx.details:
            raise NoDetailsError(
                txid, f"Transaction {txid} has no details section. Likely a fee transaction."
            )

        detail = tx.details[0]
        payment = IncomingPayment(
            category=detail.category,
            receive_address=detail.address,
            amount=tx.amount,
            confirmations=tx.confirmations,
        )
        return await self._exchange(
            txid,
            payment,
            expected_receive_address=expected_receive_address,
            asset_to_send=asset_to_send,
            multiplier=multiplier,
            min_confirmations=min_confirmations,
        )

    async def exchange_asset_for_asset(
        self,
        txid: str,
        expected_receive_address: str,
        expected_incoming_asset: str,
        asset_to_send: str,
        multiplier: int | None,
        min_confirmations: int,
    ) -> ExchangeResult:
        """Answer an incoming asset transfer with ``asset_to_send``."""
        logger.info(
            f"TransactionID {txid}: exchanging {expected_incoming_asset} for {asset_to_send}. "
            f"Receive address: {expected_receive_address}, multiplier: {multiplier}, "
            f"minimum confirmations: {min_confirmations}"
        )
        tx = await self.reader.get_wallet_transaction(txid)
        if not tx.asset_details:
            raise NoDetailsError(
                txid,
                f"Transaction {txid} has no asset details section. "
                "Likely a fee transaction or an RVN transaction.",
            )

        detail = tx.asset_details[0]
        payment = IncomingPayment(
            category=detail.category,
            receive_address=detail.destination,
            amount=detail.amount,
            confirmations=tx.confirmations,
            asset_name=detail.asset_name,
        )
        return await self._exchange(
            txid,
            payment,
            expected_receive_address=expected_receive_address,
            asset_to_send=asset_to_send,
            multiplier=multiplier,
            min_confirmations=min_confirmations,
            expected_incoming_asset=expected_incoming_asset,
        )

    async def _exchange(
        self,
        txid: str,
        payment: IncomingPayment,
        expected_receive_address: str,
        asset_to_send: str,
        multiplier: int | None,
        min_confirmations: int,
        expected_incoming_asset: str | None = None,
    ) -> ExchangeResult:
        final_amount, quantity = compute_quantity(payment.amount, multiplier)

        balance = await self.reader.list_my_asset_balance(asset_to_send)
        logger.info(f"TransactionID {txid}: balance of {asset_to_send}: {balance}")
        if balance < quantity:
            logger.error(f"TransactionID {txid}: not enough {asset_to_send} left in wallet")
            raise InsufficientAssetBalanceError(txid, asset_to_send, balance, quantity)

        decision = evaluate_eligibility(
            payment,
            final_amount,
            quantity,
            expected_receive_address=expected_receive_address,
            min_confirmations=min_confirmations,
            expected_incoming_asset=expected_incoming_asset,
        )
        if not decision.eligible:
            logger.error(f"TransactionID {txid}: requirements not met: {decision.reason}")
            raise EligibilityNotMetError(txid, decision)

        if self.ledger is not None:
            previous = self.ledger.get(txid)
            if previous is not None:
                logger.warning(f"TransactionID {txid}: already answered, not sending again")
                raise AlreadyDispatchedError(txid, previous.dispatched_txids)

        try:
            sender = await self.resolver.resolve(txid)
        except ResolutionError as e:
            logger.error(f"TransactionID {txid}: could not find sender address: {e.reason}")
            raise SenderUnresolvedError(txid, str(e)) from e
        logger.info(f"TransactionID {txid}: sender address {sender}")

        validation = await self.reader.validate_address(sender)
        if not validation.isvalid:
            logger.error(f"TransactionID {txid}: invalid sender address {sender}")
            raise InvalidSenderAddressError(txid, sender)

        logger.info(f"TransactionID {txid}: sending {quantity} {asset_to_send} to {sender}")
        try:
            dispatched = await self.reader.transfer_asset(asset_to_send, quantity, sender)
        except NodeError as e:
            logger.error(f"TransactionID {txid}: transfer failed: {e}")
            raise DispatchError(
                txid, f"Transfer of {quantity} {asset_to_send} to {sender} failed: {e}"
            ) from e

        if self.ledger is not None:
            try:
                self.ledger.record(
                    DispatchRecord(
                        txid=txid,
                        asset=asset_to_send,
                        quantity=quantity,
                        to_address=sender,
                        dispatched_txids=dispatched,
                    )
                )
            except OSError as e:
                # Transfer is already out: still a success
                logger.error(f"TransactionID {txid}: sent but could not record in ledger: {e}")

        logger.info(f"TransactionID {txid}: sent {quantity} {asset_to_send}: {dispatched}")
        return ExchangeResult(
            success=True,
            txid=txid,
            dispatched_txids=dispatched,
            quantity=quantity,
            confirmations=payment.confirmations,
            dispatch_attempted=True,
        )
