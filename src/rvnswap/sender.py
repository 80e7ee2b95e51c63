"""
Sender address inference.

WARNING: there is no "from" address in a UTXO transaction. The resolver here
guesses it by looking one hop back: the address that owned the output spent by
the first input. That holds for payments from ordinary single-key wallets, but
NOT for exchanges, pools or coinjoin-like transactions. Keep the guess behind
the SenderResolver interface so a better strategy can replace it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from loguru import logger

from rvnswap.chain import ChainReader
from rvnswap.errors import NotFoundError, ResolutionError


class SenderResolver(ABC):
    """Infers the address that funded a transaction."""

    @abstractmethod
    async def resolve(self, txid: str) -> str:
        """Return the probable sender address, or raise ResolutionError."""


class FirstInputSenderResolver(SenderResolver):
    """
    Single-hop backtrace through the first input.

    1. Decode ``txid`` and take ``vin[0]`` = (prev_txid, vout).
    2. Decode ``prev_txid``.
    3. Return the first address of ``prev_txid``'s output ``vout``.

    Transport errors propagate unchanged; everything that makes the trace
    impossible is reported as ResolutionError.
    """

    def __init__(self, reader: ChainReader):
        self.reader = reader

    async def resolve(self, txid: str) -> str:
        try:
            tx = await self.reader.get_public_transaction(txid)
        except NotFoundError as e:
            raise ResolutionError(txid, f"transaction not found: {e.message}") from e

        if not tx.vin:
            raise ResolutionError(txid, "transaction has no inputs")
        first_input = tx.vin[0]
        if first_input.txid is None or first_input.vout is None:
            raise ResolutionError(txid, "first input is a coinbase input")

        prev_txid = first_input.txid
        try:
            prev_tx = await self.reader.get_public_transaction(prev_txid)
        except NotFoundError as e:
            raise ResolutionError(
                txid, f"previous transaction {prev_txid} not found (pruned or unindexed node?)"
            ) from e

        output = prev_tx.output(first_input.vout)
        if output is None:
            raise ResolutionError(
                txid, f"previous transaction {prev_txid} has no output {first_input.vout}"
            )

        addresses = output.script_pub_key.addresses
        if not addresses:
            raise ResolutionError(
                txid, f"output {prev_txid}:{first_input.vout} has no address"
            )
        if len(addresses) > 1:
            logger.warning(
                f"Output {prev_txid}:{first_input.vout} has {len(addresses)} addresses, "
                f"using the first one"
            )

        logger.debug(f"Sender of {txid} resolved to {addresses[0]} via {prev_txid}")
        return addresses[0]
