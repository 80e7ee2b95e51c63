"""
Chain reader: the node calls the exchange engine needs, with parsed results.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from rvnswap.constants import RPC_INVALID_ADDRESS_OR_KEY
from rvnswap.errors import MalformedResponseError, NotFoundError, RpcError
from rvnswap.models import (
    AddressValidation,
    RawTransaction,
    TxOut,
    WalletTransaction,
)
from rvnswap.rpc import RavencoinRpcGateway, RpcResult

M = TypeVar("M", bound=BaseModel)


def raise_for_result(method: str, result: RpcResult) -> Any:
    """Return the RPC result or raise the matching node error."""
    if result.ok:
        return result.result
    if result.error_code == RPC_INVALID_ADDRESS_OR_KEY:
        raise NotFoundError(method, result.error_code, result.error_detail or "not found")
    raise RpcError(method, result.error_code, result.error_detail or "unknown error")


def parse_model(model: type[M], method: str, data: Any) -> M:
    if data is None:
        raise MalformedResponseError(f"{method} returned no result")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Unexpected {method} response: {e}") from e


class ChainReader:
    """
    Thin semantic layer over the RPC gateway.

    Takes the gateway explicitly so tests can swap in a double.
    """

    def __init__(self, gateway: RavencoinRpcGateway):
        self.gateway = gateway

    async def _call(self, method: str, params: list | dict | None = None) -> Any:
        result = await self.gateway.invoke(method, params)
        return raise_for_result(method, result)

    async def get_raw_transaction(self, txid: str) -> str:
        """Get the serialized hex of any transaction known to the node."""
        hexstring = await self._call("getrawtransaction", [txid, False])
        if not isinstance(hexstring, str):
            raise MalformedResponseError(f"getrawtransaction returned {hexstring!r}")
        return hexstring

    async def decode_raw_transaction(self, hexstring: str) -> RawTransaction:
        data = await self._call("decoderawtransaction", [hexstring])
        return parse_model(RawTransaction, "decoderawtransaction", data)

    async def get_public_transaction(self, txid: str) -> RawTransaction:
        """
        Get a decoded transaction that need not belong to our wallet.

        Requires txindex on the node for confirmed transactions outside the
        wallet; otherwise the node reports them as unknown.
        """
        hexstring = await self.get_raw_transaction(txid)
        return await self.decode_raw_transaction(hexstring)

    async def get_tx_out(self, txid: str, n: int, include_mempool: bool = True) -> TxOut | None:
        """Get an unspent output. Returns None if spent or unknown."""
        data = await self._call("gettxout", [txid, n, include_mempool])
        if data is None:
            logger.debug(f"Output {txid}:{n} not found (spent or doesn't exist)")
            return None
        return parse_model(TxOut, "gettxout", data)

    async def get_transaction_confirmations(self, txid: str, n: int = 0) -> int:
        """Confirmations of output ``n``; 0 when the output is spent or unknown."""
        txout = await self.get_tx_out(txid, n)
        return txout.confirmations if txout else 0

    async def get_wallet_transaction(self, txid: str) -> WalletTransaction:
        """In-wallet view of a transaction: categories, amounts, confirmations."""
        data = await self._call("gettransaction", [txid])
        return parse_model(WalletTransaction, "gettransaction", data)

    async def list_my_asset_balance(self, asset: str) -> Decimal:
        """Our wallet's balance of ``asset``; 0 if we hold none."""
        data = await self._call("listmyassets", [asset])
        if not isinstance(data, dict):
            raise MalformedResponseError(f"listmyassets returned {data!r}")
        balance = data.get(asset)
        if balance is None:
            return Decimal(0)
        try:
            return Decimal(str(balance))
        except InvalidOperation as e:
            raise MalformedResponseError(f"listmyassets balance for {asset}: {balance!r}") from e

    async def validate_address(self, address: str) -> AddressValidation:
        data = await self._call("validateaddress", [address])
        return parse_model(AddressValidation, "validateaddress", data)

    async def transfer_asset(
        self,
        asset: str,
        quantity: int,
        to_address: str,
        message: str = "",
        expire_time: int = 0,
        change_address: str = "",
        asset_change_address: str = "",
    ) -> list[str]:
        """
        Send ``quantity`` of ``asset`` from our wallet.

        Returns:
            txids of the transfer transaction(s)
        """
        params: list[Any] = [
            asset,
            quantity,
            to_address,
            message,
            expire_time,
            change_address,
            asset_change_address,
        ]
        # Drop trailing optionals the caller left at their defaults
        defaults = ["", 0, "", ""]
        while len(params) > 3 and params[-1] == defaults[len(params) - 4]:
            params.pop()

        data = await self._call("transfer", params)
        if isinstance(data, str):
            data = [data]
        if not isinstance(data, list) or not all(isinstance(t, str) for t in data):
            raise MalformedResponseError(f"transfer returned {data!r}")
        logger.info(f"Transferred {quantity} {asset} to {to_address}: {', '.join(data)}")
        return data
