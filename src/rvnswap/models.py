"""
Value objects for node responses and exchange outcomes, using Pydantic for
validation.

Each RPC response is validated once, when it is read, so a missing field
fails at the boundary instead of somewhere inside the exchange logic.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from rvnswap.constants import CATEGORY_RECEIVE, CATEGORY_SEND, MAINNET_RPC_PORT


class ServerConnection(BaseModel):
    """One node RPC endpoint."""

    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(default=MAINNET_RPC_PORT, ge=1, le=65535)
    username: str = ""
    password: str = Field(default="", repr=False)

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


class NodeModel(BaseModel):
    """Base for models parsed from node JSON: unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TransactionDetail(NodeModel):
    category: str
    address: str = ""
    amount: Decimal
    vout: int = 0


class AssetDetail(NodeModel):
    category: str
    destination: str = Field(default="", validation_alias=AliasChoices("destination", "address"))
    amount: Decimal
    asset_name: str
    vout: int = 0
    asset_type: str | None = None


class WalletTransaction(NodeModel):
    """In-wallet view of a transaction (gettransaction)."""

    txid: str
    amount: Decimal
    confirmations: int
    details: list[TransactionDetail] = Field(default_factory=list)
    asset_details: list[AssetDetail] = Field(default_factory=list)
    fee: Decimal | None = None


class TxInput(NodeModel):
    txid: str | None = None
    vout: int | None = None
    coinbase: str | None = None


class ScriptPubKey(NodeModel):
    addresses: list[str] = Field(default_factory=list)
    hex: str = ""
    type: str | None = None

    @model_validator(mode="before")
    @classmethod
    def fold_single_address(cls, data):  # type: ignore[no-untyped-def]
        # Newer nodes report a single "address" instead of "addresses"
        if isinstance(data, dict) and not data.get("addresses") and data.get("address"):
            data = {**data, "addresses": [data["address"]]}
        return data


class TxOutput(NodeModel):
    value: Decimal = Decimal(0)
    n: int
    script_pub_key: ScriptPubKey = Field(
        default_factory=ScriptPubKey, validation_alias=AliasChoices("scriptPubKey", "script_pub_key")
    )


class RawTransaction(NodeModel):
    """Decoded transaction (decoderawtransaction)."""

    txid: str
    vin: list[TxInput] = Field(default_factory=list)
    vout: list[TxOutput] = Field(default_factory=list)

    def output(self, index: int) -> TxOutput | None:
        """Find the output with ``n == index``."""
        for out in self.vout:
            if out.n == index:
                return out
        return None


class TxOut(NodeModel):
    """Unspent output as reported by gettxout."""

    bestblock: str = ""
    confirmations: int = 0
    value: Decimal = Decimal(0)
    script_pub_key: ScriptPubKey = Field(
        default_factory=ScriptPubKey, validation_alias=AliasChoices("scriptPubKey", "script_pub_key")
    )
    coinbase: bool = False


class AddressValidation(NodeModel):
    isvalid: bool
    address: str | None = None
    ismine: bool | None = None


class TransactionKind(str, Enum):
    RVN = "rvn"
    ASSET = "asset"
    FEE = "fee"


class Direction(str, Enum):
    SEND = CATEGORY_SEND
    RECEIVE = CATEGORY_RECEIVE


class TransactionClassification(BaseModel):
    kind: TransactionKind
    direction: Direction | None = None

    @property
    def is_incoming(self) -> bool:
        return self.direction == Direction.RECEIVE


class ExchangeDecision(BaseModel):
    eligible: bool
    reason: str = ""
    quantity_to_send: int = Field(default=0, ge=0)


class ExchangeResult(BaseModel):
    """Outcome of one exchange attempt."""

    success: bool
    txid: str
    dispatched_txids: list[str] = Field(default_factory=list)
    quantity: int = Field(default=0, ge=0)
    confirmations: int | None = None
    failure_reason: str | None = None
    dispatch_attempted: bool = False
    # True when no policy applies to the transaction (sends, fees, unconfigured)
    skipped: bool = False

    @property
    def dispatched_txid(self) -> str | None:
        return self.dispatched_txids[0] if self.dispatched_txids else None


def parse_direction(category: str) -> Direction | None:
    try:
        return Direction(category)
    except ValueError:
        return None
