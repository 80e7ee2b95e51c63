"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from rvnswap.models import AddressValidation, RawTransaction, WalletTransaction
from tests.factories import (
    DISPATCHED_TXID,
    INCOMING_TXID,
    PREV_TXID,
    RECEIVE_ADDRESS,
    SENDER_ADDRESS,
    decoded_tx,
    p2pkh_output,
    rvn_receive,
)


@pytest.fixture
def incoming_raw() -> RawTransaction:
    """Incoming payment whose first input spends PREV_TXID:1."""
    return RawTransaction.model_validate(
        decoded_tx(
            INCOMING_TXID,
            vin=[{"txid": PREV_TXID, "vout": 1, "sequence": 4294967295}],
            vout=[p2pkh_output(0, [RECEIVE_ADDRESS], "5.7")],
        )
    )


@pytest.fixture
def previous_raw() -> RawTransaction:
    return RawTransaction.model_validate(
        decoded_tx(
            PREV_TXID,
            vin=[{"txid": "d" * 64, "vout": 0}],
            vout=[p2pkh_output(0, ["RChangeAddr"]), p2pkh_output(1, [SENDER_ADDRESS])],
        )
    )


@pytest.fixture
def mock_reader():
    """Chain reader double preset for a qualifying RVN payment."""
    reader = MagicMock()
    reader.get_wallet_transaction = AsyncMock(
        return_value=WalletTransaction.model_validate(rvn_receive())
    )
    reader.list_my_asset_balance = AsyncMock(return_value=Decimal(1000))
    reader.validate_address = AsyncMock(
        return_value=AddressValidation(isvalid=True, address=SENDER_ADDRESS)
    )
    reader.transfer_asset = AsyncMock(return_value=[DISPATCHED_TXID])
    reader.get_public_transaction = AsyncMock()
    return reader


@pytest.fixture
def mock_resolver():
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value=SENDER_ADDRESS)
    return resolver
