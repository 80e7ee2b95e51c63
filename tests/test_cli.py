"""
Tests for the rvnswap CLI commands.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from loguru import logger
from typer.testing import CliRunner

from rvnswap.cli import app
from rvnswap.driver import ExchangePolicy
from rvnswap.errors import NotFoundError, TransportError
from rvnswap.models import Direction, ExchangeResult, TransactionClassification, TransactionKind
from tests.factories import DISPATCHED_TXID, INCOMING_TXID, SENDER_ADDRESS

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RPC_USER", "rpcuser")
    monkeypatch.setenv("RPC_PASSWORD", "secret")
    monkeypatch.setenv("RVN_LISTEN_ADDRESS", "RListen")
    monkeypatch.setenv("ASSET_TO_SEND", "GOLD")
    monkeypatch.setenv("MULTIPLIER", "10")
    yield
    # The CLI points loguru at the runner's stderr, which is closed afterwards
    logger.remove()


def outcome(**fields) -> ExchangeResult:
    return ExchangeResult(txid=INCOMING_TXID, **fields)


class TestNotify:
    def test_missing_txid(self) -> None:
        with patch("rvnswap.cli.process_incoming_transaction", new=AsyncMock()) as process:
            result = runner.invoke(app, ["notify"])

        assert result.exit_code == 1
        process.assert_not_awaited()

    def test_success(self) -> None:
        process = AsyncMock(
            return_value=outcome(
                success=True,
                dispatched_txids=[DISPATCHED_TXID],
                quantity=50,
                dispatch_attempted=True,
            )
        )
        with patch("rvnswap.cli.process_incoming_transaction", new=process):
            result = runner.invoke(app, ["notify", INCOMING_TXID])

        assert result.exit_code == 0
        process.assert_awaited_once()
        args = process.await_args.args
        assert args[0] == INCOMING_TXID
        policy = args[3]
        assert isinstance(policy, ExchangePolicy)
        assert policy.rvn_listen_address == "RListen"
        assert policy.asset_to_send == "GOLD"
        assert policy.multiplier == 10

    def test_skipped_exits_zero(self) -> None:
        process = AsyncMock(
            return_value=outcome(success=False, skipped=True, failure_reason="not incoming")
        )
        with patch("rvnswap.cli.process_incoming_transaction", new=process):
            result = runner.invoke(app, ["notify", INCOMING_TXID])

        assert result.exit_code == 0

    def test_failed_exchange_exits_one(self) -> None:
        process = AsyncMock(
            return_value=outcome(success=False, failure_reason="requirements not met")
        )
        with patch("rvnswap.cli.process_incoming_transaction", new=process):
            result = runner.invoke(app, ["notify", INCOMING_TXID])

        assert result.exit_code == 1

    def test_node_error_exits_one(self) -> None:
        process = AsyncMock(side_effect=TransportError("connection refused"))
        with patch("rvnswap.cli.process_incoming_transaction", new=process):
            result = runner.invoke(app, ["notify", INCOMING_TXID])

        assert result.exit_code == 1

    def test_ledger_configured(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("LEDGER_PATH", str(tmp_path / "ledger.jsonl"))
        process = AsyncMock(return_value=outcome(success=True))
        with patch("rvnswap.cli.process_incoming_transaction", new=process):
            result = runner.invoke(app, ["notify", INCOMING_TXID])

        assert result.exit_code == 0
        engine = process.await_args.args[2]
        assert engine.ledger is not None
        assert engine.ledger.path == tmp_path / "ledger.jsonl"

    def test_no_ledger_by_default(self) -> None:
        process = AsyncMock(return_value=outcome(success=True))
        with patch("rvnswap.cli.process_incoming_transaction", new=process):
            runner.invoke(app, ["notify", INCOMING_TXID])

        assert process.await_args.args[2].ledger is None

    def test_connection_options_override_environment(self) -> None:
        process = AsyncMock(return_value=outcome(success=True))
        with (
            patch("rvnswap.cli.process_incoming_transaction", new=process),
            patch("rvnswap.cli.RavencoinRpcGateway") as gateway_cls,
        ):
            gateway_cls.return_value.__aenter__ = AsyncMock(return_value=MagicMock())
            gateway_cls.return_value.__aexit__ = AsyncMock(return_value=None)
            result = runner.invoke(
                app, ["--rpc-host", "node.lan", "--rpc-port", "18766", "notify", INCOMING_TXID]
            )

        assert result.exit_code == 0
        connection = gateway_cls.call_args.args[0]
        assert connection.host == "node.lan"
        assert connection.port == 18766
        assert connection.username == "rpcuser"


class TestInspectionCommands:
    def test_classify(self) -> None:
        with patch("rvnswap.cli.TransactionClassifier") as classifier_cls:
            classifier_cls.return_value.classify = AsyncMock(
                return_value=TransactionClassification(
                    kind=TransactionKind.ASSET, direction=Direction.RECEIVE
                )
            )
            result = runner.invoke(app, ["classify", INCOMING_TXID])

        assert result.exit_code == 0
        assert result.stdout.strip() == "asset receive"

    def test_classify_fee(self) -> None:
        with patch("rvnswap.cli.TransactionClassifier") as classifier_cls:
            classifier_cls.return_value.classify = AsyncMock(
                return_value=TransactionClassification(kind=TransactionKind.FEE)
            )
            result = runner.invoke(app, ["classify", INCOMING_TXID])

        assert result.stdout.strip() == "fee -"

    def test_classify_unknown_txid(self) -> None:
        with patch("rvnswap.cli.TransactionClassifier") as classifier_cls:
            classifier_cls.return_value.classify = AsyncMock(
                side_effect=NotFoundError("gettransaction", -5, "Invalid or non-wallet txid")
            )
            result = runner.invoke(app, ["classify", INCOMING_TXID])

        assert result.exit_code == 1

    def test_sender(self) -> None:
        with patch("rvnswap.cli.FirstInputSenderResolver") as resolver_cls:
            resolver_cls.return_value.resolve = AsyncMock(return_value=SENDER_ADDRESS)
            result = runner.invoke(app, ["sender", INCOMING_TXID])

        assert result.exit_code == 0
        assert result.stdout.strip() == SENDER_ADDRESS

    def test_confirmations(self) -> None:
        with patch("rvnswap.cli.ChainReader") as reader_cls:
            reader_cls.return_value.get_transaction_confirmations = AsyncMock(return_value=7)
            result = runner.invoke(app, ["confirmations", INCOMING_TXID, "-n", "2"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "7"
        reader_cls.return_value.get_transaction_confirmations.assert_awaited_once_with(
            INCOMING_TXID, 2
        )

    def test_balance(self) -> None:
        with patch("rvnswap.cli.ChainReader") as reader_cls:
            reader_cls.return_value.list_my_asset_balance = AsyncMock(return_value=Decimal("150"))
            result = runner.invoke(app, ["balance", "GOLD"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "GOLD 150"
