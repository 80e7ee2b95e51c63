"""
rvnswap CLI using Typer.

``rvnswap notify <txid>`` is meant to be run by the node for every wallet
transaction (``walletnotify=rvnswap notify %s`` in raven.conf).
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer
from loguru import logger

from rvnswap.chain import ChainReader
from rvnswap.classifier import TransactionClassifier
from rvnswap.config import Settings, get_settings
from rvnswap.driver import process_incoming_transaction
from rvnswap.engine import ExchangeEngine
from rvnswap.errors import RvnSwapError
from rvnswap.ledger import DispatchLedger
from rvnswap.models import ExchangeResult
from rvnswap.rpc import RavencoinRpcGateway
from rvnswap.sender import FirstInputSenderResolver

T = TypeVar("T")

app = typer.Typer(
    name="rvnswap",
    help="Ravencoin incoming-transaction asset exchange",
    add_completion=False,
)


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )
    if log_file is not None:
        logger.add(log_file, level=level.upper(), rotation="10 MB", retention=5)


def run_async(coro):  # type: ignore[no-untyped-def]
    return asyncio.run(coro)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj


async def _with_reader(settings: Settings, fn: Callable[[ChainReader], Awaitable[T]]) -> T:
    async with RavencoinRpcGateway(
        settings.server_connection(), timeout=settings.rpc_timeout
    ) as gateway:
        return await fn(ChainReader(gateway))


def _run(settings: Settings, fn: Callable[[ChainReader], Awaitable[T]]) -> T:
    try:
        return run_async(_with_reader(settings, fn))
    except RvnSwapError as e:
        logger.error(str(e))
        raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    rpc_host: Annotated[str | None, typer.Option(help="Node RPC host")] = None,
    rpc_port: Annotated[int | None, typer.Option(help="Node RPC port")] = None,
    rpc_user: Annotated[str | None, typer.Option(help="Node RPC username")] = None,
    rpc_password: Annotated[str | None, typer.Option(help="Node RPC password")] = None,
    log_level: Annotated[str | None, typer.Option(help="Log level")] = None,
) -> None:
    """Connection options override RPC_* settings from the environment or .env."""
    settings = get_settings()
    overrides: dict[str, Any] = {
        "rpc_host": rpc_host,
        "rpc_port": rpc_port,
        "rpc_user": rpc_user,
        "rpc_password": rpc_password,
        "log_level": log_level,
    }
    settings = settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    setup_logging(settings.log_level, settings.log_file)
    ctx.obj = settings


@app.command()
def notify(
    ctx: typer.Context,
    txid: Annotated[str | None, typer.Argument(help="Wallet transaction id")] = None,
) -> None:
    """Handle a wallet transaction reported by the node."""
    if not txid:
        logger.error("No transaction ID passed in arguments")
        raise typer.Exit(1)

    settings = _settings(ctx)
    policy = settings.exchange_policy()
    ledger = DispatchLedger(settings.ledger_path) if settings.ledger_path else None

    async def handle(reader: ChainReader) -> ExchangeResult:
        engine = ExchangeEngine(reader, FirstInputSenderResolver(reader), ledger)
        return await process_incoming_transaction(
            txid, TransactionClassifier(reader), engine, policy
        )

    result = _run(settings, handle)
    if result.success or result.skipped:
        return
    logger.error(f"Error: {result.failure_reason}")
    raise typer.Exit(1)


@app.command()
def classify(
    ctx: typer.Context,
    txid: Annotated[str, typer.Argument(help="Wallet transaction id")],
) -> None:
    """Print the type and direction of a wallet transaction."""
    classification = _run(
        _settings(ctx), lambda reader: TransactionClassifier(reader).classify(txid)
    )
    direction = classification.direction.value if classification.direction else "-"
    typer.echo(f"{classification.kind.value} {direction}")


@app.command()
def sender(
    ctx: typer.Context,
    txid: Annotated[str, typer.Argument(help="Transaction id")],
) -> None:
    """Print the probable sender address of a transaction."""
    address = _run(
        _settings(ctx), lambda reader: FirstInputSenderResolver(reader).resolve(txid)
    )
    typer.echo(address)


@app.command()
def confirmations(
    ctx: typer.Context,
    txid: Annotated[str, typer.Argument(help="Transaction id")],
    vout: Annotated[int, typer.Option("--vout", "-n", help="Output index")] = 0,
) -> None:
    """Print the confirmations of an unspent output (0 if spent)."""
    count = _run(
        _settings(ctx), lambda reader: reader.get_transaction_confirmations(txid, vout)
    )
    typer.echo(str(count))


@app.command()
def balance(
    ctx: typer.Context,
    asset: Annotated[str, typer.Argument(help="Asset name")],
) -> None:
    """Print our wallet balance of an asset."""
    amount = _run(_settings(ctx), lambda reader: reader.list_my_asset_balance(asset))
    typer.echo(f"{asset} {amount}")


if __name__ == "__main__":
    app()
