"""
Configuration management using pydantic-settings.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rvnswap.constants import ASSET_WILDCARD, DEFAULT_RPC_TIMEOUT, MAINNET_RPC_PORT
from rvnswap.driver import ExchangePolicy
from rvnswap.models import ServerConnection


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    # Node RPC
    rpc_host: str = "127.0.0.1"
    rpc_port: int = MAINNET_RPC_PORT
    rpc_user: str = ""
    rpc_password: str = Field(default="", repr=False)
    rpc_timeout: float = Field(default=DEFAULT_RPC_TIMEOUT, gt=0)

    # RVN for asset
    rvn_listen_address: str = ""
    asset_to_send: str = ""
    multiplier: int | None = None

    # Asset for asset
    asset_listen_address: str = ""
    expected_incoming_asset: str = ASSET_WILDCARD
    asset_multiplier: int | None = None

    min_confirmations: int = Field(default=1, ge=0)

    # One JSON line per answered transaction; unset = no duplicate protection
    ledger_path: Path | None = None

    log_level: str = "INFO"
    log_file: Path | None = None

    def server_connection(self) -> ServerConnection:
        return ServerConnection(
            host=self.rpc_host,
            port=self.rpc_port,
            username=self.rpc_user,
            password=self.rpc_password,
        )

    def exchange_policy(self) -> ExchangePolicy:
        return ExchangePolicy(
            rvn_listen_address=self.rvn_listen_address,
            asset_listen_address=self.asset_listen_address,
            asset_to_send=self.asset_to_send,
            multiplier=self.multiplier,
            expected_incoming_asset=self.expected_incoming_asset,
            asset_multiplier=self.asset_multiplier,
            min_confirmations=self.min_confirmations,
        )


def get_settings() -> Settings:
    return Settings()
