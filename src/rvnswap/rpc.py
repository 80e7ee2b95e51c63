"""
Ravencoin node JSON-RPC gateway.

Posts JSON-RPC 2.0 requests with HTTP Basic auth and hands back the decoded
reply. Transport problems raise; node-side errors are returned as a failed
``RpcResult`` so the caller decides how to map them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger

from rvnswap.constants import DEFAULT_RPC_TIMEOUT
from rvnswap.errors import MalformedResponseError, TransportError
from rvnswap.models import ServerConnection


@dataclass
class RpcResult:
    ok: bool
    body: dict[str, Any] = field(default_factory=dict)
    http_status: int = 200
    error_detail: str | None = None
    error_code: int | None = None

    @property
    def result(self) -> Any:
        return self.body.get("result")


class RavencoinRpcGateway:
    """
    Executes named RPC methods against one Ravencoin node.

    Params may be positional (list) or named (dict); the node accepts both.
    """

    def __init__(
        self,
        connection: ServerConnection,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.connection = connection
        self.rpc_url = connection.url
        self.client = httpx.AsyncClient(
            timeout=timeout,
            auth=(connection.username, connection.password),
            headers={"Accept": "application/json"},
            transport=transport,
        )
        self._request_id = 0

    async def __aenter__(self) -> RavencoinRpcGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def invoke(self, method: str, params: list | dict | None = None) -> RpcResult:
        """
        Make an RPC call to the node.

        Args:
            method: RPC method name
            params: Positional list or named dict of parameters

        Returns:
            RpcResult; ``ok`` is False when the node reported an error

        Raises:
            TransportError: On connection errors, timeouts and non-JSON error replies
            MalformedResponseError: On a successful reply that is not JSON-RPC
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params if params is not None else [],
        }
        logger.debug(f"RPC {method} (id {self._request_id})")

        try:
            response = await self.client.post(self.rpc_url, json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"RPC call timed out: {method} - {e}")
            raise TransportError(f"RPC call {method} timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise TransportError(f"RPC call {method} failed: {e}") from e

        status = response.status_code
        try:
            data = response.json()
        except ValueError as e:
            if status != httpx.codes.OK:
                # 401 on bad credentials comes back with an empty body
                detail = response.text.strip() or response.reason_phrase
                logger.error(f"RPC call {method} returned HTTP {status}: {detail}")
                raise TransportError(
                    f"RPC call {method} returned HTTP {status}: {detail}", http_status=status
                ) from e
            raise MalformedResponseError(f"RPC call {method} returned non-JSON body") from e

        if not isinstance(data, dict):
            raise MalformedResponseError(f"RPC call {method} returned {type(data).__name__}")

        if data.get("error"):
            error_info = data["error"]
            if isinstance(error_info, dict):
                error_code = error_info.get("code")
                error_msg = error_info.get("message", str(error_info))
            else:
                error_code = None
                error_msg = str(error_info)
            logger.debug(f"RPC {method} error {error_code}: {error_msg}")
            return RpcResult(
                ok=False,
                body=data,
                http_status=status,
                error_detail=error_msg,
                error_code=error_code,
            )

        if status != httpx.codes.OK:
            return RpcResult(
                ok=False, body=data, http_status=status, error_detail=f"HTTP {status}"
            )

        return RpcResult(ok=True, body=data, http_status=status)

    async def close(self) -> None:
        await self.client.aclose()
