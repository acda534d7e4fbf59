import itertools
import json
import logging
from typing import Any

import httpx

from ..errors import RpcError, TransientRemoteFailure

logger = logging.getLogger(__name__)


class JsonRpcClient:
    """Minimal JSON-RPC 2.0 client over HTTP POST.

    Provides the single ``call`` coroutine used by the Solana
    point source. Every failure below the JSON-RPC ``result`` member is
    reported as a TransientRemoteFailure.
    """

    def __init__(self, url: str, chain: str = "", timeout: float = 30.0) -> None:
        """Initialize the client.

        Args:
            url: HTTP(S) RPC endpoint
            chain: Chain name used in errors and log lines
            timeout: Per-request transport timeout in seconds
        """
        self.url: str = url
        self.chain: str = chain
        self.timeout: float = timeout
        self._ids = itertools.count(1)
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Invoke a JSON-RPC method and return its ``result`` member.

        Args:
            method: RPC method name
            params: Positional parameters

        Returns:
            The decoded ``result`` value, which may be None

        Raises:
            TransientRemoteFailure: On transport errors, HTTP error status,
                undecodable bodies or a JSON-RPC error object
        """
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }
        logger.debug(f"Posting to {self.url}: {json.dumps(payload)}")

        try:
            response: httpx.Response = await self._get_client().post(
                self.url, json=payload
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise TransientRemoteFailure(self.chain, method, str(e)) from e
        except ValueError as e:
            raise TransientRemoteFailure(
                self.chain, method, f"invalid JSON response: {e}"
            ) from e

        if not isinstance(data, dict):
            raise TransientRemoteFailure(
                self.chain, method, f"unexpected response: {data!r}"
            )

        # Use pattern matching for the response envelope
        match data:
            case {"error": {"code": code, "message": message}}:
                raise RpcError(self.chain, method, code, message)
            case {"error": error}:
                raise TransientRemoteFailure(self.chain, method, str(error))
            case {"result": result}:
                return result
            case _:
                raise TransientRemoteFailure(
                    self.chain, method, f"response has no result: {data!r}"
                )

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

