"""JSON-RPC client for a Bitcoin-protocol daemon."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Mapping
from typing import Any, Callable

import httpx
from loguru import logger

from bitcoind_rpc.config.loader import resolve_config
from bitcoind_rpc.config.schema import ClientConfig
from bitcoind_rpc.responses import RpcOutcome, build_envelope, decode_failure, decode_response
from bitcoind_rpc.transport import HttpTransport
from bitcoind_rpc.utils.exceptions import BitcoindRpcError, CommunicationError, sanitize_error_message

OnFulfilled = Callable[[Any], Any]
OnRejected = Callable[[BitcoindRpcError], Any]


class BitcoinClient:
    """
    Client for the daemon's JSON-RPC API.

    Any attribute that is not defined here is treated as an RPC method, so
    ``client.getblockhash(0)`` is ``client.request("getblockhash", [0])``.
    """

    def __init__(
        self,
        config: ClientConfig | Mapping[str, Any] | None = None,
        **overrides: Any,
    ):
        self._config = resolve_config(config, **overrides)
        self._client: HttpTransport | Any = HttpTransport.from_config(self._config)
        self._owns_client = True
        self._next_id = 0
        self._id_lock = threading.Lock()
        self._pending: set[asyncio.Task[RpcOutcome]] = set()

    # ------------------------------------------------------------------
    # configuration / transport
    # ------------------------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        """Resolved connection configuration the client was built with."""
        return self._config

    def get_config(self, option: str | None = None) -> Any:
        """
        Active transport configuration.

        Returns None instead of raising when no transport is attached or the
        attached one cannot report its configuration.
        """
        if self._client is None or not isinstance(self._client, HttpTransport):
            return None
        return self._client.get_config(option)

    def get_client(self) -> HttpTransport | Any:
        return self._client

    def set_client(self, client: HttpTransport | Any) -> BitcoinClient:
        """Replace the transport. The caller owns the new one."""
        self._client = client
        self._owns_client = False
        return self

    @property
    def rpc_id(self) -> int:
        """Id the next request will carry."""
        with self._id_lock:
            return self._next_id

    def _allocate_id(self) -> int:
        with self._id_lock:
            rpc_id = self._next_id
            self._next_id += 1
            return rpc_id

    def _envelope(self, method: str, params: Any) -> dict[str, Any]:
        envelope = build_envelope(method, params, self._allocate_id())
        logger.info(f"bitcoind rpc -> {envelope['method']} id={envelope['id']}")
        return envelope

    # ------------------------------------------------------------------
    # requests
    # ------------------------------------------------------------------

    def request(self, method: str, params: Any = None) -> Any:
        """
        Call ``method`` and return its result.

        Raises:
            RpcError: the daemon answered with a JSON-RPC error.
            CommunicationError: no usable answer (code 500 when nothing came
                back, the HTTP status code for a bare HTTP error).
        """
        envelope = self._envelope(method, params)
        try:
            response = self._client.post(envelope)
        except httpx.HTTPError as exc:
            return self._handle_failure(exc, envelope["method"])
        return decode_response(response, envelope["method"]).unwrap()

    async def arequest(self, method: str, params: Any = None) -> Any:
        """Awaitable ``request``; same result and errors."""
        envelope = self._envelope(method, params)
        try:
            response = await self._client.apost(envelope)
        except httpx.HTTPError as exc:
            return self._handle_failure(exc, envelope["method"])
        return decode_response(response, envelope["method"]).unwrap()

    def _handle_failure(self, exc: httpx.HTTPError, method: str) -> Any:
        logger.info(f"bitcoind rpc transport failure for {method}: {sanitize_error_message(str(exc))}")
        outcome = decode_failure(exc, method)
        if outcome.error is not None:
            raise outcome.error from exc
        return outcome.result

    def request_async(
        self,
        method: str,
        params: Any = None,
        on_fulfilled: OnFulfilled | None = None,
        on_rejected: OnRejected | None = None,
    ) -> asyncio.Task[RpcOutcome]:
        """
        Start ``method`` without waiting for it.

        Must be called with a running event loop. The id is taken now, so ids
        follow call order even when replies arrive out of order. The returned
        task resolves to the RpcOutcome; errors reach ``on_rejected`` only.
        """
        loop = asyncio.get_running_loop()
        envelope = self._envelope(method, params)
        task = loop.create_task(self._exchange(envelope, on_fulfilled, on_rejected))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _exchange(
        self,
        envelope: dict[str, Any],
        on_fulfilled: OnFulfilled | None,
        on_rejected: OnRejected | None,
    ) -> RpcOutcome:
        method = envelope["method"]
        try:
            response = await self._client.apost(envelope)
        except httpx.HTTPError as exc:
            logger.info(f"bitcoind rpc transport failure for {method}: {sanitize_error_message(str(exc))}")
            outcome = decode_failure(exc, method)
        except Exception as exc:
            logger.warning(f"bitcoind rpc async failure for {method}: {sanitize_error_message(repr(exc))}")
            error = CommunicationError()
            error.__cause__ = exc
            outcome = RpcOutcome.failed(error)
        else:
            outcome = decode_response(response, method)

        if outcome.error is not None:
            if on_rejected is not None:
                on_rejected(outcome.error)
        elif on_fulfilled is not None:
            on_fulfilled(outcome.result)
        return outcome

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)

        def call(*params: Any) -> Any:
            return self.request(name, list(params))

        call.__name__ = name
        return call

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_client and isinstance(self._client, HttpTransport):
            self._client.close()

    async def aclose(self) -> None:
        if self._owns_client and isinstance(self._client, HttpTransport):
            await self._client.aclose()

    def __enter__(self) -> BitcoinClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    async def __aenter__(self) -> BitcoinClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"BitcoinClient({self._config.base_uri!r})"
