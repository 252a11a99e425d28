"""HTTP transport for the daemon's JSON-RPC endpoint."""

from __future__ import annotations

import asyncio
import ssl
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from bitcoind_rpc.config.schema import ClientConfig

_HEADERS = {"Accept": "application/json"}


def resolve_verify(ca: str | None) -> bool | str:
    """CA bundle path when it names an existing file, standard verification otherwise."""
    if ca and Path(ca).expanduser().is_file():
        return str(Path(ca).expanduser())
    return True


class HttpTransport:
    """
    Sync and async httpx clients sharing one set of options.

    Like the reference HTTP stack, 4xx/5xx responses raise
    ``httpx.HTTPStatusError`` (the response stays attached) and failures with
    no response raise ``httpx.RequestError``.
    """

    def __init__(
        self,
        base_uri: str,
        *,
        auth: tuple[str, str] = ("", ""),
        verify: bool | str = True,
        timeout: float | None = 30.0,
        handler: Any = None,
        headers: dict[str, str] | None = None,
    ):
        self._options: dict[str, Any] = {
            "base_uri": base_uri,
            "auth": auth,
            "verify": verify,
            "timeout": timeout,
            "handler": handler,
            "headers": {**_HEADERS, **(headers or {})},
        }
        kwargs: dict[str, Any] = {
            "base_url": base_uri,
            "auth": httpx.BasicAuth(*auth),
            "timeout": timeout,
            "headers": self._options["headers"],
        }
        if handler is None:
            kwargs["verify"] = ssl.create_default_context(cafile=verify) if isinstance(verify, str) else verify
        else:
            kwargs["transport"] = handler
        self._client_kwargs = kwargs
        self._client = httpx.Client(**kwargs)
        # AsyncClient pools are bound to the loop that opened them; one per loop.
        self._async_client: httpx.AsyncClient | None = None
        self._async_loop: asyncio.AbstractEventLoop | None = None
        self._closed = False

    @classmethod
    def from_config(cls, config: ClientConfig) -> HttpTransport:
        """Build a transport from a resolved ClientConfig."""
        return cls(
            config.base_uri,
            auth=(config.user or "", config.password or ""),
            verify=resolve_verify(config.ca),
            timeout=config.timeout,
            handler=config.handler,
        )

    def get_config(self, option: str | None = None) -> Any:
        """Active option by name, or all options when ``option`` is None."""
        if option is None:
            return dict(self._options)
        return self._options.get(option)

    @property
    def base_uri(self) -> str:
        return self._options["base_uri"]

    def _get_async_client(self) -> httpx.AsyncClient:
        """AsyncClient for the running loop, replacing one left over from another loop."""
        if self._closed:
            raise RuntimeError("Cannot send a request, as the transport has been closed.")
        loop = asyncio.get_running_loop()
        if self._async_client is None or self._async_loop is not loop:
            if self._async_client is not None:
                logger.debug(f"Event loop changed, new async connection pool for {self.base_uri}")
            self._async_client = httpx.AsyncClient(**self._client_kwargs)
            self._async_loop = loop
        return self._async_client

    def post(self, json_body: dict[str, Any]) -> httpx.Response:
        resp = self._client.post("/", json=json_body)
        logger.info(f"POST {self.base_uri} -> {resp.status_code}")
        resp.raise_for_status()
        return resp

    async def apost(self, json_body: dict[str, Any]) -> httpx.Response:
        resp = await self._get_async_client().post("/", json=json_body)
        logger.info(f"POST {self.base_uri} -> {resp.status_code} (async)")
        resp.raise_for_status()
        return resp

    def close(self) -> None:
        """Close the sync client and, when its loop is idle, the async one."""
        self._closed = True
        self._client.close()
        async_client, loop = self._async_client, self._async_loop
        self._async_client = self._async_loop = None
        if async_client is None or loop is None or loop.is_closed():
            return
        if loop.is_running():
            asyncio.run_coroutine_threadsafe(async_client.aclose(), loop)
        else:
            loop.run_until_complete(async_client.aclose())

    async def aclose(self) -> None:
        self._closed = True
        self._client.close()
        async_client, loop = self._async_client, self._async_loop
        self._async_client = self._async_loop = None
        if async_client is not None and loop is asyncio.get_running_loop():
            await async_client.aclose()

    @property
    def has_async_client(self) -> bool:
        return self._async_client is not None

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"HttpTransport({self.base_uri!r})"
