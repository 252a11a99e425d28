"""JSON-RPC envelopes and response decoding.

Decoding never raises: it produces an ``RpcOutcome`` that either holds the
``result`` value or the error the caller should see. The synchronous path
unwraps the outcome (raising), the callback path dispatches it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from bitcoind_rpc.utils.exceptions import (
    COMMUNICATION_ERROR_MESSAGE,
    BitcoindRpcError,
    CommunicationError,
    RpcError,
    coerce_error_code,
)


@dataclass
class RpcOutcome:
    """Decoded result of one JSON-RPC exchange."""
    result: Any = None
    error: BitcoindRpcError | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the result, or raise the error."""
        if self.error is not None:
            raise self.error
        return self.result

    @classmethod
    def failed(cls, error: BitcoindRpcError, status_code: int | None = None) -> RpcOutcome:
        return cls(result=None, error=error, status_code=status_code)


def coerce_params(params: Any) -> list[Any]:
    """None -> [], list/tuple -> list, anything else -> [value]."""
    if params is None:
        return []
    if isinstance(params, (list, tuple)):
        return list(params)
    return [params]


def build_envelope(method: str, params: Any, rpc_id: int) -> dict[str, Any]:
    """Request body sent to the daemon."""
    return {
        "method": str(method).lower(),
        "params": coerce_params(params),
        "id": rpc_id,
    }


def _parse_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        logger.debug(f"Non-JSON response body (status {response.status_code})")
        return {}
    return data if isinstance(data, dict) else {}


def _error_from_payload(error: Any, method: str | None) -> RpcError:
    if isinstance(error, dict):
        message = error.get("message")
        return RpcError(
            str(message) if message is not None else "",
            coerce_error_code(error.get("code")),
            method=method,
        )
    return RpcError(str(error), 0, method=method)


def decode_response(response: httpx.Response, method: str | None = None) -> RpcOutcome:
    """
    Turn an HTTP response from the daemon into an outcome.

    1. A non-null ``error`` member wins, whatever the status code.
    2. Otherwise any status other than 200 is a communication error
       carrying that status as its code.
    3. Otherwise the ``result`` member (``None`` when absent).
    """
    status = response.status_code
    data = _parse_body(response)

    error = data.get("error")
    if error is not None:
        rpc_error = _error_from_payload(error, method)
        logger.debug(f"bitcoind rpc error for {method or '?'}: {rpc_error}")
        return RpcOutcome.failed(rpc_error, status)

    if status != 200:
        logger.debug(f"bitcoind rpc http status {status} for {method or '?'}")
        return RpcOutcome.failed(
            CommunicationError(COMMUNICATION_ERROR_MESSAGE, code=status, status_code=status),
            status,
        )

    return RpcOutcome(result=data.get("result"), status_code=status)


def decode_failure(exc: httpx.HTTPError, method: str | None = None) -> RpcOutcome:
    """
    Outcome for a transport failure.

    A failure that carries a response is decoded like any other response;
    one without a response becomes the generic communication error.
    """
    response = getattr(exc, "response", None) if isinstance(exc, httpx.HTTPStatusError) else None
    if response is not None:
        return decode_response(response, method)
    error = CommunicationError()
    error.__cause__ = exc
    return RpcOutcome.failed(error)
