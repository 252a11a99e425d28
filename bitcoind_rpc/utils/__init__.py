"""Utility functions for bitcoind_rpc."""

from bitcoind_rpc.utils.exceptions import (
    COMMUNICATION_ERROR_CODE,
    COMMUNICATION_ERROR_MESSAGE,
    BitcoindRpcError,
    CommunicationError,
    ErrorCategory,
    RpcError,
    classify_exception,
    coerce_error_code,
    sanitize_error_message,
)

__all__ = [
    "COMMUNICATION_ERROR_CODE",
    "COMMUNICATION_ERROR_MESSAGE",
    "BitcoindRpcError",
    "CommunicationError",
    "ErrorCategory",
    "RpcError",
    "classify_exception",
    "coerce_error_code",
    "sanitize_error_message",
]
