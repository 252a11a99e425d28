"""
bitcoind_rpc - JSON-RPC client for Bitcoin-protocol daemons
"""

from loguru import logger

from bitcoind_rpc.client import BitcoinClient
from bitcoind_rpc.config.schema import ClientConfig
from bitcoind_rpc.responses import RpcOutcome
from bitcoind_rpc.transport import HttpTransport
from bitcoind_rpc.utils.exceptions import BitcoindRpcError, CommunicationError, RpcError

__version__ = "0.1.0"

logger.disable("bitcoind_rpc")

__all__ = [
    "__version__",
    "BitcoinClient",
    "BitcoindRpcError",
    "ClientConfig",
    "CommunicationError",
    "HttpTransport",
    "RpcError",
    "RpcOutcome",
]
