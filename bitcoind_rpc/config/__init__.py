"""Configuration module for bitcoind_rpc."""

from bitcoind_rpc.config.loader import get_config_path, load_config, resolve_config
from bitcoind_rpc.config.schema import ClientConfig, RpcSettings

__all__ = ["ClientConfig", "RpcSettings", "load_config", "get_config_path", "resolve_config"]
