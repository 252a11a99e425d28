"""Smoke test against a real daemon (regtest recommended)."""

import os

import pytest

from bitcoind_rpc import BitcoinClient, RpcError


@pytest.mark.requires_node
def test_live_getblockcount_and_unknown_method() -> None:
    with BitcoinClient({"url": os.environ.get("BITCOIND_RPC_URL", "http://127.0.0.1:18443")}) as client:
        assert isinstance(client.getblockcount(), int)
        with pytest.raises(RpcError) as exc_info:
            client.request("definitelynotamethod")
        assert exc_info.value.code == -32601
