from __future__ import annotations

import pytest

from counter_relay.config import FULLNODE_URLS, Settings


def test_defaults(monkeypatch):
    for name in ("SUI_NETWORK", "SUI_RPC_URL", "PORT", "SUI_GAS_BUDGET"):
        monkeypatch.delenv(name, raising=False)
    cfg = Settings(_env_file=None)
    assert cfg.sui_network == "testnet"
    assert cfg.rpc_url == FULLNODE_URLS["testnet"]
    assert cfg.port == 4000
    assert cfg.sui_default_gas_budget == 100_000_000


def test_environment_is_read(monkeypatch):
    monkeypatch.setenv("SUI_NETWORK", " Devnet ")
    monkeypatch.setenv("PACKAGE_ID", "0xPKG")
    monkeypatch.setenv("COUNTER_ID", "")
    monkeypatch.setenv("SUI_GAS_PRICE", "1000")
    cfg = Settings(_env_file=None)
    assert cfg.rpc_url == FULLNODE_URLS["devnet"]
    assert cfg.package_id == "0xPKG"
    assert cfg.counter_id is None
    assert cfg.sui_gas_price == "1000"


def test_explicit_rpc_url_wins():
    cfg = Settings(_env_file=None, sui_network="mainnet", sui_rpc_url="http://127.0.0.1:9123")
    assert cfg.rpc_url == "http://127.0.0.1:9123"


def test_unknown_network_is_reported_on_use():
    cfg = Settings(_env_file=None, sui_network="nowhere", sui_rpc_url=None)
    with pytest.raises(ValueError, match="Unknown SUI_NETWORK"):
        cfg.rpc_url


def test_secrets_are_not_in_repr():
    cfg = Settings(_env_file=None, sui_mnemonic="word " * 12, sui_private_key="c2VjcmV0")
    assert "c2VjcmV0" not in repr(cfg)
    assert "word" not in repr(cfg)


def test_cors_config():
    cors = Settings(_env_file=None).to_cors_config()
    assert cors.allow_origin_regex == r"http://localhost:3\d{2,4}"
    assert cors.allow_credentials is True
    assert "X-Request-Id" in cors.expose_headers
