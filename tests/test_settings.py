import importlib
import os
from types import ModuleType

import pytest


def _reload_settings_with_env(
    monkeypatch: pytest.MonkeyPatch, env: dict[str, str | None]
) -> ModuleType:
    # Clear related envs first to avoid leakage across tests
    prefixes = ("RPC_", "CONTRACT_", "FEED_", "MARKET_", "LOG_")
    for key in list(os.environ.keys()):
        if key.startswith(prefixes):
            monkeypatch.delenv(key, raising=False)

    # Apply desired env values
    for k, v in env.items():
        if v is None:
            monkeypatch.delenv(k, raising=False)
        else:
            monkeypatch.setenv(k, str(v))

    # Import and reload the settings module to reconstruct settings instances with new env
    import avantis_trader_sdk.config.settings as settings

    settings = importlib.reload(settings)
    return settings


def test_rpc_settings_defaults(monkeypatch: pytest.MonkeyPatch):
    settings = _reload_settings_with_env(monkeypatch, {})

    assert settings.rpc_settings.provider_url == "https://mainnet.base.org"
    assert settings.rpc_settings.call_timeout == 10.0


def test_rpc_settings_env_override(monkeypatch: pytest.MonkeyPatch):
    settings = _reload_settings_with_env(
        monkeypatch,
        {"RPC_PROVIDER_URL": "https://rpc.example.invalid", "RPC_CALL_TIMEOUT": "2.5"},
    )

    assert settings.rpc_settings.provider_url == "https://rpc.example.invalid"
    assert settings.rpc_settings.call_timeout == 2.5


def test_feed_settings_defaults_and_override(monkeypatch: pytest.MonkeyPatch):
    settings = _reload_settings_with_env(monkeypatch, {})
    assert settings.feed_settings.ws_url == "wss://hermes.pyth.network/ws"
    assert settings.feed_settings.reconnect_base_delay == 1.0
    assert settings.feed_settings.reconnect_max_attempts == 5

    settings = _reload_settings_with_env(
        monkeypatch,
        {"FEED_RECONNECT_MAX_ATTEMPTS": "9", "FEED_RECONNECT_BASE_DELAY": "0.5"},
    )
    assert settings.feed_settings.reconnect_max_attempts == 9
    assert settings.feed_settings.reconnect_base_delay == 0.5


def test_market_blend_weight_is_validated(monkeypatch: pytest.MonkeyPatch):
    settings = _reload_settings_with_env(monkeypatch, {"MARKET_BLEND_ASSET_WEIGHT": "0.7"})
    assert settings.market_settings.blend_asset_weight == 0.7

    monkeypatch.setenv("MARKET_BLEND_ASSET_WEIGHT", "1.5")
    with pytest.raises(ValueError):
        settings.MarketSettings()


def test_contract_address_lookup_accepts_both_name_styles(monkeypatch: pytest.MonkeyPatch):
    address = "0x" + "a" * 40
    settings = _reload_settings_with_env(monkeypatch, {"CONTRACT_PAIR_STORAGE": address})

    assert settings.contract_settings.address_of("PairStorage") == address
    assert settings.contract_settings.address_of("pair_storage") == address
    assert settings.contract_settings.address_of("USDC") == settings.ZERO_ADDRESS
    with pytest.raises(KeyError):
        settings.contract_settings.address_of("Unknown")


def test_logging_settings_defaults(monkeypatch: pytest.MonkeyPatch):
    settings = _reload_settings_with_env(monkeypatch, {})

    assert settings.logging_settings.level == "INFO"
    assert settings.logging_settings.to_file is False
