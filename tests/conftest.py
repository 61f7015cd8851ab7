"""Test configuration and shared fixtures."""

import pytest

from uniswap_explorer.config import AppConfig
from uniswap_explorer.metrics import FIXED_TIMEZONES, build_default_metrics
from uniswap_explorer.registry import build_default_registry


@pytest.fixture
def config(monkeypatch):
    """AppConfig built from defaults only."""
    for name in ("GRAPH_API_KEY", "GRAPH_ENDPOINT", "DISPLAY_TIMEZONE", "DAI_TOKEN_ADDRESS"):
        monkeypatch.delenv(name, raising=False)
    return AppConfig()


@pytest.fixture
def registry(config):
    return build_default_registry(config)


@pytest.fixture
def est():
    return FIXED_TIMEZONES["EST"]


@pytest.fixture
def metrics(est):
    return build_default_metrics(est)


@pytest.fixture
def eth_price_payload():
    return {"bundles": [{"ethPrice": "1800.12"}]}


@pytest.fixture
def dai_payload():
    return {"tokens": [{"derivedETH": "0.00055", "totalLiquidity": "82268746.91"}]}


@pytest.fixture
def swaps_payload():
    return {
        "swaps": [
            {
                "timestamp": "1609459200",
                "pair": {"token0": {"symbol": "DAI"}, "token1": {"symbol": "USDT"}},
                "sender": "0x7a250d5630b4cf539739df2c5dacb4c659f2488d",
                "amount0In": "0",
                "amount0Out": "125.4",
                "amount1In": "125.5",
                "amount1Out": "0",
                "amountUSD": "125.45",
                "to": "0x11111112542d85b3ef69ae05771c2dccff4faa26",
            }
        ]
    }
