# uniswap_explorer/presentation.py
"""ビューモデルをコンソール表示用の文字列に整形する"""

import json
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Sequence

from tabulate import tabulate

from uniswap_explorer.results import ViewModel

LOADING_TOKEN_TEXT = "Loading token data..."
LOADING_SWAP_TEXT = "Loading swap data..."
UNAVAILABLE_TEXT = "Unavailable"

TOKEN_SUMMARIES = (
    "btc_summary",
    "wbtc_summary",
    "usdt_summary",
    "usdc_summary",
)


def display_value(view_model: ViewModel, metric: str, queries: Sequence[str],
                  loading_text: str = LOADING_TOKEN_TEXT, prefix: str = "") -> str:
    """読み込み中ならプレースホルダ、失敗・欠損なら Unavailable、それ以外は値を返す"""
    if view_model.is_loading(*queries):
        return loading_text

    value = view_model.value(metric)
    if value is None:
        return UNAVAILABLE_TEXT
    return f"{prefix}{value}"


def _headline_rows(view_model: ViewModel) -> List[List[str]]:
    return [
        ["DAI Price", display_value(view_model, "dai_price_usd_text", ("eth_price", "dai_token"), prefix="$")],
        ["DAI/WETH Pool TVL", display_value(view_model, "dai_weth_tvl_text", ("dai_weth_pair",), prefix="$")],
        ["DAI Total Liquidity", display_value(view_model, "dai_total_liquidity_text", ("dai_token",))],
        ["ETH Price", display_value(view_model, "eth_price_usd_text", ("eth_price",), prefix="$")],
        ["Latest DAI/USDT Swap", display_value(view_model, "latest_swap_time", ("dai_usdt_swaps",),
                                               loading_text=LOADING_SWAP_TEXT)],
        ["Uniswap Pairs", display_value(view_model, "uniswap_pair_count", ("uniswap_factory",))],
        ["Uniswap Total Volume", display_value(view_model, "uniswap_total_volume_usd_text",
                                               ("uniswap_factory",), prefix="$")],
    ]


def _swap_table(view_model: ViewModel) -> str:
    if view_model.is_loading("dai_usdt_swaps"):
        return LOADING_SWAP_TEXT

    rows = view_model.value("dai_usdt_swaps")
    if rows is None:
        return UNAVAILABLE_TEXT
    if not rows:
        return "No swaps found"

    table_data = [{
        "Time": row.time or "-",
        "Swap Pair": row.pair or "-",
        "In": row.amount_in or "-",
        "From": row.sender or "-",
        "Out": row.amount_out or "-",
        "To": row.recipient or "-",
    } for row in rows]
    return tabulate(table_data, headers="keys", tablefmt="grid")


def _token_table(view_model: ViewModel) -> Optional[str]:
    table_data = []
    for metric in TOKEN_SUMMARIES:
        summary = view_model.value(metric)
        if summary is None:
            continue
        table_data.append({
            "Symbol": summary.symbol or "-",
            "Name": summary.name or "-",
            "Total Supply": summary.total_supply or "-",
            "Trade Volume": summary.trade_volume or "-",
            "Tx Count": summary.tx_count if summary.tx_count is not None else "-",
        })

    if not table_data:
        return None
    return tabulate(table_data, headers="keys", tablefmt="grid")


def _readiness_table(view_model: ViewModel) -> str:
    table_data = [{"Query": name, "Status": status.value} for name, status in view_model.readiness.items()]
    return tabulate(table_data, headers="keys", tablefmt="grid")


def render_dashboard(view_model: ViewModel, show_readiness: bool = True) -> str:
    """ダッシュボード全体をテキストで描画"""
    sections = [
        "Uniswap Explorer",
        tabulate(_headline_rows(view_model), tablefmt="grid"),
        "DAI/USDT Swaps",
        _swap_table(view_model),
    ]

    token_table = _token_table(view_model)
    if token_table:
        sections.extend(["Tokens", token_table])

    if show_readiness:
        sections.extend([
            f"Queries ({view_model.ready_count}/{len(view_model.readiness)} ready)",
            _readiness_table(view_model),
        ])

    return "\n\n".join(sections)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return _to_jsonable(asdict(value))
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    return value


def render_json(view_model: ViewModel) -> str:
    """ビューモデルをJSONで出力（Decimalは文字列）"""
    return json.dumps({
        "metrics": _to_jsonable(view_model.metrics),
        "readiness": _to_jsonable(view_model.readiness),
    }, indent=2, ensure_ascii=False)
