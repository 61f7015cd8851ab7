# uniswap_explorer/registry.py
"""発行するGraphQLクエリの一覧（クエリセットレジストリ）"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping

from uniswap_explorer.config import AppConfig
from uniswap_explorer.graphql import (
    ETH_PRICE_QUERY,
    DAI_QUERY,
    ALL_TOKENS_QUERY,
    ALL_PAIRS_QUERY,
    UNISWAP_DAY_DATA_QUERY,
    LIQUIDITY_POSITIONS_QUERY,
    UNISWAP_FACTORY_QUERY,
    TOKEN_BY_NAME_QUERY,
    TOKEN_BY_SYMBOL_QUERY,
    PAIR_BY_TOKENS_QUERY,
    PAIR_QUERY,
    PAIR_SWAPS_QUERY,
    PAIR_DAY_DATA_QUERY
)

SWAP_LIMIT = 10
PAIR_DAY_DATA_LIMIT = 100


@dataclass(frozen=True)
class QueryDescriptor:
    """名前付きクエリの宣言（ドキュメントとパラメータ）"""
    name: str
    document: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # 生成後に呼び出し元のdictを変更されても影響しないようにコピーする
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @property
    def key(self) -> str:
        """名前とパラメータから決まる識別キー"""
        params = json.dumps(dict(self.parameters), sort_keys=True, default=str)
        return f"{self.name}:{params}"

    def __hash__(self) -> int:
        return hash(self.key)

    def variables(self) -> Dict[str, Any]:
        return dict(self.parameters)


class QueryRegistry:
    """固定されたクエリ集合（登録順を保持）"""

    def __init__(self, descriptors: List[QueryDescriptor]):
        self._descriptors: Dict[str, QueryDescriptor] = {}

        for descriptor in descriptors:
            if descriptor.name in self._descriptors:
                raise ValueError(f"クエリ名が重複しています: {descriptor.name}")
            self._descriptors[descriptor.name] = descriptor

    def list_queries(self) -> List[QueryDescriptor]:
        return list(self._descriptors.values())

    def get(self, name: str) -> QueryDescriptor:
        try:
            return self._descriptors[name]
        except KeyError:
            raise KeyError(f"未登録のクエリです: {name}") from None

    def names(self) -> List[str]:
        return list(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[QueryDescriptor]:
        return iter(self.list_queries())

    def __len__(self) -> int:
        return len(self._descriptors)


def build_default_registry(config: AppConfig) -> QueryRegistry:
    """Uniswap Explorerが表示に使う全クエリを設定値のパラメータ付きで生成する"""
    return QueryRegistry([
        QueryDescriptor("eth_price", ETH_PRICE_QUERY),
        QueryDescriptor("dai_token", DAI_QUERY, {"tokenAddress": config.dai_token_address}),

        # 全体クエリ
        QueryDescriptor("all_tokens", ALL_TOKENS_QUERY),
        QueryDescriptor("all_pairs", ALL_PAIRS_QUERY),
        QueryDescriptor("uniswap_day_data", UNISWAP_DAY_DATA_QUERY),
        QueryDescriptor("liquidity_positions", LIQUIDITY_POSITIONS_QUERY,
                        {"positionId": config.liquidity_position_id}),
        QueryDescriptor("uniswap_factory", UNISWAP_FACTORY_QUERY),

        # トークンクエリ
        QueryDescriptor("btc_token", TOKEN_BY_NAME_QUERY, {"name": "Bitcoin"}),
        QueryDescriptor("wbtc_token", TOKEN_BY_NAME_QUERY, {"name": "Wrapped Bitcoin"}),
        QueryDescriptor("usdt_token", TOKEN_BY_SYMBOL_QUERY, {"symbol": "USDT"}),
        QueryDescriptor("usdc_token", TOKEN_BY_SYMBOL_QUERY, {"symbol": "USDC"}),

        # ペアクエリ
        QueryDescriptor("usdc_dai_pool", PAIR_BY_TOKENS_QUERY, {
            "token0": config.dai_token_address,
            "token1": config.usdc_token_address,
        }),
        QueryDescriptor("dai_weth_pair", PAIR_QUERY, {"pairAddress": config.dai_weth_pair_address}),

        # スワップ・日次データ
        QueryDescriptor("dai_usdt_swaps", PAIR_SWAPS_QUERY, {
            "pairAddress": config.dai_usdt_pair_address,
            "limit": SWAP_LIMIT,
        }),
        QueryDescriptor("pair_day_data", PAIR_DAY_DATA_QUERY, {
            "pairAddress": config.dai_weth_pair_address,
            "limit": PAIR_DAY_DATA_LIMIT,
        }),
    ])
