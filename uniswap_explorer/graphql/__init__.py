# uniswap_explorer/graphql/__init__.py
"""GraphQL関連モジュール"""

from .queries import (
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

from .client import GraphQLClient, GraphQLResponse

__all__ = [
    'GraphQLClient',
    'GraphQLResponse',
    'ETH_PRICE_QUERY',
    'DAI_QUERY',
    'ALL_TOKENS_QUERY',
    'ALL_PAIRS_QUERY',
    'UNISWAP_DAY_DATA_QUERY',
    'LIQUIDITY_POSITIONS_QUERY',
    'UNISWAP_FACTORY_QUERY',
    'TOKEN_BY_NAME_QUERY',
    'TOKEN_BY_SYMBOL_QUERY',
    'PAIR_BY_TOKENS_QUERY',
    'PAIR_QUERY',
    'PAIR_SWAPS_QUERY',
    'PAIR_DAY_DATA_QUERY'
]
