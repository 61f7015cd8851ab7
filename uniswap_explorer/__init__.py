# uniswap_explorer/__init__.py
"""Uniswap V2サブグラフのデータを取得・集計して表示するエクスプローラ"""

from .aggregator import ResultAggregator, Subscription
from .registry import QueryDescriptor, QueryRegistry, build_default_registry
from .results import QueryResult, QueryStatus, ViewModel
from .metrics import MetricDefinition, build_default_metrics

__all__ = [
    'ResultAggregator',
    'Subscription',
    'QueryDescriptor',
    'QueryRegistry',
    'build_default_registry',
    'QueryResult',
    'QueryStatus',
    'ViewModel',
    'MetricDefinition',
    'build_default_metrics'
]
