# uniswap_explorer/results.py
"""クエリ結果とビューモデルの定義"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class QueryStatus(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class QueryResult:
    """
    クエリ1件分の状態

    PENDING から READY または FAILED へ一度だけ遷移する。
    payload は READY のとき、error は FAILED のときのみ設定される。
    """
    status: QueryStatus
    payload: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def pending(cls) -> "QueryResult":
        return cls(QueryStatus.PENDING)

    @classmethod
    def ready(cls, payload: Dict[str, Any]) -> "QueryResult":
        return cls(QueryStatus.READY, payload=payload)

    @classmethod
    def failed(cls, error: str) -> "QueryResult":
        return cls(QueryStatus.FAILED, error=error)

    @property
    def is_terminal(self) -> bool:
        return self.status is not QueryStatus.PENDING


@dataclass(frozen=True)
class ViewModel:
    """表示層に渡す読み取り専用のスナップショット"""
    metrics: Dict[str, Any] = field(default_factory=dict)
    readiness: Dict[str, QueryStatus] = field(default_factory=dict)

    def value(self, metric_name: str) -> Any:
        return self.metrics.get(metric_name)

    def status(self, query_name: str) -> QueryStatus:
        return self.readiness.get(query_name, QueryStatus.PENDING)

    def is_ready(self, *query_names: str) -> bool:
        return all(self.status(name) is QueryStatus.READY for name in query_names)

    def is_loading(self, *query_names: str) -> bool:
        return any(self.status(name) is QueryStatus.PENDING for name in query_names)

    def has_failed(self, *query_names: str) -> bool:
        return any(self.status(name) is QueryStatus.FAILED for name in query_names)

    @property
    def ready_count(self) -> int:
        return sum(1 for status in self.readiness.values() if status is QueryStatus.READY)
