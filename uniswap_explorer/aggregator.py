# uniswap_explorer/aggregator.py
import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from uniswap_explorer.graphql import GraphQLClient, GraphQLResponse
from uniswap_explorer.metrics import MetricDefinition, index_metrics, missing_dependencies
from uniswap_explorer.registry import QueryDescriptor, QueryRegistry
from uniswap_explorer.results import QueryResult, QueryStatus, ViewModel

logger = logging.getLogger("uniswap_explorer.aggregator")

Listener = Callable[[ViewModel], None]


class Subscription:
    """submitで発行したクエリの購読ハンドル"""

    def __init__(self, descriptor: QueryDescriptor):
        self.descriptor = descriptor
        self.key = descriptor.key
        self.task: Optional[asyncio.Task] = None
        self.released = False

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def done(self) -> bool:
        return self.task is not None and self.task.done()

    def release(self):
        """完了時の結果反映を無効化し、実行中のリクエストを取り消す"""
        if self.released:
            return
        self.released = True
        if self.task is not None and not self.task.done():
            self.task.cancel()


class ResultAggregator:
    """
    クエリごとの状態を保持し、派生値をまとめたビューモデルを提供する

    状態の更新はイベントループ上のコールバックからのみ行われるため、
    読み取り系のメソッドはいつ呼んでもよい。
    """

    def __init__(self, client: GraphQLClient, endpoint: str,
                 registry: QueryRegistry, metrics: Iterable[MetricDefinition]):
        self.client = client
        self.endpoint = endpoint
        self.registry = registry
        self.metrics: Mapping[str, MetricDefinition] = index_metrics(metrics)

        unknown = missing_dependencies(self.metrics.values(), registry.names())
        if unknown:
            raise ValueError(f"未登録のクエリに依存している派生値があります: {', '.join(unknown)}")

        self._results: Dict[str, QueryResult] = {name: QueryResult.pending() for name in registry.names()}
        self._subscriptions: Dict[str, Subscription] = {}
        self._listeners: List[Listener] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def add_listener(self, listener: Listener):
        """再計算のたびに最新のビューモデルを受け取るコールバックを登録"""
        self._listeners.append(listener)

    def submit(self, descriptor: QueryDescriptor) -> Subscription:
        """
        クエリを発行する（実行中のイベントループ内から呼ぶこと）

        同じ名前・同じパラメータのクエリが発行済みであれば既存のハンドルを返し、
        リクエストは送信しない。パラメータが変わった場合のみ再発行する。
        """
        if self._closed:
            raise RuntimeError("破棄済みのアグリゲータにはクエリを発行できません")
        if descriptor.name not in self.registry:
            raise KeyError(f"未登録のクエリです: {descriptor.name}")

        current = self._subscriptions.get(descriptor.name)
        if current is not None:
            if current.key == descriptor.key:
                logger.debug(f"発行済みのクエリのため再発行しません: {descriptor.name}")
                return current

            logger.info(f"パラメータが変更されたためクエリを再発行します: {descriptor.name}")
            current.release()
            self._results[descriptor.name] = QueryResult.pending()
            self._recompute()

        subscription = Subscription(descriptor)
        self._subscriptions[descriptor.name] = subscription
        subscription.task = asyncio.get_running_loop().create_task(self._run(subscription))
        logger.debug(f"クエリを発行しました: {descriptor.name}")
        return subscription

    def submit_all(self) -> List[Subscription]:
        """レジストリの全クエリを発行する"""
        subscriptions = [self.submit(descriptor) for descriptor in self.registry.list_queries()]
        logger.info(f"{len(subscriptions)}件のクエリを発行しました")
        return subscriptions

    async def _run(self, subscription: Subscription):
        descriptor = subscription.descriptor

        try:
            response = await self.client.execute(self.endpoint, descriptor.document, descriptor.variables())
        except Exception as e:
            logger.error(f"クエリの実行中にエラーが発生しました({descriptor.name}): {e}", exc_info=True)
            self._complete(subscription, QueryResult.failed(str(e)))
            return

        self._complete(subscription, self._interpret(response))

    @staticmethod
    def _interpret(response: Any) -> QueryResult:
        """GraphQLレスポンスをクエリ結果に変換する（部分的なdataがあってもエラーがあれば失敗扱い）"""
        if not isinstance(response, GraphQLResponse):
            return QueryResult.failed(f"不正なレスポンスです: {type(response).__name__}")

        if response.errors:
            return QueryResult.failed("; ".join(response.errors))

        if response.data is None:
            return QueryResult.failed("レスポンスにデータが含まれていません")

        return QueryResult.ready(dict(response.data))

    def _complete(self, subscription: Subscription, result: QueryResult):
        name = subscription.name

        # 破棄済み・置き換え済みの購読からの完了通知は反映しない
        if subscription.released or self._closed:
            logger.debug(f"解放済みの購読のため結果を破棄します: {name}")
            return

        if self._results[name].is_terminal:
            logger.warning(f"完了済みのクエリに対する重複した完了通知を無視します: {name}")
            return

        self._results[name] = result
        if result.status is QueryStatus.READY:
            logger.info(f"クエリが完了しました: {name}")
        else:
            logger.error(f"クエリが失敗しました({name}): {result.error}")

        self._recompute()

    def _recompute(self):
        view_model = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(view_model)
            except Exception as e:
                logger.error(f"リスナーの呼び出し中にエラーが発生しました: {e}", exc_info=True)

    def current_result(self, name: str) -> QueryResult:
        try:
            return self._results[name]
        except KeyError:
            raise KeyError(f"未登録のクエリです: {name}") from None

    def derive_metric(self, name: str) -> Any:
        """
        派生値を計算する

        依存クエリがすべてREADYでない場合、必要なフィールドが欠けている場合は None。
        """
        try:
            metric = self.metrics[name]
        except KeyError:
            raise KeyError(f"未定義の派生値です: {name}") from None

        payloads = []
        for dependency in metric.dependencies:
            result = self._results[dependency]
            if result.status is not QueryStatus.READY:
                return None
            payloads.append(result.payload)

        try:
            return metric.compute(*payloads)
        except (AttributeError, LookupError, TypeError, ValueError, ArithmeticError) as e:
            logger.error(f"派生値の計算中にエラーが発生しました({name}): {e}", exc_info=True)
            return None

    def snapshot(self) -> ViewModel:
        return ViewModel(
            metrics={name: self.derive_metric(name) for name in self.metrics},
            readiness={name: result.status for name, result in self._results.items()},
        )

    @property
    def pending_count(self) -> int:
        return sum(1 for result in self._results.values() if not result.is_terminal)

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """発行済みのクエリがすべて完了するまで待機する。タイムアウトした場合は False"""
        tasks = [s.task for s in self._subscriptions.values() if s.task is not None and not s.task.done()]
        if not tasks:
            return True

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)}件のクエリが{timeout}秒以内に完了しませんでした")
            return False
        return True

    def close(self):
        """未完了の購読をすべて解放し、以降の完了通知を無視する"""
        if self._closed:
            return

        self._closed = True
        released = 0
        for subscription in self._subscriptions.values():
            if not subscription.done:
                released += 1
            subscription.release()

        self._listeners.clear()
        logger.info(f"アグリゲータを破棄しました（未完了の購読: {released}件）")
