# uniswap_explorer/graphql/client.py
"""GraphQLクライアント共通モジュール"""

import logging
import json
import aiohttp
import asyncio
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple

logger = logging.getLogger("uniswap_explorer.graphql_client")


@dataclass(frozen=True)
class GraphQLResponse:
    """
    GraphQLリクエスト1回分の結果

    通信エラー・HTTPエラー・GraphQLエラーはいずれも errors に格納され、例外にはならない。
    """
    data: Optional[Dict[str, Any]] = None
    errors: Tuple[str, ...] = ()
    status: Optional[int] = None
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return not self.errors and isinstance(self.data, dict)

    @classmethod
    def failure(cls, message: str, status: Optional[int] = None, attempts: int = 1) -> "GraphQLResponse":
        return cls(errors=(message,), status=status, attempts=attempts)

    @classmethod
    def from_body(cls, body: Any, status: int = 200, attempts: int = 1) -> "GraphQLResponse":
        """デコード済みのレスポンスボディから生成"""
        if not isinstance(body, dict):
            return cls.failure(f"不正なレスポンス形式です: {type(body).__name__}", status, attempts)

        errors = tuple(
            str(error.get("message", error)) if isinstance(error, dict) else str(error)
            for error in body.get("errors") or ()
        )
        data = body.get("data")
        return cls(data=data if isinstance(data, dict) else None, errors=errors,
                   status=status, attempts=attempts)


class GraphQLClient:
    """GraphQLクライアントクラス"""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None,
                 timeout: float = 30.0,
                 max_retries: int = 3,
                 retry_delay: float = 2.0,
                 debug: bool = False):
        """
        GraphQLクライアントの初期化

        Args:
            session: 既存のaiohttp.ClientSessionがあれば指定
            timeout: 1回のリクエストのタイムアウト時間（秒）
            max_retries: タイムアウト・通信エラー時の最大リトライ回数
            retry_delay: リトライ間の待機時間の基準値（秒）
            debug: デバッグログ出力フラグ
        """
        self.session = session
        self._owned_session = False
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.debug = debug

        # execute() の呼び出し回数と、リトライを含む送信回数
        self.request_count = 0
        self.attempt_count = 0

    async def ensure_session(self):
        """セッションがなければ作成"""
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owned_session = True

    async def close(self):
        """セッションのクローズ（自分で作成したセッションのみ）"""
        if self._owned_session and self.session:
            await self.session.close()
            self.session = None
            self._owned_session = False

    async def execute(self, url: str, query: str, variables: Optional[Dict[str, Any]] = None) -> GraphQLResponse:
        """
        GraphQLクエリを実行

        タイムアウト・通信エラー・不正なボディはリトライする。
        HTTPステータスエラーとGraphQLエラーはリトライせずにそのまま返す。
        """
        await self.ensure_session()
        self.request_count += 1

        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        if self.debug:
            self._log_request(url, query, variables)

        last_error = None
        total_attempts = self.max_retries + 1

        for attempt in range(1, total_attempts + 1):
            self.attempt_count += 1
            try:
                return await self._post(url, payload, attempt)
            except asyncio.TimeoutError:
                last_error = "Request timed out"
                logger.warning(f"GraphQL request timed out (attempt {attempt}/{total_attempts})")
            except (aiohttp.ClientError, ValueError) as e:
                last_error = str(e)
                logger.warning(f"GraphQL request failed (attempt {attempt}/{total_attempts}): {e}")

            if attempt < total_attempts:
                await asyncio.sleep(self.retry_delay * attempt)

        logger.error(f"All GraphQL request attempts failed: {last_error}")
        return GraphQLResponse.failure(f"All requests failed: {last_error}", attempts=total_attempts)

    async def _post(self, url: str, payload: Dict[str, Any], attempt: int) -> GraphQLResponse:
        """1回分の送信。再試行すべき失敗は例外として呼び出し元に返す"""
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with self.session.post(url, json=payload, timeout=timeout) as response:
            if response.status != 200:
                error_text = await response.text()
                logger.error(f"GraphQL request failed: {response.status} - {error_text[:200]}")
                return GraphQLResponse.failure(f"HTTP error: {response.status}", response.status, attempt)

            body = await response.json()

        result = GraphQLResponse.from_body(body, status=200, attempts=attempt)
        if result.errors:
            logger.error(f"GraphQL errors: {json.dumps(result.errors, ensure_ascii=False)}")
        if self.debug:
            self._log_response_summary(result)
        return result

    def _log_request(self, url: str, query: str, variables: Optional[Dict[str, Any]]):
        compact = " ".join(query.split())
        logger.debug(f"GraphQL URL: {url}")
        logger.debug(f"GraphQL Query: {compact[:500]}" + ("..." if len(compact) > 500 else ""))
        if variables:
            logger.debug(f"GraphQL Variables: {json.dumps(variables)}")

    def _log_response_summary(self, result: GraphQLResponse):
        """レスポンスの各フィールドを件数・キー名だけに要約してログ出力"""
        if not result.data:
            logger.debug("GraphQL Response: No data returned")
            return

        summary = {}
        for key, value in result.data.items():
            if isinstance(value, list):
                summary[key] = f"Array[{len(value)}]"
            elif isinstance(value, dict):
                summary[key] = "Object{" + ", ".join(list(value)[:3]) + ("...}" if len(value) > 3 else "}")
            else:
                summary[key] = str(value)

        logger.debug(f"GraphQL Response Data: {json.dumps(summary)} (attempt {result.attempts})")
