# uniswap_explorer/config.py
import logging
import os
from typing import Optional
from dotenv import load_dotenv

# 環境変数の読み込み
load_dotenv()

logger = logging.getLogger("uniswap_explorer.config")

# The Graph Gateway URL
GRAPH_BASE_URL = "https://gateway.thegraph.com/api"

# ホステッドサービス（APIキー不要）のUniswap V2サブグラフ
HOSTED_UNISWAP_V2_URL = "https://api.thegraph.com/subgraphs/name/uniswap/uniswap-v2"

# Uniswap V2のサブグラフID（Gateway用）
DEFAULT_UNISWAP_V2_SUBGRAPH_ID = "A3Np3RQbaBA6oKJgiwDJeo5T3zrYfGHPWFYayMwtNDum"

# メインネットのコントラクトアドレス
DAI_TOKEN_ADDRESS = "0x6b175474e89094c44da98b954eedeac495271d0f"
USDC_TOKEN_ADDRESS = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
DAI_WETH_PAIR_ADDRESS = "0xa478c2975ab1ea89e8196811f51a7b7ade33eb11"
DAI_USDT_PAIR_ADDRESS = "0xb20bd5d04be54f870d5c0d3ca85d82b34b836405"
LIQUIDITY_POSITION_ID = (
    "0x00004ee988665cdda9a1080d5792cecd16dc1220-0x2e0647b90c3823a8c881de287ae2bd400489eea0"
)


def build_graph_url(api_key: str, subgraph_id: str) -> str:
    """APIキーとサブグラフIDからGraphQLエンドポイントURLを生成"""
    if not api_key:
        return HOSTED_UNISWAP_V2_URL
    return f"{GRAPH_BASE_URL}/{api_key}/subgraphs/id/{subgraph_id}"


class AppConfig:
    def __init__(self):
        # The Graph API Key
        self.graph_api_key = os.getenv("GRAPH_API_KEY", "")
        self.subgraph_id = os.getenv("UNISWAP_V2_SUBGRAPH_ID", DEFAULT_UNISWAP_V2_SUBGRAPH_ID)

        # 明示的なエンドポイント指定があればそちらを優先
        self.graph_endpoint = self._load_endpoint(os.getenv("GRAPH_ENDPOINT"))

        # GraphQLクライアント設定
        self.request_timeout = float(os.getenv("REQUEST_TIMEOUT", "30"))  # 秒
        self.max_retries = int(os.getenv("MAX_RETRIES", "3"))
        self.retry_delay = float(os.getenv("RETRY_DELAY", "2.0"))  # 秒
        self.query_wait_timeout = float(os.getenv("QUERY_WAIT_TIMEOUT", "60"))  # 秒

        # 表示設定
        self.display_timezone = os.getenv("DISPLAY_TIMEZONE", "EST")

        # クエリパラメータ
        self.dai_token_address = os.getenv("DAI_TOKEN_ADDRESS", DAI_TOKEN_ADDRESS).lower()
        self.usdc_token_address = os.getenv("USDC_TOKEN_ADDRESS", USDC_TOKEN_ADDRESS).lower()
        self.dai_weth_pair_address = os.getenv("DAI_WETH_PAIR_ADDRESS", DAI_WETH_PAIR_ADDRESS).lower()
        self.dai_usdt_pair_address = os.getenv("DAI_USDT_PAIR_ADDRESS", DAI_USDT_PAIR_ADDRESS).lower()
        self.liquidity_position_id = os.getenv("LIQUIDITY_POSITION_ID", LIQUIDITY_POSITION_ID).lower()

        # ロギング設定
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.debug = os.getenv("DEBUG", "false").lower() == "true"

    def _load_endpoint(self, override: Optional[str]) -> str:
        if override:
            return override

        if not self.graph_api_key:
            # APIキーがない場合は警告を出力
            logger.warning("GRAPH_API_KEY環境変数が設定されていません。ホステッドサービスのエンドポイントを使用します。")

        return build_graph_url(self.graph_api_key, self.subgraph_id)
