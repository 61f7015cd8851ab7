# main.py
import argparse
import asyncio
import logging
import os
from dotenv import load_dotenv

from uniswap_explorer.config import AppConfig
from uniswap_explorer.graphql import GraphQLClient
from uniswap_explorer.registry import build_default_registry
from uniswap_explorer.metrics import build_default_metrics, resolve_timezone
from uniswap_explorer.aggregator import ResultAggregator
from uniswap_explorer.presentation import render_dashboard, render_json
from uniswap_explorer.results import ViewModel

# ロギングの設定
def setup_logging(level: str = "INFO"):
    log_dir = "./logs"
    os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(f"{log_dir}/app.log"),
            logging.StreamHandler()
        ]
    )

    return logging.getLogger("uniswap_explorer")

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Uniswap V2 エクスプローラ")
    parser.add_argument("--json", action="store_true", help="ビューモデルをJSONで出力")
    parser.add_argument("--timeout", type=float, help="全クエリの完了を待つ最大時間（秒）")
    parser.add_argument("--log-level", help="ログレベル (DEBUG, INFO, WARNING, ERROR)")
    return parser.parse_args(argv)

async def main(args):
    # 環境変数の読み込み
    load_dotenv()

    # 設定の読み込み
    config = AppConfig()

    # ロギングのセットアップ
    logger = setup_logging(args.log_level or config.log_level)
    logger.info("Uniswap Explorerを起動しています...")
    logger.info(f"設定を読み込みました: エンドポイント={config.graph_endpoint}, タイムゾーン={config.display_timezone}")

    # 各モジュールの初期化
    client = GraphQLClient(
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        retry_delay=config.retry_delay,
        debug=config.debug
    )
    registry = build_default_registry(config)
    metrics = build_default_metrics(resolve_timezone(config.display_timezone))
    aggregator = ResultAggregator(client, config.graph_endpoint, registry, metrics)

    def log_progress(view_model: ViewModel):
        logger.info(f"クエリの進捗: {view_model.ready_count}/{len(view_model.readiness)}件 完了")

    aggregator.add_listener(log_progress)

    try:
        aggregator.submit_all()
        timeout = args.timeout if args.timeout is not None else config.query_wait_timeout
        await aggregator.wait(timeout)

        # 未完了のクエリがあっても、その時点の状態で表示する
        view_model = aggregator.snapshot()
        print(render_json(view_model) if args.json else render_dashboard(view_model))
    except KeyboardInterrupt:
        logger.info("プログラムを終了します...")
    finally:
        # リソースのクリーンアップ
        aggregator.close()
        await client.close()
        logger.info("プログラムを終了しました")

def run():
    asyncio.run(main(parse_args()))

if __name__ == "__main__":
    run()
