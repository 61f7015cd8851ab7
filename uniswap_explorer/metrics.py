# uniswap_explorer/metrics.py
"""
クエリ結果から表示用の派生値を計算するモジュール

各関数は欠損・不正な値に対して例外を送出せず None を返す。
数値は文字列から Decimal として読み込み、float を経由しない。
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

logger = logging.getLogger("uniswap_explorer.metrics")

# 演算時の有効桁数（サブグラフの値は最大で数十桁になる）
DECIMAL_PRECISION = 80

FIXED_TIMEZONES = {
    "UTC": timezone.utc,
    "EST": timezone(timedelta(hours=-5), "EST"),
}

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def resolve_timezone(name: str) -> tzinfo:
    """タイムゾーン名を解決する（EST/UTCは固定オフセット、それ以外はIANA名）"""
    fixed = FIXED_TIMEZONES.get(name.upper())
    if fixed is not None:
        return fixed
    return ZoneInfo(name)


def dig(payload: Any, *path: Any) -> Any:
    """
    ネストしたレスポンスから値を取り出す

    キーが存在しない、インデックスが範囲外、型が想定と異なる場合は None を返す。
    ``dig(data, "tokens", 0, "derivedETH")`` のように先頭行の射影に使う。
    """
    current = payload
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, (list, tuple)) or not 0 <= key < len(current):
                return None
            current = current[key]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(key)

        if current is None:
            return None
    return current


def parse_decimal(value: Any) -> Optional[Decimal]:
    """10進数文字列を Decimal に変換する。変換できない場合は None"""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        # Decimal() は "1_000" を受け付けるが、サブグラフの値としては不正
        if "_" in text:
            logger.debug(f"数値に変換できない値です: {value!r}")
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            logger.debug(f"数値に変換できない値です: {value!r}")
            return None

    # NaN / Infinity は欠損として扱う
    if not result.is_finite():
        logger.debug(f"有限でない数値は無視します: {value!r}")
        return None

    return result


def parse_int(value: Any) -> Optional[int]:
    number = parse_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


def price_in_quote_currency(base_in_reference: Any, reference_in_quote: Any) -> Optional[Decimal]:
    """
    基準通貨建ての価格と基準通貨の価格を掛け合わせる

    例: DAIのETH建て価格 × ETHのUSD価格 = DAIのUSD価格
    """
    base = parse_decimal(base_in_reference)
    reference = parse_decimal(reference_in_quote)
    if base is None or reference is None:
        return None

    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        return base * reference


def _quantize(value: Any, digits: int) -> Optional[Decimal]:
    number = parse_decimal(value)
    if number is None:
        return None

    try:
        with localcontext() as ctx:
            ctx.prec = DECIMAL_PRECISION
            return number.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        logger.debug(f"桁数が大きすぎるため丸めできません: {value!r}")
        return None


def format_fixed(value: Any, digits: int = 2) -> Optional[str]:
    """小数点以下を固定桁で表示（桁区切りなし）"""
    number = _quantize(value, digits)
    if number is None:
        return None
    return format(number, f".{digits}f")


def format_quantity(value: Any, digits: int = 2) -> Optional[str]:
    """小数点以下を固定桁、3桁ごとにカンマ区切りで表示"""
    number = _quantize(value, digits)
    if number is None:
        return None
    return format(number, f",.{digits}f")


def _to_datetime(seconds: Any, tz: tzinfo) -> Optional[datetime]:
    value = parse_int(seconds)
    if value is None:
        return None

    try:
        return datetime.fromtimestamp(value, tz)
    except (OverflowError, OSError, ValueError):
        logger.debug(f"タイムスタンプを日時に変換できません: {seconds!r}")
        return None


def format_timestamp(seconds: Any, tz: tzinfo) -> Optional[str]:
    """UNIX秒を ``12/31/2020, 7:00:00 PM`` 形式の文字列に変換する"""
    moment = _to_datetime(seconds, tz)
    if moment is None:
        return None

    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{moment.month}/{moment.day}/{moment.year}, {hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"


def format_date(seconds: Any, tz: tzinfo) -> Optional[str]:
    """UNIX秒を ``Thu Dec 31 2020`` 形式の文字列に変換する"""
    moment = _to_datetime(seconds, tz)
    if moment is None:
        return None

    return f"{WEEKDAYS[moment.weekday()]} {MONTHS[moment.month - 1]} {moment.day:02d} {moment.year}"


def abbreviate_address(address: Any) -> Optional[str]:
    """``0x1234..abcd`` 形式に短縮"""
    if not isinstance(address, str) or not address:
        return None
    return f"{address[:6]}..{address[38:42]}"


@dataclass(frozen=True)
class SwapRow:
    time: Optional[str]
    pair: Optional[str]
    amount_in: Optional[str]
    sender: Optional[str]
    amount_out: Optional[str]
    recipient: Optional[str]
    amount_usd: Optional[str]


@dataclass(frozen=True)
class TokenSummary:
    symbol: Optional[str]
    name: Optional[str]
    total_supply: Optional[str]
    trade_volume: Optional[str]
    tx_count: Optional[int]


@dataclass(frozen=True)
class MetricDefinition:
    """
    派生値の定義

    compute には dependencies の順にREADYなクエリのpayloadが渡される。
    値が決まらない場合は None を返すこと。
    """
    name: str
    dependencies: Tuple[str, ...]
    compute: Callable[..., Any]


def _pick_amount(swap: Any, first: str, second: str) -> Optional[str]:
    """amount0がゼロより大きければtoken0側、そうでなければtoken1側の数量を表示"""
    amount0 = parse_decimal(dig(swap, first))
    if amount0 is not None and amount0 > 0:
        return _with_symbol(format_fixed(amount0), dig(swap, "pair", "token0", "symbol"))
    return _with_symbol(format_fixed(dig(swap, second)), dig(swap, "pair", "token1", "symbol"))


def _with_symbol(amount: Optional[str], symbol: Any) -> Optional[str]:
    if amount is None:
        return None
    return f"{amount} {symbol}" if symbol else amount


def build_swap_row(swap: Any, tz: tzinfo) -> Optional[SwapRow]:
    if not isinstance(swap, Mapping):
        return None

    token0 = dig(swap, "pair", "token0", "symbol")
    token1 = dig(swap, "pair", "token1", "symbol")
    pair = f"{token0}/{token1}" if token0 and token1 else None

    return SwapRow(
        time=format_timestamp(dig(swap, "timestamp"), tz),
        pair=pair,
        amount_in=_pick_amount(swap, "amount0In", "amount1In"),
        sender=abbreviate_address(dig(swap, "sender")),
        amount_out=_pick_amount(swap, "amount0Out", "amount1Out"),
        recipient=abbreviate_address(dig(swap, "to")),
        amount_usd=format_quantity(dig(swap, "amountUSD")),
    )


def build_swap_rows(swaps: Any, tz: tzinfo) -> Optional[Tuple[SwapRow, ...]]:
    if not isinstance(swaps, list):
        return None
    rows = (build_swap_row(swap, tz) for swap in swaps)
    return tuple(row for row in rows if row is not None)


def build_token_summary(payload: Any) -> Optional[TokenSummary]:
    token = dig(payload, "tokens", 0)
    if not isinstance(token, Mapping):
        return None

    return TokenSummary(
        symbol=dig(token, "symbol"),
        name=dig(token, "name"),
        total_supply=format_quantity(dig(token, "totalSupply"), 0),
        trade_volume=format_quantity(dig(token, "tradeVolume")),
        tx_count=parse_int(dig(token, "txCount")),
    )


def count_rows(payload: Any, key: str) -> Optional[int]:
    rows = dig(payload, key)
    if not isinstance(rows, list):
        return None
    return len(rows)


def _eth_price(eth: Any) -> Optional[Decimal]:
    return parse_decimal(dig(eth, "bundles", 0, "ethPrice"))


def _dai_price_eth(dai: Any) -> Optional[Decimal]:
    return parse_decimal(dig(dai, "tokens", 0, "derivedETH"))


def _dai_price_usd(eth: Any, dai: Any) -> Optional[Decimal]:
    return price_in_quote_currency(_dai_price_eth(dai), _eth_price(eth))


def _dai_total_liquidity(dai: Any) -> Optional[Decimal]:
    return parse_decimal(dig(dai, "tokens", 0, "totalLiquidity"))


def build_default_metrics(tz: tzinfo) -> List[MetricDefinition]:
    """表示に使う派生値の一覧"""
    return [
        # 価格
        MetricDefinition("eth_price_usd", ("eth_price",), _eth_price),
        MetricDefinition("eth_price_usd_text", ("eth_price",),
                         lambda eth: format_quantity(_eth_price(eth))),
        MetricDefinition("dai_price_eth", ("dai_token",), _dai_price_eth),
        MetricDefinition("dai_price_usd", ("eth_price", "dai_token"), _dai_price_usd),
        MetricDefinition("dai_price_usd_text", ("eth_price", "dai_token"),
                         lambda eth, dai: format_fixed(_dai_price_usd(eth, dai))),

        # 流動性
        MetricDefinition("dai_total_liquidity", ("dai_token",), _dai_total_liquidity),
        MetricDefinition("dai_total_liquidity_text", ("dai_token",),
                         lambda dai: format_quantity(_dai_total_liquidity(dai))),
        MetricDefinition("dai_weth_tvl_text", ("dai_weth_pair",),
                         lambda pair: format_quantity(dig(pair, "pair", "reserveUSD"))),
        MetricDefinition("liquidity_token_balance", ("liquidity_positions",),
                         lambda positions: parse_decimal(
                             dig(positions, "liquidityPositions", 0, "liquidityTokenBalance"))),

        # スワップ
        MetricDefinition("latest_swap_time", ("dai_usdt_swaps",),
                         lambda swaps: format_timestamp(dig(swaps, "swaps", 0, "timestamp"), tz)),
        MetricDefinition("latest_swap_date", ("dai_usdt_swaps",),
                         lambda swaps: format_date(dig(swaps, "swaps", 0, "timestamp"), tz)),
        MetricDefinition("dai_usdt_swaps", ("dai_usdt_swaps",),
                         lambda swaps: build_swap_rows(dig(swaps, "swaps"), tz)),

        # トークン
        MetricDefinition("btc_summary", ("btc_token",), build_token_summary),
        MetricDefinition("wbtc_summary", ("wbtc_token",), build_token_summary),
        MetricDefinition("usdt_summary", ("usdt_token",), build_token_summary),
        MetricDefinition("usdc_summary", ("usdc_token",), build_token_summary),

        # Uniswap全体
        MetricDefinition("uniswap_pair_count", ("uniswap_factory",),
                         lambda factory: parse_int(dig(factory, "uniswapFactories", 0, "pairCount"))),
        MetricDefinition("uniswap_total_volume_usd_text", ("uniswap_factory",),
                         lambda factory: format_quantity(dig(factory, "uniswapFactories", 0, "totalVolumeUSD"))),
        MetricDefinition("uniswap_daily_volume_usd_text", ("uniswap_day_data",),
                         lambda day: format_quantity(dig(day, "uniswapDayDatas", 0, "dailyVolumeUSD"))),
        MetricDefinition("usdc_dai_pool_created_at", ("usdc_dai_pool",),
                         lambda pool: format_timestamp(dig(pool, "pairs", 0, "createdAtTimestamp"), tz)),

        # 件数
        MetricDefinition("all_tokens_count", ("all_tokens",), lambda data: count_rows(data, "tokens")),
        MetricDefinition("all_pairs_count", ("all_pairs",), lambda data: count_rows(data, "pairs")),
        MetricDefinition("pair_day_data_count", ("pair_day_data",),
                         lambda data: count_rows(data, "pairDayDatas")),
    ]


def index_metrics(metrics: Iterable[MetricDefinition]) -> Mapping[str, MetricDefinition]:
    indexed = {}
    for metric in metrics:
        if metric.name in indexed:
            raise ValueError(f"派生値の名前が重複しています: {metric.name}")
        indexed[metric.name] = metric
    return indexed


def missing_dependencies(metrics: Iterable[MetricDefinition], query_names: Sequence[str]) -> List[str]:
    """レジストリに存在しないクエリに依存している派生値を列挙する"""
    known = set(query_names)
    return [metric.name for metric in metrics if not set(metric.dependencies) <= known]
