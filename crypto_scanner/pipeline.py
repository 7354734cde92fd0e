"""
候选币扫描流程。

一次视图请求：拉取全市场 24h 行情 → 按视图过滤 → 逐个币拉取 K 线（带缓存）
→ 计算指标 / 评分 / 建议 → 按视图的排序键降序 → 截断 → 包装成响应。
"""

import asyncio
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import httpx

from crypto_scanner.cache import PriceSeriesCache, TTLCache
from crypto_scanner.config import (
    API_VERSION,
    EXPLOSION_EXCLUDED,
    KLINE_INTERVAL,
    KLINE_LIMIT,
    MAJOR_EXCLUDED,
    QUOTE_ASSET,
    RESULT_CACHE_TTL,
    SERIES_CACHE_TTL,
)
from crypto_scanner.errors import ScannerError
from crypto_scanner.fetchers.binance import BinanceMarketData
from crypto_scanner.indicators import calculate_technicals
from crypto_scanner.log import get_logger
from crypto_scanner.models import Candle, CandidateResult, PriceSeries, TickerSnapshot
from crypto_scanner.new_listings import detect_new_listings
from crypto_scanner.recommendation import generate_recommendation
from crypto_scanner.scoring import calculate_explosion_score

logger = get_logger("pipeline")


class MarketDataProvider(Protocol):
    async def get_ticker_24h(self) -> List[TickerSnapshot]: ...

    async def get_klines(self, symbol: str, interval: str, limit: int) -> List[Candle]: ...

    async def ping(self) -> int: ...


# 过滤后的 (ticker, new_listing_score)；非新币视图的分数为 None
Selection = List[Tuple[TickerSnapshot, Optional[float]]]


@dataclass(frozen=True)
class ViewDefinition:
    name: str
    description: str
    error_message: str
    select: Callable[[Sequence[TickerSnapshot]], Selection]
    max_analyzed: int
    limit: int
    rank_by_change: bool = False
    with_summary: bool = False


@dataclass(frozen=True)
class ViewResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200


@dataclass(frozen=True)
class ViewSnapshot:
    """结果缓存里存的是不可变快照，每次响应都重新生成 body。"""

    timestamp: str
    candidates: Tuple[CandidateResult, ...]
    summary: Optional[Tuple[Tuple[str, int], ...]] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"status": "success", "timestamp": self.timestamp}
        if self.summary is not None:
            body["marketSummary"] = dict(self.summary)
        body["data"] = [c.to_dict() for c in self.candidates]
        return body


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def filter_tickers(
    tickers: Sequence[TickerSnapshot],
    excluded: frozenset,
    min_volume: float,
    min_change: float,
    max_change: Optional[float] = None,
    quote_asset: str = QUOTE_ASSET,
) -> Selection:
    selected: Selection = []
    for t in tickers:
        if not t.symbol.endswith(quote_asset) or t.symbol in excluded:
            continue
        if t.volume <= min_volume or t.price_change_percent <= min_change:
            continue
        if max_change is not None and t.price_change_percent >= max_change:
            continue
        selected.append((t, None))
    return selected


def select_new_listings(tickers: Sequence[TickerSnapshot]) -> Selection:
    return list(detect_new_listings(tickers))


EXPLOSION_CANDIDATES = ViewDefinition(
    name="explosion-candidates",
    description="Top 5 explosion candidates",
    error_message="Error fetching explosion candidates",
    select=lambda tickers: filter_tickers(tickers, EXPLOSION_EXCLUDED, 100_000, 8),
    max_analyzed=5,
    limit=5,
)
TOP_GAINERS = ViewDefinition(
    name="top-gainers",
    description="Top 5 steady gainers",
    error_message="Error fetching top gainers",
    select=lambda tickers: filter_tickers(tickers, MAJOR_EXCLUDED, 500_000, 3, 15),
    max_analyzed=5,
    limit=5,
    rank_by_change=True,
)
NEW_LISTINGS = ViewDefinition(
    name="new-listings",
    description="Likely new listings",
    error_message="Error fetching new listings",
    select=select_new_listings,
    max_analyzed=5,
    limit=5,
)
SMART_ANALYSIS = ViewDefinition(
    name="smart-analysis",
    description="Full market analysis",
    error_message="Error running smart analysis",
    select=lambda tickers: filter_tickers(tickers, MAJOR_EXCLUDED, 100_000, 2),
    max_analyzed=10,
    limit=8,
    with_summary=True,
)

VIEWS: Dict[str, ViewDefinition] = {
    view.name: view for view in (EXPLOSION_CANDIDATES, TOP_GAINERS, NEW_LISTINGS, SMART_ANALYSIS)
}


def analyze_ticker(
    ticker: TickerSnapshot,
    series: PriceSeries,
    new_listing_score: Optional[float] = None,
) -> CandidateResult:
    """纯函数：给定行情和价格序列，计算指标、评分和建议。"""
    technicals = calculate_technicals(series, ticker.last_price)
    score = calculate_explosion_score(ticker, technicals)
    recommendation = generate_recommendation(ticker.last_price, score, technicals.rsi)
    return CandidateResult(
        symbol=ticker.symbol,
        price=ticker.last_price,
        price_change_percent=ticker.price_change_percent,
        explosion_score=score,
        technicals=technicals,
        recommendation=recommendation,
        new_listing_score=new_listing_score,
    )


def rank_candidates(
    candidates: Sequence[CandidateResult], by_change: bool, limit: int
) -> List[CandidateResult]:
    # sorted 是稳定排序，同分时保持行情接口的原始顺序
    if by_change:
        ranked = sorted(candidates, key=lambda c: c.price_change_percent, reverse=True)
    else:
        ranked = sorted(candidates, key=lambda c: c.explosion_score, reverse=True)
    return ranked[:limit]


def market_summary(candidates: Sequence[CandidateResult]) -> Dict[str, int]:
    scores = [c.explosion_score for c in candidates]
    return {
        "totalAnalyzed": len(scores),
        "highPotential": sum(1 for s in scores if s > 70),
        "mediumPotential": sum(1 for s in scores if 40 < s <= 70),
        "lowPotential": sum(1 for s in scores if s <= 40),
    }


def process_memory() -> Dict[str, Any]:
    if sys.platform == "win32":
        return {}
    import resource

    usage = resource.getrusage(resource.RUSAGE_SELF)
    # Linux 单位为 KB，macOS 为字节
    max_rss = usage.ru_maxrss if sys.platform == "darwin" else usage.ru_maxrss * 1024
    return {"maxRss": max_rss}


class CandidatePipeline:
    def __init__(
        self,
        provider: MarketDataProvider,
        result_cache: TTLCache,
        series_cache: PriceSeriesCache,
        interval: str = KLINE_INTERVAL,
        kline_limit: int = KLINE_LIMIT,
        max_concurrency: int = 1,
        started_at: Optional[float] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.provider = provider
        self.result_cache = result_cache
        self.series_cache = series_cache
        self.interval = interval
        self.kline_limit = kline_limit
        self.max_concurrency = max_concurrency
        self.started_at = time.monotonic() if started_at is None else started_at

    async def _fetch_series(self, symbol: str) -> PriceSeries:
        candles = await self.provider.get_klines(symbol, self.interval, self.kline_limit)
        return PriceSeries.from_candles(candles)

    async def price_series(self, symbol: str) -> PriceSeries:
        """带缓存的价格序列；拉取失败时返回空序列，不影响整个视图。"""
        try:
            return await self.series_cache.get_or_fetch(
                symbol,
                self.interval,
                self.kline_limit,
                lambda: self._fetch_series(symbol),
            )
        except ScannerError as exc:
            logger.warning("price history unavailable for %s: %s", symbol, exc)
            return PriceSeries()

    async def enrich(
        self, ticker: TickerSnapshot, new_listing_score: Optional[float] = None
    ) -> CandidateResult:
        series = await self.price_series(ticker.symbol)
        return analyze_ticker(ticker, series, new_listing_score)

    async def _enrich_all(self, selection: Selection) -> List[CandidateResult]:
        if self.max_concurrency == 1:
            return [await self.enrich(ticker, score) for ticker, score in selection]

        sem = asyncio.Semaphore(self.max_concurrency)

        async def _worker(ticker: TickerSnapshot, score: Optional[float]) -> CandidateResult:
            async with sem:
                return await self.enrich(ticker, score)

        tasks = [asyncio.ensure_future(_worker(t, s)) for t, s in selection]
        try:
            # gather 按输入顺序返回结果
            return list(await asyncio.gather(*tasks))
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def run_view(self, view: ViewDefinition) -> ViewResponse:
        cached = self.result_cache.get(view.name)
        if cached is not None:
            return ViewResponse(200, cached.to_body())

        try:
            tickers = await self.provider.get_ticker_24h()
        except ScannerError as exc:
            logger.error("%s failed: %s", view.name, exc)
            return ViewResponse(
                500,
                {
                    "status": "error",
                    "timestamp": utc_timestamp(),
                    "message": view.error_message,
                    "error": str(exc),
                },
            )

        selection = view.select(tickers)[: view.max_analyzed]
        candidates = await self._enrich_all(selection)
        ranked = rank_candidates(candidates, view.rank_by_change, view.limit)

        snapshot = ViewSnapshot(
            timestamp=utc_timestamp(),
            candidates=tuple(ranked),
            summary=tuple(market_summary(candidates).items()) if view.with_summary else None,
        )

        logger.info(
            "%s: %d tickers, %d analyzed, %d returned",
            view.name,
            len(tickers),
            len(candidates),
            len(ranked),
        )
        self.result_cache.set(view.name, snapshot)
        return ViewResponse(200, snapshot.to_body())

    async def explosion_candidates(self) -> ViewResponse:
        return await self.run_view(EXPLOSION_CANDIDATES)

    async def top_gainers(self) -> ViewResponse:
        return await self.run_view(TOP_GAINERS)

    async def new_listings(self) -> ViewResponse:
        return await self.run_view(NEW_LISTINGS)

    async def smart_analysis(self) -> ViewResponse:
        return await self.run_view(SMART_ANALYSIS)

    async def health(self) -> ViewResponse:
        start = time.perf_counter()
        try:
            await self.provider.ping()
        except ScannerError as exc:
            return ViewResponse(
                500,
                {
                    "status": "unhealthy",
                    "timestamp": utc_timestamp(),
                    "message": "Upstream market data unavailable",
                    "error": str(exc),
                },
            )
        elapsed_ms = round((time.perf_counter() - start) * 1000)

        return ViewResponse(
            200,
            {
                "status": "healthy",
                "timestamp": utc_timestamp(),
                "uptime": round(time.monotonic() - self.started_at, 3),
                "memory": process_memory(),
                "responseTime": f"{elapsed_ms}ms",
                "binanceConnection": "OK",
                "apiVersion": API_VERSION,
                "endpoints": endpoint_index(),
            },
        )


def endpoint_index() -> Dict[str, str]:
    endpoints = {f"/api/{view.name}": view.description for view in VIEWS.values()}
    endpoints["/api/health"] = "System status"
    return endpoints


def index_payload() -> Dict[str, Any]:
    return {
        "message": "Crypto Explosion API - spotting breakout candidates",
        "version": API_VERSION,
        "endpoints": endpoint_index(),
    }


def build_pipeline(
    client: httpx.AsyncClient,
    max_concurrency: int = 1,
    result_ttl: float = RESULT_CACHE_TTL,
    series_ttl: float = SERIES_CACHE_TTL,
) -> CandidatePipeline:
    """进程启动时调用一次，两个缓存随 pipeline 一起注入。"""
    return CandidatePipeline(
        provider=BinanceMarketData(client),
        result_cache=TTLCache(result_ttl),
        series_cache=PriceSeriesCache(series_ttl),
        max_concurrency=max_concurrency,
    )
