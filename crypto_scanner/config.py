import os
from pathlib import Path

# 统一项目输出目录
OUTPUT_DIR = Path("data")

# 交易所基础 URL（现货）
BINANCE_BASE_URL = os.getenv("BINANCE_BASE_URL", "https://api.binance.com")
# 可选：公开行情接口不需要签名，只在配置了 key 时附带 X-MBX-APIKEY
BINANCE_API_KEY = os.getenv("BINANCE_API_KEY", "")

BINANCE_MAX_CONCURRENT_REQUESTS = 10
BINANCE_MIN_REQUEST_INTERVAL = 0.05
REQUEST_TIMEOUT = 30

# K 线参数：1h * 50 根，足够覆盖 MACD 所需的 26 根
KLINE_INTERVAL = "1h"
KLINE_LIMIT = 50

# 缓存 TTL（秒）：排名结果变化快，历史价格可以复用更久
RESULT_CACHE_TTL = float(os.getenv("RESULT_CACHE_TTL", "180"))
SERIES_CACHE_TTL = float(os.getenv("SERIES_CACHE_TTL", "3600"))

QUOTE_ASSET = "USDT"

# 各视图排除的主流币
EXPLOSION_EXCLUDED = frozenset({"BTCUSDT", "ETHUSDT", "BNBUSDT", "ADAUSDT", "XRPUSDT"})
MAJOR_EXCLUDED = frozenset({"BTCUSDT", "ETHUSDT"})
POPULAR_TOKENS = frozenset(
    {
        "BTCUSDT",
        "ETHUSDT",
        "BNBUSDT",
        "ADAUSDT",
        "XRPUSDT",
        "SOLUSDT",
        "DOTUSDT",
        "DOGEUSDT",
        "AVAXUSDT",
        "MATICUSDT",
        "LINKUSDT",
        "LTCUSDT",
        "TRXUSDT",
        "USDCUSDT",
        "FDUSDUSDT",
    }
)

API_VERSION = "1.0.0"
