"""
crypto_scanner
~~~~~~~~~~~~~~

核心业务包：
- Binance 现货行情抓取（24h 行情、K 线）
- 技术指标、爆发潜力评分、新币识别、操作建议
- 两级 TTL 缓存与候选币扫描流程

入口脚本位于仓库根目录：
- scripts/scan_market.py
"""

__version__ = "1.0.0"
