"""
候选币扫描脚本。

功能：
- 从 Binance 现货拉取全市场 24h 行情
- 按视图过滤并逐个计算技术指标、爆发潜力评分和操作建议
- 以 JSON 打印结果，可选保存到 data/binance/{view}/ 目录

视图：explosion-candidates / top-gainers / new-listings / smart-analysis / health
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from crypto_scanner.log import setup_logging
from crypto_scanner.pipeline import VIEWS, ViewResponse, build_pipeline
from crypto_scanner.storage import build_output_path, save_json

HEALTH_VIEW = "health"


def parse_args(argv=None) -> argparse.Namespace:
    """解析命令行参数。"""
    parser = argparse.ArgumentParser(
        description="扫描 Binance 现货 USDT 交易对，输出爆发潜力排名与操作建议"
    )
    parser.add_argument(
        "--view",
        choices=sorted(VIEWS) + [HEALTH_VIEW],
        default="explosion-candidates",
        help="要运行的视图，默认 explosion-candidates",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=1,
        help="同时分析的交易对数量，默认 1（逐个顺序拉取）",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="把结果写入 data/binance/{view}/，只保留最新一份",
    )
    parser.add_argument("--verbose", action="store_true", help="输出 DEBUG 日志")
    return parser.parse_args(argv)


async def run_view(view: str, concurrency: int) -> ViewResponse:
    async with httpx.AsyncClient() as client:
        pipeline = build_pipeline(client, max_concurrency=concurrency)
        if view == HEALTH_VIEW:
            return await pipeline.health()
        return await pipeline.run_view(VIEWS[view])


def main(argv=None) -> None:
    """主函数：运行视图、打印并按需保存结果。"""
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.concurrency < 1:
        print("--concurrency 必须 >= 1", file=sys.stderr)
        sys.exit(2)

    response = asyncio.run(run_view(args.view, args.concurrency))
    print(json.dumps(response.body, indent=2, ensure_ascii=False))

    if args.save:
        output_path = build_output_path("binance", args.view)
        save_json(response.body, output_path)
        print(f"已写入 {output_path}", file=sys.stderr)

    if not response.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
