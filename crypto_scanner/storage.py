import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from .config import OUTPUT_DIR
from .log import get_logger

logger = get_logger("storage")


def build_output_path(exchange: str, view: str, output_dir: Optional[Path] = None) -> Path:
    """
    构建输出文件路径，格式：data/{exchange}/{view}/{timestamp}_{view}.json

    使用当前时间作为文件名时间戳，反映扫描执行的时间。
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    folder = (output_dir or OUTPUT_DIR) / exchange.lower() / view
    return folder / f"{timestamp}_{view}.json"


def save_json(data: Any, output_path: Path) -> None:
    """保存数据为 JSON 文件，并删除同目录下的旧文件（只保留最新的一个）。"""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    cleanup_old_files(output_path)


def cleanup_old_files(keep_file: Path) -> None:
    """删除同目录下的其他 JSON 文件，只保留指定的文件。"""
    directory = keep_file.parent
    if not directory.exists():
        return

    for json_file in directory.glob("*.json"):
        if json_file == keep_file:
            continue
        try:
            json_file.unlink()
        except OSError as exc:  # pragma: no cover - best effort cleanup
            logger.warning("删除旧文件 %s 失败：%s", json_file, exc)
