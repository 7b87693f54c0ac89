from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_CHUNK_SIZE = 1024 * 1024


@dataclass
class LoggingConfig:
    dir: Optional[Path] = None
    file_name: str = "treeseal.log"
    max_mb: int = 20
    backup_count: int = 10
    json: bool = True
    to_console: bool = True


@dataclass
class Config:
    verbose: bool = False
    pretty: bool = False
    report_added: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE
    directories: List[Path] = field(default_factory=list)
    log_level: str = "WARNING"
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> Config:
    if path is None:
        return Config()
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("config root must be a mapping")

    base = config_path.resolve().parent

    directories = raw.get("directories", [])
    if not isinstance(directories, list):
        directories = [directories]

    chunk_size = int(raw.get("chunk_size", DEFAULT_CHUNK_SIZE))
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    logging_raw = _as_dict(raw.get("logging"))
    log_dir = logging_raw.get("dir")
    logging_config = LoggingConfig(
        dir=_resolve_path(log_dir, base) if log_dir else None,
        file_name=str(logging_raw.get("file_name", "treeseal.log")),
        max_mb=int(logging_raw.get("max_mb", 20)),
        backup_count=int(logging_raw.get("backup_count", 10)),
        json=bool(logging_raw.get("json", True)),
        to_console=bool(logging_raw.get("to_console", True)),
    )

    return Config(
        verbose=bool(raw.get("verbose", False)),
        pretty=bool(raw.get("pretty", False)),
        report_added=bool(raw.get("report_added", False)),
        chunk_size=chunk_size,
        directories=[_resolve_path(item, base) for item in directories if item],
        log_level=str(raw.get("log_level", "WARNING")),
        logging=logging_config,
    )


def _resolve_path(value: Any, base: Path) -> Path:
    path = Path(str(value)).expanduser()
    if path.is_absolute():
        return path
    return base / path


def _as_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}
