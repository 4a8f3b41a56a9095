"""Runtime logging configuration with bounded retention."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

_CONFIGURED = False
_DEFAULT_LOG_PATH = "work/logs/scene_contract.log"


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def configure_runtime_logging(*, level_override: str | None = None) -> None:
    """Configure console + optional rotating file logs once per process.

    Set ``SCENE_CONTRACT_LOG_PATH=-`` to log to the console only.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    level_name = (
        level_override or os.environ.get("SCENE_CONTRACT_LOG_LEVEL", "WARNING")
    ).strip().upper() or "WARNING"
    level = getattr(logging, level_name, logging.WARNING)
    raw_path = os.environ.get("SCENE_CONTRACT_LOG_PATH", _DEFAULT_LOG_PATH).strip()

    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(stream_handler)

    if raw_path != "-":
        log_path = Path(raw_path or _DEFAULT_LOG_PATH)
        max_bytes = _int_env(
            "SCENE_CONTRACT_LOG_MAX_BYTES",
            5 * 1024 * 1024,
            minimum=64 * 1024,
            maximum=100 * 1024 * 1024,
        )
        backup_count = _int_env("SCENE_CONTRACT_LOG_BACKUP_COUNT", 10, minimum=1, maximum=120)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    http_level_name = os.environ.get("SCENE_CONTRACT_HTTP_LOG_LEVEL", "WARNING").strip().upper()
    http_level = getattr(logging, http_level_name, logging.WARNING)
    logging.getLogger("httpx").setLevel(http_level)
    logging.getLogger("httpcore").setLevel(http_level)

    _CONFIGURED = True
