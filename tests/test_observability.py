from __future__ import annotations

import logging
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from scene_contract.adapters import observability


@pytest.fixture()
def _restore_root_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    http_levels = {name: logging.getLogger(name).level for name in ("httpx", "httpcore")}
    monkeypatch.setattr(observability, "_CONFIGURED", False)
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, http_level in http_levels.items():
        logging.getLogger(name).setLevel(http_level)


@pytest.mark.usefixtures("_restore_root_logger")
def test_configure_runtime_logging_adds_rotating_file_handler(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    log_path = tmp_path / "logs" / "scene_contract.log"
    monkeypatch.setenv("SCENE_CONTRACT_LOG_PATH", str(log_path))
    monkeypatch.setenv("SCENE_CONTRACT_LOG_BACKUP_COUNT", "500")

    observability.configure_runtime_logging(level_override="info")
    logging.getLogger("scene_contract.test").info("split.assisted beats=4")

    root = logging.getLogger()
    file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
    assert root.level == logging.INFO
    assert len(file_handlers) == 1
    assert file_handlers[0].backupCount == 120
    file_handlers[0].flush()
    assert "split.assisted beats=4" in log_path.read_text(encoding="utf-8")


@pytest.mark.usefixtures("_restore_root_logger")
def test_console_only_logging_and_single_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCENE_CONTRACT_LOG_PATH", "-")
    monkeypatch.setenv("SCENE_CONTRACT_HTTP_LOG_LEVEL", "error")

    observability.configure_runtime_logging()
    observability.configure_runtime_logging(level_override="DEBUG")

    root = logging.getLogger()
    assert not any(isinstance(h, RotatingFileHandler) for h in root.handlers)
    assert root.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.ERROR
