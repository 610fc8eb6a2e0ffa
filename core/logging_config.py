"""Logging configuration for the setup process."""

import logging
import logging.handlers
from pathlib import Path
from typing import Any

# Third-party loggers that are noisy at INFO (httpx logs every request)
_QUIET_LOGGERS = ("httpx", "httpcore")


def _file_handler(base_dir: Path, cfg: dict[str, Any], level: int) -> logging.Handler:
    log_path = base_dir / cfg.get("file", "logs/setup.log")
    log_path.parent.mkdir(parents=True, exist_ok=True)
    h = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=int(cfg.get("max_bytes", 10 * 1024 * 1024)),
        backupCount=int(cfg.get("backup_count", 3)),
        encoding="utf-8",
    )
    h.setLevel(level)
    return h


def setup_logging(base_dir: Path, settings: dict[str, Any]) -> None:
    """Configure the root logger with a rotating file under base_dir.

    Console output stays off by default so log lines do not interleave
    with the wizard prompts.
    """
    cfg = settings.get("logging", {})
    level = getattr(logging, str(cfg.get("level", "INFO")).upper(), logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers[:]:
        root.removeHandler(h)

    handlers = [_file_handler(base_dir, cfg, level)]
    if cfg.get("log_to_console", False):
        console = logging.StreamHandler()
        console.setLevel(level)
        handlers.append(console)
    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
