# -*- coding: utf-8 -*-
from __future__ import annotations
import logging, logging.handlers
from pathlib import Path

LOG_FILENAME = "order_hub.log"

def setup_logging(settings, level: int = logging.INFO) -> Path:
    """Configure rotating file logging under ORDER_DATA_ROOT/logs/order_hub.log"""
    root = Path(settings.ORDER_DATA_ROOT).expanduser()
    log_dir = root / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s — %(message)s")
    handler = logging.handlers.RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(fmt)
    handler.setLevel(level)

    logger = logging.getLogger()  # root
    logger.setLevel(level)
    # avoid duplicate handlers
    if not _has_file_handler(logger):
        logger.addHandler(handler)

    # uvicorn loggers do not propagate to root
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        if not _has_file_handler(lg):
            lg.addHandler(handler)

    return log_path


def _has_file_handler(logger: logging.Logger) -> bool:
    return any(
        isinstance(h, logging.handlers.RotatingFileHandler)
        and getattr(h, "baseFilename", "").endswith(LOG_FILENAME)
        for h in logger.handlers
    )
