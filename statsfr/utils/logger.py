from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .settings import settings

_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

def get_logger(name: str) -> logging.Logger:
    log = logging.getLogger(name)
    if log.handlers:
        return log

    level = logging.DEBUG if settings.debug_data_sources else getattr(logging, settings.log_level.upper(), logging.INFO)
    log.setLevel(level)

    # Console handler
    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(logging.Formatter(_FMT))
    log.addHandler(ch)

    # File handler (optionnel)
    if settings.log_file:
        logfile = Path(settings.log_file)
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(logfile, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(_FMT))
        log.addHandler(fh)

    log.propagate = False
    return log
