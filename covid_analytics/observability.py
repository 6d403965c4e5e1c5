from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Executable

from .config import get_settings


LOGGER_NAME = "covid_analytics"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a single stream handler to the package logger at the configured level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel((level or get_settings().log_level).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logger.addHandler(handler)
    return logger


def timed_query(db: Session, name: str, stmt: Executable, params: Optional[Dict[str, Any]] = None) -> List[dict]:
    """Execute a statement and return its rows as dicts, logging row count and duration.

    Engine errors are logged and re-raised unchanged.
    """
    logger = logging.getLogger(f"{LOGGER_NAME}.query")
    start = time.perf_counter()
    try:
        rows = [dict(row) for row in db.execute(stmt, params or {}).mappings()]
    except SQLAlchemyError:
        logger.exception("query=%s failed", name)
        raise
    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.info("query=%s rows=%s duration_ms=%s", name, len(rows), duration_ms)
    return rows
