"""Centralized logging service using loguru.

Structured records are emitted as ``TAG: {dict}`` lines so runs can be
grepped out of the daily log file by run id.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from city_research.config import settings

LOG_DIR = Path("logs")
CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "openai._base_client", "postgrest", "asyncio")


def configure_logging() -> None:
    LOG_DIR.mkdir(exist_ok=True)
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=settings.app_log_level.upper(), colorize=True)
    logger.add(
        LOG_DIR / "city_research_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(settings.noisy_log_level.upper())


configure_logging()


def _emit(tag: str, level: str, **fields: Any) -> None:
    record = {"timestamp": datetime.now(timezone.utc).isoformat(), **fields}
    logger.log(level, f"{tag}: {record}")


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log a text-generation call."""
    _emit(
        "LLM_CALL_FAILED" if error else "LLM_CALL",
        "ERROR" if error else "INFO",
        model=model,
        caller=caller,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
        duration_ms=duration_ms,
        status=status,
        error=error,
    )


def log_run(run_id: str, city_id: str, mode: str, status: str, **data: Any) -> None:
    _emit("RESEARCH_RUN", "INFO", run_id=run_id, city_id=city_id, mode=mode, status=status, **data)


def log_research_step(
    run_id: str,
    category: str,
    status: str,
    data: Optional[dict] = None,
) -> None:
    """Log the outcome of one category within a run. Failures log at WARNING."""
    _emit(
        "RESEARCH_STEP",
        "WARNING" if status == "failed" else "INFO",
        run_id=run_id,
        category=category,
        status=status,
        data=data,
    )


def log_db_operation(
    operation: str,
    table: str,
    status: str,
    details: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    _emit(
        "DB_OPERATION_FAILED" if error else "DB_OPERATION",
        "ERROR" if error else "INFO",
        operation=operation,
        table=table,
        status=status,
        details=details,
        error=error,
    )
