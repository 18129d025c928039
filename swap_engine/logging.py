"""
Logging configuration for the swap engine.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict

from loguru import logger
from redis import Redis

# Lazy import settings to avoid circular dependency
_settings = None

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
FALLBACK_LOG_DIR = Path("/tmp/swap_engine_logs")


def _get_settings():
    """Get settings with lazy loading."""
    global _settings
    if _settings is None:
        from swap_engine.settings.config import settings as app_settings

        _settings = app_settings
    return _settings


def _resolve_log_path(default_path: Path) -> Path:
    try:
        default_path.parent.mkdir(parents=True, exist_ok=True)
        return default_path
    except OSError:
        fallback_dir = Path.cwd() / "logs"
        fallback_dir.mkdir(parents=True, exist_ok=True)
        return fallback_dir / default_path.name


def _add_file_sink(path: Path, **options: Any) -> None:
    # File sinks fall back to a temp directory that is always writable
    try:
        logger.add(str(path), **options)
    except PermissionError:
        FALLBACK_LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.add(str(FALLBACK_LOG_DIR / path.name), **options)


class RedisLogSink:
    """Loguru sink that writes log records to a Redis capped list."""

    def __init__(self, key: str, max_entries: int) -> None:
        self.key = key
        self.max_entries = max_entries
        try:
            settings = _get_settings()
            self.client = Redis(
                host=settings.redis_host,
                port=settings.redis_port,
                db=settings.redis_db,
                decode_responses=True,
            )
            self.client.ping()
            self._available = True
        except Exception as exc:
            logger.warning(f"Redis log sink unavailable: {exc}")
            self._available = False

    def write(self, message: Any) -> None:
        if not self._available:
            return
        try:
            record: Dict[str, Any] = message.record
            payload = {
                "timestamp": record["time"].isoformat(),
                "level": record["level"].name,
                "message": record["message"],
                "name": record["name"],
                "function": record["function"],
                "line": record["line"],
                "extra": {key: str(value) for key, value in record.get("extra", {}).items()},
            }
            self.client.rpush(self.key, json.dumps(payload))
            self.client.ltrim(self.key, -self.max_entries, -1)
        except Exception as exc:
            # Downgrade to debug to avoid recursive logging
            logger.debug(f"Failed to push log entry to Redis: {exc}")


class LoguruHandler(logging.Handler):
    """Forward std-logging records (web3, httpx) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logging():
    """Configure loguru logger with appropriate settings."""
    settings = _get_settings()

    logger.remove()
    logger.configure(extra={"network": settings.network, "environment": settings.environment})

    log_level = (settings.log_level or "INFO").upper()
    env_level = os.getenv("LOG_LEVEL", "").upper()
    if env_level:
        log_level = env_level

    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    log_path = _resolve_log_path(Path(settings.log_file))
    _add_file_sink(
        log_path,
        format=LOG_FORMAT,
        level="DEBUG",
        rotation="100 MB",
        retention="30 days",
        compression="zip",
    )
    _add_file_sink(
        _resolve_log_path(log_path.parent / "errors.log"),
        format=LOG_FORMAT,
        level="ERROR",
        rotation="50 MB",
        retention="90 days",
        compression="zip",
    )
    # Settled and failed swaps, one line each
    _add_file_sink(
        _resolve_log_path(log_path.parent / "swap_outcomes.log"),
        format="{time:YYYY-MM-DD HH:mm:ss} | {message}",
        level="INFO",
        filter=lambda record: record["extra"].get("SWAP_OUTCOME"),
        rotation="50 MB",
        retention="365 days",
        compression="zip",
    )

    if settings.log_redis_enabled:
        redis_sink = RedisLogSink(settings.log_redis_list_key, settings.log_redis_max_entries)
        logger.add(redis_sink, level="INFO", enqueue=False)

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(LoguruHandler())

    logger.info(f"Logging initialized - Level: {log_level}, File: {log_path}")
    return logger


_log = None


def _get_log():
    """Get or initialize the logger."""
    global _log
    if _log is None:
        try:
            _log = setup_logging()
        except OSError:
            # Sinks could not be created; keep loguru's default stderr sink
            _log = logger
    return _log


log = _get_log()
