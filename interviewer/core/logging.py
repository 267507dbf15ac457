"""
structlog setup for the interviewer store.

Store, reconciler and API events are emitted as snake_case events with
keyword context (session_id, protocol_uid, request_id). Each process run
writes one log file, logs/interviewer_<timestamp>.log; the console gets
coloured output in debug mode and JSON lines otherwise.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.typing import Processor

from interviewer.core.config import settings

LOG_FILE_PATTERN = "interviewer_*.log"


def _cull_old_logs(logs_dir: Path, keep: int) -> None:
    """Keep the ``keep`` newest run logs in logs_dir, deleting the rest."""
    run_logs = sorted(
        logs_dir.glob(LOG_FILE_PATTERN),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )

    for stale in run_logs[keep:]:
        try:
            os.remove(stale)
        except OSError:
            pass  # Another process may hold or have removed it


def _renderers() -> List[Processor]:
    if settings.debug:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]


def configure_logging(
    log_sessions_to_keep: Optional[int] = None, logs_dir: Path = Path("logs")
) -> None:
    """Route structlog through the stdlib root logger to console and a run file.

    Called from the application lifespan; calling it again replaces the
    handlers, so tests may reconfigure freely.

    Args:
        log_sessions_to_keep: Run logs to retain, including this run's
            (default: settings.log_sessions_to_keep)
        logs_dir: Directory that receives the run logs
    """
    keep = log_sessions_to_keep or settings.log_sessions_to_keep

    logs_dir.mkdir(parents=True, exist_ok=True)
    _cull_old_logs(logs_dir, keep=keep - 1)
    run_log = logs_dir / f"interviewer_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
        *_renderers(),
    ]

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    level = logging.DEBUG if settings.debug else logging.INFO
    root_logger.setLevel(level)

    for handler in (logging.StreamHandler(), logging.FileHandler(run_log, mode="w")):
        handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(handler)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Logger for a store module.

    Usage:
        log = get_logger(__name__)
        log.info("session_added", session_id="a1b2c3d4-e5f6a7b8c9d0")
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Attach context (e.g. request_id) to every event logged in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
