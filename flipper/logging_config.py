"""
Structured logging configuration using structlog.

Engines emit one event per tick outcome:
- tick_published: tick counter, elapsed time, head of the new snapshot, RSS
- tick_failed: error type and message with traceback; snapshot retained
- discovery_scan: universe size, pairs scanned and accepted
"""

import logging
import sys
from typing import Any, Dict, Optional, Sequence

import psutil
import structlog


def get_memory_usage() -> float:
    """Get current process memory usage in MB."""
    process = psutil.Process()
    return process.memory_info().rss / 1024 / 1024


def summarize_candidates(rows: Sequence[Any], max_size: int = 3) -> Dict[str, Any]:
    """
    Summarize a published candidate tuple for logging.

    Args:
        rows: Published records (must expose to_row())
        max_size: Number of leading records rendered in full

    Returns:
        Dict with count and a small head sample
    """
    return {
        "count": len(rows),
        "head": [r.to_row() for r in rows[:max_size]],
    }


_SHARED_PROCESSORS = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def configure_structlog(log_level: str = "INFO", log_file: Optional[str] = None, json_logs: bool = True):
    """
    Route structlog through stdlib logging.

    Args:
        log_level: Root logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Append to this file instead of stdout
        json_logs: JSON lines (default) or human-readable console output
    """
    handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler(sys.stdout)
    logging.basicConfig(format="%(message)s", handlers=[handler], level=getattr(logging, log_level.upper()))

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=_SHARED_PROCESSORS + [renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """structlog logger for a module (pass __name__)."""
    return structlog.get_logger(name)


class TickLogger:
    """
    Logger for per-engine tick outcomes with timing and memory tracking.
    """

    def __init__(self, name: str, engine: str):
        """Initialize tick logger bound to an engine name."""
        self.logger = get_logger(name).bind(engine=engine)

    def log_tick(
        self,
        tick: int,
        published: Sequence[Any],
        elapsed_ms: float,
        metadata: Optional[Dict] = None
    ):
        """
        Log a successfully published tick.

        Args:
            tick: Engine tick counter
            published: Newly published records
            elapsed_ms: Wall time of the recomputation
            metadata: Additional engine-specific fields
        """
        log_data = {
            "tick": tick,
            "elapsed_ms": round(elapsed_ms, 3),
            "candidates": summarize_candidates(published),
            "memory_mb": get_memory_usage(),
        }
        if metadata:
            log_data.update(metadata)

        self.logger.debug("tick_published", **log_data)

    def log_tick_failure(self, tick: int, error: BaseException, retained: int):
        """
        Log a failed tick. The previous snapshot stays published.

        Args:
            tick: Engine tick counter
            error: Exception raised during recomputation
            retained: Size of the snapshot left in place
        """
        self.logger.error(
            "tick_failed",
            tick=tick,
            error=str(error),
            error_type=type(error).__name__,
            retained_candidates=retained,
            exc_info=error,
        )

    def log_scan(self, tick: int, universe: int, pairs_scanned: int, accepted: int, elapsed_ms: float):
        """Log a pair discovery scan."""
        self.logger.info(
            "discovery_scan",
            tick=tick,
            universe=universe,
            pairs_scanned=pairs_scanned,
            accepted=accepted,
            elapsed_ms=round(elapsed_ms, 3),
            memory_mb=get_memory_usage(),
        )
