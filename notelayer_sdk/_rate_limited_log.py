"""
Thread-safe rate-limited logging utilities.

Polling loops repeat the same status lines many times; this module keeps
them visible without flooding the log.
"""
import logging
import threading
from typing import Dict, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

# One cache per interval; the TTL is what enforces the interval
_log_caches: Dict[int, TTLCache] = {}
_log_caches_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "warning",
    interval: int = 60,
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message with rate limiting, in a thread-safe manner.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        interval: Minimum interval between identical logs in seconds
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)
    key = f"{log_instance.name}:{level}:{message}"

    with _log_caches_lock:
        cache = _log_caches.get(interval)
        if cache is None:
            cache = TTLCache(maxsize=256, ttl=interval)
            _log_caches[interval] = cache
        if key in cache:
            return False
        cache[key] = True

    log_method(message)
    return True


def reset_rate_limits() -> None:
    """Forget every suppressed message."""
    with _log_caches_lock:
        _log_caches.clear()
