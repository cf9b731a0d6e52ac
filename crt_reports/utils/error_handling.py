"""
Correlation IDs and timed error logging shared by the proxy and the client.
"""
import functools
import logging
import threading
import time
import uuid
from typing import Callable

logger = logging.getLogger(__name__)


class CorrelationContext:
    """Thread-local correlation ID context."""

    def __init__(self):
        self._local = threading.local()

    def set_correlation_id(self, correlation_id: str):
        """Set correlation ID for current thread."""
        self._local.correlation_id = correlation_id

    def get_correlation_id(self) -> str:
        """Get correlation ID for current thread."""
        if not hasattr(self._local, 'correlation_id'):
            self._local.correlation_id = new_correlation_id()
        return self._local.correlation_id

    def clear(self):
        """Clear correlation ID."""
        if hasattr(self._local, 'correlation_id'):
            delattr(self._local, 'correlation_id')


def new_correlation_id() -> str:
    return str(uuid.uuid4())[:8]


# Global correlation context
correlation_context = CorrelationContext()


def log_errors(func: Callable) -> Callable:
    """Decorator that logs duration and failures of a call, then re-raises."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        correlation_id = correlation_context.get_correlation_id()
        start_time = time.time()

        try:
            result = func(*args, **kwargs)
            duration = time.time() - start_time
            logger.debug(f"[{correlation_id}] Completed {func.__name__} in {duration:.2f}s")
            return result
        except Exception as e:
            duration = time.time() - start_time
            logger.error(f"[{correlation_id}] Failed {func.__name__} after {duration:.2f}s: {e}")
            raise
    return wrapper
