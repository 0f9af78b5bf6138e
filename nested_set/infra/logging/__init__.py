"""Logging infrastructure.

Basic usage:
    import logging

    logger = logging.getLogger(__name__)
    logger.info("Subtree moved", extra={"table": "tree", "distance": -15})

    # Lazy evaluation for expensive operations
    from nested_set.infra.logging import get_lazy_logger

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"Tree: {format_tree(nodes)}")  # Only runs if DEBUG enabled

    # Application entrypoint
    from nested_set.infra.logging import setup_logging

    setup_logging()  # LOG_* environment settings
"""

from nested_set.infra.logging.config import configure_logging, setup_logging, shutdown
from nested_set.infra.logging.formatters import JSONFormatter
from nested_set.infra.logging.lazy import LazyLoggerAdapter, LazyString, get_lazy_logger, lazy

__all__ = [
    "JSONFormatter",
    "LazyLoggerAdapter",
    "LazyString",
    "configure_logging",
    "get_lazy_logger",
    "lazy",
    "setup_logging",
    "shutdown",
]
