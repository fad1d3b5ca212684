from funtan.core.logging.logger import (
    LogContext,
    LogSettings,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "LogContext",
    "LogSettings",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
