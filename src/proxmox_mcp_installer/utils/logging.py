"""
Logging infrastructure for the Proxmox MCP installer.

Console diagnostics go through Rich on stderr so they never interleave
with the operator-facing progress output; an optional rotating log file
keeps a full record of the run.
"""

import json
import logging
import logging.handlers
from pathlib import Path
from typing import Any, Dict, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

HTTP_LOGGERS = ["httpx", "httpcore", "h11", "h2", "hpack", "urllib3"]

_STANDARD_RECORD_KEYS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "getMessage", "exc_info",
    "exc_text", "stack_info", "taskName",
}


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Extra fields passed via ``extra=``
        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class InstallerLogger:
    """Logging manager for the installer."""

    def __init__(self):
        self._loggers: Dict[str, logging.Logger] = {}
        self._setup_done = False

    def setup_logging(
        self,
        enabled: bool = True,
        level: Union[str, int] = logging.INFO,
        console_level: Union[str, int] = logging.WARNING,
        log_file: Optional[Path] = None,
        format_type: str = "text",
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
        suppress_http: bool = True,
        force: bool = False,
        **kwargs: Any,
    ) -> None:
        """
        Setup logging configuration.

        Args:
            enabled: Enable logging completely
            level: File logging level
            console_level: Console logging level
            log_file: Path to log file (optional)
            format_type: File format type ('text', 'json')
            max_bytes: Maximum log file size before rotation
            backup_count: Number of backup files to keep
            suppress_http: Suppress HTTP client request logging
            force: Reconfigure even if logging was already set up
            **kwargs: Additional configuration options
        """
        if self._setup_done and not force:
            return

        root_logger = logging.getLogger()

        if not enabled:
            root_logger.setLevel(logging.CRITICAL)
            root_logger.handlers.clear()
            self._setup_done = True
            return

        if isinstance(level, str):
            level = getattr(logging, level.upper())
        if isinstance(console_level, str):
            console_level = getattr(logging, console_level.upper())

        # Root logger uses the most permissive level; handlers filter
        root_logger.setLevel(min(level, console_level))
        root_logger.handlers.clear()

        console_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            markup=False,
            show_path=False,
        )
        console_handler.setLevel(console_level)
        root_logger.addHandler(console_handler)

        if log_file:
            try:
                log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    log_file,
                    maxBytes=max_bytes,
                    backupCount=backup_count,
                    encoding="utf-8",
                )
            except OSError as e:
                root_logger.warning(f"Cannot open log file {log_file}: {e}")
            else:
                if format_type == "json":
                    file_handler.setFormatter(JSONFormatter())
                else:
                    file_handler.setFormatter(logging.Formatter(
                        "%(asctime)s | %(levelname)s | %(name)s | "
                        "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
                    ))
                file_handler.setLevel(level)
                root_logger.addHandler(file_handler)

        if suppress_http:
            for logger_name in HTTP_LOGGERS:
                logging.getLogger(logger_name).setLevel(logging.WARNING)

        self._setup_done = True

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get or create a logger instance.

        Args:
            name: Logger name

        Returns:
            Logger instance
        """
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)

        return self._loggers[name]


# Global logger instance
_logger_manager = InstallerLogger()

# Convenience functions
setup_logging = _logger_manager.setup_logging
get_logger = _logger_manager.get_logger


def setup_logging_from_config(config: Any) -> None:
    """Configure logging from a loaded ``Config``."""
    log_config = config.logging
    console_level = "DEBUG" if config.debug else log_config.console_level
    setup_logging(
        enabled=log_config.enabled,
        level=log_config.level,
        console_level=console_level,
        log_file=config.get_log_file(),
        format_type=log_config.format_type,
        max_bytes=log_config.max_bytes,
        backup_count=log_config.backup_count,
    )

