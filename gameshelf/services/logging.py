"""Logging configuration.

structlog does the event processing; the standard library handlers decide
where records go. Every handler renders with its own ``ProcessorFormatter``,
so log files always hold one JSON object per line while the console stays
readable.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

ENVIRONMENT_VARIABLE = "GAMESHELF_ENV"

APP_LOG_NAME = "gameshelf.log"
ERROR_LOG_NAME = "error.log"

# (file name, minimum level or None for the configured one, max bytes)
LOG_FILES: list[tuple[str, int | None, int]] = [
    (APP_LOG_NAME, None, 5 * 1024 * 1024),
    (ERROR_LOG_NAME, logging.ERROR, 1024 * 1024),
]

SHARED_PROCESSORS: list[Any] = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


class LoggingService:
    """Configures structlog on top of the standard library logging handlers."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Path | None = None,
        tui_mode: bool = False,
    ) -> None:
        """Initialize the logging service.

        Args:
            log_level: The minimum log level to capture
            log_dir: Directory for rotating log files, or None for none
            tui_mode: Keep logs off the console so the TUI is not corrupted
        """
        self.log_level = log_level.upper()
        self.log_dir = log_dir
        self.tui_mode = tui_mode
        self.is_development = os.getenv(ENVIRONMENT_VARIABLE, "development") == "development"

    @property
    def numeric_level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)

    def configure(self) -> None:
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(self.numeric_level)

        # httpx logs every request at INFO; HttpClientService already does
        logging.getLogger("httpx").setLevel(max(self.numeric_level, logging.WARNING))

        for handler in self._build_handlers():
            root_logger.addHandler(handler)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *SHARED_PROCESSORS,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _build_handlers(self) -> list[logging.Handler]:
        handlers: list[logging.Handler] = []

        if not self.tui_mode:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(self.numeric_level)
            console.setFormatter(self._console_formatter())
            handlers.append(console)

        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            json_formatter = self._formatter(structlog.processors.format_exc_info, structlog.processors.JSONRenderer())
            for file_name, level, max_bytes in LOG_FILES:
                handler = logging.handlers.RotatingFileHandler(
                    filename=self.log_dir / file_name,
                    maxBytes=max_bytes,
                    backupCount=3,
                    encoding="utf-8",
                )
                handler.setLevel(level if level is not None else self.numeric_level)
                handler.setFormatter(json_formatter)
                handlers.append(handler)

        return handlers

    def _console_formatter(self) -> logging.Formatter:
        if self.is_development:
            return self._formatter(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
        return self._formatter(structlog.processors.format_exc_info, structlog.processors.JSONRenderer())

    @staticmethod
    def _formatter(*processors: Any) -> structlog.stdlib.ProcessorFormatter:
        return structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *processors],
            foreign_pre_chain=SHARED_PROCESSORS,
        )

    def get_logger(self, name: str | None = None) -> structlog.stdlib.BoundLogger:
        return structlog.stdlib.get_logger(name)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    environment: str | None = None,
    tui_mode: bool = False,
) -> LoggingService:
    """Set up application logging.

    Args:
        log_level: Minimum log level to capture
        log_dir: Directory for log files (None for console only)
        environment: Environment name (development/production)
        tui_mode: Disable console logging while the TUI owns the terminal

    Returns:
        Configured LoggingService instance
    """
    if environment:
        os.environ[ENVIRONMENT_VARIABLE] = environment

    service = LoggingService(log_level=log_level, log_dir=log_dir, tui_mode=tui_mode)
    service.configure()
    return service
