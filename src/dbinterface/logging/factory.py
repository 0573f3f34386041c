"""Logger factory and configuration for DBInterface.

Classes:
    LoggerFactory: Creates, caches and configures loggers
    LoggerConfig: Settings applied by the factory

Functions:
    configure_logging: Configure logging globally
    get_logger: Get a structured logger from the global factory
    get_performance_logger: Get a performance logger from the global factory

Example:
    >>> from dbinterface.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", format="text")
    >>> logger = get_logger(__name__)
    >>> logger.info("Facade ready", server="local")
"""

import logging
import logging.handlers
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from ..config.models import LoggingConfig
from ..core.exceptions import ValidationError
from .formatters import get_formatter
from .performance import PerformanceLogger
from .structured import StructuredLogger


@dataclass
class LoggerConfig:
    """Configuration for logger instances.

    Attributes:
        level: Log level
        format: Log format (json, text)
        console_output: Enable console output
        file_output: Enable file output
        file_path: Log file path
        max_file_size: Maximum file size before rotation
        backup_count: Number of backup files to keep
        correlation_ids: Attach correlation IDs to records
    """

    level: str = "INFO"
    format: str = "json"
    console_output: bool = True
    file_output: bool = False
    file_path: Optional[str] = None
    max_file_size: int = 10485760
    backup_count: int = 5
    correlation_ids: bool = True


class LoggerFactory:
    """Factory for creating and configuring DBInterface loggers.

    The first logger request configures the standard library root logger
    and, unless the application already configured structlog, structlog
    itself.

    Example:
        >>> factory = LoggerFactory()
        >>> factory.configure_from_config(system_config.logging)
        >>> logger = factory.get_logger("dbinterface.database.interface")
    """

    _VALID_KEYS = frozenset(LoggerConfig.__dataclass_fields__)

    def __init__(self, config: Optional[LoggerConfig] = None) -> None:
        self.config = config or LoggerConfig()
        self.initialized = False
        self._loggers: Dict[str, StructuredLogger] = {}
        self._performance_loggers: Dict[str, PerformanceLogger] = {}

    def configure_from_config(self, logging_config: LoggingConfig) -> None:
        """Configure factory from a ``LoggingConfig`` model."""
        self.config = LoggerConfig(
            level=logging_config.level,
            format=logging_config.format,
            console_output=logging_config.console_output,
            file_output=logging_config.file_path is not None,
            file_path=str(logging_config.file_path) if logging_config.file_path else None,
            max_file_size=logging_config.max_file_size,
            backup_count=logging_config.backup_count,
        )
        self.initialized = False
        self._configure_logging_system()

    def configure_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """Configure factory from a dictionary; unknown keys are ignored."""
        for key, value in config_dict.items():
            if key in self._VALID_KEYS:
                setattr(self.config, key, value)
        self.initialized = False
        self._configure_logging_system()

    def _configure_logging_system(self) -> None:
        if self.initialized:
            return
        self._configure_stdlib_logging()
        self._configure_structlog()
        self.initialized = True

    def _level(self) -> int:
        return getattr(logging, self.config.level.upper(), logging.INFO)

    def _configure_stdlib_logging(self) -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(self._level())
        root_logger.handlers.clear()

        if self.config.console_output:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(self._level())
            console_handler.setFormatter(get_formatter(self.config.format))
            root_logger.addHandler(console_handler)

        if self.config.file_output and self.config.file_path:
            file_path = Path(self.config.file_path)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=str(file_path),
                maxBytes=self.config.max_file_size,
                backupCount=self.config.backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(self._level())
            file_handler.setFormatter(get_formatter(self.config.format))
            root_logger.addHandler(file_handler)

    def _configure_structlog(self) -> None:
        # Respect a configuration made by the embedding application or tests
        if structlog.is_configured():
            return

        processors = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]
        if self.config.format.lower() == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    def get_logger(
        self,
        name: str,
        *,
        level: Optional[str] = None,
        enable_correlation: Optional[bool] = None,
    ) -> StructuredLogger:
        """Get or create a structured logger."""
        if not self.initialized:
            self._configure_logging_system()

        cache_key = f"{name}_{level}_{enable_correlation}"
        if cache_key not in self._loggers:
            self._loggers[cache_key] = StructuredLogger(
                name=name,
                level=level or self.config.level,
                enable_correlation=(
                    enable_correlation if enable_correlation is not None else self.config.correlation_ids
                ),
            )
        return self._loggers[cache_key]

    def get_performance_logger(
        self,
        name: str,
        *,
        auto_log: Optional[bool] = None,
        track_metrics: bool = True,
    ) -> PerformanceLogger:
        """Get or create a performance logger."""
        cache_key = f"{name}_{auto_log}_{track_metrics}"
        if cache_key not in self._performance_loggers:
            self._performance_loggers[cache_key] = PerformanceLogger(
                name=name,
                auto_log=auto_log if auto_log is not None else True,
                track_metrics=track_metrics,
                logger=self.get_logger(f"perf.{name}"),
            )
        return self._performance_loggers[cache_key]

    def set_level(self, level: str) -> None:
        """Set the level of the root logger and every cached logger.

        Raises:
            ValidationError: If the level name is unknown
        """
        if not isinstance(getattr(logging, level.upper(), None), int):
            raise ValidationError(f"Invalid log level: {level}")

        self.config.level = level
        for logger in self._loggers.values():
            logger.set_level(level)
        logging.getLogger().setLevel(getattr(logging, level.upper()))

    def shutdown(self) -> None:
        """Drop cached loggers and flush handlers."""
        self._loggers.clear()
        self._performance_loggers.clear()
        logging.shutdown()
        self.initialized = False

    def __repr__(self) -> str:
        return (
            f"LoggerFactory("
            f"level={self.config.level!r}, "
            f"format={self.config.format!r}, "
            f"initialized={self.initialized})"
        )


_global_factory = LoggerFactory()


def configure_logging(
    *,
    level: str = "INFO",
    format: str = "json",
    console_output: bool = True,
    file_output: bool = False,
    file_path: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """Configure DBInterface logging globally.

    Example:
        >>> configure_logging(level="DEBUG", file_output=True, file_path="/var/log/dbi.log")
    """
    _global_factory.configure_from_dict({
        "level": level,
        "format": format,
        "console_output": console_output,
        "file_output": file_output,
        "file_path": file_path,
        **kwargs,
    })


def get_logger(
    name: str,
    *,
    level: Optional[str] = None,
    enable_correlation: Optional[bool] = None,
) -> StructuredLogger:
    """Get or create a structured logger using the global factory."""
    return _global_factory.get_logger(name, level=level, enable_correlation=enable_correlation)


def get_performance_logger(
    name: str,
    *,
    auto_log: Optional[bool] = None,
    track_metrics: bool = True,
) -> PerformanceLogger:
    """Get or create a performance logger using the global factory."""
    return _global_factory.get_performance_logger(
        name, auto_log=auto_log, track_metrics=track_metrics
    )


def get_factory() -> LoggerFactory:
    return _global_factory


def shutdown_logging() -> None:
    _global_factory.shutdown()
