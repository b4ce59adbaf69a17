"""
Structured logging for the styles service.

Every module gets its logger from LoggerFactory. Records are written to
stdout as one JSON object per line; Application Insights picks up the
"customDimensions" member, which always carries the component that logged
and anything passed as extra={'custom_dimensions': {...}}.

Levels:
    STYLES_LOG_LEVEL=<level>   explicit level for every component
    DEBUG_LOGGING=true         DEBUG when STYLES_LOG_LEVEL is unset
    repositories always log at DEBUG so SQL activity is traceable

Exports:
    ComponentType: Service layers that own loggers
    LogLevel: Level names with conversion to logging constants
    JSONFormatter: One-line JSON record formatter
    LoggerFactory: create_logger(component_type, name)
"""

from enum import Enum
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging
import sys
import os
import json

SERVICE_NAME = "ogc-styles"


class ComponentType(Enum):
    """Service layer a logger belongs to."""
    TRIGGER = "trigger"        # HTTP entry points
    SERVICE = "service"        # Negotiation and upsert orchestration
    REGISTRY = "registry"      # Format handler registry
    REPOSITORY = "repository"  # Style storage


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_python_level(self) -> int:
        return getattr(logging, self.value)

    @classmethod
    def from_string(cls, level: str) -> 'LogLevel':
        """
        Raises:
            KeyError: If level is not a known level name
        """
        return cls[level.strip().upper()]


def _configured_level() -> LogLevel:
    explicit = os.getenv('STYLES_LOG_LEVEL')
    if explicit:
        return LogLevel.from_string(explicit)
    if os.getenv('DEBUG_LOGGING', '').lower() == 'true':
        return LogLevel.DEBUG
    return LogLevel.INFO


class JSONFormatter(logging.Formatter):
    """Renders a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'service': SERVICE_NAME,
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}"
        }

        dimensions = getattr(record, 'custom_dimensions', None)
        if dimensions:
            entry['customDimensions'] = dimensions

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry['exception'] = {
                'type': exc_type.__name__,
                'message': str(exc_value),
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(entry, default=str)


class LoggerFactory:
    """
    Creates loggers named "<component>.<name>".

    Example:
        logger = LoggerFactory.create_logger(ComponentType.SERVICE, "StylesService")
        logger.warning("Style rejected", extra={'custom_dimensions': {'style': name}})
    """

    _default_level = _configured_level()

    LEVEL_OVERRIDES = {
        ComponentType.REPOSITORY: LogLevel.DEBUG,
    }

    @classmethod
    def create_logger(
        cls,
        component_type: ComponentType,
        name: str,
        log_level: Optional[LogLevel] = None
    ) -> logging.Logger:
        """
        Args:
            component_type: Layer owning the logger
            name: Class or module name within the layer
            log_level: Explicit level, overrides configuration

        Returns:
            Logger writing JSON to stdout and propagating to the host
        """
        level = log_level or cls.LEVEL_OVERRIDES.get(component_type, cls._default_level)

        logger = logging.getLogger(f"{component_type.value}.{name}")
        logger.setLevel(level.to_python_level())
        cls._attach_stdout_handler(logger, level)
        # Azure's root handler forwards to Application Insights
        logger.propagate = True
        cls._inject_dimensions(logger, {'component_type': component_type.value, 'component_name': name})
        return logger

    @staticmethod
    def _attach_stdout_handler(logger: logging.Logger, level: LogLevel) -> None:
        if any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers):
            return
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level.to_python_level())
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)

    @staticmethod
    def _inject_dimensions(logger: logging.Logger, component: Dict[str, str]) -> None:
        """Wrap Logger._log so every record carries the component dimensions."""
        if getattr(logger, '_styles_dimensions', False):
            return
        emit = logger._log

        def _log(level, msg, args, exc_info=None, extra=None, stack_info=False, stacklevel=1):
            extra = dict(extra or {})
            extra['custom_dimensions'] = {**component, **extra.get('custom_dimensions', {})}
            emit(level, msg, args, exc_info=exc_info, extra=extra,
                 stack_info=stack_info, stacklevel=stacklevel + 1)

        logger._log = _log
        logger._styles_dimensions = True
