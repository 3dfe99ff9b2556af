# logging_utils.py
"""Logging setup for Lead Radar.

Records are written to stderr so that stdout stays reserved for reports and
JSON results. Run-scoped fields attached through LogContext (the platform and
query being processed) are kept apart from ordinary ``extra`` fields: the JSON
formatter nests them under ``run`` and the text formatter shows the platform
as a tag in front of the message.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional, Tuple

ROOT_LOGGER_NAME = "lead_radar"

# Fields set by LogContext while a platform or query is being processed
RUN_FIELDS = ("platform", "query")

HTTP_LOGGERS = ("urllib3", "urllib3.connectionpool", "requests")

# Attributes every LogRecord carries; anything else arrived through ``extra``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


def _json_safe(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def split_extra(record: logging.LogRecord) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Separate run-context fields from the other extra fields of a record.

    Returns:
        Tuple of (run fields, remaining extra fields), both JSON-safe.
    """
    run: Dict[str, Any] = {}
    extra: Dict[str, Any] = {}
    for key, value in vars(record).items():
        if key in _RECORD_ATTRS or key.startswith("_"):
            continue
        target = run if key in RUN_FIELDS else extra
        target[key] = _json_safe(value)
    return run, extra


class StructuredFormatter(logging.Formatter):
    """Formatter that renders each record as one JSON object per line."""

    def __init__(
        self,
        service_name: str = "lead-radar",
        include_timestamp: bool = True,
        include_extra: bool = True,
    ):
        """Initialize the structured formatter.

        Args:
            service_name: Service name stamped on every entry
            include_timestamp: Whether to include the record time
            include_extra: Whether to include run and extra fields
        """
        super().__init__()
        self.service_name = service_name
        self.include_timestamp = include_timestamp
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {}
        if self.include_timestamp:
            entry["timestamp"] = datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat()

        entry.update(
            service=self.service_name,
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            source=f"{record.filename}:{record.lineno}",
        )

        if self.include_extra:
            run, extra = split_extra(record)
            if run:
                entry["run"] = run
            if extra:
                entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Single-line text records for terminals.

    Extra values longer than ``max_value_length`` characters, typically full
    dork queries, are shortened with an ellipsis.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        use_colors: bool = True,
        show_extra: bool = True,
        max_value_length: int = 80,
        stream: Optional[IO[str]] = None,
    ):
        super().__init__()
        stream = stream or sys.stderr
        self.use_colors = use_colors and stream.isatty()
        self.show_extra = show_extra
        self.max_value_length = max_value_length

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelname, "")
            level = f"{color}{level}{self.RESET}"

        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        run, extra = split_extra(record)

        parts = [clock, level, record.name]
        if "platform" in run:
            parts.append(f"[{run.pop('platform')}]")
        parts.append(record.getMessage())
        line = " ".join(parts)

        if self.show_extra:
            fields = {**run, **extra}
            if fields:
                pairs = " ".join(f"{k}={self._shorten(v)}" for k, v in fields.items())
                line = f"{line} | {pairs}"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"

        return line

    def _shorten(self, value: Any) -> str:
        text = str(value)
        if len(text) <= self.max_value_length:
            return text
        return text[:self.max_value_length - 3] + "..."


def setup_logging(
    level: Optional[str] = None,
    structured: Optional[bool] = None,
    service_name: str = "lead-radar",
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Install a single root handler and return the ``lead_radar`` logger.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL env var, then INFO.
        structured: Whether to emit JSON. Defaults to True unless APP_ENV
                   is 'dev'.
        service_name: Service name for structured entries.
        stream: Output stream. Defaults to stderr.

    Example:
        >>> logger = setup_logging(level="DEBUG", structured=False)
        >>> logger.info("Run started", extra={"platforms": ["linkedin"]})
    """
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    if structured is None:
        structured = os.environ.get("APP_ENV", "dev") != "dev"

    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setLevel(log_level)
    if structured:
        handler.setFormatter(StructuredFormatter(service_name=service_name))
    else:
        handler.setFormatter(HumanReadableFormatter(stream=stream))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    # HTTP libraries only speak up at DEBUG
    http_level = log_level if log_level <= logging.DEBUG else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.debug(
        "Logging configured",
        extra={"log_level": level_name, "structured": structured}
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``lead_radar`` namespace."""
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


class LogContext:
    """Attach run fields to records logged through a ContextAdapter.

    Contexts nest; leaving one restores the fields active before it.

    Example:
        >>> with LogContext(platform="linkedin"):
        ...     with LogContext(query='site:linkedin.com/in "Austin"'):
        ...         logger.info("Fetching page")
    """

    _fields: Dict[str, Any] = {}

    def __init__(self, **fields: Any):
        self.fields = fields
        self._saved: Dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._saved = LogContext._fields
        LogContext._fields = {**self._saved, **self.fields}
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        LogContext._fields = self._saved

    @classmethod
    def current(cls) -> Dict[str, Any]:
        """Copy of the fields currently in effect."""
        return dict(cls._fields)


class ContextAdapter(logging.LoggerAdapter):
    """Logger adapter that merges the active LogContext into ``extra``.

    Values passed explicitly at the call site take precedence.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        kwargs["extra"] = {
            **LogContext.current(),
            **(self.extra or {}),
            **(kwargs.get("extra") or {}),
        }
        return msg, kwargs
