"""Structured logging helpers for the documentation engine.

Library modules obtain a :class:`LoggerAdapter` through :func:`get_logger`.
The adapter injects ``operation`` and ``status`` fields into every record so
degraded parses (skipped member lines, fallback syntax, unresolved cross
references) can be filtered downstream. Handlers are configured only at the
application boundary via :func:`setup_logging`.

Examples
--------
>>> from mdoc.logging import get_logger, with_fields
>>> logger = get_logger(__name__)
>>> logger.info("Parsed unit", extra={"operation": "parse", "unit": "rescale"})
>>> adapter = with_fields(logger, operation="render", unit="rescale")
>>> adapter.debug("Rendering page")
"""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping, MutableMapping

__all__ = [
    "JsonFormatter",
    "LoggerAdapter",
    "get_logger",
    "setup_logging",
    "with_fields",
]

_STANDARD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Each record becomes one JSON object with ``ts``, ``level``, ``name`` and
    ``message`` plus every JSON-compatible extra field attached to the record.

    Examples
    --------
    >>> import logging
    >>> handler = logging.StreamHandler()
    >>> handler.setFormatter(JsonFormatter())
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format ``record`` as a single JSON line.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format. Extra fields live in ``record.__dict__``.

        Returns
        -------
        str
            JSON-encoded log entry.
        """
        data: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + "Z",
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if (
                key not in _STANDARD_ATTRIBUTES
                and key not in data
                and not key.startswith("_")
                and value is not None
                and isinstance(value, (str, int, float, bool, list, dict))
            ):
                data[key] = value
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class LoggerAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter that injects structured context fields.

    Fields bound at construction are merged into the ``extra`` mapping of
    every call without overriding keys the caller passes explicitly. The
    ``operation`` and ``status`` fields are always present; ``status`` is
    inferred from the log level when omitted.

    Parameters
    ----------
    logger : logging.Logger
        Base logger instance to wrap.
    extra : Mapping[str, object] | None, optional
        Structured fields to inject into log entries. Defaults to None.
    """

    logger: logging.Logger

    def __init__(self, logger: logging.Logger, extra: Mapping[str, object] | None = None) -> None:
        super().__init__(logger, dict(extra or {}))

    def process(
        self, msg: object, kwargs: MutableMapping[str, Any]
    ) -> tuple[object, MutableMapping[str, Any]]:
        """Merge bound fields into the call's ``extra`` mapping.

        Parameters
        ----------
        msg : object
            Log message.
        kwargs : MutableMapping[str, Any]
            Keyword arguments of the logging call.

        Returns
        -------
        tuple[object, MutableMapping[str, Any]]
            The message and the updated keyword arguments.
        """
        extra = dict(kwargs.get("extra") or {})
        for key, value in (self.extra or {}).items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs

    def log(self, level: int, msg: object, *args: object, **kwargs: Any) -> None:
        """Log ``msg`` at ``level`` with structured fields."""
        if not self.isEnabledFor(level):
            return
        msg, kwargs = self.process(msg, kwargs)
        self._ensure_operation_and_status(kwargs["extra"], level)
        self.logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: object, *args: object, **kwargs: Any) -> None:
        """Log a debug message with structured fields."""
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: object, *args: object, **kwargs: Any) -> None:
        """Log an info message with structured fields."""
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: object, *args: object, **kwargs: Any) -> None:
        """Log a warning message with structured fields."""
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: object, *args: object, **kwargs: Any) -> None:
        """Log an error message with structured fields."""
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: object, *args: object, exc_info: Any = True, **kwargs: Any) -> None:
        """Log an error with traceback using structured fields."""
        self.log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    @staticmethod
    def _ensure_operation_and_status(extra: dict[str, Any], level: int) -> None:
        if "operation" not in extra:
            extra["operation"] = "unknown"
        if "status" not in extra:
            if level >= logging.ERROR:
                extra["status"] = "error"
            elif level >= logging.WARNING:
                extra["status"] = "warning"
            else:
                extra["status"] = "success"


def get_logger(name: str) -> LoggerAdapter:
    """Get a logger adapter with structured logging support.

    Module-level loggers receive a ``NullHandler`` so importing the library
    never produces output on its own.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__``).

    Returns
    -------
    LoggerAdapter
        Adapter injecting ``operation`` and ``status`` fields.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return LoggerAdapter(logger, {})


def with_fields(logger: logging.Logger | LoggerAdapter, **fields: object) -> LoggerAdapter:
    """Return a structured adapter bound to ``fields``.

    Parameters
    ----------
    logger : logging.Logger | LoggerAdapter
        Base logger to wrap (may already be an adapter).
    **fields : object
        Structured fields to inject into all log entries.

    Returns
    -------
    LoggerAdapter
        Adapter carrying the union of existing and new fields.
    """
    if isinstance(logger, LoggerAdapter):
        merged = dict(logger.extra or {})
        merged.update(fields)
        return LoggerAdapter(logger.logger, merged)
    return LoggerAdapter(logger, fields)


def setup_logging(level: int | str = logging.INFO, *, json_format: bool = False) -> None:
    """Configure the root logger at the application boundary.

    Parameters
    ----------
    level : int | str, optional
        Logging level threshold. Defaults to ``logging.INFO``.
    json_format : bool, optional
        Emit one JSON object per record instead of plain text. Defaults to False.
    """
    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logging.basicConfig(level=level, handlers=[handler], force=True)
