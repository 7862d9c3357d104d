"""Structured logging for loreweave.

Two choices, both read from ObservabilityConfig:

    formatter    structlog (default) | stdlib      how a record is rendered
    destination  stderr (default)    | jsonl       where the rendered line goes

setup_logging() builds one of each and hangs the resulting handler on the
root logger, tagged so a later call (or shutdown_logging) only replaces
its own handler. Library code never touches handlers; it asks for
get_logger(__name__) and logs an event name plus fields:

    logger.info("index.completed", related_id="ch-3", records=2)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from loreweave.observability.config import ObservabilityConfig

_MANAGED_ATTR = "_loreweave_managed"
_FIELDS_ATTR = "_loreweave_fields"
_DEFAULT_JSONL = ".loreweave/loreweave.jsonl"


class LogFormatter(Protocol):
    def setup(self, config: ObservabilityConfig) -> logging.Formatter: ...

    def get_logger(self, name: str, **context: Any) -> Any: ...


class LogDestination(Protocol):
    def create_handler(self, formatter: logging.Formatter) -> logging.Handler: ...

    def shutdown(self) -> None: ...


# ---------------------------------------------------------------------------
# Field-carrying stdlib logger
# ---------------------------------------------------------------------------


class _FieldLogger:
    """stdlib logger with structlog's call shape: event name plus fields.

    Fields travel on the LogRecord, so either formatter can render them,
    including for loggers created at import time before setup_logging().
    """

    def __init__(self, logger: logging.Logger, context: dict[str, Any] | None = None) -> None:
        self._logger = logger
        self._context = dict(context or {})

    def bind(self, **context: Any) -> _FieldLogger:
        return _FieldLogger(self._logger, {**self._context, **context})

    def log(self, level: int, event: str, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        exc_info = fields.pop("exc_info", None)
        if exc_info is True:
            exc_info = sys.exc_info()
        record = self._logger.makeRecord(
            self._logger.name, level, "(unknown)", 0, event, (), exc_info or None
        )
        setattr(record, _FIELDS_ATTR, {**self._context, **fields})
        self._logger.handle(record)

    def debug(self, event: str, **fields: Any) -> None:
        self.log(logging.DEBUG, event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self.log(logging.INFO, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self.log(logging.WARNING, event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self.log(logging.ERROR, event, **fields)

    def exception(self, event: str, **fields: Any) -> None:
        fields.setdefault("exc_info", True)
        self.log(logging.ERROR, event, **fields)


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, _FIELDS_ATTR, None) or {}


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _lift_record_fields(_logger: Any, _method: str, event_dict: dict) -> dict:
    """structlog pre-chain step: copy _FieldLogger fields into the event."""
    record = event_dict.get("_record")
    if record is not None:
        event_dict.update(_record_fields(record))
    return event_dict


class StructlogFormatter:
    """Renders through structlog; stdlib records join via ProcessorFormatter."""

    def setup(self, config: ObservabilityConfig) -> logging.Formatter:
        import structlog

        common = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
        ]
        renderer: Any
        if config.log_format == "console":
            renderer = structlog.dev.ConsoleRenderer()
        else:
            renderer = structlog.processors.JSONRenderer(default=str)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                *common,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        return structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[
                _lift_record_fields,
                structlog.stdlib.add_logger_name,
                *common,
            ],
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )

    def get_logger(self, name: str, **context: Any) -> Any:
        import structlog

        return structlog.get_logger(name).bind(**context) if context else structlog.get_logger(name)


class _JsonLineFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger, event, fields."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
            **_record_fields(record),
        }
        if record.exc_info and record.exc_info[1] is not None:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str, ensure_ascii=False)


class StdlibFormatter:
    """No structlog at runtime: plain stdlib records, JSON or one-line text."""

    def setup(self, config: ObservabilityConfig) -> logging.Formatter:
        if config.log_format == "console":
            return logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        return _JsonLineFormatter()

    def get_logger(self, name: str, **context: Any) -> Any:
        return _FieldLogger(logging.getLogger(name), context)


# ---------------------------------------------------------------------------
# Destinations
# ---------------------------------------------------------------------------


class StderrDestination:
    def __init__(self, config: ObservabilityConfig | None = None) -> None:
        self._handler: logging.Handler | None = None

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        self._handler = logging.StreamHandler(sys.stderr)
        self._handler.setFormatter(formatter)
        return self._handler

    def shutdown(self) -> None:
        if self._handler is not None:
            self._handler.flush()


class JsonlFileDestination:
    """Appends to config.jsonl_path (default .loreweave/loreweave.jsonl)."""

    def __init__(self, config: ObservabilityConfig) -> None:
        self.path = Path(config.jsonl_path or _DEFAULT_JSONL)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handler: logging.FileHandler | None = None

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        self._handler.setFormatter(formatter)
        return self._handler

    def shutdown(self) -> None:
        if self._handler is not None:
            self._handler.close()
            self._handler = None


def _formatter_for(name: str) -> LogFormatter:
    if name == "structlog":
        return StructlogFormatter()
    if name == "stdlib":
        return StdlibFormatter()
    raise ValueError(f"Unknown log formatter: {name!r}. Available: ['structlog', 'stdlib'].")


def _destination_for(config: ObservabilityConfig) -> LogDestination:
    if config.log_destination == "stderr":
        return StderrDestination(config)
    if config.log_destination == "jsonl":
        return JsonlFileDestination(config)
    raise ValueError(
        f"Unknown log destination: {config.log_destination!r}. Available: ['stderr', 'jsonl']."
    )


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

_formatter: LogFormatter | None = None
_destination: LogDestination | None = None


def _drop_managed_handlers(root: logging.Logger) -> None:
    root.handlers = [h for h in root.handlers if not getattr(h, _MANAGED_ATTR, False)]


def setup_logging(config: ObservabilityConfig) -> None:
    """Install the configured formatter and destination on the root logger."""
    global _formatter, _destination

    formatter = _formatter_for(config.log_formatter)
    destination = _destination_for(config)
    handler = destination.create_handler(formatter.setup(config))
    setattr(handler, _MANAGED_ATTR, True)

    # Foreign handlers (pytest caplog) stay attached
    root = logging.getLogger()
    _drop_managed_handlers(root)
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    if _destination is not None:
        _destination.shutdown()
    _formatter, _destination = formatter, destination


def get_logger(name: str = "", **context: Any) -> Any:
    """Logger accepting event-name-plus-fields calls, before or after setup."""
    if _formatter is not None:
        return _formatter.get_logger(name, **context)
    return _FieldLogger(logging.getLogger(name), context)


def shutdown_logging() -> None:
    """Remove the managed root handler and close its destination."""
    global _formatter, _destination
    _drop_managed_handlers(logging.getLogger())
    if _destination is not None:
        _destination.shutdown()
    _formatter = _destination = None
