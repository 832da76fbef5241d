"""Logging setup and contextual logger helpers."""

from __future__ import annotations

import logging
from typing import Any

from rich.logging import RichHandler

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ExtraFieldsFormatter(logging.Formatter):
    """Appends structured ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        fields = {key: value for key, value in vars(record).items() if key not in _RESERVED}
        if not fields:
            return message
        rendered = " ".join(f"{key}={value!r}" for key, value in sorted(fields.items()))
        return f"{message} {rendered}"


class FieldsAdapter(logging.LoggerAdapter):
    """Logger adapter that merges bound fields into each call's ``extra``."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def with_fields(logger: logging.Logger | logging.LoggerAdapter, **fields: Any) -> FieldsAdapter:
    """Bind ``fields`` to every record emitted through the returned logger."""
    if isinstance(logger, logging.LoggerAdapter):
        return FieldsAdapter(logger.logger, {**(logger.extra or {}), **fields})
    return FieldsAdapter(logger, fields)


def configure_logging(level: str = "INFO") -> None:
    """Route all records through a rich console handler."""
    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(ExtraFieldsFormatter("%(name)s: %(message)s"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())
    logging.getLogger("discord").setLevel(max(root.level, logging.INFO))
