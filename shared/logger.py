"""
ElfProbe Logging
=================

:class:`ProbeLogger` binds a component name (``parser``, ``shell``) to a
stdlib logger in the ``elfprobe`` namespace.  Records are rendered on
stderr through Rich and, when a log file is configured, appended to a
size-rotated file as plain text or JSON lines.

Every record carries the component name and the current *operation*
(``parse``, a shell command name, ...) so a JSON log of a session can be
filtered per stage.

References:
    - Python logging cookbook. https://docs.python.org/3/howto/logging-cookbook.html
    - Rich logging handler. https://rich.readthedocs.io/en/stable/logging.html
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

_STDERR_THEME = Theme(
    {
        "log.level.debug": "dim",
        "log.level.info": "cyan",
        "log.level.warning": "yellow",
        "log.level.error": "bold red",
        "log.level.critical": "reverse bold red",
    }
)

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(operation)s] %(message)s"
_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


class _JSONLinesFormatter(logging.Formatter):
    """Serialise a record as one JSON object per line.

    Keys: ``timestamp``, ``level``, ``logger``, ``message``, then
    ``tool_name`` / ``operation`` when bound, ``extra`` for keyword fields
    passed to the log call and ``exc_info`` for tracebacks.
    """

    _CONTEXT_KEYS = ("tool_name", "operation")

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, _TIME_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in self._CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        fields = getattr(record, "probe_extra", None)
        if fields:
            payload["extra"] = fields
        if record.exc_info and record.exc_info[1] is not None:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _stderr_handler(level: int) -> logging.Handler:
    return RichHandler(
        level=level,
        console=Console(theme=_STDERR_THEME, stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        log_time_format="[%X]",
    )


def _file_handler(
    path: Path, level: int, json_lines: bool, max_bytes: int, backup_count: int
) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    if json_lines:
        handler.setFormatter(_JSONLinesFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt=_TIME_FORMAT))
    return handler


def _level_number(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.WARNING


class ProbeLogger:
    """Component logger for the ElfProbe engine, shell and CLI.

    Usage::

        log = ProbeLogger("parser", log_level="DEBUG")
        with log.operation("parse"), log.timed("ELF64 parse"):
            log.debug("Reading %d section headers", count)

    Keyword arguments given to a log call that are not stdlib logging
    options end up under ``extra`` in JSON output::

        log.info("Loaded symbol table", section=7, count=42)

    Args:
        tool_name:      Component name; the stdlib logger is ``elfprobe.<tool_name>``.
        log_level:      Minimum severity name; unknown names mean WARNING.
        log_file:       Rotating log file, or ``None`` for stderr only.
        json_logs:      Write the log file as JSON lines instead of text.
        max_bytes:      Size at which the log file is rotated.
        backup_count:   Rotated files kept next to the active one.
        console_output: Attach the Rich stderr handler.
    """

    def __init__(
        self,
        tool_name: str,
        *,
        log_level: str = "WARNING",
        log_file: str | Path | None = None,
        json_logs: bool = False,
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
        console_output: bool = True,
    ) -> None:
        self._tool_name = tool_name
        self._operation: str | None = None

        level = _level_number(log_level)
        self._logger = logging.getLogger(f"elfprobe.{tool_name}")
        self._logger.setLevel(level)
        self._logger.propagate = False

        # A logger name is process-global; the newest instance wins.
        for stale in list(self._logger.handlers):
            self._logger.removeHandler(stale)
            stale.close()

        if console_output:
            self._logger.addHandler(_stderr_handler(level))
        if log_file is not None:
            self._logger.addHandler(
                _file_handler(Path(log_file), level, json_logs, max_bytes, backup_count)
            )

    @classmethod
    def from_config(cls, tool_name: str, config: Any, **kwargs: Any) -> ProbeLogger:
        """Build a logger from the ``[global]`` table of a :class:`~shared.config.ProbeConfig`.

        ``debug = true`` forces the DEBUG level.
        """
        settings = config.global_settings
        return cls(
            tool_name,
            log_level="DEBUG" if settings.debug else settings.log_level,
            log_file=settings.log_file,
            json_logs=settings.log_json,
            **kwargs,
        )

    # ------------------------------------------------------------------ #
    #  Scopes
    # ------------------------------------------------------------------ #

    @contextmanager
    def operation(self, name: str) -> Iterator[ProbeLogger]:
        """Tag every record logged inside the block with ``operation=name``."""
        previous, self._operation = self._operation, name
        try:
            yield self
        finally:
            self._operation = previous

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        """Log *label* at DEBUG on entry and again with the elapsed time on exit."""
        start = time.perf_counter()
        self.debug("%s: started", label)
        try:
            yield
        finally:
            self.debug("%s: finished in %.3fs", label, time.perf_counter() - start)

    # ------------------------------------------------------------------ #
    #  Logging
    # ------------------------------------------------------------------ #

    def log(self, level: int, msg: str, *args: Any, **fields: Any) -> None:
        exc_info = fields.pop("exc_info", None)
        stack_info = fields.pop("stack_info", False)
        extra: dict[str, Any] = {
            "tool_name": self._tool_name,
            "operation": self._operation,
        }
        if fields:
            extra["probe_extra"] = fields
        self._logger.log(
            level, msg, *args, exc_info=exc_info, stack_info=stack_info, extra=extra
        )

    def debug(self, msg: str, *args: Any, **fields: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **fields)

    def info(self, msg: str, *args: Any, **fields: Any) -> None:
        self.log(logging.INFO, msg, *args, **fields)

    def warning(self, msg: str, *args: Any, **fields: Any) -> None:
        self.log(logging.WARNING, msg, *args, **fields)

    @property
    def tool_name(self) -> str:
        return self._tool_name

    @property
    def underlying(self) -> logging.Logger:
        """The stdlib :class:`logging.Logger` this instance configures."""
        return self._logger
