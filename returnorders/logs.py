"""Structured logging: JSON errors to a rotating file, readable lines to stdout."""

from __future__ import annotations

import glob
import gzip
import json
import logging
import os
import shutil
import sys
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Any, Callable

_MEGABYTE = 1024 * 1024
_DEFAULT_MAX_SIZE = 100

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "panic": logging.ERROR + 5,
    "fatal": logging.CRITICAL,
}

_COLOURS = {"debug": 35, "info": 34, "warn": 33, "error": 31, "panic": 31, "fatal": 31}


def _caller(record: logging.LogRecord) -> str:
    folder = os.path.basename(os.path.dirname(record.pathname))
    name = os.path.basename(record.pathname)
    return f"{folder}/{name}:{record.lineno}" if folder else f"{name}:{record.lineno}"


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).astimezone()
        payload = {
            "level": getattr(record, "zap_level", record.levelname.lower()),
            "ts": stamp.isoformat(timespec="seconds"),
            "caller": _caller(record),
            "msg": record.getMessage(),
        }
        payload.update(getattr(record, "fields", {}))
        if record.stack_info:
            payload["stacktrace"] = record.stack_info
        return json.dumps(payload, ensure_ascii=False, default=str)


class _ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).astimezone()
        when = stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{stamp.microsecond // 1000:03d}" + stamp.strftime("%z")
        level = getattr(record, "zap_level", record.levelname.lower())
        coloured = f"\x1b[{_COLOURS.get(level, 31)}m{level.upper()}\x1b[0m"
        line = f"{when}\t{coloured}\t{_caller(record)}\t{record.getMessage()}"
        fields = getattr(record, "fields", {})
        if fields:
            line += "\t" + json.dumps(fields, ensure_ascii=False, default=str)
        if record.stack_info:
            line += "\n" + record.stack_info
        return line


def _gzip_rotate(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


class _RotatingFile(RotatingFileHandler):
    """Size-rotated file with compressed backups pruned by age."""

    def __init__(self, path: str, max_size: int, max_backups: int, max_age: int) -> None:
        super().__init__(
            path,
            maxBytes=(max_size or _DEFAULT_MAX_SIZE) * _MEGABYTE,
            backupCount=max_backups,
            encoding="utf-8",
            delay=True,
        )
        self.namer = lambda name: name + ".gz"
        self.rotator = _gzip_rotate
        self._max_age = max_age

    def _open(self):  # type: ignore[override]
        os.makedirs(os.path.dirname(self.baseFilename) or ".", exist_ok=True)
        return super()._open()

    def doRollover(self) -> None:
        super().doRollover()
        if self._max_age > 0:
            cutoff = time.time() - self._max_age * 86400
            for backup in glob.glob(glob.escape(self.baseFilename) + ".*.gz"):
                if os.path.getmtime(backup) < cutoff:
                    os.remove(backup)


class Logger:
    """A logger that carries a set of fields added to every entry."""

    def __init__(self, logger: logging.Logger, fields: dict[str, Any] | None = None) -> None:
        self._logger = logger
        self._fields = dict(fields or {})

    def _log(self, level: str, msg: str, fields: dict[str, Any]) -> None:
        merged = {**self._fields, **fields}
        self._logger.log(
            _LEVELS[level],
            msg,
            extra={"zap_level": level, "fields": merged},
            stack_info=level == "fatal",
            stacklevel=3,
        )

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log("info", msg, kwargs)

    def warn(self, msg: str, **kwargs: Any) -> None:
        self._log("warn", msg, kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log("debug", msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log("error", msg, kwargs)

    def fatal(self, msg: str, **kwargs: Any) -> None:
        """Log the message, flush, and exit with status 1."""
        self._log("fatal", msg, kwargs)
        self.sync()
        raise SystemExit(1)

    def panic(self, msg: str, **kwargs: Any) -> None:
        """Log the message and raise it as an error."""
        self._log("panic", msg, kwargs)
        self.sync()
        raise RuntimeError(msg)

    def with_fields(self, **kwargs: Any) -> "Logger":
        """Return a logger that adds these fields to every entry."""
        return Logger(self._logger, {**self._fields, **kwargs})

    def sync(self) -> None:
        """Flush every output."""
        for handler in self._logger.handlers:
            handler.flush()


def new_logger(
    service_name: str, log_path: str, max_size: int, max_backups: int, max_age: int
) -> tuple[Logger, Callable[[], None]]:
    """Create a logger and the function that flushes it on shutdown."""
    base = logging.Logger(f"returnorders.{service_name}", logging.DEBUG)
    base.propagate = False

    file_handler = _RotatingFile(log_path, max_size, max_backups, max_age)
    file_handler.setLevel(logging.ERROR)
    file_handler.setFormatter(_JsonFormatter())
    base.addHandler(file_handler)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG)
    console.setFormatter(_ConsoleFormatter())
    base.addHandler(console)

    logger = Logger(base, {"service": service_name})
    return logger, logger.sync