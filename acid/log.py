"""Leveled loggers with pattern formatting and pluggable appenders."""

from __future__ import annotations

import sys
import threading
import time as _time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, TextIO

import yaml

DEFAULT_PATTERN = "%d{%Y-%m-%d %H:%M:%S}%T[ %p%T]%T[%c]%T%t%T%N%T%F%T%T%f:%l%T%m%n"
_DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_REOPEN_INTERVAL = 3


class LogLevel(IntEnum):
    """Severity of a log event; ``UNKNOW`` marks an unrecognised level."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4
    UNKNOW = 5

    def __str__(self) -> str:
        return self.name


def level_from_string(text: str) -> LogLevel:
    """Level named ``text`` (any case), or ``LogLevel.UNKNOW``."""
    try:
        return LogLevel[text.upper()]
    except KeyError:
        return LogLevel.UNKNOW


@dataclass
class LogEvent:
    """One message together with where and when it was produced."""

    level: LogLevel = LogLevel.DEBUG
    content: str = ""
    file: str = ""
    line: int = 0
    thread_id: int = field(default_factory=threading.get_native_id)
    fiber_id: int = 0
    elapse: int = 0
    time: int = field(default_factory=lambda: int(_time.time()))
    thread_name: str = field(default_factory=lambda: threading.current_thread().name)
    logger: Any = None

    def format(self, fmt: str, *args: Any) -> None:
        """Append ``fmt % args`` (printf style) to the content."""
        self.content += fmt % args if args else fmt


_Item = Callable[[Any, LogLevel, LogEvent], str]


def _make_item(spec: str, arg: str | None) -> _Item | None:
    if spec == "d":
        date_format = arg or _DEFAULT_DATE_FORMAT
        return lambda logger, level, event: _time.strftime(
            date_format, _time.localtime(event.time))
    simple: dict[str, _Item] = {
        "m": lambda logger, level, event: event.content,
        "p": lambda logger, level, event: str(level),
        "r": lambda logger, level, event: str(event.elapse),
        "c": lambda logger, level, event: logger.name if logger is not None else "",
        "t": lambda logger, level, event: str(event.thread_id),
        "n": lambda logger, level, event: "\n",
        "f": lambda logger, level, event: event.file,
        "l": lambda logger, level, event: str(event.line),
        "T": lambda logger, level, event: "\t",
        "F": lambda logger, level, event: str(event.fiber_id),
        "N": lambda logger, level, event: event.thread_name,
    }
    return simple.get(spec)


class LogFormatter:
    """Renders events from a pattern.

    ``%m`` message, ``%p`` level, ``%r`` elapsed ms, ``%c`` logger name,
    ``%t`` thread id, ``%n`` newline, ``%d{fmt}`` time, ``%f`` file,
    ``%l`` line, ``%T`` tab, ``%F`` fiber id, ``%N`` thread name, ``%%`` percent.
    """

    def __init__(self, pattern: str = DEFAULT_PATTERN) -> None:
        self.pattern = pattern
        self.error = False
        self._items = self._parse(pattern)

    def _parse(self, pattern: str) -> list[_Item]:
        items: list[_Item] = []
        literal: list[str] = []

        def flush() -> None:
            if literal:
                text = "".join(literal)
                items.append(lambda *_, text=text: text)
                literal.clear()

        i = 0
        length = len(pattern)
        while i < length:
            char = pattern[i]
            if char != "%":
                literal.append(char)
                i += 1
                continue
            if i + 1 == length:
                self.error = True
                literal.append("<<pattern_error>>")
                break
            spec = pattern[i + 1]
            i += 2
            if spec == "%":
                literal.append("%")
                continue
            arg = None
            if i < length and pattern[i] == "{":
                close = pattern.find("}", i)
                if close < 0:
                    self.error = True
                    literal.append("<<pattern_error>>")
                    break
                arg = pattern[i + 1:close]
                i = close + 1
            item = _make_item(spec, arg)
            if item is None:
                self.error = True
                literal.append(f"<<error_format %{spec}>>")
                continue
            flush()
            items.append(item)
        flush()
        return items

    def format(self, logger: Any, level: LogLevel, event: LogEvent) -> str:
        """Render ``event`` as text."""
        return "".join(item(logger, level, event) for item in self._items)


class LogAppender(ABC):
    """Destination for formatted events."""

    def __init__(self, level: LogLevel = LogLevel.DEBUG,
                 formatter: LogFormatter | None = None) -> None:
        self.level = level
        self._lock = threading.RLock()
        self._formatter = formatter
        self._has_formatter = formatter is not None

    @property
    def formatter(self) -> LogFormatter | None:
        with self._lock:
            return self._formatter

    @formatter.setter
    def formatter(self, formatter: LogFormatter | None) -> None:
        with self._lock:
            self._formatter = formatter
            self._has_formatter = formatter is not None

    @property
    def has_formatter(self) -> bool:
        """Whether the formatter was set on this appender itself."""
        return self._has_formatter

    def _render(self, logger: Any, level: LogLevel, event: LogEvent) -> str:
        formatter = self._formatter or LogFormatter()
        return formatter.format(logger, level, event)

    @abstractmethod
    def log(self, logger: Any, level: LogLevel, event: LogEvent) -> None:
        """Emit ``event`` if ``level`` passes this appender's level."""

    def to_yaml(self) -> dict[str, Any]:
        node: dict[str, Any] = {"type": type(self).__name__}
        if self.level != LogLevel.UNKNOW:
            node["level"] = str(self.level)
        if self._has_formatter and self._formatter is not None:
            node["formatter"] = self._formatter.pattern
        return node


class StdoutLogAppender(LogAppender):
    """Writes events to standard output."""

    def log(self, logger: Any, level: LogLevel, event: LogEvent) -> None:
        if level < self.level:
            return
        with self._lock:
            stream: TextIO = sys.stdout
            stream.write(self._render(logger, level, event))
            stream.flush()


class FileLogAppender(LogAppender):
    """Appends events to a file, reopening it every few seconds."""

    def __init__(self, filename: str, level: LogLevel = LogLevel.DEBUG,
                 formatter: LogFormatter | None = None) -> None:
        super().__init__(level, formatter)
        self.filename = filename
        self._stream: TextIO | None = None
        self._last_time = 0.0
        self.reopen()

    def reopen(self) -> bool:
        """Close and reopen the file; return whether it is open."""
        with self._lock:
            if self._stream is not None:
                self._stream.close()
                self._stream = None
            try:
                self._stream = open(self.filename, "a", encoding="utf-8")
            except OSError:
                return False
            return True

    def log(self, logger: Any, level: LogLevel, event: LogEvent) -> None:
        if level < self.level:
            return
        with self._lock:
            now = _time.time()
            if now >= self._last_time + _REOPEN_INTERVAL:
                self.reopen()
                self._last_time = now
            if self._stream is None:
                return
            self._stream.write(self._render(logger, level, event))
            self._stream.flush()

    def close(self) -> None:
        with self._lock:
            if self._stream is not None:
                self._stream.close()
                self._stream = None

    def to_yaml(self) -> dict[str, Any]:
        node = super().to_yaml()
        node["file"] = self.filename
        return node


class Logger:
    """Named logger that forwards events to its appenders or to its root."""

    def __init__(self, name: str = "root") -> None:
        self.name = name
        self.level = LogLevel.DEBUG
        self.root: Logger | None = None
        self._appenders: list[LogAppender] = []
        self._formatter = LogFormatter()
        self._lock = threading.RLock()

    @property
    def appenders(self) -> list[LogAppender]:
        with self._lock:
            return list(self._appenders)

    @property
    def formatter(self) -> LogFormatter:
        with self._lock:
            return self._formatter

    @formatter.setter
    def formatter(self, formatter: LogFormatter | str) -> None:
        if isinstance(formatter, str):
            formatter = LogFormatter(formatter)
        if formatter.error:
            raise ValueError(f"invalid log pattern: {formatter.pattern!r}")
        with self._lock:
            self._formatter = formatter
            for appender in self._appenders:
                if not appender.has_formatter:
                    appender._formatter = formatter

    def log(self, level: LogLevel, event: LogEvent) -> None:
        """Deliver ``event`` if ``level`` passes this logger's level."""
        if level < self.level:
            return
        with self._lock:
            appenders = list(self._appenders)
        if appenders:
            for appender in appenders:
                appender.log(self, level, event)
        elif self.root is not None:
            self.root.log(level, event)

    def debug(self, event: LogEvent) -> None:
        self.log(LogLevel.DEBUG, event)

    def info(self, event: LogEvent) -> None:
        self.log(LogLevel.INFO, event)

    def warn(self, event: LogEvent) -> None:
        self.log(LogLevel.WARN, event)

    def error(self, event: LogEvent) -> None:
        self.log(LogLevel.ERROR, event)

    def fatal(self, event: LogEvent) -> None:
        self.log(LogLevel.FATAL, event)

    def add_appender(self, appender: LogAppender) -> None:
        """Attach ``appender``; it inherits this logger's formatter if it has none."""
        with self._lock:
            if not appender.has_formatter:
                appender._formatter = self._formatter
            self._appenders.append(appender)

    def del_appender(self, appender: LogAppender) -> None:
        with self._lock:
            if appender in self._appenders:
                self._appenders.remove(appender)

    def clear_appenders(self) -> None:
        with self._lock:
            self._appenders.clear()

    def to_yaml(self) -> dict[str, Any]:
        with self._lock:
            node: dict[str, Any] = {"name": self.name}
            if self.level != LogLevel.UNKNOW:
                node["level"] = str(self.level)
            node["formatter"] = self._formatter.pattern
            if self._appenders:
                node["appenders"] = [appender.to_yaml() for appender in self._appenders]
            return node

    def __repr__(self) -> str:
        return f"Logger({self.name!r}, level={self.level})"


class LogManager:
    """Registry of loggers sharing one root that writes to standard output."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.root = Logger("root")
        self.root.add_appender(StdoutLogAppender())
        self._loggers: dict[str, Logger] = {"root": self.root}

    def get_logger(self, name: str) -> Logger:
        """Return the logger ``name``, creating it if needed."""
        with self._lock:
            logger = self._loggers.get(name)
            if logger is None:
                logger = Logger(name)
                logger.root = self.root
                self._loggers[name] = logger
            return logger

    def set_logger(self, logger: Logger) -> None:
        with self._lock:
            if logger.name != "root" and logger.root is None:
                logger.root = self.root
            self._loggers[logger.name] = logger
            if logger.name == "root":
                self.root = logger

    def to_yaml(self) -> list[dict[str, Any]]:
        with self._lock:
            return [logger.to_yaml() for logger in self._loggers.values()]

    def to_string(self) -> str:
        return yaml.safe_dump(self.to_yaml(), sort_keys=False)


_manager = LogManager()


def get_logger(name: str = "root") -> Logger:
    """Logger ``name`` from the process-wide manager."""
    return _manager.get_logger(name)