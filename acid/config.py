"""Named, typed configuration variables loaded from YAML."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Any, Callable, Iterator

import yaml

from .lexical_cast import lexical_cast

_logger = logging.getLogger(__name__)

_NAME_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789._")
_listener_ids: Iterator[int] = itertools.count(1)
_listener_ids_lock = threading.Lock()

_registry: dict[str, "ConfigVar"] = {}
_registry_lock = threading.RLock()


def _dump(node: Any) -> str:
    return yaml.safe_dump(node, default_flow_style=False, sort_keys=False).rstrip("\n")


def _scalar_text(node: Any) -> str:
    """Text of a YAML node as it would appear in the document."""
    if isinstance(node, bool):
        return "true" if node else "false"
    if node is None:
        return ""
    if isinstance(node, (list, dict)):
        return _dump(node)
    return str(node)


def _decode(text: str, template: Any) -> Any:
    """Parse ``text`` into a value shaped like ``template``."""
    if isinstance(template, dict):
        node = yaml.safe_load(text)
        if node is None:
            node = {}
        if not isinstance(node, dict):
            raise ValueError(f"expected a mapping: {text!r}")
        sample = next(iter(template.values()), None)
        return {str(key): _decode(_scalar_text(item), sample) for key, item in node.items()}
    if isinstance(template, (list, tuple, set, frozenset)):
        node = yaml.safe_load(text)
        if node is None:
            node = []
        if not isinstance(node, list):
            raise ValueError(f"expected a sequence: {text!r}")
        sample = next(iter(template), None)
        return type(template)(_decode(_scalar_text(item), sample) for item in node)
    if template is None:
        return yaml.safe_load(text)
    return lexical_cast(text, type(template))


def _encode(value: Any) -> str:
    """Render ``value`` as YAML text (scalars as plain text)."""
    if isinstance(value, dict):
        node = {
            str(key): yaml.safe_load(_encode(item))
            for key, item in sorted(value.items(), key=lambda kv: str(kv[0]))
        }
        return _dump(node)
    if isinstance(value, (set, frozenset)):
        items = sorted(value)
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        return lexical_cast(value, str)
    return _dump([yaml.safe_load(_encode(item)) for item in items])


class ConfigVar:
    """A named configuration value with change listeners."""

    def __init__(self, name: str, value: Any, description: str = "") -> None:
        self.name = name
        self.description = description
        self._kind = type(value)
        self._value = value
        self._listeners: dict[int, Callable[[Any, Any], None]] = {}
        self._lock = threading.RLock()

    @property
    def type_name(self) -> str:
        return self._kind.__name__

    @property
    def value(self) -> Any:
        with self._lock:
            return self._value

    @value.setter
    def value(self, new: Any) -> None:
        with self._lock:
            if new == self._value:
                return
            for callback in list(self._listeners.values()):
                callback(self._value, new)
            self._value = new

    def to_string(self) -> str:
        """Return the value as text, or ``""`` if it cannot be rendered."""
        try:
            with self._lock:
                return _encode(self._value)
        except Exception as exc:  # noqa: BLE001 - reported and swallowed by design
            _logger.error("ConfigVar.to_string exception %s convert: %s to string",
                          exc, self.type_name)
        return ""

    def from_string(self, text: str) -> bool:
        """Parse ``text`` and assign it; return whether that succeeded."""
        try:
            self.value = _decode(text, self.value)
            return True
        except Exception as exc:  # noqa: BLE001 - reported and swallowed by design
            _logger.error("ConfigVar.from_string exception %s convert: string to %s",
                          exc, self.type_name)
        return False

    def add_listener(self, callback: Callable[[Any, Any], None]) -> int:
        """Register ``callback(old, new)``; return its key."""
        with _listener_ids_lock:
            key = next(_listener_ids)
        with self._lock:
            self._listeners[key] = callback
        return key

    def remove_listener(self, key: int) -> None:
        with self._lock:
            self._listeners.pop(key, None)

    def clear_listeners(self) -> None:
        with self._lock:
            self._listeners.clear()

    def get_listener(self, key: int) -> Callable[[Any, Any], None] | None:
        with self._lock:
            return self._listeners.get(key)

    def __repr__(self) -> str:
        return f"ConfigVar({self.name!r}, {self.value!r})"


def lookup(name: str, default: Any, description: str = "") -> ConfigVar:
    """Return the variable ``name``, creating it with ``default`` if absent.

    Raises ``TypeError`` if it exists with another type and ``ValueError``
    if the name holds characters other than ``[a-z0-9._]``.
    """
    with _registry_lock:
        existing = _registry.get(name)
        if existing is not None:
            if existing._kind is type(default):
                _logger.info("lookup name=%s already exist", name)
                return existing
            _logger.error("lookup name=%s already exist but type not %s real type=%s value: %s",
                          name, type(default).__name__, existing.type_name,
                          existing.to_string())
            raise TypeError(f"config {name!r} already exists with type {existing.type_name}")
        if any(char not in _NAME_CHARS for char in name):
            _logger.error("lookup invalid name %s", name)
            raise ValueError(name)
        var = ConfigVar(name, default, description)
        _registry[name] = var
        return var


def find(name: str) -> ConfigVar | None:
    """Return the variable ``name`` or ``None``."""
    with _registry_lock:
        return _registry.get(name)


def _flatten(prefix: str, node: Any, out: list[tuple[str, Any]]) -> None:
    if any(char not in _NAME_CHARS for char in prefix):
        _logger.error("config invalid name: %s", prefix)
        return
    out.append((prefix, node))
    if isinstance(node, dict):
        for key, child in node.items():
            _flatten(f"{prefix}.{key}" if prefix else str(key), child, out)


def load_from_yaml(root: Any) -> None:
    """Assign every registered variable whose dotted path appears in ``root``."""
    members: list[tuple[str, Any]] = []
    _flatten("", root, members)
    for key, node in members:
        if not key:
            continue
        var = find(key)
        if var is not None:
            var.from_string(_scalar_text(node))


def load_from_file(path: str) -> None:
    """Read a YAML file and apply it with :func:`load_from_yaml`."""
    with open(path, encoding="utf-8") as handle:
        root = yaml.safe_load(handle)
    load_from_yaml(root if root is not None else {})


def visit(callback: Callable[[ConfigVar], None]) -> None:
    """Call ``callback`` for every registered variable."""
    with _registry_lock:
        variables = list(_registry.values())
    for var in variables:
        callback(var)