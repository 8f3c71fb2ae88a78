"""Configuration registry: parse JSON/YAML documents into registered config objects."""

from __future__ import annotations

import dataclasses
import json
import types
import typing
from typing import Any, Callable

import yaml

from .errors import TrojanError

Creator = Callable[[], Any]

_SUFFIX = "_CONFIG"
_creators: dict[str, Creator] = {}

_NAMED_HINTS: dict[str, Any] = {
    "str": str,
    "int": int,
    "bool": bool,
    "float": float,
    "list": list,
    "dict": dict,
    "Any": Any,
    "object": object,
}


class Context:
    """Immutable chain of key/value pairs; adding a value yields a new context."""

    def __init__(self, parent: "Context | None" = None, key: Any = None, value: Any = None) -> None:
        self._parent = parent
        self._key = key
        self._value = value
        self._has_value = parent is not None

    def with_value(self, key: Any, value: Any) -> "Context":
        """Return a child context carrying key -> value."""
        return Context(self, key, value)

    def value(self, key: Any) -> Any:
        """Return the innermost value stored under key, or None."""
        ctx: Context | None = self
        while ctx is not None:
            if ctx._has_value and ctx._key == key:
                return ctx._value
            ctx = ctx._parent
        return None


def register_config_creator(name: str, creator: Creator) -> None:
    """Register a factory producing the default config object for a module."""
    _creators[name + _SUFFIX] = creator


def _union_args(hint: Any) -> tuple[Any, ...] | None:
    origin = typing.get_origin(hint)
    if origin is typing.Union or (hasattr(types, "UnionType") and isinstance(hint, types.UnionType)):
        return tuple(arg for arg in typing.get_args(hint) if arg is not type(None))
    return None


def _field_hint(field: dataclasses.Field, current: Any) -> Any:
    """Return the declared type of a field, inferring it from the default when only text is known."""
    hint = field.type
    if not isinstance(hint, str):
        return hint
    named = _NAMED_HINTS.get(hint.strip())
    if named is not None:
        return named
    if current is None:
        return Any
    if dataclasses.is_dataclass(current) or isinstance(current, (bool, int, float, str, list, dict)):
        return type(current)
    return Any


def _convert(hint: Any, raw: Any, fmt: str, current: Any) -> Any:
    if raw is None:
        return current
    union = _union_args(hint)
    if union is not None:
        hint = union[0] if union else Any
    if hint is Any or hint is object:
        return raw
    if dataclasses.is_dataclass(hint) and isinstance(hint, type):
        target = current if isinstance(current, hint) else hint()
        return _fill(target, raw, fmt)
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is list or hint is list:
        if not isinstance(raw, list):
            raise TrojanError(f"cannot unmarshal {type(raw).__name__} into a list")
        elem = args[0] if args else Any
        return [_convert(elem, item, fmt, None) for item in raw]
    if origin is dict or hint is dict:
        if not isinstance(raw, dict):
            raise TrojanError(f"cannot unmarshal {type(raw).__name__} into a mapping")
        value_hint = args[1] if len(args) == 2 else Any
        return {str(k): _convert(value_hint, v, fmt, None) for k, v in raw.items()}
    if hint is bool:
        if not isinstance(raw, bool):
            raise TrojanError(f"cannot unmarshal {raw!r} into a bool")
        return raw
    if hint is int:
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise TrojanError(f"cannot unmarshal {raw!r} into an int")
        return raw
    if hint is float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise TrojanError(f"cannot unmarshal {raw!r} into a float")
        return float(raw)
    if hint is str:
        if isinstance(raw, str):
            return raw
        if fmt == "yaml" and isinstance(raw, (bool, int, float)):
            if isinstance(raw, bool):
                return "true" if raw else "false"
            return str(raw)
        raise TrojanError(f"cannot unmarshal {raw!r} into a string")
    return raw


def _fill(target: Any, data: Any, fmt: str) -> Any:
    if not isinstance(data, dict):
        raise TrojanError(f"cannot unmarshal {type(data).__name__} into {type(target).__name__}")
    if isinstance(target, dict):
        target.update(data)
        return target
    if not dataclasses.is_dataclass(target):
        raise TrojanError(f"unsupported config type {type(target).__name__}")
    folded = {str(key).lower(): key for key in data}
    for field in dataclasses.fields(target):
        key = field.metadata.get(fmt, field.name)
        if key == "-":
            continue
        if key in data:
            raw = data[key]
        elif fmt == "json" and key.lower() in folded:
            raw = data[folded[key.lower()]]
        else:
            continue
        current = getattr(target, field.name)
        setattr(target, field.name, _convert(_field_hint(field, current), raw, fmt, current))
    return target


def _parse(document: Any, fmt: str) -> dict[str, Any]:
    return {name: _fill(creator(), document, fmt) for name, creator in _creators.items()}


def _attach(ctx: Context, configs: dict[str, Any]) -> Context:
    for name, cfg in configs.items():
        ctx = ctx.with_value(name, cfg)
    return ctx


def with_json_config(ctx: Context, data: bytes | str) -> Context:
    """Parse JSON into every registered config and attach them to the context."""
    try:
        document = json.loads(data)
    except (ValueError, UnicodeDecodeError) as exc:
        raise TrojanError("invalid json config").base(exc) from exc
    return _attach(ctx, _parse(document, "json"))


def with_yaml_config(ctx: Context, data: bytes | str) -> Context:
    """Parse YAML into every registered config and attach them to the context."""
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise TrojanError("invalid yaml config").base(exc) from exc
    if document is None:
        document = {}
    return _attach(ctx, _parse(document, "yaml"))


def with_config(ctx: Context, name: str, cfg: Any) -> Context:
    """Attach one config object under the module name."""
    return ctx.with_value(name + _SUFFIX, cfg)


def from_context(ctx: Context, name: str) -> Any:
    """Return the config object for a module, or None."""
    return ctx.value(name + _SUFFIX)