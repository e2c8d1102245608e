from __future__ import annotations

from collections.abc import Mapping, Sequence
from json import JSONDecodeError
from typing import Protocol

JSONValue = dict[str, "JSONValue"] | list["JSONValue"] | str | int | float | bool | None

JSONObject = dict[str, JSONValue]

# Anything dump_json_str can serialize. TypedDicts are accepted via Mapping.
_JSONInputValue = str | int | float | bool | None | Mapping[str, object] | Sequence[object]


class InvalidJsonError(ValueError):
    """Raised when JSON parsing fails."""


class JSONTypeError(TypeError):
    """Raised when JSON value has unexpected type during narrowing."""


class _JsonLoads(Protocol):
    def __call__(self, s: str) -> JSONValue: ...


class _JsonDumps(Protocol):
    def __call__(
        self,
        obj: _JSONInputValue,
        *,
        separators: tuple[str, str] | None = ...,
        indent: int | None = ...,
    ) -> str: ...


def _default_json_loads(s: str) -> JSONValue:
    module = __import__("json")
    loads: _JsonLoads = module.loads
    return loads(s)


# Hook for JSON parsing. Tests can override to exercise decode failures.
_json_loads: _JsonLoads = _default_json_loads


def dump_json_str(
    value: _JSONInputValue, *, compact: bool = True, indent: int | None = None
) -> str:
    """Serialize a JSON-compatible value to a JSON string.

    Args:
        value: JSON-serializable value
        compact: If True (default), produce compact JSON without extra whitespace.
                 Ignored if indent is specified.
        indent: If specified, pretty-print with this many spaces of indentation.
    """
    module = __import__("json")
    dumps: _JsonDumps = module.dumps
    if indent is not None:
        return dumps(value, separators=None, indent=indent)
    if compact:
        return dumps(value, separators=(",", ":"), indent=None)
    return dumps(value, separators=None, indent=None)


def load_json_str(raw: str) -> JSONValue:
    try:
        value = _json_loads(raw)
    except JSONDecodeError as exc:
        raise InvalidJsonError("Invalid JSON payload") from exc
    if isinstance(value, (dict, list, str, int, float, bool)) or value is None:
        return value
    raise InvalidJsonError("Invalid JSON payload")


def load_json_bytes(raw: bytes) -> JSONValue:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidJsonError("Invalid JSON payload") from exc
    return load_json_str(text)


def narrow_json_to_dict(value: JSONValue) -> JSONObject:
    """Narrow JSONValue to dict.

    Raises JSONTypeError if value is not a dict.
    """
    if not isinstance(value, dict):
        raise JSONTypeError(f"Expected JSON object, got {type(value).__name__}")
    return value


def narrow_json_to_int(value: JSONValue) -> int:
    """Narrow JSONValue to int.

    Raises JSONTypeError if value is not an int (excludes bool).
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise JSONTypeError(f"Expected JSON integer, got {type(value).__name__}")
    return value


def require_dict(obj: JSONObject, key: str) -> JSONObject:
    """Extract required dict field from JSON object.

    Raises JSONTypeError if field is missing or not a dict.
    """
    value = obj.get(key)
    if value is None:
        raise JSONTypeError(f"Missing required field '{key}'")
    if not isinstance(value, dict):
        raise JSONTypeError(f"Field '{key}' must be an object, got {type(value).__name__}")
    return value


def require_int(obj: JSONObject, key: str) -> int:
    """Extract required int field from JSON object.

    Raises JSONTypeError if field is missing or not an int (excludes bool).
    """
    value = obj.get(key)
    if value is None:
        raise JSONTypeError(f"Missing required field '{key}'")
    if isinstance(value, bool) or not isinstance(value, int):
        raise JSONTypeError(f"Field '{key}' must be an integer, got {type(value).__name__}")
    return value


def require_int_path(obj: JSONObject, path: Sequence[str]) -> int:
    """Walk nested objects along ``path`` and return the integer at its end.

    ``require_int_path(body, ("data", "state", "id"))`` reads ``body.data.state.id``.
    Raises JSONTypeError naming the dotted path when any hop is missing or mistyped.
    """
    if len(path) == 0:
        raise ValueError("path must not be empty")
    current = obj
    try:
        for key in path[:-1]:
            current = require_dict(current, key)
        return require_int(current, path[-1])
    except JSONTypeError as exc:
        dotted = ".".join(path)
        raise JSONTypeError(f"Invalid value at '{dotted}': {exc}") from exc


__all__ = [
    "InvalidJsonError",
    "JSONObject",
    "JSONTypeError",
    "JSONValue",
    "dump_json_str",
    "load_json_bytes",
    "load_json_str",
    "narrow_json_to_dict",
    "narrow_json_to_int",
    "require_dict",
    "require_int",
    "require_int_path",
]
