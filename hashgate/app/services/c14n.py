"""
Deterministic canonicalization of hash inputs (c14n).

to_bytes() is the single entry point used before any digest or HMAC is
computed. Strings and byte strings pass through untouched (strings are
UTF-8 encoded); every other value is reduced to canonical JSON bytes by
json_c14n_v1. Cache keys and HMACs depend on this output, so any drift
here changes every derived value.

Canonicalization Rules (v1):
1. UTF-8 encoding
2. No whitespace outside strings
3. Mapping keys sorted lexicographically by Unicode codepoint
4. Sequence order preserved as-is (tuples encode like lists)
5. Strings emitted with JSON escaping
6. Numbers use minimal JSON representation (no NaN/Infinity)
7. Booleans as lowercase "true"/"false"
8. None as "null"
9. Dataclass instances encode as a mapping of their fields
10. Pydantic models encode as their JSON-mode model_dump()

Supported leaves: str, int, float, bool, None
Anything else raises CanonicalizationError
"""

import dataclasses
import json
import math
from collections.abc import Mapping
from typing import Any, Dict, FrozenSet, List, Union

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

# A hashable input is a string, a byte string, or a structured value built
# recursively from mappings, sequences, records and scalar leaves.
Scalar = Union[str, int, float, bool, None]
Structured = Union[Scalar, Dict[str, "Structured"], List["Structured"]]
RawInput = Union[str, bytes, bytearray, memoryview, Structured, Any]


class CanonicalizationError(ValueError):
    """Raised when a value cannot be represented canonically."""


def to_bytes(value: RawInput) -> bytes:
    """
    Convert a hash input to its canonical byte form.

    Args:
        value: A string, byte string, or structured value

    Returns:
        The bytes that get hashed for ``value``

    Raises:
        CanonicalizationError: If value contains unsupported types, non-string
            mapping keys, or non-finite floats

    Examples:
        >>> to_bytes("hello")
        b'hello'

        >>> to_bytes({"b": 2, "a": [1, None]})
        b'{"a":[1,null],"b":2}'
    """
    if isinstance(value, str):
        return _encode_utf8(value, "$")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    return json_c14n_v1(value)


def json_c14n_v1(obj: Any) -> bytes:
    """
    Produce deterministic canonical JSON bytes for an object.

    Args:
        obj: A structured value (see module docstring for supported types)

    Returns:
        UTF-8 encoded canonical JSON bytes

    Raises:
        CanonicalizationError: If obj contains unsupported types or non-finite numbers

    Examples:
        >>> json_c14n_v1({"b": 2, "a": 1})
        b'{"a":1,"b":2}'

        >>> json_c14n_v1((1, 2, 3))
        b'[1,2,3]'
    """
    try:
        normalized = _normalize(obj, "$", frozenset())

        canonical_str = json.dumps(
            normalized,
            separators=(',', ':'),
            ensure_ascii=False,
            sort_keys=True,
            allow_nan=False
        )
    except RecursionError as e:
        raise CanonicalizationError("Value is nested too deeply to canonicalize") from e

    return _encode_utf8(canonical_str, "$")


def _encode_utf8(text: str, path: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise CanonicalizationError(f"String at {path} is not valid UTF-8 (lone surrogate)") from e


def _normalize(obj: Any, path: str, active: FrozenSet[int]) -> Structured:
    """
    Recursively reduce obj to plain JSON types, validating as it goes.

    ``active`` holds the ids of the containers on the current path so a
    self-referencing value is reported instead of recursing forever.
    Errors name the path and type of the offending element, never its value.
    """
    if obj is None or isinstance(obj, bool):
        # bool must be checked before int since bool is a subclass of int
        return obj
    elif isinstance(obj, int):
        return obj
    elif isinstance(obj, str):
        _encode_utf8(obj, path)
        return obj
    elif isinstance(obj, float):
        if not math.isfinite(obj):
            raise CanonicalizationError(f"Non-finite float not allowed at {path}")
        return obj
    elif id(obj) in active:
        raise CanonicalizationError(f"Circular reference at {path}")
    elif isinstance(obj, Mapping):
        active = active | {id(obj)}
        result = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise CanonicalizationError(
                    f"Mapping keys must be strings, got {type(key).__name__} at {path}"
                )
            _encode_utf8(key, path)
            result[key] = _normalize(value, f"{path}.{key}", active)
        return result
    elif isinstance(obj, (list, tuple)):
        active = active | {id(obj)}
        return [_normalize(item, f"{path}[{index}]", active) for index, item in enumerate(obj)]
    elif isinstance(obj, BaseModel):
        try:
            dumped = obj.model_dump(mode="json")
        except (PydanticSerializationError, ValueError) as e:
            raise CanonicalizationError(
                f"Model {type(obj).__name__} at {path} is not serializable"
            ) from e
        return _normalize(dumped, path, active | {id(obj)})
    elif dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        fields = {field.name: getattr(obj, field.name) for field in dataclasses.fields(obj)}
        return _normalize(fields, path, active | {id(obj)})
    else:
        raise CanonicalizationError(f"Unsupported type: {type(obj).__name__} at {path}")
