"""
Value Codec

Maps dynamic Python values to the (type, text) pair stored in a meta row
and back. Also validates keys and translates wildcard patterns.
"""

import json
import math
import re
from enum import Enum
from typing import Any, Optional, Pattern, Tuple

from .exceptions import InvalidKey, InvalidType, UnsupportedValueType

MAX_KEY_LENGTH = 128


class ValueType(str, Enum):
    """Type tag persisted next to every value"""

    NULL = "null"
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    ARRAY = "array"

    @classmethod
    def parse(cls, tag: Any) -> "ValueType":
        """Normalize a tag or one of its aliases to a canonical member"""
        if isinstance(tag, cls):
            return tag
        if isinstance(tag, str):
            normalized = tag.strip().lower()
            if normalized in TYPE_ALIASES:
                return TYPE_ALIASES[normalized]
        allowed = ", ".join(sorted(TYPE_ALIASES))
        raise InvalidType(f"Invalid type {tag!r}. Allowed types: {allowed}")


TYPE_ALIASES = {
    "null": ValueType.NULL,
    "string": ValueType.STRING,
    "int": ValueType.INT,
    "integer": ValueType.INT,
    "float": ValueType.FLOAT,
    "double": ValueType.FLOAT,
    "real": ValueType.FLOAT,
    "bool": ValueType.BOOL,
    "boolean": ValueType.BOOL,
    "array": ValueType.ARRAY,
}

_FALSY_PAYLOADS = {"", "0", "false"}


def encode(value: Any) -> Tuple[ValueType, Optional[str]]:
    """
    Encode a value into its stored (type, text) form.

    Args:
        value: None, bool, int, float, str, or a list/dict of those

    Returns:
        Tuple of type tag and text payload (None for the null tag)

    Raises:
        UnsupportedValueType: If the value (or anything nested in it) is not supported
    """
    if isinstance(value, (list, dict)):
        _check_container(value)
        try:
            return ValueType.ARRAY, json.dumps(value, allow_nan=False)
        except ValueError as e:
            raise UnsupportedValueType(f"Array value is not JSON serializable: {e}") from e
    if isinstance(value, bool):
        return ValueType.BOOL, "1" if value else "0"
    if value is None:
        return ValueType.NULL, None
    if isinstance(value, int):
        return ValueType.INT, str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedValueType(f"Non-finite float can't be stored: {value!r}")
        return ValueType.FLOAT, repr(value)
    if isinstance(value, str):
        return ValueType.STRING, value

    raise UnsupportedValueType(f"Unsupported value type: {type(value).__name__}")


def decode(type_tag: Any, text: Optional[str]) -> Any:
    """
    Decode a stored (type, text) pair back into a Python value.

    Raises:
        UnsupportedValueType: For unknown tags or payloads that don't parse
    """
    try:
        value_type = ValueType.parse(type_tag)
    except InvalidType as e:
        raise UnsupportedValueType(f"Unknown type tag {type_tag!r}") from e

    if value_type is ValueType.NULL:
        return None
    if value_type is ValueType.STRING:
        return "" if text is None else text
    if value_type is ValueType.BOOL:
        return text is not None and text.strip().lower() not in _FALSY_PAYLOADS

    if text is None:
        raise UnsupportedValueType(f"Missing payload for {value_type.value} value")

    try:
        if value_type is ValueType.ARRAY:
            return json.loads(text)
        if value_type is ValueType.INT:
            return int(text)
        return float(text)
    except ValueError as e:
        raise UnsupportedValueType(f"Malformed {value_type.value} payload: {text!r}") from e


def validate_key(key: Any) -> str:
    """
    Validate a meta key and return its stored string form.

    Raises:
        InvalidKey: If the key is not a str/int or exceeds 128 characters
    """
    if isinstance(key, bool) or not isinstance(key, (str, int)):
        raise InvalidKey(f"Invalid key type {type(key).__name__}. Allowed: string, integer")

    key = str(key)
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidKey(f"Invalid key length. Key must be below {MAX_KEY_LENGTH + 1} chars")

    return key


def to_glob(pattern: str) -> str:
    """Translate a '*' wildcard pattern into an SQLite GLOB pattern"""
    # only '*' stays special, GLOB metacharacters are bracketed
    return re.sub(r"([?\[\]])", r"[\1]", pattern)


def compile_pattern(pattern: str) -> Pattern[str]:
    """Compile a '*' wildcard pattern into a regular expression"""
    parts = [re.escape(part) for part in pattern.split("*")]
    return re.compile(".*".join(parts), re.DOTALL)


def _check_container(value: Any) -> None:
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise UnsupportedValueType(f"Array keys must be strings, got {type(k).__name__}")
            _check_container(v)
    elif isinstance(value, list):
        for item in value:
            _check_container(item)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedValueType(f"Non-finite float can't be stored: {value!r}")
    elif value is not None and not isinstance(value, (bool, int, str)):
        raise UnsupportedValueType(f"Unsupported value type inside array: {type(value).__name__}")
