"""
Value encoding for the settings table.

The value column only holds scalars, so richer values are encoded before
they are written:

- Serialization disabled: booleans and None are stored as the sentinel
  strings ``|true|``, ``|false|`` and ``|null|``; other scalars are stored
  as-is.
- Serialization enabled: every value goes through a structured codec
  (JSON by default, PHP ``serialize()`` format for tables
  shared with PHP applications).
"""
import json
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from settings_store.errors import CodecError, UnsupportedValueTypeError

TRUE_SENTINEL = "|true|"
FALSE_SENTINEL = "|false|"
NULL_SENTINEL = "|null|"

_SENTINEL_VALUES = {
    TRUE_SENTINEL: True,
    FALSE_SENTINEL: False,
    NULL_SENTINEL: None,
}

SCALAR_TYPES = (str, int, float, bool)


def is_scalar(value: Any) -> bool:
    """Return True for str/int/float/bool and None"""
    return value is None or isinstance(value, SCALAR_TYPES)


def encode_scalar(value: Any) -> Any:
    """Convert booleans and None into their sentinel strings"""
    if value is True:
        return TRUE_SENTINEL
    if value is False:
        return FALSE_SENTINEL
    if value is None:
        return NULL_SENTINEL
    return value


def decode_scalar(raw: Any) -> Any:
    """Convert sentinel strings back; everything else passes through"""
    if isinstance(raw, str) and raw in _SENTINEL_VALUES:
        return _SENTINEL_VALUES[raw]
    return raw


class ValueCodec(ABC):
    """Structured value codec used when serialization is enabled"""

    name = "base"

    @abstractmethod
    def looks_encoded(self, raw: Any) -> bool:
        """Whether a raw column value looks like output of encode()"""

    @abstractmethod
    def encode(self, value: Any) -> str:
        """Encode any supported value into a string"""

    @abstractmethod
    def decode(self, raw: Any) -> Any:
        """Decode a string produced by encode()"""


class PhpSerializeCodec(ValueCodec):
    """
    Reads and writes PHP's serialize() text format.

    Keeps tables written by PHP applications readable. Lists are written as
    0-based arrays; arrays whose keys are exactly 0..n-1 are read back as
    lists, any other array as a dict. Objects are read as dicts of their
    properties.
    """

    name = "php"

    _SERIALIZED_RE = re.compile(r"^(?:[isdb]:.*;|[ao]:.*[;}]|N;)", re.IGNORECASE | re.DOTALL)

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def looks_encoded(self, raw: Any) -> bool:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode(self.encoding)
            except UnicodeDecodeError:
                return False
        if not isinstance(raw, str) or not raw.strip():
            return False
        return self._SERIALIZED_RE.match(raw) is not None

    # Encoding

    def encode(self, value: Any) -> str:
        return self._encode(value).decode(self.encoding)

    def _encode(self, value: Any) -> bytes:
        if value is None:
            return b"N;"
        if isinstance(value, bool):
            return b"b:1;" if value else b"b:0;"
        if isinstance(value, int):
            return b"i:%d;" % value
        if isinstance(value, float):
            return b"d:" + self._encode_float(value) + b";"
        if isinstance(value, str):
            data = value.encode(self.encoding)
            return b's:%d:"' % len(data) + data + b'";'
        if isinstance(value, (list, tuple)):
            return self._encode_array(list(enumerate(value)))
        if isinstance(value, dict):
            return self._encode_array(list(value.items()))
        raise CodecError(f"Cannot serialize value of type {type(value).__name__}")

    def _encode_float(self, value: float) -> bytes:
        if math.isnan(value):
            return b"NAN"
        if math.isinf(value):
            return b"INF" if value > 0 else b"-INF"
        return repr(value).encode("ascii")

    def _encode_array(self, items: List[Tuple[Any, Any]]) -> bytes:
        parts = [b"a:%d:{" % len(items)]
        for key, item in items:
            if isinstance(key, bool) or not isinstance(key, (int, str)):
                raise CodecError(f"Array keys must be int or str, got {type(key).__name__}")
            parts.append(self._encode(key))
            parts.append(self._encode(item))
        parts.append(b"}")
        return b"".join(parts)

    # Decoding

    def decode(self, raw: Any) -> Any:
        data = raw if isinstance(raw, bytes) else str(raw).encode(self.encoding)
        value, pos = self._parse(data, 0)
        if pos != len(data):
            raise CodecError(f"Unexpected trailing data at offset {pos}")
        return value

    def _read_until(self, data: bytes, pos: int, delimiter: bytes) -> Tuple[bytes, int]:
        end = data.find(delimiter, pos)
        if end == -1:
            raise CodecError(f"Expected {delimiter!r} after offset {pos}")
        return data[pos:end], end + len(delimiter)

    def _expect(self, data: bytes, pos: int, token: bytes) -> int:
        if data[pos:pos + len(token)] != token:
            raise CodecError(f"Expected {token!r} at offset {pos}")
        return pos + len(token)

    def _parse(self, data: bytes, pos: int) -> Tuple[Any, int]:
        tag = data[pos:pos + 1].lower()

        if tag == b"n":
            return None, self._expect(data, pos + 1, b";")

        pos = self._expect(data, pos + 1, b":")

        try:
            if tag == b"b":
                chunk, pos = self._read_until(data, pos, b";")
                return chunk != b"0", pos
            if tag == b"i":
                chunk, pos = self._read_until(data, pos, b";")
                return int(chunk), pos
            if tag == b"d":
                chunk, pos = self._read_until(data, pos, b";")
                return float(chunk), pos
            if tag == b"s":
                return self._parse_string(data, pos)
            if tag == b"a":
                return self._parse_array(data, pos)
            if tag == b"o":
                # Class name is dropped, properties become a dict
                _, pos = self._parse_string(data, pos, terminator=b":")
                members, pos = self._parse_members(data, pos)
                return {self._property_name(k): v for k, v in members}, pos
        except ValueError as exc:
            if isinstance(exc, CodecError):
                raise
            raise CodecError(f"Malformed serialized value near offset {pos}: {exc}") from exc

        raise CodecError(f"Unsupported serialized type {tag!r} at offset {pos - 2}")

    def _parse_string(self, data: bytes, pos: int, terminator: bytes = b";") -> Tuple[str, int]:
        length, pos = self._read_until(data, pos, b":")
        size = int(length)
        pos = self._expect(data, pos, b'"')
        chunk = data[pos:pos + size]
        if len(chunk) != size:
            raise CodecError(f"String of length {size} truncated at offset {pos}")
        pos = self._expect(data, pos + size, b'"' + terminator)
        try:
            return chunk.decode(self.encoding), pos
        except UnicodeDecodeError as exc:
            raise CodecError(f"Invalid {self.encoding} string at offset {pos}") from exc

    def _parse_members(self, data: bytes, pos: int) -> Tuple[List[Tuple[Any, Any]], int]:
        count, pos = self._read_until(data, pos, b":")
        pos = self._expect(data, pos, b"{")
        members = []
        for _ in range(int(count)):
            key, pos = self._parse(data, pos)
            if not isinstance(key, (int, str)) or isinstance(key, bool):
                raise CodecError(f"Invalid array key {key!r}")
            item, pos = self._parse(data, pos)
            members.append((key, item))
        return members, self._expect(data, pos, b"}")

    def _parse_array(self, data: bytes, pos: int) -> Tuple[Any, int]:
        members, pos = self._parse_members(data, pos)
        if [key for key, _ in members] == list(range(len(members))):
            return [item for _, item in members], pos
        result: Dict[Any, Any] = {}
        for key, item in members:
            result[key] = item
        return result, pos

    @staticmethod
    def _property_name(name: Any) -> Any:
        # protected/private members are prefixed with "\0*\0" / "\0Class\0"
        if isinstance(name, str) and "\0" in name:
            return name.rsplit("\0", 1)[-1]
        return name


class JsonCodec(ValueCodec):
    """
    Stores structured values as JSON text.

    Only values that read back equal are accepted: None, bool, int, finite
    float, str, lists and dicts with str keys.
    """

    name = "json"

    _NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?([eE][+-]?\d+)?$")

    def looks_encoded(self, raw: Any) -> bool:
        if not isinstance(raw, str):
            return False
        text = raw.strip()
        if not text:
            return False
        if text[0] in "{[\"" or text in ("true", "false", "null"):
            return True
        return self._NUMBER_RE.match(text) is not None

    def _check(self, value: Any, path: str = "value") -> None:
        if value is None or isinstance(value, (bool, int, str)):
            return
        if isinstance(value, float):
            if not math.isfinite(value):
                raise CodecError(f"{path}: non-finite float cannot be stored as JSON")
            return
        if isinstance(value, list):
            for index, item in enumerate(value):
                self._check(item, f"{path}[{index}]")
            return
        if isinstance(value, dict):
            for key, item in value.items():
                if not isinstance(key, str):
                    raise CodecError(f"{path}: dict keys must be str, got {type(key).__name__}")
                self._check(item, f"{path}[{key!r}]")
            return
        raise CodecError(f"{path}: cannot store {type(value).__name__} as JSON")

    def encode(self, value: Any) -> str:
        self._check(value)
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise CodecError(f"Cannot serialize value of type {type(value).__name__}: {exc}") from exc

    def decode(self, raw: Any) -> Any:
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise CodecError(f"Malformed JSON value: {exc}") from exc


def get_codec(name: str) -> ValueCodec:
    """Look up a structured codec by name ("php" or "json")"""
    codecs = {
        PhpSerializeCodec.name: PhpSerializeCodec,
        JsonCodec.name: JsonCodec,
    }
    if name not in codecs:
        raise CodecError(f"Unknown codec: {name}")
    return codecs[name]()


def encode_value(value: Any, serialize: bool, codec: Optional[ValueCodec] = None) -> Any:
    """
    Encode a setting value for storage

    Raises:
        UnsupportedValueTypeError: non-scalar value with serialization disabled
        CodecError: the codec cannot represent the value
    """
    if not serialize:
        if not is_scalar(value):
            raise UnsupportedValueTypeError(value)
        return encode_scalar(value)
    return (codec or JsonCodec()).encode(value)


def decode_value(raw: Any, serialize: bool, codec: Optional[ValueCodec] = None) -> Any:
    """Decode a raw column value into the setting's value"""
    if not serialize:
        return decode_scalar(raw)
    codec = codec or JsonCodec()
    if codec.looks_encoded(raw):
        return codec.decode(raw)
    return raw
