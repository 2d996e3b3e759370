"""Encoders for the persisted settings blob.

Two interchangeable formats:

* ``PORTABLE``: a UTF-8 XML document. Every key and value node carries a
  ``type`` attribute so arbitrary values round-trip without a shared schema::

      <settings>
        <item><key type="str">a</key><value type="int">1</value></item>
      </settings>

* ``NATIVE``: a pickle of the plain dict. Compact, but only readable by a
  compatible interpreter, and like any pickle it must only be loaded from a
  container the user owns.
"""

from __future__ import annotations

import ast
import base64
import datetime as dt
import decimal
import pickle
import re
import uuid
import xml.etree.ElementTree as ET
from typing import Any, Callable, Dict, Mapping, Optional

import numpy as np

from .config import SerializationMode
from .errors import SettingsDecodeError, SettingsEncodeError


# Strings with characters XML 1.0 text cannot carry are stored as base64. CR is
# included: the parser folds CR and CRLF into LF.
_XML_UNSAFE_RE = re.compile("[^\t\n\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(text: Optional[str]) -> bytes:
    return base64.b64decode((text or "").encode("ascii"), validate=True)


# Portable writer ---------------------------------------------------------


def _set_dtype(node: ET.Element, dtype: np.dtype) -> None:
    if dtype.fields is not None:
        # Structured dtypes keep their field names and types.
        node.set("descr", repr(np.lib.format.dtype_to_descr(dtype)))
    else:
        node.set("dtype", dtype.str)


def _write_str(node: ET.Element, value: str) -> None:
    node.set("type", "str")
    value = str.__str__(value)
    if _XML_UNSAFE_RE.search(value):
        node.set("encoding", "base64")
        node.text = _b64(value.encode("utf-8", "surrogatepass"))
    else:
        node.text = value


def _write_items(node: ET.Element, mapping: Mapping[Any, Any]) -> None:
    for key, value in mapping.items():
        item = ET.SubElement(node, "item")
        _write_node(ET.SubElement(item, "key"), key)
        _write_node(ET.SubElement(item, "value"), value)


def _write_node(node: ET.Element, value: Any) -> None:
    # numpy checks come first: np.float64 subclasses float, np.str_ subclasses str.
    # Numbers and strings go through the base type so a subclass __str__ or
    # __repr__ (int and str Enum mixins) never reaches the blob.
    if value is None:
        node.set("type", "none")
    elif isinstance(value, np.ndarray):
        if value.dtype.hasobject:
            raise SettingsEncodeError("object arrays cannot be stored in portable mode")
        node.set("type", "numpy.ndarray")
        _set_dtype(node, value.dtype)
        node.set("shape", ",".join(str(n) for n in value.shape))
        node.text = _b64(np.ascontiguousarray(value).tobytes())
    elif isinstance(value, np.generic):
        if value.dtype.hasobject:
            raise SettingsEncodeError("object scalars cannot be stored in portable mode")
        node.set("type", "numpy.scalar")
        _set_dtype(node, value.dtype)
        node.text = _b64(value.tobytes())
    elif isinstance(value, bool):
        node.set("type", "bool")
        node.text = "true" if value else "false"
    elif isinstance(value, int):
        node.set("type", "int")
        node.text = int.__repr__(value)
    elif isinstance(value, float):
        node.set("type", "float")
        node.text = float.__repr__(value)
    elif isinstance(value, complex):
        node.set("type", "complex")
        node.text = complex.__repr__(value)
    elif isinstance(value, str):
        _write_str(node, value)
    elif isinstance(value, (bytes, bytearray)):
        node.set("type", "bytearray" if isinstance(value, bytearray) else "bytes")
        node.text = _b64(bytes(value))
    elif isinstance(value, (list, tuple, set, frozenset)):
        node.set("type", _sequence_tag(value))
        for element in value:
            _write_node(ET.SubElement(node, "value"), element)
    elif isinstance(value, dict):
        node.set("type", "dict")
        _write_items(node, value)
    elif isinstance(value, dt.datetime):
        node.set("type", "datetime")
        node.text = value.isoformat()
    elif isinstance(value, dt.date):
        node.set("type", "date")
        node.text = value.isoformat()
    elif isinstance(value, dt.time):
        node.set("type", "time")
        node.text = value.isoformat()
    elif isinstance(value, dt.timedelta):
        node.set("type", "timedelta")
        node.text = f"{value.days},{value.seconds},{value.microseconds}"
    elif isinstance(value, decimal.Decimal):
        node.set("type", "decimal")
        node.text = str(value)
    elif isinstance(value, uuid.UUID):
        node.set("type", "uuid")
        node.text = str(value)
    else:
        raise SettingsEncodeError(f"cannot store a value of type {type(value).__name__} in portable mode")


_SEQUENCE_TYPES = {list: "list", tuple: "tuple", set: "set", frozenset: "frozenset"}


def _sequence_tag(value: Any) -> str:
    for base, tag in _SEQUENCE_TYPES.items():
        if isinstance(value, base):
            return tag
    raise SettingsEncodeError(f"unsupported sequence type {type(value).__name__}")


# Portable reader ---------------------------------------------------------


def _get_dtype(node: ET.Element) -> np.dtype:
    descr = node.get("descr")
    if descr is not None:
        return np.lib.format.descr_to_dtype(ast.literal_eval(descr))
    return np.dtype(node.get("dtype"))


def _read_str(node: ET.Element) -> str:
    if node.get("encoding") == "base64":
        return _unb64(node.text).decode("utf-8", "surrogatepass")
    return node.text or ""


def _read_bool(node: ET.Element) -> bool:
    text = (node.text or "").strip()
    if text not in ("true", "false"):
        raise ValueError(f"invalid bool literal {text!r}")
    return text == "true"


def _read_ndarray(node: ET.Element) -> np.ndarray:
    shape_attr = node.get("shape", "")
    shape = tuple(int(n) for n in shape_attr.split(",")) if shape_attr else ()
    data = np.frombuffer(_unb64(node.text), dtype=_get_dtype(node))
    return data.reshape(shape).copy()


def _read_numpy_scalar(node: ET.Element) -> np.generic:
    data = np.frombuffer(_unb64(node.text), dtype=_get_dtype(node))
    if data.size != 1:
        raise ValueError("numpy scalar payload does not hold exactly one element")
    return data[0]


def _read_timedelta(node: ET.Element) -> dt.timedelta:
    days, seconds, micros = (int(part) for part in (node.text or "").split(","))
    return dt.timedelta(days=days, seconds=seconds, microseconds=micros)


def _read_items(node: ET.Element) -> Dict[Any, Any]:
    out: Dict[Any, Any] = {}
    for item in node:
        if item.tag != "item":
            raise ValueError(f"unexpected element <{item.tag}>")
        key_node = item.find("key")
        value_node = item.find("value")
        if key_node is None or value_node is None:
            raise ValueError("item without key or value")
        out[_read_node(key_node)] = _read_node(value_node)
    return out


def _read_children(node: ET.Element) -> list:
    return [_read_node(child) for child in node]


_READERS: Dict[str, Callable[[ET.Element], Any]] = {
    "none": lambda node: None,
    "bool": _read_bool,
    "int": lambda node: int(node.text or ""),
    "float": lambda node: float(node.text or ""),
    "complex": lambda node: complex(node.text or ""),
    "str": _read_str,
    "bytes": lambda node: _unb64(node.text),
    "bytearray": lambda node: bytearray(_unb64(node.text)),
    "list": _read_children,
    "tuple": lambda node: tuple(_read_children(node)),
    "set": lambda node: set(_read_children(node)),
    "frozenset": lambda node: frozenset(_read_children(node)),
    "dict": _read_items,
    "datetime": lambda node: dt.datetime.fromisoformat(node.text or ""),
    "date": lambda node: dt.date.fromisoformat(node.text or ""),
    "time": lambda node: dt.time.fromisoformat(node.text or ""),
    "timedelta": _read_timedelta,
    "decimal": lambda node: decimal.Decimal(node.text or ""),
    "uuid": lambda node: uuid.UUID(node.text or ""),
    "numpy.ndarray": _read_ndarray,
    "numpy.scalar": _read_numpy_scalar,
}


def _read_node(node: ET.Element) -> Any:
    tag = node.get("type")
    reader = _READERS.get(tag or "")
    if reader is None:
        raise ValueError(f"unknown value type {tag!r}")
    return reader(node)


# Public API --------------------------------------------------------------


def encode_portable(entries: Mapping[str, Any]) -> bytes:
    root = ET.Element("settings")
    _write_items(root, entries)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def decode_portable(blob: bytes) -> Dict[str, Any]:
    root = ET.fromstring(blob)
    if root.tag != "settings":
        raise ValueError(f"unexpected root element <{root.tag}>")
    return _read_items(root)


def encode_native(entries: Mapping[str, Any]) -> bytes:
    try:
        return pickle.dumps(dict(entries), protocol=pickle.HIGHEST_PROTOCOL)
    except (pickle.PicklingError, TypeError, AttributeError) as exc:
        raise SettingsEncodeError(f"cannot store settings in native mode: {exc}") from exc


def decode_native(blob: bytes) -> Dict[str, Any]:
    return pickle.loads(blob)


def encode(entries: Mapping[str, Any], mode: SerializationMode) -> bytes:
    """Encode the whole mapping with ``mode``."""
    if SerializationMode(mode) is SerializationMode.PORTABLE:
        return encode_portable(entries)
    return encode_native(entries)


def decode(blob: bytes, mode: SerializationMode) -> Dict[str, Any]:
    """Decode a blob written by :func:`encode`.

    Raises :class:`SettingsDecodeError` for anything that is not a mapping of
    string keys, whatever the underlying failure was.
    """
    try:
        if SerializationMode(mode) is SerializationMode.PORTABLE:
            data = decode_portable(blob)
        else:
            data = decode_native(blob)
    except Exception as exc:
        raise SettingsDecodeError(f"cannot decode {SerializationMode(mode).value} settings: {exc}") from exc

    if not isinstance(data, dict):
        raise SettingsDecodeError(f"settings root is {type(data).__name__}, not a mapping")
    bad = [k for k in data if not isinstance(k, str)]
    if bad:
        raise SettingsDecodeError(f"settings keys must be strings, got {type(bad[0]).__name__}")
    return dict(data)
