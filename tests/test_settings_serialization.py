from __future__ import annotations

import datetime as dt
import decimal
import uuid
import xml.etree.ElementTree as ET

import numpy as np
import pytest

from isolated_settings import SerializationMode, SettingsDecodeError, SettingsEncodeError
from isolated_settings.serialization import decode, encode


def test_portable_blob_is_type_tagged_xml():
    blob = encode({"a": 1, "b": "two"}, SerializationMode.PORTABLE)

    root = ET.fromstring(blob)
    assert root.tag == "settings"
    items = root.findall("item")
    assert [(i.find("key").text, i.find("value").get("type"), i.find("value").text) for i in items] == [
        ("a", "int", "1"),
        ("b", "str", "two"),
    ]


def test_portable_roundtrip_keeps_value_types():
    entries = {
        "none": None,
        "flag": False,
        "big": 2**70,
        "ratio": 0.1,
        "inf": float("inf"),
        "z": complex(1, -2),
        "empty": "",
        "text": "  padded \t",
        "control": "line1\r\nline2\x01",
        "raw": b"\x00\xff",
        "buf": bytearray(b"abc"),
        "list": [1, "x", None],
        "tuple": (1, (2, 3)),
        "set": {1, 2},
        "frozen": frozenset({"a"}),
        "nested": {"w": 900, 3: "int key", ("t", 1): [True]},
        "when": dt.datetime(2026, 1, 2, 3, 4, 5, 6, tzinfo=dt.timezone.utc),
        "day": dt.date(2026, 10, 18),
        "clock": dt.time(12, 30),
        "span": dt.timedelta(days=-1, seconds=5, microseconds=7),
        "price": decimal.Decimal("19.90"),
        "id": uuid.UUID("12345678-1234-5678-1234-567812345678"),
    }

    decoded = decode(encode(entries, SerializationMode.PORTABLE), SerializationMode.PORTABLE)

    assert decoded == entries
    for key, value in entries.items():
        assert type(decoded[key]) is type(value), key
    assert str(decoded["price"]) == "19.90"


def test_portable_roundtrip_numpy_values():
    arr = np.arange(6, dtype=np.int32).reshape(2, 3)
    entries = {"arr": arr, "scalar": np.float32(1.5), "empty": np.zeros((0,), dtype=np.float64)}

    decoded = decode(encode(entries, SerializationMode.PORTABLE), SerializationMode.PORTABLE)

    np.testing.assert_array_equal(decoded["arr"], arr)
    assert decoded["arr"].dtype == np.int32
    assert decoded["arr"].flags.writeable
    assert decoded["scalar"] == np.float32(1.5)
    assert type(decoded["scalar"]) is np.float32
    assert decoded["empty"].shape == (0,)


def test_portable_rejects_unsupported_values():
    with pytest.raises(SettingsEncodeError):
        encode({"obj": object()}, SerializationMode.PORTABLE)
    with pytest.raises(SettingsEncodeError):
        encode({"arr": np.array([object()])}, SerializationMode.PORTABLE)


def test_native_roundtrip_keeps_arbitrary_objects():
    entries = {"when": dt.date(2026, 10, 18), "arr": np.ones(3)}

    decoded = decode(encode(entries, SerializationMode.NATIVE), SerializationMode.NATIVE)

    assert decoded["when"] == entries["when"]
    np.testing.assert_array_equal(decoded["arr"], entries["arr"])


@pytest.mark.parametrize(
    "mode, blob",
    [
        (SerializationMode.PORTABLE, b"<other/>"),
        (SerializationMode.PORTABLE, b'<settings><item><key type="int">1</key><value type="none"/></item></settings>'),
        (SerializationMode.PORTABLE, b'<settings><item><key type="str">a</key><value type="bogus"/></item></settings>'),
        (SerializationMode.PORTABLE, b'<settings><item><key type="str">a</key><value type="bool">yes</value></item></settings>'),
        (SerializationMode.NATIVE, encode({"a": 1}, SerializationMode.PORTABLE)),
    ],
)
def test_decode_rejects_bad_blobs(mode, blob):
    with pytest.raises(SettingsDecodeError):
        decode(blob, mode)


def test_native_decode_rejects_non_mapping_root():
    import pickle

    with pytest.raises(SettingsDecodeError):
        decode(pickle.dumps([1, 2]), SerializationMode.NATIVE)
    with pytest.raises(SettingsDecodeError):
        decode(pickle.dumps({1: "a"}), SerializationMode.NATIVE)


def test_portable_structured_arrays_keep_their_fields():
    arr = np.zeros(2, dtype=[("a", "i4"), ("b", "f4")])
    arr["a"] = [1, 2]
    arr["b"] = [0.5, 1.5]

    decoded = decode(encode({"arr": arr, "row": arr[1]}, SerializationMode.PORTABLE), SerializationMode.PORTABLE)

    assert decoded["arr"].dtype == arr.dtype
    assert decoded["arr"].dtype.names == ("a", "b")
    np.testing.assert_array_equal(decoded["arr"], arr)
    assert decoded["row"]["a"] == 2
    assert decoded["row"]["b"] == np.float32(1.5)


def test_portable_writes_enum_mixins_as_base_values():
    import enum

    class Priority(int, enum.Enum):
        LOW = 1
        HIGH = 2

    class Ratio(float, enum.Enum):
        HALF = 0.5

    class Theme(str, enum.Enum):
        DARK = "dark"

    blob = encode({"p": Priority.HIGH, "r": Ratio.HALF, "t": Theme.DARK}, SerializationMode.PORTABLE)

    assert b"Priority" not in blob and b"Ratio" not in blob and b"Theme" not in blob
    decoded = decode(blob, SerializationMode.PORTABLE)
    assert decoded == {"p": 2, "r": 0.5, "t": "dark"}
    assert type(decoded["p"]) is int
    assert type(decoded["r"]) is float
    assert type(decoded["t"]) is str
