import base64
import enum
import json
import pickle
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from conftest import Mode
from savestash.codec import (
    ARGS_FIELD,
    ENUM_MARKER,
    VARIANT_FIELD,
    Codec,
    CompactBinary,
    StructuredText,
    decode,
    encode,
)
from savestash.errors import EncodeError, PayloadSyntaxError, UnknownEnumError
from savestash.values import EnumValue

SAMPLE = {
    "a": 1,
    "b": [1, 2, {"c": None}],
    "str": "foo",
    "ratio": 1.5,
    "flag": True,
    "nested": {"deep": {"deeper": ["x", "y"]}},
}

FORMATS = [StructuredText(), StructuredText(indent=2), CompactBinary()]


@pytest.mark.parametrize("fmt", FORMATS)
def test_round_trip(fmt, registry):
    assert decode(encode(SAMPLE, fmt, registry), fmt, registry) == SAMPLE


def test_indent_controls_verbosity(registry):
    compact = encode(SAMPLE, StructuredText(), registry)
    pretty = encode(SAMPLE, StructuredText(indent=4), registry)
    assert "\n" not in compact
    assert "\n    " in pretty
    assert json.loads(compact) == json.loads(pretty)


def test_binary_payload_is_plain_ascii(registry):
    text = encode(SAMPLE, CompactBinary(), registry)
    assert text.isascii()
    base64.b64decode(text, validate=True)


def test_enum_marker_layout(registry):
    text = encode({"mode": Mode.ValueA}, StructuredText(), registry)
    assert json.loads(text) == {
        "mode": {ENUM_MARKER: "Mode", VARIANT_FIELD: "ValueA", ARGS_FIELD: []}
    }


@pytest.mark.parametrize("fmt", [StructuredText(), CompactBinary()])
def test_enum_round_trip(fmt, registry):
    obj = {"mode": Mode.ValueA, "modes": [Mode.ValueB, Mode.ValueA]}
    decoded = decode(encode(obj, fmt, registry), fmt, registry)
    assert decoded["mode"] is Mode.ValueA
    assert decoded == obj


@pytest.mark.parametrize("fmt", [StructuredText(), CompactBinary()])
def test_tagged_values_with_arguments(fmt, registry):
    obj = {
        "shape": EnumValue("Shape", "Rect", (3, 4)),
        "wrapped": EnumValue("Shape", "Circle", (Mode.ValueB,)),
    }
    decoded = decode(encode(obj, fmt, registry), fmt, registry)
    assert decoded == obj
    assert decoded["wrapped"].args[0] is Mode.ValueB


def test_top_level_enum(registry):
    fmt = StructuredText()
    assert decode(encode(Mode.ValueB, fmt, registry), fmt, registry) is Mode.ValueB


@pytest.mark.parametrize("fmt", [StructuredText(), CompactBinary()])
def test_unregistered_type_fails_whole_decode(fmt, registry):
    text = encode({"ok": 1, "mode": Mode.ValueA}, fmt, registry)
    registry.unregister("Mode")
    with pytest.raises(UnknownEnumError):
        decode(text, fmt, registry)


def test_remapped_type_name_resolves_through_alias(registry):
    fmt = StructuredText()
    text = json.dumps({"m": {ENUM_MARKER: "GameMode", VARIANT_FIELD: "ValueB", ARGS_FIELD: []}})
    with pytest.raises(UnknownEnumError):
        decode(text, fmt, registry)
    registry.alias("GameMode", "Mode")
    assert decode(text, fmt, registry) == {"m": Mode.ValueB}


def test_malformed_marker_is_syntax_error(registry):
    text = json.dumps({ENUM_MARKER: "Mode", VARIANT_FIELD: 3, ARGS_FIELD: []})
    with pytest.raises(PayloadSyntaxError):
        decode(text, StructuredText(), registry)


def test_int_enum_stays_tagged(registry):
    class Tier(enum.IntEnum):
        LOW = 1
        HIGH = 2

    registry.register(Tier)
    fmt = StructuredText()
    text = encode({"tier": Tier.HIGH}, fmt, registry)
    assert json.loads(text)["tier"][ENUM_MARKER] == "Tier"
    assert decode(text, fmt, registry)["tier"] is Tier.HIGH


def test_invalid_json_is_syntax_error(registry):
    with pytest.raises(PayloadSyntaxError):
        decode("{not json", StructuredText(), registry)


def test_invalid_base64_is_syntax_error(registry):
    with pytest.raises(PayloadSyntaxError):
        decode("{\"a\": 1}", CompactBinary(), registry)
    with pytest.raises(PayloadSyntaxError):
        decode("ünïcode", CompactBinary(), registry)


def test_truncated_pickle_is_syntax_error(registry):
    text = encode(SAMPLE, CompactBinary(), registry)
    raw = base64.b64decode(text)
    truncated = base64.b64encode(raw[: len(raw) // 2]).decode("ascii")
    with pytest.raises(PayloadSyntaxError):
        decode(truncated, CompactBinary(), registry)


def test_binary_refuses_foreign_globals(registry):
    text = base64.b64encode(pickle.dumps({"p": Path("somewhere")})).decode("ascii")
    with pytest.raises(PayloadSyntaxError):
        decode(text, CompactBinary(), registry)


def test_tuples_and_sets(registry):
    obj = {"pair": (1, 2), "tags": {"a", "b"}}
    binary = CompactBinary()
    assert decode(encode(obj, binary, registry), binary, registry) == obj

    text = StructuredText()
    assert decode(encode({"pair": (1, 2)}, text, registry), text, registry) == {"pair": [1, 2]}
    with pytest.raises(EncodeError):
        encode({"tags": {"a"}}, text, registry)


def test_reserved_marker_key_rejected(registry):
    with pytest.raises(EncodeError):
        encode({ENUM_MARKER: "sneaky"}, StructuredText(), registry)


@pytest.mark.parametrize("bad", [{1: "int key"}, {"f": object()}, {"fn": len}])
def test_unrepresentable_values(bad, registry):
    with pytest.raises(EncodeError):
        encode(bad, StructuredText(), registry)


@dataclass
class Audio:
    volume: float = 0.8
    mode: Mode = Mode.ValueA


@dataclass
class Settings:
    audio: Audio = field(default_factory=Audio)
    name: str = "player"


def test_dataclasses_are_flattened(registry):
    fmt = StructuredText()
    decoded = decode(encode(Settings(), fmt, registry), fmt, registry)
    assert decoded == {"audio": {"volume": 0.8, "mode": Mode.ValueA}, "name": "player"}


def test_codec_binds_format_and_registry(registry):
    codec = Codec(CompactBinary(), registry)
    assert codec.decode(codec.encode({"m": Mode.ValueA})) == {"m": Mode.ValueA}
    assert isinstance(Codec().storage_format, StructuredText)


def test_self_referencing_value_is_encode_error(registry):
    looped = {"a": 1}
    looped["self"] = looped
    for fmt in FORMATS:
        with pytest.raises(EncodeError):
            encode(looped, fmt, registry)


def test_overly_deep_value_is_encode_error(registry):
    deep = []
    for _ in range(100_000):
        deep = [deep]
    with pytest.raises(EncodeError):
        encode(deep, StructuredText(), registry)


def test_overly_deep_json_is_syntax_error(registry):
    text = "[" * 100_000 + "]" * 100_000
    with pytest.raises(PayloadSyntaxError):
        decode(text, StructuredText(), registry)


class Perm(enum.Flag):
    R = 4
    W = 2


def test_combined_flag_is_refused(registry):
    registry.register(Perm)
    assert decode(encode({"p": Perm.R}, StructuredText(), registry), StructuredText(), registry) == {"p": Perm.R}
    with pytest.raises(EncodeError):
        encode({"p": Perm.R | Perm.W}, StructuredText(), registry)
