from __future__ import annotations

import json

import pytest

from iconpack.emitter import emit
from iconpack.emitter import js_string
from iconpack.errors import GenerationError
from iconpack.resources import RasterResult
from iconpack.resources import ResourceRecord
from iconpack.resources import VectorResult


def vector_record(key: str, markup: str, view_box: str | None = "0 0 24 24") -> ResourceRecord:
    return ResourceRecord(key=key, transformed=VectorResult(markup=markup, view_box=view_box))


def test_vector_module_layout() -> None:
    records = [
        vector_record("a", '<path d="M0 0"/>'),
        vector_record("b", "<g/>", view_box=None),
    ]

    expected = "\n".join(
        [
            "// Generated by iconpack. Do not edit.",
            "module.exports = {",
            '    mode: "vector",',
            "    icons: {",
            '        "a": {',
            '            viewBox: "0 0 24 24",',
            r'            markup: "\u003cpath d=\"M0 0\"/\u003e"',
            "        },",
            '        "b": {',
            "            viewBox: null,",
            r'            markup: "\u003cg/\u003e"',
            "        }",
            "    }",
            "};",
            "",
        ]
    )

    assert emit(records, "vector") == expected


def test_raster_module_layout() -> None:
    records = [
        ResourceRecord(key="x/one", transformed=RasterResult(base64_payload="AAAA", quantized=True)),
        ResourceRecord(key="x/two", transformed=RasterResult(base64_payload="BBBB", quantized=False)),
    ]

    source = emit(records, "raster")

    assert '    mode: "raster",' in source
    assert '        "x/one": "AAAA",\n        "x/two": "BBBB"\n' in source


def test_empty_module() -> None:
    assert emit([], "vector") == (
        "// Generated by iconpack. Do not edit.\n"
        "module.exports = {\n"
        '    mode: "vector",\n'
        "    icons: {}\n"
        "};\n"
    )


def test_order_follows_input_order() -> None:
    forward = emit([vector_record("a", "<g/>"), vector_record("b", "<g/>")], "vector")
    backward = emit([vector_record("b", "<g/>"), vector_record("a", "<g/>")], "vector")

    assert forward.index('"a"') < forward.index('"b"')
    assert backward.index('"b"') < backward.index('"a"')


def test_output_is_deterministic() -> None:
    records = [vector_record("a", "<g/>"), vector_record("b", "<path/>")]

    assert emit(records, "vector") == emit(list(records), "vector")


@pytest.mark.parametrize(
    "value",
    [
        'quote " and backslash \\',
        "line\nbreak\tand\rreturn",
        "separators \u2028 \u2029",
        "</script><!-- & -->",
        "unicode é中",
        "${template} `backtick`",
    ],
)
def test_js_string_escaping_round_trips_and_stays_single_line(value: str) -> None:
    literal = js_string(value)

    assert "\n" not in literal
    assert "\u2028" not in literal and "\u2029" not in literal
    assert "<" not in literal and ">" not in literal and "&" not in literal
    assert literal.isascii()
    assert json.loads(literal) == value


def test_keys_are_escaped() -> None:
    source = emit([vector_record('we"ird</key>', "<g/>")], "vector")

    assert r'"we\"ird\u003c/key\u003e": {' in source


def test_mode_mismatch_raises_generation_error() -> None:
    with pytest.raises(GenerationError):
        emit([vector_record("a", "<g/>")], "raster")


def test_record_without_result_raises_generation_error() -> None:
    with pytest.raises(GenerationError):
        emit([ResourceRecord(key="a")], "vector")


def test_duplicate_keys_raise_generation_error() -> None:
    with pytest.raises(GenerationError):
        emit([vector_record("a", "<g/>"), vector_record("a", "<path/>")], "vector")


def test_unknown_mode_raises_generation_error() -> None:
    with pytest.raises(GenerationError):
        emit([], "bitmap")
