from __future__ import annotations

import json
from collections.abc import Iterable

from iconpack.config import MODE_RASTER
from iconpack.config import MODE_VECTOR
from iconpack.errors import GenerationError
from iconpack.resources import RasterResult
from iconpack.resources import ResourceRecord
from iconpack.resources import VectorResult


HEADER = "// Generated by iconpack. Do not edit."
INDENT = "    "


def js_string(value: str) -> str:
    # ensure_ascii also escapes U+2028/U+2029, which are line terminators in
    # older JavaScript string literals. <, > and & are escaped so the module
    # can be inlined into an HTML <script> block.
    literal = json.dumps(value, ensure_ascii=True)
    return literal.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def vector_entry(key: str, result: VectorResult) -> list[str]:
    view_box = js_string(result.view_box) if result.view_box is not None else "null"
    pad = INDENT * 2
    return [
        f"{pad}{js_string(key)}: {{",
        f"{pad}{INDENT}viewBox: {view_box},",
        f"{pad}{INDENT}markup: {js_string(result.markup)}",
        f"{pad}}}",
    ]


def raster_entry(key: str, result: RasterResult) -> list[str]:
    return [f"{INDENT * 2}{js_string(key)}: {js_string(result.base64_payload)}"]


def emit(records: Iterable[ResourceRecord], mode: str) -> str:
    if mode == MODE_VECTOR:
        expected: type = VectorResult
    elif mode == MODE_RASTER:
        expected = RasterResult
    else:
        raise GenerationError(f"cannot generate a module for unknown mode {mode!r}")

    entries: list[list[str]] = []
    seen: set[str] = set()
    for record in records:
        if not isinstance(record.key, str):
            raise GenerationError(f"icon key {record.key!r} is not a string")
        if record.key in seen:
            raise GenerationError(f"icon key {record.key!r} appears more than once")
        seen.add(record.key)

        result = record.transformed
        if not isinstance(result, expected):
            raise GenerationError(f"icon {record.key!r} has no {mode} result to embed")
        try:
            if isinstance(result, VectorResult):
                entries.append(vector_entry(record.key, result))
            else:
                entries.append(raster_entry(record.key, result))
        except (TypeError, ValueError) as exc:
            raise GenerationError(f"cannot serialize icon {record.key!r}: {exc}") from exc

    lines = [
        HEADER,
        "module.exports = {",
        f"{INDENT}mode: {js_string(mode)},",
    ]
    if not entries:
        lines.append(f"{INDENT}icons: {{}}")
    else:
        lines.append(f"{INDENT}icons: {{")
        for index, entry in enumerate(entries):
            if index < len(entries) - 1:
                entry = entry[:-1] + [entry[-1] + ","]
            lines.extend(entry)
        lines.append(f"{INDENT}}}")
    lines.append("};")
    return "\n".join(lines) + "\n"
