from __future__ import annotations

import re
from collections.abc import Iterable
from collections.abc import Sequence
from pathlib import Path

from iconpack.config import DEFAULT_TAG_NAMES


SOURCE_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx")
SKIPPED_DIRECTORIES = {"node_modules", ".git"}

URI_ATTRIBUTE = re.compile(
    r"""(?<![\w$-])uri\s*=\s*(?:"([^"]*)"|'([^']*)'|\{\s*(?:"([^"]*)"|'([^']*)'|`([^`$]*)`)\s*\})"""
)


def tag_pattern(tag_names: Sequence[str]) -> re.Pattern[str]:
    names = "|".join(re.escape(name) for name in sorted(set(tag_names), key=lambda name: (-len(name), name)))
    attributes = r"""((?:"[^"]*"|'[^']*'|\{(?:[^{}]|\{[^{}]*\})*\}|[^>"'{])*)"""
    return re.compile(r"<\s*(?:" + names + r")(?=[\s/>])" + attributes + ">")


def scan_source(text: str, tag_names: Sequence[str] = DEFAULT_TAG_NAMES) -> list[str]:
    keys: list[str] = []
    seen: set[str] = set()
    for tag in tag_pattern(tag_names).finditer(text):
        for attribute in URI_ATTRIBUTE.finditer(tag.group(1)):
            key = next(value for value in attribute.groups() if value is not None)
            if key and key not in seen:
                seen.add(key)
                keys.append(key)
    return keys


def iter_source_files(paths: Iterable[Path], extensions: Sequence[str] = SOURCE_EXTENSIONS) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        path = Path(path)
        if path.is_file():
            files.append(path)
            continue
        if not path.is_dir():
            raise FileNotFoundError(f"no such source file or directory: {path}")

        found: list[Path] = []
        for candidate in path.rglob("*"):
            if SKIPPED_DIRECTORIES.intersection(candidate.relative_to(path).parts):
                continue
            if candidate.is_file() and candidate.suffix in extensions:
                found.append(candidate)
        found.sort(key=lambda item: item.relative_to(path).as_posix())
        files.extend(found)
    return files


def scan_paths(
    paths: Iterable[Path],
    tag_names: Sequence[str] = DEFAULT_TAG_NAMES,
    extensions: Sequence[str] = SOURCE_EXTENSIONS,
) -> list[str]:
    keys: list[str] = []
    seen: set[str] = set()
    for source_file in iter_source_files(paths, extensions):
        text = source_file.read_text(encoding="utf-8", errors="replace")
        for key in scan_source(text, tag_names):
            if key not in seen:
                seen.add(key)
                keys.append(key)
    return keys
