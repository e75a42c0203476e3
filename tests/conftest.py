from __future__ import annotations

import io
import threading
import time
from pathlib import Path

import pytest
from PIL import Image

from iconpack.cache import ContentAddressedCache
from iconpack.config import OptimizerOptions


SAMPLE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'
    '<path d="M12 2 2 22h20z"/>'
    "</svg>"
)


class CountingOptimizer:
    def __init__(self, delays: dict[str, float] | None = None, fail_on: str | None = None) -> None:
        self.calls = 0
        self.delays = delays or {}
        self.fail_on = fail_on
        self._lock = threading.Lock()

    def __call__(self, text: str, options: OptimizerOptions) -> str:
        with self._lock:
            self.calls += 1
        for marker, delay in self.delays.items():
            if marker in text:
                time.sleep(delay)
        if self.fail_on is not None and self.fail_on in text:
            raise ValueError("not well-formed (invalid token)")
        return text


def make_png(width: int, color: tuple[int, int, int, int] = (255, 0, 0, 128)) -> bytes:
    out = io.BytesIO()
    Image.new("RGBA", (width, width), color).save(out, format="PNG")
    return out.getvalue()


class FakeRasterizer:
    def __init__(self) -> None:
        self.calls: list[int] = []

    def __call__(self, raw: bytes, width: int) -> bytes:
        self.calls.append(width)
        return make_png(width)


def svg_with(body: str, view_box: str = "0 0 24 24") -> str:
    return f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="{view_box}">{body}</svg>'


def write_svg(root: Path, key: str, text: str) -> Path:
    path = root / f"{key}.svg"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def cache(tmp_path: Path) -> ContentAddressedCache:
    return ContentAddressedCache(tmp_path / "cache")


@pytest.fixture
def roots(tmp_path: Path) -> tuple[Path, Path]:
    primary = tmp_path / "primary"
    fallback = tmp_path / "fallback"
    primary.mkdir()
    fallback.mkdir()
    return primary, fallback
