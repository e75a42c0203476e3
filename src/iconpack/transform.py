from __future__ import annotations

import base64
import io
import re
import shutil
import subprocess
from collections.abc import Callable

from PIL import Image
from PIL import ImageColor
from scour import scour

from iconpack.cache import ContentAddressedCache
from iconpack.cache import fingerprint
from iconpack.config import MODE_RASTER
from iconpack.config import MODE_VECTOR
from iconpack.config import MODES
from iconpack.config import OptimizerOptions
from iconpack.config import RasterOptions
from iconpack.config import transform_identifier
from iconpack.errors import CacheWriteError
from iconpack.errors import MissingOptionalDependency
from iconpack.errors import MissingRequiredDependency
from iconpack.errors import TransformError
from iconpack.errors import UnsupportedMode
from iconpack.resources import RasterResult
from iconpack.resources import TransformResult
from iconpack.resources import VectorResult
from iconpack.resources import result_from_payload


Optimizer = Callable[[str, OptimizerOptions], str]
Rasterizer = Callable[[bytes, int], bytes]
Quantizer = Callable[[bytes, str], "bytes | None"]

# Only the outermost <svg ...> opening tag and the last </svg> closing tag are
# removed; everything between them, nested <svg> elements included, is kept.
OUTER_OPEN_TAG = re.compile(r"<\s*svg\b[^>]*>", re.IGNORECASE)
CLOSE_TAG = re.compile(r"<\s*/\s*svg\s*>", re.IGNORECASE)
VIEW_BOX_ATTR = re.compile(r"""\s\bviewBox\s*=\s*(["'])(.*?)\1""")

PNGQUANT_TIMEOUT_SECONDS = 60


def scour_optimize(text: str, options: OptimizerOptions) -> str:
    scour_options = scour.sanitizeOptions()
    scour_options.digits = options.precision
    scour_options.simple_colors = options.simplify_colors
    scour_options.style_to_xml = options.style_to_xml
    scour_options.group_collapse = options.collapse_groups
    scour_options.shorten_ids = options.shorten_ids
    scour_options.strip_comments = options.strip_comments
    scour_options.remove_metadata = options.remove_metadata
    scour_options.enable_viewboxing = options.remove_dimensions
    scour_options.strip_xml_prolog = True
    scour_options.indent_type = "none"
    scour_options.newlines = False
    return scour.scourString(text, scour_options)


def extract_view_box(markup: str) -> str | None:
    opening = OUTER_OPEN_TAG.search(markup)
    if opening is None:
        return None
    match = VIEW_BOX_ATTR.search(opening.group(0))
    if match is None:
        return None
    return match.group(2)


def drop_view_box(markup: str) -> str:
    opening = OUTER_OPEN_TAG.search(markup)
    if opening is None:
        return markup
    tag = VIEW_BOX_ATTR.sub("", opening.group(0), count=1)
    return markup[: opening.start()] + tag + markup[opening.end() :]


def strip_outer_tag(markup: str) -> str:
    opening = OUTER_OPEN_TAG.search(markup)
    if opening is None:
        return markup.strip()
    if opening.group(0).rstrip(">").rstrip().endswith("/"):
        return ""

    inner = markup[opening.end() :]
    closings = list(CLOSE_TAG.finditer(inner))
    if closings:
        inner = inner[: closings[-1].start()]
    return inner.strip()


def load_rasterizer() -> Rasterizer:
    try:
        import cairosvg
    except (ImportError, OSError) as exc:
        raise MissingRequiredDependency(
            "CairoSVG",
            "raster mode needs it: run `pip install iconpack[raster]` and make sure the cairo library is installed",
        ) from exc

    def rasterize(raw: bytes, width: int) -> bytes:
        return cairosvg.svg2png(bytestring=raw, output_width=width)

    return rasterize


def pngquant_quantizer(executable: str) -> Quantizer:
    def quantize(png: bytes, quality: str) -> bytes | None:
        command = [executable, f"--quality={quality}", "--speed", "3", "-"]
        try:
            completed = subprocess.run(
                command,
                input=png,
                capture_output=True,
                check=False,
                timeout=PNGQUANT_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired):
            return None
        # pngquant exits 99 when it cannot reach the requested quality.
        if completed.returncode != 0 or not completed.stdout:
            return None
        return completed.stdout

    return quantize


def finish_bitmap(png: bytes, background: str | None) -> bytes:
    with Image.open(io.BytesIO(png)) as image:
        image.load()
        bitmap = image.convert("RGBA")

    if background is not None:
        base = Image.new("RGBA", bitmap.size, ImageColor.getcolor(background, "RGBA"))
        bitmap = Image.alpha_composite(base, bitmap)

    out = io.BytesIO()
    bitmap.save(out, format="PNG", optimize=True)
    return out.getvalue()


class TransformEngine:
    def __init__(
        self,
        mode: str,
        optimizer_options: OptimizerOptions | None = None,
        raster_options: RasterOptions | None = None,
        cache: ContentAddressedCache | None = None,
        optimizer: Optimizer | None = None,
        rasterizer: Rasterizer | None = None,
        quantizer: Quantizer | None = None,
    ) -> None:
        if mode not in MODES:
            raise UnsupportedMode(mode)

        self.mode = mode
        self.optimizer_options = optimizer_options or OptimizerOptions()
        self.raster_options = raster_options or RasterOptions()
        self.cache = cache
        self.optimizer = optimizer or scour_optimize
        self.rasterizer = rasterizer
        self.quantizer = quantizer
        self.warnings: list[str] = []

        if mode == MODE_RASTER:
            if self.rasterizer is None:
                self.rasterizer = load_rasterizer()
            if self.raster_options.quantize and self.quantizer is None:
                executable = shutil.which("pngquant")
                if executable is None:
                    missing = MissingOptionalDependency(
                        "pngquant",
                        "install it to quantize rasterized icons; unquantized PNGs will be embedded instead",
                    )
                    self.warnings.append(str(missing))
                else:
                    self.quantizer = pngquant_quantizer(executable)

        parameters = self.raster_options if mode == MODE_RASTER else self.optimizer_options
        self.identifier = transform_identifier(mode, parameters)

    @property
    def can_quantize(self) -> bool:
        return self.mode == MODE_RASTER and self.raster_options.quantize and self.quantizer is not None

    def fingerprint(self, raw: bytes) -> str:
        return fingerprint(raw, self.identifier)

    def transform(self, raw: bytes, notes: list[str] | None = None) -> TransformResult:
        key = self.fingerprint(raw)
        if self.cache is not None:
            payload = self.cache.get(key)
            if payload is not None:
                cached = result_from_payload(payload)
                if cached is not None and self._usable(cached):
                    return cached

        result = self._run(raw)

        if self.cache is not None:
            try:
                self.cache.put(key, result.to_payload())
            except CacheWriteError as exc:
                if notes is not None:
                    notes.append(str(exc))
        return result

    def _usable(self, result: TransformResult) -> bool:
        if self.mode == MODE_VECTOR:
            return isinstance(result, VectorResult)
        # Entries written while pngquant was unavailable are redone once it is.
        return isinstance(result, RasterResult) and (result.quantized or not self.can_quantize)

    def _run(self, raw: bytes) -> TransformResult:
        if self.mode == MODE_VECTOR:
            return self._optimize(raw)
        if self.mode == MODE_RASTER:
            return self._rasterize(raw)
        raise UnsupportedMode(self.mode)

    def _optimize(self, raw: bytes) -> VectorResult:
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise TransformError(f"source is not UTF-8: {exc}") from exc

        try:
            optimized = self.optimizer(text, self.optimizer_options)
        except Exception as exc:
            raise TransformError(f"optimizer failed: {exc}") from exc

        if OUTER_OPEN_TAG.search(optimized) is None:
            raise TransformError("optimized output has no <svg> element")

        view_box = extract_view_box(optimized)
        if not self.optimizer_options.keep_view_box:
            optimized = drop_view_box(optimized)
            view_box = None

        return VectorResult(markup=strip_outer_tag(optimized), view_box=view_box)

    def _rasterize(self, raw: bytes) -> RasterResult:
        options = self.raster_options
        try:
            png = self.rasterizer(raw, options.output_width)
        except Exception as exc:
            raise TransformError(f"rasterizer failed: {exc}") from exc

        try:
            png = finish_bitmap(png, options.background)
        except (OSError, ValueError) as exc:
            raise TransformError(f"rasterizer produced an unreadable bitmap: {exc}") from exc

        quantized = False
        if self.can_quantize:
            reduced = self.quantizer(png, options.quality)
            if reduced:
                png = reduced
                quantized = True

        return RasterResult(base64_payload=base64.b64encode(png).decode("ascii"), quantized=quantized)
