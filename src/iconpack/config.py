from __future__ import annotations

import json
import os
import re
import tempfile
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from PIL import ImageColor

from iconpack.errors import ConfigError


MODE_VECTOR = "vector"
MODE_RASTER = "raster"
MODES = (MODE_VECTOR, MODE_RASTER)

DEFAULT_TAG_NAMES = ("Icon",)
DEFAULT_EXTENSION = ".svg"
DEFAULT_CACHE_DIR = Path(tempfile.gettempdir()) / "iconpack-cache"

# Bumped whenever the shape of cached results changes.
CACHE_FORMAT_VERSION = 1

QUALITY_PATTERN = re.compile(r"^(\d{1,3})-(\d{1,3})$")


def default_workers() -> int:
    return max(1, min(8, (os.cpu_count() or 1)))


@dataclass(frozen=True)
class OptimizerOptions:
    # Stripping the viewBox breaks proportional scaling of the embedded icon.
    keep_view_box: bool = True
    remove_dimensions: bool = True
    precision: int = 5
    simplify_colors: bool = True
    style_to_xml: bool = True
    collapse_groups: bool = True
    shorten_ids: bool = False
    strip_comments: bool = True
    remove_metadata: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.precision <= 12:
            raise ConfigError(f"optimizer precision must be between 1 and 12, got {self.precision}")


@dataclass(frozen=True)
class RasterOptions:
    width: int = 24
    density: int = 2
    quality: str = "65-80"
    background: str | None = None
    quantize: bool = True

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ConfigError(f"raster width must be positive, got {self.width}")
        if self.density <= 0:
            raise ConfigError(f"raster density must be positive, got {self.density}")

        match = QUALITY_PATTERN.match(self.quality)
        if match is None:
            raise ConfigError(f"raster quality must look like 'MIN-MAX', got {self.quality!r}")
        low, high = int(match.group(1)), int(match.group(2))
        if low > high or high > 100:
            raise ConfigError(f"raster quality range must satisfy 0 <= MIN <= MAX <= 100, got {self.quality!r}")

        if self.background is not None:
            try:
                ImageColor.getrgb(self.background)
            except ValueError as exc:
                raise ConfigError(f"unrecognized raster background color {self.background!r}") from exc

    @property
    def output_width(self) -> int:
        return self.width * self.density


@dataclass(frozen=True)
class PackConfig:
    mode: str = MODE_VECTOR
    tag_names: tuple[str, ...] = DEFAULT_TAG_NAMES
    source_root: Path | None = None
    optimizer: OptimizerOptions = field(default_factory=OptimizerOptions)
    raster: RasterOptions = field(default_factory=RasterOptions)
    verbose: bool = False
    cache_dir: Path = DEFAULT_CACHE_DIR
    workers: int = field(default_factory=default_workers)
    inflight: int | None = None
    strict: bool = False
    extension: str = DEFAULT_EXTENSION

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ConfigError(f"mode must be one of {', '.join(MODES)}; got {self.mode!r}")
        if not self.tag_names:
            raise ConfigError("at least one tag name is required")
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        if self.inflight is not None and self.inflight < 1:
            raise ConfigError(f"inflight must be at least 1, got {self.inflight}")
        if not self.extension.startswith("."):
            raise ConfigError(f"extension must start with '.', got {self.extension!r}")

        # Normalize list inputs so the config stays hashable.
        object.__setattr__(self, "tag_names", tuple(self.tag_names))
        if self.source_root is not None:
            object.__setattr__(self, "source_root", Path(self.source_root))
        object.__setattr__(self, "cache_dir", Path(self.cache_dir))

    @property
    def inflight_limit(self) -> int:
        if self.inflight is not None:
            return self.inflight
        return self.workers * 2

    @property
    def transform_parameters(self) -> OptimizerOptions | RasterOptions:
        if self.mode == MODE_RASTER:
            return self.raster
        return self.optimizer


def transform_identifier(mode: str, parameters: OptimizerOptions | RasterOptions) -> str:
    descriptor = {
        "format": CACHE_FORMAT_VERSION,
        "mode": mode,
        "parameters": asdict(parameters),
    }
    return json.dumps(descriptor, sort_keys=True, separators=(",", ":"))
