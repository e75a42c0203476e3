from __future__ import annotations

import argparse
import os
import sys
import tempfile
from collections.abc import Sequence
from pathlib import Path

from iconpack.config import DEFAULT_CACHE_DIR
from iconpack.config import DEFAULT_TAG_NAMES
from iconpack.config import MODES
from iconpack.config import MODE_VECTOR
from iconpack.config import OptimizerOptions
from iconpack.config import PackConfig
from iconpack.config import RasterOptions
from iconpack.config import default_workers
from iconpack.errors import IconPackError
from iconpack.errors import InvalidKey
from iconpack.pipeline import CompileResult
from iconpack.pipeline import PipelineCoordinator
from iconpack.tracker import scan_paths


ICONS_MODULE_NAME = "react-iconpack-icons"


def write_module(out_dir: Path, source: str, module_name: str = ICONS_MODULE_NAME) -> Path:
    path = out_dir / f"{module_name}.js"
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(source)
        os.replace(tmp_name, path)
        tmp_name = None
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
    return path


def report(result: CompileResult, warnings: Sequence[str]) -> None:
    for message in warnings:
        print(f"warning: {message}", file=sys.stderr)
    for diagnostic in result.diagnostics:
        print(f"warning: {diagnostic.key}: {diagnostic.kind.value}: {diagnostic.message}", file=sys.stderr)


def add_scan_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("sources", nargs="+", type=Path, help="Source files or directories to scan")
    parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        default=None,
        help=f"JSX tag name that references icons (repeatable, default: {', '.join(DEFAULT_TAG_NAMES)})",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    defaults = RasterOptions()
    optimizer_defaults = OptimizerOptions()
    worker_default = default_workers()

    parser = argparse.ArgumentParser(prog="iconpack", description="Bundle the icons a JS/JSX project references")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="List the icon keys referenced by the sources")
    add_scan_args(scan_parser)

    build_parser = subparsers.add_parser("build", help="Compile referenced icons into a generated module")
    add_scan_args(build_parser)
    build_parser.add_argument("--out", required=True, type=Path, help="Directory that receives the generated module")
    build_parser.add_argument("--mode", choices=MODES, default=MODE_VECTOR)
    build_parser.add_argument("--svg-root", type=Path, default=None, help="Project icon directory, checked before the bundled icons")
    build_parser.add_argument("--precision", type=int, default=optimizer_defaults.precision)
    build_parser.add_argument("--keep-dimensions", action="store_true", help="Do not derive a viewBox from width/height")
    build_parser.add_argument("--drop-view-box", action="store_true", help="Remove the viewBox attribute (breaks scaling)")
    build_parser.add_argument("--width", type=int, default=defaults.width, help="Raster icon width in CSS pixels")
    build_parser.add_argument("--density", type=int, default=defaults.density, help="Raster pixel density multiplier")
    build_parser.add_argument("--quality", default=defaults.quality, help="pngquant quality range, MIN-MAX")
    build_parser.add_argument("--background", default=defaults.background, help="Raster background color (default: transparent)")
    build_parser.add_argument("--no-quantize", action="store_true", help="Skip the pngquant pass")
    build_parser.add_argument("--cache-dir", type=Path, default=DEFAULT_CACHE_DIR)
    build_parser.add_argument("--workers", type=int, default=worker_default, help=f"Transform worker threads (default: {worker_default})")
    build_parser.add_argument("--inflight", type=int, default=None, help="Maximum in-flight transforms before blocking")
    build_parser.add_argument("--strict", action="store_true", help="Fail when any referenced icon cannot be compiled")
    build_parser.add_argument("--verbose", action="store_true")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> PackConfig:
    return PackConfig(
        mode=args.mode,
        tag_names=tuple(args.tags or DEFAULT_TAG_NAMES),
        source_root=args.svg_root,
        optimizer=OptimizerOptions(
            keep_view_box=not args.drop_view_box,
            remove_dimensions=not args.keep_dimensions,
            precision=args.precision,
        ),
        raster=RasterOptions(
            width=args.width,
            density=args.density,
            quality=args.quality,
            background=args.background,
            quantize=not args.no_quantize,
        ),
        verbose=args.verbose,
        cache_dir=args.cache_dir,
        workers=args.workers,
        inflight=args.inflight,
        strict=args.strict,
    )


def run_scan(args: argparse.Namespace) -> None:
    for key in scan_paths(args.sources, tuple(args.tags or DEFAULT_TAG_NAMES)):
        print(key)


def run_build(args: argparse.Namespace) -> None:
    coordinator = PipelineCoordinator(build_config(args))
    for key in scan_paths(args.sources, coordinator.config.tag_names):
        try:
            coordinator.register(key)
        except InvalidKey as exc:
            print(f"warning: skipping {exc}", file=sys.stderr)

    result = coordinator.compile()
    report(result, coordinator.warnings)
    path = write_module(args.out, result.source)
    compiled = len(coordinator.resources.successful())
    print(f"wrote {path}")
    if args.verbose:
        print(f"icons referenced : {len(coordinator.resources)}")
        print(f"icons compiled   : {compiled}")
        print(f"icons failed     : {len(result.failures)}")


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        if args.command == "scan":
            run_scan(args)
        elif args.command == "build":
            run_build(args)
        else:
            raise SystemExit(f"error: unknown command {args.command}")
    except (IconPackError, FileNotFoundError) as exc:
        raise SystemExit(f"error: {exc}") from exc


if __name__ == "__main__":
    main()
