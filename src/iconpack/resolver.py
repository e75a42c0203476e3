from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from iconpack.config import DEFAULT_EXTENSION
from iconpack.errors import NotFound


BUNDLED_ROOT = Path(__file__).resolve().parent / "svgs"


class ResourceResolver:
    def __init__(
        self,
        primary_root: Path | None = None,
        fallback_roots: Sequence[Path] = (BUNDLED_ROOT,),
        extension: str = DEFAULT_EXTENSION,
    ) -> None:
        roots: list[Path] = []
        if primary_root is not None:
            roots.append(Path(primary_root))
        roots.extend(Path(root) for root in fallback_roots)
        self.roots = tuple(roots)
        self.extension = extension

    def candidates(self, key: str) -> list[Path]:
        return [root / f"{key}{self.extension}" for root in self.roots]

    def resolve(self, key: str) -> bytes:
        searched = self.candidates(key)
        for path in searched:
            try:
                return path.read_bytes()
            except OSError:
                continue
        raise NotFound(key, searched)
