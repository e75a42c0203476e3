from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    TRANSFORM = "transform"
    MISSING_OPTIONAL_DEPENDENCY = "missing_optional_dependency"
    CACHE_WRITE = "cache_write"

    @property
    def retryable(self) -> bool:
        return self is ErrorKind.NOT_FOUND


class IconPackError(Exception):
    pass


class ConfigError(IconPackError, ValueError):
    pass


class InvalidKey(IconPackError, ValueError):
    def __init__(self, key: object, reason: str) -> None:
        super().__init__(f"invalid icon key {key!r}: {reason}")
        self.key = key
        self.reason = reason


class NotFound(IconPackError):
    def __init__(self, key: str, searched: Sequence[Path]) -> None:
        paths = ", ".join(str(path) for path in searched)
        super().__init__(f"could not load {key!r} (searched: {paths})")
        self.key = key
        self.searched = tuple(searched)


class TransformError(IconPackError):
    pass


class UnsupportedMode(TransformError):
    def __init__(self, mode: str) -> None:
        super().__init__(f"unsupported mode {mode!r}; expected 'vector' or 'raster'")
        self.mode = mode


class MissingRequiredDependency(IconPackError):
    def __init__(self, name: str, remediation: str) -> None:
        super().__init__(f"{name} is required but could not be loaded; {remediation}")
        self.name = name
        self.remediation = remediation


class MissingOptionalDependency(IconPackError):
    def __init__(self, name: str, remediation: str) -> None:
        super().__init__(f"{name} is not available; {remediation}")
        self.name = name
        self.remediation = remediation


class CacheWriteError(IconPackError):
    pass


class GenerationError(IconPackError):
    pass


class CompileError(IconPackError):
    def __init__(self, failures: Sequence) -> None:
        lines = [f"{failure.key}: {failure.kind.value}: {failure.message}" for failure in failures]
        super().__init__(f"{len(lines)} icon(s) failed to compile:\n" + "\n".join(lines))
        self.failures = tuple(failures)
