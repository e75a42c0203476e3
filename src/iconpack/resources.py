from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from dataclasses import field

from iconpack.errors import ErrorKind
from iconpack.errors import InvalidKey


@dataclass(frozen=True)
class VectorResult:
    markup: str
    view_box: str | None

    def to_payload(self) -> dict:
        return {"kind": "vector", "markup": self.markup, "view_box": self.view_box}


@dataclass(frozen=True)
class RasterResult:
    base64_payload: str
    quantized: bool

    def to_payload(self) -> dict:
        return {"kind": "raster", "base64": self.base64_payload, "quantized": self.quantized}


TransformResult = VectorResult | RasterResult


def result_from_payload(payload: dict) -> TransformResult | None:
    kind = payload.get("kind")
    if kind == "vector":
        markup = payload.get("markup")
        view_box = payload.get("view_box")
        if isinstance(markup, str) and (view_box is None or isinstance(view_box, str)):
            return VectorResult(markup=markup, view_box=view_box)
    elif kind == "raster":
        encoded = payload.get("base64")
        quantized = payload.get("quantized")
        if isinstance(encoded, str) and isinstance(quantized, bool):
            return RasterResult(base64_payload=encoded, quantized=quantized)
    return None


def validate_key(key: object) -> str:
    if not isinstance(key, str):
        raise InvalidKey(key, "keys must be strings")
    if not key:
        raise InvalidKey(key, "keys must not be empty")
    if "\x00" in key:
        raise InvalidKey(key, "keys must not contain NUL")
    if "\\" in key:
        raise InvalidKey(key, "use '/' to separate key segments")
    if key.startswith("/"):
        raise InvalidKey(key, "keys must be relative")
    if any(segment in ("", ".", "..") for segment in key.split("/")):
        raise InvalidKey(key, "keys must not contain empty, '.' or '..' segments")
    return key


@dataclass
class ResourceRecord:
    key: str
    raw_bytes: bytes | None = None
    transformed: TransformResult | None = None
    error: ErrorKind | None = None
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.transformed is not None

    def mark_success(self, raw_bytes: bytes, result: TransformResult) -> None:
        self.raw_bytes = raw_bytes
        self.transformed = result
        self.error = None
        self.message = None

    def mark_failure(self, kind: ErrorKind, message: str, raw_bytes: bytes | None = None) -> None:
        self.raw_bytes = raw_bytes
        self.transformed = None
        self.error = kind
        self.message = message


@dataclass
class ResourceSet:
    _records: dict[str, ResourceRecord] = field(default_factory=dict)

    def add(self, key: str) -> bool:
        validate_key(key)
        if key in self._records:
            return False
        self._records[key] = ResourceRecord(key=key)
        return True

    def get(self, key: str) -> ResourceRecord | None:
        return self._records.get(key)

    def keys(self) -> list[str]:
        return list(self._records)

    def records(self) -> list[ResourceRecord]:
        return list(self._records.values())

    def successful(self) -> list[ResourceRecord]:
        return [record for record in self._records.values() if record.succeeded]

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __getitem__(self, key: str) -> ResourceRecord:
        return self._records[key]

    def __iter__(self) -> Iterator[ResourceRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)
