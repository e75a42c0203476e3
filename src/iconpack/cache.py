from __future__ import annotations

import gzip
import hashlib
import json
import os
import tempfile
import zlib
from pathlib import Path

from iconpack.errors import CacheWriteError


ENTRY_SUFFIX = ".json.gzip"


def fingerprint(raw: bytes, identifier: str) -> str:
    encoded_identifier = identifier.encode("utf-8")
    digest = hashlib.sha1()
    digest.update(len(raw).to_bytes(8, "big"))
    digest.update(raw)
    digest.update(len(encoded_identifier).to_bytes(8, "big"))
    digest.update(encoded_identifier)
    return digest.hexdigest()


def encode_entry(payload: dict) -> bytes:
    content = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return gzip.compress(content.encode("utf-8"), mtime=0)


def decode_entry(data: bytes) -> dict | None:
    try:
        content = gzip.decompress(data)
        payload = json.loads(content.decode("utf-8"))
    except (OSError, EOFError, zlib.error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload


class ContentAddressedCache:
    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}{ENTRY_SUFFIX}"

    def get(self, key: str) -> dict | None:
        try:
            data = self.path_for(key).read_bytes()
        except OSError:
            return None
        return decode_entry(data)

    def put(self, key: str, payload: dict) -> Path:
        try:
            data = encode_entry(payload)
        except (TypeError, ValueError) as exc:
            raise CacheWriteError(f"cannot serialize cache entry {key}: {exc}") from exc

        path = self.path_for(key)
        tmp_name: str | None = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            raise CacheWriteError(f"cannot write cache entry {path}: {exc}") from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        return path
