from __future__ import annotations

import sys
import time
from typing import TextIO

from iconpack.errors import ErrorKind


class CompileProgress:
    def __init__(self, total: int, stream: TextIO | None = None, label: str = "compile:icons") -> None:
        self.label = label
        self.total = total
        self.done = 0
        self.failed = 0
        self.stream = stream if stream is not None else sys.stderr
        self.start_time = time.monotonic()

    def record(self, key: str, error: ErrorKind | None) -> None:
        self.done += 1
        if error is not None:
            self.failed += 1
        status = "ok" if error is None else error.value
        self.stream.write(f"[{self.label}] {self.done}/{self.total} {status} {key}\n")
        self.stream.flush()

    def finish(self) -> None:
        elapsed = time.monotonic() - self.start_time
        self.stream.write(
            f"[{self.label}] {self.done - self.failed} compiled, {self.failed} failed in {elapsed:.2f}s\n"
        )
        self.stream.flush()
