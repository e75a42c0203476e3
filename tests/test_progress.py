from __future__ import annotations

import io

from iconpack.errors import ErrorKind
from iconpack.progress import CompileProgress


def test_records_each_icon_and_summarizes_failures() -> None:
    stream = io.StringIO()
    progress = CompileProgress(3, stream=stream)

    progress.record("ui/close", None)
    progress.record("ui/nope", ErrorKind.NOT_FOUND)
    progress.record("ui/bad", ErrorKind.TRANSFORM)
    progress.finish()

    lines = stream.getvalue().splitlines()
    assert lines[:3] == [
        "[compile:icons] 1/3 ok ui/close",
        "[compile:icons] 2/3 not_found ui/nope",
        "[compile:icons] 3/3 transform ui/bad",
    ]
    assert lines[3].startswith("[compile:icons] 1 compiled, 2 failed in ")
    assert (progress.done, progress.failed) == (3, 2)
