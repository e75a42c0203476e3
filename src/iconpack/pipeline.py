from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import Future
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from dataclasses import field

from iconpack.cache import ContentAddressedCache
from iconpack.config import PackConfig
from iconpack.emitter import emit
from iconpack.errors import CompileError
from iconpack.errors import ErrorKind
from iconpack.errors import NotFound
from iconpack.errors import TransformError
from iconpack.progress import CompileProgress
from iconpack.resolver import ResourceResolver
from iconpack.resources import RasterResult
from iconpack.resources import ResourceRecord
from iconpack.resources import ResourceSet
from iconpack.resources import TransformResult
from iconpack.transform import TransformEngine


@dataclass(frozen=True)
class Diagnostic:
    key: str
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.key}: {self.message}"


@dataclass(frozen=True)
class CompileResult:
    source: str
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def failures(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.kind in (ErrorKind.NOT_FOUND, ErrorKind.TRANSFORM))


@dataclass
class Outcome:
    key: str
    raw_bytes: bytes | None = None
    result: TransformResult | None = None
    error: ErrorKind | None = None
    message: str | None = None
    notes: list[str] = field(default_factory=list)


class PipelineCoordinator:
    def __init__(
        self,
        config: PackConfig,
        resolver: ResourceResolver | None = None,
        engine: TransformEngine | None = None,
    ) -> None:
        self.config = config
        self.resources = ResourceSet()
        self.resolver = resolver or ResourceResolver(primary_root=config.source_root, extension=config.extension)
        if engine is None:
            # Built eagerly so a missing rasterizer fails here, not on first compile.
            engine = TransformEngine(
                config.mode,
                optimizer_options=config.optimizer,
                raster_options=config.raster,
                cache=ContentAddressedCache(config.cache_dir),
            )
        self.engine = engine
        self.cache = engine.cache

    @property
    def warnings(self) -> list[str]:
        return list(self.engine.warnings)

    def register(self, key: str) -> bool:
        return self.resources.add(key)

    def register_many(self, keys: Iterable[str]) -> int:
        return sum(1 for key in keys if self.register(key))

    def _needs_work(self, record: ResourceRecord) -> bool:
        return not record.succeeded

    def _process(self, key: str, previous_raw: bytes | None, previous_error: ErrorKind | None, previous_message: str | None) -> Outcome:
        try:
            raw = self.resolver.resolve(key)
        except NotFound as exc:
            return Outcome(key=key, error=ErrorKind.NOT_FOUND, message=str(exc))

        if previous_error is ErrorKind.TRANSFORM and raw == previous_raw:
            return Outcome(key=key, raw_bytes=raw, error=ErrorKind.TRANSFORM, message=previous_message)

        outcome = Outcome(key=key, raw_bytes=raw)
        try:
            outcome.result = self.engine.transform(raw, notes=outcome.notes)
        except TransformError as exc:
            outcome.error = ErrorKind.TRANSFORM
            outcome.message = str(exc)
        return outcome

    def _apply(self, outcome: Outcome, diagnostics: list[Diagnostic]) -> None:
        record = self.resources[outcome.key]
        if outcome.result is not None:
            record.mark_success(outcome.raw_bytes, outcome.result)
        else:
            record.mark_failure(outcome.error, outcome.message or outcome.error.value, raw_bytes=outcome.raw_bytes)
            diagnostics.append(Diagnostic(outcome.key, outcome.error, record.message))

        for note in outcome.notes:
            diagnostics.append(Diagnostic(outcome.key, ErrorKind.CACHE_WRITE, note))

        if isinstance(outcome.result, RasterResult) and self.engine.can_quantize and not outcome.result.quantized:
            diagnostics.append(
                Diagnostic(
                    outcome.key,
                    ErrorKind.MISSING_OPTIONAL_DEPENDENCY,
                    "pngquant could not quantize this icon; embedding the unquantized PNG",
                )
            )

    def compile(self) -> CompileResult:
        work = [record for record in self.resources if self._needs_work(record)]
        diagnostics: list[Diagnostic] = []

        if work:
            self._fan_out(work, diagnostics)

        failures = [d for d in diagnostics if d.kind in (ErrorKind.NOT_FOUND, ErrorKind.TRANSFORM)]
        if failures and self.config.strict:
            raise CompileError(failures)

        source = emit(self.resources.successful(), self.config.mode)
        return CompileResult(source=source, diagnostics=tuple(diagnostics))

    def _fan_out(self, work: list[ResourceRecord], diagnostics: list[Diagnostic]) -> None:
        inflight_limit = max(1, self.config.inflight_limit)
        progress = CompileProgress(len(work)) if self.config.verbose else None

        pending: dict[int, Future[Outcome]] = {}
        next_to_finalize = 0

        # Outcomes are applied strictly in registration order, whatever order
        # the workers finish in.
        def flush_next_outcome() -> None:
            nonlocal next_to_finalize
            future = pending.pop(next_to_finalize, None)
            if future is None:
                raise RuntimeError(f"Missing transform future for icon index {next_to_finalize}")
            outcome = future.result()
            self._apply(outcome, diagnostics)
            next_to_finalize += 1
            if progress is not None:
                progress.record(outcome.key, outcome.error)

        executor = ThreadPoolExecutor(max_workers=self.config.workers, thread_name_prefix="iconpack")
        try:
            for index, record in enumerate(work):
                pending[index] = executor.submit(
                    self._process,
                    record.key,
                    record.raw_bytes,
                    record.error,
                    record.message,
                )
                while len(pending) >= inflight_limit:
                    flush_next_outcome()

            while next_to_finalize < len(work):
                flush_next_outcome()
        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        if progress is not None:
            progress.finish()
