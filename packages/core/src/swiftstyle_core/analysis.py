"""File analysis: lexer -> builder -> engine, for one source or a batch of files.

Files are independent of each other. A batch run dispatches them to a bounded
thread pool; the only shared state is the read-only rule registry held by the
engine.
"""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import structlog

from swiftstyle_core.config import SwiftStyleConfig, should_analyze_file
from swiftstyle_core.errors import MalformedSourceError
from swiftstyle_core.parsing.lexer import Token, tokenize
from swiftstyle_core.parsing.model import SourceRange, StructuralModel
from swiftstyle_core.parsing.structure import build
from swiftstyle_core.rules.engine import RuleEngine
from swiftstyle_core.rules.models import INTERNAL_FAILURE_IDS, UNPARSEABLE, Violation, diagnostic
from swiftstyle_core.severity import Severity, is_above_threshold

logger = structlog.get_logger()


@dataclass(frozen=True)
class FileAnalysis:
    """Result of analyzing one source file."""

    path: str
    source: str
    tokens: tuple[Token, ...]
    model: StructuralModel | None
    violations: tuple[Violation, ...] = ()

    @property
    def parseable(self) -> bool:
        return self.model is not None

    @property
    def diagnostics(self) -> list[Violation]:
        return [v for v in self.violations if v.is_diagnostic]

    @property
    def has_internal_failure(self) -> bool:
        return any(v.rule_id in INTERNAL_FAILURE_IDS for v in self.violations)

    def count_at_or_above(self, severity: Severity | str) -> int:
        return sum(1 for v in self.violations if is_above_threshold(v.severity, severity))


def analyze_source(
    source: str,
    path: str,
    engine: RuleEngine,
    rule_ids: Iterable[str] | None = None,
) -> FileAnalysis:
    """Analyze source text.

    Unbalanced delimiters produce a single `unparseable` diagnostic instead of
    rule violations; no rule runs against a file without a model.
    """
    tokens = tokenize(source)
    try:
        model = build(tokens, path)
    except MalformedSourceError as e:
        logger.warning("file_unparseable", path=path, line=e.line, column=e.column, reason=e.reason)
        at = SourceRange(e.offset, e.offset, e.line, e.column, e.line, e.column)
        return FileAnalysis(
            path=path,
            source=source,
            tokens=tokens,
            model=None,
            violations=(diagnostic(UNPARSEABLE, f"cannot analyze file: {e}", at, path=path),),
        )
    violations = engine.evaluate(model, tokens, rule_ids)
    return FileAnalysis(path, source, tokens, model, tuple(violations))


@dataclass
class LintResults:
    """Results from a batch run."""

    analyses: list[FileAnalysis] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    cancelled: bool = False
    files_skipped: int = 0
    duration_ms: float = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def files_analyzed(self) -> int:
        return len(self.analyses)

    @property
    def violations(self) -> list[Violation]:
        return [v for analysis in self.analyses for v in analysis.violations]

    @property
    def has_internal_failure(self) -> bool:
        return bool(self.errors) or any(a.has_internal_failure for a in self.analyses)

    def exit_code(self) -> int:
        """0 when clean, 1 on error-severity violations, 2 on internal failures."""
        if self.has_internal_failure:
            return 2
        if any(v.severity == Severity.ERROR for v in self.violations):
            return 1
        return 0

    def summary(self) -> dict[str, Any]:
        # Imported here: the reporter formats results of this module.
        from swiftstyle_core.reporter import summarize

        return summarize(self.violations, files=self.files_analyzed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_analyzed": self.files_analyzed,
            "files_skipped": self.files_skipped,
            "violations": [v.to_dict() for v in self.violations],
            "errors": self.errors,
            "cancelled": self.cancelled,
            "duration_ms": self.duration_ms,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "summary": self.summary(),
        }


class StyleAnalyzer:
    """Runs the engine over files on disk."""

    def __init__(
        self,
        engine: RuleEngine,
        config: SwiftStyleConfig | None = None,
        jobs: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.engine = engine
        self.config = config or SwiftStyleConfig()
        self.jobs = jobs or self.config.jobs or 4
        self.timeout = timeout if timeout is not None else self.config.timeout_seconds
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop dispatching files. Files already completed are kept."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def collect_files(self, paths: Iterable[Path | str]) -> list[Path]:
        """Collect .swift files, honoring include/exclude patterns for directories.

        Files named explicitly are always collected. The result is sorted and
        free of duplicates.
        """
        files: set[Path] = set()
        for raw in paths:
            path = Path(raw)
            if path.is_file():
                files.add(path)
                continue
            if not path.is_dir():
                logger.warning("path_not_found", path=str(path))
                continue
            for file_path in path.rglob("*.swift"):
                if not file_path.is_file():
                    continue
                relative = file_path.relative_to(path).as_posix()
                if should_analyze_file(self.config, relative):
                    files.add(file_path)
        return sorted(files)

    def read_source(self, file_path: Path) -> str | None:
        """Source text of a file, or None when it exceeds the size limit."""
        if file_path.stat().st_size > self.config.max_file_size:
            logger.info("file_skipped", path=str(file_path), reason="too large")
            return None
        return file_path.read_text(encoding="utf-8")

    def analyze_file(self, file_path: Path) -> FileAnalysis | None:
        source = self.read_source(file_path)
        if source is None:
            return None
        return analyze_source(source, str(file_path), self.engine)

    async def analyze_paths(self, paths: Iterable[Path | str]) -> LintResults:
        """Analyze every collected file on a bounded worker pool.

        On cancel() or timeout no further files are dispatched and results of
        files still in flight are discarded.
        """
        results = LintResults(started_at=datetime.now(timezone.utc))
        files = self.collect_files(paths)
        logger.info("analysis_started", files=len(files), jobs=self.jobs)

        completed: dict[Path, FileAnalysis] = {}
        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(self.jobs)
        pool = ThreadPoolExecutor(max_workers=self.jobs)

        async def run(file_path: Path) -> None:
            async with semaphore:
                if self.cancelled:
                    return
                try:
                    analysis = await loop.run_in_executor(pool, self.analyze_file, file_path)
                except (OSError, UnicodeDecodeError) as e:
                    results.errors.append(f"{file_path}: {e}")
                    logger.warning("file_unreadable", path=str(file_path), error=str(e))
                    return
                except Exception as e:
                    results.errors.append(f"{file_path}: analysis failed: {e!r}")
                    logger.exception("file_failed", path=str(file_path))
                    return
                if self.cancelled:
                    return
                if analysis is None:
                    results.files_skipped += 1
                else:
                    completed[file_path] = analysis

        tasks = [asyncio.ensure_future(run(file_path)) for file_path in files]
        try:
            if tasks:
                await asyncio.wait_for(asyncio.gather(*tasks), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("analysis_timeout", timeout=self.timeout, completed=len(completed))
            self.cancel()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        results.cancelled = self.cancelled
        results.analyses = [completed[path] for path in files if path in completed]
        results.errors.sort()
        results.completed_at = datetime.now(timezone.utc)
        results.duration_ms = (results.completed_at - results.started_at).total_seconds() * 1000
        logger.info(
            "analysis_completed",
            files=results.files_analyzed,
            violations=len(results.violations),
            cancelled=results.cancelled,
        )
        return results
