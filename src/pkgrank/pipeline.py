"""Pipeline — orchestrates a full ranking run.

Wires Import Source → Graph Builder → Centrality Engine into a single
entry point.

Five stages:
  1. Measure Selection
  2. Source Selection
  3. Package Listing
  4. Graph Build
  5. Centrality

Each stage is timed and recorded as a :class:`StageResult`.  A stage that
raises stops the run; the error is recorded and downstream stages are
skipped.  Failed packages inside the graph build are not stage failures:
they surface as warnings and the ranking covers the partial graph.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from pkgrank.builder import DEFAULT_MAX_WORKERS, BuildResult, build_graph
from pkgrank.centrality import CentralityMeasure, centrality
from pkgrank.go_source import GoListSource
from pkgrank.py_source import PythonSource
from pkgrank.sources import ImportSource

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("go", "python")


# ── Exceptions ──


class PipelineError(Exception):
    """Base exception for pipeline errors."""


class UnsupportedLanguageError(PipelineError):
    """No import source exists for the requested language."""


# ── Data Classes ──


@dataclass
class RankConfig:
    """Configuration for a ranking run.

    Attributes:
        root: Root specifier.  A ``go list`` pattern for Go, a directory
            for Python.
        prefix: Only imports starting with this prefix are counted.
        limit: Number of results to report; non-positive means all.
        per_file: Collect imports per source file instead of per package.
        measure: Centrality measure name.
        language: Which import source to use ("go" or "python").
        max_workers: Maximum concurrent package queries.
        go_binary: ``go`` executable for the Go source.
        timeout: Per-command timeout for the Go source, or None.
    """

    root: str = ""
    prefix: str = ""
    limit: int = 16
    per_file: bool = False
    measure: str = CentralityMeasure.PAGERANK.value
    language: str = "go"
    max_workers: int = DEFAULT_MAX_WORKERS
    go_binary: str = "go"
    timeout: Optional[float] = None


@dataclass
class StageResult:
    """Outcome of a single pipeline stage."""

    stage: str
    success: bool = True
    duration_ms: float = 0.0
    error: str = ""


@dataclass
class RankResult:
    """Complete output of a ranking run.

    Attributes:
        labels: Ranked labels, most important first.
        scores: Scores parallel to ``labels``.
        packages: Packages matched by the root specifier.
        build: Graph build result (None if the build never ran).
        stages: Per-stage outcome summaries.
        warnings: One message per package that failed during the build.
        total_duration_ms: Wall-clock time for the whole run.
    """

    labels: list[str] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    packages: list[str] = field(default_factory=list)
    build: Optional[BuildResult] = None
    stages: list[StageResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    total_duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        """True if all stages completed successfully."""
        return all(s.success for s in self.stages)

    @property
    def failed_stage(self) -> Optional[str]:
        """Name of the first stage that failed, or None."""
        for s in self.stages:
            if not s.success:
                return s.stage
        return None


# ── Source Selection ──


def make_source(config: RankConfig) -> ImportSource:
    """Create the import source for ``config.language``.

    Raises:
        UnsupportedLanguageError: For languages without a source.
    """
    language = config.language.lower()
    if language == "go":
        return GoListSource(go_binary=config.go_binary, timeout=config.timeout)
    if language == "python":
        return PythonSource()
    raise UnsupportedLanguageError(
        f"Unsupported language: {config.language!r}. "
        f"Supported: {', '.join(SUPPORTED_LANGUAGES)}."
    )


# ── Pipeline ──


def run_rank(config: RankConfig, source: Optional[ImportSource] = None) -> RankResult:
    """Execute a full ranking run.

    Args:
        config: Run configuration.
        source: Import source override.  Built from ``config.language``
            when omitted.

    Returns:
        RankResult with the ranking and stage outcomes.  Never raises for
        resolution, measure or language errors; those are recorded as stage failures.
    """
    result = RankResult()
    run_start = time.monotonic()

    # ── Stage 1: Measure Selection ──
    stage_start = time.monotonic()
    try:
        measure = CentralityMeasure.parse(config.measure)
        result.stages.append(StageResult(
            stage="measure_selection",
            duration_ms=_elapsed_ms(stage_start),
        ))
    except Exception as exc:
        return _fail(result, "measure_selection", stage_start, run_start, exc)

    # ── Stage 2: Source Selection ──
    stage_start = time.monotonic()
    try:
        if source is None:
            source = make_source(config)
        result.stages.append(StageResult(
            stage="source_selection",
            duration_ms=_elapsed_ms(stage_start),
        ))
    except Exception as exc:
        return _fail(result, "source_selection", stage_start, run_start, exc)

    # ── Stage 3: Package Listing ──
    stage_start = time.monotonic()
    try:
        result.packages = source.list_packages(config.root)
        result.stages.append(StageResult(
            stage="list_packages",
            duration_ms=_elapsed_ms(stage_start),
        ))
        logger.info("Matched %d packages for %s", len(result.packages), config.root)
    except Exception as exc:
        return _fail(result, "list_packages", stage_start, run_start, exc)

    # ── Stage 4: Graph Build ──
    stage_start = time.monotonic()
    try:
        result.build = build_graph(
            source,
            result.packages,
            prefix=config.prefix,
            per_file=config.per_file,
            max_workers=config.max_workers,
        )
        result.warnings.extend(
            f"{f.package}: {f.error}" for f in result.build.failures
        )
        result.stages.append(StageResult(
            stage="build_graph",
            duration_ms=_elapsed_ms(stage_start),
        ))
    except Exception as exc:
        return _fail(result, "build_graph", stage_start, run_start, exc)

    # ── Stage 5: Centrality ──
    stage_start = time.monotonic()
    try:
        result.labels, result.scores = centrality(result.build.graph, measure)
        result.stages.append(StageResult(
            stage="centrality",
            duration_ms=_elapsed_ms(stage_start),
        ))
    except Exception as exc:
        return _fail(result, "centrality", stage_start, run_start, exc)

    result.total_duration_ms = _elapsed_ms(run_start)
    return result


# ── Helpers ──


def _fail(
    result: RankResult,
    stage: str,
    stage_start: float,
    run_start: float,
    exc: Exception,
) -> RankResult:
    """Record a failed stage and finish the run."""
    logger.debug("Stage %s failed", stage, exc_info=exc)
    result.stages.append(StageResult(
        stage=stage,
        success=False,
        duration_ms=_elapsed_ms(stage_start),
        error=str(exc),
    ))
    result.total_duration_ms = _elapsed_ms(run_start)
    return result


def _elapsed_ms(start: float) -> float:
    """Milliseconds since *start* (from ``time.monotonic()``)."""
    return (time.monotonic() - start) * 1000
