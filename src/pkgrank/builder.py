"""Graph Builder — concurrent construction of an import graph.

One task per package.  Each task queries its imports with no lock held, then
merges them into the shared graph under a single lock.  At most
``max_workers`` tasks query at once; the merge step is always exclusive.

Builds are best-effort: a task whose queries fail is logged, recorded as a
:class:`BuildFailure`, and contributes no edges.  The rest of the build
carries on.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from pkgrank.graph import ImportGraph
from pkgrank.sources import ImportSource, ResolutionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 32


# ── Data Classes ──


@dataclass
class BuildFailure:
    """A package whose import queries failed during a build."""

    package: str
    error: str


@dataclass
class BuildResult:
    """Outcome of a graph build.

    Attributes:
        graph: The merged import graph.  Partial if any task failed.
        packages: Packages a task was scheduled for.
        failures: One entry per task that contributed no edges due to an error.
    """

    graph: ImportGraph
    packages: list[str] = field(default_factory=list)
    failures: list[BuildFailure] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        """True if at least one package failed to contribute edges."""
        return bool(self.failures)

    @property
    def packages_succeeded(self) -> int:
        return len(self.packages) - len(self.failures)


# ── Build ──


def _collect_imports(
    source: ImportSource,
    package: str,
    prefix: str,
    per_file: bool,
) -> list[str]:
    """Query phase: gather every import label for one package, in target order."""
    targets = source.list_files(package) if per_file else [package]
    imports: list[str] = []
    for target in targets:
        imports.extend(source.list_imports(target, prefix))
    return imports


def build_graph(
    source: ImportSource,
    packages: list[str],
    prefix: str = "",
    per_file: bool = False,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> BuildResult:
    """Build an import graph with one concurrent task per package.

    Args:
        source: Import source to query.
        packages: Packages to schedule, typically from ``source.list_packages``.
        prefix: Only imports starting with this prefix become edges.
        per_file: Query each of a package's files separately instead of the
            package as a whole.  Imports shared by several files then add
            weight once per file.
        max_workers: Maximum number of tasks in their query phase at once.

    Returns:
        BuildResult.  Returns only after every task has finished.
    """
    result = BuildResult(graph=ImportGraph(), packages=list(packages))
    if not packages:
        return result

    lock = threading.Lock()

    def _task(package: str) -> int:
        imports = _collect_imports(source, package, prefix, per_file)
        with lock:
            # Packages without imports are still ranked (as dangling nodes)
            result.graph.add_node(package)
            for imp in imports:
                result.graph.update_edge(package, imp)
        return len(imports)

    workers = max(1, min(max_workers, len(packages)))
    logger.info(
        "Building import graph for %d packages (%d workers, per_file=%s)",
        len(packages), workers, per_file,
    )

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_pkg = {
            executor.submit(_task, package): package
            for package in packages
        }
        for future in as_completed(future_to_pkg):
            package = future_to_pkg[future]
            try:
                count = future.result()
            except ResolutionError as e:
                logger.warning("Skipping %s: %s", package, e)
                result.failures.append(BuildFailure(package=package, error=str(e)))
                continue
            logger.debug("Merged %d imports from %s", count, package)

    # as_completed order is arbitrary; keep the report stable
    result.failures.sort(key=lambda f: f.package)

    logger.info(
        "Import graph built: %d nodes, %d edges, %d failed packages",
        len(result.graph), result.graph.edge_count(), len(result.failures),
    )
    return result
