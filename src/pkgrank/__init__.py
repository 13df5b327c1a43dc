"""pkgrank — rank packages by the centrality of their import graph."""

from pkgrank.sources import (
    ImportSource,
    NoPackagesError,
    ResolutionError,
    filter_imports,
)
from pkgrank.go_source import GoListSource
from pkgrank.py_source import PythonSource
from pkgrank.graph import ImportGraph
from pkgrank.builder import (
    BuildFailure,
    BuildResult,
    build_graph,
)
from pkgrank.centrality import (
    CentralityError,
    CentralityMeasure,
    UnsupportedMeasureError,
    centrality,
    pagerank,
)
from pkgrank.pipeline import (
    PipelineError,
    RankConfig,
    RankResult,
    StageResult,
    UnsupportedLanguageError,
    run_rank,
)

__all__ = [
    # Import Sources
    "ImportSource",
    "GoListSource",
    "PythonSource",
    "ResolutionError",
    "NoPackagesError",
    "filter_imports",
    # Import Graph
    "ImportGraph",
    # Graph Builder
    "build_graph",
    "BuildResult",
    "BuildFailure",
    # Centrality Engine
    "centrality",
    "pagerank",
    "CentralityMeasure",
    "CentralityError",
    "UnsupportedMeasureError",
    # Pipeline
    "run_rank",
    "RankConfig",
    "RankResult",
    "StageResult",
    "PipelineError",
    "UnsupportedLanguageError",
]
