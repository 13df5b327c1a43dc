"""Centrality Engine — rank the nodes of an import graph.

Only PageRank is implemented.  :class:`CentralityMeasure` keeps the
string-keyed selection point so other measures can be added to
``_MEASURES`` later.

PageRank here is a weighted power iteration:

    r'[v] = (1 - d) / N + d * (sum_u r[u] * w(u, v) / W(u) + D / N)

where ``W(u)`` is the total out-weight of ``u`` and ``D`` is the total score
currently held by dangling nodes (no out-edges).  A dangling node hands all
of its score to the uniform restart distribution, so scores always sum to 1
and a lone node scores exactly 1.0.
"""

import enum
import logging
from typing import Callable

from pkgrank.graph import ImportGraph

logger = logging.getLogger(__name__)

DEFAULT_DAMPING = 0.85
DEFAULT_TOLERANCE = 1e-4
DEFAULT_MAX_ITER = 100


# ── Exceptions ──


class CentralityError(Exception):
    """Base exception for centrality errors."""


class UnsupportedMeasureError(CentralityError):
    """The requested centrality measure is not implemented."""


# ── Measures ──


class CentralityMeasure(str, enum.Enum):
    """Supported ways of measuring node centrality."""

    PAGERANK = "pagerank"

    @classmethod
    def parse(cls, name: str) -> "CentralityMeasure":
        """Look up a measure by name.

        Raises:
            UnsupportedMeasureError: If ``name`` is not a known measure.
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedMeasureError(
                f"unsupported centrality measure: {name}"
            ) from None


# ── PageRank ──


def pagerank(
    graph: ImportGraph,
    damping: float = DEFAULT_DAMPING,
    tol: float = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
) -> dict[int, float]:
    """Weighted PageRank scores keyed by node id.

    Iterates from the uniform distribution until the L1 change between
    iterations drops below ``tol``, or ``max_iter`` iterations have run.
    """
    n = len(graph)
    if n == 0:
        return {}

    out_weight = [graph.out_weight(u) for u in range(n)]
    # Transition rows: (target, share of u's score) per out-edge
    transitions = [
        [(v, w / out_weight[u]) for v, w in graph.successors(u)]
        if out_weight[u] > 0 else []
        for u in range(n)
    ]
    dangling = [u for u in range(n) if out_weight[u] <= 0]

    scores = [1.0 / n] * n
    restart = (1.0 - damping) / n

    for iteration in range(1, max_iter + 1):
        dangling_mass = sum(scores[u] for u in dangling)
        base = restart + damping * dangling_mass / n
        nxt = [base] * n
        for u in range(n):
            if not transitions[u]:
                continue
            ru = damping * scores[u]
            for v, share in transitions[u]:
                nxt[v] += ru * share

        delta = sum(abs(a - b) for a, b in zip(nxt, scores))
        scores = nxt
        if delta < tol:
            logger.debug("PageRank converged after %d iterations (delta=%.2e)", iteration, delta)
            break
    else:
        logger.debug("PageRank stopped at max_iter=%d without converging", max_iter)

    return dict(enumerate(scores))


_MEASURES: dict[CentralityMeasure, Callable[[ImportGraph], dict[int, float]]] = {
    CentralityMeasure.PAGERANK: pagerank,
}


# ── Ranking ──


def rank_scores(graph: ImportGraph, scores: dict[int, float]) -> tuple[list[str], list[float]]:
    """Sort scored nodes by descending score, ties broken by label."""
    ranked = sorted(
        ((graph.label(node_id), score) for node_id, score in scores.items()),
        key=lambda item: (-item[1], item[0]),
    )
    return [label for label, _ in ranked], [score for _, score in ranked]


def centrality(
    graph: ImportGraph,
    measure: str = CentralityMeasure.PAGERANK,
) -> tuple[list[str], list[float]]:
    """Rank the graph's labels, most important first.

    Returns:
        ``(labels, scores)`` as parallel lists.  Both are empty for an
        empty graph.

    Raises:
        UnsupportedMeasureError: If ``measure`` is not a known measure.
    """
    measure = CentralityMeasure.parse(measure)
    if len(graph) == 0:
        return [], []
    return rank_scores(graph, _MEASURES[measure](graph))
