"""Ranking Report — plain-text and JSON rendering of a ranking run."""

from pkgrank.pipeline import RankResult


def limit_ranking(
    labels: list[str],
    scores: list[float],
    limit: int,
) -> list[tuple[str, float]]:
    """Apply the result limit to a ranking.

    Entry ``i`` is kept unless ``i > 0 and i > limit``, so a positive
    ``limit`` keeps ``limit + 1`` entries and a non-positive one keeps all.
    """
    kept: list[tuple[str, float]] = []
    for i, (label, score) in enumerate(zip(labels, scores)):
        if limit > 0 and i > 0 and i > limit:
            break
        kept.append((label, score))
    return kept


def format_ranking(labels: list[str], scores: list[float], limit: int) -> list[str]:
    """One ``"<score> <label>"`` line per kept entry, score to 6 decimals."""
    return [
        f"{score:.6f} {label}"
        for label, score in limit_ranking(labels, scores, limit)
    ]


def ranking_as_dict(result: RankResult, limit: int) -> dict:
    """JSON-serialisable summary of a ranking run."""
    graph = result.build.graph if result.build else None
    return {
        "ranking": [
            {"label": label, "score": score}
            for label, score in limit_ranking(result.labels, result.scores, limit)
        ],
        "packages": len(result.packages),
        "nodes": len(graph) if graph is not None else 0,
        "edges": graph.edge_count() if graph is not None else 0,
        "partial": bool(result.build and result.build.partial),
        "failures": [
            {"package": f.package, "error": f.error}
            for f in (result.build.failures if result.build else [])
        ],
        "stages": [
            {
                "stage": s.stage,
                "success": s.success,
                "duration_ms": round(s.duration_ms, 3),
                "error": s.error,
            }
            for s in result.stages
        ],
        "total_duration_ms": round(result.total_duration_ms, 3),
    }
