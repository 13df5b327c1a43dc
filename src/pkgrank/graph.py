"""Import Graph — weighted directed graph of import relationships.

Nodes are integer ids assigned the first time a label is seen.  An edge
``a -> b`` with weight ``w`` means package ``a`` was observed importing
``b`` on ``w`` occasions.

Labels are stored in an arena: a list indexed by id plus a reverse dict.
Ids are handed out in order starting at 0 and are never reused.
"""

import logging

import networkx as nx

logger = logging.getLogger(__name__)


class ImportGraph:
    """Weighted directed import graph with a bidirectional label/id mapping.

    Mutation is not thread-safe.  Concurrent writers must hold a shared
    lock around :meth:`update_edge` (see ``pkgrank.builder``).
    """

    def __init__(self):
        self._graph = nx.DiGraph()
        self._labels: list[str] = []
        self._ids: dict[str, int] = {}

    def __len__(self) -> int:
        """Number of nodes in the graph."""
        return self._graph.number_of_nodes()

    def __repr__(self) -> str:
        return f"ImportGraph(nodes={len(self)}, edges={self.edge_count()})"

    # ── Mutation ──

    def add_node(self, label: str) -> int:
        """Return the id for ``label``, adding a node if it is new."""
        node_id = self._ids.get(label)
        if node_id is not None:
            return node_id
        node_id = len(self._labels)
        self._labels.append(label)
        self._ids[label] = node_id
        self._graph.add_node(node_id, label=label)
        return node_id

    def update_edge(self, source: str, target: str) -> None:
        """Add one observation of ``source`` importing ``target``.

        Creates the edge with weight 1.0, or increments an existing edge's
        weight by 1.0.  Missing nodes are created.
        """
        u, v = self.add_node(source), self.add_node(target)
        if self._graph.has_edge(u, v):
            self._graph[u][v]["weight"] += 1.0
        else:
            self._graph.add_edge(u, v, weight=1.0)

    # ── Queries ──

    def label(self, node_id: int) -> str:
        return self._labels[node_id]

    def node_id(self, label: str) -> int:
        """Id of an existing label.  Raises KeyError if unseen."""
        return self._ids[label]

    def labels(self) -> list[str]:
        """All labels, ordered by id."""
        return list(self._labels)

    def __contains__(self, label: object) -> bool:
        return label in self._ids

    def weight(self, source: str, target: str) -> float:
        """Weight of ``source -> target``, or 0.0 when there is no such edge."""
        u, v = self._ids.get(source), self._ids.get(target)
        if u is None or v is None or not self._graph.has_edge(u, v):
            return 0.0
        return self._graph[u][v]["weight"]

    def edges(self) -> list[tuple[str, str, float]]:
        """All edges as ``(source_label, target_label, weight)`` tuples."""
        return [
            (self._labels[u], self._labels[v], data["weight"])
            for u, v, data in self._graph.edges(data=True)
        ]

    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def successors(self, node_id: int) -> list[tuple[int, float]]:
        """Out-neighbours of ``node_id`` with edge weights."""
        return [
            (v, data["weight"])
            for v, data in self._graph.adj[node_id].items()
        ]

    def out_weight(self, node_id: int) -> float:
        """Total weight of the out-edges of ``node_id``."""
        return self._graph.out_degree(node_id, weight="weight")

    def to_networkx(self) -> nx.DiGraph:
        """A copy of the underlying graph, nodes keyed by label."""
        return nx.relabel_nodes(self._graph, dict(enumerate(self._labels)), copy=True)
