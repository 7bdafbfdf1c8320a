"""In-memory movie network: nodes keyed by movie identity, edges by node id.

Invariants:
- one node per movie identity (external id, or MovieKey when no id is known);
- a node's depth is set when it is first added and never changes afterwards;
- every stored edge references two existing nodes, and an exact
  (source, target) pair is stored at most once. The reverse direction is a
  separate edge.
"""

import logging

from movienet.errors import NodeNotFoundError
from movienet.models import MovieDetails, MovieRef, NetworkEdge, NetworkMetadata, NetworkNode

logger = logging.getLogger(__name__)


class Network:
    """Ordered node/edge aggregate owned by a single session or run."""

    def __init__(self) -> None:
        self._nodes: dict[str, NetworkNode] = {}
        self._edges: list[NetworkEdge] = []
        self._edge_keys: set[tuple[str, str]] = set()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    @property
    def nodes(self) -> list[NetworkNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> list[NetworkEdge]:
        return list(self._edges)

    def get_node(self, node_id: str) -> NetworkNode | None:
        return self._nodes.get(node_id)

    # --- Node operations ---

    def add_node(
        self,
        movie: MovieRef,
        depth: int,
        details: MovieDetails | None = None,
    ) -> tuple[NetworkNode, bool]:
        """Add a movie at the given depth. Returns (node, created).

        If the movie is already present the existing node is returned untouched,
        so the first-seen depth wins.
        """
        node_id = movie.identity
        existing = self._nodes.get(node_id)
        if existing is not None:
            return existing, False
        node = NetworkNode(id=node_id, movie=movie, depth=depth, details=details)
        self._nodes[node_id] = node
        return node, True

    def restore_node(self, node: NetworkNode) -> bool:
        """Insert a fully-formed node (used when loading documents). False if the id exists."""
        if node.id in self._nodes:
            return False
        self._nodes[node.id] = node
        return True

    def remove_node(self, node_id: str) -> list[NetworkEdge] | None:
        """Remove a node and every edge incident to it.

        Returns the removed edges, or None if the node was not present.
        Remaining node ids and depths are left as they are.
        """
        if self._nodes.pop(node_id, None) is None:
            return None
        removed = [e for e in self._edges if e.source == node_id or e.target == node_id]
        if removed:
            self._edges = [e for e in self._edges if e.source != node_id and e.target != node_id]
            for e in removed:
                self._edge_keys.discard((e.source, e.target))
        logger.debug("Removed node %s with %d edges", node_id, len(removed))
        return removed

    def clear(self) -> None:
        self._nodes.clear()
        self._edges.clear()
        self._edge_keys.clear()

    # --- Edge operations ---

    def add_edge(self, source: str, target: str) -> bool:
        """Add a source -> target edge between existing nodes.

        Returns False for duplicates and self-loops. Raises NodeNotFoundError
        if either endpoint is missing.
        """
        for node_id in (source, target):
            if node_id not in self._nodes:
                raise NodeNotFoundError(node_id)
        if source == target or (source, target) in self._edge_keys:
            return False
        self._edges.append(NetworkEdge(source=source, target=target))
        self._edge_keys.add((source, target))
        return True

    def has_edge(self, source: str, target: str) -> bool:
        return (source, target) in self._edge_keys

    # --- Summary ---

    @property
    def seed(self) -> NetworkNode | None:
        """First depth-0 node in insertion order."""
        for node in self._nodes.values():
            if node.depth == 0:
                return node
        return None

    @property
    def max_depth(self) -> int:
        return max((n.depth for n in self._nodes.values()), default=0)

    def summary(self) -> NetworkMetadata:
        """Snapshot of counts, depth, average rating and genre set."""
        ratings = [n.rating for n in self._nodes.values() if n.rating is not None]
        genres = sorted({g for n in self._nodes.values() for g in n.genres})
        return NetworkMetadata(
            total_movies=len(self._nodes),
            total_connections=len(self._edges),
            max_depth=self.max_depth,
            average_rating=round(sum(ratings) / len(ratings), 1) if ratings else None,
            genres=genres,
        )
