"""Graph builder — bounded depth-first traversal of related movies.

Each build() call owns its own traversal state (visited set, pending stack,
result network), so independent builds can run side by side. Requests to the
data source are strictly serialized with a fixed delay after every expanded
node.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from movienet.config import BuilderConfig
from movienet.errors import SourceError
from movienet.models import MovieRef, NetworkNode
from movienet.network import Network
from movienet.source import MovieSource

logger = logging.getLogger(__name__)


class BuildResult:
    """Network produced by one build, plus traversal bookkeeping."""

    def __init__(self, seed_query: str) -> None:
        self.seed_query = seed_query
        self.network = Network()
        self.seed: NetworkNode | None = None
        # node id -> related movies as returned (after truncation), in order
        self.connections: dict[str, list[MovieRef]] = {}
        self.nodes_expanded = 0
        self.failed_expansions: list[str] = []
        self.dropped_connections = 0
        # set when the seed search itself failed, as opposed to finding nothing
        self.seed_error: SourceError | None = None

    @property
    def found(self) -> bool:
        return self.seed is not None

    @property
    def total_connections(self) -> int:
        return sum(len(c) for c in self.connections.values())

    def __repr__(self) -> str:
        parts = [
            f"BuildResult({self.seed_query}: ",
            f"{len(self.network)} movies, {len(self.network.edges)} edges ",
            f"[expanded={self.nodes_expanded}, connections={self.total_connections}, ",
            f"dropped={self.dropped_connections}]",
        ]
        if self.failed_expansions:
            parts.append(f", failed={len(self.failed_expansions)}")
        parts.append(")")
        return "".join(parts)


class GraphBuilder:
    """Grows a network from a seed movie by repeated related-movie lookups."""

    def __init__(
        self,
        source: MovieSource,
        max_depth: int = 3,
        max_movies_per_level: int = 5,
        request_delay: float = 0.1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {max_depth}")
        if max_movies_per_level < 1:
            raise ValueError(f"max_movies_per_level must be at least 1, got {max_movies_per_level}")
        self.source = source
        self.max_depth = max_depth
        self.max_movies_per_level = max_movies_per_level
        self.request_delay = request_delay
        self._sleep = sleep

    @classmethod
    def from_config(cls, source: MovieSource, config: BuilderConfig) -> "GraphBuilder":
        return cls(
            source,
            max_depth=config.max_depth,
            max_movies_per_level=config.max_movies_per_level,
            request_delay=config.request_delay,
        )

    async def build(self, seed: str | MovieRef) -> BuildResult:
        """Build a network from a free-text query or a known movie.

        A seed that cannot be found yields an empty result (result.found is
        False); it is logged, not raised. If the search itself failed, the
        error is kept in result.seed_error.
        """
        label = seed if isinstance(seed, str) else seed.key
        result = BuildResult(label)
        start = await self._resolve_seed(seed, result)
        if start is None:
            return result

        visited: set[str] = set()
        pending: list[tuple[MovieRef, int]] = [(start, 0)]
        while pending:
            movie, depth = pending.pop()
            if depth >= self.max_depth:
                continue
            related = await self._visit(movie, depth, visited, result)
            if related is None:
                continue
            if depth < self.max_depth - 1:
                # Reversed so the first related movie is explored first
                pending.extend((r, depth + 1) for r in reversed(related))

        self._link_connections(result)
        logger.info("Build complete: %s", result)
        return result

    async def _resolve_seed(self, seed: str | MovieRef, result: BuildResult) -> MovieRef | None:
        if isinstance(seed, MovieRef):
            return seed
        try:
            matches = await self.source.search_movies(seed)
        except SourceError as e:
            logger.error("Error searching for movie %r: %s", seed, e)
            result.seed_error = e
            return None
        if not matches:
            logger.warning("Movie %r not found", seed)
            return None
        return matches[0]

    async def _visit(
        self,
        movie: MovieRef,
        depth: int,
        visited: set[str],
        result: BuildResult,
    ) -> list[MovieRef] | None:
        """Register and expand one movie. None if it was already visited."""
        identity = movie.identity
        if identity in visited:
            return None
        visited.add(identity)

        indent = "  " * depth
        logger.info("%s%s: %s", indent, "Starting with" if depth == 0 else "Exploring", movie.key)

        node, _ = result.network.add_node(movie, depth)
        if depth == 0 and result.seed is None:
            result.seed = node

        related = await self._fetch_related(movie, result)
        result.connections.setdefault(node.id, []).extend(related)
        result.nodes_expanded += 1
        logger.debug("%s%d related movies for %s", indent, len(related), movie.key)

        if self.request_delay > 0:
            await self._sleep(self.request_delay)
        return related

    async def _fetch_related(self, movie: MovieRef, result: BuildResult) -> list[MovieRef]:
        if movie.id is None:
            logger.warning("No identifier for %s, skipping expansion", movie.key)
            return []
        try:
            related = await self.source.get_related_movies(movie.id)
        except SourceError as e:
            logger.warning("Error getting related movies for %s: %s", movie.key, e)
            result.failed_expansions.append(movie.identity)
            return []
        return related[: self.max_movies_per_level]

    def _link_connections(self, result: BuildResult) -> None:
        """Turn recorded connections into edges; targets never visited are dropped."""
        network = result.network
        for source_id, targets in result.connections.items():
            for target in targets:
                if target.identity in network:
                    network.add_edge(source_id, target.identity)
                else:
                    result.dropped_connections += 1
