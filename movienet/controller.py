"""Interactive network controller — grows a live network one movie at a time.

All mutation goes through this object from a single task. Every async
operation captures the network it started on and drops its result if the
network was cleared or replaced while it was waiting on the data source.
Data source failures never escape: they become notifications.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from movienet.config import ExplorerConfig
from movienet.errors import MovieNotFoundError, NodeNotFoundError, SourceError
from movienet.models import (
    ColorMode,
    DataAvailability,
    EnrichmentResult,
    MovieDetails,
    MovieRef,
    NetworkDocument,
    NetworkEdge,
    NetworkNode,
    NetworkSettings,
    Notification,
    NotificationLevel,
)
from movienet.network import Network
from movienet.serialization import from_persistable_document, parse_document, to_persistable_document
from movienet.source import MovieSource

logger = logging.getLogger(__name__)

# Color modes that can only be computed from fetched movie details
DETAIL_MODES = frozenset({ColorMode.GENRE, ColorMode.RATING})

UNKNOWN = "Unknown"
UNRATED = "Unrated"


def _depth_label(depth: int) -> str:
    if depth == 0:
        return "Starting Movie"
    if 10 <= depth % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(depth % 10, "th")
    return f"{depth}{suffix} Degree"


def _rating_bucket(rating: float | None) -> str:
    if rating is None:
        return UNRATED
    if rating >= 8:
        return "8+ Excellent"
    if rating >= 7:
        return "7-8 Good"
    if rating >= 6:
        return "6-7 Fair"
    return "Below 6"


def color_category(node: NetworkNode, mode: ColorMode) -> str:
    """Category label for a node under a color mode."""
    if mode == ColorMode.DEPTH:
        return _depth_label(node.depth)
    if mode == ColorMode.GENRE:
        return node.genres[0].title() if node.genres else UNKNOWN
    if mode == ColorMode.RATING:
        return _rating_bucket(node.rating)
    if node.movie.year is None:
        return UNKNOWN
    return f"{node.movie.year // 10 * 10}s"


class NetworkController:
    """Owns one live Network plus its view state (color mode, filters, notifications)."""

    def __init__(
        self,
        source: MovieSource,
        config: ExplorerConfig | None = None,
        on_notify: Callable[[Notification], None] | None = None,
    ) -> None:
        self.source = source
        self.config = config or ExplorerConfig()
        self.network = Network()
        self.settings = NetworkSettings(color_mode=ColorMode(self.config.default_color_mode))
        self.notifications: list[Notification] = []
        self._next_notification_id = 1
        self._on_notify = on_notify

    # --- Notifications ---

    def notify(self, level: NotificationLevel, message: str) -> Notification:
        notification = Notification(id=self._next_notification_id, level=level, message=message)
        self._next_notification_id += 1
        self.notifications.append(notification)
        log_level = logging.WARNING if level == NotificationLevel.ERROR else logging.INFO
        logger.log(log_level, "[%s] %s", level.value, message)
        if self._on_notify is not None:
            self._on_notify(notification)
        return notification

    def dismiss(self, notification_id: int) -> bool:
        before = len(self.notifications)
        self.notifications = [n for n in self.notifications if n.id != notification_id]
        return len(self.notifications) < before

    def _is_current(self, network: Network) -> bool:
        return network is self.network

    # --- Growing the network ---

    def add_movie(self, movie: MovieRef, related_to: str | None = None) -> NetworkNode:
        """Add a movie, or return the existing node for it.

        With related_to, a new node goes one level below that parent and the
        parent -> node edge is added if neither direction exists yet. Without
        it, a new node is a root at depth 0. Raises NodeNotFoundError (before
        mutating anything) if the parent is gone.
        """
        network = self.network
        parent: NetworkNode | None = None
        if related_to is not None:
            parent = network.get_node(related_to)
            if parent is None:
                raise NodeNotFoundError(related_to)

        node = network.get_node(movie.identity)
        if node is None:
            depth = parent.depth + 1 if parent is not None else 0
            node, _ = network.add_node(movie, depth)
            node.color_category = color_category(node, self.settings.color_mode)
            logger.info("Added %s at depth %d", movie.key, depth)

        if (
            parent is not None
            and parent.id != node.id
            and not network.has_edge(parent.id, node.id)
            and not network.has_edge(node.id, parent.id)
        ):
            network.add_edge(parent.id, node.id)
        return node

    async def find_movie(self, query: str) -> MovieRef:
        """Best search match. Raises MovieNotFoundError or SourceError."""
        matches = await self.source.search_movies(query)
        if not matches:
            raise MovieNotFoundError(query)
        return matches[0]

    async def search_and_add_movie(self, query: str) -> NetworkNode | None:
        """Search for a movie and add it as a root. Failures become notifications."""
        query = query.strip()
        if not query:
            self.notify(NotificationLevel.ERROR, "Please enter a movie title")
            return None

        network = self.network
        try:
            movie = await self.find_movie(query)
        except MovieNotFoundError:
            self.notify(NotificationLevel.ERROR, f'No movie found for "{query}"')
            return None
        except SourceError as e:
            self.notify(NotificationLevel.ERROR, f'Search for "{query}" failed: {e.detail}')
            return None

        if not self._is_current(network):
            logger.info("Discarding search result for %r: network was replaced", query)
            return None

        existed = movie.identity in network
        node = self.add_movie(movie)
        if existed:
            self.notify(NotificationLevel.INFO, f"{movie.key} is already in the network")
        else:
            self.notify(NotificationLevel.SUCCESS, f"Added {movie.key}")
        return node

    async def expand_node(self, node_id: str) -> list[NetworkNode]:
        """Add the node's related movies (up to the fan-out limit) as its children."""
        network = self.network
        node = network.get_node(node_id)
        if node is None:
            self.notify(NotificationLevel.ERROR, f"Movie '{node_id}' is not in the network")
            return []
        if node.movie.id is None:
            self.notify(NotificationLevel.WARNING, f"No identifier for {node.movie.key}, cannot load related movies")
            return []

        try:
            related = await self.source.get_related_movies(node.movie.id)
        except SourceError as e:
            self.notify(NotificationLevel.ERROR, f"Could not load related movies for {node.movie.key}: {e.detail}")
            return []

        if not self._is_current(network) or node_id not in network:
            logger.info("Discarding related movies for %s: node or network is gone", node_id)
            return []

        before = len(network)
        children = [
            self.add_movie(movie, related_to=node_id)
            for movie in related[: self.config.max_movies_per_level]
        ]
        added = len(network) - before
        linked = len(children) - added
        if added:
            message = f"Added {added} related movies to {node.movie.key}"
            if linked:
                message += f", linked {linked} already in the network"
            self.notify(NotificationLevel.SUCCESS, message)
        elif children:
            self.notify(NotificationLevel.INFO, f"Related movies of {node.movie.key} are already in the network")
        else:
            self.notify(NotificationLevel.INFO, f"No related movies found for {node.movie.key}")
        return children

    # --- Shrinking the network ---

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and its edges. Unknown ids are a no-op (returns False)."""
        removed = self.network.remove_node(node_id)
        if removed is None:
            return False
        self.notify(NotificationLevel.INFO, "Movie removed from network")
        return True

    def clear(self) -> None:
        """Start a new, empty network. In-flight operations on the old one are discarded."""
        self.network = Network()
        self.notify(NotificationLevel.INFO, "Network cleared")

    # --- Color modes and filters ---

    @property
    def color_mode(self) -> ColorMode:
        return self.settings.color_mode

    def set_color_mode(self, mode: ColorMode | str) -> DataAvailability:
        """Switch color mode and recompute categories. Filters of every mode are kept."""
        self.settings.color_mode = ColorMode(mode)
        self._recolor()
        return self.check_data_availability()

    def _recolor(self) -> None:
        mode = self.settings.color_mode
        for node in self.network.nodes:
            node.color_category = color_category(node, mode)

    def check_data_availability(self, mode: ColorMode | str | None = None) -> DataAvailability:
        mode = ColorMode(mode) if mode is not None else self.settings.color_mode
        nodes = self.network.nodes
        missing = 0
        if mode in DETAIL_MODES:
            missing = sum(1 for n in nodes if n.details is None)
        return DataAvailability(mode=mode, available=len(nodes) - missing, missing=missing)

    @property
    def hidden_categories(self) -> set[str]:
        return set(self.settings.hidden_categories.get(self.settings.color_mode.value, []))

    def _set_hidden(self, hidden: set[str]) -> None:
        key = self.settings.color_mode.value
        if hidden:
            self.settings.hidden_categories[key] = sorted(hidden)
        else:
            self.settings.hidden_categories.pop(key, None)

    def toggle_category_filter(self, category: str) -> bool:
        """Hide or show a category in the current mode. Returns True if now hidden."""
        hidden = self.hidden_categories
        if category in hidden:
            hidden.discard(category)
        else:
            hidden.add(category)
        self._set_hidden(hidden)
        return category in hidden

    def clear_filters(self) -> None:
        self._set_hidden(set())

    def clear_all_filters(self) -> None:
        self.settings.hidden_categories.clear()

    def visible_nodes(self) -> list[NetworkNode]:
        hidden = self.hidden_categories
        return [n for n in self.network.nodes if n.color_category not in hidden]

    def visible_edges(self) -> list[NetworkEdge]:
        visible_ids = {n.id for n in self.visible_nodes()}
        return [e for e in self.network.edges if e.source in visible_ids and e.target in visible_ids]

    def category_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for node in self.network.nodes:
            category = node.color_category or UNKNOWN
            counts[category] = counts.get(category, 0) + 1
        return dict(sorted(counts.items()))

    def toggle_labels(self) -> bool:
        self.settings.show_labels = not self.settings.show_labels
        return self.settings.show_labels

    # --- Lazy enrichment ---

    async def _fetch_details(self, node: NetworkNode) -> MovieDetails | None:
        try:
            return await self.source.get_movie_details(node.movie.id)  # type: ignore[arg-type]
        except SourceError as e:
            logger.warning("Details unavailable for %s: %s", node.movie.key, e)
            return None

    async def load_missing_details_for_color_mode(self) -> EnrichmentResult:
        """Fetch details for nodes the current color mode cannot categorize yet.

        Requests go out in batches of detail_batch_size. A failed fetch leaves
        that node as it was and does not stop the rest of the batch.
        """
        result = EnrichmentResult()
        if self.settings.color_mode not in DETAIL_MODES:
            return result

        network = self.network
        pending = [n for n in network.nodes if n.details is None and n.movie.id is not None]
        result.requested = len(pending)
        batch_size = self.config.detail_batch_size

        for start in range(0, len(pending), batch_size):
            batch = pending[start:start + batch_size]
            fetched = await asyncio.gather(*(self._fetch_details(n) for n in batch))
            if not self._is_current(network):
                logger.info("Discarding loaded details: network was replaced")
                return result
            for node, details in zip(batch, fetched):
                if details is None:
                    result.failed.append(node.id)
                elif node.id in network:
                    node.details = details
                    result.loaded += 1

        self._recolor()
        if result.failed:
            self.notify(
                NotificationLevel.WARNING,
                f"Loaded details for {result.loaded} movies, {len(result.failed)} unavailable",
            )
        elif result.requested:
            self.notify(NotificationLevel.SUCCESS, f"Loaded details for {result.loaded} movies")
        return result

    # --- Documents ---

    def to_document(self, name: str | None = None, description: str | None = None) -> NetworkDocument:
        return to_persistable_document(self.network, name=name, description=description, settings=self.settings)

    def load_document(self, raw: NetworkDocument | dict[str, Any] | str) -> Network:
        """Replace the live network with a document's contents.

        Raises DocumentIntegrityError and leaves the current network untouched
        if the document is inconsistent.
        """
        document = parse_document(raw)
        network = from_persistable_document(document)
        self.network = network
        self.settings = document.settings.model_copy(deep=True)
        self._recolor()
        self.notify(NotificationLevel.SUCCESS, f'Network "{document.name}" loaded')
        return network

    def view_state(self) -> dict[str, Any]:
        """Visible graph plus view metadata, ready for JSON."""
        return {
            "color_mode": self.settings.color_mode.value,
            "hidden_categories": sorted(self.hidden_categories),
            "category_counts": self.category_counts(),
            "show_labels": self.settings.show_labels,
            "nodes": [n.model_dump() for n in self.visible_nodes()],
            "edges": [e.model_dump() for e in self.visible_edges()],
            "summary": self.network.summary().model_dump(),
        }
