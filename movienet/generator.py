"""Offline generation — build a network from a seed and write the static page."""

import logging
from pathlib import Path

from movienet.builder import GraphBuilder
from movienet.config import BuilderConfig, Config
from movienet.db import NetworkDB
from movienet.errors import MovieNotFoundError
from movienet.output.static_html import write_static_html
from movienet.serialization import generate_visualization_data, to_persistable_document
from movienet.source import HttpMovieSource, MovieSource

logger = logging.getLogger(__name__)


class GenerationResult:
    """Summary of a generation run."""

    def __init__(self, seed_query: str, output_file: Path) -> None:
        self.seed_query = seed_query
        self.output_file = output_file
        self.network_size = 0
        self.total_connections = 0
        self.failed_expansions = 0
        self.saved_network_id: str | None = None

    def __repr__(self) -> str:
        parts = [
            f"GenerationResult({self.seed_query}: ",
            f"{self.network_size} movies, {self.total_connections} connections ",
            f"-> {self.output_file}",
        ]
        if self.failed_expansions:
            parts.append(f", failed={self.failed_expansions}")
        if self.saved_network_id:
            parts.append(f", saved={self.saved_network_id}")
        parts.append(")")
        return "".join(parts)


async def generate_network_graph(
    seed_query: str,
    output_file: Path,
    config: Config,
    builder_config: BuilderConfig | None = None,
    source: MovieSource | None = None,
    db: NetworkDB | None = None,
    save_name: str | None = None,
) -> GenerationResult:
    """Build the network for seed_query and write it as a static HTML page.

    Raises MovieNotFoundError when the seed search finds nothing, or the
    SourceError of a failed seed search. When db and save_name are given,
    the network is also saved (or updated) by name.
    """
    builder_config = builder_config or config.builder
    output_file = Path(output_file)
    result = GenerationResult(seed_query, output_file)

    logger.info("Movie Network Generator")
    logger.info("=" * 50)
    logger.info("Starting movie: %s", seed_query)
    logger.info("Max depth: %d", builder_config.max_depth)
    logger.info("Max movies per level: %d", builder_config.max_movies_per_level)

    owned_source = source is None
    active_source = source if source is not None else HttpMovieSource(config.source)
    try:
        builder = GraphBuilder.from_config(active_source, builder_config)
        build = await builder.build(seed_query)
    finally:
        if owned_source:
            await active_source.aclose()  # type: ignore[attr-defined]

    if build.seed_error is not None:
        raise build.seed_error
    if not build.found:
        raise MovieNotFoundError(seed_query)

    result.failed_expansions = len(build.failed_expansions)
    logger.info("Network statistics:")
    logger.info("   Total movies: %d", len(build.network))
    logger.info("   Total connections: %d", build.total_connections)

    graph_data = generate_visualization_data(build.network)
    result.network_size = len(graph_data.nodes)
    result.total_connections = len(graph_data.links)
    write_static_html(graph_data, output_file)

    if db is not None and save_name:
        document = to_persistable_document(build.network, name=save_name)
        result.saved_network_id, created = db.save_or_update_by_name(document)
        logger.info("%s network %r", "Saved" if created else "Updated", save_name)

    logger.info("Network graph generated successfully!")
    logger.info("Output file: %s", output_file)
    logger.info("Open in browser: file://%s", output_file.resolve())
    return result
