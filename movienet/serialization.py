"""Conversions between Network, persistable documents, and visualization data."""

import json
import logging
from typing import Any

from pydantic import ValidationError

from movienet.errors import DocumentIntegrityError
from movienet.models import (
    GraphData,
    NetworkDocument,
    NetworkEdge,
    NetworkSettings,
    VisLink,
    VisNode,
)
from movienet.network import Network

logger = logging.getLogger(__name__)


def default_network_name(seed_movie: str | None) -> str:
    return f"{seed_movie} Network" if seed_movie else "Movie Network"


def to_persistable_document(
    network: Network,
    name: str | None = None,
    description: str | None = None,
    settings: NetworkSettings | None = None,
) -> NetworkDocument:
    """Snapshot a network into a document.

    Edges hold raw node ids. Metadata is computed now and not kept in sync
    with later changes to the network.
    """
    seed = network.seed
    seed_movie = seed.title if seed else None
    return NetworkDocument(
        name=name or default_network_name(seed_movie),
        description=description,
        seed_movie=seed_movie,
        nodes=[n.model_copy(deep=True) for n in network.nodes],
        edges=[NetworkEdge(source=e.source, target=e.target) for e in network.edges],
        settings=settings.model_copy(deep=True) if settings else NetworkSettings(),
        metadata=network.summary(),
    )


def parse_document(raw: NetworkDocument | dict[str, Any] | str) -> NetworkDocument:
    """Validate a document given as a model, a dict, or JSON text."""
    if isinstance(raw, NetworkDocument):
        return raw
    try:
        if isinstance(raw, str):
            return NetworkDocument.model_validate_json(raw)
        return NetworkDocument.model_validate(raw)
    except ValidationError as e:
        raise DocumentIntegrityError(f"malformed document ({e.error_count()} errors)") from e


def from_persistable_document(raw: NetworkDocument | dict[str, Any] | str) -> Network:
    """Rebuild a Network from a document, all or nothing.

    Duplicate node ids, node ids that differ from their movie identity,
    self-loops, and edges naming unknown nodes reject the whole document
    with DocumentIntegrityError.
    """
    document = parse_document(raw)
    network = Network()

    for node in document.nodes:
        if node.id != node.movie.identity:
            raise DocumentIntegrityError(
                f"node id '{node.id}' does not match movie identity '{node.movie.identity}'"
            )
        if not network.restore_node(node.model_copy(deep=True)):
            raise DocumentIntegrityError(f"duplicate node id '{node.id}'")

    for i, edge in enumerate(document.edges):
        for endpoint in (edge.source, edge.target):
            if endpoint not in network:
                raise DocumentIntegrityError(
                    f"edge {i} ({edge.source} -> {edge.target}) references unknown node '{endpoint}'"
                )
        if edge.source == edge.target:
            raise DocumentIntegrityError(f"edge {i} is a self-loop on '{edge.source}'")
        network.add_edge(edge.source, edge.target)

    logger.info(
        "Loaded network %r: %d nodes, %d edges",
        document.name, len(network), len(network.edges),
    )
    return network


def generate_visualization_data(network: Network) -> GraphData:
    """Dense integer ids (0..N-1) in discovery order; links whose endpoints
    did not resolve to a node are dropped."""
    index: dict[str, int] = {}
    nodes: list[VisNode] = []
    for i, node in enumerate(network.nodes):
        index[node.id] = i
        nodes.append(VisNode(
            id=i,
            name=node.movie.key,
            title=node.movie.title,
            year=node.movie.year,
            depth=node.depth,
            group=node.depth + 1,
            movie_id=node.movie.id,
        ))

    links = [
        VisLink(source=index[e.source], target=index[e.target])
        for e in network.edges
        if e.source in index and e.target in index
    ]
    return GraphData(nodes=nodes, links=links)


def graph_data_json(graph_data: GraphData, indent: int | None = 2) -> str:
    return json.dumps(graph_data.model_dump(), indent=indent)
