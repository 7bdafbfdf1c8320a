#!/usr/bin/env python3
"""Movie network MCP server — explore a live movie network interactively."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

from mcp.server.fastmcp import FastMCP

from movienet.config import Config, load_config
from movienet.controller import NetworkController
from movienet.db import NetworkDB
from movienet.errors import MovieNetError
from movienet.output.static_html import write_static_html
from movienet.serialization import generate_visualization_data
from movienet.source import HttpMovieSource

mcp = FastMCP("movienet")
logger = logging.getLogger(__name__)

# Redirect all logging to stderr so stdout stays clean for MCP stdio transport
logging.basicConfig(
    stream=sys.stderr,
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

_db: NetworkDB | None = None
_config: Config | None = None
_controller: NetworkController | None = None


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _get_db() -> NetworkDB:
    global _db
    if _db is None:
        _db = NetworkDB(_get_config())
        _db.init_db()
    return _db


def _get_controller() -> NetworkController:
    global _controller
    if _controller is None:
        config = _get_config()
        _controller = NetworkController(HttpMovieSource(config.source), config.explorer)
    return _controller


def _drain_notifications(controller: NetworkController) -> list[dict]:
    """Hand pending notifications to the caller once, then dismiss them."""
    pending = [n.model_dump(mode="json") for n in controller.notifications]
    for n in list(controller.notifications):
        controller.dismiss(n.id)
    return pending


@mcp.tool()
async def search_and_add_movie(query: str) -> str:
    """Search for a movie by title and add it to the network."""
    controller = _get_controller()
    node = await controller.search_and_add_movie(query)
    return json.dumps({
        "node": node.model_dump() if node else None,
        "notifications": _drain_notifications(controller),
    })


@mcp.tool()
async def expand_movie(node_id: str) -> str:
    """Add the related movies of a node already in the network."""
    controller = _get_controller()
    children = await controller.expand_node(node_id)
    return json.dumps({
        "added": [c.model_dump() for c in children],
        "notifications": _drain_notifications(controller),
    })


@mcp.tool()
def remove_movie(node_id: str) -> str:
    """Remove a movie and its connections from the network."""
    controller = _get_controller()
    removed = controller.remove_node(node_id)
    return json.dumps({"removed": removed, "notifications": _drain_notifications(controller)})


@mcp.tool()
def clear_network() -> str:
    """Discard the current network and start an empty one."""
    controller = _get_controller()
    controller.clear()
    return json.dumps({"cleared": True, "notifications": _drain_notifications(controller)})


@mcp.tool()
def get_network() -> str:
    """Visible nodes and edges under the active color mode and filters."""
    return json.dumps(_get_controller().view_state(), default=str)


@mcp.tool()
def set_color_mode(mode: str) -> str:
    """Switch coloring (depth, genre, rating, decade). Reports nodes missing required details."""
    try:
        availability = _get_controller().set_color_mode(mode)
        return json.dumps(availability.model_dump(mode="json"))
    except ValueError as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def toggle_category_filter(category: str) -> str:
    """Hide or show a color category in the current mode."""
    controller = _get_controller()
    hidden = controller.toggle_category_filter(category)
    return json.dumps({"category": category, "hidden": hidden})


@mcp.tool()
def clear_filters(all_modes: bool = False) -> str:
    """Clear category filters for the current mode, or for every mode."""
    controller = _get_controller()
    if all_modes:
        controller.clear_all_filters()
    else:
        controller.clear_filters()
    return json.dumps({"cleared": True})


@mcp.tool()
def toggle_labels() -> str:
    """Show or hide node labels."""
    return json.dumps({"show_labels": _get_controller().toggle_labels()})


@mcp.tool()
async def load_missing_details() -> str:
    """Fetch details needed by the current color mode for nodes that lack them."""
    controller = _get_controller()
    result = await controller.load_missing_details_for_color_mode()
    return json.dumps({
        **result.model_dump(),
        "notifications": _drain_notifications(controller),
    })


@mcp.tool()
def save_network(name: Optional[str] = None, description: Optional[str] = None) -> str:
    """Save the current network. An existing network with the same name is updated."""
    controller = _get_controller()
    if len(controller.network) == 0:
        return json.dumps({"error": "No network to save"})
    try:
        document = controller.to_document(name=name, description=description)
        network_id, created = _get_db().save_or_update_by_name(document)
        return json.dumps({"id": network_id, "name": document.name, "created": created})
    except MovieNetError as e:
        return json.dumps({"error": str(e)})


@mcp.tool()
def list_saved_networks() -> str:
    """List saved networks with summary metadata."""
    networks = _get_db().list_networks()
    return json.dumps([n.model_dump() for n in networks], default=str)


@mcp.tool()
def load_saved_network(network_id: str) -> str:
    """Replace the current network with a saved one."""
    document = _get_db().get_network(network_id)
    if document is None:
        return json.dumps({"error": f"Saved network '{network_id}' not found"})
    controller = _get_controller()
    try:
        network = controller.load_document(document)
    except MovieNetError as e:
        return json.dumps({"error": str(e)})
    return json.dumps({
        "name": document.name,
        "nodes": len(network),
        "edges": len(network.edges),
        "notifications": _drain_notifications(controller),
    })


@mcp.tool()
def delete_saved_network(network_id: str) -> str:
    """Delete a saved network."""
    deleted = _get_db().delete_network(network_id)
    if not deleted:
        return json.dumps({"error": f"Saved network '{network_id}' not found"})
    return json.dumps({"deleted": network_id})


@mcp.tool()
def export_visualization(output_path: str) -> str:
    """Write the current network as a static HTML page."""
    controller = _get_controller()
    try:
        path = write_static_html(generate_visualization_data(controller.network), Path(output_path))
    except OSError as e:
        return json.dumps({"error": str(e)})
    return json.dumps({"output": str(path), "nodes": len(controller.network)})


if __name__ == "__main__":
    mcp.run()
