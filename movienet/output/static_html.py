"""Static movie network page — a single self-contained HTML file.

The graph is embedded as a JSON literal and rendered with a D3 force layout
loaded from the CDN. No other files are produced.
"""

import html
import json
import logging
from pathlib import Path

from movienet.models import GraphData
from movienet.serialization import graph_data_json

logger = logging.getLogger(__name__)

D3_CDN = "https://d3js.org/d3.v7.min.js"

# Depth group (depth + 1) -> color, label
DEPTH_LEGEND = [
    (1, "#e94560", "Starting Movie"),
    (2, "#f6e05e", "1st Degree"),
    (3, "#10b981", "2nd Degree"),
    (4, "#3b82f6", "3rd Degree"),
]

PAGE_CSS = """
body {
    font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
    margin: 0; padding: 20px; min-height: 100vh; color: white;
    background: linear-gradient(135deg, #1a1a2e, #16213e);
}
.container { max-width: 1400px; margin: 0 auto; }
.header {
    text-align: center; margin-bottom: 30px; padding: 20px;
    background: rgba(255, 255, 255, 0.1); border-radius: 20px;
}
.header h1 { font-size: 2.5rem; margin-bottom: 10px; color: #f6e05e; }
.controls { text-align: center; margin-bottom: 20px; }
.btn {
    background: linear-gradient(45deg, #e94560, #f6e05e); border: none; color: white;
    padding: 10px 20px; border-radius: 10px; cursor: pointer; margin: 0 10px; font-weight: bold;
}
#graph { background: rgba(255, 255, 255, 0.05); border-radius: 20px; border: 1px solid rgba(255, 255, 255, 0.1); }
.node { cursor: pointer; stroke: #fff; stroke-width: 2px; }
.link { stroke: rgba(255, 255, 255, 0.3); stroke-width: 1px; }
.node-label { font-size: 12px; fill: white; text-anchor: middle; pointer-events: none; }
.tooltip {
    position: absolute; background: rgba(0, 0, 0, 0.9); color: white; padding: 10px;
    border-radius: 8px; pointer-events: none; font-size: 14px; max-width: 220px;
}
.legend {
    position: absolute; top: 20px; right: 20px; padding: 15px; border-radius: 10px;
    background: rgba(0, 0, 0, 0.8); border: 1px solid rgba(255, 255, 255, 0.2);
}
.legend-item { display: flex; align-items: center; margin-bottom: 8px; }
.legend-color { width: 16px; height: 16px; border-radius: 50%; margin-right: 8px; }
.stats { text-align: center; margin-top: 20px; background: rgba(255, 255, 255, 0.1); padding: 15px; border-radius: 10px; }
"""

GRAPH_JS = """
const width = 1200;
const height = 800;
let showLabels = true;

const colorScale = d3.scaleOrdinal().domain(GROUPS).range(COLORS);

const svg = d3.select('#graph').attr('width', width).attr('height', height);
const g = svg.append('g');

const zoom = d3.zoom().scaleExtent([0.1, 4]).on('zoom', (event) => {
    g.attr('transform', event.transform);
});
svg.call(zoom);

const simulation = d3.forceSimulation(graphData.nodes)
    .force('link', d3.forceLink(graphData.links).id(d => d.id).distance(100))
    .force('charge', d3.forceManyBody().strength(-300))
    .force('center', d3.forceCenter(width / 2, height / 2))
    .force('collision', d3.forceCollide().radius(30));

const link = g.append('g').selectAll('line')
    .data(graphData.links).enter().append('line').attr('class', 'link');

const node = g.append('g').selectAll('circle')
    .data(graphData.nodes).enter().append('circle')
    .attr('class', 'node')
    .attr('r', d => d.depth === 0 ? 12 : 8)
    .attr('fill', d => colorScale(d.group))
    .call(d3.drag().on('start', dragstarted).on('drag', dragged).on('end', dragended))
    .on('mouseover', showTooltip)
    .on('mouseout', hideTooltip);

const labels = g.append('g').selectAll('text')
    .data(graphData.nodes).enter().append('text')
    .attr('class', 'node-label')
    .text(d => d.title)
    .style('font-size', d => d.depth === 0 ? '14px' : '12px')
    .style('font-weight', d => d.depth === 0 ? 'bold' : 'normal');

simulation.on('tick', () => {
    link.attr('x1', d => d.source.x).attr('y1', d => d.source.y)
        .attr('x2', d => d.target.x).attr('y2', d => d.target.y);
    node.attr('cx', d => d.x).attr('cy', d => d.y);
    labels.attr('x', d => d.x).attr('y', d => d.y + 25);
});

function dragstarted(event, d) {
    if (!event.active) simulation.alphaTarget(0.3).restart();
    d.fx = d.x; d.fy = d.y;
}
function dragged(event, d) { d.fx = event.x; d.fy = event.y; }
function dragended(event, d) {
    if (!event.active) simulation.alphaTarget(0);
    d.fx = null; d.fy = null;
}

function showTooltip(event, d) {
    const connections = graphData.links.filter(l => l.source.id === d.id || l.target.id === d.id).length;
    const tooltip = d3.select('#tooltip');
    tooltip.style('display', 'block')
        .style('left', (event.pageX + 10) + 'px')
        .style('top', (event.pageY - 10) + 'px');
    tooltip.html('');
    tooltip.append('strong').text(d.name);
    tooltip.append('div').text('Depth: ' + d.depth);
    tooltip.append('div').text('Movie ID: ' + (d.movie_id === null ? 'n/a' : d.movie_id));
    tooltip.append('div').text('Connections: ' + connections);
}
function hideTooltip() { d3.select('#tooltip').style('display', 'none'); }

function restartSimulation() { simulation.alpha(1).restart(); }
function centerGraph() {
    svg.transition().duration(750).call(zoom.transform, d3.zoomIdentity);
}
function toggleLabels() {
    showLabels = !showLabels;
    labels.style('display', showLabels ? 'block' : 'none');
}
setTimeout(centerGraph, 1000);
"""


def _script_literal(text: str) -> str:
    """Make embedded JSON safe inside a <script> element."""
    return text.replace("</", "<\\/")


def render_static_html(graph_data: GraphData, title: str = "Movie Network Graph") -> str:
    """Render the full page for a graph payload."""
    legend_items = "".join(
        f'<div class="legend-item"><div class="legend-color" style="background: {color};"></div>'
        f"<span>{label}</span></div>"
        for _, color, label in DEPTH_LEGEND
    )
    groups = [group for group, _, _ in DEPTH_LEGEND]
    colors = [color for _, color, _ in DEPTH_LEGEND]
    payload = _script_literal(graph_data_json(graph_data))
    safe_title = html.escape(title)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{safe_title}</title>
<script src="{D3_CDN}"></script>
<style>{PAGE_CSS}</style>
</head>
<body>
<div class="container">
    <div class="header">
        <h1>{safe_title}</h1>
        <p>Interactive visualization of movie relationships</p>
    </div>
    <div class="controls">
        <button class="btn" onclick="restartSimulation()">Restart</button>
        <button class="btn" onclick="centerGraph()">Center</button>
        <button class="btn" onclick="toggleLabels()">Toggle Labels</button>
    </div>
    <div style="position: relative;">
        <svg id="graph"></svg>
        <div class="legend"><h4 style="margin-top: 0;">Depth Levels</h4>{legend_items}</div>
    </div>
    <div class="stats">
        <strong>Network Stats:</strong>
        <span id="node-count">{len(graph_data.nodes)}</span> movies,
        <span id="link-count">{len(graph_data.links)}</span> connections
    </div>
</div>
<div class="tooltip" id="tooltip" style="display: none;"></div>
<script>
const graphData = {payload};
const GROUPS = {json.dumps(groups)};
const COLORS = {json.dumps(colors)};
{GRAPH_JS}
</script>
</body>
</html>
"""


def write_static_html(
    graph_data: GraphData,
    output_path: Path,
    title: str = "Movie Network Graph",
) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_static_html(graph_data, title=title), encoding="utf-8")
    logger.info("Wrote %d movies, %d links to %s", len(graph_data.nodes), len(graph_data.links), output_path)
    return output_path
