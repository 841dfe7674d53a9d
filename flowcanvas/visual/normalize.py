"""Structural repair of automation flows.

``normalize`` runs on every load, after every mutation and before every
write. It never reports errors; it returns a flow that satisfies the
structural invariants:

* at most one trigger node (the first one in array order wins),
* every node sits on the 16-unit grid with a non-origin position,
* every edge references two nodes that exist in the flow.

Applying it twice yields the same flow as applying it once.
"""

from typing import List, Optional, Sequence

import structlog

from flowcanvas.visual.flow import (
    GRID_SIZE,
    AutomationFlow,
    CanvasEdge,
    CanvasNode,
    TriggerNode,
    snap_to_grid,
)

logger = structlog.get_logger(__name__)

LAYOUT_ORIGIN = 160
NODE_GAP_X = 240
NODE_GAP_Y = 180


def ensure_single_trigger(nodes: Sequence[CanvasNode]) -> List[CanvasNode]:
    """Drop every trigger after the first one."""
    kept: List[CanvasNode] = []
    seen_trigger = False
    for node in nodes:
        if isinstance(node, TriggerNode):
            if seen_trigger:
                continue
            seen_trigger = True
        kept.append(node)
    return kept


def _layout_coordinate(value: Optional[float], fallback: int) -> float:
    snapped = snap_to_grid(value, GRID_SIZE) if value is not None else 0.0
    if snapped == 0:
        # fallback stays on the grid so a second pass leaves it alone
        return snap_to_grid(fallback, GRID_SIZE)
    return snapped


def layout_nodes(nodes: Sequence[CanvasNode]) -> List[CanvasNode]:
    """Snap positions to the grid and place unpositioned nodes on a diagonal."""
    laid_out: List[CanvasNode] = []
    for index, node in enumerate(nodes):
        x = _layout_coordinate(node.x, LAYOUT_ORIGIN + index * NODE_GAP_X)
        y = _layout_coordinate(node.y, LAYOUT_ORIGIN + index * NODE_GAP_Y)
        if x != node.x or y != node.y:
            node = node.model_copy(update={"x": x, "y": y})
        laid_out.append(node)
    return laid_out


def remove_dangling_edges(
    edges: Sequence[CanvasEdge],
    nodes: Sequence[CanvasNode],
) -> List[CanvasEdge]:
    """Keep only edges whose endpoints both exist."""
    node_ids = {node.id for node in nodes}
    return [
        edge for edge in edges
        if edge.source in node_ids and edge.target in node_ids
    ]


def normalize(flow: AutomationFlow) -> AutomationFlow:
    """Return a structurally valid copy of ``flow``."""
    nodes = layout_nodes(ensure_single_trigger(flow.nodes))
    edges = remove_dangling_edges(flow.edges, nodes)

    dropped_nodes = len(flow.nodes) - len(nodes)
    dropped_edges = len(flow.edges) - len(edges)
    if dropped_nodes or dropped_edges:
        logger.debug(
            "flow_normalized",
            flow_id=flow.id,
            dropped_triggers=dropped_nodes,
            dropped_edges=dropped_edges,
        )

    if tuple(nodes) == flow.nodes and tuple(edges) == flow.edges:
        return flow
    return flow.replace(nodes=nodes, edges=edges)
