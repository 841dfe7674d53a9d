"""The editable flow document and its mutation entry point."""

from typing import Any, Callable, Dict, List, Optional

import structlog

from flowcanvas.editor.history import History
from flowcanvas.visual.flow import (
    AutomationFlow,
    CanvasEdge,
    CanvasNode,
    generate_id,
    snap_to_grid,
)
from flowcanvas.visual.normalize import normalize

logger = structlog.get_logger(__name__)

Transform = Callable[[AutomationFlow], AutomationFlow]
ChangeListener = Callable[[AutomationFlow], None]

DUPLICATE_OFFSET = 40


class FlowDocument:
    """Single source of truth for the flow being edited.

    All changes go through :meth:`apply`, which normalizes the result,
    stamps ``updated_at`` and records a history snapshot unless the edit
    is transient.
    """

    def __init__(self, flow: AutomationFlow, history_limit: Optional[int] = None):
        self._flow = normalize(flow)
        self._history: History[AutomationFlow] = History(self._flow, limit=history_limit)
        self._listeners: List[ChangeListener] = []

    @property
    def flow(self) -> AutomationFlow:
        return self._flow

    @property
    def nodes(self):
        return self._flow.nodes

    @property
    def edges(self):
        return self._flow.edges

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Call ``listener`` after every accepted change; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _set(self, flow: AutomationFlow) -> AutomationFlow:
        self._flow = flow
        for listener in list(self._listeners):
            listener(flow)
        return flow

    def apply(self, transform: Transform, transient: bool = False) -> AutomationFlow:
        """Apply a pure ``flow -> flow`` transform.

        A transform that returns the current flow unchanged is ignored.
        Transient edits (live drag previews) update the document but are
        not recorded in history.
        """
        candidate = transform(self._flow)
        if candidate is self._flow:
            return self._flow

        normalized = normalize(candidate)
        if normalized == self._flow:
            return self._flow

        updated = normalized.touch()
        if not transient:
            self._history.push(updated)
        return self._set(updated)

    def mark_saved(self, saved: AutomationFlow) -> AutomationFlow:
        """Adopt the status, version and timestamps assigned by storage.

        Not an edit: nothing is recorded in history and listeners are not
        notified. Pending transient changes are kept.
        """
        metadata = {
            "status": saved.status,
            "version": saved.version,
            "created_at": saved.created_at,
            "updated_at": saved.updated_at,
        }
        committed = self._history.current()
        if committed is self._flow:
            self._flow = self._history.replace_current(committed.replace(**metadata))
        else:
            self._history.replace_current(committed.replace(**metadata))
            self._flow = self._flow.replace(**metadata)
        return self._flow

    def discard_transient(self) -> AutomationFlow:
        """Drop uncommitted transient edits, returning to the last snapshot."""
        committed = self._history.current()
        if committed is self._flow:
            return self._flow
        return self._set(committed)

    def undo(self) -> AutomationFlow:
        previous = self._history.undo()
        if previous is self._flow:
            return self._flow
        return self._set(previous)

    def redo(self) -> AutomationFlow:
        following = self._history.redo()
        if following is self._flow:
            return self._flow
        return self._set(following)

    # Edits

    def add_node(self, node: CanvasNode) -> AutomationFlow:
        if self._flow.get_node(node.id) is not None:
            logger.warning("node_id_conflict", node_id=node.id)
            return self._flow
        return self.apply(lambda flow: flow.replace(nodes=flow.nodes + (node,)))

    def move_node(
        self,
        node_id: str,
        dx: float,
        dy: float,
        transient: bool = False,
    ) -> AutomationFlow:
        """Move a node by a world-space delta; moves under one unit are ignored."""
        if abs(dx) < 1 and abs(dy) < 1:
            return self._flow
        node = self._flow.get_node(node_id)
        if node is None:
            return self._flow
        return self.place_node(node_id, (node.x or 0) + dx, (node.y or 0) + dy, transient=transient)

    def place_node(
        self,
        node_id: str,
        x: float,
        y: float,
        transient: bool = False,
    ) -> AutomationFlow:
        """Put a node at an absolute world position, snapped to the grid."""
        def transform(flow: AutomationFlow) -> AutomationFlow:
            node = flow.get_node(node_id)
            if node is None:
                return flow
            moved = node.model_copy(update={"x": snap_to_grid(x), "y": snap_to_grid(y)})
            return flow.replace(nodes=[moved if n.id == node_id else n for n in flow.nodes])

        return self.apply(transform, transient=transient)

    def update_node(self, node_id: str, updates: Dict[str, Any]) -> AutomationFlow:
        """Replace payload fields of a node; ``id`` and ``type`` cannot change."""
        changes = {k: v for k, v in updates.items() if k not in ("id", "type")}

        def transform(flow: AutomationFlow) -> AutomationFlow:
            node = flow.get_node(node_id)
            if node is None or not changes:
                return flow
            data = node.model_dump(by_alias=True)
            data.update(changes)
            updated = type(node).model_validate(data)
            return flow.replace(nodes=[updated if n.id == node_id else n for n in flow.nodes])

        return self.apply(transform)

    def delete_node(self, node_id: str) -> AutomationFlow:
        """Remove a node and every edge touching it."""
        def transform(flow: AutomationFlow) -> AutomationFlow:
            if flow.get_node(node_id) is None:
                return flow
            return flow.replace(
                nodes=[n for n in flow.nodes if n.id != node_id],
                edges=[e for e in flow.edges if e.source != node_id and e.target != node_id],
            )

        return self.apply(transform)

    def duplicate_node(self, node_id: str) -> Optional[CanvasNode]:
        """Clone a node at a small offset; returns the clone."""
        node = self._flow.get_node(node_id)
        if node is None:
            return None
        clone = node.model_copy(update={
            "id": generate_id(node.type),
            "x": snap_to_grid((node.x or 0) + DUPLICATE_OFFSET),
            "y": snap_to_grid((node.y or 0) + DUPLICATE_OFFSET),
        })
        self.apply(lambda flow: flow.replace(nodes=flow.nodes + (clone,)))
        return self._flow.get_node(clone.id)

    def add_edge(self, edge: CanvasEdge) -> AutomationFlow:
        """Append an edge; it is dropped by normalization if an endpoint is gone."""
        return self.apply(lambda flow: flow.replace(edges=flow.edges + (edge,)))

    def remove_edge(self, edge_id: str) -> AutomationFlow:
        def transform(flow: AutomationFlow) -> AutomationFlow:
            edges = [e for e in flow.edges if e.id != edge_id]
            if len(edges) == len(flow.edges):
                return flow
            return flow.replace(edges=edges)

        return self.apply(transform)

    def rename(self, name: str) -> AutomationFlow:
        return self.apply(lambda flow: flow if flow.name == name else flow.replace(name=name))
