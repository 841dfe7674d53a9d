"""Per-session editor store.

An :class:`EditorSession` is created when the editor opens and closed when
it goes away. It owns the document (with its history), the viewport, the
connection protocol, the selection and the draft autosave timer. All
gesture handlers are synchronous; only loading, saving and closing touch
storage.
"""

from typing import Dict, Optional, Tuple

import structlog

from flowcanvas.config import Settings, get_settings
from flowcanvas.editor.connection import ConnectionProtocol
from flowcanvas.editor.document import FlowDocument
from flowcanvas.editor.viewport import PRIMARY_BUTTON, PanGesture, Point, Rect, Viewport
from flowcanvas.exceptions import FlowSchemaError
from flowcanvas.storage.autosave import Autosaver
from flowcanvas.storage.repository import FlowRepository
from flowcanvas.visual.flow import (
    AutomationFlow,
    Branch,
    CanvasEdge,
    CanvasNode,
    FlowStatus,
    generate_id,
    has_input_port,
    node_from_payload,
    output_ports,
)
from flowcanvas.visual.normalize import normalize
from flowcanvas.visual.palette import PALETTE_SOURCE, PaletteDrop
from flowcanvas.visual.validation import ValidationResult, validate

logger = structlog.get_logger(__name__)


class EditorSession:
    """Everything one editing session needs, passed around by reference."""

    def __init__(
        self,
        flow: AutomationFlow,
        repository: Optional[FlowRepository] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.repository = repository
        self.document = FlowDocument(flow, history_limit=self.settings.history_limit)
        self.viewport = Viewport(
            min_scale=self.settings.min_scale,
            max_scale=self.settings.max_scale,
            zoom_step=self.settings.zoom_step,
        )
        self.connection = ConnectionProtocol()
        self.selected_node_id: Optional[str] = None
        self.touched = False
        self.closed = False
        self._drag_origins: Dict[str, Tuple[float, float]] = {}

        self.autosaver: Optional[Autosaver] = None
        if repository is not None:
            self.autosaver = Autosaver(repository.save_draft, delay=self.settings.autosave_delay)
        self._unsubscribe = self.document.subscribe(self._on_change)

    @classmethod
    async def open(
        cls,
        repository: FlowRepository,
        flow_id: Optional[str] = None,
        flow: Optional[AutomationFlow] = None,
        settings: Optional[Settings] = None,
    ) -> "EditorSession":
        """Start a session on ``flow``, a stored flow, the draft or a new flow."""
        if flow is None:
            flow = await repository.load_or_default(flow_id)
        session = cls(normalize(flow), repository=repository, settings=settings)
        logger.info("editor_session_opened", flow_id=session.flow.id)
        return session

    @property
    def flow(self) -> AutomationFlow:
        return self.document.flow

    @property
    def selected_node(self) -> Optional[CanvasNode]:
        if self.selected_node_id is None:
            return None
        return self.flow.get_node(self.selected_node_id)

    def _on_change(self, flow: AutomationFlow) -> None:
        self.touched = True
        if self.autosaver is not None:
            self.autosaver.schedule(flow)

    # Palette

    def drop_from_palette(
        self,
        drop: PaletteDrop,
        pointer: Point,
        canvas: Rect,
    ) -> Optional[CanvasNode]:
        """Insert the dropped block at the pointer; drops off-canvas are ignored."""
        if drop.source_marker != PALETTE_SOURCE:
            return None
        if not canvas.contains(pointer):
            logger.debug("palette_drop_outside_canvas", node_type=drop.node_type)
            return None

        world = self.viewport.to_world(pointer, canvas)
        try:
            node = node_from_payload(drop.node_type, drop.initial_payload, world.x, world.y)
        except FlowSchemaError as e:
            logger.warning("palette_drop_rejected", node_type=drop.node_type, reason=str(e))
            return None

        self.document.add_node(node)
        return self.flow.get_node(node.id)

    # Node dragging

    def drag_node_preview(self, node_id: str, screen_delta: Point) -> None:
        """Live position while dragging; not recorded in history."""
        node = self.flow.get_node(node_id)
        if node is None:
            return
        origin = self._drag_origins.setdefault(node_id, (node.x or 0, node.y or 0))
        delta = self.viewport.screen_delta_to_world(screen_delta)
        self.document.place_node(node_id, origin[0] + delta.x, origin[1] + delta.y, transient=True)

    def drag_node_end(self, node_id: str, screen_delta: Point) -> None:
        """Commit a node drag as a single history entry."""
        origin = self._drag_origins.pop(node_id, None)
        if origin is not None:
            self.document.discard_transient()
        delta = self.viewport.screen_delta_to_world(screen_delta)
        if abs(delta.x) < 1 and abs(delta.y) < 1:
            return
        self.document.move_node(node_id, delta.x, delta.y)

    # Selection and connections

    def select(self, node_id: Optional[str]) -> None:
        if node_id is not None and self.flow.get_node(node_id) is None:
            return
        self.selected_node_id = node_id

    def click_output(self, node_id: str, branch: Optional[Branch] = None) -> None:
        node = self.flow.get_node(node_id)
        if node is None or branch not in output_ports(node):
            self.connection.cancel()
            return
        self.connection.click_output(node_id, branch)

    def click_input(self, node_id: str) -> Optional[CanvasEdge]:
        """Complete a pending connection on ``node_id``'s input port."""
        node = self.flow.get_node(node_id)
        if node is None or not has_input_port(node):
            self.connection.cancel()
            return None

        request = self.connection.click_input(node_id)
        if request is None:
            return None

        edge = CanvasEdge(
            id=generate_id("edge"),
            source=request.source,
            target=request.target,
            branch=request.branch,
        )
        self.document.add_edge(edge)
        return next((e for e in self.flow.edges if e.id == edge.id), None)

    def click_background(self, pointer: Point, button: int = PRIMARY_BUTTON) -> Optional[PanGesture]:
        """Pointer-down on empty canvas: clear selection and start panning."""
        if button != PRIMARY_BUTTON:
            return None
        self.selected_node_id = None
        self.connection.cancel()
        return self.viewport.begin_pan(pointer, button=button, on_background=True)

    # Keyboard actions

    def delete_selected(self) -> None:
        if self.selected_node_id is None:
            return
        self.document.delete_node(self.selected_node_id)
        self.selected_node_id = None

    def duplicate_selected(self) -> Optional[CanvasNode]:
        if self.selected_node_id is None:
            return None
        return self.document.duplicate_node(self.selected_node_id)

    def update_node(self, node_id: str, **updates) -> None:
        self.document.update_node(node_id, updates)

    def undo(self) -> AutomationFlow:
        self._drag_origins.clear()
        return self.document.undo()

    def redo(self) -> AutomationFlow:
        self._drag_origins.clear()
        return self.document.redo()

    # Validation and persistence

    def validate(self) -> ValidationResult:
        return validate(self.flow)

    async def save(self, require_valid: bool = True) -> AutomationFlow:
        """Store the flow in the collection as a draft."""
        if self.repository is None:
            raise RuntimeError("Session has no repository")
        saved = await self.repository.save(
            self.flow.replace(status=FlowStatus.DRAFT),
            require_valid=require_valid,
        )
        self.document.mark_saved(saved)
        if self.autosaver is not None:
            self.autosaver.cancel()
        self.touched = False
        return saved

    async def close(self) -> None:
        """Flush autosave and release gestures."""
        if self.closed:
            return
        self.closed = True
        self.viewport.teardown()
        self.connection.cancel()
        self._unsubscribe()
        if self.autosaver is not None:
            if self.touched:
                await self.autosaver.flush()
            else:
                self.autosaver.cancel()
        logger.info("editor_session_closed", flow_id=self.flow.id, touched=self.touched)

    async def __aenter__(self) -> "EditorSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
