"""Interactive editing: document, history, viewport, connections, session."""

from flowcanvas.editor.connection import ConnectionProtocol, EdgeRequest, Idle, Pending
from flowcanvas.editor.document import FlowDocument
from flowcanvas.editor.history import History
from flowcanvas.editor.session import EditorSession
from flowcanvas.editor.viewport import PanGesture, Point, Rect, Viewport

__all__ = [
    "ConnectionProtocol",
    "EdgeRequest",
    "Idle",
    "Pending",
    "FlowDocument",
    "History",
    "EditorSession",
    "PanGesture",
    "Point",
    "Rect",
    "Viewport",
]
