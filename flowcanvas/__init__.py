"""Flow Canvas automation flow engine."""

__version__ = "1.0.0"

from flowcanvas.editor.document import FlowDocument
from flowcanvas.editor.history import History
from flowcanvas.editor.session import EditorSession
from flowcanvas.editor.viewport import Point, Rect, Viewport
from flowcanvas.visual.flow import AutomationFlow, FlowStatus, create_default_flow
from flowcanvas.visual.normalize import normalize
from flowcanvas.visual.validation import ValidationResult, validate

__all__ = [
    "AutomationFlow",
    "FlowStatus",
    "create_default_flow",
    "normalize",
    "validate",
    "ValidationResult",
    "FlowDocument",
    "History",
    "EditorSession",
    "Viewport",
    "Point",
    "Rect",
]
