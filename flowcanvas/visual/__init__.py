"""Flow document model, normalization, validation and palette."""

from flowcanvas.visual.flow import (
    ActionConfig,
    ActionKind,
    ActionNode,
    AutomationFlow,
    Branch,
    CanvasEdge,
    CanvasNode,
    ConditionField,
    ConditionMode,
    ConditionNode,
    ConditionOp,
    ConditionRule,
    FlowStatus,
    TriggerConfig,
    TriggerKind,
    TriggerNode,
    create_default_flow,
    generate_id,
    node_from_payload,
    snap_to_grid,
)
from flowcanvas.visual.normalize import normalize
from flowcanvas.visual.palette import PaletteDrop, PaletteItem, PaletteLibrary, PaletteSection
from flowcanvas.visual.serializers import from_json, from_yaml, load_flow, to_json, to_yaml
from flowcanvas.visual.validation import ValidationResult, can_activate, validate

__all__ = [
    # Model
    "AutomationFlow",
    "FlowStatus",
    "CanvasNode",
    "CanvasEdge",
    "TriggerNode",
    "TriggerConfig",
    "TriggerKind",
    "ConditionNode",
    "ConditionRule",
    "ConditionField",
    "ConditionOp",
    "ConditionMode",
    "ActionNode",
    "ActionConfig",
    "ActionKind",
    "Branch",
    "create_default_flow",
    "generate_id",
    "node_from_payload",
    "snap_to_grid",

    # Normalization and validation
    "normalize",
    "validate",
    "can_activate",
    "ValidationResult",

    # Palette
    "PaletteDrop",
    "PaletteItem",
    "PaletteLibrary",
    "PaletteSection",

    # Serializers
    "to_json",
    "from_json",
    "to_yaml",
    "from_yaml",
    "load_flow",
]
