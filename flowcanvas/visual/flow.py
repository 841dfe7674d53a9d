"""Flow data models for automation flows."""

import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from typing_extensions import Annotated, Literal, assert_never

from flowcanvas.exceptions import FlowSchemaError

GRID_SIZE = 16


def generate_id(prefix: str = "node") -> str:
    """Generate an opaque identifier such as ``node_<uuid>``."""
    return f"{prefix}_{uuid.uuid4()}"


def snap_to_grid(value: float, size: int = GRID_SIZE) -> float:
    """Snap a coordinate to the nearest grid line (halves round up)."""
    return float(math.floor(value / size + 0.5) * size)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FlowStatus(str, Enum):
    """Lifecycle status of an automation."""
    DRAFT = "DRAFT"
    ON = "ON"
    OFF = "OFF"


class TriggerKind(str, Enum):
    MESSAGE_RECEIVED = "message.received"
    NO_REPLY_FOR_HOURS = "no_reply.for_hours"
    INVOICE_PAID = "invoice.paid"


class ConditionField(str, Enum):
    CHANNEL = "channel"
    LABEL = "label"
    TEXT = "text"
    ASSIGNEE = "assignee"


class ConditionOp(str, Enum):
    EQ = "eq"
    IN = "in"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"


class ConditionMode(str, Enum):
    """How the rules of a condition node are combined."""
    AND = "AND"
    OR = "OR"


class ActionKind(str, Enum):
    SEND_TEMPLATE = "send_template"
    ADD_LABEL = "add_label"
    CREATE_FOLLOWUP = "create_followup"
    ASSIGN = "assign"
    MOVE_STAGE = "move_stage"
    CREATE_INVOICE = "create_invoice"


class Branch(str, Enum):
    """Labelled output of a condition node."""
    TRUE = "true"
    FALSE = "false"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)


class TriggerConfig(_Frozen):
    kind: TriggerKind
    wait_hours: Optional[float] = Field(default=None, alias="waitHours")


class ConditionRule(_Frozen):
    field: ConditionField
    op: ConditionOp
    value: Any = None


class ActionConfig(_Frozen):
    kind: ActionKind
    args: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("args", mode="before")
    @classmethod
    def _none_args(cls, value: Any) -> Any:
        return {} if value is None else value


class BaseNode(_Frozen):
    """Fields shared by every node on the canvas."""
    id: str
    x: Optional[float] = None
    y: Optional[float] = None
    meta: Optional[Dict[str, Any]] = None


class TriggerNode(BaseNode):
    type: Literal["trigger"] = "trigger"
    trigger: TriggerConfig


class ConditionNode(BaseNode):
    type: Literal["condition"] = "condition"
    conditions: Tuple[ConditionRule, ...] = ()
    mode: ConditionMode = ConditionMode.AND


class ActionNode(BaseNode):
    type: Literal["action"] = "action"
    action: ActionConfig


CanvasNode = Annotated[
    Union[TriggerNode, ConditionNode, ActionNode],
    Field(discriminator="type"),
]

_node_adapter = TypeAdapter(CanvasNode)


class CanvasEdge(_Frozen):
    """Directed connection from one node's output to another node's input."""
    id: str
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    branch: Optional[Branch] = None


class AutomationFlow(_Frozen):
    """Aggregate root: an automation's graph plus its metadata.

    Instances are immutable. Every edit produces a new flow via
    :meth:`replace`, so unchanged nodes and edges are shared between
    successive versions of the document.
    """
    id: str
    name: str
    status: FlowStatus
    version: int
    nodes: Tuple[CanvasNode, ...]
    edges: Tuple[CanvasEdge, ...]
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("nodes")
    @classmethod
    def _unique_node_ids(cls, nodes: Tuple[CanvasNode, ...]) -> Tuple[CanvasNode, ...]:
        seen: Set[str] = set()
        for node in nodes:
            if node.id in seen:
                raise ValueError(f"duplicate node id: {node.id}")
            seen.add(node.id)
        return nodes

    def get_node(self, node_id: str) -> Optional[CanvasNode]:
        """Get node by ID."""
        return next((node for node in self.nodes if node.id == node_id), None)

    def get_edges_for_node(self, node_id: str) -> List[CanvasEdge]:
        """Get all edges connected to a node."""
        return [
            edge for edge in self.edges
            if edge.source == node_id or edge.target == node_id
        ]

    def node_ids(self) -> Set[str]:
        return {node.id for node in self.nodes}

    def triggers(self) -> List[TriggerNode]:
        return [node for node in self.nodes if isinstance(node, TriggerNode)]

    def conditions(self) -> List[ConditionNode]:
        return [node for node in self.nodes if isinstance(node, ConditionNode)]

    def actions(self) -> List[ActionNode]:
        return [node for node in self.nodes if isinstance(node, ActionNode)]

    def replace(self, **changes: Any) -> "AutomationFlow":
        """Return a copy with ``changes`` applied; node and edge lists become tuples."""
        for key in ("nodes", "edges"):
            if key in changes:
                changes[key] = tuple(changes[key])
        return self.model_copy(update=changes)

    def touch(self) -> "AutomationFlow":
        return self.replace(updated_at=utcnow())

    def same_graph(self, other: "AutomationFlow") -> bool:
        """True when both flows have identical nodes, edges and name."""
        return (
            self.name == other.name
            and self.nodes == other.nodes
            and self.edges == other.edges
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Any) -> "AutomationFlow":
        """Create from a decoded JSON object, raising FlowSchemaError on mismatch."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise FlowSchemaError(f"Invalid automation flow: {e.error_count()} schema error(s)") from e


def create_default_flow(name: str = "New automation") -> AutomationFlow:
    """Create an empty draft flow."""
    now = utcnow()
    return AutomationFlow(
        id=generate_id("flow"),
        name=name,
        status=FlowStatus.DRAFT,
        version=1,
        nodes=(),
        edges=(),
        created_at=now,
        updated_at=now,
    )


def node_from_payload(
    node_type: str,
    payload: Dict[str, Any],
    x: float,
    y: float,
    node_id: Optional[str] = None,
) -> CanvasNode:
    """Build a node of ``node_type`` from a palette payload at a world position."""
    data: Dict[str, Any] = {
        "id": node_id or generate_id(node_type),
        "type": node_type,
        "x": snap_to_grid(x),
        "y": snap_to_grid(y),
    }
    if node_type == "trigger":
        data["trigger"] = payload.get("trigger")
    elif node_type == "condition":
        data["conditions"] = payload.get("conditions") or []
        data["mode"] = payload.get("mode") or ConditionMode.AND.value
    elif node_type == "action":
        data["action"] = payload.get("action")
    else:
        raise FlowSchemaError(f"Unknown node type: {node_type}")

    try:
        return _node_adapter.validate_python(data)
    except ValidationError as e:
        raise FlowSchemaError(f"Invalid {node_type} payload: {e.error_count()} schema error(s)") from e


def output_ports(node: CanvasNode) -> Tuple[Optional[Branch], ...]:
    """Output ports of a node; ``None`` is the single unlabelled output."""
    if isinstance(node, TriggerNode):
        return (None,)
    elif isinstance(node, ConditionNode):
        return (Branch.TRUE, Branch.FALSE)
    elif isinstance(node, ActionNode):
        return ()
    else:
        assert_never(node)


def has_input_port(node: CanvasNode) -> bool:
    if isinstance(node, TriggerNode):
        return False
    elif isinstance(node, (ConditionNode, ActionNode)):
        return True
    else:
        assert_never(node)


def iter_node_ids(edges: Iterable[CanvasEdge]) -> Set[str]:
    """Ids that appear as either endpoint of ``edges``."""
    ids: Set[str] = set()
    for edge in edges:
        ids.add(edge.source)
        ids.add(edge.target)
    return ids
