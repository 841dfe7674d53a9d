"""Block palette for the automation canvas."""

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

PALETTE_SOURCE = "palette"


class PaletteSection(Enum):
    """Palette sections, one per node type."""
    TRIGGERS = "trigger"
    CONDITIONS = "condition"
    ACTIONS = "action"


@dataclass
class PaletteItem:
    """A block the operator can drag onto the canvas."""
    id: str
    label: str
    description: str
    section: PaletteSection
    payload: Dict[str, Any] = field(default_factory=dict)
    disabled: bool = False
    badge: Optional[str] = None

    @property
    def node_type(self) -> str:
        return self.section.value


@dataclass(frozen=True)
class PaletteDrop:
    """Payload carried by a drag that started on the palette."""
    node_type: str
    initial_payload: Dict[str, Any]
    source_marker: str = PALETTE_SOURCE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceMarker": self.source_marker,
            "nodeType": self.node_type,
            "initialPayload": deepcopy(self.initial_payload),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaletteDrop":
        return cls(
            node_type=data.get("nodeType", ""),
            initial_payload=data.get("initialPayload") or {},
            source_marker=data.get("sourceMarker", ""),
        )


class PaletteLibrary:
    """Library of available palette blocks."""

    def __init__(self):
        self._items: Dict[str, PaletteItem] = {}
        self._register_triggers()
        self._register_conditions()
        self._register_actions()

    def _register_triggers(self):
        self.register(PaletteItem(
            id="trigger:message.received",
            label="Message received",
            description="Kick off when a DM hits any channel.",
            section=PaletteSection.TRIGGERS,
            payload={"trigger": {"kind": "message.received"}},
        ))
        self.register(PaletteItem(
            id="trigger:no_reply",
            label="No reply for X hours",
            description="Follow up when a lead goes quiet.",
            section=PaletteSection.TRIGGERS,
            payload={"trigger": {"kind": "no_reply.for_hours", "waitHours": 24}},
        ))
        self.register(PaletteItem(
            id="trigger:invoice_paid",
            label="Invoice paid",
            description="Celebrate when payments land (coming soon).",
            section=PaletteSection.TRIGGERS,
            payload={"trigger": {"kind": "invoice.paid"}},
            disabled=True,
            badge="soon",
        ))

    def _register_conditions(self):
        self.register(PaletteItem(
            id="condition:channel",
            label="Channel is…",
            description="WhatsApp, Instagram, Facebook.",
            section=PaletteSection.CONDITIONS,
            payload={
                "conditions": [{"field": "channel", "op": "eq", "value": "whatsapp"}],
                "mode": "OR",
            },
        ))
        self.register(PaletteItem(
            id="condition:label",
            label="Lead label is…",
            description="Qualify based on pipeline stage.",
            section=PaletteSection.CONDITIONS,
            payload={
                "conditions": [{"field": "label", "op": "in", "value": ["NEW", "CONTACTED"]}],
                "mode": "OR",
            },
        ))
        self.register(PaletteItem(
            id="condition:text",
            label="Message contains…",
            description="Scan text for keywords or intents.",
            section=PaletteSection.CONDITIONS,
            payload={
                "conditions": [{"field": "text", "op": "contains", "value": "pricing"}],
                "mode": "AND",
            },
        ))
        self.register(PaletteItem(
            id="condition:assignee",
            label="Assigned user is…",
            description="Route based on teammate ownership.",
            section=PaletteSection.CONDITIONS,
            payload={
                "conditions": [{"field": "assignee", "op": "eq", "value": "unassigned"}],
                "mode": "AND",
            },
        ))

    def _register_actions(self):
        self.register(PaletteItem(
            id="action:send_template",
            label="Send template",
            description="Respond instantly with saved replies.",
            section=PaletteSection.ACTIONS,
            payload={"action": {"kind": "send_template", "args": {"templateId": None}}},
        ))
        self.register(PaletteItem(
            id="action:add_label",
            label="Add label",
            description="Tag the lead with the right status.",
            section=PaletteSection.ACTIONS,
            payload={"action": {"kind": "add_label", "args": {"label": "FOLLOW_UP_REQUIRED"}}},
        ))
        self.register(PaletteItem(
            id="action:create_followup",
            label="Create follow-up",
            description="Schedule a reminder for your team.",
            section=PaletteSection.ACTIONS,
            payload={"action": {"kind": "create_followup", "args": {"offsetHours": 24}}},
        ))
        self.register(PaletteItem(
            id="action:assign",
            label="Assign to user",
            description="Send the conversation to a teammate.",
            section=PaletteSection.ACTIONS,
            payload={"action": {"kind": "assign", "args": {"assigneeId": None}}},
        ))
        self.register(PaletteItem(
            id="action:move_stage",
            label="Move pipeline stage",
            description="Progress the deal automatically.",
            section=PaletteSection.ACTIONS,
            payload={"action": {"kind": "move_stage", "args": {"stage": "WON"}}},
        ))
        self.register(PaletteItem(
            id="action:create_invoice",
            label="Create invoice link",
            description="Generate a payment request (billing required).",
            section=PaletteSection.ACTIONS,
            payload={"action": {"kind": "create_invoice", "args": {"amount": 0, "currency": "USD"}}},
            badge="billing",
        ))

    def register(self, item: PaletteItem):
        """Register a new palette item."""
        self._items[item.id] = item

    def get_item(self, item_id: str) -> Optional[PaletteItem]:
        return self._items.get(item_id)

    def items_by_section(self, section: PaletteSection) -> List[PaletteItem]:
        return [item for item in self._items.values() if item.section == section]

    def all_items(self) -> List[PaletteItem]:
        return list(self._items.values())

    def search(self, query: str) -> List[PaletteItem]:
        """Search items by label or description."""
        query_lower = query.lower()
        return [
            item for item in self._items.values()
            if query_lower in item.label.lower() or query_lower in item.description.lower()
        ]

    def drag_payload(self, item_id: str) -> Optional[PaletteDrop]:
        """Payload for dragging ``item_id``; disabled or unknown items cannot be dragged."""
        item = self.get_item(item_id)
        if item is None or item.disabled:
            return None
        return PaletteDrop(node_type=item.node_type, initial_payload=deepcopy(item.payload))
