"""Activation checks for automation flows."""

from dataclasses import dataclass, field
from typing import List

from typing_extensions import assert_never

from flowcanvas.visual.flow import (
    ActionKind,
    ActionNode,
    AutomationFlow,
    ConditionNode,
    TriggerKind,
    TriggerNode,
    iter_node_ids,
)

TRIGGER_REQUIRED = "Trigger required: add a trigger to start the automation."
SINGLE_TRIGGER = "Only one trigger allowed per automation."
ACTION_REQUIRED = "Action required: add at least one action to complete the automation."
WAIT_TIME_REQUIRED = "Wait time required: 'No reply' trigger needs waitHours."


@dataclass
class ValidationResult:
    """Outcome of :func:`validate`."""
    issues: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def summary(self, separator: str = " • ") -> str:
        return separator.join(self.issues)


def _node_issues(node) -> List[str]:
    if isinstance(node, TriggerNode):
        if node.trigger.kind == TriggerKind.NO_REPLY_FOR_HOURS and not node.trigger.wait_hours:
            return [WAIT_TIME_REQUIRED]
        return []
    elif isinstance(node, ConditionNode):
        if not node.conditions:
            return [f"Condition {node.id} must have at least one rule."]
        return []
    elif isinstance(node, ActionNode):
        args = node.action.args
        if node.action.kind == ActionKind.SEND_TEMPLATE and not args.get("templateId"):
            return [f"Template required: select a template to send ({node.id})."]
        if node.action.kind == ActionKind.CREATE_FOLLOWUP and not args.get("offsetHours"):
            return [f"Follow-up offset required: set offsetHours ({node.id})."]
        return []
    else:
        assert_never(node)


def validate(flow: AutomationFlow) -> ValidationResult:
    """Collect every activation blocker, most structurally severe first.

    Checks run in a fixed order (trigger count, action presence,
    connectivity, reachability, per-node completeness) and all of them
    run; nothing short-circuits.
    """
    issues: List[str] = []

    triggers = flow.triggers()
    if not triggers:
        issues.append(TRIGGER_REQUIRED)
    elif len(triggers) > 1:
        issues.append(SINGLE_TRIGGER)

    actions = flow.actions()
    if not actions:
        issues.append(ACTION_REQUIRED)

    connected = iter_node_ids(flow.edges)
    for node in flow.nodes:
        if node.id not in connected:
            issues.append(f"Unconnected node: {node.type} ({node.id}) is not connected.")

    targets = {edge.target for edge in flow.edges}
    for action in actions:
        if action.id not in targets:
            issues.append(f"Action unreachable from trigger: {action.id}.")

    for node in flow.nodes:
        issues.extend(_node_issues(node))

    return ValidationResult(issues=issues)


def can_activate(flow: AutomationFlow) -> bool:
    """True when ``flow`` may be switched ON."""
    return validate(flow).ok
