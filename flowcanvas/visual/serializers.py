"""JSON and YAML conversion for automation flows."""

import json
from typing import Any, Optional

import structlog
import yaml

from flowcanvas.exceptions import FlowSchemaError
from flowcanvas.visual.flow import AutomationFlow
from flowcanvas.visual.normalize import normalize

logger = structlog.get_logger(__name__)


def to_json(flow: AutomationFlow, indent: Optional[int] = 2) -> str:
    return json.dumps(flow.to_dict(), indent=indent, ensure_ascii=False)


def from_json(text: str) -> AutomationFlow:
    """Parse a JSON document; raises FlowSchemaError when malformed."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise FlowSchemaError(f"Malformed flow JSON: {e}") from e
    return AutomationFlow.from_dict(data)


def to_yaml(flow: AutomationFlow) -> str:
    return yaml.safe_dump(flow.to_dict(), sort_keys=False, allow_unicode=True)


def from_yaml(text: str) -> AutomationFlow:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise FlowSchemaError(f"Malformed flow YAML: {e}") from e
    return AutomationFlow.from_dict(data)


def load_flow(data: Any) -> Optional[AutomationFlow]:
    """Decode and normalize a stored flow, or return None if it is unusable.

    ``data`` may be a JSON string or an already decoded object.
    """
    try:
        flow = from_json(data) if isinstance(data, str) else AutomationFlow.from_dict(data)
    except FlowSchemaError as e:
        logger.warning("flow_rejected", reason=str(e))
        return None
    return normalize(flow)
