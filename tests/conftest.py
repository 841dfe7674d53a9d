"""
Pytest configuration and fixtures for the flowcanvas project.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
import pytest_asyncio

from flowcanvas.config import Settings
from flowcanvas.storage.backends.memory import MemoryStore
from flowcanvas.storage.repository import FlowRepository
from flowcanvas.visual.flow import (
    ActionConfig,
    ActionNode,
    AutomationFlow,
    CanvasEdge,
    ConditionNode,
    ConditionRule,
    FlowStatus,
    TriggerConfig,
    TriggerNode,
)


def _trigger(node_id="t1", kind="message.received", wait_hours=None, x=160, y=160):
    return TriggerNode(
        id=node_id, x=x, y=y,
        trigger=TriggerConfig(kind=kind, wait_hours=wait_hours),
    )


def _condition(node_id="c1", rules=None, mode="AND", x=400, y=336):
    if rules is None:
        rules = [ConditionRule(field="channel", op="eq", value="whatsapp")]
    return ConditionNode(id=node_id, x=x, y=y, conditions=rules, mode=mode)


def _action(node_id="a1", kind="send_template", args=None, x=640, y=512):
    if args is None:
        args = {"templateId": "welcome"} if kind == "send_template" else {}
    return ActionNode(id=node_id, x=x, y=y, action=ActionConfig(kind=kind, args=args))


def _edge(source, target, edge_id=None, branch=None):
    return CanvasEdge(id=edge_id or f"e_{source}_{target}", source=source, target=target, branch=branch)


def _flow(nodes=(), edges=(), flow_id="flow_1", name="Welcome", status=FlowStatus.DRAFT, version=1):
    return AutomationFlow(
        id=flow_id, name=name, status=status, version=version,
        nodes=tuple(nodes), edges=tuple(edges),
    )


class FlowFactory:
    """Builders for nodes, edges and flows used across the test suite."""
    trigger = staticmethod(_trigger)
    condition = staticmethod(_condition)
    action = staticmethod(_action)
    edge = staticmethod(_edge)
    flow = staticmethod(_flow)


@pytest.fixture
def make():
    return FlowFactory


@pytest.fixture
def valid_flow():
    """Trigger connected to a send_template action."""
    return _flow(
        nodes=[_trigger(), _action()],
        edges=[_edge("t1", "a1")],
    )


@pytest.fixture
def branching_flow():
    """Trigger -> condition -> two actions on the true/false branches."""
    return _flow(
        nodes=[
            _trigger(),
            _condition(),
            _action("a1"),
            _action("a2", kind="add_label", args={"label": "VIP"}, x=640, y=800),
        ],
        edges=[
            _edge("t1", "c1"),
            _edge("c1", "a1", branch="true"),
            _edge("c1", "a2", branch="false"),
        ],
    )


@pytest.fixture
def settings():
    return Settings(autosave_delay=0.01, history_limit=None, _env_file=None)


@pytest_asyncio.fixture
async def store():
    store = MemoryStore()
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def repository(store):
    return FlowRepository(store)
