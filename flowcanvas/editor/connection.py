"""Port-click state machine for drawing edges."""

from dataclasses import dataclass
from typing import Optional, Union

import structlog

from flowcanvas.visual.flow import Branch

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Pending:
    """An output port has been clicked; waiting for an input port."""
    node_id: str
    branch: Optional[Branch] = None


ConnectionState = Union[Idle, Pending]

IDLE = Idle()


@dataclass(frozen=True)
class EdgeRequest:
    """An edge the protocol asks the document to create."""
    source: str
    target: str
    branch: Optional[Branch] = None


class ConnectionProtocol:
    """Turns a sequence of port clicks into edge requests.

    Clicking an output always (re)starts a pending connection. Clicking an
    input on another node completes it; clicking the pending node's own
    input cancels it.
    """

    def __init__(self):
        self.state: ConnectionState = IDLE

    @property
    def pending(self) -> Optional[Pending]:
        return self.state if isinstance(self.state, Pending) else None

    def click_output(self, node_id: str, branch: Optional[Branch] = None) -> None:
        self.state = Pending(node_id, branch)

    def click_input(self, node_id: str) -> Optional[EdgeRequest]:
        state = self.state
        if isinstance(state, Idle):
            return None

        self.state = IDLE
        if state.node_id == node_id:
            logger.debug("connection_cancelled_self_loop", node_id=node_id)
            return None
        return EdgeRequest(source=state.node_id, target=node_id, branch=state.branch)

    def cancel(self) -> None:
        self.state = IDLE
