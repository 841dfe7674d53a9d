"""
Tests for flowcanvas.editor.connection.
"""

import pytest

from flowcanvas.editor.connection import IDLE, ConnectionProtocol, EdgeRequest, Pending
from flowcanvas.visual.flow import Branch


@pytest.fixture
def protocol():
    return ConnectionProtocol()


class TestConnectionProtocol:

    def test_starts_idle(self, protocol):
        assert protocol.state == IDLE
        assert protocol.pending is None

    def test_input_click_while_idle_is_ignored(self, protocol):
        assert protocol.click_input("a1") is None
        assert protocol.state == IDLE

    def test_output_then_input_creates_request(self, protocol):
        protocol.click_output("t1")

        request = protocol.click_input("a1")

        assert request == EdgeRequest(source="t1", target="a1")
        assert protocol.state == IDLE

    def test_second_output_replaces_pending_source(self, protocol):
        protocol.click_output("t1")
        protocol.click_output("c1", Branch.FALSE)

        assert protocol.state == Pending("c1", Branch.FALSE)
        assert protocol.click_input("a1") == EdgeRequest("c1", "a1", Branch.FALSE)

    def test_own_input_cancels(self, protocol):
        protocol.click_output("c1", Branch.TRUE)

        assert protocol.click_input("c1") is None
        assert protocol.state == IDLE

    def test_branch_is_carried(self, protocol):
        protocol.click_output("c1", Branch.TRUE)

        assert protocol.click_input("a1").branch == Branch.TRUE

    def test_cancel(self, protocol):
        protocol.click_output("t1")
        protocol.cancel()

        assert protocol.pending is None
        assert protocol.click_input("a1") is None
