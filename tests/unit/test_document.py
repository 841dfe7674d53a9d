"""
Tests for flowcanvas.editor.document.

Tests cover:
- Normalization on construction and after every edit
- History recording, transient edits and undo/redo
- Node and edge edits (add, move, update, delete, duplicate)
- Change notifications
"""

import pytest

from flowcanvas.editor.document import FlowDocument
from flowcanvas.visual.flow import TriggerKind


@pytest.fixture
def document(valid_flow):
    return FlowDocument(valid_flow)


class TestConstruction:

    def test_initial_flow_is_normalized(self, make):
        flow = make.flow(nodes=[make.trigger("t1"), make.trigger("t2")], edges=[make.edge("t2", "t1")])

        document = FlowDocument(flow)

        assert [n.id for n in document.nodes] == ["t1"]
        assert document.edges == ()
        assert not document.can_undo


class TestApply:

    def test_edit_is_recorded_and_stamped(self, document, make):
        before = document.flow

        document.add_node(make.action("a2", kind="add_label", args={"label": "NEW"}, x=800, y=800))

        assert len(document.nodes) == 3
        assert document.can_undo
        assert document.flow.updated_at is not None
        assert document.flow.updated_at != before.updated_at

    def test_identity_transform_is_ignored(self, document):
        before = document.flow

        assert document.apply(lambda flow: flow) is before
        assert not document.can_undo

    def test_transform_normalizing_back_to_current_is_ignored(self, document, make):
        document.add_edge(make.edge("t1", "ghost"))

        assert [e.id for e in document.edges] == ["e_t1_a1"]
        assert not document.can_undo

    def test_transient_edit_skips_history(self, document):
        document.move_node("a1", 160, 0, transient=True)

        assert document.flow.get_node("a1").x == 800
        assert not document.can_undo

    def test_discard_transient(self, document, valid_flow):
        document.move_node("a1", 160, 0, transient=True)

        document.discard_transient()

        assert document.flow.get_node("a1").x == valid_flow.get_node("a1").x

    def test_mark_saved_adopts_metadata_without_recording(self, document):
        seen = []
        document.subscribe(seen.append)
        document.move_node("a1", 160, 0, transient=True)

        document.mark_saved(document.flow.replace(version=7))

        assert document.flow.version == 7
        assert document.flow.get_node("a1").x == 800
        assert not document.can_undo
        assert len(seen) == 1

        document.discard_transient()
        assert document.flow.version == 7
        assert document.flow.get_node("a1").x == 640

    def test_undo_redo(self, document, valid_flow):
        document.rename("Renamed")
        document.delete_node("a1")

        assert document.undo().name == "Renamed"
        assert document.undo() == valid_flow
        assert document.undo() == valid_flow
        assert document.redo().name == "Renamed"
        assert document.redo().get_node("a1") is None

    def test_new_edit_after_undo_drops_redo(self, document):
        document.rename("One")
        document.undo()
        document.rename("Two")

        assert not document.can_redo
        assert document.undo().name == "Welcome"

    def test_listeners_are_notified(self, document):
        seen = []
        unsubscribe = document.subscribe(seen.append)

        document.rename("Listened")
        document.undo()
        unsubscribe()
        document.redo()

        assert [flow.name for flow in seen] == ["Listened", "Welcome"]


class TestNodeEdits:

    def test_move_snaps_to_grid(self, document):
        document.move_node("a1", 10, -21)

        node = document.flow.get_node("a1")
        assert (node.x, node.y) == (656, 496)

    def test_tiny_move_is_ignored(self, document):
        before = document.flow

        document.move_node("a1", 0.4, -0.9)

        assert document.flow is before

    def test_move_unknown_node_is_ignored(self, document):
        before = document.flow

        document.move_node("ghost", 100, 100)

        assert document.flow is before

    def test_update_node_payload(self, document):
        document.update_node("t1", {"trigger": {"kind": "no_reply.for_hours", "waitHours": 12}})

        trigger = document.flow.get_node("t1")
        assert trigger.trigger.kind == TriggerKind.NO_REPLY_FOR_HOURS
        assert trigger.trigger.wait_hours == 12

    def test_update_cannot_change_identity(self, document):
        document.update_node("a1", {"id": "other", "type": "trigger", "x": 320})

        node = document.flow.get_node("a1")
        assert node is not None
        assert node.type == "action"
        assert node.x == 320

    def test_delete_cascades_to_edges(self, branching_flow):
        document = FlowDocument(branching_flow)

        document.delete_node("c1")

        assert document.flow.get_node("c1") is None
        assert document.edges == ()

    def test_duplicate_trigger_is_dropped(self, document):
        clone = document.duplicate_node("t1")

        assert clone is None
        assert [n.id for n in document.flow.triggers()] == ["t1"]
        assert not document.can_undo

    def test_duplicate_action(self, document):
        clone = document.duplicate_node("a1")

        assert clone is not None
        assert clone.id != "a1"
        assert (clone.x, clone.y) == (688, 560)
        assert clone.action == document.flow.get_node("a1").action

    def test_remove_edge(self, document):
        document.remove_edge("e_t1_a1")

        assert document.edges == ()
        document.undo()
        assert len(document.edges) == 1
