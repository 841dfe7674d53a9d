"""
Tests for the flowcanvas command line interface.

Tests cover:
- File commands (validate, normalize)
- Collection commands against a SQLite database
- Palette commands
"""

import json

import pytest
from click.testing import CliRunner

from cli.main import cli
from flowcanvas.visual.serializers import from_json, to_json, to_yaml


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def database(tmp_path):
    return str(tmp_path / "flows.db")


@pytest.fixture
def flow_file(tmp_path, valid_flow):
    path = tmp_path / "welcome.json"
    path.write_text(to_json(valid_flow), encoding="utf-8")
    return path


@pytest.fixture
def broken_flow_file(tmp_path, make):
    path = tmp_path / "broken.yaml"
    path.write_text(to_yaml(make.flow(nodes=[make.trigger()])), encoding="utf-8")
    return path


# ============================================================================
# FILE COMMANDS
# ============================================================================

class TestFileCommands:

    def test_validate_ok(self, runner, flow_file):
        result = runner.invoke(cli, ["flow", "validate", str(flow_file)])

        assert result.exit_code == 0
        assert "Automation looks good" in result.output

    def test_validate_lists_issues(self, runner, broken_flow_file):
        result = runner.invoke(cli, ["flow", "validate", str(broken_flow_file)])

        assert result.exit_code == 1
        assert "Action required" in result.output
        assert "Unconnected node: trigger (t1)" in result.output

    def test_validate_unreadable_file(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")

        result = runner.invoke(cli, ["flow", "validate", str(path)])

        assert result.exit_code == 1
        assert "Could not read" in result.output

    def test_normalize_to_file(self, runner, tmp_path, make):
        source = tmp_path / "messy.json"
        messy = make.flow(
            nodes=[make.trigger("t1"), make.trigger("t2"), make.action()],
            edges=[make.edge("t2", "a1")],
        )
        source.write_text(to_json(messy), encoding="utf-8")
        target = tmp_path / "clean.json"

        result = runner.invoke(cli, ["flow", "normalize", str(source), "-o", str(target)])

        assert result.exit_code == 0
        clean = from_json(target.read_text(encoding="utf-8"))
        assert [n.id for n in clean.nodes] == ["t1", "a1"]
        assert clean.edges == ()


# ============================================================================
# COLLECTION COMMANDS
# ============================================================================

class TestCollectionCommands:

    def test_import_list_show(self, runner, database, flow_file):
        imported = runner.invoke(cli, ["flow", "import", str(flow_file), "-d", database])
        listed = runner.invoke(cli, ["flow", "list", "-d", database])
        shown = runner.invoke(cli, ["flow", "show", "flow_1", "-d", database])

        assert imported.exit_code == 0
        assert "Saved Welcome (flow_1) v1" in imported.output
        assert "flow_1" in listed.output
        assert "1 automation(s), 0 live" in listed.output
        assert json.loads(shown.output)["id"] == "flow_1"

    def test_empty_list(self, runner, database):
        result = runner.invoke(cli, ["flow", "list", "-d", database])

        assert result.exit_code == 0
        assert "No automations yet" in result.output

    def test_import_require_valid(self, runner, database, broken_flow_file):
        result = runner.invoke(
            cli, ["flow", "import", str(broken_flow_file), "-d", database, "--require-valid"]
        )

        assert result.exit_code == 1
        assert "Action required" in result.output

    def test_activate_and_toggle(self, runner, database, flow_file):
        runner.invoke(cli, ["flow", "import", str(flow_file), "-d", database])

        activated = runner.invoke(cli, ["flow", "activate", "flow_1", "-d", database])
        toggled = runner.invoke(cli, ["flow", "toggle", "flow_1", "-d", database])

        assert activated.exit_code == 0
        assert "is live" in activated.output
        assert "is now OFF" in toggled.output

    def test_activation_blocked(self, runner, database, broken_flow_file):
        runner.invoke(cli, ["flow", "import", str(broken_flow_file), "-d", database])

        result = runner.invoke(cli, ["flow", "activate", "flow_1", "-d", database])

        assert result.exit_code == 1
        assert "Please resolve validation issues" in result.output

    def test_list_details(self, runner, database, broken_flow_file):
        runner.invoke(cli, ["flow", "import", str(broken_flow_file), "-d", database])

        result = runner.invoke(cli, ["flow", "list", "-d", database, "--details"])

        assert "Action required" in result.output

    def test_duplicate_and_delete(self, runner, database, flow_file):
        runner.invoke(cli, ["flow", "import", str(flow_file), "-d", database])

        duplicated = runner.invoke(cli, ["flow", "duplicate", "flow_1", "-d", database])
        deleted = runner.invoke(cli, ["flow", "delete", "flow_1", "-d", database, "--yes"])
        missing = runner.invoke(cli, ["flow", "delete", "flow_1", "-d", database, "--yes"])

        assert "flow_1-copy-" in duplicated.output
        assert deleted.exit_code == 0
        assert missing.exit_code == 1

    def test_show_missing_flow(self, runner, database):
        result = runner.invoke(cli, ["flow", "show", "ghost", "-d", database])

        assert result.exit_code == 1
        assert "Flow ghost not found" in result.output

    def test_export_yaml(self, runner, database, flow_file, tmp_path):
        runner.invoke(cli, ["flow", "import", str(flow_file), "-d", database])
        target = tmp_path / "export.yaml"

        result = runner.invoke(cli, ["flow", "export", "flow_1", str(target), "-d", database, "-f", "yaml"])

        assert result.exit_code == 0
        assert "name: Welcome" in target.read_text(encoding="utf-8")

    def test_draft_commands(self, runner, database):
        shown = runner.invoke(cli, ["flow", "draft", "show", "-d", database])
        cleared = runner.invoke(cli, ["flow", "draft", "clear", "-d", database])

        assert "No draft saved" in shown.output
        assert cleared.exit_code == 0


# ============================================================================
# PALETTE COMMANDS
# ============================================================================

class TestPaletteCommands:

    def test_list_section(self, runner):
        result = runner.invoke(cli, ["palette", "list", "--section", "trigger"])

        assert result.exit_code == 0
        assert "trigger:no_reply" in result.output
        assert "(disabled)" in result.output
        assert "action:assign" not in result.output

    def test_search(self, runner):
        result = runner.invoke(cli, ["palette", "list", "--search", "invoice"])

        assert "action:create_invoice" in result.output

    def test_payload(self, runner):
        result = runner.invoke(cli, ["palette", "payload", "action:create_followup"])

        data = json.loads(result.output)
        assert data["nodeType"] == "action"
        assert data["initialPayload"]["action"]["args"] == {"offsetHours": 24}

    def test_payload_of_disabled_block(self, runner):
        result = runner.invoke(cli, ["palette", "payload", "trigger:invoice_paid"])

        assert result.exit_code == 1
