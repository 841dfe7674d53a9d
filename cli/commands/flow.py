# cli/commands/flow.py
"""Flow management commands."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click

from flowcanvas.config import get_settings
from flowcanvas.exceptions import FlowError, FlowValidationError
from flowcanvas.storage.backends.sqlite import SQLiteStore
from flowcanvas.storage.repository import FlowRepository
from flowcanvas.visual.flow import AutomationFlow, FlowStatus
from flowcanvas.visual.normalize import normalize
from flowcanvas.visual.serializers import from_json, from_yaml, to_json, to_yaml
from flowcanvas.visual.validation import validate


def _read_flow(path: Path) -> AutomationFlow:
    text = path.read_text(encoding='utf-8')
    if path.suffix.lower() in ('.yaml', '.yml'):
        return normalize(from_yaml(text))
    return normalize(from_json(text))


def _render(flow: AutomationFlow, fmt: str) -> str:
    return to_yaml(flow) if fmt == 'yaml' else to_json(flow)


def _run(database: Optional[str], action):
    """Open the configured store, run ``action(repository)`` and close it."""
    settings = get_settings()

    async def runner():
        store = SQLiteStore(database or settings.database_url)
        async with store:
            repository = FlowRepository(
                store,
                collection_key=settings.collection_key,
                draft_key=settings.draft_key,
            )
            return await action(repository)

    try:
        return asyncio.run(runner())
    except FlowValidationError as e:
        click.echo(f"❌ {e}", err=True)
        for issue in e.issues:
            click.echo(f"   • {issue}", err=True)
        sys.exit(1)
    except FlowError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


database_option = click.option(
    '--database', '-d', default=None,
    help='Database URL (defaults to FLOWCANVAS_DATABASE_URL)'
)
format_option = click.option(
    '--format', '-f', 'fmt', type=click.Choice(['json', 'yaml']), default='json',
    help='Output format'
)


@click.group()
def flow():
    """Manage automation flows - validate, import, export and activate."""
    pass


# ============================================================================
# File commands
# ============================================================================

@flow.command('validate')
@click.argument('flow_file', type=click.Path(exists=True, path_type=Path))
def validate_file(flow_file: Path):
    """Validate a flow file and list every activation blocker."""
    try:
        result = validate(_read_flow(flow_file))
    except FlowError as e:
        click.echo(f"❌ Could not read {flow_file}: {e}", err=True)
        sys.exit(1)

    if result.ok:
        click.echo("✅ Automation looks good")
        return

    click.echo("❌ Fix automation issues:")
    for issue in result.issues:
        click.echo(f"   • {issue}")
    sys.exit(1)


@flow.command('normalize')
@click.argument('flow_file', type=click.Path(exists=True, path_type=Path))
@click.option('--output', '-o', type=click.Path(path_type=Path), help='Write to file instead of stdout')
@format_option
def normalize_file(flow_file: Path, output: Optional[Path], fmt: str):
    """Repair a flow file's structure (single trigger, layout, dangling edges)."""
    try:
        rendered = _render(_read_flow(flow_file), fmt)
    except FlowError as e:
        click.echo(f"❌ Could not read {flow_file}: {e}", err=True)
        sys.exit(1)

    if output:
        output.write_text(rendered, encoding='utf-8')
        click.echo(f"💾 Normalized flow written to {output}")
    else:
        click.echo(rendered)


# ============================================================================
# Collection commands
# ============================================================================

@flow.command('list')
@database_option
@click.option('--details', is_flag=True, help='Show validation status for each flow')
def list_flows(database: Optional[str], details: bool):
    """List stored automations."""
    flows = _run(database, lambda repository: repository.load_collection())

    if not flows:
        click.echo("📭 No automations yet")
        return

    active = sum(1 for item in flows if item.status == FlowStatus.ON)
    click.echo(f"📚 {len(flows)} automation(s), {active} live:")
    for item in flows:
        click.echo(
            f"  {item.status.value:<5} {item.id}  {item.name}  "
            f"({len(item.nodes)} blocks · {len(item.edges)} links · v{item.version})"
        )
        if details:
            result = validate(item)
            if result.ok:
                click.echo("        ✅ ready to activate")
            else:
                for issue in result.issues:
                    click.echo(f"        • {issue}")


@flow.command('show')
@click.argument('flow_id')
@database_option
@format_option
def show(flow_id: str, database: Optional[str], fmt: str):
    """Print a stored flow."""
    item = _run(database, lambda repository: repository.require(flow_id))
    click.echo(_render(item, fmt))


@flow.command('import')
@click.argument('flow_file', type=click.Path(exists=True, path_type=Path))
@database_option
@click.option('--require-valid', is_flag=True, help='Refuse to store a flow that fails validation')
def import_flow(flow_file: Path, database: Optional[str], require_valid: bool):
    """Store a flow file in the collection."""
    try:
        item = _read_flow(flow_file)
    except FlowError as e:
        click.echo(f"❌ Could not read {flow_file}: {e}", err=True)
        sys.exit(1)

    saved = _run(database, lambda repository: repository.save(item, require_valid=require_valid))
    click.echo(f"✅ Saved {saved.name} ({saved.id}) v{saved.version}")


@flow.command('export')
@click.argument('flow_id')
@click.argument('output', type=click.Path(path_type=Path))
@database_option
@format_option
def export_flow(flow_id: str, output: Path, database: Optional[str], fmt: str):
    """Write a stored flow to a file."""
    item = _run(database, lambda repository: repository.require(flow_id))
    output.write_text(_render(item, fmt), encoding='utf-8')
    click.echo(f"💾 Exported {flow_id} to {output}")


@flow.command('activate')
@click.argument('flow_id')
@database_option
def activate(flow_id: str, database: Optional[str]):
    """Turn an automation ON (it must pass validation)."""
    _run(database, lambda repository: repository.set_status(flow_id, FlowStatus.ON))
    click.echo(f"🟢 {flow_id} is live")


@flow.command('deactivate')
@click.argument('flow_id')
@database_option
def deactivate(flow_id: str, database: Optional[str]):
    """Turn an automation OFF."""
    _run(database, lambda repository: repository.set_status(flow_id, FlowStatus.OFF))
    click.echo(f"⏸️  {flow_id} is off")


@flow.command('toggle')
@click.argument('flow_id')
@database_option
def toggle(flow_id: str, database: Optional[str]):
    """Switch an automation between ON and OFF."""
    item = _run(database, lambda repository: repository.toggle(flow_id))
    click.echo(f"🔁 {flow_id} is now {item.status.value}")


@flow.command('duplicate')
@click.argument('flow_id')
@database_option
def duplicate(flow_id: str, database: Optional[str]):
    """Copy an automation as a new draft."""
    copy = _run(database, lambda repository: repository.duplicate(flow_id))
    click.echo(f"📋 Flow duplicated: {copy.id}")


@flow.command('delete')
@click.argument('flow_id')
@database_option
@click.confirmation_option(prompt='Delete this automation? This cannot be undone.')
def delete(flow_id: str, database: Optional[str]):
    """Delete an automation."""
    deleted = _run(database, lambda repository: repository.delete(flow_id))
    if not deleted:
        click.echo(f"❌ Flow {flow_id} not found", err=True)
        sys.exit(1)
    click.echo("🗑️  Automation deleted.")


# ============================================================================
# Draft commands
# ============================================================================

@flow.group()
def draft():
    """Inspect or discard the autosaved draft."""
    pass


@draft.command('show')
@database_option
@format_option
def draft_show(database: Optional[str], fmt: str):
    """Print the autosaved draft."""
    item = _run(database, lambda repository: repository.load_draft())
    if item is None:
        click.echo("📭 No draft saved")
        return
    click.echo(_render(item, fmt))


@draft.command('clear')
@database_option
def draft_clear(database: Optional[str]):
    """Discard the autosaved draft."""
    _run(database, lambda repository: repository.clear_draft())
    click.echo("🧹 Draft cleared")
