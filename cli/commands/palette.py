# cli/commands/palette.py
"""Palette inspection commands."""

import json
import sys

import click

from flowcanvas.visual.palette import PaletteLibrary, PaletteSection


@click.group()
def palette():
    """Browse the blocks available on the canvas."""
    pass


@palette.command('list')
@click.option('--section', '-s', type=click.Choice([s.value for s in PaletteSection]),
              help='Only show one section')
@click.option('--search', 'query', help='Filter by label or description')
def list_items(section, query):
    """List palette blocks."""
    library = PaletteLibrary()
    items = library.search(query) if query else library.all_items()
    if section:
        items = [item for item in items if item.section.value == section]

    if not items:
        click.echo("📭 No matching blocks")
        return

    for item in items:
        badge = f" [{item.badge}]" if item.badge else ""
        disabled = " (disabled)" if item.disabled else ""
        click.echo(f"  {item.id:<28} {item.label}{badge}{disabled}")
        click.echo(f"  {'':<28} {item.description}")


@palette.command('payload')
@click.argument('item_id')
def payload(item_id):
    """Print the drag payload a block carries onto the canvas."""
    drop = PaletteLibrary().drag_payload(item_id)
    if drop is None:
        click.echo(f"❌ Block {item_id} is unknown or disabled", err=True)
        sys.exit(1)
    click.echo(json.dumps(drop.to_dict(), indent=2))
