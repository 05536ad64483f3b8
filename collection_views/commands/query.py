"""
Query command for collection-views.

Shows how a collection note's query resolves and which notes it matches,
without rendering the view.
"""

import asyncio
import sys
from typing import Optional

import click
from rich.table import Table
from rich import box
from rich.text import Text

from ..cli_utils import handle_errors, make_console, open_host
from ..config import load_config
from ..domain.view_config import ViewConfig
from ..exit_codes import CONFIG_ERROR
from ..format_utils import format_output
from ..render import render_errors
from ..services.collection_service import CollectionService


@click.command('query')
@click.argument('source')
@click.argument('note_id')
@click.option('--search', 'keyword', help='Keyword search (needs a `search` label on the note)')
@click.option('--json', 'as_json', is_flag=True, help='Output as a single JSON object')
@click.option('--token', envvar='COLLECTION_VIEWS_ETAPI_TOKEN', help='ETAPI token')
@handle_errors
def query_handler(source: str, note_id: str, keyword: Optional[str], as_json: bool,
                  token: Optional[str]):
    """
    Resolve the query of collection NOTE_ID and list the matching notes.

    Examples:

        collection-views query notes.yaml books

        collection-views query http://localhost:8080 abc123 --json
    """
    config = load_config()
    service = CollectionService(open_host(source, config, token))

    async def evaluate():
        origin = await service.load(note_id)
        view_config = ViewConfig.from_note(origin)
        errors = view_config.validate()
        if not view_config.query:
            return view_config, "", [], errors
        resolved = await service.resolve_query(view_config, service.create_resolver(), keyword)
        notes = await service.host.search_for_notes(resolved)
        return view_config, resolved, notes, errors

    view_config, resolved, notes, errors = asyncio.run(evaluate())

    output = {
        'noteId': note_id,
        'query': view_config.query,
        'resolvedQuery': resolved,
        'noteIds': [note.note_id for note in notes],
    }
    if errors:
        output['errors'] = errors

    if as_json:
        for line in format_output([output], 'json'):
            click.echo(line)
    else:
        console = make_console(config)
        if errors:
            console.print(render_errors(errors))
        console.print(Text.assemble(("Query: ", "bold"), view_config.query))
        console.print(Text.assemble(("Resolved: ", "bold"), resolved))

        table = Table(
            title=f"Matching notes ({len(notes)})",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold magenta"
        )
        table.add_column("Note ID", style="cyan")
        table.add_column("Title")
        for note in notes:
            table.add_row(Text(note.note_id), Text(note.title))
        console.print(table)

    if not view_config.query:
        sys.exit(CONFIG_ERROR)
