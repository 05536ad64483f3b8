"""
Render command for collection-views.

Evaluates a collection note and prints its table, board or gallery view.
"""

import asyncio
import sys
from typing import Optional

import click

from ..cli_utils import handle_errors, make_console, open_host
from ..config import load_config
from ..exit_codes import CONFIG_ERROR, NoNotesFoundError
from ..format_utils import FORMATS, format_output, get_format_from_env
from ..render import render_errors, render_view
from ..services.collection_service import NO_NOTES_FOUND, CollectionService


@click.command('render')
@click.argument('source')
@click.argument('note_id')
@click.option('--search', 'keyword', help='Keyword search (needs a `search` label on the note)')
@click.option('--json', 'as_json', is_flag=True, help='Output the evaluated collection as JSON')
@click.option('-f', '--format', 'output_format', type=click.Choice(FORMATS),
              help='Output the evaluated collection in this format')
@click.option('--token', envvar='COLLECTION_VIEWS_ETAPI_TOKEN', help='ETAPI token')
@click.option('--no-cache', is_flag=True, help='Look up related notes again on every use')
@handle_errors
def render_handler(source: str, note_id: str, keyword: Optional[str], as_json: bool,
                   output_format: Optional[str], token: Optional[str], no_cache: bool):
    """
    Render the collection defined by NOTE_ID.

    SOURCE is a Trilium server URL or a YAML/JSON note graph file.

    Examples:

        collection-views render notes.yaml books

        collection-views render http://localhost:8080 abc123 --search dune

        collection-views render notes.yaml tasks --json
    """
    config = load_config()
    host = open_host(source, config, token)
    service = CollectionService(host, cache=not no_cache)

    async def evaluate():
        result = await service.render(note_id, keyword)
        renderable = None
        if result.ok:
            renderable = await render_view(result.config, result.notes,
                                           result.groups, result.resolver)
        return result, renderable

    result, renderable = asyncio.run(evaluate())

    if as_json:
        output_format = 'json'
    elif not output_format:
        output_format = get_format_from_env(default=None)

    if output_format:
        for line in format_output([result.to_dict()], output_format):
            click.echo(line)
    else:
        console = make_console(config)
        if result.errors and result.errors != [NO_NOTES_FOUND]:
            console.print(render_errors(result.errors))
        elif renderable is not None:
            console.print(renderable)

    if result.errors == [NO_NOTES_FOUND]:
        raise NoNotesFoundError()
    if result.errors:
        sys.exit(CONFIG_ERROR)
