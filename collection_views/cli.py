#!/usr/bin/env python3

import click

from collection_views.config import configure_logging, load_config
from collection_views.exit_codes import ConfigError
from collection_views.commands.render import render_handler
from collection_views.commands.query import query_handler
from collection_views.commands.config import config_cmd


@click.group()
@click.version_option(package_name='collection-views')
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """collection-views - Table, board and gallery views of note collections.

    A collection note describes its view with labels (view, query, groupBy,
    sort, attribute, ...). collection-views searches the note graph, sorts
    and groups the results and prints the view in the terminal.
    """
    try:
        config = load_config()
    except ConfigError:
        # Reported by the subcommand that needs the configuration
        config = {}
    configure_logging(config, verbose)


cli.add_command(render_handler, name='render')
cli.add_command(query_handler, name='query')
cli.add_command(config_cmd)


def main():
    cli()


if __name__ == "__main__":
    main()
