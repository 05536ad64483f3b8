"""
Common CLI utilities for consistent command behavior.
"""

import logging
import sys
from functools import wraps
from typing import Any, Dict, Optional

import click
from rich.console import Console

from .domain.note import NoteHost
from .exit_codes import INTERRUPTED, CommandError, get_exit_code_for_exception
from .infra.etapi_client import EtapiClient, EtapiHost
from .infra.file_store import load_note_graph

logger = logging.getLogger(__name__)


def handle_errors(func):
    """
    Decorator that turns exceptions into an error message on stderr and the
    matching exit code.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            click.echo(f"Command failed: {e}", err=True)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def is_url(source: str) -> bool:
    return source.startswith(('http://', 'https://'))


def open_host(source: str, config: Dict[str, Any], token: Optional[str] = None) -> NoteHost:
    """
    Open the note host a command reads from.

    SOURCE is either the URL of a Trilium server (ETAPI) or the path of a
    YAML/JSON note graph file. An empty SOURCE uses the configured ETAPI URL.
    """
    etapi = config.get('etapi', {})
    url = source or etapi.get('url') or ''
    if is_url(url):
        client = EtapiClient(
            url,
            token=token or str(etapi.get('token') or '') or None,
            timeout=float(etapi.get('timeout_seconds') or 30),
        )
        return EtapiHost(client)
    if not source:
        raise click.UsageError("SOURCE is required when no etapi.url is configured")
    return load_note_graph(source)


def make_console(config: Dict[str, Any]) -> Console:
    """Console for rendered output, sized and coloured from the render config."""
    render = config.get('render', {})
    return Console(
        width=int(render.get('max_width') or 0) or None,
        no_color=not render.get('color', True),
        highlight=False,
    )
