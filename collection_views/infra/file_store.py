"""
File-backed note graphs for collection-views.

Reads a YAML or JSON export of a note graph into a MemoryHost:

    notes:
      - noteId: abc123
        title: Dune
        type: text
        mime: text/html
        content: "<p>...</p>"
        dateCreated: "2020-01-02 03:04:05.678Z"
        dateModified: "2020-01-02 03:04:05.678Z"
        attributes:
          - {type: label, name: book, value: ""}
          - {type: relation, name: author, value: def456}

Only `noteId` is required. Graphs are read, never written.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from ..domain.note import LABEL, RELATION, Attribute
from ..exit_codes import NoteGraphError
from .memory_host import MemoryHost, MemoryNote

logger = logging.getLogger(__name__)


def _note_from_dict(data: Dict[str, Any], index: int) -> MemoryNote:
    if not isinstance(data, dict):
        raise NoteGraphError(f"Note #{index} must be a mapping")
    note_id = data.get('noteId')
    if note_id is None or str(note_id) == '':
        raise NoteGraphError(f"Note #{index} has no noteId")

    attributes = []
    for attribute_data in data.get('attributes') or []:
        if not isinstance(attribute_data, dict):
            raise NoteGraphError(f"Note {note_id}: attributes must be mappings")
        attribute = Attribute.from_dict(attribute_data)
        if attribute.type not in (LABEL, RELATION):
            raise NoteGraphError(
                f"Note {note_id}: unknown attribute type '{attribute.type}'"
            )
        attributes.append(attribute)

    content = data.get('content')
    return MemoryNote(
        note_id=str(note_id),
        title=str(data.get('title') or ''),
        type=str(data.get('type') or 'text'),
        mime=str(data.get('mime') or 'text/html'),
        content='' if content is None else str(content),
        attributes=attributes,
        date_created=data.get('dateCreated'),
        date_modified=data.get('dateModified'),
    )


def parse_note_graph(data: Any) -> MemoryHost:
    """Build a MemoryHost from an already-decoded graph document."""
    if not isinstance(data, dict) or not isinstance(data.get('notes', []), list):
        raise NoteGraphError("Note graph must be a mapping with a 'notes' list")

    host = MemoryHost()
    for index, note_data in enumerate(data.get('notes') or []):
        host.add(_note_from_dict(note_data, index))
    return host


def load_note_graph(path: Union[str, Path]) -> MemoryHost:
    """
    Load a note graph file.

    Files ending in .json are read as JSON, everything else as YAML.

    Raises:
        NoteGraphError: if the file is missing, unparsable or malformed
    """
    path = Path(path).expanduser()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except OSError as e:
        raise NoteGraphError(f"Cannot read note graph {path}: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise NoteGraphError(f"Invalid note graph {path}: {e}") from e

    host = parse_note_graph(data)
    logger.info(f"Loaded {len(host)} notes from {path}")
    return host
