"""
Infrastructure layer for collection-views.

Contains the host adapters implementing the Note interface:
- MemoryHost / MemoryNote: in-memory note graph
- load_note_graph: YAML/JSON note graph files
- EtapiClient / EtapiHost: Trilium ETAPI access
- NoteQuery: search engine used by the local hosts

These provide clean interfaces that can be swapped in tests.
"""

from .note_search import NoteQuery
from .memory_host import MemoryHost, MemoryNote
from .file_store import load_note_graph, parse_note_graph
from .etapi_client import EtapiClient, EtapiHost, EtapiNote

__all__ = [
    'NoteQuery',
    'MemoryHost',
    'MemoryNote',
    'load_note_graph',
    'parse_note_graph',
    'EtapiClient',
    'EtapiHost',
    'EtapiNote',
]
