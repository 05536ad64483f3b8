"""
collection-views - Table, board and gallery views of note collections.

A collection note carries labels describing a view: which notes to show
(`query`), how to order them (`sort`), how to group them on a board
(`groupBy`) and which attributes to display (`attribute`). collection-views
evaluates those labels against a note graph.

Quick Start:
    import asyncio
    from collection_views import CollectionService, load_note_graph

    host = load_note_graph("notes.yaml")
    service = CollectionService(host)
    result = asyncio.run(service.render("books"))
    for note in result.notes:
        print(note.title)

Domain Objects:
    Attribute - A label or relation on a note
    Note / NoteHost - The note interface every host implements
    AttributeConfig - Display directive for one attribute
    ViewConfig - Whole-view configuration read from a collection note

Services:
    PathResolver - Attribute path resolution
    CollectionService - Search, sort and group one collection

Hosts:
    MemoryHost - In-memory note graph
    load_note_graph - YAML/JSON note graph files
    EtapiHost - Trilium server over ETAPI
"""

__version__ = "0.4.0"

# Domain objects
from .domain import (
    Attribute,
    AttributeConfig,
    Group,
    Note,
    NoteHost,
    NoteMetadata,
    SortAttribute,
    ViewConfig,
    ViewType,
)

# Services
from .services import (
    CollectionResult,
    CollectionService,
    PathResolver,
    group_notes,
    sort_notes,
)

# Hosts
from .infra import (
    EtapiClient,
    EtapiHost,
    MemoryHost,
    MemoryNote,
    load_note_graph,
)

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "Attribute",
    "AttributeConfig",
    "Group",
    "Note",
    "NoteHost",
    "NoteMetadata",
    "SortAttribute",
    "ViewConfig",
    "ViewType",
    # Services
    "CollectionResult",
    "CollectionService",
    "PathResolver",
    "group_notes",
    "sort_notes",
    # Hosts
    "EtapiClient",
    "EtapiHost",
    "MemoryHost",
    "MemoryNote",
    "load_note_graph",
]
