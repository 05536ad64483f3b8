"""
Service layer for collection-views.

Services resolve attribute paths against the host's note graph and turn a
collection note's configuration into ordered notes and groups:
- PathResolver: attribute path resolution and sortable values
- group_notes / sort_notes: the board grouping and multi-key sorting engines
- CollectionService: one full evaluation of a collection note
"""

from .resolver import (
    PSEUDO_PROPERTIES,
    PathResolver,
    find_cover_url,
    get_sortable_title,
)
from .grouping import get_sortable_group_name, group_notes
from .sorting import compare_sortable_values, sort_notes
from .collection_service import CollectionResult, CollectionService

__all__ = [
    'PSEUDO_PROPERTIES',
    'PathResolver',
    'find_cover_url',
    'get_sortable_title',
    'get_sortable_group_name',
    'group_notes',
    'compare_sortable_values',
    'sort_notes',
    'CollectionResult',
    'CollectionService',
]
