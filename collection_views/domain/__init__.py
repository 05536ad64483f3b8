"""
Domain layer for collection-views.

Contains the configuration and value objects, none of which perform I/O
(apart from ViewConfig.get_query, which awaits a resolver):
- Attribute, Note, NoteHost: the normalized view of the host's note graph
- AttributeConfig: how one attribute path is displayed
- ViewConfig: how the whole collection is queried, ordered and laid out
- Group, SortAttribute: grouping and sorting value objects
"""

from .note import (
    LABEL,
    RELATION,
    Attribute,
    AttributeType,
    Group,
    Note,
    NoteHost,
    NoteMetadata,
    SortAttribute,
    format_utc_date,
)
from .attribute_config import AttributeConfig, split_comma
from .view_config import ViewConfig, ViewType

__all__ = [
    'LABEL',
    'RELATION',
    'Attribute',
    'AttributeType',
    'Group',
    'Note',
    'NoteHost',
    'NoteMetadata',
    'SortAttribute',
    'format_utc_date',
    'AttributeConfig',
    'split_comma',
    'ViewConfig',
    'ViewType',
]
