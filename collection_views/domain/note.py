"""
Note domain objects for collection-views.

The host application owns the note graph; this module only describes the
shape every host adapter has to provide:

- Attribute: a label (plain value) or relation (value is another note's id)
- NoteMetadata: content size and timestamps, fetched lazily
- Note: one normalized read-only note interface
- NoteHost: search and lookup over the whole graph

Plus the small value objects produced by grouping and sorting.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class AttributeType(str, Enum):
    """Kinds of attributes a note can carry."""
    LABEL = "label"
    RELATION = "relation"


LABEL = AttributeType.LABEL.value
RELATION = AttributeType.RELATION.value

# Timestamp layout used by the host, e.g. "2020-01-02 03:04:05.678Z"
UTC_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_utc_date(value: datetime) -> str:
    """Format a datetime in the host's UTC timestamp layout."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    millis = value.microsecond // 1000
    return f"{value.strftime(UTC_DATE_FORMAT)}.{millis:03d}Z"


@dataclass(frozen=True)
class Attribute:
    """
    A named attribute attached to a note.

    A note may carry several attributes with the same name. For relations,
    `value` is the id of the target note, which may not exist.
    """
    type: str
    name: str
    value: str

    @property
    def is_label(self) -> bool:
        return self.type == LABEL

    @property
    def is_relation(self) -> bool:
        return self.type == RELATION

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'name': self.name, 'value': self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Attribute':
        """Create Attribute from dictionary."""
        return cls(
            type=str(data.get('type', LABEL)),
            name=str(data.get('name', '')),
            value='' if data.get('value') is None else str(data.get('value')),
        )

    @classmethod
    def label(cls, name: str, value: str) -> 'Attribute':
        return cls(type=LABEL, name=name, value=value)

    @classmethod
    def relation(cls, name: str, value: str) -> 'Attribute':
        return cls(type=RELATION, name=name, value=value)


@dataclass(frozen=True)
class NoteMetadata:
    """Content size and timestamps of a note."""
    content_length: int = 0
    utc_date_created: str = ""
    utc_date_modified: str = ""


class Note(ABC):
    """
    Read-only note interface consumed by the resolver and renderers.

    Attribute lookups are synchronous because hosts ship a note's own
    attributes with the note. Anything that may need another round trip
    (relation targets, content, metadata) is a coroutine.
    """

    note_id: str
    title: str
    type: str
    mime: str

    @abstractmethod
    def get_attributes(self, type: Optional[str] = None,
                       name: Optional[str] = None) -> List[Attribute]:
        """Return attributes filtered by type and/or name, in host order."""

    def get_attribute(self, type: Optional[str] = None,
                      name: Optional[str] = None) -> Optional[Attribute]:
        attributes = self.get_attributes(type, name)
        return attributes[0] if attributes else None

    def get_labels(self, name: Optional[str] = None) -> List[Attribute]:
        return self.get_attributes(LABEL, name)

    def get_label_value(self, name: str) -> Optional[str]:
        attribute = self.get_attribute(LABEL, name)
        return attribute.value if attribute else None

    @abstractmethod
    async def get_relation_targets(self, name: Optional[str] = None) -> List['Note']:
        """Return the notes targeted by relations, dropping dangling ones."""

    @abstractmethod
    async def get_content(self) -> str:
        """Return the note's content."""

    @abstractmethod
    async def get_metadata(self) -> NoteMetadata:
        """Return the note's content size and timestamps."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(note_id={self.note_id!r}, title={self.title!r})"


class NoteHost(ABC):
    """Access to the host's note graph."""

    @abstractmethod
    async def search_for_notes(self, query: str) -> List[Note]:
        """Run a host search and return the matching notes."""

    @abstractmethod
    async def get_note(self, note_id: str) -> Optional[Note]:
        """Return a note by id, or None if it does not exist."""


@dataclass
class Group:
    """
    A bucket of notes sharing a resolved attribute value.

    The trailing "none" group has no name and collects notes without a
    value. List order is display order.
    """
    name: Optional[str] = None
    related_note: Optional[Note] = None
    notes: List[Note] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'relatedNoteId': self.related_note.note_id if self.related_note else None,
            'noteIds': [note.note_id for note in self.notes],
        }


@dataclass(frozen=True)
class SortAttribute:
    """One sort key: an attribute path and its direction."""
    path: str
    descending: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'descending': self.descending}

    @classmethod
    def parse(cls, text: str) -> 'SortAttribute':
        """Parse "path" or "!path" (descending)."""
        path = text.strip()
        descending = path.startswith("!")
        if descending:
            path = path[1:]
        return cls(path=path, descending=descending)
