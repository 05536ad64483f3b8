"""
In-memory note graph for collection-views.

Used by the file-backed graph loader and as the test double for every
engine. Notes resolve their relations through the host they were added to.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from ..domain.note import RELATION, Attribute, Note, NoteHost, NoteMetadata, format_utc_date
from .note_search import NoteQuery

logger = logging.getLogger(__name__)


class MemoryNote(Note):
    """
    A note held entirely in memory.

    Example:
        note = MemoryNote("abc", "Dune", attributes=[Attribute.label("book", "")])
    """

    def __init__(
        self,
        note_id: str,
        title: str = "",
        type: str = "text",
        mime: str = "text/html",
        content: str = "",
        attributes: Optional[Iterable[Attribute]] = None,
        content_length: Optional[int] = None,
        date_created: Optional[str] = None,
        date_modified: Optional[str] = None,
    ):
        now = format_utc_date(datetime.now(timezone.utc))
        self.note_id = note_id
        self.title = title
        self.type = type
        self.mime = mime
        self.content = content
        self.attributes: List[Attribute] = list(attributes or [])
        self.content_length = (len(content.encode('utf-8'))
                               if content_length is None else content_length)
        self.date_created = date_created or now
        self.date_modified = date_modified or self.date_created
        self.host: Optional['MemoryHost'] = None

    def get_attributes(self, type: Optional[str] = None,
                       name: Optional[str] = None) -> List[Attribute]:
        return [
            attribute for attribute in self.attributes
            if (type is None or attribute.type == type)
            and (name is None or attribute.name == name)
        ]

    async def get_relation_targets(self, name: Optional[str] = None) -> List[Note]:
        if self.host is None:
            return []
        targets = await asyncio.gather(
            *(self.host.get_note(attribute.value)
              for attribute in self.get_attributes(RELATION, name))
        )
        return [target for target in targets if target is not None]

    async def get_content(self) -> str:
        return self.content

    async def get_metadata(self) -> NoteMetadata:
        return NoteMetadata(
            content_length=self.content_length,
            utc_date_created=self.date_created,
            utc_date_modified=self.date_modified,
        )


class MemoryHost(NoteHost):
    """
    Note graph backed by a dict of MemoryNote objects.

    Searches run the local NoteQuery engine over every note, in insertion
    order.
    """

    def __init__(self, notes: Optional[Iterable[MemoryNote]] = None,
                 threshold: int = 80):
        self.threshold = threshold
        self._notes: Dict[str, MemoryNote] = {}
        for note in notes or []:
            self.add(note)

    def add(self, note: MemoryNote) -> MemoryNote:
        """Add a note to the graph, replacing any note with the same id."""
        note.host = self
        self._notes[note.note_id] = note
        return note

    @property
    def notes(self) -> List[MemoryNote]:
        return list(self._notes.values())

    def __len__(self) -> int:
        return len(self._notes)

    async def get_note(self, note_id: str) -> Optional[Note]:
        return self._notes.get(note_id)

    async def search_for_notes(self, query: str) -> List[Note]:
        note_query = NoteQuery(query, threshold=self.threshold)
        results: List[Note] = [note for note in self._notes.values()
                               if note_query.matches(note, note.content)]
        logger.debug(f"Search matched {len(results)} of {len(self._notes)} notes")
        return results
