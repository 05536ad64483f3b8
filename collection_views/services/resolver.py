"""
Attribute path resolution for collection-views.

A path is a dot-separated list of names. Every name but the last is a
relation that is followed to its target notes; the last one is either an
attribute name or one of the pseudo-properties below, which expose a note's
built-in fields as synthetic labels:

    $id, $noteId    note id
    $type           note type
    $mime           content MIME type
    $title          title
    $contentSize    content length in bytes
    $dateCreated    UTC creation timestamp
    $dateModified   UTC modification timestamp

Examples:
    status                  the note's own `status` attributes
    project.status          `status` of every note the `project` relation targets
    project.owner.$title    titles of the owners of those projects
"""

import asyncio
import logging
import re
from typing import Awaitable, Callable, Dict, List, Optional

from ..domain.note import LABEL, Attribute, Note, NoteHost

logger = logging.getLogger(__name__)

SORTABLE_TITLE_LABEL = "sortableTitle"

_COVER_IMAGE = re.compile(r'<img\b[^>]*?\bsrc="([^"]*)"', re.IGNORECASE)


async def _note_id(note: Note) -> str:
    return note.note_id


async def _note_type(note: Note) -> str:
    return note.type


async def _note_mime(note: Note) -> str:
    return note.mime


async def _note_title(note: Note) -> str:
    return note.title


async def _content_size(note: Note) -> str:
    return str((await note.get_metadata()).content_length)


async def _date_created(note: Note) -> str:
    return (await note.get_metadata()).utc_date_created


async def _date_modified(note: Note) -> str:
    return (await note.get_metadata()).utc_date_modified


PSEUDO_PROPERTIES: Dict[str, Callable[[Note], Awaitable[str]]] = {
    "$id": _note_id,
    "$noteId": _note_id,
    "$type": _note_type,
    "$mime": _note_mime,
    "$title": _note_title,
    "$contentSize": _content_size,
    "$dateCreated": _date_created,
    "$dateModified": _date_modified,
}


def get_sortable_title(note: Note) -> str:
    """
    Return the lowercased title used for ordering.

    A non-blank `sortableTitle` label takes precedence over the title.
    """
    sortable_title = note.get_label_value(SORTABLE_TITLE_LABEL) or ""
    title = sortable_title.strip() or note.title.strip()
    return title.lower()


def find_cover_url(content: str) -> Optional[str]:
    """Return the source of the first image in HTML content, if any."""
    match = _COVER_IMAGE.search(content or "")
    if not match:
        return None
    return match.group(1) or None


class PathResolver:
    """
    Resolves attribute paths against the host's note graph.

    One resolver is meant to live for one render pass. Notes looked up by id
    are cached for the lifetime of the resolver since notes do not change
    during a pass; pass cache=False to always ask the host.

    Example:
        resolver = PathResolver(host)
        values = await resolver.get_attributes_by_path(note, "project.status")
    """

    def __init__(self, host: NoteHost, cache: bool = True):
        self.host = host
        self.cache = cache
        self._notes: Dict[str, Optional[Note]] = {}

    async def get_note(self, note_id: str) -> Optional[Note]:
        """Return a note by id, or None for a dangling id."""
        if self.cache and note_id in self._notes:
            return self._notes[note_id]

        note = await self.host.get_note(note_id)
        if self.cache:
            self._notes[note_id] = note
        return note

    async def get_notes(self, note_ids: List[str]) -> List[Optional[Note]]:
        """Look up several notes concurrently, preserving order."""
        return list(await asyncio.gather(*(self.get_note(note_id) for note_id in note_ids)))

    async def get_attributes_by_path(self, note: Note, path: str) -> List[Attribute]:
        """
        Return every attribute found at a path.

        Relation segments fan out to all their targets; results keep the
        order of the targets. Dangling relations contribute nothing.
        """
        if not path:
            return []

        name, _, remainder = path.partition(".")
        if remainder:
            targets = await note.get_relation_targets(name)
            results = await asyncio.gather(
                *(self.get_attributes_by_path(target, remainder) for target in targets)
            )
            return [attribute for attributes in results for attribute in attributes]

        pseudo_property = PSEUDO_PROPERTIES.get(name)
        if pseudo_property is not None:
            return [Attribute(type=LABEL, name=name, value=await pseudo_property(note))]

        return note.get_attributes(None, name)

    async def get_attribute_by_path(self, note: Note, path: str) -> Optional[Attribute]:
        """Return the first attribute at a path, or None."""
        attributes = await self.get_attributes_by_path(note, path)
        return attributes[0] if attributes else None

    async def get_attribute_value_by_path(self, note: Note, path: str) -> str:
        """Return the value of the first attribute at a path, or ""."""
        attribute = await self.get_attribute_by_path(note, path)
        return attribute.value if attribute else ""

    async def get_label_value_by_path(self, note: Note, path: str) -> str:
        """Return the value of the first label (relations skipped) at a path, or ""."""
        for attribute in await self.get_attributes_by_path(note, path):
            if attribute.is_label:
                return attribute.value
        return ""

    async def get_sortable_attribute_value(self, note: Note, path: str) -> str:
        """
        Return the lowercased value used to sort a note by a path.

        Relations sort by their target's sortable title, or by the raw
        relation value when the target does not exist.
        """
        attribute = await self.get_attribute_by_path(note, path)
        if not attribute:
            return ""

        if attribute.is_relation:
            related_note = await self.get_note(attribute.value)
            if related_note:
                return get_sortable_title(related_note)

        return attribute.value.strip().lower()

    async def get_cover_url(self, note: Note) -> Optional[str]:
        """Return the URL of a note's cover image, if its content has one."""
        return find_cover_url(await note.get_content())
