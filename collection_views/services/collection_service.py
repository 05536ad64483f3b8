"""
Collection service for collection-views.

Ties configuration, search, sorting and grouping together for one render
pass of a collection note.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..domain.note import Group, Note, NoteHost
from ..domain.view_config import ViewConfig, ViewType
from ..exit_codes import NoteNotFoundError
from .grouping import group_notes
from .resolver import PathResolver
from .sorting import sort_notes

logger = logging.getLogger(__name__)

NO_NOTES_FOUND = "No notes found."


@dataclass
class CollectionResult:
    """
    Everything a renderer needs for one collection.

    When `errors` is non-empty the collection cannot be rendered and the
    messages should be shown instead.
    """
    config: ViewConfig
    resolver: PathResolver
    query: str = ""
    notes: List[Note] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'config': self.config.to_dict(),
            'query': self.query,
            'noteIds': [note.note_id for note in self.notes],
        }
        if self.config.view == ViewType.BOARD:
            result['groups'] = [group.to_dict() for group in self.groups]
        if self.errors:
            result['errors'] = self.errors
        return result


class CollectionService:
    """
    Service for evaluating collection notes against a host.

    Example:
        service = CollectionService(host)
        origin = await service.load("abc123")
        result = await service.build(origin)
        if result.ok:
            print([note.title for note in result.notes])
    """

    def __init__(self, host: NoteHost, cache: bool = True):
        """
        Initialize CollectionService.

        Args:
            host: Note graph to search and resolve against
            cache: Cache notes looked up by id within a render pass
        """
        self.host = host
        self.cache = cache

    def create_resolver(self) -> PathResolver:
        """Return a resolver for a new render pass."""
        return PathResolver(self.host, cache=self.cache)

    async def load(self, note_id: str) -> Note:
        """Return the collection note, raising if it does not exist."""
        note = await self.host.get_note(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def resolve_query(self, config: ViewConfig, resolver: PathResolver,
                            keyword: Optional[str] = None) -> str:
        """Return the search string for a configuration and optional keyword."""
        query = await config.get_query(resolver)
        if config.search and keyword:
            query = config.augment_query(query, keyword)
        return query

    async def build(self, origin: Note, keyword: Optional[str] = None) -> CollectionResult:
        """
        Evaluate a collection note.

        Args:
            origin: The collection note holding the configuration labels
            keyword: Optional search keyword (used when `search` is enabled)

        Returns:
            CollectionResult with sorted notes (and groups for boards), or
            with errors describing why nothing can be rendered
        """
        config = ViewConfig.from_note(origin)
        resolver = self.create_resolver()
        result = CollectionResult(config=config, resolver=resolver)

        result.errors = config.validate()
        if result.errors:
            return result

        result.query = await self.resolve_query(config, resolver, keyword)
        logger.info(f"Searching notes for collection {origin.note_id}: {result.query}")
        notes = await self.host.search_for_notes(result.query)
        if not notes:
            result.errors.append(NO_NOTES_FOUND)
            return result

        await sort_notes(resolver, notes, config.sort)
        result.notes = notes

        if config.view == ViewType.BOARD and config.group_by:
            result.groups = await group_notes(resolver, notes, config.group_by.path)

        return result

    async def render(self, note_id: str, keyword: Optional[str] = None) -> CollectionResult:
        """Load a collection note by id and evaluate it."""
        return await self.build(await self.load(note_id), keyword)
