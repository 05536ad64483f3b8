"""
Whole-view configuration read from a collection note's labels.

Labels read from the collection ("origin") note:

    view          board, gallery or table (default)
    query         host search string, may contain tokens (see get_query)
    groupBy       attribute directive used to group a board
    sort          comma-separated paths, "!" prefix for descending
    columns       gallery columns (1-20)
    columnWidth   board column width (1-1000)
    coverHeight   card cover height (0-1000, 0 hides covers)
    attribute     repeated, one attribute directive per shown field
    search        enables keyword search on top of the query
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..utils import is_enum_value, is_truthy, parse_optional_int
from .attribute_config import AttributeConfig
from .note import Note, SortAttribute

if TYPE_CHECKING:
    from ..services.resolver import PathResolver

logger = logging.getLogger(__name__)

RENDER_NOTE = "$renderNote"
TOKENS = ("$id", "$noteId", "$title", RENDER_NOTE)

ATTRIBUTE_PATH = re.compile(
    r"(\$[a-z]+|[\w:]+)(\.(\$[a-z]+|[\w:]+))*",
    re.IGNORECASE | re.ASCII,
)

MISSING_QUERY = "This note must define a `query` attribute."
MISSING_GROUP_BY = "This note must define a `groupBy` attribute."


class ViewType(str, Enum):
    """Supported view layouts."""
    BOARD = "board"
    GALLERY = "gallery"
    TABLE = "table"


def parse_sort(value: str) -> List[SortAttribute]:
    """Parse a sort label into sort keys; blank clears sorting."""
    if not value.strip():
        return []
    return [SortAttribute.parse(path) for path in value.split(",")]


def escape_value(value: str) -> str:
    """Escape backslashes and double quotes with a backslash."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _get_token_prefix(text: str) -> Optional[str]:
    for token in TOKENS:
        if text.startswith(token):
            return token
    return None


def _get_attribute_path(text: str) -> Optional[str]:
    match = ATTRIBUTE_PATH.match(text)
    return match.group(0) if match else None


@dataclass
class ViewConfig:
    """
    Configuration for the entire view, built fresh for every render.

    Missing or unusable values fall back to defaults; see validate() for the
    problems the caller should report instead of rendering.
    """
    note: Note
    view: ViewType = ViewType.TABLE
    query: str = ""
    group_by: Optional[AttributeConfig] = None
    sort: List[SortAttribute] = field(default_factory=list)
    columns: Optional[int] = None
    column_width: Optional[int] = None
    cover_height: Optional[int] = None
    attributes: List[AttributeConfig] = field(default_factory=list)
    search: bool = False

    @classmethod
    def from_note(cls, note: Note) -> 'ViewConfig':
        """Read the configuration from a collection note's labels."""
        def label(name: str) -> str:
            return note.get_label_value(name) or ""

        view = label("view").strip()
        group_by = label("groupBy")
        search = note.get_label_value("search")

        config = cls(
            note=note,
            view=ViewType(view) if is_enum_value(ViewType, view) else ViewType.TABLE,
            query=label("query").strip(),
            group_by=AttributeConfig.parse(group_by) if group_by.strip() else None,
            sort=parse_sort(label("sort")),
            columns=parse_optional_int(label("columns"), 1, 20),
            column_width=parse_optional_int(label("columnWidth"), 1, 1000),
            cover_height=parse_optional_int(label("coverHeight"), 0, 1000),
            attributes=[AttributeConfig.parse(attribute.value)
                        for attribute in note.get_labels("attribute")],
            search=search is not None and is_truthy(search),
        )
        logger.debug(
            f"Read {config.view.value} view config from note {note.note_id}: "
            f"{len(config.attributes)} attributes, {len(config.sort)} sort keys"
        )
        return config

    def validate(self) -> List[str]:
        """Return user-facing problems that prevent rendering."""
        problems = []
        if not self.query:
            problems.append(MISSING_QUERY)
        if self.view == ViewType.BOARD and not self.group_by:
            problems.append(MISSING_GROUP_BY)
        return problems

    async def get_query(self, resolver: 'PathResolver') -> str:
        """
        Return the query with all tokens replaced by their values.

        Tokens are substituted with values from the collection note:

        - $id or $noteId: the note's id
        - $title: the note's title
        - $renderNote.path: the value of the first attribute found at "path"
          (see PathResolver.get_attributes_by_path), or "" if none

        Substituted values are double quoted with backslashes and quotes
        escaped. A bare $renderNote is left as is.
        """
        parts: List[str] = []
        remainder = self.query
        while remainder:
            path = _get_token_prefix(remainder)
            if path == RENDER_NOTE:
                path = _get_attribute_path(remainder)
                if path == RENDER_NOTE:
                    path = None
            if not path:
                parts.append(remainder[0])
                remainder = remainder[1:]
                continue

            length = len(path)
            if path.startswith(RENDER_NOTE):
                path = ".".join(path.split(".")[1:])

            value = await resolver.get_attribute_value_by_path(self.note, path)
            parts.append(f'"{escape_value(value)}"')
            remainder = remainder[length:]

        query = "".join(parts)
        logger.debug(f"Resolved query '{self.query}' to '{query}'")
        return query

    def augment_query(self, query: str, keyword: str) -> str:
        """
        Append a keyword search to a resolved query.

        The keyword is matched against the title and every configured
        attribute path. An empty keyword leaves the query unchanged.
        """
        keyword = keyword.lower()
        if not keyword:
            return query

        augmented = f"{query} AND ((note.title *=* '{keyword}')"
        for attribute_config in self.attributes:
            augmented = f"{augmented} OR (#{attribute_config.path} *=* {keyword})"
        return f"{augmented})"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the configuration (without the note)."""
        result: Dict[str, Any] = {
            'noteId': self.note.note_id,
            'view': self.view.value,
            'query': self.query,
            'sort': [sort.to_dict() for sort in self.sort],
            'attributes': [config.to_dict() for config in self.attributes],
        }
        if self.group_by:
            result['groupBy'] = self.group_by.to_dict()
        for key, value in (('columns', self.columns),
                           ('columnWidth', self.column_width),
                           ('coverHeight', self.cover_height)):
            if value is not None:
                result[key] = value
        if self.search:
            result['search'] = True
        return result
