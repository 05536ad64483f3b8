"""
Grouping of notes by attribute value, used by the board view.
"""

import asyncio
import logging
from typing import Dict, List, Set, Tuple

from ..domain.note import LABEL, RELATION, Group, Note
from .resolver import PathResolver, get_sortable_title

logger = logging.getLogger(__name__)


def get_sortable_group_name(group: Group) -> str:
    """
    Return the value a group is ordered by.

    Relation groups use their related note's sortable title, label groups
    their lowercased name.
    """
    if group.related_note:
        return get_sortable_title(group.related_note)
    if group.name:
        return group.name.lower()
    return ""


async def group_notes(resolver: PathResolver, notes: List[Note], path: str) -> List[Group]:
    """
    Group notes by the values found at an attribute path.

    A note joins one group per distinct (type, value) it has at the path, so
    multi-valued attributes put it in several groups. Notes without a value,
    or with a blank one, also go to a trailing unnamed group.

    Args:
        resolver: Resolver for the current render pass
        notes: Notes to group, in display order
        path: Attribute path to group by

    Returns:
        Groups ordered by name, followed by the unnamed group if non-empty
    """
    attribute_lists = await asyncio.gather(
        *(resolver.get_attributes_by_path(note, path) for note in notes)
    )

    buckets: Dict[Tuple[str, str], List[Note]] = {}
    ungrouped: List[Note] = []
    for note, attributes in zip(notes, attribute_lists):
        add_to_none = not attributes
        added: Set[Tuple[str, str]] = set()

        for attribute in attributes:
            if not attribute.value.strip():
                add_to_none = True
                continue
            if attribute.type not in (LABEL, RELATION):
                continue

            key = (attribute.type, attribute.value)
            if key in added:
                continue
            buckets.setdefault(key, []).append(note)
            added.add(key)

        if add_to_none:
            ungrouped.append(note)

    groups = [
        Group(name=value, related_note=None, notes=members)
        for (kind, value), members in buckets.items()
        if kind == LABEL
    ]

    relation_buckets = [(value, members)
                        for (kind, value), members in buckets.items()
                        if kind == RELATION]
    related_notes = await resolver.get_notes([value for value, _ in relation_buckets])
    for (note_id, members), related_note in zip(relation_buckets, related_notes):
        if related_note is None:
            logger.warning(f"Grouping by '{path}': related note '{note_id}' not found")
        groups.append(Group(
            name=related_note.title if related_note else note_id,
            related_note=related_note,
            notes=members,
        ))

    groups.sort(key=get_sortable_group_name)

    if ungrouped:
        groups.append(Group(name=None, related_note=None, notes=ungrouped))

    logger.debug(f"Grouped {len(notes)} notes by '{path}' into {len(groups)} groups")
    return groups
