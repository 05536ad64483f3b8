"""
Multi-key sorting of notes.

Each key compares numerically when both notes' values are plain numbers and
as lowercased text otherwise. Notes that tie on every key are ordered by
their sortable title.
"""

import asyncio
import logging
import math
from functools import cmp_to_key
from typing import Dict, List, Sequence

from ..domain.note import Note, SortAttribute
from ..utils import parse_float_strict
from .resolver import PathResolver, get_sortable_title

logger = logging.getLogger(__name__)


def _compare(value_a, value_b) -> int:
    if value_a < value_b:
        return -1
    if value_a > value_b:
        return 1
    return 0


def compare_sortable_values(value_a: str, value_b: str) -> int:
    """Compare two sortable values, numerically if both are numbers."""
    float_a = parse_float_strict(value_a)
    float_b = parse_float_strict(value_b)
    if not math.isnan(float_a) and not math.isnan(float_b):
        return _compare(float_a, float_b)
    return _compare(value_a, value_b)


async def sort_notes(resolver: PathResolver, notes: List[Note],
                     sort_attributes: Sequence[SortAttribute]) -> None:
    """
    Sort notes in place by the given sort keys.

    Sortable values are resolved once per note and key (concurrently)
    before sorting.
    """
    paths = [sort_attribute.path for sort_attribute in sort_attributes]

    async def resolve(note: Note) -> Dict[str, str]:
        values = await asyncio.gather(
            *(resolver.get_sortable_attribute_value(note, path) for path in paths)
        )
        return dict(zip(paths, values))

    resolved = await asyncio.gather(*(resolve(note) for note in notes))
    sortable_values = {id(note): values for note, values in zip(notes, resolved)}

    def compare(a: Note, b: Note) -> int:
        for sort_attribute in sort_attributes:
            result = compare_sortable_values(
                sortable_values[id(a)][sort_attribute.path],
                sortable_values[id(b)][sort_attribute.path],
            )
            if result:
                return -result if sort_attribute.descending else result

        return _compare(get_sortable_title(a), get_sortable_title(b))

    notes.sort(key=cmp_to_key(compare))
    logger.debug(f"Sorted {len(notes)} notes by {len(paths)} keys")
