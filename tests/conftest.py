"""Shared fixtures for collection-views tests."""

from typing import Iterable, Optional, Tuple

import pytest

from collection_views.domain.note import Attribute
from collection_views.infra.memory_host import MemoryHost, MemoryNote
from collection_views.services.resolver import PathResolver

DATE_CREATED = "2020-01-02 03:04:05.678Z"
DATE_MODIFIED = "2020-02-03 04:05:06.789Z"


def make_note(note_id: str = "", title: str = "",
              attributes: Iterable[Tuple[str, str, str]] = (),
              content: str = "", type: str = "text",
              content_length: Optional[int] = 1000) -> MemoryNote:
    """Build a note from (type, name, value) triples."""
    return MemoryNote(
        note_id=note_id,
        title=title,
        type=type,
        content=content,
        attributes=[Attribute(type=t, name=n, value=v) for t, n, v in attributes],
        content_length=content_length,
        date_created=DATE_CREATED,
        date_modified=DATE_MODIFIED,
    )


def make_host(notes: Iterable[MemoryNote] = (), *detached: MemoryNote) -> MemoryHost:
    """
    Build a host holding `notes`.

    `detached` notes can resolve relations through the host without being
    searchable or addressable by id, like notes that share a blank id.
    """
    host = MemoryHost(notes)
    for note in detached:
        note.host = host
    return host


@pytest.fixture
def attribute_note():
    return make_note("1", "Title", [
        ("label", "test", "Label"),
        ("relation", "test", "Relation"),
        ("label", "label", "2"),
        ("relation", "relation", "2"),
        ("relation", "relation", "3"),
        ("relation", "relation", "bad"),
    ])


@pytest.fixture
def related_notes():
    return [
        make_note("2", "Related note 1", [
            ("label", "label", "Label 1"),
            ("label", "label", "Label 2"),
        ]),
        make_note("3", "Related note 2", [
            ("label", "label", "Label 3"),
        ]),
    ]


@pytest.fixture
def resolver(attribute_note, related_notes):
    """Resolver over the related notes, with attribute_note attached."""
    return PathResolver(make_host(related_notes, attribute_note))
