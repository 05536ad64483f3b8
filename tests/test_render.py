"""Tests for attribute formatting and view rendering."""

import io

import pytest
from rich.console import Console
from rich.text import Text

from collection_views.domain.attribute_config import AttributeConfig
from collection_views.domain.note import Group
from collection_views.domain.view_config import ViewConfig
from collection_views.render import (
    CHECKED,
    COVER,
    UNCHECKED,
    AttributeRenderer,
    BoardView,
    CardRenderer,
    LineClamp,
    parse_color,
    render_errors,
    render_view,
)
from collection_views.services.resolver import PathResolver

from conftest import make_host, make_note


def render_to_text(renderable, width=80):
    console = Console(file=io.StringIO(), width=width, color_system=None,
                      legacy_windows=False)
    console.print(renderable)
    return console.file.getvalue()


def plain(pieces):
    return "".join(piece.plain for piece in pieces)


@pytest.fixture
def renderer():
    related = [
        make_note("r1", "Reading", [
            ("label", "badgeBackground", "#00f"),
            ("label", "badgeColor", "yellow"),
        ]),
        make_note("r2", "Done"),
    ]
    return AttributeRenderer(PathResolver(make_host(related)))


async def render_values(renderer, attributes, directive):
    note = make_note("1", "Note", attributes)
    renderer.resolver.host.add(note)
    return await renderer.render_attribute_values(note, AttributeConfig.parse(directive))


class TestAttributeValues:
    """Test AttributeRenderer.render_attribute_values."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("directive,expected", [
        ("tag", "a, b"),
        ("tag,separator=space", "a b"),
        ("tag,separator= | ", "a | b"),
        ("tag,separator=", "ab"),
        ("tag,prefix=<,suffix=>", "<a>, <b>"),
    ])
    async def test_separators(self, renderer, directive, expected):
        pieces = await render_values(
            renderer, [("label", "tag", "a"), ("label", "tag", "b")], directive,
        )
        assert plain(pieces) == expected

    @pytest.mark.asyncio
    async def test_relation_renders_title(self, renderer):
        pieces = await render_values(
            renderer, [("relation", "status", "r2"), ("relation", "status", "gone")], "status",
        )
        assert plain(pieces) == "Done, gone"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("attributes,expected", [
        ([], UNCHECKED),
        ([("label", "done", "")], CHECKED),
        ([("label", "done", "true")], CHECKED),
        ([("label", "done", " No ")], UNCHECKED),
        ([("label", "done", "f"), ("label", "done", "yes")], f"{UNCHECKED} {CHECKED}"),
    ])
    async def test_boolean(self, renderer, attributes, expected):
        assert plain(await render_values(renderer, attributes, "done,boolean")) == expected

    @pytest.mark.asyncio
    async def test_boolean_affixes(self, renderer):
        pieces = await render_values(
            renderer, [("label", "done", "")], "done,boolean,prefix=[,suffix=]",
        )
        assert plain(pieces) == f"[{CHECKED}]"

    @pytest.mark.asyncio
    async def test_missing_attribute_renders_nothing(self, renderer):
        assert await render_values(renderer, [], "missing") == []

    @pytest.mark.asyncio
    async def test_progress_bar(self, renderer):
        pieces = await render_values(
            renderer,
            [("label", "read", "50"), ("label", "total", "200")],
            "read,progressBar=total,suffix= pages",
        )
        assert len(pieces) == 1
        output = render_to_text(pieces[0], width=40)
        assert "50 / 200 pages" in output
        assert "25%" in output

    @pytest.mark.asyncio
    async def test_progress_bar_falls_back_for_non_numbers(self, renderer):
        pieces = await render_values(
            renderer,
            [("label", "read", "half"), ("label", "total", "200")],
            "read,progressBar=total",
        )
        assert plain(pieces) == "half"

    @pytest.mark.asyncio
    async def test_progress_bar_without_denominator_value(self, renderer):
        pieces = await render_values(renderer, [("label", "read", "5")], "read,progressBar=total")
        assert plain(pieces) == "5"

    @pytest.mark.asyncio
    async def test_progress_bar_zero_denominator(self, renderer):
        pieces = await render_values(
            renderer,
            [("label", "read", "5"), ("label", "total", "0")],
            "read,progressBar=total",
        )
        output = render_to_text(pieces[0], width=40)
        assert "5 / 0" in output
        assert "%" not in output


class TestRenderValue:
    """Test AttributeRenderer.render_value."""

    @pytest.mark.parametrize("value,directive,expected", [
        ("3", "rating,repeat=★", "★★★"),
        ("0", "rating,repeat=★", ""),
        ("-1", "rating,repeat=★", "-1"),
        ("lots", "rating,repeat=★", "lots"),
        ("1234.5678", "n,number", "1,234.568"),
        ("1234.5", "n,precision=2", "1,234.50"),
        ("12abc", "n,number", "12abc"),
        ("1000", "n,number,prefix=$", "$1,000"),
        ("3", "rating,repeat=★,number", "★★★"),
    ])
    def test_formatting(self, renderer, value, directive, expected):
        assert plain(renderer.render_value(value, AttributeConfig.parse(directive))) == expected

    def test_badge_default_style(self, renderer):
        (badge,) = renderer.render_value("new", AttributeConfig.parse("status,badge"))
        assert badge.plain == " new "
        assert badge.style.bold
        assert badge.style.bgcolor.name == "grey42"

    def test_badge_directive_colours(self, renderer):
        config = AttributeConfig.parse("status,badgeBackground=red,badgeColor=#fff")
        (badge,) = renderer.render_value("new", config)
        assert badge.style.bgcolor.name == "red"
        assert badge.style.color.triplet.hex == "#ffffff"

    @pytest.mark.asyncio
    async def test_badge_related_note_colours_win(self, renderer):
        pieces = await render_values(
            renderer, [("relation", "status", "r1")], "status,badge,badgeBackground=red",
        )
        (badge,) = pieces
        assert badge.plain == " Reading "
        assert badge.style.bgcolor.triplet.hex == "#0000ff"
        assert badge.style.color.name == "yellow"


class TestParseColor:
    """Test parse_color."""

    @pytest.mark.parametrize("value,expected", [
        ("#f00", "#ff0000"),
        ("#00ff00", "#00ff00"),
        (" #abc ", "#aabbcc"),
    ])
    def test_hex(self, value, expected):
        assert parse_color(value).triplet.hex == expected

    def test_named(self):
        assert parse_color("blue").name == "blue"

    def test_unknown(self):
        assert parse_color("not-a-colour") is None


class TestCards:
    """Test CardRenderer."""

    @pytest.mark.asyncio
    async def test_card_contents(self):
        note = make_note("1", "Dune", [("label", "year", "1965")],
                         content='<img src="api/images/dune.png">')
        config = ViewConfig.from_note(make_note("c", attributes=[
            ("label", "attribute", "year,prefix=Year "),
        ]))
        cards = CardRenderer(config, AttributeRenderer(PathResolver(make_host([note]))))

        output = render_to_text(await cards.render(note, True))
        assert f"{COVER} api/images/dune.png" in output
        assert "Dune" in output
        assert "Year 1965" in output

    @pytest.mark.asyncio
    @pytest.mark.parametrize("show_empty,cover_height,expected", [
        (True, None, COVER),
        (False, None, None),
        (True, "0", None),
    ])
    async def test_empty_cover(self, show_empty, cover_height, expected):
        note = make_note("1", "Plain")
        attributes = [("label", "coverHeight", cover_height)] if cover_height else []
        config = ViewConfig.from_note(make_note("c", attributes=attributes))
        cards = CardRenderer(config, AttributeRenderer(PathResolver(make_host([note]))))

        cover = await cards.render_cover(note, show_empty)
        assert (cover.plain if cover else None) == expected


def collection(*attributes):
    return ViewConfig.from_note(make_note("c", "Collection", attributes))


@pytest.fixture
def books():
    return [
        make_note("b1", "Dune", [
            ("label", "status", "reading"), ("label", "pages", "412"),
            ("label", "blurb", "line one\nline two\nline three"),
        ]),
        make_note("b2", "Emma", [("label", "pages", "1036")]),
    ]


class TestViews:
    """Test the three layouts end to end."""

    @pytest.mark.asyncio
    async def test_table(self, books):
        config = collection(
            ("label", "query", "#book"),
            ("label", "attribute", "pages,number,header=Pages,align=right"),
            ("label", "attribute", "status,badge"),
        )
        renderable = await render_view(config, books, [], PathResolver(make_host(books)))
        output = render_to_text(renderable, width=60)
        assert "Title" in output
        assert "Pages" in output
        assert "status" in output
        assert "1,036" in output
        assert " reading " in output

    @pytest.mark.asyncio
    async def test_table_truncate(self, books):
        config = collection(
            ("label", "query", "#book"),
            ("label", "attribute", "blurb,truncate=2"),
        )
        renderable = await render_view(config, books, [], PathResolver(make_host(books)))
        output = render_to_text(renderable, width=60)
        assert "line two" in output
        assert "line three" not in output

    @pytest.mark.asyncio
    async def test_board(self, books):
        config = collection(
            ("label", "view", "board"),
            ("label", "query", "#book"),
            ("label", "groupBy", "status"),
        )
        groups = [Group("reading", None, [books[0]]), Group(None, None, [books[1]])]
        renderable = await render_view(config, books, groups, PathResolver(make_host(books)))
        output = render_to_text(renderable, width=100)
        assert "reading" in output
        assert "None" in output
        assert "Dune" in output
        assert "Emma" in output

    def test_board_column_name_requires_group_by(self, books):
        view = BoardView(collection(("label", "view", "board")), [],
                         AttributeRenderer(PathResolver(make_host(books))))
        with pytest.raises(ValueError):
            view.render_column_name(Group("x", None, []))

    def test_board_column_name_uses_group_by_formatting(self, books):
        config = collection(("label", "view", "board"), ("label", "groupBy", "status,prefix=#"))
        view = BoardView(config, [], AttributeRenderer(PathResolver(make_host(books))))
        assert view.render_column_name(Group("reading", None, [])).plain == "#reading"
        assert view.render_column_name(Group(None, None, [])).plain == "None"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("columns", [None, "3"])
    async def test_gallery(self, books, columns):
        attributes = [("label", "view", "gallery"), ("label", "query", "#book")]
        if columns:
            attributes.append(("label", "columns", columns))
        renderable = await render_view(collection(*attributes), books, [],
                                       PathResolver(make_host(books)))
        output = render_to_text(renderable, width=90)
        assert "Dune" in output
        assert "Emma" in output
        assert COVER in output


def test_line_clamp():
    output = render_to_text(LineClamp(Text("a\nb\nc"), 2))
    assert output.splitlines() == ["a", "b"]


def test_render_errors():
    text = render_errors(["First problem", "Second problem"])
    assert text.plain == "First problem\nSecond problem"
    assert str(text.style) == "red"
