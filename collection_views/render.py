"""
Rendering for collection-views output.

Turns a configured collection into rich renderables:

- AttributeRenderer: formatting of attribute values shared by every view
- CardRenderer: one card per note (boards and galleries)
- TableView, BoardView, GalleryView: the three layouts

Views hold the renderers they need rather than inheriting from them.
Layout numbers from the collection note (widths, columns) are read as
terminal cells.
"""

import asyncio
import logging
import math
from typing import List, Optional, Sequence, Union

from rich import box
from rich.color import Color, ColorParseError
from rich.columns import Columns
from rich.console import Console, ConsoleOptions, Group as RenderGroup, RenderableType, RenderResult
from rich.measure import Measurement
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.segment import Segment
from rich.style import Style
from rich.table import Table
from rich.text import Text

from .domain.attribute_config import AttributeConfig
from .domain.note import Attribute, Group, Note
from .domain.view_config import ViewConfig, ViewType
from .services.resolver import PathResolver
from .utils import clamp, format_number, is_truthy, parse_float_strict, parse_optional_int

logger = logging.getLogger(__name__)

CHECKED = "☑"
UNCHECKED = "☐"
COVER = "▣"

DEFAULT_BADGE_STYLE = Style(color="white", bgcolor="grey42", bold=True)
DEFAULT_COLUMN_WIDTH = 32

JUSTIFY = {
    "left": "left",
    "center": "center",
    "right": "right",
    "justify": "full",
}

# A rendered value: inline text, or a block such as a progress bar
Piece = Union[Text, RenderableType]


def parse_color(value: str) -> Optional[Color]:
    """Parse a CSS-like colour, accepting #rgb shorthand; None if unknown."""
    value = value.strip()
    if len(value) == 4 and value.startswith("#"):
        value = "#" + "".join(char * 2 for char in value[1:])
    try:
        return Color.parse(value)
    except ColorParseError:
        logger.debug(f"Ignoring unsupported colour '{value}'")
        return None


class LineClamp:
    """Show at most `max_lines` lines of a renderable."""

    def __init__(self, renderable: RenderableType, max_lines: int):
        self.renderable = renderable
        self.max_lines = max_lines

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        lines = console.render_lines(self.renderable, options, pad=False)
        for line in lines[:self.max_lines]:
            yield from line
            yield Segment.line()

    def __rich_measure__(self, console: Console, options: ConsoleOptions) -> Measurement:
        return Measurement.get(console, options, self.renderable)


def combine(pieces: Sequence[Piece]) -> RenderableType:
    """Join rendered pieces into one renderable, inline where possible."""
    if all(isinstance(piece, Text) for piece in pieces):
        return Text.assemble(*pieces)
    return RenderGroup(*pieces)


class AttributeRenderer:
    """
    Formats attribute values according to their AttributeConfig.

    Example:
        renderer = AttributeRenderer(resolver)
        cell = await renderer.render_cell(note, config)
    """

    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    async def render_attribute_values(self, note: Note, config: AttributeConfig) -> List[Piece]:
        """
        Render every value found at an attribute's path.

        Values are separated by the configured separator unless the first
        one rendered as a progress bar. A boolean attribute with no values
        renders as a single unchecked box.
        """
        attributes = await self.resolver.get_attributes_by_path(note, config.path)
        if config.boolean and not attributes:
            attributes = [Attribute.label(config.path, "false")]

        denominator = None
        if config.denominator_path:
            denominator = await self.resolver.get_label_value_by_path(
                note, config.denominator_path
            )

        values = await asyncio.gather(
            *(self.render_attribute_value(attribute, denominator, config)
              for attribute in attributes)
        )

        separable = not (values and values[0] and not isinstance(values[0][0], Text))
        separator = config.get_separator()
        pieces: List[Piece] = []
        for index, value in enumerate(values):
            if index and separable and separator:
                pieces.append(Text(separator))
            pieces.extend(value)
        return pieces

    async def render_attribute_value(self, attribute: Attribute, denominator: Optional[str],
                                     config: AttributeConfig) -> List[Piece]:
        """Render one value; a denominator turns numeric values into a progress bar."""
        related_note = None
        if attribute.is_relation:
            related_note = await self.resolver.get_note(attribute.value)

        value = related_note.title if related_note else attribute.value

        if denominator:
            progress_bar = self.render_progress_bar(value, denominator, config)
            if progress_bar is not None:
                return [progress_bar]

        return self.render_value(value, config, related_note)

    def render_value(self, value: str, config: AttributeConfig,
                     related_note: Optional[Note] = None) -> List[Text]:
        """Render a plain value as text, a checkbox or a badge."""
        if config.boolean:
            return self.render_boolean(value, config)

        if config.repeat.strip():
            value = self.format_repeat(value, config)
        elif config.number:
            value = self.format_number(value, config)

        value = config.affix(value)

        if config.badge:
            return [self.render_badge(value, config, related_note)]

        return [Text(value)]

    def render_boolean(self, value: str, config: AttributeConfig) -> List[Text]:
        checkbox = Text(CHECKED if is_truthy(value) else UNCHECKED)
        return [node if isinstance(node, Text) else Text(node)
                for node in config.affix_nodes(checkbox)]

    def render_badge(self, value: str, config: AttributeConfig,
                     related_note: Optional[Note] = None) -> Text:
        """
        Render a value as a badge.

        Colours come from the related note's badgeBackground and badgeColor
        labels, then the directive, then the default badge style.
        """
        background = config.badge_background
        color = config.badge_color
        if related_note:
            background = related_note.get_label_value("badgeBackground") or background
            color = related_note.get_label_value("badgeColor") or color

        style = DEFAULT_BADGE_STYLE
        custom = Style(
            color=parse_color(color) if color else None,
            bgcolor=parse_color(background) if background else None,
        )
        return Text(f" {value} ", style=style + custom)

    def render_progress_bar(self, numerator: str, denominator: str,
                            config: AttributeConfig) -> Optional[RenderableType]:
        """Render a fraction and bar, or None if either value is not a number."""
        numerator_float = parse_float_strict(numerator)
        denominator_float = parse_float_strict(denominator)
        if math.isnan(numerator_float) or math.isnan(denominator_float):
            return None

        percent = 0.0
        if denominator_float != 0:
            percent = 100 * numerator_float / denominator_float

        fraction = Text.assemble(*(
            node if isinstance(node, Text) else Text(node)
            for node in config.affix_nodes(
                Text(format_number(numerator_float), style="bold"),
                Text(" / "),
                Text(format_number(denominator_float), style="bold"),
            )
        ))

        bar = Table.grid(padding=(0, 1))
        bar.add_column(ratio=1)
        bar.add_column(justify="right")
        bar.add_row(
            ProgressBar(total=100, completed=clamp(percent, 0, 100), width=None,
                        complete_style="cyan", finished_style="green"),
            Text(f"{math.floor(percent + 0.5)}%" if percent >= 1 else ""),
        )
        return RenderGroup(fraction, bar)

    def format_repeat(self, value: str, config: AttributeConfig) -> str:
        """Repeat the configured text `value` times; non-counts pass through."""
        count = parse_optional_int(value, -1, 1000)
        if count is None or count < 0:
            return value
        return config.repeat * count

    def format_number(self, value: str, config: AttributeConfig) -> str:
        number = parse_float_strict(value)
        if math.isnan(number):
            return value
        return format_number(number, config.precision)

    async def render_cell(self, note: Note, config: AttributeConfig) -> RenderableType:
        """Render all values at a path as one renderable."""
        return combine(await self.render_attribute_values(note, config))


class CardRenderer:
    """Renders a note as a card: optional cover, bold title, one line per attribute."""

    def __init__(self, config: ViewConfig, attribute_renderer: AttributeRenderer):
        self.config = config
        self.attribute_renderer = attribute_renderer

    @property
    def resolver(self) -> PathResolver:
        return self.attribute_renderer.resolver

    async def render_cover(self, note: Note, show_empty: bool) -> Optional[Text]:
        if self.config.cover_height == 0:
            return None
        url = await self.resolver.get_cover_url(note)
        if not url and not show_empty:
            return None
        if not url:
            return Text(COVER, style="dim")
        return Text(f"{COVER} {url}", style="dim")

    async def render(self, note: Note, show_empty_cover: bool,
                     width: Optional[int] = None) -> Panel:
        cover, *lines = await asyncio.gather(
            self.render_cover(note, show_empty_cover),
            *(self.attribute_renderer.render_cell(note, attribute_config)
              for attribute_config in self.config.attributes),
        )

        body: List[RenderableType] = []
        if cover is not None:
            body.append(cover)
        body.append(Text(note.title, style="bold"))
        body.extend(lines)
        return Panel(RenderGroup(*body), box=box.ROUNDED, width=width)

    async def render_all(self, notes: Sequence[Note], show_empty_cover: bool,
                         width: Optional[int] = None) -> List[Panel]:
        return list(await asyncio.gather(
            *(self.render(note, show_empty_cover, width) for note in notes)
        ))


class TableView:
    """Rows are notes, columns are attributes."""

    def __init__(self, config: ViewConfig, notes: Sequence[Note],
                 attribute_renderer: AttributeRenderer):
        self.config = config
        self.notes = notes
        self.attribute_renderer = attribute_renderer

    def build_table(self) -> Table:
        table = Table(box=box.ROUNDED, show_header=True, header_style="bold magenta")
        table.add_column("Title", style="bold")
        for attribute_config in self.config.attributes:
            justify = JUSTIFY.get(attribute_config.align.lower(), "left")
            table.add_column(
                attribute_config.header_text,
                justify=justify,
                min_width=attribute_config.width or None,
                no_wrap=not attribute_config.wrap,
                overflow="fold" if attribute_config.wrap else "ellipsis",
            )
        return table

    async def render_row(self, note: Note) -> List[RenderableType]:
        cells = await asyncio.gather(
            *(self.attribute_renderer.render_cell(note, attribute_config)
              for attribute_config in self.config.attributes)
        )
        row: List[RenderableType] = [Text(note.title)]
        for attribute_config, cell in zip(self.config.attributes, cells):
            if attribute_config.truncate:
                cell = LineClamp(cell, attribute_config.truncate)
            row.append(cell)
        return row

    async def render(self) -> RenderableType:
        table = self.build_table()
        for row in await asyncio.gather(*(self.render_row(note) for note in self.notes)):
            table.add_row(*row)
        return table


class BoardView:
    """One column per group, each a list of cards."""

    def __init__(self, config: ViewConfig, groups: Sequence[Group],
                 attribute_renderer: AttributeRenderer):
        self.config = config
        self.groups = groups
        self.attribute_renderer = attribute_renderer
        self.card_renderer = CardRenderer(config, attribute_renderer)

    def render_column_name(self, group: Group) -> Text:
        if not self.config.group_by:
            raise ValueError("Board view requires a groupBy configuration")
        if not group.name:
            return Text("None", style="dim")
        return Text.assemble(*self.attribute_renderer.render_value(
            group.name, self.config.group_by, group.related_note
        ))

    def render_column_count(self, group: Group) -> Text:
        return Text(f" {format_number(len(group.notes))} ", style=DEFAULT_BADGE_STYLE)

    async def render_column(self, group: Group) -> Panel:
        width = self.config.column_width or DEFAULT_COLUMN_WIDTH
        cards = await self.card_renderer.render_all(group.notes, False)
        title = Text.assemble(self.render_column_name(group), " ",
                              self.render_column_count(group))
        return Panel(RenderGroup(*cards), title=title, title_align="left",
                     box=box.HEAVY_HEAD, width=width)

    async def render(self) -> RenderableType:
        columns = await asyncio.gather(*(self.render_column(group) for group in self.groups))
        return Columns(columns, padding=(0, 1))


class GalleryView:
    """Cards in a grid."""

    def __init__(self, config: ViewConfig, notes: Sequence[Note],
                 attribute_renderer: AttributeRenderer):
        self.config = config
        self.notes = notes
        self.attribute_renderer = attribute_renderer
        self.card_renderer = CardRenderer(config, attribute_renderer)

    async def render(self) -> RenderableType:
        cards = await self.card_renderer.render_all(self.notes, True)
        columns = self.config.columns
        if not columns:
            return Columns(cards, equal=True, expand=True)

        grid = Table.grid(expand=True, padding=(0, 1))
        for _ in range(columns):
            grid.add_column(ratio=1)
        for start in range(0, len(cards), columns):
            row: List[RenderableType] = list(cards[start:start + columns])
            row.extend([""] * (columns - len(row)))
            grid.add_row(*row)
        return grid


async def render_view(config: ViewConfig, notes: Sequence[Note],
                      groups: Sequence[Group], resolver: PathResolver) -> RenderableType:
    """Render a collection with the layout its configuration asks for."""
    attribute_renderer = AttributeRenderer(resolver)
    if config.view == ViewType.BOARD:
        view = BoardView(config, groups, attribute_renderer)
    elif config.view == ViewType.GALLERY:
        view = GalleryView(config, notes, attribute_renderer)
    else:
        view = TableView(config, notes, attribute_renderer)
    logger.debug(f"Rendering {config.view.value} view of {len(notes)} notes")
    return await view.render()


def render_errors(errors: Sequence[str]) -> Text:
    """Render configuration problems shown instead of a view."""
    return Text("\n".join(errors), style="red")
