"""
Per-attribute display directives.

A directive is the value of an `attribute` (or `groupBy`) label, e.g.

    status,badge,badgeBackground=#cfc
    progress,progressBar=total,suffix= tasks
    notes,truncate=3,width=200
    tags,separator=newline

The first comma-separated segment is the attribute path, the rest are
`key` or `key=value` options. A backtick escapes a literal comma or
backtick inside a segment.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..utils import parse_optional_int

logger = logging.getLogger(__name__)

ESCAPE = "`"
DELIMITER = ","

SEPARATOR_ALIASES = {
    "comma": ", ",
    "space": " ",
    "newline": "\n",
}


def split_comma(text: str) -> List[str]:
    """
    Split a directive on commas, honouring backtick escapes.

    A backtick before a comma or another backtick yields that character
    literally. A backtick before anything else is kept along with the next
    character, and a trailing backtick is kept as is. A trailing empty
    segment is dropped.
    """
    segments: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == ESCAPE:
            if i + 1 < len(text):
                following = text[i + 1]
                if following not in (DELIMITER, ESCAPE):
                    current.append(char)
                current.append(following)
                i += 2
                continue
            current.append(char)
        elif char == DELIMITER:
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1

    if current:
        segments.append("".join(current))
    return segments


def _flag(name: str) -> Callable[[Dict[str, Any], str], None]:
    def setter(fields: Dict[str, Any], value: str) -> None:
        fields[name] = True
    return setter


def _trimmed(name: str) -> Callable[[Dict[str, Any], str], None]:
    def setter(fields: Dict[str, Any], value: str) -> None:
        fields[name] = value.strip()
    return setter


def _verbatim(name: str) -> Callable[[Dict[str, Any], str], None]:
    def setter(fields: Dict[str, Any], value: str) -> None:
        fields[name] = value
    return setter


def _badge_style(name: str) -> Callable[[Dict[str, Any], str], None]:
    def setter(fields: Dict[str, Any], value: str) -> None:
        fields['badge'] = True
        fields[name] = value.strip()
    return setter


def _set_precision(fields: Dict[str, Any], value: str) -> None:
    fields['number'] = True
    fields['precision'] = parse_optional_int(value, 0, 20)


def _set_truncate(fields: Dict[str, Any], value: str) -> None:
    fields['wrap'] = True
    fields['truncate'] = parse_optional_int(value if value.strip() else 1, 1, 1000)


def _set_width(fields: Dict[str, Any], value: str) -> None:
    fields['width'] = parse_optional_int(value, 0, 1000)


OPTION_SETTERS: Dict[str, Callable[[Dict[str, Any], str], None]] = {
    "badge": _flag("badge"),
    "boolean": _flag("boolean"),
    "number": _flag("number"),
    "wrap": _flag("wrap"),
    "align": _trimmed("align"),
    "header": _trimmed("header"),
    "repeat": _trimmed("repeat"),
    "prefix": _verbatim("prefix"),
    "separator": _verbatim("separator"),
    "suffix": _verbatim("suffix"),
    "badgeBackground": _badge_style("badge_background"),
    "badgeColor": _badge_style("badge_color"),
    "progressBar": _verbatim("denominator_path"),
    "precision": _set_precision,
    "truncate": _set_truncate,
    "width": _set_width,
}


@dataclass(frozen=True)
class AttributeConfig:
    """
    How to display one attribute path.

    Built once from a directive with `AttributeConfig.parse` and read-only
    afterwards.
    """
    path: str = ""
    denominator_path: str = ""

    align: str = ""
    truncate: Optional[int] = None
    width: Optional[int] = None
    wrap: bool = False

    header: str = ""

    badge: bool = False
    badge_background: str = ""
    badge_color: str = ""

    boolean: bool = False
    number: bool = False
    precision: Optional[int] = None

    prefix: str = ""
    suffix: str = ""
    repeat: str = ""
    separator: Optional[str] = None  # None when not configured

    @classmethod
    def parse(cls, directive: str) -> 'AttributeConfig':
        """Parse a directive string into an AttributeConfig."""
        segments = split_comma(directive)
        fields: Dict[str, Any] = {'path': segments[0] if segments else ""}

        for option in segments[1:]:
            key, _, value = option.partition("=")
            key = key.strip()
            setter = OPTION_SETTERS.get(key)
            if setter is None:
                logger.debug(f"Ignoring unknown attribute option '{key}' in '{directive}'")
                continue
            setter(fields, value)

        return cls(**fields)

    @property
    def header_text(self) -> str:
        """Column header: the configured header or the path."""
        return self.header or self.path

    def affix(self, text: str) -> str:
        """Return text with the configured prefix and suffix."""
        return f"{self.prefix}{text}{self.suffix}"

    def affix_nodes(self, *nodes: Any) -> List[Any]:
        """
        Return display nodes wrapped in the prefix and suffix.

        Used when the value is a structured node (a checkbox, a fraction)
        rather than text. Empty affixes are left out.
        """
        affixed: List[Any] = []
        if self.prefix:
            affixed.append(self.prefix)
        affixed.extend(nodes)
        if self.suffix:
            affixed.append(self.suffix)
        return affixed

    def get_separator(self) -> Optional[str]:
        """
        Return the text placed between multiple values.

        Badges and booleans default to a space, everything else to a comma.
        An explicitly empty separator returns None (values are concatenated).
        """
        separator = self.separator
        if separator is None:
            separator = "space" if self.badge or self.boolean else "comma"
        if not separator:
            return None
        return SEPARATOR_ALIASES.get(separator, separator)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize non-default options."""
        result: Dict[str, Any] = {'path': self.path}
        defaults = AttributeConfig()
        for key in self.__dataclass_fields__:
            if key == 'path':
                continue
            value = getattr(self, key)
            if value != getattr(defaults, key):
                result[key] = value
        return result
