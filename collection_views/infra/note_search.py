"""
Search engine for local note graphs.

Evaluates the subset of the host search language that collection queries
use, so file-backed and in-memory graphs can answer `search_for_notes`.

Supported conditions:
    #name               note has a label called `name`
    ~name               note has a relation called `name`
    #name = value       label value equals (case-insensitive)
    ~name = noteId      relation targets the note id
    note.title *=* x    built-in fields: note.title, note.noteId, note.type,
                        note.mime, note.content

Operators:
    =    : Equal (case-insensitive)
    !=   : Not equal
    *=*  : Contains
    =*   : Starts with
    *=   : Ends with
    ~=   : Fuzzy match (rapidfuzz ratio, uses threshold)
    %=   : Regular expression match
    >  <  >=  <=  : Numeric when both sides are numbers, text otherwise

Boolean operators:
    AND / OR / NOT (any case), parentheses for grouping. Conditions
    separated only by whitespace are joined with AND.

Anything else is a bare word matched against title and content.

Examples:
    #book
    #book #status=reading
    ~author = "abc123" AND NOT #archived
    #task AND ((note.title *=* 'milk') OR (#notes *=* milk))
"""

import logging
import math
import operator
import re
from typing import Any, List, Optional, Tuple, Union

from rapidfuzz import fuzz

from ..domain.note import LABEL, RELATION, Note
from ..utils import parse_float_strict

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 80

_OPERATORS = ['*=*', '=*', '*=', '~=', '%=', '!=', '>=', '<=', '=', '>', '<']

_CONDITION = re.compile(
    r'(?P<field>[#~]?[\w:.$]+)\s*'
    r'(?P<op>' + '|'.join(re.escape(op) for op in _OPERATORS) + r')\s*'
    r'(?P<value>"(?:\\.|[^"\\])*"|\'[^\']*\'|[^\s()]+)'
)
_EXISTENCE = re.compile(r'(?P<field>[#~][\w:.]+)')
_WORD = re.compile(r'"(?:\\.|[^"\\])*"|\'[^\']*\'|[^\s()]+')
_NOT = re.compile(r'not\b\s*', re.IGNORECASE)
_UNESCAPE = re.compile(r'\\(.)')

_NOTE_FIELDS = ('note.title', 'note.noteid', 'note.type', 'note.mime', 'note.content')

Node = Union[Tuple[str, Any], Tuple[str, str, str]]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _UNESCAPE.sub(r'\1', value[1:-1])
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1]
    return value


class NoteQuery:
    """
    Parsed search string that can be evaluated against notes.

    Invalid syntax (unbalanced parentheses or quotes, dangling boolean
    operators, empty queries) raises ValueError from the constructor.

    Example:
        query = NoteQuery("#book AND #status = reading")
        matching = [note for note in notes if query.matches(note)]
    """

    def __init__(self, query_str: str, threshold: int = DEFAULT_THRESHOLD):
        logger.debug(f"Initializing NoteQuery with: {query_str}")
        if not query_str or not query_str.strip():
            raise ValueError("Query string cannot be empty")
        self.query_str = query_str
        self.threshold = threshold
        self.parts = self._parse(query_str)
        logger.debug(f"Parsed query: {self.parts}")

    def _parse(self, query_str: str) -> Node:
        query_str = query_str.strip()
        if not query_str:
            raise ValueError(f"Invalid query syntax: empty expression in '{self.query_str}'")

        conditions = self._split_top_level(query_str, 'or')
        if len(conditions) > 1:
            return ('or', [self._parse(c) for c in conditions])

        conditions = self._split_top_level(query_str, 'and')
        if len(conditions) > 1:
            return ('and', [self._parse(c) for c in conditions])

        match = _NOT.match(query_str)
        if match:
            return ('not', self._parse(query_str[match.end():]))

        if self._is_wrapped(query_str):
            return self._parse(query_str[1:-1])

        return self._parse_conditions(query_str)

    def _split_top_level(self, text: str, keyword: str) -> List[str]:
        """Split on a boolean keyword outside quotes and parentheses."""
        delimiter = re.compile(rf'\s+{keyword}\s+', re.IGNORECASE)
        parts: List[str] = []
        depth = 0
        quote_char: Optional[str] = None
        start = 0
        i = 0

        while i < len(text):
            char = text[i]
            if quote_char:
                if char == '\\':
                    i += 2
                    continue
                if char == quote_char:
                    quote_char = None
            elif char in ('"', "'"):
                quote_char = char
            elif char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
                if depth < 0:
                    raise ValueError(f"Invalid query syntax: unbalanced ')' in '{self.query_str}'")
            elif depth == 0:
                match = delimiter.match(text, i)
                if match:
                    parts.append(text[start:i])
                    start = i = match.end()
                    continue
            i += 1

        if quote_char:
            raise ValueError(f"Invalid query syntax: unterminated quote in '{self.query_str}'")
        if depth:
            raise ValueError(f"Invalid query syntax: unbalanced '(' in '{self.query_str}'")

        parts.append(text[start:])
        return parts

    def _is_wrapped(self, text: str) -> bool:
        """True when the whole text is one parenthesized expression."""
        if not (text.startswith('(') and text.endswith(')')):
            return False
        depth = 0
        for index, char in enumerate(text):
            if char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
                if depth == 0:
                    return index == len(text) - 1
        return False

    def _parse_conditions(self, text: str) -> Node:
        """Parse whitespace-separated conditions, joined with AND."""
        conditions: List[Node] = []
        position = 0

        while position < len(text):
            if text[position].isspace():
                position += 1
                continue

            match = _CONDITION.match(text, position)
            if match:
                field = match.group('field')
                value = _unquote(match.group('value'))
                conditions.append((field, match.group('op'), value))
                position = match.end()
                continue

            match = _EXISTENCE.match(text, position)
            if match and (match.end() == len(text) or text[match.end()].isspace()):
                conditions.append(('_exists', match.group('field')))
                position = match.end()
                continue

            match = _WORD.match(text, position)
            if not match:
                raise ValueError(f"Invalid query syntax near '{text[position:]}'")
            if match.group().lower() in ('and', 'or'):
                raise ValueError(
                    f"Invalid query syntax: dangling '{match.group()}' in '{self.query_str}'"
                )
            conditions.append(('_text', _unquote(match.group())))
            position = match.end()

        if len(conditions) == 1:
            return conditions[0]
        return ('and', conditions)

    def matches(self, note: Note, content: str = "") -> bool:
        """Evaluate the query against a note and its content."""
        return self._eval(self.parts, note, content)

    def _eval(self, node, note: Note, content: str) -> bool:
        kind = node[0]
        if kind == 'and':
            return all(self._eval(part, note, content) for part in node[1])
        if kind == 'or':
            return any(self._eval(part, note, content) for part in node[1])
        if kind == 'not':
            return not self._eval(node[1], note, content)
        if kind == '_exists':
            field = node[1]
            return bool(note.get_attributes(self._field_type(field), field[1:]))
        if kind == '_text':
            term = node[1].lower()
            return term in note.title.lower() or term in content.lower()

        field, op, expected = node
        return any(self._compare(actual, op, expected)
                   for actual in self._get_values(note, content, field))

    @staticmethod
    def _field_type(field: str) -> str:
        return LABEL if field.startswith('#') else RELATION

    def _get_values(self, note: Note, content: str, field: str) -> List[str]:
        if field[0] in '#~':
            return [attribute.value
                    for attribute in note.get_attributes(self._field_type(field), field[1:])]

        name = field.lower()
        if name not in _NOTE_FIELDS:
            logger.debug(f"Unknown search field '{field}'")
            return []
        if name == 'note.title':
            return [note.title]
        if name == 'note.noteid':
            return [note.note_id]
        if name == 'note.type':
            return [note.type]
        if name == 'note.mime':
            return [note.mime]
        return [content]

    def _compare(self, actual: str, op: str, expected: str) -> bool:
        actual_lower = actual.lower()
        expected_lower = expected.lower()

        if op == '=':
            return actual_lower == expected_lower
        elif op == '!=':
            return actual_lower != expected_lower
        elif op == '*=*':
            return expected_lower in actual_lower
        elif op == '=*':
            return actual_lower.startswith(expected_lower)
        elif op == '*=':
            return actual_lower.endswith(expected_lower)
        elif op == '~=':
            return fuzz.ratio(actual_lower, expected_lower) >= self.threshold
        elif op == '%=':
            try:
                return bool(re.search(expected, actual, re.IGNORECASE))
            except re.error as e:
                logger.warning(f"Invalid regex pattern '{expected}': {e}")
                return False

        ops = {
            '>': operator.gt,
            '<': operator.lt,
            '>=': operator.ge,
            '<=': operator.le,
        }
        actual_number = parse_float_strict(actual)
        expected_number = parse_float_strict(expected)
        if not math.isnan(actual_number) and not math.isnan(expected_number):
            return ops[op](actual_number, expected_number)
        return ops[op](actual_lower, expected_lower)
