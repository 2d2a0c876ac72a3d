"""Documentation comment cleaning and topic parsing.

A comment run arrives with its comment symbols already replaced by spaces.
``clean_comment`` removes boxes and horizontal rules; ``CommentParser`` then
splits the comment into topics at ``Keyword: Title`` header lines.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from enum import Enum

from docplane.core.logging import get_logger
from docplane.parse.markup import format_body, summary_of
from docplane.parse.symbols import Symbol
from docplane.parse.topic import Topic
from docplane.parse.topics import Scope, TopicType, topic_type_for_keyword

log = get_logger(__name__)

_HEADER = re.compile(r"^ *([a-z0-9][a-z0-9 ]*?) *: +(\S.*?) *$", re.IGNORECASE)
_HORIZONTAL_RULE = re.compile(r"^([^a-zA-Z0-9 ])\1{3,}$")
_HORIZONTAL_RULE_EDGED = re.compile(r"^([^a-zA-Z0-9 ])\1*([^a-zA-Z0-9 ])\2{3,}([^a-zA-Z0-9 ])\3*$")
_LEFT_SIDE = re.compile(r"^([^a-zA-Z0-9])\1*(?: |$)")
_RIGHT_SIDE = re.compile(r" ([^a-zA-Z0-9])\1*$")
_STRIP_LEFT = re.compile(r"^ *([^a-zA-Z0-9 ])\1*")
_STRIP_RIGHT = re.compile(r" *([^a-zA-Z0-9 ])\1*$")
_STRIP_RULE = re.compile(r"^ *([^a-zA-Z0-9 ])\1{3,}$")
_STRIP_RULE_EDGED = re.compile(r"^ *([^a-zA-Z0-9 ])\1*([^a-zA-Z0-9 ])\2{3,}([^a-zA-Z0-9 ])\3*$")


class _Side(Enum):
    DONT_KNOW = 0
    UNIFORM = 1
    UNIFORM_IF_AT_END = 2
    NOT_UNIFORM = 3


def expand_tabs(line: str, tab_length: int) -> str:
    index = line.find("\t")
    while index != -1:
        line = line[:index] + " " * (tab_length - index % tab_length) + line[index + 1 :]
        index = line.find("\t", index)
    return line


def _track_side(
    state: _Side, char: str | None, match: re.Match[str] | None
) -> tuple[_Side, str | None]:
    if state is _Side.NOT_UNIFORM:
        return state, char
    if match is None:
        return _Side.NOT_UNIFORM, char
    if state is _Side.DONT_KNOW:
        return _Side.UNIFORM, match.group(1)
    if char != match.group(1):
        return _Side.NOT_UNIFORM, char
    return state, char


def clean_comment(lines: Sequence[str], tab_length: int = 4) -> list[str]:
    """Remove comment boxes, horizontal rules and trailing whitespace.

    Tabs are expanded and leading indentation is kept, since example code
    needs it.  Blank lines are kept so line numbers stay correct.  A left
    or right box edge is removed only when every non-blank line carries the
    same edge symbol.
    """
    cleaned: list[str] = []
    left, right = _Side.DONT_KNOW, _Side.DONT_KNOW
    left_char: str | None = None
    right_char: str | None = None

    for raw in lines:
        line = expand_tabs(raw.rstrip(" \t"), tab_length)
        stripped = line.lstrip(" ")

        if not stripped:
            if left is _Side.UNIFORM:
                left = _Side.UNIFORM_IF_AT_END
            if right is _Side.UNIFORM:
                right = _Side.UNIFORM_IF_AT_END
        elif _HORIZONTAL_RULE.match(stripped) or _HORIZONTAL_RULE_EDGED.match(stripped):
            line = ""
        else:
            # Blank lines inside a box are only tolerated at its end
            if left is _Side.UNIFORM_IF_AT_END:
                left = _Side.NOT_UNIFORM
            if right is _Side.UNIFORM_IF_AT_END:
                right = _Side.NOT_UNIFORM
            left, left_char = _track_side(left, left_char, _LEFT_SIDE.match(stripped))
            right, right_char = _track_side(right, right_char, _RIGHT_SIDE.search(stripped))
        cleaned.append(line)

    strip_left = left in (_Side.UNIFORM, _Side.UNIFORM_IF_AT_END)
    strip_right = right in (_Side.UNIFORM, _Side.UNIFORM_IF_AT_END)
    if not (strip_left or strip_right):
        return cleaned

    result: list[str] = []
    for line in cleaned:
        if strip_left:
            line = _STRIP_LEFT.sub("", line, count=1)
        if strip_right:
            line = _STRIP_RIGHT.sub("", line, count=1)
        line = _STRIP_RULE.sub("", line)
        line = _STRIP_RULE_EDGED.sub("", line)
        result.append(line)
    return result


def _dedent(lines: list[str]) -> list[str]:
    indents = [len(line) - len(line.lstrip(" ")) for line in lines if line.strip()]
    if not indents:
        return lines
    cut = min(indents)
    return [line[cut:] for line in lines]


class CommentParser:
    """Turns cleaned comments into topics while tracking the current package.

    A Class topic opens its own scope, a Section topic returns to global
    scope, File topics are always global, and every other topic inherits the
    package in effect when it appears.
    """

    def __init__(self, tab_length: int = 4) -> None:
        self.tab_length = tab_length
        self.package: Symbol | None = None
        self.using: tuple[Symbol, ...] = ()

    def add_using(self, scope: Symbol) -> None:
        if scope and scope not in self.using:
            self.using = (*self.using, scope)

    def parse_comment(self, lines: Sequence[str], line_number: int, topics: list[Topic]) -> int:
        """Parse one comment run, appending its topics.

        Args:
            lines: Comment lines with comment symbols replaced by spaces
            line_number: Line number of the first comment line
            topics: The file's topic list, extended in place

        Returns:
            The number of topics the comment produced.
        """
        cleaned = clean_comment(lines, self.tab_length)
        headers: list[tuple[int, TopicType, str]] = []
        previous_blank = True
        for index, line in enumerate(cleaned):
            if previous_blank and (match := _HEADER.match(line)):
                if (topic_type := topic_type_for_keyword(match.group(1))) is not None:
                    headers.append((index, topic_type, match.group(2)))
            previous_blank = not line.strip()

        for position, (index, topic_type, title) in enumerate(headers):
            end = headers[position + 1][0] if position + 1 < len(headers) else len(cleaned)
            topics.append(
                self._make_topic(topic_type, title, cleaned[index + 1 : end], line_number + index)
            )

        if headers:
            log.debug("comment_parsed", line=line_number, topics=len(headers))
        return len(headers)

    def _make_topic(
        self, topic_type: TopicType, title: str, body_lines: list[str], line: int
    ) -> Topic:
        scope_rule = topic_type.info.scope

        if scope_rule in (Scope.START, Scope.END):
            scope = None
        else:
            scope = self.package

        body = format_body(_dedent(body_lines), symbol_entries=topic_type.is_list)
        topic = Topic(
            type=topic_type,
            title=title,
            scope=scope,
            using=self.using,
            summary=summary_of(body),
            body=body,
            line_number=line,
        )

        if scope_rule is Scope.START:
            self.package = topic.package
        elif scope_rule is Scope.END:
            self.package = None
        return topic
