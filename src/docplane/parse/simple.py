"""Line-oriented comment extraction.

Each line is classified as part of a line comment run, part of a block
comment run, or code.  Comment runs go to the ``CommentParser``; the code run
after a comment that produced topics is searched for the last topic's
prototype.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from docplane.core.errors import SourceError
from docplane.core.languages import LanguageDescriptor
from docplane.core.logging import get_logger
from docplane.parse.comments import CommentParser
from docplane.parse.prototype import end_of_prototype, normalize_prototype, remove_extenders
from docplane.parse.symbols import symbol_from_text
from docplane.parse.topic import Extraction, Topic

log = get_logger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_BLANK = re.compile(r"^[ \t]*$")
_TITLE_PARAMS = re.compile(r"[\t ]*\(.*$")


@dataclass(frozen=True, slots=True)
class LineRun:
    """Consecutive lines of one kind, starting at ``line_number``."""

    is_comment: bool
    lines: tuple[str, ...]
    line_number: int


def read_source(path: Path) -> str:
    """Read a source file.

    Raises:
        SourceError: If the file can't be read.
    """
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        log.error("file_unreadable", path=str(path), error=str(e))
        raise SourceError.unreadable(str(path), e.strerror or str(e)) from e


def split_lines(text: str) -> list[str]:
    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _strip_opening(line: str, symbols: Sequence[str]) -> tuple[str, str, int] | None:
    """Blank out the first symbol that starts the line after optional indentation.

    Returns the symbol, the modified line and the index just past the
    symbol, or None.
    """
    for symbol in sorted(symbols, key=len, reverse=True):
        index = line.find(symbol)
        if index == -1 or not _BLANK.match(line[:index]):
            continue
        after = line[index + len(symbol) : index + len(symbol) + 1]
        if symbol[-1].isalnum() and (after.isalnum() or after == "_"):
            continue
        end = index + len(symbol)
        return symbol, line[:index] + " " * len(symbol) + line[end:], end
    return None


def _opening(
    line: str, language: LanguageDescriptor, closers: dict[str, str]
) -> tuple[bool, tuple[str, str, int]] | None:
    """Classify a line as starting a line comment (True) or a block comment (False).

    When both kinds match, the longer symbol wins so ``--[[`` beats ``--``.
    """
    line_match = _strip_opening(line, language.line_comments)
    block_match = _strip_opening(line, list(closers))
    if block_match and (not line_match or len(block_match[0]) > len(line_match[0])):
        return False, block_match
    if line_match:
        return True, line_match
    return None


def scan_lines(lines: Sequence[str], language: LanguageDescriptor) -> Iterator[LineRun]:
    """Split a file's lines into alternating code and comment runs.

    A block comment whose closing symbol is followed by anything but
    whitespace on the same line is treated as code.
    """
    closers = dict(language.block_comments)
    code: list[str] = []
    comment: list[str] = []
    line_number = 1
    index = 0

    while index < len(lines):
        opening = _opening(lines[index], language, closers)

        if opening is None:
            code.append(lines[index])
            index += 1

        elif opening[0]:
            while opening is not None and opening[0]:
                comment.append(opening[1][1])
                index += 1
                opening = _opening(lines[index], language, closers) if index < len(lines) else None

        else:
            opener, current, search_from = opening[1]
            closer = closers[opener]
            start = index
            remainder = ""
            while True:
                close_index = current.find(closer, search_from)
                if close_index != -1:
                    comment.append(current[:close_index])
                    remainder = current[close_index + len(closer) :]
                    break
                comment.append(current)
                if index + 1 >= len(lines):
                    break
                index += 1
                current = lines[index]
                search_from = 0

            if not _BLANK.match(remainder):
                code.extend(lines[start : index + 1])
                comment = []
            index += 1

        if comment:
            if code:
                yield LineRun(False, tuple(code), line_number)
                line_number += len(code)
                code = []
            yield LineRun(True, tuple(comment), line_number)
            line_number += len(comment)
            comment = []

    if code:
        yield LineRun(False, tuple(code), line_number)


class SimpleExtractor:
    """Extracts documentation comments line by line for any language."""

    def __init__(self, language: LanguageDescriptor, comment_parser: CommentParser) -> None:
        self.language = language
        self.comment_parser = comment_parser
        self._using = re.compile(language.using_pattern) if language.using_pattern else None

    def parse_text(self, text: str) -> Extraction:
        topics: list[Topic] = []
        lines = split_lines(text)

        if self.language.file_is_comment:
            self.comment_parser.parse_comment(lines, 1, topics)
            return Extraction(topics)

        last_comment_topics = 0
        for run in scan_lines(lines, self.language):
            if run.is_comment:
                last_comment_topics = self.comment_parser.parse_comment(
                    run.lines, run.line_number, topics
                )
                continue
            self._scan_using(run.lines)
            if last_comment_topics:
                self._attach_prototype(run.lines, topics[-1])
        return Extraction(topics)

    def _scan_using(self, lines: Sequence[str]) -> None:
        if self._using is None:
            return
        for line in lines:
            if match := self._using.match(line):
                self.comment_parser.add_using(symbol_from_text(match.group(1)))

    def _attach_prototype(self, lines: Sequence[str], topic: Topic) -> None:
        """Search the code after a comment for the last topic's prototype.

        Lines are added one at a time until an ender turns up.  The result is
        attached only if it contains the topic's title, so an ender found in
        unrelated code further down is ignored.
        """
        if not self.language.enders_for(topic.type.ender_kind):
            return

        index = 0
        while index < len(lines) and _BLANK.match(lines[index]):
            index += 1

        text = ""
        for line in lines[index:]:
            text += line + "\n"
            end = end_of_prototype(self.language, topic.type, text)
            if end == -1:
                continue
            prototype = remove_extenders(text[:end], self.language.line_extender)
            prototype = normalize_prototype(self.language, prototype, topic.type).strip()
            if _TITLE_PARAMS.sub("", topic.title) in prototype:
                topic.attach_prototype(prototype)
            return

        log.debug("prototype_not_found", title=topic.title, line=topic.line_number)
