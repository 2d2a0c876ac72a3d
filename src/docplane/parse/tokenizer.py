"""Lossless tokenizer shared by the statement extractors.

Every whitespace run, every line break and every comment or string delimiter
becomes its own token.  Everything else is grouped into maximal runs of word
characters or isolated as single punctuation tokens.  Concatenating the token
texts reproduces the input exactly, so later stages can rebuild any source
substring from a token span.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache

from docplane.core.languages import LanguageDescriptor

_QUOTES = ('"', "'", "`")


class TokenKind(StrEnum):
    WHITESPACE = "whitespace"
    LINE_BREAK = "line_break"
    WORD = "word"
    DELIMITER = "delimiter"
    SYMBOL = "symbol"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    offset: int
    line: int

    @property
    def end(self) -> int:
        return self.offset + len(self.text)


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open range of token indexes into a TokenBuffer."""

    start: int
    end: int

    def __len__(self) -> int:
        return max(0, self.end - self.start)


class TokenBuffer:
    """Immutable token arena.  Downstream structures hold spans, not copies."""

    __slots__ = ("_source", "_tokens")

    def __init__(self, source: str, tokens: tuple[Token, ...]) -> None:
        self._source = source
        self._tokens = tokens

    @property
    def source(self) -> str:
        return self._source

    def __len__(self) -> int:
        return len(self._tokens)

    def __getitem__(self, index: int) -> Token:
        return self._tokens[index]

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def get(self, index: int) -> Token | None:
        """Token at ``index``, or None past either end."""
        if 0 <= index < len(self._tokens):
            return self._tokens[index]
        return None

    def text(self, span: Span) -> str:
        """Reconstruct the exact source text a span covers."""
        start = max(span.start, 0)
        end = min(span.end, len(self._tokens))
        if start >= end:
            return ""
        return self._source[self._tokens[start].offset : self._tokens[end - 1].end]

    def line_of(self, index: int) -> int:
        if not self._tokens:
            return 1
        index = min(max(index, 0), len(self._tokens) - 1)
        return self._tokens[index].line


def _delimiter_alternative(delimiters: Iterable[str]) -> str:
    parts: list[str] = []
    # Longest first so "<!---" wins over "<!--" and "//" over "/"
    for delim in sorted(set(delimiters), key=lambda d: (-len(d), d)):
        escaped = re.escape(delim)
        if delim[0].isalnum() or delim[0] == "_":
            escaped = rf"\b{escaped}"
        if delim[-1].isalnum() or delim[-1] == "_":
            escaped = rf"{escaped}\b"
        parts.append(escaped)
    return "|".join(parts)


@lru_cache(maxsize=64)
def _compile(delimiters: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = [
        r"(?P<line_break>\r\n|\r|\n)",
        r"(?P<whitespace>[ \t\f\v]+)",
    ]
    if delimiters:
        alternatives.append(f"(?P<delimiter>{_delimiter_alternative(delimiters)})")
    alternatives += [r"(?P<word>\w+)", r"(?P<symbol>.)"]
    return re.compile("|".join(alternatives), re.DOTALL)


def delimiters_for(language: LanguageDescriptor) -> tuple[str, ...]:
    symbols = list(language.line_comments)
    for opening, closing in language.block_comments:
        symbols += [opening, closing]
    symbols += _QUOTES
    return tuple(sorted(set(symbols)))


def tokenize(
    text: str,
    language: LanguageDescriptor | None = None,
    *,
    extra_delimiters: Iterable[str] = (),
) -> TokenBuffer:
    """Split text into a lossless token stream.

    Args:
        text: Raw file contents
        language: Supplies comment symbols that become delimiter tokens
        extra_delimiters: Further multi-character symbols kept whole

    Returns:
        A TokenBuffer whose token texts concatenate to ``text``.
    """
    delimiters = delimiters_for(language) if language is not None else _QUOTES
    pattern = _compile(tuple(sorted(set(delimiters) | set(extra_delimiters))))

    tokens: list[Token] = []
    line = 1
    for match in pattern.finditer(text):
        kind = TokenKind(match.lastgroup)
        tokens.append(Token(kind, match.group(), match.start(), line))
        if kind is TokenKind.LINE_BREAK:
            line += 1
    return TokenBuffer(text, tuple(tokens))
