"""Symbol strings.

A symbol is an immutable tuple of identifiers, e.g. ``("Foo", "Bar")`` for
``Foo.Bar``, ``Foo::Bar`` or ``Foo->Bar``.  The empty tuple is the global
scope.  Display joins identifiers with the language's package separator.
"""

from __future__ import annotations

import re

Symbol = tuple[str, ...]

_SEPARATORS = re.compile(r"\s*(?:\.|::|->)\s*")
_TRAILING_PARAMS = re.compile(r"\s*\([^()]*\)\s*$")


def symbol_from_text(text: str) -> Symbol:
    """Parse free text such as ``Foo::Bar()`` into a symbol."""
    text = _TRAILING_PARAMS.sub("", text.strip())
    parts = [part.strip() for part in _SEPARATORS.split(text)]
    return tuple(part for part in parts if part)


def join(package: Symbol | None, symbol: Symbol) -> Symbol:
    if not package:
        return symbol
    return package + symbol


def last_identifier(symbol: Symbol) -> str:
    return symbol[-1] if symbol else ""


def to_text(symbol: Symbol | None, separator: str = ".") -> str:
    return separator.join(symbol) if symbol else ""
