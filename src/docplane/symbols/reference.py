"""References and their interpretations.

A reference is a link as written (``<Bar>``) together with the scope and
using scopes it appeared in.  Since the same text means different things in
different places, a reference is resolved through a ranked set of
interpretations: the fully qualified symbols it could mean, each with a
score.  The current interpretation is always the highest-scoring one that is
actually defined.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from docplane.config.constants import SCORE_SCOPE_STEP, SCORE_SINGULAR_PENALTY, SCORE_USING_BASE
from docplane.parse.symbols import Symbol
from docplane.parse.topics import TopicType

_POSSESSIVE = re.compile(r"^(.+?)'s?$")


@dataclass(frozen=True, slots=True)
class ReferenceString:
    """A link's identity: its text plus the context it appeared in."""

    symbol: Symbol
    scope: Symbol | None = None
    using: tuple[Symbol, ...] = ()


@dataclass(frozen=True, slots=True)
class SymbolDefinition:
    """What one file says about a symbol."""

    type: TopicType
    prototype: str | None = None
    summary: str | None = None


@dataclass(frozen=True, slots=True)
class ReferenceTarget:
    """A resolved symbol and the definition chosen to represent it."""

    symbol: Symbol
    file: str
    type: TopicType
    prototype: str | None = None
    summary: str | None = None


@dataclass(slots=True)
class Reference:
    """Tracks one ReferenceString across the files that contain it.

    ``interpretations`` keeps registration order, which decides ties.
    """

    files: set[str] = field(default_factory=set)
    interpretations: dict[Symbol, int] = field(default_factory=dict)
    current: Symbol | None = None

    @property
    def current_score(self) -> int | None:
        if self.current is None:
            return None
        return self.interpretations[self.current]

    def choose(self, is_defined: Callable[[Symbol], bool]) -> bool:
        """Recompute the current interpretation.  Returns True when it changed."""
        best: Symbol | None = None
        best_score = 0
        for symbol, score in self.interpretations.items():
            # Strictly greater, so the first registered wins a tie
            if is_defined(symbol) and (best is None or score > best_score):
                best, best_score = symbol, score
        changed = best != self.current
        self.current = best
        return changed


def singular_forms(word: str) -> list[str]:
    """Possible singular forms of a plural or possessive identifier.

    ``Properties`` gives ``Property``; ``Classes`` gives ``Class`` and
    ``Classe``; ``Foo's`` gives ``Foo``.
    """
    forms: list[str] = []
    if match := _POSSESSIVE.match(word):
        forms.append(match.group(1))
    lowered = word.lower()
    if lowered.endswith("ies") and len(word) > 3:
        forms.append(word[:-3] + ("Y" if word[-3].isupper() else "y"))
    if lowered.endswith(("ses", "xes", "zes", "ches", "shes")):
        forms.append(word[:-2])
    if lowered.endswith("s") and not lowered.endswith("ss") and len(word) > 1:
        forms.append(word[:-1])
    seen: list[str] = []
    for form in forms:
        if form and form != word and form not in seen:
            seen.append(form)
    return seen


def _candidates(
    symbol: Symbol, scope: Symbol | None, using: tuple[Symbol, ...]
) -> Iterator[tuple[Symbol, int]]:
    scope = scope or ()
    for depth in range(len(scope), 0, -1):
        yield scope[:depth] + symbol, depth * SCORE_SCOPE_STEP + SCORE_USING_BASE
    for position, used in enumerate(using):
        yield used + symbol, SCORE_USING_BASE - 1 - position
    yield symbol, 0


def interpretations_of(reference: ReferenceString) -> dict[Symbol, int]:
    """Every symbol a reference could mean, scored by specificity.

    For scope ``A.B`` and text ``X``: ``A.B.X`` scores highest, then
    ``A.X``, then each using scope ``U.X`` in order, then ``X`` alone.  A
    plural last identifier adds singular interpretations one band lower.
    """
    symbol = reference.symbol
    if not symbol:
        return {}

    scored: dict[Symbol, int] = {}

    def add(candidate: Symbol, score: int) -> None:
        if candidate not in scored or scored[candidate] < score:
            scored[candidate] = score

    for candidate, score in _candidates(symbol, reference.scope, reference.using):
        add(candidate, score)
    for singular in singular_forms(symbol[-1]):
        variant = symbol[:-1] + (singular,)
        for candidate, score in _candidates(variant, reference.scope, reference.using):
            add(candidate, score - SCORE_SINGULAR_PENALTY)
    return scored
