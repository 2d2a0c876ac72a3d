"""Prototype normalizer.

Finds where a declaration really ends inside a run of code, cleans it up and
splits it into ``(pre, open, params, close, post)`` for display.  Language
quirks are applied by switching on the descriptor's strategy enums:

- SEMICOLONS_IN_PARENS: ``;`` between ``(`` and ``)`` separates parameters
- SIGIL_PRECEDED_KEYWORD: ``@is`` is a parameter, not the ``is`` ender
- BRACE_NESTING: a braced parameter block is skipped before the real ender
- directives: ``; virtual; abstract;`` suffixes are folded into the prototype
"""

from __future__ import annotations

import re
from collections.abc import Collection, Sequence
from dataclasses import dataclass

from docplane.core.languages import (
    FalsePositiveStrategy,
    LanguageDescriptor,
    PrototypeFormat,
    PrototypeNormalizer,
)
from docplane.parse.topics import TopicType

_KEYWORD_ENDER = re.compile(r"^[a-z]+$", re.IGNORECASE)
_WORD_CHAR = re.compile(r"[a-z0-9_]", re.IGNORECASE)
_BLANK = re.compile(r"^[ \t]*$")
_WHITESPACE_RUN = re.compile(r"[\t\n ]+")
_PARAM = re.compile(r"([^,;]+[,;]?) ?")
_MARKER_PARAM_TEMPLATE = r"({m}[^{m},]+,?) ?"
_DIRECTIVE_TOKEN = re.compile(r"(;|[a-z]+|.)[ \t\n]*", re.IGNORECASE | re.DOTALL)
_BRACED = re.compile(r"^([^{}]+)\{(.*)\}([^{}]*)$", re.DOTALL)
_BRACE_SEGMENT = re.compile(r"\{|\}| |[^{} ]+")


@dataclass(frozen=True, slots=True)
class FormattedPrototype:
    """A prototype split for display.  ``params`` is None or non-empty."""

    pre: str
    open: str | None = None
    params: tuple[str, ...] | None = None
    close: str | None = None
    post: str | None = None

    @property
    def has_params(self) -> bool:
        return bool(self.params)


# =============================================================================
# Finding the end
# =============================================================================


def _is_word_char(char: str) -> bool:
    return bool(char) and _WORD_CHAR.match(char) is not None


def find_end(
    text: str,
    enders: Sequence[str],
    *,
    line_extender: str | None = None,
    false_positives: Collection[int] = (),
) -> int:
    """Earliest index of any ender in ``text``, or -1.

    Keyword enders need non-word characters on both sides.  With a line
    extender defined, a line break is skipped when only whitespace lies
    between it and the last extender before it.  Indexes in
    ``false_positives`` are never accepted.
    """
    ender_index = -1
    for ender in enders:
        test_index = -1
        start = 0
        if ender == "\n" and line_extender:
            while True:
                test_index = text.find(ender, start)
                if test_index == -1:
                    break
                extender_index = text.rfind(line_extender, 0, test_index)
                gap = text[extender_index + len(line_extender) : test_index]
                if extender_index == -1 or (
                    not _BLANK.match(gap) and test_index not in false_positives
                ):
                    break
                start = test_index + 1
        elif _KEYWORD_ENDER.match(ender):
            while True:
                test_index = text.find(ender, start)
                if test_index == -1:
                    break
                before = text[test_index - 1] if test_index > 0 else ""
                after = text[test_index + len(ender) : test_index + len(ender) + 1]
                if (
                    not _is_word_char(before)
                    and not _is_word_char(after)
                    and test_index not in false_positives
                ):
                    break
                start = test_index + 1
        else:
            while True:
                test_index = text.find(ender, start)
                if test_index == -1 or test_index not in false_positives:
                    break
                start = test_index + 1

        if test_index != -1 and (ender_index == -1 or test_index < ender_index):
            ender_index = test_index
    return ender_index


def semicolons_in_parens(text: str) -> set[int]:
    """Indexes of every semicolon between a ``(`` and the next ``)``."""
    false_positives: set[int] = set()
    start = 0
    while (open_index := text.find("(", start)) != -1:
        close_index = text.find(")", open_index)
        semicolon = text.find(";", open_index)
        while semicolon != -1 and (close_index == -1 or semicolon < close_index):
            false_positives.add(semicolon)
            semicolon = text.find(";", semicolon + 1)
        if close_index == -1:
            break
        start = close_index + 1
    return false_positives


def braces_before_parameter_block_end(text: str) -> set[int]:
    """Indexes of every ``{`` up to the end of the first top-level brace group.

    A braced parameter list's opening brace (and any nested ones) are not the
    ``{`` that ends the declaration; the next top-level one is.
    """
    false_positives: set[int] = set()
    level = 0
    for index, char in enumerate(text):
        if char == "{":
            level += 1
            false_positives.add(index)
        elif char == "}" and level > 0:
            level -= 1
            if level == 0:
                break
    return false_positives


def sigil_preceded_keywords(
    text: str, enders: Sequence[str], marker: str, *, is_function: bool
) -> set[int]:
    """Ender occurrences that belong to marker-prefixed parameters.

    A keyword ender directly after the marker is a parameter name, and for
    functions a comma is a parameter separator while the text so far holds
    the marker but no opening parenthesis.
    """
    false_positives: set[int] = set()
    for ender in enders:
        start = 0
        while (index := text.find(ender, start)) != -1:
            if _KEYWORD_ENDER.match(ender) and index > 0 and text[index - 1] == marker:
                false_positives.add(index)
            elif (
                is_function
                and ender == ","
                and marker in text[:index]
                and "(" not in text[:index]
            ):
                false_positives.add(index)
            start = index + 1
    return false_positives


def _fold_directives(text: str, end: int, language: LanguageDescriptor) -> int:
    """Extend a function prototype's end over allowed ``; directive`` suffixes.

    Returns -1 when the suffix is still incomplete, so the caller reads on.
    """
    need_semicolon, try_keyword, accept_until_semicolon, finished = range(4)
    state = need_semicolon
    end_of_directives = 0

    for match in _DIRECTIVE_TOKEN.finditer(text, end):
        token = match.group(1)
        if state == need_semicolon:
            if token == ";":
                end_of_directives = match.start(1) - end
                state = try_keyword
            else:
                state = finished
        elif state == try_keyword:
            if token.lower() in language.directives:
                state = need_semicolon
            elif token.lower() in language.long_directives:
                state = accept_until_semicolon
            else:
                state = finished
        elif state == accept_until_semicolon and token == ";":
            end_of_directives = match.start(1) - end
            state = try_keyword
        if state == finished:
            break

    if state in (finished, try_keyword):
        return end + end_of_directives
    return -1


def end_of_prototype(language: LanguageDescriptor, topic_type: TopicType, text: str) -> int:
    """Index where the prototype in ``text`` ends, or -1 if no ender was found."""
    enders = language.enders_for(topic_type.ender_kind)
    if not enders:
        return -1
    is_function = topic_type is TopicType.FUNCTION

    false_positives: set[int] = set()
    strategy = language.false_positives
    if strategy is FalsePositiveStrategy.SEMICOLONS_IN_PARENS and is_function:
        false_positives = semicolons_in_parens(text)
    elif strategy is FalsePositiveStrategy.BRACE_NESTING and is_function:
        false_positives = braces_before_parameter_block_end(text)
    elif strategy is FalsePositiveStrategy.SIGIL_PRECEDED_KEYWORD:
        false_positives = sigil_preceded_keywords(
            text, enders, language.param_marker, is_function=is_function
        )

    end = find_end(
        text, enders, line_extender=language.line_extender, false_positives=false_positives
    )
    if end != -1 and is_function and (language.directives or language.long_directives):
        end = _fold_directives(text, end, language)
    return end


def remove_extenders(text: str, line_extender: str | None) -> str:
    """Drop a trailing line extender from each line and join the lines with spaces."""
    if not line_extender:
        return text
    lines = text.split("\n")
    for i, line in enumerate(lines):
        index = line.rfind(line_extender)
        if index != -1 and _BLANK.match(line[index + len(line_extender) :]):
            lines[i] = line[:index]
    return " ".join(lines)


# =============================================================================
# Formatting
# =============================================================================


def _collapse(text: str) -> str:
    return _WHITESPACE_RUN.sub(" ", text).strip(" ")


def _format_parens(prototype: str) -> FormattedPrototype:
    segments = [s for s in re.split(r"([()])", prototype)]
    pre = ""
    param_string: str | None = None
    post: str | None = None
    nest = 0

    for position, segment in enumerate(segments):
        if nest == 0:
            pre += segment
        elif nest == 1 and segment == ")":
            if param_string is not None and re.search(r"[,;]", param_string):
                post = "".join(segments[position:])
                break
            pre += (param_string or "") + segment
            param_string = None
        else:
            param_string = (param_string or "") + segment

        if segment == "(":
            nest += 1
        elif segment == ")" and nest > 0:
            nest -= 1

    if param_string and post is None:
        pre += param_string
        param_string = None

    if param_string is None:
        return FormattedPrototype(pre)

    open_symbol: str | None = None
    if match := re.search(r"( ?\()$", pre):
        open_symbol = match.group(1)
        pre = pre[: match.start()]

    close_symbol: str | None = None
    if post is not None and (match := re.match(r"\) ?", post)):
        close_symbol = match.group()
        post = post[match.end() :] or None

    params = tuple(_PARAM.findall(param_string))
    return FormattedPrototype(pre, open_symbol or " ", params, close_symbol or " ", post)


def _format_braces(prototype: str) -> FormattedPrototype | None:
    match = _BRACED.match(prototype)
    if match is None:
        return None
    pre, param_string, post = match.groups()
    param_string = re.sub(r"[\t ]+", " ", param_string).strip(" ")

    params: list[str] = []
    nest = 0
    for segment in _BRACE_SEGMENT.findall(param_string):
        if segment == "{":
            if nest > 0:
                params[-1] += "{"
            else:
                params.append("{")
            nest += 1
        elif segment == "}":
            if nest > 0:
                nest -= 1
            if params:
                params[-1] += "}"
        elif segment == " ":
            if nest > 0:
                params[-1] += " "
        elif nest > 0:
            params[-1] += segment
        else:
            params.append(segment)

    if not params:
        return None
    return FormattedPrototype(pre, " {", tuple(params), "} ", post or None)


def _format_marker_params(prototype: str, marker: str) -> FormattedPrototype:
    prototype = _collapse(prototype)
    at = prototype.index(marker)
    pre = prototype[:at].rstrip(" ")
    pattern = _MARKER_PARAM_TEMPLATE.format(m=re.escape(marker))
    params = tuple(re.findall(pattern, prototype[at:]))
    return FormattedPrototype(pre, " ", params, " ", None)


def format_prototype(
    language: LanguageDescriptor, topic_type: TopicType, prototype: str
) -> FormattedPrototype:
    """Split a prototype into pre/open/params/close/post for display."""
    if topic_type is not TopicType.FUNCTION:
        return FormattedPrototype(_collapse(prototype))

    style = language.prototype_format
    if style is PrototypeFormat.BRACES:
        if (braced := _format_braces(prototype)) is not None:
            return braced
    elif (
        style is PrototypeFormat.MARKER_PARAMS
        and "(" not in prototype
        and language.param_marker in prototype
    ):
        return _format_marker_params(prototype, language.param_marker)

    formatted = _format_parens(_collapse(prototype))

    # Pascal-style directives after the closing parenthesis
    if (
        (language.directives or language.long_directives)
        and formatted.post is not None
        and (match := re.match(r"[ \t\n]*;[ \t\n]*", formatted.post))
    ):
        formatted = FormattedPrototype(
            formatted.pre,
            formatted.open,
            formatted.params,
            (formatted.close or "") + "; ",
            formatted.post[match.end() :] or None,
        )
    return formatted


# =============================================================================
# Normalizing and sorting
# =============================================================================


def normalize_prototype(
    language: LanguageDescriptor, prototype: str, topic_type: TopicType
) -> str:
    """Apply the language's prototype rewrite, if it has one."""
    if language.normalizer is not PrototypeNormalizer.JAVASCRIPT:
        return prototype

    prototype = re.sub(r"[ \t\r\n]+", " ", prototype).strip(" ")
    if re.fullmatch(r"[\w$]+", prototype):
        if topic_type is TopicType.VARIABLE:
            return f"var {prototype}"
        if topic_type is TopicType.FUNCTION:
            return f"function {prototype}()"
        return prototype

    prototype = re.sub(
        r"(var\s*)?([\w$.]+)\s*=\s*function\s*\(", r"function \2(", prototype, count=1
    )
    prototype = re.sub(r"([\w$]+)\s*:\s*function\s*\(", r"function \1(", prototype, count=1)
    prototype = re.sub(r"function\s*([\w$]+\.)*([\w$]+)\s*\(", r"function \2(", prototype, count=1)
    return prototype


def make_sortable_symbol(language: LanguageDescriptor, name: str, topic_type: TopicType) -> str:
    """Strip variable sigils such as ``$`` or ``@@`` so names sort by their letters."""
    if topic_type.base_type is TopicType.VARIABLE and language.sortable_sigils:
        return re.sub(language.sortable_sigils, "", name, count=1)
    return name
