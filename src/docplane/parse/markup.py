"""Lightweight body markup.

Topic bodies are stored in a small fixed tag vocabulary that the renderer
consumes:

    <p>..</p>            paragraph
    <h>..</h>            heading
    <ul><li>..</li></ul> bullet list
    <dl><de>..</de><dd>..</dd></dl>
                         definition list; <ds> replaces <de> for entries
                         that document symbols (list topics)
    <code>..</code>      code block, lines joined with "\\n"
    <link>..</link>      cross-reference to be resolved
    <url>..</url>        external URL
    <email>..</email>    email address

Text is escaped with ``&amp; &lt; &gt; &quot;``.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence

_ESCAPES = (("&", "&amp;"), ("<", "&lt;"), (">", "&gt;"), ('"', "&quot;"))

_INLINE = re.compile(
    r"<(?P<link>[^<>\s][^<>]*?)>"
    r"|(?P<url>(?:https?|ftp|file|news)://[^\s<>\"]*[^\s<>\".,;:!?)\]'])"
    r"|(?P<email>[\w.+-]+@[\w-]+(?:\.[\w-]+)+)"
)
_CODE_LINE = re.compile(r"^ *[>|:](?: |$)(.*)$")
_BULLET_LINE = re.compile(r"^ *[-*o+] +(\S.*)$")
_DEFINITION_LINE = re.compile(r"^ *(\S.*?) +- +(\S.*)$")
_HEADING_LINE = re.compile(r"^ *([^ :].*?):$")
_FIRST_SENTENCE = re.compile(r"^(.*?)($|[.!?](?:[)}' ]|&quot;|&gt;))", re.DOTALL)

_LIST_ENTRY = re.compile(r"<ds>([^<]+)</ds><dd>(.*?)</dd>", re.DOTALL)
_LINK = re.compile(r"<link>([^<]+)</link>")
_PARAGRAPH = re.compile(r"<p>(.*?)</p>", re.DOTALL)
_TAG = re.compile(r"<[^<>]+>")


def escape(text: str) -> str:
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def restore_amp_chars(text: str) -> str:
    for char, entity in reversed(_ESCAPES):
        text = text.replace(entity, char)
    return text


def format_inline(text: str) -> str:
    """Escape text and tag links, URLs and email addresses."""
    out: list[str] = []
    pos = 0
    for match in _INLINE.finditer(text):
        out.append(escape(text[pos : match.start()]))
        kind = match.lastgroup
        out.append(f"<{kind}>{escape(match.group(kind))}</{kind}>")
        pos = match.end()
    out.append(escape(text[pos:]))
    return "".join(out)


class _BodyBuilder:
    def __init__(self, symbol_entries: bool) -> None:
        self._entry_tag = "ds" if symbol_entries else "de"
        self.blocks: list[str] = []
        self.paragraph: list[str] = []
        self.code: list[str] = []
        self.bullets: list[list[str]] = []
        self.definitions: list[tuple[str, list[str]]] = []

    def flush_paragraph(self) -> None:
        if self.paragraph:
            self.blocks.append(f"<p>{format_inline(' '.join(self.paragraph))}</p>")
            self.paragraph = []

    def flush_code(self) -> None:
        # Trailing blank code lines are dropped, inner ones kept
        while self.code and not self.code[-1].strip():
            self.code.pop()
        if self.code:
            self.blocks.append(f"<code>{escape(chr(10).join(self.code))}</code>")
        self.code = []

    def flush_lists(self) -> None:
        if self.bullets:
            items = "".join(f"<li>{format_inline(' '.join(item))}</li>" for item in self.bullets)
            self.blocks.append(f"<ul>{items}</ul>")
            self.bullets = []
        if self.definitions:
            tag = self._entry_tag
            entries = "".join(
                f"<{tag}>{escape(term)}</{tag}><dd>{format_inline(' '.join(desc))}</dd>"
                for term, desc in self.definitions
            )
            self.blocks.append(f"<dl>{entries}</dl>")
            self.definitions = []

    def flush_all(self) -> None:
        self.flush_paragraph()
        self.flush_code()
        self.flush_lists()


def format_body(lines: Sequence[str], *, symbol_entries: bool = False) -> str | None:
    """Convert cleaned comment body lines to markup.

    Args:
        lines: Body lines, header already removed
        symbol_entries: Emit definition terms as <ds> symbol entries

    Returns:
        The markup, or None when the body has no content.
    """
    builder = _BodyBuilder(symbol_entries)
    after_blank = True

    for index, line in enumerate(lines):
        if code_match := _CODE_LINE.match(line):
            builder.flush_paragraph()
            builder.flush_lists()
            builder.code.append(code_match.group(1))
            after_blank = False
            continue
        if builder.code:
            if not line.strip():
                builder.code.append("")
                continue
            builder.flush_code()

        if not line.strip():
            builder.flush_paragraph()
            after_blank = True
            continue

        starts_paragraph = not builder.paragraph
        next_line = lines[index + 1] if index + 1 < len(lines) else ""

        if bullet := _BULLET_LINE.match(line):
            builder.flush_paragraph()
            if builder.definitions:
                builder.flush_lists()
            builder.bullets.append([bullet.group(1).strip()])
        elif starts_paragraph and (definition := _DEFINITION_LINE.match(line)):
            if builder.bullets:
                builder.flush_lists()
            builder.definitions.append((definition.group(1), [definition.group(2).strip()]))
        elif (
            starts_paragraph
            and after_blank
            and next_line.strip()
            and (heading := _HEADING_LINE.match(line))
        ):
            builder.flush_lists()
            builder.blocks.append(f"<h>{format_inline(heading.group(1).strip())}</h>")
        elif not after_blank and builder.bullets:
            builder.bullets[-1].append(line.strip())
        elif not after_blank and builder.definitions:
            builder.definitions[-1][1].append(line.strip())
        else:
            builder.flush_lists()
            builder.paragraph.append(line.strip())
        after_blank = False

    builder.flush_all()
    return "".join(builder.blocks) or None


def first_sentence(text: str) -> str:
    """First sentence of already-formatted paragraph text."""
    match = _FIRST_SENTENCE.match(text)
    if match is None:
        return text
    return (match.group(1) + match.group(2)).rstrip()


def summary_of(body: str | None) -> str | None:
    """The first sentence of the body's first paragraph."""
    if not body:
        return None
    paragraph = _PARAGRAPH.search(body)
    if paragraph is None:
        return None
    return first_sentence(paragraph.group(1))


def list_entries(body: str | None) -> Iterator[tuple[str, str]]:
    """Yield (symbol text, description markup) for each <ds> entry."""
    if not body:
        return
    for match in _LIST_ENTRY.finditer(body):
        yield restore_amp_chars(match.group(1)), match.group(2)


def links_in(body: str | None) -> Iterator[str]:
    """Yield the unescaped text of every <link> in the body."""
    if not body:
        return
    for match in _LINK.finditer(body):
        yield restore_amp_chars(match.group(1))


def strip_tags(markup: str) -> str:
    return restore_amp_chars(_TAG.sub("", markup))
