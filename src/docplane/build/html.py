"""Minimal HTML output.

One page per source file at ``<output>/<relative path>.html`` plus an
``index.html`` listing the alphabetic index.  Body markup is translated
tag for tag.  ``<link>`` tags are resolved through the symbol table in the
context of the topic they appear in; a link that resolves to nothing is
written back as the literal text ``<Target>``.  Class topics list their
parents and children.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path, PurePosixPath

from docplane.core.errors import OutputError
from docplane.core.logging import get_logger
from docplane.parse.markup import escape, restore_amp_chars, strip_tags
from docplane.parse.parser import ParsedFile
from docplane.parse.prototype import FormattedPrototype, format_prototype
from docplane.parse.symbols import Symbol, symbol_from_text, to_text
from docplane.parse.topic import Topic
from docplane.parse.topics import TopicType
from docplane.symbols.index import DIGITS_BUCKET, SYMBOLS_BUCKET, IndexElement
from docplane.symbols.reference import ReferenceTarget
from docplane.symbols.table import SymbolTable

log = get_logger(__name__)

INDEX_PAGE = "index.html"

_MARKUP_TAG = re.compile(r"<(/?)(p|h|ul|li|dl|de|ds|dd|code)>")
_INLINE_TAG = re.compile(r"<(link|url|email)>(.*?)</\1>", re.DOTALL)
_ANCHOR_UNSAFE = re.compile(r"[^A-Za-z0-9_.:-]")

_HTML_TAGS = {
    "p": "p",
    "h": "h4",
    "ul": "ul",
    "li": "li",
    "dl": "dl",
    "de": "dt",
    "ds": "dt",
    "dd": "dd",
    "code": "pre",
}

_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body>
{content}
</body>
</html>
"""


def page_path(relative: str) -> str:
    """Output path of a source file's page, relative to the output directory."""
    return f"{relative}.html"


def anchor_of(symbol: Symbol) -> str:
    return _ANCHOR_UNSAFE.sub("_", to_text(symbol)) or "_"


def bucket_heading(bucket: int) -> str:
    if bucket == SYMBOLS_BUCKET:
        return "$#!"
    if bucket == DIGITS_BUCKET:
        return "0-9"
    return chr(ord("A") + bucket - 2)


class HtmlBuilder:
    """Writes pages for parsed files into ``output_dir``."""

    def __init__(self, output_dir: Path, table: SymbolTable) -> None:
        self.output_dir = output_dir
        self.table = table

    # =========================================================================
    # Pages
    # =========================================================================

    def build_file(self, parsed: ParsedFile) -> Path:
        """Write the page for one file.

        Raises:
            OutputError: If the page can't be written.
        """
        relative = page_path(parsed.file)
        parts = [f"<h1>{escape(parsed.default_menu_title)}</h1>"]
        for topic in parsed.topics:
            parts.append(self._topic_html(topic, parsed, relative))
        target = self.output_dir / relative
        title = escape(parsed.default_menu_title)
        self._write(target, _PAGE.format(title=title, content="\n".join(parts)))
        return target

    def remove_file(self, relative: str) -> None:
        """Delete the page of a source file that no longer exists."""
        target = self.output_dir / page_path(relative)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise OutputError.cannot_create(str(target), e.strerror or str(e)) from e

    def build_index(
        self, buckets: list[list[IndexElement]], titles: Mapping[str, str] | None = None
    ) -> Path:
        """Write ``index.html`` from the index buckets."""
        titles = titles or {}
        parts = ["<h1>Index</h1>"]
        for number, bucket in enumerate(buckets):
            if not bucket:
                continue
            parts.append(f"<h2>{escape(bucket_heading(number))}</h2>")
            parts.append("<ul>")
            for element in bucket:
                parts.append(self._index_entry(element, titles))
            parts.append("</ul>")
        target = self.output_dir / INDEX_PAGE
        self._write(target, _PAGE.format(title="Index", content="\n".join(parts)))
        return target

    def _write(self, target: Path, html: str) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(html, encoding="utf-8")
        except OSError as e:
            log.error("page_write_failed", path=str(target), error=str(e))
            raise OutputError.cannot_create(str(target), e.strerror or str(e)) from e

    # =========================================================================
    # Topics
    # =========================================================================

    def _topic_html(self, topic: Topic, parsed: ParsedFile, page: str) -> str:
        css = topic.type.key
        parts = [
            f'<div class="topic {css}">',
            f'<a name="{anchor_of(topic.symbol)}"></a>',
            f"<h3>{escape(topic.title)}</h3>",
        ]
        if topic.prototype:
            formatted = format_prototype(parsed.language, topic.type, topic.prototype)
            parts.append(self._prototype_html(formatted))
        if topic.type is TopicType.CLASS:
            parts.extend(self._hierarchy_html(topic.symbol, page))
        if topic.body:
            parts.append(self.body_html(topic.body, topic, page))
        parts.append("</div>")
        return "\n".join(parts)

    @staticmethod
    def _prototype_html(formatted: FormattedPrototype) -> str:
        params = formatted.params
        if not params:
            return f'<pre class="prototype">{escape(formatted.pre)}</pre>'
        last = len(params) - 1
        rows = []
        for i, param in enumerate(params):
            before = escape(formatted.pre + (formatted.open or "")) if i == 0 else ""
            after = escape((formatted.close or "") + (formatted.post or "")) if i == last else ""
            rows.append(f"<tr><td>{before}</td><td>{escape(param)}</td><td>{after}</td></tr>")
        return '<table class="prototype">' + "".join(rows) + "</table>"

    def _hierarchy_html(self, class_symbol: Symbol, page: str) -> list[str]:
        """Parent and child lines for a class, each class linked where it's defined."""
        lines = []
        for css, label, related in (
            ("parents", "Parents", self.table.parents_of(class_symbol)),
            ("children", "Children", self.table.children_of(class_symbol)),
        ):
            if not related:
                continue
            names = []
            for symbol in related:
                text = escape(to_text(symbol))
                target = self.table.lookup(symbol)
                if target is None:
                    names.append(text)
                else:
                    names.append(f'<a href="{self._href(target, page)}">{text}</a>')
            lines.append(f'<p class="{css}">{label}: {", ".join(names)}</p>')
        return lines

    def body_html(self, body: str, topic: Topic, page: str) -> str:
        """Translate body markup, resolving links from ``topic``'s context."""

        def inline(match: re.Match[str]) -> str:
            kind, text = match.group(1), match.group(2)
            if kind == "url":
                return f'<a href="{text}">{text}</a>'
            if kind == "email":
                return f'<a href="mailto:{text}">{text}</a>'
            return self._link_html(text, topic, page)

        html = _INLINE_TAG.sub(inline, body)
        return _MARKUP_TAG.sub(lambda m: f"<{m.group(1)}{_HTML_TAGS[m.group(2)]}>", html)

    def _link_html(self, text: str, topic: Topic, page: str) -> str:
        target = self.table.resolve(restore_amp_chars(text), topic.package, topic.using)
        if target is None:
            return f"&lt;{text}&gt;"
        return f'<a href="{self._href(target, page)}">{text}</a>'

    def _href(self, target: ReferenceTarget, from_page: str) -> str:
        to_page = page_path(target.file)
        relative = os.path.relpath(to_page, PurePosixPath(from_page).parent.as_posix() or ".")
        return f"{PurePosixPath(relative).as_posix()}#{anchor_of(target.symbol)}"

    # =========================================================================
    # Index
    # =========================================================================

    def _index_entry(self, element: IndexElement, titles: Mapping[str, str]) -> str:
        name = escape(element.text)
        if element.packages is not None:
            children = "".join(self._index_child(child, titles) for child in element.packages)
            return f"<li>{name}<ul>{children}</ul></li>"
        if element.files is not None:
            children = "".join(self._index_file(child, titles) for child in element.files)
            return f"<li>{name}<ul>{children}</ul></li>"
        return f"<li>{self._index_link(element, name)}</li>"

    def _index_child(self, element: IndexElement, titles: Mapping[str, str]) -> str:
        package = escape(to_text(element.package)) or "Global"
        if element.files is not None:
            children = "".join(self._index_file(child, titles) for child in element.files)
            return f"<li>{package}<ul>{children}</ul></li>"
        return f"<li>{self._index_link(element, package)}</li>"

    def _index_file(self, element: IndexElement, titles: Mapping[str, str]) -> str:
        file = element.file or ""
        label = escape(titles.get(file, file))
        return f"<li>{self._index_link(element, label)}</li>"

    def _index_link(self, element: IndexElement, label: str) -> str:
        if element.file is None:
            return label
        symbol = (element.package or ()) + symbol_from_text(element.text)
        href = f"{page_path(element.file)}#{anchor_of(symbol)}"
        summary = f" <span>{escape(strip_tags(element.summary))}</span>" if element.summary else ""
        return f'<a href="{escape(href)}">{label}</a>{summary}'
