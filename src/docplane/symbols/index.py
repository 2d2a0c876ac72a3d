"""Index entries and the sort order they are presented in.

Index text sorts case-insensitively with letters after digits and digits
after everything else.  Strings equal but for case order lowercase first so
the order is stable across runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key

from docplane.parse.symbols import Symbol, to_text
from docplane.parse.topics import TopicType

BUCKET_COUNT = 28
SYMBOLS_BUCKET = 0
DIGITS_BUCKET = 1

_CONTROL_ORDINALS = {"\n": 1, "\r": 2, "\t": 3, " ": 4}


def sort_ordinal(char: str) -> int:
    """Position of one character in index order."""
    lowered = char.lower()
    if "a" <= lowered <= "z":
        return ((ord(lowered) - ord("a")) << 1) + 60010
    if "0" <= char <= "9":
        return ord(char) - ord("0") + 60000
    if char in _CONTROL_ORDINALS:
        return _CONTROL_ORDINALS[char]
    return ord(char) + 4


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def string_compare(a: str, b: str) -> int:
    """Three-way comparison of two strings in index order."""
    for left, right in zip(a, b, strict=False):
        if (result := _cmp(sort_ordinal(left), sort_ordinal(right))) != 0:
            return result
    if len(a) != len(b):
        return _cmp(len(a), len(b))
    # Reversed so "foo" lands before "Foo"
    return _cmp(b, a)


sort_key = cmp_to_key(string_compare)


def bucket_of(text: str) -> int:
    """Which of the 28 index sections ``text`` belongs in."""
    if not text:
        return SYMBOLS_BUCKET
    first = text[0].lower()
    if "a" <= first <= "z":
        return 2 + ord(first) - ord("a")
    if "0" <= first <= "9":
        return DIGITS_BUCKET
    return SYMBOLS_BUCKET


def _package_key(element: IndexElement):
    return sort_key(to_text(element.package))


def _file_key(element: IndexElement):
    return sort_key(element.file or "")


@dataclass(slots=True)
class IndexElement:
    """One index line: a name and where it is defined.

    A name defined in a single package and file carries its definition
    directly.  Otherwise ``packages`` or ``files`` hold child elements, one
    per package or per file, and the direct fields are cleared.
    """

    text: str
    sort_text: str = ""
    package: Symbol | None = None
    file: str | None = None
    type: TopicType | None = None
    prototype: str | None = None
    summary: str | None = None
    packages: list[IndexElement] | None = None
    files: list[IndexElement] | None = None

    @property
    def has_multiple_packages(self) -> bool:
        return self.packages is not None

    @property
    def has_multiple_files(self) -> bool:
        return self.files is not None

    def merge(
        self,
        package: Symbol | None,
        file: str,
        topic_type: TopicType,
        prototype: str | None,
        summary: str | None,
    ) -> None:
        """Add another definition of the same name."""
        if self.packages is None and self.package == package:
            self.merge_file(file, topic_type, prototype, summary)
            return

        if self.packages is None:
            self.packages = [self._detach(text=self.text, package=self.package)]
            self.package = None

        for child in self.packages:
            if child.package == package:
                child.merge_file(file, topic_type, prototype, summary)
                return
        self.packages.append(
            IndexElement(
                self.text,
                package=package,
                file=file,
                type=topic_type,
                prototype=prototype,
                summary=summary,
            )
        )

    def merge_file(
        self, file: str, topic_type: TopicType, prototype: str | None, summary: str | None
    ) -> None:
        """Add another file defining the name in this element's package."""
        if self.files is None:
            if self.file == file:
                return
            self.files = [self._detach(text=self.text, package=self.package)]

        if any(child.file == file for child in self.files):
            return
        self.files.append(
            IndexElement(
                self.text,
                package=self.package,
                file=file,
                type=topic_type,
                prototype=prototype,
                summary=summary,
            )
        )

    def _detach(self, *, text: str, package: Symbol | None) -> IndexElement:
        """Move this element's own definition into a new child element."""
        child = IndexElement(
            text,
            package=package,
            file=self.file,
            type=self.type,
            prototype=self.prototype,
            summary=self.summary,
            files=self.files,
        )
        self.file = self.type = self.prototype = self.summary = None
        self.files = None
        return child

    def sort(self) -> None:
        """Order child packages and files."""
        if self.packages is not None:
            self.packages.sort(key=_package_key)
            for child in self.packages:
                child.sort()
        elif self.files is not None:
            self.files.sort(key=_file_key)
