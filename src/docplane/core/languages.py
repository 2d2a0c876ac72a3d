"""Canonical language descriptors.

This module defines the authoritative per-language extraction rules:
- File extensions and shebang strings -> language
- Line and block comment symbols
- Prototype enders for functions and variables
- Line extender and package separator
- Quirk strategies applied by the shared prototype normalizer

Design decisions:
1. One frozen descriptor per language plus a small closed set of named quirk
   strategies.  There is no class per language; the normalizer switches on
   the strategy enums.
2. A language with neither line nor block comment symbols treats the whole
   file as one documentation comment (plain text files).
3. The registry is an explicit object built once per run from the static
   table plus any user overrides, then passed into the pipeline.
4. Files with no extension, or with an extension claimed by the
   "Shebang Script" placeholder, are checked for a ``#!`` line.  The result is
   cached per file.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from docplane.core.errors import ConfigError, SourceError

if TYPE_CHECKING:
    from docplane.config.models import LanguageOverride


class ExtractorKind(StrEnum):
    """Which extraction strategy parses files of a language."""

    SIMPLE = "simple"
    JAVASCRIPT = "javascript"
    PERL = "perl"


class FalsePositiveStrategy(StrEnum):
    """How ender occurrences that are not real statement ends are suppressed."""

    NONE = "none"
    SEMICOLONS_IN_PARENS = "semicolons_in_parens"
    SIGIL_PRECEDED_KEYWORD = "sigil_preceded_keyword"
    BRACE_NESTING = "brace_nesting"


class PrototypeFormat(StrEnum):
    """How a function prototype is split into pre/open/params/close/post."""

    PARENS = "parens"
    BRACES = "braces"
    MARKER_PARAMS = "marker_params"


class PrototypeNormalizer(StrEnum):
    """Rewrites applied to a prototype before it is attached to a topic."""

    NONE = "none"
    JAVASCRIPT = "javascript"


SHEBANG_SCRIPT = "Shebang Script"
TEXT_FILE = "Text File"

# Zero-argument directives that may follow a Pascal function's semicolon.
PASCAL_DIRECTIVES = frozenset(
    {
        "overload",
        "override",
        "virtual",
        "abstract",
        "reintroduce",
        "export",
        "public",
        "interrupt",
        "register",
        "pascal",
        "cdecl",
        "stdcall",
        "popstack",
        "saveregisters",
        "inline",
        "safecall",
    }
)

# Directives that take a trailing clause, consumed up to the next semicolon.
PASCAL_LONG_DIRECTIVES = frozenset({"alias", "external"})


@dataclass(frozen=True, slots=True)
class LanguageDescriptor:
    """Immutable extraction rules for one language.

    Attributes:
        name: Display name, unique across the registry (e.g. "C/C++")
        extensions: Lowercase extensions without the dot (e.g. "cpp")
        shebang_strings: Lowercase substrings matched against a ``#!`` line
        line_comments: Symbols starting a comment that runs to end of line
        block_comments: (open, close) symbol pairs
        function_enders: Symbols or keywords ending a function prototype
        variable_enders: Symbols or keywords ending a variable prototype
        line_extender: Symbol continuing a line, e.g. "\\" or "_"
        package_separator: Separator used when displaying qualified symbols
        ignored_prefixes: (topic type key, prefixes) pairs skipped when indexing
        extractor: Extraction strategy for the language
        false_positives: Ender suppression strategy
        prototype_format: Parameter splitting strategy
        normalizer: Prototype rewrite applied before attaching
        directives: Zero-argument suffix directives folded into prototypes
        long_directives: Suffix directives whose clause runs to the next ";"
        sortable_sigils: Regex stripped from variable names for sorting
        param_marker: Marker character introducing marker-style parameters
        using_pattern: Regex whose group 1 names a scope a code line imports
    """

    name: str
    extensions: frozenset[str] = field(default_factory=frozenset)
    shebang_strings: tuple[str, ...] = ()
    line_comments: tuple[str, ...] = ()
    block_comments: tuple[tuple[str, str], ...] = ()
    function_enders: tuple[str, ...] = ()
    variable_enders: tuple[str, ...] = ()
    line_extender: str | None = None
    package_separator: str = "."
    ignored_prefixes: tuple[tuple[str, tuple[str, ...]], ...] = ()
    extractor: ExtractorKind = ExtractorKind.SIMPLE
    false_positives: FalsePositiveStrategy = FalsePositiveStrategy.NONE
    prototype_format: PrototypeFormat = PrototypeFormat.PARENS
    normalizer: PrototypeNormalizer = PrototypeNormalizer.NONE
    directives: frozenset[str] = field(default_factory=frozenset)
    long_directives: frozenset[str] = field(default_factory=frozenset)
    sortable_sigils: str | None = None
    param_marker: str = "@"
    using_pattern: str | None = None

    @property
    def file_is_comment(self) -> bool:
        """True when the whole file is one documentation comment."""
        return not self.line_comments and not self.block_comments

    @property
    def has_full_support(self) -> bool:
        """True when a statement extractor understands the language's code."""
        return self.extractor is not ExtractorKind.SIMPLE

    def enders_for(self, kind: str | None) -> tuple[str, ...] | None:
        """Prototype enders for an ender kind ("function" or "variable").

        Returns None when the kind has no prototype in this language.
        """
        if kind == "function":
            return self.function_enders or None
        if kind == "variable":
            return self.variable_enders or None
        return None

    def ignored_prefixes_for(self, type_key: str) -> tuple[str, ...]:
        for key, prefixes in self.ignored_prefixes:
            if key == type_key:
                return prefixes
        return ()


_C_COMMENTS: dict[str, tuple] = {
    "line_comments": ("//",),
    "block_comments": (("/*", "*/"),),
}

# =============================================================================
# Language Definitions
# =============================================================================
# RULES:
# 1. Extensions are lowercase, without the dot
# 2. Shebang strings are lowercase substrings of the #! line
# 3. "\n" as an ender means a line break; with a line extender defined, a
#    break preceded by the extender and only whitespace is not an ender
# 4. Later definitions win when two languages claim the same extension

ALL_LANGUAGES: tuple[LanguageDescriptor, ...] = (
    LanguageDescriptor(
        name=TEXT_FILE,
        extensions=frozenset({"txt"}),
    ),
    LanguageDescriptor(
        name=SHEBANG_SCRIPT,
        extensions=frozenset({"cgi"}),
        line_comments=("#",),
    ),
    LanguageDescriptor(
        name="C/C++",
        extensions=frozenset({"c", "cpp", "h", "hpp", "cxx", "hxx", "cc", "hh", "c++", "h++"}),
        function_enders=(";", "{"),
        variable_enders=(";", "="),
        package_separator="::",
        using_pattern=r"^\s*using\s+namespace\s+([\w:]+)\s*;",
        **_C_COMMENTS,
    ),
    LanguageDescriptor(
        name="C#",
        extensions=frozenset({"cs"}),
        function_enders=(";", "{"),
        variable_enders=(";", "=", "{"),
        using_pattern=r"^\s*using\s+(?!static\b)([\w.]+)\s*;",
        **_C_COMMENTS,
    ),
    LanguageDescriptor(
        name="Java",
        extensions=frozenset({"java"}),
        function_enders=(";", "{"),
        variable_enders=(";", "="),
        **_C_COMMENTS,
    ),
    LanguageDescriptor(
        name="JavaScript",
        extensions=frozenset({"js", "mjs", "cjs"}),
        shebang_strings=("node",),
        function_enders=(";", "{"),
        variable_enders=(";", "="),
        extractor=ExtractorKind.JAVASCRIPT,
        normalizer=PrototypeNormalizer.JAVASCRIPT,
        **_C_COMMENTS,
    ),
    LanguageDescriptor(
        name="Perl",
        extensions=frozenset({"pl", "pm"}),
        shebang_strings=("perl",),
        line_comments=("#",),
        function_enders=(";", "{"),
        variable_enders=(";", "="),
        package_separator="::",
        extractor=ExtractorKind.PERL,
        sortable_sigils=r"^[$@%]",
    ),
    LanguageDescriptor(
        name="Python",
        extensions=frozenset({"py", "pyw"}),
        shebang_strings=("python",),
        line_comments=("#",),
        function_enders=(":",),
        variable_enders=("=", "\n"),
        line_extender="\\",
    ),
    LanguageDescriptor(
        name="PHP",
        extensions=frozenset({"inc", "php", "php3", "php4", "php5", "phtml"}),
        shebang_strings=("php",),
        line_comments=("//", "#"),
        block_comments=(("/*", "*/"),),
        function_enders=(";", "{", "?>"),
        variable_enders=(";", "=", "?>"),
        package_separator="::",
        sortable_sigils=r"^\$",
    ),
    LanguageDescriptor(
        name="Ruby",
        extensions=frozenset({"rb"}),
        shebang_strings=("ruby",),
        line_comments=("#",),
        function_enders=(";", "\n"),
        variable_enders=(";", "=", "\n"),
        line_extender="\\",
        package_separator="::",
        sortable_sigils=r"^(?:@@|[$@])",
    ),
    LanguageDescriptor(
        name="ActionScript",
        extensions=frozenset({"as"}),
        function_enders=(";", "{"),
        variable_enders=(";", "="),
        **_C_COMMENTS,
    ),
    LanguageDescriptor(
        name="ColdFusion",
        extensions=frozenset({"cfm", "cfml", "cfc"}),
        line_comments=("//",),
        block_comments=(("<!---", "--->"), ("/*", "*/")),
        function_enders=("{", "<"),
    ),
    LanguageDescriptor(
        name="Pascal",
        extensions=frozenset({"pas", "dpr", "pp"}),
        line_comments=("//",),
        block_comments=(("{", "}"), ("(*", "*)")),
        function_enders=(";",),
        variable_enders=(";", "="),
        false_positives=FalsePositiveStrategy.SEMICOLONS_IN_PARENS,
        directives=PASCAL_DIRECTIVES,
        long_directives=PASCAL_LONG_DIRECTIVES,
    ),
    LanguageDescriptor(
        name="Ada",
        extensions=frozenset({"ada", "ads", "adb"}),
        line_comments=("--",),
        function_enders=(";", "is", "rename"),
        variable_enders=(";", ":=", "rename"),
        false_positives=FalsePositiveStrategy.SEMICOLONS_IN_PARENS,
    ),
    LanguageDescriptor(
        name="SQL",
        extensions=frozenset({"sql"}),
        line_comments=("--",),
        block_comments=(("/*", "*/"),),
        function_enders=(",", ";", ")", "as", "is"),
        variable_enders=(",", ";", ")", ":=", "default"),
        false_positives=FalsePositiveStrategy.SIGIL_PRECEDED_KEYWORD,
        prototype_format=PrototypeFormat.MARKER_PARAMS,
    ),
    LanguageDescriptor(
        name="PL/SQL",
        extensions=frozenset({"pls", "pks", "pkb", "plsql"}),
        line_comments=("--",),
        block_comments=(("/*", "*/"),),
        function_enders=(",", ";", ")", "as", "is"),
        variable_enders=(",", ";", ")", ":=", "default"),
        false_positives=FalsePositiveStrategy.SIGIL_PRECEDED_KEYWORD,
        prototype_format=PrototypeFormat.MARKER_PARAMS,
    ),
    LanguageDescriptor(
        name="Visual Basic",
        extensions=frozenset({"vb", "vbs", "bas", "cls", "frm"}),
        line_comments=("'",),
        function_enders=("\n",),
        variable_enders=("\n", "="),
        line_extender="_",
    ),
    LanguageDescriptor(
        name="Tcl",
        extensions=frozenset({"tcl", "exp"}),
        shebang_strings=("tclsh", "wish", "expect"),
        line_comments=("#",),
        function_enders=(";", "{"),
        variable_enders=(";", "\n"),
        package_separator="::",
        false_positives=FalsePositiveStrategy.BRACE_NESTING,
        prototype_format=PrototypeFormat.BRACES,
    ),
    LanguageDescriptor(
        name="Makefile",
        extensions=frozenset({"mk", "mak", "make"}),
        line_comments=("#",),
        variable_enders=("\n",),
        line_extender="\\",
    ),
    LanguageDescriptor(
        name="Shell",
        extensions=frozenset({"sh", "bash", "zsh", "ksh"}),
        shebang_strings=("bash", "zsh", "ksh", "/sh"),
        line_comments=("#",),
        function_enders=("{",),
        variable_enders=("\n",),
        line_extender="\\",
    ),
    LanguageDescriptor(
        name="Batch",
        extensions=frozenset({"bat", "cmd"}),
        line_comments=("::", "rem", "REM"),
    ),
    LanguageDescriptor(
        name="R",
        extensions=frozenset({"r"}),
        shebang_strings=("rscript",),
        line_comments=("#",),
        function_enders=("{",),
        variable_enders=("<-", "=", "\n"),
    ),
    LanguageDescriptor(
        name="Lua",
        extensions=frozenset({"lua"}),
        shebang_strings=("lua",),
        line_comments=("--",),
        block_comments=(("--[[", "]]"),),
        function_enders=("\n",),
        variable_enders=("=", "\n"),
    ),
    LanguageDescriptor(
        name="Go",
        extensions=frozenset({"go"}),
        function_enders=("{",),
        variable_enders=("=", "\n"),
        **_C_COMMENTS,
    ),
    LanguageDescriptor(
        name="Assembly",
        extensions=frozenset({"asm", "s"}),
        line_comments=(";",),
        function_enders=("\n",),
        variable_enders=("\n",),
    ),
    LanguageDescriptor(
        name="Fortran",
        extensions=frozenset({"f90", "f95", "f03", "f08"}),
        line_comments=("!",),
        function_enders=("\n",),
        variable_enders=("\n",),
        line_extender="&",
    ),
    LanguageDescriptor(
        name="Haskell",
        extensions=frozenset({"hs", "lhs"}),
        line_comments=("--",),
        block_comments=(("{-", "-}"),),
        function_enders=("\n",),
        variable_enders=("\n",),
    ),
    LanguageDescriptor(
        name="Lisp",
        extensions=frozenset({"lisp", "lsp", "el", "cl"}),
        line_comments=(";",),
    ),
)


def _unescape_enders(enders: Iterable[str]) -> tuple[str, ...]:
    """Config files spell a line break ender as the two characters ``\\n``."""
    return tuple("\n" if e == "\\n" else e for e in enders)


def _merge_list(
    current: tuple[str, ...],
    new: Sequence[str],
    mode: str | None,
    *,
    field_name: str,
    language: str,
) -> tuple[str, ...]:
    if mode is None:
        if current:
            raise ConfigError.invalid_value(
                f"languages.{language}.{field_name}",
                list(new),
                "altering an existing list requires an add or replace mode",
            )
        return tuple(new)
    if mode == "add":
        return current + tuple(x for x in new if x not in current)
    return tuple(new)


def _apply_override(
    base: LanguageDescriptor | None, override: LanguageOverride
) -> LanguageDescriptor:
    """Build the descriptor that results from one override entry."""
    lang = base or LanguageDescriptor(name=override.name)
    name = override.name

    if lang.has_full_support and (
        override.line_comments is not None
        or override.block_comments is not None
        or override.function_enders is not None
        or override.variable_enders is not None
        or override.line_extender is not None
    ):
        raise ConfigError.invalid_value(
            f"languages.{name}",
            name,
            "comment symbols and prototype enders can't be changed for a "
            "language with full language support",
        )

    changes: dict[str, object] = {}
    if override.extensions is not None:
        changes["extensions"] = frozenset(
            _merge_list(
                tuple(sorted(lang.extensions)),
                [e.lower().lstrip(".") for e in override.extensions],
                override.extensions_mode if base else "replace",
                field_name="extensions",
                language=name,
            )
        )
    if override.shebang_strings is not None:
        changes["shebang_strings"] = _merge_list(
            lang.shebang_strings,
            [s.lower() for s in override.shebang_strings],
            override.shebang_mode if base else "replace",
            field_name="shebang_strings",
            language=name,
        )
    if override.line_comments is not None:
        changes["line_comments"] = tuple(override.line_comments)
    if override.block_comments is not None:
        changes["block_comments"] = tuple((p[0], p[1]) for p in override.block_comments)
    if override.function_enders is not None:
        changes["function_enders"] = _unescape_enders(override.function_enders)
    if override.variable_enders is not None:
        changes["variable_enders"] = _unescape_enders(override.variable_enders)
    if override.line_extender is not None:
        changes["line_extender"] = override.line_extender or None
    if override.package_separator is not None:
        changes["package_separator"] = override.package_separator
    if override.ignored_prefixes is not None:
        changes["ignored_prefixes"] = tuple(
            (key.lower(), tuple(prefixes))
            for key, prefixes in sorted(override.ignored_prefixes.items())
        )

    return replace(lang, **changes)  # type: ignore[arg-type]


class LanguageRegistry:
    """Lookup of language descriptors by name, extension and shebang line.

    Built once per run.  Shebang probing results are cached per file.
    """

    def __init__(
        self,
        languages: Iterable[LanguageDescriptor] = ALL_LANGUAGES,
        *,
        claim_order: Sequence[str] = (),
        ignored_extensions: Iterable[str] = (),
    ) -> None:
        self._languages: dict[str, LanguageDescriptor] = {}
        for lang in languages:
            self._languages[lang.name.lower()] = lang

        self._by_extension: dict[str, LanguageDescriptor] = {}
        ordered = list(self._languages.values())
        ordered += [self._languages[n.lower()] for n in claim_order if n.lower() in self._languages]
        for lang in ordered:
            for ext in lang.extensions:
                self._by_extension[ext] = lang
        for ext in ignored_extensions:
            self._by_extension.pop(ext.lower().lstrip("."), None)

        self._shebang_cache: dict[Path, LanguageDescriptor | None] = {}

    @classmethod
    def with_overrides(cls, overrides: Sequence[LanguageOverride]) -> LanguageRegistry:
        """Merge user overrides into the static table.

        Raises:
            ConfigError: On redefining a language without ``alter``, altering
                an unknown language, or an ambiguous list alteration.
        """
        languages = {lang.name.lower(): lang for lang in ALL_LANGUAGES}
        claim_order: list[str] = []
        ignored: list[str] = []

        for override in overrides:
            key = override.name.lower()
            existing = languages.get(key)
            if override.alter and existing is None:
                raise ConfigError.unknown_language(override.name)
            if not override.alter and existing is not None:
                raise ConfigError.invalid_value(
                    f"languages.{override.name}",
                    override.name,
                    "language is already defined; use alter to change it",
                )
            languages[key] = _apply_override(existing, override)
            if override.extensions is not None:
                claim_order.append(override.name)
            ignored.extend(override.ignored_extensions)

        return cls(languages.values(), claim_order=claim_order, ignored_extensions=ignored)

    def __iter__(self) -> Iterator[LanguageDescriptor]:
        return iter(self._languages.values())

    def __len__(self) -> int:
        return len(self._languages)

    def get(self, name: str) -> LanguageDescriptor | None:
        return self._languages.get(name.lower())

    def by_name(self, name: str) -> LanguageDescriptor:
        """Get a language by name.

        Raises:
            ConfigError: If no such language is defined.
        """
        if (lang := self.get(name)) is None:
            raise ConfigError.unknown_language(name)
        return lang

    def by_extension(self, extension: str) -> LanguageDescriptor | None:
        return self._by_extension.get(extension.lower().lstrip("."))

    def by_shebang(self, shebang_line: str) -> LanguageDescriptor | None:
        """Match a ``#!`` line against every language's shebang strings."""
        line = shebang_line.lower()
        for lang in self._languages.values():
            for needle in lang.shebang_strings:
                if needle in line:
                    return lang
        return None

    def language_of(self, path: Path) -> LanguageDescriptor | None:
        """Determine the language of a source file.

        Files with no extension, or with an extension claimed by the shebang
        placeholder, are read for a ``#!`` first line.

        Raises:
            SourceError: If the file must be checked and can't be read.
        """
        extension = path.suffix.lower().lstrip(".")
        lang = self.by_extension(extension) if extension else None
        if extension and (lang is None or lang.name != SHEBANG_SCRIPT):
            return lang

        if path in self._shebang_cache:
            return self._shebang_cache[path]

        try:
            with path.open(encoding="utf-8", errors="replace") as f:
                first = f.readline()
        except OSError as e:
            raise SourceError.unreadable(str(path), str(e)) from e

        result = self.by_shebang(first[2:]) if first.startswith("#!") else None
        self._shebang_cache[path] = result
        return result
