"""Symbols module - project-wide definitions, references and the index."""

from docplane.symbols.index import IndexElement, sort_key, string_compare
from docplane.symbols.reference import (
    Reference,
    ReferenceString,
    ReferenceTarget,
    interpretations_of,
)
from docplane.symbols.table import SymbolTable

__all__ = [
    "IndexElement",
    "Reference",
    "ReferenceString",
    "ReferenceTarget",
    "SymbolTable",
    "interpretations_of",
    "sort_key",
    "string_compare",
]
