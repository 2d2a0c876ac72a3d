"""Scope-aware statement extractors for languages with full support."""

from docplane.parse.advanced.base import StatementExtractor
from docplane.parse.advanced.javascript import JavaScriptExtractor
from docplane.parse.advanced.perl import PerlExtractor
from docplane.parse.advanced.scope import ScopeChange, ScopeFrame, ScopeStack

__all__ = [
    "JavaScriptExtractor",
    "PerlExtractor",
    "ScopeChange",
    "ScopeFrame",
    "ScopeStack",
    "StatementExtractor",
]
