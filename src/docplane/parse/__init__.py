"""Parse module - doc comment and declaration extraction.

Public API:
- Parser: per-file pipeline producing ParsedFile topic lists
- Topic, TopicType: the documented entities and their kinds
- tokenize: language-aware token stream
- format_prototype, normalize_prototype: prototype display and cleanup
"""

from docplane.parse.parser import ParsedFile, Parser
from docplane.parse.prototype import FormattedPrototype, format_prototype, normalize_prototype
from docplane.parse.symbols import Symbol, symbol_from_text, to_text
from docplane.parse.tokenizer import Token, TokenKind, tokenize
from docplane.parse.topic import Extraction, Topic
from docplane.parse.topics import TopicType

__all__ = [
    "Extraction",
    "FormattedPrototype",
    "ParsedFile",
    "Parser",
    "Symbol",
    "Token",
    "TokenKind",
    "Topic",
    "TopicType",
    "format_prototype",
    "normalize_prototype",
    "symbol_from_text",
    "to_text",
    "tokenize",
]
