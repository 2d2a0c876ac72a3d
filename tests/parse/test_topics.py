"""Tests for parse/topics.py module."""

from __future__ import annotations

import pytest

from docplane.core.errors import ConfigError
from docplane.parse.topics import (
    INDEXABLE_TYPES,
    Scope,
    TopicType,
    topic_type_by_name,
    topic_type_for_keyword,
)


class TestKeywords:
    """Header keyword lookup."""

    @pytest.mark.parametrize(
        ("keyword", "expected"),
        [
            ("Function", TopicType.FUNCTION),
            ("method", TopicType.FUNCTION),
            ("Functions", TopicType.FUNCTION_LIST),
            ("Class", TopicType.CLASS),
            ("namespace", TopicType.CLASS),
            ("Enum", TopicType.CONSTANT_LIST),
            ("Section", TopicType.SECTION),
            ("Property", TopicType.PROPERTY),
            ("var", TopicType.VARIABLE),
        ],
    )
    def test_known_keywords(self, keyword: str, expected: TopicType) -> None:
        """Keywords map to types case-insensitively; plurals to list types."""
        assert topic_type_for_keyword(keyword) is expected

    def test_unknown_keyword(self) -> None:
        """Words that aren't keywords have no type."""
        assert topic_type_for_keyword("Banana") is None


class TestTopicType:
    """TopicType properties."""

    def test_list_variants(self) -> None:
        """List types know their base type and vice versa."""
        assert TopicType.FUNCTION_LIST.is_list
        assert TopicType.FUNCTION_LIST.base_type is TopicType.FUNCTION
        assert TopicType.FUNCTION.list_type is TopicType.FUNCTION_LIST
        assert TopicType.SECTION.list_type is None

    def test_names(self) -> None:
        """Keys are singular; list display names are plural."""
        assert TopicType.PROPERTY_LIST.key == "property"
        assert TopicType.PROPERTY_LIST.display_name == "Properties"
        assert TopicType.PROPERTY.display_name == "Property"

    def test_scope_rules(self) -> None:
        """Classes open scopes, sections close them, files are always global."""
        assert TopicType.CLASS.info.scope is Scope.START
        assert TopicType.SECTION.info.scope is Scope.END
        assert TopicType.FILE.info.scope is Scope.ALWAYS_GLOBAL
        assert TopicType.FUNCTION.info.scope is Scope.NORMAL

    def test_ender_kinds(self) -> None:
        """Functions and variable-like types have prototypes."""
        assert TopicType.FUNCTION.ender_kind == "function"
        assert TopicType.CONSTANT.ender_kind == "variable"
        assert TopicType.CLASS.ender_kind is None

    @pytest.mark.parametrize(
        ("topic_type", "basic", "full"),
        [
            (TopicType.FUNCTION, True, True),
            (TopicType.FILE, False, True),
            (TopicType.CLASS, False, False),
        ],
    )
    def test_auto_groupable(self, topic_type: TopicType, basic: bool, full: bool) -> None:
        """Basic groups the common types; full adds files, types and constants."""
        assert topic_type.is_auto_groupable("basic") is basic
        assert topic_type.is_auto_groupable("full") is full
        assert not topic_type.is_auto_groupable("none")

    def test_indexable_types(self) -> None:
        """Sections, groups and generic topics stay out of the index."""
        assert TopicType.FUNCTION in INDEXABLE_TYPES
        assert TopicType.CLASS in INDEXABLE_TYPES
        assert TopicType.SECTION not in INDEXABLE_TYPES
        assert TopicType.GROUP not in INDEXABLE_TYPES
        assert TopicType.GENERIC not in INDEXABLE_TYPES
        assert not any(t.is_list for t in INDEXABLE_TYPES)


class TestTopicTypeByName:
    """topic_type_by_name() tests."""

    def test_singular_and_plural(self) -> None:
        """Display names resolve in either number."""
        assert topic_type_by_name("function") is TopicType.FUNCTION
        assert topic_type_by_name("Properties") is TopicType.PROPERTY_LIST

    def test_unknown_raises(self) -> None:
        """Unknown names raise ConfigError."""
        with pytest.raises(ConfigError):
            topic_type_by_name("Widget")
