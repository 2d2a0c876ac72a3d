"""Topic types and the keywords that introduce them.

Each base type has a list variant (``TopicType.FUNCTION.list_type``) used for
comments that document several entities at once, e.g. ``Functions: Helpers``.
List values are the base value plus ``LIST_BASE``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

from docplane.core.errors import ConfigError

LIST_BASE = 100


class Scope(Enum):
    """How a topic affects the package of the topics after it."""

    NORMAL = "normal"
    START = "start"
    END = "end"
    ALWAYS_GLOBAL = "always_global"


class AutoGroup(Enum):
    NO = "no"
    YES = "yes"
    FULL_ONLY = "full_only"


@dataclass(frozen=True, slots=True)
class TopicTypeInfo:
    name: str
    plural_name: str
    index: bool
    auto_group: AutoGroup
    scope: Scope
    page_title_if_first: bool
    ender_kind: str | None


class TopicType(IntEnum):
    CLASS = 1
    SECTION = 2
    FILE = 3
    GROUP = 4
    FUNCTION = 5
    VARIABLE = 6
    GENERIC = 7
    TYPE = 8
    CONSTANT = 9
    PROPERTY = 10

    CLASS_LIST = CLASS + LIST_BASE
    FILE_LIST = FILE + LIST_BASE
    FUNCTION_LIST = FUNCTION + LIST_BASE
    VARIABLE_LIST = VARIABLE + LIST_BASE
    GENERIC_LIST = GENERIC + LIST_BASE
    TYPE_LIST = TYPE + LIST_BASE
    CONSTANT_LIST = CONSTANT + LIST_BASE
    PROPERTY_LIST = PROPERTY + LIST_BASE

    @property
    def is_list(self) -> bool:
        return self.value >= LIST_BASE

    @property
    def base_type(self) -> TopicType:
        """The type a list variant documents; the type itself otherwise."""
        return TopicType(self.value - LIST_BASE) if self.is_list else self

    @property
    def list_type(self) -> TopicType | None:
        try:
            return TopicType(self.base_type.value + LIST_BASE)
        except ValueError:
            return None

    @property
    def info(self) -> TopicTypeInfo:
        return _INFO[self.base_type]

    @property
    def key(self) -> str:
        """Lowercase singular name, used in config keys and CSS classes."""
        return self.info.name.lower()

    @property
    def display_name(self) -> str:
        return self.info.plural_name if self.is_list else self.info.name

    @property
    def indexable(self) -> bool:
        return self.info.index

    @property
    def ender_kind(self) -> str | None:
        """Which language ender set ends this type's prototypes."""
        return self.info.ender_kind

    def is_auto_groupable(self, level: str) -> bool:
        """Whether auto-grouping at ``level`` ("none", "basic", "full") groups this type."""
        group = self.info.auto_group
        if level == "basic":
            return group is AutoGroup.YES
        if level == "full":
            return group is not AutoGroup.NO
        return False


_INFO: dict[TopicType, TopicTypeInfo] = {
    TopicType.CLASS: TopicTypeInfo(
        "Class", "Classes", True, AutoGroup.NO, Scope.START, True, None
    ),
    TopicType.SECTION: TopicTypeInfo(
        "Section", "Sections", False, AutoGroup.NO, Scope.END, True, None
    ),
    TopicType.FILE: TopicTypeInfo(
        "File", "Files", True, AutoGroup.FULL_ONLY, Scope.ALWAYS_GLOBAL, True, None
    ),
    TopicType.GROUP: TopicTypeInfo(
        "Group", "Groups", False, AutoGroup.NO, Scope.NORMAL, False, None
    ),
    TopicType.FUNCTION: TopicTypeInfo(
        "Function", "Functions", True, AutoGroup.YES, Scope.NORMAL, False, "function"
    ),
    TopicType.VARIABLE: TopicTypeInfo(
        "Variable", "Variables", True, AutoGroup.YES, Scope.NORMAL, False, "variable"
    ),
    TopicType.GENERIC: TopicTypeInfo(
        "Generic", "Generics", False, AutoGroup.NO, Scope.NORMAL, False, None
    ),
    TopicType.TYPE: TopicTypeInfo(
        "Type", "Types", True, AutoGroup.FULL_ONLY, Scope.NORMAL, False, None
    ),
    TopicType.CONSTANT: TopicTypeInfo(
        "Constant", "Constants", True, AutoGroup.FULL_ONLY, Scope.NORMAL, False, "variable"
    ),
    TopicType.PROPERTY: TopicTypeInfo(
        "Property", "Properties", True, AutoGroup.YES, Scope.NORMAL, False, "variable"
    ),
}


def _keywords(topic_type: TopicType, singular: str, plural: str = "") -> dict[str, TopicType]:
    table = {word: topic_type for word in singular.split()}
    if plural:
        list_type = topic_type.list_type or topic_type
        table.update({word: list_type for word in plural.split()})
    return table


KEYWORDS: dict[str, TopicType] = {
    **_keywords(
        TopicType.CLASS,
        "class structure struct package namespace",
        "classes structures structs packages namespaces",
    ),
    **_keywords(TopicType.SECTION, "section title"),
    **_keywords(
        TopicType.FILE,
        "file program script module document doc header",
        "files programs scripts modules documents docs headers",
    ),
    **_keywords(TopicType.GROUP, "group"),
    **_keywords(
        TopicType.FUNCTION,
        "function func procedure proc routine subroutine sub method callback "
        "constructor destructor",
        "functions funcs procedures procs routines subroutines subs methods callbacks "
        "constructors destructors",
    ),
    **_keywords(
        TopicType.VARIABLE,
        "variable var integer int uint long ulong short ushort byte ubyte sbyte float "
        "double real decimal scalar array arrayref hash hashref bool boolean flag bit "
        "bitfield field pointer ptr reference ref object obj character wcharacter char "
        "wchar string wstring str wstr handle",
        "variables vars integers ints uints longs ulongs shorts ushorts bytes ubytes "
        "sbytes floats doubles reals decimals arrays arrayrefs hashes hashrefs bools "
        "booleans flags bits bitfields fields pointers ptrs references refs objects objs "
        "characters wcharacters chars wchars strings wstrings strs wstrs handles",
    ),
    **_keywords(TopicType.PROPERTY, "property prop", "properties props"),
    **_keywords(
        TopicType.GENERIC,
        "topic about note item option symbol sym definition define def macro format",
        "list items options symbols syms definitions defines defs macros formats",
    ),
    **_keywords(
        TopicType.CONSTANT,
        "constant const",
        "constants consts enumeration enum",
    ),
    **_keywords(TopicType.TYPE, "type typedef", "types typedefs"),
}


def topic_type_for_keyword(keyword: str) -> TopicType | None:
    """Map a header keyword (any case) to its topic type."""
    return KEYWORDS.get(keyword.strip().lower())


def topic_type_by_name(name: str) -> TopicType:
    """Resolve a singular or plural type name such as "Function" or "Properties".

    Raises:
        ConfigError: If the name is not a topic type.
    """
    lowered = name.strip().lower()
    for topic_type in TopicType:
        if topic_type.display_name.lower() == lowered:
            return topic_type
    raise ConfigError.unknown_topic_type(name)


INDEXABLE_TYPES: tuple[TopicType, ...] = tuple(
    t for t in TopicType if t.indexable and not t.is_list
)
