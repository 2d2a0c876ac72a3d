"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (DOCPLANE__SECTION__KEY)
3. Project YAML (<project>/.docplane/config.yaml)
4. Global YAML (~/.config/docplane/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    DOCPLANE__<SECTION>__<KEY>=<VALUE>

Examples:
    DOCPLANE__LOGGING__LEVEL=DEBUG
    DOCPLANE__PROJECT__TAB_LENGTH=8
    DOCPLANE__PROJECT__DOCUMENTED_ONLY=true
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from docplane.config.constants import MAX_TAB_LENGTH

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
AutoGroupLevel = Literal["none", "basic", "full"]
ListMode = Literal["add", "replace"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        DOCPLANE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every symbol definition and resolution.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ProjectConfig(BaseModel):
    """Project layout and extraction behavior.

    Env vars:
        DOCPLANE__PROJECT__OUTPUT: Output directory for generated HTML
        DOCPLANE__PROJECT__TAB_LENGTH: Columns per tab in doc comments
        DOCPLANE__PROJECT__DOCUMENTED_ONLY: Drop undocumented auto-topics
        DOCPLANE__PROJECT__AUTO_GROUP: none, basic or full
    """

    inputs: list[str] = Field(
        default_factory=list,
        description="Source directories, relative to the project root. "
        "Empty means the root itself.",
    )
    output: str = Field(
        default="docs",
        description="Output directory for generated HTML, relative to the project root.",
    )
    excluded_dirs: list[str] = Field(
        default_factory=lambda: [".git", ".hg", ".svn", ".docplane", "node_modules", "__pycache__"],
        description="Directory names skipped during discovery.",
    )
    tab_length: int = Field(
        default=4,
        description="Columns a tab expands to when cleaning doc comments.",
    )
    documented_only: bool = Field(
        default=False,
        description="Only keep auto-detected declarations that have a doc comment.",
    )
    auto_group: AutoGroupLevel = Field(
        default="full",
        description="Insert group topics per topic type. "
        "basic groups functions, variables and properties; full adds files, types and constants.",
    )
    max_file_size_mb: int = Field(
        default=10,
        description="Skip source files larger than this (MB).",
    )

    @field_validator("tab_length")
    @classmethod
    def validate_tab_length(cls, v: int) -> int:
        if not (1 <= v <= MAX_TAB_LENGTH):
            raise ValueError(f"Tab length must be 1-{MAX_TAB_LENGTH}, got {v}")
        return v


class LanguageOverride(BaseModel):
    """Defines a new language or alters a built-in one.

    Lists given for an altered language that already has values need an
    explicit ``*_mode`` of ``add`` or ``replace``.  Prototype enders may spell
    a line break as ``\\n``.
    """

    name: str
    alter: bool = False
    extensions: list[str] | None = None
    extensions_mode: ListMode | None = None
    shebang_strings: list[str] | None = None
    shebang_mode: ListMode | None = None
    line_comments: list[str] | None = None
    block_comments: list[list[str]] | None = None
    function_enders: list[str] | None = None
    variable_enders: list[str] | None = None
    line_extender: str | None = None
    package_separator: str | None = None
    ignored_prefixes: dict[str, list[str]] | None = None
    ignored_extensions: list[str] = Field(default_factory=list)

    @field_validator("block_comments")
    @classmethod
    def validate_block_comments(cls, v: list[list[str]] | None) -> list[list[str]] | None:
        if v is None:
            return v
        for pair in v:
            if len(pair) != 2:
                raise ValueError("Block comment symbols must appear in pairs")
        return v

    @model_validator(mode="after")
    def validate_name(self) -> "LanguageOverride":
        if not self.name.strip():
            raise ValueError("Language name must not be empty")
        return self


class DocPlaneConfig(BaseModel):
    """Root configuration for DocPlane.

    All settings can be configured via:
    1. Environment variables: DOCPLANE__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    languages: list[LanguageOverride] = Field(default_factory=list)
