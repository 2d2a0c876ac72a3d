"""DocPlane error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Source (input files)
- 4xxx: Output

Only environment-level failures are raised.  Extraction ambiguity (no
prototype, unrecognized declaration, unresolved link) degrades silently and
never reaches this module.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_UNKNOWN_LANGUAGE = 2003
    CONFIG_UNKNOWN_TOPIC_TYPE = 2004

    # Source (3xxx)
    SOURCE_UNREADABLE = 3001

    # Output (4xxx)
    OUTPUT_CANNOT_CREATE = 4001


@dataclass(frozen=True, slots=True)
class DocPlaneError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(DocPlaneError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def unknown_language(cls, name: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_UNKNOWN_LANGUAGE,
            message=f"The language {name} is not defined",
            details={"language": name},
        )

    @classmethod
    def unknown_topic_type(cls, name: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_UNKNOWN_TOPIC_TYPE,
            message=f"{name} is not a defined topic type",
            details={"topic_type": name},
        )


class SourceError(DocPlaneError):
    """Errors reading input source files.  Fatal for the run."""

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "SourceError":
        return cls(
            code=ErrorCode.SOURCE_UNREADABLE,
            message=f"Couldn't open input file {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class OutputError(DocPlaneError):
    """Errors writing generated output."""

    @classmethod
    def cannot_create(cls, path: str, reason: str) -> "OutputError":
        return cls(
            code=ErrorCode.OUTPUT_CANNOT_CREATE,
            message=f"Couldn't create output {path}: {reason}",
            details={"path": path, "reason": reason},
        )
