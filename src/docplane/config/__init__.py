"""Config module exports."""

from docplane.config.loader import DocPlaneSettings, load_config
from docplane.config.models import (
    DocPlaneConfig,
    LanguageOverride,
    LoggingConfig,
    LogOutputConfig,
    ProjectConfig,
)

__all__ = [
    "load_config",
    "DocPlaneConfig",
    "DocPlaneSettings",
    "LanguageOverride",
    "LoggingConfig",
    "LogOutputConfig",
    "ProjectConfig",
]
