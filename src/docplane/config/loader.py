"""Loading DocPlane configuration.

Settings are layered, later layers winning:

- built-in defaults from ``docplane.config.models``
- the global file ``~/.config/docplane/config.yaml``
- the project file ``<project>/.docplane/config.yaml``
- ``DOCPLANE__SECTION__KEY`` environment variables
- keyword arguments to ``load_config``

Mappings merge key by key.  The ``languages`` list is the exception: global
and project entries are concatenated so a project can alter a language the
global file added.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from docplane.config.constants import CONFIG_DIR_NAME
from docplane.config.models import (
    DocPlaneConfig,
    LanguageOverride,
    LoggingConfig,
    ProjectConfig,
)
from docplane.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/docplane/config.yaml").expanduser()

# Lists under these keys accumulate across files instead of replacing
_ACCUMULATING_KEYS = frozenset({"languages"})


def _load_yaml(path: Path) -> dict[str, Any]:
    """Read one YAML config file; a missing file is an empty config.

    Raises:
        ConfigError: If the file isn't valid YAML or isn't a mapping.
    """
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        elif key in _ACCUMULATING_KEYS and isinstance(current, list) and isinstance(value, list):
            merged[key] = [*current, *value]
        else:
            merged[key] = value
    return merged


class _YamlSource(PydanticBaseSettingsSource):
    """Feeds already-merged YAML data to pydantic-settings."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._data


def _settings_class(data: dict[str, Any]) -> type[BaseSettings]:
    """A settings class whose lowest-precedence source is ``data``."""

    class DocPlaneSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="DOCPLANE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        project: ProjectConfig = ProjectConfig()
        languages: list[LanguageOverride] = []

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, env_settings, _YamlSource(settings_cls, data))

    return DocPlaneSettings


DocPlaneSettings = _settings_class({})


def load_config(project_root: Path | None = None, **kwargs: Any) -> DocPlaneConfig:
    """Resolve the configuration for the project at ``project_root``.

    ``project_root`` defaults to the current directory.  ``kwargs`` are
    top-level sections (``project=``, ``logging=``) that override every
    other layer.

    Raises:
        ConfigError: If a config file can't be parsed or a value is invalid.
    """
    root = project_root or Path.cwd()
    data = _deep_merge(
        _load_yaml(GLOBAL_CONFIG_PATH),
        _load_yaml(root / CONFIG_DIR_NAME / "config.yaml"),
    )

    try:
        settings = _settings_class(data)(**kwargs)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(location, first.get("input"), first["msg"]) from e
    return DocPlaneConfig.model_validate(settings.model_dump())
