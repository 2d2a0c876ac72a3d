"""Source discovery and change detection.

A project is a root directory, the input directories beneath it and an
output directory.  Between runs a small JSON state file in the output
directory records a SHA-256 digest per source file, so a build knows which
files are new, changed, unchanged or gone, along with what each file added
to the symbol table.
"""

from __future__ import annotations

import hashlib
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from docplane.config.constants import STATE_FILE_NAME, STATE_FORMAT_VERSION
from docplane.config.models import ProjectConfig
from docplane.core.errors import OutputError, SourceError
from docplane.core.languages import LanguageDescriptor, LanguageRegistry
from docplane.core.logging import get_logger
from docplane.parse.topics import TopicType

log = get_logger(__name__)


# =============================================================================
# State file
# =============================================================================


class DefinitionState(BaseModel):
    symbol: tuple[str, ...]
    type: TopicType
    prototype: str | None = None
    summary: str | None = None


class ReferenceState(BaseModel):
    symbol: tuple[str, ...]
    scope: tuple[str, ...] | None = None
    using: tuple[tuple[str, ...], ...] = ()


class FileState(BaseModel):
    """What the last build knew about one source file.

    ``symbols``, ``references`` and ``parents`` are what the file contributed
    to the symbol table, so an unchanged file can be put back without
    parsing it.  Each parent entry is a class and one base it declares.
    """

    digest: str
    title: str = ""
    links: str = ""
    symbols: list[DefinitionState] = Field(default_factory=list)
    references: list[ReferenceState] = Field(default_factory=list)
    parents: list[tuple[tuple[str, ...], tuple[str, ...]]] = Field(default_factory=list)


class ProjectState(BaseModel):
    version: int = STATE_FORMAT_VERSION
    files: dict[str, FileState] = Field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A discovered source file.  ``relative`` uses forward slashes."""

    relative: str
    path: Path
    language: LanguageDescriptor
    digest: str


@dataclass(slots=True)
class ChangeSet:
    new: list[SourceFile] = field(default_factory=list)
    changed: list[SourceFile] = field(default_factory=list)
    unchanged: list[SourceFile] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    @property
    def to_parse(self) -> list[SourceFile]:
        return [*self.new, *self.changed]

    @property
    def has_changes(self) -> bool:
        return bool(self.new or self.changed or self.deleted)


def file_digest(path: Path) -> str:
    """SHA-256 of a file's bytes.

    Raises:
        SourceError: If the file can't be read.
    """
    sha256 = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
    except OSError as e:
        raise SourceError.unreadable(str(path), e.strerror or str(e)) from e
    return sha256.hexdigest()


# =============================================================================
# Project
# =============================================================================


class Project:
    """A documentation project rooted at ``root``."""

    def __init__(
        self, root: Path, config: ProjectConfig, registry: LanguageRegistry
    ) -> None:
        self.root = root.resolve()
        self.config = config
        self.registry = registry

    @property
    def output_dir(self) -> Path:
        return (self.root / self.config.output).resolve()

    @property
    def state_path(self) -> Path:
        return self.output_dir / STATE_FILE_NAME

    def input_dirs(self) -> list[Path]:
        if not self.config.inputs:
            return [self.root]
        return [(self.root / entry).resolve() for entry in self.config.inputs]

    def discover(self) -> list[SourceFile]:
        """Find every source file in a known language, sorted by relative path.

        Excluded directory names and the output directory are pruned.  Files
        larger than ``max_file_size_mb`` are skipped.
        """
        excluded = set(self.config.excluded_dirs)
        output_dir = self.output_dir
        max_bytes = self.config.max_file_size_mb * 1024 * 1024
        found: dict[str, SourceFile] = {}

        for input_dir in self.input_dirs():
            if not input_dir.is_dir():
                log.warning("input_dir_missing", path=str(input_dir))
                continue
            for dirpath, dirnames, filenames in os.walk(input_dir):
                current = Path(dirpath)
                dirnames[:] = sorted(
                    d for d in dirnames if d not in excluded and current / d != output_dir
                )
                for filename in filenames:
                    path = current / filename
                    relative = path.relative_to(self.root).as_posix()
                    if relative in found:
                        continue
                    try:
                        size = path.stat().st_size
                    except OSError:
                        continue
                    if size > max_bytes:
                        log.info("file_too_large", file=relative, size=size)
                        continue
                    language = self.registry.language_of(path)
                    if language is None:
                        continue
                    found[relative] = SourceFile(relative, path, language, file_digest(path))

        log.debug("files_discovered", count=len(found))
        return [found[relative] for relative in sorted(found)]

    # =========================================================================
    # State
    # =========================================================================

    def load_state(self) -> ProjectState:
        """Read the state file, or start fresh.

        A state file that can't be understood is moved aside to ``.bak``
        rather than overwritten.
        """
        path = self.state_path
        if not path.exists():
            return ProjectState()
        try:
            state = ProjectState.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, UnicodeDecodeError) as e:
            backup = path.with_name(path.name + ".bak")
            log.warning("state_file_corrupt", path=str(path), backup=str(backup), error=str(e))
            shutil.copyfile(path, backup)
            return ProjectState()
        if state.version != STATE_FORMAT_VERSION:
            log.info("state_file_outdated", version=state.version)
            return ProjectState()
        return state

    def save_state(self, state: ProjectState) -> None:
        """Write the state file atomically.

        Raises:
            OutputError: If the output directory can't be written.
        """
        path = self.state_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".state-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(state.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except OSError as e:
            raise OutputError.cannot_create(str(path), e.strerror or str(e)) from e

    def changes(
        self, files: list[SourceFile], state: ProjectState, *, rebuild: bool = False
    ) -> ChangeSet:
        """Compare discovered files against the last build's state."""
        result = ChangeSet()
        seen = set()
        for source in files:
            seen.add(source.relative)
            previous = state.files.get(source.relative)
            if previous is None:
                result.new.append(source)
            elif rebuild or previous.digest != source.digest:
                result.changed.append(source)
            else:
                result.unchanged.append(source)
        result.deleted = sorted(set(state.files) - seen)
        log.debug(
            "changes_detected",
            new=len(result.new),
            changed=len(result.changed),
            unchanged=len(result.unchanged),
            deleted=len(result.deleted),
        )
        return result
