"""Scope tracking for the statement extractors."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from docplane.parse.symbols import Symbol


class Protection(StrEnum):
    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"


@dataclass(slots=True)
class ScopeFrame:
    """One open block.

    ``closing_symbol`` is None only for the file-level frame, which is never
    popped.
    """

    closing_symbol: str | None
    namespace: Symbol | None = None
    package: Symbol | None = None
    protection: Protection | None = None


@dataclass(frozen=True, slots=True)
class ScopeChange:
    """The package in effect from ``line_number`` on."""

    line_number: int
    scope: Symbol | None


class ScopeStack:
    """Stack of open scopes plus a record of every package change.

    Values left unset when a frame is pushed are inherited from the frame
    below it.  The record lets documentation topics found outside the token
    walk be assigned the package that was in effect at their line.
    """

    def __init__(self) -> None:
        self._frames: list[ScopeFrame] = [ScopeFrame(None)]
        self.record: list[ScopeChange] = []

    def __len__(self) -> int:
        """Number of open scopes, not counting the file-level frame."""
        return len(self._frames) - 1

    @property
    def current(self) -> ScopeFrame:
        return self._frames[-1]

    @property
    def closing_symbol(self) -> str | None:
        return self.current.closing_symbol

    @property
    def package(self) -> Symbol | None:
        return self.current.package

    @property
    def namespace(self) -> Symbol | None:
        return self.current.namespace

    @property
    def protection(self) -> Protection | None:
        return self.current.protection

    def push(
        self,
        closing_symbol: str,
        line_number: int,
        *,
        package: Symbol | None = None,
        namespace: Symbol | None = None,
        protection: Protection | None = None,
    ) -> ScopeFrame:
        below = self.current
        frame = ScopeFrame(
            closing_symbol,
            namespace=namespace if namespace is not None else below.namespace,
            package=package if package is not None else below.package,
            protection=protection if protection is not None else below.protection,
        )
        self._frames.append(frame)
        if frame.package != below.package:
            self._record(line_number, frame.package)
        return frame

    def pop(self, line_number: int) -> ScopeFrame | None:
        """Close the innermost scope.  The file-level frame is never popped."""
        if len(self._frames) == 1:
            return None
        frame = self._frames.pop()
        if frame.package != self.current.package:
            self._record(line_number, self.current.package)
        return frame

    def set_package(self, package: Symbol | None, line_number: int) -> None:
        """Change the package of the innermost scope, e.g. after ``package Foo;``."""
        if package != self.current.package:
            self.current.package = package
            self._record(line_number, package)

    def clear(self) -> None:
        del self._frames[1:]

    def _record(self, line_number: int, scope: Symbol | None) -> None:
        # Several changes on one line collapse into the last one
        if self.record and self.record[-1].line_number == line_number:
            self.record[-1] = ScopeChange(line_number, scope)
        else:
            self.record.append(ScopeChange(line_number, scope))
