"""Interfaces between the curve engine and the host document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Sequence

from curvepen.commands import Command


class DocumentStore(Protocol):
    """Document/store collaborator owned by the host application.

    The store persists paths and keeps the undo history; the curve engine only
    asks it to take snapshots and to persist command sequences.
    """

    def push_history_snapshot(self) -> None:
        """Capture the current document state for undo, called before a mutation."""

    def materialize_path(self, commands: Sequence[Command]) -> str:
        """Persist a finished authored subpath as a new path and return the path id."""

    def replace_subpath_commands(self, subpath_id: str, commands: Sequence[Command]) -> None:
        """Replace all commands of an existing subpath."""


@dataclass(frozen=True)
class Modifiers:
    """Keyboard modifiers held during a pointer event.

    Attributes:
        alt: The point-type toggle modifier.
        shift: Held shift key.
        ctrl: Held control/command key.
    """

    alt: bool = False
    shift: bool = False
    ctrl: bool = False


NO_MODIFIERS = Modifiers()


class InMemoryDocumentStore:
    """Minimal DocumentStore keeping paths in dictionaries.

    Used by tests and scripts that drive the engine without a host application.
    """

    def __init__(self):
        self.paths: dict = {}
        self.subpaths: dict = {}
        self.history: List[dict] = []
        self._next_id = 1

    def push_history_snapshot(self) -> None:
        self.history.append({key: list(value) for key, value in self.subpaths.items()})

    def materialize_path(self, commands: Sequence[Command]) -> str:
        path_id = f"path-{self._next_id}"
        subpath_id = f"subpath-{self._next_id}"
        self._next_id += 1
        self.subpaths[subpath_id] = list(commands)
        self.paths[path_id] = [subpath_id]
        return path_id

    def replace_subpath_commands(self, subpath_id: str, commands: Sequence[Command]) -> None:
        if subpath_id not in self.subpaths:
            raise KeyError(f"Unknown subpath '{subpath_id}'")
        self.subpaths[subpath_id] = list(commands)
