"""Command values, the reducer that applies them, and the drag session.

The interaction layer never mutates a registry directly. It builds a command
value and hands it to :func:`apply_command`, which makes every mutation testable
without simulating pointer events.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from .models import Group, GroupingError
from .registry import GroupRegistry

UNASSIGNED = "unassigned"


@dataclass(frozen=True)
class MoveStudentCommand:
    student_id: str
    to_group_id: Optional[str] = None


@dataclass(frozen=True)
class EditGroupCommand:
    group_id: str
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeleteGroupCommand:
    """Delete is destructive, so it only runs once the user has confirmed."""

    group_id: str
    confirmed: bool = False


@dataclass(frozen=True)
class BalanceGroupsCommand:
    pass


Command = Union[MoveStudentCommand, EditGroupCommand, DeleteGroupCommand, BalanceGroupsCommand]


def apply_command(registry: GroupRegistry, command: Command) -> Union[Group, List[int], None]:
    """Apply one command to ``registry`` and return what the operation returned."""

    if isinstance(command, MoveStudentCommand):
        return registry.move(command.student_id, command.to_group_id)
    if isinstance(command, EditGroupCommand):
        return registry.edit(command.group_id, **command.changes)
    if isinstance(command, DeleteGroupCommand):
        if not command.confirmed:
            return None
        return registry.delete(command.group_id)
    if isinstance(command, BalanceGroupsCommand):
        return registry.balance()
    raise GroupingError(f"Unsupported command: {type(command).__name__}")


def normalise_drop_target(target: Optional[str]) -> Optional[str]:
    if target in (None, "", UNASSIGNED):
        return None
    return target


class DragSession:
    """Transient drag-and-drop state for one editing session.

    Phases: ``start`` captures the dragged student, ``allows_drop`` answers the
    drag-over check, ``drop`` issues the move, ``end`` clears the payload. ``end``
    must run on every exit path; :meth:`dragging` guarantees that.
    """

    def __init__(self, registry: GroupRegistry) -> None:
        self.registry = registry
        self.payload: Optional[str] = None
        self.hover_target: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.payload is not None

    def start(self, student_id: str) -> None:
        self.payload = student_id
        self.hover_target = None

    def allows_drop(self, target: Optional[str]) -> bool:
        """Drag-over check: the unassigned pool or any existing group."""
        if self.payload is None:
            return False
        group_id = normalise_drop_target(target)
        allowed = group_id is None or self.registry.get(group_id) is not None
        if allowed:
            self.hover_target = target or UNASSIGNED
        return allowed

    def drop(self, target: Optional[str]) -> Optional[MoveStudentCommand]:
        """Turn the drop into a move. Without a payload nothing happens."""
        if self.payload is None:
            return None
        command = MoveStudentCommand(self.payload, normalise_drop_target(target))
        apply_command(self.registry, command)
        return command

    def end(self) -> None:
        self.payload = None
        self.hover_target = None

    @contextmanager
    def dragging(self, student_id: str) -> Iterator["DragSession"]:
        self.start(student_id)
        try:
            yield self
        finally:
            self.end()
