"""One activity's in-progress assignment: registry plus mode, staff and notes."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .commands import (
    BalanceGroupsCommand,
    Command,
    DragSession,
    MoveStudentCommand,
    apply_command,
    normalise_drop_target,
)
from .models import GROUPING_TYPES, Assignment, Group, GroupingError, GroupTemplate, Staff, Student
from .persistence import group_to_record, rehydrate, snapshot
from .registry import GroupRegistry


class EditingSession:
    """Everything the assignment editor changes before the user saves.

    Switching to whole-class mode empties every group and clears lead staff,
    because in that mode the activity has no sub-groups. Moving a student into a
    group, balancing, or giving a group a lead while still in whole-class mode
    switches the session to small groups.
    """

    def __init__(
        self,
        registry: GroupRegistry,
        *,
        grouping_type: str = "whole-class",
        staff_ids: Optional[Sequence[str]] = None,
        notes: str = "",
    ) -> None:
        if grouping_type not in GROUPING_TYPES:
            raise GroupingError(f"Unknown grouping type: {grouping_type}")
        self.registry = registry
        self.grouping_type = grouping_type
        self.staff_ids: List[str] = list(dict.fromkeys(staff_ids or []))
        self.notes = notes
        self.drag = DragSession(registry)

    @classmethod
    def from_assignment(
        cls,
        assignment: Assignment,
        roster: Sequence[Student],
        **registry_options: Any,
    ) -> "EditingSession":
        return cls(
            rehydrate(assignment, roster, **registry_options),
            grouping_type=assignment.grouping_type,
            staff_ids=assignment.staff_ids,
            notes=assignment.notes,
        )

    @property
    def is_whole_class(self) -> bool:
        return self.grouping_type == "whole-class"

    # Mode -----------------------------------------------------------------

    def set_whole_class(self, whole_class: bool) -> None:
        if whole_class:
            self.registry.clear_memberships(include_staff=True)
            self.grouping_type = "whole-class"
        elif self.is_whole_class:
            self.grouping_type = "small-groups"

    def set_grouping_type(self, grouping_type: str) -> None:
        if grouping_type not in GROUPING_TYPES:
            raise GroupingError(f"Unknown grouping type: {grouping_type}")
        if grouping_type == "whole-class":
            self.set_whole_class(True)
        else:
            self.grouping_type = grouping_type

    def _leave_whole_class(self) -> None:
        if self.is_whole_class:
            self.grouping_type = "small-groups"

    # Groups ---------------------------------------------------------------

    def create_from_template(self, template: GroupTemplate) -> Group:
        return self.registry.create_from_template(template)

    def create_custom(self) -> Group:
        return self.registry.create_custom()

    def apply(self, command: Command):
        if isinstance(command, MoveStudentCommand) and command.to_group_id:
            if self.registry.get(command.to_group_id) is not None:
                self._leave_whole_class()
        return apply_command(self.registry, command)

    def balance(self) -> List[int]:
        sizes = self.apply(BalanceGroupsCommand())
        if sizes:
            self._leave_whole_class()
        return sizes

    def distribute_round_robin(self) -> None:
        if not len(self.registry):
            return
        self.registry.distribute_round_robin()
        self.grouping_type = "small-groups"

    def clear_all(self) -> None:
        self.registry.clear_memberships(include_staff=True)
        self.grouping_type = "individual"

    # Drag and drop --------------------------------------------------------

    def drop(self, target: Optional[str]) -> Optional[MoveStudentCommand]:
        """Drop the dragged student on ``target`` and always end the drag."""
        try:
            if self.drag.payload is None:
                return None
            command = MoveStudentCommand(self.drag.payload, normalise_drop_target(target))
            self.apply(command)
            return command
        finally:
            self.drag.end()

    # Staff ----------------------------------------------------------------

    def select_staff(self, staff_id: str, selected: bool = True) -> None:
        if selected and staff_id not in self.staff_ids:
            self.staff_ids.append(staff_id)
        elif not selected:
            self.staff_ids = [existing for existing in self.staff_ids if existing != staff_id]

    def assign_lead(self, group_id: str, staff_id: str) -> Optional[Group]:
        group = self.registry.edit(group_id, staff_id=staff_id)
        if group is not None:
            self.select_staff(staff_id)
            self._leave_whole_class()
        return group

    def remove_lead(self, group_id: str) -> Optional[Group]:
        """Clear a group's lead; the staff member stays selected for the activity."""
        return self.registry.edit(group_id, staff_id=None)

    # Output ---------------------------------------------------------------

    def snapshot(self, staff: Optional[Sequence[Staff]] = None) -> Assignment:
        return snapshot(
            self.registry,
            self.is_whole_class,
            self.staff_ids,
            notes=self.notes,
            grouping_type=self.grouping_type,
            staff=staff,
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "isWholeClass": self.is_whole_class,
            "groupingType": self.grouping_type,
            "staffIds": list(self.staff_ids),
            "notes": self.notes,
            "groups": [group_to_record(group) for group in self.registry.groups],
            "unassigned": self.registry.unassigned_ids(),
            "dragging": self.drag.payload,
        }
