"""In-memory group registry for one activity's assignment.

The registry is the only place group membership changes. The unassigned pool is
never stored: it is recomputed from the roster and the current memberships every
time it is asked for, so deleting a group or moving a student can never leave a
stale copy behind.
"""
from __future__ import annotations

import random
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .models import (
    GROUP_TYPES,
    Group,
    GroupingError,
    GroupLimitReached,
    GroupTemplate,
    InvariantViolation,
    Student,
)

CUSTOM_GROUP_COLORS = (
    "#3498db", "#e74c3c", "#2ecc71", "#f39c12", "#9b59b6",
    "#e67e22", "#1abc9c", "#34495e", "#e91e63", "#ff5722",
    "#795548", "#607d8b", "#ff9800", "#4caf50", "#2196f3",
)

CUSTOM_GROUP_MIN_SIZE = 1
CUSTOM_GROUP_MAX_SIZE = 6

EDITABLE_FIELDS = frozenset({
    "name",
    "label",
    "description",
    "color",
    "staff_id",
    "group_type",
    "min_size",
    "max_size",
    "target_skills",
    "location",
})


def _new_group_id() -> str:
    return f"group-{uuid.uuid4().hex[:12]}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GroupRegistry:
    """Authoritative collection of groups for one editing session.

    Args:
        roster: Students eligible for this activity, in display order.
        groups: Existing groups, e.g. restored from a saved assignment.
        id_factory: Callable returning fresh group ids.
        clock: Callable returning the current time for created/updated stamps.
        rng: Random source used to pick custom group colors.
        max_groups: Optional cap on the number of groups.
    """

    def __init__(
        self,
        roster: Sequence[Student],
        groups: Optional[Iterable[Group]] = None,
        *,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
        max_groups: Optional[int] = None,
    ) -> None:
        self._roster: List[Student] = list(roster)
        self._students: Dict[str, Student] = {student.id: student for student in self._roster}
        self._groups: List[Group] = list(groups or [])
        self._id_factory = id_factory or _new_group_id
        self._clock = clock or _utc_now
        self._rng = rng or random.Random()
        self.max_groups = max_groups

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def roster(self) -> List[Student]:
        return list(self._roster)

    @property
    def groups(self) -> List[Group]:
        return list(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self):
        return iter(list(self._groups))

    def get(self, group_id: Optional[str]) -> Optional[Group]:
        if not group_id:
            return None
        for group in self._groups:
            if group.id == group_id:
                return group
        return None

    def student(self, student_id: str) -> Optional[Student]:
        return self._students.get(student_id)

    def group_of(self, student_id: str) -> Optional[Group]:
        """Return the group currently holding ``student_id``, if any."""
        for group in self._groups:
            if group.has_member(student_id):
                return group
        return None

    def list_by_type(self, group_type: str) -> List[Group]:
        return [group for group in self._groups if group.group_type == group_type]

    def assigned_ids(self) -> List[str]:
        ids: List[str] = []
        for group in self._groups:
            ids.extend(group.student_ids)
        return ids

    def unassigned_pool(self) -> List[Student]:
        """Roster members in no group, in roster order."""
        assigned = set(self.assigned_ids())
        return [student for student in self._roster if student.id not in assigned]

    def unassigned_ids(self) -> List[str]:
        return [student.id for student in self.unassigned_pool()]

    def search_unassigned(self, term: str) -> List[Student]:
        needle = (term or "").strip().lower()
        pool = self.unassigned_pool()
        if not needle:
            return pool
        return [student for student in pool if needle in student.name.lower()]

    # ------------------------------------------------------------------
    # Group lifecycle
    # ------------------------------------------------------------------

    def _ensure_capacity(self) -> None:
        if self.max_groups is not None and len(self._groups) >= self.max_groups:
            raise GroupLimitReached(f"An activity can have at most {self.max_groups} groups")

    def _add(self, group: Group) -> Group:
        self._groups.append(group)
        return group

    def create_from_template(self, template: GroupTemplate) -> Group:
        """Stamp out an empty group from ``template``.

        Size bounds are derived from the template's suggested size: two extra
        seats above it and one below it, never less than one.
        """

        self._ensure_capacity()
        now = self._clock()
        return self._add(Group(
            id=self._id_factory(),
            name=template.name,
            label=template.description,
            description=template.description,
            color=template.color,
            group_type=template.group_type,
            target_skills=list(template.target_skills),
            max_size=template.suggested_size + 2,
            min_size=max(1, template.suggested_size - 1),
            created_at=now,
            updated_at=now,
        ))

    def create_custom(self) -> Group:
        self._ensure_capacity()
        number = len(self._groups) + 1
        now = self._clock()
        return self._add(Group(
            id=self._id_factory(),
            name=f"Group {number}",
            label=f"Custom Group {number}",
            description="Custom group created for specific needs",
            color=self._rng.choice(CUSTOM_GROUP_COLORS),
            group_type="mixed",
            min_size=CUSTOM_GROUP_MIN_SIZE,
            max_size=CUSTOM_GROUP_MAX_SIZE,
            created_at=now,
            updated_at=now,
        ))

    def edit(self, group_id: str, **changes) -> Optional[Group]:
        """Merge ``changes`` into a group and bump its ``updated_at``.

        Renaming, recoloring and (re)assigning the lead staff member all go
        through here. Membership is deliberately not editable: use :meth:`move`.
        """

        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise GroupingError(f"Cannot edit group fields: {', '.join(sorted(unknown))}")
        if "group_type" in changes and changes["group_type"] not in GROUP_TYPES:
            raise GroupingError(f"Unknown group type: {changes['group_type']}")

        group = self.get(group_id)
        if group is None:
            return None

        for key, value in changes.items():
            if key == "target_skills":
                value = list(value or [])
            setattr(group, key, value)
        group.updated_at = self._clock()
        return group

    def delete(self, group_id: str) -> Optional[Group]:
        """Remove a group; its members fall back into the unassigned pool."""
        group = self.get(group_id)
        if group is None:
            return None
        self._groups = [existing for existing in self._groups if existing.id != group_id]
        return group

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def move(self, student_id: str, to_group_id: Optional[str] = None) -> Optional[Group]:
        """Move a student into ``to_group_id`` or back to the unassigned pool.

        The student is first stripped from every group, even ones the caller
        did not expect it to be in. The new membership lists are built before
        any group is touched and then swapped in together.

        Returns:
            The destination group, or ``None`` when the student ends unassigned
            (including when the id is not on the roster).
        """

        if student_id not in self._students:
            return None

        target = self.get(to_group_id)
        updated: List[List[str]] = []
        for group in self._groups:
            members = [member for member in group.student_ids if member != student_id]
            if group is target:
                members.append(student_id)
            updated.append(members)

        now = self._clock()
        for group, members in zip(self._groups, updated):
            if members != group.student_ids:
                group.student_ids = members
                group.updated_at = now
        return target

    def replace_memberships(self, memberships: Sequence[List[str]]) -> None:
        """Swap in one membership list per group, in registry order.

        Used by bulk operations (balancing, round-robin) that compute the whole
        layout up front.
        """

        if len(memberships) != len(self._groups):
            raise GroupingError("Expected one membership list per group")
        now = self._clock()
        for group, members in zip(self._groups, memberships):
            members = list(dict.fromkeys(members))
            if members != group.student_ids:
                group.student_ids = members
                group.updated_at = now

    def clear_memberships(self, include_staff: bool = False) -> None:
        self.replace_memberships([[] for _ in self._groups])
        if include_staff:
            for group in self._groups:
                if group.staff_id:
                    group.staff_id = None
                    group.updated_at = self._clock()

    def distribute_round_robin(self) -> None:
        """Deal every roster student out in turn: student i joins group i mod K."""
        if not self._groups:
            return
        memberships: List[List[str]] = [[] for _ in self._groups]
        for index, student in enumerate(self._roster):
            memberships[index % len(self._groups)].append(student.id)
        self.replace_memberships(memberships)

    def balance(self) -> List[int]:
        from .balancer import balance_groups

        return balance_groups(self)

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def validate(self) -> List[str]:
        problems: List[str] = []
        seen_groups = set()
        owner: Dict[str, str] = {}
        for group in self._groups:
            if group.id in seen_groups:
                problems.append(f"Duplicate group id {group.id}")
            seen_groups.add(group.id)
            for student_id in group.student_ids:
                if student_id not in self._students:
                    problems.append(f"Student {student_id} in {group.id} is not on the roster")
                if student_id in owner and owner[student_id] != group.id:
                    problems.append(
                        f"Student {student_id} is in both {owner[student_id]} and {group.id}"
                    )
                owner.setdefault(student_id, group.id)
        return problems

    def check_invariants(self) -> None:
        problems = self.validate()
        if problems:
            raise InvariantViolation(problems)
