"""Even redistribution of every student across the existing groups."""
from __future__ import annotations

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from .registry import GroupRegistry


def balanced_sizes(total_students: int, group_count: int) -> List[int]:
    """Return target sizes: ``floor(N/K)`` each, plus one for the first ``N mod K``."""

    if group_count <= 0:
        return []
    base, remainder = divmod(total_students, group_count)
    return [base + (1 if index < remainder else 0) for index in range(group_count)]


def balance_groups(registry: "GroupRegistry") -> List[int]:
    """Redistribute all students evenly across ``registry``'s groups.

    Students are collected group by group in registry order, followed by the
    unassigned pool in roster order, and dealt out in that order: group 0 is
    filled to its size first, then group 1, and so on.

    Returns:
        The resulting group sizes in registry order. Empty when there are no
        groups, in which case nothing changes.
    """

    groups = registry.groups
    if not groups:
        return []

    ordered: List[str] = []
    for group in groups:
        ordered.extend(group.student_ids)
    ordered.extend(registry.unassigned_ids())

    memberships: List[List[str]] = []
    cursor = 0
    for size in balanced_sizes(len(ordered), len(groups)):
        memberships.append(ordered[cursor:cursor + size])
        cursor += size

    registry.replace_memberships(memberships)
    return [len(members) for members in memberships]
