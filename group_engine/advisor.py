"""Compatibility-based groupmate suggestions.

This is a filter, not a ranking. For a given student every candidate in the
unassigned pool is run through a fixed list of rules and the first rule that
applies decides whether the candidate is suggested.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence, Tuple

from .models import Student, skill_index

if TYPE_CHECKING:
    from .registry import GroupRegistry

MAX_SKILL_GAP = 1


def is_compatible(student: Student, candidate: Student) -> bool:
    """Decide whether ``candidate`` is a good groupmate for ``student``.

    Rules, first match wins:

    1. the candidate is one of the student's preferred partners: yes
    2. the candidate is one of the student's avoided partners: no
    3. both work collaboratively: yes
    4. otherwise: yes when skill levels are at most one step apart
    """

    if candidate.id in student.preferred_partners:
        return True
    if candidate.id in student.avoid_partners:
        return False
    if student.working_style == "collaborative" and candidate.working_style == "collaborative":
        return True
    return abs(skill_index(student.skill_level) - skill_index(candidate.skill_level)) <= MAX_SKILL_GAP


def suggest_groupmates(student: Student, registry: "GroupRegistry") -> List[Student]:
    """Unassigned students compatible with ``student``, in roster order."""
    return [
        candidate
        for candidate in registry.unassigned_pool()
        if candidate.id != student.id and is_compatible(student, candidate)
    ]


def find_preference_conflicts(roster: Sequence[Student]) -> List[Tuple[str, str, str]]:
    """List partner preferences that contradict each other.

    Returns ``(student_id, partner_id, reason)`` tuples where ``reason`` is
    ``"self"`` when the same student both prefers and avoids the partner, or
    ``"mutual"`` when the student prefers a partner who avoids them. The
    suggestion rules still let the preference win; this only surfaces the cases
    for a teacher to look at.
    """

    by_id = {student.id: student for student in roster}
    conflicts: List[Tuple[str, str, str]] = []
    for student in roster:
        for partner_id in sorted(student.preferred_partners & student.avoid_partners):
            conflicts.append((student.id, partner_id, "self"))
        for partner_id in sorted(student.preferred_partners):
            partner = by_id.get(partner_id)
            if partner is not None and student.id in partner.avoid_partners:
                conflicts.append((student.id, partner_id, "mutual"))
    return conflicts
