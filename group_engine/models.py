"""Plain data types shared by the grouping engine.

Every type here is a dataclass without any Flask or SQLAlchemy dependency so the
engine can run in a notebook, a CLI script, or inside the web application.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Sequence

SKILL_LEVELS = ("emerging", "developing", "proficient", "advanced")
DEFAULT_SKILL_LEVEL = "developing"

WORKING_STYLES = ("independent", "collaborative", "guided", "needs-support")

GROUP_TYPES = ("academic", "therapy", "behavior", "social", "mixed")

GROUPING_TYPES = ("whole-class", "small-groups", "individual", "flexible")


class GroupingError(ValueError):
    """Raised when the engine is asked to do something it cannot represent."""


class GroupLimitReached(GroupingError):
    """Raised when creating a group would exceed the registry's group cap."""


class InvariantViolation(GroupingError):
    """Raised when membership no longer partitions the roster."""

    def __init__(self, problems: Sequence[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


def skill_index(level: Optional[str]) -> int:
    """Position of ``level`` on the ordered skill scale.

    Missing or unrecognised levels count as ``developing``.
    """

    if level in SKILL_LEVELS:
        return SKILL_LEVELS.index(level)
    return SKILL_LEVELS.index(DEFAULT_SKILL_LEVEL)


@dataclass(frozen=True)
class Student:
    """A roster entry as the engine sees it."""

    id: str
    name: str
    skill_level: Optional[str] = None
    working_style: Optional[str] = None
    preferred_partners: FrozenSet[str] = frozenset()
    avoid_partners: FrozenSet[str] = frozenset()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Student id cannot be empty")
        if self.working_style is not None and self.working_style not in WORKING_STYLES:
            raise ValueError(f"Unknown working style: {self.working_style}")
        object.__setattr__(self, "preferred_partners", frozenset(self.preferred_partners or ()))
        object.__setattr__(self, "avoid_partners", frozenset(self.avoid_partners or ()))


@dataclass(frozen=True)
class Staff:
    id: str
    name: str
    role: str = ""
    photo: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Staff id cannot be empty")


@dataclass
class Group:
    """A student group inside one activity's assignment.

    ``student_ids`` keeps insertion order but never holds duplicates; the
    registry is the only thing that should change it.
    """

    id: str
    name: str
    color: str
    student_ids: List[str] = field(default_factory=list)
    staff_id: Optional[str] = None
    label: Optional[str] = None
    description: Optional[str] = None
    group_type: str = "mixed"
    min_size: int = 1
    max_size: int = 6
    target_skills: List[str] = field(default_factory=list)
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Group id cannot be empty")
        if self.group_type not in GROUP_TYPES:
            raise ValueError(f"Unknown group type: {self.group_type}")
        # Collapse duplicates while keeping first-seen order.
        self.student_ids = list(dict.fromkeys(self.student_ids))
        self.target_skills = list(self.target_skills)

    @property
    def size(self) -> int:
        return len(self.student_ids)

    def has_member(self, student_id: str) -> bool:
        return student_id in self.student_ids


@dataclass(frozen=True)
class GroupTemplate:
    """A reusable archetype used to stamp out new groups."""

    id: str
    name: str
    description: str
    group_type: str
    suggested_size: int
    color: str
    target_skills: Sequence[str] = ()

    def __post_init__(self) -> None:
        if self.group_type not in GROUP_TYPES:
            raise ValueError(f"Unknown group type: {self.group_type}")
        if self.suggested_size < 1:
            raise ValueError("suggested_size must be at least 1")
        object.__setattr__(self, "target_skills", tuple(self.target_skills))


@dataclass
class GroupAssignment:
    """Per-group record consumed by the shared display."""

    id: str
    group_name: str
    color: str
    student_ids: List[str] = field(default_factory=list)
    staff_id: Optional[str] = None
    staff_member: Optional[Dict[str, Optional[str]]] = None
    location: str = "Classroom"
    notes: str = ""
    group_type: Optional[str] = None
    target_skills: List[str] = field(default_factory=list)


@dataclass
class Assignment:
    """What an activity stores about who works with whom."""

    is_whole_class: bool = True
    grouping_type: str = "whole-class"
    groups: List[Group] = field(default_factory=list)
    group_ids: List[str] = field(default_factory=list)
    staff_ids: List[str] = field(default_factory=list)
    notes: str = ""
    group_assignments: List[GroupAssignment] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.grouping_type not in GROUPING_TYPES:
            raise ValueError(f"Unknown grouping type: {self.grouping_type}")
