"""Group assignment and composition engine.

This package partitions a classroom roster into student groups for one
activity, balances and suggests groupings, and converts the result to and from
the stored assignment record. It is intentionally decoupled from Flask and
SQLAlchemy so it can be reused in scripts or notebooks.
"""

from .advisor import find_preference_conflicts, is_compatible, suggest_groupmates
from .balancer import balance_groups, balanced_sizes
from .commands import (
    BalanceGroupsCommand,
    DeleteGroupCommand,
    DragSession,
    EditGroupCommand,
    MoveStudentCommand,
    apply_command,
)
from .display import build_display
from .models import (
    Assignment,
    Group,
    GroupAssignment,
    GroupingError,
    GroupLimitReached,
    GroupTemplate,
    InvariantViolation,
    Staff,
    Student,
)
from .persistence import (
    assignment_from_record,
    assignment_to_record,
    rehydrate,
    snapshot,
)
from .registry import GroupRegistry
from .session import EditingSession
from .templates import TEMPLATE_CATALOG, get_template, instantiate

__all__ = [
    "Assignment",
    "BalanceGroupsCommand",
    "DeleteGroupCommand",
    "DragSession",
    "EditGroupCommand",
    "EditingSession",
    "Group",
    "GroupAssignment",
    "GroupingError",
    "GroupLimitReached",
    "GroupRegistry",
    "GroupTemplate",
    "InvariantViolation",
    "MoveStudentCommand",
    "Staff",
    "Student",
    "TEMPLATE_CATALOG",
    "apply_command",
    "assignment_from_record",
    "assignment_to_record",
    "balance_groups",
    "balanced_sizes",
    "build_display",
    "find_preference_conflicts",
    "get_template",
    "instantiate",
    "is_compatible",
    "rehydrate",
    "snapshot",
    "suggest_groupmates",
]
