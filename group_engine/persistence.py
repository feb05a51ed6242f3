"""Snapshot/rehydrate between a live registry and a stored Assignment.

Two layers live here:

* :func:`snapshot` and :func:`rehydrate` convert between a
  :class:`~group_engine.registry.GroupRegistry` and an
  :class:`~group_engine.models.Assignment`.
* :func:`assignment_to_record` and :func:`assignment_from_record` are the
  serialization boundary. Records use the camelCase keys the display front end
  reads, and every group record also carries the older mirrored ``students``
  list next to ``studentIds``. Internally only ``student_ids`` exists.
"""
from __future__ import annotations

import copy
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .models import (
    GROUP_TYPES,
    GROUPING_TYPES,
    Assignment,
    Group,
    GroupAssignment,
    InvariantViolation,
    Staff,
    Student,
)
from .registry import GroupRegistry

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "Classroom"


def _staff_snapshot(member: Staff) -> Dict[str, Optional[str]]:
    return {
        "id": member.id,
        "name": member.name,
        "role": member.role,
        "photo": member.photo,
    }


def build_group_assignments(
    groups: Iterable[Group],
    staff: Optional[Sequence[Staff]] = None,
) -> List[GroupAssignment]:
    """Display records for every group that has at least one member."""

    staff_by_id = {member.id: member for member in staff or ()}
    records: List[GroupAssignment] = []
    for group in groups:
        if not group.student_ids:
            continue
        lead = staff_by_id.get(group.staff_id) if group.staff_id else None
        records.append(GroupAssignment(
            id=group.id,
            group_name=group.name,
            color=group.color,
            student_ids=list(group.student_ids),
            staff_id=group.staff_id,
            staff_member=_staff_snapshot(lead) if lead else None,
            location=group.location or DEFAULT_LOCATION,
            group_type=group.group_type,
            target_skills=list(group.target_skills),
        ))
    return records


def snapshot(
    registry: GroupRegistry,
    is_whole_class: bool,
    staff_ids: Sequence[str],
    notes: str = "",
    grouping_type: Optional[str] = None,
    staff: Optional[Sequence[Staff]] = None,
) -> Assignment:
    """Capture ``registry`` as an Assignment ready to attach to an activity.

    In whole-class mode the activity has no sub-groups, so no groups, group ids
    or display records are written.

    Raises:
        InvariantViolation: when the registry does not partition its roster, or
            when the assignment would reference a group the registry lacks.
    """

    registry.check_invariants()

    if grouping_type is None:
        grouping_type = "whole-class" if is_whole_class else "small-groups"

    if is_whole_class:
        assignment = Assignment(
            is_whole_class=True,
            grouping_type=grouping_type,
            staff_ids=list(staff_ids),
            notes=(notes or "").strip(),
        )
    else:
        groups = [copy.deepcopy(group) for group in registry.groups]
        assignment = Assignment(
            is_whole_class=False,
            grouping_type=grouping_type,
            groups=groups,
            group_ids=[group.id for group in groups if group.student_ids],
            staff_ids=list(staff_ids),
            notes=(notes or "").strip(),
            group_assignments=build_group_assignments(groups, staff),
        )

    missing = _dangling_references(assignment, registry)
    if missing:
        raise InvariantViolation([f"Assignment references unknown group {group_id}" for group_id in missing])
    return assignment


def _dangling_references(assignment: Assignment, registry: GroupRegistry) -> List[str]:
    referenced = list(assignment.group_ids)
    referenced.extend(group.id for group in assignment.groups)
    referenced.extend(record.id for record in assignment.group_assignments)
    return [group_id for group_id in dict.fromkeys(referenced) if registry.get(group_id) is None]


def _groups_from_display(records: Iterable[GroupAssignment]) -> List[Group]:
    return [
        Group(
            id=record.id,
            name=record.group_name,
            color=record.color,
            student_ids=list(record.student_ids),
            staff_id=record.staff_id or (record.staff_member or {}).get("id"),
            group_type=record.group_type if record.group_type in GROUP_TYPES else "mixed",
            target_skills=list(record.target_skills),
            location=record.location if record.location != DEFAULT_LOCATION else None,
        )
        for record in records
    ]


def rehydrate(
    assignment: Assignment,
    roster: Sequence[Student],
    **registry_options: Any,
) -> GroupRegistry:
    """Rebuild a registry from a saved assignment.

    Older records saved only ``groupIds`` plus the display records; in that case
    the groups are rebuilt from ``group_assignments``. Member ids that are no
    longer on the roster are dropped, and a student listed in two groups stays in
    the first one, so a stale record always yields a valid registry.
    """

    if assignment.is_whole_class:
        return GroupRegistry(roster, **registry_options)

    source = assignment.groups or _groups_from_display(assignment.group_assignments)
    on_roster = {student.id for student in roster}
    claimed = set()
    groups: List[Group] = []
    for original in source:
        group = copy.deepcopy(original)
        members: List[str] = []
        for student_id in group.student_ids:
            if student_id not in on_roster:
                logger.warning(
                    "Dropping unknown student from saved group",
                    extra={"event": "rehydrate_unknown_student", "group_id": group.id, "student_id": student_id},
                )
                continue
            if student_id in claimed:
                logger.warning(
                    "Dropping duplicate membership from saved group",
                    extra={"event": "rehydrate_duplicate_member", "group_id": group.id, "student_id": student_id},
                )
                continue
            claimed.add(student_id)
            members.append(student_id)
        group.student_ids = members
        groups.append(group)

    return GroupRegistry(roster, groups, **registry_options)


# ----------------------------------------------------------------------
# Record (dict) boundary
# ----------------------------------------------------------------------


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def group_to_record(group: Group) -> Dict[str, Any]:
    return {
        "id": group.id,
        "name": group.name,
        "label": group.label,
        "description": group.description,
        "color": group.color,
        "staffId": group.staff_id or "",
        "studentIds": list(group.student_ids),
        # Older readers only know the mirrored ``students`` field.
        "students": list(group.student_ids),
        "groupType": group.group_type,
        "minSize": group.min_size,
        "maxSize": group.max_size,
        "targetSkills": list(group.target_skills),
        "location": group.location,
        "createdAt": _iso(group.created_at),
        "updatedAt": _iso(group.updated_at),
    }


def group_from_record(record: Mapping[str, Any]) -> Group:
    members = record.get("studentIds")
    if members is None:
        members = record.get("students") or []
    group_type = record.get("groupType") or "mixed"
    if group_type not in GROUP_TYPES:
        logger.warning(
            "Unknown group type in saved record",
            extra={"event": "record_unknown_group_type", "group_id": record.get("id"), "group_type": group_type},
        )
        group_type = "mixed"
    return Group(
        id=str(record["id"]),
        name=record.get("name") or "",
        color=record.get("color") or "",
        student_ids=[str(member) for member in members],
        staff_id=record.get("staffId") or None,
        label=record.get("label"),
        description=record.get("description"),
        group_type=group_type,
        min_size=int(record.get("minSize") or 1),
        max_size=int(record.get("maxSize") or 6),
        target_skills=list(record.get("targetSkills") or []),
        location=record.get("location"),
        created_at=_parse_datetime(record.get("createdAt")),
        updated_at=_parse_datetime(record.get("updatedAt")),
    )


def group_assignment_to_record(record: GroupAssignment) -> Dict[str, Any]:
    return {
        "id": record.id,
        "groupName": record.group_name,
        "color": record.color,
        "staffMember": dict(record.staff_member) if record.staff_member else None,
        "staffId": record.staff_id or "",
        "studentIds": list(record.student_ids),
        "location": record.location,
        "notes": record.notes,
        "groupType": record.group_type,
        "targetSkills": list(record.target_skills),
    }


def group_assignment_from_record(record: Mapping[str, Any]) -> GroupAssignment:
    staff_member = record.get("staffMember")
    return GroupAssignment(
        id=str(record["id"]),
        group_name=record.get("groupName") or record.get("name") or "",
        color=record.get("color") or "",
        student_ids=[str(member) for member in record.get("studentIds") or []],
        staff_id=record.get("staffId") or (staff_member or {}).get("id") or None,
        staff_member=dict(staff_member) if staff_member else None,
        location=record.get("location") or DEFAULT_LOCATION,
        notes=record.get("notes") or "",
        group_type=record.get("groupType"),
        target_skills=list(record.get("targetSkills") or []),
    )


def assignment_to_record(assignment: Assignment) -> Dict[str, Any]:
    return {
        "isWholeClass": assignment.is_whole_class,
        "groupingType": assignment.grouping_type,
        "groups": [group_to_record(group) for group in assignment.groups],
        "groupIds": list(assignment.group_ids),
        "staffIds": list(assignment.staff_ids),
        "notes": assignment.notes,
        "groupAssignments": [group_assignment_to_record(record) for record in assignment.group_assignments],
    }


def assignment_from_record(record: Optional[Mapping[str, Any]]) -> Assignment:
    """Read a stored record, tolerating the older and lighter shapes."""

    if not record:
        return Assignment()
    is_whole_class = bool(record.get("isWholeClass", True))
    grouping_type = record.get("groupingType")
    if grouping_type not in GROUPING_TYPES:
        grouping_type = "whole-class" if is_whole_class else "small-groups"
    return Assignment(
        is_whole_class=is_whole_class,
        grouping_type=grouping_type,
        groups=[group_from_record(group) for group in record.get("groups") or []],
        group_ids=[str(group_id) for group_id in record.get("groupIds") or []],
        staff_ids=[str(staff_id) for staff_id in record.get("staffIds") or []],
        notes=record.get("notes") or "",
        group_assignments=[
            group_assignment_from_record(item) for item in record.get("groupAssignments") or []
        ],
    )
