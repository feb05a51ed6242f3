"""Read model for the shared classroom display.

Renderers only read. Ids that no longer resolve to a roster entry are skipped
rather than reported, so a deleted student simply disappears from the screen.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .models import Assignment, Staff, Student


def _student_card(student: Student) -> Dict[str, Any]:
    return {"id": student.id, "name": student.name}


def _staff_card(member: Staff) -> Dict[str, Any]:
    return {"id": member.id, "name": member.name, "role": member.role, "photo": member.photo}


def build_display(
    assignment: Assignment,
    students: Sequence[Student],
    staff: Sequence[Staff],
) -> Dict[str, Any]:
    students_by_id = {student.id: student for student in students}
    staff_by_id = {member.id: member for member in staff}

    selected_staff = [staff_by_id[staff_id] for staff_id in assignment.staff_ids if staff_id in staff_by_id]

    if assignment.is_whole_class:
        return {
            "mode": "whole-class",
            "staff": [_staff_card(member) for member in selected_staff],
            "students": [_student_card(student) for student in students],
            "groups": [],
            "notes": assignment.notes,
        }

    groups: List[Dict[str, Any]] = []
    for record in assignment.group_assignments:
        lead: Optional[Dict[str, Any]] = None
        lead_id = record.staff_id or (record.staff_member or {}).get("id")
        if lead_id and lead_id in staff_by_id:
            lead = _staff_card(staff_by_id[lead_id])
        elif record.staff_member:
            lead = dict(record.staff_member)
        groups.append({
            "id": record.id,
            "name": record.group_name,
            "color": record.color,
            "location": record.location,
            "staff": lead,
            "students": [
                _student_card(students_by_id[student_id])
                for student_id in record.student_ids
                if student_id in students_by_id
            ],
        })

    return {
        "mode": assignment.grouping_type,
        "staff": [_staff_card(member) for member in selected_staff],
        "students": [],
        "groups": groups,
        "notes": assignment.notes,
    }
