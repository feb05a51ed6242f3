"""Executable example for the grouping engine.

Run ``python -m group_engine.examples`` to build a small classroom, create two
groups, balance them and print the stored assignment record.
"""
from __future__ import annotations

import random
from itertools import count
from pprint import pprint

from . import EditingSession, GroupRegistry, Staff, Student, get_template
from .persistence import assignment_to_record


def build_demo_session() -> tuple[EditingSession, list[Staff]]:
    """Construct a deterministic demonstration session.

    Returns:
        session: :class:`EditingSession` with two groups and seven students.
        staff: The staff roster used for lead-staff snapshots.
    """

    students = [
        Student(id="s1", name="Ava", skill_level="advanced", working_style="collaborative"),
        Student(id="s2", name="Ben", skill_level="developing", preferred_partners={"s5"}),
        Student(id="s3", name="Cleo", skill_level="emerging", working_style="needs-support"),
        Student(id="s4", name="Dev", skill_level="proficient", working_style="collaborative"),
        Student(id="s5", name="Eli", skill_level="advanced", avoid_partners={"s3"}),
        Student(id="s6", name="Fay", working_style="guided"),
        Student(id="s7", name="Gus", skill_level="developing", working_style="independent"),
    ]
    staff = [
        Staff(id="t1", name="Ms. Rivera", role="Teacher"),
        Staff(id="p1", name="Mr. Chen", role="Paraprofessional"),
    ]

    ids = count(1)
    registry = GroupRegistry(
        students,
        id_factory=lambda: f"group-{next(ids)}",
        rng=random.Random(7),
    )
    session = EditingSession(registry, staff_ids=["t1"])
    readers = session.create_from_template(get_template("reading-advanced"))
    custom = session.create_custom()
    session.assign_lead(readers.id, "t1")
    session.assign_lead(custom.id, "p1")
    return session, staff


def main() -> None:
    session, staff = build_demo_session()
    print("Balanced sizes:", session.balance())
    pprint(assignment_to_record(session.snapshot(staff)))


if __name__ == "__main__":
    main()
