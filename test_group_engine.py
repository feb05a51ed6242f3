import random
from itertools import count

import pytest

from group_engine import (
    Assignment,
    BalanceGroupsCommand,
    DeleteGroupCommand,
    DragSession,
    EditGroupCommand,
    EditingSession,
    GroupingError,
    GroupLimitReached,
    GroupRegistry,
    InvariantViolation,
    MoveStudentCommand,
    Staff,
    Student,
    TEMPLATE_CATALOG,
    apply_command,
    assignment_from_record,
    assignment_to_record,
    balance_groups,
    balanced_sizes,
    build_display,
    find_preference_conflicts,
    get_template,
    instantiate,
    is_compatible,
    rehydrate,
    snapshot,
    suggest_groupmates,
)
from group_engine.examples import build_demo_session
from group_engine.models import Group, skill_index
from group_engine.registry import CUSTOM_GROUP_COLORS


def _roster(size=7):
    return [Student(id=f"s{index}", name=f"Student {index}") for index in range(1, size + 1)]


def _registry(roster=None, **options):
    ids = count(1)
    options.setdefault("id_factory", lambda: f"g{next(ids)}")
    options.setdefault("rng", random.Random(3))
    return GroupRegistry(roster if roster is not None else _roster(), **options)


def _assert_partition(registry):
    assigned = registry.assigned_ids()
    assert len(assigned) == len(set(assigned))
    roster_ids = {student.id for student in registry.roster}
    assert set(assigned) | set(registry.unassigned_ids()) == roster_ids
    assert not set(assigned) & set(registry.unassigned_ids())
    assert registry.validate() == []


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def test_template_instantiation_derives_size_bounds():
    registry = _registry()
    template = get_template("reading-advanced")

    group = registry.create_from_template(template)

    assert template.suggested_size == 4
    assert group.max_size == 6
    assert group.min_size == 3
    assert group.name == "Advanced Readers"
    assert group.color == template.color
    assert group.group_type == "academic"
    assert group.label == template.description
    assert group.student_ids == []
    assert registry.get(group.id) is group


def test_small_template_never_gets_zero_min_size():
    registry = _registry()
    group = instantiate(get_template("behavior-support"), registry)
    assert group.min_size == 1
    assert group.max_size == 4


def test_custom_group_naming_and_palette():
    registry = _registry()
    registry.create_from_template(get_template("peer-partners"))

    custom = registry.create_custom()

    assert custom.name == "Group 2"
    assert custom.label == "Custom Group 2"
    assert custom.color in CUSTOM_GROUP_COLORS
    assert custom.group_type == "mixed"
    assert (custom.min_size, custom.max_size) == (1, 6)


def test_group_cap_raises():
    registry = _registry(max_groups=2)
    registry.create_custom()
    registry.create_custom()
    with pytest.raises(GroupLimitReached):
        registry.create_custom()
    assert len(registry) == 2


def test_edit_merges_fields_and_rejects_membership():
    clock_values = iter(["t0", "t1"])
    registry = _registry(clock=lambda: next(clock_values))
    group = registry.create_custom()

    edited = registry.edit(group.id, name="Blue Table", color="#2196f3", staff_id="t1")

    assert edited is group
    assert (group.name, group.color, group.staff_id) == ("Blue Table", "#2196f3", "t1")
    assert group.updated_at == "t1"
    with pytest.raises(GroupingError):
        registry.edit(group.id, student_ids=["s1"])
    with pytest.raises(GroupingError):
        registry.edit(group.id, group_type="lunch")
    assert registry.edit("missing", name="x") is None


def test_list_by_type_and_search_do_not_mutate():
    registry = _registry([Student(id="a", name="Ava"), Student(id="b", name="Ben"), Student(id="c", name="Avery")])
    academic = registry.create_from_template(get_template("math-foundations"))
    registry.create_from_template(get_template("social-skills"))
    registry.move("b", academic.id)

    assert [group.id for group in registry.list_by_type("academic")] == [academic.id]
    assert [student.id for student in registry.search_unassigned("av")] == ["a", "c"]
    assert [student.id for student in registry.search_unassigned("")] == ["a", "c"]
    assert registry.group_of("b") is academic


# ---------------------------------------------------------------------------
# Transfer protocol
# ---------------------------------------------------------------------------

def test_move_is_idempotent_and_exclusive():
    registry = _registry()
    first = registry.create_custom()
    second = registry.create_custom()

    registry.move("s1", first.id)
    registry.move("s1", second.id)
    state_once = [list(group.student_ids) for group in registry.groups]
    registry.move("s1", second.id)
    state_twice = [list(group.student_ids) for group in registry.groups]

    assert state_once == state_twice == [[], ["s1"]]
    _assert_partition(registry)


def test_move_to_pool_unknown_group_or_unknown_student():
    registry = _registry()
    group = registry.create_custom()
    registry.move("s2", group.id)

    assert registry.move("s2", None) is None
    assert "s2" in registry.unassigned_ids()

    registry.move("s2", group.id)
    assert registry.move("s2", "no-such-group") is None
    assert group.student_ids == []

    assert registry.move("ghost", group.id) is None
    assert group.student_ids == []
    _assert_partition(registry)


def test_invariants_hold_after_mixed_operations():
    registry = _registry(_roster(10))
    groups = [registry.create_custom() for _ in range(3)]
    rng = random.Random(11)
    for _ in range(40):
        student_id = f"s{rng.randint(1, 10)}"
        target = rng.choice([group.id for group in registry.groups] + [None])
        registry.move(student_id, target)
        _assert_partition(registry)

    registry.balance()
    _assert_partition(registry)
    registry.delete(groups[1].id)
    _assert_partition(registry)


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------

def test_delete_releases_members_to_pool():
    registry = _registry()
    group = registry.create_custom()
    registry.move("s1", group.id)
    registry.move("s3", group.id)

    removed = registry.delete(group.id)

    assert removed is group
    assert registry.get(group.id) is None
    assert {"s1", "s3"} <= set(registry.unassigned_ids())
    assert registry.delete(group.id) is None


# ---------------------------------------------------------------------------
# Balancer
# ---------------------------------------------------------------------------

def test_balanced_sizes():
    assert balanced_sizes(7, 3) == [3, 2, 2]
    assert balanced_sizes(6, 3) == [2, 2, 2]
    assert balanced_sizes(0, 2) == [0, 0]
    assert balanced_sizes(5, 0) == []


def test_balance_seven_students_three_groups():
    registry = _registry()
    groups = [registry.create_custom() for _ in range(3)]
    registry.move("s7", groups[2].id)

    sizes = balance_groups(registry)

    assert sizes == [3, 2, 2]
    # Grouped students are dealt first, then the pool in roster order
    assert groups[0].student_ids == ["s7", "s1", "s2"]
    assert groups[1].student_ids == ["s3", "s4"]
    assert groups[2].student_ids == ["s5", "s6"]
    _assert_partition(registry)


def test_balance_without_groups_is_noop():
    registry = _registry()
    assert registry.balance() == []
    assert registry.unassigned_ids() == [f"s{index}" for index in range(1, 8)]


def test_round_robin_and_clear():
    registry = _registry(_roster(5))
    first = registry.create_custom()
    second = registry.create_custom()
    registry.edit(first.id, staff_id="t1")

    registry.distribute_round_robin()
    assert first.student_ids == ["s1", "s3", "s5"]
    assert second.student_ids == ["s2", "s4"]

    registry.clear_memberships()
    assert first.staff_id == "t1"
    registry.clear_memberships(include_staff=True)
    assert first.staff_id is None
    assert registry.assigned_ids() == []


# ---------------------------------------------------------------------------
# Compatibility advisor
# ---------------------------------------------------------------------------

def test_advisor_rule_order():
    ada = Student(
        id="ada",
        name="Ada",
        skill_level="emerging",
        working_style="collaborative",
        preferred_partners={"zed"},
        avoid_partners={"zed", "cal"},
    )
    zed = Student(id="zed", name="Zed", skill_level="advanced")
    cal = Student(id="cal", name="Cal", skill_level="emerging", working_style="collaborative")
    bo = Student(id="bo", name="Bo", skill_level="advanced", working_style="collaborative")
    dee = Student(id="dee", name="Dee", skill_level="proficient")
    eve = Student(id="eve", name="Eve", skill_level="developing")

    # Preferred wins over avoided; avoided wins over collaborative
    assert is_compatible(ada, zed) is True
    assert is_compatible(ada, cal) is False
    assert is_compatible(ada, bo) is True
    assert is_compatible(ada, dee) is False
    assert is_compatible(ada, eve) is True


def test_advisor_rules_are_per_querying_student():
    a = Student(id="a", name="A", skill_level="advanced", avoid_partners={"b"})
    b = Student(id="b", name="B", skill_level="advanced")
    assert is_compatible(a, b) is False
    assert is_compatible(b, a) is True


def test_preference_of_querying_student_beats_third_party_avoidance():
    x = Student(id="x", name="X", skill_level="emerging", preferred_partners={"y"})
    y = Student(id="y", name="Y", skill_level="advanced")
    z = Student(id="z", name="Z", skill_level="emerging", avoid_partners={"y"})
    registry = _registry([x, y, z])

    assert [student.id for student in suggest_groupmates(x, registry)] == ["y", "z"]
    assert [student.id for student in suggest_groupmates(z, registry)] == ["x"]


def test_missing_skill_defaults_to_developing():
    assert skill_index(None) == skill_index("developing")
    assert skill_index("medium") == skill_index("developing")
    plain = Student(id="x", name="X")
    advanced = Student(id="y", name="Y", skill_level="advanced")
    assert is_compatible(plain, advanced) is False


def test_suggest_groupmates_scans_pool_in_roster_order():
    roster = [
        Student(id="a", name="A", skill_level="developing"),
        Student(id="b", name="B", skill_level="proficient"),
        Student(id="c", name="C", skill_level="advanced"),
        Student(id="d", name="D", skill_level="emerging"),
    ]
    registry = _registry(roster)
    group = registry.create_custom()
    registry.move("b", group.id)

    suggestions = suggest_groupmates(roster[0], registry)

    assert [student.id for student in suggestions] == ["d"]


def test_find_preference_conflicts():
    roster = [
        Student(id="a", name="A", preferred_partners={"b"}),
        Student(id="b", name="B", avoid_partners={"a"}),
        Student(id="c", name="C", preferred_partners={"a"}, avoid_partners={"a"}),
    ]
    assert find_preference_conflicts(roster) == [("a", "b", "mutual"), ("c", "a", "self")]


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def test_template_catalog_contents():
    assert len(TEMPLATE_CATALOG) == 8
    assert len({template.id for template in TEMPLATE_CATALOG}) == 8
    assert get_template("social-skills").group_type == "therapy"
    assert get_template("independent-work").suggested_size == 5
    assert get_template("unknown") is None


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def _staff():
    return [Staff(id="t1", name="Ms. Rivera", role="Teacher"), Staff(id="p1", name="Mr. Chen", role="Para")]


def test_snapshot_round_trip():
    registry = _registry()
    readers = registry.create_from_template(get_template("reading-advanced"))
    custom = registry.create_custom()
    empty = registry.create_custom()
    registry.edit(readers.id, staff_id="t1")
    registry.move("s1", readers.id)
    registry.move("s2", readers.id)
    registry.move("s4", custom.id)

    assignment = snapshot(registry, False, ["t1"], staff=_staff())
    restored = rehydrate(assignment_from_record(assignment_to_record(assignment)), registry.roster)

    assert assignment.group_ids == [readers.id, custom.id]
    assert [record.id for record in assignment.group_assignments] == [readers.id, custom.id]
    assert assignment.group_assignments[0].staff_member["name"] == "Ms. Rivera"
    assert assignment.group_assignments[0].location == "Classroom"
    for original, copy_ in zip(registry.groups, restored.groups):
        assert copy_.id == original.id
        assert copy_.name == original.name
        assert copy_.color == original.color
        assert copy_.staff_id == original.staff_id
        assert set(copy_.student_ids) == set(original.student_ids)
    assert restored.get(empty.id) is not None


def test_display_location_comes_from_group_location_not_description():
    registry = _registry()
    plain = registry.create_custom()
    sensory = registry.create_custom()
    registry.edit(plain.id, description="Phonics practice")
    registry.edit(sensory.id, description="Calm down corner", location="Sensory Room")
    registry.move("s1", plain.id)
    registry.move("s2", sensory.id)

    records = snapshot(registry, False, []).group_assignments

    assert [record.location for record in records] == ["Classroom", "Sensory Room"]


def test_snapshot_is_detached_from_registry():
    registry = _registry()
    group = registry.create_custom()
    registry.move("s1", group.id)
    assignment = snapshot(registry, False, [])

    registry.move("s2", group.id)

    assert assignment.groups[0].student_ids == ["s1"]


def test_whole_class_snapshot_has_no_groups():
    registry = _registry()
    registry.create_custom()
    assignment = snapshot(registry, True, ["t1"], notes="  quiet voices ")

    assert assignment.groups == []
    assert assignment.group_ids == []
    assert assignment.group_assignments == []
    assert assignment.grouping_type == "whole-class"
    assert assignment.notes == "quiet voices"
    assert len(rehydrate(assignment, registry.roster)) == 0


def test_snapshot_rejects_broken_partition():
    roster = _roster(3)
    groups = [Group(id="a", name="A", color="#fff", student_ids=["s1"]),
              Group(id="b", name="B", color="#000", student_ids=["s1", "s2"])]
    registry = GroupRegistry(roster, groups)

    with pytest.raises(InvariantViolation) as excinfo:
        snapshot(registry, False, [])
    assert excinfo.value.problems


def test_rehydrate_repairs_stale_records():
    roster = _roster(3)
    assignment = Assignment(
        is_whole_class=False,
        grouping_type="small-groups",
        groups=[
            Group(id="a", name="A", color="#fff", student_ids=["s1", "gone"]),
            Group(id="b", name="B", color="#000", student_ids=["s1", "s2"]),
        ],
    )

    registry = rehydrate(assignment, roster)

    assert registry.get("a").student_ids == ["s1"]
    assert registry.get("b").student_ids == ["s2"]
    _assert_partition(registry)


def test_legacy_students_only_record_loads():
    record = {
        "isWholeClass": False,
        "groupingType": "small-groups",
        "groups": [{"id": "g1", "name": "Reds", "color": "#e74c3c", "students": ["s1", "s3"], "staffId": ""}],
        "groupIds": ["g1"],
        "staffIds": ["t1"],
    }

    registry = rehydrate(assignment_from_record(record), _roster(3))

    assert registry.get("g1").student_ids == ["s1", "s3"]
    assert registry.get("g1").staff_id is None


def test_group_records_mirror_students_field():
    registry = _registry()
    group = registry.create_custom()
    registry.move("s5", group.id)
    record = assignment_to_record(snapshot(registry, False, []))

    assert record["groups"][0]["studentIds"] == ["s5"]
    assert record["groups"][0]["students"] == ["s5"]
    assert record["groupAssignments"][0]["groupName"] == group.name


def test_record_with_only_group_assignments_rebuilds_groups():
    record = {
        "isWholeClass": False,
        "groupIds": ["g9"],
        "groupAssignments": [
            {"id": "g9", "groupName": "Blue", "color": "#2196f3", "studentIds": ["s2"],
             "staffMember": {"id": "t1", "name": "Ms. Rivera", "role": "Teacher", "photo": None}},
        ],
    }
    assignment = assignment_from_record(record)
    registry = rehydrate(assignment, _roster(3))

    assert assignment.grouping_type == "small-groups"
    assert registry.get("g9").student_ids == ["s2"]
    assert registry.get("g9").staff_id == "t1"


def test_empty_record_is_whole_class():
    assignment = assignment_from_record(None)
    assert assignment.is_whole_class is True
    assert assignment.grouping_type == "whole-class"


# ---------------------------------------------------------------------------
# Commands and drag session
# ---------------------------------------------------------------------------

def test_apply_command_reducer():
    registry = _registry()
    group = registry.create_custom()

    assert apply_command(registry, MoveStudentCommand("s1", group.id)) is group
    assert apply_command(registry, EditGroupCommand(group.id, {"name": "Greens"})).name == "Greens"
    assert apply_command(registry, DeleteGroupCommand(group.id)) is None
    assert registry.get(group.id) is group
    assert apply_command(registry, BalanceGroupsCommand()) == [7]
    assert apply_command(registry, DeleteGroupCommand(group.id, confirmed=True)) is group
    assert registry.get(group.id) is None
    with pytest.raises(GroupingError):
        apply_command(registry, "not a command")


def test_drag_protocol():
    registry = _registry()
    group = registry.create_custom()
    drag = DragSession(registry)

    assert drag.drop(group.id) is None
    drag.start("s3")
    assert drag.allows_drop(group.id) is True
    assert drag.allows_drop("missing") is False
    assert drag.allows_drop("unassigned") is True
    command = drag.drop(group.id)
    drag.end()

    assert command == MoveStudentCommand("s3", group.id)
    assert group.student_ids == ["s3"]
    assert drag.payload is None


def test_drag_payload_cleared_on_exception():
    registry = _registry()
    drag = DragSession(registry)

    with pytest.raises(RuntimeError):
        with drag.dragging("s1"):
            assert drag.active
            raise RuntimeError("pointer cancelled")

    assert drag.payload is None
    assert drag.hover_target is None


def test_session_drop_always_ends_drag():
    session = EditingSession(_registry())
    session.drag.start("s1")

    session.drop("no-such-group")

    assert session.drag.payload is None
    assert "s1" in session.registry.unassigned_ids()


# ---------------------------------------------------------------------------
# Editing session
# ---------------------------------------------------------------------------

def test_session_modes():
    session = EditingSession(_registry(), staff_ids=["t1"])
    group = session.create_custom()
    assert session.is_whole_class

    session.apply(MoveStudentCommand("s1", group.id))
    assert session.grouping_type == "small-groups"

    session.assign_lead(group.id, "p1")
    assert session.staff_ids == ["t1", "p1"]

    session.set_whole_class(True)
    assert session.is_whole_class
    assert group.student_ids == []
    assert group.staff_id is None

    session.distribute_round_robin()
    assert session.grouping_type == "small-groups"
    assert group.size == 7

    session.clear_all()
    assert session.grouping_type == "individual"
    assert session.registry.assigned_ids() == []

    with pytest.raises(GroupingError):
        session.set_grouping_type("chaos")


def test_balance_in_whole_class_mode_keeps_groups_on_save():
    session = EditingSession(_registry())
    session.create_custom()
    session.create_custom()

    assert session.balance() == [4, 3]
    assert session.grouping_type == "small-groups"

    record = assignment_to_record(session.snapshot())
    assert record["isWholeClass"] is False
    assert [group["studentIds"] for group in record["groups"]] == [["s1", "s2", "s3", "s4"], ["s5", "s6", "s7"]]

    restored = EditingSession.from_assignment(assignment_from_record(record), session.registry.roster)
    assert [group.size for group in restored.registry.groups] == [4, 3]


def test_balance_without_groups_stays_whole_class():
    session = EditingSession(_registry())
    assert session.balance() == []
    assert session.is_whole_class


def test_assigning_a_lead_leaves_whole_class_mode():
    session = EditingSession(_registry())
    group = session.create_custom()

    session.assign_lead(group.id, "t1")

    assert session.grouping_type == "small-groups"
    assert session.snapshot().groups[0].staff_id == "t1"


def test_remove_lead_keeps_staff_selected():
    session = EditingSession(_registry())
    group = session.create_custom()
    session.assign_lead(group.id, "t1")

    session.remove_lead(group.id)

    assert group.staff_id is None
    assert session.staff_ids == ["t1"]
    session.select_staff("t1", selected=False)
    assert session.staff_ids == []


def test_session_round_trip_through_assignment():
    session, staff = build_demo_session()
    session.balance()
    assignment = session.snapshot(staff)

    restored = EditingSession.from_assignment(assignment, session.registry.roster)

    assert restored.grouping_type == "small-groups"
    assert restored.staff_ids == ["t1", "p1"]
    assert [group.name for group in restored.registry.groups] == [
        group.name for group in session.registry.groups
    ]
    state = restored.describe()
    assert state["isWholeClass"] is False
    assert state["unassigned"] == []
    assert state["dragging"] is None


# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

def test_display_for_groups_resolves_staff_and_students():
    session, staff = build_demo_session()
    readers = session.registry.groups[0]
    session.apply(MoveStudentCommand("s1", readers.id))
    assignment = session.snapshot(staff)

    display = build_display(assignment, session.registry.roster, staff[:1])

    assert display["mode"] == "small-groups"
    assert display["groups"][0]["staff"]["name"] == "Ms. Rivera"
    assert display["groups"][0]["students"] == [{"id": "s1", "name": "Ava"}]


def test_display_falls_back_to_stored_staff_snapshot_and_skips_unknown_ids():
    session, staff = build_demo_session()
    custom = session.registry.groups[1]
    session.apply(MoveStudentCommand("s2", custom.id))
    assignment = session.snapshot(staff)
    roster_without_ben = [student for student in session.registry.roster if student.id != "s2"]

    display = build_display(assignment, roster_without_ben, [])

    assert display["groups"][0]["staff"]["name"] == "Mr. Chen"
    assert display["groups"][0]["students"] == []


def test_display_whole_class():
    session, staff = build_demo_session()
    session.set_whole_class(True)
    display = build_display(session.snapshot(staff), session.registry.roster, staff)

    assert display["mode"] == "whole-class"
    assert display["groups"] == []
    assert len(display["students"]) == 7
    assert [card["id"] for card in display["staff"]] == ["t1", "p1"]
