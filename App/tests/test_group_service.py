"""
GroupAssignmentService tests
Exercises the editing workflow against an in-memory database
"""
import pytest

from App.main import create_app
from App.database import db
from App.controllers import create_activity, create_staff, create_student, get_assignment
from App.services import ConfirmationRequired, ResourceNotFound, get_group_service
from App.utils.performance_monitor import metrics_collector
from group_engine import GroupingError, GroupLimitReached


class TestGroupAssignmentService:
    """Integration tests for the group assignment service"""

    @pytest.fixture(autouse=True, scope="function")
    def app_context(self):
        self.app = create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
            'MAX_GROUPS_PER_ACTIVITY': 3,
        })

        with self.app.app_context():
            db.create_all()

            for student_id, name, level in [
                ("stu-01", "Aiden", "advanced"),
                ("stu-02", "Bella", "developing"),
                ("stu-03", "Carlos", "emerging"),
                ("stu-04", "Dani", "proficient"),
                ("stu-05", "Eli", "developing"),
            ]:
                create_student(student_id, name, skill_level=level)
            create_student("stu-99", "Zoe", is_active=False)
            create_staff("staff-01", "Ms. Rivera", "Teacher")
            create_staff("staff-02", "Mr. Chen", "Paraprofessional")
            self.activity_id = create_activity("Reading Groups").id
            self.service = get_group_service(self.app)

            yield

            self.service.shutdown()
            db.session.remove()
            db.drop_all()

    def test_service_is_registered_with_config(self):
        assert self.app.extensions['group_assignment'] is self.service
        assert self.service.max_groups == 3

    def test_new_session_starts_whole_class_with_active_roster(self):
        state = self.service.describe(self.activity_id)
        assert state['isWholeClass'] is True
        assert state['groups'] == []
        assert state['unassigned'] == ["stu-01", "stu-02", "stu-03", "stu-04", "stu-05"]

    def test_unknown_activity(self):
        with pytest.raises(ResourceNotFound):
            self.service.open_session(999)

    def test_create_groups(self):
        readers = self.service.create_group(self.activity_id, "reading-advanced")
        custom = self.service.create_group(self.activity_id)
        assert readers['name'] == "Advanced Readers"
        assert readers['maxSize'] == 6
        assert custom['name'] == "Group 2"
        with pytest.raises(GroupingError):
            self.service.create_group(self.activity_id, "no-such-template")

    def test_group_limit_from_config(self):
        for _ in range(3):
            self.service.create_group(self.activity_id)
        with pytest.raises(GroupLimitReached):
            self.service.create_group(self.activity_id)

    def test_move_switches_to_small_groups(self):
        group = self.service.create_group(self.activity_id)
        state = self.service.move_student(self.activity_id, "stu-02", group['id'])
        assert state['groupingType'] == "small-groups"
        assert state['groups'][0]['studentIds'] == ["stu-02"]
        assert "stu-02" not in state['unassigned']

        state = self.service.move_student(self.activity_id, "stu-02", "unassigned")
        assert "stu-02" in state['unassigned']

    def test_move_rejects_unknown_ids(self):
        group = self.service.create_group(self.activity_id)
        with pytest.raises(ResourceNotFound):
            self.service.move_student(self.activity_id, "stu-99", group['id'])
        with pytest.raises(ResourceNotFound):
            self.service.move_student(self.activity_id, "stu-01", "missing-group")

    def test_edit_accepts_camel_case_fields(self):
        group = self.service.create_group(self.activity_id)
        edited = self.service.edit_group(self.activity_id, group['id'], {'name': 'Blue Table', 'maxSize': 4})
        assert edited['name'] == 'Blue Table'
        assert edited['maxSize'] == 4
        with pytest.raises(GroupingError):
            self.service.edit_group(self.activity_id, group['id'], {'studentIds': ['stu-01']})
        with pytest.raises(ResourceNotFound):
            self.service.edit_group(self.activity_id, 'missing', {'name': 'x'})

    def test_delete_requires_confirmation(self):
        group = self.service.create_group(self.activity_id)
        self.service.move_student(self.activity_id, "stu-01", group['id'])

        with pytest.raises(ConfirmationRequired):
            self.service.delete_group(self.activity_id, group['id'])
        assert len(self.service.describe(self.activity_id)['groups']) == 1

        self.service.delete_group(self.activity_id, group['id'], confirmed=True)
        state = self.service.describe(self.activity_id)
        assert state['groups'] == []
        assert "stu-01" in state['unassigned']

    def test_balance_records_metrics(self):
        metrics_collector.reset()
        for _ in range(2):
            self.service.create_group(self.activity_id)
        assert self.service.balance(self.activity_id) == [3, 2]
        assert metrics_collector.get_operation_metrics("balance_groups")['count'] == 1

    def test_drag_drop_cycle(self):
        group = self.service.create_group(self.activity_id)
        assert self.service.start_drag(self.activity_id, "stu-03") == {'dragging': "stu-03"}

        state = self.service.drop(self.activity_id, group['id'])

        assert state['dragging'] is None
        assert state['groups'][0]['studentIds'] == ["stu-03"]

    def test_drop_on_unknown_group_still_ends_drag(self):
        self.service.create_group(self.activity_id)
        self.service.start_drag(self.activity_id, "stu-03")
        with pytest.raises(ResourceNotFound):
            self.service.drop(self.activity_id, "missing")
        assert self.service.get_session(self.activity_id).drag.payload is None

    def test_lead_assignment(self):
        group = self.service.create_group(self.activity_id)
        led = self.service.assign_lead(self.activity_id, group['id'], "staff-02")
        assert led['staffId'] == "staff-02"
        assert self.service.describe(self.activity_id)['staffIds'] == ["staff-02"]

        cleared = self.service.remove_lead(self.activity_id, group['id'])
        assert cleared['staffId'] == ""
        with pytest.raises(ResourceNotFound):
            self.service.assign_lead(self.activity_id, group['id'], "staff-404")

    def test_edit_staff_id_goes_through_lead_rules(self):
        group = self.service.create_group(self.activity_id)

        edited = self.service.edit_group(self.activity_id, group['id'], {'staffId': "staff-02"})
        assert edited['staffId'] == "staff-02"
        assert self.service.describe(self.activity_id)['staffIds'] == ["staff-02"]

        with pytest.raises(ResourceNotFound):
            self.service.edit_group(self.activity_id, group['id'], {'name': 'Renamed', 'staffId': "staff-404"})
        unchanged = self.service.describe(self.activity_id)['groups'][0]
        assert unchanged['staffId'] == "staff-02"
        assert unchanged['name'] == group['name']

        cleared = self.service.edit_group(self.activity_id, group['id'], {'staffId': ""})
        assert cleared['staffId'] == ""
        assert self.service.describe(self.activity_id)['staffIds'] == ["staff-02"]

    def test_suggestions_and_conflicts(self):
        suggestions = self.service.suggestions(self.activity_id, "stu-02")
        assert [student['id'] for student in suggestions] == ["stu-03", "stu-04", "stu-05"]
        assert self.service.preference_conflicts(self.activity_id) == []

    def test_save_and_reload(self):
        group = self.service.create_group(self.activity_id, "reading-support")
        self.service.move_student(self.activity_id, "stu-01", group['id'])
        self.service.assign_lead(self.activity_id, group['id'], "staff-01")
        self.service.set_mode(self.activity_id, notes="Quiet voices")

        record = self.service.save(self.activity_id)

        assert record['groupIds'] == [group['id']]
        assert record['groupAssignments'][0]['staffMember']['name'] == "Ms. Rivera"
        assert get_assignment(self.activity_id).notes == "Quiet voices"

        # Unsaved edits are dropped when the session is reopened
        self.service.move_student(self.activity_id, "stu-02", group['id'])
        self.service.open_session(self.activity_id)
        state = self.service.describe(self.activity_id)
        assert state['groups'][0]['studentIds'] == ["stu-01"]
        assert state['groupingType'] == "small-groups"

    def test_display_reads_saved_record(self):
        group = self.service.create_group(self.activity_id)
        self.service.move_student(self.activity_id, "stu-04", group['id'])

        assert self.service.get_display(self.activity_id)['mode'] == "whole-class"

        self.service.save(self.activity_id)
        display = self.service.get_display(self.activity_id)
        assert display['mode'] == "small-groups"
        assert display['groups'][0]['students'] == [{'id': "stu-04", 'name': "Dani"}]

    def test_whole_class_and_clear(self):
        group = self.service.create_group(self.activity_id)
        self.service.assign_all(self.activity_id)
        assert len(self.service.describe(self.activity_id)['groups'][0]['studentIds']) == 5

        state = self.service.clear_all(self.activity_id)
        assert state['groupingType'] == "individual"
        assert state['groups'][0]['studentIds'] == []

        self.service.move_student(self.activity_id, "stu-01", group['id'])
        state = self.service.set_mode(self.activity_id, whole_class=True)
        assert state['isWholeClass'] is True
        assert state['groups'][0]['studentIds'] == []

    def test_discard_session(self):
        self.service.create_group(self.activity_id)
        assert self.service.discard_session(self.activity_id) is True
        assert self.service.discard_session(self.activity_id) is False
        assert self.service.describe(self.activity_id)['groups'] == []
