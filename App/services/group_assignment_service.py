"""
Group assignment service.

Owns the open editing sessions for every activity, loads them from the saved
activity record, applies the editor's actions through the grouping engine and
writes the result back. One instance is created per Flask app and stored in
``app.extensions['group_assignment']``.
"""

from typing import Any, Dict, List, Optional
import logging

from flask import current_app

from App.controllers.activity import get_activity
from App.controllers.assignment import get_assignment, put_assignment_record
from App.controllers.roster import get_staff
from App.utils.performance_monitor import database_transaction_context, performance_monitor
from group_engine import (
    Assignment,
    EditGroupCommand,
    DeleteGroupCommand,
    EditingSession,
    GroupingError,
    GroupRegistry,
    MoveStudentCommand,
    Student,
    assignment_to_record,
    build_display,
    find_preference_conflicts,
    get_template,
    suggest_groupmates,
)
from group_engine.commands import normalise_drop_target
from group_engine.persistence import group_to_record
from .roster_transformation_service import RosterTransformationService

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'group_assignment'

# camelCase keys the editor sends, mapped onto Group field names
EDIT_FIELD_ALIASES = {
    'staffId': 'staff_id',
    'groupType': 'group_type',
    'minSize': 'min_size',
    'maxSize': 'max_size',
    'targetSkills': 'target_skills',
}


class ResourceNotFound(GroupingError):
    """An activity, group, student or staff id that does not exist."""


class ConfirmationRequired(GroupingError):
    """A destructive action was requested without explicit confirmation."""


class GroupAssignmentService:
    """
    Keeps one EditingSession per activity id.

    Sessions are opened lazily: any action on an activity without an open
    session first loads the saved assignment (or starts in whole-class mode).
    Nothing is written to the database until save() is called.
    """

    def __init__(self, max_groups: Optional[int] = None):
        self.max_groups = max_groups
        self.sessions: Dict[int, EditingSession] = {}
        self.roster = RosterTransformationService()

    def init_app(self, app):
        if self.max_groups is None:
            self.max_groups = app.config.get('MAX_GROUPS_PER_ACTIVITY')
        app.extensions[EXTENSION_KEY] = self
        return self

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def _require_activity(self, activity_id):
        activity = get_activity(activity_id)
        if activity is None:
            raise ResourceNotFound(f"Activity {activity_id} not found")
        return activity

    def open_session(self, activity_id: int) -> EditingSession:
        """(Re)load the activity's saved assignment into a fresh editing session."""
        self._require_activity(activity_id)
        students = self.roster.load_students()
        stored = get_assignment(activity_id)
        if stored is None:
            session = EditingSession(GroupRegistry(students, max_groups=self.max_groups))
        else:
            session = EditingSession.from_assignment(stored, students, max_groups=self.max_groups)

        self.sessions[activity_id] = session
        logger.info(
            'Editing session opened',
            extra={
                'event': 'group_session_opened',
                'activity_id': activity_id,
                'restored': stored is not None,
                'group_count': len(session.registry),
                'roster_size': len(students),
            },
        )
        return session

    def get_session(self, activity_id: int) -> EditingSession:
        session = self.sessions.get(activity_id)
        if session is None:
            session = self.open_session(activity_id)
        return session

    def discard_session(self, activity_id: int) -> bool:
        discarded = self.sessions.pop(activity_id, None) is not None
        logger.info(
            'Editing session discarded',
            extra={'event': 'group_session_discarded', 'activity_id': activity_id, 'was_open': discarded},
        )
        return discarded

    def shutdown(self):
        self.sessions.clear()

    def describe(self, activity_id: int) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        state = session.describe()
        state['activityId'] = activity_id
        state['unassignedStudents'] = [
            self.roster.student_to_json(student) for student in session.registry.unassigned_pool()
        ]
        return state

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def create_group(self, activity_id: int, template_id: Optional[str] = None) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        if template_id:
            template = get_template(template_id)
            if template is None:
                raise GroupingError(f"Unknown group template: {template_id}")
            group = session.create_from_template(template)
        else:
            group = session.create_custom()

        logger.info(
            'Group created',
            extra={
                'event': 'group_created',
                'activity_id': activity_id,
                'group_id': group.id,
                'template_id': template_id,
            },
        )
        return group_to_record(group)

    def edit_group(self, activity_id: int, group_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        fields = {EDIT_FIELD_ALIASES.get(key, key): value for key, value in changes.items()}
        if session.registry.get(group_id) is None:
            raise ResourceNotFound(f"Group {group_id} not found")

        # Lead changes follow the same rules as PUT/DELETE .../lead
        has_lead_change = "staff_id" in fields
        lead_id = fields.pop("staff_id", None)
        if lead_id:
            self._require_staff(lead_id)

        group = session.apply(EditGroupCommand(group_id, fields))
        if has_lead_change:
            group = session.assign_lead(group_id, lead_id) if lead_id else session.remove_lead(group_id)
        return group_to_record(group)

    def delete_group(self, activity_id: int, group_id: str, confirmed: bool = False) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        if session.registry.get(group_id) is None:
            raise ResourceNotFound(f"Group {group_id} not found")
        if not confirmed:
            raise ConfirmationRequired(f"Deleting group {group_id} requires confirmation")

        group = session.apply(DeleteGroupCommand(group_id, confirmed=True))
        logger.info(
            'Group deleted',
            extra={
                'event': 'group_deleted',
                'activity_id': activity_id,
                'group_id': group_id,
                'released_students': len(group.student_ids),
            },
        )
        return group_to_record(group)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def _require_student(self, session: EditingSession, student_id: str) -> Student:
        student = session.registry.student(student_id)
        if student is None:
            raise ResourceNotFound(f"Student {student_id} is not on this activity's roster")
        return student

    def _require_target(self, session: EditingSession, target: Optional[str]) -> Optional[str]:
        group_id = normalise_drop_target(target)
        if group_id is not None and session.registry.get(group_id) is None:
            raise ResourceNotFound(f"Group {group_id} not found")
        return group_id

    def move_student(self, activity_id: int, student_id: str, group_id: Optional[str] = None) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        self._require_student(session, student_id)
        target = self._require_target(session, group_id)
        session.apply(MoveStudentCommand(student_id, target))
        logger.debug(
            'Student moved',
            extra={'event': 'student_moved', 'activity_id': activity_id, 'student_id': student_id, 'group_id': target},
        )
        return session.describe()

    def start_drag(self, activity_id: int, student_id: str) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        self._require_student(session, student_id)
        session.drag.start(student_id)
        return {'dragging': session.drag.payload}

    def drop(self, activity_id: int, target: Optional[str]) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        try:
            if session.drag.active:
                self._require_target(session, target)
            session.drop(target)
        finally:
            session.drag.end()
        return session.describe()

    def end_drag(self, activity_id: int) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        session.drag.end()
        return {'dragging': None}

    @performance_monitor("balance_groups", log_slow_threshold=0.5)
    def balance(self, activity_id: int) -> List[int]:
        session = self.get_session(activity_id)
        sizes = session.balance()
        logger.info(
            'Groups balanced',
            extra={'event': 'groups_balanced', 'activity_id': activity_id, 'sizes': sizes},
        )
        return sizes

    def assign_all(self, activity_id: int) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        session.distribute_round_robin()
        return session.describe()

    def clear_all(self, activity_id: int) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        session.clear_all()
        return session.describe()

    def set_mode(self, activity_id: int, whole_class: Optional[bool] = None,
                 grouping_type: Optional[str] = None, notes: Optional[str] = None) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        if whole_class is not None:
            session.set_whole_class(bool(whole_class))
        if grouping_type is not None:
            session.set_grouping_type(grouping_type)
        if notes is not None:
            session.notes = str(notes)
        return session.describe()

    # ------------------------------------------------------------------
    # Staff
    # ------------------------------------------------------------------

    def _require_staff(self, staff_id: str):
        member = get_staff(staff_id)
        if member is None or not member.is_active:
            raise ResourceNotFound(f"Staff member {staff_id} not found")
        return member

    def select_staff(self, activity_id: int, staff_id: str, selected: bool = True) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        if selected:
            self._require_staff(staff_id)
        session.select_staff(staff_id, selected)
        return session.describe()

    def assign_lead(self, activity_id: int, group_id: str, staff_id: str) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        self._require_staff(staff_id)
        group = session.assign_lead(group_id, staff_id)
        if group is None:
            raise ResourceNotFound(f"Group {group_id} not found")
        return group_to_record(group)

    def remove_lead(self, activity_id: int, group_id: str) -> Dict[str, Any]:
        session = self.get_session(activity_id)
        group = session.remove_lead(group_id)
        if group is None:
            raise ResourceNotFound(f"Group {group_id} not found")
        return group_to_record(group)

    # ------------------------------------------------------------------
    # Advice
    # ------------------------------------------------------------------

    def suggestions(self, activity_id: int, student_id: str) -> List[Dict[str, Any]]:
        session = self.get_session(activity_id)
        student = self._require_student(session, student_id)
        return [self.roster.student_to_json(candidate) for candidate in suggest_groupmates(student, session.registry)]

    def preference_conflicts(self, activity_id: int) -> List[Dict[str, str]]:
        session = self.get_session(activity_id)
        return [
            {'studentId': student_id, 'partnerId': partner_id, 'kind': kind}
            for student_id, partner_id, kind in find_preference_conflicts(session.registry.roster)
        ]

    # ------------------------------------------------------------------
    # Persistence and display
    # ------------------------------------------------------------------

    @performance_monitor("save_assignment", log_slow_threshold=1.0)
    def save(self, activity_id: int) -> Dict[str, Any]:
        self._require_activity(activity_id)
        session = self.get_session(activity_id)
        assignment = session.snapshot(self.roster.load_staff())
        record = assignment_to_record(assignment)

        with database_transaction_context("save_assignment"):
            put_assignment_record(activity_id, record)

        logger.info(
            'Assignment saved',
            extra={
                'event': 'assignment_saved',
                'activity_id': activity_id,
                'grouping_type': assignment.grouping_type,
                'group_count': len(assignment.group_ids),
            },
        )
        return record

    def get_display(self, activity_id: int) -> Dict[str, Any]:
        """Display model built from the saved record, not from the open session."""
        self._require_activity(activity_id)
        assignment = get_assignment(activity_id) or Assignment()
        return build_display(assignment, self.roster.load_students(), self.roster.load_staff())


def get_group_service(app=None) -> GroupAssignmentService:
    app = app or current_app
    return app.extensions[EXTENSION_KEY]
