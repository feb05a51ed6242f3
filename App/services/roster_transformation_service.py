"""
Conversion between roster ledger rows and the grouping engine's value types.
"""

from typing import Dict, Iterable, List
import logging

from App.controllers.roster import get_active_staff, get_active_students
from group_engine import Staff, Student

logger = logging.getLogger(__name__)


class RosterTransformationService:
    """Builds the engine's roster from the Student and StaffMember tables."""

    @staticmethod
    def students_to_engine(rows: Iterable) -> List[Student]:
        students = []
        for row in rows:
            if not row.is_active:
                continue
            students.append(row.to_engine())
        return students

    @staticmethod
    def staff_to_engine(rows: Iterable) -> List[Staff]:
        return [row.to_engine() for row in rows if row.is_active]

    def load_students(self) -> List[Student]:
        students = self.students_to_engine(get_active_students())
        logger.debug(
            'Loaded student roster',
            extra={'event': 'roster_loaded', 'kind': 'students', 'count': len(students)},
        )
        return students

    def load_staff(self) -> List[Staff]:
        return self.staff_to_engine(get_active_staff())

    @staticmethod
    def student_to_json(student: Student) -> Dict[str, object]:
        return {
            'id': student.id,
            'name': student.name,
            'skillLevel': student.skill_level,
            'workingStyle': student.working_style,
        }
