from App.models import Student, StaffMember
from App.database import db
from group_engine.models import SKILL_LEVELS, WORKING_STYLES

__all__ = [
    'create_student', 'get_student', 'get_all_students', 'get_active_students',
    'create_staff', 'get_staff', 'get_all_staff', 'get_active_staff',
]


def create_student(id, name, skill_level=None, working_style=None,
                   preferred_partners=None, avoid_partners=None, is_active=True):
    if skill_level is not None and skill_level not in SKILL_LEVELS:
        raise ValueError(f"Unknown skill level: {skill_level}")
    if working_style is not None and working_style not in WORKING_STYLES:
        raise ValueError(f"Unknown working style: {working_style}")

    student = Student(
        id=id,
        name=name,
        skill_level=skill_level,
        working_style=working_style,
        preferred_partners=preferred_partners,
        avoid_partners=avoid_partners,
        is_active=is_active,
    )
    try:
        db.session.add(student)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return student


def get_student(student_id):
    return db.session.get(Student, student_id)


def get_all_students():
    return Student.query.order_by(Student.name).all()


def get_active_students():
    return Student.query.filter_by(is_active=True).order_by(Student.name).all()


def create_staff(id, name, role='', photo=None, is_active=True):
    member = StaffMember(id=id, name=name, role=role, photo=photo, is_active=is_active)
    try:
        db.session.add(member)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return member


def get_staff(staff_id):
    return db.session.get(StaffMember, staff_id)


def get_all_staff():
    return StaffMember.query.order_by(StaffMember.name).all()


def get_active_staff():
    return StaffMember.query.filter_by(is_active=True).order_by(StaffMember.name).all()
