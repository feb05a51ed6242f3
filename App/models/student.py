from datetime import datetime

from App.database import db
from group_engine.models import SKILL_LEVELS, WORKING_STYLES
from group_engine.models import Student as RosterStudent

__all__ = ['Student']


class Student(db.Model):
    __tablename__ = 'student'

    id = db.Column(db.String(50), primary_key=True)
    name = db.Column(db.String(120), nullable=False, index=True)
    skill_level = db.Column(db.String(20), nullable=True)
    working_style = db.Column(db.String(20), nullable=True)
    preferred_partners = db.Column(db.JSON, nullable=False, default=list)
    avoid_partners = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("LENGTH(id) > 0", name='check_student_id_not_empty'),
        db.CheckConstraint("LENGTH(name) > 0", name='check_student_name_not_empty'),
    )

    def __init__(self, id, name, skill_level=None, working_style=None,
                 preferred_partners=None, avoid_partners=None, is_active=True):
        self.id = id
        self.name = name
        self.skill_level = skill_level
        self.working_style = working_style
        self.preferred_partners = list(preferred_partners or [])
        self.avoid_partners = list(avoid_partners or [])
        self.is_active = is_active

    def to_engine(self):
        # Older rows may hold low/medium/high; the engine treats those as developing
        skill_level = self.skill_level if self.skill_level in SKILL_LEVELS else None
        working_style = self.working_style if self.working_style in WORKING_STYLES else None
        return RosterStudent(
            id=self.id,
            name=self.name,
            skill_level=skill_level,
            working_style=working_style,
            preferred_partners=frozenset(self.preferred_partners or []),
            avoid_partners=frozenset(self.avoid_partners or []),
        )

    def get_json(self):
        return {
            'id': self.id,
            'name': self.name,
            'skillLevel': self.skill_level,
            'workingStyle': self.working_style,
            'preferredPartners': list(self.preferred_partners or []),
            'avoidPartners': list(self.avoid_partners or []),
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f'<Student {self.id} {self.name}>'
