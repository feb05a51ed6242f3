from datetime import datetime

from App.database import db
from group_engine.models import Staff as RosterStaff

__all__ = ['StaffMember']


class StaffMember(db.Model):
    __tablename__ = 'staff'

    id = db.Column(db.String(50), primary_key=True)
    name = db.Column(db.String(120), nullable=False, index=True)
    role = db.Column(db.String(60), nullable=False, default='')
    photo = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint("LENGTH(id) > 0", name='check_staff_id_not_empty'),
        db.CheckConstraint("LENGTH(name) > 0", name='check_staff_name_not_empty'),
    )

    def __init__(self, id, name, role='', photo=None, is_active=True):
        self.id = id
        self.name = name
        self.role = role or ''
        self.photo = photo
        self.is_active = is_active

    def to_engine(self):
        return RosterStaff(id=self.id, name=self.name, role=self.role or '', photo=self.photo)

    def get_json(self):
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role,
            'photo': self.photo,
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f'<StaffMember {self.id} {self.name}>'
