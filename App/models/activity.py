from datetime import datetime

from App.database import db
from App.utils.time_utils import isoformat_or_none
from group_engine.persistence import assignment_from_record

__all__ = ['Activity', 'ActivityAssignment']


class Activity(db.Model):
    """One block on the daily visual schedule."""

    __tablename__ = 'activity'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    icon = db.Column(db.String(16), nullable=True)
    duration = db.Column(db.Integer, nullable=False, default=30)  # minutes
    category = db.Column(db.String(40), nullable=False, default='academic')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    assignment = db.relationship(
        'ActivityAssignment',
        back_populates='activity',
        uselist=False,
        cascade='all, delete-orphan',
    )

    __table_args__ = (
        db.CheckConstraint("LENGTH(name) > 0", name='check_activity_name_not_empty'),
        db.CheckConstraint("duration > 0", name='check_activity_duration_positive'),
    )

    def __init__(self, name, icon=None, duration=30, category='academic'):
        self.name = name
        self.icon = icon
        self.duration = duration
        self.category = category

    def get_json(self):
        return {
            'id': self.id,
            'name': self.name,
            'icon': self.icon,
            'duration': self.duration,
            'category': self.category,
            'hasAssignment': self.assignment is not None,
        }


class ActivityAssignment(db.Model):
    """Saved assignment record for an activity, stored as the camelCase JSON document."""

    __tablename__ = 'activity_assignment'

    id = db.Column(db.Integer, primary_key=True)
    activity_id = db.Column(
        db.Integer,
        db.ForeignKey('activity.id', ondelete='CASCADE'),
        nullable=False,
        unique=True,
    )
    record = db.Column(db.JSON, nullable=False, default=dict)
    is_whole_class = db.Column(db.Boolean, nullable=False, default=True)
    grouping_type = db.Column(db.String(20), nullable=False, default='whole-class')
    saved_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    activity = db.relationship('Activity', back_populates='assignment')

    def __init__(self, activity_id, record=None):
        self.activity_id = activity_id
        self.set_record(record or {})

    def set_record(self, record):
        self.record = dict(record)
        self.is_whole_class = bool(record.get('isWholeClass', True))
        self.grouping_type = record.get('groupingType') or 'whole-class'
        self.saved_at = datetime.utcnow()

    def to_assignment(self):
        return assignment_from_record(self.record)

    def get_json(self):
        return {
            'activityId': self.activity_id,
            'assignment': self.record,
            'savedAt': isoformat_or_none(self.saved_at),
        }
