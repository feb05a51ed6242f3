from App.models import ActivityAssignment
from App.database import db

__all__ = ['get_assignment_record', 'get_assignment', 'put_assignment_record']


def get_assignment_record(activity_id):
    return ActivityAssignment.query.filter_by(activity_id=activity_id).first()


def get_assignment(activity_id):
    """The stored Assignment for an activity, or None when nothing was saved yet."""
    stored = get_assignment_record(activity_id)
    if stored is None:
        return None
    return stored.to_assignment()


def put_assignment_record(activity_id, record):
    """Insert or replace the saved record. The caller owns the commit."""
    stored = get_assignment_record(activity_id)
    if stored is None:
        stored = ActivityAssignment(activity_id=activity_id, record=record)
        db.session.add(stored)
    else:
        stored.set_record(record)
    return stored
