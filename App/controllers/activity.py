from App.models import Activity
from App.database import db

__all__ = ['create_activity', 'get_activity', 'get_all_activities', 'get_activities_json']


def create_activity(name, icon=None, duration=30, category='academic'):
    activity = Activity(name=name, icon=icon, duration=duration, category=category)
    try:
        db.session.add(activity)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return activity


def get_activity(activity_id):
    return db.session.get(Activity, activity_id)


def get_all_activities():
    return Activity.query.order_by(Activity.id).all()


def get_activities_json():
    return [activity.get_json() for activity in get_all_activities()]
