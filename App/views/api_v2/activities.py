from flask import request

from App.controllers import create_activity, get_activities_json, get_activity
from App.services import get_group_service
from App.views.api_v2 import api_v2
from App.views.api_v2.utils import api_error, api_success, group_endpoint, validate_json_request


@api_v2.route('/activities', methods=['GET'])
@group_endpoint("retrieve activities")
def list_activities():
    return api_success(get_activities_json(), "Activities retrieved successfully")


@api_v2.route('/activities', methods=['POST'])
@group_endpoint("create activity")
def add_activity():
    """
    Create a schedule activity

    Expected JSON body:
    {
        "name": "Reading Groups",
        "icon": "📚",
        "duration": 30,
        "category": "academic"
    }
    """
    data, error = validate_json_request(request, ['name'])
    if error:
        return error

    try:
        duration = int(data.get('duration', 30))
    except (TypeError, ValueError):
        return api_error("duration must be a whole number of minutes", status_code=400)
    if duration <= 0:
        return api_error("duration must be positive", status_code=400)

    activity = create_activity(
        name=str(data['name']).strip(),
        icon=data.get('icon'),
        duration=duration,
        category=data.get('category') or 'academic',
    )
    return api_success(activity.get_json(), "Activity created successfully", status_code=201)


@api_v2.route('/activities/<int:activity_id>', methods=['GET'])
@group_endpoint("retrieve activity")
def activity_detail(activity_id):
    activity = get_activity(activity_id)
    if activity is None:
        return api_error(f"Activity {activity_id} not found", status_code=404)

    data = activity.get_json()
    data['assignment'] = activity.assignment.record if activity.assignment else None
    return api_success(data)


@api_v2.route('/activities/<int:activity_id>/save', methods=['POST'])
@group_endpoint("save assignment")
def save_assignment(activity_id):
    record = get_group_service().save(activity_id)
    return api_success(record, "Assignment saved")


@api_v2.route('/activities/<int:activity_id>/display', methods=['GET'])
@group_endpoint("build display")
def activity_display(activity_id):
    """What the shared classroom display shows for the saved assignment"""
    return api_success(get_group_service().get_display(activity_id))
