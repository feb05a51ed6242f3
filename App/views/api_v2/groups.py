from flask import request

from App.services import get_group_service
from App.views.api_v2 import api_v2
from App.views.api_v2.utils import (
    api_success,
    group_endpoint,
    optional_json,
    parse_bool,
    validate_json_request,
)
from group_engine import TEMPLATE_CATALOG
from group_engine.templates import template_to_dict


@api_v2.route('/group-templates', methods=['GET'])
@group_endpoint("retrieve group templates")
def list_group_templates():
    return api_success([template_to_dict(template) for template in TEMPLATE_CATALOG])


# ---------------------------------------------------------------------------
# Editing session
# ---------------------------------------------------------------------------

@api_v2.route('/activities/<int:activity_id>/session', methods=['POST'])
@group_endpoint("open editing session")
def open_session(activity_id):
    """Load (or reload) the saved assignment, dropping unsaved changes"""
    service = get_group_service()
    service.open_session(activity_id)
    return api_success(service.describe(activity_id), "Editing session opened")


@api_v2.route('/activities/<int:activity_id>/session', methods=['GET'])
@group_endpoint("retrieve editing session")
def session_state(activity_id):
    return api_success(get_group_service().describe(activity_id))


@api_v2.route('/activities/<int:activity_id>/session', methods=['DELETE'])
@group_endpoint("discard editing session")
def discard_session(activity_id):
    discarded = get_group_service().discard_session(activity_id)
    return api_success({'discarded': discarded}, "Editing session discarded")


# ---------------------------------------------------------------------------
# Groups
# ---------------------------------------------------------------------------

@api_v2.route('/activities/<int:activity_id>/groups', methods=['POST'])
@group_endpoint("create group")
def create_group(activity_id):
    """
    Create a group from a template, or a custom group when no template_id is sent

    Expected JSON body (optional):
    {
        "template_id": "reading-advanced"
    }
    """
    data = optional_json()
    template_id = data.get('template_id') or data.get('templateId')
    group = get_group_service().create_group(activity_id, template_id)
    return api_success(group, "Group created", status_code=201)


@api_v2.route('/activities/<int:activity_id>/groups/<group_id>', methods=['PATCH'])
@group_endpoint("update group")
def update_group(activity_id, group_id):
    """
    Rename, recolor or otherwise edit a group. Membership changes go through /moves.

    Expected JSON body:
    {
        "name": "Blue Table",
        "color": "#2196f3"
    }
    """
    data, error = validate_json_request(request)
    if error:
        return error
    group = get_group_service().edit_group(activity_id, group_id, data)
    return api_success(group, "Group updated")


@api_v2.route('/activities/<int:activity_id>/groups/<group_id>', methods=['DELETE'])
@group_endpoint("delete group")
def delete_group(activity_id, group_id):
    confirmed = parse_bool(request.args.get('confirm', 'false'))
    group = get_group_service().delete_group(activity_id, group_id, confirmed=confirmed)
    return api_success(group, "Group deleted")


@api_v2.route('/activities/<int:activity_id>/groups/<group_id>/lead', methods=['PUT'])
@group_endpoint("assign group lead")
def assign_lead(activity_id, group_id):
    data, error = validate_json_request(request, ['staff_id'])
    if error:
        return error
    group = get_group_service().assign_lead(activity_id, group_id, str(data['staff_id']))
    return api_success(group, "Lead staff assigned")


@api_v2.route('/activities/<int:activity_id>/groups/<group_id>/lead', methods=['DELETE'])
@group_endpoint("remove group lead")
def remove_lead(activity_id, group_id):
    group = get_group_service().remove_lead(activity_id, group_id)
    return api_success(group, "Lead staff removed")


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------

@api_v2.route('/activities/<int:activity_id>/moves', methods=['POST'])
@group_endpoint("move student")
def move_student(activity_id):
    """
    Move a student into a group, or back to the unassigned pool when group_id is null

    Expected JSON body:
    {
        "student_id": "stu-01",
        "group_id": "group-3f2a9c1b7d4e"
    }
    """
    data, error = validate_json_request(request, ['student_id'])
    if error:
        return error
    state = get_group_service().move_student(activity_id, str(data['student_id']), data.get('group_id'))
    return api_success(state, "Student moved")


@api_v2.route('/activities/<int:activity_id>/drag/start', methods=['POST'])
@group_endpoint("start drag")
def drag_start(activity_id):
    data, error = validate_json_request(request, ['student_id'])
    if error:
        return error
    return api_success(get_group_service().start_drag(activity_id, str(data['student_id'])))


@api_v2.route('/activities/<int:activity_id>/drag/drop', methods=['POST'])
@group_endpoint("drop student")
def drag_drop(activity_id):
    target = optional_json().get('target')
    return api_success(get_group_service().drop(activity_id, target))


@api_v2.route('/activities/<int:activity_id>/drag/end', methods=['POST'])
@group_endpoint("end drag")
def drag_end(activity_id):
    return api_success(get_group_service().end_drag(activity_id))


@api_v2.route('/activities/<int:activity_id>/balance', methods=['POST'])
@group_endpoint("balance groups")
def balance_groups(activity_id):
    service = get_group_service()
    sizes = service.balance(activity_id)
    return api_success({'sizes': sizes, 'session': service.describe(activity_id)}, "Groups balanced")


@api_v2.route('/activities/<int:activity_id>/assign-all', methods=['POST'])
@group_endpoint("assign all students")
def assign_all(activity_id):
    return api_success(get_group_service().assign_all(activity_id), "Students assigned")


@api_v2.route('/activities/<int:activity_id>/clear', methods=['POST'])
@group_endpoint("clear groups")
def clear_all(activity_id):
    return api_success(get_group_service().clear_all(activity_id), "Groups cleared")


@api_v2.route('/activities/<int:activity_id>/mode', methods=['POST'])
@group_endpoint("change grouping mode")
def change_mode(activity_id):
    """
    Switch whole-class mode, grouping type, notes or selected staff

    Expected JSON body (any subset):
    {
        "isWholeClass": false,
        "groupingType": "flexible",
        "notes": "Quiet voices",
        "staffId": "staff-02",
        "selected": true
    }
    """
    data = optional_json()
    service = get_group_service()
    whole_class = data.get('isWholeClass')
    state = service.set_mode(
        activity_id,
        whole_class=parse_bool(whole_class) if whole_class is not None else None,
        grouping_type=data.get('groupingType'),
        notes=data.get('notes'),
    )
    if data.get('staffId'):
        state = service.select_staff(activity_id, str(data['staffId']), parse_bool(data.get('selected', True)))
    return api_success(state)


# ---------------------------------------------------------------------------
# Advice
# ---------------------------------------------------------------------------

@api_v2.route('/activities/<int:activity_id>/suggestions/<student_id>', methods=['GET'])
@group_endpoint("suggest groupmates")
def groupmate_suggestions(activity_id, student_id):
    return api_success(get_group_service().suggestions(activity_id, student_id))


@api_v2.route('/activities/<int:activity_id>/preference-conflicts', methods=['GET'])
@group_endpoint("list preference conflicts")
def preference_conflicts(activity_id):
    return api_success(get_group_service().preference_conflicts(activity_id))
