from flask import request

from App.controllers import (
    create_staff,
    create_student,
    get_all_staff,
    get_all_students,
    get_staff,
    get_student,
)
from App.views.api_v2 import api_v2
from App.views.api_v2.utils import api_error, api_success, group_endpoint, validate_json_request


@api_v2.route('/roster/students', methods=['GET'])
@group_endpoint("retrieve students")
def list_students():
    """
    List roster students

    Query params:
        active: 'true' to return only active students
    """
    students = get_all_students()
    if request.args.get('active', '').lower() == 'true':
        students = [student for student in students if student.is_active]
    return api_success([student.get_json() for student in students], "Students retrieved successfully")


@api_v2.route('/roster/students', methods=['POST'])
@group_endpoint("create student")
def add_student():
    """
    Add a student to the roster

    Expected JSON body:
    {
        "id": "stu-09",
        "name": "Iris",
        "skillLevel": "proficient",
        "workingStyle": "collaborative",
        "preferredPartners": ["stu-01"],
        "avoidPartners": []
    }
    """
    data, error = validate_json_request(request, ['id', 'name'])
    if error:
        return error

    student_id = str(data['id']).strip()
    if get_student(student_id):
        return api_error(f"Student '{student_id}' already exists", status_code=409)

    try:
        student = create_student(
            id=student_id,
            name=str(data['name']).strip(),
            skill_level=data.get('skillLevel'),
            working_style=data.get('workingStyle'),
            preferred_partners=data.get('preferredPartners') or [],
            avoid_partners=data.get('avoidPartners') or [],
        )
    except ValueError as e:
        return api_error(str(e), status_code=400)
    return api_success(student.get_json(), "Student created successfully", status_code=201)


@api_v2.route('/roster/staff', methods=['GET'])
@group_endpoint("retrieve staff")
def list_staff():
    staff = get_all_staff()
    if request.args.get('active', '').lower() == 'true':
        staff = [member for member in staff if member.is_active]
    return api_success([member.get_json() for member in staff], "Staff retrieved successfully")


@api_v2.route('/roster/staff', methods=['POST'])
@group_endpoint("create staff member")
def add_staff():
    """
    Add a staff member

    Expected JSON body:
    {
        "id": "staff-04",
        "name": "Mx. Lee",
        "role": "Occupational Therapist",
        "photo": null
    }
    """
    data, error = validate_json_request(request, ['id', 'name'])
    if error:
        return error

    staff_id = str(data['id']).strip()
    if get_staff(staff_id):
        return api_error(f"Staff member '{staff_id}' already exists", status_code=409)

    member = create_staff(
        id=staff_id,
        name=str(data['name']).strip(),
        role=data.get('role') or '',
        photo=data.get('photo'),
    )
    return api_success(member.get_json(), "Staff member created successfully", status_code=201)
