"""
Class and roster routes.
"""
from flask import Blueprint

from ..responses import send_success
from ..errors import NotFoundError
from ..services.analysis import summarize_class
from .common import get_context, current_teacher, request_data, require_fields

class_bp = Blueprint('classes', __name__)


def _owned_class(store, class_id, teacher):
    klass = store.get_class(class_id, teacher['id'])
    if not klass:
        raise NotFoundError("Class not found")
    return klass


@class_bp.route('/api/classes', methods=['POST'])
def create_class():
    store = get_context().store
    data = request_data()
    require_fields(data, ('name', 'grade_level', 'subject'),
                   'Class name, grade level, and subject are required')
    teacher = current_teacher(store)

    klass = store.create_class(teacher['id'], data['name'], data['grade_level'], data['subject'])
    store.log_activity(teacher['id'], 'CREATE_CLASS', f"Created class: {data['name']}")
    return send_success(klass, 'Class created successfully', 201)


@class_bp.route('/api/classes', methods=['GET'])
def get_classes():
    """Teacher's classes with student counts, newest first."""
    store = get_context().store
    teacher = current_teacher(store)
    return send_success(store.list_classes(teacher['id']))


@class_bp.route('/api/classes/students', methods=['POST'])
def add_student():
    """Add a student with a roster code to one of the teacher's classes."""
    store = get_context().store
    data = request_data()
    # student_id is accepted as an alias for the roster code
    if not data.get('student_code') and data.get('student_id'):
        data['student_code'] = data['student_id']
    require_fields(data, ('class_id', 'name', 'student_code'),
                   'Class ID, name, and student code are required')
    teacher = current_teacher(store)
    _owned_class(store, data['class_id'], teacher)

    student = store.create_student(data['class_id'], data['name'], str(data['student_code']).strip())
    store.log_activity(teacher['id'], 'ADD_STUDENT', f"Added student: {data['name']} to class")
    return send_success(student, 'Student added successfully', 201)


@class_bp.route('/api/classes/<class_id>/students', methods=['GET'])
def get_class_students(class_id):
    store = get_context().store
    _owned_class(store, class_id, current_teacher(store))
    return send_success(store.list_students(class_id))


@class_bp.route('/api/classes/<class_id>/analysis', methods=['GET'])
def get_class_analysis(class_id):
    """Average percentage and pass rate over every graded submission in the class."""
    store = get_context().store
    _owned_class(store, class_id, current_teacher(store))
    return send_success(summarize_class(store.list_class_submissions(class_id)))
