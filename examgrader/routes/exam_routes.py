"""
Exam routes: create, list and fetch exams with their answer keys.
"""
import json
from flask import Blueprint

from ..responses import send_success
from ..errors import NotFoundError, ValidationError
from .common import get_context, current_teacher, request_data, require_fields

exam_bp = Blueprint('exams', __name__)


def parse_answer_key(value):
    """Answer keys arrive as JSON (list or object) or as a JSON string from a form."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise ValidationError("Answer key must be valid JSON")
    if not isinstance(value, (list, dict)):
        raise ValidationError("Answer key must be a JSON list or object")
    return value


def parse_total_points(value):
    try:
        points = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Total points must be a whole number")
    if points <= 0:
        raise ValidationError("Total points must be positive")
    return points


@exam_bp.route('/api/exams', methods=['POST'])
def create_exam():
    store = get_context().store
    data = request_data()
    require_fields(data, ('name', 'class_id', 'total_points', 'answer_key', 'exam_date'),
                   'Name, class ID, total points, answer key, and exam date are required')

    record = {
        "exam_name": data['name'],
        "class_id": data['class_id'],
        "total_points": parse_total_points(data['total_points']),
        "answer_key": parse_answer_key(data['answer_key']),
        "exam_date": data['exam_date'],
    }

    teacher = current_teacher(store)
    if not store.get_class(record['class_id'], teacher['id']):
        raise NotFoundError("Class not found")
    record['teacher_id'] = teacher['id']

    exam = store.create_exam(record)
    store.log_activity(teacher['id'], 'CREATE_EXAM', f"Created exam: {data['name']}")
    return send_success(exam, 'Exam created successfully', 201)


@exam_bp.route('/api/exams', methods=['GET'])
def get_exams():
    store = get_context().store
    teacher = current_teacher(store)
    return send_success(store.list_exams(teacher['id']))


@exam_bp.route('/api/exams/<exam_id>', methods=['GET'])
def get_exam_by_id(exam_id):
    store = get_context().store
    teacher = current_teacher(store)
    exam = store.get_exam(exam_id, teacher_id=teacher['id'], with_submissions=True)
    if not exam:
        raise NotFoundError("Exam not found")
    return send_success(exam)
