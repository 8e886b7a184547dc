"""
Helpers shared by the route blueprints.
"""
from flask import current_app, g, request

from ..errors import NotFoundError, ValidationError

EXTENSION_KEY = 'examgrader'


def get_context():
    """The GradingContext the app factory attached to this app."""
    return current_app.extensions[EXTENSION_KEY]


def current_teacher(store):
    """Teacher profile of the authenticated user."""
    teacher = store.get_teacher_by_user(g.user_id)
    if not teacher:
        raise NotFoundError("Teacher not found")
    return teacher


def request_data():
    """JSON body, or form fields for multipart/urlencoded requests."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def require_fields(data, fields, message):
    if any(data.get(name) in (None, '') for name in fields):
        raise ValidationError(message)
