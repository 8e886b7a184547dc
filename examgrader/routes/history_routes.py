"""
Activity history for the signed-in teacher.
"""
from flask import Blueprint, request

from ..responses import send_success
from ..errors import ValidationError
from .common import get_context, current_teacher

history_bp = Blueprint('history', __name__)

MAX_HISTORY_LIMIT = 500


@history_bp.route('/api/history', methods=['GET'])
def get_history():
    store = get_context().store
    try:
        limit = int(request.args.get('limit', 50))
    except ValueError:
        raise ValidationError("limit must be a number")
    limit = max(1, min(limit, MAX_HISTORY_LIMIT))

    teacher = current_teacher(store)
    return send_success(store.list_activity(teacher['id'], limit))
