"""
Auth routes: teacher signup, login and profile.
Signup and login are public; the profile needs a valid token.
"""
import logging
from flask import Blueprint, g

from ..responses import send_success
from ..errors import StoreError
from .common import get_context, current_teacher, request_data, require_fields

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


@auth_bp.route('/api/auth/signup', methods=['POST'])
def signup():
    """Create a Supabase auth user plus its teacher profile.

    If the profile insert fails the auth user is deleted again.
    """
    store = get_context().store
    data = request_data()
    require_fields(data, ('email', 'password', 'name'), 'Email, password, and name are required')

    user_id = store.create_user(data['email'], data['password'])
    try:
        store.create_teacher(user_id, data['name'])
    except StoreError:
        store.delete_user(user_id)
        raise

    logger.info("Teacher signed up: %s (%s)", data['email'], user_id)
    return send_success(
        {"id": user_id, "email": data['email'], "name": data['name']},
        'User created successfully', 201)


@auth_bp.route('/api/auth/login', methods=['POST'])
def login():
    store = get_context().store
    data = request_data()
    require_fields(data, ('email', 'password'), 'Email and password are required')

    session = store.sign_in(data['email'], data['password'])
    g.user_id = session['user_id']
    teacher = current_teacher(store)

    return send_success({
        "token": session['access_token'],
        "user": {
            "id": session['user_id'],
            "email": session['email'],
            "name": teacher.get('full_name'),
        },
    }, 'Login successful')


@auth_bp.route('/api/auth/profile', methods=['GET'])
def get_profile():
    teacher = current_teacher(get_context().store)
    return send_success({
        "id": teacher.get('id'),
        "userId": teacher.get('user_id'),
        "name": teacher.get('full_name'),
        "createdAt": teacher.get('created_at'),
    })
