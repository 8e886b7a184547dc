"""
Supabase JWT authentication.
Validates Bearer tokens on all /api/ routes except public endpoints.
"""
import jwt
from flask import request, g, current_app

from .responses import send_error


# Routes that don't require authentication
PUBLIC_PREFIXES = []

PUBLIC_EXACT = [
    '/api/health',
    '/api/auth/login',
    '/api/auth/signup',
]


def get_jwt_secret():
    """Get the Supabase JWT secret from app config."""
    secret = current_app.config.get('SUPABASE_JWT_SECRET')
    if not secret:
        raise RuntimeError('SUPABASE_JWT_SECRET not configured')
    return secret


def validate_token(token):
    """Decoded Supabase JWT payload, or None for any invalid or expired token."""
    try:
        return jwt.decode(token, get_jwt_secret(), algorithms=['HS256'], audience='authenticated')
    except jwt.InvalidTokenError:
        return None


def is_public_route(path):
    return path in PUBLIC_EXACT or path.startswith(tuple(PUBLIC_PREFIXES))


def init_auth(app):
    """
    Register the before_request auth hook on the Flask app.
    Call this BEFORE registering blueprints.
    """
    @app.before_request
    def check_auth():
        # Skip non-API routes (uploaded files, etc.)
        if not request.path.startswith('/api/'):
            return None

        if request.method == 'OPTIONS' or is_public_route(request.path):
            return None

        # Unknown routes fall through to the 404 handler
        if request.url_rule is None:
            return None

        auth_header = request.headers.get('Authorization', '')
        if not auth_header.startswith('Bearer '):
            return send_error('Access token required', 401)

        token = auth_header[7:]  # Strip 'Bearer '
        payload = validate_token(token)
        if payload is None or not payload.get('sub'):
            return send_error('Invalid or expired token', 401)

        g.user_id = payload.get('sub')
        g.user_email = payload.get('email', '')
