"""
JSON response envelope shared by all routes:
{"success": bool, "message": str, "data": ...}
"""
from flask import jsonify


def send_success(data=None, message='Success', status_code=200):
    return jsonify({
        "success": True,
        "message": message,
        "data": data,
    }), status_code


def send_error(message='Error', status_code=400, errors=None):
    body = {
        "success": False,
        "message": message,
    }
    if errors:
        body["errors"] = errors
    return jsonify(body), status_code
