#!/usr/bin/env python3
"""
Exam Grader - AI-assisted math exam grading API
===============================================
Run: python3 -m examgrader.app
API base: http://localhost:3000/api
"""
import logging
import os
from datetime import datetime, timezone

from flask import Flask, request, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, NotFound, RequestEntityTooLarge

from .config import Config
from .auth import init_auth
from .errors import ExamGraderError
from .responses import send_success, send_error
from .routes import register_routes
from .routes.common import EXTENSION_KEY
from .services.grading import GradingContext
from .services.oracle import GradingOracle
from .store import RecordStore

logger = logging.getLogger(__name__)


def configure_logging(level="INFO"):
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    root.setLevel(level)


def register_error_handlers(app):
    @app.errorhandler(ExamGraderError)
    def handle_app_error(e):
        if e.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, e.__cause__ or e)
        return send_error(e.message, e.status_code)

    @app.errorhandler(NotFound)
    def handle_not_found(e):
        return send_error('Route not found', 404)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return send_error('Submission file is too large', 413)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return send_error(e.description or e.name, e.code)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return send_error('Internal server error', 500)


def create_app(config=None, store=None, oracle=None, matcher=None):
    """Build the Flask app.

    store and oracle default to the Supabase store and the configured vision
    model; tests pass their own.
    """
    config = config or Config.from_env()
    configure_logging(config.log_level)

    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.max_file_size
    app.config['UPLOAD_DIR'] = config.upload_dir
    app.config['SUPABASE_JWT_SECRET'] = config.jwt_secret
    CORS(app)

    if store is None:
        store = RecordStore.from_config(config)
    if oracle is None:
        oracle = GradingOracle.from_config(config)
    app.extensions[EXTENSION_KEY] = GradingContext(store, oracle, matcher=matcher)

    @app.before_request
    def log_request():
        logger.info("%s %s", request.method, request.path)

    init_auth(app)
    register_error_handlers(app)
    register_routes(app)

    @app.route('/api/health')
    def health():
        return send_success({"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()})

    @app.route('/uploads/exams/<path:filename>')
    def serve_upload(filename):
        """Serve stored submission images."""
        return send_from_directory(os.path.abspath(app.config['UPLOAD_DIR']), filename)

    return app


def main():
    config = Config.from_env()
    app = create_app(config)
    logger.info("Exam grader API listening on http://%s:%s/api", config.host, config.port)
    app.run(host=config.host, port=config.port, debug=config.debug)


if __name__ == '__main__':
    main()
