"""
Exam Grader Backend Package
===========================

Flask-based REST backend for grading scanned math exams with a vision model.

Structure:
- routes/: API route blueprints
- services/: grading workflow, oracle adapter, roster matching
- store.py: Supabase record store
- config.py: Configuration management
"""

from .config import Config

__version__ = "1.0.0"

__all__ = ['Config', 'create_app']


def create_app(*args, **kwargs):
    from .app import create_app as _create_app
    return _create_app(*args, **kwargs)
