"""
Grading API routes.
Handles submission upload + automatic grading, grade listing and manual correction.
"""
import logging
from flask import Blueprint, request, current_app

from ..responses import send_success
from ..services.grading import load_exam, process_submission, build_grade_update
from ..services.oracle import check_exam_contract
from ..uploads import read_submission_file, save_submission_file, remove_submission_file
from ..errors import ValidationError, NotFoundError, StoreError
from .common import get_context, current_teacher, request_data

grade_bp = Blueprint('grades', __name__)
logger = logging.getLogger(__name__)


@grade_bp.route('/api/grades', methods=['POST'])
def grade_exam():
    """
    Upload a submission image and grade it.

    Multipart fields: exam_id (required), student_id (optional),
    submission (jpg/png/pdf, required). When student_id is missing the
    roster code read from the page is used to find the student.
    """
    ctx = get_context()
    exam_id = (request.form.get('exam_id') or '').strip()
    student_id = (request.form.get('student_id') or '').strip() or None
    upload = request.files.get('submission')

    if not exam_id or upload is None or not upload.filename:
        raise ValidationError("Exam ID and submission image are required")
    data, media_type, extension = read_submission_file(upload)

    teacher = current_teacher(ctx.store)
    exam = load_exam(ctx, exam_id, teacher['id'])
    check_exam_contract(exam)
    location = save_submission_file(current_app.config['UPLOAD_DIR'], data, extension)

    try:
        submission = process_submission(ctx, exam, data, media_type, location, student_id)
    except StoreError:
        remove_submission_file(current_app.config['UPLOAD_DIR'], location)
        raise
    return send_success(submission, 'Exam processed successfully', 201)


@grade_bp.route('/api/grades', methods=['GET'])
def get_grades():
    """List the teacher's submissions (newest first), optionally for one exam."""
    ctx = get_context()
    teacher = current_teacher(ctx.store)
    exam_id = request.args.get('exam_id')
    return send_success(ctx.store.list_submissions(teacher['id'], exam_id))


@grade_bp.route('/api/grades/<submission_id>', methods=['PUT'])
def update_grade(submission_id):
    """Manual grade correction by the teacher."""
    ctx = get_context()
    teacher = current_teacher(ctx.store)
    fields = build_grade_update(request_data(), ctx.clock())
    if not ctx.store.get_submission(submission_id, teacher['id']):
        raise NotFoundError("Submission not found")
    updated = ctx.store.update_submission(submission_id, fields)
    if not updated:
        raise NotFoundError("Submission not found")
    logger.info("Submission %s manually updated (%s)", submission_id, ", ".join(sorted(fields)))
    return send_success(updated, 'Grade updated successfully')
