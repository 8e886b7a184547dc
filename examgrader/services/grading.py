"""
Submission grading workflow.

    intake -> oracle -> student reconciliation -> submission upsert -> response

The workflow holds no state of its own. Its collaborators (record store,
oracle, matcher) arrive in a GradingContext built once by the app factory and
passed into every call.
"""
import logging
from datetime import datetime, timezone

from ..errors import NotFoundError, ValidationError
from .matching import SubstringCodeMatcher

logger = logging.getLogger(__name__)

STATUS_GRADED = 'graded'
STATUS_PENDING_MATCH = 'pending_match'
SUBMISSION_STATUSES = (STATUS_GRADED, STATUS_PENDING_MATCH)


def utc_now_iso():
    return datetime.now(timezone.utc).isoformat()


class GradingContext:
    """Per-process collaborators for the grading workflow."""

    def __init__(self, store, oracle, matcher=None, clock=utc_now_iso):
        self.store = store
        self.oracle = oracle
        self.matcher = matcher or SubstringCodeMatcher()
        self.clock = clock


def load_exam(ctx, exam_id, teacher_id=None):
    if not exam_id:
        raise ValidationError("Exam ID is required")
    exam = ctx.store.get_exam(exam_id, teacher_id)
    if not exam:
        raise NotFoundError("Exam not found")
    return exam


def reconcile_student(ctx, exam, student_id, extracted_code):
    """Resolve a student from the extracted roster code when none was supplied."""
    if student_id:
        return student_id
    if not extracted_code:
        return None
    roster = ctx.store.list_students(exam.get('class_id'))
    return ctx.matcher.resolve(roster, extracted_code)


def build_submission_record(exam_id, student_id, image_location, result, graded_at):
    return {
        "exam_id": exam_id,
        "student_id": student_id or None,
        "submission_image_url": image_location,
        "graded_score": result.score or 0,
        "feedback": result.feedback,
        "question_results": result.question_results or [],
        "status": STATUS_GRADED if student_id else STATUS_PENDING_MATCH,
        "graded_at": graded_at,
    }


def save_submission(store, record):
    """Persist one grading attempt.

    Resolved submissions go through an atomic upsert on (exam_id, student_id)
    so a re-grade replaces the earlier row. Unresolved ones are plain inserts:
    a row with a null student must never land on top of a resolved one.
    Repeated unresolved uploads of the same page therefore add new
    pending_match rows.
    """
    if record.get('student_id'):
        return store.upsert_submission(record)
    return store.insert_submission(record)


def process_submission(ctx, exam, image_bytes, media_type, image_location, student_id=None):
    """Grade an already-stored submission image and record the outcome.

    Returns the persisted submission annotated with extracted_code and
    is_matched. Oracle trouble degrades to a zero score; store errors propagate.
    """
    result = ctx.oracle.grade(exam, image_bytes, media_type)
    if result.degraded:
        logger.warning("Exam %s graded with degraded result, manual review needed", exam.get('id'))

    resolved_id = reconcile_student(ctx, exam, student_id, result.student_code)
    record = build_submission_record(exam['id'], resolved_id, image_location, result, ctx.clock())
    submission = save_submission(ctx.store, record)
    if submission is None:
        submission = dict(record)

    logger.info("Submission for exam %s saved as %s (student=%s, code=%r)",
                exam['id'], record['status'], resolved_id, result.student_code)

    response = dict(submission)
    response['extracted_code'] = result.student_code
    response['is_matched'] = bool(resolved_id)
    return response


def build_grade_update(data, graded_at):
    """Fields for a manual grade correction. Only keys present in data are touched."""
    fields = {}
    for key in ('graded_score', 'feedback', 'status', 'student_id', 'question_results'):
        if key in data:
            fields[key] = data[key]

    if 'status' in fields and fields['status'] not in SUBMISSION_STATUSES:
        raise ValidationError("Status must be one of: " + ", ".join(SUBMISSION_STATUSES))
    if 'question_results' in fields and not isinstance(fields['question_results'], list):
        raise ValidationError("question_results must be a list")
    if 'graded_score' in fields:
        try:
            fields['graded_score'] = float(fields['graded_score'])
        except (TypeError, ValueError):
            raise ValidationError("graded_score must be a number")
    if not fields:
        raise ValidationError("No grade fields provided")

    fields['graded_at'] = graded_at
    return fields
