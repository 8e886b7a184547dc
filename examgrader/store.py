"""
Record store backed by Supabase (auth + Postgres via PostgREST).

All table access goes through RecordStore so that routes and services never
touch the Supabase client directly. Any failure coming back from Supabase is
logged and re-raised as StoreError.
"""
import logging
from supabase import create_client, Client, ClientOptions

from .errors import StoreError, ValidationError, AuthError

logger = logging.getLogger(__name__)

SUBMISSION_CONFLICT_TARGET = 'exam_id,student_id'


def _first(result):
    """Return the first row of a PostgREST result, or None."""
    rows = result.data or []
    if isinstance(rows, dict):
        return rows
    return rows[0] if rows else None


class RecordStore:
    """Table-level operations used by the grading workflow and the CRUD routes."""

    def __init__(self, client: Client, url: str = "", key: str = ""):
        self.client = client
        self._url = url
        self._key = key

    @classmethod
    def from_config(cls, config):
        url = config.supabase_url
        key = config.supabase_key
        if not url or not key:
            raise RuntimeError("Supabase credentials not configured. Check SUPABASE_URL and SUPABASE_SERVICE_KEY in .env")
        client = create_client(url, key, options=_server_options())
        return cls(client, url, key)

    def _execute(self, query, action):
        try:
            return query.execute()
        except Exception as e:
            logger.error("Supabase %s failed: %s", action, e)
            raise StoreError("Failed to " + action) from e

    # ============ Auth ============

    def create_user(self, email, password):
        """Create a confirmed Supabase auth user and return its id."""
        try:
            res = self.client.auth.admin.create_user({
                "email": email,
                "password": password,
                "email_confirm": True,
            })
        except Exception as e:
            logger.warning("Signup rejected for %s: %s", email, e)
            raise ValidationError("Could not create user: " + _auth_message(e)) from e
        return res.user.id

    def delete_user(self, user_id):
        try:
            self.client.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error("Failed to roll back auth user %s: %s", user_id, e)

    def sign_in(self, email, password):
        """Sign in with a throwaway client so the service session is never replaced."""
        auth_client = create_client(self._url, self._key, options=_server_options())
        try:
            res = auth_client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.info("Login failed for %s: %s", email, e)
            raise AuthError("Invalid credentials") from e
        if res.user is None or res.session is None:
            raise AuthError("Invalid credentials")
        return {
            "user_id": res.user.id,
            "email": res.user.email,
            "access_token": res.session.access_token,
        }

    # ============ Teachers ============

    def get_teacher_by_user(self, user_id):
        result = self._execute(
            self.client.table('teachers').select('id, user_id, full_name, created_at')
            .eq('user_id', user_id).limit(1),
            'fetch teacher')
        return _first(result)

    def create_teacher(self, user_id, full_name):
        result = self._execute(
            self.client.table('teachers').insert({"user_id": user_id, "full_name": full_name}),
            'create teacher profile')
        return _first(result)

    # ============ Classes & Students ============

    def create_class(self, teacher_id, class_name, grade_level, subject):
        result = self._execute(
            self.client.table('classes').insert({
                "teacher_id": teacher_id,
                "class_name": class_name,
                "grade_level": grade_level,
                "subject": subject,
            }),
            'create class')
        return _first(result)

    def list_classes(self, teacher_id):
        result = self._execute(
            self.client.table('classes').select('*, students(count)')
            .eq('teacher_id', teacher_id).order('created_at', desc=True),
            'fetch classes')
        return result.data or []

    def get_class(self, class_id, teacher_id=None):
        query = self.client.table('classes').select('*').eq('id', class_id)
        if teacher_id is not None:
            query = query.eq('teacher_id', teacher_id)
        return _first(self._execute(query.limit(1), 'fetch class'))

    def create_student(self, class_id, student_name, student_code):
        result = self._execute(
            self.client.table('students').insert({
                "class_id": class_id,
                "student_name": student_name,
                "student_code": student_code,
            }),
            'add student')
        return _first(result)

    def list_students(self, class_id):
        result = self._execute(
            self.client.table('students').select('*')
            .eq('class_id', class_id).order('student_name'),
            'fetch students')
        return result.data or []

    # ============ Exams ============

    def create_exam(self, record):
        return _first(self._execute(self.client.table('exams').insert(record), 'create exam'))

    def list_exams(self, teacher_id):
        result = self._execute(
            self.client.table('exams').select(
                '*, class:classes(class_name, grade_level), submissions:exam_submissions(count)'
            ).eq('teacher_id', teacher_id).order('created_at', desc=True),
            'fetch exams')
        return result.data or []

    def get_exam(self, exam_id, teacher_id=None, with_submissions=False):
        columns = '*, class:classes(class_name, grade_level)'
        if with_submissions:
            columns += ', submissions:exam_submissions(*)'
        query = self.client.table('exams').select(columns).eq('id', exam_id)
        if teacher_id is not None:
            query = query.eq('teacher_id', teacher_id)
        return _first(self._execute(query.limit(1), 'fetch exam'))

    # ============ Submissions ============

    def upsert_submission(self, record):
        """Atomic insert-or-update on (exam_id, student_id)."""
        result = self._execute(
            self.client.table('exam_submissions').upsert(
                record, on_conflict=SUBMISSION_CONFLICT_TARGET, ignore_duplicates=False),
            'save submission')
        return _first(result)

    def insert_submission(self, record):
        result = self._execute(
            self.client.table('exam_submissions').insert(record),
            'save submission')
        return _first(result)

    def list_submissions(self, teacher_id, exam_id=None):
        """Submissions on the teacher's exams, newest first."""
        query = self.client.table('exam_submissions').select(
            '*, student:students(*), exam:exams!inner(exam_name, total_points, teacher_id)'
        ).eq('exam.teacher_id', teacher_id).order('graded_at', desc=True)
        if exam_id:
            query = query.eq('exam_id', exam_id)
        return self._execute(query, 'fetch grades').data or []

    def get_submission(self, submission_id, teacher_id):
        query = self.client.table('exam_submissions').select(
            '*, exam:exams!inner(teacher_id)'
        ).eq('id', submission_id).eq('exam.teacher_id', teacher_id)
        return _first(self._execute(query.limit(1), 'fetch submission'))

    def update_submission(self, submission_id, fields):
        result = self._execute(
            self.client.table('exam_submissions').update(fields).eq('id', submission_id),
            'update grade')
        return _first(result)

    def list_class_submissions(self, class_id):
        result = self._execute(
            self.client.table('exam_submissions').select(
                'graded_score, exam:exams!inner(class_id, total_points)'
            ).eq('exam.class_id', class_id),
            'fetch class submissions')
        return result.data or []

    # ============ Activity log ============

    def log_activity(self, teacher_id, activity_type, description):
        """Record an activity entry. Failures are logged, never raised."""
        try:
            self.client.table('activity_log').insert({
                "teacher_id": teacher_id,
                "activity_type": activity_type,
                "description": description,
            }).execute()
        except Exception as e:
            logger.warning("Failed to log activity %s for teacher %s: %s", activity_type, teacher_id, e)

    def list_activity(self, teacher_id, limit=50):
        result = self._execute(
            self.client.table('activity_log').select('*')
            .eq('teacher_id', teacher_id).order('created_at', desc=True).limit(limit),
            'fetch history')
        return result.data or []


def _server_options():
    return ClientOptions(auto_refresh_token=False, persist_session=False)


def _auth_message(error):
    return getattr(error, 'message', None) or str(error)
