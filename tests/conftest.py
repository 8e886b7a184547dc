"""
Shared test fixtures for the exam grader.
An in-memory record store stands in for Supabase and a scripted transport
stands in for the vision model. Zero network calls.
"""
import io
import json
import time
import copy
import itertools

import jwt
import pytest

from examgrader.app import create_app
from examgrader.config import Config
from examgrader.errors import StoreError, AuthError, ValidationError
from examgrader.services.oracle import GradingOracle

JWT_SECRET = "test-jwt-secret-with-at-least-32-bytes!"
TEACHER_USER_ID = "user-1"
TEACHER_ID = "teacher-1"
CLASS_ID = "class-1"
EXAM_ID = "exam-1"
STUDENT_852 = "student-852"
STUDENT_117 = "student-117"

GOOD_REPLY = {
    "student_code": "852",
    "score": 8,
    "feedback": "Сайн ажилласан.",
    "question_results": [
        {"question_number": 1, "points_awarded": 8, "max_points": 10,
         "is_correct": False, "feedback": "Бараг зөв."},
    ],
}


class FakeStore:
    """In-memory implementation of the RecordStore interface."""

    def __init__(self):
        self.users = {}
        self.teachers = []
        self.classes = []
        self.students = []
        self.exams = []
        self.submissions = []
        self.activity = []
        self.fail_submission_writes = False
        self.fail_teacher_insert = False
        self.deleted_users = []
        self._ids = itertools.count(1)

    def _new_id(self, prefix):
        return f"{prefix}-new-{next(self._ids)}"

    # auth
    def create_user(self, email, password):
        if email in self.users:
            raise ValidationError("Could not create user: already registered")
        user_id = self._new_id("user")
        self.users[email] = {"id": user_id, "password": password}
        return user_id

    def delete_user(self, user_id):
        self.deleted_users.append(user_id)
        self.users = {k: v for k, v in self.users.items() if v["id"] != user_id}

    def sign_in(self, email, password):
        user = self.users.get(email)
        if not user or user["password"] != password:
            raise AuthError("Invalid credentials")
        return {"user_id": user["id"], "email": email, "access_token": "token-" + user["id"]}

    # teachers
    def get_teacher_by_user(self, user_id):
        return next((dict(t) for t in self.teachers if t["user_id"] == user_id), None)

    def create_teacher(self, user_id, full_name):
        if self.fail_teacher_insert:
            raise StoreError("Failed to create teacher profile")
        row = {"id": self._new_id("teacher"), "user_id": user_id, "full_name": full_name}
        self.teachers.append(row)
        return dict(row)

    # classes & students
    def create_class(self, teacher_id, class_name, grade_level, subject):
        row = {"id": self._new_id("class"), "teacher_id": teacher_id, "class_name": class_name,
               "grade_level": grade_level, "subject": subject}
        self.classes.append(row)
        return dict(row)

    def list_classes(self, teacher_id):
        rows = []
        for c in self.classes:
            if c["teacher_id"] == teacher_id:
                count = sum(1 for s in self.students if s["class_id"] == c["id"])
                rows.append(dict(c, students=[{"count": count}]))
        return rows

    def get_class(self, class_id, teacher_id=None):
        for c in self.classes:
            if c["id"] == class_id and (teacher_id is None or c["teacher_id"] == teacher_id):
                return dict(c)
        return None

    def create_student(self, class_id, student_name, student_code):
        row = {"id": self._new_id("student"), "class_id": class_id,
               "student_name": student_name, "student_code": student_code}
        self.students.append(row)
        return dict(row)

    def list_students(self, class_id):
        return sorted((dict(s) for s in self.students if s["class_id"] == class_id),
                      key=lambda s: s["student_name"])

    # exams
    def create_exam(self, record):
        row = dict(record, id=self._new_id("exam"))
        self.exams.append(row)
        return dict(row)

    def list_exams(self, teacher_id):
        return [dict(e) for e in self.exams if e.get("teacher_id") == teacher_id]

    def get_exam(self, exam_id, teacher_id=None, with_submissions=False):
        for e in self.exams:
            if e["id"] == exam_id and (teacher_id is None or e.get("teacher_id") == teacher_id):
                row = copy.deepcopy(e)
                if with_submissions:
                    row["submissions"] = [dict(s) for s in self.submissions if s["exam_id"] == exam_id]
                return row
        return None

    # submissions
    def upsert_submission(self, record):
        if self.fail_submission_writes:
            raise StoreError("Failed to save submission")
        for row in self.submissions:
            if row["exam_id"] == record["exam_id"] and row["student_id"] == record["student_id"]:
                row.update(record)
                return dict(row)
        return self.insert_submission(record)

    def insert_submission(self, record):
        if self.fail_submission_writes:
            raise StoreError("Failed to save submission")
        row = dict(record, id=self._new_id("submission"))
        self.submissions.append(row)
        return dict(row)

    def _owned_by(self, submission, teacher_id):
        return any(e["id"] == submission["exam_id"] and e.get("teacher_id") == teacher_id for e in self.exams)

    def list_submissions(self, teacher_id, exam_id=None):
        rows = []
        for s in sorted(self.submissions, key=lambda s: s["graded_at"], reverse=True):
            if exam_id and s["exam_id"] != exam_id:
                continue
            if not self._owned_by(s, teacher_id):
                continue
            student = next((dict(st) for st in self.students if st["id"] == s["student_id"]), None)
            exam = next(({"exam_name": e["exam_name"], "total_points": e["total_points"],
                          "teacher_id": e.get("teacher_id")}
                         for e in self.exams if e["id"] == s["exam_id"]), None)
            rows.append(dict(s, student=student, exam=exam))
        return rows

    def get_submission(self, submission_id, teacher_id):
        for s in self.submissions:
            if s["id"] == submission_id and self._owned_by(s, teacher_id):
                return dict(s, exam={"teacher_id": teacher_id})
        return None

    def update_submission(self, submission_id, fields):
        for row in self.submissions:
            if row["id"] == submission_id:
                row.update(fields)
                return dict(row)
        return None

    def list_class_submissions(self, class_id):
        rows = []
        for s in self.submissions:
            exam = next((e for e in self.exams if e["id"] == s["exam_id"]), None)
            if exam and exam["class_id"] == class_id:
                rows.append({"graded_score": s["graded_score"],
                             "exam": {"class_id": class_id, "total_points": exam["total_points"]}})
        return rows

    # activity
    def log_activity(self, teacher_id, activity_type, description):
        self.activity.append({"teacher_id": teacher_id, "activity_type": activity_type,
                              "description": description,
                              "created_at": f"2026-01-01T00:00:{len(self.activity):02d}"})

    def list_activity(self, teacher_id, limit=50):
        rows = [a for a in self.activity if a["teacher_id"] == teacher_id]
        return list(reversed(rows))[:limit]


class ScriptedTransport:
    """Replaces the provider call. Returns reply, or raises error."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def __call__(self, prompt, image_data, media_type):
        self.calls.append({"prompt": prompt, "image_data": image_data, "media_type": media_type})
        if self.error is not None:
            raise self.error
        return self.reply


def make_token(user_id=TEACHER_USER_ID, secret=JWT_SECRET, audience="authenticated", expires_in=3600):
    payload = {
        "sub": user_id,
        "email": "teacher@example.com",
        "aud": audience,
        "exp": int(time.time()) + expires_in,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def store():
    """Store seeded with one teacher, one class, two students and one exam."""
    s = FakeStore()
    s.users["teacher@example.com"] = {"id": TEACHER_USER_ID, "password": "secret123"}
    s.teachers.append({"id": TEACHER_ID, "user_id": TEACHER_USER_ID, "full_name": "Bat Dorj",
                       "created_at": "2026-01-01T00:00:00+00:00"})
    s.classes.append({"id": CLASS_ID, "teacher_id": TEACHER_ID, "class_name": "8A",
                      "grade_level": "8", "subject": "Math"})
    s.students.append({"id": STUDENT_852, "class_id": CLASS_ID,
                       "student_name": "Anu", "student_code": "852-A"})
    s.students.append({"id": STUDENT_117, "class_id": CLASS_ID,
                       "student_name": "Temuulen", "student_code": "117"})
    s.exams.append({"id": EXAM_ID, "class_id": CLASS_ID, "teacher_id": TEACHER_ID,
                    "exam_name": "Algebra quiz", "total_points": 10,
                    "answer_key": {"1": {"points": 10}}, "exam_date": "2026-10-01"})
    return s


@pytest.fixture
def transport():
    return ScriptedTransport(reply=json.dumps(GOOD_REPLY, ensure_ascii=False))


@pytest.fixture
def oracle(transport):
    return GradingOracle(transport=transport)


@pytest.fixture
def config(tmp_path):
    return Config().update({
        "jwt_secret": JWT_SECRET,
        "upload_dir": str(tmp_path / "uploads"),
        "log_level": "WARNING",
    })


@pytest.fixture
def app(config, store, oracle):
    app = create_app(config, store=store, oracle=oracle)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer " + make_token()}


@pytest.fixture
def png_upload():
    """Factory for multipart submission payloads."""
    def _make(exam_id=EXAM_ID, student_id=None, filename="page.png", content=b"\x89PNG fake image"):
        data = {"exam_id": exam_id, "submission": (io.BytesIO(content), filename)}
        if student_id is not None:
            data["student_id"] = student_id
        return data
    return _make


@pytest.fixture
def other_teacher_headers(store):
    """Auth headers for a second teacher who owns no exams."""
    store.users["other@example.com"] = {"id": "user-2", "password": "secret456"}
    store.teachers.append({"id": "teacher-2", "user_id": "user-2", "full_name": "Saraa Bold",
                           "created_at": "2026-01-02T00:00:00+00:00"})
    return {"Authorization": "Bearer " + make_token(user_id="user-2")}
