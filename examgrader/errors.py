"""
Exception types raised by the exam grader.

Every error carries an HTTP status code and a message that is safe to show
to the caller. Internal detail stays in the server log.
"""


class ExamGraderError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ExamGraderError):
    """Request input is missing or malformed."""
    status_code = 400
    default_message = "Invalid request"


class AuthError(ExamGraderError):
    status_code = 401
    default_message = "Authentication failed"


class NotFoundError(ExamGraderError):
    status_code = 404
    default_message = "Not found"


class ExamContractError(ExamGraderError):
    """The exam lacks the metadata the grading oracle needs."""
    status_code = 400
    default_message = "Exam is missing grading metadata"


class StoreError(ExamGraderError):
    """A read or write against the record store failed."""
    status_code = 500
    default_message = "Database operation failed"
