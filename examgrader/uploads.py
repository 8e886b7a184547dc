"""
Submission file intake: type whitelist, naming and storage on disk.

Stored files are served back under /uploads/exams/<filename>.
"""
import os
import random
import time
import logging

from .errors import ValidationError

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = '/uploads/exams'

MEDIA_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'pdf': 'application/pdf',
}

ALLOWED_MIMETYPES = set(MEDIA_TYPES.values()) | {'image/jpg', 'image/pjpeg'}


def allowed_file(filename, allowed_extensions=MEDIA_TYPES):
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_extensions


def read_submission_file(file):
    """Validate an uploaded FileStorage and return (bytes, media_type, extension)."""
    if file is None or not file.filename:
        raise ValidationError("Exam ID and submission image are required")

    if not allowed_file(file.filename):
        raise ValidationError("Only image files (jpg, png) and PDF are allowed")

    mimetype = (file.mimetype or '').lower()
    if mimetype and mimetype != 'application/octet-stream' and mimetype not in ALLOWED_MIMETYPES:
        raise ValidationError("Only image files (jpg, png) and PDF are allowed")

    extension = file.filename.rsplit('.', 1)[1].lower()
    data = file.read()
    if not data:
        raise ValidationError("Submission file is empty")
    return data, MEDIA_TYPES[extension], extension


def make_upload_name(extension):
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"exam-{unique_suffix}.{extension}"


def save_submission_file(upload_dir, data, extension):
    """Write the submission to upload_dir and return its public location."""
    os.makedirs(upload_dir, exist_ok=True)
    filename = make_upload_name(extension)
    filepath = os.path.join(upload_dir, filename)
    with open(filepath, 'wb') as f:
        f.write(data)
    logger.info("Stored submission %s (%d bytes)", filename, len(data))
    return f"{UPLOAD_URL_PREFIX}/{filename}"


def remove_submission_file(upload_dir, location):
    """Delete a stored submission given the location save_submission_file returned."""
    filename = os.path.basename(location or '')
    if not filename:
        return
    filepath = os.path.join(upload_dir, filename)
    try:
        os.remove(filepath)
    except FileNotFoundError:
        return
    logger.info("Removed submission %s", filename)
