"""
Test: configuration loading and submission file intake.
"""
import io
import os

import pytest
from werkzeug.datastructures import FileStorage

from examgrader.config import Config, DEFAULT_MAX_FILE_SIZE
from examgrader.errors import ValidationError
from examgrader.uploads import allowed_file, read_submission_file, save_submission_file


class TestConfig:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ORACLE_PROVIDER", "OpenAI")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-1")
        monkeypatch.setenv("ORACLE_TIMEOUT_SECONDS", "12.5")
        monkeypatch.setenv("MAX_FILE_SIZE", "2048")
        config = Config.from_env()
        assert config.oracle_provider == "openai"
        assert config.oracle_api_key == "sk-1"
        assert config.oracle_timeout == 12.5
        assert config.max_file_size == 2048

    def test_bad_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("MAX_FILE_SIZE", "lots")
        assert Config().max_file_size == DEFAULT_MAX_FILE_SIZE

    def test_to_dict_hides_secrets(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service-secret")
        data = Config().to_dict()
        assert "service-secret" not in data.values()
        assert "supabase_key" not in data

    def test_update_ignores_unknown_keys(self):
        config = Config().update({"port": 8080, "bogus": 1})
        assert config.port == 8080
        assert not hasattr(config, "bogus")


def upload(filename, content=b"data", content_type=None):
    return FileStorage(stream=io.BytesIO(content), filename=filename, content_type=content_type)


class TestReadSubmissionFile:
    def test_allowed_extensions(self):
        assert allowed_file("a.JPG")
        assert allowed_file("scan.pdf")
        assert not allowed_file("a.gif")
        assert not allowed_file("noext")

    def test_png(self):
        data, media_type, ext = read_submission_file(upload("page.png", b"png", "image/png"))
        assert (data, media_type, ext) == (b"png", "image/png", "png")

    def test_jpeg_alias(self):
        assert read_submission_file(upload("page.jpg", content_type="image/jpeg"))[1] == "image/jpeg"

    def test_mismatched_mimetype(self):
        with pytest.raises(ValidationError):
            read_submission_file(upload("page.png", content_type="text/html"))

    def test_wrong_extension(self):
        with pytest.raises(ValidationError):
            read_submission_file(upload("page.exe", content_type="image/png"))

    def test_empty_file(self):
        with pytest.raises(ValidationError):
            read_submission_file(upload("page.png", b"", "image/png"))

    def test_missing(self):
        with pytest.raises(ValidationError):
            read_submission_file(None)


class TestSaveSubmissionFile:
    def test_writes_unique_files(self, tmp_path):
        first = save_submission_file(str(tmp_path), b"a", "png")
        second = save_submission_file(str(tmp_path), b"b", "png")
        assert first != second
        assert first.startswith("/uploads/exams/exam-") and first.endswith(".png")
        assert sorted(os.listdir(tmp_path)) == sorted([first.rsplit("/", 1)[1], second.rsplit("/", 1)[1]])
