"""
Configuration management for the exam grader backend.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent.parent
PACKAGE_DIR = Path(__file__).parent

# Upload configuration
DEFAULT_UPLOAD_DIR = str(BASE_DIR / "uploads" / "exams")
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB

# Server configuration
HOST = "0.0.0.0"
PORT = 3000
DEBUG = False

# Oracle configuration
ORACLE_PROVIDERS = ('anthropic', 'openai')
DEFAULT_ORACLE_PROVIDER = 'anthropic'
DEFAULT_ORACLE_TIMEOUT = 60.0
DEFAULT_ORACLE_MAX_TOKENS = 2000
DEFAULT_FEEDBACK_LANGUAGE = "Mongolian"


def _env_int(name, default):
    value = os.getenv(name, "")
    try:
        return int(value) if value else default
    except ValueError:
        return default


def _env_float(name, default):
    value = os.getenv(name, "")
    try:
        return float(value) if value else default
    except ValueError:
        return default


def _env_bool(name, default=False):
    value = os.getenv(name, "")
    if not value:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application configuration class.

    Values are read from the environment when the instance is created, so a
    test can set variables first and then build its own Config.
    """

    def __init__(self):
        self.supabase_url = os.getenv("SUPABASE_URL", "")
        self.supabase_key = os.getenv("SUPABASE_SERVICE_KEY", "")
        self.jwt_secret = os.getenv("SUPABASE_JWT_SECRET", "")

        self.anthropic_api_key = os.getenv("ANTHROPIC_API_KEY", "")
        self.openai_api_key = os.getenv("OPENAI_API_KEY", "")
        self.oracle_provider = os.getenv("ORACLE_PROVIDER", DEFAULT_ORACLE_PROVIDER).lower()
        self.oracle_model = os.getenv("ORACLE_MODEL", "")
        self.oracle_timeout = _env_float("ORACLE_TIMEOUT_SECONDS", DEFAULT_ORACLE_TIMEOUT)
        self.oracle_max_tokens = _env_int("ORACLE_MAX_TOKENS", DEFAULT_ORACLE_MAX_TOKENS)
        self.feedback_language = os.getenv("FEEDBACK_LANGUAGE", DEFAULT_FEEDBACK_LANGUAGE)

        self.upload_dir = os.getenv("UPLOAD_DIR", DEFAULT_UPLOAD_DIR)
        self.max_file_size = _env_int("MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE)

        self.host = os.getenv("HOST", HOST)
        self.port = _env_int("PORT", PORT)
        self.debug = _env_bool("DEBUG", DEBUG)
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def from_env(cls):
        return cls()

    @property
    def oracle_api_key(self):
        if self.oracle_provider == 'openai':
            return self.openai_api_key
        return self.anthropic_api_key

    def to_dict(self):
        # Secrets are not included
        return {
            "supabase_url": self.supabase_url,
            "oracle_provider": self.oracle_provider,
            "oracle_model": self.oracle_model,
            "oracle_timeout": self.oracle_timeout,
            "oracle_max_tokens": self.oracle_max_tokens,
            "feedback_language": self.feedback_language,
            "upload_dir": self.upload_dir,
            "max_file_size": self.max_file_size,
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
        }

    def update(self, data: dict):
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)
        return self
