"""
Configuration
=============
Loads environment variables from .env file using python-dotenv, and the
optional YAML config file that carries few-shot examples, techs and tips.

Environment Variables:
    OPENAI_API_KEY        — API key sent as a bearer token
    OPENAI_BASE_URL       — OpenAI-compatible API root (default: https://api.openai.com/v1)
    AUTOTEST_MODEL        — Chat model used when none is given (default: gpt-3.5-turbo)
    AUTOTEST_STREAM       — Stream tokens into the output file (default: false)
    AUTOTEST_TIMEOUT      — HTTP timeout in seconds (default: 60)
    AUTOTEST_LOG_DIR      — Directory for dated log files (default: no file logging)
    AUTOTEST_CONFIG_FILE  — YAML config picked up when present (default: autotest.yaml)
    ENABLE_GENERATE_ENDPOINT — Serve POST /api/generate (default: false)
    AUTOTEST_API_ROOT     — Paths the HTTP endpoint may read and write (default: working directory)

Precedence:
    CLI option / request field > YAML config > environment default.
"""
import os
import logging
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from autotest.models.example import Example
from autotest.services.file_service import FileReadError, read_file, read_yaml_file

load_dotenv()

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
DEFAULT_MODEL = os.getenv("AUTOTEST_MODEL", "gpt-3.5-turbo")
DEFAULT_STREAM = _env_flag("AUTOTEST_STREAM")
REQUEST_TIMEOUT = float(os.getenv("AUTOTEST_TIMEOUT", 60))
LOG_DIR = os.getenv("AUTOTEST_LOG_DIR", "")
CONFIG_FILE = os.getenv("AUTOTEST_CONFIG_FILE", "autotest.yaml")
ENABLE_GENERATE_ENDPOINT = _env_flag("ENABLE_GENERATE_ENDPOINT")
API_ROOT = os.getenv("AUTOTEST_API_ROOT", "")


class ConfigError(Exception):
    """Raised when the YAML config file cannot be loaded."""


# ---------------------------------------------------------------------------
# YAML config schema
# ---------------------------------------------------------------------------
class ExampleEntry(BaseModel):
    """One few-shot example as written in YAML: inline text or file paths."""
    file_name: Optional[str] = None
    code: Optional[str] = None
    tests: Optional[str] = None
    code_file: Optional[str] = None
    tests_file: Optional[str] = None


class AutoTestConfig(BaseModel):
    model: Optional[str] = None
    stream: Optional[bool] = None
    techs: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)
    examples: List[ExampleEntry] = Field(default_factory=list)


def _read_text(path: str) -> str:
    try:
        return read_file(path)
    except FileReadError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e


def _resolve_example(entry: ExampleEntry, base_dir: str) -> Example:
    """Turn a YAML example entry into an Example, reading referenced files."""
    code = entry.code
    tests = entry.tests
    file_name = entry.file_name

    if code is None and entry.code_file:
        code_path = os.path.join(base_dir, entry.code_file)
        code = _read_text(code_path)
        file_name = file_name or os.path.basename(entry.code_file)
    if tests is None and entry.tests_file:
        tests = _read_text(os.path.join(base_dir, entry.tests_file))

    if code is None or tests is None or not file_name:
        raise ConfigError(
            "Each example needs a file name, code (or code_file) and tests (or tests_file)"
        )
    return Example(file_name=file_name, code=code, tests=tests)


def load_config_file(path: str) -> AutoTestConfig:
    """
    Parse and validate a YAML config file.

    Relative ``code_file`` / ``tests_file`` paths are resolved against the
    directory holding the config file.
    """
    try:
        data = read_yaml_file(path) or {}
    except FileReadError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")

    try:
        config = AutoTestConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e

    logger.info("Loaded config from %s (%d examples)", path, len(config.examples))
    return config


def load_examples(config: AutoTestConfig, config_path: str) -> List[Example]:
    base_dir = os.path.dirname(os.path.abspath(config_path))
    return [_resolve_example(entry, base_dir) for entry in config.examples]


def find_config_file(path: Optional[str] = None) -> Optional[str]:
    """Return the explicit config path, or the default one when it exists."""
    if path:
        return path
    if CONFIG_FILE and os.path.isfile(CONFIG_FILE):
        return CONFIG_FILE
    return None
