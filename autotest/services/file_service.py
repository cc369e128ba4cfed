"""
File Service
============
Local filesystem helpers used by the generator.

Error Contract:
    - Read failures are logged and raised as FileReadError; the caller
      decides whether that ends the process.
    - Write failures are logged and swallowed; write_to_file returns False.
    - A path that cannot be stat'ed is treated as a regular file.
"""
import os
import stat
import logging
from enum import Enum
from typing import Iterable, List, Optional, Tuple

import yaml

from autotest.core.constants import IGNORED_DIRECTORIES, TEST_FILE_MARKER

logger = logging.getLogger(__name__)


class FileReadError(Exception):
    """Raised when an input file cannot be read."""


class FileType(Enum):
    FILE = "file"
    DIRECTORY = "directory"


def read_file(path: str) -> str:
    """Read a UTF-8 text file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error reading file %s: %s", path, e)
        raise FileReadError(str(e)) from e


def write_to_file(path: str, content: str, append: bool = False) -> bool:
    """
    Write (or append) text to a file, creating parent directories.

    Returns True on success. Errors are logged, never raised.
    """
    try:
        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok=True)
        with open(path, "a" if append else "w", encoding="utf-8") as f:
            f.write(content)
        if append:
            logger.debug("Appended %d chars to %s", len(content), path)
        else:
            logger.info("Successfully wrote to file: %s", path)
        return True
    except OSError as e:
        logger.error("Error writing to file %s: %s", path, e)
        return False


def divide_file_name(file_name: str) -> Tuple[str, str]:
    """Split a path into its base name without extension and the extension."""
    name, extension = os.path.splitext(os.path.basename(file_name))
    return name, extension


def get_file_type(path: str) -> FileType:
    try:
        mode = os.lstat(path).st_mode
    except OSError as e:
        logger.error("Error getting file type for %s: %s", path, e)
        return FileType.FILE
    return FileType.DIRECTORY if stat.S_ISDIR(mode) else FileType.FILE


def read_yaml_file(path: str):
    return yaml.safe_load(read_file(path))


def get_test_file_name(file_name: str) -> str:
    """utils.py -> utils.test.py"""
    name, extension = divide_file_name(file_name)
    return f"{name}{TEST_FILE_MARKER}{extension}"


def is_test_file(file_name: str) -> bool:
    """utils.test.py and, for names without an extension, Makefile.test"""
    name, extension = divide_file_name(file_name)
    return name.endswith(TEST_FILE_MARKER) or extension == TEST_FILE_MARKER


def collect_source_files(
    directory: str,
    extensions: Optional[Iterable[str]] = None,
) -> List[str]:
    """
    List source files under a directory, sorted.

    Hidden and ignored directories are not walked, and files that are
    themselves generated tests are skipped. ``extensions`` filters by
    suffix (e.g. ``[".py", ".ts"]``).
    """
    wanted = {e if e.startswith(".") else f".{e}" for e in extensions} if extensions else None
    files: List[str] = []

    for root, dirs, names in os.walk(directory):
        dirs[:] = [
            d for d in dirs
            if not d.startswith(".") and d not in IGNORED_DIRECTORIES
        ]
        for name in names:
            if name.startswith(".") or is_test_file(name):
                continue
            if wanted is not None and divide_file_name(name)[1] not in wanted:
                continue
            files.append(os.path.join(root, name))

    return sorted(files)
