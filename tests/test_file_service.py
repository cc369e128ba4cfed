"""
Unit Tests — File Service
=========================
Covers read/write error contracts, file-name helpers and directory walking.
"""
import logging

import pytest

from autotest.services.file_service import (
    FileReadError,
    FileType,
    collect_source_files,
    divide_file_name,
    get_file_type,
    get_test_file_name,
    is_test_file,
    read_file,
    read_yaml_file,
    write_to_file,
)


# ---------------------------------------------------------------------------
# 1. Reading
# ---------------------------------------------------------------------------
def test_read_file(tmp_path):
    path = tmp_path / "utils.py"
    path.write_text("def f():\n    return 1\n", encoding="utf-8")
    assert read_file(str(path)) == "def f():\n    return 1\n"


def test_read_missing_file_logs_and_raises(tmp_path, caplog):
    missing = tmp_path / "missing.py"
    with caplog.at_level(logging.ERROR):
        with pytest.raises(FileReadError):
            read_file(str(missing))
    assert "Error reading file" in caplog.text


def test_read_yaml_file(tmp_path):
    path = tmp_path / "autotest.yaml"
    path.write_text("techs:\n  - pytest\n", encoding="utf-8")
    assert read_yaml_file(str(path)) == {"techs": ["pytest"]}


# ---------------------------------------------------------------------------
# 2. Writing
# ---------------------------------------------------------------------------
def test_write_creates_parent_directories(tmp_path):
    path = tmp_path / "out" / "nested" / "utils.test.py"
    assert write_to_file(str(path), "content") is True
    assert path.read_text(encoding="utf-8") == "content"


def test_write_overwrites(tmp_path):
    path = tmp_path / "out.py"
    path.write_text("old", encoding="utf-8")
    write_to_file(str(path), "new")
    assert path.read_text(encoding="utf-8") == "new"


def test_append(tmp_path):
    path = tmp_path / "out.py"
    write_to_file(str(path), "a")
    write_to_file(str(path), "b", append=True)
    write_to_file(str(path), "c", append=True)
    assert path.read_text(encoding="utf-8") == "abc"


def test_write_failure_is_logged_and_swallowed(tmp_path, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    with caplog.at_level(logging.ERROR):
        assert write_to_file(str(blocker / "out.py"), "x") is False
    assert "Error writing to file" in caplog.text


# ---------------------------------------------------------------------------
# 3. Names and types
# ---------------------------------------------------------------------------
@pytest.mark.parametrize("file_name, expected", [
    ("utils.py", ("utils", ".py")),
    ("src/lib/utils.ts", ("utils", ".ts")),
    ("archive.tar.gz", ("archive.tar", ".gz")),
    ("Makefile", ("Makefile", "")),
])
def test_divide_file_name(file_name, expected):
    assert divide_file_name(file_name) == expected


def test_get_test_file_name():
    assert get_test_file_name("src/utils.py") == "utils.test.py"
    assert get_test_file_name("index.ts") == "index.test.ts"


def test_is_test_file():
    assert is_test_file("utils.test.py")
    assert not is_test_file("utils.py")
    assert is_test_file("Makefile.test")
    assert not is_test_file("Makefile")


def test_get_file_type(tmp_path):
    file_path = tmp_path / "a.py"
    file_path.write_text("", encoding="utf-8")
    assert get_file_type(str(tmp_path)) == FileType.DIRECTORY
    assert get_file_type(str(file_path)) == FileType.FILE


def test_get_file_type_missing_defaults_to_file(tmp_path, caplog):
    with caplog.at_level(logging.ERROR):
        assert get_file_type(str(tmp_path / "nope")) == FileType.FILE
    assert "Error getting file type" in caplog.text


# ---------------------------------------------------------------------------
# 4. Directory walking
# ---------------------------------------------------------------------------
@pytest.fixture
def source_tree(tmp_path):
    files = [
        "a.py",
        "b.ts",
        "a.test.py",
        ".env",
        "sub/c.py",
        ".git/config.py",
        "node_modules/pkg/index.js",
        "__pycache__/a.py",
    ]
    for rel in files:
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x", encoding="utf-8")
    return tmp_path


def _rel(paths, root):
    return [p[len(str(root)) + 1:].replace("\\", "/") for p in paths]


def test_collect_source_files(source_tree):
    found = collect_source_files(str(source_tree))
    assert _rel(found, source_tree) == ["a.py", "b.ts", "sub/c.py"]


def test_collect_source_files_filters_extensions(source_tree):
    assert _rel(collect_source_files(str(source_tree), [".py"]), source_tree) == ["a.py", "sub/c.py"]
    assert _rel(collect_source_files(str(source_tree), ["ts"]), source_tree) == ["b.ts"]


def test_collect_source_files_skips_extensionless_test_file(tmp_path):
    (tmp_path / "Makefile").write_text("all:\n", encoding="utf-8")
    (tmp_path / "Makefile.test").write_text("all:\n", encoding="utf-8")
    assert _rel(collect_source_files(str(tmp_path)), tmp_path) == ["Makefile"]


def test_collect_source_files_empty_directory(tmp_path):
    assert collect_source_files(str(tmp_path)) == []
