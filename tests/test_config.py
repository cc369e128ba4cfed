"""
Unit Tests — YAML Config
========================
Covers config parsing, example resolution and config discovery.
"""
import os
import textwrap

import pytest

from autotest.core import config as config_module
from autotest.core.config import (
    AutoTestConfig,
    ConfigError,
    find_config_file,
    load_config_file,
    load_examples,
)
from autotest.models.example import Example


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return str(path)


def test_full_config(tmp_path):
    path = _write(tmp_path / "autotest.yaml", """\
        model: gpt-4
        stream: true
        techs:
          - pytest
        tips:
          - mock the network
        examples:
          - file_name: greet.py
            code: "def greet(): return 'hi'"
            tests: "def test_greet(): assert greet() == 'hi'"
    """)

    config = load_config_file(path)

    assert config.model == "gpt-4"
    assert config.stream is True
    assert config.techs == ["pytest"]
    assert config.tips == ["mock the network"]
    assert load_examples(config, path) == [
        Example(
            file_name="greet.py",
            code="def greet(): return 'hi'",
            tests="def test_greet(): assert greet() == 'hi'",
        )
    ]


def test_empty_config_gives_defaults(tmp_path):
    path = _write(tmp_path / "autotest.yaml", "")
    config = load_config_file(path)
    assert config == AutoTestConfig()
    assert config.model is None
    assert config.stream is None


def test_examples_from_files_relative_to_config(tmp_path):
    _write(tmp_path / "examples" / "sum.py", "def total(xs): return sum(xs)\n")
    _write(tmp_path / "examples" / "sum_tests.py", "def test_total(): assert total([1]) == 1\n")
    path = _write(tmp_path / "autotest.yaml", """\
        examples:
          - code_file: examples/sum.py
            tests_file: examples/sum_tests.py
    """)

    examples = load_examples(load_config_file(path), path)

    assert len(examples) == 1
    assert examples[0].file_name == "sum.py"
    assert examples[0].code == "def total(xs): return sum(xs)\n"
    assert examples[0].tests == "def test_total(): assert total([1]) == 1\n"


def test_example_missing_tests(tmp_path):
    path = _write(tmp_path / "autotest.yaml", """\
        examples:
          - file_name: a.py
            code: "x = 1"
    """)
    with pytest.raises(ConfigError, match="Each example needs"):
        load_examples(load_config_file(path), path)


def test_example_file_missing(tmp_path):
    path = _write(tmp_path / "autotest.yaml", """\
        examples:
          - code_file: nope.py
            tests: "..."
    """)
    with pytest.raises(ConfigError, match="Cannot read"):
        load_examples(load_config_file(path), path)


def test_invalid_yaml(tmp_path):
    path = _write(tmp_path / "autotest.yaml", "techs: [pytest\n")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config_file(path)


def test_top_level_must_be_mapping(tmp_path):
    path = _write(tmp_path / "autotest.yaml", "- pytest\n")
    with pytest.raises(ConfigError, match="Expected a mapping"):
        load_config_file(path)


def test_wrong_field_type(tmp_path):
    path = _write(tmp_path / "autotest.yaml", "techs: 3\n")
    with pytest.raises(ConfigError, match="Invalid config"):
        load_config_file(path)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read"):
        load_config_file(str(tmp_path / "absent.yaml"))


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------
def test_find_config_file_explicit():
    assert find_config_file("custom.yaml") == "custom.yaml"


def test_find_config_file_default_present(tmp_path, monkeypatch):
    path = _write(tmp_path / "autotest.yaml", "techs: []\n")
    monkeypatch.setattr(config_module, "CONFIG_FILE", path)
    assert find_config_file() == path


def test_find_config_file_default_absent(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "CONFIG_FILE", str(tmp_path / "absent.yaml"))
    assert find_config_file() is None


def test_shipped_example_config_loads():
    path = os.path.join(os.path.dirname(__file__), "..", "autotest.example.yaml")
    config = load_config_file(path)
    examples = load_examples(config, path)
    assert config.techs
    assert examples[0].file_name == "slugify.py"
