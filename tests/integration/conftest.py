# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for integration tests.

Provides a small importable package whose modules exercise helpers,
recursion, mutual recursion, defaults referencing constants and classes.
"""

import sys
from pathlib import Path

import pytest

HELPERS_MODULE = '''
"""Helpers with a mix of internal and external references."""

import re

SEPARATOR = ","
_PATTERN = re.compile(r"\\s+")


def _strip(text):
    return _PATTERN.sub("", text)


def split_fields(text, sep=SEPARATOR):
    return [_strip(part) for part in text.split(sep)]


def join_fields(fields, sep=SEPARATOR):
    return sep.join(fields)


def factorial(n):
    return 1 if n <= 1 else n * factorial(n - 1)


def is_even(n):
    return n == 0 or is_odd(n - 1)


def is_odd(n):
    return n != 0 and is_even(n - 1)


class Record:
    def __init__(self, text):
        self.fields = split_fields(text)

    def dump(self):
        return join_fields(self.fields)


def parse_record(text: str) -> Record:
    return Record(text)


def legacy_format(value):
    return str(value)
'''


@pytest.fixture
def sample_project(tmp_path: Path, monkeypatch) -> Path:
    """Create an importable package 'stsample' with a helpers module.

    Returns:
        Path to the project root directory (already on sys.path)
    """
    project_root = tmp_path / "sample_project"
    pkg_dir = project_root / "stsample"
    pkg_dir.mkdir(parents=True)

    (pkg_dir / "__init__.py").write_text('"""Sample package."""\n')
    (pkg_dir / "helpers.py").write_text(HELPERS_MODULE)

    monkeypatch.syspath_prepend(str(project_root))
    yield project_root

    for name in [m for m in sys.modules if m == "stsample" or m.startswith("stsample.")]:
        del sys.modules[name]


@pytest.fixture
def helpers_path(sample_project: Path) -> Path:
    return sample_project / "stsample" / "helpers.py"
