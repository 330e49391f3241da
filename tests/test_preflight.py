"""Tests for project root detection."""

import pytest

from stackboot.exceptions import PreflightError
from stackboot.stages.preflight import ensure_in_project_root, is_project_root


def _checkout(root, readme="# Canvas LMS\n\nOpen source LMS\n", git=True):
    (root / "README.md").write_text(readme)
    if git:
        (root / ".git").mkdir()
    return root


def test_detects_project_root(make_context, tmp_path):
    assert is_project_root(make_context(), _checkout(tmp_path)) is True


def test_marker_must_be_on_first_line(make_context, tmp_path):
    _checkout(tmp_path, readme="# Something else\nCanvas LMS\n")
    assert is_project_root(make_context(), tmp_path) is False


def test_requires_git_checkout(make_context, tmp_path):
    assert is_project_root(make_context(), _checkout(tmp_path, git=False)) is False


def test_missing_readme(make_context, tmp_path):
    assert is_project_root(make_context(), tmp_path) is False


def test_ensure_raises_outside_root(make_context, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(PreflightError, match="Please run from a Canvas root directory"):
        ensure_in_project_root(make_context())


def test_ensure_passes_in_root(make_context, tmp_path, monkeypatch):
    monkeypatch.chdir(_checkout(tmp_path))
    ensure_in_project_root(make_context())
