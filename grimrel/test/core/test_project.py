"""Tests for grimrel.core.project module."""

from __future__ import annotations

from pathlib import Path

import pytest

from grimrel.core.project import ROOT_ENV_VAR, detect_project, find_project_upward, is_project_root
from grimrel.core.result import Err, Ok


def _make_project(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "Cargo.toml").write_text('[package]\nname = "grim"\n', encoding="utf-8")
    (root / ".git").mkdir()
    return root


def test_is_project_root_needs_both_markers(tmp_path: Path) -> None:
    (tmp_path / "Cargo.toml").write_text("", encoding="utf-8")
    assert not is_project_root(tmp_path)
    (tmp_path / ".git").write_text("gitdir: elsewhere\n", encoding="utf-8")
    assert is_project_root(tmp_path)


def test_find_project_upward(tmp_path: Path) -> None:
    root = _make_project(tmp_path / "grim")
    nested = root / "src" / "ui"
    nested.mkdir(parents=True)
    assert find_project_upward(nested) == root


def test_detect_from_start_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ROOT_ENV_VAR, raising=False)
    root = _make_project(tmp_path / "grim")
    (root / "src").mkdir()

    result = detect_project(start_dir=root / "src")
    assert isinstance(result, Ok)
    assert result.value.root == root.resolve()
    assert result.value.config_path.name == "release.toml"


def test_detect_env_var_wins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    root = _make_project(tmp_path / "grim")
    monkeypatch.setenv(ROOT_ENV_VAR, str(root))

    result = detect_project(start_dir=tmp_path)
    assert isinstance(result, Ok)
    assert result.value.root == root.resolve()


def test_detect_invalid_env_var(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ROOT_ENV_VAR, str(tmp_path))

    result = detect_project(start_dir=tmp_path)
    assert isinstance(result, Err)
    assert ROOT_ENV_VAR in result.error.message


def test_detect_not_found(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ROOT_ENV_VAR, raising=False)
    result = detect_project(start_dir=tmp_path)
    assert isinstance(result, Err)
    assert result.error.searched_from == tmp_path.resolve()
