import shutil
import subprocess
from pathlib import Path

import pytest

from repodock.provisioning import CloneError, ClonerUnavailableError, GhCliCloner, remove_directory
from repodock.provisioning import cloner as cloner_module


def _fake_run(returncode: int, stderr: str = "", calls=None):
    def run(command, **kwargs):
        if calls is not None:
            calls.append(command)
        return subprocess.CompletedProcess(command, returncode, stdout="", stderr=stderr)

    return run


def test_clone_invokes_gh_repo_clone(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(cloner_module.subprocess, "run", _fake_run(0, calls=calls))

    GhCliCloner(binary="gh").clone("acme/widgets", tmp_path / "widgets")

    assert calls == [["gh", "repo", "clone", "acme/widgets", str(tmp_path / "widgets")]]


def test_nonzero_exit_carries_trimmed_stderr(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        cloner_module.subprocess,
        "run",
        _fake_run(1, stderr="\n  GraphQL: Could not resolve to a Repository  \n"),
    )

    with pytest.raises(CloneError) as excinfo:
        GhCliCloner(binary="gh").clone("acme/missing", tmp_path / "missing")

    assert excinfo.value.diagnostic == "GraphQL: Could not resolve to a Repository"
    assert str(excinfo.value) == "Failed to clone repository: GraphQL: Could not resolve to a Repository"


def test_timeout_is_a_clone_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def run(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(cloner_module.subprocess, "run", run)

    with pytest.raises(CloneError, match="timed out"):
        GhCliCloner(binary="gh", timeout=5).clone("acme/widgets", tmp_path / "widgets")


def test_missing_binary_is_unavailable(tmp_path: Path) -> None:
    cloner = GhCliCloner(binary=str(tmp_path / "no-such-gh"))
    with pytest.raises(ClonerUnavailableError, match="Is GitHub CLI installed"):
        cloner.clone("acme/widgets", tmp_path / "widgets")


def test_remove_directory_deletes_tree(tmp_path: Path) -> None:
    target = tmp_path / "widgets"
    (target / "src" / "pkg").mkdir(parents=True)
    (target / "src" / "pkg" / "mod.py").write_text("x = 1\n")

    remove_directory(target)

    assert not target.exists()


def test_remove_directory_ignores_missing_path(tmp_path: Path) -> None:
    remove_directory(tmp_path / "never-created")


def test_remove_directory_swallows_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "widgets"
    target.mkdir()

    def failing_rmtree(path):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(shutil, "rmtree", failing_rmtree)

    remove_directory(target)

    assert target.exists()


def _fake_gh(tmp_path: Path, stderr: bytes, returncode: int = 1) -> Path:
    script = tmp_path / "gh"
    escaped = "".join(f"\\{byte:03o}" for byte in stderr)
    script.write_text(f"#!/bin/sh\nprintf '{escaped}' >&2\nexit {returncode}\n")
    script.chmod(0o755)
    return script


def test_undecodable_stderr_is_still_a_clone_error(tmp_path: Path) -> None:
    gh = _fake_gh(tmp_path, b"fatal: \xff\xfe bad\n")

    with pytest.raises(CloneError) as excinfo:
        GhCliCloner(binary=str(gh)).clone("acme/widgets", tmp_path / "widgets")

    assert excinfo.value.diagnostic.startswith("fatal: ")
    assert excinfo.value.diagnostic.endswith(" bad")
    assert "�" in excinfo.value.diagnostic
