"""Pytest configuration and shared fixtures for toolgate tests."""

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep tests away from real config files and TOOLGATE_* variables.

    Returns:
        Temporary working directory the test runs in.
    """
    home = tmp_path / "home"
    home.mkdir()
    workdir = tmp_path / "work"
    workdir.mkdir()

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("TOOLGATE_APPROVAL_MODE", raising=False)
    monkeypatch.delenv("TOOLGATE_AUDIT_LOG", raising=False)
    monkeypatch.chdir(workdir)
    return workdir


@pytest.fixture
def sample_config() -> dict:
    """Provide a sample project configuration.

    Returns:
        Dictionary shaped like ``.toolgate/config.yaml``.
    """
    return {
        "approval_mode": "default",
        "allowed_shell_roots": ["git", "ls"],
        "allowed_servers": ["filesystem"],
        "allowed_tools": ["github.list_repos"],
        "servers": {
            "filesystem": {"trust": False, "timeout": 30},
            "docs": {"trust": True, "description": "Read-only docs server"},
        },
    }
