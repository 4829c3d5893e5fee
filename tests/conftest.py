"""
Pytest configuration and fixtures for depcheck tests.

This module provides shared fixtures used across unit and integration tests.
"""

import tempfile
from pathlib import Path
from typing import Callable, Generator

import pytest

from depcheck.schema import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Never let a developer's DEPCHECK_CONFIG leak into a test."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def sample_policy_yaml() -> str:
    """Return a layered-architecture policy for testing."""
    return """
ignorePatterns:
  - '_mock\\.py$'
rules:
  - from: '^app\\.domain'
    to:
      - '^app\\.infra'
      - '^app\\.web'
    allowedDependencies:
      - '^app\\.infra\\.common'
  - from: '^app\\.infra'
    to:
      - '^app\\.web'
    ignorePatterns:
      - '^test_'
"""


@pytest.fixture
def write_policy(temp_dir: Path) -> Callable[[str], Path]:
    """Return a helper that writes depcheck.yml into temp_dir."""

    def _write(content: str, name: str = "depcheck.yml") -> Path:
        path = temp_dir / name
        path.write_text(content)
        return path

    return _write


@pytest.fixture
def source_tree(temp_dir: Path) -> Callable[[dict[str, str]], Path]:
    """Return a helper that lays out source files under temp_dir/src."""

    def _make(files: dict[str, str]) -> Path:
        root = temp_dir / "src"
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return root

    return _make
