"""
Integration tests for the Analyzer.

Tests run a full check over small source trees with a real policy file:
policy discovery, concurrent file checks, diagnostics and skipped files.
"""

import logging
from pathlib import Path
from typing import Callable

import pytest

from depcheck.analysis import Analyzer
from depcheck.errors import ConfigNotFoundError, RuleCompileError
from depcheck.policy import InitializationGate, engine_gate


LAYERED_TREE = {
    "app/__init__.py": "",
    "app/domain/__init__.py": "",
    "app/domain/user.py": (
        "import os\n"
        "from app.infra import db\n"
        "from app.infra.common import logging\n"
        "from ..web import views\n"
    ),
    "app/domain/legacy.py": (
        "# depcheck:allow until the repository port lands\n"
        "from app.infra.db import session\n"
    ),
    "app/domain/repo_mock.py": "import app.infra.db\n",
    "app/infra/__init__.py": "",
    "app/infra/db.py": "from app.web.views import render\n",
    "app/infra/test_db.py": "from app.web import views\n",
    "app/web/__init__.py": "",
    "app/web/views.py": "from app.domain import user\n",
}


@pytest.fixture
def layered_project(
    sample_policy_yaml: str,
    write_policy: Callable[..., Path],
    source_tree: Callable[[dict[str, str]], Path],
) -> tuple[Path, Path]:
    """A small layered project: (policy path, source root)."""
    policy = write_policy(sample_policy_yaml)
    root = source_tree(LAYERED_TREE)
    return policy, root


class TestAnalyzerRun:
    """Tests for Analyzer.run()."""

    def test_reports_violations(self, layered_project: tuple[Path, Path]) -> None:
        policy, root = layered_project
        analyzer = Analyzer(engine_gate(override=str(policy)), root=root)

        result = analyzer.run([root], workers=4)

        assert result.success is False
        assert result.files_checked == len(LAYERED_TREE)
        assert result.skipped == []

        found = [
            (Path(d.path).relative_to(root).as_posix(), d.line, d.rule_index, d.imported)
            for d in result.diagnostics
        ]
        assert found == [
            ("app/domain/user.py", 2, 0, "app.infra"),
            ("app/domain/user.py", 4, 0, "app.web"),
            ("app/infra/db.py", 1, 1, "app.web.views"),
        ]

    def test_diagnostic_fields(self, layered_project: tuple[Path, Path]) -> None:
        policy, root = layered_project
        analyzer = Analyzer(engine_gate(override=str(policy)), root=root)

        diag = analyzer.run([root]).diagnostics[0]
        assert diag.importer == "app.domain.user"
        assert diag.message == "invalid dependency: app.infra"
        assert diag.pattern == "^app\\.infra"
        assert diag.column == 0

    def test_edges_counted(self, layered_project: tuple[Path, Path]) -> None:
        policy, root = layered_project
        analyzer = Analyzer(engine_gate(override=str(policy)), root=root)
        result = analyzer.run([root])
        # user.py 4, legacy.py 1, repo_mock.py 1, db.py 1, test_db.py 1, views.py 1
        assert result.edges_checked == 9

    def test_clean_subtree(self, layered_project: tuple[Path, Path]) -> None:
        policy, root = layered_project
        analyzer = Analyzer(engine_gate(override=str(policy)), root=root)
        result = analyzer.run([root / "app" / "web"])
        assert result.success is True
        assert result.files_checked == 2

    def test_single_worker_matches_parallel(self, layered_project: tuple[Path, Path]) -> None:
        policy, root = layered_project
        serial = Analyzer(engine_gate(override=str(policy)), root=root).run([root], workers=1)
        parallel = Analyzer(engine_gate(override=str(policy)), root=root).run([root], workers=8)
        assert serial.diagnostics == parallel.diagnostics

    def test_policy_built_once_for_many_files(
        self, layered_project: tuple[Path, Path]
    ) -> None:
        """Every worker shares one engine."""
        policy, root = layered_project
        calls = []
        inner = engine_gate(override=str(policy))

        def builder():
            calls.append(1)
            return inner.get()

        analyzer = Analyzer(InitializationGate(builder), root=root)
        analyzer.run([root], workers=8)
        assert calls == [1]

    def test_unparseable_file_is_skipped(
        self,
        layered_project: tuple[Path, Path],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        policy, root = layered_project
        broken = root / "app" / "broken.py"
        broken.write_text("def (:\n")
        analyzer = Analyzer(engine_gate(override=str(policy)), root=root)

        with caplog.at_level(logging.WARNING, logger="depcheck.analysis"):
            result = analyzer.run([root])

        assert [s.path for s in result.skipped] == [str(broken)]
        assert result.files_checked == len(LAYERED_TREE)
        assert "broken.py" in caplog.text

    def test_missing_policy_aborts(
        self,
        source_tree: Callable[[dict[str, str]], Path],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        root = source_tree({"m.py": "import os\n"})
        monkeypatch.chdir(root)
        analyzer = Analyzer(engine_gate("depcheck-test-does-not-exist.yml"), root=root)
        with pytest.raises(ConfigNotFoundError):
            analyzer.run([root])

    def test_os_error_while_building_aborts(
        self, layered_project: tuple[Path, Path]
    ) -> None:
        """An OSError from the builder is not mistaken for an unreadable source file."""
        _, root = layered_project

        def builder():
            raise PermissionError(13, "Permission denied", "/secret/depcheck.yml")

        analyzer = Analyzer(InitializationGate(builder), root=root)
        with pytest.raises(PermissionError):
            analyzer.run([root])

    def test_bad_pattern_aborts(
        self,
        write_policy: Callable[..., Path],
        source_tree: Callable[[dict[str, str]], Path],
    ) -> None:
        policy = write_policy("rules:\n  - from: x\n    to: ['[']\n")
        root = source_tree({"a.py": "import os\n", "b.py": "import sys\n"})
        analyzer = Analyzer(engine_gate(override=str(policy)), root=root)
        with pytest.raises(RuleCompileError):
            analyzer.run([root], workers=2)


class TestCheckFile:
    """Tests for Analyzer.check_file()."""

    def test_check_single_file(self, layered_project: tuple[Path, Path]) -> None:
        policy, root = layered_project
        analyzer = Analyzer(engine_gate(override=str(policy)), root=root)
        diagnostics = analyzer.check_file(root / "app" / "infra" / "db.py")
        assert [d.message for d in diagnostics] == ["invalid dependency: app.web.views"]

    def test_rule_scoped_exclusion(self, layered_project: tuple[Path, Path]) -> None:
        """test_db.py is excluded from the infra rule only."""
        policy, root = layered_project
        analyzer = Analyzer(engine_gate(override=str(policy)), root=root)
        assert analyzer.check_file(root / "app" / "infra" / "test_db.py") == []
