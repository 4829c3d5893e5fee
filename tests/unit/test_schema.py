"""
Unit tests for schema models.

Tests cover:
- Policy models and their YAML key aliases
- Edge and Verdict construction
- Immutability
"""

import pytest
from pydantic import ValidationError

from depcheck.schema import (
    Diagnostic,
    Edge,
    PolicyDocument,
    RuleSpec,
    Verdict,
    Violation,
)


class TestRuleSpec:
    """Tests for RuleSpec."""

    def test_from_yaml_keys(self) -> None:
        rule = RuleSpec.model_validate({
            "from": "^a",
            "to": ["^b"],
            "allowedDependencies": ["^b\\.ok"],
            "ignorePatterns": ["_test"],
        })
        assert rule.source == "^a"
        assert rule.forbidden == ["^b"]
        assert rule.exceptions == ["^b\\.ok"]
        assert rule.ignore_patterns == ["_test"]

    def test_from_python_names(self) -> None:
        rule = RuleSpec(source="^a", forbidden=["^b"])
        assert rule.exceptions == []
        assert rule.ignore_patterns == []

    def test_source_required(self) -> None:
        with pytest.raises(ValidationError):
            RuleSpec.model_validate({"to": ["x"]})

    def test_frozen(self) -> None:
        rule = RuleSpec(source="^a")
        with pytest.raises(ValidationError):
            rule.source = "^b"  # type: ignore[misc]


class TestPolicyDocument:
    """Tests for PolicyDocument."""

    def test_defaults(self) -> None:
        document = PolicyDocument()
        assert document.rules == []
        assert document.ignore_patterns == []

    def test_unknown_keys_ignored(self) -> None:
        document = PolicyDocument.model_validate({"version": 1, "rules": []})
        assert document.rules == []


class TestVerdict:
    """Tests for Verdict."""

    def test_allow(self) -> None:
        verdict = Verdict.allow("fine")
        assert verdict.allowed is True
        assert verdict.reason == "fine"
        assert verdict.violations == ()

    def test_deny(self) -> None:
        violations = [
            Violation(rule_index=0, pattern="^x", imported="x.y"),
            Violation(rule_index=2, pattern="y$", imported="x.y"),
        ]
        verdict = Verdict.deny(violations)
        assert verdict.allowed is False
        assert verdict.violations == tuple(violations)
        assert verdict.reason == "Violates rule(s) 0, 2"

    def test_violation_message(self) -> None:
        violation = Violation(rule_index=0, pattern="^x", imported="x.y")
        assert violation.message == "invalid dependency: x.y"


class TestEdge:
    """Tests for Edge and Diagnostic."""

    def test_edge_defaults(self) -> None:
        edge = Edge(importer="a", imported="b", filename="a.py")
        assert edge.exempt is False

    def test_edge_rejects_unknown_fields(self) -> None:
        with pytest.raises(ValidationError):
            Edge(importer="a", imported="b", filename="a.py", line=3)  # type: ignore[call-arg]

    def test_diagnostic_line_positive(self) -> None:
        with pytest.raises(ValidationError):
            Diagnostic(
                path="a.py",
                line=0,
                column=0,
                importer="a",
                imported="b",
                rule_index=0,
                pattern="b",
                message="invalid dependency: b",
            )
