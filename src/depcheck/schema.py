"""
Schema definitions for depcheck.

This module defines the Pydantic models used throughout depcheck:
- PolicyDocument/RuleSpec: The declarative policy read from depcheck.yml
- Edge: One import statement handed to the rule engine
- Violation/Verdict: The outcome of evaluating an edge
- Diagnostic: A violation located in a source file, for reporting

Design Decisions:
    - Models are immutable (frozen=True)
    - YAML keys use the camelCase names of the policy format; Python code
      uses snake_case attribute names (populate_by_name=True)
    - Unknown policy keys are ignored here and reported by the loader
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_CONFIG_NAME = "depcheck.yml"
CONFIG_ENV_VAR = "DEPCHECK_CONFIG"
EXEMPTION_MARKER = "# depcheck:allow"


# =============================================================================
# Policy Models
# =============================================================================


class RuleSpec(BaseModel):
    """
    A single dependency rule as written in the policy file.

    Attributes:
        source: Pattern matched against the importing module path ("from")
        forbidden: Patterns for import paths the source may not use ("to")
        exceptions: Patterns for import paths allowed despite "to"
            ("allowedDependencies")
        ignore_patterns: File name patterns excluded from this rule only
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    source: str = Field(
        ...,
        alias="from",
        description="Pattern for the importing module path",
    )
    forbidden: list[str] = Field(
        default_factory=list,
        alias="to",
        description="Patterns for forbidden import paths",
    )
    exceptions: list[str] = Field(
        default_factory=list,
        alias="allowedDependencies",
        description="Patterns for import paths exempt from 'to'",
    )
    ignore_patterns: list[str] = Field(
        default_factory=list,
        alias="ignorePatterns",
        description="File name patterns excluded from this rule",
    )

    @field_validator("forbidden", "exceptions", "ignore_patterns", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """YAML `key:` with no value loads as None; read it as an empty list."""
        return [] if v is None else v


class PolicyDocument(BaseModel):
    """
    A complete dependency policy.

    Attributes:
        ignore_patterns: File name patterns excluded from every rule
        rules: Rules in document order; every rule is checked for every edge
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    ignore_patterns: list[str] = Field(
        default_factory=list,
        alias="ignorePatterns",
        description="File name patterns excluded from all rules",
    )
    rules: list[RuleSpec] = Field(
        default_factory=list,
        description="Dependency rules in document order",
    )

    @field_validator("ignore_patterns", "rules", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


# =============================================================================
# Enums
# =============================================================================


class RuleOutcome(str, Enum):
    """How a single rule treated an edge."""

    EXEMPT = "exempt"
    GLOBAL_EXCLUDED = "global-excluded"
    SOURCE_MISMATCH = "source-mismatch"
    EXCLUDED = "excluded"
    EXCEPTED = "excepted"
    NO_MATCH = "no-match"
    VIOLATION = "violation"


# =============================================================================
# Evaluation Models
# =============================================================================


class Edge(BaseModel):
    """
    One import statement, as seen by the rule engine.

    Attributes:
        importer: Module path of the importing module
        imported: Module path being imported
        filename: Base name of the file containing the import
        exempt: Whether the import carries the inline exemption marker
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    importer: str
    imported: str
    filename: str
    exempt: bool = False


class Violation(BaseModel):
    """A single rule violated by an edge."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rule_index: int = Field(..., ge=0, description="Index of the violated rule")
    pattern: str = Field(..., description="Forbidden pattern that matched")
    imported: str = Field(..., description="The offending import path")

    @property
    def message(self) -> str:
        return f"invalid dependency: {self.imported}"


class Verdict(BaseModel):
    """
    Result of evaluating an edge against the compiled policy.

    An edge is allowed exactly when it violates no rule. A denied edge
    carries one Violation per offending rule, in rule order.

    Attributes:
        allowed: Whether the import is permitted
        reason: Human-readable explanation of the decision
        violations: Violations in rule order (empty when allowed)
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed: bool
    reason: str
    violations: tuple[Violation, ...] = ()

    @classmethod
    def allow(cls, reason: str) -> "Verdict":
        """Create an ALLOW verdict."""
        return cls(allowed=True, reason=reason)

    @classmethod
    def deny(cls, violations: list[Violation]) -> "Verdict":
        """Create a DENY verdict from one or more violations."""
        rules = ", ".join(str(v.rule_index) for v in violations)
        return cls(
            allowed=False,
            reason=f"Violates rule(s) {rules}",
            violations=tuple(violations),
        )


class Diagnostic(BaseModel):
    """
    A violation located in a source file.

    This is what the host reports: one Diagnostic per violated rule
    per import statement.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., description="Source file path")
    line: int = Field(..., ge=1)
    column: int = Field(..., ge=0)
    importer: str
    imported: str
    rule_index: int = Field(..., ge=0)
    pattern: str
    message: str


class RuleTrace(BaseModel):
    """
    How one rule treated one edge, for explaining a verdict.

    Attributes:
        rule_index: Index of the rule
        outcome: What the rule decided
        pattern: The pattern responsible for the outcome, if any
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    rule_index: int = Field(..., ge=0)
    outcome: RuleOutcome
    pattern: str | None = None
