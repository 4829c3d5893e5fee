"""
Exception hierarchy for depcheck.

All depcheck exceptions inherit from DepcheckError, allowing callers to catch
every depcheck-specific failure with a single except clause.

Exception Categories:
    - ConfigNotFoundError: No policy file at or above the working directory
    - ConfigReadError: Policy file exists but cannot be read
    - ConfigParseError: Policy file is not a valid policy document
    - RuleCompileError: A pattern in the policy does not compile

Every one of these is fatal for a run. They are raised while the rule engine
is being built, never while edges are evaluated.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Configuration errors: 1xxx
ERROR_CONFIG_NOT_FOUND = 1001
ERROR_CONFIG_READ = 1002
ERROR_CONFIG_PARSE = 1003

# Compile errors: 2xxx
ERROR_RULE_COMPILE = 2001
ERROR_RULE_UNSAFE_PATTERN = 2002


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class DepcheckError(Exception):
    """
    Base exception for all depcheck errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Configuration Errors
# =============================================================================


@dataclass
class ConfigError(DepcheckError):
    """
    Base class for policy file errors.

    Attributes:
        path: The policy file path involved, if known
    """

    path: str = ""

    def __post_init__(self) -> None:
        self.context["path"] = self.path


@dataclass
class ConfigNotFoundError(ConfigError):
    """Raised when no policy file exists in the working directory or its parents."""

    filename: str = ""
    search_start: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Config file {self.filename} not found in any parent directory"
            )
        if self.code == 0:
            self.code = ERROR_CONFIG_NOT_FOUND
        if not self.suggestion:
            self.suggestion = (
                f"Create {self.filename} at the project root "
                "or set DEPCHECK_CONFIG to its path"
            )
        super().__post_init__()
        self.context.update({
            "filename": self.filename,
            "search_start": self.search_start,
        })


@dataclass
class ConfigReadError(ConfigError):
    """Raised when the policy file cannot be read."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Could not read config file {self.path}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_READ
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


@dataclass
class ConfigParseError(ConfigError):
    """Raised when the policy file is not a structurally valid policy document."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Could not parse config file {self.path}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_PARSE
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


# =============================================================================
# Compile Errors
# =============================================================================


@dataclass
class RuleCompileError(DepcheckError):
    """
    Raised when a policy pattern cannot be compiled.

    Attributes:
        pattern: The offending pattern string
        rule_index: Index of the owning rule, or None for global ignorePatterns
        field: Policy key the pattern was found under (e.g. "to")
        underlying_error: Description of the compile failure
    """

    pattern: str = ""
    rule_index: int | None = None
    field: str = ""
    underlying_error: str = ""

    @property
    def location(self) -> str:
        """Where the pattern lives, e.g. ``rules[2].to`` or ``global ignorePatterns``."""
        if self.rule_index is None:
            return f"global {self.field}"
        return f"rules[{self.rule_index}].{self.field}"

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Invalid pattern {self.pattern!r} in {self.location}: "
                f"{self.underlying_error}"
            )
        if self.code == 0:
            self.code = ERROR_RULE_COMPILE
        self.context.update({
            "pattern": self.pattern,
            "rule_index": self.rule_index,
            "field": self.field,
            "underlying_error": self.underlying_error,
        })


@dataclass
class UnsafePatternError(RuleCompileError):
    """Raised when a pattern uses a construct that cannot be matched in linear time."""

    construct: str = ""

    def __post_init__(self) -> None:
        if not self.underlying_error:
            self.underlying_error = f"{self.construct} is not supported"
        if self.code == 0:
            self.code = ERROR_RULE_UNSAFE_PATTERN
        if not self.suggestion:
            self.suggestion = (
                "Rewrite the pattern without backreferences, lookaround or conditionals"
            )
        super().__post_init__()
        self.context["construct"] = self.construct
