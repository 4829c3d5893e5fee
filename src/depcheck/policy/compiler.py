"""
Rule compiler for depcheck.

Turns a PolicyDocument into a CompiledPolicy: every pattern string is
compiled once with RE2. The compiled policy is immutable and can be
shared by any number of threads without locking.

RE2 matches in time linear in the input, whatever the pattern, so
evaluating an edge never backtracks. Backreferences, lookaround
assertions and conditional groups have no RE2 equivalent; they are
reported as UnsafePatternError before compilation.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

import re2

from depcheck.errors import RuleCompileError, UnsafePatternError
from depcheck.schema import PolicyDocument, RuleSpec

logger = logging.getLogger(__name__)


class Matcher(Protocol):
    """A compiled pattern, as returned by re2.compile()."""

    @property
    def pattern(self) -> str: ...

    def search(self, text: str) -> object | None: ...


@dataclass(frozen=True)
class CompiledRule:
    """
    A RuleSpec with every pattern compiled.

    Attributes:
        index: Position of the rule in the policy document
        source: Matcher for the importing module path
        forbidden: Matchers for forbidden import paths, in document order
        exceptions: Matchers for import paths exempt from this rule
        ignore_patterns: Matchers for file names excluded from this rule
    """

    index: int
    source: Matcher
    forbidden: tuple[Matcher, ...] = ()
    exceptions: tuple[Matcher, ...] = ()
    ignore_patterns: tuple[Matcher, ...] = ()


@dataclass(frozen=True)
class CompiledPolicy:
    """Global file exclusions plus all compiled rules, in document order."""

    ignore_patterns: tuple[Matcher, ...] = ()
    rules: tuple[CompiledRule, ...] = ()


def compile_policy(document: PolicyDocument) -> CompiledPolicy:
    """
    Compile every pattern in a policy document.

    Args:
        document: Structurally valid policy

    Returns:
        CompiledPolicy ready for the rule engine

    Raises:
        RuleCompileError: On the first pattern that does not compile,
            naming the pattern, its rule index (None for global) and key
    """
    ignore_patterns = _compile_all(document.ignore_patterns, None, "ignorePatterns")
    rules = tuple(
        compile_rule(rule, index) for index, rule in enumerate(document.rules)
    )
    logger.debug(
        "Compiled %d rule(s) and %d global ignore pattern(s)",
        len(rules),
        len(ignore_patterns),
    )
    return CompiledPolicy(ignore_patterns=ignore_patterns, rules=rules)


def compile_rule(rule: RuleSpec, index: int) -> CompiledRule:
    """Compile a single rule. ``index`` is used in error messages."""
    return CompiledRule(
        index=index,
        source=compile_pattern(rule.source, index, "from"),
        forbidden=_compile_all(rule.forbidden, index, "to"),
        exceptions=_compile_all(rule.exceptions, index, "allowedDependencies"),
        ignore_patterns=_compile_all(rule.ignore_patterns, index, "ignorePatterns"),
    )


def compile_pattern(
    pattern: str,
    rule_index: int | None = None,
    field: str = "",
) -> Matcher:
    """
    Compile one policy pattern.

    Raises:
        UnsafePatternError: If the pattern uses a construct RE2 cannot match
        RuleCompileError: If RE2 rejects the pattern
    """
    construct = find_unsafe_construct(pattern)
    if construct is not None:
        raise UnsafePatternError(
            pattern=pattern,
            rule_index=rule_index,
            field=field,
            construct=construct,
        )

    try:
        return re2.compile(pattern)
    except (re2.error, OverflowError, RecursionError) as e:
        raise RuleCompileError(
            pattern=pattern,
            rule_index=rule_index,
            field=field,
            underlying_error=str(e),
        ) from e


def _compile_all(
    patterns: list[str],
    rule_index: int | None,
    field: str,
) -> tuple[Matcher, ...]:
    return tuple(compile_pattern(p, rule_index, field) for p in patterns)


# =============================================================================
# Linear-time check
# =============================================================================

_GROUP_PREFIXES = (
    ("(?<=", "lookbehind"),
    ("(?<!", "negative lookbehind"),
    ("(?=", "lookahead"),
    ("(?!", "negative lookahead"),
    ("(?P=", "named backreference"),
    ("(?(", "conditional group"),
)


def find_unsafe_construct(pattern: str) -> str | None:
    """
    Return a description of the first construct in ``pattern`` that RE2 lacks.

    Escapes and character classes are skipped, so ``[(?=]`` and ``\\(?=``
    are not flagged. Returns None when the pattern is safe.

    Examples:
        find_unsafe_construct(r"(a)\\1") -> "backreference \\1"
        find_unsafe_construct(r"^app\\.(?!test)") -> "negative lookahead"
        find_unsafe_construct(r"^app\\.domain") -> None
    """
    i = 0
    in_class = False
    n = len(pattern)

    while i < n:
        ch = pattern[i]

        if ch == "\\":
            nxt = pattern[i + 1] if i + 1 < n else ""
            if not in_class and nxt.isdigit() and nxt != "0":
                return f"backreference \\{nxt}"
            i += 2
            continue

        if in_class:
            if ch == "]":
                in_class = False
            i += 1
            continue

        if ch == "[":
            in_class = True
            i += 1
            # A leading ']' (or '^]') is a literal inside the class
            if i < n and pattern[i] == "^":
                i += 1
            if i < n and pattern[i] == "]":
                i += 1
            continue

        if ch == "(":
            for prefix, name in _GROUP_PREFIXES:
                if pattern.startswith(prefix, i):
                    return name

        i += 1

    return None
