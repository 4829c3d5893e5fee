"""
Rule engine for depcheck.

The rule engine decides, for one import edge at a time, which dependency
rules the edge violates. It holds only compiled, immutable state, performs
no I/O and has no failure path: every edge yields a Verdict.

Precedence (first decisive step wins):
    1. Inline exemption: an exempt edge is allowed, no rule is consulted
    2. Global exclusion: a file matching a global ignore pattern is allowed
    3. Every rule, in document order:
        a. source pattern does not match the importer -> rule skipped
        b. file name matches a rule ignore pattern   -> rule skipped
        c. import matches an exception pattern       -> rule skipped
        d. first forbidden pattern matching the import -> one violation
    4. No violations -> allowed

Rules are independent. An exception or exclusion in one rule never
affects another, and one edge can violate several rules at once.
"""

from depcheck.policy.compiler import (
    CompiledPolicy,
    CompiledRule,
    Matcher,
    compile_policy,
)
from depcheck.schema import (
    Edge,
    PolicyDocument,
    RuleOutcome,
    RuleTrace,
    Verdict,
    Violation,
)


class RuleEngine:
    """
    Evaluates import edges against a compiled policy.

    Usage:
        engine = RuleEngine(compile_policy(document))
        verdict = engine.evaluate(Edge(
            importer="app.domain.user",
            imported="app.infra.db",
            filename="user.py",
        ))
        for violation in verdict.violations:
            print(violation.message)

    Attributes:
        policy: The compiled policy, shared read-only across threads
    """

    def __init__(self, policy: CompiledPolicy) -> None:
        self.policy = policy

    @classmethod
    def from_document(cls, document: PolicyDocument) -> "RuleEngine":
        """Compile ``document`` and wrap it in an engine."""
        return cls(compile_policy(document))

    @property
    def rule_count(self) -> int:
        return len(self.policy.rules)

    def evaluate(self, edge: Edge) -> Verdict:
        """
        Evaluate one edge against every rule.

        Args:
            edge: The import to check

        Returns:
            Verdict with one Violation per violated rule
        """
        if edge.exempt:
            return Verdict.allow("Exempted by inline comment")

        excluded_by = self._global_exclusion(edge.filename)
        if excluded_by is not None:
            return Verdict.allow(f"File excluded by global pattern: {excluded_by.pattern}")

        violations = []
        for rule in self.policy.rules:
            outcome, pattern = self._judge(rule, edge)
            if outcome is RuleOutcome.VIOLATION:
                violations.append(
                    Violation(
                        rule_index=rule.index,
                        pattern=pattern.pattern,
                        imported=edge.imported,
                    )
                )

        if violations:
            return Verdict.deny(violations)
        return Verdict.allow("No rule violated")

    def explain(self, edge: Edge) -> list[RuleTrace]:
        """
        Show how each rule treats ``edge``.

        Follows the same precedence as evaluate(). When the edge is exempt
        or globally excluded, every rule reports that outcome.
        """
        if edge.exempt:
            return [
                RuleTrace(rule_index=rule.index, outcome=RuleOutcome.EXEMPT)
                for rule in self.policy.rules
            ]

        excluded_by = self._global_exclusion(edge.filename)
        if excluded_by is not None:
            return [
                RuleTrace(
                    rule_index=rule.index,
                    outcome=RuleOutcome.GLOBAL_EXCLUDED,
                    pattern=excluded_by.pattern,
                )
                for rule in self.policy.rules
            ]

        traces = []
        for rule in self.policy.rules:
            outcome, pattern = self._judge(rule, edge)
            traces.append(
                RuleTrace(
                    rule_index=rule.index,
                    outcome=outcome,
                    pattern=pattern.pattern if pattern is not None else None,
                )
            )
        return traces

    def _global_exclusion(self, filename: str) -> Matcher | None:
        return _first_match(self.policy.ignore_patterns, filename)

    def _judge(
        self,
        rule: CompiledRule,
        edge: Edge,
    ) -> tuple[RuleOutcome, Matcher | None]:
        """Apply steps 3a-3d for one rule."""
        if not rule.source.search(edge.importer):
            return RuleOutcome.SOURCE_MISMATCH, rule.source

        ignored_by = _first_match(rule.ignore_patterns, edge.filename)
        if ignored_by is not None:
            return RuleOutcome.EXCLUDED, ignored_by

        excepted_by = _first_match(rule.exceptions, edge.imported)
        if excepted_by is not None:
            return RuleOutcome.EXCEPTED, excepted_by

        forbidden_by = _first_match(rule.forbidden, edge.imported)
        if forbidden_by is not None:
            return RuleOutcome.VIOLATION, forbidden_by

        return RuleOutcome.NO_MATCH, None


def _first_match(
    patterns: tuple[Matcher, ...],
    value: str,
) -> Matcher | None:
    for pattern in patterns:
        if pattern.search(value):
            return pattern
    return None
