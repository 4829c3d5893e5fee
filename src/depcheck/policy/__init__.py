"""
Policy compilation and evaluation for depcheck.

Key concepts:
    - compile_policy: Turns a PolicyDocument into an immutable CompiledPolicy
    - RuleEngine: Evaluates import edges against the compiled policy
    - InitializationGate: Builds the engine once and shares it across threads

The compiler is the only place a policy can fail. Once an engine exists,
every edge gets a Verdict.
"""

from depcheck.policy.compiler import CompiledPolicy, CompiledRule, compile_policy
from depcheck.policy.engine import RuleEngine
from depcheck.policy.gate import InitializationGate, build_engine, engine_gate

__all__ = [
    "CompiledPolicy",
    "CompiledRule",
    "InitializationGate",
    "RuleEngine",
    "build_engine",
    "compile_policy",
    "engine_gate",
]
