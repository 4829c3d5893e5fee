"""
depcheck - Architectural dependency rules for Python packages.

depcheck reads a small YAML policy (depcheck.yml) describing which
modules may not import which others, and checks every import statement
of a source tree against it.
It provides:
- Regex rules per source module, with per-rule exceptions and file exclusions
- Global file exclusions and inline "# depcheck:allow" exemptions
- One report per violated rule per import
- A rule engine built once and shared safely across worker threads

Example usage:
    $ depcheck check src --root src
    $ depcheck validate
    $ depcheck explain app.domain.user app.infra.db --file user.py
"""

__version__ = "0.1.0"
__author__ = "depcheck Contributors"

from depcheck.errors import DepcheckError
from depcheck.policy import InitializationGate, RuleEngine, build_engine, compile_policy, engine_gate
from depcheck.schema import Edge, PolicyDocument, RuleSpec, Verdict, Violation

__all__ = [
    "__version__",
    "__author__",
    "DepcheckError",
    "Edge",
    "InitializationGate",
    "PolicyDocument",
    "RuleEngine",
    "RuleSpec",
    "Verdict",
    "Violation",
    "build_engine",
    "compile_policy",
    "engine_gate",
]
