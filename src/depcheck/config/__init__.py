"""
Policy file discovery and loading.

The policy file is found by walking upward from the working directory
(or taken verbatim from DEPCHECK_CONFIG), then parsed into a
PolicyDocument. Pattern validation happens later, in the rule compiler.
"""

from depcheck.config.loader import load_policy, load_policy_from_string
from depcheck.config.locator import locate_config

__all__ = [
    "load_policy",
    "load_policy_from_string",
    "locate_config",
]
