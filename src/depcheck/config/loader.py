"""
Policy file loader.

Reads depcheck.yml and turns it into a PolicyDocument. Only the
document structure is checked here; whether the patterns compile is
decided by depcheck.policy.compiler.

Format:

    ignorePatterns: ["_mock.py$"]
    rules:
      - from: "^app\\.domain"
        to: ["^app\\.infra"]
        allowedDependencies: ["^app\\.infra\\.common"]
        ignorePatterns: ["^test_"]
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from depcheck.errors import ConfigParseError, ConfigReadError
from depcheck.schema import PolicyDocument, RuleSpec

logger = logging.getLogger(__name__)


def load_policy(path: Path | str) -> PolicyDocument:
    """
    Load a policy from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Structurally valid PolicyDocument

    Raises:
        ConfigReadError: If the file cannot be read
        ConfigParseError: If the YAML doesn't match the policy format
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigReadError(path=str(path), underlying_error=str(e)) from e

    return load_policy_from_string(content, source=str(path))


def load_policy_from_string(content: str, source: str = "<string>") -> PolicyDocument:
    """
    Load a policy from a YAML string.

    Args:
        content: Raw YAML content
        source: Label used in error messages

    Raises:
        ConfigParseError: On YAML syntax errors or schema violations
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigParseError(path=source, underlying_error=str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            path=source,
            underlying_error=f"top level must be a mapping (got {type(data).__name__})",
        )

    try:
        document = PolicyDocument.model_validate(data)
    except ValidationError as e:
        lines = []
        for err in e.errors():
            loc = ".".join(str(x) for x in err["loc"]) if err["loc"] else "(root)"
            lines.append(f"{loc}: {err['msg']}")
        raise ConfigParseError(path=source, underlying_error="; ".join(lines)) from e

    _warn_unknown_keys(data, source)
    logger.info(
        "Loaded policy %s: %d rule(s), %d global ignore pattern(s)",
        source,
        len(document.rules),
        len(document.ignore_patterns),
    )
    return document


def _known_keys(model: type[PolicyDocument] | type[RuleSpec]) -> set[str]:
    return {f.alias or name for name, f in model.model_fields.items()}


def _warn_unknown_keys(data: dict[str, Any], source: str) -> None:
    """Unknown keys are ignored, but usually mean a typo in the policy."""
    unknown = set(data) - _known_keys(PolicyDocument)
    if unknown:
        logger.warning("%s: ignoring unknown key(s) %s", source, ", ".join(sorted(map(str, unknown))))

    rule_keys = _known_keys(RuleSpec)
    for index, rule in enumerate(data.get("rules") or []):
        unknown = set(rule) - rule_keys
        if unknown:
            logger.warning(
                "%s: rules[%d]: ignoring unknown key(s) %s",
                source,
                index,
                ", ".join(sorted(map(str, unknown))),
            )
