"""
JSON report generator for depcheck.

Produces a stable structure for CI jobs and editor integrations:

    {
      "report_version": "1.0",
      "generated_at": "...",
      "success": false,
      "statistics": {...},
      "diagnostics": [...],
      "skipped": [...]
    }
"""

import json
from datetime import UTC, datetime
from typing import Any

from depcheck.analysis import AnalysisResult


def generate_json_report(result: AnalysisResult, indent: int = 2) -> str:
    """
    Generate a JSON report for an analysis run.

    Args:
        result: The analysis result
        indent: JSON indentation level (default: 2)
    """
    return json.dumps(build_report_dict(result), indent=indent)


def build_report_dict(result: AnalysisResult) -> dict[str, Any]:
    """Build a report dictionary for an analysis run."""
    return {
        "report_version": "1.0",
        "generated_at": datetime.now(UTC).isoformat(),
        "success": result.success,
        "statistics": {
            "files_checked": result.files_checked,
            "edges_checked": result.edges_checked,
            "violations": len(result.diagnostics),
            "skipped": len(result.skipped),
            "duration_ms": result.duration_ms,
        },
        "diagnostics": [diag.model_dump() for diag in result.diagnostics],
        "skipped": [
            {"path": skipped.path, "reason": skipped.reason}
            for skipped in result.skipped
        ],
    }
