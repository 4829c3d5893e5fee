"""
Reporting module for depcheck.

Output formats:
    - Console: Rich table of violations with a summary
    - JSON: Structured output for CI and editor integrations

Example:
    from depcheck.report import generate_json_report, print_report

    print_report(result)
    print(generate_json_report(result))
"""

from depcheck.report.console import print_report, print_rules, print_trace
from depcheck.report.json import build_report_dict, generate_json_report

__all__ = [
    "build_report_dict",
    "generate_json_report",
    "print_report",
    "print_rules",
    "print_trace",
]
