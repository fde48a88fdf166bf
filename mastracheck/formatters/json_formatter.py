"""
JSON output formatter for machine-readable results.
"""

import json

from mastracheck.core.findings import Finding, ScanResult, Severity, Status


class JSONFormatter:
    """
    Formats check results as JSON for machine consumption.

    Failed findings below ``min_severity`` are left out; passed and
    skipped results are kept unless hidden explicitly.
    """

    def __init__(self, indent: int = 2, show_passed: bool = True, show_skipped: bool = True,
                 min_severity: Severity = Severity.LOW):
        self.indent = indent
        self.show_passed = show_passed
        self.show_skipped = show_skipped
        self.min_severity = min_severity

    def format_result(self, result: ScanResult) -> str:
        """Format a complete check result as JSON."""
        data = result.to_dict()

        hidden = set()
        if not self.show_passed:
            hidden.add(Status.PASS)
        if not self.show_skipped:
            hidden.add(Status.SKIP)
        data["findings"] = [
            f.to_dict() for f in result.findings
            if f.status not in hidden and not (f.status == Status.FAIL and f.severity < self.min_severity)
        ]

        return json.dumps(data, indent=self.indent, default=str)

    def format_finding(self, finding: Finding) -> str:
        """Format a single finding as JSON."""
        return json.dumps(finding.to_dict(), indent=self.indent, default=str)
