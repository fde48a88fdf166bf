"""
Markdown output formatter.

Renders the report layout the rule corpus documents for reviewers:
one section per severity, one entry per issue with its location,
issue, fix and documentation link.
"""

from typing import List

from mastracheck.core.findings import Finding, ScanResult, Severity

SECTION_TITLES = {
    Severity.CRITICAL: "Critical Issues",
    Severity.HIGH: "High Priority",
    Severity.MEDIUM: "Medium Priority",
    Severity.LOW: "Low Priority",
}


class MarkdownFormatter:
    """
    Formats check results as a Markdown report.

    Failed findings are grouped under one heading per severity,
    critical first. Severities below ``min_severity`` get no section.
    """

    def __init__(self, show_passed: bool = False, show_skipped: bool = False,
                 min_severity: Severity = Severity.LOW):
        self.show_passed = show_passed
        self.show_skipped = show_skipped
        self.min_severity = min_severity

    def format_result(self, result: ScanResult) -> str:
        """Format a complete check result as a Markdown document."""
        lines = [
            "# Mastra System Check Report",
            "",
            f"- **Target:** `{result.target}`",
            f"- **Rules loaded:** {result.rules_loaded}",
            f"- **Files scanned:** {result.files_scanned}",
            f"- **Results:** {len(result.failed)} failed, {len(result.passed)} passed, "
            f"{len(result.skipped)} skipped",
            "",
            "| Severity | Count |",
            "| --- | --- |",
        ]
        for severity in SECTION_TITLES:
            lines.append(f"| {severity.value.upper()} | {result.count(severity)} |")
        lines.append("")

        for severity, title in SECTION_TITLES.items():
            if severity < self.min_severity:
                continue
            findings = [f for f in result.failed if f.severity == severity]
            if not findings:
                continue
            lines.append(f"## {title}")
            lines.append("")
            for finding in findings:
                lines.extend(self._format_finding(finding))

        if self.show_passed and result.passed:
            lines.extend(self._format_list("Passed", result.passed))
        if self.show_skipped and result.skipped:
            lines.extend(self._format_list("Skipped", result.skipped))

        if result.warnings:
            lines.append("## Warnings")
            lines.append("")
            for warning in result.warnings:
                lines.append(f"- `{warning.path}`: {warning.message}")
            lines.append("")

        if not result.failed:
            lines.append("No issues found.")
            lines.append("")

        return "\n".join(lines)

    def _format_finding(self, finding: Finding) -> List[str]:
        lines = [
            f"### [{finding.rule_id}] {finding.title}",
            "",
            f"**Location:** `{finding.location}`",
            "",
            f"**Issue:** {finding.message}",
            "",
        ]
        if finding.suggested_fix:
            lines.extend(["**Fix:**", "", "```", finding.suggested_fix, "```", ""])
        if finding.doc_link:
            lines.extend([f"**Docs:** {finding.doc_link}", ""])
        return lines

    def _format_list(self, title: str, findings: List[Finding]) -> List[str]:
        lines = [f"## {title}", ""]
        for finding in findings:
            lines.append(f"- `{finding.rule_id}`: {finding.message}")
        lines.append("")
        return lines
