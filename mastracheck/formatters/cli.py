"""
CLI output formatter for human-readable results.
"""

from io import StringIO
from typing import Dict, List
import sys

from rich.console import Console
from rich.text import Text

from mastracheck.core.findings import Finding, ScanResult, Severity, Status


SEVERITY_STYLES = {
    Severity.CRITICAL: "bold white on red",
    Severity.HIGH: "bold red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

STATUS_MARKS = {
    Status.FAIL: ("✗", "red"),
    Status.PASS: ("✓", "green"),
    Status.SKIP: ("○", "dim"),
}

SEVERITY_ORDER = [Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW]


def supports_color() -> bool:
    """Check if the terminal supports color output."""
    if not hasattr(sys.stdout, "isatty"):
        return False
    return sys.stdout.isatty()


class CLIFormatter:
    """
    Formats check results for human-readable CLI output.
    """

    def __init__(
        self,
        use_color: bool = True,
        verbose: bool = False,
        show_passed: bool = False,
        show_skipped: bool = False,
        min_severity: Severity = Severity.LOW,
        width: int = 100,
    ):
        self.use_color = use_color and supports_color()
        self.verbose = verbose
        self.show_passed = show_passed
        self.show_skipped = show_skipped
        self.min_severity = min_severity
        self.width = width

    def _console(self) -> Console:
        return Console(
            file=StringIO(),
            width=self.width,
            force_terminal=self.use_color,
            no_color=not self.use_color,
            color_system="standard" if self.use_color else None,
            highlight=False,
            markup=False,
            emoji=False,
            soft_wrap=True,
        )

    def format_result(self, result: ScanResult) -> str:
        """Format a complete check result."""
        console = self._console()

        # Header
        console.print()
        console.print(Text("=" * 70, style="dim"))
        console.print(Text(" MASTRA SYSTEM CHECK ", style="bold"))
        console.print(Text("=" * 70, style="dim"))
        console.print()

        # Summary
        console.print(Text("Summary", style="bold"))
        console.print(Text("-" * 40, style="dim"))
        console.print(f"  Target:            {result.target}")
        console.print(f"  Rules loaded:      {result.rules_loaded}")
        console.print(f"  Files scanned:     {result.files_scanned}")
        console.print(f"  Check time:        {result.scan_time_seconds:.2f}s")
        console.print(
            f"  Results:           {len(result.failed)} failed, "
            f"{len(result.passed)} passed, {len(result.skipped)} skipped"
        )
        console.print()

        console.print(Text("Findings", style="bold"))
        console.print(Text("-" * 40, style="dim"))
        if not result.failed:
            console.print(Text("  No issues found!", style="green"))
        else:
            for severity in SEVERITY_ORDER:
                console.print(Text.assemble("  ", self._severity_label(severity), f" {result.count(severity)}"))
        console.print()

        grouped = self._group_failed(result.failed)
        if grouped:
            console.print(Text("=" * 70, style="dim"))
            console.print(Text(" ISSUES ", style="bold"))
            console.print(Text("=" * 70, style="dim"))

            for severity in SEVERITY_ORDER:
                findings = grouped.get(severity)
                if not findings:
                    continue
                console.print()
                console.print(Text(f"{severity.value.upper()} ({len(findings)})", style=SEVERITY_STYLES[severity]))
                console.print()
                for finding in findings:
                    self._print_finding(console, finding)

        if self.show_passed and result.passed:
            self._print_status_list(console, " PASSED ", result.passed)
        if self.show_skipped and result.skipped:
            self._print_status_list(console, " SKIPPED ", result.skipped)

        if result.warnings:
            console.print(Text("=" * 70, style="dim"))
            console.print(Text(" WARNINGS ", style="yellow"))
            console.print(Text("=" * 70, style="dim"))
            for warning in result.warnings:
                console.print(f"  • [{warning.source}] {warning}")
            console.print()

        return console.file.getvalue()

    def format_finding(self, finding: Finding) -> str:
        """Format a single finding."""
        console = self._console()
        self._print_finding(console, finding)
        return console.file.getvalue()

    def _group_failed(self, findings: List[Finding]) -> Dict[Severity, List[Finding]]:
        grouped: Dict[Severity, List[Finding]] = {}
        for finding in findings:
            if finding.severity < self.min_severity:
                continue
            grouped.setdefault(finding.severity, []).append(finding)
        return grouped

    def _severity_label(self, severity: Severity) -> Text:
        return Text(f"[{severity.value.upper()}]", style=SEVERITY_STYLES[severity])

    def _print_finding(self, console: Console, finding: Finding):
        mark, style = STATUS_MARKS[finding.status]
        console.print(Text.assemble(
            "  ",
            (mark, style),
            " ",
            self._severity_label(finding.severity),
            " ",
            (f"[{finding.rule_id}]", "cyan"),
            " ",
            (finding.title, "bold"),
        ))
        console.print(Text.assemble(("    Location: ", "dim"), str(finding.location)))
        console.print(Text.assemble(("    Issue:    ", "dim"), finding.message))

        if finding.suggested_fix:
            fix_lines = finding.suggested_fix.splitlines()
            if not self.verbose and len(fix_lines) > 8:
                fix_lines = fix_lines[:8] + ["..."]
            console.print(Text("    Fix:", style="green"))
            for line in fix_lines:
                console.print(Text(f"      {line}", style="green"))

        if finding.doc_link:
            console.print(Text.assemble(("    Docs:     ", "dim"), finding.doc_link))

        console.print(Text("  " + "-" * 66, style="dim"))

    def _print_status_list(self, console: Console, heading: str, findings: List[Finding]):
        console.print(Text("=" * 70, style="dim"))
        console.print(Text(heading, style="bold"))
        console.print(Text("=" * 70, style="dim"))
        for finding in findings:
            mark, style = STATUS_MARKS[finding.status]
            console.print(Text.assemble("  ", (mark, style), " ", (finding.rule_id, "cyan"), f"  {finding.message}"))
        console.print()
