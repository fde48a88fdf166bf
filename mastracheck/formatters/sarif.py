"""
SARIF output formatter for code scanning integration.

Only failed findings become SARIF results; passed and skipped rules
have no location worth annotating.
"""

import json
from typing import Dict, Any, List
from datetime import datetime, timezone

from mastracheck import __version__
from mastracheck.core.findings import Finding, ScanResult, Severity


SARIF_LEVEL = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "note",
}


class SARIFFormatter:
    """
    Formats check results in SARIF format.

    SARIF is supported by:
    - GitHub Code Scanning
    - VS Code SARIF Viewer
    - Azure DevOps
    """

    SARIF_VERSION = "2.1.0"
    SCHEMA_URI = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"

    def __init__(self, min_severity: Severity = Severity.LOW):
        self.min_severity = min_severity

    def format_result(self, result: ScanResult) -> str:
        """Format a complete check result in SARIF format."""
        sarif = {
            "$schema": self.SCHEMA_URI,
            "version": self.SARIF_VERSION,
            "runs": [self._create_run(result)],
        }

        return json.dumps(sarif, indent=2)

    def _create_run(self, result: ScanResult) -> Dict[str, Any]:
        failed = [f for f in result.failed if f.severity >= self.min_severity]
        return {
            "tool": self._create_tool(self._collect_rules(failed)),
            "results": [self._create_result(finding) for finding in failed],
            "invocations": [self._create_invocation(result)],
        }

    def _create_tool(self, rules: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "driver": {
                "name": "mastracheck",
                "version": __version__,
                "rules": rules,
            }
        }

    def _collect_rules(self, findings: List[Finding]) -> List[Dict[str, Any]]:
        """Collect unique rules from findings."""
        rules_seen = set()
        rules = []

        for finding in findings:
            if finding.rule_id not in rules_seen:
                rules_seen.add(finding.rule_id)
                rules.append(self._create_rule(finding))

        return rules

    def _create_rule(self, finding: Finding) -> Dict[str, Any]:
        rule = {
            "id": finding.rule_id,
            "name": finding.title,
            "shortDescription": {
                "text": finding.title,
            },
            "defaultConfiguration": {
                "level": SARIF_LEVEL[finding.severity],
            },
            "properties": {
                "category": finding.category,
                "impact": finding.impact.value,
            },
        }

        if finding.suggested_fix:
            rule["help"] = {"text": finding.suggested_fix}
        if finding.doc_link:
            rule["helpUri"] = finding.doc_link

        return rule

    def _create_result(self, finding: Finding) -> Dict[str, Any]:
        sarif_result: Dict[str, Any] = {
            "ruleId": finding.rule_id,
            "level": SARIF_LEVEL[finding.severity],
            "message": {
                "text": finding.message,
            },
        }

        path = finding.location.file_path
        if not _is_artifact(path):
            # Project-wide or glob-scoped results have no file to point at.
            sarif_result["properties"] = {"scope": path}
            return sarif_result

        location: Dict[str, Any] = {
            "artifactLocation": {
                "uri": path,
            },
        }
        if finding.location.line is not None:
            location["region"] = {"startLine": finding.location.line}
        sarif_result["locations"] = [{"physicalLocation": location}]

        return sarif_result

    def _create_invocation(self, result: ScanResult) -> Dict[str, Any]:
        return {
            "executionSuccessful": True,
            "endTimeUtc": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "toolExecutionNotifications": [
                {
                    "message": {
                        "text": str(warning),
                    },
                    "level": "warning",
                }
                for warning in result.warnings
            ],
        }


def _is_artifact(path: str) -> bool:
    """True when ``path`` names a concrete file rather than the root or a glob."""
    if path in ("", ".") or path.endswith("/"):
        return False
    return not any(char in path for char in "*?[")
