"""
Corpus linter.

Checks the structural invariants of a rule directory: every document
loads, ids are unique, and conditional rules say when they apply.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from mastracheck.core.loader import load_rules


@dataclass(frozen=True)
class LintIssue:
    code: str
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: [{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "path": self.path, "message": self.message}


@dataclass
class LintReport:
    directory: str
    rules_checked: int = 0
    issues: List[LintIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directory": self.directory,
            "rules_checked": self.rules_checked,
            "issues": [i.to_dict() for i in self.issues],
        }


def lint_corpus(directory) -> LintReport:
    """Lint every rule document under ``directory``."""
    loaded = load_rules(directory)
    report = LintReport(directory=str(directory), rules_checked=len(loaded.rules) + len(loaded.errors))

    for error in loaded.errors:
        report.issues.append(LintIssue("malformed-rule", error.path, error.reason))

    for rule in loaded.rules:
        if rule.conditional and not rule.applies_when:
            report.issues.append(LintIssue(
                "missing-applies-when",
                rule.path,
                "conditional rule does not declare appliesWhen",
            ))

    report.issues.sort(key=lambda i: (i.path, i.code))
    return report
