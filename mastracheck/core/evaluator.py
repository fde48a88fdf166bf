"""
Rule evaluator.

Applies each rule's check to the fact table of a scanned project and
turns the outcome into findings. Conditional rules whose feature is not
used are skipped, never failed.
"""

from typing import Any, Dict, List, Optional

import structlog

from mastracheck.core.findings import Finding, Location, Severity, Status
from mastracheck.core.rules import Check, Rule
from mastracheck.core.scanner import Fact, ScanContext

logger = structlog.get_logger(__name__)


class RuleEvaluator:
    """
    Evaluates loaded rules against a ``ScanContext``.

    Config keys:
        disabled: rule ids that are not evaluated at all.
        severity_overrides: rule id -> severity name.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.disabled = set(self.config.get("disabled", []))
        self.severity_overrides = {
            rule_id: Severity(str(value).lower())
            for rule_id, value in self.config.get("severity_overrides", {}).items()
        }

    def evaluate(self, rules: List[Rule], context: ScanContext) -> List[Finding]:
        findings: List[Finding] = []
        for rule in rules:
            if rule.id in self.disabled:
                logger.debug("rule_disabled", rule_id=rule.id)
                continue
            findings.extend(self.evaluate_rule(rule, context))
        return findings

    def evaluate_rule(self, rule: Rule, context: ScanContext) -> List[Finding]:
        check = rule.check
        if check is None:
            return [self._skip(rule, "No automated check; review this rule manually.")]

        if rule.conditional:
            reason = self._not_applicable(rule, context)
            if reason:
                return [self._skip(rule, reason)]

        fact = self._fact(check, context)

        if check.expect == "present":
            if fact.present:
                first = fact.matches[0]
                return [self._finding(rule, Status.PASS, Location(first.file_path, first.line),
                                      f"Found {check.describe()}.")]
            return [self._finding(rule, Status.FAIL, Location(_scope(check)),
                                  check.message or _missing_message(check))]

        if not fact.present:
            return [self._finding(rule, Status.PASS, Location("."), f"No {check.describe()}.")]
        return [
            self._finding(rule, Status.FAIL, Location(match.file_path, match.line),
                          check.message or _forbidden_message(check, match.text))
            for match in fact.matches
        ]

    def _not_applicable(self, rule: Rule, context: ScanContext) -> Optional[str]:
        """Return why a conditional rule does not apply, or None if it does."""
        activation = rule.activation
        feature = rule.applies_when or "its feature is in use"
        if activation is None:
            return f"Applies only when {feature}; applicability cannot be determined automatically."

        fact = self._fact(activation, context)
        active = fact.present if activation.expect == "present" else not fact.present
        if active:
            return None
        return f"Not applicable: applies only when {feature}."

    def _fact(self, check: Check, context: ScanContext) -> Fact:
        fact = context.fact(check)
        if fact is None:
            raise KeyError(f"No fact collected for {check.fact_key!r}")
        return fact

    def _severity(self, rule: Rule) -> Severity:
        return self.severity_overrides.get(rule.id, rule.severity)

    def _skip(self, rule: Rule, message: str) -> Finding:
        return self._finding(rule, Status.SKIP, Location("."), message)

    def _finding(self, rule: Rule, status: Status, location: Location, message: str) -> Finding:
        return Finding(
            rule_id=rule.id,
            title=rule.title,
            severity=self._severity(rule),
            impact=rule.impact,
            status=status,
            location=location,
            message=message,
            category=rule.category,
            suggested_fix=rule.fix,
            doc_link=rule.doc_link,
        )


def _scope(check: Check) -> str:
    if check.kind == "pattern" and check.paths:
        return check.paths[0]
    if check.kind == "dependency":
        return "package.json"
    return "."


def _missing_message(check: Check) -> str:
    if check.kind == "pattern":
        return f"Expected {check.describe()} but found no match."
    if check.kind == "file":
        return f"No file matches {check.target}."
    return f"Dependency {check.target} is not declared in package.json."


def _forbidden_message(check: Check, text: str) -> str:
    if check.kind == "pattern":
        return f"Found forbidden pattern /{check.target}/: {text}"
    if check.kind == "file":
        return f"File should not exist (matches {check.target})."
    return f"Dependency {check.target} should not be declared ({text})."
