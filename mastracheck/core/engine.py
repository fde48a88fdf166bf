"""
Main checking engine.

This module orchestrates a run: load the rule corpus, scan the target
project for the facts the rules need, evaluate the rules and collect
everything into a ``ScanResult``.
"""

import os
import time
from typing import Any, Dict, List, Optional

import structlog

from mastracheck.core.evaluator import RuleEvaluator
from mastracheck.core.findings import ScanResult, ScanWarning, Severity
from mastracheck.core.loader import LoadResult, load_rules
from mastracheck.core.rules import Rule
from mastracheck.core.scanner import ProjectScanner

logger = structlog.get_logger(__name__)


BUNDLED_CORPUS = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "corpus")
BUNDLED_RULES = os.path.join(BUNDLED_CORPUS, "rules")


class CheckEngine:
    """
    Runs the rule corpus against a project.

    The engine:
    1. Loads rule documents (malformed ones become warnings)
    2. Scans the target for the facts the rules' checks need
    3. Evaluates every enabled rule
    4. Returns the findings sorted critical first
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.rules_dir = self.config.get("rules_dir") or BUNDLED_RULES
        self.scanner = ProjectScanner(self.config.get("scan", {}))
        self.evaluator = RuleEvaluator(self.config.get("rules", {}))

    def load(self) -> LoadResult:
        return load_rules(self.rules_dir)

    def check(self, target_path: str) -> ScanResult:
        """
        Check a project and return results.

        Args:
            target_path: Root directory of the project.

        Returns:
            ScanResult containing all findings and warnings.
        """
        start_time = time.time()

        loaded = self.load()
        rules: List[Rule] = [r for r in loaded.rules if r.id not in self.evaluator.disabled]
        warnings = [ScanWarning(source="loader", path=e.path, message=e.reason) for e in loaded.errors]

        context = self.scanner.scan(target_path, [r.check for r in rules if r.check is not None])
        findings = self.evaluator.evaluate(rules, context)
        findings.sort(key=lambda f: f.sort_key)

        elapsed_time = time.time() - start_time
        result = ScanResult(
            target=context.root,
            findings=findings,
            rules_loaded=len(loaded.rules),
            files_scanned=context.files_scanned,
            scan_time_seconds=round(elapsed_time, 3),
            warnings=warnings + context.warnings,
        )

        logger.info(
            "scan_complete",
            target=context.root,
            failed=len(result.failed),
            passed=len(result.passed),
            skipped=len(result.skipped),
            warnings=len(result.warnings),
        )
        return result


def exit_code(result: ScanResult, fail_on: Severity = Severity.HIGH) -> int:
    """0 when nothing at or above ``fail_on`` failed, 1 otherwise."""
    return 1 if result.blocking(fail_on) else 0
