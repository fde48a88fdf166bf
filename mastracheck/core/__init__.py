"""Core checking engine and data structures."""

from mastracheck.core.findings import Finding, Impact, Location, ScanResult, Severity, Status
from mastracheck.core.engine import CheckEngine
from mastracheck.core.evaluator import RuleEvaluator
from mastracheck.core.loader import LoadResult, load_rules
from mastracheck.core.rules import Check, MalformedRule, Rule
from mastracheck.core.scanner import ProjectScanner, ScanContext, ScanError

__all__ = [
    "Finding",
    "Impact",
    "Location",
    "ScanResult",
    "Severity",
    "Status",
    "CheckEngine",
    "RuleEvaluator",
    "LoadResult",
    "load_rules",
    "Check",
    "MalformedRule",
    "Rule",
    "ProjectScanner",
    "ScanContext",
    "ScanError",
]
