"""
Finding data structures for the rule checker.

This module defines the core data structures used to represent
rule results, their locations, and the aggregate result of a scan.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any
import json


class Severity(Enum):
    """Severity levels for findings."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        return self == other or self < other

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        return self == other or self > other


_SEVERITY_ORDER = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


class Impact(Enum):
    """Impact levels declared in rule front-matter."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM_HIGH = "MEDIUM-HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @classmethod
    def parse(cls, value: Any) -> "Impact":
        """Parse an impact, accepting any case and ``_`` for ``-``."""
        text = str(value).strip().upper().replace("_", "-")
        return cls(text)

    @property
    def rank(self) -> int:
        return _IMPACT_ORDER.index(self)

    @property
    def severity(self) -> Severity:
        return _IMPACT_SEVERITY[self]


_IMPACT_ORDER = [Impact.LOW, Impact.MEDIUM, Impact.MEDIUM_HIGH, Impact.HIGH, Impact.CRITICAL]

_IMPACT_SEVERITY = {
    Impact.CRITICAL: Severity.CRITICAL,
    Impact.HIGH: Severity.HIGH,
    Impact.MEDIUM_HIGH: Severity.MEDIUM,
    Impact.MEDIUM: Severity.MEDIUM,
    Impact.LOW: Severity.LOW,
}


class Status(Enum):
    """Outcome of evaluating one rule."""
    FAIL = "fail"
    PASS = "pass"
    SKIP = "skip"


@dataclass(frozen=True)
class Location:
    """A location inside the scanned project."""
    file_path: str
    line: Optional[int] = None

    def __str__(self) -> str:
        if self.line is None:
            return self.file_path
        return f"{self.file_path}:{self.line}"

    def to_dict(self) -> Dict[str, Any]:
        return {"file_path": self.file_path, "line": self.line}


@dataclass(frozen=True)
class Finding:
    """
    The result of one rule against one project.

    Failed findings are violations; passed and skipped findings are kept
    so reports can show full coverage of the corpus.
    """
    rule_id: str
    title: str
    severity: Severity
    impact: Impact
    status: Status
    location: Location
    message: str
    category: str = ""
    suggested_fix: Optional[str] = None
    doc_link: Optional[str] = None

    @property
    def sort_key(self):
        """Critical first, then by impact, rule id and location."""
        return (
            -self.severity.rank,
            -self.impact.rank,
            self.rule_id,
            self.location.file_path,
            self.location.line or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert finding to a dictionary."""
        return {
            "rule_id": self.rule_id,
            "title": self.title,
            "severity": self.severity.value,
            "impact": self.impact.value,
            "status": self.status.value,
            "category": self.category,
            "location": self.location.to_dict(),
            "message": self.message,
            "suggested_fix": self.suggested_fix,
            "doc_link": self.doc_link,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass(frozen=True)
class ScanWarning:
    """A recoverable problem met while loading rules or scanning files."""
    source: str
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "path": self.path, "message": self.message}


@dataclass
class ScanResult:
    """Results from a complete scan."""
    target: str
    findings: List[Finding]
    rules_loaded: int
    files_scanned: int
    scan_time_seconds: float = 0.0
    warnings: List[ScanWarning] = field(default_factory=list)

    @property
    def failed(self) -> List[Finding]:
        return [f for f in self.findings if f.status == Status.FAIL]

    @property
    def passed(self) -> List[Finding]:
        return [f for f in self.findings if f.status == Status.PASS]

    @property
    def skipped(self) -> List[Finding]:
        return [f for f in self.findings if f.status == Status.SKIP]

    def count(self, severity: Severity) -> int:
        """Number of failed findings at exactly ``severity``."""
        return sum(1 for f in self.failed if f.severity == severity)

    @property
    def critical_count(self) -> int:
        return self.count(Severity.CRITICAL)

    @property
    def high_count(self) -> int:
        return self.count(Severity.HIGH)

    @property
    def medium_count(self) -> int:
        return self.count(Severity.MEDIUM)

    @property
    def low_count(self) -> int:
        return self.count(Severity.LOW)

    def blocking(self, fail_on: Severity = Severity.HIGH) -> List[Finding]:
        """Failed findings at or above ``fail_on``."""
        return [f for f in self.failed if f.severity >= fail_on]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "target": self.target,
                "rules_loaded": self.rules_loaded,
                "files_scanned": self.files_scanned,
                "scan_time_seconds": self.scan_time_seconds,
                "failed": len(self.failed),
                "passed": len(self.passed),
                "skipped": len(self.skipped),
                "by_severity": {
                    "critical": self.critical_count,
                    "high": self.high_count,
                    "medium": self.medium_count,
                    "low": self.low_count,
                },
            },
            "findings": [f.to_dict() for f in self.findings],
            "warnings": [w.to_dict() for w in self.warnings],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
