"""
Rule model for the rule checker.

A rule is one Markdown document of the corpus: YAML front-matter with
its metadata, a human-readable body, and optionally a machine-checkable
``Check`` that the evaluator can run against a project.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional
import re

from mastracheck.core.findings import Impact, Severity


CHECK_KINDS = ("pattern", "file", "dependency")
CHECK_EXPECTATIONS = ("present", "absent")

REQUIRED_FIELDS = ("title", "impact", "category")


class MalformedRule(ValueError):
    """Raised when a single rule document cannot be loaded."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class RuleDirectoryError(ValueError):
    """Raised when the rule directory itself is unusable."""


@dataclass(frozen=True)
class Check:
    """
    A presence/absence predicate over project facts.

    ``pattern`` checks search text files line by line with a regex,
    ``file`` checks look for a path matching a glob, and ``dependency``
    checks look a package up in ``package.json`` dependency tables.
    With ``redact`` set, matched text is masked before it reaches a report.
    """
    kind: str
    target: str
    paths: tuple = ()
    expect: str = "present"
    ignore_case: bool = False
    message: Optional[str] = None
    fix: Optional[str] = None
    when: Optional["Check"] = None
    redact: bool = False

    @property
    def fact_key(self) -> str:
        """Key under which the scanner stores the facts for this check."""
        key = f"{self.kind}:{self.target}"
        if self.paths:
            key += "@" + ",".join(self.paths)
        if self.ignore_case:
            key += "#i"
        if self.redact:
            key += "!redact"
        return key

    def compile(self) -> "re.Pattern":
        """Compile the regex of a ``pattern`` check."""
        flags = re.IGNORECASE if self.ignore_case else 0
        return re.compile(self.target, flags)

    def describe(self) -> str:
        if self.kind == "pattern":
            scope = ", ".join(self.paths) if self.paths else "project files"
            return f"/{self.target}/ in {scope}"
        if self.kind == "file":
            return f"file {self.target}"
        return f"dependency {self.target}"

    @classmethod
    def from_dict(cls, data: Any, path: str = "<check>") -> "Check":
        """Build a check from a front-matter mapping."""
        if not isinstance(data, dict):
            raise MalformedRule(path, "'check' must be a mapping")

        kinds = [kind for kind in CHECK_KINDS if kind in data]
        if len(kinds) > 1:
            raise MalformedRule(path, f"check declares more than one kind: {', '.join(kinds)}")
        if kinds:
            kind = kinds[0]
            target = data[kind]
        else:
            kind = str(data.get("kind", "")).strip()
            target = data.get("target")
        if kind not in CHECK_KINDS:
            raise MalformedRule(path, f"unknown check kind {kind!r}")
        if target is None or not str(target).strip():
            raise MalformedRule(path, f"{kind} check has an empty target")

        expect = str(data.get("expect", "present")).strip().lower()
        if expect not in CHECK_EXPECTATIONS:
            raise MalformedRule(path, f"check expect must be 'present' or 'absent', got {expect!r}")

        paths = data.get("paths", data.get("files", []))
        if isinstance(paths, str):
            paths = [paths]
        if not isinstance(paths, list):
            raise MalformedRule(path, "check paths must be a list of globs")

        when = None
        if data.get("when") is not None:
            when = cls.from_dict(data["when"], path)

        check = cls(
            kind=kind,
            target=str(target),
            paths=tuple(str(p) for p in paths),
            expect=expect,
            ignore_case=bool(data.get("ignore_case", False)),
            message=_optional_str(data.get("message")),
            fix=_optional_str(data.get("fix")),
            when=when,
            redact=bool(data.get("redact", False)),
        )

        if check.kind == "pattern":
            try:
                check.compile()
            except re.error as e:
                raise MalformedRule(path, f"invalid check pattern {check.target!r}: {e}")

        return check


@dataclass(frozen=True)
class Rule:
    """One rule document of the corpus."""
    id: str
    title: str
    impact: Impact
    category: str
    path: str
    impact_description: str = ""
    tags: FrozenSet[str] = field(default_factory=frozenset)
    conditional: bool = False
    applies_when: Optional[str] = None
    body: str = ""
    check: Optional[Check] = None
    fix: Optional[str] = None
    doc_link: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return self.impact.severity

    @property
    def activation(self) -> Optional[Check]:
        """The check deciding whether a conditional rule applies."""
        if self.check is None:
            return None
        return self.check.when

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "impact": self.impact.value,
            "impact_description": self.impact_description,
            "category": self.category,
            "tags": sorted(self.tags),
            "conditional": self.conditional,
            "applies_when": self.applies_when,
            "path": self.path,
            "automated": self.check is not None,
            "doc_link": self.doc_link,
        }


def parse_tags(value: Any) -> FrozenSet[str]:
    """Parse tags given as a YAML list or a comma separated string."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items: List[Any] = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        items = list(value)
    else:
        items = [value]
    return frozenset(str(item).strip() for item in items if str(item).strip())


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
