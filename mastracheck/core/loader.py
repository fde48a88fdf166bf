"""
Rule loader.

Reads a directory of Markdown rule documents, parses their YAML
front-matter and turns each one into a ``Rule``. Loading is tolerant of
partial failure: a malformed document is reported and skipped while the
remaining documents still load.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import re
import shlex

import structlog
import yaml

from mastracheck.core.findings import Impact
from mastracheck.core.rules import (
    Check, MalformedRule, REQUIRED_FIELDS, Rule, RuleDirectoryError, parse_tags
)

logger = structlog.get_logger(__name__)

_FRONT_MATTER_RE = re.compile(r"\A\ufeff?---[ \t]*\r?\n(?P<front>.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_HEADING_RE = re.compile(r"^(?P<hashes>#{1,6})\s+(?P<title>.+?)\s*$", re.MULTILINE)
_FENCE_RE = re.compile(r"^```[^\n]*\n(?P<code>.*?)^```", re.MULTILINE | re.DOTALL)
_CORRECT_RE = re.compile(r"^(?:#+\s*)?\**\s*correct\b", re.IGNORECASE | re.MULTILINE)
_REFERENCE_LINK_RE = re.compile(r"^\**\s*reference[^\n]*?\((?P<url>https?://[^)\s]+)\)", re.IGNORECASE | re.MULTILINE)
_BARE_REFERENCE_RE = re.compile(r"^\**\s*reference[^\n]*?(?P<url>https?://\S+)", re.IGNORECASE | re.MULTILINE)
_EMPTY_OUTPUT_RE = re.compile(
    r"\b(?:should|must) (?:return|print|output|show) nothing\b"
    r"|\b(?:should|must) be empty\b"
    r"|\bno output\b"
    r"|\bno (?:matches|results) expected\b",
    re.IGNORECASE,
)

# Matches of checks on rules with these tags are masked in reports.
REDACT_TAGS = frozenset({"secrets", "api-keys"})

# grep flags that take a separate argument
_GREP_ARG_FLAGS = {"--include", "--exclude", "--exclude-dir", "-A", "-B", "-C", "-m"}


@dataclass
class LoadResult:
    """Rules that loaded plus the per-file errors met on the way."""
    rules: List[Rule] = field(default_factory=list)
    errors: List[MalformedRule] = field(default_factory=list)

    def get(self, rule_id: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None


def parse_front_matter(text: str, path: str = "<rule>") -> Tuple[Dict[str, Any], str]:
    """Split a document into its front-matter mapping and Markdown body."""
    match = _FRONT_MATTER_RE.match(text)
    if not match:
        raise MalformedRule(path, "missing YAML front-matter")

    try:
        metadata = yaml.safe_load(match.group("front"))
    except yaml.YAMLError as e:
        raise MalformedRule(path, f"invalid YAML front-matter: {e}")

    if not isinstance(metadata, dict):
        raise MalformedRule(path, "front-matter must be a mapping")

    return metadata, text[match.end():]


def parse_rule(path: Path, rule_id: Optional[str] = None, display_path: Optional[str] = None) -> Rule:
    """Parse a single rule document."""
    shown = display_path or str(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedRule(shown, f"cannot read file: {e}")

    metadata, body = parse_front_matter(text, shown)

    missing = [key for key in REQUIRED_FIELDS if not _text(metadata.get(key))]
    if missing:
        raise MalformedRule(shown, f"missing required field(s): {', '.join(missing)}")

    try:
        impact = Impact.parse(metadata["impact"])
    except ValueError:
        allowed = ", ".join(i.value for i in Impact)
        raise MalformedRule(shown, f"unknown impact {metadata['impact']!r} (expected one of {allowed})")

    check = None
    if metadata.get("check") is not None:
        check = Check.from_dict(metadata["check"], shown)
    else:
        check = extract_quick_check(body)

    tags = parse_tags(metadata.get("tags"))
    if check is not None and tags & REDACT_TAGS and not check.redact:
        check = replace(check, redact=True)

    fix = check.fix if check is not None and check.fix else extract_fix(body)

    return Rule(
        id=rule_id or path.stem,
        title=_text(metadata["title"]),
        impact=impact,
        category=_text(metadata["category"]),
        path=shown,
        impact_description=_text(metadata.get("impactDescription")),
        tags=tags,
        conditional=bool(metadata.get("conditional", False)),
        applies_when=_text(metadata.get("appliesWhen")) or None,
        body=body.strip(),
        check=check,
        fix=fix,
        doc_link=_text(metadata.get("reference")) or extract_doc_link(body),
    )


def load_rules(directory) -> LoadResult:
    """
    Load every rule document under ``directory``.

    Files are read in sorted relative-path order; files whose name starts
    with ``_`` are section or template documents and are not rules.
    """
    root = Path(directory)
    if not root.is_dir():
        raise RuleDirectoryError(f"Rule directory not found: {root}")

    result = LoadResult()
    seen: Dict[str, str] = {}

    for path in sorted(root.rglob("*.md"), key=lambda p: p.relative_to(root).as_posix()):
        if path.name.startswith("_") or not path.is_file():
            continue

        display = path.relative_to(root).as_posix()
        rule_id = path.stem
        try:
            if rule_id in seen:
                raise MalformedRule(display, f"duplicate rule id {rule_id!r} (first defined in {seen[rule_id]})")
            rule = parse_rule(path, rule_id=rule_id, display_path=display)
        except MalformedRule as e:
            logger.warning("malformed_rule", path=e.path, reason=e.reason)
            result.errors.append(e)
            continue

        seen[rule_id] = display
        result.rules.append(rule)

    logger.debug("rules_loaded", directory=str(root), loaded=len(result.rules), errors=len(result.errors))
    return result


def extract_quick_check(body: str) -> Optional[Check]:
    """
    Derive a check from the first ``grep`` command of a Quick Check section.

    A comment above the command saying it should print nothing turns the
    check into an absence check.
    """
    section = _section(body, "quick check")
    if section is None:
        return None

    for block in _FENCE_RE.finditer(section):
        comment = ""
        for raw_line in block.group("code").splitlines():
            line = raw_line.strip()
            if line.startswith("#"):
                comment = line
                continue
            if not line:
                continue
            if not line.startswith("grep"):
                # A comment only describes the command right below it.
                comment = ""
                continue
            check = _grep_to_check(line, absent=bool(_EMPTY_OUTPUT_RE.search(comment)))
            if check is not None:
                return check
            comment = ""
    return None


def extract_fix(body: str) -> Optional[str]:
    """Return the first code block following a "Correct" marker."""
    marker = _CORRECT_RE.search(body)
    if not marker:
        return None
    block = _FENCE_RE.search(body, marker.end())
    if not block:
        return None
    return block.group("code").strip() or None


def extract_doc_link(body: str) -> Optional[str]:
    match = _REFERENCE_LINK_RE.search(body) or _BARE_REFERENCE_RE.search(body)
    if not match:
        return None
    return match.group("url").rstrip(".,")


def _section(body: str, title: str) -> Optional[str]:
    # Shell comments inside fenced blocks look like headings.
    fences = [block.span() for block in _FENCE_RE.finditer(body)]
    headings = [
        heading for heading in _HEADING_RE.finditer(body)
        if not any(start <= heading.start() < end for start, end in fences)
    ]
    for index, heading in enumerate(headings):
        if heading.group("title").strip().lower().rstrip(":").startswith(title):
            level = len(heading.group("hashes"))
            end = len(body)
            for later in headings[index + 1:]:
                if len(later.group("hashes")) <= level:
                    end = later.start()
                    break
            return body[heading.end():end]
    return None


def _grep_to_check(command: str, absent: bool) -> Optional[Check]:
    # Only the grep itself; pipes and chained commands are ignored.
    command = re.split(r"\s(?:\||&&|;)\s", command, maxsplit=1)[0]
    try:
        tokens = shlex.split(command)
    except ValueError:
        return None

    ignore_case = False
    extended = False
    pattern = None
    paths: List[str] = []
    skip_next = False

    for token in tokens[1:]:
        if skip_next:
            skip_next = False
            continue
        if token in _GREP_ARG_FLAGS:
            skip_next = True
            continue
        if token.startswith("--"):
            continue
        if token.startswith("-") and pattern is None and len(token) > 1:
            flags = token[1:]
            ignore_case = ignore_case or "i" in flags
            extended = extended or "E" in flags or "P" in flags
            continue
        if pattern is None:
            pattern = token
        else:
            paths.append(_path_glob(token))

    if not pattern:
        return None

    target = pattern if extended else _basic_to_python(pattern)
    try:
        re.compile(target)
    except re.error:
        target = re.escape(pattern)

    return Check(
        kind="pattern",
        target=target,
        paths=tuple(p for p in paths if p),
        expect="absent" if absent else "present",
        ignore_case=ignore_case,
    )


def _basic_to_python(pattern: str) -> str:
    """Translate a POSIX basic regex, where ``+ ? | ( ) { }`` are literal."""
    out = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if char == "\\" and index + 1 < len(pattern):
            nxt = pattern[index + 1]
            out.append(nxt if nxt in "+?|(){}" else char + nxt)
            index += 2
            continue
        out.append("\\" + char if char in "+?|(){}" else char)
        index += 1
    return "".join(out)


def _path_glob(token: str) -> str:
    token = token.strip()
    if token in (".", "./"):
        return ""
    if token.startswith("./"):
        token = token[2:]
    return token


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
