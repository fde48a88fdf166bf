"""
Project scanner.

Walks a target project, reads its text files and builds the fact table
the evaluator works from. The scanner does no real static analysis:
facts are regex matches, path globs and ``package.json`` dependency
entries.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple
import json
import os

import structlog

from mastracheck.core.findings import ScanWarning
from mastracheck.core.rules import Check
from mastracheck.utils import (
    is_binary_file, mask_secret, match_any, match_path, to_posix, truncate_string
)

logger = structlog.get_logger(__name__)


DEFAULT_IGNORE_PATTERNS = [
    "node_modules/",
    ".git/",
    ".mastra/",
    "dist/",
    "build/",
    ".next/",
    ".turbo/",
    ".vercel/",
    ".netlify/",
    "coverage/",
    ".cache/",
    "*.min.js",
    "*.map",
    "package-lock.json",
    "pnpm-lock.yaml",
    "yarn.lock",
    "bun.lockb",
]

TEXT_EXTENSIONS = [
    ".ts", ".tsx", ".mts", ".cts",
    ".js", ".jsx", ".mjs", ".cjs",
    ".json", ".yaml", ".yml", ".toml",
    ".md", ".mdx",
]

TEXT_FILENAMES = [".gitignore", ".npmrc", ".env*", "Dockerfile"]

DEPENDENCY_TABLES = ("dependencies", "devDependencies", "peerDependencies", "optionalDependencies")

DEFAULT_MAX_FILE_SIZE = 1024 * 1024


class ScanError(ValueError):
    """Raised when the target project cannot be scanned at all."""


@dataclass(frozen=True)
class Match:
    """One piece of evidence for a fact."""
    file_path: str
    line: Optional[int] = None
    text: str = ""


@dataclass(frozen=True)
class Fact:
    """All evidence collected for one fact key."""
    key: str
    matches: Tuple[Match, ...] = ()

    @property
    def present(self) -> bool:
        return bool(self.matches)


@dataclass
class ScanContext:
    """
    Everything known about one target project during one run.

    ``paths`` holds every discovered file, ``files`` the decoded text of
    the ones that are text, and ``facts`` the fact table keyed by
    ``Check.fact_key``.
    """
    root: str
    paths: List[str] = field(default_factory=list)
    files: Dict[str, str] = field(default_factory=dict)
    facts: Dict[str, Fact] = field(default_factory=dict)
    warnings: List[ScanWarning] = field(default_factory=list)

    @property
    def files_scanned(self) -> int:
        return len(self.files)

    def fact(self, check: Check) -> Optional[Fact]:
        return self.facts.get(check.fact_key)

    def warn(self, path: str, message: str):
        self.warnings.append(ScanWarning(source="scanner", path=path, message=message))


class ProjectScanner:
    """
    Discovers the files of a project and computes facts for checks.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.ignore_patterns = self.config.get("ignore_patterns") or DEFAULT_IGNORE_PATTERNS
        self.text_extensions = [e.lower() for e in self.config.get("extensions") or TEXT_EXTENSIONS]
        self.text_filenames = self.config.get("filenames") or TEXT_FILENAMES
        self.max_file_size = self.config.get("max_file_size", DEFAULT_MAX_FILE_SIZE)

    def should_ignore(self, rel_path: str, is_dir: bool = False) -> bool:
        """Check if a path should be ignored based on patterns."""
        for pattern in self.ignore_patterns:
            # "dir/" and "dir/**" both name a directory; its files are pruned with it.
            if pattern.endswith("/") or pattern.endswith("/**"):
                if is_dir and match_path(rel_path, pattern.rstrip("*").rstrip("/")):
                    return True
                continue
            if match_path(rel_path, pattern):
                return True
        return False

    def is_text_path(self, rel_path: str) -> bool:
        name = os.path.basename(rel_path)
        if os.path.splitext(name)[1].lower() in self.text_extensions:
            return True
        return match_any(name, self.text_filenames)

    def discover_files(self, root: str) -> List[str]:
        """Return every non-ignored file below ``root`` as a sorted relative path."""
        found = []
        for current, dirs, files in os.walk(root):
            rel_dir = to_posix(os.path.relpath(current, root))
            rel_dir = "" if rel_dir == "." else rel_dir + "/"

            dirs[:] = sorted(d for d in dirs if not self.should_ignore(rel_dir + d, is_dir=True))

            for name in files:
                rel_path = rel_dir + name
                if not self.should_ignore(rel_path):
                    found.append(rel_path)
        return sorted(found)

    def read_file(self, context: ScanContext, rel_path: str) -> Optional[str]:
        """Read a text file, recording unreadable files as warnings."""
        full_path = os.path.join(context.root, *rel_path.split("/"))

        try:
            size = os.path.getsize(full_path)
        except OSError as e:
            logger.warning("file_unreadable", path=rel_path, error=str(e))
            context.warn(rel_path, f"cannot stat file: {e}")
            return None

        if size > self.max_file_size:
            logger.debug("file_too_large", path=rel_path, size=size)
            return None
        if is_binary_file(full_path):
            logger.debug("file_binary", path=rel_path)
            return None

        try:
            with open(full_path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("file_unreadable", path=rel_path, error=str(e))
            context.warn(rel_path, f"cannot read file: {e}")
            return None

    def scan(self, root: str, checks: Iterable[Check] = ()) -> ScanContext:
        """
        Scan a project and compute facts for ``checks``.

        Nested ``when`` checks are computed too, so conditional rules can
        be decided from the same fact table.
        """
        if not os.path.isdir(root):
            raise ScanError(f"Target is not a directory: {root}")

        context = ScanContext(root=os.path.abspath(root))
        context.paths = self.discover_files(context.root)

        for rel_path in context.paths:
            if not self.is_text_path(rel_path):
                continue
            content = self.read_file(context, rel_path)
            if content is not None:
                context.files[rel_path] = content

        for check in _flatten(checks):
            if check.fact_key not in context.facts:
                context.facts[check.fact_key] = self.collect(context, check)

        logger.debug(
            "project_scanned",
            root=context.root,
            paths=len(context.paths),
            text_files=context.files_scanned,
            facts=len(context.facts),
        )
        return context

    def collect(self, context: ScanContext, check: Check) -> Fact:
        """Compute the fact backing one check."""
        if check.kind == "pattern":
            matches = self._collect_pattern(context, check)
        elif check.kind == "file":
            matches = [Match(file_path=p) for p in context.paths if match_path(p, check.target)]
        elif check.kind == "dependency":
            matches = self._collect_dependency(context, check)
        else:
            raise ValueError(f"Unknown check kind: {check.kind}")
        return Fact(key=check.fact_key, matches=tuple(matches))

    def _collect_pattern(self, context: ScanContext, check: Check) -> List[Match]:
        regex = check.compile()
        matches = []
        for rel_path, content in context.files.items():
            if check.paths and not match_any(rel_path, check.paths):
                continue
            for line_num, line in enumerate(content.splitlines(), start=1):
                if not regex.search(line):
                    continue
                text = line.strip()
                if check.redact:
                    text = regex.sub(lambda m: mask_secret(m.group()), text)
                matches.append(Match(rel_path, line_num, truncate_string(text, 200)))
        return matches

    def _collect_dependency(self, context: ScanContext, check: Check) -> List[Match]:
        matches = []
        manifests = [p for p in context.files if os.path.basename(p) == "package.json"]
        for rel_path in manifests:
            if check.paths and not match_any(rel_path, check.paths):
                continue
            content = context.files[rel_path]
            try:
                manifest = json.loads(content)
            except json.JSONDecodeError as e:
                if not any(w.path == rel_path for w in context.warnings):
                    context.warn(rel_path, f"invalid JSON: {e}")
                continue
            if not isinstance(manifest, dict):
                continue

            for table in DEPENDENCY_TABLES:
                deps = manifest.get(table)
                if isinstance(deps, dict) and check.target in deps:
                    matches.append(Match(
                        file_path=rel_path,
                        line=_line_of(content, f'"{check.target}"'),
                        text=f"{check.target}@{deps[check.target]} ({table})",
                    ))
        return matches


def _flatten(checks: Iterable[Check]) -> List[Check]:
    flat = []
    for check in checks:
        while check is not None:
            flat.append(check)
            check = check.when
    return flat


def _line_of(content: str, needle: str) -> Optional[int]:
    for line_num, line in enumerate(content.splitlines(), start=1):
        if needle in line:
            return line_num
    return None
