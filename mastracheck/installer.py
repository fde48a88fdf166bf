"""
Skill installer.

Copies the rule corpus into the agent's skills directory so the
assistant can pick it up, replacing any previous installation.
"""

from pathlib import Path
from typing import Optional
import os
import shutil
import subprocess

import structlog

from mastracheck.core.engine import BUNDLED_CORPUS

logger = structlog.get_logger(__name__)


SKILL_NAME = "mastra-system-check"
REPO_URL = "https://github.com/goldk3y/mastra-system-check"

SKILL_FILES = ["SKILL.md", "AGENTS.md", "metadata.json", "README.md"]
SKILL_DIRS = ["rules"]


class InstallError(RuntimeError):
    pass


def skills_home() -> Path:
    """Return ``~/.claude/skills``; fails when no home directory is set."""
    home = os.environ.get("HOME") or os.environ.get("USERPROFILE")
    if not home:
        raise InstallError("Cannot determine the home directory (HOME is not set)")
    return Path(home) / ".claude" / "skills"


def default_destination() -> Path:
    return skills_home() / SKILL_NAME


def install_skill(
    dest: Optional[str] = None,
    source: Optional[str] = None,
    repo_url: Optional[str] = None,
    force: bool = True,
) -> Path:
    """
    Install the skill and return its location.

    Args:
        dest: Target directory (default ``~/.claude/skills/mastra-system-check``).
        source: Corpus directory to copy from (default: the bundled corpus).
        repo_url: Clone this git repository instead of copying ``source``.
        force: Replace an existing installation. Without it an existing
            installation is an error.
    """
    target = Path(dest) if dest else default_destination()
    target.parent.mkdir(parents=True, exist_ok=True)

    if target.exists():
        if not force:
            raise InstallError(f"{target} already exists (use force to replace it)")
        logger.info("removing_existing_installation", path=str(target))
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink()

    if repo_url:
        _clone(repo_url, target)
    else:
        _copy_corpus(Path(source) if source else Path(BUNDLED_CORPUS), target)

    logger.info("skill_installed", path=str(target))
    return target


def _copy_corpus(source: Path, target: Path):
    if not source.is_dir():
        raise InstallError(f"Skill source not found: {source}")

    target.mkdir(parents=True)
    for name in SKILL_FILES:
        src = source / name
        if src.is_file():
            shutil.copy2(src, target / name)
    for name in SKILL_DIRS:
        src = source / name
        if src.is_dir():
            shutil.copytree(src, target / name)


def _clone(repo_url: str, target: Path):
    if shutil.which("git") is None:
        raise InstallError("git is required to install from a repository")

    process = subprocess.run(
        ["git", "clone", "--depth", "1", repo_url, str(target)],
        text=True,
        capture_output=True,
    )
    if process.returncode != 0:
        raise InstallError(f"git clone failed: {process.stderr.strip() or process.returncode}")

    shutil.rmtree(target / ".git", ignore_errors=True)
