"""
Utility functions for the rule checker.
"""

import fnmatch
import os
from typing import Iterable


def is_binary_file(file_path: str) -> bool:
    """Check if a file is binary."""
    try:
        with open(file_path, 'rb') as f:
            chunk = f.read(1024)
    except OSError:
        return False
    if b'\x00' in chunk:
        return True
    # Check for high proportion of non-text bytes
    text_chars = bytearray({7, 8, 9, 10, 12, 13, 27} | set(range(0x20, 0x100)) - {0x7f})
    non_text = sum(1 for byte in chunk if byte not in text_chars)
    return non_text / len(chunk) > 0.3 if chunk else False


def to_posix(path: str) -> str:
    """Normalize a relative path to forward slashes."""
    return path.replace(os.sep, "/")


def match_path(rel_path: str, pattern: str) -> bool:
    """
    Match a relative POSIX path against a glob.

    A pattern without ``/`` matches the basename, ``**/`` may match no
    directory at all, and a trailing ``/`` matches everything below.
    """
    pattern = pattern.strip()
    if pattern.startswith("./"):
        pattern = pattern[2:]
    if not pattern:
        return True
    if pattern.endswith("/"):
        pattern += "**"

    if "/" not in pattern:
        return fnmatch.fnmatchcase(os.path.basename(rel_path), pattern)

    if fnmatch.fnmatchcase(rel_path, pattern):
        return True
    if "**/" in pattern:
        return fnmatch.fnmatchcase(rel_path, pattern.replace("**/", ""))
    return False


def match_any(rel_path: str, patterns: Iterable[str]) -> bool:
    return any(match_path(rel_path, pattern) for pattern in patterns)


def truncate_string(s: str, max_length: int = 100, suffix: str = "...") -> str:
    """Truncate a string to a maximum length."""
    if len(s) <= max_length:
        return s
    return s[:max_length - len(suffix)] + suffix


def mask_secret(value: str) -> str:
    """Keep the first 8 and last 4 characters of a long value, star the rest."""
    if len(value) > 16:
        return value[:8] + '*' * (len(value) - 12) + value[-4:]
    return '*' * len(value)
