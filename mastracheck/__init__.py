"""
Mastra System Check

A rule corpus of configuration best practices for Mastra projects,
plus a static checker that applies the rules to a project tree and
reports findings by severity.
"""

__version__ = "1.0.0"
__author__ = "Mastra System Check Team"

from mastracheck.core.engine import CheckEngine
from mastracheck.core.findings import Finding, Severity, Status
from mastracheck.config import CheckConfig

__all__ = [
    "CheckEngine",
    "Finding",
    "Severity",
    "Status",
    "CheckConfig",
]
