"""
Output formatters for check results.

Provides multiple output formats including:
- Human-readable CLI output
- Markdown report
- JSON for machine processing
- SARIF for code scanning integration
"""

from mastracheck.formatters.cli import CLIFormatter
from mastracheck.formatters.json_formatter import JSONFormatter
from mastracheck.formatters.markdown import MarkdownFormatter
from mastracheck.formatters.sarif import SARIFFormatter

__all__ = [
    "CLIFormatter",
    "JSONFormatter",
    "MarkdownFormatter",
    "SARIFFormatter",
    "get_formatter",
]


def get_formatter(format_name: str):
    """Get a formatter by name."""
    formatters = {
        "text": CLIFormatter,
        "cli": CLIFormatter,
        "markdown": MarkdownFormatter,
        "md": MarkdownFormatter,
        "json": JSONFormatter,
        "sarif": SARIFFormatter,
    }

    formatter_class = formatters.get(format_name.lower())
    if formatter_class:
        return formatter_class()

    raise ValueError(f"Unknown format: {format_name}")
