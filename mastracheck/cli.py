"""
Command-line interface for the rule checker.

Provides commands for checking a project against the rule corpus,
linting a corpus, listing rules, and installing the skill.
"""

import argparse
import sys
import os
from typing import Optional, List

from mastracheck import __version__
from mastracheck.config import (
    ConfigError, OUTPUT_FORMATS, create_default_config, load_check_config
)
from mastracheck.core.engine import BUNDLED_RULES, CheckEngine, exit_code
from mastracheck.core.findings import Severity
from mastracheck.core.lint import lint_corpus
from mastracheck.core.loader import load_rules
from mastracheck.core.rules import RuleDirectoryError
from mastracheck.core.scanner import ScanError
from mastracheck.formatters import get_formatter
from mastracheck.installer import InstallError, SKILL_NAME, install_skill
from mastracheck.log import setup_logging

SEVERITY_CHOICES = [s.value for s in Severity]


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mastracheck",
        description="Check a Mastra project against a corpus of configuration best-practice rules.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mastracheck scan ./my-app                     # Check a project
  mastracheck scan . --format markdown -o r.md  # Markdown report to a file
  mastracheck scan . --fail-on critical         # Only critical issues fail
  mastracheck lint ./rules                      # Validate a rule corpus
  mastracheck list-rules --category security    # Browse the rules
  mastracheck install                           # Install the skill
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="Check a project against the rules")
    scan_parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="Project root to check (default: current directory)",
    )
    scan_parser.add_argument(
        "-r", "--rules",
        help="Rule directory (default: bundled corpus)",
    )
    scan_parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    scan_parser.add_argument(
        "-f", "--format",
        choices=OUTPUT_FORMATS,
        help="Output format (default: text)",
    )
    scan_parser.add_argument(
        "-o", "--output",
        help="Output file (default: stdout)",
    )
    scan_parser.add_argument(
        "-s", "--severity",
        choices=SEVERITY_CHOICES,
        help="Minimum severity to report (default: low)",
    )
    scan_parser.add_argument(
        "--fail-on",
        choices=SEVERITY_CHOICES,
        help="Minimum severity that makes the run fail (default: high)",
    )
    scan_parser.add_argument(
        "--disable",
        action="append",
        metavar="RULE_ID",
        help="Skip a rule (can be specified multiple times)",
    )
    scan_parser.add_argument(
        "--show-passed",
        action="store_true",
        help="List rules that passed",
    )
    scan_parser.add_argument(
        "--show-skipped",
        action="store_true",
        help="List rules that were skipped",
    )
    scan_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    scan_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    scan_parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit log events on stderr as JSON lines",
    )

    # Lint command
    lint_parser = subparsers.add_parser("lint", help="Validate a rule corpus")
    lint_parser.add_argument(
        "rules",
        nargs="?",
        default=BUNDLED_RULES,
        help="Rule directory (default: bundled corpus)",
    )

    # List-rules command
    rules_parser = subparsers.add_parser("list-rules", help="List available rules")
    rules_parser.add_argument(
        "-r", "--rules",
        default=BUNDLED_RULES,
        help="Rule directory (default: bundled corpus)",
    )
    rules_parser.add_argument(
        "--category",
        help="Filter by category",
    )
    rules_parser.add_argument(
        "--tag",
        help="Filter by tag",
    )

    # Install command
    install_parser = subparsers.add_parser("install", help="Install the skill for the coding agent")
    install_parser.add_argument(
        "--dest",
        help="Install directory (default: ~/.claude/skills/mastra-system-check)",
    )
    install_parser.add_argument(
        "--repo",
        help="Clone this git repository instead of copying the bundled corpus",
    )
    install_parser.add_argument(
        "--no-force",
        action="store_true",
        help="Fail instead of replacing an existing installation",
    )

    # Init command
    init_parser = subparsers.add_parser("init", help="Create a configuration file")
    init_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite existing config file",
    )

    return parser


def cmd_scan(args: argparse.Namespace) -> int:
    """Execute the scan command."""
    setup_logging("debug" if args.verbose else "warning", json_output=args.log_json)

    try:
        config = load_check_config(args.config, start_dir=args.target)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    # Apply command-line overrides
    if args.rules:
        config.rules.directory = args.rules
    if args.disable:
        config.rules.disabled = config.rules.disabled + args.disable
    if args.format:
        config.output.format = args.format
    if args.severity:
        config.output.severity = args.severity
    if args.fail_on:
        config.fail_on = args.fail_on
    if args.show_passed:
        config.output.show_passed = True
    if args.show_skipped:
        config.output.show_skipped = True
    if args.no_color:
        config.output.color = False

    engine = CheckEngine(config.to_engine_config())

    if args.verbose and config.output.format == "text":
        print(f"Checking {os.path.abspath(args.target)}...")

    try:
        result = engine.check(args.target)
    except (ScanError, RuleDirectoryError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    output_file = args.output or config.output.output_file
    formatter = get_formatter(config.output.format)

    if hasattr(formatter, 'verbose'):
        formatter.verbose = args.verbose
    if hasattr(formatter, 'use_color'):
        formatter.use_color = formatter.use_color and config.output.color and not output_file
    if hasattr(formatter, 'min_severity'):
        formatter.min_severity = config.report_severity
    if hasattr(formatter, 'show_passed') and config.output.format != "json":
        formatter.show_passed = config.output.show_passed
    if hasattr(formatter, 'show_skipped') and config.output.format != "json":
        formatter.show_skipped = config.output.show_skipped

    output = formatter.format_result(result)

    # Write output
    if output_file:
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(output)
        if config.output.format == "text":
            print(f"Results written to {output_file}")
    else:
        print(output)

    return exit_code(result, config.fail_on_severity)


def cmd_lint(args: argparse.Namespace) -> int:
    """Execute the lint command."""
    setup_logging("error")

    try:
        report = lint_corpus(args.rules)
    except RuleDirectoryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(f"Checked {report.rules_checked} rule file(s) in {report.directory}")
    if report.ok:
        print("No issues found.")
        return 0

    for issue in report.issues:
        print(f"  {issue}")
    print(f"\n{len(report.issues)} issue(s) found.")
    return 1


def cmd_list_rules(args: argparse.Namespace) -> int:
    """Execute the list-rules command."""
    setup_logging("error")

    try:
        loaded = load_rules(args.rules)
    except RuleDirectoryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    rules = loaded.rules
    if args.category:
        rules = [r for r in rules if r.category.lower() == args.category.lower()]
    if args.tag:
        rules = [r for r in rules if args.tag in r.tags]

    print("\nAvailable Rules")
    print("=" * 78)

    categories = sorted({r.category for r in rules})
    for category in categories:
        print(f"\n{category}:")
        print("-" * 78)
        for rule in sorted((r for r in rules if r.category == category), key=lambda r: (-r.impact.rank, r.id)):
            status = "✓" if rule.check is not None else "○"
            conditional = " (conditional)" if rule.conditional else ""
            print(f"  {status} {rule.id:<36} [{rule.impact.value}]{conditional}")

    print(f"\nTotal: {len(rules)} rules")
    print("✓ = automated check, ○ = manual review")

    return 0


def cmd_install(args: argparse.Namespace) -> int:
    """Execute the install command."""
    setup_logging("warning")
    print(f"Installing {SKILL_NAME} skill...")

    try:
        location = install_skill(dest=args.dest, repo_url=args.repo, force=not args.no_force)
    except InstallError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"✓ {SKILL_NAME} installed successfully!")
    print(f"\nLocation: {location}\n")
    print("The skill will automatically activate when working with Mastra projects.")
    print("To trigger it manually, ask the assistant to \"run a Mastra system check\".")
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Execute the init command."""
    config_file = ".mastracheck.yaml"

    if os.path.exists(config_file) and not args.force:
        print(f"Configuration file {config_file} already exists.")
        print("Use --force to overwrite.")
        return 1

    content = create_default_config()

    with open(config_file, 'w', encoding='utf-8') as f:
        f.write(content)

    print(f"Created configuration file: {config_file}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "scan": cmd_scan,
        "lint": cmd_lint,
        "list-rules": cmd_list_rules,
        "install": cmd_install,
        "init": cmd_init,
    }

    try:
        return commands[args.command](args)

    except KeyboardInterrupt:
        print("\nCheck interrupted.")
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if os.environ.get("DEBUG"):
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())
