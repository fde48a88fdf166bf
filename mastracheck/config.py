"""
Configuration system for the rule checker.

Supports YAML and JSON configuration files for choosing the rule
corpus, tuning the project scan, and shaping the report.
"""

import json
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field, asdict

import yaml

from mastracheck.core.findings import Severity
from mastracheck.core.scanner import DEFAULT_IGNORE_PATTERNS


# Default configuration file names to search for
CONFIG_FILE_NAMES = [
    ".mastracheck.yaml",
    ".mastracheck.yml",
    ".mastracheck.json",
    "mastracheck.yaml",
    "mastracheck.yml",
    "mastracheck.json",
]

OUTPUT_FORMATS = ["text", "markdown", "json", "sarif"]


class ConfigError(ValueError):
    pass


@dataclass
class RuleSetConfig:
    """Configuration for the rule corpus."""
    directory: Optional[str] = None
    disabled: List[str] = field(default_factory=list)
    severity_overrides: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        disabled = self.disabled or []
        if isinstance(disabled, str):
            disabled = [disabled]
        if not isinstance(disabled, (list, tuple)):
            raise ConfigError("'rules.disabled' must be a list of rule ids")
        self.disabled = [str(r) for r in disabled]

        overrides = self.severity_overrides or {}
        if not isinstance(overrides, dict):
            raise ConfigError("'rules.severity_overrides' must be a mapping of rule id to severity")
        self.severity_overrides = {str(k): v for k, v in overrides.items()}


@dataclass
class OutputConfig:
    """Configuration for output formatting."""
    format: str = "text"  # text, markdown, json, sarif
    output_file: Optional[str] = None
    severity: str = "low"
    show_passed: bool = False
    show_skipped: bool = False
    color: bool = True


@dataclass
class CheckConfig:
    """
    Main configuration for the rule checker.

    Example YAML config:

    ```yaml
    rules:
      directory: ./rules        # default: the bundled corpus
      disabled:
        - observability-logger
      severity_overrides:
        security-env-gitignored: high

    scan:
      exclude:
        - "node_modules/"
        - "examples/"
      extensions: [".ts", ".js", ".json"]
      max_file_size: 1048576

    output:
      format: text
      severity: low
      show_passed: false
      show_skipped: false
      color: true

    fail_on: high
    ```
    """
    rules: RuleSetConfig = field(default_factory=RuleSetConfig)
    exclude_patterns: Optional[List[str]] = None
    extensions: Optional[List[str]] = None
    max_file_size: int = 1024 * 1024
    output: OutputConfig = field(default_factory=OutputConfig)
    fail_on: str = "high"

    def __post_init__(self):
        for name, value in (("fail_on", self.fail_on), ("output.severity", self.output.severity)):
            _check_severity(name, value)
        for rule_id, value in self.rules.severity_overrides.items():
            _check_severity(f"rules.severity_overrides.{rule_id}", value)
        if self.output.format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"Unknown output format {self.output.format!r} (expected one of {', '.join(OUTPUT_FORMATS)})"
            )

    @property
    def fail_on_severity(self) -> Severity:
        return Severity(self.fail_on.lower())

    @property
    def report_severity(self) -> Severity:
        return Severity(self.output.severity.lower())

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    def to_engine_config(self) -> Dict[str, Any]:
        """Convert to engine configuration format."""
        scan: Dict[str, Any] = {"max_file_size": self.max_file_size}
        if self.exclude_patterns is not None:
            scan["ignore_patterns"] = self.exclude_patterns
        if self.extensions is not None:
            scan["extensions"] = self.extensions
        return {
            "rules_dir": self.rules.directory,
            "scan": scan,
            "rules": {
                "disabled": self.rules.disabled,
                "severity_overrides": self.rules.severity_overrides,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckConfig":
        """Create config from a dictionary."""
        data = dict(data)

        # Handle nested 'scan' section
        scan_data = data.pop("scan", None)
        if isinstance(scan_data, dict):
            data.update(scan_data)
        elif scan_data is not None:
            raise ConfigError("'scan' must be a mapping")

        for section in ("rules", "output"):
            if section in data and data[section] is None:
                del data[section]

        if "rules" in data:
            if not isinstance(data["rules"], dict):
                raise ConfigError("'rules' must be a mapping")
            data["rules"] = RuleSetConfig(**_known(RuleSetConfig, data["rules"]))
        if "output" in data:
            if not isinstance(data["output"], dict):
                raise ConfigError("'output' must be a mapping")
            data["output"] = OutputConfig(**_known(OutputConfig, data["output"]))

        # Map some common alternative names
        if "exclude" in data:
            data["exclude_patterns"] = data.pop("exclude")

        return cls(**_known(cls, data))


def _known(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Filter to only known fields."""
    known_fields = set(cls.__dataclass_fields__)
    return {k: v for k, v in data.items() if k in known_fields}


def _check_severity(name: str, value: Any):
    try:
        Severity(str(value).lower())
    except ValueError:
        allowed = ", ".join(s.value for s in Severity)
        raise ConfigError(f"Invalid severity for {name}: {value!r} (expected one of {allowed})")


def load_config(path: str) -> Dict[str, Any]:
    """
    Load configuration from a file.

    Supports YAML and JSON formats.
    """
    path = Path(path)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    content = path.read_text(encoding="utf-8")

    try:
        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a mapping")
    return data


def find_config(start_path: str = ".") -> Optional[str]:
    """
    Find a configuration file by searching up the directory tree.

    Returns the path to the first config file found, or None.
    """
    current = Path(start_path).resolve()
    if current.is_file():
        current = current.parent

    while True:
        for name in CONFIG_FILE_NAMES:
            config_path = current / name
            if config_path.is_file():
                return str(config_path)
        if current == current.parent:
            return None
        current = current.parent


def load_check_config(path: Optional[str] = None, start_dir: str = ".") -> CheckConfig:
    """
    Load a CheckConfig from a file or create a default one.

    If path is None, searches for a config file starting from start_dir.
    Relative rule directories are resolved against the config file.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return CheckConfig()

    config = CheckConfig.from_dict(load_config(path))

    directory = config.rules.directory
    if directory and not Path(directory).is_absolute():
        config.rules.directory = str(Path(path).resolve().parent / directory)

    return config


def create_default_config() -> str:
    """
    Create a default configuration file content.
    """
    config = {
        "rules": {
            "directory": None,
            "disabled": [],
            "severity_overrides": {},
        },
        "scan": {
            "exclude": list(DEFAULT_IGNORE_PATTERNS),
            "max_file_size": 1048576,
        },
        "output": {
            "format": "text",
            "severity": "low",
            "show_passed": False,
            "show_skipped": False,
            "color": True,
        },
        "fail_on": "high",
    }

    return yaml.dump(config, default_flow_style=False, sort_keys=False)
