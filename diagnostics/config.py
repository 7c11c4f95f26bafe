"""Typed configuration for scans and diagnostic runs."""

import json
import tomllib
from dataclasses import asdict, dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, TypeVar, Union

import yaml

from .errors import ConfigurationError
from .models import IssueType, Severity


DEFAULT_INCLUDE_PATTERNS: Tuple[str, ...] = ("**/*.{ts,tsx,js,jsx,mjs,cjs}",)
DEFAULT_IGNORE_PATTERNS: Tuple[str, ...] = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/coverage/**",
    "**/*.d.ts",
    "**/.next/**",
    "**/.nuxt/**",
    "**/.cache/**",
)

# Value for a custom rule that disables an issue type entirely
RULE_OFF = "off"

T = TypeVar("T")


@dataclass(frozen=True)
class ScanOptions:
    """Options controlling which files a run looks at."""

    root_dir: str = "."
    include_patterns: Tuple[str, ...] = DEFAULT_INCLUDE_PATTERNS
    ignore_patterns: Tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    max_depth: Optional[int] = 10
    concurrency: int = 4
    include_hidden: bool = False
    include_node_modules: bool = False
    include_tests: bool = False

    def __post_init__(self):
        object.__setattr__(self, "include_patterns", _as_pattern_tuple("include_patterns", self.include_patterns))
        object.__setattr__(self, "ignore_patterns", _as_pattern_tuple("ignore_patterns", self.ignore_patterns))
        if not self.root_dir:
            raise ConfigurationError("root_dir must not be empty")
        if self.max_depth is not None and (not isinstance(self.max_depth, int) or self.max_depth < 0):
            raise ConfigurationError(f"max_depth must be a non-negative integer, got {self.max_depth!r}")
        if not isinstance(self.concurrency, int) or self.concurrency < 1:
            raise ConfigurationError(f"concurrency must be a positive integer, got {self.concurrency!r}")


@dataclass(frozen=True)
class DiagnosticConfig:
    """
    Settings for analysis, caching and run limits.

    ``cache_expiry`` and ``timeout`` are in seconds. ``custom_rules`` maps an
    issue type value (e.g. ``"unused_export"``) to a severity value that
    overrides the default one, or to ``"off"`` to drop that issue type.
    """

    enable_cache: bool = True
    cache_expiry: float = 300.0
    cache_max_entries: int = 1000
    cache_memory_limit: int = 50 * 1024 * 1024
    severity_threshold: Severity = Severity.INFO
    timeout: Optional[float] = 30.0
    check_type_exports: bool = True
    custom_rules: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.severity_threshold, str) and not isinstance(self.severity_threshold, Severity):
            object.__setattr__(self, "severity_threshold", _parse_severity(self.severity_threshold))
        if self.cache_expiry <= 0:
            raise ConfigurationError(f"cache_expiry must be positive, got {self.cache_expiry!r}")
        if self.cache_max_entries < 1:
            raise ConfigurationError(f"cache_max_entries must be positive, got {self.cache_max_entries!r}")
        if self.cache_memory_limit < 1:
            raise ConfigurationError(f"cache_memory_limit must be positive, got {self.cache_memory_limit!r}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive or None, got {self.timeout!r}")

        known_types = {t.value for t in IssueType}
        for issue_type, action in self.custom_rules.items():
            if issue_type not in known_types:
                raise ConfigurationError(f"Unknown issue type in custom_rules: {issue_type!r}")
            if action != RULE_OFF:
                _parse_severity(action)

    def severity_override(self, issue_type: IssueType) -> Optional[str]:
        """Return the custom rule for an issue type, if any."""
        return self.custom_rules.get(issue_type.value)


def _parse_severity(value: str) -> Severity:
    try:
        return Severity(str(value).lower())
    except ValueError:
        raise ConfigurationError(f"Unknown severity: {value!r}") from None


def _as_pattern_tuple(name: str, value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = (value,)
    try:
        patterns = tuple(value)
    except TypeError:
        raise ConfigurationError(f"{name} must be a list of glob patterns") from None
    for pattern in patterns:
        if not isinstance(pattern, str) or not pattern.strip():
            raise ConfigurationError(f"{name} contains an invalid pattern: {pattern!r}")
        if pattern.count("{") != pattern.count("}"):
            raise ConfigurationError(f"{name} contains an unbalanced brace pattern: {pattern!r}")
    return patterns


def merge_config(base: T, override: Union[T, Mapping[str, Any], None]) -> T:
    """
    Merge an override into a base configuration.

    Every field of the result is filled deterministically: fields present
    in the override replace the base value, the rest keep the base value.
    Dataclass overrides replace every field they define.

    Args:
        base: A ScanOptions or DiagnosticConfig instance.
        override: Same type as base, a mapping of field names, or None.

    Returns:
        A new, validated instance of the base type.

    Raises:
        ConfigurationError: If the override names an unknown field or the
            merged values are invalid.
    """
    if override is None:
        return base
    if is_dataclass(override) and not isinstance(override, type):
        if type(override) is not type(base):
            raise ConfigurationError(
                f"Cannot merge {type(override).__name__} into {type(base).__name__}"
            )
        return override

    known = {f.name for f in fields(base)}
    unknown = sorted(set(override) - known)
    if unknown:
        raise ConfigurationError(
            f"Unknown {type(base).__name__} field(s): {', '.join(unknown)}"
        )
    try:
        return replace(base, **dict(override))
    except TypeError as e:
        raise ConfigurationError(str(e)) from e


def config_to_dict(config: Any) -> Dict[str, Any]:
    """Plain-data echo of a config for embedding in reports."""
    data = asdict(config)
    for key, value in data.items():
        if isinstance(value, Severity):
            data[key] = value.value
        elif isinstance(value, tuple):
            data[key] = list(value)
    return data


def _read_config_data(path: Path) -> Any:
    """Parse a config file by extension (YAML, JSON or TOML)."""
    suffix = path.suffix.lower()

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

    try:
        if suffix in {".yaml", ".yml"}:
            return yaml.safe_load(content)
        elif suffix == ".json":
            return json.loads(content)
        elif suffix == ".toml":
            return tomllib.loads(content)
        else:
            raise ConfigurationError(f"Unsupported config file type: {path.name}")
    except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Malformed config file {path}: {e}") from e


def load_config_file(
    path: Path,
    scan_base: Optional[ScanOptions] = None,
    config_base: Optional[DiagnosticConfig] = None,
) -> Tuple[ScanOptions, DiagnosticConfig]:
    """
    Load scan options and diagnostic configuration from a file.

    The file may contain a ``scan`` section and a ``diagnostics`` section;
    both are optional and merged over the given bases (or the defaults).

    Args:
        path: Path to a .yaml/.yml, .json or .toml file.
        scan_base: Base scan options.
        config_base: Base diagnostic configuration.

    Returns:
        Tuple of (ScanOptions, DiagnosticConfig).
    """
    data = _read_config_data(path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level")

    unknown = sorted(set(data) - {"scan", "diagnostics"})
    if unknown:
        raise ConfigurationError(f"Unknown config section(s) in {path}: {', '.join(unknown)}")

    scan_section = data.get("scan") or {}
    diag_section = data.get("diagnostics") or {}
    if not isinstance(scan_section, dict) or not isinstance(diag_section, dict):
        raise ConfigurationError(f"Config sections in {path} must be mappings")

    scan = merge_config(scan_base or ScanOptions(), scan_section)
    config = merge_config(config_base or DiagnosticConfig(), diag_section)
    return scan, config


_ENVIRONMENT_OVERRIDES: Dict[str, Dict[str, Any]] = {
    "development": {"enable_cache": False},
    "production": {"enable_cache": True, "cache_expiry": 30 * 60.0},
    "ci": {"enable_cache": False},
    "test": {"enable_cache": False, "timeout": None},
}


def config_for_environment(environment: str = "development") -> DiagnosticConfig:
    """Return the preset configuration for a named environment."""
    try:
        overrides = _ENVIRONMENT_OVERRIDES[environment]
    except KeyError:
        raise ConfigurationError(f"Unknown environment: {environment!r}") from None
    return merge_config(DiagnosticConfig(), overrides)
