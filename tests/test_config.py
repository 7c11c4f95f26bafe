"""Tests for configuration loading and validation."""

import json
import tempfile
from pathlib import Path

import pytest

from diagnostics.config import (
    DiagnosticConfig,
    ScanOptions,
    config_for_environment,
    config_to_dict,
    load_config_file,
    merge_config,
)
from diagnostics.errors import ConfigurationError
from diagnostics.models import IssueType, Severity


class TestValidation:
    """Tests for construction-time validation."""

    def test_defaults(self):
        """Test the documented defaults."""
        options = ScanOptions()
        config = DiagnosticConfig()

        assert options.max_depth == 10
        assert options.concurrency == 4
        assert not options.include_tests
        assert config.enable_cache
        assert config.cache_expiry == 300.0
        assert config.severity_threshold is Severity.INFO

    def test_invalid_depth_and_concurrency(self):
        """Test that negative depth and zero concurrency are rejected."""
        with pytest.raises(ConfigurationError):
            ScanOptions(max_depth=-1)
        with pytest.raises(ConfigurationError):
            ScanOptions(concurrency=0)

    def test_invalid_patterns(self):
        """Test that empty and unbalanced patterns are rejected."""
        with pytest.raises(ConfigurationError):
            ScanOptions(include_patterns=("",))
        with pytest.raises(ConfigurationError):
            ScanOptions(ignore_patterns=("**/*.{ts,js",))

    def test_single_pattern_string(self):
        """Test that a bare string becomes a one-pattern tuple."""
        assert ScanOptions(include_patterns="src/**").include_patterns == ("src/**",)

    def test_invalid_timeout(self):
        """Test that a non-positive timeout is rejected and None disables it."""
        with pytest.raises(ConfigurationError):
            DiagnosticConfig(timeout=0)
        assert DiagnosticConfig(timeout=None).timeout is None

    def test_severity_from_string(self):
        """Test that the threshold may be given as a string."""
        assert DiagnosticConfig(severity_threshold="Warning").severity_threshold is Severity.WARNING
        with pytest.raises(ConfigurationError):
            DiagnosticConfig(severity_threshold="loud")

    def test_custom_rules(self):
        """Test custom rule validation and lookup."""
        config = DiagnosticConfig(custom_rules={"unused_export": "off", "missing_export": "warning"})

        assert config.severity_override(IssueType.UNUSED_EXPORT) == "off"
        assert config.severity_override(IssueType.CIRCULAR_DEPENDENCY) is None
        with pytest.raises(ConfigurationError):
            DiagnosticConfig(custom_rules={"not_a_type": "error"})
        with pytest.raises(ConfigurationError):
            DiagnosticConfig(custom_rules={"unused_export": "loud"})


class TestMergeConfig:
    """Tests for merging overrides."""

    def test_mapping_override(self):
        """Test that given fields replace and others keep the base value."""
        base = DiagnosticConfig(timeout=10)
        merged = merge_config(base, {"enable_cache": False})

        assert not merged.enable_cache
        assert merged.timeout == 10
        assert base.enable_cache

    def test_none_override(self):
        """Test that None leaves the base untouched."""
        base = ScanOptions()
        assert merge_config(base, None) is base

    def test_unknown_key(self):
        """Test that unknown fields are rejected."""
        with pytest.raises(ConfigurationError):
            merge_config(ScanOptions(), {"max_dept": 3})

    def test_merged_values_validated(self):
        """Test that invalid merged values are rejected."""
        with pytest.raises(ConfigurationError):
            merge_config(ScanOptions(), {"concurrency": 0})

    def test_type_mismatch(self):
        """Test that merging a different config type is rejected."""
        with pytest.raises(ConfigurationError):
            merge_config(ScanOptions(), DiagnosticConfig())

    def test_to_dict(self):
        """Test the plain-data echo used in reports."""
        data = config_to_dict(DiagnosticConfig(severity_threshold=Severity.ERROR))

        assert data["severity_threshold"] == "error"
        json.dumps(data)


class TestConfigFiles:
    """Tests for loading configuration files."""

    def test_load_yaml(self):
        """Test loading both sections from YAML."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "diagnostics.yaml"
            path.write_text(
                "scan:\n"
                "  root_dir: src\n"
                "  max_depth: 3\n"
                "diagnostics:\n"
                "  severity_threshold: warning\n"
                "  custom_rules:\n"
                "    unused_export: \"off\"\n"
            )

            options, config = load_config_file(path)

            assert options.root_dir == "src"
            assert options.max_depth == 3
            assert options.concurrency == 4
            assert config.severity_threshold is Severity.WARNING
            assert config.custom_rules == {"unused_export": "off"}

    def test_load_json(self):
        """Test loading a JSON file with only one section."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "diagnostics.json"
            path.write_text(json.dumps({"diagnostics": {"timeout": 5}}))

            options, config = load_config_file(path)

            assert options == ScanOptions()
            assert config.timeout == 5

    def test_load_toml(self):
        """Test loading a TOML file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "diagnostics.toml"
            path.write_text("[scan]\nconcurrency = 8\n")

            options, _ = load_config_file(path)

            assert options.concurrency == 8

    def test_empty_file(self):
        """Test that an empty YAML file gives the defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "empty.yml"
            path.write_text("")

            options, config = load_config_file(path)

            assert options == ScanOptions()
            assert config == DiagnosticConfig()

    def test_malformed_and_unsupported(self):
        """Test that broken or unknown files raise ConfigurationError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            broken = Path(tmpdir) / "broken.json"
            broken.write_text("{not json")
            other = Path(tmpdir) / "config.ini"
            other.write_text("[scan]\n")

            with pytest.raises(ConfigurationError):
                load_config_file(broken)
            with pytest.raises(ConfigurationError):
                load_config_file(other)
            with pytest.raises(ConfigurationError):
                load_config_file(Path(tmpdir) / "missing.yaml")

    def test_unknown_section(self):
        """Test that unexpected top-level sections are rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "diagnostics.yaml"
            path.write_text("reports:\n  format: html\n")

            with pytest.raises(ConfigurationError):
                load_config_file(path)


class TestEnvironments:
    """Tests for environment presets."""

    def test_presets(self):
        """Test that the presets differ where expected."""
        assert not config_for_environment("development").enable_cache
        assert config_for_environment("production").cache_expiry == 1800.0
        assert config_for_environment("test").timeout is None

    def test_unknown_environment(self):
        """Test that an unknown preset name is rejected."""
        with pytest.raises(ConfigurationError):
            config_for_environment("staging")
