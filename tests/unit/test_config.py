"""
Unit tests for ScanConfig.

Run with: pytest tests/unit/test_config.py -v
"""

import pytest
from pydantic import ValidationError

from scorpio.core.config import DEFAULT_MODULES, ConfigError, ScanConfig


class TestScanConfig:
    """Test suite for ScanConfig"""

    def test_defaults(self):
        """Test default configuration values"""
        config = ScanConfig()

        assert config.headless is True
        assert config.wait_until == "networkidle"
        assert config.settle_interval_ms == 1000
        assert config.response_timeout_ms == 5000
        assert config.test_hidden_inputs is False
        assert config.modules == DEFAULT_MODULES

    def test_default_modules_not_shared(self):
        """Test each config gets its own module list"""
        first = ScanConfig()
        first.modules.append("xss")

        assert ScanConfig().modules == DEFAULT_MODULES

    def test_unknown_module_rejected(self):
        """Test module names are checked against the registry"""
        with pytest.raises(ValidationError):
            ScanConfig(modules=["xss", "csrf"])

    def test_invalid_wait_state_rejected(self):
        """Test wait_until accepts Playwright load states only"""
        with pytest.raises(ValidationError):
            ScanConfig(wait_until="idle")

    def test_non_positive_timeout_rejected(self):
        """Test timeouts must be positive"""
        with pytest.raises(ValidationError):
            ScanConfig(response_timeout_ms=0)

    def test_from_yaml(self, tmp_path):
        """Test loading a YAML file"""
        path = tmp_path / "scorpio.yaml"
        path.write_text(
            "headless: false\n"
            "settle_interval_ms: 500\n"
            "modules:\n"
            "  - sqli\n"
            "  - tls\n"
        )

        config = ScanConfig.from_yaml(path)

        assert config.headless is False
        assert config.settle_interval_ms == 500
        assert config.modules == ["sqli", "tls"]

    def test_from_empty_yaml(self, tmp_path):
        """Test an empty file yields defaults"""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert ScanConfig.from_yaml(path) == ScanConfig()

    def test_from_yaml_missing_file(self, tmp_path):
        """Test a missing file raises ConfigError"""
        with pytest.raises(ConfigError):
            ScanConfig.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_malformed(self, tmp_path):
        """Test malformed YAML raises ConfigError"""
        path = tmp_path / "bad.yaml"
        path.write_text("modules: [xss\n")

        with pytest.raises(ConfigError):
            ScanConfig.from_yaml(path)

    def test_from_yaml_not_a_mapping(self, tmp_path):
        """Test a YAML list raises ConfigError"""
        path = tmp_path / "list.yaml"
        path.write_text("- xss\n- sqli\n")

        with pytest.raises(ConfigError):
            ScanConfig.from_yaml(path)

    def test_from_yaml_invalid_values(self, tmp_path):
        """Test invalid values raise ConfigError"""
        path = tmp_path / "invalid.yaml"
        path.write_text("modules: [nosuchmodule]\n")

        with pytest.raises(ConfigError):
            ScanConfig.from_yaml(path)

    def test_merged_ignores_none(self):
        """Test overrides only apply when given"""
        config = ScanConfig(settle_interval_ms=200)

        merged = config.merged(settle_interval_ms=None, headless=False)

        assert merged.settle_interval_ms == 200
        assert merged.headless is False
        assert config.headless is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
