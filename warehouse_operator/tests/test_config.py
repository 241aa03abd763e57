"""
Tests for settings and the wizard rules loader.
"""

import pytest

import warehouse_operator.core.models.domain as dm
from warehouse_operator.config.settings import Settings, reload_settings
from warehouse_operator.config.wizard_config_loader import load_wizard_config, parse_config


class TestWizardConfigLoader:

    def test_packaged_default(self):
        config = load_wizard_config()
        assert config.scan.debounce_seconds == 1.0
        assert config.quantity.allow_fractional is True
        assert '%d.%m.%Y' in config.expiration.date_formats
        assert config.submission.endpoint is None

    def test_explicit_file(self, tmp_path):
        path = tmp_path / 'rules.yaml'
        path.write_text(
            "wizard:\n"
            "  scan:\n"
            "    debounce_seconds: 0.25\n"
            "  quantity:\n"
            "    allow_fractional: false\n"
            "submission:\n"
            "  endpoint: /facts\n"
        )
        config = load_wizard_config(str(path))

        assert config.scan.debounce_seconds == 0.25
        assert config.quantity.allow_fractional is False
        assert config.expiration.default_offset_days == 30
        assert config.submission.endpoint == '/facts'

    def test_buffer_section(self):
        config = parse_config({'wizard': {'buffer': {'enabled': False, 'object_kinds': ['location']}}})
        assert config.buffer.enabled is False
        assert config.buffer.object_kinds == [dm.ObjectKind.LOCATION]

    def test_default_buffer_kinds(self):
        assert dm.ObjectKind.STORAGE_CONTAINER in load_wizard_config().buffer.object_kinds
        assert dm.ObjectKind.CONTAINER_CREATION not in load_wizard_config().buffer.object_kinds

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_wizard_config(str(tmp_path / 'nope.yaml'))

    def test_empty_document(self):
        config = parse_config({})
        assert config.scan.debounce_seconds == 1.0


class TestSettings:

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv('WMS_DEFAULT_ENDPOINT', '/api/facts')
        monkeypatch.setenv('WMS_LOG_LEVEL', 'debug')
        settings = reload_settings()

        assert settings.default_endpoint == '/api/facts'
        assert settings.log_level == 'DEBUG'

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            Settings(log_level='LOUD')
