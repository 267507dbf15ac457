"""Tests for configuration module."""

import os
import pytest
from pydantic import ValidationError


def test_settings_defaults():
    """Settings have sensible defaults."""
    from interviewer.core.config import Settings

    s = Settings()

    assert str(s.protocols_dir).endswith("protocols")
    assert s.log_sessions_to_keep == 5
    assert s.port == 8000
    assert "config_dir" not in Settings.model_fields
    assert "data_dir" not in Settings.model_fields


def test_settings_from_env():
    """Settings can be overridden via environment variables."""
    os.environ["PROTOCOLS_DIR"] = "/tmp/protocols"
    os.environ["PORT"] = "9000"

    try:
        from interviewer.core.config import Settings

        s = Settings()

        assert str(s.protocols_dir) == "/tmp/protocols"
        assert s.port == 9000
    finally:
        del os.environ["PROTOCOLS_DIR"]
        del os.environ["PORT"]


def test_settings_validation():
    """Settings validate constraints."""
    from interviewer.core.config import Settings

    with pytest.raises(ValidationError):
        Settings(port=0)

    with pytest.raises(ValidationError):
        Settings(log_sessions_to_keep=0)


class TestStoreConfig:
    def test_shipped_config_loads(self):
        from interviewer.core.config import load_store_config

        config = load_store_config()

        assert config.session.id_head_length == 8
        assert config.session.id_tail_length == 12
        assert "{session_id}" in config.session.path_template
        assert config.export.include_ego is True

    def test_missing_file_gives_defaults(self, tmp_path):
        from interviewer.core.config import StoreConfig, load_store_config

        assert load_store_config(tmp_path / "absent.yaml") == StoreConfig()

    def test_partial_file_fills_defaults(self, tmp_path):
        from interviewer.core.config import load_store_config

        path = tmp_path / "store_config.yaml"
        path.write_text("export:\n  prettyprint: false\n")

        config = load_store_config(path)

        assert config.export.prettyprint is False
        assert config.export.include_ego is True
        assert config.session.id_head_length == 8

    def test_path_template_requires_session_id(self):
        """A template without {session_id} would give every session the same path."""
        from interviewer.core.config import SessionDefaults

        with pytest.raises(ValidationError):
            SessionDefaults(path_template="/session/current")

    def test_invalid_values_raise_configuration_error(self, tmp_path):
        from interviewer.core.config import load_store_config
        from interviewer.core.exceptions import ConfigurationError

        path = tmp_path / "store_config.yaml"
        path.write_text("session:\n  path_template: /session/current\n")

        with pytest.raises(ConfigurationError, match="path_template"):
            load_store_config(path)

    def test_unparseable_file_raises_configuration_error(self, tmp_path):
        from interviewer.core.config import load_store_config
        from interviewer.core.exceptions import ConfigurationError

        path = tmp_path / "store_config.yaml"
        path.write_text("session: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_store_config(path)
