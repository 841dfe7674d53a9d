"""
Tests for flowcanvas.config.
"""

import pytest
from pydantic import ValidationError

from flowcanvas.config import Settings, get_settings


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.database_url == "sqlite:///./flows.db"
        assert settings.collection_key == "leadsbox_flows"
        assert settings.draft_key == "automation_draft"
        assert settings.autosave_delay == 1.5
        assert settings.history_limit is None
        assert (settings.min_scale, settings.max_scale, settings.zoom_step) == (0.5, 1.6, 0.1)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FLOWCANVAS_AUTOSAVE_DELAY", "3")
        monkeypatch.setenv("FLOWCANVAS_HISTORY_LIMIT", "50")
        monkeypatch.setenv("FLOWCANVAS_LOG_JSON", "true")

        settings = Settings(_env_file=None)

        assert settings.autosave_delay == 3
        assert settings.history_limit == 50
        assert settings.log_json is True

    @pytest.mark.parametrize("field, value", [
        ("autosave_delay", 0),
        ("history_limit", 0),
        ("min_scale", -1),
    ])
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
