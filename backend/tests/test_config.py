"""
Notebook Backend: Settings Validation Tests
============================================

What:  Startup validation of the analytics settings.
How:   Builds Settings directly with keyword overrides and no .env file.
"""

import pytest
from pydantic import ValidationError

from app.config import Settings


class TestSettings:

    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.anonymous_user_id == "anonymous"
        assert s.analytics_default_days == 30
        assert s.recent_events_limit == 10
        assert s.popular_tags_default_limit == 10
        assert str(s.reporting_zone) == "UTC"

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty")

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, analytics_timezone="Mars/Olympus_Mons")

    def test_default_days_within_max(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, analytics_default_days=400, analytics_max_days=365)

    def test_default_tag_limit_within_max(self):
        with pytest.raises(ValidationError):
            Settings(
                _env_file=None,
                popular_tags_default_limit=50,
                popular_tags_max_limit=20,
            )
