"""
Unit tests for Settings.

Tests cover:
- Derived database URL and directories under data_dir
- Replaceable global instance
"""

from lookthrough.config.settings import Settings, get_settings, reset_settings, set_settings


class TestSettingsPaths:
    """Tests for paths derived from data_dir."""

    def test_database_url_derived_from_data_dir(self, tmp_path):
        settings = Settings(data_dir=tmp_path)

        assert settings.get_database_url() == f"sqlite:///{tmp_path / 'reference_cache.db'}"

    def test_explicit_database_url_wins(self, tmp_path):
        settings = Settings(data_dir=tmp_path, database_url="sqlite:///:memory:")

        assert settings.get_database_url() == "sqlite:///:memory:"

    def test_cache_and_log_dirs_are_created(self, tmp_path):
        """
        GIVEN a fresh data directory
        WHEN I ask for the JSON cache and log directories
        THEN both exist beneath it
        """
        settings = Settings(data_dir=tmp_path / "data")

        cache_dir = settings.get_json_cache_dir()
        log_dir = settings.get_log_dir()

        assert cache_dir == tmp_path / "data" / "reference-cache"
        assert log_dir == tmp_path / "data" / "logs"
        assert cache_dir.is_dir() and log_dir.is_dir()


class TestGlobalSettings:
    def test_set_and_reset(self, tmp_path):
        custom = Settings(data_dir=tmp_path, provider_batch_size=2)

        set_settings(custom)
        try:
            assert get_settings() is custom
        finally:
            reset_settings()

        assert get_settings() is not custom
        reset_settings()
