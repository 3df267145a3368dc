from __future__ import annotations

import pytest
from pydantic import ValidationError

from supplier_scraper.config.settings import Settings


def test_settings_derives_urls_and_credentials(settings):
    assert settings.search_url == "https://new.www.vaxvacationaccess.com/Search/Default.aspx"
    assert settings.login_url == "https://login.www.vaxvacationaccess.com/default.aspx"
    assert settings.session_ttl_seconds == 2 * 3600

    credentials = settings.credentials()
    assert credentials.identity == "12345678_agent007"
    assert "hunter2" not in repr(credentials)


def test_settings_strips_trailing_slash():
    settings = Settings(_env_file=None, app_base_url="https://app.example.test/")
    assert settings.search_url == "https://app.example.test/Search/Default.aspx"


def test_settings_requires_complete_credentials():
    settings = Settings(_env_file=None, tenant_id="1", username="someone")
    with pytest.raises(RuntimeError):
        settings.credentials()


@pytest.mark.parametrize("hours", [0.25, 25])
def test_settings_rejects_session_ttl_out_of_range(hours):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, session_ttl_hours=hours)


def test_settings_rejects_non_positive_search_timeout():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, search_timeout_s=0)


def test_ensure_directories_creates_runtime_paths(settings, tmp_path):
    settings.response_dump_dir = tmp_path / "dumps"
    settings.ensure_directories()
    assert settings.session_dir.exists()
    assert settings.cache_path.parent.exists()
    assert settings.vendor_catalog_path.parent.exists()
    assert (tmp_path / "dumps").exists()
