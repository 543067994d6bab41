"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from freemium.core.config import AppSettings, QuotaSettings


def test_quota_defaults_are_valid():
    quota = QuotaSettings()

    assert quota.free_limit == 3
    assert quota.window_seconds == 86400
    assert quota.usage_retention_seconds == 172800


def test_retention_equal_to_window_is_accepted():
    quota = QuotaSettings(window_seconds=3600, usage_retention_seconds=3600)

    assert quota.usage_retention_seconds == quota.window_seconds


def test_retention_shorter_than_window_is_rejected():
    with pytest.raises(ValidationError, match="usage_retention_seconds"):
        QuotaSettings(window_seconds=86400, usage_retention_seconds=60)


def test_retention_shorter_than_window_rejected_from_env(monkeypatch):
    monkeypatch.setenv("QUOTA_USAGE_RETENTION_SECONDS", "60")

    with pytest.raises(ValidationError):
        QuotaSettings()


def test_api_key_description_covers_all_v1_routes():
    description = AppSettings.model_fields["api_key_required"].description

    assert "/v1" in description
    assert "premium grant/revoke" not in description
