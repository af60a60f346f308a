"""Tests for customer value objects."""

import pytest

from iotpilot.domain.customers import CustomerName, OrganizationSettings
from iotpilot.domain.exceptions import ValidationError


class TestOrganizationSettings:
    def test_default_features(self):
        settings = OrganizationSettings()
        assert settings.has_feature("basic")
        assert not settings.has_feature("ssh")

    def test_has_feature_after_merge(self):
        settings = OrganizationSettings().merge({"allowed_features": ["basic", "ssh"]})
        assert settings.allowed_features == ("basic", "ssh")
        assert settings.has_feature("ssh")
        assert not settings.has_feature("SSH")
        assert settings.to_dict()["allowed_features"] == ["basic", "ssh"]

    def test_from_dict_ignores_unknown_keys(self):
        settings = OrganizationSettings.from_dict({"max_devices": 5, "legacy_flag": True})
        assert settings.max_devices == 5
        assert OrganizationSettings.from_dict(None) == OrganizationSettings()

    def test_merge_rejects_unknown_keys(self):
        with pytest.raises(ValidationError, match="legacy_flag"):
            OrganizationSettings().merge({"legacy_flag": True})

    @pytest.mark.parametrize(
        "changes",
        [
            {"max_users": 0},
            {"max_devices": "5"},
            {"data_retention_days": True},
            {"allowed_features": "ssh"},
            {"custom_domain": "not a domain"},
        ],
    )
    def test_invalid_values(self, changes):
        with pytest.raises(ValidationError):
            OrganizationSettings().merge(changes)


def test_customer_name_is_trimmed():
    assert CustomerName("  Acme Farms ").value == "Acme Farms"
    with pytest.raises(ValidationError):
        CustomerName(" ")
