"""Tests for audit logging."""

import logging

import pytest

from conftest import API, USER_PASSWORD
from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log, mask_sensitive_data


@pytest.fixture
def audit_records(caplog):
    caplog.set_level(logging.INFO, logger="iotpilot.audit")
    return caplog


def test_mask_sensitive_data_nested():
    masked = mask_sensitive_data(
        {"hostname": "pi-01", "ssh_password": "raspberry", "nested": {"api_key": "iot_x"}}
    )
    assert masked == {
        "hostname": "pi-01",
        "ssh_password": "***MASKED***",
        "nested": {"api_key": "***MASKED***"},
    }


def test_audit_log_levels(audit_records):
    audit_log(AuditAction.DEVICE_DELETE, AuditOutcome.SUCCESS, customer_id=4, resource_id=12)
    audit_log(AuditAction.ACCESS_DENIED, AuditOutcome.DENIED)
    success, denied = audit_records.records[-2:]
    assert success.levelno == logging.INFO
    assert success.action == "device.delete"
    assert success.context["customer_id"] == 4
    assert success.resource["id"] == "12"
    assert denied.levelno == logging.WARNING


def test_failed_login_is_audited(client, regular_user, audit_records):
    response = client.post(
        f"{API}/auth/login", json={"email": regular_user.email, "password": "wrong-password1"}
    )
    assert response.status_code == 401
    failures = [
        r for r in audit_records.records if getattr(r, "action", None) == "auth.login.failure"
    ]
    assert failures
    assert failures[-1].context["email"] == regular_user.email


def test_successful_login_is_audited(client, regular_user, audit_records):
    response = client.post(
        f"{API}/auth/login", json={"email": regular_user.email, "password": USER_PASSWORD}
    )
    assert response.status_code == 200
    actions = [getattr(r, "action", None) for r in audit_records.records]
    assert "auth.login.success" in actions


def test_device_settings_update_is_audited_with_tenant(
    client, user_headers, test_device, test_customer, audit_records
):
    response = client.put(
        f"{API}/devices/{test_device.id}/settings",
        json={"cpu_threshold": 90},
        headers=user_headers,
    )
    assert response.status_code == 200
    record = next(
        r
        for r in reversed(audit_records.records)
        if getattr(r, "action", None) == "device.settings.update"
    )
    assert record.context["customer_id"] == test_customer.id
    assert record.resource["name"] == test_device.hostname
