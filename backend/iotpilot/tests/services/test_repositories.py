"""Tests for tenant-scoped repository reads and writes."""

import pytest

from iotpilot.db.models import Device
from iotpilot.domain.context import TenantContext, TenantContextProvider
from iotpilot.domain.exceptions import CrossTenantAccess
from iotpilot.repositories import DeviceRepository


def member(customer):
    return TenantContext(customer_id=customer.id, user_id=1, role="USER")


def new_device(customer_id=None, device_id="pi-new"):
    return Device(
        customer_id=customer_id,
        device_id=device_id,
        hostname="pi-new",
        status="ONLINE",
        device_type="PI_4",
    )


class TestTenantScopedCreate:
    def test_fills_caller_tenant(self, db_session, test_customer):
        repo = DeviceRepository(db_session)
        device = repo.create(new_device(), member(test_customer))
        repo.commit()
        assert device.customer_id == test_customer.id

    def test_other_tenant_refused(self, db_session, test_customer, second_customer):
        repo = DeviceRepository(db_session)
        with pytest.raises(CrossTenantAccess) as exc_info:
            repo.create(new_device(second_customer.id), member(test_customer))
        assert exc_info.value.source_customer_id == test_customer.id
        assert exc_info.value.target_customer_id == second_customer.id
        assert db_session.query(Device).count() == 0

    def test_superadmin_may_target_any_tenant(self, db_session, second_customer):
        repo = DeviceRepository(db_session)
        context = TenantContextProvider.create_superadmin_context()
        device = repo.create(new_device(second_customer.id), context)
        repo.commit()
        assert device.customer_id == second_customer.id


class TestTenantScopedGet:
    def test_other_tenant_row_is_invisible(self, db_session, test_customer, other_device):
        repo = DeviceRepository(db_session)
        assert repo.get(other_device.id, member(test_customer)) is None
        superadmin = TenantContextProvider.create_superadmin_context()
        assert repo.get(other_device.id, superadmin) is other_device
