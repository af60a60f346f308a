"""Tests for the tenant-partitioned cache."""

import pytest

from iotpilot.core.cache import SUPERADMIN_PARTITION, TenantScopedCache
from iotpilot.domain.context import TenantContext, TenantContextProvider
from iotpilot.domain.exceptions import ValidationError


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def tenant(customer_id):
    return TenantContext(customer_id=customer_id, user_id=1, role="USER")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TenantScopedCache(clock=clock)


def test_keys_do_not_collide_across_tenants(cache):
    cache.set("settings", {"max_devices": 5}, tenant(1))
    cache.set("settings", {"max_devices": 9}, tenant(2))

    assert cache.get("settings", tenant(1)) == {"max_devices": 5}
    assert cache.get("settings", tenant(2)) == {"max_devices": 9}


def test_entries_expire(cache, clock):
    cache.set("token", "abc", tenant(1), ttl=30)
    clock.now += 29
    assert cache.has("token", tenant(1))
    clock.now += 1
    assert cache.get("token", tenant(1)) is None
    assert not cache.has("token", tenant(1))


def test_entries_without_ttl_persist(cache, clock):
    cache.set("token", "abc", tenant(1))
    clock.now += 10**6
    assert cache.get("token", tenant(1)) == "abc"


def test_get_or_set_skips_none(cache):
    calls = []

    def factory():
        calls.append(1)
        return None

    assert cache.get_or_set("missing", factory, tenant(1)) is None
    assert cache.get_or_set("missing", factory, tenant(1)) is None
    assert len(calls) == 2


def test_get_or_set_caches_falsy_values(cache):
    calls = []

    def factory():
        calls.append(1)
        return 0

    assert cache.get_or_set("count", factory, tenant(1)) == 0
    assert cache.get_or_set("count", factory, tenant(1)) == 0
    assert len(calls) == 1


def test_superadmin_partition(cache):
    context = TenantContextProvider.create_superadmin_context()
    cache.set("overview", "all", context)
    assert cache._tenant_key(context) == SUPERADMIN_PARTITION
    assert cache.get("overview", tenant(1)) is None


def test_missing_customer_rejected(cache):
    context = TenantContext(customer_id=None, user_id=1, role="USER")
    with pytest.raises(ValidationError):
        cache.set("key", "value", context)


def test_clear_tenant_only_touches_one_partition(cache):
    cache.set("a", 1, tenant(1))
    cache.set("a", 2, tenant(2))
    cache.clear_tenant(1)

    assert cache.get("a", tenant(1)) is None
    assert cache.get("a", tenant(2)) == 2
    assert cache.delete("a", tenant(2)) is True
    assert cache.delete("a", tenant(2)) is False
