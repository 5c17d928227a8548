"""Root conftest — shared fixtures for all tests."""
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import pytest

# Never let a developer's .env switch tests onto real devices
os.environ.setdefault("SNMP__MOCK", "true")

from netdiscovery.snmp.mock_data import (  # noqa: E402
    MockDevice,
    fdb_rows,
    system_scalars,
    vtp_rows,
)
from netdiscovery.snmp.mock_engine import MockSnmpEngine  # noqa: E402

DEVICE_IP = "10.0.0.1"


class FakeClock:
    """Manually advanced clock for registry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cisco_device() -> MockDevice:
    """Catalyst 3750E with VLANs 1/10 active, 20 suspended."""
    tables = vtp_rows({1: 1, 10: 1, 20: 2}, {1: "default", 10: "USERS", 20: "VOICE"})
    return MockDevice(
        scalars=system_scalars(
            sys_descr="Cisco IOS Software, C3750E Software (C3750E-UNIVERSALK9-M)",
            sys_object_id="1.3.6.1.4.1.9.1.516",
            sys_name="core-sw-01",
            sys_location="Rack A1",
        ),
        tables=tables,
        vlan_tables={
            1: fdb_rows(["00:11:22:33:44:01", "00:11:22:33:44:02"]),
            10: fdb_rows(["00:11:22:33:44:10"]),
        },
    )


@pytest.fixture
def engine(cisco_device: MockDevice) -> MockSnmpEngine:
    return MockSnmpEngine(devices={DEVICE_IP: cisco_device})
