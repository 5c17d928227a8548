"""Tests for MockSnmpEngine and the deterministic mock device profiles."""
from __future__ import annotations

import pytest

from netdiscovery.snmp.engine import SnmpConnectError, SnmpTarget, SnmpTimeoutError, SnmpTransportError
from netdiscovery.snmp.mac_discovery import MacAddressDiscoveryEngine
from netdiscovery.snmp.mock_data import (
    MockDevice,
    build_mock_device,
    fdb_rows,
    mac_to_oid_suffix,
)
from netdiscovery.snmp.mock_engine import MockSnmpEngine
from netdiscovery.snmp.oid_maps import DOT1D_TP_FDB_PORT, SYS_NAME
from netdiscovery.snmp.vlan_discovery import VlanDiscoveryEngine


class TestMockDevice:
    def test_vlan_for_community(self):
        device = MockDevice(vlan_tables={10: []})
        assert device.vlan_for_community("public") == 1
        assert device.vlan_for_community("public@10") == 10
        assert device.vlan_for_community("public@11") is None
        assert device.vlan_for_community("private") is None
        assert device.vlan_for_community("public@x") is None

    def test_mac_to_oid_suffix(self):
        assert mac_to_oid_suffix("0A:0B:0C:0D:0E:0F") == "10.11.12.13.14.15"

    def test_profile_is_deterministic(self):
        assert build_mock_device("10.1.1.1") == build_mock_device("10.1.1.1")

    def test_profile_has_per_vlan_tables(self):
        device = build_mock_device("10.1.1.1")
        assert {1, 10, 20, 30, 100} <= set(device.vlan_tables)
        assert all(device.vlan_tables[v] for v in device.vlan_tables)


class TestMockEngine:
    @pytest.mark.asyncio
    async def test_get_and_missing_object(self):
        engine = MockSnmpEngine()
        async with engine.session(SnmpTarget(ip="10.1.1.7")) as transport:
            name, missing = await transport.get(SYS_NAME, "1.3.6.1.2.1.1.99.0")

        assert name.value == "mock-sw-7"
        assert missing.error == "noSuchObject"

    @pytest.mark.asyncio
    async def test_walk_in_batches(self):
        rows = fdb_rows([f"00:00:00:00:00:{i:02X}" for i in range(25)])
        engine = MockSnmpEngine(devices={"10.0.0.1": MockDevice(vlan_tables={1: rows}, batch_size=10)})

        async with engine.session(SnmpTarget(ip="10.0.0.1")) as transport:
            sizes = [len(b) async for b in transport.walk(DOT1D_TP_FDB_PORT)]

        assert sizes == [10, 10, 5]

    @pytest.mark.asyncio
    async def test_unknown_host(self):
        engine = MockSnmpEngine(devices={})
        with pytest.raises(SnmpConnectError):
            await engine.open(SnmpTarget(ip="10.0.0.1"))

    @pytest.mark.asyncio
    async def test_closed_session(self):
        engine = MockSnmpEngine()
        transport = await engine.open(SnmpTarget(ip="10.0.0.1"))
        await transport.close()

        with pytest.raises(SnmpTransportError):
            await transport.get(SYS_NAME)
        assert engine.open_count == 0

    @pytest.mark.asyncio
    async def test_wrong_community_times_out(self):
        engine = MockSnmpEngine(devices={"10.0.0.1": MockDevice(community="secret")})
        async with engine.session(SnmpTarget(ip="10.0.0.1", community="public")) as transport:
            with pytest.raises(SnmpTimeoutError):
                await transport.get(SYS_NAME)

    @pytest.mark.asyncio
    async def test_profile_follows_caller_community(self):
        engine = MockSnmpEngine()
        async with engine.session(SnmpTarget(ip="10.0.0.1", community="lab@10")) as transport:
            batches = [b async for b in transport.walk(DOT1D_TP_FDB_PORT)]
        assert batches

    @pytest.mark.asyncio
    async def test_profile_names_forwarding_ports(self):
        engine = MockSnmpEngine()
        mac_engine = MacAddressDiscoveryEngine(engine, VlanDiscoveryEngine(engine))

        items = [item async for item in mac_engine.discover(ip="10.1.1.1", vlan_id=10)]

        records = items[0].records
        assert records
        assert all(r.port.startswith("Gi1/0/") for r in records)
