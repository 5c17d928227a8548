"""Tests for the NDJSON / buffered consumers of the MAC stream."""
from __future__ import annotations

import json

import pytest

from netdiscovery.core.enums import DiscoveryStatus, MacDeviceType
from netdiscovery.schemas.discovery import (
    MacAddressRecord,
    MacDiscoveryChunk,
    MacDiscoverySummary,
)
from netdiscovery.snmp.streaming import StreamProtocolError, collect, to_ndjson


def _record(mac: str, vlan_id: int) -> MacAddressRecord:
    return MacAddressRecord(mac_address=mac, vlan_id=vlan_id, device_type=MacDeviceType.IOT)


async def _stream(*items):
    for item in items:
        yield item


CHUNK_1 = MacDiscoveryChunk(vlan_id=1, records=[_record("00:00:00:00:00:01", 1)])
CHUNK_10 = MacDiscoveryChunk(
    vlan_id=10,
    records=[_record("00:00:00:00:00:0A", 10), _record("00:00:00:00:00:0B", 10)],
    timed_out=True,
)
SUMMARY = MacDiscoverySummary(
    vlan_ids=[1, 10],
    status=DiscoveryStatus.PARTIAL,
    total_records=3,
    timed_out_vlans=[10],
)


class TestToNdjson:
    @pytest.mark.asyncio
    async def test_one_line_per_item(self):
        lines = [line async for line in to_ndjson(_stream(CHUNK_1, CHUNK_10, SUMMARY))]

        assert all(line.endswith("\n") for line in lines)
        payloads = [json.loads(line) for line in lines]
        assert [p["type"] for p in payloads] == ["vlan", "vlan", "summary"]
        assert payloads[0]["vlan_id"] == 1
        assert payloads[0]["records"][0] == {
            "mac_address": "00:00:00:00:00:01",
            "vlan_id": 1,
            "device_type": "IoT",
            "port": None,
        }
        assert payloads[1]["timed_out"] is True
        assert payloads[2]["status"] == "partial"
        assert payloads[2]["vlan_ids"] == [1, 10]


class TestCollect:
    @pytest.mark.asyncio
    async def test_buffers_in_vlan_order(self):
        result = await collect(_stream(CHUNK_1, CHUNK_10, SUMMARY))

        assert [r.mac_address for r in result.mac_addresses] == [
            "00:00:00:00:00:01",
            "00:00:00:00:00:0A",
            "00:00:00:00:00:0B",
        ]
        assert result.vlan_ids == [1, 10]
        assert result.status is DiscoveryStatus.PARTIAL
        assert result.timed_out_vlans == [10]

    @pytest.mark.asyncio
    async def test_missing_summary(self):
        with pytest.raises(StreamProtocolError):
            await collect(_stream(CHUNK_1))

    @pytest.mark.asyncio
    async def test_item_after_summary(self):
        with pytest.raises(StreamProtocolError):
            await collect(_stream(SUMMARY, CHUNK_1))
