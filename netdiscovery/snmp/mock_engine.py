"""
Mock SNMP Engine.

Drop-in replacement for AsyncSnmpEngine that serves MockDevice profiles
without sending any UDP packets. Used when SNMP__MOCK=true and by tests.

Implements the same open() / get() / walk() / close() interface so every
discovery engine works unchanged.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from netdiscovery.snmp.engine import (
    SnmpConnectError,
    SnmpEngineBase,
    SnmpTarget,
    SnmpTimeoutError,
    SnmpTransport,
    SnmpTransportError,
    Varbind,
)
from netdiscovery.snmp.mock_data import MockDevice, build_mock_device

logger = logging.getLogger(__name__)


class MockSnmpTransport(SnmpTransport):
    """Session against one MockDevice."""

    def __init__(
        self, target: SnmpTarget, device: MockDevice, latency: float,
    ) -> None:
        super().__init__(target)
        self._device = device
        self._latency = latency

    def _check(self, what: str) -> int:
        """Validate the session; returns the VLAN context of the community."""
        if self._closed:
            raise SnmpTransportError(f"Session to {self.target.ip} is closed")
        if self._device.transport_error:
            raise SnmpTransportError(f"SNMP {what} transport failure: {self.target.ip}")
        vlan_id = self._device.vlan_for_community(self.target.community)
        # Wrong community and dead device look the same to a v1/v2c manager
        if self._device.unreachable or vlan_id is None:
            raise SnmpTimeoutError(f"SNMP {what} timeout: {self.target.ip}")
        return vlan_id

    async def get(self, *oids: str) -> list[Varbind]:
        await asyncio.sleep(self._latency)
        self._check("GET")
        if self._device.fail_get is not None:
            raise self._device.fail_get
        return [
            self._device.scalars.get(
                oid, Varbind(oid=oid, type_tag="NoSuchObject", error="noSuchObject"),
            )
            for oid in oids
        ]

    async def walk(self, root_oid: str) -> AsyncIterator[list[Varbind]]:
        await asyncio.sleep(self._latency)
        vlan_id = self._check("WALK")
        device = self._device

        if vlan_id == 1 and root_oid in device.fail_walks:
            raise device.fail_walks[root_oid]
        if vlan_id in device.fail_vlans:
            raise device.fail_vlans[vlan_id]

        rows = device.rows_for(vlan_id, root_oid)
        size = max(device.batch_size, 1)
        for start in range(0, len(rows), size):
            if start:
                await asyncio.sleep(self._latency)
            yield rows[start:start + size]
            if vlan_id in device.hang_vlans:
                # Agent stops answering mid-walk
                await asyncio.Event().wait()


class MockSnmpEngine(SnmpEngineBase):
    """
    Mock SNMP engine — same interface as AsyncSnmpEngine.

    With ``devices`` given, only those IPs exist; otherwise every IP gets a
    deterministic profile from mock_data.build_mock_device().
    """

    def __init__(
        self,
        devices: dict[str, MockDevice] | None = None,
        latency: float = 0.0,
    ) -> None:
        self._devices = devices
        self._latency = latency
        self.opened: list[SnmpTarget] = []
        self.transports: list[MockSnmpTransport] = []
        if devices is None:
            logger.info("MockSnmpEngine initialized (no real SNMP traffic)")

    def _device(self, target: SnmpTarget) -> MockDevice | None:
        if self._devices is None:
            base_community = target.community.partition("@")[0]
            return build_mock_device(target.ip, community=base_community)
        return self._devices.get(target.ip)

    async def open(self, target: SnmpTarget) -> SnmpTransport:
        device = self._device(target)
        if device is None:
            raise SnmpConnectError(
                f"Cannot open SNMP session to {target.ip}:{target.port}: unknown host"
            )
        self.opened.append(target)
        transport = MockSnmpTransport(target, device, self._latency)
        self.transports.append(transport)
        return transport

    @property
    def open_count(self) -> int:
        """Sessions opened and not yet closed."""
        return sum(1 for t in self.transports if not t.closed)
