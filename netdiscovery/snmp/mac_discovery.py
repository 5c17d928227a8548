"""
MAC Address Discovery Engine — per-VLAN BRIDGE-MIB.

Cisco-style per-VLAN community indexing:
  a) pick the VLANs (explicit list / single id / VLAN discovery, else [1])
  b) for each VLAN, strictly one after another, open a session with
     community@vlanID (plain community for VLAN 1), map bridge ports to
     interface names (dot1dBasePortIfIndex + ifName, ifDescr fallback)
     and walk dot1dTpFdbPort:
       dot1dTpFdbPort.{o1}.{o2}.{o3}.{o4}.{o5}.{o6} = bridge_port
  c) yield that VLAN's records as one chunk, then move on

Each VLAN has a wall-clock cap covering the session open and every walk.
When it expires the walk is cancelled, records collected so far are kept
and anything the device sends later is dropped. A failing VLAN is logged
and skipped; the sweep always ends with one MacDiscoverySummary.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import aclosing
from typing import Any

from netdiscovery.core.config import MacConfig
from netdiscovery.core.enums import DiscoveryStatus, SnmpVersion
from netdiscovery.schemas.discovery import (
    MacAddressRecord,
    MacDiscoveryChunk,
    MacDiscoverySummary,
    is_valid_vlan_id,
)
from netdiscovery.snmp.engine import (
    SnmpEngineBase,
    SnmpError,
    SnmpTarget,
    SnmpTransport,
    oid_index,
)
from netdiscovery.snmp.oid_maps import (
    DOT1D_BASE_PORT_IF_INDEX,
    DOT1D_TP_FDB_PORT,
    IF_DESCR,
    IF_NAME,
)
from netdiscovery.snmp.oui import HashOuiClassifier, OuiClassifier
from netdiscovery.snmp.session_registry import SnmpSessionRegistry
from netdiscovery.snmp.vlan_discovery import VlanDiscoveryEngine

logger = logging.getLogger(__name__)

MacStreamItem = MacDiscoveryChunk | MacDiscoverySummary


def parse_mac_suffix(oid: str) -> tuple[int, ...] | None:
    """
    Last six OID components as MAC octets.

    Returns None unless there are six decimal components in 0-255.
    """
    parts = oid.split(".")
    if len(parts) < 6:
        return None
    try:
        octets = tuple(int(p) for p in parts[-6:])
    except ValueError:
        return None
    if any(o < 0 or o > 255 for o in octets):
        return None
    return octets


def format_mac(octets: Iterable[int]) -> str:
    return ":".join(f"{o:02X}" for o in octets)


def vlan_community(community: str, vlan_id: int) -> str:
    """VLAN 1 uses the base community, others ``community@vlan``."""
    return community if vlan_id == 1 else f"{community}@{vlan_id}"


def _dedup_sorted(vlan_ids: Iterable[int]) -> list[int]:
    return sorted(set(vlan_ids))


def _port_label(bridge_port: Any, port_names: dict[int, str]) -> str | None:
    """Interface name for a bridge port, else ``Port <n>``."""
    try:
        number = int(bridge_port)
    except (TypeError, ValueError):
        return None
    return port_names.get(number) or f"Port {number}"


class MacAddressDiscoveryEngine:
    """Sweep the bridge forwarding table of one device, VLAN by VLAN."""

    def __init__(
        self,
        engine: SnmpEngineBase,
        vlan_engine: VlanDiscoveryEngine,
        registry: SnmpSessionRegistry | None = None,
        classifier: OuiClassifier | None = None,
        config: MacConfig | None = None,
        port: int = 161,
    ) -> None:
        self._engine = engine
        self._vlan_engine = vlan_engine
        self._registry = registry
        self._classifier = classifier or HashOuiClassifier()
        self._config = config or MacConfig()
        self._port = port

    async def discover(
        self,
        ip: str | None = None,
        community: str = "public",
        version: SnmpVersion | str = SnmpVersion.V2C,
        vlan_ids: list[int] | None = None,
        vlan_id: int | None = None,
        session_id: str | None = None,
        port: int | None = None,
    ) -> AsyncIterator[MacStreamItem]:
        """
        Yield one MacDiscoveryChunk per attempted VLAN, then the summary.

        With ``session_id`` the device address, community and version come
        from that registry session. ``port`` overrides the engine default.

        Raises:
            SessionNotFoundError: ``session_id`` is unknown.
            ValueError: neither ``ip`` nor ``session_id`` given.
        """
        port = port or self._port
        if session_id is not None:
            if self._registry is None:
                raise ValueError("session_id given but no session registry configured")
            session = await self._registry.lookup(session_id)
            await self._registry.touch(session_id)
            ip = session.target.ip
            community = session.target.community
            version = session.target.version
            port = session.target.port
        elif not ip:
            raise ValueError("Either ip or session_id is required")

        version = SnmpVersion(version)
        selected = await self._select_vlans(ip, community, version, vlan_ids, vlan_id)
        logger.info("Starting MAC discovery for %s on VLANs %s", ip, selected)

        attempted: list[int] = []
        failed: list[int] = []
        timed_out: list[int] = []
        total = 0

        for vid in selected:
            if vid in attempted:
                continue
            attempted.append(vid)

            chunk = await self._discover_vlan(ip, community, version, port, vid)
            if chunk.error is not None:
                failed.append(vid)
            if chunk.timed_out:
                timed_out.append(vid)
            total += len(chunk.records)
            yield chunk

        status = DiscoveryStatus.PARTIAL if failed or timed_out else DiscoveryStatus.SUCCESS
        logger.info(
            "MAC discovery for %s complete: %d addresses over %d VLANs (%s)",
            ip, total, len(attempted), status.value,
        )
        yield MacDiscoverySummary(
            vlan_ids=attempted,
            status=status,
            total_records=total,
            failed_vlans=failed,
            timed_out_vlans=timed_out,
        )

    async def _select_vlans(
        self,
        ip: str,
        community: str,
        version: SnmpVersion,
        vlan_ids: list[int] | None,
        vlan_id: int | None,
    ) -> list[int]:
        if vlan_ids:
            requested = _dedup_sorted(vlan_ids)
        elif vlan_id is not None:
            requested = [vlan_id]
        else:
            return await self._discovered_vlans(ip, community, version)

        selected = [v for v in requested if is_valid_vlan_id(v)]
        dropped = [v for v in requested if not is_valid_vlan_id(v)]
        if dropped:
            logger.warning("Ignoring out-of-range VLAN ids for %s: %s", ip, dropped)
        return selected

    async def _discovered_vlans(
        self, ip: str, community: str, version: SnmpVersion,
    ) -> list[int]:
        default = [self._config.default_vlan]
        try:
            result = await self._vlan_engine.discover(ip, community, version)
        except Exception as e:
            logger.warning(
                "VLAN discovery failed for %s, falling back to VLAN %s: %s",
                ip, self._config.default_vlan, e,
            )
            return default
        vlans = _dedup_sorted(v.vlan_id for v in result.vlans)
        # Also sweep the default VLAN when the device reports no active VLANs
        return vlans or default

    async def _discover_vlan(
        self,
        ip: str,
        community: str,
        version: SnmpVersion,
        port: int,
        vlan_id: int,
    ) -> MacDiscoveryChunk:
        target = SnmpTarget(
            ip=ip,
            community=vlan_community(community, vlan_id),
            version=version,
            port=port,
            timeout=self._config.timeout,
            retries=self._config.retries,
        )
        records: dict[str, MacAddressRecord] = {}
        timed_out = False
        error: str | None = None

        try:
            # The cap covers opening the session as well as the walks
            await asyncio.wait_for(
                self._collect_vlan(target, vlan_id, records),
                timeout=self._config.vlan_walk_timeout,
            )
        except asyncio.TimeoutError:
            timed_out = True
            logger.warning(
                "MAC walk for %s VLAN %d abandoned after %.1fs, keeping %d addresses",
                ip, vlan_id, self._config.vlan_walk_timeout, len(records),
            )
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.error("MAC discovery for %s VLAN %d failed: %s", ip, vlan_id, e)

        logger.debug("VLAN %d on %s: %d MAC addresses", vlan_id, ip, len(records))
        return MacDiscoveryChunk(
            vlan_id=vlan_id,
            records=list(records.values()),
            timed_out=timed_out,
            error=error,
        )

    async def _collect_vlan(
        self,
        target: SnmpTarget,
        vlan_id: int,
        records: dict[str, MacAddressRecord],
    ) -> None:
        async with self._engine.session(target) as transport:
            port_names: dict[int, str] = {}
            if self._config.resolve_ports:
                port_names = await self._port_names(transport)
            await self._walk_fdb(transport, vlan_id, records, port_names)

    async def _port_names(self, transport: SnmpTransport) -> dict[int, str]:
        """
        Bridge port → interface name for the session's VLAN context.

        dot1dBasePortIfIndex maps bridge ports to ifIndex, which is then
        named from ifName (ifDescr when the agent has no ifXTable).
        """
        bridge_ports = await self._walk_column(transport, DOT1D_BASE_PORT_IF_INDEX)
        if not bridge_ports:
            return {}

        names = await self._walk_column(transport, IF_NAME)
        if not names:
            names = await self._walk_column(transport, IF_DESCR)

        port_names: dict[int, str] = {}
        for bridge_port, if_index in bridge_ports.items():
            try:
                name = names.get(int(if_index))
            except (TypeError, ValueError):
                continue
            if name:
                port_names[bridge_port] = str(name)
        logger.debug(
            "Built bridge port map for %s: %d ports, %d named",
            transport.target.ip, len(bridge_ports), len(port_names),
        )
        return port_names

    async def _walk_column(self, transport: SnmpTransport, root_oid: str) -> dict[int, Any]:
        """Single-index table column as {index: value}; failures give {}."""
        column: dict[int, Any] = {}
        try:
            async for batch in transport.walk(root_oid):
                for vb in batch:
                    if vb.is_error:
                        continue
                    try:
                        column[int(oid_index(vb.oid, root_oid))] = vb.value
                    except ValueError:
                        continue
        except SnmpError as e:
            logger.warning(
                "Port map walk %s failed on %s: %s", root_oid, transport.target.ip, e,
            )
            return {}
        return column

    async def _walk_fdb(
        self,
        transport: SnmpTransport,
        vlan_id: int,
        records: dict[str, MacAddressRecord],
        port_names: dict[int, str],
    ) -> None:
        """Fill ``records`` in place so a cancelled walk keeps what it read."""
        ip = transport.target.ip
        async with aclosing(transport.walk(DOT1D_TP_FDB_PORT)) as batches:
            async for batch in batches:
                for vb in batch:
                    if vb.is_error:
                        logger.debug("MAC table: %s on %s: %s", vb.oid, ip, vb.error)
                        continue
                    octets = parse_mac_suffix(oid_index(vb.oid, DOT1D_TP_FDB_PORT))
                    if octets is None:
                        logger.debug("MAC table: failed to parse index '%s' on %s", vb.oid, ip)
                        continue
                    mac = format_mac(octets)
                    if mac in records:
                        continue
                    try:
                        device_type = self._classifier.classify(octets[:3])
                    except Exception as e:
                        logger.warning("OUI classification failed for %s: %s", mac, e)
                        continue
                    records[mac] = MacAddressRecord(
                        mac_address=mac,
                        vlan_id=vlan_id,
                        device_type=device_type,
                        port=_port_label(vb.value, port_names),
                    )
