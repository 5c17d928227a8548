"""
VLAN Discovery Engine — CISCO-VTP-MIB.

Two passes over one session:

1. vtpVlanState walk — index is {managementDomain}.{vlanId}:
     vtpVlanState.1.{vlan_id} = 1 (operational) | 2 (suspended) | ...
   Ids are validated here; only state 1 yields a candidate VLAN.
2. vtpVlanName walk — only decorates candidates from pass 1, so a
   malformed name row can never add a VLAN.

Rejected ids land in ``invalid_vlans`` with a reason; they are not errors.
"""
from __future__ import annotations

import logging

from netdiscovery.core.config import VlanConfig
from netdiscovery.core.enums import InvalidVlanReason, SnmpVersion
from netdiscovery.schemas.discovery import (
    MAX_VLAN_ID,
    InvalidVlan,
    RawResponse,
    Vlan,
    VlanDiscoveryResult,
    VlanRawResponses,
    is_valid_vlan_id,
)
from netdiscovery.snmp.engine import SnmpEngineBase, SnmpTarget, SnmpTransport
from netdiscovery.snmp.oid_maps import CISCO_VTP_VLAN_NAME, CISCO_VTP_VLAN_STATE

logger = logging.getLogger(__name__)

VLAN_ACTIVE = 1


def _vlan_id_of(oid: str) -> int | None:
    """VLAN id is the last OID component."""
    try:
        return int(oid.rsplit(".", 1)[-1])
    except ValueError:
        return None


def _placeholder_name(vlan_id: int) -> str:
    return f"VLAN{vlan_id}"


class VlanDiscoveryEngine:
    """Enumerate the active VLANs of one device."""

    def __init__(
        self,
        engine: SnmpEngineBase,
        config: VlanConfig | None = None,
        port: int = 161,
    ) -> None:
        self._engine = engine
        self._config = config or VlanConfig()
        self._port = port

    async def discover(
        self,
        ip: str,
        community: str = "public",
        version: SnmpVersion | str = SnmpVersion.V2C,
    ) -> VlanDiscoveryResult:
        """
        Discover VLANs on ``ip``.

        The sweep is all-or-nothing: any walk failure propagates and no
        partial result is returned. The session is closed either way.
        """
        target = SnmpTarget(
            ip=ip,
            community=community,
            version=SnmpVersion(version),
            port=self._port,
            timeout=self._config.timeout,
            retries=self._config.retries,
        )
        logger.info("Starting VLAN discovery for %s using SNMPv%s", ip, target.version.value)

        raw = VlanRawResponses()
        invalid: list[InvalidVlan] = []

        async with self._engine.session(target) as transport:
            candidates = await self._walk_states(transport, raw, invalid)
            if candidates:
                await self._walk_names(transport, candidates, raw)

        vlans = sorted(candidates.values(), key=lambda v: v.vlan_id)
        if len(vlans) > MAX_VLAN_ID:
            for vlan in vlans[MAX_VLAN_ID:]:
                invalid.append(InvalidVlan(vlan_id=vlan.vlan_id, reason=InvalidVlanReason.OVER_CAP))
            vlans = vlans[:MAX_VLAN_ID]

        inactive_count = sum(1 for v in invalid if v.reason is InvalidVlanReason.INACTIVE)
        result = VlanDiscoveryResult(
            vlans=vlans,
            invalid_vlans=invalid,
            total_discovered=len(vlans) + len(invalid),
            valid_count=len(vlans),
            invalid_count=len(invalid),
            active_count=len(vlans),
            inactive_count=inactive_count,
            raw_responses=raw,
        )
        logger.info(
            "Found %d active VLANs on %s (ignored %d inactive and %d invalid VLANs)",
            result.active_count, ip, inactive_count, len(invalid) - inactive_count,
        )
        return result

    async def _walk_states(
        self,
        transport: SnmpTransport,
        raw: VlanRawResponses,
        invalid: list[InvalidVlan],
    ) -> dict[int, Vlan]:
        ip = transport.target.ip
        seen: set[int] = set()
        candidates: dict[int, Vlan] = {}

        async for batch in transport.walk(CISCO_VTP_VLAN_STATE):
            for vb in batch:
                if vb.is_error:
                    logger.debug("VLAN state: %s on %s: %s", vb.oid, ip, vb.error)
                    continue
                raw.vlan_state.append(RawResponse(oid=vb.oid, value=str(vb.value)))
                logger.debug("VLAN state raw %s = %s: %s", vb.oid, vb.type_tag, vb.value)

                vlan_id = _vlan_id_of(vb.oid)
                if vlan_id is None:
                    logger.debug("VLAN state: unparsable index in %s on %s", vb.oid, ip)
                    continue
                if vlan_id in seen:
                    continue
                seen.add(vlan_id)

                if not is_valid_vlan_id(vlan_id):
                    invalid.append(InvalidVlan(vlan_id=vlan_id, reason=InvalidVlanReason.INVALID_RANGE))
                    continue

                try:
                    state = int(vb.value)
                except (TypeError, ValueError):
                    logger.warning("VLAN %d on %s: non-numeric state %r", vlan_id, ip, vb.value)
                    state = None

                if state == VLAN_ACTIVE:
                    candidates[vlan_id] = Vlan(
                        vlan_id=vlan_id,
                        name=_placeholder_name(vlan_id),
                        used_by=[ip],
                    )
                else:
                    invalid.append(InvalidVlan(vlan_id=vlan_id, reason=InvalidVlanReason.INACTIVE))

        return candidates

    async def _walk_names(
        self,
        transport: SnmpTransport,
        candidates: dict[int, Vlan],
        raw: VlanRawResponses,
    ) -> None:
        named: set[int] = set()

        async for batch in transport.walk(CISCO_VTP_VLAN_NAME):
            for vb in batch:
                if vb.is_error:
                    continue
                raw.vlan_name.append(RawResponse(oid=vb.oid, value=str(vb.value)))

                vlan_id = _vlan_id_of(vb.oid)
                if vlan_id is None or vlan_id in named or vlan_id not in candidates:
                    continue
                named.add(vlan_id)

                name = vb.value.strip() if isinstance(vb.value, str) else ""
                candidates[vlan_id].name = name or _placeholder_name(vlan_id)
