"""
Device Identity Resolver.

GET sysDescr / sysObjectID / sysName / sysLocation in one request, then:
- manufacturer  — longest sysObjectID enterprise prefix
- model         — vendor regex over sysDescr, generic token fallback
- type          — sysObjectID rules, sysDescr keywords, default Other

Two optional refinements run on the same session:
- Cisco: ENTITY-MIB entPhysicalModelName gives the exact chassis model
- type still Other: IF-MIB ifType distribution (many Ethernet ports → Switch,
  several PPP/tunnel interfaces → Router)
Refinement failures never invalidate the base identity.
"""
from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any

from netdiscovery.core.config import IdentityConfig
from netdiscovery.core.enums import DeviceCategory, SnmpVersion
from netdiscovery.schemas.discovery import DeviceInfo
from netdiscovery.snmp.engine import (
    SnmpEngineBase,
    SnmpTarget,
    SnmpTransport,
    oid_index,
)
from netdiscovery.snmp.oid_maps import (
    ENT_PHYSICAL_MODEL_NAME,
    IF_TYPE,
    IF_TYPES_ETHERNET,
    IF_TYPES_WAN,
    SYSTEM_OIDS,
    oid_label,
)
from netdiscovery.snmp.rules import (
    looks_like_model,
    resolve_device_type,
    resolve_manufacturer,
    resolve_model,
)

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


class DeviceIdentityResolver:
    """Identify a device's make, model and role over SNMP."""

    def __init__(
        self,
        engine: SnmpEngineBase,
        config: IdentityConfig | None = None,
        port: int = 161,
    ) -> None:
        self._engine = engine
        self._config = config or IdentityConfig()
        self._port = port

    async def identify(
        self,
        ip: str,
        community: str = "public",
        version: SnmpVersion | str = SnmpVersion.V2C,
    ) -> DeviceInfo:
        """
        Identify one device.

        Raises:
            SnmpConnectError: if no session can be opened.
            SnmpTimeoutError / SnmpError: if the system-group GET fails.
        """
        target = SnmpTarget(
            ip=ip,
            community=community,
            version=SnmpVersion(version),
            port=self._port,
            timeout=self._config.timeout,
            retries=self._config.retries,
        )
        logger.info(
            "Starting device identification for %s using SNMPv%s",
            ip, target.version.value,
        )

        async with self._engine.session(target) as transport:
            system = await self._fetch_system(transport)

            manufacturer = resolve_manufacturer(system["sys_object_id"])
            model = resolve_model(system["sys_descr"], manufacturer)
            device_type = resolve_device_type(
                system["sys_descr"], system["sys_object_id"],
            )

            exact_model: str | None = None
            if manufacturer == "Cisco" and self._config.inventory_refinement:
                exact_model = await self._refine_model(transport)
                if exact_model:
                    model = exact_model

            if device_type is DeviceCategory.OTHER and self._config.interface_refinement:
                device_type = await self._refine_type(transport) or device_type

        info = DeviceInfo(
            **system,
            manufacturer=manufacturer,
            model=model,
            exact_model=exact_model,
            type=device_type,
        )
        logger.info(
            "Device identification complete for %s: %s %s (%s) hostname=%s",
            ip, info.manufacturer or "Unknown", info.model or "",
            info.type.value, info.sys_name,
        )
        return info

    async def _fetch_system(self, transport: SnmpTransport) -> dict[str, str | None]:
        """One GET for the four system-group scalars; missing ones stay None."""
        by_oid = {oid: name for name, oid in SYSTEM_OIDS.items()}
        system: dict[str, str | None] = dict.fromkeys(SYSTEM_OIDS)

        for vb in await transport.get(*SYSTEM_OIDS.values()):
            if vb.is_error:
                logger.warning("Error for OID %s (%s): %s", vb.oid, oid_label(vb.oid), vb.error)
                continue
            name = by_oid.get(vb.oid.lstrip("."))
            if name is None:
                continue
            system[name] = _as_text(vb.value)
            logger.debug(
                "Raw device info %s (%s) = %s: %s",
                vb.oid, name, vb.type_tag, vb.value,
            )
        return system

    async def _refine_model(self, transport: SnmpTransport) -> str | None:
        """
        Exact chassis model from ENTITY-MIB entPhysicalModelName.

        Reads at most ``inventory_max_rows`` rows, orders them by physical
        index and returns the first model-looking name among the first
        ``inventory_candidates``.
        """
        rows: list[tuple[int, str]] = []
        try:
            async with aclosing(transport.walk(ENT_PHYSICAL_MODEL_NAME)) as batches:
                async for batch in batches:
                    for vb in batch:
                        if vb.is_error or not isinstance(vb.value, str):
                            continue
                        try:
                            index = int(oid_index(vb.oid, ENT_PHYSICAL_MODEL_NAME).split(".")[0])
                        except ValueError:
                            continue
                        rows.append((index, vb.value.strip()))
                    if len(rows) >= self._config.inventory_max_rows:
                        break
        except Exception as e:  # noqa: BLE001
            logger.debug("Inventory model lookup failed on %s: %s", transport.target.ip, e)
            return None

        rows = sorted(rows[: self._config.inventory_max_rows])
        for _, name in rows[: self._config.inventory_candidates]:
            if name and looks_like_model(name):
                logger.debug("Exact model for %s: %s", transport.target.ip, name)
                return name
        return None

    async def _refine_type(self, transport: SnmpTransport) -> DeviceCategory | None:
        """Classify from the ifType distribution; None when inconclusive."""
        ethernet = 0
        wan = 0
        try:
            async for batch in transport.walk(IF_TYPE):
                for vb in batch:
                    if vb.is_error or not isinstance(vb.value, int):
                        continue
                    if vb.value in IF_TYPES_ETHERNET:
                        ethernet += 1
                    elif vb.value in IF_TYPES_WAN:
                        wan += 1
        except Exception as e:  # noqa: BLE001
            logger.debug("Interface type lookup failed on %s: %s", transport.target.ip, e)
            return None

        logger.debug(
            "Interface types on %s: ethernet=%d ppp/tunnel=%d",
            transport.target.ip, ethernet, wan,
        )
        if ethernet > self._config.ethernet_threshold:
            return DeviceCategory.SWITCH
        if wan > self._config.wan_threshold:
            return DeviceCategory.ROUTER
        return None
