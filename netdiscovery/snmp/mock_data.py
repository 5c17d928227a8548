"""
Mock SNMP device profiles.

根據設備 IP 產生模擬的 SNMP 設備 (MockDevice)，供 MockSnmpEngine 使用。

設計原則：
- 使用 deterministic hash（基於 IP）確保同一設備每次回傳一致
- VLAN 1 的 MAC table 用 base community，其餘 VLAN 用 community@vlanID
- Tests build their own ``MockDevice`` with the varbind helpers below.
"""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from netdiscovery.snmp.engine import SnmpError, Varbind
from netdiscovery.snmp.oid_maps import (
    CISCO_VTP_VLAN_NAME,
    CISCO_VTP_VLAN_STATE,
    DOT1D_BASE_PORT_IF_INDEX,
    DOT1D_TP_FDB_PORT,
    ENT_PHYSICAL_MODEL_NAME,
    IF_NAME,
    IF_TYPE,
    SYS_DESCR,
    SYS_LOCATION,
    SYS_NAME,
    SYS_OBJECT_ID,
)


@dataclass
class MockDevice:
    """
    A scripted SNMP agent.

    scalars:      GET-able OIDs
    tables:       walkable varbinds answered for the base community
    vlan_tables:  BRIDGE-MIB rows per VLAN context (VLAN 1 = base community,
                  others = ``community@vlanID``)
    """

    community: str = "public"
    scalars: dict[str, Varbind] = field(default_factory=dict)
    tables: dict[str, list[Varbind]] = field(default_factory=dict)
    vlan_tables: dict[int, list[Varbind]] = field(default_factory=dict)
    unreachable: bool = False
    transport_error: bool = False
    fail_get: SnmpError | None = None
    fail_walks: dict[str, SnmpError] = field(default_factory=dict)
    fail_vlans: dict[int, SnmpError] = field(default_factory=dict)
    hang_vlans: set[int] = field(default_factory=set)
    batch_size: int = 10

    def vlan_for_community(self, community: str) -> int | None:
        """Map a community string to its VLAN context, None if rejected."""
        if community == self.community:
            return 1
        base, sep, suffix = community.rpartition("@")
        if sep and base == self.community:
            try:
                vlan_id = int(suffix)
            except ValueError:
                return None
            if vlan_id in self.vlan_tables or vlan_id in self.fail_vlans or vlan_id in self.hang_vlans:
                return vlan_id
        return None

    def rows_for(self, vlan_id: int, root_oid: str) -> list[Varbind]:
        """All walkable rows under ``root_oid`` for a VLAN context."""
        if vlan_id == 1:
            pool = [vb for rows in self.tables.values() for vb in rows]
            pool.extend(self.vlan_tables.get(1, []))
        else:
            pool = list(self.vlan_tables.get(vlan_id, []))
        prefix = root_oid.strip(".") + "."
        return [vb for vb in pool if vb.oid.startswith(prefix)]


# ── Varbind helpers ───────────────────────────────────────────────

def text(oid: str, value: str) -> Varbind:
    return Varbind(oid=oid, value=value, type_tag="OctetString")


def integer(oid: str, value: int) -> Varbind:
    return Varbind(oid=oid, value=value, type_tag="Integer32")


def object_id(oid: str, value: str) -> Varbind:
    return Varbind(oid=oid, value=value, type_tag="ObjectIdentifier")


def no_such_instance(oid: str) -> Varbind:
    return Varbind(oid=oid, type_tag="NoSuchInstance", error="noSuchInstance")


def mac_to_oid_suffix(mac: str) -> str:
    """'0A:0B:0C:0D:0E:0F' → '10.11.12.13.14.15'"""
    return ".".join(str(int(part, 16)) for part in mac.replace("-", ":").split(":"))


def fdb_rows(macs: list[str], first_port: int = 1) -> list[Varbind]:
    """BRIDGE-MIB dot1dTpFdbPort rows: {mac octets} = bridge_port."""
    return [
        integer(f"{DOT1D_TP_FDB_PORT}.{mac_to_oid_suffix(mac)}", first_port + i)
        for i, mac in enumerate(macs)
    ]


def bridge_port_rows(if_indexes: dict[int, int]) -> list[Varbind]:
    """BRIDGE-MIB dot1dBasePortIfIndex rows: {bridge_port} = ifIndex."""
    return [
        integer(f"{DOT1D_BASE_PORT_IF_INDEX}.{port}", if_index)
        for port, if_index in if_indexes.items()
    ]


def if_name_rows(names: dict[int, str], column: str = IF_NAME) -> list[Varbind]:
    """IF-MIB ifName (or ifDescr via ``column``) rows: {ifIndex} = name."""
    return [text(f"{column}.{if_index}", name) for if_index, name in names.items()]


def vtp_rows(
    states: dict[int, int],
    names: dict[int, str] | None = None,
    domain: int = 1,
) -> dict[str, list[Varbind]]:
    """CISCO-VTP-MIB vtpVlanState / vtpVlanName rows for one management domain."""
    names = names or {}
    return {
        CISCO_VTP_VLAN_STATE: [
            integer(f"{CISCO_VTP_VLAN_STATE}.{domain}.{vid}", state)
            for vid, state in states.items()
        ],
        CISCO_VTP_VLAN_NAME: [
            text(f"{CISCO_VTP_VLAN_NAME}.{domain}.{vid}", name)
            for vid, name in names.items()
        ],
    }


def system_scalars(
    sys_descr: str | None = None,
    sys_object_id: str | None = None,
    sys_name: str | None = None,
    sys_location: str | None = None,
) -> dict[str, Varbind]:
    """SNMPv2-MIB system group; ``None`` leaves the object absent."""
    scalars: dict[str, Varbind] = {}
    if sys_descr is not None:
        scalars[SYS_DESCR] = text(SYS_DESCR, sys_descr)
    if sys_object_id is not None:
        scalars[SYS_OBJECT_ID] = object_id(SYS_OBJECT_ID, sys_object_id)
    if sys_name is not None:
        scalars[SYS_NAME] = text(SYS_NAME, sys_name)
    if sys_location is not None:
        scalars[SYS_LOCATION] = text(SYS_LOCATION, sys_location)
    return scalars


# ── Deterministic profiles (SNMP__MOCK=true) ─────────────────────

def _det_hash(ip: str, salt: str = "") -> int:
    """Deterministic hash from IP + salt."""
    return int(hashlib.md5(f"{ip}:{salt}".encode()).hexdigest(), 16)


# (sysObjectID, sysDescr, entPhysicalModelName, ethernet ifType count)
_PROFILES: list[tuple[str, str, str, int]] = [
    (
        "1.3.6.1.4.1.9.1.516",
        "Cisco IOS Software, C3750E Software (C3750E-UNIVERSALK9-M), "
        "Version 15.0(2)SE11, RELEASE SOFTWARE (fc3)",
        "WS-C3750E-48PD-S",
        52,
    ),
    (
        "1.3.6.1.4.1.2636.1.1.1.2.31",
        "Juniper Networks, Inc. ex4200-48t Ethernet Switch, kernel JUNOS 12.3R12.4",
        "EX4200-48T",
        48,
    ),
    (
        "1.3.6.1.4.1.11.2.3.7.11.160",
        "HP J9729A 2920-48G-POE+ Switch, revision WB.16.10.0012",
        "J9729A",
        48,
    ),
]

_VLAN_NAMES: dict[int, str] = {
    1: "default",
    10: "USERS",
    20: "VOICE",
    30: "PRINTERS",
    100: "MGMT",
}
_SUSPENDED_VLANS = (999,)


def _mock_macs(ip: str, vlan_id: int) -> list[str]:
    count = _det_hash(ip, f"vlan{vlan_id}") % 8 + 1
    macs: list[str] = []
    for i in range(count):
        h = _det_hash(ip, f"mac{vlan_id}.{i}")
        octets = [(h >> (8 * n)) & 0xFF for n in range(6)]
        octets[0] &= 0xFE  # unicast
        macs.append(":".join(f"{o:02X}" for o in octets))
    return sorted(set(macs))


def _vlan_table(ip: str, vlan_id: int) -> list[Varbind]:
    """Forwarding table plus the port maps answered in that VLAN context."""
    macs = _mock_macs(ip, vlan_id)
    ports = range(1, len(macs) + 1)
    rows = fdb_rows(macs)
    rows.extend(bridge_port_rows({p: 10100 + p for p in ports}))
    rows.extend(if_name_rows({10100 + p: f"Gi1/0/{p}" for p in ports}))
    return rows


def build_mock_device(ip: str, community: str = "public") -> MockDevice:
    """Deterministic device profile for ``ip``."""
    sys_object_id, sys_descr, model_name, eth_ports = _PROFILES[
        _det_hash(ip, "vendor") % len(_PROFILES)
    ]
    last_octet = ip.rsplit(".", 1)[-1]

    states = {vid: 1 for vid in _VLAN_NAMES}
    states.update({vid: 2 for vid in _SUSPENDED_VLANS})
    tables = vtp_rows(states, _VLAN_NAMES)
    tables[IF_TYPE] = [integer(f"{IF_TYPE}.{i}", 6) for i in range(1, eth_ports + 1)]
    tables[IF_TYPE].append(integer(f"{IF_TYPE}.{eth_ports + 1}", 24))  # softwareLoopback
    tables[ENT_PHYSICAL_MODEL_NAME] = [
        text(f"{ENT_PHYSICAL_MODEL_NAME}.1", model_name),
        text(f"{ENT_PHYSICAL_MODEL_NAME}.2", ""),
    ]

    return MockDevice(
        community=community,
        scalars=system_scalars(
            sys_descr=sys_descr,
            sys_object_id=sys_object_id,
            sys_name=f"mock-sw-{last_octet}",
            sys_location="Mock Lab",
        ),
        tables=tables,
        vlan_tables={vid: _vlan_table(ip, vid) for vid in _VLAN_NAMES},
    )
