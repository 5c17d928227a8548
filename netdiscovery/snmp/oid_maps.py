"""
OID Constants.

All SNMP OIDs consumed by the discovery engines are defined here; none of
them are configurable per call.
"""
from __future__ import annotations

# =============================================================================
# Standard MIBs
# =============================================================================

# SNMPv2-MIB
SYS_DESCR = "1.3.6.1.2.1.1.1.0"
SYS_OBJECT_ID = "1.3.6.1.2.1.1.2.0"
SYS_NAME = "1.3.6.1.2.1.1.5.0"
SYS_LOCATION = "1.3.6.1.2.1.1.6.0"

# Fetched together by the identity resolver, in this order
SYSTEM_OIDS: dict[str, str] = {
    "sys_descr": SYS_DESCR,
    "sys_object_id": SYS_OBJECT_ID,
    "sys_name": SYS_NAME,
    "sys_location": SYS_LOCATION,
}

# IF-MIB
IF_DESCR = "1.3.6.1.2.1.2.2.1.2"             # ifDescr
IF_TYPE = "1.3.6.1.2.1.2.2.1.3"              # ifType (IANAifType)
IF_NAME = "1.3.6.1.2.1.31.1.1.1.1"           # ifName (ifXTable)

# IANAifType values used by the interface-distribution heuristic
IF_TYPES_ETHERNET = frozenset({
    6,    # ethernetCsmacd
    62,   # fastEther
    69,   # fastEtherFX
    117,  # gigabitEthernet
})
IF_TYPES_WAN = frozenset({
    23,   # ppp
    131,  # tunnel
})

# ENTITY-MIB
ENT_PHYSICAL_MODEL_NAME = "1.3.6.1.2.1.47.1.1.1.1.13"

# BRIDGE-MIB
DOT1D_BASE_PORT_IF_INDEX = "1.3.6.1.2.1.17.1.4.1.2"  # bridge port → ifIndex
DOT1D_TP_FDB_PORT = "1.3.6.1.2.1.17.4.3.1.2"  # MAC → bridge port, per-VLAN context

# =============================================================================
# Vendor-Specific: Cisco (Enterprise 9)
# =============================================================================

# CISCO-VTP-MIB: index: {managementDomain}.{vlanId}
CISCO_VTP_VLAN_STATE = "1.3.6.1.4.1.9.9.46.1.3.1.1.2"  # 1=operational, 2=suspended
CISCO_VTP_VLAN_NAME = "1.3.6.1.4.1.9.9.46.1.3.1.1.4"


def oid_label(oid: str) -> str:
    """Human-readable name for the scalar OIDs above (for logging)."""
    for name, value in SYSTEM_OIDS.items():
        if value == oid:
            return name
    return "unknown"
