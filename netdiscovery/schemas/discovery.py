"""
Pydantic schemas for discovery results.

All result objects are immutable snapshots handed to the caller; the
engine keeps no reference to them after returning.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from netdiscovery.core.enums import (
    DeviceCategory,
    DiscoveryStatus,
    InvalidVlanReason,
    MacDeviceType,
)

MIN_VLAN_ID = 1
MAX_VLAN_ID = 4094

MAC_PATTERN = r"^([0-9A-F]{2}:){5}[0-9A-F]{2}$"


def is_valid_vlan_id(vlan_id: int) -> bool:
    """802.1Q usable VLAN range."""
    return MIN_VLAN_ID <= vlan_id <= MAX_VLAN_ID


class DeviceInfo(BaseModel):
    """Identity of one device as seen over SNMP."""

    model_config = ConfigDict(frozen=True)

    sys_descr: Optional[str] = None
    sys_object_id: Optional[str] = None
    sys_name: Optional[str] = None
    sys_location: Optional[str] = None
    manufacturer: Optional[str] = Field(None, examples=["Cisco"])
    model: Optional[str] = Field(None, examples=["C3750E"])
    exact_model: Optional[str] = Field(
        None,
        description="Chassis model from ENTITY-MIB, when available",
        examples=["WS-C3750E-48PD-S"],
    )
    type: DeviceCategory = DeviceCategory.OTHER


class Vlan(BaseModel):
    """An active VLAN."""

    vlan_id: int = Field(..., ge=MIN_VLAN_ID, le=MAX_VLAN_ID)
    name: str
    state: Literal["active"] = "active"
    used_by: list[str] = Field(default_factory=list)


class InvalidVlan(BaseModel):
    """A VLAN rejected during discovery, with the reason."""

    vlan_id: int
    reason: InvalidVlanReason


class RawResponse(BaseModel):
    """One varbind as returned by the device (diagnostics only)."""

    oid: str
    value: str


class VlanRawResponses(BaseModel):
    vlan_state: list[RawResponse] = Field(default_factory=list)
    vlan_name: list[RawResponse] = Field(default_factory=list)


class VlanDiscoveryResult(BaseModel):
    """Outcome of one VLAN discovery call."""

    vlans: list[Vlan] = Field(default_factory=list)
    invalid_vlans: list[InvalidVlan] = Field(default_factory=list)
    total_discovered: int = 0
    valid_count: int = 0
    invalid_count: int = 0
    active_count: int = 0
    inactive_count: int = 0
    raw_responses: VlanRawResponses = Field(default_factory=VlanRawResponses)


class MacAddressRecord(BaseModel):
    """A MAC address learned on a VLAN."""

    model_config = ConfigDict(frozen=True)

    mac_address: str = Field(..., pattern=MAC_PATTERN, examples=["0A:0B:0C:0D:0E:0F"])
    vlan_id: int
    device_type: MacDeviceType
    port: Optional[str] = Field(None, description="Interface the address was learned on")


class MacDiscoveryChunk(BaseModel):
    """Records collected for one VLAN; one chunk per attempted VLAN."""

    vlan_id: int
    records: list[MacAddressRecord] = Field(default_factory=list)
    timed_out: bool = False
    error: Optional[str] = None


class MacDiscoverySummary(BaseModel):
    """Terminal record of a MAC sweep."""

    vlan_ids: list[int]
    status: DiscoveryStatus
    total_records: int = 0
    failed_vlans: list[int] = Field(default_factory=list)
    timed_out_vlans: list[int] = Field(default_factory=list)


class MacDiscoveryResult(BaseModel):
    """Buffered form of a MAC sweep (for callers without streaming)."""

    mac_addresses: list[MacAddressRecord] = Field(default_factory=list)
    vlan_ids: list[int] = Field(default_factory=list)
    status: DiscoveryStatus
    failed_vlans: list[int] = Field(default_factory=list)
    timed_out_vlans: list[int] = Field(default_factory=list)
