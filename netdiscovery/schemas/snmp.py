"""
Pydantic schemas for the SNMP API request/response models.
"""
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

VersionLiteral = Literal["1", "2c"]


class DeviceTarget(BaseModel):
    """設備連線參數。"""
    ip: str = Field(..., description="設備 IP", examples=["192.168.1.1"])
    community: str = Field("public", description="SNMP community")
    version: VersionLiteral = Field("2c", description="SNMP 版本 (1 / 2c)")


class ConnectRequest(DeviceTarget):
    port: int = Field(161, ge=1, le=65535)


class ConnectResponse(BaseModel):
    session_id: str = Field(..., examples=["snmp_1718000000000_9f86d081"])


class SessionRequest(BaseModel):
    session_id: str


class DisconnectResponse(BaseModel):
    success: bool


class GetRequest(SessionRequest):
    oids: list[str] = Field(..., min_length=1, examples=[["1.3.6.1.2.1.1.5.0"]])


class WalkRequest(SessionRequest):
    oid: str = Field(..., examples=["1.3.6.1.2.1.2.2.1.2"])


class VarbindResponse(BaseModel):
    oid: str
    value: Any = None
    type: str = ""
    error: Optional[str] = None


class VarbindListResponse(BaseModel):
    results: list[VarbindResponse]


class MacDiscoveryRequest(BaseModel):
    """
    MAC 掃描參數。

    ip 與 session_id 擇一；VLAN 選擇順序為 vlan_ids > vlan_id > 自動探索。
    """
    ip: Optional[str] = None
    session_id: Optional[str] = None
    community: str = "public"
    version: VersionLiteral = "2c"
    vlan_ids: Optional[list[int]] = None
    vlan_id: Optional[int] = None
    stream: bool = Field(True, description="NDJSON 串流 (false 則一次回傳)")

    @model_validator(mode="after")
    def _require_device(self) -> "MacDiscoveryRequest":
        if not self.ip and not self.session_id:
            raise ValueError("Either ip or session_id is required")
        return self


class SessionCountResponse(BaseModel):
    count: int
