"""
SNMP API endpoints.

Thin adapter over the session registry and the discovery engines. Engine
errors are translated to HTTP status codes here and nowhere else:

- SessionNotFoundError → 404
- SnmpTimeoutError     → 504
- other SnmpError      → 502 (connect failures included)
"""
from __future__ import annotations

import logging
from typing import Union

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from netdiscovery.schemas.discovery import DeviceInfo, MacDiscoveryResult, VlanDiscoveryResult
from netdiscovery.schemas.snmp import (
    ConnectRequest,
    ConnectResponse,
    DeviceTarget,
    DisconnectResponse,
    GetRequest,
    MacDiscoveryRequest,
    SessionCountResponse,
    SessionRequest,
    VarbindListResponse,
    VarbindResponse,
    WalkRequest,
)
from netdiscovery.services.discovery import DiscoveryService, get_discovery_service
from netdiscovery.snmp.engine import SnmpError, SnmpTimeoutError, Varbind
from netdiscovery.snmp.session_registry import SessionNotFoundError
from netdiscovery.snmp.streaming import collect, to_ndjson

logger = logging.getLogger(__name__)

router = APIRouter()

NDJSON_MEDIA_TYPE = "application/x-ndjson"


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, SessionNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, SnmpTimeoutError):
        return HTTPException(status_code=504, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


def _varbinds(varbinds: list[Varbind]) -> VarbindListResponse:
    return VarbindListResponse(
        results=[
            VarbindResponse(oid=vb.oid, value=vb.value, type=vb.type_tag, error=vb.error)
            for vb in varbinds
        ],
    )


@router.post("/connect", response_model=ConnectResponse)
async def connect(
    body: ConnectRequest,
    service: DiscoveryService = Depends(get_discovery_service),
) -> ConnectResponse:
    """建立 SNMP session，回傳 session_id。"""
    try:
        session_id = await service.registry.connect(
            body.ip, body.community, body.version, body.port,
        )
    except SnmpError as e:
        logger.error("SNMP connect to %s failed: %s", body.ip, e)
        raise _http_error(e) from e
    return ConnectResponse(session_id=session_id)


@router.post("/disconnect", response_model=DisconnectResponse)
async def disconnect(
    body: SessionRequest,
    service: DiscoveryService = Depends(get_discovery_service),
) -> DisconnectResponse:
    if not await service.registry.disconnect(body.session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {body.session_id}")
    return DisconnectResponse(success=True)


@router.post("/get", response_model=VarbindListResponse)
async def snmp_get(
    body: GetRequest,
    service: DiscoveryService = Depends(get_discovery_service),
) -> VarbindListResponse:
    try:
        varbinds = await service.registry.get(body.session_id, body.oids)
    except (SessionNotFoundError, SnmpError) as e:
        raise _http_error(e) from e
    return _varbinds(varbinds)


@router.post("/walk", response_model=VarbindListResponse)
async def snmp_walk(
    body: WalkRequest,
    service: DiscoveryService = Depends(get_discovery_service),
) -> VarbindListResponse:
    try:
        varbinds = await service.registry.walk(body.session_id, body.oid)
    except (SessionNotFoundError, SnmpError) as e:
        raise _http_error(e) from e
    return _varbinds(varbinds)


@router.post("/discover-device", response_model=DeviceInfo)
async def discover_device(
    body: DeviceTarget,
    service: DiscoveryService = Depends(get_discovery_service),
) -> DeviceInfo:
    """設備識別：廠牌、型號、類型。"""
    try:
        return await service.identity.identify(body.ip, body.community, body.version)
    except SnmpError as e:
        logger.error("Device discovery for %s failed: %s", body.ip, e)
        raise _http_error(e) from e


@router.post("/discover-vlans", response_model=VlanDiscoveryResult)
async def discover_vlans(
    body: DeviceTarget,
    service: DiscoveryService = Depends(get_discovery_service),
) -> VlanDiscoveryResult:
    try:
        return await service.vlans.discover(body.ip, body.community, body.version)
    except SnmpError as e:
        logger.error("VLAN discovery for %s failed: %s", body.ip, e)
        raise _http_error(e) from e


@router.post(
    "/discover-macs",
    response_model=None,
    responses={200: {"content": {NDJSON_MEDIA_TYPE: {}}}},
)
async def discover_macs(
    body: MacDiscoveryRequest,
    service: DiscoveryService = Depends(get_discovery_service),
) -> Union[StreamingResponse, MacDiscoveryResult]:
    """
    MAC 掃描。

    Default is an NDJSON stream, one line per VLAN and a final summary line.
    With ``stream=false`` the whole sweep is buffered into one JSON body.
    """
    ip, community, version, port = body.ip, body.community, body.version, None
    # Resolve the session before the response starts: a bad id is a 404 and
    # a later eviction cannot break the stream
    if body.session_id is not None:
        try:
            session = await service.registry.lookup(body.session_id)
            await service.registry.touch(body.session_id)
        except SessionNotFoundError as e:
            raise _http_error(e) from e
        target = session.target
        ip, community, version, port = target.ip, target.community, target.version, target.port

    stream = service.macs.discover(
        ip=ip,
        community=community,
        version=version,
        vlan_ids=body.vlan_ids,
        vlan_id=body.vlan_id,
        port=port,
    )

    if not body.stream:
        return await collect(stream)

    return StreamingResponse(to_ndjson(stream), media_type=NDJSON_MEDIA_TYPE)


@router.get("/sessions/count", response_model=SessionCountResponse)
async def session_count(
    service: DiscoveryService = Depends(get_discovery_service),
) -> SessionCountResponse:
    return SessionCountResponse(count=service.registry.count())
