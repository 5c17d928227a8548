"""
API router configuration.

Aggregates all endpoint routers.
"""
from __future__ import annotations

from fastapi import APIRouter

from netdiscovery.api.endpoints import snmp

api_router = APIRouter()

api_router.include_router(
    snmp.router,
    prefix="/snmp",
    tags=["SNMP"],
)
