"""
Discovery Service.

Wires one SNMP engine (real or mock) to the session registry and the three
discovery engines so the API layer and the scheduler share the same
instances.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from netdiscovery.core.config import Settings, get_settings
from netdiscovery.snmp.engine import AsyncSnmpEngine, SnmpEngineBase, SnmpEngineConfig
from netdiscovery.snmp.identity import DeviceIdentityResolver
from netdiscovery.snmp.mac_discovery import MacAddressDiscoveryEngine
from netdiscovery.snmp.oui import HashOuiClassifier, OuiClassifier
from netdiscovery.snmp.session_registry import SnmpSessionRegistry
from netdiscovery.snmp.vlan_discovery import VlanDiscoveryEngine

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> SnmpEngineBase:
    if settings.snmp.mock:
        from netdiscovery.snmp.mock_engine import MockSnmpEngine
        logger.info("SNMP discovery using MOCK engine (no real devices)")
        return MockSnmpEngine()
    return AsyncSnmpEngine(
        config=SnmpEngineConfig(max_repetitions=settings.snmp.max_repetitions),
    )


class DiscoveryService:
    """Shared engine, session registry and discovery engines."""

    def __init__(
        self,
        engine: SnmpEngineBase | None = None,
        settings: Settings | None = None,
        classifier: OuiClassifier | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.settings = settings
        self.engine = engine or build_engine(settings)
        port = settings.snmp.port

        self.registry = SnmpSessionRegistry(
            self.engine,
            idle_ttl=timedelta(seconds=settings.session.idle_ttl_seconds),
            timeout=settings.session.timeout,
            retries=settings.session.retries,
        )
        self.identity = DeviceIdentityResolver(self.engine, settings.identity, port=port)
        self.vlans = VlanDiscoveryEngine(self.engine, settings.vlan, port=port)
        self.macs = MacAddressDiscoveryEngine(
            self.engine,
            self.vlans,
            registry=self.registry,
            classifier=classifier or HashOuiClassifier(),
            config=settings.mac,
            port=port,
        )

    async def shutdown(self) -> None:
        """Close every interactive session."""
        count = self.registry.count()
        await self.registry.close_all()
        if count:
            logger.info("Closed %d SNMP sessions on shutdown", count)


# ── Singleton ────────────────────────────────────────────────────

_discovery_service: DiscoveryService | None = None


def get_discovery_service() -> DiscoveryService:
    """Get or create DiscoveryService instance."""
    global _discovery_service
    if _discovery_service is None:
        _discovery_service = DiscoveryService()
    return _discovery_service
