"""
SNMP Session Registry.

Process-wide store of interactive SNMP sessions:
1. connect()    — open a transport and hand back an opaque session id
2. get()/walk() — pass-through operations that touch the session
3. reap_idle()  — close sessions idle longer than the TTL (run periodically
                  by SchedulerService)

A transport-level failure on a session closes and evicts it immediately;
there is no automatic reconnect.
"""
from __future__ import annotations

import asyncio
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from netdiscovery.core.enums import SnmpVersion
from netdiscovery.snmp.engine import (
    SnmpEngineBase,
    SnmpTarget,
    SnmpTransport,
    SnmpTransportError,
    Varbind,
)

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """No live session with that id (never created, closed, or evicted)."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SnmpSession:
    """An open interactive session."""

    session_id: str
    transport: SnmpTransport
    target: SnmpTarget
    created_at: datetime
    last_activity_at: datetime

    @property
    def ip(self) -> str:
        return self.target.ip


class SnmpSessionRegistry:
    """
    Session store keyed by opaque id.

    All inserts, touches and deletes are serialized by one asyncio.Lock,
    which also excludes them against the idle sweep.
    """

    def __init__(
        self,
        engine: SnmpEngineBase,
        idle_ttl: timedelta = timedelta(minutes=30),
        timeout: float = 2.0,
        retries: int = 0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._engine = engine
        self._idle_ttl = idle_ttl
        self._timeout = timeout
        self._retries = retries
        self._clock = clock
        self._sessions: dict[str, SnmpSession] = {}
        self._lock = asyncio.Lock()

    @property
    def idle_ttl(self) -> timedelta:
        return self._idle_ttl

    @staticmethod
    def _new_session_id() -> str:
        return f"snmp_{int(time.time() * 1000)}_{secrets.token_hex(4)}"

    async def connect(
        self,
        ip: str,
        community: str = "public",
        version: SnmpVersion | str = SnmpVersion.V2C,
        port: int = 161,
    ) -> str:
        """
        Open a session and register it.

        Raises:
            SnmpConnectError: if the transport cannot be opened.
        """
        target = SnmpTarget(
            ip=ip,
            community=community,
            version=SnmpVersion(version),
            port=port,
            timeout=self._timeout,
            retries=self._retries,
        )
        transport = await self._engine.open(target)

        now = self._clock()
        session_id = self._new_session_id()
        async with self._lock:
            self._sessions[session_id] = SnmpSession(
                session_id=session_id,
                transport=transport,
                target=target,
                created_at=now,
                last_activity_at=now,
            )
        logger.info(
            "SNMP session %s established with %s using SNMPv%s",
            session_id, ip, target.version.value,
        )
        return session_id

    async def lookup(self, session_id: str) -> SnmpSession:
        async with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session not found or expired: {session_id}")
        return session

    async def touch(self, session_id: str) -> None:
        """Record activity on a session."""
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(f"Session not found or expired: {session_id}")
            session.last_activity_at = self._clock()

    async def disconnect(self, session_id: str) -> bool:
        """Close and remove a session. Returns False if it was unknown."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.transport.close()
        logger.info("SNMP session %s closed", session_id)
        return True

    async def _evict(self, session_id: str, reason: str) -> None:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return
        logger.error("SNMP error for %s, evicting session %s: %s", session.ip, session_id, reason)
        try:
            await session.transport.close()
        except Exception as e:  # noqa: BLE001
            logger.error("Error closing SNMP session %s: %s", session_id, e)

    async def get(self, session_id: str, oids: list[str]) -> list[Varbind]:
        """
        GET through a registered session.

        Raises:
            SessionNotFoundError: unknown id.
            SnmpTransportError: transport failed; the session is gone.
            SnmpError: request-level failure; the session stays open.
        """
        session = await self.lookup(session_id)
        try:
            varbinds = await session.transport.get(*oids)
        except SnmpTransportError as e:
            await self._evict(session_id, str(e))
            raise
        await self.touch(session_id)
        return varbinds

    async def walk(self, session_id: str, oid: str) -> list[Varbind]:
        """
        WALK through a registered session, collecting every batch.

        Per-item errors are logged and dropped.
        """
        session = await self.lookup(session_id)
        results: list[Varbind] = []
        try:
            async for batch in session.transport.walk(oid):
                for vb in batch:
                    if vb.is_error:
                        logger.warning("SNMP WALK varbind error: %s %s", vb.oid, vb.error)
                        continue
                    results.append(vb)
        except SnmpTransportError as e:
            await self._evict(session_id, str(e))
            raise
        await self.touch(session_id)
        return results

    async def reap_idle(self) -> list[str]:
        """
        Close and remove every session idle longer than the TTL.

        A failure closing one session is logged and does not stop the sweep.

        Returns:
            The evicted session ids.
        """
        now = self._clock()
        async with self._lock:
            expired = [
                s for s in self._sessions.values()
                if now - s.last_activity_at > self._idle_ttl
            ]
            for session in expired:
                del self._sessions[session.session_id]

            for session in expired:
                try:
                    await session.transport.close()
                except Exception as e:  # noqa: BLE001
                    logger.error(
                        "Error closing SNMP session %s: %s", session.session_id, e,
                    )
                logger.info("Closed inactive SNMP session: %s", session.session_id)

        return [s.session_id for s in expired]

    async def close_all(self) -> None:
        """Close every session (application shutdown)."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            try:
                await session.transport.close()
            except Exception as e:  # noqa: BLE001
                logger.error("Error closing SNMP session %s: %s", session.session_id, e)

    def count(self) -> int:
        """Live session count (diagnostics)."""
        return len(self._sessions)
