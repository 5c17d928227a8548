"""
SNMP Engine — pysnmp asyncio wrapper.

提供 transport 層的三個核心操作：
- open()  — 建立一個到設備的 SNMP session (transport handle)
- get()   — 取得一或多個 scalar OID 的值
- walk()  — 走訪整個 OID 子樹，以 batch 為單位 lazy 產出

All operations are async and use the pysnmp 7.x v3arch asyncio API.
No retries happen beyond ``SnmpTarget.retries``; callers own deadlines.

NOTE: pysnmp imports are deferred to the methods that need them so that
mock mode (SNMP__MOCK=true) works even when pysnmp is not installed.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from netdiscovery.core.enums import SnmpVersion

logger = logging.getLogger(__name__)


class SnmpError(Exception):
    """Base SNMP error."""


class SnmpConnectError(SnmpError):
    """A transport session could not be established (bad address, unreachable)."""


class SnmpTimeoutError(SnmpError):
    """SNMP request timed out after all retries."""


class SnmpTransportError(SnmpError):
    """The underlying transport of an open session failed (socket / dispatcher)."""


class SnmpDecodeError(SnmpError):
    """A single varbind could not be decoded. Always item-scoped."""


@dataclass
class SnmpTarget:
    """Connection parameters for a single SNMP target."""

    ip: str
    community: str = "public"
    version: SnmpVersion = SnmpVersion.V2C
    port: int = 161
    timeout: float = 5.0
    retries: int = 1


@dataclass(frozen=True)
class Varbind:
    """
    One decoded (oid, value) pair.

    ``error`` carries a per-item error marker (noSuchObject, noSuchInstance,
    decode failure); such items have no value and are skipped by callers.
    """

    oid: str
    value: Any = None
    type_tag: str = ""
    error: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


# ── Value decoding ──────────────────────────────────────────────────

_INTEGER_TAGS = frozenset({
    "Integer",
    "Integer32",
    "Counter32",
    "Counter64",
    "Gauge32",
    "Unsigned32",
    "TimeTicks",
})
_TEXT_TAGS = frozenset({"OctetString", "DisplayString"})
_DOTTED_TAGS = frozenset({"ObjectIdentifier", "ObjectName", "IpAddress"})
_ERROR_TAGS = {
    "NoSuchObject": "noSuchObject",
    "NoSuchInstance": "noSuchInstance",
    "EndOfMibView": "endOfMibView",
}
_KNOWN_TAGS = _INTEGER_TAGS | _TEXT_TAGS | _DOTTED_TAGS | frozenset(_ERROR_TAGS)

_INT64_MAX = 2**63 - 1
_UINT64_RANGE = 2**64


def _to_int64(value: int) -> int:
    """Wrap an unsigned 64-bit counter into the signed 64-bit range."""
    value %= _UINT64_RANGE
    if value > _INT64_MAX:
        value -= _UINT64_RANGE
    return value


def _is_printable(text: str) -> bool:
    return all(ch.isprintable() or ch in "\r\n\t" for ch in text)


def decode_value(raw: Any, type_tag: str) -> Any:
    """
    Decode a raw protocol value according to its declared SMI type.

    - printable octet strings → text
    - Integer / Counter / Gauge / TimeTicks → signed 64-bit int
    - ObjectIdentifier / IpAddress → dotted text
    - everything else → hex string

    Raises:
        SnmpDecodeError: if an integer-typed value is not numeric.
    """
    if raw is None:
        return None

    if type_tag in _INTEGER_TAGS:
        try:
            if isinstance(raw, (bytes, bytearray)):
                return _to_int64(int.from_bytes(raw, "big", signed=True))
            return _to_int64(int(raw))
        except (TypeError, ValueError) as e:
            raise SnmpDecodeError(
                f"{type_tag} value is not numeric: {raw!r}"
            ) from e

    if type_tag in _DOTTED_TAGS:
        return str(raw)

    if isinstance(raw, (bytes, bytearray)):
        if type_tag in _TEXT_TAGS:
            try:
                text = bytes(raw).decode("utf-8")
            except UnicodeDecodeError:
                return bytes(raw).hex()
            if _is_printable(text):
                return text
        return bytes(raw).hex()

    if isinstance(raw, int):
        return _to_int64(raw)
    return str(raw)


def _type_tag_of(val: Any) -> str:
    """Nearest known SMI type name in the value's class hierarchy."""
    for cls in type(val).__mro__:
        if cls.__name__ in _KNOWN_TAGS:
            return cls.__name__
    return type(val).__name__


def _raw_of(val: Any, type_tag: str) -> Any:
    """Extract the raw payload from a pysnmp value object."""
    if type_tag in _INTEGER_TAGS:
        return int(val)
    if type_tag in _DOTTED_TAGS:
        return val.prettyPrint()
    if hasattr(val, "asOctets"):
        return val.asOctets()
    return val.prettyPrint() if hasattr(val, "prettyPrint") else val


def decode_varbind(oid: Any, val: Any) -> Varbind:
    """Turn one pysnmp (name, value) pair into a ``Varbind``."""
    oid_str = str(oid)
    type_tag = _type_tag_of(val)
    if type_tag in _ERROR_TAGS:
        return Varbind(oid=oid_str, type_tag=type_tag, error=_ERROR_TAGS[type_tag])
    try:
        value = decode_value(_raw_of(val, type_tag), type_tag)
    except SnmpDecodeError as e:
        logger.debug("Decode failed for %s: %s", oid_str, e)
        return Varbind(oid=oid_str, type_tag=type_tag, error=str(e))
    return Varbind(oid=oid_str, value=value, type_tag=type_tag)


def oid_index(oid: str, prefix: str) -> str:
    """Extract the index portion after the OID prefix."""
    # e.g. prefix="1.3.6.1.2.1.2.2.1.3", oid="1.3.6.1.2.1.2.2.1.3.5" → "5"
    return oid[len(prefix.rstrip(".")) + 1:]


def _oid_key(oid: str) -> tuple[int, ...]:
    try:
        return tuple(int(p) for p in oid.strip(".").split("."))
    except ValueError:
        return ()


def _in_subtree(oid: str, prefix: str) -> bool:
    return oid.startswith(prefix + ".")


# ── Transport handle ────────────────────────────────────────────────


class SnmpTransport(ABC):
    """
    An open SNMP session to one target.

    ``close()`` is idempotent; the handle can also be used as an async
    context manager.
    """

    def __init__(self, target: SnmpTarget) -> None:
        self.target = target
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @abstractmethod
    async def get(self, *oids: str) -> list[Varbind]:
        """
        SNMP GET for one or more scalar OIDs.

        Returns:
            One ``Varbind`` per requested OID, in request order. Missing
            objects come back as error-marked items, not exceptions.

        Raises:
            SnmpTimeoutError: if request times out.
            SnmpError: on other request-level errors.
        """

    @abstractmethod
    def walk(self, root_oid: str) -> AsyncIterator[list[Varbind]]:
        """
        Walk the subtree under ``root_oid``.

        Yields batches of ``Varbind`` in lexicographic order until the
        subtree is exhausted. Request-level failures raise; per-item
        errors arrive as error-marked items inside a batch.
        """

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._close()

    async def _close(self) -> None:
        """Release underlying resources (called at most once)."""

    async def __aenter__(self) -> SnmpTransport:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()


class SnmpEngineBase(ABC):
    """Factory of transport sessions."""

    @abstractmethod
    async def open(self, target: SnmpTarget) -> SnmpTransport:
        """
        Open a transport session to ``target``.

        Raises:
            SnmpConnectError: if the session cannot be established.
        """

    @asynccontextmanager
    async def session(self, target: SnmpTarget) -> AsyncIterator[SnmpTransport]:
        """Open a session that is always closed when the block exits."""
        transport = await self.open(target)
        try:
            yield transport
        finally:
            await transport.close()


def _flatten(var_binds: Sequence[Any]) -> list[Any]:
    """bulk_cmd may return a flat list or a 2-D table of ObjectType rows."""
    flat: list[Any] = []
    for item in var_binds:
        if isinstance(item, list):
            flat.extend(item)
        else:
            flat.append(item)
    return flat


def _raise_for_indication(error_indication: Any, target: SnmpTarget, what: str) -> None:
    err_str = str(error_indication)
    if "timeout" in err_str.lower() or "timed out" in err_str.lower():
        raise SnmpTimeoutError(f"SNMP {what} timeout: {target.ip}")
    raise SnmpError(f"SNMP {what} error: {err_str}")


class PysnmpTransport(SnmpTransport):
    """pysnmp-backed session (one SnmpEngine + one UDP transport target)."""

    def __init__(
        self,
        target: SnmpTarget,
        snmp_engine: Any,
        udp_target: Any,
        max_repetitions: int,
    ) -> None:
        super().__init__(target)
        self._engine = snmp_engine
        self._udp = udp_target
        self._max_repetitions = max_repetitions

    def _auth(self) -> Any:
        from pysnmp.hlapi.v3arch.asyncio import CommunityData

        return CommunityData(
            self.target.community, mpModel=self.target.version.mp_model,
        )

    async def get(self, *oids: str) -> list[Varbind]:
        from pysnmp.hlapi.v3arch.asyncio import (
            ContextData,
            ObjectIdentity,
            ObjectType,
            get_cmd,
        )

        if self._closed:
            raise SnmpTransportError(f"Session to {self.target.ip} is closed")

        try:
            error_indication, error_status, error_index, var_binds = await get_cmd(
                self._engine,
                self._auth(),
                self._udp,
                ContextData(),
                *[ObjectType(ObjectIdentity(oid)) for oid in oids],
                lookupMib=False,
            )
        except OSError as e:
            raise SnmpTransportError(f"SNMP GET transport failure: {e}") from e

        if error_indication:
            _raise_for_indication(error_indication, self.target, "GET")

        if error_status:
            # v1 agents answer a missing OID with noSuchName for the whole PDU
            if error_status.prettyPrint() == "noSuchName" and len(oids) == 1:
                return [Varbind(oid=oids[0], error="noSuchName")]
            raise SnmpError(
                f"SNMP GET error status: {error_status.prettyPrint()} "
                f"at {var_binds[int(error_index) - 1][0] if error_index else '?'}"
            )

        return [decode_varbind(oid, val) for oid, val in var_binds]

    async def walk(self, root_oid: str) -> AsyncIterator[list[Varbind]]:
        from pysnmp.hlapi.v3arch.asyncio import (
            ContextData,
            ObjectIdentity,
            ObjectType,
            bulk_cmd,
            next_cmd,
        )

        if self._closed:
            raise SnmpTransportError(f"Session to {self.target.ip} is closed")

        prefix = root_oid.strip(".")
        current = prefix
        last_key: tuple[int, ...] = ()
        auth = self._auth()
        context = ContextData()

        while True:
            try:
                if self.target.version is SnmpVersion.V1:
                    error_indication, error_status, _, var_binds = await next_cmd(
                        self._engine, auth, self._udp, context,
                        ObjectType(ObjectIdentity(current)),
                        lookupMib=False,
                    )
                else:
                    error_indication, error_status, _, var_binds = await bulk_cmd(
                        self._engine, auth, self._udp, context,
                        0,  # non-repeaters
                        self._max_repetitions,
                        ObjectType(ObjectIdentity(current)),
                        lookupMib=False,
                    )
            except OSError as e:
                raise SnmpTransportError(f"SNMP WALK transport failure: {e}") from e

            if error_indication:
                _raise_for_indication(error_indication, self.target, "WALK")

            if error_status:
                # v1 signals end of MIB view with noSuchName
                if error_status.prettyPrint() == "noSuchName":
                    return
                raise SnmpError(
                    f"SNMP WALK error status: {error_status.prettyPrint()}"
                )

            rows = _flatten(var_binds)
            if not rows:
                return

            batch: list[Varbind] = []
            out_of_scope = False
            for oid, val in rows:
                oid_str = str(oid)
                if not _in_subtree(oid_str, prefix):
                    out_of_scope = True
                    break
                if val.__class__.__name__ == "EndOfMibView":
                    out_of_scope = True
                    break
                key = _oid_key(oid_str)
                if key <= last_key:
                    raise SnmpError(
                        f"SNMP WALK OID not increasing on {self.target.ip}: {oid_str}"
                    )
                last_key = key
                batch.append(decode_varbind(oid_str, val))
                current = oid_str

            if batch:
                yield batch
            if out_of_scope:
                return

    async def _close(self) -> None:
        try:
            self._engine.close_dispatcher()
        except Exception as e:  # noqa: BLE001
            logger.warning("Error closing SNMP session to %s: %s", self.target.ip, e)


@dataclass
class SnmpEngineConfig:
    """Engine-level configuration."""

    max_repetitions: int = 25


class AsyncSnmpEngine(SnmpEngineBase):
    """
    Opens pysnmp-backed transport sessions.

    Each session owns its own pysnmp SnmpEngine so that closing one
    session never disturbs another.
    """

    def __init__(self, config: SnmpEngineConfig | None = None) -> None:
        self._config = config or SnmpEngineConfig()

    async def open(self, target: SnmpTarget) -> SnmpTransport:
        from pysnmp.error import PySnmpError
        from pysnmp.hlapi.v3arch.asyncio import SnmpEngine as PySnmpEngine
        from pysnmp.hlapi.v3arch.asyncio import UdpTransportTarget

        try:
            udp_target = await UdpTransportTarget.create(
                (target.ip, target.port),
                timeout=target.timeout,
                retries=target.retries,
            )
        except (PySnmpError, OSError) as e:
            raise SnmpConnectError(
                f"Cannot open SNMP session to {target.ip}:{target.port}: {e}"
            ) from e

        logger.debug(
            "Opened SNMPv%s session to %s:%d (timeout=%.1fs retries=%d)",
            target.version.value, target.ip, target.port,
            target.timeout, target.retries,
        )
        return PysnmpTransport(
            target, PySnmpEngine(), udp_target, self._config.max_repetitions,
        )
