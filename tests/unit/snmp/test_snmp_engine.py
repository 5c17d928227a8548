"""
Unit tests for the SNMP transport layer (netdiscovery.snmp.engine).

Covers value decoding, pysnmp varbind conversion, the session context
manager and the PysnmpTransport walk loop (pysnmp calls patched).
"""
from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from netdiscovery.core.enums import SnmpVersion
from netdiscovery.snmp.engine import (
    PysnmpTransport,
    SnmpDecodeError,
    SnmpEngineBase,
    SnmpError,
    SnmpTarget,
    SnmpTimeoutError,
    SnmpTransport,
    SnmpTransportError,
    Varbind,
    _flatten,
    _raise_for_indication,
    decode_value,
    decode_varbind,
    oid_index,
)

# ── Stand-ins for pysnmp value classes (matched by class name) ──────


class Integer32(int):
    pass


class Counter64(int):
    pass


class OctetString:
    def __init__(self, data: bytes) -> None:
        self._data = data

    def asOctets(self) -> bytes:
        return self._data


class ObjectIdentifier:
    def __init__(self, oid: str) -> None:
        self._oid = oid

    def prettyPrint(self) -> str:
        return self._oid


class NoSuchInstance:
    pass


class EndOfMibView:
    pass


class _Status:
    def __init__(self, name: str) -> None:
        self._name = name

    def __bool__(self) -> bool:
        return True

    def prettyPrint(self) -> str:
        return self._name


# =====================================================================
# 1. decode_value
# =====================================================================


class TestDecodeValue:
    def test_printable_octets_become_text(self):
        assert decode_value(b"core-sw-01", "OctetString") == "core-sw-01"

    def test_multiline_text_is_kept(self):
        assert decode_value(b"line1\r\nline2\tx", "OctetString") == "line1\r\nline2\tx"

    def test_binary_octets_become_hex(self):
        # A MAC address as raw OctetString
        assert decode_value(b"\x00\x11\x22\x33\x44\x55", "OctetString") == "001122334455"

    def test_invalid_utf8_becomes_hex(self):
        assert decode_value(b"\xff\xfe", "OctetString") == "fffe"

    def test_integer_family(self):
        for tag in ("Integer", "Integer32", "Counter32", "Gauge32", "TimeTicks", "Unsigned32"):
            assert decode_value(42, tag) == 42

    def test_counter64_wraps_to_signed(self):
        assert decode_value(2**64 - 1, "Counter64") == -1
        assert decode_value(2**63 - 1, "Counter64") == 2**63 - 1

    def test_integer_from_bytes(self):
        assert decode_value(b"\x01\x00", "Integer32") == 256

    def test_non_numeric_integer_raises(self):
        with pytest.raises(SnmpDecodeError):
            decode_value("abc", "Integer32")

    def test_dotted_types_are_text(self):
        assert decode_value("1.3.6.1.4.1.9.1.516", "ObjectIdentifier") == "1.3.6.1.4.1.9.1.516"
        assert decode_value("192.168.1.1", "IpAddress") == "192.168.1.1"

    def test_unknown_bytes_become_hex(self):
        assert decode_value(b"\x01\x02", "Opaque") == "0102"

    def test_none(self):
        assert decode_value(None, "OctetString") is None


# =====================================================================
# 2. decode_varbind
# =====================================================================


class TestDecodeVarbind:
    def test_integer(self):
        vb = decode_varbind("1.3.6.1.2.1.2.2.1.3.1", Integer32(6))
        assert vb == Varbind(oid="1.3.6.1.2.1.2.2.1.3.1", value=6, type_tag="Integer32")
        assert not vb.is_error

    def test_counter64_subclass_tag(self):
        vb = decode_varbind("1.3.6.1.2.1.31.1.1.1.6.1", Counter64(10))
        assert vb.type_tag == "Counter64"
        assert vb.value == 10

    def test_octet_string(self):
        vb = decode_varbind("1.3.6.1.2.1.1.5.0", OctetString(b"sw1"))
        assert vb.value == "sw1"
        assert vb.type_tag == "OctetString"

    def test_object_identifier(self):
        vb = decode_varbind("1.3.6.1.2.1.1.2.0", ObjectIdentifier("1.3.6.1.4.1.9.1.516"))
        assert vb.value == "1.3.6.1.4.1.9.1.516"

    def test_no_such_instance_is_error_marker(self):
        vb = decode_varbind("1.3.6.1.2.1.1.6.0", NoSuchInstance())
        assert vb.is_error
        assert vb.error == "noSuchInstance"
        assert vb.value is None


# =====================================================================
# 3. Helpers
# =====================================================================


class TestHelpers:
    def test_oid_index(self):
        assert oid_index("1.3.6.1.2.1.2.2.1.3.5", "1.3.6.1.2.1.2.2.1.3") == "5"
        assert oid_index("1.3.6.1.2.1.17.4.3.1.2.0.1.2.3.4.5", "1.3.6.1.2.1.17.4.3.1.2.") == "0.1.2.3.4.5"

    def test_flatten_table_rows(self):
        assert _flatten([["a", "b"], ["c"]]) == ["a", "b", "c"]
        assert _flatten([("oid", 1), ("oid2", 2)]) == [("oid", 1), ("oid2", 2)]

    def test_indication_timeout(self):
        target = SnmpTarget(ip="10.0.0.1")
        with pytest.raises(SnmpTimeoutError):
            _raise_for_indication("No SNMP response received before timeout", target, "GET")

    def test_indication_other(self):
        target = SnmpTarget(ip="10.0.0.1")
        with pytest.raises(SnmpError) as exc_info:
            _raise_for_indication("Unknown USM user", target, "GET")
        assert not isinstance(exc_info.value, SnmpTimeoutError)

    def test_version_mp_model(self):
        assert SnmpVersion.V1.mp_model == 0
        assert SnmpVersion.V2C.mp_model == 1


# =====================================================================
# 4. Session lifecycle
# =====================================================================


class _CountingTransport(SnmpTransport):
    def __init__(self, target: SnmpTarget) -> None:
        super().__init__(target)
        self.close_calls = 0

    async def get(self, *oids: str) -> list[Varbind]:
        return []

    async def walk(self, root_oid: str):
        yield []

    async def _close(self) -> None:
        self.close_calls += 1


class _Engine(SnmpEngineBase):
    def __init__(self) -> None:
        self.last: _CountingTransport | None = None

    async def open(self, target: SnmpTarget) -> SnmpTransport:
        self.last = _CountingTransport(target)
        return self.last


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        transport = _CountingTransport(SnmpTarget(ip="10.0.0.1"))
        await transport.close()
        await transport.close()
        assert transport.closed
        assert transport.close_calls == 1

    @pytest.mark.asyncio
    async def test_session_closes_on_error(self):
        engine = _Engine()
        with pytest.raises(RuntimeError):
            async with engine.session(SnmpTarget(ip="10.0.0.1")):
                raise RuntimeError("boom")
        assert engine.last is not None
        assert engine.last.close_calls == 1


# =====================================================================
# 5. PysnmpTransport walk loop
# =====================================================================

ROOT = "1.3.6.1.2.1.2.2.1.3"


def _transport(version: SnmpVersion = SnmpVersion.V2C) -> PysnmpTransport:
    target = SnmpTarget(ip="10.0.0.1", version=version)
    return PysnmpTransport(target, snmp_engine=object(), udp_target=object(), max_repetitions=2)


async def _collect(transport: PysnmpTransport) -> list[list[Varbind]]:
    return [batch async for batch in transport.walk(ROOT)]


class TestPysnmpWalk:
    @pytest.mark.asyncio
    async def test_stops_outside_subtree(self):
        responses = [
            (None, 0, 0, [(f"{ROOT}.1", Integer32(6)), (f"{ROOT}.2", Integer32(6))]),
            (None, 0, 0, [(f"{ROOT}.3", Integer32(23)), ("1.3.6.1.2.1.2.2.1.4.1", Integer32(1500))]),
        ]
        with patch("pysnmp.hlapi.v3arch.asyncio.bulk_cmd", AsyncMock(side_effect=responses)) as bulk:
            batches = await _collect(_transport())

        assert [[vb.value for vb in b] for b in batches] == [[6, 6], [23]]
        assert bulk.await_count == 2

    @pytest.mark.asyncio
    async def test_v1_uses_getnext(self):
        responses = [
            (None, 0, 0, [(f"{ROOT}.1", Integer32(6))]),
            (None, _Status("noSuchName"), 1, []),
        ]
        with patch("pysnmp.hlapi.v3arch.asyncio.next_cmd", AsyncMock(side_effect=responses)) as nxt, \
             patch("pysnmp.hlapi.v3arch.asyncio.bulk_cmd", AsyncMock()) as bulk:
            batches = await _collect(_transport(SnmpVersion.V1))

        assert len(batches) == 1
        assert nxt.await_count == 2
        bulk.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_end_of_mib_view_ends_walk(self):
        responses = [(None, 0, 0, [(f"{ROOT}.1", Integer32(6)), (f"{ROOT}.1", EndOfMibView())])]
        with patch("pysnmp.hlapi.v3arch.asyncio.bulk_cmd", AsyncMock(side_effect=responses)):
            batches = await _collect(_transport())
        assert [vb.oid for vb in batches[0]] == [f"{ROOT}.1"]

    @pytest.mark.asyncio
    async def test_non_increasing_oid_raises(self):
        responses = [
            (None, 0, 0, [(f"{ROOT}.5", Integer32(6))]),
            (None, 0, 0, [(f"{ROOT}.2", Integer32(6))]),
        ]
        with patch("pysnmp.hlapi.v3arch.asyncio.bulk_cmd", AsyncMock(side_effect=responses)):
            with pytest.raises(SnmpError, match="not increasing"):
                await _collect(_transport())

    @pytest.mark.asyncio
    async def test_timeout_indication(self):
        responses = [("No SNMP response received before timeout", 0, 0, [])]
        with patch("pysnmp.hlapi.v3arch.asyncio.bulk_cmd", AsyncMock(side_effect=responses)):
            with pytest.raises(SnmpTimeoutError):
                await _collect(_transport())

    @pytest.mark.asyncio
    async def test_socket_error_is_transport_error(self):
        with patch("pysnmp.hlapi.v3arch.asyncio.bulk_cmd", AsyncMock(side_effect=OSError("net down"))):
            with pytest.raises(SnmpTransportError):
                await _collect(_transport())

    @pytest.mark.asyncio
    async def test_walk_on_closed_session(self):
        transport = _transport()
        transport._closed = True
        with pytest.raises(SnmpTransportError):
            await _collect(transport)
