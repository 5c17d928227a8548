"""
Consumers for the MAC discovery stream.

The stream is a run of MacDiscoveryChunk items followed by exactly one
MacDiscoverySummary.

- to_ndjson(): one JSON object per line, for HTTP streaming
    {"type": "vlan", "vlan_id": 10, "records": [...], ...}
    {"type": "summary", "vlan_ids": [1, 10], "status": "success", ...}
- collect(): buffer into a MacDiscoveryResult for callers without streaming
"""
from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator

from netdiscovery.schemas.discovery import (
    MacAddressRecord,
    MacDiscoveryChunk,
    MacDiscoveryResult,
    MacDiscoverySummary,
)


class StreamProtocolError(RuntimeError):
    """The stream did not end with exactly one summary."""


def _line(kind: str, item: MacDiscoveryChunk | MacDiscoverySummary) -> str:
    payload = {"type": kind, **item.model_dump(mode="json")}
    return json.dumps(payload, ensure_ascii=False) + "\n"


async def to_ndjson(
    stream: AsyncIterable[MacDiscoveryChunk | MacDiscoverySummary],
) -> AsyncIterator[str]:
    async for item in stream:
        if isinstance(item, MacDiscoverySummary):
            yield _line("summary", item)
        else:
            yield _line("vlan", item)


async def collect(
    stream: AsyncIterable[MacDiscoveryChunk | MacDiscoverySummary],
) -> MacDiscoveryResult:
    """
    Buffer a whole sweep, keeping per-VLAN order.

    Raises:
        StreamProtocolError: no summary, or items after the summary.
    """
    records: list[MacAddressRecord] = []
    summary: MacDiscoverySummary | None = None

    async for item in stream:
        if summary is not None:
            raise StreamProtocolError("Item received after the terminal summary")
        if isinstance(item, MacDiscoverySummary):
            summary = item
        else:
            records.extend(item.records)

    if summary is None:
        raise StreamProtocolError("Stream ended without a summary")

    return MacDiscoveryResult(
        mac_addresses=records,
        vlan_ids=summary.vlan_ids,
        status=summary.status,
        failed_vlans=summary.failed_vlans,
        timed_out_vlans=summary.timed_out_vlans,
    )
