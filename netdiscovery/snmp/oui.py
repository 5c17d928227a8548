"""
MAC device-type classification by OUI.

``HashOuiClassifier`` is a placeholder: it spreads OUIs over the category
set by summing the three octets. It is NOT a vendor database and the label
carries no meaning about the actual host. Swap in any object with a
``classify(oui) -> MacDeviceType`` method to use a real lookup.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from netdiscovery.core.enums import MacDeviceType

CATEGORIES: tuple[MacDeviceType, ...] = (
    MacDeviceType.DESKTOP,
    MacDeviceType.MOBILE,
    MacDeviceType.IOT,
    MacDeviceType.SERVER,
    MacDeviceType.NETWORK,
)


class OuiClassifier(Protocol):
    def classify(self, oui: Sequence[int]) -> MacDeviceType: ...


class HashOuiClassifier:
    """Deterministic placeholder classifier (octet sum modulo category count)."""

    def __init__(self, categories: Sequence[MacDeviceType] = CATEGORIES) -> None:
        if not categories:
            raise ValueError("categories must not be empty")
        self._categories = tuple(categories)

    def classify(self, oui: Sequence[int]) -> MacDeviceType:
        if len(oui) != 3:
            raise ValueError(f"OUI must be 3 octets, got {len(oui)}")
        return self._categories[sum(oui) % len(self._categories)]


def oui_of(mac_address: str) -> bytes:
    """First three octets of ``AA:BB:CC:DD:EE:FF``."""
    return bytes(int(part, 16) for part in mac_address.split(":")[:3])
