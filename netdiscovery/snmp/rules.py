"""
Device identification rules.

Manufacturer, model and device type are resolved from sysObjectID and
sysDescr with ordered ``(predicate, result)`` rule lists evaluated
first-match-wins. Each table can be tested and extended on its own.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from netdiscovery.core.enums import DeviceCategory

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Rule(Generic[T]):
    """Return ``result`` when ``predicate`` holds for the input text."""

    predicate: Callable[[str], bool]
    result: T
    label: str = ""


def first_match(rules: Iterable[Rule[T]], value: str) -> T | None:
    for rule in rules:
        if rule.predicate(value):
            logger.debug("Rule %r matched %r -> %s", rule.label, value, rule.result)
            return rule.result
    return None


def _contains(*needles: str) -> Callable[[str], bool]:
    return lambda text: any(n in text for n in needles)


def _contains_ci(*keywords: str) -> Callable[[str], bool]:
    lowered = tuple(k.lower() for k in keywords)
    return lambda text: any(k in text.lower() for k in lowered)


# ── Manufacturer (sysObjectID enterprise prefix) ─────────────────

ENTERPRISE_PREFIXES: dict[str, str] = {
    "1.3.6.1.4.1.9.": "Cisco",
    "1.3.6.1.4.1.2636.": "Juniper",
    "1.3.6.1.4.1.4526.": "Aruba",
    "1.3.6.1.4.1.11.": "HP",
    "1.3.6.1.4.1.171.": "D-Link",
    "1.3.6.1.4.1.1916.": "Extreme",
    "1.3.6.1.4.1.6889.": "Avaya",
    "1.3.6.1.4.1.890.": "Zyxel",
    "1.3.6.1.4.1.3375.": "F5",
    "1.3.6.1.4.1.12356.": "Fortinet",
    "1.3.6.1.4.1.14988.": "Mikrotik",
    "1.3.6.1.4.1.25461.": "Palo Alto",
    "1.3.6.1.4.1.1991.": "Brocade",
}

# Longest prefix first so a more specific entry always wins
MANUFACTURER_RULES: list[Rule[str]] = [
    Rule(lambda oid, p=prefix: oid.startswith(p), vendor, prefix)
    for prefix, vendor in sorted(
        ENTERPRISE_PREFIXES.items(), key=lambda kv: len(kv[0]), reverse=True,
    )
]


def resolve_manufacturer(sys_object_id: str | None) -> str | None:
    if not sys_object_id:
        return None
    # Leading dot is legal in textual OIDs
    return first_match(MANUFACTURER_RULES, sys_object_id.lstrip("."))


# ── Model (sysDescr) ─────────────────────────────────────────────

# Cisco: "Cisco IOS Software, C2960 Software ..." / "WS-C3750E-48PD"
_CISCO_MODEL_RE = re.compile(r"C\d+|CSR\d+|ASR\d+|ISR\d+|Nexus \d+|WS-\w+", re.IGNORECASE)
# Juniper: "... ex4200-48t Ethernet Switch ..."
_JUNIPER_MODEL_RE = re.compile(r"srx\d+|ex\d+|mx\d+|qfx\d+", re.IGNORECASE)
# HP / Aruba: "HP J9729A 2920-48G-POE+ Switch" / "Aruba 2930F"
_HP_MODEL_RE = re.compile(r"\b[A-Z]\d{4}[A-Z]?\b|\bJ\d{4}[A-Z]\b")
# Any UPPER-UPPER token, e.g. "FG-300E"
GENERIC_MODEL_RE = re.compile(r"[A-Z0-9]+-[A-Z0-9]+")


@dataclass(frozen=True)
class ModelPattern:
    pattern: re.Pattern[str]
    upper: bool = False

    def extract(self, text: str) -> str | None:
        m = self.pattern.search(text)
        if m is None:
            return None
        return m.group(0).upper() if self.upper else m.group(0)


MODEL_PATTERNS: dict[str, ModelPattern] = {
    "Cisco": ModelPattern(_CISCO_MODEL_RE),
    "Juniper": ModelPattern(_JUNIPER_MODEL_RE, upper=True),
    "HP": ModelPattern(_HP_MODEL_RE),
    "Aruba": ModelPattern(_HP_MODEL_RE),
}
GENERIC_MODEL = ModelPattern(GENERIC_MODEL_RE)


def resolve_model(sys_descr: str | None, manufacturer: str | None) -> str | None:
    """
    Vendor pattern when the manufacturer has one, generic token otherwise.

    A vendor with its own pattern does not fall back to the generic one.
    """
    if not sys_descr:
        return None
    pattern = MODEL_PATTERNS.get(manufacturer or "", GENERIC_MODEL)
    return pattern.extract(sys_descr)


# Chassis names from ENTITY-MIB that look like a product number
MODEL_PREFIX_RE = re.compile(
    r"^(WS-|C\d|N\dK|N\d{2}K|ISR|ASR|CSR|AIR-|CISCO\d|CAT\d|IE-)",
    re.IGNORECASE,
)


def looks_like_model(value: str) -> bool:
    return bool(MODEL_PREFIX_RE.match(value.strip()))


# ── Device type ──────────────────────────────────────────────────

TYPE_OID_RULES: list[Rule[DeviceCategory]] = [
    Rule(
        _contains("1.3.6.1.4.1.9.1.516", "1.3.6.1.4.1.9.1.1745"),
        DeviceCategory.SWITCH, "cisco switch oid",
    ),
    Rule(
        _contains("1.3.6.1.4.1.9.1.525", "1.3.6.1.4.1.9.1.1639"),
        DeviceCategory.ROUTER, "cisco router oid",
    ),
    Rule(_contains("1.3.6.1.4.1.14823.1.2."), DeviceCategory.AP, "aruba ap oid"),
    Rule(
        _contains("1.3.6.1.4.1.9.1.1250", "1.3.6.1.4.1.12356.101.1"),
        DeviceCategory.FIREWALL, "firewall oid",
    ),
]

TYPE_KEYWORD_RULES: list[Rule[DeviceCategory]] = [
    Rule(_contains_ci("switch", "catalyst", "nexus"), DeviceCategory.SWITCH, "switch keyword"),
    Rule(_contains_ci("router", "isr", "asr"), DeviceCategory.ROUTER, "router keyword"),
    Rule(_contains_ci("wireless", "access point", "aironet"), DeviceCategory.AP, "ap keyword"),
    Rule(_contains_ci("firewall", "asa", "fortigate"), DeviceCategory.FIREWALL, "firewall keyword"),
    Rule(_contains_ci("controller"), DeviceCategory.CONTROLLER, "controller keyword"),
]


def resolve_device_type(
    sys_descr: str | None, sys_object_id: str | None,
) -> DeviceCategory:
    """sysObjectID rules first, sysDescr keywords second, Other by default."""
    if sys_object_id:
        category = first_match(TYPE_OID_RULES, sys_object_id)
        if category is not None:
            return category
    if sys_descr:
        category = first_match(TYPE_KEYWORD_RULES, sys_descr)
        if category is not None:
            return category
    return DeviceCategory.OTHER
