"""Tests for the placeholder OUI classifier."""
from __future__ import annotations

import pytest

from netdiscovery.core.enums import MacDeviceType
from netdiscovery.snmp.oui import CATEGORIES, HashOuiClassifier, oui_of


class TestHashOuiClassifier:
    def test_octet_sum_modulo_categories(self):
        classifier = HashOuiClassifier()
        # 0x00 + 0x11 + 0x22 = 51 → 51 % 5 = 1
        assert classifier.classify((0x00, 0x11, 0x22)) is MacDeviceType.MOBILE
        assert classifier.classify(b"\x00\x00\x00") is MacDeviceType.DESKTOP
        assert classifier.classify(bytes([255, 255, 255])) is CATEGORIES[765 % 5]

    def test_deterministic(self):
        classifier = HashOuiClassifier()
        assert classifier.classify(oui_of("AC:DE:48:00:11:22")) is classifier.classify((0xAC, 0xDE, 0x48))

    def test_custom_categories(self):
        classifier = HashOuiClassifier([MacDeviceType.IOT])
        assert classifier.classify((1, 2, 3)) is MacDeviceType.IOT

    def test_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            HashOuiClassifier().classify((1, 2))

    def test_rejects_empty_categories(self):
        with pytest.raises(ValueError):
            HashOuiClassifier([])

    def test_oui_of(self):
        assert oui_of("0A:0B:0C:0D:0E:0F") == b"\x0a\x0b\x0c"
