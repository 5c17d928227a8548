"""
SNMP Discovery Module.

以 SNMP v1/v2c 探索設備身分、VLAN 與 MAC 位址表。

架構：
    AsyncSnmpEngine           — pysnmp async wrapper (open → get/walk → close)
    MockSnmpEngine            — same interface, fake devices (SNMP__MOCK=true)
    SnmpSessionRegistry       — interactive sessions with idle reaping
    DeviceIdentityResolver    — manufacturer / model / type
    VlanDiscoveryEngine       — CISCO-VTP-MIB active VLANs
    MacAddressDiscoveryEngine — per-VLAN BRIDGE-MIB forwarding table (streamed)
"""
