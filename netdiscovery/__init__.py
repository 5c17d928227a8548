"""
netdiscovery — SNMP discovery and query engine.

Identifies network devices (make/model/type), enumerates their VLANs and
walks bridge forwarding tables to collect MAC addresses per VLAN.
"""
