"""
Application configuration using pydantic-settings.

All settings are loaded from environment variables or .env file.

Nested config uses the ``__`` delimiter::

    SNMP__MOCK=true
    SESSION__IDLE_TTL_SECONDS=1800
    MAC__VLAN_WALK_TIMEOUT=3.0
"""
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SnmpConfig(BaseModel):
    """Protocol-level defaults shared by every discovery call."""

    port: int = 161
    default_community: str = "public"
    default_version: str = "2c"
    max_repetitions: int = 25
    mock: bool = False  # serve deterministic fake devices, no UDP traffic


class SessionConfig(BaseModel):
    """Interactive session registry.

    Sessions idle longer than ``idle_ttl_seconds`` are closed by a sweep
    that runs every ``sweep_interval_seconds``.
    """

    idle_ttl_seconds: int = 30 * 60
    sweep_interval_seconds: int = 5 * 60
    timeout: float = 2.0
    retries: int = 0


class IdentityConfig(BaseModel):
    """Device identity resolver (sysDescr/sysObjectID classification)."""

    timeout: float = 5.0
    retries: int = 1
    inventory_refinement: bool = True
    inventory_max_rows: int = 10
    inventory_candidates: int = 5
    interface_refinement: bool = True
    ethernet_threshold: int = 10
    wan_threshold: int = 3


class VlanConfig(BaseModel):
    """VLAN discovery (vtpVlanState / vtpVlanName walks)."""

    timeout: float = 5.0
    retries: int = 1


class MacConfig(BaseModel):
    """MAC address discovery (per-VLAN BRIDGE-MIB walks).

    Each VLAN walk gets a short protocol timeout with no retries and a
    wall-clock cap; whatever was collected when the cap expires is kept.
    ``resolve_ports`` maps bridge ports to interface names per VLAN.
    """

    timeout: float = 1.0
    retries: int = 0
    vlan_walk_timeout: float = 3.0
    default_vlan: int = 1
    resolve_ports: bool = True


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    snmp: SnmpConfig = SnmpConfig()
    session: SessionConfig = SessionConfig()
    identity: IdentityConfig = IdentityConfig()
    vlan: VlanConfig = VlanConfig()
    mac: MacConfig = MacConfig()

    # Application
    app_name: str = Field(
        default="netdiscovery",
        description="Application name",
    )
    app_debug: bool = Field(default=False, description="Debug mode")
    api_prefix: str = Field(default="/api", description="API prefix")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance (Singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
