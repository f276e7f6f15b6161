from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from apcupsd_nut_proxy.apcaccess import ApcAccessConfig

if TYPE_CHECKING:
    from apcupsd_nut_proxy.resolvers import Resolver


@dataclass(frozen=True)
class ProxyConfig:
    address: str = "127.0.0.1"
    port: int = 3493
    ups_name: str = "ups"
    ups_description: str = "apcupsd NUT proxy"
    timeout_seconds: float = 30.0
    apcaccess: ApcAccessConfig = field(default_factory=ApcAccessConfig)
    variables: Mapping[str, Resolver] = field(default_factory=lambda: MappingProxyType({}))

    def __str__(self) -> str:
        return (
            f"ProxyConfig(address={self.address}, port={self.port}, "
            f"target_address={self.apcaccess.target_address}, "
            f'ups_name="{self.ups_name}", ups_description="{self.ups_description}", '
            f"apcaccess_bin={self.apcaccess.apcaccess_bin}, timeout_seconds={self.timeout_seconds}, "
            f"variables={len(self.variables)})"
        )
