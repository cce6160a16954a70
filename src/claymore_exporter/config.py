"""
Exporter configuration.

The CLI fills this from flags and CLAYMORE_* environment variables
(the names earlier claymore exporters read), then validate() checks
it before anything touches the network.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

from claymore_exporter.collector.base import RigSource
from claymore_exporter.collector.claymore_collector import ClaymoreSource
from claymore_exporter.collector.mock_collector import MockSource
from claymore_exporter.collector.rig_client import DEFAULT_METHOD, DEFAULT_PORT, PROTOCOL_FAMILIES
from claymore_exporter.errors import ConfigError

DEFAULT_LISTEN_ADDRESS = ":10333"
DEFAULT_METRICS_PATH = "/metrics"

_ADDR_SEPARATORS = re.compile(r"[;,\s]+")


def parse_dial_addrs(raw: str) -> List[str]:
    """Split the rig list, e.g. "10.0.0.2;10.0.0.3". Commas work too."""
    if not raw:
        return []
    return [addr for addr in _ADDR_SEPARATORS.split(raw.strip()) if addr]


def parse_listen_address(raw: str) -> Tuple[str, int]:
    """Accepts ":10333", "0.0.0.0:10333" or "[::]:10333"."""
    host, sep, port = raw.rpartition(":")
    if not sep:
        raise ConfigError(f"listen address {raw!r} must be host:port or :port")
    host = host.strip("[]")
    try:
        port_num = int(port)
    except ValueError:
        raise ConfigError(f"listen address {raw!r} has a non-numeric port") from None
    if not 0 <= port_num <= 65535:
        raise ConfigError(f"listen port {port_num} out of range")
    return host, port_num


@dataclass
class ExporterConfig:
    dial_addrs: List[str] = field(default_factory=list)
    port: int = DEFAULT_PORT
    proto: str = "tcp"
    method: str = DEFAULT_METHOD
    timeout_seconds: float = 5.0
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    metrics_path: str = DEFAULT_METRICS_PATH
    mock_rigs: int = 0

    @property
    def scrape_timeout(self) -> float:
        # Connect and read each get the socket timeout, plus some slack
        return self.timeout_seconds * 2 + 1

    def validate(self):
        if not self.mock_rigs and not self.dial_addrs:
            raise ConfigError(
                "no rigs configured, set CLAYMORE_DIAL_ADDR "
                "(e.g. export CLAYMORE_DIAL_ADDR=192.168.1.1;192.168.1.2) or pass --dial-addr"
            )
        if not 1 <= self.port <= 65535:
            raise ConfigError(f"rig port {self.port} out of range")
        if self.proto not in PROTOCOL_FAMILIES:
            raise ConfigError(f"unsupported protocol {self.proto!r}, use one of {sorted(PROTOCOL_FAMILIES)}")
        if not self.method:
            raise ConfigError("RPC method name must not be empty")
        if self.timeout_seconds <= 0:
            raise ConfigError("timeout must be positive")
        if not self.metrics_path.startswith("/") or self.metrics_path == "/":
            raise ConfigError(f"metrics path {self.metrics_path!r} must start with / and not be the root")
        parse_listen_address(self.listen_address)

    def build_sources(self) -> List[RigSource]:
        if self.mock_rigs:
            return [
                MockSource(rig_name=f"mock-rig-{i}", seed=42 + i)
                for i in range(self.mock_rigs)
            ]
        return [
            ClaymoreSource(
                addr,
                port=self.port,
                proto=self.proto,
                method=self.method,
                timeout_seconds=self.timeout_seconds,
            )
            for addr in self.dial_addrs
        ]
