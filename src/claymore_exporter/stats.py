"""
Decoded rig statistics.

One RigStats per rig per scrape. Field order and units follow what
Claymore reports from miner_getstat1: uptime in minutes, total rate
in MH/s, per-GPU rate in kH/s.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class GPUStats:
    index: int
    hash_rate: float = 0.0
    temperature: float = 0.0
    fan_speed: float = 0.0

    @property
    def name(self) -> str:
        return f"GPU{self.index}"


@dataclass
class RigStats:
    """A single decoded reply from one rig."""

    version: str = ""
    uptime_minutes: float = 0.0

    # Totals
    total_hash_rate: float = 0.0
    shares_found: float = 0.0
    shares_rejected: float = 0.0

    gpus: List[GPUStats] = field(default_factory=list)

    # Names of fields that came back non-numeric and were zeroed
    parse_failures: List[str] = field(default_factory=list)

    def summary(self) -> dict:
        """Return a plain dict for display or JSON output."""
        return {
            "version": self.version,
            "uptime_minutes": self.uptime_minutes,
            "total_hash_rate": self.total_hash_rate,
            "shares_found": self.shares_found,
            "shares_rejected": self.shares_rejected,
            "gpus": [
                {
                    "name": g.name,
                    "hash_rate": g.hash_rate,
                    "temperature": g.temperature,
                    "fan_speed": g.fan_speed,
                }
                for g in self.gpus
            ],
            "parse_failures": list(self.parse_failures),
        }
