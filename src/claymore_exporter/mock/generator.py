"""
Mock Claymore rig.

Produces fake but plausible miner_getstat1 replies so we can develop
and test without mining hardware. Numbers are loosely based on a rig
of RX 580s on Ethash: ~30 MH/s per card, 60-75C, fans tracking heat.
"""

import math
import random
from typing import List

from claymore_exporter.collector.reply_decoder import encode_reply
from claymore_exporter.stats import GPUStats, RigStats

MINER_VERSION = "15.0 - ETH"


class MockRig:

    def __init__(self, seed: int = 42, gpu_count: int = 6):
        self._rng = random.Random(seed)
        self._tick = 0
        self.gpu_count = gpu_count
        self._uptime_minutes = 0
        self._shares_found = 0
        self._shares_rejected = 0
        # Each card gets its own baseline so they don't move in lockstep
        self._card_base = [29500 + self._rng.uniform(-800, 800) for _ in range(gpu_count)]

    def stats(self) -> RigStats:
        """Generate one reading, advancing the simulation clock."""
        self._tick += 1
        t = self._tick

        # Each tick is roughly a scrape interval, call it one minute
        self._uptime_minutes += 1

        gpus = []
        for i, base in enumerate(self._card_base):
            # Slow thermal drift with a little jitter
            temp = 66 + 6 * math.sin(t * 0.05 + i) + self._rng.gauss(0, 0.7)
            fan = max(20, min(100, 35 + (temp - 55) * 2.5 + self._rng.gauss(0, 2)))

            # Throttle a bit when hot
            throttle = 0.97 if temp > 71 else 1.0
            rate = max(0, base * throttle + self._rng.gauss(0, 150))

            gpus.append(GPUStats(
                index=i,
                hash_rate=float(int(rate)),
                temperature=float(int(temp)),
                fan_speed=float(int(fan)),
            ))

        total_khs = sum(g.hash_rate for g in gpus)
        self._shares_found += self._rng.randint(0, 3)
        if self._rng.random() > 0.97:
            self._shares_rejected += 1

        return RigStats(
            version=MINER_VERSION,
            uptime_minutes=float(self._uptime_minutes),
            total_hash_rate=float(int(total_khs)),
            shares_found=float(self._shares_found),
            shares_rejected=float(self._shares_rejected),
            gpus=gpus,
        )

    def reply(self) -> List[str]:
        """Next reading as the raw positional list a real rig would send."""
        return encode_reply(self.stats())
