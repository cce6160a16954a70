"""
Source backed by the mock rig generator.
Used for local development on machines without a miner.
"""

from claymore_exporter.collector.base import RigSource
from claymore_exporter.collector.reply_decoder import decode_reply
from claymore_exporter.mock.generator import MockRig
from claymore_exporter.stats import RigStats


class MockSource(RigSource):
    """Wraps the mock generator as a standard source.

    Goes through the same decode step as a live rig so the mock path
    exercises the real parsing code.
    """

    def __init__(self, rig_name: str = "mock-rig", seed: int = 42, gpu_count: int = 6):
        self._rig_name = rig_name
        self._rig = MockRig(seed=seed, gpu_count=gpu_count)

    def fetch(self) -> RigStats:
        return decode_reply(self._rig.reply())

    def name(self) -> str:
        return self._rig_name
