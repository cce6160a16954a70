"""
Base rig source interface.

A source is anything that can produce RigStats for one rig. This keeps
the publisher and the terminal view decoupled from where the data
actually comes from (a real miner, the mock generator, etc).
"""

from abc import ABC, abstractmethod

from claymore_exporter.stats import RigStats


class RigSource(ABC):
    """Interface for all per-rig stats sources."""

    @abstractmethod
    def fetch(self) -> RigStats:
        """Poll the rig once and return decoded stats.

        Raises a RigError subclass when the rig can't be read.
        """
        ...

    @abstractmethod
    def name(self) -> str:
        """Value used for the Rig label."""
        ...
