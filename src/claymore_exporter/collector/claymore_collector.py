"""
Source for a live Claymore miner: one RPC call, then decode.
"""

from __future__ import annotations

from claymore_exporter.collector.base import RigSource
from claymore_exporter.collector.reply_decoder import decode_reply
from claymore_exporter.collector.rig_client import DEFAULT_METHOD, DEFAULT_PORT, RigClient
from claymore_exporter.errors import MalformedReply
from claymore_exporter.stats import RigStats


class ClaymoreSource(RigSource):

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        proto: str = "tcp",
        method: str = DEFAULT_METHOD,
        timeout_seconds: float = 5.0,
    ):
        self._host = host
        self._client = RigClient(
            host,
            port=port,
            proto=proto,
            method=method,
            timeout_seconds=timeout_seconds,
        )

    def fetch(self) -> RigStats:
        reply = self._client.call()
        try:
            return decode_reply(reply)
        except MalformedReply as e:
            e.rig = self._host
            raise

    def name(self) -> str:
        return self._host
