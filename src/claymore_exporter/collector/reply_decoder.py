"""
Decoder for the miner_getstat1 reply.

The rig answers with a flat list of strings where meaning is carried
by position, e.g.

    ["15.0 - ETH", "21", "182724;51;0", "30502;30457", "0;0;0",
     "off;off", "53;71;57;67", "eth-eu1.nanopool.org:9999", "0;0;0;0"]

    [0] miner version
    [1] uptime, minutes
    [2] total rate (MH/s);shares found;shares rejected
    [3] per-GPU rate (kH/s), one entry per GPU
    [6] temperature;fan pairs for every GPU, interleaved (optional)

Anything past [3] that we don't use is ignored, and [6] is absent on
older miners. Every positional access is checked before it happens.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from claymore_exporter.errors import FieldParseFailure, MalformedReply
from claymore_exporter.stats import GPUStats, RigStats

log = logging.getLogger(__name__)

VERSION_POS = 0
UPTIME_POS = 1
TOTALS_POS = 2
HASH_RATES_POS = 3
TEMP_FAN_POS = 6

MIN_REPLY_LENGTH = HASH_RATES_POS + 1

# Filler for positions we don't decode when rendering a reply back out
_UNUSED_FIELDS = {4: "0;0;0", 5: "off", 7: "", 8: "0;0;0;0"}


def split_field(raw: str) -> List[str]:
    """Split a ;-separated field. An empty field means no entries."""
    raw = raw.strip()
    if not raw:
        return []
    return [part.strip() for part in raw.split(";")]


def parse_number(field_name: str, raw: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise FieldParseFailure(field_name, raw) from None
    if not math.isfinite(value):
        raise FieldParseFailure(field_name, raw)
    return value


class _FieldReader:
    """Parses numbers, zeroing and recording any that don't parse."""

    def __init__(self):
        self.failures: List[str] = []

    def number(self, field_name: str, raw: str) -> float:
        try:
            return parse_number(field_name, raw)
        except FieldParseFailure as e:
            log.debug("Zeroing unparseable field: %s", e)
            self.failures.append(field_name)
            return 0.0


def _deinterleave(raw: str, device_count: int) -> Optional[tuple[List[str], List[str]]]:
    """Split "t0;f0;t1;f1" into ([t0, t1], [f0, f1])."""
    entries = split_field(raw)
    if not entries:
        return None

    temps = entries[0::2]
    fans = entries[1::2]
    if len(temps) != device_count or len(fans) != device_count:
        raise MalformedReply(
            f"temperature/fan field has {len(entries)} entries, "
            f"expected {device_count * 2} for {device_count} GPUs"
        )
    return temps, fans


def decode_reply(reply: Sequence[str]) -> RigStats:
    """Turn a raw miner_getstat1 result into RigStats.

    Raises MalformedReply when the reply is structurally unusable.
    Individual non-numeric values are zeroed and listed in
    RigStats.parse_failures instead of failing the whole reply.
    """
    if len(reply) < MIN_REPLY_LENGTH:
        raise MalformedReply(
            f"reply has {len(reply)} fields, need at least {MIN_REPLY_LENGTH}"
        )

    reader = _FieldReader()

    totals = split_field(reply[TOTALS_POS])
    if len(totals) < 3:
        raise MalformedReply(f"totals field {reply[TOTALS_POS]!r} needs rate;found;rejected")

    hash_rates = split_field(reply[HASH_RATES_POS])
    device_count = len(hash_rates)

    temps: List[str] = []
    fans: List[str] = []
    if len(reply) > TEMP_FAN_POS:
        pairs = _deinterleave(reply[TEMP_FAN_POS], device_count)
        if pairs is not None:
            temps, fans = pairs

    gpus = []
    for i, rate in enumerate(hash_rates):
        gpus.append(GPUStats(
            index=i,
            hash_rate=reader.number("gpu_hash_rate", rate),
            temperature=reader.number("gpu_temp", temps[i]) if temps else 0.0,
            fan_speed=reader.number("gpu_fan_speed", fans[i]) if fans else 0.0,
        ))

    return RigStats(
        version=reply[VERSION_POS].strip(),
        uptime_minutes=reader.number("uptime", reply[UPTIME_POS]),
        total_hash_rate=reader.number("total_hash_rate", totals[0]),
        shares_found=reader.number("shares_found", totals[1]),
        shares_rejected=reader.number("shares_rejected", totals[2]),
        gpus=gpus,
        parse_failures=reader.failures,
    )


def _fmt(value: float) -> str:
    # "120" rather than "120.0", the way the miner prints integers
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def encode_reply(stats: RigStats) -> List[str]:
    """Render RigStats back into the positional miner_getstat1 layout."""
    temp_fan = []
    for gpu in stats.gpus:
        temp_fan.append(_fmt(gpu.temperature))
        temp_fan.append(_fmt(gpu.fan_speed))

    fields = {
        VERSION_POS: stats.version,
        UPTIME_POS: _fmt(stats.uptime_minutes),
        TOTALS_POS: ";".join(
            _fmt(v) for v in (stats.total_hash_rate, stats.shares_found, stats.shares_rejected)
        ),
        HASH_RATES_POS: ";".join(_fmt(g.hash_rate) for g in stats.gpus),
        TEMP_FAN_POS: ";".join(temp_fan),
    }
    fields.update(_UNUSED_FIELDS)
    return [fields[pos] for pos in range(len(fields))]
