"""Exceptions raised while configuring the exporter or polling rigs."""

from __future__ import annotations

from typing import Optional


class ExporterError(Exception):
    pass


class ConfigError(ExporterError):
    pass


class RigError(ExporterError):
    """Base for failures scoped to a single rig.

    The publisher catches these per rig, so one bad rig never takes
    down the scrape for the others.
    """

    reason = "rig"

    def __init__(self, message: str, rig: Optional[str] = None):
        super().__init__(message)
        self.rig = rig


class ConnectionFailure(RigError):
    reason = "connection"


class RpcFailure(RigError):
    reason = "rpc"


class MalformedReply(RigError):
    reason = "malformed"


class FieldParseFailure(ExporterError):
    """A position that should hold a number didn't."""

    def __init__(self, field_name: str, raw: str):
        super().__init__(f"{field_name}: cannot parse {raw!r} as a number")
        self.field_name = field_name
        self.raw = raw
