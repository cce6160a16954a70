"""
Client for the rig's JSON-RPC stats port.

Claymore speaks newline-framed JSON-RPC over a plain TCP socket:
one request object per line, one response object per line, and the
miner usually closes the connection after answering. We open a fresh
connection for every call, so there's no session state to get stale
between scrapes.
"""

from __future__ import annotations

import json
import logging
import socket
from typing import Any, List

from claymore_exporter.errors import ConnectionFailure, RpcFailure

log = logging.getLogger(__name__)

DEFAULT_PORT = 3333
DEFAULT_METHOD = "miner_getstat1"

PROTOCOL_FAMILIES = {
    "tcp": socket.AF_UNSPEC,
    "tcp4": socket.AF_INET,
    "tcp6": socket.AF_INET6,
}

# A stats reply is a few hundred bytes; anything this big is not one
MAX_RESPONSE_BYTES = 64 * 1024

# Every call is the first request on a fresh connection, and miners
# answer with id 0 no matter what was sent
REQUEST_ID = 0


def build_request(request_id: int, method: str) -> bytes:
    payload = {"id": request_id, "method": method, "params": [""]}
    return json.dumps(payload).encode() + b"\n"


def parse_response(raw: bytes, request_id: int, rig: str = "") -> List[str]:
    """Validate a response envelope and return its result list.

    Checks everything we rely on in one pass: it's a JSON object, the id
    matches, there's no error, and result is a list of strings.
    """
    try:
        envelope: Any = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RpcFailure(f"response is not valid JSON: {e}", rig=rig) from e

    if not isinstance(envelope, dict):
        raise RpcFailure(f"response is a {type(envelope).__name__}, not an object", rig=rig)

    error = envelope.get("error")
    if error is not None:
        raise RpcFailure(f"rig returned error: {error}", rig=rig)

    if "id" in envelope and envelope["id"] != request_id:
        raise RpcFailure(f"response id {envelope['id']!r} != request id {request_id}", rig=rig)

    result = envelope.get("result")
    if not isinstance(result, list):
        raise RpcFailure(f"result is {type(result).__name__}, expected a list", rig=rig)
    if not all(isinstance(item, str) for item in result):
        raise RpcFailure("result contains non-string entries", rig=rig)

    return result


class RigClient:

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        proto: str = "tcp",
        method: str = DEFAULT_METHOD,
        timeout_seconds: float = 5.0,
    ):
        if proto not in PROTOCOL_FAMILIES:
            raise ValueError(f"unsupported protocol {proto!r}, use one of {sorted(PROTOCOL_FAMILIES)}")
        self.host = host
        self.port = port
        self.proto = proto
        self.method = method
        self._timeout = timeout_seconds

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def _connect(self) -> socket.socket:
        family = PROTOCOL_FAMILIES[self.proto]
        try:
            infos = socket.getaddrinfo(self.host, self.port, family, socket.SOCK_STREAM)
        except socket.gaierror as e:
            raise ConnectionFailure(f"cannot resolve host: {e}", rig=self.host) from e

        last_error: OSError = OSError("no addresses")
        for af, socktype, proto, _, sockaddr in infos:
            sock = None
            try:
                sock = socket.socket(af, socktype, proto)
                sock.settimeout(self._timeout)
                sock.connect(sockaddr)
                return sock
            except OSError as e:
                # e.g. EAFNOSUPPORT for an IPv6 address on a v4-only host
                last_error = e
                if sock is not None:
                    sock.close()

        raise ConnectionFailure(f"dialing {self.address}: {last_error}", rig=self.host)

    def _read_line(self, sock: socket.socket) -> bytes:
        buf = b""
        while b"\n" not in buf:
            chunk = sock.recv(4096)
            if not chunk:
                break
            buf += chunk
            if len(buf) > MAX_RESPONSE_BYTES:
                raise RpcFailure(f"response exceeds {MAX_RESPONSE_BYTES} bytes", rig=self.host)
        return buf.split(b"\n", 1)[0]

    def call(self) -> List[str]:
        """Issue one RPC and return the raw result list."""
        log.debug("Calling %s on %s", self.method, self.address)

        sock = self._connect()
        try:
            sock.sendall(build_request(REQUEST_ID, self.method))
            raw = self._read_line(sock)
        except socket.timeout as e:
            raise ConnectionFailure(f"timed out after {self._timeout}s", rig=self.host) from e
        except OSError as e:
            raise ConnectionFailure(f"talking to {self.address}: {e}", rig=self.host) from e
        finally:
            sock.close()

        if not raw.strip():
            raise RpcFailure("connection closed without a response", rig=self.host)

        return parse_response(raw, REQUEST_ID, rig=self.host)
