"""
Fake Claymore stats port for testing without a miner.

    python -m claymore_exporter.mock.fake_rig_server
    claymore-exporter --dial-addr 127.0.0.1 --port 3333
"""

from __future__ import annotations

import json
import logging
import socketserver
from typing import Callable, List, Optional

from claymore_exporter.mock.generator import MockRig

log = logging.getLogger(__name__)


class FakeRigServer(socketserver.ThreadingTCPServer):
    """Answers every request line with the next reply from `reply_fn`.

    Tests can set `raw_response` to send arbitrary bytes instead, or
    `rpc_error` to answer with a JSON-RPC error object. Setting
    `fixed_id` answers with that id whatever the request carried, the
    way real miners answer 0.
    """

    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address, reply_fn: Optional[Callable[[], List[str]]] = None):
        super().__init__(address, _RpcHandler)
        self.reply_fn = reply_fn or MockRig().reply
        self.raw_response: Optional[bytes] = None
        self.rpc_error: Optional[str] = None
        self.fixed_id: Optional[int] = None
        self.requests: List[dict] = []


class _RpcHandler(socketserver.StreamRequestHandler):
    server: FakeRigServer

    def handle(self):
        line = self.rfile.readline()
        if not line:
            return

        try:
            request = json.loads(line)
        except json.JSONDecodeError:
            log.debug("Ignoring unparseable request: %r", line)
            return
        self.server.requests.append(request)

        if self.server.raw_response is not None:
            self.wfile.write(self.server.raw_response)
            return

        response_id = request.get("id") if self.server.fixed_id is None else self.server.fixed_id
        response = {"id": response_id, "result": None, "error": None}
        if self.server.rpc_error is not None:
            response["error"] = self.server.rpc_error
        else:
            response["result"] = self.server.reply_fn()
        self.wfile.write(json.dumps(response).encode() + b"\n")


def run_fake_rig(host: str = "127.0.0.1", port: int = 3333, gpu_count: int = 6):
    server = FakeRigServer((host, port), MockRig(gpu_count=gpu_count).reply)
    print(f"Fake rig stats port listening on {host}:{port}")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_rig()
