"""A UDP DNS forwarder that answers blocked names with a sink address."""

from __future__ import annotations

import argparse
import logging
import socket
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .packet import Header, PacketError, Query, block_response

log = logging.getLogger(__name__)

MAX_MESSAGE_SIZE = 512
DEFAULT_BLOCK_LIST = "blockList.conf.prod"
DEFAULT_UPSTREAM = "192.168.50.1:53"


@dataclass
class HandleResult:
    """What to do with one incoming message."""

    id: int
    response: bytes | None = None
    forward: bool = False


def read_block_list(path: str | Path) -> set[str]:
    """Read host names to block, skipping blank lines and ``#`` comments."""
    text = Path(path).read_text()
    return {line for line in text.splitlines() if line and not line.startswith("#")}


def handle_message(data: bytes, blocked: Iterable[str] | set[str]) -> HandleResult:
    """Decide how to answer ``data``.

    Responses are passed through, blocked queries are answered locally and
    other queries are marked for forwarding upstream.
    """
    header = Header.parse(data)
    if header.response:
        return HandleResult(header.id, response=bytes(data))
    query = Query.parse(data)
    log.info("Query: %s", query.name)
    if query.name in blocked:
        return HandleResult(header.id, response=block_response(header, query))
    log.info("Query not in block list, forwarding upstream")
    return HandleResult(header.id, forward=True)


class BlockingServer:
    """Relays queries upstream and answers blocked names itself."""

    def __init__(self, sock, blocked: Iterable[str], upstream) -> None:
        self.sock = sock
        self.blocked = frozenset(blocked)
        self.upstream = upstream
        self.clients: dict[int, object] = {}

    def serve_once(self) -> HandleResult | None:
        """Receive and handle one datagram; malformed ones are dropped."""
        data, source = self.sock.recvfrom(MAX_MESSAGE_SIZE)
        try:
            result = handle_message(data, self.blocked)
        except PacketError as exc:
            log.warning("Dropping malformed message from %s: %s", source, exc)
            return None
        if result.forward:
            self.sock.sendto(data, self.upstream)
        if result.response is None:
            log.info("Waiting for answer to ID %d from %s", result.id, source)
            self.clients[result.id] = source
        else:
            destination = self.clients.pop(result.id, source)
            log.info("Sending answer for ID %d to %s", result.id, destination)
            self.sock.sendto(result.response, destination)
        return result

    def serve_forever(self) -> None:
        """Handle datagrams until interrupted."""
        while True:
            self.serve_once()


def _address(value: str) -> tuple[str, int]:
    host, sep, port = value.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}")
    return host, int(port)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--block-list", default=DEFAULT_BLOCK_LIST)
    parser.add_argument("--bind", type=_address, default=_address("0.0.0.0:53"))
    parser.add_argument("--upstream", type=_address, default=_address(DEFAULT_UPSTREAM))
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    blocked = read_block_list(args.block_list)
    log.info("Loaded %d blocked host names", len(blocked))

    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(args.bind)
        log.info("DNS server running on %s:%d", *args.bind)
        try:
            BlockingServer(sock, blocked, args.upstream).serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())