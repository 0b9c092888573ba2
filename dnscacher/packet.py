"""DNS wire-format structures used by the blocking resolver."""

from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass, replace

HEADER_SIZE = 12
BLOCKED_TTL = 600
SINK_ADDRESS = "127.0.0.1"

_HEADER_FORMAT = ">HBBHHHH"
_QUESTION_TAIL = ">HH"
_RECORD_TAIL = ">HHIH"


class PacketError(ValueError):
    """Raised when a DNS message cannot be decoded."""


@dataclass
class Header:
    """The fixed 12-byte header of a DNS message."""

    id: int
    response: bool = False
    opcode: int = 0
    aa: bool = False
    tc: bool = False
    rd: bool = False
    ra: bool = False
    z: int = 0
    rcode: int = 0
    qdcount: int = 0
    ancount: int = 0
    nscount: int = 0
    arcount: int = 0

    @classmethod
    def parse(cls, data: bytes) -> Header:
        """Decode the header at the start of ``data``."""
        if len(data) < HEADER_SIZE:
            raise PacketError(
                f"message is {len(data)} bytes, shorter than a {HEADER_SIZE}-byte header"
            )
        ident, high, low, qdcount, ancount, nscount, arcount = struct.unpack_from(
            _HEADER_FORMAT, data
        )
        return cls(
            id=ident,
            response=bool(high >> 7 & 1),
            opcode=high >> 3 & 0x0F,
            aa=bool(high >> 2 & 1),
            tc=bool(high >> 1 & 1),
            rd=bool(high & 1),
            ra=bool(low >> 7 & 1),
            z=low >> 4 & 0x0F,
            rcode=low & 0x0F,
            qdcount=qdcount,
            ancount=ancount,
            nscount=nscount,
            arcount=arcount,
        )

    def to_bytes(self) -> bytes:
        """Encode the header in network byte order."""
        high = (
            int(self.response) << 7
            | (self.opcode & 0x0F) << 3
            | int(self.aa) << 2
            | int(self.tc) << 1
            | int(self.rd)
        )
        low = int(self.ra) << 7 | (self.z & 0x0F) << 4 | (self.rcode & 0x0F)
        return struct.pack(
            _HEADER_FORMAT,
            self.id,
            high & 0xFF,
            low & 0xFF,
            self.qdcount,
            self.ancount,
            self.nscount,
            self.arcount,
        )

    def __str__(self) -> str:
        return "\n".join(
            [
                f"ID: {self.id}",
                f"Response: {str(bool(self.response)).lower()}",
                f"OPCODE: {self.opcode:#06b}",
                f"Authoritative Answer: {str(bool(self.aa)).lower()}",
                f"Truncated Message: {str(bool(self.tc)).lower()}",
                f"Recursion Desired: {str(bool(self.rd)).lower()}",
                f"Recursion Available: {str(bool(self.ra)).lower()}",
                f"Z(Reserved): {self.z:#05b}",
                f"RCODE: {self.rcode:#06b}",
                f"Questions: {self.qdcount}",
                f"Answers: {self.ancount}",
                f"Authority Count: {self.nscount}",
                f"Additional Count {self.arcount}",
            ]
        )


@dataclass
class Query:
    """A single entry of the question section."""

    name: str
    name_bytes: bytes
    qtype: int
    qclass: int
    start: int
    end: int

    @classmethod
    def parse(cls, data: bytes, offset: int = HEADER_SIZE) -> Query:
        """Decode the question that starts at ``offset``.

        ``end`` is the index just past the encoded name; the type and class
        follow it.
        """
        labels: list[str] = []
        position = offset
        while True:
            if position >= len(data):
                raise PacketError("question name runs past the end of the message")
            length = data[position]
            if length == 0:
                position += 1
                break
            if length & 0xC0:
                raise PacketError(f"unsupported label length byte {length:#04x}")
            label_end = position + 1 + length
            if label_end > len(data):
                raise PacketError("question label runs past the end of the message")
            try:
                labels.append(bytes(data[position + 1 : label_end]).decode("utf-8"))
            except UnicodeDecodeError as exc:
                raise PacketError("question label is not valid UTF-8") from exc
            position = label_end
        if position + 4 > len(data):
            raise PacketError("question type and class are missing")
        qtype, qclass = struct.unpack_from(_QUESTION_TAIL, data, position)
        return cls(
            name=".".join(labels),
            name_bytes=bytes(data[offset:position]),
            qtype=qtype,
            qclass=qclass,
            start=offset,
            end=position,
        )

    def to_bytes(self) -> bytes:
        """Encode the question as it appears on the wire."""
        return self.name_bytes + struct.pack(_QUESTION_TAIL, self.qtype, self.qclass)


@dataclass
class Record:
    """An IPv4 answer record."""

    name_bytes: bytes
    rtype: int
    rclass: int
    ttl: int
    address: ipaddress.IPv4Address

    @classmethod
    def for_query(cls, query: Query, address: str = SINK_ADDRESS) -> Record:
        """Build an answer to ``query`` that points at ``address``."""
        return cls(
            name_bytes=query.name_bytes,
            rtype=query.qtype,
            rclass=query.qclass,
            ttl=BLOCKED_TTL,
            address=ipaddress.IPv4Address(address),
        )

    def to_bytes(self) -> bytes:
        """Encode the record as it appears on the wire."""
        rdata = self.address.packed
        return (
            self.name_bytes
            + struct.pack(_RECORD_TAIL, self.rtype, self.rclass, self.ttl, len(rdata))
            + rdata
        )


@dataclass
class DnsPacket:
    """A DNS message assembled from its sections."""

    header: Header | None = None
    question: Query | None = None
    answer: Record | None = None

    def build(self) -> bytes:
        """Concatenate the present sections into a wire message."""
        parts = (self.header, self.question, self.answer)
        return b"".join(part.to_bytes() for part in parts if part is not None)


def block_response(header: Header, query: Query) -> bytes:
    """Answer ``query`` with the sink address, reusing the request header."""
    packet = DnsPacket(
        header=replace(header, response=True, ancount=1),
        question=query,
        answer=Record.for_query(query),
    )
    return packet.build()