import ipaddress
import struct

import pytest

from dnscacher.packet import (
    BLOCKED_TTL,
    DnsPacket,
    Header,
    PacketError,
    Query,
    Record,
    block_response,
)


def make_query(name, ident=0x1234, flags=0x0100, qtype=1, qclass=1):
    encoded = b"".join(bytes([len(p)]) + p.encode() for p in name.split(".")) + b"\x00"
    return (
        struct.pack(">HHHHHH", ident, flags, 1, 0, 0, 0)
        + encoded
        + struct.pack(">HH", qtype, qclass)
    )


def source_header_buffer():
    buf = bytearray(512)
    for i in range(12):
        buf[i] = 128 - i
    return bytes(buf)


def test_header_fields_from_source_case():
    header = Header.parse(source_header_buffer())
    assert header.id == 32895
    assert header.response is False
    assert header.opcode == 0b1111
    assert header.aa is True
    assert header.tc is True
    assert header.rd is False
    assert header.ra is False
    assert header.z == 0b111
    assert header.rcode == 0b1101
    assert header.qdcount == 31867
    assert header.ancount == 31353
    assert header.nscount == 30839
    assert header.arcount == 30325


def test_header_round_trip():
    buf = source_header_buffer()
    assert Header.parse(buf).to_bytes() == buf[:12]


def test_header_too_short():
    with pytest.raises(PacketError):
        Header.parse(b"\x00" * 11)


def test_header_str():
    text = str(Header.parse(source_header_buffer()))
    lines = text.splitlines()
    assert lines[0] == "ID: 32895"
    assert lines[1] == "Response: false"
    assert lines[2] == "OPCODE: 0b1111"
    assert lines[3] == "Authoritative Answer: true"
    assert lines[7] == "Z(Reserved): 0b111"
    assert lines[8] == "RCODE: 0b1101"
    assert lines[-1] == "Additional Count 30325"


def test_query_parse():
    data = make_query("ads.example.com", qtype=1, qclass=1)
    query = Query.parse(data)
    assert query.name == "ads.example.com"
    assert query.name_bytes == b"\x03ads\x07example\x03com\x00"
    assert query.qtype == 1
    assert query.qclass == 1
    assert query.start == 12
    assert query.end == 12 + len(query.name_bytes)


def test_query_round_trip():
    data = make_query("tracker.example.com", qtype=28)
    assert Query.parse(data).to_bytes() == data[12:]


def test_query_truncated_name():
    data = make_query("ads.example.com")[:20]
    with pytest.raises(PacketError):
        Query.parse(data)


def test_query_missing_type_and_class():
    data = make_query("ads.example.com")[:-2]
    with pytest.raises(PacketError):
        Query.parse(data)


def test_query_rejects_compression_pointer():
    data = b"\x00" * 12 + b"\xc0\x0c\x00\x01\x00\x01"
    with pytest.raises(PacketError):
        Query.parse(data)


def test_query_rejects_invalid_utf8():
    data = b"\x00" * 12 + b"\x02\xff\xfe\x00\x00\x01\x00\x01"
    with pytest.raises(PacketError):
        Query.parse(data)


def test_record_for_query_defaults():
    query = Query.parse(make_query("ads.example.com"))
    record = Record.for_query(query)
    assert record.ttl == BLOCKED_TTL == 600
    assert record.address == ipaddress.IPv4Address("127.0.0.1")
    assert record.to_bytes() == query.name_bytes + bytes(
        [0, 1, 0, 1, 0, 0, 0x02, 0x58, 0, 4, 127, 0, 0, 1]
    )


def test_record_invalid_address():
    query = Query.parse(make_query("ads.example.com"))
    with pytest.raises(ValueError):
        Record.for_query(query, "not-an-address")


def test_empty_packet_builds_nothing():
    assert DnsPacket().build() == b""


def test_block_response_bytes():
    data = make_query("ads.example.com")
    header = Header.parse(data)
    query = Query.parse(data)
    response = block_response(header, query)
    expected = (
        bytes([0x12, 0x34, 0x81, 0x00, 0, 1, 0, 1, 0, 0, 0, 0])
        + data[12:]
        + query.name_bytes
        + bytes([0, 1, 0, 1, 0, 0, 0x02, 0x58, 0, 4, 127, 0, 0, 1])
    )
    assert response == expected


def test_block_response_leaves_request_header_unchanged():
    data = make_query("ads.example.com")
    header = Header.parse(data)
    block_response(header, Query.parse(data))
    assert header.response is False
    assert header.ancount == 0