# dnscacher

A small DNS server for a home network that blocks hostnames. It listens for
UDP DNS queries. A query for a hostname on the block list gets an answer
that points at `127.0.0.1`. Every other query is sent on to an upstream
resolver, and the upstream reply is passed back to the client that asked.

## Installation

```
pip install .
```

## Block list

The block list is a plain text file with one hostname per line. Empty lines
are ignored. Lines that start with `#` are comments. Names are matched
exactly as written: there is no wildcard or subdomain matching.

```
# advertising
ads.example.com
tracker.example.com
```

## Running

```
dnscacher
```

By default the server reads `blockList.conf.prod` from the current directory,
binds to `0.0.0.0:53` and forwards queries to `192.168.50.1:53`. These options
change the defaults:

- `--block-list PATH`: the block list file
- `--bind HOST:PORT`: the address to listen on
- `--upstream HOST:PORT`: the resolver that unblocked queries go to

Binding to port 53 usually needs elevated privileges. The server logs each
query to standard error and runs until interrupted with Ctrl-C.

## Using it as a library

```python
from dnscacher.packet import Header, Query, block_response
from dnscacher.server import handle_message, read_block_list

blocked = read_block_list("blockList.conf.prod")
result = handle_message(datagram, blocked)
```

`read_block_list` returns the set of hostnames in a block list file.

`handle_message` returns a `HandleResult` with three fields:

- `id`: the message ID from the header
- `response`: the bytes to send back, or `None`
- `forward`: `True` when the query is not blocked and has to be sent upstream

A datagram that is already a response is returned unchanged in `response`.

`BlockingServer(sock, blocked, upstream)` wraps a bound UDP socket.
`serve_once()` handles one datagram and `serve_forever()` loops over them. It
forwards unblocked queries to `upstream` and remembers which client is waiting
for each query ID. When a response with that ID comes back, it is sent to that
client. Malformed datagrams are logged and dropped.

The `dnscacher.packet` module reads headers (`Header.parse`) and questions
(`Query.parse`). `to_bytes()` writes them back out. `Record.for_query` builds
an IPv4 answer record, and `DnsPacket.build()` joins a header, question and
answer into one message. `block_response` builds the `127.0.0.1` answer for a
query. It reuses the request header, sets the response flag and sets the
answer count to 1. Messages that cannot be decoded raise `PacketError`.

## Limitations

- Despite the name, nothing is cached. Every unblocked query goes upstream.
- Only the first question of a query is read, and compressed names in the
  question are rejected.
- A blocked name always gets a 4-byte `127.0.0.1` answer that carries the
  query's own type and class, whatever type was asked for (for example AAAA).
- Authority and additional sections are never written into answers.
- Pending clients are tracked by query ID alone. Two clients that use the same
  ID at the same time can get each other's replies.

## Tests

```
pip install .[test]
pytest
```