"""UDP DNS server that answers blocked hostnames with 127.0.0.1 and forwards the rest."""

__version__ = "0.1.0"
__all__ = ["packet", "server"]