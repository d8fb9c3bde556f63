"""Byte-stream transports."""

from sql_over_http.transport.stream import ByteStream
from sql_over_http.transport.tcp import TCPStream

__all__ = ["ByteStream", "TCPStream"]
