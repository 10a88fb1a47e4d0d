"""Transport layer: the TCP link to the terminal."""

from .tcp_connection import TCPConnection
