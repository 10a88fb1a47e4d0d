"""TCP connection to an Anviz terminal.

The terminal answers one request at a time and responses carry no
request identifier, so a connection never has more than one exchange
in flight. Responses have no length field either: a read keeps going
until the command's minimum response size has arrived, then drains
whatever else follows within a short idle window.
"""

from __future__ import annotations

import logging
import socket
import threading
from dataclasses import dataclass

from ..errors import TransportError, TransportTimeout
from ..protocol.framing import MIN_FRAME_SIZE

logger = logging.getLogger(__name__)

DEFAULT_PORT = 5010
DEFAULT_TIMEOUT = 5.0
IDLE_TIMEOUT = 0.2
RECV_SIZE = 1024


@dataclass
class ConnectionInfo:
    """Where the connection points."""

    host: str = ""
    port: int = DEFAULT_PORT
    local_address: str = ""


class TCPConnection:
    """Manages the TCP connection to a terminal.

    Usage::

        conn = TCPConnection("192.168.1.201")
        conn.open()
        response = conn.exchange(frame_bytes, min_length=15)
        conn.close()
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
        idle_timeout: float = IDLE_TIMEOUT,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout
        self._idle_timeout = idle_timeout
        self._socket: socket.socket | None = None
        self._lock = threading.Lock()
        self._info = ConnectionInfo(host=host, port=port)

    @property
    def connected(self) -> bool:
        return self._socket is not None

    @property
    def info(self) -> ConnectionInfo:
        return self._info

    @property
    def timeout(self) -> float:
        return self._timeout

    def open(self) -> ConnectionInfo:
        """Connect to the terminal.

        Raises:
            TransportError: If the connection is refused or times out.
        """
        if self._socket is not None:
            return self._info

        try:
            sock = socket.create_connection((self._host, self._port), timeout=self._timeout)
        except OSError as e:
            raise TransportError(
                f"Could not connect to {self._host}:{self._port}: {e}"
            ) from e

        self._socket = sock
        local = sock.getsockname()
        self._info = ConnectionInfo(
            host=self._host,
            port=self._port,
            local_address=f"{local[0]}:{local[1]}" if local else "",
        )
        logger.info("Connected to %s:%d", self._host, self._port)
        return self._info

    def close(self) -> None:
        """Close the connection."""
        if self._socket is None:
            return

        try:
            self._socket.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            self._socket = None
            logger.info("Disconnected from %s:%d", self._host, self._port)

    def __enter__(self) -> TCPConnection:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def exchange(
        self,
        request: bytes,
        min_length: int = 0,
        timeout: float | None = None,
    ) -> bytes:
        """Send a request frame and return the raw response.

        Args:
            request: Complete request frame.
            min_length: Smallest response the command can produce. Reading
                continues until at least this many bytes (and never fewer
                than a minimal frame) have arrived.
            timeout: Overrides the connection timeout for this exchange.

        Raises:
            TransportError: If not connected, or the socket fails.
            TransportTimeout: If the response does not arrive in time.
        """
        with self._lock:
            sock = self._require_socket()
            logger.debug("TX %s", request.hex(" "))
            try:
                sock.settimeout(self._timeout if timeout is None else timeout)
                sock.sendall(request)
                response = self._receive(sock, max(min_length, MIN_FRAME_SIZE))
            except TransportError:
                self._drop()
                raise
            except OSError as e:
                self._drop()
                raise TransportError(f"Socket error: {e}") from e
            logger.debug("RX %s", response.hex(" "))
            return response

    def _require_socket(self) -> socket.socket:
        if self._socket is None:
            raise TransportError("Not connected to device")
        return self._socket

    def _receive(self, sock: socket.socket, need: int) -> bytes:
        buffer = bytearray()
        while len(buffer) < need:
            try:
                chunk = sock.recv(RECV_SIZE)
            except socket.timeout as e:
                raise TransportTimeout(
                    f"Timed out after {len(buffer)} of {need} bytes"
                ) from e
            if not chunk:
                if buffer:
                    logger.warning(
                        "Connection closed mid-response (%d of %d bytes)",
                        len(buffer), need,
                    )
                    return bytes(buffer)
                raise TransportError("Connection closed by device")
            buffer += chunk

        # Anything else the terminal sends arrives right behind the minimum
        sock.settimeout(self._idle_timeout)
        while True:
            try:
                chunk = sock.recv(RECV_SIZE)
            except socket.timeout:
                break
            if not chunk:
                break
            buffer += chunk
        return bytes(buffer)

    def _drop(self) -> None:
        # A failed exchange leaves the stream out of step with requests
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError as e:
                logger.debug("Error dropping socket: %s", e)
            self._socket = None
