"""Serialized, self-healing RCON connection.

Every command from every workflow and tenant funnels through one
:class:`ReconnectingTransport`. The RCON protocol cannot interleave requests on a
single socket, so calls are strictly one at a time. When the socket turns out to
be dead the transport reconnects once and fails the call: a command that may or
may not have reached the server is never sent a second time.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import suppress
from enum import Enum
from typing import Callable, NoReturn, Protocol

from rcon.exceptions import EmptyResponse, SessionTimeout
from rcon.source import Client

from fleetbot.errors import ReconnectExhausted, TransportError

DEFAULT_RCON_PORT = 25575


class ConnectionState(str, Enum):
    """Lifecycle of the owned connection."""

    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


class RconSession(Protocol):
    """The slice of ``rcon.source.Client`` the transport relies on."""

    def connect(self, login: bool = False) -> None: ...

    def run(self, command: str, *args: str) -> str: ...

    def close(self) -> None: ...


def parse_address(address: str, default_port: int = DEFAULT_RCON_PORT) -> tuple[str, int]:
    """Split ``host:port`` into its parts, falling back to ``default_port``."""
    host, sep, port = address.strip().rpartition(":")
    if not sep:
        return address.strip(), default_port
    if not host:
        raise ValueError(f"Missing host in address: {address!r}")
    return host.strip("[]"), int(port)


def is_connection_terminated(exc: BaseException) -> bool:
    """Return True when ``exc`` means the socket is unusable and must be replaced."""
    if isinstance(exc, (EmptyResponse, SessionTimeout)):
        return True
    if isinstance(exc, TimeoutError):
        return False
    return isinstance(exc, (EOFError, OSError))


class ReconnectingTransport:
    """RCON client that serializes callers and replaces dead connections.

    ``max_reconnects`` bounds how many times the connection may be re-established
    over the lifetime of the instance. Once the budget is spent every call fails
    fast with :class:`ReconnectExhausted`.

    A call that times out discards its session without reconnecting. The next
    call opens a fresh one, and that handshake does not count against the budget.
    """

    def __init__(
        self,
        address: str,
        password: str,
        *,
        timeout_seconds: float = 1.0,
        reconnect_backoff_seconds: float = 0.25,
        max_reconnects: int | None = None,
        session_factory: Callable[[], RconSession] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._address = address
        self._host, self._port = parse_address(address)
        self._password = password
        self._timeout_seconds = timeout_seconds
        self._reconnect_backoff_seconds = reconnect_backoff_seconds
        self._max_reconnects = max_reconnects
        self._session_factory = session_factory or self._default_session
        self._sleep = sleep
        self._logger = logger or logging.getLogger("fleetbot.rcon")

        self._lock = threading.Lock()
        self._session: RconSession | None = None
        self._state = ConnectionState.UNCONNECTED
        self._ever_connected = False
        self._reconnects = 0
        self._exhausted = False
        # Set when a live session was discarded after a timeout.
        self._discarded = False

    @property
    def address(self) -> str:
        return self._address

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnects

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def setup(self) -> None:
        """Establish the initial connection and authenticate the session."""
        with self._lock:
            self._drop_session()
            self._handshake()

    def call(self, command: str) -> str:
        """Send ``command`` and return the response body.

        Blocks while another call is in flight or the connection is being
        re-established.
        """
        with self._lock:
            if self._exhausted:
                raise ReconnectExhausted(f"rcon reconnect budget for {self._address} is exhausted")

            if self._session is None:
                if self._ever_connected and not self._discarded:
                    self._reconnect()
                else:
                    self._discarded = False
                    self._handshake()

            try:
                response = self._session.run(command)
            except Exception as exc:  # noqa: BLE001 - classified and re-raised below.
                self._fail(command, exc)

            self._logger.debug("rcon_command_sent", extra={"command": command, "response": response})
            return response

    def close(self) -> None:
        with self._lock:
            self._drop_session()
            self._state = ConnectionState.UNCONNECTED

    def _fail(self, command: str, exc: Exception) -> NoReturn:
        self._logger.error("rcon_command_failed", extra={"command": command, "error": repr(exc)})
        if isinstance(exc, TimeoutError):
            # A late reply may still arrive on this socket and would be read as
            # the answer to the next command.
            self._drop_session()
            self._state = ConnectionState.UNCONNECTED
            self._discarded = True
            raise TransportError(f"sending {command!r} timed out: {exc}") from exc
        if not is_connection_terminated(exc):
            raise TransportError(f"sending {command!r} failed: {exc}") from exc

        self._reconnect()
        raise TransportError(
            f"connection lost while sending {command!r}; reconnected but the command was not retried"
        ) from exc

    def _reconnect(self) -> None:
        if self._max_reconnects is not None and self._reconnects >= self._max_reconnects:
            self._exhausted = True
            self._drop_session()
            self._state = ConnectionState.UNCONNECTED
            self._logger.error(
                "rcon_reconnects_exhausted",
                extra={"address": self._address, "max_reconnects": self._max_reconnects},
            )
            raise ReconnectExhausted(f"maximum amount of rcon reconnects reached ({self._max_reconnects})")

        self._reconnects += 1
        self._state = ConnectionState.RECONNECTING
        self._logger.warning("rcon_reconnecting", extra={"address": self._address, "attempt": self._reconnects})

        self._drop_session()
        self._sleep(self._reconnect_backoff_seconds)
        self._handshake()

    def _handshake(self) -> None:
        session = self._session_factory()
        try:
            session.connect(login=True)
        except Exception as exc:  # noqa: BLE001 - any handshake failure leaves us unconnected.
            with suppress(OSError):
                session.close()
            self._session = None
            self._state = ConnectionState.UNCONNECTED
            self._logger.error("rcon_setup_failed", extra={"address": self._address, "error": repr(exc)})
            raise TransportError(f"failed to set up rcon session with {self._address}: {exc}") from exc

        self._session = session
        self._state = ConnectionState.CONNECTED
        self._ever_connected = True
        self._logger.info("rcon_connected", extra={"address": self._address})

    def _drop_session(self) -> None:
        if self._session is None:
            return
        # The socket is usually already dead here.
        with suppress(OSError):
            self._session.close()
        self._session = None

    def _default_session(self) -> RconSession:
        return Client(self._host, self._port, timeout=self._timeout_seconds, passwd=self._password)
