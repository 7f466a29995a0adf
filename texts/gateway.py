"""
Persistence gateway owning the database connection lifecycle.

A supervisor thread connects with a fixed retry delay (no backoff, no
attempt limit), probes the connection while it is up, and reconnects as
soon as a disconnect is reported. Requests run their queries through
``PersistenceGateway.execute`` which refuses to touch the database unless
the gateway is connected.
"""

import enum
import logging
import re
import threading
from typing import Any, Callable, Optional, TypeVar

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, connections
from django.db.utils import DatabaseError, InterfaceError, OperationalError

from texts.exceptions import ConfigurationError, NotConnected, QueryError, StoreConnectionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Defaults, overridable from settings
RETRY_DELAY = 5.0  # seconds between connection attempts
HEARTBEAT_INTERVAL = 10.0  # seconds between liveness probes
SHUTDOWN_TIMEOUT = 10.0  # seconds to wait for the supervisor on close

# Driver errors that mean the connection itself is gone
CONNECTION_ERRORS = (OperationalError, InterfaceError)

_CREDENTIALS_RE = re.compile(r":[^:@/]*@")


def redact_url(url: Optional[str]) -> str:
    """Return the connection string with its password masked."""
    if not url:
        return ""
    return _CREDENTIALS_RE.sub(":****@", url)


class GatewayState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class PersistenceGateway:
    """
    Owns the single logical connection to the database.

    Django keeps one connection per thread, so the gateway tracks the
    health of the store through its supervisor thread's connection and
    publishes the result as ``state``. Request threads consult that state
    before querying and report lost connections back to the gateway.

    Usage:
        gateway = PersistenceGateway.from_settings()
        gateway.start()      # init -> ready, returns immediately
        gateway.execute(lambda: TextRecord.objects.count())
        gateway.close()      # ready -> closed, stops the supervisor once

    Attributes:
        url: Connection string (only ever logged redacted)
        alias: Django database alias the gateway manages
        retry_delay: Fixed delay between failed connection attempts
        heartbeat_interval: Delay between liveness probes while connected
        retry_writes: Whether idempotent operations get one retry after a
            lost connection
    """

    def __init__(
        self,
        url: Optional[str],
        alias: str = DEFAULT_DB_ALIAS,
        retry_delay: float = RETRY_DELAY,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
        retry_writes: bool = True,
        connection_factory: Optional[Callable[[], Any]] = None,
    ):
        self.url = url
        self.alias = alias
        self.retry_delay = retry_delay
        self.heartbeat_interval = heartbeat_interval
        self.retry_writes = retry_writes
        # Resolved on every use: Django connections are bound to the calling thread
        self._connection_factory = connection_factory or (lambda: connections[self.alias])

        self._state = GatewayState.DISCONNECTED
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._dropped = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._closed = False

    @classmethod
    def from_settings(cls, alias: str = DEFAULT_DB_ALIAS) -> "PersistenceGateway":
        """Build a gateway from the TEXTSTORE_* Django settings."""
        return cls(
            url=getattr(settings, "TEXTSTORE_DATABASE_URL", None),
            alias=alias,
            retry_delay=getattr(settings, "TEXTSTORE_RETRY_DELAY", RETRY_DELAY),
            heartbeat_interval=getattr(settings, "TEXTSTORE_HEARTBEAT_INTERVAL", HEARTBEAT_INTERVAL),
            retry_writes=getattr(settings, "TEXTSTORE_RETRY_WRITES", True),
        )

    @property
    def state(self) -> GatewayState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is GatewayState.CONNECTED

    def _set_state(self, new_state: GatewayState) -> None:
        with self._lock:
            if self._state is GatewayState.CLOSED:
                return
            old_state, self._state = self._state, new_state
        if old_state is not new_state:
            logger.debug(f"Gateway state {old_state.value} -> {new_state.value}")

    # Lifecycle

    def check_configuration(self) -> None:
        """
        Raises:
            ConfigurationError: If no connection string is configured
        """
        if not self.url:
            logger.error("Database connection string is not defined in environment variables!")
            raise ConfigurationError(
                "TEXTSTORE_DATABASE_URL is not defined", config_key="TEXTSTORE_DATABASE_URL"
            )

    def start(self) -> None:
        """
        Launch the supervisor thread.

        Returns immediately; the first connection attempt happens in the
        background. Calling start() again is a no-op.

        Raises:
            ConfigurationError: If no connection string is configured
        """
        self.check_configuration()

        with self._lock:
            if self._closed or self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._supervise,
                name=f"textstore-gateway-{self.alias}",
                daemon=True,
            )
        self._thread.start()

    def close(self, timeout: float = SHUTDOWN_TIMEOUT) -> None:
        """Stop the supervisor and release its connection. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread

        logger.info("Shutting down database gateway...")
        self._stop.set()
        self._dropped.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"Gateway supervisor did not stop within {timeout} seconds")

        with self._lock:
            self._state = GatewayState.CLOSED
        logger.info("Database gateway closed.")

    # Connection management

    def connect(self) -> bool:
        """
        Make one connection attempt on the calling thread's connection.

        Returns:
            True if the gateway is now connected, False otherwise
        """
        if self._closed:
            return False

        self._set_state(GatewayState.CONNECTING)
        logger.info("Attempting to connect to database...")
        connection = self._connection_factory()
        try:
            connection.ensure_connection()
            if not connection.is_usable():
                raise StoreConnectionError("Connection opened but is not usable")
        except Exception as e:
            self._set_state(GatewayState.DISCONNECTED)
            logger.error(f"Database connection error: {e}")
            logger.info(f"Connection string format: {redact_url(self.url)}")
            return False

        self._dropped.clear()
        self._set_state(GatewayState.CONNECTED)
        logger.info("Successfully connected to database.")
        return True

    def notify_disconnected(self, reason: Optional[BaseException] = None) -> bool:
        """
        Report that the connection was lost.

        Moves the gateway to DISCONNECTED and wakes the supervisor, which
        reconnects without delay.

        Returns:
            True if this call made the transition, False if the gateway
            was already not connected
        """
        with self._lock:
            if self._state is not GatewayState.CONNECTED:
                return False
            self._state = GatewayState.DISCONNECTED
        if reason is not None:
            logger.error(f"Database connection error: {reason}")
        logger.info("Database disconnected. Attempting to reconnect...")
        self._dropped.set()
        return True

    def _supervise(self) -> None:
        try:
            while not self._stop.is_set():
                if not self.connect():
                    if self._stop.is_set():
                        break
                    logger.info(f"Retrying connection in {self.retry_delay:g} seconds...")
                    self._stop.wait(self.retry_delay)
                    continue

                self._watch()
                self._close_connection()
        finally:
            self._close_connection()

    def _watch(self) -> None:
        """Block while connected; return once a disconnect was seen or on stop."""
        while not self._stop.is_set():
            if self._dropped.wait(self.heartbeat_interval):
                return
            if not self._ping():
                self.notify_disconnected(StoreConnectionError("Liveness probe failed"))
                return

    def _ping(self) -> bool:
        connection = self._connection_factory()
        try:
            return connection.connection is not None and connection.is_usable()
        except Exception as e:
            logger.debug(f"Liveness probe raised: {e}")
            return False

    def _close_connection(self) -> None:
        try:
            self._connection_factory().close()
        except DatabaseError as e:
            logger.debug(f"Ignoring error while closing connection: {e}")

    # Query execution

    def execute(self, operation: Callable[[], T], idempotent: bool = False) -> T:
        """
        Run a query against the current connection.

        Args:
            operation: Callable performing the ORM work
            idempotent: Whether the operation may be retried once if the
                connection is lost while it runs

        Returns:
            Whatever the operation returns

        Raises:
            NotConnected: If the gateway is not in the CONNECTED state
            QueryError: If the database rejected the operation
        """
        if not self.is_connected:
            raise NotConnected(
                "Database connection is not established",
                details={"state": self._state.value},
            )

        attempts = 2 if idempotent and self.retry_writes else 1
        for attempt in range(1, attempts + 1):
            try:
                return operation()
            except CONNECTION_ERRORS as e:
                if not self._discard_lost_connection():
                    raise QueryError(str(e)) from e
                if attempt < attempts:
                    logger.warning(f"Connection lost during write, retrying once: {e}")
                    continue
                self.notify_disconnected(e)
                raise QueryError(str(e), details={"connection_lost": True}) from e
            except DatabaseError as e:
                raise QueryError(str(e)) from e

    def _discard_lost_connection(self) -> bool:
        """Close the calling thread's connection if it is no longer usable."""
        connection = self._connection_factory()
        if connection.in_atomic_block:
            return False
        try:
            if connection.connection is not None and connection.is_usable():
                return False
        except Exception as e:
            logger.debug(f"Usability check raised: {e}")
        self._close_connection()
        return True
