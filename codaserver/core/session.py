"""
CodaServer Session

Keeps the credentials for a connection so an expired session can be
re-established transparently.

License: Mozilla Public License 2.0
"""

import logging
from typing import Any, List, Optional

from .command_builder import CommandBuilder
from .connection import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    ConnectionHandle,
    ErrorEntry,
    TransportFactory,
    connect,
)
from .query_executor import QueryExecutor, QueryResult

logger = logging.getLogger(__name__)

_BUILDER_PREFIXES = ('show_', 'describe_', 'set_application')


class CodaServerSession:
    """
    A logged-in session with automatic recovery from session expiry.

    When a command fails with exactly one error whose code is 1005, the
    session logs in again with the original credentials and retries the
    command once. Any other failure, including a second expiry on the retry,
    is returned to the caller unchanged.

    The command builder methods (show_*, describe_*, set_application) are
    available directly on the session.
    """

    def __init__(self, hostname: str = DEFAULT_HOST, port: Any = DEFAULT_PORT,
                 username: str = "", password: str = "",
                 transport_factory: Optional[TransportFactory] = None,
                 timeout: Optional[float] = None, verify: Optional[bool] = None,
                 reconnect_on_expired_session: bool = True):
        """
        Initialize session. No network call is made until connect() or the first query.

        Args:
            hostname: Server hostname
            port: Server port
            username: Login name
            password: Login password
            transport_factory: Callable building an RpcTransport from an endpoint
            timeout: Request timeout in seconds
            verify: TLS verification flag
            reconnect_on_expired_session: Retry once after re-login on error 1005
        """
        self.hostname = hostname
        self.port = port
        self.username = username
        self._password = password
        self.transport_factory = transport_factory
        self.timeout = timeout
        self.verify = verify
        self.reconnect_on_expired_session = reconnect_on_expired_session

        self.executor = QueryExecutor(transport_factory, timeout=timeout, verify=verify)
        self.commands = CommandBuilder(self.query)
        self._handle: Optional[ConnectionHandle] = None
        self.reconnect_count = 0

    @classmethod
    def from_config(cls, username: str, password: str, config=None,
                    transport_factory: Optional[TransportFactory] = None) -> "CodaServerSession":
        """
        Build a session from a Config instance.

        Args:
            username: Login name
            password: Login password
            config: Config instance (loads the default client.yaml if None)
            transport_factory: Optional transport factory
        """
        if config is None:
            from ..config import Config
            config = Config()

        return cls(
            hostname=config.get_host(),
            port=config.get_port(),
            username=username,
            password=password,
            transport_factory=transport_factory,
            timeout=config.get_request_timeout(),
            verify=config.get_verify_ssl(),
            reconnect_on_expired_session=config.reconnect_on_expired_session()
        )

    def connect(self) -> ConnectionHandle:
        """Log in and replace the current handle with a fresh one"""
        self._handle = connect(
            self.hostname,
            self.port,
            self.username,
            self._password,
            transport_factory=self.transport_factory,
            timeout=self.timeout,
            verify=self.verify
        )
        return self._handle

    @property
    def handle(self) -> Optional[ConnectionHandle]:
        return self._handle

    @property
    def connected(self) -> bool:
        return self._handle is not None

    @property
    def errors(self) -> List[ErrorEntry]:
        """Errors from the most recent command on the current handle"""
        if self._handle is None:
            return []
        return self._handle.errors

    def query(self, command: str) -> QueryResult:
        """
        Execute a command, re-establishing the session once if it has expired.

        Args:
            command: Command text

        Returns:
            QueryResult of the original call, or of the single retry

        Raises:
            AuthenticationError: If logging in (or back in) fails
            TransportError: If the transport fails
        """
        if self._handle is None:
            self.connect()

        result = self.executor.execute(self._handle, command)

        if result.ok or not self.reconnect_on_expired_session:
            return result

        if not result.is_expired_session:
            if len(result.errors) > 1:
                logger.debug(f"{len(result.errors)} errors reported, not treating as session expiry")
            return result

        logger.info(f"Session on {self._handle.endpoint} expired, reconnecting as '{self.username}'")
        self.connect()
        self.reconnect_count += 1

        return self.executor.execute(self._handle, command)

    execute = query

    def __getattr__(self, name: str):
        if name.startswith(_BUILDER_PREFIXES):
            commands = self.__dict__.get('commands')
            if commands is not None:
                return getattr(commands, name)
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

    def __repr__(self):
        return (f"CodaServerSession(host={self.hostname}, port={self.port}, "
                f"user={self.username}, connected={self.connected})")
