"""
CodaServer Connection

Connection handles, per-handle error state and the login call that produces them.

License: Mozilla Public License 2.0
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..errors import AuthenticationError
from .client import HttpRpcTransport, RpcTransport, build_endpoint, transport_options

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 3407

# Error code the server returns when the presented session token has expired
EXPIRED_SESSION_CODE = "1005"

TransportFactory = Callable[..., RpcTransport]


@dataclass(frozen=True)
class ErrorEntry:
    """One error reported by the server"""
    code: str
    message: str

    @classmethod
    def from_mapping(cls, data: Any) -> "ErrorEntry":
        """Accepts both {code, message} and the engine's {errorcode, errormessage} spelling"""
        if isinstance(data, ErrorEntry):
            return data
        if not isinstance(data, Mapping):
            return cls(code="", message=str(data))

        code = data.get('code', data.get('errorcode', ''))
        message = data.get('message', data.get('errormessage', ''))
        return cls(code="" if code is None else str(code),
                   message="" if message is None else str(message))

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


class ErrorState:
    """
    Errors from the most recent executor call on a connection.

    Replaced wholesale when a call fails and cleared when a call succeeds.
    """

    def __init__(self):
        self._errors: List[ErrorEntry] = []

    def replace(self, errors: Iterable[ErrorEntry]):
        self._errors = list(errors)

    def clear(self):
        self._errors = []

    @property
    def errors(self) -> List[ErrorEntry]:
        return list(self._errors)

    def is_expired_session(self) -> bool:
        """True only when exactly one error is present and it is the expired-session code"""
        return len(self._errors) == 1 and self._errors[0].code == EXPIRED_SESSION_CODE

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __repr__(self):
        return f"ErrorState(errors={self._errors})"


@dataclass(frozen=True)
class ConnectionHandle:
    """
    An authenticated session on a CodaServer instance.

    Reconnecting yields a new handle; an existing handle is never updated in place.
    """
    session_token: str = field(repr=False)
    endpoint: str
    error_state: ErrorState = field(default_factory=ErrorState, compare=False, repr=False)

    @property
    def errors(self) -> List[ErrorEntry]:
        return self.error_state.errors


def connect(hostname: str = DEFAULT_HOST, port: Any = DEFAULT_PORT, username: str = "",
            password: str = "", transport_factory: Optional[TransportFactory] = None,
            timeout: Optional[float] = None, verify: Optional[bool] = None) -> ConnectionHandle:
    """
    Connect to an instance of CodaServer.

    Args:
        hostname: Server hostname
        port: Server port
        username: Login name
        password: Login password
        transport_factory: Callable building an RpcTransport from an endpoint
        timeout: Request timeout in seconds, passed to the transport
        verify: TLS verification flag, passed to the transport

    Returns:
        ConnectionHandle for the new session

    Raises:
        AuthenticationError: If the server returns an empty session token
    """
    endpoint = build_endpoint(hostname, port)
    factory = transport_factory or HttpRpcTransport

    logger.info(f"Connecting to CodaServer at {endpoint} as '{username}'")

    transport = factory(endpoint, **transport_options(timeout, verify))
    try:
        session_token = transport.login(username, password, None, None, None)
    finally:
        transport.close()

    if not session_token:
        logger.warning(f"Login rejected for '{username}' at {endpoint}")
        raise AuthenticationError(
            f"Login rejected for user '{username}'",
            {"endpoint": endpoint, "username": username}
        )

    logger.debug(f"Session established at {endpoint}")
    return ConnectionHandle(session_token=str(session_token), endpoint=endpoint)
