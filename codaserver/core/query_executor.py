"""
Query Executor

Sends command text to CodaServer and turns the response into a typed outcome.

Architecture:
    1. RpcResponse: Normalizes the raw execute() mapping
    2. QueryResult: Success / resultset / failure outcome returned to callers
    3. QueryExecutor: Dispatches the command and keeps the handle's error state current

License: Mozilla Public License 2.0
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from ..errors import ConfigurationError, ServerError
from .client import HttpRpcTransport, transport_options
from .connection import EXPIRED_SESSION_CODE, ConnectionHandle, ErrorEntry, TransportFactory
from .resultset import Resultset

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    SUCCESS = "success"
    RESULTSET = "resultset"
    FAILURE = "failure"


class ErrorKind(enum.Enum):
    SERVER_FAILURE = "server_failure"
    EXPIRED_SESSION = "expired_session"


@dataclass
class RpcResponse:
    """
    Normalized execute() response.

    The engine spells its keys errorstatus / errorcode / errormessage; the
    shorter error_flag / code / message spelling is accepted as well.
    """
    error_flag: bool
    errors: List[ErrorEntry] = field(default_factory=list)
    data: Any = None

    @classmethod
    def from_mapping(cls, response: Mapping[str, Any]) -> "RpcResponse":
        if response is None:
            response = {}

        if 'error_flag' in response:
            error_flag = response['error_flag']
        else:
            error_flag = response.get('errorstatus', False)

        raw_errors = response.get('errors') or []
        errors = [ErrorEntry.from_mapping(entry) for entry in raw_errors]

        return cls(error_flag=bool(error_flag), errors=errors, data=response.get('data'))

    @property
    def is_tabular(self) -> bool:
        return isinstance(self.data, Mapping) and 'columns' in self.data


@dataclass
class QueryResult:
    """
    Outcome of a single execute() call.

    Truthy on success. A failure carries the server's error list; a resultset
    outcome carries the Resultset built from the response payload.
    """
    outcome: Outcome
    value: Any = None
    resultset: Optional[Resultset] = None
    errors: List[ErrorEntry] = field(default_factory=list)
    command: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILURE

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        if self.ok:
            return None
        if len(self.errors) == 1 and self.errors[0].code == EXPIRED_SESSION_CODE:
            return ErrorKind.EXPIRED_SESSION
        return ErrorKind.SERVER_FAILURE

    @property
    def is_expired_session(self) -> bool:
        return self.error_kind is ErrorKind.EXPIRED_SESSION

    def raise_for_error(self) -> "QueryResult":
        """Raise ServerError if this is a failure, otherwise return self"""
        if not self.ok:
            raise ServerError(self.errors)
        return self

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, command: Optional[str] = None) -> "QueryResult":
        return cls(outcome=Outcome.SUCCESS, value=True, command=command)

    @classmethod
    def from_resultset(cls, resultset: Resultset, command: Optional[str] = None) -> "QueryResult":
        return cls(outcome=Outcome.RESULTSET, value=resultset, resultset=resultset, command=command)

    @classmethod
    def failure(cls, errors: List[ErrorEntry], command: Optional[str] = None) -> "QueryResult":
        return cls(outcome=Outcome.FAILURE, value=False, errors=list(errors), command=command)


class QueryExecutor:
    """
    Runs command text on a connection and interprets the response.
    """

    def __init__(self, transport_factory: Optional[TransportFactory] = None,
                 timeout: Optional[float] = None, verify: Optional[bool] = None):
        """
        Initialize query executor.

        Args:
            transport_factory: Callable building an RpcTransport from an endpoint
            timeout: Request timeout in seconds
            verify: TLS verification flag
        """
        self.transport_factory = transport_factory or HttpRpcTransport
        self.options = transport_options(timeout, verify)

    def execute(self, handle: Optional[ConnectionHandle], command: str) -> QueryResult:
        """
        Execute a command on the given connection.

        Args:
            handle: Connection returned by connect()
            command: Command text

        Returns:
            QueryResult with outcome SUCCESS, RESULTSET or FAILURE

        Raises:
            ConfigurationError: If no connection handle is given
            TransportError: If the transport fails
            ProtocolError: If a tabular payload is malformed
        """
        if handle is None:
            raise ConfigurationError()

        logger.debug(f"Executing on {handle.endpoint}: {command}")

        transport = self.transport_factory(handle.endpoint, **self.options)
        try:
            raw = transport.execute(handle.session_token, command)
        except Exception:
            # Errors from an earlier call no longer describe this one
            handle.error_state.clear()
            raise
        finally:
            transport.close()

        response = RpcResponse.from_mapping(raw)

        if response.error_flag:
            handle.error_state.replace(response.errors)
            codes = ", ".join(entry.code for entry in response.errors) or "none"
            logger.warning(f"Command failed with {len(response.errors)} error(s) [{codes}]: {command}")
            return QueryResult.failure(response.errors, command)

        if not response.is_tabular:
            handle.error_state.clear()
            logger.debug("Command acknowledged")
            return QueryResult.success(command)

        handle.error_state.clear()
        resultset = Resultset.from_payload(response.data)
        return QueryResult.from_resultset(resultset, command)
