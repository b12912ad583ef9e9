"""
CodaServer Client

Python client for the CodaServer business rules engine. Connect, run commands
and read resultsets through a cursor.

License: Mozilla Public License 2.0
"""

__version__ = "1.0.0"
__author__ = "CodaServer"

from typing import Any, Dict, List, Optional

from .config import Config, setup_logging
from .core import (
    CodaServerSession,
    CombinedRow,
    CommandBuilder,
    ConnectionHandle,
    ColumnDescriptor,
    ErrorEntry,
    EXPIRED_SESSION_CODE,
    HttpRpcTransport,
    Outcome,
    QueryExecutor,
    QueryResult,
    Resultset,
    RpcTransport,
    connect,
)
from .errors import (
    AuthenticationError,
    CodaServerError,
    ConfigurationError,
    ProtocolError,
    ServerError,
    TransportError,
    ValidationError,
)

_default_executor = QueryExecutor()


def query(handle: Optional[ConnectionHandle], command: str,
          executor: Optional[QueryExecutor] = None) -> QueryResult:
    """
    Run a command on a connection returned by connect().

    Args:
        handle: Connection handle
        command: Command text
        executor: Executor to use (default: HTTP transport with default settings)

    Returns:
        QueryResult
    """
    return (executor or _default_executor).execute(handle, command)


execute = query


def errors(handle: Optional[ConnectionHandle]) -> List[ErrorEntry]:
    """Errors from the last command run on the handle, empty if it succeeded"""
    if handle is None:
        raise ConfigurationError()
    return handle.errors


def _as_resultset(result: Any) -> Resultset:
    if not isinstance(result, Resultset):
        raise TypeError("Value provided is not a resultset")
    return result


def fetch_object(result: Any):
    """Next row as an object, or None when no rows remain"""
    return _as_resultset(result).next_as_object()


def fetch_assoc(result: Any) -> Optional[Dict[str, Any]]:
    """Next row as a dict keyed by column name, or None when no rows remain"""
    return _as_resultset(result).next_as_map()


def fetch_row(result: Any) -> Optional[List[Any]]:
    """Next row as a list of cells, or None when no rows remain"""
    return _as_resultset(result).next_as_indexed()


def fetch_array(result: Any) -> Optional[CombinedRow]:
    """Next row with positional and keyed views, or None when no rows remain"""
    return _as_resultset(result).next_as_combined()


def reset_cursor(result: Any):
    """Move the cursor back to the first row"""
    _as_resultset(result).reset()


def fetch_fields(result: Any) -> List[Dict[str, Any]]:
    """Column descriptors of the resultset"""
    return _as_resultset(result).fields()


__all__ = [
    'Config',
    'setup_logging',
    'CodaServerSession',
    'CombinedRow',
    'CommandBuilder',
    'ConnectionHandle',
    'ColumnDescriptor',
    'ErrorEntry',
    'EXPIRED_SESSION_CODE',
    'HttpRpcTransport',
    'Outcome',
    'QueryExecutor',
    'QueryResult',
    'Resultset',
    'RpcTransport',
    'AuthenticationError',
    'CodaServerError',
    'ConfigurationError',
    'ProtocolError',
    'ServerError',
    'TransportError',
    'ValidationError',
    'connect',
    'query',
    'execute',
    'errors',
    'fetch_object',
    'fetch_assoc',
    'fetch_row',
    'fetch_array',
    'reset_cursor',
    'fetch_fields',
    '__version__',
]
