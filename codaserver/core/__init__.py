"""
Core components for the CodaServer client

License: Mozilla Public License 2.0
"""

from .client import RpcTransport, HttpRpcTransport
from .connection import ConnectionHandle, ErrorEntry, ErrorState, connect, EXPIRED_SESSION_CODE
from .command_builder import CommandBuilder
from .query_executor import QueryExecutor, QueryResult, Outcome, ErrorKind, RpcResponse
from .resultset import Resultset, ColumnDescriptor, CombinedRow
from .session import CodaServerSession

__all__ = [
    'RpcTransport',
    'HttpRpcTransport',
    'ConnectionHandle',
    'ErrorEntry',
    'ErrorState',
    'connect',
    'EXPIRED_SESSION_CODE',
    'CommandBuilder',
    'QueryExecutor',
    'QueryResult',
    'Outcome',
    'ErrorKind',
    'RpcResponse',
    'Resultset',
    'ColumnDescriptor',
    'CombinedRow',
    'CodaServerSession',
]
