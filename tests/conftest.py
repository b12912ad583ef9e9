"""
Shared fixtures for the CodaServer client tests.
"""

from typing import Any, Dict, List, Mapping

import pytest

from codaserver.core.client import RpcTransport


class FakeServer:
    """In-memory stand-in for a CodaServer instance."""

    def __init__(self):
        self.tokens: List[str] = ["token-1", "token-2", "token-3"]
        self.responses: List[Mapping[str, Any]] = []
        self.logins: List[Dict[str, Any]] = []
        self.executed: List[Dict[str, Any]] = []
        self.endpoints: List[str] = []
        self.options: List[Dict[str, Any]] = []
        self.closed = 0

    def queue(self, *responses: Mapping[str, Any]):
        self.responses.extend(responses)

    def factory(self, endpoint: str, **options) -> "FakeTransport":
        self.endpoints.append(endpoint)
        self.options.append(options)
        return FakeTransport(self, endpoint)


class FakeTransport(RpcTransport):

    def __init__(self, server: FakeServer, endpoint: str):
        super().__init__(endpoint)
        self.server = server

    def login(self, username, password, reserved1=None, reserved2=None, reserved3=None):
        self.server.logins.append({"username": username, "password": password})
        if not self.server.tokens:
            return ""
        return self.server.tokens.pop(0)

    def execute(self, session_token, command):
        self.server.executed.append({"token": session_token, "command": command})
        if self.server.responses:
            response = self.server.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return {"error_flag": False, "errors": [], "data": None}

    def close(self):
        self.server.closed += 1


@pytest.fixture
def fake_server():
    return FakeServer()


@pytest.fixture
def tables_payload():
    return {
        "error_flag": False,
        "errors": [],
        "data": {
            "columns": [{"column_name": "NAME"}],
            "data": [["orders"], ["users"]],
        },
    }


@pytest.fixture
def people_payload():
    return {
        "columns": [
            {"column_name": "ID", "type": "INTEGER"},
            {"column_name": "NAME", "type": "STRING"},
        ],
        "data": [[1, "alice"], [2, "bob"], [3, "carol"]],
    }
