"""
CodaServer RPC Client

Transport layer for CodaServer RPC communication. The rest of the client only
talks to the RpcTransport interface, so the wire format can be swapped without
touching the executor or the command builders.

License: Mozilla Public License 2.0
"""

import itertools
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests.exceptions import HTTPError, RequestException

from ..errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
USER_AGENT = "codaserver-python"


def build_endpoint(hostname: str, port: Any) -> str:
    """Build the server URL from a hostname and port"""
    return f"http://{hostname}:{port}"


class RpcTransport(ABC):
    """
    The two RPC capabilities the client relies on.
    """

    def __init__(self, endpoint: str):
        self.endpoint = endpoint

    @abstractmethod
    def login(self, username: str, password: str, reserved1: Any = None,
              reserved2: Any = None, reserved3: Any = None) -> str:
        """
        Authenticate against the server.

        Returns:
            Session token, or an empty string if the credentials were rejected
        """

    @abstractmethod
    def execute(self, session_token: str, command: str) -> Mapping[str, Any]:
        """
        Run a command under an existing session.

        Returns:
            Raw response mapping with the error flag, error list and data payload
        """

    def close(self):
        """Release any resources held by the transport"""

    def __repr__(self):
        return f"{self.__class__.__name__}(endpoint={self.endpoint})"


class HttpRpcTransport(RpcTransport):
    """
    JSON-RPC over HTTP transport built on requests.
    """

    _ids = itertools.count(1)

    def __init__(self, endpoint: str, timeout: Optional[float] = None, verify: bool = True):
        """
        Initialize HTTP transport.

        Args:
            endpoint: Server URL, e.g. http://localhost:3407
            timeout: Request timeout in seconds
            verify: Verify TLS certificates for https endpoints
        """
        super().__init__(endpoint)
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self.verify = verify
        self.session = requests.Session()

        logger.debug(f"CodaServer transport initialized: {self.endpoint}")

    def _call(self, method: str, params: List[Any]) -> Any:
        """
        Post a single JSON-RPC call and unwrap its result.

        Args:
            method: Remote method name
            params: Positional parameters

        Returns:
            The "result" member of the response

        Raises:
            TransportError: On HTTP failure, bad JSON or an RPC-level error
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        headers = {
            "User-Agent": USER_AGENT,
            "Content-Type": "application/json",
        }

        logger.debug(f"Request: POST {self.endpoint}, method='{method}'")

        try:
            response = self.session.post(
                url=self.endpoint,
                json=payload,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify
            )

            if response.status_code != 200:
                error_msg = f"CodaServer returned status {response.status_code}"
                if response.text:
                    error_msg += f": {response.text}"
                raise TransportError(error_msg, {"status_code": response.status_code})

            try:
                body = response.json()
            except ValueError:
                raise TransportError(f"Response to '{method}' is not valid JSON")

        except HTTPError as e:
            logger.error(f"HTTP error: {e}")
            raise TransportError(f"HTTP error: {str(e)}")
        except RequestException as e:
            logger.error(f"Request error: {e}")
            raise TransportError(f"Request error: {str(e)}")

        if not isinstance(body, dict):
            raise TransportError(f"Unexpected response body for '{method}'")

        if body.get("error"):
            error = body["error"]
            if isinstance(error, dict):
                message = error.get("message", str(error))
            else:
                message = str(error)
            logger.error(f"RPC error from '{method}': {message}")
            raise TransportError(f"RPC error: {message}", {"error": error})

        return body.get("result")

    def login(self, username: str, password: str, reserved1: Any = None,
              reserved2: Any = None, reserved3: Any = None) -> str:
        result = self._call("login", [username, password, reserved1, reserved2, reserved3])
        return result or ""

    def execute(self, session_token: str, command: str) -> Mapping[str, Any]:
        result = self._call("execute", [session_token, command])
        if result is None:
            return {}
        if not isinstance(result, Mapping):
            raise TransportError("Execute response is not an object")
        return result

    def close(self):
        """Close the underlying HTTP session"""
        logger.debug("Shutting down CodaServer transport")
        self.session.close()


def transport_options(timeout: Optional[float], verify: Optional[bool]) -> Dict[str, Any]:
    """Keyword arguments passed through to a transport factory"""
    options: Dict[str, Any] = {}
    if timeout is not None:
        options["timeout"] = timeout
    if verify is not None:
        options["verify"] = verify
    return options
