"""
CodaServer Client Errors

Exception taxonomy shared by every layer of the client.

License: Mozilla Public License 2.0
"""

from typing import Any, Dict, List, Optional


class CodaServerError(Exception):
    """Base exception for the CodaServer client."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dict for rendering or logging."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class AuthenticationError(CodaServerError):
    """The server rejected the supplied credentials."""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class ValidationError(CodaServerError, ValueError):
    """A caller parameter is missing or malformed. Raised before any network call."""

    def __init__(self, message: str = "Validation failed", parameter: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.parameter = parameter
        details = dict(details or {})
        if parameter:
            details.setdefault("parameter", parameter)
        super().__init__("VALIDATION_ERROR", message, details)


class ConfigurationError(CodaServerError):
    """Operation invoked without a usable connection, or the client is misconfigured."""

    def __init__(self, message: str = "Invalid CodaServer connection specified",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ServerError(CodaServerError):
    """The engine reported one or more errors for a well-formed request."""

    def __init__(self, errors: List[Any], message: Optional[str] = None):
        self.errors = list(errors)
        if message is None:
            if self.errors:
                message = "; ".join(f"[{e.code}] {e.message}" for e in self.errors)
            else:
                message = "CodaServer reported an error"
        super().__init__("SERVER_ERROR", message, {"errors": [e.to_dict() for e in self.errors]})


class TransportError(CodaServerError):
    """The RPC transport failed before a response could be interpreted."""

    def __init__(self, message: str = "Transport error", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSPORT_ERROR", message, details)


class ProtocolError(CodaServerError):
    """The server response does not have the expected shape."""

    def __init__(self, message: str = "Malformed server response", details: Optional[Dict[str, Any]] = None):
        super().__init__("PROTOCOL_ERROR", message, details)
