"""
Custom exceptions for the Discord REST client

Every failure that leaves the request pipeline is one of these. HTTP 429 is
handled inside the pipeline and never surfaces.
"""
from typing import Optional


class ClientException(Exception):
    """Base exception for all client-related errors."""
    pass


class APIException(ClientException):
    """Exception for API-related errors (non-2xx responses)."""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body

    @classmethod
    def from_response(cls, status: int, body: str) -> 'APIException':
        """Build the error reported for a failed HTTP response."""
        return cls(f"HTTP {status}: {body}", status=status, body=body)


class TransportException(APIException):
    """Network-level failure: connection error, timeout, dropped response."""
    pass


class ResponseParseException(APIException):
    """A 2xx response whose body is not valid JSON. Never retried."""
    pass


class ValidationException(ClientException):
    """Exception for invalid caller arguments."""
    pass


class ConfigurationException(ClientException):
    """Exception for configuration-related errors."""
    pass
