"""
Bitcoin Light Mirror - Wire Exceptions

This module defines custom exceptions for binary encoding and decoding.
"""


class WireError(Exception):
    """Base exception for wire encoding errors."""
    pass


class DecodeError(WireError):
    """Exception raised when a byte stream cannot be decoded."""
    pass


class TruncatedStreamError(DecodeError):
    """Exception raised when a stream ends before a value is complete."""

    def __init__(self, expected: int, received: int, message: str = None):
        self.expected = expected
        self.received = received
        if message is None:
            message = f"Truncated stream: expected {expected} bytes, received {received}"
        super().__init__(message)
