"""RabbitMQ management HTTP API client library."""

from .client import METHODS, ManagementClient, escape_segment
from .exceptions import (
    InvalidMethod,
    ManagementError,
    MissingParameter,
    ResultDecodeError,
)
from .result import Result

__all__ = [
    "METHODS",
    "ManagementClient",
    "Result",
    "escape_segment",
    "ManagementError",
    "MissingParameter",
    "InvalidMethod",
    "ResultDecodeError",
]
