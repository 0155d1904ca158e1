"""Client for the HTTP API of the RabbitMQ management plugin."""

__version__ = "0.1.0"

from .client import (
    InvalidMethod,
    ManagementClient,
    ManagementError,
    MissingParameter,
    Result,
    ResultDecodeError,
    escape_segment,
)

__all__ = [
    "InvalidMethod",
    "ManagementClient",
    "ManagementError",
    "MissingParameter",
    "Result",
    "ResultDecodeError",
    "__version__",
    "escape_segment",
]
