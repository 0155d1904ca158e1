"""RabbitMQ management client exceptions."""


class ManagementError(Exception):
    """Base exception for management client errors."""


class MissingParameter(ManagementError):
    """A required parameter was not supplied."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"missing required parameter: {name}")


class InvalidMethod(ManagementError, ValueError):
    """The HTTP method is not one the management API accepts."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"invalid method: {method}")


class ResultDecodeError(ManagementError, ValueError):
    """The response body is not valid JSON."""

    def __init__(self, message: str):
        super().__init__(message)
