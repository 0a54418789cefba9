"""
MockGen Errors

Exception taxonomy shared by the scanner, generator and mock server.

Only bind failures are allowed to stop a run; every other error here is
caught by the component that owns the failing file, request or artifact.
"""

from typing import Optional


class MockgenError(Exception):
    """Base class for all MockGen errors."""


class ScanError(MockgenError):
    """A source file could not be read or is not text."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot scan {path}: {reason}")


class ConfigParseError(MockgenError):
    """config.json exists but is not a valid config document."""


class BundleParseError(MockgenError):
    """mock.json exists but is not a valid mock bundle."""


class TemplateRenderError(MockgenError):
    """A body template holds a placeholder that cannot be resolved."""


class BindError(MockgenError):
    """The listening socket could not be bound for a reason other than port reuse."""

    def __init__(self, host: str, port: int, cause: Optional[BaseException] = None):
        self.host = host
        self.port = port
        self.cause = cause
        super().__init__(f"Cannot bind {host}:{port}: {cause}")


class PortInUseError(BindError):
    """Every port in the fallback window is already taken."""

    def __init__(self, host: str, start_port: int, attempts: int):
        self.attempts = attempts
        super().__init__(host, start_port)
        self.args = (
            f"No free port on {host} in range {start_port}-{start_port + attempts - 1}",
        )
