"""Errors raised by the Wave Link client."""


class WaveLinkError(Exception):
    """Base class for all pywavelink errors."""


class WaveLinkConnectionError(WaveLinkError):
    """Socket-level failure. The caller may retry; the next attempt uses the next port."""


class ConnectionRefused(WaveLinkConnectionError):
    """The websocket could not be opened on the current port."""

    def __init__(self, host: str, port: int, reason: str = ""):
        self.host = host
        self.port = port
        message = f"Could not connect to {host}:{port}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConnectionLost(WaveLinkConnectionError):
    """The socket closed while a call was waiting for its response."""


class WrongServer(WaveLinkError):
    """Something answered on the port, but it is not the expected application."""

    def __init__(self, app_name):
        self.app_name = app_name
        super().__init__(f"Wrong websocket server found: {app_name!r}")


class IdentityNotFound(WaveLinkError, LookupError):
    """A mutation referenced a channel or filter that is not in the cache."""


class RpcError(WaveLinkError):
    """The server answered a call with a JSON-RPC error object."""

    def __init__(self, code, message):
        self.code = code
        self.message = message
        super().__init__(f"RPC error {code}: {message}")


class CallTimeout(WaveLinkError):
    """No response arrived within the configured call timeout."""
