import asyncio
import itertools
import json
import logging
from asyncio import Future, Task
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp
from aiohttp import ClientSession, ClientWebSocketResponse, WSMsgType

from pywavelink.exceptions import (
    CallTimeout,
    ConnectionLost,
    ConnectionRefused,
    RpcError,
)
from pywavelink.listener import ProtocolListener
from pywavelink.notifications import parse_notification

# Wave Link listens on the loopback interface, on the first free port of 1824-1834
DEFAULT_HOST = "127.0.0.1"
START_PORT = 1824
END_PORT = START_PORT + 10

JSONRPC_VERSION = "2.0"


@dataclass(frozen=True)
class Response:
    """Answer to a call, correlated by ``id``."""
    id: Any
    result: Any = None
    error: Optional[dict] = None


def encode_request(request_id, method: str, params=None) -> str:
    """Frame a call (or, with ``request_id=None``, a notification) as JSON text."""
    message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if params is not None:
        message["params"] = params
    if request_id is not None:
        message["id"] = request_id
    return json.dumps(message)


def decode_message(text: str):
    """Decode one inbound frame.

    Returns a Response, a typed notification, or None for anything else
    (unknown notification methods, requests addressed to us, junk).
    Raises ValueError if the frame is not a JSON object.
    """
    message = json.loads(text)
    if not isinstance(message, dict):
        raise ValueError(f"Expected a JSON object, got {type(message).__name__}")

    method = message.get("method")
    if method is None:
        if "id" not in message:
            return None
        return Response(message["id"], message.get("result"), message.get("error"))

    # Requests carry an id; Wave Link only pushes notifications to clients
    if message.get("id") is not None:
        return None
    return parse_notification(method, message.get("params"))


class WaveLinkProtocol:
    """JSON-RPC over websocket transport.

    Owns the socket, the reader task and the table of pending calls. Inbound
    notifications are forwarded to the ProtocolListener, responses resolve the
    future of the matching call.
    """

    _ws: Optional[ClientWebSocketResponse]
    _reader_task: Optional[Task[None]]
    _pending_calls: dict[int, Future]

    def __init__(
        self,
        callback: ProtocolListener,
        session: Optional[ClientSession] = None,
        call_timeout: Optional[float] = None,
    ):
        self._logger = logging.getLogger(__name__)
        self._callback = callback
        self._session = session
        self._owns_session = session is None
        self._call_timeout = call_timeout

        self._ws = None
        self._reader_task = None
        self._connected = False
        self.peer_name = None
        self._request_ids = itertools.count(1)
        self._pending_calls = {}

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def pending_call_count(self) -> int:
        return len(self._pending_calls)

    async def async_connect(self, host: str, port: int):
        """Open the websocket. Raises ConnectionRefused on any socket-level failure."""
        # A socket left over from an earlier attempt is torn down first
        await self._close_socket()
        if self._session is None or self._session.closed:
            self._session = ClientSession()
            self._owns_session = True

        url = f"ws://{host}:{port}"
        self._logger.debug(f"Trying to connect to {url}")
        try:
            self._ws = await self._session.ws_connect(url)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            raise ConnectionRefused(host, port, str(e) or type(e).__name__) from e

        self._connected = True
        self.peer_name = (host, port)
        self._logger.info(f"Connection Made: {self.peer_name}")
        self._reader_task = asyncio.get_running_loop().create_task(self._reader(self._ws))

    async def close(self):
        """Close the socket and, if we created it, the aiohttp session."""
        await self._close_socket()
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _close_socket(self):
        ws = self._ws
        if ws is not None and not ws.closed:
            await ws.close()
        if self._reader_task is not None and not self._reader_task.done():
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
        self._reader_task = None
        self._handle_connection_broken()
        self._ws = None

    async def call(self, method: str, params=None):
        """Send a request and wait for the result of the matching response."""
        if not self._connected or self._ws is None:
            raise ConnectionLost(f"Not connected, cannot call {method}")

        request_id = next(self._request_ids)
        future = asyncio.get_running_loop().create_future()
        self._pending_calls[request_id] = future
        message = encode_request(request_id, method, params)
        try:
            self._logger.debug(f"SEND: {message}")
            await self._ws.send_str(message)
            if self._call_timeout is None:
                response = await future
            else:
                response = await asyncio.wait_for(future, self._call_timeout)
        except asyncio.TimeoutError as e:
            raise CallTimeout(f"No response to {method} within {self._call_timeout}s") from e
        except ConnectionResetError as e:
            raise ConnectionLost(f"Connection lost while sending {method}") from e
        finally:
            self._pending_calls.pop(request_id, None)

        if response.error is not None:
            error = response.error if isinstance(response.error, dict) else {"message": response.error}
            raise RpcError(error.get("code"), error.get("message"))
        return response.result

    async def notify(self, method: str, params=None):
        """Send a notification, no response is expected."""
        if not self._connected or self._ws is None:
            raise ConnectionLost(f"Not connected, cannot notify {method}")
        message = encode_request(None, method, params)
        self._logger.debug(f"SEND: {message}")
        await self._ws.send_str(message)

    async def _reader(self, ws: ClientWebSocketResponse):
        try:
            async for message in ws:
                if message.type is WSMsgType.TEXT:
                    self.data_received(message.data)
                elif message.type is WSMsgType.ERROR:
                    self._logger.error(f"Websocket error: {ws.exception()}")
                    break
                else:
                    self._logger.debug(f"Ignoring websocket message of type {message.type}")
        finally:
            # A replaced socket must not tear down its successor
            if ws is self._ws:
                self._handle_connection_broken()

    def data_received(self, data: str):
        self._logger.debug(f"RECV: {data}")
        try:
            message = decode_message(data)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            self._logger.warning(f"Dropping undecodable frame {data!r}: {e}")
            return

        if message is None:
            self._logger.debug(f"Unhandled message received: {data}")
            return

        if isinstance(message, Response):
            future = self._pending_calls.get(message.id)
            if future is None:
                self._logger.debug(f"No pending call for response id {message.id}")
                return
            if not future.done():
                future.set_result(message)
            return

        try:
            self._callback.notification_received(message)
        except Exception as e:
            self._logger.error(f"Exception handling {message.METHOD}: {e}", exc_info=True)

    def _handle_connection_broken(self):
        """Fail every pending call and tell the listener, once per connection."""
        if not self._connected:
            return
        self._connected = False
        self._logger.info(f"Disconnected from {self.peer_name}")

        pending = list(self._pending_calls.values())
        self._pending_calls.clear()
        for future in pending:
            if not future.done():
                future.set_exception(ConnectionLost(f"Connection to {self.peer_name} lost"))

        # Notify callback, but don't let callback exceptions escape the reader
        try:
            self._callback.disconnected()
        except Exception as e:
            self._logger.error(f"Exception in disconnected() callback: {e}", exc_info=True)
