"""
Shared fixtures for the test suite.

FakeWaveLinkServer is a small aiohttp websocket server that speaks the subset of
the Wave Link JSON-RPC API the client uses. Tests can change its state, override
method handlers, hold back responses and push notifications.
"""

import asyncio
import copy
import inspect
import json
from typing import Any, Callable

import pytest
import pytest_asyncio
from aiohttp import WSMsgType, web
from aiohttp.test_utils import unused_port

from pywavelink.listener import ProtocolListener, WaveLinkListener
from pywavelink.mixer import WaveLinkMixer

MUSIC_ID = "pcm_out_01_v_02_sd3"
GAME_ID = "pcm_out_01_v_10_sd7"
CUSTOM_ID = "custom_input_1"
LONG_NAME = "A very long channel name that overflows"


def make_channel(
    mix_id: str,
    name: str,
    local: int = 20,
    stream: int = 30,
    local_muted: bool = False,
    stream_muted: bool = False,
    filters=None,
    input_type: int = 4,
) -> dict[str, Any]:
    return {
        "mixId": mix_id,
        "mixerName": name,
        "inputType": input_type,
        "localVolumeIn": local,
        "streamVolumeIn": stream,
        "isLocalInMuted": local_muted,
        "isStreamInMuted": stream_muted,
        "isLinked": False,
        "deltaLinked": 0,
        "isAvailable": True,
        "bgColor": "#123456",
        "iconData": "",
        "filters": filters or [],
        "localMixFilterBypass": False,
        "streamMixFilterBypass": False,
    }


def make_filter(filter_id: str, name: str, active: bool = True) -> dict[str, Any]:
    return {"filterID": filter_id, "name": name, "active": active, "pluginID": f"plugin-{filter_id}"}


def default_channels() -> list[dict[str, Any]]:
    return [
        make_channel(MUSIC_ID, "Music", 20, 30, filters=[make_filter("f1", "EQ"), make_filter("f2", "Gate", False)]),
        make_channel(GAME_ID, "Game", 50, 60, local_muted=True),
        make_channel(CUSTOM_ID, LONG_NAME, 70, 80, input_type=1),
    ]


INPUT_MIXER_FIELDS = (
    "isLinked",
    "localVolumeIn",
    "isLocalInMuted",
    "streamVolumeIn",
    "isStreamInMuted",
    "filters",
    "localMixFilterBypass",
    "streamMixFilterBypass",
)


class FakeWaveLinkServer:
    """Websocket server impersonating Wave Link."""

    def __init__(self, app_name: str = "Elgato Wave Link"):
        self.app_name = app_name
        self.channels = default_channels()
        self.output = {
            "localVolumeOut": 40,
            "streamVolumeOut": 45,
            "isLocalOutMuted": False,
            "isStreamOutMuted": False,
        }
        self.microphone_connected = True
        self.mic = {
            "microphoneGain": 60,
            "microphoneOutputVolume": 70,
            "microphoneBalance": 50,
            "isMicrophoneLowcutOn": False,
            "isMicrophoneClipguardOn": True,
        }
        self.switch_state = "LocalMix"
        self.monitor_mix = "Headphones (Wave:3)"
        self.monitor_mix_list = ["Headphones (Wave:3)", "Speakers (A Really Long Device Name Here)"]
        # Merged into setInputMixer / setOutputMixer results, to make the server disagree
        self.input_overrides: dict[str, Any] = {}
        self.output_overrides: dict[str, Any] = {}
        # Methods listed here get no response at all
        self.silent: set[str] = set()
        self.handlers: dict[str, Callable] = {
            "getApplicationInfo": lambda params: {"appName": self.app_name, "interfaceRevision": 3},
            "getAllChannelInfo": lambda params: copy.deepcopy(self.channels),
            "getMicrophoneState": lambda params: {"isMicrophoneConnected": self.microphone_connected},
            "getMicrophoneSettings": lambda params: dict(self.mic),
            "getMonitoringState": lambda params: dict(self.output),
            "getMonitorMixOutputList": lambda params: {
                "monitorMix": self.monitor_mix,
                "monitorMixList": [{"monitorMix": name} for name in self.monitor_mix_list],
            },
            "getSwitchState": lambda params: {"switchState": self.switch_state},
            "setInputMixer": self._set_input_mixer,
            "setOutputMixer": self._set_output_mixer,
            "setMicrophoneSettings": self._set_microphone_settings,
            "switchMonitoring": self._switch_monitoring,
            "setMonitorMixOutput": self._set_monitor_mix_output,
        }
        self.calls: list[tuple[str, Any]] = []
        self.port = None
        self._sockets: list[web.WebSocketResponse] = []
        self._runner = None

    async def start(self):
        app = web.Application()
        app.router.add_get("/", self._handle)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        self.port = unused_port()
        site = web.TCPSite(self._runner, "127.0.0.1", self.port)
        await site.start()

    async def stop(self):
        await self.drop_clients()
        if self._runner is not None:
            await self._runner.cleanup()

    async def drop_clients(self):
        for ws in list(self._sockets):
            await ws.close()
        self._sockets.clear()

    async def notify(self, method: str, params):
        message = json.dumps({"jsonrpc": "2.0", "method": method, "params": params})
        for ws in list(self._sockets):
            await ws.send_str(message)

    def calls_to(self, method: str) -> list:
        return [params for name, params in self.calls if name == method]

    async def _handle(self, request):
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self._sockets.append(ws)
        tasks = []
        async for msg in ws:
            if msg.type is not WSMsgType.TEXT:
                continue
            data = json.loads(msg.data)
            self.calls.append((data["method"], copy.deepcopy(data.get("params"))))
            if data["method"] in self.silent or "id" not in data:
                continue
            tasks.append(asyncio.get_running_loop().create_task(self._respond(ws, data)))
        for task in tasks:
            task.cancel()
        if ws in self._sockets:
            self._sockets.remove(ws)
        return ws

    async def _respond(self, ws, data):
        handler = self.handlers.get(data["method"])
        if handler is None:
            reply = {"jsonrpc": "2.0", "id": data["id"], "error": {"code": -32601, "message": "Method not found"}}
        else:
            result = handler(data.get("params"))
            if inspect.isawaitable(result):
                result = await result
            reply = {"jsonrpc": "2.0", "id": data["id"], "result": result}
        if not ws.closed:
            await ws.send_str(json.dumps(reply))

    def channel(self, mix_id: str) -> dict[str, Any]:
        return next(c for c in self.channels if c["mixId"] == mix_id)

    def _set_input_mixer(self, params):
        channel = self.channel(params["mixId"])
        for key in INPUT_MIXER_FIELDS:
            if key in params:
                channel[key] = copy.deepcopy(params[key])
        channel.update(self.input_overrides)
        return copy.deepcopy(channel)

    def _set_output_mixer(self, params):
        self.output.update(params)
        self.output.update(self.output_overrides)
        return dict(self.output)

    def _set_microphone_settings(self, params):
        self.mic.update(params)
        return dict(self.mic)

    def _switch_monitoring(self, params):
        self.switch_state = params["switchState"]
        return {"switchState": self.switch_state}

    def _set_monitor_mix_output(self, params):
        self.monitor_mix = params["monitorMix"]
        return {"monitorMix": self.monitor_mix}


class RecordingListener(WaveLinkListener):
    """Remembers every event it receives, in order."""

    def __init__(self, mixer=None):
        self.mixer = mixer
        self.events: list[tuple] = []
        # output local volume seen at each output_mixer_changed
        self.output_volumes: list[int] = []

    def count(self, event: str) -> int:
        return sum(1 for e in self.events if e[0] == event)

    def args_of(self, event: str) -> list:
        return [e[1:] for e in self.events if e[0] == event]

    def connected(self):
        self.events.append(("connected",))

    def disconnected(self):
        self.events.append(("disconnected",))

    def output_mixer_changed(self):
        self.events.append(("output_mixer_changed",))
        if self.mixer is not None:
            self.output_volumes.append(self.mixer.output_mixer.local_volume)

    def input_mixer_changed(self, mixer_id: str):
        self.events.append(("input_mixer_changed", mixer_id))

    def channels_changed(self):
        self.events.append(("channels_changed",))

    def mic_settings_changed(self):
        self.events.append(("mic_settings_changed",))

    def microphone_state_changed(self, connected: bool):
        self.events.append(("microphone_state_changed", connected))

    def monitor_mix_changed(self):
        self.events.append(("monitor_mix_changed",))

    def switch_state_changed(self, switch_state: str):
        self.events.append(("switch_state_changed", switch_state))

    def set_key_icons(self):
        self.events.append(("set_key_icons",))

    def filters_changed(self, mixer_id: str):
        self.events.append(("filters_changed", mixer_id))


class RecordingProtocolListener(ProtocolListener):

    def __init__(self):
        self.notifications = []
        self.disconnects = 0

    def notification_received(self, notification):
        self.notifications.append(notification)

    def disconnected(self):
        self.disconnects += 1


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0):
    """Poll ``predicate`` until it holds; fail the test on timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("Condition not met in time")
        await asyncio.sleep(0.005)


@pytest_asyncio.fixture
async def server():
    server = FakeWaveLinkServer()
    await server.start()
    yield server
    await server.stop()


def make_mixer(server: FakeWaveLinkServer, **kwargs) -> WaveLinkMixer:
    kwargs.setdefault("debounce_delay", 0.1)
    kwargs.setdefault("fade_tick", 0.01)
    return WaveLinkMixer(start_port=server.port, end_port=server.port, **kwargs)


@pytest_asyncio.fixture
async def mixer(server):
    mixer = make_mixer(server)
    await mixer.async_connect()
    yield mixer
    await mixer.async_close()


@pytest.fixture
def listener(mixer):
    listener = RecordingListener(mixer)
    mixer.register_listener(listener)
    return listener
