"""Wave Link Mixer - live mirror of the Wave Link channel state.

This module contains the high-level client:
- Connection to the Wave Link websocket with port cycling and handshake
- Full state fetch on every successful connection
- Notification handlers that keep the cached channels, output mixer,
  microphone and monitoring state up to date
- Debouncing of change events towards listeners
- Optimistic mutations reconciled against the server's answer
- Volume fades

This class implements ProtocolListener to receive callbacks from the transport."""

import asyncio
import logging
import math
from asyncio import Task
from typing import Any, Optional

from aiohttp import ClientSession

from pywavelink.exceptions import (
    CallTimeout,
    IdentityNotFound,
    RpcError,
    WaveLinkConnectionError,
    WrongServer,
)
from pywavelink.listener import MultiplexingListener, ProtocolListener
from pywavelink.models import (
    Channel,
    ConnectionState,
    Filter,
    MicrophoneSettings,
    MixerType,
    MonitorMix,
    Output,
    OutputMixer,
    Slider,
    SwitchState,
    clamp_volume,
    fix_name,
    single_slider,
    toggled_pair,
)
from pywavelink.notifications import (
    ChannelsChanged,
    InputMixerChanged,
    LocalMonitorOutputChanged,
    MicrophoneSettingsChanged,
    MicrophoneStateChanged,
    MonitorSwitchOutputChanged,
    OutputMixerChanged,
)
from pywavelink.protocol import DEFAULT_HOST, END_PORT, START_PORT, WaveLinkProtocol
from pywavelink.scheduling import JobRegistry, NotificationDebouncer

EXPECTED_APP_NAME = "Elgato Wave Link"

# Change events are coalesced to at most two per window per key
DEFAULT_DEBOUNCE_DELAY = 0.15
# Interval between two steps of a volume fade
DEFAULT_FADE_TICK = 0.1


def _entries(collection) -> list:
    """Wave Link sends some lists as JSON objects keyed by index."""
    if not collection:
        return []
    if isinstance(collection, dict):
        return list(collection.values())
    return list(collection)


class WaveLinkMixer(ProtocolListener):
    """High-level Wave Link client.

    This class:
    - Creates and manages the WaveLinkProtocol instance
    - Cycles through the Wave Link port range on failed connection attempts
    - Mirrors channels, output mixer, microphone and monitoring state
    - Debounces change notifications towards registered listeners
    - Applies mutations optimistically, then reconciles with the server's answer
    - Runs volume fades, at most one per slider

    Retrying failed connections is left to the caller; each async_connect() is
    one attempt, and each failed attempt moves on to the next port.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        start_port: int = START_PORT,
        end_port: int = END_PORT,
        expected_app_name: str = EXPECTED_APP_NAME,
        debounce_delay: float = DEFAULT_DEBOUNCE_DELAY,
        fade_tick: float = DEFAULT_FADE_TICK,
        call_timeout: Optional[float] = None,
        session: Optional[ClientSession] = None,
    ):
        """Initialize mixer.

        Args:
            host: Address Wave Link listens on (loopback)
            start_port: First port of the Wave Link port range
            end_port: Last port of the Wave Link port range
            expected_app_name: appName the handshake must report
            debounce_delay: Seconds of the change-event suppression window
            fade_tick: Seconds between two fade steps
            call_timeout: Seconds to wait for a response, None waits forever
            session: Optional aiohttp ClientSession to open the websocket with
        """
        if start_port > end_port:
            raise ValueError(f"start_port {start_port} is above end_port {end_port}")
        self._host = host
        self._start_port = start_port
        self._end_port = end_port
        self._port = start_port
        self._expected_app_name = expected_app_name
        self._fade_tick = fade_tick

        self._logger = logging.getLogger(__name__)
        self._state = ConnectionState.IDLE

        # Domain objects
        self.channels_by_id: dict[str, Channel] = {}
        self.output_mixer = OutputMixer()
        self._microphone_settings: Optional[MicrophoneSettings] = None
        self._is_microphone_connected: Optional[bool] = None
        self._monitor_mix_outputs: list[MonitorMix] = []
        self._selected_monitor_mix: Optional[str] = None
        self._switch_state: Optional[str] = None

        # Create multiplexing listener for external listeners
        self._multiplex_callback = MultiplexingListener()

        # Scheduled jobs, all cancelled when the connection goes away
        self._output_debouncer = NotificationDebouncer(
            debounce_delay, lambda _key: self._multiplex_callback.output_mixer_changed(), "output"
        )
        self._input_debouncer = NotificationDebouncer(
            debounce_delay, self._multiplex_callback.input_mixer_changed, "input"
        )
        self._fades = JobRegistry("fade")
        self._refreshes = JobRegistry("refresh")

        # Create protocol instance
        self._protocol = WaveLinkProtocol(self, session=session, call_timeout=call_timeout)

    # ========== Connection lifecycle ==========

    @property
    def connection_state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def port(self) -> int:
        """Port the next connection attempt will use."""
        return self._port

    async def async_connect(self):
        """Make one connection attempt on the current port.

        Raises:
            ConnectionRefused / ConnectionLost: socket failure, the port has been
                advanced so the caller can simply try again.
            WrongServer: something else is listening on the port.
            RpcError / CallTimeout: the state fetch failed, the client is idle again.
        """
        if self._state is ConnectionState.CONNECTED:
            return

        port = self._port
        self._state = ConnectionState.CONNECTING
        self._logger.info(f"Trying to connect to port: {port}")
        try:
            await self._protocol.async_connect(self._host, port)
        except WaveLinkConnectionError:
            self._connection_failed()
            raise

        self._state = ConnectionState.HANDSHAKING
        try:
            app_info = await self._protocol.call("getApplicationInfo")
        except (WaveLinkConnectionError, CallTimeout):
            await self._protocol.close()
            self._connection_failed()
            raise
        except RpcError as e:
            self._logger.error(f"Wrong WebSocketServer found on port {port}: {e}")
            await self._protocol.close()
            self._state = ConnectionState.IDLE
            raise WrongServer(None) from e

        app_name = app_info.get("appName") if isinstance(app_info, dict) else None
        if app_name != self._expected_app_name:
            self._logger.error(f"Wrong WebSocketServer found on port {port}: {app_name!r}")
            await self._protocol.close()
            self._state = ConnectionState.IDLE
            raise WrongServer(app_name)

        self._logger.info(f"Wave Link WebSocketServer found on port {port}")
        # Stays HANDSHAKING until the cache is built, so a failed fetch can be retried
        try:
            await self.fetch_all_state()
        except WaveLinkConnectionError:
            await self._protocol.close()
            self._connection_failed()
            raise
        except (RpcError, CallTimeout) as e:
            self._logger.error(f"Fetching Wave Link state failed: {e}")
            await self._protocol.close()
            self._state = ConnectionState.IDLE
            raise
        self._state = ConnectionState.CONNECTED
        self._multiplex_callback.connected()

    async def async_close(self):
        """Close the connection and drop every scheduled job."""
        self._cancel_jobs()
        await self._protocol.close()
        self._state = ConnectionState.IDLE

    def _connection_failed(self):
        self._state = ConnectionState.RECONNECTING
        failed_port = self._port
        self._advance_port()
        self._logger.info(f"Connecting to port {failed_port} failed, next attempt uses port {self._port}")

    def _advance_port(self):
        if self._port >= self._end_port:
            self._port = self._start_port
        else:
            self._port += 1

    def disconnected(self):
        """Method from ProtocolListener."""
        was_connected = self._state is ConnectionState.CONNECTED
        self._cancel_jobs()
        if was_connected:
            self._state = ConnectionState.IDLE
            self._multiplex_callback.disconnected()

    def _cancel_jobs(self):
        self._output_debouncer.cancel_all()
        self._input_debouncer.cancel_all()
        self._fades.cancel_all()
        self._refreshes.cancel_all()

    # ========== Public API ==========

    @property
    def channels(self) -> list[Channel]:
        """Channels in Wave Link order."""
        return sorted(self.channels_by_id.values(), key=lambda c: c.position)

    @property
    def microphone_settings(self) -> Optional[MicrophoneSettings]:
        return self._microphone_settings

    @property
    def is_microphone_connected(self) -> Optional[bool]:
        return self._is_microphone_connected

    @property
    def monitor_mix_outputs(self) -> list[MonitorMix]:
        return list(self._monitor_mix_outputs)

    @property
    def selected_monitor_mix(self) -> Optional[str]:
        return self._selected_monitor_mix

    @property
    def switch_state(self) -> Optional[str]:
        return self._switch_state

    def get_channel(self, mixer_id: str) -> Optional[Channel]:
        return self.channels_by_id.get(mixer_id)

    def is_fading(self, slider, mixer_id: Optional[str] = None) -> bool:
        """Whether a fade owns the slider of a channel, or of the output mixer if no mixer_id."""
        return self._fades.is_active(self._fade_key(mixer_id, single_slider(slider)))

    def register_listener(self, listener):
        """Register external listener for mixer events."""
        self._multiplex_callback.register_listener(listener)

    def unregister_listener(self, listener):
        """Unregister external listener."""
        self._multiplex_callback.unregister_listener(listener)

    # ========== Full state fetch ==========

    async def fetch_all_state(self):
        """Rebuild the whole cache from the server."""
        # Nothing survives from an earlier connection
        self.output_mixer = OutputMixer()
        self._microphone_settings = None
        self._is_microphone_connected = None
        self._monitor_mix_outputs = []
        self._selected_monitor_mix = None
        self._switch_state = None
        await self.fetch_channels()
        await self.fetch_microphone_state()
        if self._is_microphone_connected:
            await self.fetch_microphone_settings()
        await self.fetch_monitoring_state()
        await self.fetch_monitor_mix_output_list()
        await self.fetch_switch_state()

    async def fetch_channels(self) -> list[Channel]:
        result = await self._protocol.call("getAllChannelInfo")
        self._set_channels(result)
        return self.channels

    async def fetch_microphone_state(self) -> bool:
        result = await self._protocol.call("getMicrophoneState")
        self._is_microphone_connected = result.get("isMicrophoneConnected")
        return self._is_microphone_connected

    async def fetch_microphone_settings(self) -> MicrophoneSettings:
        result = await self._protocol.call("getMicrophoneSettings")
        self._microphone_settings = MicrophoneSettings.from_wire(result)
        return self._microphone_settings

    async def fetch_monitoring_state(self) -> OutputMixer:
        result = await self._protocol.call("getMonitoringState")
        self.output_mixer._update_from_wire(result)
        return self.output_mixer

    async def fetch_monitor_mix_output_list(self) -> list[MonitorMix]:
        result = await self._protocol.call("getMonitorMixOutputList")
        self._monitor_mix_outputs = [
            MonitorMix(value=entry["monitorMix"], name=fix_name(entry["monitorMix"]))
            for entry in _entries(result.get("monitorMixList"))
        ]
        self._selected_monitor_mix = result.get("monitorMix")
        return self.monitor_mix_outputs

    async def fetch_switch_state(self) -> str:
        result = await self._protocol.call("getSwitchState")
        self._switch_state = result.get("switchState")
        return self._switch_state

    def _set_channels(self, channels):
        """Replace the channel collection wholesale."""
        new_channels: dict[str, Channel] = {}
        for position, entry in enumerate(_entries(channels), start=1):
            channel = Channel.from_wire(entry, position)
            new_channels[channel.mixer_id] = channel

        for mixer_id in set(self.channels_by_id) - set(new_channels):
            self._logger.debug(f"Channel {mixer_id} is gone")
            self._input_debouncer.cancel(mixer_id)
            for slider in (Slider.LOCAL, Slider.STREAM):
                self._fades.cancel(self._fade_key(mixer_id, slider))

        self.channels_by_id = new_channels
        self._logger.info(f"Found {len(new_channels)} channels")
        self._multiplex_callback.set_key_icons()

    # ========== Notification handlers ==========

    def notification_received(self, notification):
        """Method from ProtocolListener."""
        match notification:
            case MicrophoneStateChanged():
                self._microphone_state_changed(notification)
            case MicrophoneSettingsChanged():
                self._microphone_settings_changed(notification)
            case LocalMonitorOutputChanged(monitor_mix=monitor_mix):
                self._selected_monitor_mix = monitor_mix
                self._multiplex_callback.monitor_mix_changed()
            case MonitorSwitchOutputChanged(switch_state=switch_state):
                self._switch_state = switch_state
                self._multiplex_callback.switch_state_changed(switch_state)
            case OutputMixerChanged():
                self._output_mixer_changed(notification)
            case InputMixerChanged():
                self._input_mixer_changed(notification)
            case ChannelsChanged(channels=channels):
                self._set_channels(channels)
                self._multiplex_callback.channels_changed()
            case _:
                self._logger.debug(f"Unhandled notification: {notification!r}")

    def _microphone_state_changed(self, notification: MicrophoneStateChanged):
        self._is_microphone_connected = notification.is_microphone_connected
        if not self._is_microphone_connected:
            self._microphone_settings = None
        self._multiplex_callback.microphone_state_changed(notification.is_microphone_connected)
        self._refreshes.start("microphone", self._refresh_microphone())

    async def _refresh_microphone(self):
        if self._is_microphone_connected:
            await self.fetch_microphone_settings()
            self._multiplex_callback.mic_settings_changed()
        await self.fetch_monitor_mix_output_list()
        self._multiplex_callback.monitor_mix_changed()

    def _microphone_settings_changed(self, notification: MicrophoneSettingsChanged):
        self._microphone_settings = MicrophoneSettings(
            gain=notification.gain,
            output_volume=notification.output_volume,
            balance=notification.balance,
            is_lowcut_on=notification.is_lowcut_on,
            is_clipguard_on=notification.is_clipguard_on,
        )
        self._multiplex_callback.mic_settings_changed()

    def _output_mixer_changed(self, notification: OutputMixerChanged):
        output = self.output_mixer
        # A running fade owns its slider's volume until it finishes
        if not self.is_fading(Slider.LOCAL):
            output._local_volume = notification.local_volume
        if not self.is_fading(Slider.STREAM):
            output._stream_volume = notification.stream_volume
        output._local_muted = notification.is_local_muted
        output._stream_muted = notification.is_stream_muted
        self._output_debouncer.trigger()

    def _input_mixer_changed(self, notification: InputMixerChanged):
        channel = self.channels_by_id.get(notification.mixer_id)
        if channel is None:
            self._logger.debug(f"Ignoring change of unknown channel {notification.mixer_id}")
            return

        channel._name = fix_name(notification.mixer_name)
        channel._bg_color = notification.bg_color
        channel._is_linked = notification.is_linked
        channel._delta_linked = notification.delta_linked
        if not self.is_fading(Slider.LOCAL, channel.mixer_id):
            channel._local_volume = notification.local_volume
        if not self.is_fading(Slider.STREAM, channel.mixer_id):
            channel._stream_volume = notification.stream_volume
        channel._local_muted = notification.is_local_muted
        channel._stream_muted = notification.is_stream_muted
        channel._is_available = notification.is_available
        self._update_filters(channel, notification.filters)
        channel._local_filter_bypass = notification.local_filter_bypass
        channel._stream_filter_bypass = notification.stream_filter_bypass
        channel._icon_data = notification.icon_data
        channel._input_type = notification.input_type
        self._input_debouncer.trigger(channel.mixer_id)

    def _update_filters(self, channel: Channel, filters):
        """Store the filter list; a different set of filter ids asks for an icon repaint."""
        new_filters = [Filter.from_wire(f) for f in _entries(filters)]
        changed = tuple(f.filter_id for f in new_filters) != channel.filter_ids
        channel._filters = new_filters
        if changed:
            self._multiplex_callback.filters_changed(channel.mixer_id)

    # ========== Mutations: input channels ==========

    def _require_channel(self, mixer_id: str) -> Channel:
        channel = self.channels_by_id.get(mixer_id)
        if channel is None:
            raise IdentityNotFound(f"Channel {mixer_id!r} not found")
        return channel

    async def toggle_channel_mute(self, mixer_id: str, slider) -> Channel:
        """Toggle mute of the local, stream or both sliders of a channel."""
        slider = Slider(slider)
        channel = self._require_channel(mixer_id)
        channel._local_muted, channel._stream_muted = toggled_pair(
            channel.local_muted, channel.stream_muted, slider
        )
        return await self._push_input_mixer(channel, slider)

    async def set_channel_volume(self, mixer_id: str, slider, volume) -> Channel:
        """Set a channel slider's volume. A fade running on that slider is cancelled."""
        slider = single_slider(slider)
        channel = self._require_channel(mixer_id)
        self._cancel_fade(mixer_id, slider)
        channel._set_volume(slider, volume)
        return await self._push_input_mixer(channel, slider)

    async def adjust_channel_volume(self, mixer_id: str, slider, delta) -> Channel:
        slider = single_slider(slider)
        channel = self._require_channel(mixer_id)
        return await self.set_channel_volume(mixer_id, slider, channel.volume(slider) + delta)

    async def set_filter(self, mixer_id: str, filter_id: str, enabled: Optional[bool] = None) -> Channel:
        """Turn a filter on or off, or toggle it if enabled is None."""
        channel = self._require_channel(mixer_id)
        channel_filter = channel.get_filter(filter_id)
        channel_filter.active = (not channel_filter.active) if enabled is None else enabled
        return await self._push_input_mixer(channel, Slider.ALL)

    async def set_filter_bypass(self, mixer_id: str, slider, enabled: Optional[bool] = None) -> Channel:
        """Set the filter bypass of a slider, or toggle it if enabled is None."""
        slider = Slider(slider)
        channel = self._require_channel(mixer_id)
        if enabled is None:
            local, stream = toggled_pair(channel.local_filter_bypass, channel.stream_filter_bypass, slider)
        else:
            local = enabled if slider in (Slider.LOCAL, Slider.ALL) else channel.local_filter_bypass
            stream = enabled if slider in (Slider.STREAM, Slider.ALL) else channel.stream_filter_bypass
        channel._local_filter_bypass = local
        channel._stream_filter_bypass = stream
        return await self._push_input_mixer(channel, slider)

    async def _push_input_mixer(self, channel: Channel, slider) -> Channel:
        """Send the full channel record, then take over whatever the server answers."""
        self._logger.debug(f"Input mixer request - {channel.mixer_id} slider: {Slider(slider).value}")
        result = await self._protocol.call("setInputMixer", channel.to_wire(slider))
        if isinstance(result, dict):
            channel._reconcile(result)
            if "filters" in result:
                self._update_filters(channel, result["filters"])
        self._multiplex_callback.input_mixer_changed(channel.mixer_id)
        return channel

    # ========== Mutations: output mixer ==========

    async def toggle_output_mute(self, slider) -> OutputMixer:
        slider = Slider(slider)
        output = self.output_mixer
        output._local_muted, output._stream_muted = toggled_pair(
            output.local_muted, output.stream_muted, slider
        )
        return await self._push_output_mixer()

    async def set_output_volume(self, slider, volume, muted: Optional[bool] = None) -> OutputMixer:
        """Set an output slider's volume and mute state (unmuted unless muted is given)."""
        slider = single_slider(slider)
        self._cancel_fade(None, slider)
        self.output_mixer._set_volume(slider, volume)
        self.output_mixer._set_muted(slider, bool(muted))
        return await self._push_output_mixer()

    async def adjust_output_volume(self, slider, delta) -> OutputMixer:
        slider = single_slider(slider)
        self._cancel_fade(None, slider)
        output = self.output_mixer
        output._set_volume(slider, output.volume(slider) + delta)
        return await self._push_output_mixer()

    async def _push_output_mixer(self) -> OutputMixer:
        output = self.output_mixer
        self._logger.debug(f"Output mixer request - {output!r}")
        result = await self._protocol.call("setOutputMixer", output.to_wire())
        if isinstance(result, dict):
            output._update_from_wire(result)
        self._multiplex_callback.output_mixer_changed()
        return output

    # ========== Fades ==========

    @staticmethod
    def _fade_key(mixer_id: Optional[str], slider: Slider) -> tuple:
        if mixer_id is None:
            return MixerType.OUTPUT, None, slider
        return MixerType.INPUT, mixer_id, slider

    def _cancel_fade(self, mixer_id: Optional[str], slider: Slider):
        if self._fades.cancel(self._fade_key(mixer_id, slider)):
            target = mixer_id or "output"
            self._logger.info(f"Cancelled fade of {target} {slider.value} slider")

    def fade_channel_volume(self, mixer_id: str, slider, target, duration: float) -> Task[Any]:
        """Ramp a channel slider to ``target`` over ``duration`` seconds.

        A fade already running on the same slider is cancelled first. Returns the
        fade task; awaiting it is optional.
        """
        slider = single_slider(slider)
        self._require_channel(mixer_id)
        key = self._fade_key(mixer_id, slider)
        return self._fades.start(key, self._fade(key, clamp_volume(target), duration))

    def fade_output_volume(self, slider, target, duration: float) -> Task[Any]:
        """Ramp an output slider to ``target`` over ``duration`` seconds."""
        slider = single_slider(slider)
        key = self._fade_key(None, slider)
        return self._fades.start(key, self._fade(key, clamp_volume(target), duration))

    def _fade_subject(self, mixer_type: MixerType, mixer_id: Optional[str]) -> Output:
        if mixer_type is MixerType.OUTPUT:
            return self.output_mixer
        return self._require_channel(mixer_id)

    async def _fade(self, key: tuple, target: int, duration: float):
        mixer_type, mixer_id, slider = key
        self._logger.info(f"Fading {mixer_id or 'output'} {slider.value} slider to {target} over {duration}s")
        # Small epsilon keeps float noise from adding a step
        steps_left = max(0, math.ceil(duration / self._fade_tick - 1e-9))
        # Volumes are whole numbers, the ramp itself is not
        level = None
        while True:
            await asyncio.sleep(self._fade_tick)
            subject = self._fade_subject(mixer_type, mixer_id)
            if steps_left > 0:
                if level is None or clamp_volume(level) != subject.volume(slider):
                    level = float(subject.volume(slider))
                level += (target - level) / steps_left
                subject._set_volume(slider, level)
                steps_left -= 1
                finished = False
            else:
                subject._set_volume(slider, target)
                finished = True

            if mixer_type is MixerType.OUTPUT:
                await self._push_output_mixer()
            else:
                await self._push_input_mixer(subject, slider)
            if finished:
                self._logger.debug(f"Fade of {mixer_id or 'output'} {slider.value} slider finished")
                return

    # ========== Mutations: microphone ==========

    def _require_microphone(self) -> MicrophoneSettings:
        if self._microphone_settings is None:
            raise IdentityNotFound("No microphone settings received from Wave Link")
        return self._microphone_settings

    async def set_mic_gain(self, gain) -> MicrophoneSettings:
        self._require_microphone().gain = gain
        return await self._push_microphone_settings()

    async def adjust_mic_gain(self, delta) -> MicrophoneSettings:
        self._require_microphone().gain += delta
        return await self._push_microphone_settings()

    async def set_mic_output_volume(self, volume) -> MicrophoneSettings:
        self._require_microphone().output_volume = volume
        return await self._push_microphone_settings()

    async def adjust_mic_output_volume(self, delta) -> MicrophoneSettings:
        self._require_microphone().output_volume += delta
        return await self._push_microphone_settings()

    async def set_mic_balance(self, balance) -> MicrophoneSettings:
        self._require_microphone().balance = balance
        return await self._push_microphone_settings()

    async def adjust_mic_balance(self, delta) -> MicrophoneSettings:
        self._require_microphone().balance += delta
        return await self._push_microphone_settings()

    async def toggle_lowcut(self) -> MicrophoneSettings:
        mic = self._require_microphone()
        mic.is_lowcut_on = not mic.is_lowcut_on
        return await self._push_microphone_settings()

    async def toggle_clipguard(self) -> MicrophoneSettings:
        mic = self._require_microphone()
        mic.is_clipguard_on = not mic.is_clipguard_on
        return await self._push_microphone_settings()

    async def _push_microphone_settings(self) -> MicrophoneSettings:
        mic = self._require_microphone()
        result = await self._protocol.call("setMicrophoneSettings", mic.to_wire())
        if isinstance(result, dict):
            mic.update_from_wire(result)
        self._multiplex_callback.mic_settings_changed()
        return mic

    # ========== Mutations: monitoring ==========

    async def change_switch_state(self, switch_state) -> str:
        """Route the local or the stream mix to the monitoring output."""
        self._switch_state = SwitchState(switch_state).value
        result = await self._protocol.call("switchMonitoring", {"switchState": self._switch_state})
        if isinstance(result, dict):
            self._switch_state = result.get("switchState", self._switch_state)
        self._multiplex_callback.switch_state_changed(self._switch_state)
        return self._switch_state

    async def toggle_switch_state(self) -> str:
        if self._switch_state == SwitchState.STREAM_MIX.value:
            return await self.change_switch_state(SwitchState.LOCAL_MIX)
        return await self.change_switch_state(SwitchState.STREAM_MIX)

    async def set_monitor_mix_output(self, monitor_mix: str) -> Optional[str]:
        self._selected_monitor_mix = monitor_mix
        result = await self._protocol.call("setMonitorMixOutput", {"monitorMix": monitor_mix})
        if isinstance(result, dict):
            self._selected_monitor_mix = result.get("monitorMix", self._selected_monitor_mix)
        self._multiplex_callback.monitor_mix_changed()
        return self._selected_monitor_mix
