"""Domain objects mirrored from Wave Link: channels, filters, output mixer, microphone."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pywavelink.exceptions import IdentityNotFound

MIN_VOLUME = 0
MAX_VOLUME = 100

# Names longer than this are cut down for display
MAX_NAME_LENGTH = 27
ELLIPSIS = "…"

# Fixed icon names for the stock Wave Link channels
ICONS_BY_MIXER_ID = {
    "pcm_in_01_c_00_sd1": "Wave",
    "pcm_out_01_v_00_sd2": "System",
    "pcm_out_01_v_02_sd3": "Music",
    "pcm_out_01_v_04_sd4": "Browser",
    "pcm_out_01_v_06_sd5": "Voice Chat",
    "pcm_out_01_v_08_sd6": "SFX",
    "pcm_out_01_v_10_sd7": "Game",
    "pcm_out_01_v_12_sd8": "AUX",
    "pcm_out_01_v_14_sd9": "AUX",
}
ICONS_BY_INPUT_TYPE = {
    1: "Wave",
    4: "AUX",
}


class Slider(str, Enum):
    LOCAL = "local"
    STREAM = "stream"
    ALL = "all"


class MixerType(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


class SwitchState(str, Enum):
    LOCAL_MIX = "LocalMix"
    STREAM_MIX = "StreamMix"


class ConnectionState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    RECONNECTING = "reconnecting"
    HANDSHAKING = "handshaking"
    CONNECTED = "connected"


def clamp_volume(volume) -> int:
    """Round and clamp a volume into the 0-100 device range."""
    return max(MIN_VOLUME, min(MAX_VOLUME, int(round(volume))))


def fix_name(name: Optional[str], max_length: int = MAX_NAME_LENGTH) -> Optional[str]:
    if name and len(name) > max_length:
        return name[: max_length - 1] + ELLIPSIS
    return name


def resolve_icon(mixer_id: str, input_type: Optional[int]) -> Optional[str]:
    icon = ICONS_BY_MIXER_ID.get(mixer_id)
    if icon is None:
        icon = ICONS_BY_INPUT_TYPE.get(input_type)
    return icon


def single_slider(slider) -> Slider:
    """Coerce to LOCAL or STREAM; ALL is rejected."""
    slider = Slider(slider)
    if slider is Slider.ALL:
        raise ValueError("A single slider (local or stream) is required")
    return slider


def toggled_pair(local: bool, stream: bool, slider: Slider) -> tuple[bool, bool]:
    """Flip one flag of a local/stream pair, or both for Slider.ALL.

    For ALL, flags that disagree are both forced on; flags that agree are flipped together.
    """
    if slider is Slider.ALL:
        if local == stream:
            return not local, not stream
        return True, True
    if slider is Slider.LOCAL:
        return not local, stream
    return local, not stream


@dataclass
class Filter:
    """An audio effect attached to a channel."""
    filter_id: str
    name: str
    active: bool
    plugin_id: str

    @classmethod
    def from_wire(cls, data: dict) -> "Filter":
        return cls(
            filter_id=data.get("filterID"),
            name=data.get("name"),
            active=bool(data.get("active")),
            plugin_id=data.get("pluginID"),
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "filterID": self.filter_id,
            "name": self.name,
            "active": self.active,
            "pluginID": self.plugin_id,
        }


@dataclass
class MicrophoneSettings:
    gain: int = 0
    output_volume: int = 0
    balance: int = 0
    is_lowcut_on: bool = False
    is_clipguard_on: bool = False

    # attribute -> wire name
    WIRE_NAMES = {
        "gain": "microphoneGain",
        "output_volume": "microphoneOutputVolume",
        "balance": "microphoneBalance",
        "is_lowcut_on": "isMicrophoneLowcutOn",
        "is_clipguard_on": "isMicrophoneClipguardOn",
    }

    @classmethod
    def from_wire(cls, data: dict) -> "MicrophoneSettings":
        settings = cls()
        settings.update_from_wire(data)
        return settings

    def update_from_wire(self, data: dict):
        """Overwrite every field the server sent; fields it left out keep their value."""
        for attribute, wire_name in self.WIRE_NAMES.items():
            if wire_name in data:
                setattr(self, attribute, data[wire_name])

    def to_wire(self) -> dict[str, Any]:
        return {wire_name: getattr(self, attribute) for attribute, wire_name in self.WIRE_NAMES.items()}


@dataclass
class MonitorMix:
    """An entry of the monitor mix output list."""
    value: str
    name: str


class Output:
    """Base class for anything with a local and a stream slider."""
    _type_name = "Output"

    def __init__(self):
        self._local_volume: int = 0
        self._stream_volume: int = 0
        self._local_muted: bool = False
        self._stream_muted: bool = False

    @property
    def local_volume(self) -> int:
        return self._local_volume

    @property
    def stream_volume(self) -> int:
        return self._stream_volume

    @property
    def local_muted(self) -> bool:
        return self._local_muted

    @property
    def stream_muted(self) -> bool:
        return self._stream_muted

    def volume(self, slider) -> int:
        """Volume of the local or stream slider."""
        if single_slider(slider) is Slider.LOCAL:
            return self._local_volume
        return self._stream_volume

    def is_muted(self, slider) -> bool:
        if single_slider(slider) is Slider.LOCAL:
            return self._local_muted
        return self._stream_muted

    def _set_volume(self, slider, volume):
        if single_slider(slider) is Slider.LOCAL:
            self._local_volume = clamp_volume(volume)
        else:
            self._stream_volume = clamp_volume(volume)

    def _set_muted(self, slider, muted: bool):
        if single_slider(slider) is Slider.LOCAL:
            self._local_muted = muted
        else:
            self._stream_muted = muted


class OutputMixer(Output):
    """The headphone/monitor output."""
    _type_name = "Output mixer"

    def __init__(self):
        super().__init__()
        self.bg_color = "#1E183C"

    def _update_from_wire(self, data: dict):
        self._local_volume = data.get("localVolumeOut", self._local_volume)
        self._stream_volume = data.get("streamVolumeOut", self._stream_volume)
        self._local_muted = data.get("isLocalOutMuted", self._local_muted)
        self._stream_muted = data.get("isStreamOutMuted", self._stream_muted)

    def to_wire(self) -> dict[str, Any]:
        return {
            "localVolumeOut": clamp_volume(self._local_volume),
            "isLocalOutMuted": self._local_muted,
            "streamVolumeOut": clamp_volume(self._stream_volume),
            "isStreamOutMuted": self._stream_muted,
        }

    def __repr__(self):
        return (
            f"OutputMixer(local={self._local_volume}{' muted' if self._local_muted else ''}, "
            f"stream={self._stream_volume}{' muted' if self._stream_muted else ''})"
        )


class Channel(Output):
    """One Wave Link input channel ("mixer")."""
    _type_name = "Channel"

    def __init__(self, mixer_id: str, name: str, position: int = 0):
        super().__init__()
        self._mixer_id = mixer_id
        self._name = name
        self._position = position
        self._input_type: Optional[int] = None
        self._is_linked: bool = False
        self._delta_linked: int = 0
        self._filters: list[Filter] = []
        self._local_filter_bypass: bool = False
        self._stream_filter_bypass: bool = False
        self._is_available: bool = True
        self._bg_color: Optional[str] = None
        self._icon: Optional[str] = None
        self._icon_data: Optional[str] = None

    @classmethod
    def from_wire(cls, data: dict, position: int = 0) -> "Channel":
        """Build a channel from a getAllChannelInfo / channelsChanged entry."""
        channel = cls(data["mixId"], fix_name(data.get("mixerName")), position)
        channel._input_type = data.get("inputType")
        channel._local_volume = data.get("localVolumeIn")
        channel._stream_volume = data.get("streamVolumeIn")
        channel._local_muted = data.get("isLocalInMuted")
        channel._stream_muted = data.get("isStreamInMuted")
        channel._is_linked = data.get("isLinked", False)
        channel._delta_linked = data.get("deltaLinked", 0)
        channel._is_available = data.get("isAvailable")
        channel._bg_color = data.get("bgColor")
        channel._icon = resolve_icon(channel._mixer_id, channel._input_type)
        channel._icon_data = data.get("iconData")
        channel._filters = [Filter.from_wire(f) for f in data.get("filters") or []]
        channel._local_filter_bypass = data.get("localMixFilterBypass")
        channel._stream_filter_bypass = data.get("streamMixFilterBypass")
        return channel

    @property
    def mixer_id(self) -> str:
        return self._mixer_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def position(self) -> int:
        """1-based position in the channel list as sent by Wave Link."""
        return self._position

    @property
    def input_type(self) -> Optional[int]:
        return self._input_type

    @property
    def is_linked(self) -> bool:
        return self._is_linked

    @property
    def delta_linked(self) -> int:
        return self._delta_linked

    @property
    def filters(self) -> list[Filter]:
        return self._filters

    @property
    def filter_ids(self) -> tuple:
        return tuple(f.filter_id for f in self._filters)

    @property
    def local_filter_bypass(self) -> bool:
        return self._local_filter_bypass

    @property
    def stream_filter_bypass(self) -> bool:
        return self._stream_filter_bypass

    @property
    def is_available(self) -> bool:
        return self._is_available

    @property
    def bg_color(self) -> Optional[str]:
        return self._bg_color

    @property
    def icon(self) -> Optional[str]:
        return self._icon

    @property
    def icon_data(self) -> Optional[str]:
        return self._icon_data

    def get_filter(self, filter_id: str) -> Filter:
        for f in self._filters:
            if f.filter_id == filter_id:
                return f
        raise IdentityNotFound(f"Filter {filter_id!r} not found on channel {self._mixer_id!r}")

    def filter_bypass(self, slider) -> bool:
        if single_slider(slider) is Slider.LOCAL:
            return self._local_filter_bypass
        return self._stream_filter_bypass

    def _reconcile(self, result: dict):
        """Overwrite the mirrored slider state with a setInputMixer result.

        Filters are left to the caller, which needs to compare them first.
        """
        self._is_available = result.get("isAvailable", self._is_available)
        self._is_linked = result.get("isLinked", self._is_linked)
        self._delta_linked = result.get("deltaLinked", self._delta_linked)
        self._local_volume = result.get("localVolumeIn", self._local_volume)
        self._local_muted = result.get("isLocalInMuted", self._local_muted)
        self._stream_volume = result.get("streamVolumeIn", self._stream_volume)
        self._stream_muted = result.get("isStreamInMuted", self._stream_muted)
        self._local_filter_bypass = result.get("localMixFilterBypass", self._local_filter_bypass)
        self._stream_filter_bypass = result.get("streamMixFilterBypass", self._stream_filter_bypass)

    def to_wire(self, slider) -> dict[str, Any]:
        """Payload of a setInputMixer call carrying the full current record."""
        return {
            "mixId": self._mixer_id,
            "slider": Slider(slider).value,
            "isLinked": self._is_linked,
            "localVolumeIn": clamp_volume(self._local_volume),
            "isLocalInMuted": self._local_muted,
            "streamVolumeIn": clamp_volume(self._stream_volume),
            "isStreamInMuted": self._stream_muted,
            "filters": [f.to_wire() for f in self._filters],
            "localMixFilterBypass": self._local_filter_bypass,
            "streamMixFilterBypass": self._stream_filter_bypass,
        }

    def __repr__(self):
        return f"Channel({self._mixer_id!r}, {self._name!r})"
