"""Push notifications sent by Wave Link.

Every notification kind is a small frozen dataclass. ``PARAMS`` lists the wire
parameter names in the order the server sends them positionally; the dataclass
fields follow the same order.
"""

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Optional, Union


class _Notification:
    METHOD: ClassVar[str]
    PARAMS: ClassVar[tuple[str, ...]]

    @classmethod
    def from_params(cls, params):
        """Bind positional (list) or named (dict) params to the dataclass fields.

        Raises ValueError for params of any other shape.
        """
        if params is None:
            params = []
        if isinstance(params, dict):
            values = [params.get(name) for name in cls.PARAMS]
        elif isinstance(params, (list, tuple)):
            values = list(params)[: len(cls.PARAMS)]
            values += [None] * (len(cls.PARAMS) - len(values))
        else:
            raise ValueError(f"Unexpected params for {cls.METHOD}: {params!r}")
        return cls(*values)

    def to_params(self) -> dict[str, Any]:
        """Named wire params, mainly used by tests and the fake server."""
        return {
            wire_name: getattr(self, field.name)
            for wire_name, field in zip(self.PARAMS, fields(self))
        }


@dataclass(frozen=True)
class MicrophoneStateChanged(_Notification):
    METHOD = "microphoneStateChanged"
    PARAMS = ("isMicrophoneConnected",)

    is_microphone_connected: bool


@dataclass(frozen=True)
class MicrophoneSettingsChanged(_Notification):
    METHOD = "microphoneSettingsChanged"
    PARAMS = (
        "microphoneGain",
        "microphoneOutputVolume",
        "microphoneBalance",
        "isMicrophoneLowcutOn",
        "isMicrophoneClipguardOn",
    )

    gain: int
    output_volume: int
    balance: int
    is_lowcut_on: bool
    is_clipguard_on: bool


@dataclass(frozen=True)
class LocalMonitorOutputChanged(_Notification):
    METHOD = "localMonitorOutputChanged"
    PARAMS = ("monitorMix",)

    monitor_mix: str


@dataclass(frozen=True)
class MonitorSwitchOutputChanged(_Notification):
    METHOD = "monitorSwitchOutputChanged"
    PARAMS = ("switchState",)

    switch_state: str


@dataclass(frozen=True)
class OutputMixerChanged(_Notification):
    METHOD = "outputMixerChanged"
    PARAMS = (
        "localVolumeOut",
        "streamVolumeOut",
        "isLocalOutMuted",
        "isStreamOutMuted",
    )

    local_volume: int
    stream_volume: int
    is_local_muted: bool
    is_stream_muted: bool


@dataclass(frozen=True)
class InputMixerChanged(_Notification):
    METHOD = "inputMixerChanged"
    PARAMS = (
        "mixerName",
        "mixId",
        "bgColor",
        "isLinked",
        "deltaLinked",
        "localVolumeIn",
        "streamVolumeIn",
        "isLocalInMuted",
        "isStreamInMuted",
        "isAvailable",
        "filters",
        "localMixFilterBypass",
        "streamMixFilterBypass",
        "iconData",
        "inputType",
    )

    mixer_name: str
    mixer_id: str
    bg_color: str
    is_linked: bool
    delta_linked: int
    local_volume: int
    stream_volume: int
    is_local_muted: bool
    is_stream_muted: bool
    is_available: bool
    filters: Optional[list]
    local_filter_bypass: bool
    stream_filter_bypass: bool
    icon_data: Optional[str]
    input_type: Optional[int]


@dataclass(frozen=True)
class ChannelsChanged(_Notification):
    METHOD = "channelsChanged"
    PARAMS = ("channels",)

    channels: Any


Notification = Union[
    MicrophoneStateChanged,
    MicrophoneSettingsChanged,
    LocalMonitorOutputChanged,
    MonitorSwitchOutputChanged,
    OutputMixerChanged,
    InputMixerChanged,
    ChannelsChanged,
]

NOTIFICATION_TYPES = {
    kind.METHOD: kind
    for kind in (
        MicrophoneStateChanged,
        MicrophoneSettingsChanged,
        LocalMonitorOutputChanged,
        MonitorSwitchOutputChanged,
        OutputMixerChanged,
        InputMixerChanged,
        ChannelsChanged,
    )
}


def parse_notification(method: str, params) -> Optional[Notification]:
    """Build the typed notification for ``method``, or None if the method is unknown."""
    kind = NOTIFICATION_TYPES.get(method)
    if kind is None:
        return None
    return kind.from_params(params)
