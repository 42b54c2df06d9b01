"""pywavelink Python Package

Python library for controlling Elgato Wave Link through its local websocket API.
"""

from pywavelink.exceptions import (
    ConnectionLost,
    ConnectionRefused,
    IdentityNotFound,
    WaveLinkError,
    WrongServer,
)
from pywavelink.listener import LoggingListener, WaveLinkListener
from pywavelink.mixer import WaveLinkMixer
from pywavelink.models import Slider, SwitchState

__all__ = [
    "ConnectionLost",
    "ConnectionRefused",
    "IdentityNotFound",
    "LoggingListener",
    "Slider",
    "SwitchState",
    "WaveLinkError",
    "WaveLinkListener",
    "WaveLinkMixer",
    "WrongServer",
]
