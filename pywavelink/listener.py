from abc import ABC, abstractmethod
import logging
from typing import List


class ProtocolListener(ABC):
    """Receives transport level events from WaveLinkProtocol."""

    @abstractmethod
    def notification_received(self, notification):
        pass

    @abstractmethod
    def disconnected(self):
        pass


class WaveLinkListener(ABC):
    """Outward event surface of WaveLinkMixer.

    Events only say *what* changed; listeners read the new values from the mixer.
    """

    @abstractmethod
    def connected(self):
        pass

    @abstractmethod
    def disconnected(self):
        pass

    @abstractmethod
    def output_mixer_changed(self):
        pass

    @abstractmethod
    def input_mixer_changed(self, mixer_id: str):
        pass

    @abstractmethod
    def channels_changed(self):
        pass

    def mic_settings_changed(self):
        pass

    def microphone_state_changed(self, connected: bool):
        pass

    def monitor_mix_changed(self):
        pass

    def switch_state_changed(self, switch_state: str):
        pass

    def set_key_icons(self):
        """Called after every full replacement of the channel list."""
        pass

    def filters_changed(self, mixer_id: str):
        """Called when the set of filters on a channel changed, so icons can be repainted."""
        pass


class MultiplexingListener(WaveLinkListener):

    _listeners: List[WaveLinkListener]

    def __init__(self):
        self._listeners = []
        self._logger = logging.getLogger(__name__)

    def _dispatch(self, event: str, *args):
        for listener in list(self._listeners):
            try:
                getattr(listener, event)(*args)
            except Exception as e:
                # Listener failures are logged, never propagated
                self._logger.error(f"Exception in {event}() callback of {listener!r}: {e}", exc_info=True)

    def connected(self):
        self._dispatch("connected")

    def disconnected(self):
        self._dispatch("disconnected")

    def output_mixer_changed(self):
        self._dispatch("output_mixer_changed")

    def input_mixer_changed(self, mixer_id: str):
        self._dispatch("input_mixer_changed", mixer_id)

    def channels_changed(self):
        self._dispatch("channels_changed")

    def mic_settings_changed(self):
        self._dispatch("mic_settings_changed")

    def microphone_state_changed(self, connected: bool):
        self._dispatch("microphone_state_changed", connected)

    def monitor_mix_changed(self):
        self._dispatch("monitor_mix_changed")

    def switch_state_changed(self, switch_state: str):
        self._dispatch("switch_state_changed", switch_state)

    def set_key_icons(self):
        self._dispatch("set_key_icons")

    def filters_changed(self, mixer_id: str):
        self._dispatch("filters_changed", mixer_id)

    def register_listener(self, listener: WaveLinkListener):
        self._listeners.append(listener)

    def unregister_listener(self, listener: WaveLinkListener):
        if listener in self._listeners:
            self._listeners.remove(listener)
        else:
            self._logger.info("Listener isn't registered")


class LoggingListener(WaveLinkListener):

    def __init__(self, logger=logging):
        self.logger = logger

    def connected(self):
        self.logger.info("Connected")

    def disconnected(self):
        self.logger.info("Disconnected")

    def output_mixer_changed(self):
        self.logger.info("Output mixer changed")

    def input_mixer_changed(self, mixer_id: str):
        self.logger.info(f"Input mixer {mixer_id} changed")

    def channels_changed(self):
        self.logger.info("Channel list changed")

    def mic_settings_changed(self):
        self.logger.info("Microphone settings changed")

    def microphone_state_changed(self, connected: bool):
        self.logger.info(f"Microphone connected: {connected}")

    def monitor_mix_changed(self):
        self.logger.info("Monitor mix changed")

    def switch_state_changed(self, switch_state: str):
        self.logger.info(f"Monitoring switched to: {switch_state}")

    def set_key_icons(self):
        self.logger.debug("Key icons refresh requested")

    def filters_changed(self, mixer_id: str):
        self.logger.info(f"Filters changed on {mixer_id}")
