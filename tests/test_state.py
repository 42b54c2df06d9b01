"""
State cache tests: notifications pushed by the server update the mirrored
channels, output mixer, microphone and monitoring state.
"""

import pytest

from conftest import GAME_ID, MUSIC_ID, make_channel, make_filter, wait_for
from pywavelink.listener import WaveLinkListener


def input_mixer_params(mix_id: str, name: str, **kwargs) -> dict:
    return make_channel(mix_id, name, **kwargs)


class TestInputMixerChanged:

    @pytest.mark.asyncio
    async def test_updates_known_channel(self, server, mixer, listener) -> None:
        params = input_mixer_params(
            MUSIC_ID,
            "Music Renamed",
            local=11,
            stream=22,
            stream_muted=True,
            filters=[make_filter("f1", "EQ"), make_filter("f2", "Gate", False)],
        )
        params["isAvailable"] = False
        params["localMixFilterBypass"] = True
        await server.notify("inputMixerChanged", params)
        await wait_for(lambda: listener.count("input_mixer_changed") == 1)

        channel = mixer.get_channel(MUSIC_ID)
        assert channel.name == "Music Renamed"
        assert channel.local_volume == 11
        assert channel.stream_volume == 22
        assert channel.local_muted is False
        assert channel.stream_muted is True
        assert channel.is_available is False
        assert channel.local_filter_bypass is True
        assert listener.args_of("input_mixer_changed") == [(MUSIC_ID,)]
        # Same filter ids, no repaint
        assert listener.count("filters_changed") == 0

    @pytest.mark.asyncio
    async def test_positional_params_are_applied(self, server, mixer, listener) -> None:
        params = [
            "Game", GAME_ID, "#000000", False, 0, 5, 6, False, False, True,
            [], False, False, "", 4,
        ]
        await server.notify("inputMixerChanged", params)
        await wait_for(lambda: listener.count("input_mixer_changed") == 1)

        channel = mixer.get_channel(GAME_ID)
        assert (channel.local_volume, channel.stream_volume) == (5, 6)
        assert channel.local_muted is False
        assert channel.bg_color == "#000000"

    @pytest.mark.asyncio
    async def test_unknown_channel_is_ignored(self, server, mixer, listener) -> None:
        before = {c.mixer_id: c.local_volume for c in mixer.channels}
        await server.notify("inputMixerChanged", input_mixer_params("nobody", "Ghost", local=99))
        # A later, known change proves the unknown one was processed first
        await server.notify("monitorSwitchOutputChanged", {"switchState": "StreamMix"})
        await wait_for(lambda: listener.count("switch_state_changed") == 1)

        assert mixer.get_channel("nobody") is None
        assert {c.mixer_id: c.local_volume for c in mixer.channels} == before
        assert listener.count("input_mixer_changed") == 0

    @pytest.mark.asyncio
    async def test_filter_id_change_asks_for_repaint(self, server, mixer, listener) -> None:
        params = input_mixer_params(MUSIC_ID, "Music", filters=[make_filter("f1", "EQ"), make_filter("f3", "Comp")])
        await server.notify("inputMixerChanged", params)
        await wait_for(lambda: listener.count("filters_changed") == 1)

        assert listener.args_of("filters_changed") == [(MUSIC_ID,)]
        assert mixer.get_channel(MUSIC_ID).filter_ids == ("f1", "f3")

    @pytest.mark.asyncio
    async def test_filter_state_change_does_not_repaint(self, server, mixer, listener) -> None:
        params = input_mixer_params(
            MUSIC_ID, "Music", filters=[make_filter("f1", "EQ", False), make_filter("f2", "Gate", True)]
        )
        await server.notify("inputMixerChanged", params)
        await wait_for(lambda: listener.count("input_mixer_changed") == 1)

        filters = mixer.get_channel(MUSIC_ID).filters
        assert [f.active for f in filters] == [False, True]
        assert listener.count("filters_changed") == 0

    @pytest.mark.asyncio
    async def test_long_names_are_truncated(self, server, mixer, listener) -> None:
        await server.notify("inputMixerChanged", input_mixer_params(GAME_ID, "G" * 40))
        await wait_for(lambda: listener.count("input_mixer_changed") == 1)
        assert mixer.get_channel(GAME_ID).name == "G" * 26 + "…"


class TestOutputAndMonitoring:

    @pytest.mark.asyncio
    async def test_output_mixer_changed(self, server, mixer, listener) -> None:
        await server.notify("outputMixerChanged", [12, 34, True, False])
        await wait_for(lambda: listener.count("output_mixer_changed") == 1)

        output = mixer.output_mixer
        assert (output.local_volume, output.stream_volume) == (12, 34)
        assert output.local_muted is True
        assert output.stream_muted is False
        assert listener.output_volumes == [12]

    @pytest.mark.asyncio
    async def test_switch_state_changed(self, server, mixer, listener) -> None:
        await server.notify("monitorSwitchOutputChanged", {"switchState": "StreamMix"})
        await wait_for(lambda: listener.count("switch_state_changed") == 1)
        assert mixer.switch_state == "StreamMix"
        assert listener.args_of("switch_state_changed") == [("StreamMix",)]

    @pytest.mark.asyncio
    async def test_local_monitor_output_changed(self, server, mixer, listener) -> None:
        await server.notify("localMonitorOutputChanged", ["Speakers (A Really Long Device Name Here)"])
        await wait_for(lambda: listener.count("monitor_mix_changed") == 1)
        assert mixer.selected_monitor_mix == "Speakers (A Really Long Device Name Here)"

    @pytest.mark.asyncio
    async def test_monitor_mix_entries_have_display_names(self, mixer) -> None:
        outputs = mixer.monitor_mix_outputs
        assert outputs[0].name == outputs[0].value
        assert outputs[1].value == "Speakers (A Really Long Device Name Here)"
        assert outputs[1].name == "Speakers (A Really Long De…"
        assert len(outputs[1].name) == 27


class TestMicrophone:

    @pytest.mark.asyncio
    async def test_settings_changed(self, server, mixer, listener) -> None:
        await server.notify("microphoneSettingsChanged", [10, 20, 30, True, False])
        await wait_for(lambda: listener.count("mic_settings_changed") == 1)

        mic = mixer.microphone_settings
        assert (mic.gain, mic.output_volume, mic.balance) == (10, 20, 30)
        assert mic.is_lowcut_on is True
        assert mic.is_clipguard_on is False

    @pytest.mark.asyncio
    async def test_state_change_refreshes_in_background(self, server, mixer, listener) -> None:
        server.mic["microphoneGain"] = 5
        server.monitor_mix_list.append("Line Out")
        await server.notify("microphoneStateChanged", {"isMicrophoneConnected": True})

        await wait_for(lambda: listener.count("microphone_state_changed") == 1)
        assert listener.args_of("microphone_state_changed") == [(True,)]
        await wait_for(lambda: listener.count("monitor_mix_changed") == 1)

        assert mixer.is_microphone_connected is True
        assert mixer.microphone_settings.gain == 5
        assert [m.value for m in mixer.monitor_mix_outputs][-1] == "Line Out"
        # Settings are refreshed before the monitor list
        names = [e[0] for e in listener.events]
        assert names.index("mic_settings_changed") < names.index("monitor_mix_changed")

    @pytest.mark.asyncio
    async def test_unplugged_microphone_skips_settings(self, server, mixer, listener) -> None:
        fetched_before = len(server.calls_to("getMicrophoneSettings"))
        await server.notify("microphoneStateChanged", [False])
        await wait_for(lambda: listener.count("monitor_mix_changed") == 1)

        assert mixer.is_microphone_connected is False
        assert mixer.microphone_settings is None
        assert len(server.calls_to("getMicrophoneSettings")) == fetched_before
        assert listener.count("mic_settings_changed") == 0


class BrokenListener(WaveLinkListener):
    """Listener whose every abstract event raises."""

    def connected(self):
        raise RuntimeError("connected")

    def disconnected(self):
        raise RuntimeError("disconnected")

    def output_mixer_changed(self):
        raise RuntimeError("output")

    def input_mixer_changed(self, mixer_id):
        raise RuntimeError("input")

    def channels_changed(self):
        raise RuntimeError("channels")


class TestListeners:

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_starve_others(self, server, mixer, listener) -> None:
        mixer.unregister_listener(listener)
        mixer.register_listener(BrokenListener())
        mixer.register_listener(listener)

        await server.notify("outputMixerChanged", [1, 2, False, False])
        await wait_for(lambda: listener.count("output_mixer_changed") == 1)
        assert mixer.output_mixer.local_volume == 1

    @pytest.mark.asyncio
    async def test_unregistered_listener_gets_nothing(self, server, mixer, listener) -> None:
        mixer.unregister_listener(listener)
        await server.notify("monitorSwitchOutputChanged", ["StreamMix"])
        await wait_for(lambda: mixer.switch_state == "StreamMix")
        assert listener.events == []
