"""
Main command-line interface for pywavelink.

This script provides a CLI to interact with Elgato Wave Link.
"""

import argparse
import asyncio
import logging

from pywavelink.exceptions import WaveLinkConnectionError, WaveLinkError
from pywavelink.listener import LoggingListener
from pywavelink.mixer import WaveLinkMixer
from pywavelink.protocol import DEFAULT_HOST, END_PORT, START_PORT

# Every retry moves forward one port, 21 retries cycle the whole range twice
DEFAULT_RETRIES = 21

OUTPUT_TARGET = "output"


async def connect_with_retry(mixer: WaveLinkMixer, retries: int = DEFAULT_RETRIES):
    """Try to connect up to ``retries`` times, one port further on each failure.

    WrongServer is not retried. The last connection error is raised once the
    budget is spent.
    """
    last_error = None
    for attempt in range(1, retries + 1):
        try:
            await mixer.async_connect()
            return
        except WaveLinkConnectionError as e:
            last_error = e
            logging.debug(f"Connection attempt {attempt}/{retries} failed: {e}")
    if last_error is None:
        raise ValueError("retries must be at least 1")
    raise last_error


def _format_slider(volume, muted) -> str:
    return "MUTE" if muted else f"{volume:3d}"


def print_status(mixer: WaveLinkMixer):
    output = mixer.output_mixer
    print("\nChannels:")
    print("-" * 100)
    for channel in mixer.channels:
        filters = ",".join(f.name + ("" if f.active else " (off)") for f in channel.filters) or "none"
        label = f"{channel.position}. {channel.name}"
        availability = "" if channel.is_available else " [unavailable]"
        print(
            f"{label:32s} local: {_format_slider(channel.local_volume, channel.local_muted)} | "
            f"stream: {_format_slider(channel.stream_volume, channel.stream_muted)} | "
            f"filters: {filters}{availability}"
        )
        print(f"{'':32s} id: {channel.mixer_id}")
    print("-" * 100)
    print(
        f"{'Output':32s} local: {_format_slider(output.local_volume, output.local_muted)} | "
        f"stream: {_format_slider(output.stream_volume, output.stream_muted)}"
    )
    print(f"{'Monitoring':32s} {mixer.switch_state} (monitor mix: {mixer.selected_monitor_mix})")
    mic = mixer.microphone_settings
    if mic is not None:
        print(
            f"{'Microphone':32s} gain: {mic.gain} | output: {mic.output_volume} | balance: {mic.balance} | "
            f"lowcut: {'on' if mic.is_lowcut_on else 'off'} | clipguard: {'on' if mic.is_clipguard_on else 'off'}"
        )


async def run(args) -> int:
    mixer = WaveLinkMixer(args.host, start_port=args.start_port, end_port=args.end_port)
    try:
        try:
            await connect_with_retry(mixer, args.retries)
        except WaveLinkError as e:
            print(f"Couldn't connect to Wave Link software! {e}")
            return 1

        if args.command == "status":
            print_status(mixer)
        elif args.command == "mute":
            if args.target == OUTPUT_TARGET:
                await mixer.toggle_output_mute(args.slider)
            else:
                await mixer.toggle_channel_mute(args.target, args.slider)
            print_status(mixer)
        elif args.command == "volume":
            if args.target == OUTPUT_TARGET:
                await mixer.set_output_volume(args.slider, args.level)
            else:
                await mixer.set_channel_volume(args.target, args.slider, args.level)
            print_status(mixer)
        elif args.command == "fade":
            duration = args.duration / 1000.0
            print(f"Fading {args.target} {args.slider} to {args.level} over {duration}s...")
            if args.target == OUTPUT_TARGET:
                await mixer.fade_output_volume(args.slider, args.level, duration)
            else:
                await mixer.fade_channel_volume(args.target, args.slider, args.level, duration)
            print_status(mixer)
        elif args.command == "switch":
            if args.state:
                state = await mixer.change_switch_state(args.state)
            else:
                state = await mixer.toggle_switch_state()
            print(f"Monitoring: {state}")
        elif args.command == "monitor":
            mixer.register_listener(LoggingListener(logging.getLogger("wavelink.events")))
            print(f"Watching Wave Link events for {args.seconds}s...")
            await asyncio.sleep(args.seconds)
        return 0
    except WaveLinkError as e:
        print(f"Error: {e}")
        return 1
    finally:
        await mixer.async_close()


def main():
    parser = argparse.ArgumentParser(description="Control Elgato Wave Link")
    parser.add_argument("--host", default=DEFAULT_HOST, help=f"Wave Link host (default: {DEFAULT_HOST})")
    parser.add_argument("--start-port", type=int, default=START_PORT, help=f"First port to try (default: {START_PORT})")
    parser.add_argument("--end-port", type=int, default=END_PORT, help=f"Last port to try (default: {END_PORT})")
    parser.add_argument("--retries", type=int, default=DEFAULT_RETRIES,
                        help=f"Connection attempts before giving up (default: {DEFAULT_RETRIES})")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Status command
    subparsers.add_parser("status", help="Show channels, output mixer and microphone")

    slider_choices = ["local", "stream"]

    # Mute command
    mute_parser = subparsers.add_parser("mute", help="Toggle mute of a channel or the output")
    mute_parser.add_argument("target", help="Channel mixer id, or 'output'")
    mute_parser.add_argument("slider", choices=slider_choices + ["all"], help="Slider to toggle")

    # Volume command
    volume_parser = subparsers.add_parser("volume", help="Set volume of a channel or the output")
    volume_parser.add_argument("target", help="Channel mixer id, or 'output'")
    volume_parser.add_argument("slider", choices=slider_choices)
    volume_parser.add_argument("level", type=int, help="Volume level (0-100)")

    # Fade command
    fade_parser = subparsers.add_parser("fade", help="Fade volume of a channel or the output")
    fade_parser.add_argument("target", help="Channel mixer id, or 'output'")
    fade_parser.add_argument("slider", choices=slider_choices)
    fade_parser.add_argument("level", type=int, help="Target volume level (0-100)")
    fade_parser.add_argument("--duration", type=int, default=1000, help="Fade duration in ms (default: 1000)")

    # Switch command
    switch_parser = subparsers.add_parser("switch", help="Choose which mix is monitored")
    switch_parser.add_argument("state", nargs="?", choices=["LocalMix", "StreamMix"],
                               help="Mix to monitor (toggles if omitted)")

    # Monitor command
    monitor_parser = subparsers.add_parser("monitor", help="Log Wave Link events")
    monitor_parser.add_argument("--seconds", type=float, default=60.0, help="How long to watch (default: 60)")

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    if args.command is None:
        parser.print_help()
        return
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
