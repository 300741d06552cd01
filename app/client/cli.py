#!/usr/bin/env python3
"""
Genie terminal client

Talk to a running Genie server from the command line.

Usage:
    python -m app.client                          # Enter to record, Enter to stop
    python -m app.client --scenario "At School"   # Roleplay mode
    python -m app.client --language Spanish       # Replies in Spanish
    python -m app.client --list-devices           # Show microphones
    python -m app.client --file hello.ogg         # Submit a recording from disk
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import httpx
from loguru import logger

from app.client.capture import (
    MicrophoneRecorder,
    list_input_devices,
    load_audio_file,
)
from app.client.pipeline import ChatOptions, TurnPipeline, VoiceChatClient
from app.client.playback import PlaybackStore, play_file
from app.client.session import SessionState, VoiceChatSession
from app.config import settings
from app.prompts import DEFAULT_LANGUAGE, ReplyLanguage, Scenario


def parse_device(value: Optional[str]):
    if value is None:
        return None
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Genie voice tutor terminal client")
    parser.add_argument(
        "--server", default=settings.client_server_url, help="Genie server URL"
    )
    parser.add_argument(
        "--scenario",
        default=Scenario.OFF.value,
        choices=[s.value for s in Scenario],
        help="Roleplay scenario (empty for off)",
    )
    parser.add_argument(
        "--language",
        default=DEFAULT_LANGUAGE.value,
        choices=[lang.value for lang in ReplyLanguage],
        help="Language Genie replies in",
    )
    parser.add_argument("--device", help="Input device index or name")
    parser.add_argument(
        "--list-devices", action="store_true", help="List microphones and exit"
    )
    parser.add_argument(
        "--file",
        action="append",
        dest="files",
        help="Submit an audio file instead of recording (repeatable)",
    )
    parser.add_argument(
        "--no-play", action="store_true", help="Do not play spoken replies"
    )
    return parser


def print_devices() -> None:
    devices = list_input_devices()
    if not devices:
        print("No microphones found.")
        return
    for device in devices:
        marker = "*" if device.is_default else " "
        print(f"{marker} [{device.index}] {device.name} ({device.channels} ch)")


def print_logs(session: VoiceChatSession) -> None:
    print("\n--- You said ---")
    print(session.log.render_transcripts())
    print("--- Genie replied ---")
    print(session.log.render_replies())
    print()


async def report_turn(session: VoiceChatSession, play: bool) -> None:
    if session.error:
        print(f"Error: {session.error}")
    print_logs(session)

    turn = session.last_turn
    if turn is None:
        return
    if turn.notice:
        print(f"({turn.notice})")
    if play and turn.audio_path:
        await asyncio.to_thread(play_file, turn.audio_path)


async def run(args: argparse.Namespace) -> int:
    options = ChatOptions(
        scenario=Scenario(args.scenario),
        language=ReplyLanguage(args.language),
    )
    device = parse_device(args.device)

    async with httpx.AsyncClient(base_url=args.server) as http_client:
        pipeline = TurnPipeline(VoiceChatClient(http_client), PlaybackStore())
        session = VoiceChatSession(
            pipeline,
            recorder_factory=lambda: MicrophoneRecorder(device=device),
            options=options,
        )

        try:
            if args.files:
                for path in args.files:
                    session.last_turn = None
                    await session.submit(load_audio_file(path))
                    await report_turn(session, play=not args.no_play)
                return 0 if session.error is None else 1

            print("Genie: Kids English Tutor (Ctrl+C to quit)")
            while True:
                await asyncio.to_thread(input, "Press Enter to start talking...")
                if not session.start_recording():
                    print(f"Error: {session.error}")
                    session.dismiss_error()
                    continue

                await asyncio.to_thread(input, "Recording... press Enter to stop.")
                print("Processing…")
                session.last_turn = None
                await session.stop_recording()
                await report_turn(session, play=not args.no_play)

                if session.state == SessionState.ERROR:
                    session.dismiss_error()
        except (KeyboardInterrupt, EOFError):
            print()
            return 0
        finally:
            session.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format=settings.log_format)

    if args.list_devices:
        print_devices()
        return 0

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
