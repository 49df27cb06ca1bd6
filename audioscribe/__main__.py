"""
Command-line transcription of a single audio file.

Usage:
    python -m audioscribe talk.mp3                      # print transcript
    python -m audioscribe talk.mp3 --speakers 3         # with speaker labels
    python -m audioscribe talk.mp3 -o transcript.txt    # write to file

The API key is read from ``--api-key`` or ``ASSEMBLYAI_API_KEY``.
"""

import argparse
import asyncio
import logging
import os
import sys

from audioscribe.core.config import get_settings
from audioscribe.core.exceptions import AudioValidationError, CredentialError
from audioscribe.core.models import ControllerState, Phase, TranscriptionSettings
from audioscribe.services.assets import load_audio_asset
from audioscribe.services.controller import create_controller
from audioscribe.services.export import format_transcript, write_transcript

logger = logging.getLogger("audioscribe")


async def transcribe(
    path: str,
    api_key: str,
    speakers: int | None = None,
    output: str | None = None,
) -> int:
    """Run one transcription and print or write the result. Returns an exit code."""
    try:
        asset = load_audio_asset(path)
    except AudioValidationError as exc:
        print(f"error: {exc.detail}", file=sys.stderr)
        return 2

    controller = create_controller(api_key)
    last_status = ""

    def report(state: ControllerState) -> None:
        nonlocal last_status
        status = state.progress.status_text
        if status != last_status:
            logger.info("%s (%d%%)", status, round(state.progress.overall))
            last_status = status

    controller.subscribe(report)
    controller.select_asset(asset)
    settings = TranscriptionSettings(
        speaker_detection=speakers is not None,
        speaker_count=speakers or 2,
    )

    try:
        await controller.start(settings)
    finally:
        await controller.aclose()

    if controller.phase != Phase.completed or controller.result is None:
        print(f"error: {controller.error}", file=sys.stderr)
        return 1

    if output:
        write_transcript(controller.result, output)
    else:
        print(format_transcript(controller.result))
    return 0


def main() -> int:
    """Entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(
        prog="audioscribe",
        description="Transcribe an audio file with AssemblyAI",
    )
    parser.add_argument("file", help="Audio file (MP3, WAV, M4A, OGG; max 100MB)")
    parser.add_argument(
        "--speakers",
        type=int,
        default=None,
        help="Enable speaker labels and expect this many speakers (>= 2)",
    )
    parser.add_argument("--api-key", default=None, help="AssemblyAI API key")
    parser.add_argument("-o", "--output", default=None, help="Write transcript to this file")
    args = parser.parse_args()

    if args.speakers is not None and args.speakers < 2:
        parser.error("--speakers must be at least 2")

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    api_key = args.api_key or os.environ.get("ASSEMBLYAI_API_KEY", "")
    try:
        return asyncio.run(
            transcribe(args.file, api_key, speakers=args.speakers, output=args.output)
        )
    except CredentialError as exc:
        print(f"error: {exc.detail}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
