"""
Plain-text rendering of a finished transcript.

Speaker-labelled results render one ``Speaker X: text`` block per utterance,
separated by blank lines; otherwise the full text is used as-is.
"""

import logging
from pathlib import Path

from audioscribe.core.models import TranscriptResult

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "transcription.txt"


def format_transcript(result: TranscriptResult) -> str:
    """Render ``result`` as copyable text."""
    if result.utterances:
        return "\n\n".join(f"Speaker {u.speaker}: {u.text}" for u in result.utterances)
    return result.text


def write_transcript(result: TranscriptResult, path: str | Path | None = None) -> Path:
    """Write the rendered transcript to a UTF-8 text file.

    Args:
        result: The completed transcript.
        path: Target file, or a directory to place ``transcription.txt`` in.
            Defaults to ``transcription.txt`` in the working directory.

    Returns:
        The path that was written.
    """
    target = Path(path) if path is not None else Path(DEFAULT_FILENAME)
    if target.is_dir():
        target = target / DEFAULT_FILENAME
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(format_transcript(result), encoding="utf-8")
    logger.info("Transcript written to %s", target)
    return target
