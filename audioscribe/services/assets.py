"""
Audio asset loading and validation.

This is the file-picker side of the boundary: it decides which files may be
handed to the controller. The controller itself never validates; having no
asset selected is simply its idle state.
"""

import logging
import mimetypes
from pathlib import Path

from audioscribe.core.exceptions import AudioValidationError
from audioscribe.core.models import AudioAsset

logger = logging.getLogger(__name__)

ACCEPTED_TYPES = frozenset(
    {
        "audio/mp3",
        "audio/wav",
        "audio/mpeg",
        "audio/ogg",
        "audio/m4a",
        "audio/x-m4a",
    }
)

MAX_FILE_SIZE = 100 * 1024 * 1024  # 100 MB

# mimetypes differs across platforms for these; pin them.
_SUFFIX_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".m4a": "audio/x-m4a",
}


def guess_mime_type(path: Path) -> str:
    """Best-effort MIME type for an audio file path."""
    suffix = path.suffix.lower()
    if suffix in _SUFFIX_TYPES:
        return _SUFFIX_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


def validate_audio_asset(asset: AudioAsset) -> AudioAsset:
    """Check type and size limits.

    Raises:
        AudioValidationError: Unsupported type or file larger than 100 MB.
    """
    if asset.mime_type not in ACCEPTED_TYPES:
        raise AudioValidationError(
            "Please upload a valid audio file (MP3, WAV, M4A, OGG)"
        )
    if asset.size > MAX_FILE_SIZE:
        raise AudioValidationError("File size must be less than 100MB")
    return asset


def load_audio_asset(path: str | Path) -> AudioAsset:
    """Read ``path`` into a validated ``AudioAsset``.

    The size limit is checked against the file on disk before reading it.

    Raises:
        AudioValidationError: Missing file, unsupported type, or too large.
    """
    path = Path(path)
    if not path.is_file():
        raise AudioValidationError(f"Audio file not found: {path}")

    mime_type = guess_mime_type(path)
    if mime_type not in ACCEPTED_TYPES:
        raise AudioValidationError(
            "Please upload a valid audio file (MP3, WAV, M4A, OGG)"
        )
    if path.stat().st_size > MAX_FILE_SIZE:
        raise AudioValidationError("File size must be less than 100MB")

    asset = AudioAsset(name=path.name, content=path.read_bytes(), mime_type=mime_type)
    logger.debug("Loaded %s (%s, %d bytes)", asset.name, asset.mime_type, asset.size)
    return validate_audio_asset(asset)
