"""audioscribe: remote speech-to-text transcription lifecycle."""

__version__ = "0.1.0"
