"""
Transcription module - remote speech-to-text abstraction layer.

Factory function for creating transcription clients based on provider name,
plus the completion poller that waits for a submitted job to finish.
"""

from .base import BaseTranscriptionClient
from .poller import CompletionPoller

__all__ = ["BaseTranscriptionClient", "CompletionPoller", "create_client"]


def create_client(provider: str = "assemblyai", **kwargs) -> BaseTranscriptionClient:
    """
    Factory function to create a transcription client based on provider.

    Args:
        provider: Remote provider name (currently only "assemblyai")
        **kwargs: Provider-specific configuration (api_key, base_url, ...)

    Returns:
        BaseTranscriptionClient implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "assemblyai":
        from .assemblyai import AssemblyAIClient
        return AssemblyAIClient(**kwargs)
    else:
        raise ValueError(f"Unknown transcription provider: {provider}")
