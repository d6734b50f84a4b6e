"""AI agents package."""

from moneynote.agents.voice_agent import (
    TranscriptionError,
    VoiceAgentError,
    VoiceExpenseAgent,
    VoiceParseError,
    parse_model_output,
)

__all__ = [
    "TranscriptionError",
    "VoiceAgentError",
    "VoiceExpenseAgent",
    "VoiceParseError",
    "parse_model_output",
]
