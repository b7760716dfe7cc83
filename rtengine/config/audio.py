"""Audio format and input buffer configuration (env-resolved constants only)."""

from __future__ import annotations

# The realtime API only accepts 24kHz mono PCM16 for audio/pcm.
PCM_SAMPLE_RATE_HZ: int = 24000
PCM_BYTES_PER_SAMPLE: int = 2

# G.711 (audio/pcmu, audio/pcma) is 8kHz with one byte per sample.
G711_SAMPLE_RATE_HZ: int = 8000
G711_BYTES_PER_SAMPLE: int = 1

AUDIO_FORMAT_PCM = "audio/pcm"
AUDIO_FORMAT_PCMU = "audio/pcmu"
AUDIO_FORMAT_PCMA = "audio/pcma"
AUDIO_FORMATS = frozenset({AUDIO_FORMAT_PCM, AUDIO_FORMAT_PCMU, AUDIO_FORMAT_PCMA})

# Hard protocol cap on a single input_audio_buffer.append payload (decoded bytes).
MAX_INPUT_AUDIO_CHUNK_BYTES: int = 15 * 1024 * 1024

VAD_SERVER = "server_vad"
VAD_SEMANTIC = "semantic_vad"

__all__ = [
    "AUDIO_FORMATS",
    "AUDIO_FORMAT_PCM",
    "AUDIO_FORMAT_PCMA",
    "AUDIO_FORMAT_PCMU",
    "G711_BYTES_PER_SAMPLE",
    "G711_SAMPLE_RATE_HZ",
    "MAX_INPUT_AUDIO_CHUNK_BYTES",
    "PCM_BYTES_PER_SAMPLE",
    "PCM_SAMPLE_RATE_HZ",
    "VAD_SEMANTIC",
    "VAD_SERVER",
]
