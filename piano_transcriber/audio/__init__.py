"""
Audio module for Piano Transcriber.

Decodes uploaded audio and plays it through pygame.
"""

from piano_transcriber.audio.decoder import AudioBuffer, decode_audio
from piano_transcriber.audio.sink import PygameAudioSink, synthesize_tone, to_pcm16

__all__ = [
    "AudioBuffer",
    "decode_audio",
    "PygameAudioSink",
    "synthesize_tone",
    "to_pcm16",
]
