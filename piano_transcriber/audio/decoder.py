"""
Audio decoding - raw uploaded bytes to a playable buffer.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

import numpy as np
import soundfile as sf

from piano_transcriber.core.errors import DecodeError

logger = logging.getLogger(__name__)


@dataclass
class AudioBuffer:
    """Decoded float32 samples, shape (frames, channels)."""
    samples: np.ndarray
    sample_rate: int
    
    @property
    def frames(self) -> int:
        return int(self.samples.shape[0])
    
    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])
    
    @property
    def duration(self) -> float:
        """Length in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return self.frames / float(self.sample_rate)


def decode_audio(data: bytes) -> AudioBuffer:
    """
    Decode an uploaded audio file held in memory.
    
    Args:
        data: File contents (WAV, FLAC, OGG, or anything libsndfile reads)
        
    Returns:
        AudioBuffer with samples clipped to [-1, 1]
        
    Raises:
        DecodeError: If the bytes are empty, corrupt or unsupported
    """
    if not data:
        raise DecodeError("No audio data")
    
    try:
        samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    except (RuntimeError, TypeError, ValueError) as e:
        raise DecodeError(f"Could not decode audio: {e}") from e
    
    if samples.shape[0] == 0:
        raise DecodeError("Audio contains no samples")
    
    samples = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    buffer = AudioBuffer(samples=samples, sample_rate=int(sample_rate))
    logger.debug(
        f"Decoded {buffer.frames} frames, {buffer.channels} ch @ {buffer.sample_rate} Hz"
    )
    return buffer
