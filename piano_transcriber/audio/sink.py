"""
Pygame audio sink - plays the decoded buffer and synthesized note tones.
"""

from __future__ import annotations

import os
import logging
from typing import Optional

import numpy as np

from piano_transcriber.audio.decoder import AudioBuffer
from piano_transcriber.core.gain import db_to_linear
from piano_transcriber.core.playback import AudioSink
from piano_transcriber.core.pitch import Pitch

logger = logging.getLogger(__name__)


def to_pcm16(buffer: AudioBuffer, sample_rate: int, channels: int = 2) -> np.ndarray:
    """
    Convert a decoded buffer to interleavable int16 PCM for the mixer.
    
    Args:
        buffer: Decoded float samples
        sample_rate: Mixer sample rate; the buffer is linearly resampled
        channels: Mixer channel count (1 or 2)
        
    Returns:
        int16 array of shape (frames, channels)
    """
    samples = buffer.samples
    if samples.shape[1] >= channels:
        samples = samples[:, :channels]
    else:
        samples = np.repeat(samples.mean(axis=1, keepdims=True), channels, axis=1)
    
    if buffer.sample_rate != sample_rate and buffer.frames > 1:
        target_frames = max(1, int(round(buffer.duration * sample_rate)))
        source_t = np.arange(buffer.frames) / float(buffer.sample_rate)
        target_t = np.arange(target_frames) / float(sample_rate)
        samples = np.stack(
            [np.interp(target_t, source_t, samples[:, ch]) for ch in range(channels)],
            axis=1,
        )
    
    pcm = np.clip(samples, -1.0, 1.0) * 32767.0
    return np.ascontiguousarray(pcm.astype(np.int16))


def synthesize_tone(
    frequency: float,
    duration: float,
    sample_rate: int,
    amplitude: float = 0.25,
    channels: int = 2,
) -> np.ndarray:
    """
    Sine tone with a short attack and release.
    
    Returns:
        int16 array of shape (frames, channels)
    """
    frames = max(1, int(duration * sample_rate))
    t = np.arange(frames) / float(sample_rate)
    wave = np.sin(2.0 * np.pi * frequency * t)
    
    attack = min(frames, max(1, int(0.01 * sample_rate)))
    release = min(frames, max(1, int(0.03 * sample_rate)))
    envelope = np.ones(frames)
    envelope[:attack] = np.linspace(0.0, 1.0, attack)
    tail = envelope[frames - release:]
    envelope[frames - release:] = np.minimum(tail, np.linspace(1.0, 0.0, release))
    
    mono = wave * envelope * amplitude * 32767.0
    return np.ascontiguousarray(np.repeat(mono[:, None], channels, axis=1).astype(np.int16))


class PygameAudioSink(AudioSink):
    """Audio sink using pygame.mixer."""
    
    def __init__(self, sample_rate: int = 44100, amplitude: float = 0.25):
        self._initialized = False
        self._sample_rate = sample_rate
        self._channels = 2
        self._amplitude = amplitude
        self._volume = 1.0
        self._pcm: Optional[np.ndarray] = None
        self._channel = None
        
        try:
            os.environ.setdefault('PYGAME_HIDE_SUPPORT_PROMPT', '1')
            import pygame
            pygame.mixer.init(frequency=sample_rate, size=-16, channels=2, buffer=1024)
            self._pygame = pygame
            freq, _size, channels = pygame.mixer.get_init()
            self._sample_rate = freq
            self._channels = channels
            self._initialized = True
            logger.info("Pygame audio sink initialized")
        except ImportError:
            logger.warning("pygame not available for audio playback")
        except Exception as e:
            logger.warning(f"Failed to initialize pygame: {e}")
    
    @property
    def available(self) -> bool:
        return self._initialized
    
    @property
    def is_ready(self) -> bool:
        return self._initialized and self._pcm is not None
    
    def load(self, buffer: AudioBuffer) -> None:
        if not self._initialized:
            logger.warning("Audio sink unavailable, buffer not loaded")
            return
        self.stop()
        self._pcm = to_pcm16(buffer, self._sample_rate, self._channels)
    
    def start(self, offset: float) -> None:
        if not self.is_ready:
            return
        frame = int(max(0.0, offset) * self._sample_rate)
        remaining = self._pcm[frame:]
        if len(remaining) == 0:
            return
        sound = self._make_sound(remaining)
        sound.set_volume(self._volume)
        self._channel = sound.play()
    
    def stop(self) -> None:
        if self._channel is not None:
            self._channel.stop()
            self._channel = None
    
    def note_on(self, pitch: Pitch, duration: float) -> None:
        if not self._initialized:
            return
        tone = synthesize_tone(
            pitch.frequency, duration, self._sample_rate, self._amplitude, self._channels
        )
        sound = self._make_sound(tone)
        sound.set_volume(self._volume)
        sound.play()
    
    def _make_sound(self, pcm: np.ndarray):
        # A mono mixer expects a 1-D array
        if self._channels == 1:
            pcm = pcm[:, 0]
        return self._pygame.sndarray.make_sound(np.ascontiguousarray(pcm))
    
    def set_gain_db(self, gain_db: float) -> None:
        self._volume = min(1.0, db_to_linear(gain_db))
        if self._channel is not None:
            self._channel.set_volume(self._volume)
    
    def cleanup(self) -> None:
        if self._initialized:
            try:
                self.stop()
                self._pygame.mixer.quit()
            except Exception as e:
                logger.debug(f"Mixer shutdown error: {e}")
            self._initialized = False
