"""
Gain control - linear volume percentage to logarithmic gain.
"""

from __future__ import annotations

import math

from piano_transcriber.core.errors import OutOfRangeError


def to_gain_db(volume_percent: float) -> float:
    """
    Convert a volume percentage to gain in decibels.

    Args:
        volume_percent: Volume in [0, 100]

    Returns:
        20 * log10(volume / 100); 0 dB at 100, -inf (mute) at 0

    Raises:
        OutOfRangeError: If volume is outside [0, 100]
    """
    if not 0 <= volume_percent <= 100:
        raise OutOfRangeError(f"Volume must be within [0, 100], got {volume_percent}")
    if volume_percent == 0:
        return -math.inf
    return 20.0 * math.log10(volume_percent / 100.0)


def db_to_linear(gain_db: float) -> float:
    """Convert decibels to a linear amplitude factor; -inf maps to 0.0."""
    if gain_db == -math.inf:
        return 0.0
    return 10.0 ** (gain_db / 20.0)
