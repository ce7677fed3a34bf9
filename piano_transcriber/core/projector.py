"""
Active-state projection.

Maps a timestamp to the events sounding at that instant. Every display
surface (keyboard, lyric table, staff) goes through these functions so
they agree on what is "current" for the same time.
"""

from __future__ import annotations

from typing import Iterable, List, TypeVar, Union

from piano_transcriber.core.timeline import LyricEvent, NoteEvent


E = TypeVar("E", NoteEvent, LyricEvent)


def is_active(event: Union[NoteEvent, LyricEvent], t: float) -> bool:
    """True when start_time <= t < start_time + duration."""
    return event.start_time <= t < event.start_time + event.duration


def active_at(timeline: Iterable[E], t: float) -> List[E]:
    """
    Events sounding at time t, in stored order.

    Works identically for NoteTimeline and LyricTimeline.

    Args:
        timeline: Note or lyric timeline
        t: Time in seconds

    Returns:
        List of active events
    """
    return [event for event in timeline if is_active(event, t)]


def active_indices(timeline: Iterable[E], t: float) -> List[int]:
    """Stored positions of the events sounding at time t."""
    return [i for i, event in enumerate(timeline) if is_active(event, t)]


def active_pitch_names(timeline: Iterable[E], t: float) -> List[str]:
    """Scientific pitch names sounding at time t (keyboard highlight)."""
    return [str(event.pitch) for event in active_at(timeline, t)]
