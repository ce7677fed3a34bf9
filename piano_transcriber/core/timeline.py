"""
Timeline model - immutable, time-sorted sequences of note and lyric events.

A timeline is built once from a transcription result. Editing means
building a new timeline; no mutation operations are exposed.
"""

from __future__ import annotations

import bisect
import math
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterable, Iterator, List, Tuple, TypeVar, Union

from piano_transcriber.core.errors import InvalidTimelineError
from piano_transcriber.core.pitch import Pitch


@dataclass(frozen=True)
class NoteEvent:
    """A single pitched sound."""

    pitch: Pitch
    start_time: float  # seconds
    duration: float  # seconds

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "note": str(self.pitch),
            "time": self.start_time,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class LyricEvent:
    """A syllable or word aligned to a pitch and a time span."""

    text: str
    pitch: Pitch
    start_time: float
    duration: float

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "note": str(self.pitch),
            "time": self.start_time,
            "duration": self.duration,
        }


Event = Union[NoteEvent, LyricEvent]
E = TypeVar("E", NoteEvent, LyricEvent)


def _validate(event: Event, index: int) -> None:
    if not isinstance(event.pitch, Pitch):
        raise InvalidTimelineError(
            f"Event {index}: pitch must be a Pitch, got {type(event.pitch).__name__}"
        )
    if not (event.duration > 0 and math.isfinite(event.duration)):
        raise InvalidTimelineError(
            f"Event {index}: duration must be positive and finite, got {event.duration}"
        )
    if not (event.start_time >= 0 and math.isfinite(event.start_time)):
        raise InvalidTimelineError(
            f"Event {index}: start time must be finite and >= 0, got {event.start_time}"
        )


class _Timeline(Generic[E]):
    """Shared behaviour for note and lyric timelines."""

    def __init__(self, events: Tuple[E, ...] = ()):
        # Callers go through from_events(), which validates and sorts.
        self._events: Tuple[E, ...] = tuple(events)
        self._starts: List[float] = [e.start_time for e in self._events]

    @classmethod
    def from_events(cls, events: Iterable[E]):
        """
        Build a timeline from events in any order.

        Args:
            events: Note or lyric events

        Returns:
            Timeline sorted ascending by start time (ties keep input order)

        Raises:
            InvalidTimelineError: If any event is malformed
        """
        items = list(events)
        for index, event in enumerate(items):
            _validate(event, index)
        return cls(tuple(sorted(items, key=lambda e: e.start_time)))

    @classmethod
    def empty(cls):
        return cls(())

    @property
    def events(self) -> Tuple[E, ...]:
        return self._events

    @property
    def end_time(self) -> float:
        """Latest end time of any event, 0.0 for an empty timeline."""
        return max((e.end_time for e in self._events), default=0.0)

    def slice(self, from_time: float, to_time: float):
        """
        Events whose start time lies in [from_time, to_time).

        Args:
            from_time: Inclusive lower bound in seconds
            to_time: Exclusive upper bound in seconds

        Returns:
            A new timeline of the same type, in stored order
        """
        if to_time <= from_time:
            return type(self)(())
        lo = bisect.bisect_left(self._starts, from_time)
        hi = bisect.bisect_left(self._starts, to_time)
        return type(self)(self._events[lo:hi])

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[E]:
        return iter(self._events)

    def __getitem__(self, index: int) -> E:
        return self._events[index]

    def __bool__(self) -> bool:
        return bool(self._events)

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._events == other._events

    def __hash__(self) -> int:
        return hash(self._events)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self)} events, end={self.end_time:.2f}s)"


class NoteTimeline(_Timeline[NoteEvent]):
    """Immutable, start-sorted sequence of NoteEvents."""

    @classmethod
    def from_dicts(cls, items: Iterable[Dict[str, Any]]) -> "NoteTimeline":
        """
        Build from the transcription wire shape.

        Args:
            items: Dicts like {"note": "C4", "time": 0.0, "duration": 0.5}
        """
        events = []
        for index, item in enumerate(items):
            try:
                events.append(NoteEvent(
                    pitch=Pitch.parse(item["note"]),
                    start_time=float(item["time"]),
                    duration=float(item["duration"]),
                ))
            except InvalidTimelineError:
                raise
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidTimelineError(f"Note {index}: malformed entry {item!r}") from e
        return cls.from_events(events)


class LyricTimeline(_Timeline[LyricEvent]):
    """Immutable, start-sorted sequence of LyricEvents."""

    @classmethod
    def from_dicts(cls, items: Iterable[Dict[str, Any]]) -> "LyricTimeline":
        """
        Build from the transcription wire shape.

        Args:
            items: Dicts like {"text": "La", "note": "C4", "time": 0.0, "duration": 0.5}
        """
        events = []
        for index, item in enumerate(items):
            try:
                events.append(LyricEvent(
                    text=str(item["text"]),
                    pitch=Pitch.parse(item["note"]),
                    start_time=float(item["time"]),
                    duration=float(item["duration"]),
                ))
            except InvalidTimelineError:
                raise
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidTimelineError(f"Lyric {index}: malformed entry {item!r}") from e
        return cls.from_events(events)
