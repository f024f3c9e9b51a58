# motors/motor.py
from dataclasses import replace
from typing import List, Tuple

from notes.model import Note, UsageInterval


class Motor:
    """One physical actuator and the notes it plays.

    ``events[i]`` always owns ``intervals[i]``; intervals never overlap and are
    sorted by start. Both are only appended to in non-decreasing start order,
    which callers guarantee.
    """

    def __init__(self, index: int = 0):
        self.index = index
        self._events: List[Note] = []
        self._intervals: List[UsageInterval] = []

    def __repr__(self) -> str:
        return f"Motor(index={self.index}, notes={len(self._events)}, on_time={self.on_time})"

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> Tuple[Note, ...]:
        return tuple(self._events)

    @property
    def intervals(self) -> Tuple[UsageInterval, ...]:
        return tuple(self._intervals)

    @property
    def on_time(self) -> int:
        return sum(iv.length for iv in self._intervals)

    @property
    def end_time(self) -> int:
        return self._intervals[-1].end if self._intervals else 0

    def add_note(self, note: Note):
        self._events.append(note)
        self._intervals.append(note.interval)

    def is_in_use(self, time: int) -> bool:
        # only the last interval matters while notes arrive in start order
        if not self._intervals:
            return False
        last = self._intervals[-1]
        return last.start <= time < last.end

    def conflicts_with(self, other: "Motor") -> bool:
        a, b = self._intervals, other._intervals
        i = j = 0
        while i < len(a) and j < len(b):
            if a[i].overlaps(b[j]):
                return True
            if a[i].end <= b[j].end:
                i += 1
            else:
                j += 1
        return False

    def percent_conflict(self, other: "Motor") -> float:
        """Overlapping play time relative to the busier of the two motors."""
        busiest = max(self.on_time, other.on_time)
        if busiest == 0:
            return 0.0
        a, b = self._intervals, other._intervals
        overlap = 0
        i = j = 0
        while i < len(a) and j < len(b):
            overlap += a[i].overlap(b[j])
            if a[i].end <= b[j].end:
                i += 1
            else:
                j += 1
        return overlap / busiest

    def force_combine(self, other: "Motor"):
        """Merge ``other``'s notes into this motor, truncating on overlap.

        Walks both note lists by start time. When the next note starts before
        the previously placed one ends, the previous note is cut short so it
        ends where the next one begins; if both start together the previous
        note is dropped. ``other`` is left untouched and should be discarded.
        """
        merged: List[Note] = []
        for note in _merge_by_start(self._events, other._events):
            if merged and merged[-1].end_time > note.start_time:
                prev = merged.pop()
                if note.start_time > prev.start_time:
                    merged.append(replace(prev, duration=note.start_time - prev.start_time))
            merged.append(note)
        self._events = merged
        self._intervals = [n.interval for n in merged]

    def join(self, other: "Motor"):
        """Lossless merge of a motor that does not conflict with this one."""
        self._events = list(_merge_by_start(self._events, other._events))
        self._intervals = [n.interval for n in self._events]


def _merge_by_start(first: List[Note], second: List[Note]):
    # on equal start times the note from ``second`` goes first
    i = j = 0
    while i < len(first) or j < len(second):
        if j == len(second) or (i < len(first) and first[i].start_time < second[j].start_time):
            yield first[i]
            i += 1
        else:
            yield second[j]
            j += 1
