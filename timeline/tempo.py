# timeline/tempo.py
from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, List, Tuple

DEFAULT_BPM = 120
BEATS_PER_MEASURE = 4
MINUTES_TO_HUNDREDTHS = 6000


@dataclass(frozen=True)
class TempoEntry:
    measure_offset: float
    bpm: int


def measures_to_hundredths(measures: float, bpm: int) -> float:
    return measures * BEATS_PER_MEASURE * MINUTES_TO_HUNDREDTHS / bpm


class TempoTimeline:
    """Piecewise-constant tempo function over measure positions.

    Entries are taken in the order given; callers supply them with
    non-decreasing measure offsets. Before the first entry the tempo is
    120 BPM. An entry sitting exactly on a measure applies from that measure on.
    """

    def __init__(self, entries: Iterable[TempoEntry] = ()):
        self.entries: List[TempoEntry] = list(entries)
        self._offsets = [e.measure_offset for e in self.entries]

        # elapsed time at the start of each entry's segment
        self._starts: List[float] = []
        pos, bpm, elapsed = 0.0, DEFAULT_BPM, 0.0
        for e in self.entries:
            elapsed += measures_to_hundredths(max(0.0, e.measure_offset - pos), bpm)
            self._starts.append(elapsed)
            pos, bpm = max(pos, e.measure_offset), e.bpm

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, int]]) -> "TempoTimeline":
        return cls(TempoEntry(float(m), int(b)) for m, b in pairs)

    def __len__(self) -> int:
        return len(self.entries)

    def tempo_at_measure(self, measure: float) -> int:
        i = bisect_right(self._offsets, measure)
        return self.entries[i - 1].bpm if i else DEFAULT_BPM

    def measure_to_time(self, measure: float) -> float:
        """Elapsed hundredths of a second from measure 0 to ``measure``."""
        i = bisect_right(self._offsets, measure)
        if not i:
            return measures_to_hundredths(measure, DEFAULT_BPM)
        e = self.entries[i - 1]
        return self._starts[i - 1] + measures_to_hundredths(measure - e.measure_offset, e.bpm)

    def bpm_changes(self) -> List[Tuple[float, int]]:
        return [(e.measure_offset, e.bpm) for e in self.entries]
