# notes/model.py
import math
from dataclasses import dataclass
from enum import Enum
from typing import Union


@dataclass(frozen=True)
class UsageInterval:
    start: int  # hundredths of a second
    end: int    # exclusive

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "UsageInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def overlap(self, other: "UsageInterval") -> int:
        return max(0, min(self.end, other.end) - max(self.start, other.start))


@dataclass(frozen=True)
class Note:
    start_time: int     # hundredths of a second
    frequency: float    # Hz
    duration: int       # hundredths of a second
    voice_index: int

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration

    @property
    def interval(self) -> UsageInterval:
        return UsageInterval(self.start_time, self.end_time)

    @property
    def midi_pitch(self) -> int:
        return frequency_to_midi(self.frequency)


class PercussionKind(Enum):
    """General MIDI percussion key map (channel 10)."""
    ACOUSTIC_BASS_DRUM = 35
    BASS_DRUM = 36
    SIDE_STICK = 37
    ACOUSTIC_SNARE = 38
    HAND_CLAP = 39
    ELECTRIC_SNARE = 40
    LO_FLOOR_TOM = 41
    CLOSED_HI_HAT = 42
    HIGH_FLOOR_TOM = 43
    PEDAL_HI_HAT = 44
    LO_TOM = 45
    OPEN_HI_HAT = 46
    LO_MID_TOM = 47
    HI_MID_TOM = 48
    CRASH_CYMBAL_1 = 49
    HI_TOM = 50
    RIDE_CYMBAL_1 = 51
    CHINESE_CYMBAL = 52
    RIDE_BELL = 53
    TAMBOURINE = 54
    SPLASH_CYMBAL = 55
    COWBELL = 56
    CRASH_CYMBAL_2 = 57
    VIBRASLAP = 58
    RIDE_CYMBAL_2 = 59
    HI_BONGO = 60
    LO_BONGO = 61
    MUTE_HI_CONGA = 62
    OPEN_HI_CONGA = 63
    LO_CONGA = 64
    HI_TIMBALE = 65
    LO_TIMBALE = 66
    HI_AGOGO = 67
    LO_AGOGO = 68
    CABASA = 69
    MARACAS = 70
    SHORT_WHISTLE = 71
    LONG_WHISTLE = 72
    SHORT_GUIRO = 73
    LONG_GUIRO = 74
    CLAVES = 75
    HI_WOOD_BLOCK = 76
    LO_WOOD_BLOCK = 77
    MUTE_CUICA = 78
    OPEN_CUICA = 79
    MUTE_TRIANGLE = 80
    OPEN_TRIANGLE = 81


@dataclass(frozen=True)
class Percussion:
    start_time: int  # hundredths of a second
    kind: PercussionKind


MusicEvent = Union[Note, Percussion]


def chronological_key(n: Note):
    return (n.start_time, n.frequency)


def voice_key(n: Note):
    return (n.voice_index, n.start_time, n.frequency)


def start_key(e: MusicEvent) -> int:
    return e.start_time


def frequency_to_midi(frequency: float) -> int:
    """Nearest MIDI note number, clamped to 0..127."""
    return max(0, min(127, int(round(69 + 12 * math.log2(frequency / 440.0)))))
