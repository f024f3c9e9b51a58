# midi/parser.py
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import mido

from config import ParseConfig
from notes.model import Note, Percussion, PercussionKind, start_key, voice_key
from timeline.tempo import BEATS_PER_MEASURE, TempoTimeline

log = logging.getLogger(__name__)

DRUM_CH = 9  # GM: channel 10 (index 9) is percussion


@dataclass
class ParsedScore:
    notes: List[Note] = field(default_factory=list)
    percussion: List[Percussion] = field(default_factory=list)
    timeline: TempoTimeline = field(default_factory=TempoTimeline)

    @property
    def voice_count(self) -> int:
        return len({n.voice_index for n in self.notes})


def midi_to_frequency(pitch: int) -> float:
    return 440.0 * 2 ** ((pitch - 69) / 12.0)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def read_tempo_timeline(mid: mido.MidiFile) -> TempoTimeline:
    """Collect every set_tempo across all tracks as measure-space breakpoints."""
    ticks_per_measure = mid.ticks_per_beat * BEATS_PER_MEASURE
    changes: List[Tuple[int, int]] = []
    for track in mid.tracks:
        tick = 0
        for msg in track:
            tick += msg.time
            if msg.is_meta and msg.type == 'set_tempo':
                changes.append((tick, msg.tempo))
    changes.sort(key=lambda c: c[0])
    return TempoTimeline.from_pairs(
        (tick / ticks_per_measure, round(mido.tempo2bpm(tempo))) for tick, tempo in changes
    )


def parse_midi(path: str, cfg: Optional[ParseConfig] = None) -> ParsedScore:
    """Decode a MIDI file into notes grouped by voice, percussion hits and the tempo map.

    Every (track, channel) pair carrying pitched notes becomes one voice.
    Times are hundredths of a second; each note is shortened by
    ``cfg.articulation_gap`` and never drops below one hundredth.
    """
    cfg = cfg or ParseConfig()
    mid = mido.MidiFile(path)
    timeline = read_tempo_timeline(mid)
    ticks_per_measure = mid.ticks_per_beat * BEATS_PER_MEASURE

    def to_time(tick: int) -> float:
        return timeline.measure_to_time(tick / ticks_per_measure)

    voices: Dict[Tuple[int, int], int] = {}
    notes: List[Note] = []
    percussion: List[Percussion] = []

    def close(key, start_tick: int, end_tick: int):
        start = to_time(start_tick)
        duration = int(math.floor(to_time(end_tick) - start + 1e-9)) - cfg.articulation_gap
        if duration < 1:
            log.debug("Fixing note with duration %d at tick %d", duration, start_tick)
            duration = 1
        ti, ch, pitch = key
        notes.append(Note(start_time=_round_half_up(start), frequency=midi_to_frequency(pitch),
                          duration=duration, voice_index=voices[(ti, ch)]))

    for ti, track in enumerate(mid.tracks):
        tick = 0
        active: Dict[Tuple[int, int, int], List[int]] = {}
        for msg in track:
            tick += msg.time
            if msg.is_meta:
                continue
            if msg.type == 'note_on' and msg.velocity > 0:
                if msg.channel == DRUM_CH:
                    try:
                        kind = PercussionKind(msg.note)
                    except ValueError:
                        log.warning("Invalid percussion identifier: %d", msg.note)
                        continue
                    percussion.append(Percussion(_round_half_up(to_time(tick)), kind))
                    continue
                voices.setdefault((ti, msg.channel), len(voices))
                active.setdefault((ti, msg.channel, msg.note), []).append(tick)
            elif msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
                key = (ti, msg.channel, msg.note)
                starts = active.get(key)
                if starts:
                    close(key, starts.pop(0), tick)
        # close dangling
        for key, starts in active.items():
            for st in starts:
                close(key, st, tick)

    notes.sort(key=voice_key)
    percussion.sort(key=start_key)
    log.info("Parsed %s: %d notes in %d voice(s), %d percussion hits, %d tempo change(s)",
             path, len(notes), len(voices), len(percussion), len(timeline))
    return ParsedScore(notes=notes, percussion=percussion, timeline=timeline)
