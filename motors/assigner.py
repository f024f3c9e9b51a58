# ========================= motors/assigner.py =========================
import logging
from itertools import groupby
from typing import List, Sequence

from config import AssignmentConfig
from motors.motor import Motor
from notes.model import Note, chronological_key

log = logging.getLogger(__name__)


def split_voices(notes: Sequence[Note]) -> List[List[Note]]:
    """Contiguous runs of notes sharing a voice index."""
    return [list(run) for _, run in groupby(notes, key=lambda n: n.voice_index)]


def condensing_assign(notes: Sequence[Note]) -> List[Motor]:
    """Greedy first-fit: each note goes to the first motor idle at its start.

    Uses as few motors as possible only when ``notes`` arrive in
    non-decreasing start order; callers must guarantee that.
    """
    motors: List[Motor] = []
    for note in notes:
        for m in motors:
            if not m.is_in_use(note.start_time):
                m.add_note(note)
                break
        else:
            m = Motor(len(motors))
            m.add_note(note)
            motors.append(m)
    return motors


def reduce_voice(motors: List[Motor], tolerance: float) -> List[Motor]:
    """Fold a voice's motors into its first one while overlap stays within tolerance."""
    motors = list(motors)
    merged = True
    while merged and len(motors) > 1:
        merged = False
        head = motors[0]
        for n in range(1, len(motors)):
            conflict = head.percent_conflict(motors[n])
            log.debug("%%conflict motor 0 vs %d: %.4f", n, conflict)
            if conflict <= tolerance:
                head.force_combine(motors[n])
                del motors[n]
                merged = True
                break
    return motors


def join_tracks(motors: List[Motor]) -> List[Motor]:
    """Merge motors with no overlap at all, keeping the lower index.

    Scans pairs from the highest index down, merges the first free pair and
    starts over, until a full scan finds nothing to merge.
    """
    motors = list(motors)
    while True:
        pair = _find_joinable(motors)
        if pair is None:
            return motors
        lo, hi = pair
        log.debug("joining motor %d into %d", motors[hi].index, motors[lo].index)
        motors[lo].join(motors[hi])
        del motors[hi]


def _find_joinable(motors: List[Motor]):
    for hi in range(len(motors) - 1, 0, -1):
        for lo in range(hi - 1, -1, -1):
            if not motors[hi].conflicts_with(motors[lo]):
                return lo, hi
    return None


def finalize(motors: List[Motor]) -> List[Motor]:
    """Busiest motors first, then renumber 0..N-1."""
    motors = sorted(motors, key=lambda m: -m.on_time)
    for i, m in enumerate(motors):
        m.index = i
    return motors


def _reindex(motors: List[Motor]):
    for i, m in enumerate(motors):
        m.index = i


class AssignmentStrategy:
    def apply(self, notes: Sequence[Note], cfg: AssignmentConfig) -> List[Motor]:
        raise NotImplementedError


class VoicePreservingAssignment(AssignmentStrategy):
    """Each voice gets its own motors, then motors that never overlap are joined."""
    def apply(self, notes: Sequence[Note], cfg: AssignmentConfig) -> List[Motor]:
        motors: List[Motor] = []
        for voice in split_voices(notes):
            voice_motors = condensing_assign(voice)
            if len(voice_motors) > 1:
                voice_motors = reduce_voice(voice_motors, cfg.conflict_tolerance)
            log.debug("voice %d -> %d motor(s)", voice[0].voice_index, len(voice_motors))
            motors.extend(voice_motors)
        _reindex(motors)
        before = len(motors)
        motors = join_tracks(motors)
        log.info("track joining: %d -> %d motors", before, len(motors))
        return finalize(motors)


class CondensingAssignment(AssignmentStrategy):
    """Ignore voices: one greedy pass over the whole score in time order."""
    def apply(self, notes: Sequence[Note], cfg: AssignmentConfig) -> List[Motor]:
        ordered = sorted(notes, key=chronological_key)
        motors = condensing_assign(ordered)
        log.info("condensing assignment: %d motors", len(motors))
        return finalize(motors)


def make_assigner(preserve_voices: bool) -> AssignmentStrategy:
    return VoicePreservingAssignment() if preserve_voices else CondensingAssignment()


def assign(notes: Sequence[Note], cfg: AssignmentConfig = None) -> List[Motor]:
    cfg = cfg or AssignmentConfig()
    if not notes:
        return []
    return make_assigner(cfg.preserve_voices).apply(notes, cfg)
