# app.py
import logging
from pathlib import Path
from typing import List, Optional

import pygame

from audio.synth import Synth
from config import AppConfig
from firmware.sketch import write_sketch
from midi.parser import ParsedScore, parse_midi
from motors.assigner import assign
from motors.motor import Motor
from timeline.scheduler import PercussionCommand, Timeline, build_commands, song_end_time
from utils.crashlog import log_exception

log = logging.getLogger(__name__)


class App:
    """MIDI file -> motor assignment -> Arduino sketch / audio preview."""

    def __init__(self, cfg: AppConfig):
        self.cfg = cfg
        self.score: Optional[ParsedScore] = None
        self.motors: List[Motor] = []
        self.current_midi: Optional[str] = None

    # ---------- Loading ----------
    def load(self, path: str) -> bool:
        try:
            self.score = parse_midi(path, self.cfg.parse)
        except (OSError, EOFError, ValueError) as e:
            log_exception("load", e)
            log.error("Failed to load MIDI %s: %s", path, e)
            self.score = None
            self.current_midi = None
            return False
        self.current_midi = path
        self.motors = []
        return True

    # ---------- Assignment ----------
    def assign(self) -> List[Motor]:
        if self.score is None:
            raise RuntimeError("no score loaded")
        self.motors = assign(self.score.notes, self.cfg.assign)
        log.info("Program requires %d motors", len(self.motors))
        for m in self.motors:
            log.debug("motor %d: %d notes, on-time %d", m.index, len(m), m.on_time)
        return self.motors

    @property
    def end_time(self) -> int:
        perc = self.score.percussion if self.score else []
        return song_end_time(self.motors, perc)

    def parameters(self) -> dict:
        return {
            "input": self.current_midi,
            "preserve_voices": self.cfg.assign.preserve_voices,
            "conflict_tolerance": self.cfg.assign.conflict_tolerance,
            "voices": self.score.voice_count if self.score else 0,
            "motors": len(self.motors),
            "end_time": self.end_time,
        }

    # ---------- Output ----------
    def write(self, name: Optional[str] = None) -> Path:
        if not self.motors:
            self.assign()
        name = name or Path(self.current_midi).stem
        return write_sketch(self.motors, self.score.percussion, name, self.cfg.firmware)

    def preview(self):
        if not self.motors:
            self.assign()
        synth = Synth(self.cfg.audio)
        if not synth.available:
            synth.close()
            return
        timeline = Timeline(build_commands(self.motors, self.score.percussion))
        clock = pygame.time.Clock()
        try:
            while not timeline.finished:
                # ms -> hundredths
                timeline.step(clock.tick(self.cfg.audio.tick_hz) / 10.0)
                for c in timeline.due_commands():
                    if isinstance(c, PercussionCommand):
                        synth.hit(c.kind)
                    elif c.is_stop:
                        synth.stop(c.motor_index)
                    else:
                        synth.start(c.motor_index, c.frequency)
        finally:
            synth.close()
