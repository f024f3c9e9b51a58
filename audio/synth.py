# audio/synth.py
import logging

import pygame.midi

from config import AudioConfig
from notes.model import PercussionKind, frequency_to_midi

log = logging.getLogger(__name__)

DRUM_CH = 9  # GM: ch10 (index 9) is percussion, never used for motors


class Synth:
    """
    System MIDI output standing in for the motors:
    - each motor index gets its own channel (drum channel skipped, wraps after 15)
    - start(motor, freq) / stop(motor) mirror the firmware's setPeriod calls
    - hit(kind) plays percussion on channel 10
    """
    def __init__(self, cfg: AudioConfig):
        self.cfg = cfg
        self.midi_out = None
        self.use_midi_out = False

        self.channels = [ch for ch in range(16) if ch != DRUM_CH]
        self._sounding = {}  # motor index -> (ch, pitch)

        try:
            pygame.midi.init()
            dev = pygame.midi.get_default_output_id()
            if dev != -1:
                self.midi_out = pygame.midi.Output(dev)
                for ch in self.channels:
                    self.midi_out.set_instrument(80, ch)  # Lead 1 (square)
                self.use_midi_out = True
                log.info("Using system MIDI out (device %d)", dev)
            else:
                log.warning("No MIDI output device found; preview is silent")
        except pygame.midi.MidiException as e:
            log.warning("MIDI init failed: %s", e)

    @property
    def available(self) -> bool:
        return self.use_midi_out and self.midi_out is not None

    def close(self):
        if self.midi_out:
            self.all_notes_off()
            self.midi_out.close()
        pygame.midi.quit()
        self.midi_out = None
        self.use_midi_out = False

    def channel_for(self, motor_index: int) -> int:
        return self.channels[motor_index % len(self.channels)]

    def start(self, motor_index: int, frequency: float):
        if not self.available: return
        self.stop(motor_index)
        ch = self.channel_for(motor_index)
        pitch = frequency_to_midi(frequency)
        self.midi_out.note_on(pitch, max(1, min(int(self.cfg.velocity), 127)), ch)
        self._sounding[motor_index] = (ch, pitch)

    def stop(self, motor_index: int):
        if not self.available: return
        ch, p = self._sounding.pop(motor_index, (None, None))
        if ch is not None:
            self.midi_out.note_off(p, 0, ch)

    def hit(self, kind: PercussionKind):
        if not self.available: return
        self.midi_out.note_on(kind.value, max(1, min(int(self.cfg.velocity), 127)), DRUM_CH)
        self.midi_out.note_off(kind.value, 0, DRUM_CH)

    def all_notes_off(self):
        if not self.available: return
        for motor_index in list(self._sounding):
            self.stop(motor_index)
