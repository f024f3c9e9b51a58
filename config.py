# ========================= config.py =========================
from dataclasses import dataclass, field
from typing import Optional

@dataclass
class AssignmentConfig:
    preserve_voices: bool = True
    conflict_tolerance: float = 0.03  # max overlap share when folding a voice's motors

@dataclass
class ParseConfig:
    articulation_gap: int = 1  # hundredths shaved off every note

@dataclass
class FirmwareConfig:
    out_dir: str = "arduino"
    stepper_lib: Optional[str] = None  # dir holding stepper.hpp / stepper.cpp
    first_pin: int = 0

@dataclass
class AudioConfig:
    velocity: int = 100
    tick_hz: int = 100

@dataclass
class LogConfig:
    level: str = "INFO"
    log_dir: Optional[str] = None

@dataclass
class AppConfig:
    assign: AssignmentConfig = field(default_factory=AssignmentConfig)
    parse: ParseConfig = field(default_factory=ParseConfig)
    firmware: FirmwareConfig = field(default_factory=FirmwareConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    log: LogConfig = field(default_factory=LogConfig)
