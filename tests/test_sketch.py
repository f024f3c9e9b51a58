from pathlib import Path

from config import FirmwareConfig
from firmware.sketch import render_sketch, step_period, write_sketch
from motors.motor import Motor
from notes.model import Percussion, PercussionKind


def _motors(note):
    a, b = Motor(0), Motor(1)
    a.add_note(note(0, 50, freq=440.0))
    a.add_note(note(60, 40, freq=880.0))
    b.add_note(note(0, 100, freq=220.0))
    return [a, b]


def test_step_period() -> None:
    assert step_period(440.0) == 2272
    assert step_period(0) == 0


def test_render_sketch_tables(note) -> None:
    src = render_sketch(_motors(note), [Percussion(60, PercussionKind.ACOUSTIC_SNARE)])
    assert "Stepper motors[2];" in src
    assert src.count(".setPin(D") == 2
    assert "motors[1].run(micros());" in src
    assert "const command commands[] PROGMEM = {{0, 2272}, {1, 4545}, {0, 0}, {0, 1136}, {PERCUSSION, 38}, {0, 0}, {1, 0}};" in src
    assert "const record records[] PROGMEM = {{1, 2}, {50, 1}, {60, 2}, {100, 2}, {0, 0}};" in src
    assert "uint16_t numRecords = 4;" in src


def test_first_pin_offset(note) -> None:
    src = render_sketch(_motors(note), cfg=FirmwareConfig(first_pin=3))
    assert "motors[0].setPin(D3);" in src
    assert "motors[1].setPin(D4);" in src


def test_write_sketch_creates_named_folder(note, tmp_path: Path) -> None:
    lib = tmp_path / "lib"
    lib.mkdir()
    (lib / "stepper.hpp").write_text("// hpp", encoding="utf-8")
    (lib / "stepper.cpp").write_text("// cpp", encoding="utf-8")
    cfg = FirmwareConfig(out_dir=str(tmp_path / "arduino"), stepper_lib=str(lib))
    path = write_sketch(_motors(note), [], "song", cfg)
    assert path == tmp_path / "arduino" / "song" / "song.ino"
    assert path.read_text(encoding="utf-8").startswith("//Program written by Stepper Motor Symphony")
    assert (path.parent / "stepper.cpp").read_text(encoding="utf-8") == "// cpp"


def test_empty_score_keeps_tables_non_empty(caplog) -> None:
    with caplog.at_level("WARNING"):
        src = render_sketch([], [])
    assert "const command commands[] PROGMEM = {{PERCUSSION, 0}};" in src
    assert "const record records[] PROGMEM = {{0, 0}};" in src
    assert "uint16_t numRecords = 0;" in src
    assert "Stepper motors[1];" in src
    assert "idle sketch" in caplog.text
