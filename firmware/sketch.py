# ========================= firmware/sketch.py =========================
import logging
import shutil
from itertools import groupby
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from config import FirmwareConfig
from motors.motor import Motor
from notes.model import Percussion
from timeline.scheduler import PercussionCommand, build_commands

log = logging.getLogger(__name__)

TAB = "    "
STEPPER_LIB_FILES = ("stepper.hpp", "stepper.cpp")
END_RECORD = "{0, 0}"           # never matches counter, which starts at 1
END_COMMAND = "{PERCUSSION, 0}"  # keeps commands[] non-empty

HEADER = """\
//Program written by Stepper Motor Symphony
#include "stepper.hpp"

#define COMMAND_SIZE 8
#define RECORD_SIZE 8
#define PERCUSSION 0xFF

void checkForNextNote();
void processCommands();

"""

STRUCTS = """\
struct command {
    uint32_t motorIndex;
    uint32_t period;
};

struct record {
    uint32_t time;
    uint32_t numCommands;
};

"""

CHECK_FOR_NEXT_NOTE = """\
void checkForNextNote() {
    uint32_t newMillis = millis();
    if (newMillis - oldMillis >= 10) {
        oldMillis = newMillis;
        counter++;
        if (counter == currentRecord.time && recordIndex < numRecords) {
            processCommands();
            recordIndex++;
            memcpy_P(&currentRecord, &records[recordIndex], RECORD_SIZE);
        }
    }
}

"""

PROCESS_COMMANDS = """\
void processCommands() {
    uint8_t numCommands = currentRecord.numCommands;

    for (int n = 0; n < numCommands; n++) {
        memcpy_P(&currentCommand, &commands[commandIndex], COMMAND_SIZE);
        uint8_t motorIndex = currentCommand.motorIndex;
        if (motorIndex != PERCUSSION) {
            motors[motorIndex].setPeriod(currentCommand.period);
        }
        commandIndex++;
    }
}
"""


def step_period(frequency: float) -> int:
    """Microseconds between steps; 0 stops the motor."""
    hz = int(round(frequency))
    return 1000000 // hz if hz > 0 else 0


def _command_literal(c) -> str:
    if isinstance(c, PercussionCommand):
        return f"{{PERCUSSION, {c.kind.value}}}"
    return f"{{{c.motor_index}, {step_period(c.frequency)}}}"


def render_sketch(motors: Sequence[Motor], percussion: Iterable[Percussion] = (),
                  cfg: Optional[FirmwareConfig] = None) -> str:
    cfg = cfg or FirmwareConfig()
    commands = build_commands(motors, percussion)

    literals: List[str] = []
    records: List[str] = []
    # the microcontroller starts playing after one hundredth of a second
    for time, group in groupby(commands, key=lambda c: max(c.time, 1)):
        group = list(group)
        literals.extend(_command_literal(c) for c in group)
        records.append(f"{{{time}, {len(group)}}}")
    num_records = len(records)

    if not literals:
        log.warning("No notes or percussion to schedule; writing an idle sketch")
        literals.append(END_COMMAND)
    # checkForNextNote loads records[numRecords] after the last one
    records.append(END_RECORD)

    parts = [HEADER, STRUCTS]
    parts.append("const command commands[] PROGMEM = {" + ", ".join(literals) + "};\n")
    parts.append("const record records[] PROGMEM = {" + ", ".join(records) + "};\n\n")
    parts.append(
        f"Stepper motors[{max(len(motors), 1)}];\n"
        "command currentCommand;\n"
        "record currentRecord;\n"
        "uint32_t oldMillis = 0;\n"
        "uint16_t commandIndex = 0;\n"
        "uint16_t recordIndex = 0;\n"
        f"uint16_t numRecords = {num_records};\n"
        "uint32_t counter = 0;\n\n"
    )

    setup = ["void setup() {\n"]
    for m in motors:
        setup.append(f"{TAB}motors[{m.index}].setPin(D{cfg.first_pin + m.index});\n")
    setup.append("\n")
    setup.append(f"{TAB}memcpy_P(&currentRecord, &records[0], RECORD_SIZE);\n")
    setup.append("}\n\n")
    parts.append("".join(setup))

    loop = ["void loop() {\n", f"{TAB}checkForNextNote();\n"]
    for m in motors:
        loop.append(f"{TAB}motors[{m.index}].run(micros());\n")
    loop.append("}\n\n")
    parts.append("".join(loop))

    parts.append(CHECK_FOR_NEXT_NOTE)
    parts.append(PROCESS_COMMANDS)
    return "".join(parts)


def write_sketch(motors: Sequence[Motor], percussion: Iterable[Percussion], name: str,
                 cfg: Optional[FirmwareConfig] = None) -> Path:
    """Write ``<out_dir>/<name>/<name>.ino``; Arduino wants the sketch in a folder of the same name."""
    cfg = cfg or FirmwareConfig()
    sketch_dir = Path(cfg.out_dir) / name
    sketch_dir.mkdir(parents=True, exist_ok=True)

    if cfg.stepper_lib:
        for fname in STEPPER_LIB_FILES:
            shutil.copyfile(Path(cfg.stepper_lib) / fname, sketch_dir / fname)

    path = sketch_dir / f"{name}.ino"
    path.write_text(render_sketch(motors, percussion, cfg), encoding="utf-8")
    log.info("Successfully wrote to %s", path)
    return path
