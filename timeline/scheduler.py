# timeline/scheduler.py
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Union

from motors.motor import Motor
from notes.model import Percussion, PercussionKind


@dataclass(frozen=True)
class Command:
    time: int          # hundredths of a second
    motor_index: int
    frequency: float   # 0 stops the motor

    @property
    def is_stop(self) -> bool:
        return self.frequency == 0


@dataclass(frozen=True)
class PercussionCommand:
    time: int
    kind: PercussionKind


ScheduledCommand = Union[Command, PercussionCommand]


def _order(c: ScheduledCommand):
    # same instant: stops, then starts, then percussion
    if isinstance(c, PercussionCommand):
        return (c.time, 2, 0)
    return (c.time, 0 if c.is_stop else 1, c.motor_index)


def build_commands(motors: Sequence[Motor], percussion: Iterable[Percussion] = ()) -> List[ScheduledCommand]:
    out: List[ScheduledCommand] = []
    for m in motors:
        for n in m.events:
            out.append(Command(n.start_time, m.index, n.frequency))
            out.append(Command(n.end_time, m.index, 0.0))
    out.extend(PercussionCommand(p.start_time, p.kind) for p in percussion)
    out.sort(key=_order)
    return out


def song_end_time(motors: Sequence[Motor], percussion: Iterable[Percussion] = ()) -> int:
    end = max((m.end_time for m in motors), default=0)
    return max([end] + [p.start_time for p in percussion])


class Timeline:
    """Advances real time and yields the commands that fall due.
    The audio preview drives this once per frame.
    """
    def __init__(self, commands: Iterable[ScheduledCommand]):
        self.commands = sorted(commands, key=_order)
        self.i = 0
        self.time = 0.0  # hundredths of a second

    @property
    def finished(self) -> bool:
        return self.i >= len(self.commands)

    def step(self, dt: float):
        self.time += dt

    def due_commands(self):
        t = self.time
        while self.i < len(self.commands) and self.commands[self.i].time <= t:
            yield self.commands[self.i]
            self.i += 1
