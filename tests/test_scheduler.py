from motors.motor import Motor
from notes.model import Percussion, PercussionKind
from timeline.scheduler import Command, PercussionCommand, Timeline, build_commands, song_end_time


def _motor(index, notes):
    m = Motor(index)
    for n in notes:
        m.add_note(n)
    return m


def test_stops_come_before_starts(note) -> None:
    m0 = _motor(0, [note(0, 50, freq=440.0), note(50, 50, freq=220.0)])
    perc = [Percussion(50, PercussionKind.BASS_DRUM)]
    cmds = build_commands([m0], perc)
    assert cmds == [
        Command(0, 0, 440.0),
        Command(50, 0, 0.0),
        Command(50, 0, 220.0),
        PercussionCommand(50, PercussionKind.BASS_DRUM),
        Command(100, 0, 0.0),
    ]
    assert cmds[1].is_stop and not cmds[2].is_stop


def test_song_end_time_includes_percussion(note) -> None:
    m0 = _motor(0, [note(0, 50)])
    assert song_end_time([m0]) == 50
    assert song_end_time([m0], [Percussion(80, PercussionKind.COWBELL)]) == 80
    assert song_end_time([]) == 0


def test_timeline_releases_commands_as_time_passes(note) -> None:
    tl = Timeline(build_commands([_motor(0, [note(10, 20)])]))
    assert list(tl.due_commands()) == []
    tl.step(10)
    assert list(tl.due_commands()) == [Command(10, 0, 440.0)]
    tl.step(25)
    assert list(tl.due_commands()) == [Command(30, 0, 0.0)]
    assert tl.finished
