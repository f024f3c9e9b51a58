import pytest

from timeline.tempo import DEFAULT_BPM, TempoEntry, TempoTimeline


def test_empty_timeline_defaults_to_120_bpm() -> None:
    tl = TempoTimeline()
    assert tl.tempo_at_measure(0) == DEFAULT_BPM
    assert tl.tempo_at_measure(12.5) == DEFAULT_BPM
    assert tl.measure_to_time(1) == pytest.approx(200)


def test_tempo_change_takes_effect_on_its_boundary() -> None:
    tl = TempoTimeline.from_pairs([(0, 120), (1, 60)])
    assert tl.tempo_at_measure(0.99) == 120
    assert tl.tempo_at_measure(1) == 60
    assert tl.tempo_at_measure(7) == 60


def test_later_entry_wins_at_same_offset() -> None:
    tl = TempoTimeline([TempoEntry(0, 120), TempoEntry(2, 90), TempoEntry(2, 180)])
    assert tl.tempo_at_measure(2) == 180
    assert tl.measure_to_time(2.5) == pytest.approx(400 + 0.5 * 4 * 6000 / 180)


def test_halving_tempo_doubles_quarter_note_spacing() -> None:
    tl = TempoTimeline.from_pairs([(0, 120), (1, 60)])
    first = [tl.measure_to_time(q * 0.25) for q in range(4)]
    second = [tl.measure_to_time(1 + q * 0.25) for q in range(4)]
    assert first == pytest.approx([0, 50, 100, 150])
    # exact measure positions: the 60 BPM segment starts at 200, not 203
    assert second == pytest.approx([200, 300, 400, 500])


def test_default_tempo_applies_before_first_entry() -> None:
    tl = TempoTimeline.from_pairs([(1, 60)])
    assert tl.tempo_at_measure(0.5) == 120
    assert tl.measure_to_time(1) == pytest.approx(200)
    assert tl.measure_to_time(1.5) == pytest.approx(400)


def test_single_tempo_is_linear() -> None:
    tl = TempoTimeline.from_pairs([(0, 90)])
    for m in (0, 0.3, 1, 2.75, 10):
        assert tl.measure_to_time(m) == pytest.approx(m * 4 * 6000 / 90)


def test_measure_to_time_is_monotonic() -> None:
    tl = TempoTimeline.from_pairs([(0, 90), (0.5, 200), (2, 60), (2, 180), (3.25, 45)])
    points = [i * 0.05 for i in range(120)]
    times = [tl.measure_to_time(m) for m in points]
    assert all(a <= b for a, b in zip(times, times[1:]))
    assert tl.bpm_changes()[-1] == (3.25, 45)
    assert len(tl) == 5
