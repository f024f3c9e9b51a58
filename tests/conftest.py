import pytest

from notes.model import Note


@pytest.fixture
def note():
    def make(start, duration, voice=0, freq=440.0):
        return Note(start_time=start, frequency=freq, duration=duration, voice_index=voice)
    return make
