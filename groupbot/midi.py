"""Writing simple melodies as MIDI, reading them back as text, and rendering audio."""

from __future__ import annotations

import io
import math
import re
import subprocess
from pathlib import Path

import mido

NOTE_MAP = {
    "C": 60,
    "Db": 61,
    "D": 62,
    "Eb": 63,
    "E": 64,
    "F": 65,
    "Gb": 66,
    "G": 67,
    "Ab": 68,
    "A": 69,
    "Bb": 70,
    "B": 71,
}
"""Note names of the fifth octave and their MIDI numbers."""

TICKS_PER_BEAT = 960
TEMPO_BPM = 72
INSTRUMENT = "Violin"
VELOCITY = 120
DEFAULT_TIMBRE = 40

_NAME_BY_CLASS = {value % 12: name for name, value in NOTE_MAP.items()}
_LENGTH = re.compile(r"-?[0-9]+")
_UINT32 = 0xFFFFFFFF


class MidiSyntaxError(ValueError):
    """A melody text holds a character that cannot be parsed."""


def octave(base: int, level: int) -> int:
    """MIDI note of pitch class ``base`` in octave ``level`` (byte arithmetic, capped at 10)."""
    base &= 0xFF
    level &= 0xFF
    if level > 10:
        level = 10
    if level == 0:
        return base
    result = (base + 12 * level) & 0xFF
    if result > 127:
        result -= 12
    return result


def note_name(note: int) -> str:
    """Name of the pitch class of ``note``, flats preferred."""
    return _NAME_BY_CLASS[note % 12]


def _is_letter(char: str) -> bool:
    return "A" <= char <= "G"


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def parse_note(text: str) -> int:
    """MIDI note of a single answer such as ``C#6``; octave 5 when none is given."""
    base = 0
    level = 0
    for char in text.replace(" ", ""):
        if _is_letter(char):
            base = NOTE_MAP[char] % 12
        elif char == "b":
            base = (base - 1) & 0xFF
        elif char == "#":
            base = (base + 1) & 0xFF
        elif _is_digit(char):
            level = (level * 10 + int(char)) & 0xFF
    if level == 0:
        level = 5
    return octave(base, level)


def _segments(text: str):
    """Yield ``(is_rest, base, level, length)`` for each note or rest of a melody."""
    k = text.replace(" ", "")
    size = len(k)
    i = 0
    while i < size:
        base = 0
        level = 0
        rest = False
        length_text = ""
        while True:
            char = k[i]
            if char == "R":
                rest = True
                i += 1
            elif _is_letter(char):
                base = NOTE_MAP[char] % 12
                i += 1
            elif char == "b":
                base = (base - 1) & 0xFF
                i += 1
            elif char == "#":
                base = (base + 1) & 0xFF
                i += 1
            elif _is_digit(char):
                level = (level * 10 + int(char)) & 0xFF
                i += 1
            elif char == "<":
                i += 1
                start = i
                while i < size and (k[i] == "-" or _is_digit(k[i])):
                    i += 1
                length_text += k[start:i]
            else:
                raise MidiSyntaxError(f"无法解析第{i}个位置的{char}字符")
            if i >= size or _is_letter(k[i]) or k[i] == "R":
                break
        length = int(length_text) if _LENGTH.fullmatch(length_text) else 0
        yield rest, base, level, length


def _duration(length: int) -> int:
    """Ticks of a note lasting 2**length quarter notes."""
    if length >= 0:
        return (TICKS_PER_BEAT << length) & _UINT32 if length < 32 else 0
    if -length >= 32:
        raise MidiSyntaxError(f"音长超出范围: {length}")
    return TICKS_PER_BEAT // (1 << -length)


def check_timbre(timbre) -> int:
    """Validate a General MIDI program number."""
    value = int(timbre)
    if value < 0 or value > 127:
        raise ValueError("音色应该在0~127之间")
    return value


def build_midi(text: str, timbre=DEFAULT_TIMBRE) -> mido.MidiFile:
    """A one-track MIDI file playing the melody ``text`` with instrument ``timbre``.

    Notes are letters A-G with optional ``b``/``#`` and octave digits; ``R`` is
    a rest; ``<n`` makes a note or rest last 2**n quarter notes.
    """
    program = check_timbre(timbre)
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("time_signature", numerator=4, denominator=4, time=0))
    track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(TEMPO_BPM), time=0))
    track.append(mido.MetaMessage("instrument_name", name=INSTRUMENT, time=0))
    track.append(mido.Message("program_change", channel=0, program=program, time=0))

    delay = 0
    for rest, base, level, length in _segments(text):
        if rest:
            delay = _duration(length)
            continue
        if level == 0:
            level = 5
        note = octave(base, level) & 0x7F
        track.append(mido.Message("note_on", channel=0, note=note, velocity=VELOCITY, time=delay))
        track.append(mido.Message("note_off", channel=0, note=note, velocity=0, time=_duration(length)))
        delay = 0
    track.append(mido.MetaMessage("end_of_track", time=0))

    midi = mido.MidiFile(type=1, ticks_per_beat=TICKS_PER_BEAT)
    midi.tracks.append(track)
    return midi


def write_midi(path, text: str, timbre=DEFAULT_TIMBRE) -> Path:
    """Write the melody to ``path`` unless that file already exists."""
    target = Path(path)
    if target.exists():
        return target
    midi = build_midi(text, timbre)
    with target.open("wb") as handle:
        midi.save(file=handle)
    return target


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _power(ticks: float) -> int | None:
    """Nearest power of two of a length in quarter notes; None for no length."""
    length = ticks / TICKS_PER_BEAT
    if length <= 0:
        return None
    return _round_half_away(math.log2(length))


def midi_to_text(data: bytes, track: int) -> str:
    """Melody text of track ``track`` of a MIDI file; empty if there is no such track."""
    midi = mido.MidiFile(file=io.BytesIO(data))
    if not 0 <= track < len(midi.tracks):
        return ""
    parts: list[str] = []
    start = end = 0.0
    start_note = end_note = 0
    ticks = 0
    for msg in midi.tracks[track]:
        ticks += msg.time
        if msg.is_meta:
            continue
        sounding = msg.type == "note_on" and msg.velocity > 0
        if sounding:
            start = float(ticks)
            start_note = msg.note
        if msg.type == "note_off" or (msg.type == "note_on" and msg.velocity == 0):
            end = float(ticks)
            end_note = msg.note
            if start_note == end_note:
                parts.append(note_name(msg.note))
                level = msg.note // 12
                if level != 5:
                    parts.append(str(level))
                power = _power(end - start)
                if power is not None and power >= -4 and power != 0:
                    parts.append(f"<{power}")
                start_note = end_note = 0
        if sounding and start > end:
            power = _power(start - end)
            if power == 0:
                parts.append("R")
            elif power is not None and power >= -4:
                parts.append(f"R<{power}")
    return "".join(parts)


def answer_for(target: int) -> str:
    """Text of a note as expected from a listener, such as ``C#6`` written ``Db6``."""
    return note_name(target) + str(target // 12)


def random_target(rng) -> int:
    """A random note for ear training, from G4 to E7."""
    return 55 + rng.randrange(34)


def render_wav(midi_path, wav_path=None) -> str:
    """Render a MIDI file to WAV with timidity; returns the WAV path."""
    midi_path = str(midi_path)
    if wav_path is None:
        wav_path = midi_path.replace(".mid", ".wav")
    wav_path = str(wav_path)
    subprocess.run(["timidity", midi_path, "-Ow", "-o", wav_path], check=True)
    return wav_path