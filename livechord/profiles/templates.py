from dataclasses import dataclass
from typing import Tuple

from ..features.pitch import PITCH_CLASSES


@dataclass(frozen=True)
class ChordTemplate:
    name: str
    pitch_classes: Tuple[str, ...]
    weight: float = 1.0

    def __post_init__(self) -> None:
        if not self.pitch_classes:
            raise ValueError(f"template {self.name!r} has no pitch classes")
        unknown = [p for p in self.pitch_classes if p not in PITCH_CLASSES]
        if unknown:
            raise ValueError(f"template {self.name!r} uses unknown pitch classes {unknown}")
        if len(set(self.pitch_classes)) != len(self.pitch_classes):
            raise ValueError(f"template {self.name!r} repeats a pitch class")
        if not 0.0 < self.weight <= 1.0:
            raise ValueError(f"template {self.name!r} weight must be in (0, 1], got {self.weight}")


# Order matters: on equal scores the earlier template wins.
# Pitch classes are spelled with sharps, so Bb is written A#.
DEFAULT_TEMPLATES: Tuple[ChordTemplate, ...] = (
    ChordTemplate("C", ("C", "E", "G"), 1.0),
    ChordTemplate("Dm", ("D", "F", "A"), 1.0),
    ChordTemplate("Em", ("E", "G", "B"), 1.0),
    ChordTemplate("F", ("F", "A", "C"), 1.0),
    ChordTemplate("G", ("G", "B", "D"), 1.0),
    ChordTemplate("Am", ("A", "C", "E"), 1.0),
    ChordTemplate("Bb", ("A#", "D", "F"), 0.9),
    ChordTemplate("D", ("D", "F#", "A"), 0.9),
    ChordTemplate("A", ("A", "C#", "E"), 0.9),
    ChordTemplate("E", ("E", "G#", "B"), 0.9),
    ChordTemplate("B", ("B", "D#", "F#"), 0.8),
    ChordTemplate("F#", ("F#", "A#", "C#"), 0.8),
)
