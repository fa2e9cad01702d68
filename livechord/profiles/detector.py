from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .templates import DEFAULT_TEMPLATES, ChordTemplate


@dataclass(frozen=True)
class ChordMatch:
    chord: str
    score: float
    match_count: int
    template: ChordTemplate
    # (best - runner up) / best; 1.0 when nothing else qualified
    relative_strength: float


class ChordTemplateMatcher:
    """
    Finds the best-matching chord for a set of detected pitch classes by
    counting how many notes of each template are present.

    A template qualifies once it shares at least `min_match_count` pitch
    classes with the input; its score is the matched fraction scaled by the
    template weight. Deciding whether the score is good enough to report is
    left to the caller.
    """

    def __init__(
        self,
        templates: Sequence[ChordTemplate] = DEFAULT_TEMPLATES,
        min_match_count: int = 2,
    ):
        if min_match_count <= 0:
            raise ValueError(f"min_match_count must be positive, got {min_match_count}")
        self.templates: Tuple[ChordTemplate, ...] = tuple(templates)
        self.min_match_count = min_match_count

    def score_all(self, pitch_classes: Iterable[str]) -> List[Tuple[ChordTemplate, float, int]]:
        """(template, score, match_count) for every qualifying template, in dictionary order."""
        present = frozenset(pitch_classes)
        scored = []
        for template in self.templates:
            matches = sum(1 for p in template.pitch_classes if p in present)
            if matches < self.min_match_count:
                continue
            score = (matches / len(template.pitch_classes)) * template.weight
            scored.append((template, score, matches))
        return scored

    def detect(self, pitch_classes: Iterable[str]) -> Optional[ChordMatch]:
        """
        Return the highest scoring template, or None when no template reaches
        the minimum match count. Ties go to the earlier template.
        """
        scored = self.score_all(pitch_classes)
        if not scored:
            return None

        best, second = None, 0.0
        for entry in scored:
            score = entry[1]
            if best is None or score > best[1]:
                if best is not None:
                    second = best[1]
                best = entry
            elif score > second:
                second = score

        template, score, matches = best
        rel = (score - second) / score if score != 0 else 0.0
        return ChordMatch(
            chord=template.name,
            score=float(score),
            match_count=matches,
            template=template,
            relative_strength=float(rel),
        )
