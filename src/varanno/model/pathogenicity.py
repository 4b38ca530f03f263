"""
Pathogenicity prediction model for varanno.

Each predictor keeps its own scale and direction: SIFT scores near zero are
damaging while PolyPhen, MutationTaster and REMM scores near one are. No
attempt is made to unify them here; that is left to the scorer consuming
the data.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, FrozenSet, Iterable, Optional


class PathogenicitySource(Enum):
    SIFT = "SIFT"
    POLYPHEN = "PolyPhen"
    MUTATION_TASTER = "MutationTaster"
    REMM = "REMM"


@dataclass(frozen=True)
class PathogenicityScore:
    score: float
    source: ClassVar[PathogenicitySource]

    @classmethod
    def of(cls, score: float) -> "PathogenicityScore":
        return cls(float(score))

    def __str__(self):
        return f"{self.source.value}: {self.score:.3f}"


@dataclass(frozen=True)
class SiftScore(PathogenicityScore):
    """SIFT: 0 (damaging) to 1 (tolerated)."""

    source: ClassVar[PathogenicitySource] = PathogenicitySource.SIFT


@dataclass(frozen=True)
class PolyPhenScore(PathogenicityScore):
    """PolyPhen-2: 0 (benign) to 1 (probably damaging)."""

    source: ClassVar[PathogenicitySource] = PathogenicitySource.POLYPHEN


@dataclass(frozen=True)
class MutationTasterScore(PathogenicityScore):
    """MutationTaster: 0 (polymorphism) to 1 (disease causing)."""

    source: ClassVar[PathogenicitySource] = PathogenicitySource.MUTATION_TASTER


@dataclass(frozen=True)
class RemmScore(PathogenicityScore):
    """REMM: regulatory Mendelian mutation score, 0 (benign) to 1 (pathogenic)."""

    source: ClassVar[PathogenicitySource] = PathogenicitySource.REMM


SCORE_TYPES = {
    PathogenicitySource.SIFT: SiftScore,
    PathogenicitySource.POLYPHEN: PolyPhenScore,
    PathogenicitySource.MUTATION_TASTER: MutationTasterScore,
    PathogenicitySource.REMM: RemmScore,
}


def max_scores(scores: Iterable[PathogenicityScore]) -> Dict[PathogenicitySource, PathogenicityScore]:
    """Keep the highest score seen for each source."""
    best: Dict[PathogenicitySource, PathogenicityScore] = {}
    for score in scores:
        if score is None:
            continue
        current = best.get(score.source)
        if current is None or score.score > current.score:
            best[score.source] = score
    return best


@dataclass(frozen=True)
class PathogenicityData:
    """The set of pathogenicity predictions known for a variant, one per source."""

    scores: FrozenSet[PathogenicityScore] = field(default_factory=frozenset)

    def __post_init__(self):
        # zero means absent, as for frequencies
        kept = [score for score in (self.scores or ()) if score is not None and score.score]
        object.__setattr__(self, "scores", frozenset(max_scores(kept).values()))

    @classmethod
    def of(cls, scores: Iterable[PathogenicityScore] = ()) -> "PathogenicityData":
        data = cls(tuple(scores))
        if data == PathogenicityData.EMPTY:
            return PathogenicityData.EMPTY
        return data

    @property
    def is_empty(self) -> bool:
        return self == PathogenicityData.EMPTY

    @property
    def has_predicted_score(self) -> bool:
        return bool(self.scores)

    def get_score(self, source: PathogenicitySource) -> Optional[PathogenicityScore]:
        for score in self.scores:
            if score.source is source:
                return score
        return None

    @property
    def most_pathogenic_score(self) -> Optional[PathogenicityScore]:
        """
        The score closest to its damaging end.

        SIFT is inverted before comparison since low SIFT scores are the damaging ones.
        """
        if not self.scores:
            return None

        def damaging(score):
            if score.source is PathogenicitySource.SIFT:
                return 1 - score.score
            return score.score

        return max(self.scores, key=damaging)


PathogenicityData.EMPTY = PathogenicityData()
