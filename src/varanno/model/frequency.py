"""
Population frequency model for varanno.

Frequencies are percent allele frequencies reported by a population panel.
A frequency of zero is never stored: the source files use 0 and missing
interchangeably, so zero is read as "absent".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Union

from ..exceptions import MalformedRecordError

VCF_EMPTY_VALUE = "."


class FrequencySource(Enum):
    """Population panels supplying allele frequencies."""

    THOUSAND_GENOMES = "1000Genomes"
    ESP_AFRICAN_AMERICAN = "ESP AA"
    ESP_EUROPEAN_AMERICAN = "ESP EA"
    ESP_ALL = "ESP All"
    EXAC_AFRICAN_INC_AFRICAN_AMERICAN = "ExAC AFR"
    EXAC_AMERICAN = "ExAC AMR"
    EXAC_EAST_ASIAN = "ExAC EAS"
    EXAC_FINNISH = "ExAC FIN"
    EXAC_NON_FINNISH_EUROPEAN = "ExAC NFE"
    EXAC_SOUTH_ASIAN = "ExAC SAS"
    EXAC_OTHER = "ExAC OTH"


@dataclass(frozen=True)
class RsId:
    """An NCBI dbSNP reference SNP id. Zero is the empty id, rendered as '.'."""

    id: int = 0

    @classmethod
    def parse(cls, value: Union[str, int, None]) -> "RsId":
        """
        Parse an rs id from its VCF form ("rs123456"), an integer, or an empty marker.

        Raises:
            MalformedRecordError: if the value is neither empty nor a valid id
        """
        if value is None:
            return RsId.EMPTY
        if isinstance(value, int):
            return RsId(value) if value > 0 else RsId.EMPTY
        text = str(value).strip()
        if text in ("", VCF_EMPTY_VALUE, "0"):
            return RsId.EMPTY
        digits = text[2:] if text.lower().startswith("rs") else text
        try:
            number = int(digits)
        except ValueError:
            raise MalformedRecordError("Invalid rs id", details=text)
        return RsId(number) if number > 0 else RsId.EMPTY

    @property
    def is_empty(self) -> bool:
        return self.id == 0

    def __str__(self):
        if self.id == 0:
            return VCF_EMPTY_VALUE
        return f"rs{self.id}"


RsId.EMPTY = RsId(0)


@dataclass(frozen=True)
class Frequency:
    source: FrequencySource
    frequency: float

    def is_over_threshold(self, max_freq: float) -> bool:
        return self.frequency > max_freq


@dataclass(frozen=True)
class FrequencyData:
    """The rs id and the set of non-zero population frequencies known for a variant."""

    rs_id: RsId = RsId.EMPTY
    frequencies: FrozenSet[Frequency] = field(default_factory=frozenset)

    def __post_init__(self):
        # one frequency per source, first one wins; zero means absent
        by_source = {}
        for frequency in self.frequencies:
            if frequency is None or not frequency.frequency:
                continue
            by_source.setdefault(frequency.source, frequency)
        object.__setattr__(self, "frequencies", frozenset(by_source.values()))
        if self.rs_id is None:
            object.__setattr__(self, "rs_id", RsId.EMPTY)

    @classmethod
    def of(cls, rs_id: Optional[RsId] = None, frequencies: Iterable[Frequency] = ()) -> "FrequencyData":
        data = cls(rs_id or RsId.EMPTY, tuple(frequencies))
        if data == FrequencyData.EMPTY:
            return FrequencyData.EMPTY
        return data

    @property
    def is_empty(self) -> bool:
        return self == FrequencyData.EMPTY

    @property
    def is_represented_in_dbsnp(self) -> bool:
        return not self.rs_id.is_empty

    @property
    def has_known_frequency(self) -> bool:
        return bool(self.frequencies)

    @property
    def max_freq(self) -> float:
        return max((f.frequency for f in self.frequencies), default=0.0)

    def get_frequency_for(self, source: FrequencySource) -> Optional[Frequency]:
        for frequency in self.frequencies:
            if frequency.source is source:
                return frequency
        return None


FrequencyData.EMPTY = FrequencyData()
