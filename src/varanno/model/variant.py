"""
Variant model for varanno.

A Variant is the identity handed to the annotation store by the upstream
pipeline: chromosome, 1-based position, ref/alt alleles and the functional
effect class assigned by the effect predictor.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

EMPTY_ALLELE = "-"

CHROMOSOME_NAMES = {23: "X", 24: "Y", 25: "MT"}
CHROMOSOME_NUMBERS = {"X": 23, "Y": 24, "M": 25, "MT": 25}


class VariantEffect(Enum):
    """Sequence Ontology effect classes assigned to a variant."""

    TRANSCRIPT_ABLATION = "transcript_ablation"
    SPLICE_ACCEPTOR_VARIANT = "splice_acceptor_variant"
    SPLICE_DONOR_VARIANT = "splice_donor_variant"
    STOP_GAINED = "stop_gained"
    FRAMESHIFT_VARIANT = "frameshift_variant"
    STOP_LOST = "stop_lost"
    START_LOST = "start_lost"
    INFRAME_INSERTION = "inframe_insertion"
    INFRAME_DELETION = "inframe_deletion"
    MISSENSE_VARIANT = "missense_variant"
    SPLICE_REGION_VARIANT = "splice_region_variant"
    STOP_RETAINED_VARIANT = "stop_retained_variant"
    SYNONYMOUS_VARIANT = "synonymous_variant"
    CODING_SEQUENCE_VARIANT = "coding_sequence_variant"
    FIVE_PRIME_UTR_EXON_VARIANT = "5_prime_UTR_exon_variant"
    THREE_PRIME_UTR_EXON_VARIANT = "3_prime_UTR_exon_variant"
    NON_CODING_TRANSCRIPT_EXON_VARIANT = "non_coding_transcript_exon_variant"
    INTRON_VARIANT = "intron_variant"
    UPSTREAM_GENE_VARIANT = "upstream_gene_variant"
    DOWNSTREAM_GENE_VARIANT = "downstream_gene_variant"
    REGULATORY_REGION_VARIANT = "regulatory_region_variant"
    TF_BINDING_SITE_VARIANT = "TF_binding_site_variant"
    INTERGENIC_VARIANT = "intergenic_variant"
    SEQUENCE_VARIANT = "sequence_variant"

    @classmethod
    def parse(cls, value: Union[str, "VariantEffect", None]) -> "VariantEffect":
        """
        Parse an effect from its SO term or enum name, case-insensitively.

        Unknown or missing values map to SEQUENCE_VARIANT.
        """
        if isinstance(value, cls):
            return value
        if not value:
            return cls.SEQUENCE_VARIANT
        text = str(value).strip()
        for effect in cls:
            if text.lower() in (effect.value.lower(), effect.name.lower()):
                return effect
        return cls.SEQUENCE_VARIANT

    @property
    def is_missense(self) -> bool:
        return self is VariantEffect.MISSENSE_VARIANT

    @property
    def is_non_coding(self) -> bool:
        return self in _NON_CODING_EFFECTS


_NON_CODING_EFFECTS = frozenset({
    VariantEffect.FIVE_PRIME_UTR_EXON_VARIANT,
    VariantEffect.THREE_PRIME_UTR_EXON_VARIANT,
    VariantEffect.NON_CODING_TRANSCRIPT_EXON_VARIANT,
    VariantEffect.INTRON_VARIANT,
    VariantEffect.UPSTREAM_GENE_VARIANT,
    VariantEffect.DOWNSTREAM_GENE_VARIANT,
    VariantEffect.REGULATORY_REGION_VARIANT,
    VariantEffect.TF_BINDING_SITE_VARIANT,
    VariantEffect.INTERGENIC_VARIANT,
})


def parse_chromosome(value: Union[int, str]) -> int:
    """
    Convert a chromosome given as an integer or contig name to its integer form.

    Accepts 1, "1", "chr1", "X", "chrX", "chrM" and "MT".

    Raises:
        ValueError: if the value is not a recognised human chromosome
    """
    if isinstance(value, int):
        if value < 1:
            raise ValueError(f"Invalid chromosome: {value}")
        return value
    name = str(value).strip()
    if name.lower().startswith("chr"):
        name = name[3:]
    name = name.upper()
    if name in CHROMOSOME_NUMBERS:
        return CHROMOSOME_NUMBERS[name]
    number = int(name)
    if number < 1:
        raise ValueError(f"Invalid chromosome: {value}")
    return number


def chromosome_name(chromosome: int) -> str:
    return CHROMOSOME_NAMES.get(chromosome, str(chromosome))


@dataclass(frozen=True)
class Variant:
    """An immutable variant identity with its functional effect class."""

    chromosome: int
    position: int
    ref: str
    alt: str
    effect: VariantEffect = VariantEffect.SEQUENCE_VARIANT

    @classmethod
    def of(cls, chromosome, position, ref, alt, effect=None) -> "Variant":
        """Build a Variant from loosely-typed values such as those read from a table."""
        return cls(
            chromosome=parse_chromosome(chromosome),
            position=int(position),
            ref=str(ref),
            alt=str(alt),
            effect=VariantEffect.parse(effect),
        )

    @property
    def chromosome_name(self) -> str:
        return chromosome_name(self.chromosome)

    @property
    def key(self) -> Tuple[int, int, str, str]:
        """Cache identity: effect class plays no part in it."""
        return (self.chromosome, self.position, self.ref, self.alt)

    @property
    def is_deletion(self) -> bool:
        return self.alt == EMPTY_ALLELE

    @property
    def is_insertion(self) -> bool:
        return self.ref == EMPTY_ALLELE

    @property
    def hgvs_genome(self) -> str:
        """Genome-level HGVS-like string, e.g. 1:g.100A>T or 1:g.100_102del."""
        prefix = f"{self.chromosome}:g."
        if self.is_deletion:
            end = self.position + len(self.ref) - 1
            if end == self.position:
                return f"{prefix}{self.position}del"
            return f"{prefix}{self.position}_{end}del"
        if self.is_insertion:
            return f"{prefix}{self.position}_{self.position + 1}ins{self.alt}"
        if len(self.ref) == 1 and len(self.alt) == 1:
            return f"{prefix}{self.position}{self.ref}>{self.alt}"
        end = self.position + len(self.ref) - 1
        return f"{prefix}{self.position}_{end}delins{self.alt}"

    def __str__(self):
        return f"{self.chromosome_name}-{self.position}-{self.ref}-{self.alt} {self.effect.value}"
