"""
Annotation field parser for varanno.

Turns the rows handed back by a backend into typed FrequencyData and
PathogenicityData. Source files are large and occasionally dirty, so a bad
field is logged and skipped and a bad row becomes EMPTY; nothing in here
raises past parse_record.
"""

import math
import logging
from typing import Dict, List, Mapping, Optional, Tuple

from .exceptions import MalformedRecordError
from .model import (
    AnnotationRecord,
    Frequency,
    FrequencyData,
    PathogenicityData,
    PathogenicityScore,
    RsId,
)
from .sources import frequency_source_for, score_type_for

# Configure logging
log = logging.getLogger("varanno")

EMPTY_FIELD = "."

VCF_CHROM, VCF_POS, VCF_ID, VCF_REF, VCF_ALT, VCF_QUAL, VCF_FILTER, VCF_INFO = range(8)
VCF_COLUMNS = 8
SCORE_COLUMNS = 3


def _to_float(value) -> Optional[float]:
    """Coerce a field value to a finite float, or None if it cannot be."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_info_field(info: Optional[str]) -> Dict[str, float]:
    """
    Split a semicolon-delimited INFO string into numeric key/value pairs.

    Tokens without exactly one '=' are ignored; a value that is not a number
    drops just that field.

    Args:
        info: Raw INFO string, e.g. "KG=0.1;SIFT=0.02"

    Returns:
        Dictionary of field name to value
    """
    values = {}
    if not info or info == EMPTY_FIELD:
        return values
    for token in info.split(";"):
        if token.count("=") != 1:
            continue
        key, raw_value = token.split("=", 1)
        value = _to_float(raw_value)
        if value is None:
            if raw_value != EMPTY_FIELD:
                log.warning(f"Skipping non-numeric INFO field {key}={raw_value}")
            continue
        values[key] = value
    return values


def coerce_fields(fields: Mapping[str, object]) -> Dict[str, float]:
    """Type-coerce fields already split out by the index; None and non-numeric values are dropped."""
    values = {}
    for key, raw_value in fields.items():
        value = _to_float(raw_value)
        if value is None:
            if raw_value is not None:
                log.warning(f"Skipping non-numeric index field {key}={raw_value!r}")
            continue
        values[key] = value
    return values


def record_values(record: AnnotationRecord) -> Dict[str, float]:
    if isinstance(record.info, Mapping):
        return coerce_fields(record.info)
    return parse_info_field(record.info)


def parse_frequencies(values: Mapping[str, float]) -> List[Frequency]:
    frequencies = []
    for key, value in values.items():
        source = frequency_source_for(key)
        if source is not None and value != 0:
            frequencies.append(Frequency(source, value))
    return frequencies


def parse_scores(values: Mapping[str, float]) -> List[PathogenicityScore]:
    scores = []
    for key, value in values.items():
        score_type = score_type_for(key)
        if score_type is not None and value != 0:
            scores.append(score_type.of(value))
    return scores


def parse_rs_id(value) -> RsId:
    try:
        return RsId.parse(value)
    except MalformedRecordError as e:
        log.warning(f"Ignoring {e}")
        return RsId.EMPTY


def is_empty_record(record: AnnotationRecord) -> bool:
    """A row that exists but carries no evidence: both id and info are the '.' sentinel."""
    rs_empty = record.rs_id in (None, EMPTY_FIELD, "", 0)
    info_empty = record.info in (None, EMPTY_FIELD, "") or (isinstance(record.info, Mapping) and not record.info)
    return rs_empty and info_empty


def parse_record(record: AnnotationRecord) -> Tuple[FrequencyData, PathogenicityData]:
    """
    Parse one record into its frequency and pathogenicity halves.

    Args:
        record: Row returned by a backend

    Returns:
        Tuple of (FrequencyData, PathogenicityData); EMPTY halves for sentinel
        or unparseable rows
    """
    if is_empty_record(record):
        return FrequencyData.EMPTY, PathogenicityData.EMPTY
    try:
        values = record_values(record)
        rs_id = parse_rs_id(record.rs_id)
        frequency_data = FrequencyData.of(rs_id, parse_frequencies(values))
        pathogenicity_data = PathogenicityData.of(parse_scores(values))
        return frequency_data, pathogenicity_data
    except (AttributeError, TypeError, ValueError) as e:
        log.warning(f"Unable to parse record {record}: {e}")
        return FrequencyData.EMPTY, PathogenicityData.EMPTY


def parse_vcf_line(line: str) -> AnnotationRecord:
    """
    Split a tab-delimited VCF-layout row: chrom, pos, id, ref, alt, qual, filter, info.

    Raises:
        MalformedRecordError: for short rows or a non-integer position
    """
    elements = line.rstrip("\r\n").split("\t")
    if len(elements) < VCF_COLUMNS:
        raise MalformedRecordError(f"Expected {VCF_COLUMNS} columns, found {len(elements)}", details=line)
    try:
        position = int(elements[VCF_POS])
    except ValueError:
        raise MalformedRecordError("Invalid position", details=line)
    return AnnotationRecord(
        chromosome=elements[VCF_CHROM],
        position=position,
        ref=elements[VCF_REF],
        alt=elements[VCF_ALT],
        rs_id=elements[VCF_ID],
        info=elements[VCF_INFO],
    )


def parse_score_line(line: str, key: str = "REMM") -> AnnotationRecord:
    """
    Split a tab-delimited positional score row: chrom, pos, score.

    The score is stored in the record's info under the given key. Such rows
    carry no alleles.

    Raises:
        MalformedRecordError: for short rows, a non-integer position or a non-numeric score
    """
    elements = line.rstrip("\r\n").split("\t")
    if len(elements) < SCORE_COLUMNS:
        raise MalformedRecordError(f"Expected {SCORE_COLUMNS} columns, found {len(elements)}", details=line)
    score = _to_float(elements[2])
    if score is None:
        raise MalformedRecordError("Invalid score", details=line)
    try:
        position = int(elements[1])
    except ValueError:
        raise MalformedRecordError("Invalid position", details=line)
    return AnnotationRecord(
        chromosome=elements[0],
        position=position,
        ref=None,
        alt=None,
        rs_id=EMPTY_FIELD,
        info={key: score},
    )
