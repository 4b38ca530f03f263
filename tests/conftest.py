"""
Test configuration for varanno.

The fixtures build small but real indexes of every supported type from the
same evidence rows, so backends can be compared against each other.
"""

import sys
import sqlite3
from pathlib import Path

import duckdb
import pysam
import pytest

# Add src to Python path for runs without an install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from varanno.backends.inverted_index import TABLE_NAME
from varanno.model import Variant, VariantEffect
from varanno.sources import FREQUENCY_COLUMN_MAP, FREQUENCY_SOURCE_MAP, PATHOGENICITY_COLUMN_MAP, PATHOGENICITY_INFO_KEYS

# chrom, pos, id, ref, alt, info
EVIDENCE_ROWS = [
    ("1", 100, "rs123", "A", "T", "KG=0.1;EXAC_NFE=0.25;SIFT=0.02;POLYPHEN=0.9;MUT_TASTER=0.8"),
    ("1", 100, ".", "A", "G", "EXAC_NFE=1.5"),
    ("1", 100, "rs111", "AA", "-", "KG=5.0"),
    ("1", 200, ".", "C", "G", "."),
    ("1", 250, "rs999", "G", "C", "KG=0;SIFT=0"),
    ("2", 300, "rs456", "TTT", "-", "ESP_ALL=2.5;KG=3.0"),
    ("X", 500, "rs789", "G", "A", "EXAC_AFR=0.3;SIFT=0.5"),
]

INDEX_FIELDS = list(FREQUENCY_SOURCE_MAP) + ["SIFT", "POLYPHEN", "MUT_TASTER"]


def chromosome_number(chrom: str) -> int:
    return {"X": 23, "Y": 24, "MT": 25}.get(chrom) or int(chrom)


def info_to_dict(info: str) -> dict:
    if info == ".":
        return {}
    return {key: float(value) for key, value in (token.split("=") for token in info.split(";"))}


def write_tabix(path: Path, lines) -> Path:
    """Write sorted tab-delimited lines, bgzip and tabix-index them; returns the .gz path."""
    with open(path, "w") as f:
        for line in lines:
            f.write(line + "\n")
    return Path(pysam.tabix_index(str(path), preset="vcf", force=True, keep_original=True))


def write_score_tabix(path: Path, rows) -> Path:
    """Positional score file: chrom, pos, score."""
    with open(path, "w") as f:
        for chrom, pos, score in rows:
            f.write(f"{chrom}\t{pos}\t{score}\n")
    return Path(pysam.tabix_index(str(path), seq_col=0, start_col=1, end_col=1, force=True, keep_original=True))


@pytest.fixture
def tabix_vcf(tmp_path):
    lines = [f"{c}\t{p}\t{i}\t{r}\t{a}\t.\t.\t{info}" for c, p, i, r, a, info in EVIDENCE_ROWS]
    return write_tabix(tmp_path / "variants.vcf", lines)


@pytest.fixture
def score_file(tmp_path):
    """Factory writing an indexed positional score file from (chrom, pos, score) rows."""

    def make(name, rows):
        return write_score_tabix(tmp_path / name, rows)

    return make


@pytest.fixture
def remm_tabix(tmp_path):
    rows = [("1", 1, "0.0"), ("1", 2, "0.5"), ("1", 3, "1.0"), ("1", 4, "0.2"), ("1", 10, "0.7")]
    return write_score_tabix(tmp_path / "remm.tsv", rows)


@pytest.fixture
def duckdb_index(tmp_path):
    path = tmp_path / "alleles.duckdb"
    conn = duckdb.connect(str(path))
    field_columns = ", ".join(f"{name} DOUBLE" for name in INDEX_FIELDS)
    conn.execute(
        f"CREATE TABLE {TABLE_NAME} (chr INTEGER, pos INTEGER, ref VARCHAR, alt VARCHAR, rsId VARCHAR, {field_columns})"
    )
    placeholders = ", ".join("?" for _ in range(5 + len(INDEX_FIELDS)))
    for chrom, pos, rs_id, ref, alt, info in EVIDENCE_ROWS:
        values = info_to_dict(info)
        conn.execute(
            f"INSERT INTO {TABLE_NAME} VALUES ({placeholders})",
            [chromosome_number(chrom), pos, ref, alt, None if rs_id == "." else rs_id]
            + [values.get(name) for name in INDEX_FIELDS],
        )
    conn.execute(f"CREATE INDEX alleles_key ON {TABLE_NAME} (chr, pos, ref, alt)")
    conn.close()
    return path


@pytest.fixture
def relational_db(tmp_path):
    path = tmp_path / "variants.sqlite"
    conn = sqlite3.connect(path)
    frequency_columns = ", ".join(f"{column} REAL" for column in FREQUENCY_COLUMN_MAP.values())
    conn.execute(
        f"CREATE TABLE frequency (chromosome INTEGER, position INTEGER, ref TEXT, alt TEXT, rsid INTEGER, {frequency_columns})"
    )
    conn.execute(
        "CREATE TABLE variant (chromosome INTEGER, position INTEGER, ref TEXT, alt TEXT, "
        "mut_taster REAL, polyphen REAL, sift REAL)"
    )
    for chrom, pos, rs_id, ref, alt, info in EVIDENCE_ROWS:
        values = info_to_dict(info)
        key = [chromosome_number(chrom), pos, ref, alt]
        rsid = 0 if rs_id == "." else int(rs_id[2:])
        frequencies = [values.get(key_name) for key_name in FREQUENCY_SOURCE_MAP]
        conn.execute(
            f"INSERT INTO frequency VALUES ({', '.join('?' for _ in range(5 + len(frequencies)))})",
            key + [rsid] + frequencies,
        )
        scores = {column: values.get(PATHOGENICITY_INFO_KEYS[source]) for source, column in PATHOGENICITY_COLUMN_MAP.items()}
        if any(value is not None for value in scores.values()):
            conn.execute(
                "INSERT INTO variant VALUES (?, ?, ?, ?, ?, ?, ?)",
                key + [scores["mut_taster"], scores["polyphen"], scores["sift"]],
            )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def relational_info_db(tmp_path):
    path = tmp_path / "variants_info.sqlite"
    conn = sqlite3.connect(path)
    conn.execute(
        "CREATE TABLE variant (chromosome INTEGER, position INTEGER, ref TEXT, alt TEXT, rsid TEXT, info TEXT)"
    )
    for chrom, pos, rs_id, ref, alt, info in EVIDENCE_ROWS:
        conn.execute(
            "INSERT INTO variant VALUES (?, ?, ?, ?, ?, ?)",
            [chromosome_number(chrom), pos, ref, alt, rs_id, info],
        )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def missense_variant():
    return Variant(1, 100, "A", "T", VariantEffect.MISSENSE_VARIANT)


@pytest.fixture
def regulatory_variant():
    return Variant(1, 1, "A", "T", VariantEffect.REGULATORY_REGION_VARIANT)
