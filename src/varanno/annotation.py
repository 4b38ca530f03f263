"""
Batch annotation for varanno.

Index lookups are blocking I/O, so a batch is spread over a bounded thread
pool; the store and its caches are shared by all workers.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Sequence, Tuple

import pandas as pd
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from .model import FrequencySource, PathogenicitySource, Variant, VariantData
from .sources import FREQUENCY_INFO_KEYS

# Configure logging
log = logging.getLogger("varanno")

INPUT_COLUMNS = ["chrom", "pos", "ref", "alt", "effect"]


def read_variants(path: Path) -> List[Variant]:
    """
    Read variants from a tab-separated table.

    The table needs chrom, pos, ref and alt columns and may have an effect
    column holding SO terms. Rows that cannot be parsed are logged and skipped.

    Args:
        path: Path to the table

    Returns:
        List of Variant
    """
    df = pd.read_csv(path, sep='\t', dtype=str, keep_default_na=False)
    df.columns = [column.strip().lstrip('#').lower() for column in df.columns]
    missing = [column for column in INPUT_COLUMNS[:4] if column not in df.columns]
    if missing:
        raise ValueError(f"Variant table {path} is missing columns: {', '.join(missing)}")

    variants = []
    for index, row in df.iterrows():
        try:
            variants.append(Variant.of(row["chrom"], row["pos"], row["ref"], row["alt"], row.get("effect")))
        except (TypeError, ValueError) as e:
            log.warning(f"Skipping row {index + 1} of {path}: {e}")
    log.info(f"Read {len(variants)} variants from {path}")
    return variants


def annotate_variants(store, variants: Sequence[Variant], threads: int = 4, progress: bool = False) -> List[Tuple[Variant, VariantData]]:
    """
    Annotate a batch of variants in parallel.

    Args:
        store: VariantDataStore or CachingVariantDataStore
        variants: Variants to annotate
        threads: Number of worker threads
        progress: Show a progress bar

    Returns:
        List of (variant, VariantData) in input order
    """
    results: List[VariantData] = [VariantData.EMPTY] * len(variants)
    with ThreadPoolExecutor(max_workers=threads) as executor:
        futures = [executor.submit(store.get_variant_data, variant) for variant in variants]
        if progress:
            with Progress(
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                TimeElapsedColumn(),
            ) as bar:
                task = bar.add_task("Annotating variants", total=len(futures))
                for i, future in enumerate(futures):
                    results[i] = future.result()
                    bar.advance(task)
        else:
            for i, future in enumerate(futures):
                results[i] = future.result()
    return list(zip(variants, results))


def variant_data_to_frame(results: Sequence[Tuple[Variant, VariantData]]) -> pd.DataFrame:
    """
    Flatten annotation results into a table, one row per variant.

    Frequency columns are named by INFO key and pathogenicity columns by
    predictor; absent values are left empty.
    """
    rows = []
    for variant, data in results:
        row = {
            "chrom": variant.chromosome_name,
            "pos": variant.position,
            "ref": variant.ref,
            "alt": variant.alt,
            "effect": variant.effect.value,
            "rsid": str(data.frequency_data.rs_id),
        }
        for source in FrequencySource:
            frequency = data.frequency_data.get_frequency_for(source)
            row[FREQUENCY_INFO_KEYS[source]] = frequency.frequency if frequency else None
        for source in PathogenicitySource:
            score = data.pathogenicity_data.get_score(source)
            row[source.name] = score.score if score else None
        rows.append(row)
    columns = ["chrom", "pos", "ref", "alt", "effect", "rsid"]
    columns += [FREQUENCY_INFO_KEYS[source] for source in FrequencySource]
    columns += [source.name for source in PathogenicitySource]
    return pd.DataFrame(rows, columns=columns)
