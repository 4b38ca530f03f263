"""
Command-line interface module for varanno.
Annotates a table of variants with population frequencies and pathogenicity
predictions from pre-built indexes.
"""

import sys
import logging
import argparse
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .annotation import annotate_variants, read_variants, variant_data_to_frame
from .backends import BACKEND_TYPES
from .cache import AnnotationCache, CachingVariantDataStore
from .config import AnnotationConfig
from .exceptions import ConfigurationError
from .store import VariantDataStore

console = Console(stderr=True)
log = logging.getLogger("varanno")


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def parse_args(argv=None):
    """
    Parse command-line arguments for varanno.

    Options left unset fall back to --config and then to AnnotationConfig defaults.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(description="Annotate variants with frequency and pathogenicity data")

    # Input/output arguments
    parser.add_argument("variants", help="Tab-separated variant table with chrom, pos, ref, alt and effect columns")
    parser.add_argument("--output", type=str,
                        help="Output TSV path (default: stdout)")
    parser.add_argument("--config", type=str,
                        help="JSON configuration file")

    # Index arguments
    parser.add_argument("--backend", choices=BACKEND_TYPES,
                        help="Index type of --variant-data (default: tabix)")
    parser.add_argument("--variant-data", type=str,
                        help="Combined frequency and pathogenicity index")
    parser.add_argument("--frequency", type=str,
                        help="Tabix file of population frequencies")
    parser.add_argument("--pathogenicity", type=str,
                        help="Tabix file of SIFT/PolyPhen/MutationTaster scores")
    parser.add_argument("--remm", type=str,
                        help="Tabix file of REMM scores")

    # Performance tuning arguments
    parser.add_argument("--threads", type=int,
                        help="Number of worker threads (default: 4)")
    parser.add_argument("--pool-size", type=int,
                        help="Database connections for relational backends (default: 5)")
    parser.add_argument("--cache-size", type=int,
                        help="Maximum cached variants (default: 100000)")
    parser.add_argument("--no-cache", action="store_true",
                        help="Disable caching")
    parser.add_argument("--verbose", action="store_true",
                        help="Debug logging")

    args = parser.parse_args(argv)

    # Convert string paths to Path objects
    args.variants = Path(args.variants)
    if args.output:
        args.output = Path(args.output)

    return args


def print_cache_stats(stats_list):
    table = Table(title="Cache Statistics")
    for column in ("Cache", "Entries", "Hits", "Misses", "Evictions", "Hit rate"):
        table.add_column(column)
    for stats in stats_list:
        if not stats.get("enabled"):
            continue
        table.add_row(
            stats["name"],
            f"{stats['entries']:,}",
            f"{stats['hits']:,}",
            f"{stats['misses']:,}",
            f"{stats['evictions']:,}",
            f"{stats['hit_rate']:.1%}",
        )
    console.print(table)


def run(args) -> int:
    config = AnnotationConfig.from_args(args).validate()
    variants = read_variants(args.variants)

    store = VariantDataStore.from_config(config)
    cache = AnnotationCache(max_size=config.cache_size, enabled=config.cache_enabled)
    with CachingVariantDataStore(store, cache) as cached_store:
        results = annotate_variants(cached_store, variants, threads=config.threads, progress=args.output is not None)

    df = variant_data_to_frame(results)
    if args.output:
        df.to_csv(args.output, sep='\t', index=False, na_rep='.')
        log.info(f"Wrote {len(df)} annotated variants to {args.output}")
    else:
        df.to_csv(sys.stdout, sep='\t', index=False, na_rep='.')

    stats = [cache.get_stats()]
    stats += [source.cache.get_stats() for source in store.sources if source.cache is not None]
    print_cache_stats(stats)
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)
    try:
        return run(args)
    except ConfigurationError as e:
        log.error(str(e))
        return 2
    except (OSError, ValueError) as e:
        log.error(f"Unable to annotate {args.variants}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
