"""
Configuration module for varanno.
Collects index locations and tuning knobs from a JSON file, a dictionary or
parsed command-line arguments.
"""

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .backends import BACKEND_TYPES
from .exceptions import ConfigurationError

# Configure logging
log = logging.getLogger("varanno")

PATH_FIELDS = ("variant_data_path", "frequency_path", "pathogenicity_path", "remm_path")


@dataclass
class AnnotationConfig:
    """
    Settings for building a VariantDataStore.

    Attributes:
        backend: Index type of variant_data_path: tabix, index, relational or relational-info
        variant_data_path: Combined frequency and pathogenicity index
        frequency_path: Tabix file holding only frequencies
        pathogenicity_path: Tabix file holding only SIFT/PolyPhen/MutationTaster scores
        remm_path: Tabix file of positional REMM scores
        pool_size: Database connections for the relational backends
        pool_timeout: Seconds to wait for a free connection
        cache_size: Maximum cached variants, per cache
        cache_enabled: Whether lookups are cached
        threads: Worker threads for batch annotation
    """

    backend: str = "tabix"
    variant_data_path: Optional[Path] = None
    frequency_path: Optional[Path] = None
    pathogenicity_path: Optional[Path] = None
    remm_path: Optional[Path] = None
    pool_size: int = 5
    pool_timeout: float = 30.0
    cache_size: int = 100_000
    cache_enabled: bool = True
    threads: int = 4

    def __post_init__(self):
        for name in PATH_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                setattr(self, name, Path(value))

    def validate(self) -> "AnnotationConfig":
        """
        Check the settings are usable.

        Missing index files are not an error here; the backend reports them
        when it is opened and runs without data.

        Raises:
            ConfigurationError: for an unknown backend or non-positive sizes
        """
        if self.backend not in BACKEND_TYPES:
            raise ConfigurationError(
                f"Unknown backend '{self.backend}'", details=f"expected one of {', '.join(BACKEND_TYPES)}"
            )
        for name in ("pool_size", "cache_size", "threads"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer", details=repr(value))
        if self.pool_timeout <= 0:
            raise ConfigurationError("pool_timeout must be positive", details=repr(self.pool_timeout))
        if not any(getattr(self, name) for name in PATH_FIELDS):
            log.warning("No annotation sources configured, every variant will be returned without data")
        return self

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "AnnotationConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError("Unknown configuration keys", details=", ".join(sorted(unknown)))
        return cls(**values)

    @classmethod
    def from_json(cls, path: Path) -> "AnnotationConfig":
        """
        Load a configuration file.

        Args:
            path: Path to a JSON object with AnnotationConfig keys

        Returns:
            AnnotationConfig instance
        """
        try:
            with open(path, 'r') as f:
                values = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Unable to read configuration file {path}", details=str(e))
        if not isinstance(values, dict):
            raise ConfigurationError(f"Configuration file {path} must hold a JSON object")
        log.info(f"Loaded configuration from {path}")
        return cls.from_dict(values)

    @classmethod
    def from_args(cls, args) -> "AnnotationConfig":
        """
        Build a configuration from parsed command-line arguments.

        Values given on the command line override those in --config.
        """
        config = cls.from_json(args.config) if getattr(args, "config", None) else cls()
        values = {
            "backend": args.backend,
            "variant_data_path": args.variant_data,
            "frequency_path": args.frequency,
            "pathogenicity_path": args.pathogenicity,
            "remm_path": args.remm,
            "pool_size": args.pool_size,
            "cache_size": args.cache_size,
            "threads": args.threads,
        }
        overrides = {name: value for name, value in values.items() if value is not None}
        if args.no_cache:
            overrides["cache_enabled"] = False
        return replace(config, **overrides)
