"""Configuration management for bedforge.

This module handles loading, validating, and providing access to
bedforge configuration settings. Configuration can come from:
- Default values
- TOML configuration files
- Command-line arguments (applied by the CLI on top of the file)

Example:
    >>> from bedforge.config import Config
    >>> config = Config.load("bedforge.toml")
    >>> config.fraction.mode
    'cds'

A configuration file mirrors the attribute layout::

    [fraction]
    mode = "5utr"
    use_introns = true

    [parallel]
    max_workers = 4
    backend = "threads"
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import attrs

from bedforge.core.fraction import FractionMode
from bedforge.parallel.executor import ExecutorBackend

# =============================================================================
# Default Configuration Values
# =============================================================================

# Fraction extraction defaults
DEFAULT_FRACTION_MODE = FractionMode.ALL.value

# Parallel processing defaults
DEFAULT_MAX_WORKERS = 1
DEFAULT_BACKEND = ExecutorBackend.PROCESSES.value


# =============================================================================
# Validators
# =============================================================================


def _check_mode(instance: Any, attribute: attrs.Attribute, value: str) -> None:
    FractionMode.parse(value)


def _check_backend(instance: Any, attribute: attrs.Attribute, value: str) -> None:
    valid = [backend.value for backend in ExecutorBackend]
    if value not in valid:
        raise ValueError(f"Invalid {attribute.name}: {value!r} (expected one of {valid})")


# =============================================================================
# Configuration Classes
# =============================================================================


@attrs.define
class FractionConfig:
    """Configuration for fraction extraction.

    Attributes:
        mode: Fraction to extract (all, cds, utr, 5utr, 3utr).
        use_introns: Report introns instead of exons.
        split_blocks: Report one BED6 record per block.
    """

    mode: str = attrs.field(
        default=DEFAULT_FRACTION_MODE,
        converter=lambda value: str(value).lower(),
        validator=_check_mode,
    )
    use_introns: bool = False
    split_blocks: bool = False


@attrs.define
class GraftConfig:
    """Configuration for block grafting.

    Attributes:
        require_same_chrom: Refuse additions on another chromosome.
        allow_overlap: Permit additions overlapping existing blocks.
        coding: Treat additions as coding sequence.
    """

    require_same_chrom: bool = True
    allow_overlap: bool = False
    coding: bool = False


@attrs.define
class ParallelConfig:
    """Configuration for parallel processing.

    Attributes:
        max_workers: Maximum number of parallel workers.
        backend: Execution backend (serial, threads, processes).
    """

    max_workers: int = attrs.field(
        default=DEFAULT_MAX_WORKERS, validator=attrs.validators.ge(1)
    )
    backend: str = attrs.field(default=DEFAULT_BACKEND, validator=_check_backend)


@attrs.define
class Config:
    """Main configuration container for bedforge.

    Attributes:
        fraction: Fraction extraction configuration.
        graft: Block grafting configuration.
        parallel: Parallel processing configuration.
    """

    fraction: FractionConfig = attrs.Factory(FractionConfig)
    graft: GraftConfig = attrs.Factory(GraftConfig)
    parallel: ParallelConfig = attrs.Factory(ParallelConfig)

    @classmethod
    def load(cls, path: Path | str | None = None) -> Config:
        """Load configuration from a TOML file.

        Args:
            path: Path to configuration file. If None, returns the default
                configuration.

        Returns:
            Loaded configuration object.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            ValueError: If configuration file is invalid.
        """
        if path is None:
            return cls()

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid configuration file {path}: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a configuration from a nested dictionary.

        Raises:
            ValueError: If a section or key is unknown, or a value is invalid.
        """
        sections = {
            "fraction": FractionConfig,
            "graft": GraftConfig,
            "parallel": ParallelConfig,
        }
        unknown = set(data) - set(sections)
        if unknown:
            raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

        kwargs = {}
        for name, section_cls in sections.items():
            values = data.get(name, {})
            if not isinstance(values, dict):
                raise ValueError(f"Configuration section [{name}] must be a table")
            try:
                kwargs[name] = section_cls(**values)
            except TypeError as e:
                raise ValueError(f"Invalid keys in configuration section [{name}]: {e}") from e
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration.
        """
        return attrs.asdict(self)
