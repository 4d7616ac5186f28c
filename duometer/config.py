"""Run configuration for duometer.

Defaults for the MinHash parameters follow Henzinger (2006), "Finding
near-duplicate web pages: a large-scale evaluation of algorithms": 84 hash
functions over 8-word shingles.

Example YAML file for ``duometer run``::

    inputs: [corpus/]
    output: results/pairs.tsv
    num_perm: 84
    seed: 42
    super_shingles: 6
    threshold: 0.5
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml  # type: ignore

from .detector.dedup import DEFAULT_THRESHOLD, random_seed
from .detector.ingest import DEFAULT_NGRAM_SIZE
from .detector.minhash import DEFAULT_NUM_PERM

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("auto", "tsv", "jsonl", "parquet")


class ConfigError(ValueError):
    """Invalid duometer configuration."""


@dataclass
class DetectionConfig:
    inputs: List[Path] = field(default_factory=list)
    output: Path = Path("out")
    ngram_size: int = DEFAULT_NGRAM_SIZE
    num_perm: int = DEFAULT_NUM_PERM
    seed: Optional[int] = None
    super_shingles: Optional[int] = None
    threshold: float = DEFAULT_THRESHOLD
    plain_text: bool = False
    include_within: bool = False
    workers: int = 1
    output_format: str = "auto"
    verbose: bool = False

    def validate(self) -> "DetectionConfig":
        """Raise :class:`ConfigError` on the first invalid option."""
        if not 1 <= len(self.inputs) <= 2:
            raise ConfigError(f"expected one or two inputs, got {len(self.inputs)}")
        if self.ngram_size < 1:
            raise ConfigError(f"ngram_size must be positive, got {self.ngram_size}")
        if self.num_perm < 1:
            raise ConfigError(f"num_perm must be positive, got {self.num_perm}")
        if self.super_shingles is not None and self.super_shingles < 1:
            raise ConfigError(f"super_shingles must be positive, got {self.super_shingles}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ConfigError(f"threshold must lie in [0, 1], got {self.threshold}")
        if self.workers < 1:
            raise ConfigError(f"workers must be positive, got {self.workers}")
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigError(f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "DetectionConfig":
        """Build a config from a plain mapping; relative paths resolve against *base_dir*."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")

        values = dict(data)
        try:
            inputs = values.get("inputs", [])
            if isinstance(inputs, (str, Path)):
                inputs = [inputs]
            values["inputs"] = [_resolve(p, base_dir) for p in inputs]
            if "output" in values:
                values["output"] = _resolve(values["output"], base_dir)
            for key in ("ngram_size", "num_perm", "workers"):
                if key in values:
                    values[key] = int(values[key])
            for key in ("seed", "super_shingles"):
                if values.get(key) is not None:
                    values[key] = int(values[key])
            if "threshold" in values:
                values["threshold"] = float(values["threshold"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid configuration value: {e}") from e
        for key in ("plain_text", "include_within", "verbose"):
            if key in values and not isinstance(values[key], bool):
                raise ConfigError(f"{key} must be true or false, got {values[key]!r}")
        return cls(**values).validate()


def _resolve(path: Union[str, Path], base_dir: Optional[Path]) -> Path:
    path = Path(path).expanduser()
    if base_dir is not None and not path.is_absolute():
        path = base_dir / path
    return path


def load_config(path: Union[str, Path]) -> DetectionConfig:
    """Load a :class:`DetectionConfig` from a YAML file."""
    cfg_path = Path(path).resolve()
    with cfg_path.open() as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"cannot parse {cfg_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{cfg_path} must contain a mapping")
    return DetectionConfig.from_dict(data, base_dir=cfg_path.parent)


def resolve_seed(seed: Optional[int]) -> int:
    """Return the pinned *seed*, or draw and log a random one."""
    if seed is None:
        seed = random_seed()
        logger.info("No seed configured, using random seed %d (pin it to reproduce this run)", seed)
    return seed
