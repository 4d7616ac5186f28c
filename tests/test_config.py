"""Configuration tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from duometer.config import ConfigError, DetectionConfig, load_config, resolve_seed


def test_defaults() -> None:
    cfg = DetectionConfig(inputs=[Path("corpus")])
    assert cfg.ngram_size == 8
    assert cfg.num_perm == 84
    assert cfg.threshold == 0.2
    assert cfg.seed is None
    assert cfg.super_shingles is None
    assert cfg.include_within is False
    assert cfg.validate() is cfg


def test_load_yaml(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yml"
    cfg_path.write_text(
        "inputs: [old, new]\n"
        "output: results/pairs.tsv\n"
        "num_perm: 100\n"
        "seed: 42\n"
        "super_shingles: 5\n"
        "threshold: 0.5\n"
        "include_within: true\n"
    )
    cfg = load_config(cfg_path)
    assert cfg.inputs == [tmp_path / "old", tmp_path / "new"]
    assert cfg.output == tmp_path / "results" / "pairs.tsv"
    assert cfg.num_perm == 100
    assert cfg.seed == 42
    assert cfg.super_shingles == 5
    assert cfg.threshold == 0.5
    assert cfg.include_within is True


def test_single_input_string() -> None:
    cfg = DetectionConfig.from_dict({"inputs": "/data/corpus"})
    assert cfg.inputs == [Path("/data/corpus")]


@pytest.mark.parametrize(
    "data",
    [
        {"inputs": []},
        {"inputs": ["a", "b", "c"]},
        {"inputs": ["a"], "threshold": 1.5},
        {"inputs": ["a"], "num_perm": 0},
        {"inputs": ["a"], "ngram_size": 0},
        {"inputs": ["a"], "super_shingles": 0},
        {"inputs": ["a"], "workers": 0},
        {"inputs": ["a"], "output_format": "csv"},
        {"inputs": ["a"], "num_perm": "many"},
        {"inputs": ["a"], "bands": 4},
        {"inputs": 5},
        {"inputs": [5]},
        {"inputs": ["a"], "output": None},
        {"inputs": ["a"], "plain_text": "false"},
        {"inputs": ["a"], "include_within": 1},
        {"inputs": ["a"], "verbose": "yes"},
    ],
)
def test_invalid_configs(data) -> None:
    with pytest.raises(ConfigError):
        DetectionConfig.from_dict(data)


def test_yaml_must_be_mapping(tmp_path: Path) -> None:
    cfg_path = tmp_path / "config.yml"
    cfg_path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(cfg_path)


def test_resolve_seed() -> None:
    assert resolve_seed(5) == 5
    seed = resolve_seed(None)
    assert 0 <= seed < 2**32
