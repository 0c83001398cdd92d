"""Tests for engine configuration loading."""

import pytest
from formula_engine.config import DEFAULT_CONFIG, EngineConfig, config_from_dict, load_config


def test_defaults():
    assert DEFAULT_CONFIG == EngineConfig()
    assert DEFAULT_CONFIG.max_formula_length == 2000
    assert DEFAULT_CONFIG.complexity_warning_depth == 5


def test_from_dict_overrides():
    config = config_from_dict({"max_nesting_depth": 10})
    assert config.max_nesting_depth == 10
    assert config.max_formula_length == DEFAULT_CONFIG.max_formula_length


def test_empty_dict_is_default():
    assert config_from_dict(None) is DEFAULT_CONFIG
    assert config_from_dict({}) is DEFAULT_CONFIG


@pytest.mark.parametrize("d", [
    {"max_depth": 3},
    {"max_nesting_depth": 0},
    {"max_nesting_depth": "10"},
    {"max_nesting_depth": True},
])
def test_invalid(d):
    with pytest.raises(ValueError):
        config_from_dict(d)


def test_load_yaml(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text("max_formula_length: 400\ncomplexity_warning_depth: 8\n")
    config = load_config(str(path))
    assert config.max_formula_length == 400
    assert config.complexity_warning_depth == 8
    assert config.max_nesting_depth == DEFAULT_CONFIG.max_nesting_depth
