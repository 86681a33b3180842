# tests/test_config_loader.py
"""
設定載入與合併的測試。
"""

# 1. 標準庫導入
from pathlib import Path

# 3. 本專案導入
from learningmap.core.config_loader import DEFAULT_MAP_CONFIG, ConfigLoader, load_active_maps
from learningmap.layouts.layout_request import LayoutOptions


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_user_values_are_merged_over_defaults(tmp_path):
    config_path = _write(
        tmp_path / "maps" / "demo.yaml",
        "dataset_path: ../data/demo.json\n"
        "layout:\n"
        "  direction: right\n"
        "  node_spacing: 80\n"
        "viewport:\n"
        "  active_node_id: article-A\n",
    )

    config = ConfigLoader(config_path).config

    assert config["map_id"] == "demo"
    assert config["layout"]["direction"] == "RIGHT"
    assert config["layout"]["node_spacing"] == 80
    assert config["layout"]["layer_spacing"] == DEFAULT_MAP_CONFIG["layout"]["layer_spacing"]
    assert config["viewport"]["active_node_id"] == "article-A"
    assert config["viewport"]["node_threshold"] == 50
    assert config["dataset_path"] == (tmp_path / "data" / "demo.json").resolve()
    assert config["output_dir"] == (tmp_path / "maps" / "output").resolve()


def test_defaults_are_not_mutated_between_loads(tmp_path):
    first = _write(tmp_path / "a.yaml", "layout:\n  crossing_sweeps: 2\n")
    second = _write(tmp_path / "b.yaml", "{}\n")

    ConfigLoader(first)
    config = ConfigLoader(second).config

    assert config["layout"]["crossing_sweeps"] == DEFAULT_MAP_CONFIG["layout"]["crossing_sweeps"] == 8


def test_invalid_engine_and_direction_fall_back(tmp_path):
    config_path = _write(tmp_path / "demo.yaml", "layout:\n  engine: circo\n  direction: sideways\n")

    config = ConfigLoader(config_path).config

    assert config["layout"]["engine"] == "layered"
    assert config["layout"]["direction"] == "DOWN"


def test_layout_options_from_config(tmp_path):
    config_path = _write(tmp_path / "demo.yaml", "layout:\n  direction: LEFT\n  layer_spacing: 90\n")

    options = ConfigLoader(config_path).layout_options()

    assert options == LayoutOptions(direction="LEFT", node_spacing=100.0, layer_spacing=90.0)


def test_missing_or_invalid_file_yields_none(tmp_path):
    assert ConfigLoader(tmp_path / "absent.yaml").config is None

    broken = _write(tmp_path / "broken.yaml", "layout: [unclosed\n")
    assert ConfigLoader(broken).config is None

    scalar = _write(tmp_path / "scalar.yaml", "just a string\n")
    assert ConfigLoader(scalar).config is None


def test_load_active_maps(tmp_path):
    workspace = _write(tmp_path / "workspace.yaml", "active_maps:\n  - first.yaml\n  - second.yaml\n")
    assert load_active_maps(workspace) == ["first.yaml", "second.yaml"]

    malformed = _write(tmp_path / "malformed.yaml", "active_maps: first.yaml\n")
    assert load_active_maps(malformed) == []

    assert load_active_maps(tmp_path / "absent.yaml") == []
