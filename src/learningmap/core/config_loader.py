# src/learningmap/core/config_loader.py
"""
負責載入、合併工作區與單一學習地圖的設定。
"""

# 1. 標準庫導入
import copy
import logging
from pathlib import Path
from typing import Any

# 2. 第三方庫導入
import yaml

# 3. 本專案導入
from learningmap.layouts.layout_request import LAYOUT_DIRECTIONS, LayoutOptions
from learningmap.utils.path_utils import resolve_relative_to

DEFAULT_MAP_CONFIG: dict[str, Any] = {
    "output_dir": "output",
    "layout": {
        "engine": "layered",
        "direction": "DOWN",
        "node_spacing": 100,
        "layer_spacing": 150,
        "crossing_sweeps": 8,
        "graphviz_timeout": 120,
    },
    "viewport": {
        "node_threshold": 50,
        "margin": 200,
        "max_visible_nodes": 40,
        "active_node_id": None,
        "x": 0,
        "y": 0,
        "zoom": 1.0,
        "screen_width": 1280,
        "screen_height": 800,
    },
    "rendering": {
        "enabled": False,
        "format": "svg",
        "dpi": 150,
        "render_timeout": 120,
        "save_source_file": False,
    },
    "cache": {
        "enabled": True,
        "dir": ".cache",
    },
}

LAYOUT_ENGINES = ("layered", "graphviz")


def load_yaml_file(path: Path) -> dict[str, Any] | None:
    """安全地載入一個 YAML 檔案；檔案不存在或格式錯誤時回傳 None。"""
    if not path.is_file():
        logging.error(f"指定的設定檔不存在: {path}")
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logging.error(f"解析設定檔 '{path.name}' 時發生錯誤: {e}")
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        logging.error(f"設定檔 '{path.name}' 的最上層必須是映射 (mapping)。")
        return None
    return data


def load_active_maps(workspace_path: Path) -> list[str]:
    """讀取工作區設定檔中的 active_maps 列表。"""
    workspace_config = load_yaml_file(workspace_path)
    if not workspace_config:
        return []
    active_maps = workspace_config.get("active_maps") or []
    if not isinstance(active_maps, list):
        logging.error(f"工作區設定檔 '{workspace_path.name}' 中的 'active_maps' 必須是列表。")
        return []
    return [str(name) for name in active_maps]


class ConfigLoader:
    """一個處理單一學習地圖設定檔載入與合併的類別。"""

    def __init__(self, config_path: Path):
        self.config_path = config_path
        self.config = load_yaml_file(config_path)
        if self.config is not None:
            self._process_config()

    def _process_config(self):
        """合併預設值、解析相對路徑並校正不合法的選項。"""
        self.config = self._merge_configs(copy.deepcopy(DEFAULT_MAP_CONFIG), self.config)
        self.config.setdefault("map_id", self.config_path.stem)

        dataset_path = self.config.get("dataset_path")
        if dataset_path:
            self.config["dataset_path"] = resolve_relative_to(self.config_path, str(dataset_path))
        self.config["output_dir"] = resolve_relative_to(self.config_path, str(self.config["output_dir"]))

        layout_config = self.config["layout"]
        direction = str(layout_config.get("direction", "DOWN")).upper()
        if direction not in LAYOUT_DIRECTIONS:
            logging.warning(f"不支援的佈局方向 '{direction}'，改用 DOWN。")
            direction = "DOWN"
        layout_config["direction"] = direction

        if layout_config.get("engine") not in LAYOUT_ENGINES:
            logging.warning(f"不支援的佈局引擎 '{layout_config.get('engine')}'，改用 layered。")
            layout_config["engine"] = "layered"

    @staticmethod
    def _merge_configs(default: dict, user: dict) -> dict:
        """遞迴地合併使用者設定到預設設定中。"""
        for key, value in user.items():
            if isinstance(value, dict) and isinstance(default.get(key), dict):
                default[key] = ConfigLoader._merge_configs(default[key], value)
            else:
                default[key] = value
        return default

    def layout_options(self) -> LayoutOptions:
        layout_config = self.config["layout"]
        return LayoutOptions(
            direction=layout_config["direction"],
            node_spacing=float(layout_config["node_spacing"]),
            layer_spacing=float(layout_config["layer_spacing"]),
        )
