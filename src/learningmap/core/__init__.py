# src/learningmap/core/__init__.py
"""
核心套件：設定、資料載入、佈局快照與處理管線。
"""

from .config_loader import ConfigLoader, load_active_maps
from .dataset_loader import load_map_dataset
from .layout_cache import LayoutCache, compute_position_updates
from .map_pipeline import LearningMapPipeline
from .map_processor import MapProcessor

__all__ = [
    "ConfigLoader",
    "LayoutCache",
    "LearningMapPipeline",
    "MapProcessor",
    "compute_position_updates",
    "load_active_maps",
    "load_map_dataset",
]
