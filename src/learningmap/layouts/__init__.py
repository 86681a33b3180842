# src/learningmap/layouts/__init__.py
"""
佈局套件，負責為流程圖指派二維座標。
"""

from .graphviz_layout import GraphvizLayout
from .layered_layout import LayeredLayout
from .layout_engine import LayoutEngine, LayoutState
from .layout_request import LayoutOptions, LayoutRequest
from .node_sizing import apply_measured_sizes, collect_node_heights, estimate_node_size, with_estimated_sizes

__all__ = [
    "GraphvizLayout",
    "LayeredLayout",
    "LayoutEngine",
    "LayoutOptions",
    "LayoutRequest",
    "LayoutState",
    "apply_measured_sizes",
    "collect_node_heights",
    "estimate_node_size",
    "with_estimated_sizes",
]
