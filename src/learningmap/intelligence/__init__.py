# src/learningmap/intelligence/__init__.py
"""
圖形分析套件：密度分析與大型圖的視窗裁剪。
"""

from .graph_density import calculate_graph_density
from .viewport_optimizer import ScreenDimensions, Viewport, optimize_graph_for_performance, visible_area

__all__ = [
    "ScreenDimensions",
    "Viewport",
    "calculate_graph_density",
    "optimize_graph_for_performance",
    "visible_area",
]
