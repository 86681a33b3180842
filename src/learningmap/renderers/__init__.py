# src/learningmap/renderers/__init__.py
"""
渲染器套件，負責將已定位的學習地圖視覺化為圖檔。
"""

from .flow_renderer import generate_flow_dot_source, render_flow_graph

__all__ = [
    "generate_flow_dot_source",
    "render_flow_graph",
]
