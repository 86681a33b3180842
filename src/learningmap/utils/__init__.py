# src/learningmap/utils/__init__.py
"""
通用工具函式套件。
"""

from .color_utils import get_analogous_dark_color, get_node_colors
from .logging_utils import VIEWPORT_TICK_MARKER, ViewportTickFilter, configure_console_logging
from .path_utils import find_project_root, resolve_relative_to

__all__ = [
    "VIEWPORT_TICK_MARKER",
    "ViewportTickFilter",
    "configure_console_logging",
    "find_project_root",
    "get_analogous_dark_color",
    "get_node_colors",
    "resolve_relative_to",
]
