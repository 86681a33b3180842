# src/learningmap/utils/color_utils.py
"""
提供與顏色處理相關的公用函式。
"""

import colorsys

NODE_FILL_COLORS = {
    "article": "#E6F7FF",
    "question": "#FFF7E6",
}
ACTIVE_FILL_COLOR = "#D9F7BE"
IMPLICIT_QUESTION_FILL_COLOR = "#F5F5F5"


def get_analogous_dark_color(hex_color: str) -> str:
    """
    根據給定的十六進位背景色，計算一個色相相同、更深的邊框顏色。

    Args:
        hex_color: 十六進位顏色字串 (例如 "#RRGGBB")。

    Returns:
        一個相似深色的十六進位顏色字串。
    """
    hex_color = hex_color.lstrip("#")
    r, g, b = tuple(int(hex_color[i : i + 2], 16) for i in (0, 2, 4))

    hue, lightness, saturation = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    cr, cg, cb = colorsys.hls_to_rgb(hue, max(0.1, lightness * 0.3), min(1.0, saturation * 1.2))

    return f"#{int(cr * 255):02x}{int(cg * 255):02x}{int(cb * 255):02x}"


def get_node_colors(kind: str, is_active: bool = False, is_implicit: bool = False) -> tuple[str, str]:
    """回傳節點的 (填色, 邊框色)。"""
    if is_active:
        fill_color = ACTIVE_FILL_COLOR
    elif is_implicit:
        fill_color = IMPLICIT_QUESTION_FILL_COLOR
    else:
        fill_color = NODE_FILL_COLORS.get(kind, NODE_FILL_COLORS["article"])
    return fill_color, get_analogous_dark_color(fill_color)
