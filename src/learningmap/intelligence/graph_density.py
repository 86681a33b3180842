# src/learningmap/intelligence/graph_density.py
"""
圖密度分析：依密度推薦力導向佈局的連結距離與斥力強度。
"""

# 1. 標準庫導入
import math
from collections.abc import Sized
from typing import Any

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
# (無)

# 密度 0 時的建議值 (最稀疏) 與密度趨近飽和時的建議值 (最密)
SPARSE_LINK_DISTANCE = 300.0
DENSE_LINK_DISTANCE = 150.0
SPARSE_CHARGE_STRENGTH = -1000.0
DENSE_CHARGE_STRENGTH = -350.0
DENSITY_SCALE = 0.25


def _density_saturation(density: float) -> float:
    """把密度映射到 [0, 1) 的單調遞增曲線。"""
    return 1.0 - math.exp(-max(density, 0.0) / DENSITY_SCALE)


def calculate_graph_density(nodes: Sized, edges: Sized) -> dict[str, Any]:
    """
    計算圖密度與建議的佈局參數。

    密度定義為實際邊數佔無向完全圖邊數的比例。越密的圖建議越短的連結距離
    與越弱的斥力 (避免失控擴散)；越稀疏的圖則相反。

    Args:
        nodes: 節點集合 (只使用其數量)。
        edges: 邊集合 (只使用其數量)。

    Returns:
        {"density": float, "recommended_link_distance": float, "recommended_charge_strength": float}
    """
    node_count = len(nodes)
    edge_count = len(edges)

    if node_count <= 1:
        density = 0.0
    else:
        max_possible_edges = node_count * (node_count - 1) / 2
        density = edge_count / max_possible_edges

    saturation = _density_saturation(density)
    link_distance = SPARSE_LINK_DISTANCE + (DENSE_LINK_DISTANCE - SPARSE_LINK_DISTANCE) * saturation
    charge_strength = SPARSE_CHARGE_STRENGTH + (DENSE_CHARGE_STRENGTH - SPARSE_CHARGE_STRENGTH) * saturation

    return {
        "density": density,
        "recommended_link_distance": link_distance,
        "recommended_charge_strength": charge_strength,
    }
