# src/learningmap/layouts/layout_request.py
"""
佈局演算法的輸入型別。

演算法被視為黑盒：接收一個 LayoutRequest 快照，回傳 {節點 ID: (x, y)}，
座標為節點左上角。
"""

# 1. 標準庫導入
from collections.abc import Callable
from dataclasses import dataclass

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
# (無)

LAYOUT_DIRECTIONS = ("UP", "DOWN", "LEFT", "RIGHT")
DEFAULT_DIRECTION = "DOWN"
DEFAULT_NODE_SPACING = 100.0
DEFAULT_LAYER_SPACING = 150.0


@dataclass(frozen=True)
class LayoutNodeSpec:
    id: str
    width: float
    height: float


@dataclass(frozen=True)
class LayoutRequest:
    nodes: tuple[LayoutNodeSpec, ...]
    edges: tuple[tuple[str, str], ...]
    direction: str = DEFAULT_DIRECTION
    node_spacing: float = DEFAULT_NODE_SPACING
    layer_spacing: float = DEFAULT_LAYER_SPACING

    @property
    def is_horizontal(self) -> bool:
        return self.direction in ("LEFT", "RIGHT")


@dataclass(frozen=True)
class LayoutOptions:
    """呼叫端可調整的佈局選項。"""

    direction: str = DEFAULT_DIRECTION
    node_spacing: float = DEFAULT_NODE_SPACING
    layer_spacing: float = DEFAULT_LAYER_SPACING

    def __post_init__(self):
        if self.direction not in LAYOUT_DIRECTIONS:
            raise ValueError(f"不支援的佈局方向: {self.direction} (可用: {', '.join(LAYOUT_DIRECTIONS)})")


LayoutAlgorithm = Callable[[LayoutRequest], dict[str, tuple[float, float]]]
