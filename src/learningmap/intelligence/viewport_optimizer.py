# src/learningmap/intelligence/viewport_optimizer.py
"""
視窗裁剪 (viewport culling)：在大型圖上把渲染的節點/邊限制在一個有上限的工作集合。

保留規則：
- 作用中節點，以及與它相鄰一步的所有節點，無論是否在視窗內。
- 外框與 (加上邊距後的) 可見範圍有交集的節點，最多 max_visible_nodes 個，
  超過時優先保留中心離焦點 (作用中節點中心或視窗中心) 較近的節點。
- 兩端點都被保留的邊。

每次平移/縮放都會呼叫，因此不做任何 debounce，只做線性走訪。
"""

# 1. 標準庫導入
import heapq
import logging
from dataclasses import dataclass
from typing import Any

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
from learningmap.layouts.node_sizing import resolve_node_size
from learningmap.models import FlowEdge, FlowNode
from learningmap.utils.logging_utils import VIEWPORT_TICK_MARKER

DEFAULT_NODE_THRESHOLD = 50
DEFAULT_VIEWPORT_MARGIN = 200.0
DEFAULT_MAX_VISIBLE_NODES = 40


@dataclass(frozen=True)
class Viewport:
    """渲染器的視窗變換：螢幕座標 = 圖座標 * zoom + (x, y)。"""

    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    def __post_init__(self):
        if self.zoom <= 0:
            raise ValueError(f"視窗縮放比例必須為正數: {self.zoom}")


@dataclass(frozen=True)
class ScreenDimensions:
    width: float
    height: float


def visible_area(viewport: Viewport, screen: ScreenDimensions, margin: float = 0.0) -> tuple[float, float, float, float]:
    """回傳圖座標下的可見範圍 (min_x, min_y, max_x, max_y)，已向外擴張 margin。"""
    min_x = -viewport.x / viewport.zoom
    min_y = -viewport.y / viewport.zoom
    max_x = min_x + screen.width / viewport.zoom
    max_y = min_y + screen.height / viewport.zoom
    return min_x - margin, min_y - margin, max_x + margin, max_y + margin


def node_center(node: FlowNode) -> tuple[float, float]:
    width, height = resolve_node_size(node)
    return node.position.x + width / 2, node.position.y + height / 2


def optimize_graph_for_performance(
    nodes: list[FlowNode],
    edges: list[FlowEdge],
    active_node_id: str | None,
    viewport: Viewport,
    screen_dimensions: ScreenDimensions,
    node_threshold: int = DEFAULT_NODE_THRESHOLD,
    margin: float = DEFAULT_VIEWPORT_MARGIN,
    max_visible_nodes: int = DEFAULT_MAX_VISIBLE_NODES,
) -> dict[str, list[Any]]:
    """
    依作用中節點與目前視窗裁剪流程圖。

    Args:
        nodes: 已定位的流程圖節點。
        edges: 流程圖的邊。
        active_node_id: 作用中節點的流程圖 ID；可為 None。
        viewport: 目前的視窗變換。
        screen_dimensions: 渲染面的螢幕尺寸。
        node_threshold: 節點數低於此值時不做任何裁剪。
        margin: 可見範圍向外擴張的距離 (圖座標)。
        max_visible_nodes: 因位於視窗內而被保留的節點上限。

    Returns:
        {"nodes": ..., "edges": ...}，保持輸入順序。
    """
    if len(nodes) < node_threshold:
        return {"nodes": nodes, "edges": edges}

    nodes_by_id = {node.id: node for node in nodes}
    active_node = nodes_by_id.get(active_node_id) if active_node_id else None

    kept_ids: set[str] = set()
    if active_node is not None:
        kept_ids.add(active_node.id)
        for edge in edges:
            if edge.source == active_node.id:
                kept_ids.add(edge.target)
            elif edge.target == active_node.id:
                kept_ids.add(edge.source)
        kept_ids.intersection_update(nodes_by_id)

    min_x, min_y, max_x, max_y = visible_area(viewport, screen_dimensions, margin)
    if active_node is not None:
        focus_x, focus_y = node_center(active_node)
    else:
        focus_x, focus_y = (min_x + max_x) / 2, (min_y + max_y) / 2

    in_view: list[tuple[float, int, str]] = []
    for index, node in enumerate(nodes):
        if node.id in kept_ids:
            continue
        # position 是左上角；只要外框任一部分與可見範圍重疊就算在視窗內
        x, y = node.position.x, node.position.y
        width, height = resolve_node_size(node)
        if x <= max_x and x + width >= min_x and y <= max_y and y + height >= min_y:
            center_x, center_y = x + width / 2, y + height / 2
            distance = (center_x - focus_x) ** 2 + (center_y - focus_y) ** 2
            in_view.append((distance, index, node.id))

    if len(in_view) > max_visible_nodes:
        in_view = heapq.nsmallest(max_visible_nodes, in_view)
    kept_ids.update(node_id for _, _, node_id in in_view)

    visible_nodes = [node for node in nodes if node.id in kept_ids]
    visible_edges = [edge for edge in edges if edge.source in kept_ids and edge.target in kept_ids]

    logging.debug(
        f"{VIEWPORT_TICK_MARKER} 視窗裁剪: 節點 {len(nodes)} -> {len(visible_nodes)}，邊 {len(edges)} -> {len(visible_edges)}"
    )
    return {"nodes": visible_nodes, "edges": visible_edges}
