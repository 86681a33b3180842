# src/learningmap/layouts/node_sizing.py
"""
節點尺寸的預設值、估算與量測回饋。

渲染面只有在首次繪製後才知道真實尺寸 (文字內容決定高度)，
在那之前佈局使用此處的預設值或估算值。
"""

# 1. 標準庫導入
import dataclasses
import math
from collections.abc import Iterable, Mapping
from typing import Any

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
from learningmap.models import FlowNode

DEFAULT_NODE_SIZES: dict[str, tuple[float, float]] = {
    "article": (350.0, 350.0),
    "question": (200.0, 100.0),
}

TEXT_METRICS = {
    "char_width": 7.5,
    "line_height": 20.0,
    "padding": 16.0,
    "header_height": 36.0,
}


def resolve_node_size(node: FlowNode) -> tuple[float, float]:
    """回傳節點的量測尺寸；尚未量測的維度以節點類型的預設值補上。"""
    default_width, default_height = DEFAULT_NODE_SIZES.get(node.kind, DEFAULT_NODE_SIZES["article"])
    width = node.width if node.width is not None else default_width
    height = node.height if node.height is not None else default_height
    return float(width), float(height)


def _wrapped_line_count(text: str, width: float) -> int:
    if not text:
        return 0
    usable_width = max(width - 2 * TEXT_METRICS["padding"], TEXT_METRICS["char_width"])
    chars_per_line = max(int(usable_width // TEXT_METRICS["char_width"]), 1)
    return sum(max(math.ceil(len(line) / chars_per_line), 1) for line in text.splitlines() or [text])


def estimate_node_size(node: FlowNode) -> tuple[float, float]:
    """
    依節點文字內容估算尺寸，作為首次繪製前的佔位值。

    寬度固定為節點類型的預設寬度，高度隨文字換行數增長。
    """
    width, _ = DEFAULT_NODE_SIZES.get(node.kind, DEFAULT_NODE_SIZES["article"])
    payload = node.payload

    if node.kind == "question":
        lines = _wrapped_line_count(payload.get("text") or "", width)
        height = 2 * TEXT_METRICS["padding"] + max(lines, 1) * TEXT_METRICS["line_height"]
    else:
        lines = _wrapped_line_count(payload.get("description") or "", width)
        lines += sum(_wrapped_line_count(f"• {item}", width) for item in payload.get("takeaways") or [])
        height = TEXT_METRICS["header_height"] + 2 * TEXT_METRICS["padding"] + lines * TEXT_METRICS["line_height"]

    return width, float(height)


def with_estimated_sizes(nodes: Iterable[FlowNode]) -> list[FlowNode]:
    """為尚未量測的節點填入估算尺寸；已量測的節點保持不變。"""
    sized_nodes = []
    for node in nodes:
        if node.width is not None and node.height is not None:
            sized_nodes.append(node)
            continue
        width, height = estimate_node_size(node)
        sized_nodes.append(
            dataclasses.replace(
                node,
                width=node.width if node.width is not None else width,
                height=node.height if node.height is not None else height,
            )
        )
    return sized_nodes


def apply_measured_sizes(nodes: Iterable[FlowNode], sizes: Mapping[str, Any]) -> list[FlowNode]:
    """
    將渲染面回饋的量測尺寸套用到節點上。

    Args:
        nodes: 流程圖節點。
        sizes: {節點 ID: {"width": w, "height": h}} 或 {節點 ID: (w, h)}。
               只提供 height 也可以 (例如持久化的 nodeHeights)。

    Returns:
        套用尺寸後的新節點列表，未出現在 sizes 中的節點原樣保留。
    """
    measured_nodes = []
    for node in nodes:
        size = sizes.get(node.id)
        if size is None:
            measured_nodes.append(node)
            continue

        if isinstance(size, Mapping):
            width, height = size.get("width"), size.get("height")
        elif isinstance(size, (int, float)):
            width, height = None, size
        else:
            width, height = size

        measured_nodes.append(
            dataclasses.replace(
                node,
                width=float(width) if width is not None else node.width,
                height=float(height) if height is not None else node.height,
            )
        )
    return measured_nodes


def collect_node_heights(nodes: Iterable[FlowNode]) -> dict[str, float]:
    """收集已量測的節點高度，用於持久化快照。"""
    return {node.id: node.height for node in nodes if node.height is not None}
