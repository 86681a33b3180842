# src/learningmap/core/layout_cache.py
"""
負責持久化每張學習地圖的佈局快照。

核心職責：
1. 以流程圖結構 (節點 ID、類型與邊) 計算指紋 (Fingerprinting)。
2. 管理快照的生命週期 (載入、儲存、失效)。
3. 確保快照以原子寫入 (Atomic Writes) 落地；沿用時只取座標，節點內容與尺寸以目前資料為準。
"""

# 1. 標準庫導入
import contextlib
import dataclasses
import hashlib
import json
import logging
import math
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
from learningmap.layouts.node_sizing import collect_node_heights, resolve_node_size
from learningmap.models import FlowEdge, FlowNode, Position

# 快照版本號：當快照格式發生變更時，應升級此版本號以強制快照失效。
CACHE_VERSION = "1.0.0"


def compute_structure_fingerprint(nodes: Iterable[FlowNode], edges: Iterable[FlowEdge]) -> str:
    """以節點 ID、類型與邊的端點計算流程圖結構的 MD5 指紋。"""
    structure = {
        "nodes": [[node.id, node.kind] for node in nodes],
        "edges": [[edge.source, edge.target] for edge in edges],
    }
    return hashlib.md5(json.dumps(structure, sort_keys=True).encode("utf-8")).hexdigest()


def compute_position_updates(nodes: Iterable[FlowNode]) -> list[dict[str, Any]]:
    """
    將已定位節點轉為以原始 ID 為鍵的座標更新列表。

    Returns:
        [{"id": 原始 ID, "type": "article" | "question", "x": x, "y": y}, ...]
    """
    return [
        {"id": node.raw_id, "type": node.kind, "x": node.position.x, "y": node.position.y}
        for node in nodes
    ]


def serialize_flow_graph(flow_graph: dict[str, list[Any]]) -> dict[str, list[dict[str, Any]]]:
    return {
        "nodes": [dataclasses.asdict(node) for node in flow_graph["nodes"]],
        "edges": [dataclasses.asdict(edge) for edge in flow_graph["edges"]],
    }


def merge_cached_layout(nodes: Iterable[FlowNode], cached_nodes: Iterable[FlowNode]) -> list[FlowNode] | None:
    """
    將快照中的座標套用到目前的節點上。

    節點內容 (payload) 與尺寸一律以目前投影的結果為準；快照只提供座標。
    若任一節點不在快照中，或尺寸與快照記錄的不同，舊座標可能造成重疊，回傳 None。
    """
    cached_by_id = {node.id: node for node in cached_nodes}
    merged: list[FlowNode] = []
    for node in nodes:
        cached = cached_by_id.get(node.id)
        if cached is None:
            logging.info(f"佈局快照缺少節點 '{node.id}'，將重新計算佈局。")
            return None
        width, height = resolve_node_size(node)
        cached_width, cached_height = resolve_node_size(cached)
        if not (math.isclose(width, cached_width) and math.isclose(height, cached_height)):
            logging.info(
                f"節點 '{node.id}' 的尺寸已變更 ({cached_width:.0f}x{cached_height:.0f} -> "
                f"{width:.0f}x{height:.0f})，佈局快照不再適用。"
            )
            return None
        merged.append(dataclasses.replace(node, position=cached.position, width=width, height=height))
    return merged


def _node_from_dict(record: dict[str, Any]) -> FlowNode:
    position = record.get("position") or {}
    return FlowNode(
        id=record["id"],
        kind=record["kind"],
        position=Position(float(position.get("x", 0.0)), float(position.get("y", 0.0))),
        payload=dict(record.get("payload") or {}),
        width=record.get("width"),
        height=record.get("height"),
    )


def _edge_from_dict(record: dict[str, Any]) -> FlowEdge:
    return FlowEdge(
        id=record["id"],
        source=record["source"],
        target=record["target"],
        animated=bool(record.get("animated", True)),
    )


class LayoutCache:
    """
    管理單一學習地圖佈局快照的類別。

    快照僅供參考：結構指紋不符時一律視為失效，由呼叫端重新計算佈局。
    """

    def __init__(self, cache_dir: Path, map_id: str):
        """
        初始化 LayoutCache。

        Args:
            cache_dir: 快照存放目錄。
            map_id: 學習地圖識別碼，決定快照檔名。
        """
        self.cache_dir = cache_dir
        self.map_id = map_id
        self.cache_file_path = cache_dir / f"{map_id}_layout.json"

        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def load(self, nodes: list[FlowNode], edges: list[FlowEdge]) -> dict[str, Any] | None:
        """
        載入與目前流程圖結構相符的快照。

        Args:
            nodes: 目前投影出的流程圖節點。
            edges: 目前投影出的流程圖邊。

        Returns:
            {"nodes": [FlowNode], "edges": [FlowEdge], "nodeHeights": {...}}；
            快照不存在、損毀或結構已變更時回傳 None。
        """
        if not self.cache_file_path.exists():
            logging.debug(f"地圖 '{self.map_id}' 沒有佈局快照，將重新計算佈局。")
            return None

        try:
            with open(self.cache_file_path, encoding="utf-8") as f:
                loaded_data = json.load(f)

            meta = loaded_data.get("_meta", {})
            if meta.get("version") != CACHE_VERSION:
                logging.info(f"佈局快照版本不匹配 (舊: {meta.get('version')}, 新: {CACHE_VERSION})，快照已失效。")
                return None

            if meta.get("structure_fingerprint") != compute_structure_fingerprint(nodes, edges):
                logging.info(f"地圖 '{self.map_id}' 的結構已變更，佈局快照已失效。")
                return None

            snapshot = {
                "nodes": [_node_from_dict(record) for record in loaded_data.get("nodes", [])],
                "edges": [_edge_from_dict(record) for record in loaded_data.get("edges", [])],
                "nodeHeights": {key: float(value) for key, value in loaded_data.get("nodeHeights", {}).items()},
            }
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logging.warning(f"佈局快照損毀或無法讀取，將重新計算佈局: {e}")
            return None

        logging.info(f"成功載入地圖 '{self.map_id}' 的佈局快照，包含 {len(snapshot['nodes'])} 個節點。")
        return snapshot

    def save(self, flow_graph: dict[str, list[Any]]) -> bool:
        """
        將已定位的流程圖寫入磁碟。
        使用原子寫入 (Atomic Write) 以防止寫入中斷導致損毀。
        """
        nodes = flow_graph["nodes"]
        edges = flow_graph["edges"]
        payload = {
            "_meta": {
                "version": CACHE_VERSION,
                "structure_fingerprint": compute_structure_fingerprint(nodes, edges),
            },
            **serialize_flow_graph(flow_graph),
            "nodeHeights": collect_node_heights(nodes),
        }

        temp_path = self.cache_file_path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)

            os.replace(temp_path, self.cache_file_path)
            logging.info(f"佈局快照已儲存至: {self.cache_file_path}")
            return True
        except (OSError, TypeError, ValueError) as e:
            logging.error(f"儲存佈局快照時發生錯誤: {e}")
            if temp_path.exists():
                with contextlib.suppress(OSError):
                    os.remove(temp_path)
            return False

    def invalidate(self):
        """刪除現有快照。"""
        if self.cache_file_path.exists():
            with contextlib.suppress(OSError):
                os.remove(self.cache_file_path)
            logging.debug(f"已刪除地圖 '{self.map_id}' 的佈局快照。")
