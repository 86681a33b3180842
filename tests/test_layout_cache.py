# tests/test_layout_cache.py
"""
佈局快照的測試。
"""

# 1. 標準庫導入
import dataclasses
import json

# 3. 本專案導入
from learningmap.core.layout_cache import (
    CACHE_VERSION,
    LayoutCache,
    compute_position_updates,
    compute_structure_fingerprint,
    merge_cached_layout,
)
from learningmap.models import FlowEdge, FlowNode, Position


def _positioned_graph():
    nodes = [
        FlowNode(
            id="article-A",
            kind="article",
            position=Position(10.0, 20.0),
            payload={"label": "甲", "takeaways": ["重點"]},
            width=350.0,
            height=410.0,
        ),
        FlowNode(id="question-Q1", kind="question", position=Position(30.0, 500.0), width=200.0, height=100.0),
    ]
    edges = [FlowEdge(id="e-article-A-question-Q1", source="article-A", target="question-Q1")]
    return {"nodes": nodes, "edges": edges}


def test_save_then_load_with_same_structure(tmp_path):
    graph = _positioned_graph()
    cache = LayoutCache(tmp_path / "cache", "demo")

    assert cache.save(graph) is True
    snapshot = cache.load(graph["nodes"], graph["edges"])

    assert snapshot["nodes"] == graph["nodes"]
    assert snapshot["edges"] == graph["edges"]
    assert snapshot["nodeHeights"] == {"article-A": 410.0, "question-Q1": 100.0}


def test_snapshot_file_layout(tmp_path):
    graph = _positioned_graph()
    cache = LayoutCache(tmp_path, "demo")
    cache.save(graph)

    with open(tmp_path / "demo_layout.json", encoding="utf-8") as f:
        raw = json.load(f)

    assert raw["_meta"]["version"] == CACHE_VERSION
    assert raw["_meta"]["structure_fingerprint"] == compute_structure_fingerprint(graph["nodes"], graph["edges"])
    assert set(raw) == {"_meta", "nodes", "edges", "nodeHeights"}
    assert not (tmp_path / "demo_layout.tmp").exists()


def test_structure_change_invalidates_snapshot(tmp_path):
    graph = _positioned_graph()
    cache = LayoutCache(tmp_path, "demo")
    cache.save(graph)

    extra = FlowNode(id="article-B", kind="article")
    assert cache.load([*graph["nodes"], extra], graph["edges"]) is None


def test_position_only_changes_keep_fingerprint():
    graph = _positioned_graph()
    moved = [FlowNode(id=node.id, kind=node.kind, position=Position(0.0, 0.0)) for node in graph["nodes"]]

    assert compute_structure_fingerprint(moved, graph["edges"]) == compute_structure_fingerprint(
        graph["nodes"], graph["edges"]
    )


def test_missing_or_corrupt_snapshot_returns_none(tmp_path):
    graph = _positioned_graph()
    cache = LayoutCache(tmp_path, "demo")

    assert cache.load(graph["nodes"], graph["edges"]) is None

    cache.cache_file_path.write_text("{ not json", encoding="utf-8")
    assert cache.load(graph["nodes"], graph["edges"]) is None


def test_version_mismatch_returns_none(tmp_path):
    graph = _positioned_graph()
    cache = LayoutCache(tmp_path, "demo")
    cache.save(graph)

    raw = json.loads(cache.cache_file_path.read_text(encoding="utf-8"))
    raw["_meta"]["version"] = "0.0.0"
    cache.cache_file_path.write_text(json.dumps(raw), encoding="utf-8")

    assert cache.load(graph["nodes"], graph["edges"]) is None


def test_invalidate_removes_snapshot(tmp_path):
    cache = LayoutCache(tmp_path, "demo")
    cache.save(_positioned_graph())

    cache.invalidate()

    assert not cache.cache_file_path.exists()


def test_compute_position_updates_uses_raw_ids():
    updates = compute_position_updates(_positioned_graph()["nodes"])
    assert updates == [
        {"id": "A", "type": "article", "x": 10.0, "y": 20.0},
        {"id": "Q1", "type": "question", "x": 30.0, "y": 500.0},
    ]


def test_merge_keeps_current_payload_and_cached_positions(tmp_path):
    graph = _positioned_graph()
    cache = LayoutCache(tmp_path, "demo")
    cache.save(graph)
    current = [
        dataclasses.replace(node, position=Position(0.0, 0.0), payload={**node.payload, "description": "改寫後的摘要"})
        for node in graph["nodes"]
    ]

    snapshot = cache.load(current, graph["edges"])
    merged = merge_cached_layout(current, snapshot["nodes"])

    assert [node.position for node in merged] == [Position(10.0, 20.0), Position(30.0, 500.0)]
    assert [node.payload["description"] for node in merged] == ["改寫後的摘要", "改寫後的摘要"]


def test_merge_rejects_changed_node_size():
    graph = _positioned_graph()
    taller = [dataclasses.replace(graph["nodes"][0], height=530.0), graph["nodes"][1]]

    assert merge_cached_layout(taller, graph["nodes"]) is None


def test_merge_rejects_node_missing_from_snapshot():
    graph = _positioned_graph()
    extra = FlowNode(id="article-B", kind="article", width=350.0, height=410.0)

    assert merge_cached_layout([*graph["nodes"], extra], graph["nodes"]) is None
