# tests/test_viewport_optimizer.py
"""
視窗裁剪的測試。
"""

# 1. 標準庫導入
import logging

# 2. 第三方庫導入
import pytest

# 3. 本專案導入
from learningmap.intelligence.viewport_optimizer import (
    ScreenDimensions,
    Viewport,
    optimize_graph_for_performance,
    visible_area,
)
from learningmap.models import FlowNode, Position
from learningmap.utils.logging_utils import VIEWPORT_TICK_MARKER

SCREEN = ScreenDimensions(1280, 800)


def test_small_graph_is_returned_unchanged(grid_graph):
    graph = grid_graph(30)

    result = optimize_graph_for_performance(graph["nodes"], graph["edges"], None, Viewport(), SCREEN)

    assert result["nodes"] == graph["nodes"]
    assert result["edges"] == graph["edges"]


def test_large_graph_keeps_active_node_and_its_edges(grid_graph):
    graph = grid_graph(80)
    active_id = "article-n55"

    result = optimize_graph_for_performance(graph["nodes"], graph["edges"], active_id, Viewport(), SCREEN)
    kept_ids = {node.id for node in result["nodes"]}
    kept_edge_ids = {edge.id for edge in result["edges"]}

    assert len(result["nodes"]) < 80
    assert active_id in kept_ids
    for edge in graph["edges"]:
        if active_id in (edge.source, edge.target):
            assert edge.id in kept_edge_ids


def test_large_graph_keeps_nodes_inside_viewport(grid_graph):
    graph = grid_graph(80)

    result = optimize_graph_for_performance(graph["nodes"], graph["edges"], None, Viewport(), SCREEN)
    kept_ids = {node.id for node in result["nodes"]}

    # 可見範圍 (含邊距) 為 x ∈ [-200, 1480]、y ∈ [-200, 1000]，間距 400 的格子中落入 4 x 3 個
    assert kept_ids == {f"article-n{row * 10 + column}" for row in range(3) for column in range(4)}


def test_result_preserves_input_order(grid_graph):
    graph = grid_graph(80)

    result = optimize_graph_for_performance(graph["nodes"], graph["edges"], "article-n79", Viewport(), SCREEN)
    indices = [int(node.id.removeprefix("article-n")) for node in result["nodes"]]

    assert indices == sorted(indices)


def test_kept_edges_connect_kept_nodes(grid_graph):
    graph = grid_graph(80)

    result = optimize_graph_for_performance(graph["nodes"], graph["edges"], "article-n40", Viewport(), SCREEN)
    kept_ids = {node.id for node in result["nodes"]}

    for edge in result["edges"]:
        assert edge.source in kept_ids and edge.target in kept_ids


def test_in_view_nodes_are_capped(grid_graph):
    graph = grid_graph(100, spacing=10.0)

    result = optimize_graph_for_performance(
        graph["nodes"], graph["edges"], None, Viewport(), SCREEN, max_visible_nodes=15
    )

    assert len(result["nodes"]) == 15


def test_unknown_active_node_falls_back_to_viewport(grid_graph):
    graph = grid_graph(80)

    with_unknown = optimize_graph_for_performance(graph["nodes"], graph["edges"], "missing", Viewport(), SCREEN)
    without = optimize_graph_for_performance(graph["nodes"], graph["edges"], None, Viewport(), SCREEN)

    assert with_unknown == without


def test_panned_and_zoomed_viewport():
    min_x, min_y, max_x, max_y = visible_area(Viewport(x=-400, y=-200, zoom=2.0), SCREEN)
    assert (min_x, min_y, max_x, max_y) == pytest.approx((200.0, 100.0, 840.0, 500.0))


def test_zoom_must_be_positive():
    with pytest.raises(ValueError):
        Viewport(zoom=0)


def test_culling_log_uses_viewport_marker(grid_graph, caplog):
    graph = grid_graph(80)

    with caplog.at_level(logging.DEBUG):
        optimize_graph_for_performance(graph["nodes"], graph["edges"], None, Viewport(), SCREEN)

    assert any(record.getMessage().startswith(VIEWPORT_TICK_MARKER) for record in caplog.records)


def test_node_overlapping_the_edge_of_viewport_is_kept():
    far_nodes = [
        FlowNode(id=f"article-far{i}", kind="article", position=Position(5000.0 + i * 400.0, 0.0)) for i in range(60)
    ]
    # 左上角在可見範圍 (x >= -200) 外，但 350 寬的外框延伸到 x = -100
    overlapping = FlowNode(id="article-edge", kind="article", position=Position(-450.0, 0.0))
    outside = FlowNode(id="article-outside", kind="article", position=Position(-600.0, 0.0))

    result = optimize_graph_for_performance([*far_nodes, overlapping, outside], [], None, Viewport(), SCREEN)

    assert [node.id for node in result["nodes"]] == ["article-edge"]


def test_measured_size_decides_overlap():
    far_nodes = [
        FlowNode(id=f"article-far{i}", kind="article", position=Position(5000.0 + i * 400.0, 0.0)) for i in range(60)
    ]
    tall = FlowNode(id="question-tall", kind="question", position=Position(0.0, -500.0), width=200.0, height=400.0)
    short = FlowNode(id="question-short", kind="question", position=Position(300.0, -500.0), width=200.0, height=100.0)

    result = optimize_graph_for_performance([*far_nodes, tall, short], [], None, Viewport(), SCREEN)

    assert [node.id for node in result["nodes"]] == ["question-tall"]
