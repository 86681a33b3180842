# tests/test_flow_renderer.py
"""
已定位流程圖的 DOT 產生與渲染測試；`neato` 呼叫以 unittest.mock 取代。
"""

# 1. 標準庫導入
import subprocess
from unittest.mock import MagicMock, patch

# 3. 本專案導入
from learningmap.models import FlowEdge, FlowNode, Position
from learningmap.renderers.flow_renderer import generate_flow_dot_source, render_flow_graph
from learningmap.utils.color_utils import ACTIVE_FILL_COLOR


def _graph():
    nodes = [
        FlowNode(
            id="article-A",
            kind="article",
            position=Position(0.0, 0.0),
            payload={"label": "Python <基礎>", "description": "摘要", "takeaways": ["一", "二", "三", "四"]},
            width=350.0,
            height=350.0,
        ),
        FlowNode(
            id="question-Q1",
            kind="question",
            position=Position(75.0, 500.0),
            payload={"text": "下一步？", "is_implicit": True},
            width=200.0,
            height=100.0,
        ),
    ]
    edges = [FlowEdge(id="e-article-A-question-Q1", source="article-A", target="question-Q1")]
    return {"nodes": nodes, "edges": edges}


def test_dot_source_pins_positions_in_graphviz_coordinates():
    source = generate_flow_dot_source(_graph(), "示範")

    # 畫布高 600：文章中心 (175, 175) -> (175, 425)，問題中心 (175, 550) -> (175, 50)
    assert 'pos="175.00,425.00!"' in source
    assert 'pos="175.00,50.00!"' in source
    assert '"article-A" -> "question-Q1"' in source


def test_dot_source_escapes_labels_and_limits_takeaways():
    source = generate_flow_dot_source(_graph(), "示範")

    assert "Python &lt;基礎&gt;" in source
    assert "• 三" in source
    assert "• 四" not in source
    assert "<I>下一步？</I>" in source


def test_active_node_is_highlighted():
    source = generate_flow_dot_source(_graph(), "示範", active_node_id="article-A")
    assert ACTIVE_FILL_COLOR in source


def test_empty_graph_has_placeholder():
    source = generate_flow_dot_source({"nodes": [], "edges": []}, "空")
    assert "empty_graph" in source


@patch("learningmap.renderers.flow_renderer.subprocess.run")
def test_render_writes_output_with_neato_n2(mock_run, tmp_path):
    mock_run.return_value = MagicMock(stdout=b"<svg/>")
    output_path = tmp_path / "demo_flow.svg"

    assert render_flow_graph(_graph(), output_path, "示範", dpi=96, save_source_file=True) is True

    assert mock_run.call_args.args[0] == ["neato", "-n2", "-Tsvg", "-Gdpi=96"]
    assert output_path.read_bytes() == b"<svg/>"
    assert (tmp_path / "demo_flow.dot").exists()


@patch("learningmap.renderers.flow_renderer.subprocess.run")
def test_render_failure_is_logged_not_raised(mock_run, tmp_path, caplog):
    mock_run.side_effect = subprocess.CalledProcessError(1, ["neato"], stderr=b"bad graph")
    output_path = tmp_path / "demo_flow.png"

    assert render_flow_graph(_graph(), output_path, "示範") is False
    assert not output_path.exists()
    assert "bad graph" in caplog.text
