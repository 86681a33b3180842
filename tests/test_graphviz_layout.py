# tests/test_graphviz_layout.py
"""
Graphviz 佈局後端的測試；實際的 `dot` 呼叫以 unittest.mock 取代。
"""

# 1. 標準庫導入
import json
import subprocess
from unittest.mock import MagicMock, patch

# 2. 第三方庫導入
import pytest

# 3. 本專案導入
from learningmap.errors import LayoutComputationError
from learningmap.layouts.graphviz_layout import GraphvizLayout, generate_layout_dot_source, parse_layout_json
from learningmap.layouts.layout_request import LayoutNodeSpec, LayoutRequest

REQUEST = LayoutRequest(
    nodes=(LayoutNodeSpec("article-A", 144.0, 72.0), LayoutNodeSpec("question-Q1", 72.0, 36.0)),
    edges=(("article-A", "question-Q1"), ("article-A", "ghost")),
    direction="RIGHT",
    node_spacing=36.0,
    layer_spacing=72.0,
)

LAYOUT_JSON = {
    "bb": "0,0,300,200",
    "objects": [
        {"name": "article-A", "pos": "72,164"},
        {"name": "question-Q1", "pos": "250,36"},
        {"name": "cluster_ignored"},
    ],
}


def test_dot_source_carries_direction_spacing_and_sizes():
    source = generate_layout_dot_source(REQUEST)

    assert "rankdir=LR" in source
    assert "nodesep=0.5000" in source
    assert "ranksep=1.0000" in source
    assert "width=2.0000" in source
    assert "ghost" not in source


def test_parse_layout_json_flips_y_and_converts_to_top_left():
    positions = parse_layout_json(LAYOUT_JSON, REQUEST)

    assert positions["article-A"] == pytest.approx((0.0, 0.0))
    assert positions["question-Q1"] == pytest.approx((214.0, 146.0))


def test_parse_layout_json_without_bounding_box_fails():
    with pytest.raises(LayoutComputationError):
        parse_layout_json({"objects": []}, REQUEST)


def test_parse_layout_json_with_bad_position_fails():
    with pytest.raises(LayoutComputationError):
        parse_layout_json({"bb": "0,0,10,10", "objects": [{"name": "article-A", "pos": "oops"}]}, REQUEST)


@patch("learningmap.layouts.graphviz_layout.subprocess.run")
def test_graphviz_layout_runs_dot_with_json_output(mock_run):
    mock_run.return_value = MagicMock(stdout=json.dumps(LAYOUT_JSON).encode("utf-8"))

    positions = GraphvizLayout(timeout=5)(REQUEST)

    command = mock_run.call_args.args[0]
    assert command == ["dot", "-Tjson"]
    assert mock_run.call_args.kwargs["timeout"] == 5
    assert set(positions) == {"article-A", "question-Q1"}


@patch("learningmap.layouts.graphviz_layout.subprocess.run")
def test_graphviz_layout_skips_process_for_empty_request(mock_run):
    assert GraphvizLayout()(LayoutRequest(nodes=(), edges=())) == {}
    mock_run.assert_not_called()


@pytest.mark.parametrize(
    "side_effect",
    [
        subprocess.CalledProcessError(1, ["dot"], stderr=b"syntax error"),
        FileNotFoundError("dot"),
        subprocess.TimeoutExpired(["dot"], 5),
    ],
)
@patch("learningmap.layouts.graphviz_layout.subprocess.run")
def test_graphviz_process_failures_become_layout_errors(mock_run, side_effect):
    mock_run.side_effect = side_effect
    with pytest.raises(LayoutComputationError):
        GraphvizLayout()(REQUEST)


@patch("learningmap.layouts.graphviz_layout.subprocess.run")
def test_graphviz_invalid_json_becomes_layout_error(mock_run):
    mock_run.return_value = MagicMock(stdout=b"not json")
    with pytest.raises(LayoutComputationError):
        GraphvizLayout()(REQUEST)
