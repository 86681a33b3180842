# src/learningmap/layouts/graphviz_layout.py
"""
以 Graphviz `dot` 引擎作為後端的分層佈局演算法。

節點尺寸以 1 pt = 1 px 的比例傳入 Graphviz (固定尺寸)，
再從 `-Tjson` 的輸出讀回中心座標並轉換為左上角座標。
"""

# 1. 標準庫導入
import json
import logging
import subprocess
from typing import Any

# 2. 第三方庫導入
import graphviz

# 3. 本專案導入
from learningmap.errors import LayoutComputationError
from learningmap.layouts.layout_request import LayoutRequest

POINTS_PER_INCH = 72.0

RANKDIR_BY_DIRECTION = {
    "DOWN": "TB",
    "UP": "BT",
    "RIGHT": "LR",
    "LEFT": "RL",
}


def generate_layout_dot_source(request: LayoutRequest) -> str:
    """
    生成只用於計算佈局的 DOT 原始碼。

    Args:
        request: 佈局請求快照。

    Returns:
        DOT 格式的圖形描述字串。
    """
    dot = graphviz.Digraph("LearningMapLayout")
    dot.attr(
        rankdir=RANKDIR_BY_DIRECTION.get(request.direction, "TB"),
        nodesep=f"{request.node_spacing / POINTS_PER_INCH:.4f}",
        ranksep=f"{request.layer_spacing / POINTS_PER_INCH:.4f}",
        splines="ortho",
    )
    dot.attr("node", shape="box", fixedsize="true", label="")

    for node in request.nodes:
        dot.node(
            node.id,
            width=f"{node.width / POINTS_PER_INCH:.4f}",
            height=f"{node.height / POINTS_PER_INCH:.4f}",
        )

    node_ids = {node.id for node in request.nodes}
    for source, target in request.edges:
        if source in node_ids and target in node_ids:
            dot.edge(source, target)

    return dot.source


def parse_layout_json(layout_json: dict[str, Any], request: LayoutRequest) -> dict[str, tuple[float, float]]:
    """把 `dot -Tjson` 的輸出轉換為 {節點 ID: 左上角 (x, y)}。"""
    try:
        bounding_box = [float(v) for v in layout_json["bb"].split(",")]
        graph_height = bounding_box[3]
    except (KeyError, ValueError, IndexError) as e:
        raise LayoutComputationError(f"Graphviz 輸出缺少有效的 bounding box: {e}") from e

    sizes = {node.id: (node.width, node.height) for node in request.nodes}
    positions: dict[str, tuple[float, float]] = {}

    for graph_object in layout_json.get("objects", []):
        name = graph_object.get("name")
        if name not in sizes or "pos" not in graph_object:
            continue
        try:
            center_x, center_y = (float(v) for v in graph_object["pos"].split(","))
        except ValueError as e:
            raise LayoutComputationError(f"Graphviz 節點 '{name}' 的座標格式錯誤: {graph_object['pos']}") from e

        width, height = sizes[name]
        positions[name] = (center_x - width / 2, (graph_height - center_y) - height / 2)

    return positions


class GraphvizLayout:
    """呼叫 Graphviz 執行檔計算佈局的演算法。"""

    def __init__(self, layout_engine: str = "dot", timeout: int = 120):
        self.layout_engine = layout_engine
        self.timeout = timeout

    def __call__(self, request: LayoutRequest) -> dict[str, tuple[float, float]]:
        if not request.nodes:
            return {}

        dot_source = generate_layout_dot_source(request)
        command = [self.layout_engine, "-Tjson"]
        try:
            process = subprocess.run(
                command, input=dot_source.encode("utf-8"), capture_output=True, check=True, timeout=self.timeout
            )
        except subprocess.CalledProcessError as e:
            error_message = e.stderr.decode("utf-8", errors="ignore") if e.stderr else ""
            raise LayoutComputationError(f"Graphviz ({self.layout_engine}) 執行時返回錯誤: {error_message}") from e
        except FileNotFoundError as e:
            raise LayoutComputationError(
                f"指令 '{self.layout_engine}' 未找到。請確保 Graphviz 已被正確安裝並加入系統 PATH。"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise LayoutComputationError(f"Graphviz 執行超時 (超過 {self.timeout} 秒)。") from e

        try:
            layout_json = json.loads(process.stdout.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise LayoutComputationError(f"無法解析 Graphviz 的 JSON 輸出: {e}") from e

        positions = parse_layout_json(layout_json, request)
        logging.debug(f"Graphviz 佈局完成，定位了 {len(positions)} 個節點。")
        return positions
