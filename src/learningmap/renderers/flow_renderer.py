# src/learningmap/renderers/flow_renderer.py
"""
封裝已定位學習地圖的 Graphviz 渲染邏輯。

座標由佈局引擎決定，渲染時以 `neato -n2` 固定節點位置，不再重新佈局。
"""

# 1. 標準庫導入
import html
import logging
import subprocess
from pathlib import Path
from typing import Any

# 2. 第三方庫導入
import graphviz

# 3. 本專案導入
from learningmap.layouts.graphviz_layout import POINTS_PER_INCH
from learningmap.layouts.node_sizing import resolve_node_size
from learningmap.models import FlowNode
from learningmap.utils.color_utils import get_node_colors

RENDER_ENGINE = "neato"
TAKEAWAY_PREVIEW_COUNT = 3


def _format_node_label(node: FlowNode) -> str:
    """根據節點類型組合 HTML-like 標籤。"""
    payload = node.payload
    if node.kind == "question":
        text = html.escape(payload.get("text") or "")
        style = "<I>" if payload.get("is_implicit") else ""
        style_end = "</I>" if style else ""
        return f'<<FONT POINT-SIZE="11">{style}{text}{style_end}</FONT>>'

    label = html.escape(payload.get("label") or "")
    rows = [f'<FONT POINT-SIZE="13"><B>{label}</B></FONT>']
    description = payload.get("description")
    if description:
        rows.append(f'<FONT POINT-SIZE="10" COLOR="#333333">{html.escape(description)}</FONT>')
    for takeaway in (payload.get("takeaways") or [])[:TAKEAWAY_PREVIEW_COUNT]:
        rows.append(f'<FONT POINT-SIZE="9" COLOR="#555555">• {html.escape(takeaway)}</FONT>')
    return "<" + "<BR/>".join(rows) + ">"


def generate_flow_dot_source(
    graph_data: dict[str, list[Any]],
    title: str,
    active_node_id: str | None = None,
) -> str:
    """
    生成已定位流程圖的 DOT 原始碼字串。

    Args:
        graph_data: 包含已定位 FlowNode 與 FlowEdge 的圖形資料字典。
        title: 圖表標題。
        active_node_id: 要特別標示的作用中節點。

    Returns:
        DOT 格式的圖形描述字串。
    """
    dot = graphviz.Digraph("LearningMap")

    font_face = 'FACE="Microsoft YaHei"'
    dot.attr(
        fontname="Microsoft YaHei",
        label=f'<<FONT {font_face} POINT-SIZE="20">{html.escape(title)}</FONT>>',
        labelloc="t",
        charset="UTF-8",
        splines="true",
    )
    dot.attr("node", shape="box", style="rounded,filled", fontname="Microsoft YaHei", fixedsize="true")
    dot.attr("edge", color="gray50", arrowsize="0.7")

    nodes: list[FlowNode] = graph_data.get("nodes", [])
    if not nodes:
        dot.node("empty_graph", "這張學習地圖還沒有內容", shape="plaintext", pos="0,0!")
        return dot.source

    canvas_height = max(node.position.y + resolve_node_size(node)[1] for node in nodes)
    for node in nodes:
        width, height = resolve_node_size(node)
        # 佈局座標為左上角、y 向下；Graphviz 為中心點、y 向上
        center_x = node.position.x + width / 2
        center_y = canvas_height - (node.position.y + height / 2)
        fill_color, border_color = get_node_colors(
            node.kind,
            is_active=node.id == active_node_id,
            is_implicit=bool(node.payload.get("is_implicit")),
        )
        dot.node(
            node.id,
            label=_format_node_label(node),
            pos=f"{center_x:.2f},{center_y:.2f}!",
            width=f"{width / POINTS_PER_INCH:.3f}",
            height=f"{height / POINTS_PER_INCH:.3f}",
            fillcolor=fill_color,
            color=border_color,
            shape="ellipse" if node.kind == "question" else "box",
        )

    for edge in graph_data.get("edges", []):
        dot.edge(edge.source, edge.target, style="dashed" if edge.animated else "solid")

    return dot.source


def render_flow_graph(
    graph_data: dict[str, list[Any]],
    output_path: Path,
    title: str,
    active_node_id: str | None = None,
    dpi: int | str = 150,
    timeout: int = 120,
    save_source_file: bool = False,
) -> bool:
    """
    使用 graphviz 將已定位的流程圖渲染成圖片檔案。

    Returns:
        渲染成功時回傳 True。
    """
    dot_source = generate_flow_dot_source(graph_data, title, active_node_id)

    if save_source_file:
        source_path = output_path.with_suffix(".dot")
        with open(source_path, "w", encoding="utf-8") as f:
            f.write(dot_source)
        logging.info(f"DOT 原始碼已儲存至: {source_path}")

    logging.info(f"準備將學習地圖渲染至: {output_path} (DPI: {dpi})")
    command = [RENDER_ENGINE, "-n2", f"-T{output_path.suffix[1:]}", f"-Gdpi={dpi}"]
    try:
        process = subprocess.run(
            command, input=dot_source.encode("utf-8"), capture_output=True, check=True, timeout=timeout
        )
        with open(output_path, "wb") as f:
            f.write(process.stdout)
        logging.info(f"圖表已成功儲存至: {output_path}")
        return True
    except subprocess.CalledProcessError as e:
        logging.error(f"Graphviz ({RENDER_ENGINE}) 執行時返回錯誤。")
        error_message = e.stderr.decode("utf-8", errors="ignore") if e.stderr else ""
        logging.error(f"Graphviz 錯誤訊息:\n{error_message}")
    except FileNotFoundError:
        logging.error(f"找不到 Graphviz 執行檔 '{RENDER_ENGINE}'，請確認已安裝 Graphviz 並加入 PATH。")
    except subprocess.TimeoutExpired:
        logging.error(f"Graphviz 渲染超過 {timeout} 秒，已中止。")
    except OSError as e:
        logging.error(f"渲染圖表時發生錯誤: {e}")
    return False
