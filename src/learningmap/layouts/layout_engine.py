# src/learningmap/layouts/layout_engine.py
"""
非同步、可取消的佈局引擎。

核心職責：
1. 將流程圖節點 (含量測尺寸) 轉換為佈局請求快照，在執行緒中執行演算法。
2. 以單調遞增的請求 token 判斷結果是否過期：只有最新請求的結果會被套用。
3. 維護 Idle -> Computing -> Ready / Failed 狀態機，失敗時明確記錄錯誤，
   不會讓呼叫端停留在「計算中」。
"""

# 1. 標準庫導入
import asyncio
import dataclasses
import enum
import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
from learningmap.errors import LayoutComputationError
from learningmap.layouts.layered_layout import LayeredLayout
from learningmap.layouts.layout_request import LayoutAlgorithm, LayoutNodeSpec, LayoutOptions, LayoutRequest
from learningmap.layouts.node_sizing import resolve_node_size
from learningmap.models import FlowEdge, FlowNode, Position


class LayoutState(enum.Enum):
    IDLE = "idle"
    COMPUTING = "computing"
    READY = "ready"
    FAILED = "failed"


def build_layout_request(nodes: list[FlowNode], edges: list[FlowEdge], options: LayoutOptions) -> LayoutRequest:
    """建立佈局請求快照；未量測的尺寸以預設值補上。"""
    return LayoutRequest(
        nodes=tuple(LayoutNodeSpec(node.id, *resolve_node_size(node)) for node in nodes),
        edges=tuple((edge.source, edge.target) for edge in edges),
        direction=options.direction,
        node_spacing=options.node_spacing,
        layer_spacing=options.layer_spacing,
    )


def apply_positions(
    nodes: list[FlowNode],
    edges: list[FlowEdge],
    request: LayoutRequest,
    positions: Any,
) -> dict[str, list[Any]]:
    """
    驗證演算法輸出並產生已定位的流程圖。

    Raises:
        LayoutComputationError: 輸出不是映射、節點數不符、缺少座標或座標非有限數值。
    """
    if not isinstance(positions, Mapping):
        raise LayoutComputationError(f"佈局演算法回傳了非預期的型別: {type(positions).__name__}")

    node_ids = [node.id for node in nodes]
    if len(positions) != len(node_ids) or len(set(node_ids)) != len(node_ids):
        raise LayoutComputationError(f"佈局結果的節點數 ({len(positions)}) 與輸入 ({len(node_ids)}) 不符")

    sizes = {spec.id: (spec.width, spec.height) for spec in request.nodes}
    positioned_nodes: list[FlowNode] = []
    for node in nodes:
        if node.id not in positions:
            raise LayoutComputationError(f"佈局結果缺少節點 '{node.id}' 的座標")
        try:
            x, y = (float(value) for value in positions[node.id])
        except (TypeError, ValueError) as e:
            raise LayoutComputationError(f"節點 '{node.id}' 的座標格式錯誤: {positions[node.id]!r}") from e
        if not (math.isfinite(x) and math.isfinite(y)):
            raise LayoutComputationError(f"節點 '{node.id}' 的座標不是有限數值: ({x}, {y})")

        width, height = sizes[node.id]
        positioned_nodes.append(dataclasses.replace(node, position=Position(x, y), width=width, height=height))

    return {"nodes": positioned_nodes, "edges": list(edges)}


class LayoutEngine:
    """
    每個圖形實例持有一個 LayoutEngine，同一時間只有一個邏輯上的進行中計算。
    """

    def __init__(self, algorithm: LayoutAlgorithm | None = None, options: LayoutOptions | None = None):
        self.algorithm: LayoutAlgorithm = algorithm if algorithm is not None else LayeredLayout()
        self.default_options = options or LayoutOptions()
        self.state = LayoutState.IDLE
        self.error: LayoutComputationError | None = None
        self.result: dict[str, list[Any]] | None = None
        self._latest_token = 0
        self._applied_request: LayoutRequest | None = None

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def is_current(self, token: int) -> bool:
        return token == self._latest_token

    def _issue_token(self) -> int:
        self._latest_token += 1
        return self._latest_token

    def _settle_without_result(self):
        self.state = LayoutState.READY if self.result is not None else LayoutState.IDLE

    def cancel_pending(self):
        """讓所有進行中的請求過期；它們的結果將被捨棄。"""
        self._issue_token()
        if self.state is LayoutState.COMPUTING:
            self._settle_without_result()

    async def layout(
        self,
        nodes: Iterable[FlowNode],
        edges: Iterable[FlowEdge],
        options: LayoutOptions | None = None,
    ) -> dict[str, list[Any]] | None:
        """
        計算流程圖的佈局。

        Args:
            nodes: 流程圖節點 (可含量測尺寸)。
            edges: 流程圖的邊。
            options: 佈局方向與間距；省略時使用引擎的預設值。

        Returns:
            {"nodes": 已定位節點, "edges": 邊}；若失敗或已被較新的請求取代則回傳 None。
        """
        options = options or self.default_options
        nodes = list(nodes)
        edges = list(edges)
        token = self._issue_token()

        if not nodes:
            self.result = {"nodes": [], "edges": []}
            self._applied_request = None
            self.state = LayoutState.READY
            self.error = None
            return self.result

        request = build_layout_request(nodes, edges, options)
        if self.state is LayoutState.READY and self.result is not None and request == self._applied_request:
            logging.debug("圖形結構與節點尺寸未變更，沿用上一次的佈局結果。")
            # 座標沿用，節點內容 (payload) 以本次傳入的為準
            previous_positions = {node.id: (node.position.x, node.position.y) for node in self.result["nodes"]}
            result = apply_positions(nodes, edges, request, previous_positions)
            if result != self.result:
                self.result = result
            return self.result

        self.state = LayoutState.COMPUTING
        self.error = None
        logging.debug(f"開始佈局計算 (token {token}，{len(nodes)} 個節點，{len(edges)} 條邊)。")

        try:
            positions = await asyncio.to_thread(self.algorithm, request)
            result = apply_positions(nodes, edges, request, positions)
        except asyncio.CancelledError:
            if self.is_current(token):
                self._settle_without_result()
            raise
        except Exception as e:
            if not self.is_current(token):
                logging.debug(f"忽略已過期請求的佈局錯誤 (token {token}): {e}")
                return None
            error = e if isinstance(e, LayoutComputationError) else LayoutComputationError(f"佈局演算法執行失敗: {e}")
            self.state = LayoutState.FAILED
            self.error = error
            logging.error(f"佈局計算失敗: {error}")
            return None

        if not self.is_current(token):
            logging.debug(f"捨棄過期的佈局結果 (token {token}，最新為 {self._latest_token})。")
            return None

        self.state = LayoutState.READY
        self.result = result
        self._applied_request = request
        logging.info(f"佈局計算完成，定位了 {len(result['nodes'])} 個節點。")
        return result
