# src/learningmap/core/map_pipeline.py
"""
單一學習地圖的有狀態處理管線。

渲染面 (或批次處理器) 透過此物件驅動：
資料快照 -> 學習樹 -> 流程圖 -> 佈局 -> 視窗裁剪。
"""

# 1. 標準庫導入
import logging
from collections.abc import Mapping
from typing import Any

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
from learningmap.builders.flow_builder import build_flow_graph_data
from learningmap.builders.tree_builder import build_learning_tree_with_issues
from learningmap.errors import LearningMapError
from learningmap.intelligence.graph_density import calculate_graph_density
from learningmap.intelligence.viewport_optimizer import (
    DEFAULT_MAX_VISIBLE_NODES,
    DEFAULT_NODE_THRESHOLD,
    DEFAULT_VIEWPORT_MARGIN,
    ScreenDimensions,
    Viewport,
    optimize_graph_for_performance,
)
from learningmap.layouts.layout_engine import LayoutEngine
from learningmap.layouts.layout_request import LayoutOptions
from learningmap.layouts.node_sizing import apply_measured_sizes
from learningmap.models import MapDataset, TreeArticleNode


class LearningMapPipeline:
    """
    持有一張地圖的衍生資料。

    flow_graph() 依資料快照的物件身分做記憶化：傳入同一個 MapDataset 物件
    不會重新建樹與投影；傳入新的快照物件則全部重建，並讓進行中的佈局過期。
    """

    def __init__(
        self,
        layout_engine: LayoutEngine | None = None,
        layout_options: LayoutOptions | None = None,
        node_threshold: int = DEFAULT_NODE_THRESHOLD,
        margin: float = DEFAULT_VIEWPORT_MARGIN,
        max_visible_nodes: int = DEFAULT_MAX_VISIBLE_NODES,
    ):
        self.layout_engine = layout_engine or LayoutEngine()
        self.layout_options = layout_options
        self.node_threshold = node_threshold
        self.margin = margin
        self.max_visible_nodes = max_visible_nodes

        self.dataset: MapDataset | None = None
        self.tree: TreeArticleNode | None = None
        self.issues: list[LearningMapError] = []
        self.graph: dict[str, list[Any]] = {"nodes": [], "edges": []}
        self.positioned: dict[str, list[Any]] | None = None

    def flow_graph(self, dataset: MapDataset) -> dict[str, list[Any]]:
        """建立 (或沿用) 資料快照對應的流程圖。"""
        if dataset is self.dataset:
            return self.graph

        # 進行中的佈局屬於舊快照，結果不得套用到新資料上
        self.layout_engine.cancel_pending()
        self.dataset = dataset
        self.tree, self.issues = build_learning_tree_with_issues(list(dataset.articles), list(dataset.questions))
        self.graph = build_flow_graph_data(self.tree)
        self.positioned = None
        logging.debug(
            f"地圖 '{dataset.map_id}' 投影完成: {len(self.graph['nodes'])} 個節點，{len(self.graph['edges'])} 條邊。"
        )
        return self.graph

    def apply_sizes(self, sizes: Mapping[str, Any]):
        """記錄渲染面回饋的量測尺寸，供下一次佈局使用。"""
        self.graph = {
            "nodes": apply_measured_sizes(self.graph["nodes"], sizes),
            "edges": self.graph["edges"],
        }

    async def layout(self, sizes: Mapping[str, Any] | None = None) -> dict[str, list[Any]] | None:
        """
        以目前的流程圖 (與選擇性的量測尺寸) 計算佈局。

        Returns:
            已定位的流程圖；失敗或被較新的請求取代時回傳 None。
        """
        if sizes:
            self.apply_sizes(sizes)

        result = await self.layout_engine.layout(self.graph["nodes"], self.graph["edges"], self.layout_options)
        if result is not None:
            self.positioned = result
        return result

    def visible_graph(
        self,
        active_node_id: str | None,
        viewport: Viewport,
        screen: ScreenDimensions,
    ) -> dict[str, list[Any]]:
        """回傳目前視窗下應繪製的子圖；尚未佈局時以投影結果為準。"""
        graph = self.positioned if self.positioned is not None else self.graph
        return optimize_graph_for_performance(
            graph["nodes"],
            graph["edges"],
            active_node_id,
            viewport,
            screen,
            node_threshold=self.node_threshold,
            margin=self.margin,
            max_visible_nodes=self.max_visible_nodes,
        )

    def density(self) -> dict[str, Any]:
        return calculate_graph_density(self.graph["nodes"], self.graph["edges"])
