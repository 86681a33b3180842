# src/learningmap/core/map_processor.py
"""
learningmap 的核心批次處理引擎。
"""

# 1. 標準庫導入
import asyncio
import json
import logging
from pathlib import Path
from typing import Any

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
from learningmap.core.config_loader import ConfigLoader
from learningmap.core.dataset_loader import load_map_dataset
from learningmap.core.layout_cache import (
    LayoutCache,
    compute_position_updates,
    merge_cached_layout,
    serialize_flow_graph,
)
from learningmap.core.map_pipeline import LearningMapPipeline
from learningmap.intelligence.viewport_optimizer import ScreenDimensions, Viewport
from learningmap.layouts.graphviz_layout import GraphvizLayout
from learningmap.layouts.layered_layout import LayeredLayout
from learningmap.layouts.layout_engine import LayoutEngine
from learningmap.layouts.layout_request import LayoutAlgorithm
from learningmap.layouts.node_sizing import with_estimated_sizes
from learningmap.renderers.flow_renderer import render_flow_graph


class MapProcessor:
    """一個處理單一學習地圖完整流程的類別。"""

    def __init__(self, config_path: Path):
        self.config_path = config_path
        self.config_loader = ConfigLoader(config_path)
        self.config = self.config_loader.config
        self.map_id = self.config.get("map_id", config_path.stem) if self.config else config_path.stem

    def _create_algorithm(self) -> LayoutAlgorithm:
        layout_config = self.config["layout"]
        if layout_config["engine"] == "graphviz":
            return GraphvizLayout(timeout=int(layout_config["graphviz_timeout"]))
        return LayeredLayout(crossing_sweeps=int(layout_config["crossing_sweeps"]))

    def _create_pipeline(self) -> LearningMapPipeline:
        viewport_config = self.config["viewport"]
        options = self.config_loader.layout_options()
        return LearningMapPipeline(
            layout_engine=LayoutEngine(self._create_algorithm(), options),
            layout_options=options,
            node_threshold=int(viewport_config["node_threshold"]),
            margin=float(viewport_config["margin"]),
            max_visible_nodes=int(viewport_config["max_visible_nodes"]),
        )

    def run(self) -> Path | None:
        """
        執行完整的地圖處理流程。

        Returns:
            輸出的流程圖 JSON 路徑；任何階段失敗時回傳 None。
        """
        if not self.config:
            logging.error(f"因設定檔 '{self.config_path.name}' 載入失敗，終止處理。")
            return None

        logging.info(f"========== 開始處理學習地圖: {self.map_id} ==========")

        dataset_path = self.config.get("dataset_path")
        if not dataset_path:
            logging.error(f"設定檔 '{self.config_path.name}' 缺少 'dataset_path'，終止處理。")
            return None

        dataset = load_map_dataset(Path(dataset_path), self.map_id)
        if dataset is None:
            return None

        output_dir: Path = self.config["output_dir"]
        output_dir.mkdir(parents=True, exist_ok=True)

        pipeline = self._create_pipeline()
        graph = pipeline.flow_graph(dataset)
        for issue in pipeline.issues:
            logging.warning(f"資料問題 ({type(issue).__name__}): {issue}")
        logging.info(f"--- [投影] 流程圖包含 {len(graph['nodes'])} 個節點，{len(graph['edges'])} 條邊。 ---")

        positioned = self._resolve_layout(pipeline, output_dir)
        if positioned is None:
            logging.error(f"地圖 '{self.map_id}' 佈局失敗: {pipeline.layout_engine.error}")
            return None

        density = pipeline.density()
        logging.info(
            f"--- [密度] {density['density']:.4f}，建議連線距離 {density['recommended_link_distance']:.1f}，"
            f"排斥力 {density['recommended_charge_strength']:.1f} ---"
        )

        viewport_config = self.config["viewport"]
        active_node_id = viewport_config.get("active_node_id")
        visible = pipeline.visible_graph(
            active_node_id,
            Viewport(float(viewport_config["x"]), float(viewport_config["y"]), float(viewport_config["zoom"])),
            ScreenDimensions(float(viewport_config["screen_width"]), float(viewport_config["screen_height"])),
        )

        output_path = output_dir / f"{self.map_id}_flow.json"
        self._write_output(output_path, positioned, visible, density, pipeline.issues)

        rendering_config = self.config["rendering"]
        if rendering_config.get("enabled"):
            render_flow_graph(
                visible,
                output_dir / f"{self.map_id}_flow.{rendering_config['format']}",
                title=f"{self.map_id} 學習地圖",
                active_node_id=active_node_id,
                dpi=rendering_config["dpi"],
                timeout=int(rendering_config["render_timeout"]),
                save_source_file=bool(rendering_config.get("save_source_file")),
            )

        logging.info(f"========== 學習地圖 '{self.map_id}' 處理完成 ==========\n")
        return output_path

    def _resolve_layout(self, pipeline: LearningMapPipeline, output_dir: Path) -> dict[str, list[Any]] | None:
        """沿用結構與尺寸都相符的快照座標；否則以估算尺寸重新計算並更新快照。"""
        cache_config = self.config["cache"]
        cache = LayoutCache(output_dir / cache_config["dir"], self.map_id) if cache_config.get("enabled") else None

        pipeline.apply_sizes(
            {node.id: (node.width, node.height) for node in with_estimated_sizes(pipeline.graph["nodes"])}
        )

        if cache is not None:
            snapshot = cache.load(pipeline.graph["nodes"], pipeline.graph["edges"])
            merged_nodes = merge_cached_layout(pipeline.graph["nodes"], snapshot["nodes"]) if snapshot else None
            if merged_nodes is not None:
                pipeline.positioned = {"nodes": merged_nodes, "edges": pipeline.graph["edges"]}
                return pipeline.positioned

        positioned = asyncio.run(pipeline.layout())
        if positioned is not None and cache is not None:
            cache.save(positioned)
        return positioned

    def _write_output(
        self,
        output_path: Path,
        positioned: dict[str, list[Any]],
        visible: dict[str, list[Any]],
        density: dict[str, Any],
        issues: list[Exception],
    ):
        payload = {
            "map_id": self.map_id,
            **serialize_flow_graph(positioned),
            "visible": {
                "node_ids": [node.id for node in visible["nodes"]],
                "edge_ids": [edge.id for edge in visible["edges"]],
            },
            "position_updates": compute_position_updates(positioned["nodes"]),
            "density": density,
            "issues": [f"{type(issue).__name__}: {issue}" for issue in issues],
        }
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        logging.info(f"流程圖資料已儲存至: {output_path}")
