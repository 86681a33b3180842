# src/learningmap/core/dataset_loader.py
"""
從 JSON 或 YAML 快照檔載入學習地圖資料。

快照沿用內容儲存庫的欄位名稱：
articles: id, content, summary, takeaways, isRoot
questions: id, text, parentArticleId, childArticleId, isImplicit
"""

# 1. 標準庫導入
import json
import logging
from pathlib import Path
from typing import Any

# 2. 第三方庫導入
import yaml

# 3. 本專案導入
from learningmap.models import ContentNode, MapDataset, QuestionEdge


def _parse_article(record: dict[str, Any]) -> ContentNode:
    takeaways = record.get("takeaways") or []
    if isinstance(takeaways, str):
        takeaways = [takeaways]
    return ContentNode(
        id=str(record["id"]),
        content=str(record.get("content") or ""),
        summary=record.get("summary"),
        takeaways=tuple(str(item) for item in takeaways),
        is_root=bool(record.get("isRoot", False)),
    )


def _parse_question(record: dict[str, Any]) -> QuestionEdge:
    child_id = record.get("childArticleId")
    return QuestionEdge(
        id=str(record["id"]),
        text=str(record.get("text") or ""),
        parent_article_id=str(record["parentArticleId"]),
        child_article_id=str(child_id) if child_id is not None else None,
        is_implicit=bool(record.get("isImplicit", False)),
    )


def parse_map_dataset(map_id: str, raw_data: dict[str, Any]) -> MapDataset:
    """
    將原始字典轉換為 MapDataset，保持記錄的輸入順序。

    格式錯誤的記錄會被略過並記錄警告，不會中斷整份資料的載入。
    """
    articles: list[ContentNode] = []
    for index, record in enumerate(raw_data.get("articles") or []):
        try:
            articles.append(_parse_article(record))
        except (KeyError, TypeError, AttributeError) as e:
            logging.warning(f"略過格式錯誤的文章記錄 (第 {index} 筆): {e}")

    questions: list[QuestionEdge] = []
    for index, record in enumerate(raw_data.get("questions") or []):
        try:
            questions.append(_parse_question(record))
        except (KeyError, TypeError, AttributeError) as e:
            logging.warning(f"略過格式錯誤的問題記錄 (第 {index} 筆): {e}")

    return MapDataset(map_id=map_id, articles=tuple(articles), questions=tuple(questions))


def load_map_dataset(path: Path, map_id: str | None = None) -> MapDataset | None:
    """
    讀取學習地圖快照檔。

    Args:
        path: .json、.yaml 或 .yml 檔案路徑。
        map_id: 地圖識別碼；省略時使用檔名。

    Returns:
        MapDataset；檔案不存在或無法解析時回傳 None。
    """
    if not path.is_file():
        logging.error(f"學習地圖資料檔不存在: {path}")
        return None

    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                raw_data = yaml.safe_load(f)
            else:
                raw_data = json.load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        logging.error(f"讀取學習地圖資料檔 '{path.name}' 時發生錯誤: {e}")
        return None

    if not isinstance(raw_data, dict):
        logging.error(f"學習地圖資料檔 '{path.name}' 的最上層必須是包含 articles/questions 的映射。")
        return None

    dataset = parse_map_dataset(map_id or path.stem, raw_data)
    logging.info(f"載入學習地圖 '{dataset.map_id}': {len(dataset.articles)} 篇文章，{len(dataset.questions)} 個問題。")
    return dataset
