# src/learningmap/builders/__init__.py
"""
建構器套件，負責將關聯式資料轉換為樹與流程圖資料結構。
"""

from .flow_builder import build_flow_graph_data
from .tree_builder import build_learning_tree, build_learning_tree_with_issues, collect_tree_article_ids

__all__ = [
    "build_flow_graph_data",
    "build_learning_tree",
    "build_learning_tree_with_issues",
    "collect_tree_article_ids",
]
