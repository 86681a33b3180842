# src/learningmap/builders/flow_builder.py
"""
提供流程圖 (flow graph) 的建構邏輯：將學習地圖樹攤平成帶命名空間的節點與邊。
"""

# 1. 標準庫導入
from collections.abc import Iterator
from typing import Any

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
from learningmap.models import (
    FlowEdge,
    FlowNode,
    TreeArticleNode,
    TreeQuestionNode,
    article_flow_id,
    flow_edge_id,
    question_flow_id,
)

ARTICLE_LABEL_LENGTH = 30


def _article_payload(article_node: TreeArticleNode) -> dict[str, Any]:
    article = article_node.data
    return {
        "node_type": "article",
        "label": article.content[:ARTICLE_LABEL_LENGTH] or f"Article {article.id}",
        "description": article.summary or None,
        "takeaways": list(article.takeaways),
        "is_root": article.is_root,
        "status": "not-started",
    }


def _question_payload(question_node: TreeQuestionNode) -> dict[str, Any]:
    question = question_node.data
    return {
        "node_type": "question",
        "id": question.id,
        "text": question.text,
        "is_implicit": question.is_implicit,
    }


def build_flow_graph_data(tree: TreeArticleNode | None) -> dict[str, list[Any]]:
    """
    以深度優先前序走訪將樹轉換為流程圖資料。

    每篇可到達的文章產生一個 `article-<id>` 節點；每個問題產生一個 `question-<id>` 節點
    與一條 文章 -> 問題 的邊；已回答的問題再多一條 問題 -> 子文章 的邊。

    Args:
        tree: 由 tree_builder 產出的樹，可以是 None。

    Returns:
        {"nodes": list[FlowNode], "edges": list[FlowEdge]}，順序完全由輸入順序決定。
    """
    nodes: list[FlowNode] = []
    edges: list[FlowEdge] = []
    if tree is None:
        return {"nodes": nodes, "edges": edges}

    # 同一篇文章可經由多個問題到達 (菱形 DAG)，只輸出一次
    emitted_article_ids: set[str] = set()

    def emit_article(article_node: TreeArticleNode) -> bool:
        article_id = article_flow_id(article_node.id)
        if article_id in emitted_article_ids:
            return False
        emitted_article_ids.add(article_id)
        nodes.append(FlowNode(id=article_id, kind="article", payload=_article_payload(article_node)))
        return True

    emit_article(tree)
    stack: list[tuple[str, Iterator[TreeQuestionNode]]] = [(article_flow_id(tree.id), iter(tree.outgoing_questions))]

    while stack:
        article_id, pending_questions = stack[-1]
        question_node = next(pending_questions, None)
        if question_node is None:
            stack.pop()
            continue

        question_id = question_flow_id(question_node.id)
        nodes.append(FlowNode(id=question_id, kind="question", payload=_question_payload(question_node)))
        edges.append(FlowEdge(id=flow_edge_id(article_id, question_id), source=article_id, target=question_id))

        child = question_node.child_article
        if child is None:
            continue
        child_id = article_flow_id(child.id)
        edges.append(FlowEdge(id=flow_edge_id(question_id, child_id), source=question_id, target=child_id))
        if emit_article(child):
            stack.append((child_id, iter(child.outgoing_questions)))

    return {"nodes": nodes, "edges": edges}
