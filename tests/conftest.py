# tests/conftest.py
"""
pytest 共用 fixtures：學習地圖資料工廠與已定位流程圖的產生器。
"""

# 1. 標準庫導入
from collections.abc import Callable

# 2. 第三方庫導入
import pytest

# 3. 本專案導入
from learningmap.models import ContentNode, FlowEdge, FlowNode, MapDataset, Position, QuestionEdge, flow_edge_id


def make_article(article_id: str, content: str | None = None, **kwargs) -> ContentNode:
    return ContentNode(id=article_id, content=content if content is not None else f"內容 {article_id}", **kwargs)


def make_question(question_id: str, parent_id: str, child_id: str | None, **kwargs) -> QuestionEdge:
    return QuestionEdge(
        id=question_id,
        text=kwargs.pop("text", f"問題 {question_id}"),
        parent_article_id=parent_id,
        child_article_id=child_id,
        **kwargs,
    )


@pytest.fixture
def simple_map() -> tuple[list[ContentNode], list[QuestionEdge]]:
    """A(root) 以 Q1 連到 B、以 Q2 連到 C。"""
    articles = [make_article("A", is_root=True), make_article("B"), make_article("C")]
    questions = [make_question("Q1", "A", "B"), make_question("Q2", "A", "C")]
    return articles, questions


@pytest.fixture
def simple_dataset(simple_map) -> MapDataset:
    articles, questions = simple_map
    return MapDataset(map_id="simple", articles=tuple(articles), questions=tuple(questions))


@pytest.fixture
def grid_graph() -> Callable[..., dict[str, list]]:
    """
    產生以 spacing 間距排成格狀的已定位流程圖，節點依列連成一條鏈。
    """

    def factory(count: int, columns: int = 10, spacing: float = 400.0) -> dict[str, list]:
        nodes = [
            FlowNode(
                id=f"article-n{index}",
                kind="article",
                position=Position((index % columns) * spacing, (index // columns) * spacing),
            )
            for index in range(count)
        ]
        edges = [
            FlowEdge(id=flow_edge_id(a.id, b.id), source=a.id, target=b.id)
            for a, b in zip(nodes, nodes[1:], strict=False)
        ]
        return {"nodes": nodes, "edges": edges}

    return factory
