# src/learningmap/models.py
"""
學習地圖的資料模型。

關聯式資料 (文章 + 問題) 以不可變的 dataclass 表示；
樹狀結構與流程圖 (flow graph) 則為由建構器產出的衍生資料。
"""

# 1. 標準庫導入
from dataclasses import dataclass, field
from typing import Any, Literal

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
# (無)

ARTICLE_PREFIX = "article-"
QUESTION_PREFIX = "question-"

NodeKind = Literal["article", "question"]


@dataclass(frozen=True)
class ContentNode:
    """一篇文章 (內容節點)。"""

    id: str
    content: str
    summary: str | None = None
    takeaways: tuple[str, ...] = ()
    is_root: bool = False


@dataclass(frozen=True)
class QuestionEdge:
    """由父文章指向子文章的問題；child_article_id 為 None 代表尚未回答。"""

    id: str
    text: str
    parent_article_id: str
    child_article_id: str | None = None
    is_implicit: bool = False


@dataclass
class TreeQuestionNode:
    id: str
    data: QuestionEdge
    child_article: "TreeArticleNode | None" = None


@dataclass
class TreeArticleNode:
    id: str
    data: ContentNode
    outgoing_questions: list[TreeQuestionNode] = field(default_factory=list)


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class FlowNode:
    """
    渲染器使用的節點。

    width/height 為渲染面量測後回饋的尺寸，首次繪製前為 None。
    """

    id: str
    kind: NodeKind
    position: Position = Position()
    payload: dict[str, Any] = field(default_factory=dict)
    width: float | None = None
    height: float | None = None

    @property
    def raw_id(self) -> str:
        """去除命名空間前綴後的原始 ID。"""
        prefix = ARTICLE_PREFIX if self.kind == "article" else QUESTION_PREFIX
        return self.id[len(prefix) :] if self.id.startswith(prefix) else self.id


@dataclass(frozen=True)
class FlowEdge:
    id: str
    source: str
    target: str
    animated: bool = True


@dataclass(frozen=True)
class MapDataset:
    """某一張學習地圖的資料快照 (保持輸入順序)。"""

    map_id: str
    articles: tuple[ContentNode, ...] = ()
    questions: tuple[QuestionEdge, ...] = ()


def article_flow_id(article_id: str) -> str:
    return f"{ARTICLE_PREFIX}{article_id}"


def question_flow_id(question_id: str) -> str:
    return f"{QUESTION_PREFIX}{question_id}"


def flow_edge_id(source: str, target: str) -> str:
    return f"e-{source}-{target}"
