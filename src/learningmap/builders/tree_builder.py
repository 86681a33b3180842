# src/learningmap/builders/tree_builder.py
"""
將關聯式的文章/問題資料轉換為以根文章為起點的樹狀結構。

資料理論上是 DAG，但不保證如此：走訪時以「路徑範圍」的 visited 集合
(只在單次建構內存在) 防止循環，懸空的問題則保留為沒有子文章的死路。
走訪使用顯式堆疊，很深的文章鏈也不會受限於遞迴深度。
"""

# 1. 標準庫導入
import logging
from collections import defaultdict
from collections.abc import Iterator, Sequence

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
from learningmap.errors import CycleDetectedError, DanglingReferenceError, LearningMapError, MissingRootError
from learningmap.models import ContentNode, QuestionEdge, TreeArticleNode, TreeQuestionNode


def _find_root_article(
    articles: Sequence[ContentNode],
    questions_by_child_id: dict[str, list[QuestionEdge]],
) -> ContentNode | None:
    """
    找出沒有任何入邊的文章。

    若有多篇文章符合，依輸入順序取第一篇；這是沿用既有行為，
    並非刻意的策略，因此會記錄警告。
    """
    candidates = [article for article in articles if article.id not in questions_by_child_id]
    if not candidates:
        return None
    if len(candidates) > 1:
        candidate_ids = ", ".join(article.id for article in candidates)
        logging.warning(f"找到 {len(candidates)} 篇可作為根的文章 ({candidate_ids})，將使用第一篇: {candidates[0].id}")
    return candidates[0]


def build_learning_tree_with_issues(
    articles: Sequence[ContentNode],
    questions: Sequence[QuestionEdge],
) -> tuple[TreeArticleNode | None, list[LearningMapError]]:
    """
    建構學習地圖樹，並回傳建構過程中偵測並已就地復原的狀況。

    Args:
        articles: 依輸入順序排列的文章。
        questions: 依輸入順序排列的問題。

    Returns:
        (樹的根節點或 None, 偵測到的狀況列表)。
    """
    issues: list[LearningMapError] = []
    if not articles:
        return None, issues

    articles_by_id: dict[str, ContentNode] = {}
    for article in articles:
        articles_by_id.setdefault(article.id, article)

    questions_by_parent_id: dict[str, list[QuestionEdge]] = defaultdict(list)
    questions_by_child_id: dict[str, list[QuestionEdge]] = defaultdict(list)
    for question in questions:
        questions_by_parent_id[question.parent_article_id].append(question)
        if question.child_article_id is not None:
            questions_by_child_id[question.child_article_id].append(question)

    root_article = _find_root_article(articles, questions_by_child_id)
    if root_article is None:
        issue = MissingRootError(len(articles))
        logging.error(str(issue))
        issues.append(issue)
        return None, issues

    tree = TreeArticleNode(id=root_article.id, data=root_article)
    # 以顯式堆疊做深度優先走訪；on_path 只包含目前路徑上的文章，離開節點時移除
    on_path: set[str] = {root_article.id}
    stack: list[tuple[TreeArticleNode, Iterator[QuestionEdge]]] = [
        (tree, iter(questions_by_parent_id.get(root_article.id, [])))
    ]

    while stack:
        article_node, pending_questions = stack[-1]
        question = next(pending_questions, None)
        if question is None:
            stack.pop()
            on_path.discard(article_node.id)
            continue

        question_node = TreeQuestionNode(id=question.id, data=question)
        article_node.outgoing_questions.append(question_node)

        child_id = question.child_article_id
        if child_id is None:
            continue
        child_article = articles_by_id.get(child_id)
        if child_article is None:
            issues.append(DanglingReferenceError(question.id, child_id))
        elif child_id in on_path:
            issues.append(CycleDetectedError(question.id, child_id))
        else:
            child_node = TreeArticleNode(id=child_article.id, data=child_article)
            question_node.child_article = child_node
            on_path.add(child_id)
            stack.append((child_node, iter(questions_by_parent_id.get(child_id, []))))

    for issue in issues:
        logging.warning(f"學習地圖資料已就地修復: {issue}")

    return tree, issues


def build_learning_tree(
    articles: Sequence[ContentNode],
    questions: Sequence[QuestionEdge],
) -> TreeArticleNode | None:
    """建構學習地圖樹；找不到根時回傳 None。"""
    tree, _ = build_learning_tree_with_issues(articles, questions)
    return tree


def collect_tree_article_ids(tree: TreeArticleNode | None) -> list[str]:
    """依前序走訪順序列出樹中可到達的文章 ID。"""
    if tree is None:
        return []

    article_ids: list[str] = []
    stack = [tree]
    while stack:
        node = stack.pop()
        article_ids.append(node.id)
        children = [q.child_article for q in node.outgoing_questions if q.child_article is not None]
        stack.extend(reversed(children))
    return article_ids
