# src/learningmap/errors.py
"""
學習地圖管線的錯誤分類。

這些例外大多不會被拋出跨越元件邊界：建構器會將偵測到的狀況收集成實例，
佈局引擎則將失敗記錄在自身狀態中。
"""


class LearningMapError(Exception):
    """所有學習地圖錯誤的基底類別。"""


class MissingRootError(LearningMapError):
    """沒有任何文章是「沒有入邊」的，因此無法決定根節點。"""

    def __init__(self, article_count: int):
        super().__init__(f"在 {article_count} 篇文章中找不到根文章 (每篇文章都有入邊)")
        self.article_count = article_count


class DanglingReferenceError(LearningMapError):
    """問題指向一篇不存在的文章。"""

    def __init__(self, question_id: str, child_article_id: str):
        super().__init__(f"問題 '{question_id}' 指向不存在的文章 '{child_article_id}'")
        self.question_id = question_id
        self.child_article_id = child_article_id


class CycleDetectedError(LearningMapError):
    """問題指回目前遞迴路徑上已出現過的文章。"""

    def __init__(self, question_id: str, article_id: str):
        super().__init__(f"問題 '{question_id}' 形成循環，指回路徑上的文章 '{article_id}'")
        self.question_id = question_id
        self.article_id = article_id


class LayoutComputationError(LearningMapError):
    """佈局演算法拋出例外，或回傳了格式錯誤的結果。"""
