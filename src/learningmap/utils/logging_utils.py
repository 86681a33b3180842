# src/learningmap/utils/logging_utils.py
"""
提供與日誌記錄相關的通用工具和過濾器。
"""

# 1. 標準庫導入
import logging

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
# (無)

VIEWPORT_TICK_MARKER = "[viewport]"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class ViewportTickFilter(logging.Filter):
    """
    一個自訂的日誌過濾器，用於攔截每次平移/縮放都會產生的視窗裁剪訊息。
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """
        如果日誌訊息不是以視窗裁剪標記開頭，則回傳 True。
        """
        return not record.getMessage().startswith(VIEWPORT_TICK_MARKER)


def configure_console_logging(level: int = logging.DEBUG) -> logging.Logger:
    """為根日誌記錄器加上主控台輸出；已有 handler 時不重複設定。"""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not root_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler.addFilter(ViewportTickFilter())
        root_logger.addHandler(console_handler)

    return root_logger
