# src/learningmap/__main__.py
"""
learningmap 主執行入口。
"""

# 1. 標準庫導入
import logging

# 2. 第三方庫導入
# (無)

# 3. 本專案導入
from learningmap.core.config_loader import load_active_maps
from learningmap.core.map_processor import MapProcessor
from learningmap.utils.logging_utils import configure_console_logging
from learningmap.utils.path_utils import find_project_root


def main():
    """主函式，讀取工作區設定，並為每張指定的學習地圖執行處理流程。"""
    configure_console_logging()

    try:
        project_root = find_project_root()
    except FileNotFoundError as e:
        logging.error(f"初始化失敗: {e}")
        return

    configs_dir = project_root / "configs"
    workspace_path = configs_dir / "workspace.yaml"
    maps_dir = configs_dir / "maps"

    if not workspace_path.is_file():
        logging.error(f"工作區設定檔 '{workspace_path}' 不存在。")
        logging.info("請從 'workspace.template.yaml' 複製一份並進行設定。")
        return

    active_maps = load_active_maps(workspace_path)
    if not active_maps:
        logging.warning("工作區設定檔中沒有指定任何 'active_maps'。")
        return

    logging.info(f"learningmap 工具啟動，在工作區中找到 {len(active_maps)} 張活躍的學習地圖。")
    for map_config_name in active_maps:
        config_path = maps_dir / map_config_name
        try:
            MapProcessor(config_path).run()
        except Exception as e:
            logging.error(f"處理學習地圖 '{map_config_name}' 時發生未預期的嚴重錯誤: {e}", exc_info=True)


if __name__ == "__main__":
    main()
