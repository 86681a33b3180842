# src/learningmap/__init__.py
"""
learningmap：將文章與問題組成的學習地圖轉換為可繪製、已定位的流程圖。
"""
