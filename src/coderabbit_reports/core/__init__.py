"""
核心模块 - 错误分类与 Result 封装。
"""
